"""
Services package for the document-to-JSON application.

Contains:
- extraction_service: PDF text extraction and OCR dispatch
- ocr_service: Scoped Tesseract worker
- storage_service: Upload spooling, result artifacts and retention sweep
- ai: Language-model structuring of extracted text
"""

from .ai import StructuringService
from .extraction_service import ExtractionService
from .storage_service import StorageService

__all__ = ["ExtractionService", "StorageService", "StructuringService"]
