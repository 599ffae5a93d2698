"""
Document to JSON Converter.

A FastAPI service that extracts text from PDFs (pypdf) and images
(Tesseract OCR) and structures it as JSON with a language model.
"""

__version__ = "1.0.0"
