"""
Text extraction service.

Routes an uploaded file to the PDF text extractor (pypdf) or the OCR
engine (Tesseract) based on its declared MIME type. Scanned PDFs can
optionally be rasterized with pdf2image (poppler) and OCR'd.
"""

import asyncio
import io
import logging
from pathlib import Path

from ..exceptions import ExtractionError, UnsupportedFileType
from .ocr_service import OCRWorker

logger = logging.getLogger(__name__)

PDF_MIME_TYPE = "application/pdf"
IMAGE_MIME_PREFIX = "image/"


class ExtractionService:
    """
    Service for turning PDFs and images into plain text.

    Blocking parser and OCR work runs in a worker thread and is bounded
    by a timeout.
    """

    def __init__(
        self,
        ocr_language: str = "eng",
        timeout: float = 120.0,
        ocr_pdf_fallback: bool = False,
        dpi: int = 200,
    ):
        """
        Initialize the extraction service.

        Args:
            ocr_language: Tesseract language model for images.
            timeout: Upper bound in seconds for a single extraction.
            ocr_pdf_fallback: OCR rasterized pages when a PDF has no text layer.
            dpi: Resolution used when rasterizing PDFs for OCR.
        """
        self.ocr_language = ocr_language
        self.timeout = timeout
        self.ocr_pdf_fallback = ocr_pdf_fallback
        self.dpi = dpi

    async def extract_text(self, path: str | Path, mime_type: str | None) -> str:
        """
        Extract text from a stored file.

        Args:
            path: Location of the file on disk.
            mime_type: MIME type declared by the uploader.

        Returns:
            The extracted text.

        Raises:
            UnsupportedFileType: If the MIME type is neither PDF nor image.
            ExtractionError: If parsing, OCR, or the timeout fails.
        """
        if mime_type == PDF_MIME_TYPE:
            extractor = self.extract_pdf
        elif mime_type and mime_type.startswith(IMAGE_MIME_PREFIX):
            extractor = self.extract_image
        else:
            raise UnsupportedFileType(mime_type)

        logger.info("Extracting text from %s (%s)", path, mime_type)
        try:
            text = await asyncio.wait_for(
                asyncio.to_thread(extractor, Path(path)),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            logger.error("Extraction timed out after %.1fs: %s", self.timeout, path)
            raise ExtractionError("Text extraction timed out") from e

        logger.info("Extracted %d characters from %s", len(text), path)
        return text

    def extract_pdf(self, path: Path) -> str:
        """
        Extract the text layer of a PDF.

        Args:
            path: Location of the PDF.

        Returns:
            Page texts joined by newlines.

        Raises:
            ExtractionError: If the file is not a readable PDF.
        """
        from pypdf import PdfReader
        from pypdf.errors import PdfReadError

        try:
            pdf_bytes = path.read_bytes()
        except OSError as e:
            logger.error("Could not read %s: %s", path, e)
            raise ExtractionError("Could not read uploaded file") from e

        if not pdf_bytes:
            raise ExtractionError("Empty PDF file provided")

        # Validate PDF magic bytes
        if not pdf_bytes[:4] == b"%PDF":
            raise ExtractionError("Invalid PDF file: does not start with PDF header")

        try:
            reader = PdfReader(io.BytesIO(pdf_bytes))
            text = "\n".join(page.extract_text() or "" for page in reader.pages)
        except PdfReadError as e:
            logger.error("PDF syntax error: %s", e)
            raise ExtractionError("Invalid or corrupted PDF file") from e
        except Exception as e:
            logger.exception("Unexpected error during PDF text extraction")
            raise ExtractionError("PDF text extraction failed") from e

        if not text.strip() and self.ocr_pdf_fallback:
            logger.info("PDF has no text layer, falling back to OCR")
            return self.ocr_pdf(pdf_bytes)

        return text

    def extract_image(self, path: Path) -> str:
        """
        Run OCR on an image file.

        The OCR worker is released whether recognition succeeds or not.
        """
        with OCRWorker(language=self.ocr_language, timeout=self.timeout) as worker:
            return worker.recognize(path)

    def ocr_pdf(self, pdf_bytes: bytes) -> str:
        """
        Rasterize every PDF page and OCR it.

        Args:
            pdf_bytes: Raw PDF content.

        Returns:
            Page texts separated by blank lines.
        """
        from pdf2image import convert_from_bytes
        from pdf2image.exceptions import PDFInfoNotInstalledError

        try:
            images = convert_from_bytes(pdf_bytes, dpi=self.dpi)
        except PDFInfoNotInstalledError as e:
            logger.error("Poppler not installed: %s", e)
            raise ExtractionError("PDF rasterizer is not available") from e
        except Exception as e:
            logger.exception("Unexpected error during PDF conversion")
            raise ExtractionError("PDF conversion failed") from e

        try:
            with OCRWorker(language=self.ocr_language, timeout=self.timeout) as worker:
                return "\n\n".join(worker.recognize(image) for image in images)
        finally:
            for image in images:
                image.close()


# Singleton instance for convenience
_extraction_service: ExtractionService | None = None


def get_extraction_service() -> ExtractionService:
    """Get or create the extraction service singleton."""
    global _extraction_service
    if _extraction_service is None:
        from ..config import get_settings

        settings = get_settings()
        _extraction_service = ExtractionService(
            ocr_language=settings.ocr_language,
            timeout=settings.extraction_timeout_seconds,
            ocr_pdf_fallback=settings.ocr_pdf_fallback,
            dpi=settings.ocr_dpi,
        )
    return _extraction_service
