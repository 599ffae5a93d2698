"""
OCR worker backed by Tesseract (via pytesseract).

A worker is a scoped resource: it loads the language model on entry,
holds every image it opened, and releases them on exit.
"""

import logging
from pathlib import Path

from PIL import Image

from ..exceptions import ExtractionError

logger = logging.getLogger(__name__)


class OCRWorker:
    """
    Context-managed Tesseract worker.

    Usage:
        with OCRWorker(language="eng") as worker:
            text = worker.recognize(path)
    """

    def __init__(self, language: str = "eng", timeout: float = 0):
        """
        Initialize the worker.

        Args:
            language: Tesseract language model to use.
            timeout: Per-recognition timeout in seconds passed to Tesseract (0 disables).
        """
        self.language = language
        self.timeout = timeout
        self._images: list[Image.Image] = []
        self._ready = False

    def __enter__(self) -> "OCRWorker":
        self.initialize()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.terminate()

    def initialize(self) -> None:
        """Verify the Tesseract binary and language model are available."""
        import pytesseract

        try:
            languages = pytesseract.get_languages(config="")
        except pytesseract.TesseractNotFoundError as e:
            logger.error("Tesseract not installed: %s", e)
            raise ExtractionError("OCR engine is not available") from e

        if self.language not in languages:
            logger.error(
                "Tesseract language %r not installed (available: %s)",
                self.language,
                languages,
            )
            raise ExtractionError(f"OCR language '{self.language}' is not available")

        self._ready = True
        logger.debug("OCR worker initialized (lang=%s)", self.language)

    def recognize(self, source: str | Path | Image.Image) -> str:
        """
        Run text recognition on an image file or an already-open image.

        Args:
            source: Path to an image file or a PIL Image.

        Returns:
            Recognized text.

        Raises:
            ExtractionError: If the image cannot be read or recognition fails.
        """
        import pytesseract

        if not self._ready:
            raise ExtractionError("OCR worker used before initialization")

        if isinstance(source, Image.Image):
            image = source
        else:
            try:
                image = Image.open(source)
            except (OSError, ValueError) as e:
                logger.error("Could not open image %s: %s", source, e)
                raise ExtractionError("Could not read image file") from e
            self._images.append(image)

        try:
            return pytesseract.image_to_string(
                image, lang=self.language, timeout=self.timeout
            )
        except pytesseract.TesseractError as e:
            logger.error("OCR recognition failed: %s", e)
            raise ExtractionError("OCR recognition failed") from e
        except RuntimeError as e:
            # pytesseract signals its own timeout with a bare RuntimeError
            logger.error("OCR recognition timed out: %s", e)
            raise ExtractionError("OCR recognition timed out") from e

    def terminate(self) -> None:
        """Release every image handle held by this worker."""
        for image in self._images:
            image.close()
        released = len(self._images)
        self._images.clear()
        self._ready = False
        logger.debug("OCR worker terminated (%d image(s) released)", released)
