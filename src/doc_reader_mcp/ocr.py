"""
OCR for scanned PDFs.

Pages are rasterized with PyMuPDF and passed to Tesseract through pytesseract.
The engine owns the open PDF and must be closed; use it as a context manager:

    with PdfOcrEngine("/docs/scan.pdf") as engine:
        text = engine.recognize_page(1)
"""

import logging
from typing import List, Optional, Tuple

import fitz  # PyMuPDF
import pytesseract
from PIL import Image

from .errors import ExtractionError, PasswordRequiredError, UnitOutOfRangeError

logger = logging.getLogger(__name__)


class PdfOcrEngine:
    """Rasterize PDF pages and recognize their text."""

    def __init__(
        self,
        file_path: str,
        language: str = "eng",
        scale: float = 2.0,
        password: Optional[str] = None,
    ):
        self.file_path = file_path
        self.language = language
        self.scale = scale
        self.password = password
        self._doc = None

    def open(self) -> "PdfOcrEngine":
        doc = fitz.open(self.file_path)
        if doc.needs_pass:
            if not self.password or not doc.authenticate(self.password):
                doc.close()
                raise PasswordRequiredError(self.file_path, password_given=bool(self.password))
        self._doc = doc
        logger.info(f"Opened PDF for OCR: {self.file_path} ({len(doc)} pages)")
        return self

    def close(self):
        if self._doc is not None:
            self._doc.close()
            self._doc = None

    def __enter__(self) -> "PdfOcrEngine":
        return self.open()

    def __exit__(self, exc_type, exc, tb):
        self.close()

    @property
    def page_count(self) -> int:
        if self._doc is None:
            raise RuntimeError("PdfOcrEngine is not open")
        return len(self._doc)

    def render_page(self, page_number: int) -> Image.Image:
        """Rasterize a 1-indexed page to an RGB image at the configured scale."""
        page = self._doc[page_number - 1]
        pix = page.get_pixmap(matrix=fitz.Matrix(self.scale, self.scale), alpha=False)
        return Image.frombytes("RGB", (pix.width, pix.height), pix.samples)

    def recognize_page(self, page_number: int) -> str:
        """
        Recognize the text of one page.

        Args:
            page_number: 1-indexed page number

        Returns:
            Stripped recognized text, "" when nothing was detected

        Raises:
            UnitOutOfRangeError: If page_number is outside 1..page_count
            ExtractionError: If the Tesseract binary is not available
        """
        total = self.page_count
        if page_number < 1 or page_number > total:
            raise UnitOutOfRangeError(page_number, total, "Page")

        image = self.render_page(page_number)
        try:
            text = pytesseract.image_to_string(image, lang=self.language)
        except pytesseract.TesseractNotFoundError as e:
            logger.error("Tesseract executable not found or not in PATH.")
            raise ExtractionError(
                "ocr_pdf", e, "Tesseract OCR engine not found. Install tesseract and ensure it is on PATH."
            ) from e
        finally:
            image.close()

        text = (text or "").strip()
        logger.debug(f"OCR page {page_number}: {len(text)} characters")
        return text

    def recognize_all(self, max_pages: int = 20) -> Tuple[List[str], int]:
        """
        Recognize pages 1..min(page_count, max_pages).

        Returns:
            (texts, total_pages) where texts holds one entry per processed page
        """
        total = self.page_count
        limit = min(total, max_pages)
        if total > limit:
            logger.warning(f"OCR limited to first {limit} of {total} pages: {self.file_path}")
        return [self.recognize_page(number) for number in range(1, limit + 1)], total
