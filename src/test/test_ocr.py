"""
Tests for the PDF OCR engine.

Most tests replace pytesseract.image_to_string so they run without the
Tesseract binary; the end-to-end test is skipped when it is not installed.
"""

import shutil
import pytest
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

import fitz
import pytesseract

from doc_reader_mcp.errors import ExtractionError, PasswordRequiredError, UnitOutOfRangeError
from doc_reader_mcp.ocr import PdfOcrEngine

from conftest import PDF_PASSWORD


@pytest.fixture
def fake_tesseract(monkeypatch):
    """Record the images handed to Tesseract and answer with canned text."""
    calls = []

    def image_to_string(image, lang="eng", **kwargs):
        calls.append({"size": image.size, "mode": image.mode, "lang": lang})
        return f"  recognized page {len(calls)}  \n"

    monkeypatch.setattr(pytesseract, "image_to_string", image_to_string)
    return calls


class TestPdfOcrEngine:
    """Tests for PdfOcrEngine with a stubbed recognizer."""

    def test_page_count(self, sample_pdf):
        with PdfOcrEngine(str(sample_pdf)) as engine:
            assert engine.page_count == 3

    def test_recognize_page(self, sample_pdf, fake_tesseract):
        with PdfOcrEngine(str(sample_pdf), language="deu") as engine:
            text = engine.recognize_page(1)

        assert text == "recognized page 1"
        assert fake_tesseract[0]["lang"] == "deu"
        assert fake_tesseract[0]["mode"] == "RGB"

    def test_scale_controls_resolution(self, sample_pdf, fake_tesseract):
        with PdfOcrEngine(str(sample_pdf), scale=1.0) as engine:
            engine.recognize_page(1)
        with PdfOcrEngine(str(sample_pdf), scale=2.0) as engine:
            engine.recognize_page(1)

        small, large = fake_tesseract[0]["size"], fake_tesseract[1]["size"]
        assert large[0] == pytest.approx(small[0] * 2, abs=2)
        assert large[1] == pytest.approx(small[1] * 2, abs=2)

    def test_blank_result_is_empty_string(self, sample_pdf, monkeypatch):
        monkeypatch.setattr(pytesseract, "image_to_string", lambda image, lang="eng": " \n\x0c")
        with PdfOcrEngine(str(sample_pdf)) as engine:
            assert engine.recognize_page(2) == ""

    @pytest.mark.parametrize("page", [0, 4])
    def test_out_of_range(self, sample_pdf, fake_tesseract, page):
        with PdfOcrEngine(str(sample_pdf)) as engine:
            with pytest.raises(UnitOutOfRangeError):
                engine.recognize_page(page)
        assert fake_tesseract == []

    def test_recognize_all_respects_limit(self, sample_pdf, fake_tesseract):
        with PdfOcrEngine(str(sample_pdf)) as engine:
            texts, total = engine.recognize_all(max_pages=2)

        assert total == 3
        assert texts == ["recognized page 1", "recognized page 2"]

    def test_recognize_all_under_limit(self, sample_pdf, fake_tesseract):
        with PdfOcrEngine(str(sample_pdf)) as engine:
            texts, total = engine.recognize_all(max_pages=20)
        assert len(texts) == total == 3

    def test_document_closed_on_exit(self, sample_pdf):
        engine = PdfOcrEngine(str(sample_pdf))
        with engine:
            pass
        with pytest.raises(RuntimeError):
            engine.page_count

    def test_missing_tesseract(self, sample_pdf, monkeypatch):
        def image_to_string(image, lang="eng"):
            raise pytesseract.TesseractNotFoundError()

        monkeypatch.setattr(pytesseract, "image_to_string", image_to_string)
        with PdfOcrEngine(str(sample_pdf)) as engine:
            with pytest.raises(ExtractionError) as exc_info:
                engine.recognize_page(1)
        assert "Tesseract" in str(exc_info.value)

    def test_encrypted_requires_password(self, encrypted_pdf):
        with pytest.raises(PasswordRequiredError):
            with PdfOcrEngine(str(encrypted_pdf)):
                pass

    def test_encrypted_with_password(self, encrypted_pdf):
        with PdfOcrEngine(str(encrypted_pdf), password=PDF_PASSWORD) as engine:
            assert engine.page_count == 1


@pytest.mark.skipif(shutil.which("tesseract") is None, reason="tesseract binary not installed")
class TestTesseractEndToEnd:
    """Runs the real OCR engine."""

    def test_text_page_and_blank_page(self, tmp_path):
        path = tmp_path / "scan.pdf"
        doc = fitz.open()
        # Large glyphs so the recognizer has an easy job
        doc.new_page().insert_text((72, 240), "INVOICE 2024", fontsize=36)
        doc.new_page()
        doc.save(str(path))
        doc.close()

        with PdfOcrEngine(str(path)) as engine:
            first = engine.recognize_page(1)
            second = engine.recognize_page(2)

        assert "INVOICE" in first.upper()
        assert second == ""
