import dataclasses
import sys
import threading
import time
import unittest
from io import BytesIO
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import patch

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app.core.config import settings  # noqa: E402
from app.parsing import extract  # noqa: E402
from app.parsing.errors import ExtractionError, ExtractionErrorKind  # noqa: E402
from app.parsing.extract import extract_document, extract_pdf_text  # noqa: E402
from app.parsing.models import MediaType, RawDocument, resolve_media_type  # noqa: E402

_NO_OCR_FALLBACK = dataclasses.replace(settings, ocr_pdf_fallback=False)


def _blank_pdf() -> bytes:
    from pypdf import PdfWriter

    writer = PdfWriter()
    writer.add_blank_page(width=612, height=792)
    buffer = BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


def _docx(paragraphs: list[str]) -> bytes:
    from docx import Document

    document = Document()
    for paragraph in paragraphs:
        document.add_paragraph(paragraph)
    buffer = BytesIO()
    document.save(buffer)
    return buffer.getvalue()


def _png() -> bytes:
    from PIL import Image

    buffer = BytesIO()
    Image.new("RGB", (40, 20), color="white").save(buffer, format="PNG")
    return buffer.getvalue()


class MediaTypeResolutionTests(unittest.TestCase):
    def test_content_type_wins_over_extension(self):
        self.assertEqual(resolve_media_type("application/pdf", "resume.txt"), MediaType.PDF)
        self.assertEqual(resolve_media_type("image/svg+xml", None), MediaType.IMAGE)
        self.assertEqual(resolve_media_type("text/plain; charset=utf-8", None), MediaType.TEXT)

    def test_extension_fallback(self):
        self.assertEqual(resolve_media_type("application/octet-stream", "Resume.DOCX"), MediaType.DOCX)
        self.assertEqual(resolve_media_type(None, "scan.jpeg"), MediaType.IMAGE)

    def test_unsupported_types(self):
        for content_type, filename in (
            ("application/msword", "resume.doc"),
            (None, "resume.doc"),
            ("application/zip", "resume.zip"),
            (None, None),
        ):
            with self.assertRaises(ExtractionError) as ctx:
                RawDocument.from_upload(filename=filename, content_type=content_type, content=b"x")
            self.assertEqual(ctx.exception.kind, ExtractionErrorKind.UNSUPPORTED_TYPE)
            self.assertEqual(ctx.exception.status_code, 415)


class PlainTextExtractionTests(unittest.TestCase):
    def test_text_is_normalized(self):
        document = RawDocument(content=b"  Senior  PYTHON\nDeveloper!! ", media_type=MediaType.TEXT)
        outcome = extract_document(document)
        self.assertEqual(outcome.text, "senior python developer")
        self.assertEqual(outcome.raw_text, "  Senior  PYTHON\nDeveloper!! ")
        self.assertFalse(outcome.used_ocr)
        self.assertEqual(outcome.ocr_method, "none")
        self.assertEqual(outcome.details["encoding"], "utf-8")

    def test_encoding_fallbacks(self):
        utf16 = RawDocument(content="Data Engineer".encode("utf-16"), media_type=MediaType.TEXT)
        self.assertEqual(extract_document(utf16).details["encoding"], "utf-16")

        latin1 = RawDocument(content=b"caf\xe9 python", media_type=MediaType.TEXT)
        outcome = extract_document(latin1)
        self.assertEqual(outcome.details["encoding"], "latin-1")
        self.assertIn("python", outcome.text)

    def test_even_length_latin1_is_not_read_as_utf16(self):
        content = "café python engineer".encode("latin-1")
        self.assertEqual(len(content) % 2, 0)
        outcome = extract_document(RawDocument(content=content, media_type=MediaType.TEXT))
        self.assertEqual(outcome.details["encoding"], "latin-1")
        self.assertIn("python engineer", outcome.text)

    def test_whitespace_only_is_empty_content(self):
        document = RawDocument(content=b" \n\t \n", media_type=MediaType.TEXT)
        with self.assertRaises(ExtractionError) as ctx:
            extract_document(document)
        self.assertEqual(ctx.exception.kind, ExtractionErrorKind.EMPTY_CONTENT)


class DocxExtractionTests(unittest.TestCase):
    def test_paragraphs_are_extracted(self):
        content = _docx(["Jane Doe", "Experience", "Built Kubernetes platforms"])
        outcome = extract_document(RawDocument(content=content, media_type=MediaType.DOCX))
        self.assertEqual(outcome.text, "jane doe experience built kubernetes platforms")
        self.assertIn("Experience\n", outcome.raw_text)
        self.assertEqual(outcome.details["parser"], "python-docx")

    def test_corrupt_docx_is_decode_failure(self):
        document = RawDocument(content=b"PK\x03\x04 broken archive", media_type=MediaType.DOCX)
        with self.assertRaises(ExtractionError) as ctx:
            extract_document(document)
        self.assertEqual(ctx.exception.kind, ExtractionErrorKind.DECODE_FAILED)

    def test_empty_docx_is_empty_content(self):
        document = RawDocument(content=_docx([]), media_type=MediaType.DOCX)
        with self.assertRaises(ExtractionError) as ctx:
            extract_document(document)
        self.assertEqual(ctx.exception.kind, ExtractionErrorKind.EMPTY_CONTENT)


class PdfExtractionTests(unittest.TestCase):
    def test_slow_pdf_times_out(self):
        def slow_reader(content, stop_event):
            stop_event.wait(2.0)
            return "late text", 1

        with patch("app.parsing.extract._read_pdf_pages", side_effect=slow_reader):
            with self.assertRaises(ExtractionError) as ctx:
                extract_pdf_text(b"%PDF-1.4", timeout=0.05)

        self.assertEqual(ctx.exception.kind, ExtractionErrorKind.TIMEOUT)
        self.assertEqual(ctx.exception.status_code, 504)

    def test_caller_cancellation_stops_worker(self):
        cancel_event = threading.Event()
        cancel_event.set()

        def waiting_reader(content, stop_event):
            if stop_event.wait(2.0):
                raise extract._ExtractionCancelled
            return "finished", 1

        with patch("app.parsing.extract._read_pdf_pages", side_effect=waiting_reader):
            with self.assertRaises(ExtractionError) as ctx:
                extract_pdf_text(b"%PDF-1.4", timeout=5.0, cancel_event=cancel_event)

        self.assertEqual(ctx.exception.kind, ExtractionErrorKind.TIMEOUT)

    def test_unreadable_pdf_is_decode_failure(self):
        with patch("pypdf.PdfReader", side_effect=ValueError("invalid xref table")):
            with self.assertRaises(ExtractionError) as ctx:
                extract_pdf_text(b"%PDF-1.4 garbage", timeout=5.0)
        self.assertEqual(ctx.exception.kind, ExtractionErrorKind.DECODE_FAILED)

    def test_pages_are_joined_with_spaces(self):
        pages = [
            SimpleNamespace(extract_text=lambda: "Python  Developer\n"),
            SimpleNamespace(extract_text=lambda: None),
            SimpleNamespace(extract_text=lambda: "AWS Docker"),
        ]
        fake_reader = SimpleNamespace(pages=pages)

        with patch("pypdf.PdfReader", return_value=fake_reader), patch.object(
            extract, "settings", _NO_OCR_FALLBACK
        ):
            outcome = extract_document(RawDocument(content=b"%PDF-1.4", media_type=MediaType.PDF))

        self.assertEqual(outcome.text, "python developer aws docker")
        self.assertEqual(outcome.details["pages"], 3)
        self.assertEqual(outcome.details["parser"], "pypdf")

    def test_blank_pdf_without_ocr_is_empty_content(self):
        with patch.object(extract, "settings", _NO_OCR_FALLBACK):
            with self.assertRaises(ExtractionError) as ctx:
                extract_document(RawDocument(content=_blank_pdf(), media_type=MediaType.PDF))
        self.assertEqual(ctx.exception.kind, ExtractionErrorKind.EMPTY_CONTENT)

    def test_scanned_pdf_falls_back_to_ocr(self):
        with patch("app.parsing.extract._ocr_pdf_pages", return_value="Machine Learning Engineer with PyTorch"):
            outcome = extract_document(RawDocument(content=_blank_pdf(), media_type=MediaType.PDF))

        self.assertTrue(outcome.used_ocr)
        self.assertEqual(outcome.ocr_method, "tesseract")
        self.assertEqual(outcome.details["parser"], "pdf2image+tesseract")
        self.assertEqual(outcome.text, "machine learning engineer with pytorch")

    def test_slow_ocr_fallback_respects_extraction_deadline(self):
        def slow_ocr(content, deadline, stop_event):
            stop_event.wait(1.5)
            return "Machine Learning Engineer with PyTorch"

        short_limit = dataclasses.replace(settings, pdf_extraction_timeout_seconds=0.2)
        started = time.monotonic()
        with patch.object(extract, "settings", short_limit), patch(
            "app.parsing.extract._ocr_pdf_pages", side_effect=slow_ocr
        ):
            with self.assertRaises(ExtractionError) as ctx:
                extract_document(RawDocument(content=_blank_pdf(), media_type=MediaType.PDF))

        self.assertEqual(ctx.exception.kind, ExtractionErrorKind.TIMEOUT)
        self.assertLess(time.monotonic() - started, 1.0)

    def test_ocr_pages_are_capped_and_share_the_deadline(self):
        pages = ["page-1", "page-2"]
        stop_event = threading.Event()
        deadline = time.monotonic() + 5.0
        with patch("pdf2image.convert_from_bytes", return_value=pages) as convert, patch(
            "app.parsing.extract._ocr_image", side_effect=["Python", "Docker"]
        ) as ocr:
            text = extract._ocr_pdf_pages(b"%PDF-1.4", deadline, stop_event)

        self.assertEqual(text, "Python Docker")
        self.assertEqual(convert.call_args.kwargs["last_page"], settings.ocr_pdf_max_pages)
        self.assertLessEqual(convert.call_args.kwargs["timeout"], 5.0)
        for call in ocr.call_args_list:
            self.assertLessEqual(call.kwargs["timeout"], 5.0)

    def test_ocr_stops_between_pages_once_cancelled(self):
        stop_event = threading.Event()

        def ocr_then_cancel(page, timeout):
            stop_event.set()
            return "Python"

        with patch("pdf2image.convert_from_bytes", return_value=["page-1", "page-2"]), patch(
            "app.parsing.extract._ocr_image", side_effect=ocr_then_cancel
        ) as ocr:
            with self.assertRaises(extract._ExtractionCancelled):
                extract._ocr_pdf_pages(b"%PDF-1.4", time.monotonic() + 5.0, stop_event)
        self.assertEqual(ocr.call_count, 1)

    def test_expired_deadline_skips_rasterising(self):
        with patch("pdf2image.convert_from_bytes") as convert:
            with self.assertRaises(extract._ExtractionCancelled):
                extract._ocr_pdf_pages(b"%PDF-1.4", time.monotonic() - 1.0, threading.Event())
        convert.assert_not_called()

    def test_failed_ocr_fallback_keeps_text_layer(self):
        with patch("app.parsing.extract._ocr_pdf_pages", side_effect=RuntimeError("poppler missing")):
            with self.assertRaises(ExtractionError) as ctx:
                extract_document(RawDocument(content=_blank_pdf(), media_type=MediaType.PDF))
        self.assertEqual(ctx.exception.kind, ExtractionErrorKind.EMPTY_CONTENT)


class ImageExtractionTests(unittest.TestCase):
    def test_image_is_read_with_ocr(self):
        with patch("pytesseract.image_to_string", return_value="Go Developer\nAWS") as ocr:
            outcome = extract_document(RawDocument(content=_png(), media_type=MediaType.IMAGE))

        self.assertEqual(outcome.text, "go developer aws")
        self.assertTrue(outcome.used_ocr)
        self.assertEqual(outcome.details["width"], 40)
        self.assertEqual(ocr.call_args.kwargs["lang"], settings.ocr_language)

    def test_ocr_timeout_maps_to_timeout(self):
        with patch("pytesseract.image_to_string", side_effect=RuntimeError("Tesseract process timeout")):
            with self.assertRaises(ExtractionError) as ctx:
                extract_document(RawDocument(content=_png(), media_type=MediaType.IMAGE))
        self.assertEqual(ctx.exception.kind, ExtractionErrorKind.TIMEOUT)

    def test_unreadable_image_is_decode_failure(self):
        with self.assertRaises(ExtractionError) as ctx:
            extract_document(RawDocument(content=b"not an image", media_type=MediaType.IMAGE))
        self.assertEqual(ctx.exception.kind, ExtractionErrorKind.DECODE_FAILED)


if __name__ == "__main__":
    unittest.main()
