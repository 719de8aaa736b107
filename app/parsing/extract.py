from __future__ import annotations

import codecs
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from io import BytesIO
from typing import Any, Callable
from zipfile import ZipFile

import defusedxml.ElementTree as ET

from app.core.config import settings

from .errors import ExtractionError, ExtractionErrorKind
from .models import ExtractionOutcome, MediaType, RawDocument
from .normalize import collapse_whitespace, normalize_text

logger = logging.getLogger(__name__)

_UTF16_BOMS = (codecs.BOM_UTF16_LE, codecs.BOM_UTF16_BE)


class _ExtractionCancelled(Exception):
    pass


def _read_pdf_pages(content: bytes, stop_event: threading.Event) -> tuple[str, int]:
    from pypdf import PdfReader

    reader = PdfReader(BytesIO(content))
    page_chunks: list[str] = []
    for page in reader.pages:
        # Checked once per page; a single slow page runs to completion.
        if stop_event.is_set():
            raise _ExtractionCancelled
        page_text = collapse_whitespace(page.extract_text() or "")
        if page_text:
            page_chunks.append(page_text)
    return " ".join(page_chunks), len(reader.pages)


def _watch_cancel(cancel_event: threading.Event, stop_event: threading.Event, done: threading.Event) -> None:
    while not done.is_set():
        if cancel_event.wait(0.05):
            stop_event.set()
            return


def _run_with_deadline(
    func: Callable[..., Any],
    *args: Any,
    timeout: float,
    cancel_event: threading.Event | None,
    description: str,
) -> Any:
    """Run func(*args, stop_event) in a worker thread and give up with TIMEOUT after timeout seconds."""
    stop_event = threading.Event()
    done = threading.Event()
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="pdf-extract")
    future = executor.submit(func, *args, stop_event)
    if cancel_event is not None:
        threading.Thread(
            target=_watch_cancel,
            args=(cancel_event, stop_event, done),
            name="pdf-extract-cancel",
            daemon=True,
        ).start()
    try:
        return future.result(timeout=max(timeout, 0.0))
    except FuturesTimeoutError as exc:
        stop_event.set()
        logger.warning("pdf_extraction_timeout stage=%s seconds=%.2f", description, timeout)
        raise ExtractionError(
            ExtractionErrorKind.TIMEOUT,
            f"{description} did not finish within the extraction time limit.",
            cause=exc,
        ) from exc
    except _ExtractionCancelled as exc:
        raise ExtractionError(
            ExtractionErrorKind.TIMEOUT,
            f"{description} was cancelled or ran out of time.",
            cause=exc,
        ) from exc
    finally:
        done.set()
        executor.shutdown(wait=False, cancel_futures=True)


def extract_pdf_text(
    content: bytes,
    *,
    timeout: float | None = None,
    cancel_event: threading.Event | None = None,
) -> tuple[str, int]:
    """Extract PDF text in a worker thread, failing with TIMEOUT instead of blocking."""
    limit = timeout if timeout is not None else settings.pdf_extraction_timeout_seconds
    try:
        return _run_with_deadline(
            _read_pdf_pages,
            content,
            timeout=limit,
            cancel_event=cancel_event,
            description="PDF text extraction",
        )
    except ExtractionError:
        raise
    except Exception as exc:
        raise ExtractionError(
            ExtractionErrorKind.DECODE_FAILED,
            "Unable to extract text from this PDF file.",
            cause=exc,
        ) from exc


def _ocr_image(image: Any, timeout: float | None = None) -> str:
    import pytesseract

    limit = timeout if timeout is not None else settings.ocr_timeout_seconds
    try:
        text = pytesseract.image_to_string(
            image,
            lang=settings.ocr_language,
            timeout=limit,
        )
    except RuntimeError as exc:
        if "timeout" in str(exc).lower():
            raise ExtractionError(
                ExtractionErrorKind.TIMEOUT,
                f"OCR exceeded {limit:g} seconds.",
                cause=exc,
            ) from exc
        raise
    return collapse_whitespace(text)


def _remaining(deadline: float, stop_event: threading.Event) -> float:
    remaining = deadline - time.monotonic()
    if stop_event.is_set() or remaining <= 0:
        raise _ExtractionCancelled
    return remaining


def _ocr_pdf_pages(content: bytes, deadline: float, stop_event: threading.Event) -> str:
    from pdf2image import convert_from_bytes
    from pdf2image.exceptions import PDFPopplerTimeoutError

    try:
        pages = convert_from_bytes(
            content,
            last_page=settings.ocr_pdf_max_pages,
            timeout=_remaining(deadline, stop_event),
        )
    except PDFPopplerTimeoutError as exc:
        raise _ExtractionCancelled from exc

    chunks: list[str] = []
    for page in pages:
        remaining = _remaining(deadline, stop_event)
        chunk = _ocr_image(page, timeout=min(settings.ocr_timeout_seconds, remaining))
        if chunk:
            chunks.append(chunk)
    return " ".join(chunks)


def _extract_pdf(content: bytes, cancel_event: threading.Event | None) -> tuple[str, dict[str, Any], bool]:
    limit = settings.pdf_extraction_timeout_seconds
    deadline = time.monotonic() + limit
    text, page_count = extract_pdf_text(content, timeout=limit, cancel_event=cancel_event)
    details: dict[str, Any] = {"pages": page_count, "parser": "pypdf"}

    if not settings.ocr_pdf_fallback or len(text) >= settings.ocr_pdf_min_chars:
        return text, details, False

    # Scanned PDFs carry little or no text layer. OCR shares the same deadline.
    try:
        ocr_text = _run_with_deadline(
            _ocr_pdf_pages,
            content,
            deadline,
            timeout=deadline - time.monotonic(),
            cancel_event=cancel_event,
            description="PDF OCR",
        )
    except ExtractionError:
        raise
    except Exception as exc:
        logger.warning("pdf_ocr_fallback_failed: %s", exc)
        return text, details, False
    if len(ocr_text) <= len(text):
        return text, details, False
    details["parser"] = "pdf2image+tesseract"
    return ocr_text, details, True


def _extract_docx_text_fallback(content: bytes) -> tuple[str, int]:
    with ZipFile(BytesIO(content)) as archive:
        raw = archive.read("word/document.xml")
    root = ET.fromstring(raw)
    paragraphs: list[str] = []
    paragraph_count = 0
    for paragraph in root.iter():
        if not paragraph.tag.endswith("}p"):
            continue
        paragraph_count += 1
        texts: list[str] = []
        for node in paragraph.iter():
            if node.tag.endswith("}t") and node.text:
                value = node.text.strip()
                if value:
                    texts.append(value)
        if texts:
            paragraphs.append(" ".join(texts))
    return "\n".join(paragraphs), paragraph_count


def _extract_docx(content: bytes) -> tuple[str, dict[str, Any]]:
    details: dict[str, Any] = {}
    try:
        try:
            from docx import Document

            doc = Document(BytesIO(content))
            chunks = [paragraph.text for paragraph in doc.paragraphs if paragraph.text.strip()]
            for table in doc.tables:
                for row in table.rows:
                    for cell in row.cells:
                        if cell.text.strip():
                            chunks.append(cell.text)
            text = "\n".join(chunks)
            details["paragraphs"] = len(doc.paragraphs)
            details["tables"] = len(doc.tables)
            details["parser"] = "python-docx"
        except Exception:
            text, paragraph_count = _extract_docx_text_fallback(content)
            details["paragraphs"] = paragraph_count
            details["parser"] = "zipxml-fallback"
    except Exception as exc:
        raise ExtractionError(
            ExtractionErrorKind.DECODE_FAILED,
            "Unable to extract text from this Word document.",
            cause=exc,
        ) from exc
    return text, details


def _extract_image(content: bytes) -> tuple[str, dict[str, Any]]:
    try:
        from PIL import Image

        image = Image.open(BytesIO(content))
        details: dict[str, Any] = {"width": image.width, "height": image.height, "parser": "tesseract"}
        text = _ocr_image(image)
    except ExtractionError:
        raise
    except Exception as exc:
        raise ExtractionError(
            ExtractionErrorKind.DECODE_FAILED,
            "Unable to read text from this image.",
            cause=exc,
        ) from exc
    return text, details


def _extract_plain_text(content: bytes) -> tuple[str, dict[str, Any]]:
    # UTF-16 only when a BOM is present.
    encodings = ("utf-16", "utf-8") if content.startswith(_UTF16_BOMS) else ("utf-8",)
    for encoding in encodings:
        try:
            return content.decode(encoding), {"encoding": encoding}
        except UnicodeDecodeError:
            continue
    return content.decode("latin-1"), {"encoding": "latin-1"}


def extract_document(
    document: RawDocument,
    *,
    cancel_event: threading.Event | None = None,
) -> ExtractionOutcome:
    used_ocr = False
    media_type = document.media_type

    if media_type == MediaType.PDF:
        text, details, used_ocr = _extract_pdf(document.content, cancel_event)
    elif media_type == MediaType.DOCX:
        text, details = _extract_docx(document.content)
    elif media_type == MediaType.IMAGE:
        text, details = _extract_image(document.content)
        used_ocr = True
    elif media_type == MediaType.TEXT:
        text, details = _extract_plain_text(document.content)
    else:
        raise ExtractionError(
            ExtractionErrorKind.UNSUPPORTED_TYPE,
            f"Unsupported media type '{media_type}'.",
        )

    normalized = normalize_text(text)
    if not normalized:
        raise ExtractionError(
            ExtractionErrorKind.EMPTY_CONTENT,
            "No extractable text was found in this file.",
        )

    details["character_count"] = len(normalized)
    logger.info(
        "document_extracted media_type=%s characters=%s used_ocr=%s",
        media_type.value,
        len(normalized),
        used_ocr,
    )
    return ExtractionOutcome(
        text=normalized,
        media_type=media_type,
        raw_text=text,
        used_ocr=used_ocr,
        ocr_method="tesseract" if used_ocr else "none",
        details=details,
    )
