from __future__ import annotations

import logging
import threading

from app.ats import analyze_document, analyze_text
from app.parsing.extract import extract_document
from app.parsing.models import ExtractionOutcome, RawDocument
from app.schemas.ats import AnalysisResult, AnalyzeTextRequest, FileAnalysisResponse

logger = logging.getLogger(__name__)


def run_text_analysis(payload: AnalyzeTextRequest) -> AnalysisResult:
    return analyze_text(payload.resume_text, payload.job_description)


def run_file_analysis(
    *,
    filename: str | None,
    content_type: str | None,
    content: bytes,
    job_description: str,
    cancel_event: threading.Event | None = None,
) -> FileAnalysisResponse:
    document = RawDocument.from_upload(filename=filename, content_type=content_type, content=content)
    logger.info(
        "ats_file_analysis_started filename=%s media_type=%s bytes=%s",
        filename,
        document.media_type.value,
        len(content),
    )
    extraction, analysis = analyze_document(document, job_description, cancel_event=cancel_event)
    return FileAnalysisResponse(extraction=extraction, analysis=analysis)


def extract_text_from_upload(
    *,
    filename: str | None,
    content_type: str | None,
    content: bytes,
    cancel_event: threading.Event | None = None,
) -> ExtractionOutcome:
    document = RawDocument.from_upload(filename=filename, content_type=content_type, content=content)
    return extract_document(document, cancel_event=cancel_event)
