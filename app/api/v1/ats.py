import asyncio
import logging
import threading
from typing import Any, Callable

from fastapi import APIRouter, File, Form, HTTPException, Request, UploadFile, status

from app.core.config import settings
from app.core.rate_limit import rate_limit
from app.parsing.errors import ExtractionError
from app.parsing.models import ExtractionOutcome
from app.schemas.ats import AnalysisResult, AnalyzeTextRequest, FileAnalysisResponse
from app.services.ats_service import extract_text_from_upload, run_file_analysis, run_text_analysis

logger = logging.getLogger(__name__)

router = APIRouter()


def _raise_extraction_http_error(exc: ExtractionError) -> None:
    logger.info("ats_extraction_failed kind=%s message=%s", exc.kind.value, exc)
    raise HTTPException(
        status_code=exc.status_code,
        detail={"error": exc.kind.value, "message": str(exc)},
    ) from exc


async def _read_upload(file: UploadFile) -> bytes:
    chunks: list[bytes] = []
    total = 0
    while True:
        chunk = await file.read(1024 * 64)
        if not chunk:
            break
        total += len(chunk)
        if total > settings.max_upload_bytes:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail=f"File too large. Maximum allowed size is {settings.max_upload_bytes // (1024 * 1024)} MB.",
            )
        chunks.append(chunk)
    if total == 0:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No file uploaded.")
    return b"".join(chunks)


async def _run_cancellable(func: Callable[..., Any], **kwargs: Any) -> Any:
    cancel_event = threading.Event()
    try:
        return await asyncio.to_thread(func, cancel_event=cancel_event, **kwargs)
    except asyncio.CancelledError:
        # Client went away; the extraction worker stops at its next checkpoint.
        cancel_event.set()
        raise


@router.post("/ats/analyze", response_model=AnalysisResult)
@rate_limit()
async def ats_analyze(request: Request, payload: AnalyzeTextRequest):
    _ = request
    return await asyncio.to_thread(run_text_analysis, payload)


@router.post("/ats/analyze-file", response_model=FileAnalysisResponse)
@rate_limit()
async def ats_analyze_file(
    request: Request,
    file: UploadFile = File(...),
    job_description: str = Form(..., min_length=1, max_length=50000),
):
    _ = request
    content = await _read_upload(file)
    try:
        return await _run_cancellable(
            run_file_analysis,
            filename=file.filename,
            content_type=file.content_type,
            content=content,
            job_description=job_description,
        )
    except ExtractionError as exc:
        _raise_extraction_http_error(exc)


@router.post("/ats/extract-text", response_model=ExtractionOutcome)
@rate_limit()
async def ats_extract_text(request: Request, file: UploadFile = File(...)):
    _ = request
    content = await _read_upload(file)
    try:
        return await _run_cancellable(
            extract_text_from_upload,
            filename=file.filename,
            content_type=file.content_type,
            content=content,
        )
    except ExtractionError as exc:
        _raise_extraction_http_error(exc)
