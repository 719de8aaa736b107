from __future__ import annotations

import logging
import threading

from app.parsing.extract import extract_document
from app.parsing.models import ExtractionOutcome, RawDocument
from app.schemas.ats import AnalysisResult

from .insights import generate_insights
from .keywords import extract_keyword_set
from .matching import keyword_stats, match_keywords
from .scoring import calculate_ats_score
from .sections import detect_sections

logger = logging.getLogger(__name__)


def analyze_text(resume_text: str, jd_text: str) -> AnalysisResult:
    resume_keywords = extract_keyword_set(resume_text)
    jd_keywords = extract_keyword_set(jd_text)

    match = match_keywords(resume_keywords, jd_keywords)
    sections = detect_sections(resume_text)
    report = generate_insights(match, sections, resume_text, jd_text)
    score = calculate_ats_score(match, sections)

    logger.info(
        "ats_analysis_complete score=%s match_percentage=%s jd_keywords=%s matched=%s sections=%s",
        score,
        match.match_percentage,
        len(jd_keywords),
        len(match.matched),
        ",".join(sections.present()),
    )
    return AnalysisResult(
        score=score,
        match=match,
        keyword_stats=keyword_stats(match),
        sections=sections,
        insights=report.insights,
        strengths=report.strengths,
        weaknesses=report.weaknesses,
        recommendations=report.recommendations,
    )


def analyze_document(
    document: RawDocument,
    jd_text: str,
    *,
    cancel_event: threading.Event | None = None,
) -> tuple[ExtractionOutcome, AnalysisResult]:
    """Extract the resume text and analyze it; extraction errors propagate unchanged."""
    extraction = extract_document(document, cancel_event=cancel_event)
    resume_text = extraction.raw_text or extraction.text
    return extraction, analyze_text(resume_text, jd_text)
