from __future__ import annotations

from collections.abc import Iterable

from app.core.config.scoring import get_scoring_value
from app.schemas.ats import KeywordStats, MatchResult


def _ordered_unique(keywords: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    ordered: list[str] = []
    for keyword in keywords:
        value = keyword.strip().lower()
        if not value or value in seen:
            continue
        seen.add(value)
        ordered.append(value)
    return ordered


def match_keywords(resume_keywords: Iterable[str], jd_keywords: Iterable[str]) -> MatchResult:
    """Split job-description keywords into matched and missing, in job-description order."""
    resume_set = set(_ordered_unique(resume_keywords))
    jd_ordered = _ordered_unique(jd_keywords)

    matched = [keyword for keyword in jd_ordered if keyword in resume_set]
    missing = [keyword for keyword in jd_ordered if keyword not in resume_set]

    if not jd_ordered:
        return MatchResult(matched=[], missing=[], match_percentage=0.0, score=0)

    precision = int(get_scoring_value("matching.percentage_precision", 2))
    raw_percentage = len(matched) / len(jd_ordered) * 100
    score = raw_percentage
    if matched:
        score += float(get_scoring_value("matching.any_match_bonus", 5))
    score = min(100.0, max(0.0, score))

    return MatchResult(
        matched=matched,
        missing=missing,
        match_percentage=round(raw_percentage, precision),
        score=round(score),
    )


def keyword_stats(match: MatchResult) -> KeywordStats:
    return KeywordStats(
        total_jd_keywords=len(match.matched) + len(match.missing),
        matched_count=len(match.matched),
        match_percentage=match.match_percentage,
    )
