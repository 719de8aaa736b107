from __future__ import annotations

from typing import Any

from app.core.config.scoring import get_scoring_value
from app.schemas.ats import MatchResult, SectionMap

_DEFAULT_COVERAGE_BONUS = [
    {"min_match": 75, "bonus": 10},
    {"min_match": 50, "bonus": 5},
]


def _coverage_bonus(match_percentage: float) -> float:
    tiers: list[dict[str, Any]] = get_scoring_value("scoring.coverage_bonus", _DEFAULT_COVERAGE_BONUS) or []
    reached = [
        float(tier.get("bonus", 0))
        for tier in tiers
        if match_percentage >= float(tier.get("min_match", 0))
    ]
    return max(reached, default=0.0)


def calculate_ats_score(match: MatchResult, sections: SectionMap) -> int:
    """Combine keyword match and section coverage into a 0-100 score.

    score = match.score + coverage * section_weight + tier bonus, capped at 100.
    Every term is non-decreasing in its input, so the total is monotonic in
    both match percentage and section coverage.
    """
    section_weight = float(get_scoring_value("scoring.section_weight", 15))
    score = float(match.score)
    score += sections.coverage * section_weight
    score += _coverage_bonus(match.match_percentage)
    return int(min(100, max(0, round(score))))
