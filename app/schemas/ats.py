from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from app.parsing.models import ExtractionOutcome

CANONICAL_SECTIONS = (
    "contact",
    "summary",
    "experience",
    "education",
    "skills",
    "projects",
    "certifications",
)


class MatchResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    matched: list[str] = Field(default_factory=list)
    missing: list[str] = Field(default_factory=list)
    match_percentage: float = Field(default=0.0, ge=0.0, le=100.0)
    score: int = Field(default=0, ge=0, le=100)


class KeywordStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_jd_keywords: int = Field(ge=0)
    matched_count: int = Field(ge=0)
    match_percentage: float = Field(ge=0.0, le=100.0)


class SectionMap(BaseModel):
    model_config = ConfigDict(frozen=True)

    contact: bool = False
    summary: bool = False
    experience: bool = False
    education: bool = False
    skills: bool = False
    projects: bool = False
    certifications: bool = False

    def present(self) -> list[str]:
        return [name for name in CANONICAL_SECTIONS if getattr(self, name)]

    def missing(self) -> list[str]:
        return [name for name in CANONICAL_SECTIONS if not getattr(self, name)]

    @property
    def coverage(self) -> float:
        return len(self.present()) / len(CANONICAL_SECTIONS)


class InsightReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    insights: list[str] = Field(default_factory=list)
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)


class AnalysisResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    score: int = Field(ge=0, le=100)
    match: MatchResult
    keyword_stats: KeywordStats
    sections: SectionMap
    insights: list[str] = Field(default_factory=list)
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)


class AnalyzeTextRequest(BaseModel):
    resume_text: str = Field(min_length=1, max_length=50000)
    job_description: str = Field(min_length=1, max_length=50000)


class FileAnalysisResponse(BaseModel):
    extraction: ExtractionOutcome
    analysis: AnalysisResult
