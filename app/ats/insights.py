from __future__ import annotations

import re

from app.core.config.scoring import get_scoring_value
from app.parsing.normalize import normalize_text
from app.schemas.ats import InsightReport, MatchResult, SectionMap

INDUSTRY_TERMS: dict[str, frozenset[str]] = {
    "technical": frozenset({
        "javascript", "typescript", "python", "java", "c++", "c#", "php", "ruby", "golang", "go",
        "rust", "swift", "kotlin", "scala", "r", "matlab", "perl", "dart", "elixir", "haskell",
        "react", "angular", "vue", "svelte", "next.js", "tailwind", "graphql", "rest", "grpc",
        "node.js", "express", "django", "flask", "fastapi", "spring boot", "laravel", "rails",
        "microservices", "serverless", "aws", "azure", "gcp", "google cloud", "terraform",
        "ansible", "docker", "kubernetes", "k8s", "helm", "jenkins", "github actions", "sql",
        "postgresql", "mysql", "mongodb", "redis", "elasticsearch", "cassandra", "dynamodb",
        "snowflake", "bigquery", "machine learning", "deep learning", "ai", "nlp", "llm",
        "pytorch", "tensorflow", "scikit-learn", "pandas", "numpy", "airflow", "dbt", "etl",
        "jest", "cypress", "playwright", "selenium", "tdd", "bdd", "unit testing", "oauth2",
        "jwt", "iam", "encryption", "cybersecurity",
    }),
    "business": frozenset({
        "project management", "product management", "agile", "scrum", "kanban", "pmp",
        "okrs", "kpis", "budgeting", "forecasting", "salesforce", "crm", "saas", "b2b", "b2c",
        "seo", "sem", "consulting", "roadmap",
    }),
    "soft_skills": frozenset({
        "collaboration", "communication", "problem solving", "leadership", "mentorship",
        "adaptability", "negotiation", "empathy", "ownership", "accountability",
        "presentation", "curiosity",
    }),
}

ACTION_VERBS = frozenset({
    "orchestrated", "spearheaded", "pioneered", "engineered", "architected", "transformed",
    "optimized", "scaled", "accelerated", "surpassed", "automated", "centralized",
    "revitalized", "modernized", "leveraged", "facilitated", "maximized", "mitigated",
    "streamlined", "yielded", "navigated", "integrated", "conceptualized", "delivered",
    "executed", "resolved", "mentored", "innovated", "achieved", "attained", "cultivated",
    "influenced", "negotiated", "captured", "outpaced", "expanded", "fortified",
    "standardized", "led", "built", "launched", "reduced", "improved",
})

# Missing sections that produce a weakness plus a recommendation.
_SECTION_GUIDANCE: dict[str, tuple[str, str]] = {
    "contact": (
        "Missing or unclear contact information",
        "Add clear contact information at the top of your resume",
    ),
    "summary": (
        "No professional summary",
        "Open with a short summary tailored to the target role",
    ),
    "experience": (
        "No work experience details found",
        "Add detailed work experience with accomplishments",
    ),
    "education": (
        "No education section found",
        "List your degrees, schools, and graduation years",
    ),
    "skills": (
        "No dedicated skills section",
        "Include a clear skills section with relevant technologies",
    ),
}

# Missing sections that only produce a recommendation.
_SECTION_SUGGESTIONS: dict[str, str] = {
    "projects": "Showcase relevant projects to demonstrate hands-on work",
    "certifications": "Add certifications that support the role requirements",
}

_WORD_RE = re.compile(r"[a-z]+")


def _threshold(key: str, default: float) -> float:
    return float(get_scoring_value(f"insights.{key}", default))


def _count(key: str, default: int) -> int:
    return int(get_scoring_value(f"insights.{key}", default))


def industry_terms(keywords: list[str]) -> list[str]:
    """Keywords that appear in any of the industry lexicons, in input order."""
    return [
        keyword
        for keyword in keywords
        if any(keyword in terms for terms in INDUSTRY_TERMS.values())
    ]


def action_verbs(text: str) -> list[str]:
    found: list[str] = []
    for word in _WORD_RE.findall(normalize_text(text)):
        if word in ACTION_VERBS and word not in found:
            found.append(word)
    return found


def generate_insights(
    match: MatchResult,
    sections: SectionMap,
    resume_text: str,
    jd_text: str,
) -> InsightReport:
    insights: list[str] = []
    strengths: list[str] = []
    weaknesses: list[str] = []
    recommendations: list[str] = []

    percentage = match.match_percentage
    if percentage >= _threshold("strong_match", 80):
        insights.append("Excellent keyword alignment with the job description")
        strengths.append("Strong match in required keywords and technologies")
    elif percentage >= _threshold("fair_match", 60):
        insights.append("Good keyword alignment, but some gaps exist")
        if match.missing:
            top = ", ".join(match.missing[: _count("top_missing_short", 3)])
            recommendations.append(f"Add {top} to strengthen your resume")
    else:
        insights.append("Limited keyword alignment with job requirements")
        if jd_text.strip():
            weaknesses.append("Many required keywords are missing from your resume")

    matched_industry = industry_terms(match.matched)
    if matched_industry:
        listed = ", ".join(matched_industry[: _count("max_industry_terms", 8)])
        strengths.append(f"Covers in-demand industry terms: {listed}")

    for section in sections.missing():
        guidance = _SECTION_GUIDANCE.get(section)
        if guidance is not None:
            weaknesses.append(guidance[0])
            recommendations.append(guidance[1])
        elif section in _SECTION_SUGGESTIONS:
            recommendations.append(_SECTION_SUGGESTIONS[section])

    length = len(resume_text.strip())
    if length < _threshold("short_resume_chars", 200):
        weaknesses.append("Resume appears too short")
        recommendations.append("Expand your resume with more details and accomplishments")
    elif length > _threshold("detailed_resume_chars", 3000):
        insights.append("Resume has good detail level")

    verbs = action_verbs(resume_text)
    if len(verbs) >= _count("action_verb_min", 3):
        strengths.append(f"Uses result-oriented action verbs ({', '.join(verbs[:5])})")
    elif not verbs:
        recommendations.append("Start accomplishment bullets with strong action verbs such as led, built, or optimized")

    if match.missing:
        top = ", ".join(match.missing[: _count("top_missing_long", 5)])
        recommendations.append(f"Consider adding these keywords: {top}")
    if percentage < _threshold("tailoring_threshold", 70) and jd_text.strip():
        recommendations.append("Consider tailoring your resume more closely to the job description")

    return InsightReport(
        insights=insights,
        strengths=strengths or ["Resume has relevant content"],
        weaknesses=weaknesses,
        recommendations=recommendations,
    )
