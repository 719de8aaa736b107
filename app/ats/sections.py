from __future__ import annotations

import re

from app.parsing.normalize import collapse_whitespace, normalize_text
from app.schemas.ats import CANONICAL_SECTIONS, SectionMap

_SECTION_HEADINGS: dict[str, tuple[str, ...]] = {
    "contact": ("contact", "contact information", "contact details", "personal information", "personal details"),
    "summary": ("summary", "professional summary", "profile", "objective", "career objective", "about me", "about"),
    "experience": (
        "experience",
        "work experience",
        "professional experience",
        "employment history",
        "work history",
        "career history",
    ),
    "education": ("education", "academic background", "qualifications", "academic qualifications"),
    "skills": ("skills", "technical skills", "core competencies", "competencies", "key skills", "technologies"),
    "projects": ("projects", "personal projects", "key projects", "portfolio"),
    "certifications": ("certifications", "certificates", "licenses", "licenses & certifications", "courses"),
}

_HEADING_LINE_RE = re.compile(r"^\s*[#*\-•]*\s*([A-Za-z &/]+?)\s*:?\s*$")

_EMAIL_RE = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")
_PHONE_RE = re.compile(r"\+?\(?\d[\d \t().-]{7,}\d")
# E.164 numbers carry 10 to 15 digits; year ranges carry 8.
_PHONE_DIGITS = range(10, 16)

# Applied to normalized text.
_SECTION_CUES: dict[str, re.Pattern[str]] = {
    "contact": re.compile(r"\b(?:phone|email|e-mail|linkedin|github\.com|contact)\b"),
    "summary": re.compile(r"\b(?:summary|objective|profile|about me)\b"),
    "experience": re.compile(
        r"\b(?:experience|employment|worked at|work history|internship)\b"
    ),
    "education": re.compile(
        r"\b(?:bachelor|master|ph\.?d|degree|university|college|education|b\.?sc|m\.?sc|diploma)\b"
    ),
    "skills": re.compile(r"\b(?:skills?|proficient|expertise|technologies|tools|frameworks?)\b"),
    "projects": re.compile(r"\b(?:projects?|portfolio|deployed|open source|github)\b"),
    "certifications": re.compile(r"\b(?:certifications?|certified|certificates?|licen[cs]e[sd]?)\b"),
}


def _heading_sections(text: str) -> set[str]:
    found: set[str] = set()
    for line in text.splitlines():
        stripped = collapse_whitespace(line)
        if not stripped or len(stripped) > 40:
            continue
        match = _HEADING_LINE_RE.match(stripped)
        if not match:
            continue
        heading = match.group(1).strip().lower()
        for section, vocabulary in _SECTION_HEADINGS.items():
            if heading in vocabulary:
                found.add(section)
    return found


def _has_phone(text: str) -> bool:
    return any(
        sum(char.isdigit() for char in candidate.group()) in _PHONE_DIGITS
        for candidate in _PHONE_RE.finditer(text)
    )


def detect_sections(text: str) -> SectionMap:
    """Best-effort presence check for each canonical resume section."""
    present = _heading_sections(text or "")
    normalized = normalize_text(text or "")

    for section in CANONICAL_SECTIONS:
        if section in present:
            continue
        if _SECTION_CUES[section].search(normalized):
            present.add(section)

    if "contact" not in present and (_EMAIL_RE.search(text or "") or _has_phone(text or "")):
        present.add("contact")

    return SectionMap(**{section: section in present for section in CANONICAL_SECTIONS})
