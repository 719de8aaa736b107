from __future__ import annotations

import re

from app.parsing.normalize import normalize_text

STOP_WORDS = frozenset({
    # Articles, pronouns, determiners
    "the", "a", "an", "this", "that", "these", "those", "i", "me", "my", "you", "your",
    "he", "she", "it", "its", "we", "our", "us", "they", "them", "their", "his", "her",
    "what", "which", "who", "whom", "whose", "each", "every", "both", "either", "neither",
    "some", "any", "all", "most", "more", "other", "another", "such", "same", "no",
    "one", "two", "three",
    # Conjunctions, prepositions
    "and", "or", "but", "nor", "so", "if", "as", "than", "then", "because", "while",
    "in", "on", "at", "to", "for", "of", "with", "by", "from", "up", "about", "into",
    "through", "during", "over", "under", "within", "across", "via", "per", "etc",
    "where", "when", "why", "how",
    # Auxiliaries and modals
    "is", "are", "was", "were", "be", "been", "being", "am", "have", "has", "had",
    "do", "does", "did", "will", "would", "could", "should", "may", "might", "must",
    "can", "shall", "not", "only", "also", "just", "very",
    # Resume / job-description filler
    "experienced", "skilled", "proficient", "knowledge", "experience", "years", "year",
    "worked", "work", "working", "job", "role", "position", "team", "member", "skills",
    "skill", "looking", "seeking", "expert", "candidate", "ideal", "strong", "ability",
    "required", "requirements", "preferred", "plus", "responsibilities", "including",
    "using", "join", "opportunity", "excellent", "good", "great",
})

# Short technical terms that would otherwise fail the length filter.
SHORT_TECH_TERMS = frozenset({
    # Languages
    "c", "r", "go", "c#", "f#", "js", "ts", "vb",
    # Cloud and devops
    "aws", "gcp", "k8s", "ci", "cd", "vm", "os",
    # Web and networking
    "ui", "ux", "api", "css", "dns", "tcp", "ip", "vpn", "seo", "cms",
    # Data and AI
    "ai", "ml", "bi", "db", "sql", "etl", "nlp", "llm", "cv",
    # Methodology
    "qa", "tdd", "bdd", "sla", "kpi",
    # Roles
    "pm", "hr", "sre", "cto", "ceo", "vp",
})

PHRASE_PATTERNS: list[tuple[re.Pattern[str], str | None]] = [
    (re.compile(r"\breact\s+native\b"), "react native"),
    (re.compile(r"\bnode\s*\.?\s*js\b"), "node.js"),
    (re.compile(r"(?<![a-z0-9])\.net\b"), ".net"),
    (re.compile(r"(?<![a-z0-9+])c\+\+"), "c++"),
    (re.compile(r"(?<![a-z0-9])c#"), "c#"),
    (re.compile(r"\bcloud\s+(?:computing|native|infrastructure|architecture|services|platforms?|security|engineering)\b"), None),
    (re.compile(r"\bmachine\s+learning\b"), "machine learning"),
    (re.compile(r"\bdeep\s+learning\b"), "deep learning"),
    (re.compile(r"\bnatural\s+language(?:\s+processing)?\b"), None),
    (re.compile(r"\bcomputer\s+vision\b"), "computer vision"),
    (re.compile(r"\bdata\s+science\b"), "data science"),
    (re.compile(r"\bdata\s+engineering\b"), "data engineering"),
    (re.compile(r"\bfull[\s-]+stack\b"), "full stack"),
    (re.compile(r"\bfront[\s-]+end\b"), "front end"),
    (re.compile(r"\bback[\s-]+end\b"), "back end"),
    (re.compile(r"\bspring\s+boot\b"), "spring boot"),
    (re.compile(r"\bruby\s+on\s+rails\b"), "ruby on rails"),
    (re.compile(r"\bgoogle\s+cloud\b"), "google cloud"),
    (re.compile(r"\bgithub\s+actions\b"), "github actions"),
    (re.compile(r"\bunit\s+testing\b"), "unit testing"),
    (re.compile(r"\bproject\s+management\b"), "project management"),
    (re.compile(r"\bproduct\s+management\b"), "product management"),
    (re.compile(r"\bproblem\s+solving\b"), "problem solving"),
    (re.compile(r"\bapi\s+(?:design|development|gateway|integrations?|testing|security|management)\b"), None),
]

_ALPHA_RE = re.compile(r"[a-z]")
_ALNUM_RE = re.compile(r"[a-z0-9]")


def _keep_token(token: str) -> bool:
    if not token or token in STOP_WORDS:
        return False
    if len(token) <= 2 and token not in SHORT_TECH_TERMS:
        return False
    if not _ALNUM_RE.search(token):
        return False
    return bool(_ALPHA_RE.search(token))


def _dedupe(items: list[str]) -> list[str]:
    seen: set[str] = set()
    unique: list[str] = []
    for item in items:
        if item in seen:
            continue
        seen.add(item)
        unique.append(item)
    return unique


def extract_keywords(text: str) -> list[str]:
    """Filtered single-token keywords in first-seen order."""
    tokens: list[str] = []
    for raw in normalize_text(text).split():
        token = raw[:-1] if raw.endswith(".") else raw
        if _keep_token(token):
            tokens.append(token)
    return _dedupe(tokens)


def extract_phrases(text: str) -> list[str]:
    normalized = normalize_text(text)
    phrases: list[str] = []
    for pattern, canonical in PHRASE_PATTERNS:
        for match in pattern.finditer(normalized):
            phrases.append(canonical or re.sub(r"\s+", " ", match.group(0)))
    return _dedupe(phrases)


def extract_keyword_set(text: str) -> list[str]:
    return _dedupe(extract_keywords(text) + extract_phrases(text))
