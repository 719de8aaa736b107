from .insights import generate_insights
from .keywords import extract_keyword_set, extract_keywords, extract_phrases
from .matching import keyword_stats, match_keywords
from .pipeline import analyze_document, analyze_text
from .scoring import calculate_ats_score
from .sections import detect_sections

__all__ = [
    "extract_keywords",
    "extract_phrases",
    "extract_keyword_set",
    "match_keywords",
    "keyword_stats",
    "detect_sections",
    "generate_insights",
    "calculate_ats_score",
    "analyze_text",
    "analyze_document",
]
