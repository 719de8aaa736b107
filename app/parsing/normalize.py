from __future__ import annotations

import re

_DISALLOWED_CHARS_RE = re.compile(r"[^a-z0-9+#.\-&\s]")
_WHITESPACE_RE = re.compile(r"\s+")


def normalize_text(text: str) -> str:
    """Lowercase, keep only ``[a-z0-9+#.-&]`` and single spaces."""
    if not text:
        return ""
    lowered = text.lower()
    restricted = _DISALLOWED_CHARS_RE.sub(" ", lowered)
    return _WHITESPACE_RE.sub(" ", restricted).strip()


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text or "").strip()
