from __future__ import annotations

from typing import Any

from app.core.config import settings


def cors_middleware_options() -> dict[str, Any]:
    options: dict[str, Any] = {
        "allow_origins": list(settings.cors_allowed_origins),
        "allow_credentials": False,
        "allow_methods": ["GET", "POST", "OPTIONS"],
        "allow_headers": ["*"],
    }
    regex = (settings.cors_allow_origin_regex or "").strip()
    if regex:
        options["allow_origin_regex"] = regex
    return options
