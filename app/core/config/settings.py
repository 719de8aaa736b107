from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


def _get_env(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value


def _get_env_bool(name: str, default: bool) -> bool:
    raw = _get_env(name, None)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _get_env_int(name: str, default: int) -> int:
    raw = _get_env(name, None)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _get_env_float(name: str, default: float) -> float:
    raw = _get_env(name, None)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _get_env_list(name: str, default: list[str]) -> tuple[str, ...]:
    raw = _get_env(name, None)
    if raw is None:
        return tuple(default)
    values = [item.strip() for item in raw.split(",")]
    clean = [item for item in values if item]
    return tuple(clean) if clean else tuple(default)


@dataclass(frozen=True)
class Settings:
    log_level: str
    sentry_dsn: str | None
    rate_limit: str
    rate_limit_enabled: bool
    cors_allowed_origins: tuple[str, ...]
    cors_allow_origin_regex: str | None
    trust_x_forwarded_for: bool
    max_upload_bytes: int
    pdf_extraction_timeout_seconds: float
    ocr_language: str
    ocr_timeout_seconds: float
    ocr_pdf_fallback: bool
    ocr_pdf_min_chars: int
    ocr_pdf_max_pages: int
    scoring_config_path: str | None


settings = Settings(
    log_level=_get_env("LOG_LEVEL", "INFO") or "INFO",
    sentry_dsn=_get_env("SENTRY_DSN"),
    rate_limit=_get_env("RATE_LIMIT", "30/minute") or "30/minute",
    rate_limit_enabled=_get_env_bool("RATE_LIMIT_ENABLED", True),
    cors_allowed_origins=_get_env_list(
        "CORS_ALLOWED_ORIGINS",
        [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ],
    ),
    cors_allow_origin_regex=_get_env("CORS_ALLOW_ORIGIN_REGEX"),
    trust_x_forwarded_for=_get_env_bool("TRUST_X_FORWARDED_FOR", False),
    max_upload_bytes=_get_env_int("MAX_UPLOAD_BYTES", 10 * 1024 * 1024),
    pdf_extraction_timeout_seconds=_get_env_float("PDF_EXTRACTION_TIMEOUT_SECONDS", 8.0),
    ocr_language=_get_env("OCR_LANGUAGE", "eng") or "eng",
    ocr_timeout_seconds=_get_env_float("OCR_TIMEOUT_SECONDS", 20.0),
    ocr_pdf_fallback=_get_env_bool("OCR_PDF_FALLBACK", True),
    ocr_pdf_min_chars=_get_env_int("OCR_PDF_MIN_CHARS", 100),
    ocr_pdf_max_pages=_get_env_int("OCR_PDF_MAX_PAGES", 10),
    scoring_config_path=_get_env("SCORING_CONFIG_PATH"),
)

if settings.pdf_extraction_timeout_seconds <= 0:
    raise RuntimeError("PDF_EXTRACTION_TIMEOUT_SECONDS must be greater than zero.")

if settings.ocr_timeout_seconds <= 0:
    raise RuntimeError("OCR_TIMEOUT_SECONDS must be greater than zero.")

if settings.ocr_pdf_max_pages <= 0:
    raise RuntimeError("OCR_PDF_MAX_PAGES must be greater than zero.")

if settings.max_upload_bytes <= 0:
    raise RuntimeError("MAX_UPLOAD_BYTES must be greater than zero.")
