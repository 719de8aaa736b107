from __future__ import annotations

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from .errors import ExtractionError, ExtractionErrorKind


class MediaType(str, Enum):
    PDF = "pdf"
    DOCX = "docx"
    IMAGE = "image"
    TEXT = "text"


CONTENT_TYPE_MEDIA_TYPES = {
    "application/pdf": MediaType.PDF,
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": MediaType.DOCX,
    "image/png": MediaType.IMAGE,
    "image/jpeg": MediaType.IMAGE,
    "image/jpg": MediaType.IMAGE,
    "image/webp": MediaType.IMAGE,
    "image/gif": MediaType.IMAGE,
    "image/bmp": MediaType.IMAGE,
    "image/tiff": MediaType.IMAGE,
    "text/plain": MediaType.TEXT,
    "text/markdown": MediaType.TEXT,
}

EXTENSION_MEDIA_TYPES = {
    "pdf": MediaType.PDF,
    "docx": MediaType.DOCX,
    "png": MediaType.IMAGE,
    "jpg": MediaType.IMAGE,
    "jpeg": MediaType.IMAGE,
    "webp": MediaType.IMAGE,
    "gif": MediaType.IMAGE,
    "bmp": MediaType.IMAGE,
    "tif": MediaType.IMAGE,
    "tiff": MediaType.IMAGE,
    "txt": MediaType.TEXT,
    "md": MediaType.TEXT,
}

_LEGACY_WORD_TYPES = {"application/msword"}


def _extension(filename: str | None) -> str:
    if not filename or "." not in filename:
        return ""
    return filename.rsplit(".", 1)[-1].strip().lower()


def resolve_media_type(content_type: str | None, filename: str | None = None) -> MediaType:
    """Map a declared MIME type (or, failing that, the file extension) to a MediaType."""
    declared = (content_type or "").split(";", 1)[0].strip().lower()
    ext = _extension(filename)

    if declared in _LEGACY_WORD_TYPES or ext == "doc":
        raise ExtractionError(
            ExtractionErrorKind.UNSUPPORTED_TYPE,
            "Legacy .doc is not supported. Convert to .docx.",
        )

    media_type = CONTENT_TYPE_MEDIA_TYPES.get(declared)
    if media_type is None and declared.startswith("image/"):
        media_type = MediaType.IMAGE
    if media_type is None:
        media_type = EXTENSION_MEDIA_TYPES.get(ext)
    if media_type is None:
        label = declared or (f".{ext}" if ext else "unknown")
        raise ExtractionError(
            ExtractionErrorKind.UNSUPPORTED_TYPE,
            f"Unsupported file type '{label}'. Use PDF, DOCX, image, or plain text files.",
        )
    return media_type


class RawDocument(BaseModel):
    model_config = ConfigDict(frozen=True)

    content: bytes
    media_type: MediaType
    filename: str | None = None

    @classmethod
    def from_upload(cls, *, filename: str | None, content_type: str | None, content: bytes) -> "RawDocument":
        return cls(
            content=content,
            media_type=resolve_media_type(content_type, filename),
            filename=filename,
        )


class ExtractionOutcome(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    media_type: MediaType
    raw_text: str = Field(default="", exclude=True, repr=False)
    used_ocr: bool = False
    ocr_method: Literal["tesseract", "none"] = "none"
    details: dict[str, Any] = Field(default_factory=dict)
