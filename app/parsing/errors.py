from __future__ import annotations

from enum import Enum


class ExtractionErrorKind(str, Enum):
    UNSUPPORTED_TYPE = "unsupported_type"
    DECODE_FAILED = "decode_failed"
    TIMEOUT = "timeout"
    EMPTY_CONTENT = "empty_content"


_STATUS_CODES = {
    ExtractionErrorKind.UNSUPPORTED_TYPE: 415,
    ExtractionErrorKind.DECODE_FAILED: 422,
    ExtractionErrorKind.TIMEOUT: 504,
    ExtractionErrorKind.EMPTY_CONTENT: 422,
}


class ExtractionError(RuntimeError):
    """Terminal failure while turning an uploaded document into text."""

    def __init__(
        self,
        kind: ExtractionErrorKind,
        message: str,
        *,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.cause = cause

    @property
    def status_code(self) -> int:
        return _STATUS_CODES[self.kind]
