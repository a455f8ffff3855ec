"""Exceptions raised by a translation run."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from .text_utils import truncate_text

# 错误信息中保留的原始响应长度
RAW_PREVIEW_LENGTH = 1024


class TranslationError(Exception):
    """Base class for errors that abort a translation run."""


class RemoteCallFailed(TranslationError):
    """The endpoint answered with a non-success status, or could not be reached."""

    def __init__(
        self,
        status_code: Optional[int],
        body: str = "",
        reason: str = "",
    ):
        self.status_code = status_code
        self.reason = reason
        self.body = body

        if status_code is None:
            message = f"Gemini API call failed: {reason or 'connection error'}"
        else:
            message = f"Gemini API call failed: {status_code} {reason}".rstrip()
        if body:
            message += "\n" + truncate_text(body, RAW_PREVIEW_LENGTH)
        super().__init__(message)


class ProtocolErrorKind(Enum):
    """响应结构错误类型。"""
    NO_CANDIDATES = "no_candidates"
    MALFORMED_CONTENT = "malformed_content"
    EMPTY_RESPONSE_TEXT = "empty_response_text"
    UNEXPECTED_SHAPE = "unexpected_shape"
    INVALID_JSON = "invalid_json"


class ProtocolError(TranslationError):
    """The response did not match the expected envelope or payload shape."""

    def __init__(self, kind: ProtocolErrorKind, message: str, raw: str = ""):
        self.kind = kind
        self.raw = truncate_text(raw, RAW_PREVIEW_LENGTH)
        super().__init__(f"{message} ({kind.value})")
