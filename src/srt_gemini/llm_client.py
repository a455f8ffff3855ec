"""Gemini generateContent API client."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, Optional
from enum import Enum

import httpx

from .errors import RemoteCallFailed
from .text_utils import mask_api_key, truncate_text

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_MODEL = "gemini-2.5-flash"

GENERATION_CONFIG: Dict[str, Any] = {
    "temperature": 0.2,
    "topP": 0.95,
    "topK": 40,
    "candidateCount": 1,
}

BODY_PREVIEW_LENGTH = 1024


class APIErrorType(Enum):
    """API 错误类型分类。"""
    RATE_LIMIT = "rate_limit"      # 429 - 可重试
    CONNECTION = "connection"       # 网络问题 - 可重试
    AUTH = "auth"                   # 401/403 - 不可重试
    BAD_REQUEST = "bad_request"     # 400 - 不可重试
    SERVER = "server"               # 500+ - 可重试
    UNKNOWN = "unknown"


def classify_error(error: Exception) -> tuple[APIErrorType, bool]:
    """
    分类 API 错误并判断是否可重试。

    Returns:
        (错误类型, 是否可重试)
    """
    if not isinstance(error, RemoteCallFailed):
        return APIErrorType.UNKNOWN, False

    status = error.status_code
    if status is None:
        return APIErrorType.CONNECTION, True
    if status == 429:
        return APIErrorType.RATE_LIMIT, True
    if status in (401, 403):
        return APIErrorType.AUTH, False
    if status == 400:
        return APIErrorType.BAD_REQUEST, False
    if status >= 500:
        return APIErrorType.SERVER, True
    return APIErrorType.UNKNOWN, False


def build_request_body(prompt: str) -> Dict[str, Any]:
    """Request payload for a single-prompt generateContent call."""
    return {
        "contents": [{"parts": [{"text": prompt}]}],
        "generationConfig": dict(GENERATION_CONFIG),
    }


class GeminiClient:
    """
    Thin async wrapper around the generateContent REST endpoint.

    The client returns the raw response body; interpreting it is left to
    :func:`srt_gemini.response.extract_translations`.
    """

    def __init__(
        self,
        api_key: str,
        model: Optional[str] = None,
        base_url: str = DEFAULT_ENDPOINT,
        timeout: Optional[float] = None,
        max_retries: int = 0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        if not api_key or not api_key.strip():
            raise ValueError("Gemini API key is required")

        self.api_key = api_key.strip()
        self.model = model.strip() if model and model.strip() else DEFAULT_MODEL
        self.base_url = base_url.rstrip("/")
        self.max_retries = max(0, max_retries)

        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            headers={"Accept": "application/json"},
        )

    @property
    def endpoint_url(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    async def __aenter__(self) -> "GeminiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def _post(self, payload: str) -> str:
        try:
            response = await self._http.post(
                self.endpoint_url,
                params={"key": self.api_key},
                content=payload.encode("utf-8"),
                headers={"Content-Type": "application/json"},
            )
        except httpx.TransportError as e:
            raise RemoteCallFailed(None, reason=f"{type(e).__name__}: {e}") from e

        body = response.text
        logger.debug(
            f"[Gemini] Response {response.status_code} {response.reason_phrase}: "
            f"{truncate_text(body, BODY_PREVIEW_LENGTH)}"
        )

        if not response.is_success:
            raise RemoteCallFailed(response.status_code, body, response.reason_phrase)
        return body

    async def generate_content(self, prompt: str) -> str:
        """
        Send one prompt and return the raw response body.

        Args:
            prompt: Instruction text

        Returns:
            Raw JSON response body

        Raises:
            RemoteCallFailed: On a non-2xx status or transport failure
        """
        payload = json.dumps(build_request_body(prompt), ensure_ascii=False)

        url = f"{self.endpoint_url}?key={self.api_key}"
        logger.debug(
            f"[Gemini] POST {mask_api_key(url, self.api_key)} "
            f"model={self.model} payload_bytes={len(payload.encode('utf-8'))}"
        )

        attempt = 0
        while True:
            try:
                return await self._post(payload)
            except RemoteCallFailed as e:
                error_type, retryable = classify_error(e)
                if not retryable or attempt >= self.max_retries:
                    logger.error(f"Gemini request failed ({error_type.value}): {e.status_code} {e.reason}")
                    raise

                # 计算退避时间
                if error_type == APIErrorType.RATE_LIMIT:
                    delay = min(2 ** (attempt + 2), 60)  # 4, 8, 16... max 60
                else:
                    delay = 2 ** (attempt + 1)  # 2, 4, 8
                attempt += 1

                logger.warning(
                    f"Retryable error ({error_type.value}). "
                    f"Retry {attempt}/{self.max_retries} in {delay}s..."
                )
                await asyncio.sleep(delay)


def create_client(
    api_key: str,
    model: Optional[str] = None,
    base_url: str = DEFAULT_ENDPOINT,
    timeout: Optional[float] = None,
    max_retries: int = 0,
) -> GeminiClient:
    """
    Create a GeminiClient.

    Args:
        api_key: API key for authentication
        model: Model name, defaults to DEFAULT_MODEL
        base_url: API base URL
        timeout: Request timeout in seconds, None for no limit
        max_retries: Extra attempts for rate-limit, server and connection errors

    Returns:
        Configured GeminiClient
    """
    return GeminiClient(
        api_key=api_key,
        model=model,
        base_url=base_url,
        timeout=timeout,
        max_retries=max_retries,
    )
