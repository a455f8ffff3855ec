"""Tests for the Gemini API client."""

import asyncio
import json

import httpx
import pytest

from srt_gemini import llm_client
from srt_gemini.errors import RemoteCallFailed
from srt_gemini.llm_client import (
    APIErrorType,
    DEFAULT_MODEL,
    GeminiClient,
    build_request_body,
    classify_error,
)


def _client(handler, **kwargs):
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GeminiClient("test-api-key-123", http_client=http, **kwargs)


class TestBuildRequestBody:

    def test_shape(self):
        body = build_request_body("translate this")
        assert body == {
            "contents": [{"parts": [{"text": "translate this"}]}],
            "generationConfig": {"temperature": 0.2, "topP": 0.95, "topK": 40, "candidateCount": 1},
        }


class TestClassifyError:

    @pytest.mark.parametrize("status, expected, retryable", [
        (None, APIErrorType.CONNECTION, True),
        (429, APIErrorType.RATE_LIMIT, True),
        (503, APIErrorType.SERVER, True),
        (401, APIErrorType.AUTH, False),
        (400, APIErrorType.BAD_REQUEST, False),
        (404, APIErrorType.UNKNOWN, False),
    ])
    def test_statuses(self, status, expected, retryable):
        assert classify_error(RemoteCallFailed(status)) == (expected, retryable)

    def test_other_exception(self):
        assert classify_error(ValueError("x")) == (APIErrorType.UNKNOWN, False)


class TestGeminiClient:

    def test_requires_api_key(self):
        with pytest.raises(ValueError):
            GeminiClient("  ")

    def test_blank_model_uses_default(self):
        client = GeminiClient("key", model=" ", http_client=httpx.AsyncClient())
        assert client.model == DEFAULT_MODEL

    def test_request(self):
        seen = {}

        def handler(request):
            seen["request"] = request
            return httpx.Response(200, text='{"candidates": []}')

        async def run():
            async with _client(handler, model="gemini-test") as client:
                return await client.generate_content("hello 안녕")

        body = asyncio.run(run())
        request = seen["request"]

        assert body == '{"candidates": []}'
        assert request.method == "POST"
        assert request.url.path == "/v1beta/models/gemini-test:generateContent"
        assert request.url.params["key"] == "test-api-key-123"
        assert request.headers["content-type"] == "application/json"
        assert json.loads(request.content) == build_request_body("hello 안녕")

    def test_non_success_status(self):
        def handler(request):
            return httpx.Response(403, text='{"error": "denied"}')

        async def run():
            async with _client(handler) as client:
                await client.generate_content("x")

        with pytest.raises(RemoteCallFailed) as exc_info:
            asyncio.run(run())

        assert exc_info.value.status_code == 403
        assert exc_info.value.body == '{"error": "denied"}'

    def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("boom", request=request)

        async def run():
            async with _client(handler) as client:
                await client.generate_content("x")

        with pytest.raises(RemoteCallFailed) as exc_info:
            asyncio.run(run())
        assert exc_info.value.status_code is None

    def test_no_retry_by_default(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(503, text="unavailable")

        async def run():
            async with _client(handler) as client:
                await client.generate_content("x")

        with pytest.raises(RemoteCallFailed):
            asyncio.run(run())
        assert len(calls) == 1

    def test_retries_retryable_status(self, monkeypatch):
        calls = []
        delays = []

        async def fake_sleep(delay):
            delays.append(delay)

        monkeypatch.setattr(llm_client.asyncio, "sleep", fake_sleep)

        def handler(request):
            calls.append(request)
            if len(calls) < 3:
                return httpx.Response(429, text="slow down")
            return httpx.Response(200, text="ok")

        async def run():
            async with _client(handler, max_retries=2) as client:
                return await client.generate_content("x")

        assert asyncio.run(run()) == "ok"
        assert len(calls) == 3
        assert delays == [4, 8]

    def test_does_not_retry_auth_errors(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(401, text="bad key")

        async def run():
            async with _client(handler, max_retries=3) as client:
                await client.generate_content("x")

        with pytest.raises(RemoteCallFailed):
            asyncio.run(run())
        assert len(calls) == 1
