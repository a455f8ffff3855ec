"""Tests for text utilities."""

import pytest
from srt_gemini.text_utils import mask_api_key, normalize_newlines, truncate_text


class TestNormalizeNewlines:

    def test_mixed(self):
        assert normalize_newlines("a\r\nb\rc\nd") == "a\nb\nc\nd"

    def test_empty_input(self):
        assert normalize_newlines("") == ""
        assert normalize_newlines(None) == ""


class TestTruncateText:

    def test_short_unchanged(self):
        assert truncate_text("hello", 10) == "hello"

    def test_truncated(self):
        assert truncate_text("abcdefghij", 4) == "abcd..."


class TestMaskApiKey:

    def test_masks_middle(self):
        url = "https://example.test/x?key=AIzaSECRET123"
        masked = mask_api_key(url, "AIzaSECRET123")
        assert "AIzaSECRET123" not in masked
        assert masked.endswith("key=AIz*******123")

    def test_short_key_untouched(self):
        assert mask_api_key("key=abc", "abc") == "key=abc"
