"""Shared fixtures."""

import json
from datetime import timedelta

import pytest

from srt_gemini.models import SubtitleEntry


@pytest.fixture
def make_entry():
    def _make(index, text, translated=None):
        start = timedelta(seconds=index * 2)
        return SubtitleEntry(index, start, start + timedelta(seconds=1), text, translated)
    return _make


@pytest.fixture
def gemini_body():
    """Wrap model output text in a generateContent response envelope."""
    def _wrap(text):
        if not isinstance(text, str):
            text = json.dumps(text, ensure_ascii=False)
        return json.dumps({"candidates": [{"content": {"parts": [{"text": text}]}}]})
    return _wrap
