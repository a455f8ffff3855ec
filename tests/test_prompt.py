"""Tests for prompt construction."""

import json

import pytest

from srt_gemini.prompt import build_translation_prompt


def _embedded_items(prompt):
    lines = prompt.splitlines()
    marker = lines.index("Input subtitles as JSON array:")
    return json.loads(lines[marker + 1])


class TestBuildTranslationPrompt:

    def test_language_pair(self, make_entry):
        prompt = build_translation_prompt([make_entry(1, "Hello.")], "en", "ko")
        assert "from 'en' to 'ko'" in prompt

    def test_free_form_language_tags(self, make_entry):
        prompt = build_translation_prompt([make_entry(1, "Hi")], "auto", "Brazilian Portuguese")
        assert "'Brazilian Portuguese'" in prompt

    def test_json_contract(self, make_entry):
        prompt = build_translation_prompt([make_entry(1, "Hello.")], "en", "ko")
        assert "'translations' array" in prompt
        assert "integer field 'index'" in prompt
        assert '"translations"' in prompt  # output example

    def test_embeds_batch(self, make_entry):
        batch = [make_entry(3, "Line one\r\nLine two"), make_entry(7, "안녕")]
        items = _embedded_items(build_translation_prompt(batch, "en", "ko"))
        assert items == [
            {"index": 3, "text": "Line one\nLine two"},
            {"index": 7, "text": "안녕"},
        ]

    def test_preserve_formatting_toggle(self, make_entry):
        batch = [make_entry(1, "<i>Hi</i>")]
        with_fmt = build_translation_prompt(batch, "en", "ko", preserve_formatting=True)
        without_fmt = build_translation_prompt(batch, "en", "ko", preserve_formatting=False)
        assert "Preserve line breaks" in with_fmt
        assert "Preserve line breaks" not in without_fmt

    def test_deterministic(self, make_entry):
        batch = [make_entry(1, "a"), make_entry(2, "b")]
        assert build_translation_prompt(batch, "en", "ko") == build_translation_prompt(batch, "en", "ko")

    def test_empty_batch(self):
        with pytest.raises(ValueError):
            build_translation_prompt([], "en", "ko")
