"""Translation prompt construction."""

from __future__ import annotations

import json
from typing import List, Sequence

from .models import SubtitleEntry
from .text_utils import normalize_newlines

OUTPUT_EXAMPLE = """{
  "translations": [
    { "index": 1, "text": "<translated text>" }
  ]
}"""


def build_translation_prompt(
    batch: Sequence[SubtitleEntry],
    source_lang: str,
    target_lang: str,
    preserve_formatting: bool = True,
) -> str:
    """
    Build the instruction sent to the model for one batch.

    Language tags are passed through verbatim.

    Args:
        batch: Non-empty batch of entries to translate
        source_lang: Source language tag (e.g. "auto", "en")
        target_lang: Target language tag (e.g. "ko")
        preserve_formatting: Ask the model to keep line breaks and markup

    Returns:
        Prompt text
    """
    if not batch:
        raise ValueError("Cannot build a prompt for an empty batch")

    items = [
        {"index": entry.index, "text": normalize_newlines(entry.text)}
        for entry in batch
    ]

    lines: List[str] = [
        "You are a subtitle translation assistant.",
        f"Translate the following SRT subtitle segments from '{source_lang}' "
        f"to '{target_lang}' with natural phrasing.",
        "Return only valid JSON containing an object with a 'translations' array.",
        "Each array item must include integer field 'index' and string field 'text'.",
        "Do not include explanations, comments, or trailing text outside the JSON object.",
    ]
    if preserve_formatting:
        lines.append(
            "Preserve line breaks and inline formatting markers "
            "(HTML tags, brackets, punctuation) inside the translated text."
        )

    lines += [
        "",
        "Input subtitles as JSON array:",
        json.dumps(items, ensure_ascii=False, separators=(",", ":")),
        "",
        "Respond with:",
        OUTPUT_EXAMPLE,
    ]
    return "\n".join(lines) + "\n"
