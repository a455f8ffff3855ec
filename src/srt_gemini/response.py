"""Parsing of generateContent responses into per-index translations."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Sequence

from .errors import ProtocolError, ProtocolErrorKind
from .models import SubtitleEntry

logger = logging.getLogger(__name__)

FENCE = "```"


def normalize_json_payload(text: str) -> str:
    """
    Strip a markdown code fence around a JSON payload.

    The first line of a fenced block (``` or ```json) and everything from
    the last fence on are removed. Unfenced text is only trimmed.
    """
    trimmed = text.strip()
    if not trimmed.startswith(FENCE):
        return trimmed

    first_break = trimmed.find("\n")
    if first_break < 0:
        return trimmed

    content_start = first_break + 1
    closing = trimmed.rfind(FENCE)
    if closing <= content_start:
        return trimmed[content_start:].strip()

    return trimmed[content_start:closing].strip()


def _response_text(raw_body: str) -> str:
    """Pull ``candidates[0].content.parts[0].text`` out of the envelope."""
    try:
        envelope = json.loads(raw_body)
    except (json.JSONDecodeError, TypeError) as e:
        raise ProtocolError(
            ProtocolErrorKind.INVALID_JSON,
            f"Gemini response body is not valid JSON: {e}",
            raw_body or "",
        ) from e

    candidates = envelope.get("candidates") if isinstance(envelope, dict) else None
    if not isinstance(candidates, list) or not candidates:
        raise ProtocolError(
            ProtocolErrorKind.NO_CANDIDATES,
            "Gemini response has no candidates",
            raw_body,
        )

    candidate = candidates[0]
    content = candidate.get("content") if isinstance(candidate, dict) else None
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list) or not parts:
        raise ProtocolError(
            ProtocolErrorKind.MALFORMED_CONTENT,
            "Gemini response has no content.parts",
            raw_body,
        )

    part = parts[0]
    text = part.get("text") if isinstance(part, dict) else None
    if not isinstance(text, str) or not text.strip():
        raise ProtocolError(
            ProtocolErrorKind.EMPTY_RESPONSE_TEXT,
            "Gemini response text is empty",
            raw_body,
        )
    return text


def _translation_items(payload: str) -> List[Any]:
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as e:
        raise ProtocolError(
            ProtocolErrorKind.INVALID_JSON,
            f"Model output is not valid JSON: {e}",
            payload,
        ) from e

    if isinstance(data, dict) and isinstance(data.get("translations"), list):
        return data["translations"]
    # 旧格式：顶层直接是数组
    if isinstance(data, list):
        return data

    raise ProtocolError(
        ProtocolErrorKind.UNEXPECTED_SHAPE,
        "Model output does not match the expected JSON shape",
        payload,
    )


def _item_text(item: Dict[str, Any]) -> str:
    # "text" wins whenever the key is present, even as null
    if "text" in item:
        value = item["text"]
    elif "translation" in item:
        value = item["translation"]
    else:
        return ""
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def extract_translations(
    raw_body: str,
    batch: Sequence[SubtitleEntry],
) -> Dict[int, str]:
    """
    Map subtitle index to translated text from a raw response body.

    Every index in ``batch`` is present in the result; indices the model
    left out map to an empty string.

    Args:
        raw_body: Raw HTTP response body from generateContent
        batch: Entries that were sent in the request

    Returns:
        Dict of index -> translated text

    Raises:
        ProtocolError: If the envelope or the model output is malformed
    """
    payload = normalize_json_payload(_response_text(raw_body))
    items = _translation_items(payload)

    translated_map: Dict[int, str] = {}
    for item in items:
        if not isinstance(item, dict):
            logger.debug(f"Ignoring non-object item: {item!r}")
            continue

        index = item.get("index")
        if not isinstance(index, int) or isinstance(index, bool):
            logger.debug(f"Ignoring item without integer index: {item!r}")
            continue

        translated_map[index] = _item_text(item)

    missing = [entry.index for entry in batch if entry.index not in translated_map]
    if missing:
        logger.warning(f"Response is missing {len(missing)} entries: {missing}")
        for index in missing:
            translated_map[index] = ""

    return translated_map
