"""Text processing utilities."""

from __future__ import annotations


def normalize_newlines(text: str) -> str:
    """
    Normalize line endings to ``\\n``.

    Args:
        text: Text with any mix of ``\\r\\n``, ``\\r`` and ``\\n``

    Returns:
        Text using ``\\n`` only
    """
    if not text:
        return ""
    return text.replace("\r\n", "\n").replace("\r", "\n")


def truncate_text(text: str, max_length: int, suffix: str = "...") -> str:
    """
    Truncate text to maximum length with suffix.

    The suffix is appended after ``max_length`` characters of the original
    text, so log previews keep the full requested prefix.

    Args:
        text: Text to truncate
        max_length: Number of characters to keep
        suffix: Suffix to append if truncated

    Returns:
        Truncated text
    """
    if not text or len(text) <= max_length:
        return text
    return text[:max_length] + suffix


def mask_api_key(text: str, api_key: str) -> str:
    """Replace every occurrence of ``api_key`` in ``text`` with a masked form."""
    if not api_key or len(api_key) < 6:
        return text
    masked = api_key[:3] + "*" * (len(api_key) - 6) + api_key[-3:]
    return text.replace(api_key, masked)
