"""Data models for SRT subtitle entries."""

from __future__ import annotations
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from .text_utils import normalize_newlines


def format_timestamp(value: timedelta) -> str:
    """Format a duration as an SRT timestamp (``HH:MM:SS,fff``)."""
    total_ms = int(round(value.total_seconds() * 1000))
    if total_ms < 0:
        total_ms = 0
    hours, rest = divmod(total_ms, 3_600_000)
    minutes, rest = divmod(rest, 60_000)
    seconds, ms = divmod(rest, 1000)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d},{ms:03d}"


@dataclass
class SubtitleEntry:
    """Represents a single subtitle cue in SRT format."""

    index: int
    start: timedelta
    end: timedelta
    text: str
    translated_text: Optional[str] = None

    @property
    def timecode(self) -> str:
        """Return the timecode line in SRT format."""
        return f"{format_timestamp(self.start)} --> {format_timestamp(self.end)}"

    @property
    def has_translation(self) -> bool:
        return bool(self.translated_text and self.translated_text.strip())

    def display_text(self, use_translated: bool = True) -> str:
        """
        Text written for this cue.

        Falls back to the source text when no usable translation exists.
        """
        if use_translated and self.has_translation:
            return self.translated_text
        return self.text

    def to_srt(self, use_translated: bool = True) -> str:
        """
        Convert entry to an SRT block (no trailing blank line).

        Blank lines inside the text would end the block early, so they are
        dropped.
        """
        body = self.display_text(use_translated)
        lines = [line for line in normalize_newlines(body).split("\n") if line.strip()]
        return "\n".join([str(self.index), self.timecode, *lines])
