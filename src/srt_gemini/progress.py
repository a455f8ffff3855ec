"""Progress tracking and resume support."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Sequence
from dataclasses import dataclass, field

from .models import SubtitleEntry
from .parser import load_srt

logger = logging.getLogger(__name__)

DEFAULT_EXTENSION = ".srt"
FALLBACK_LANGUAGE_TAG = "translated"


@dataclass
class EntryChange:
    """单条字幕的译文变化。"""
    index: int
    old_text: Optional[str]
    new_text: str


@dataclass
class ProgressEvent:
    """每个批次合并后发出的进度记录。"""

    processed: int
    total: int
    batch_number: int
    batch_count: int
    changes: List[EntryChange] = field(default_factory=list)

    @property
    def percentage(self) -> float:
        """完成率 (0-100)。"""
        if self.total == 0:
            return 100.0
        return self.processed * 100.0 / self.total


@dataclass
class ResumeResult:
    """Outcome of probing an earlier auto-save file."""
    path: Path
    applied: int = 0
    error: Optional[str] = None

    @property
    def found(self) -> bool:
        return self.applied > 0


def needs_translation(entry: SubtitleEntry) -> bool:
    """
    Check whether an entry still has to be sent for translation.

    An untouched copy of the source text counts as untranslated.
    """
    translated = (entry.translated_text or "").strip()
    if not translated:
        return True
    return translated == entry.text.strip()


def pending_entries(entries: Sequence[SubtitleEntry]) -> List[SubtitleEntry]:
    """Entries needing translation, sorted by index."""
    return sorted(
        (e for e in entries if needs_translation(e)),
        key=lambda e: e.index,
    )


def get_autosave_path(source_path: Path, target_lang: str) -> Path:
    """
    获取自动保存文件路径。

    ``movie.srt`` translated to ``ko`` is saved as ``movie.ko.srt`` next to
    the source file.
    """
    source_path = Path(source_path)
    extension = source_path.suffix or DEFAULT_EXTENSION
    tag = (target_lang or "").strip() or FALLBACK_LANGUAGE_TAG
    return source_path.with_name(f"{source_path.stem}.{tag}{extension}")


def apply_existing_translations(
    entries: Sequence[SubtitleEntry],
    source_path: Path,
    target_lang: str,
) -> ResumeResult:
    """
    从上次自动保存的文件中恢复译文。

    Entries whose index appears in the auto-save file take its text when
    that text is non-blank and differs from the source text. Errors are
    logged and reported in the result, never raised.

    Returns:
        ResumeResult with the number of entries updated
    """
    path = get_autosave_path(source_path, target_lang)
    result = ResumeResult(path=path)

    if not path.exists():
        return result

    try:
        existing = {e.index: e.text for e in load_srt(path)}
    except (OSError, ValueError) as e:
        logger.warning(f"Failed to load previous translation {path}: {e}")
        result.error = str(e)
        return result

    for entry in entries:
        stored = existing.get(entry.index)
        if stored is None or not stored.strip():
            continue
        if stored.strip() == entry.text.strip():
            continue
        entry.translated_text = stored
        result.applied += 1

    if result.applied:
        logger.info(f"Resumed {result.applied} translated entries from {path}")

    return result
