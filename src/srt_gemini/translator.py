"""Core batch translation loop."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence
from dataclasses import dataclass

from .llm_client import GeminiClient
from .models import SubtitleEntry
from .parser import save_srt
from .progress import EntryChange, ProgressEvent, pending_entries
from .prompt import build_translation_prompt
from .response import extract_translations

logger = logging.getLogger(__name__)

# 每次请求的字幕条数
BATCH_SIZE = 8

ProgressCallback = Callable[[ProgressEvent], None]


class RunStatus(Enum):
    COMPLETED = "completed"
    NOTHING_TO_DO = "nothing_to_do"
    CANCELLED = "cancelled"


@dataclass
class RunResult:
    """一次翻译运行的结果。"""
    status: RunStatus
    processed: int = 0
    total: int = 0
    batches_sent: int = 0

    @property
    def sent_any(self) -> bool:
        return self.batches_sent > 0


def make_batches(
    entries: Sequence[SubtitleEntry],
    size: int = BATCH_SIZE,
) -> List[List[SubtitleEntry]]:
    """Split entries into consecutive batches of at most ``size``."""
    return [list(entries[i:i + size]) for i in range(0, len(entries), size)]


async def translate_batch(
    client: GeminiClient,
    batch: Sequence[SubtitleEntry],
    source_lang: str,
    target_lang: str,
    preserve_formatting: bool = True,
) -> Dict[int, str]:
    """
    Translate one batch of subtitle entries.

    Returns:
        Dict mapping entry index to translated text; every batch index is
        present
    """
    prompt = build_translation_prompt(batch, source_lang, target_lang, preserve_formatting)
    raw_body = await client.generate_content(prompt)
    return extract_translations(raw_body, batch)


def _merge_batch(
    batch: Sequence[SubtitleEntry],
    translations: Dict[int, str],
) -> List[EntryChange]:
    changes: List[EntryChange] = []
    for entry in batch:
        if entry.index not in translations:
            continue
        new_text = translations[entry.index].strip()
        if new_text != entry.translated_text:
            changes.append(EntryChange(entry.index, entry.translated_text, new_text))
        entry.translated_text = new_text
    return changes


async def run_translation(
    entries: Sequence[SubtitleEntry],
    client: GeminiClient,
    source_lang: str,
    target_lang: str,
    preserve_formatting: bool = True,
    autosave_path: Optional[Path] = None,
    cancel_event: Optional[asyncio.Event] = None,
    on_progress: Optional[ProgressCallback] = None,
) -> RunResult:
    """
    Translate every entry that still needs it, one batch at a time.

    Entries are updated in place. After each batch the whole entry set is
    written to ``autosave_path`` when one is given, so completed batches
    survive a crash or cancellation.

    Args:
        entries: Entry collection owned by the caller
        client: Configured GeminiClient (carries API key and model)
        source_lang: Source language tag
        target_lang: Target language tag
        preserve_formatting: Ask the model to keep line breaks and markup
        autosave_path: File rewritten after every batch
        cancel_event: Checked before each batch; when set the run stops
        on_progress: Called with a ProgressEvent after every batch

    Returns:
        RunResult describing the outcome

    Raises:
        TranslationError: If a request or its response fails
        OSError: If writing the auto-save file fails
    """
    pending = pending_entries(entries)
    total = len(pending)

    if not pending:
        logger.info("All entries are already translated, nothing to do")
        return RunResult(RunStatus.NOTHING_TO_DO)

    batches = make_batches(pending)
    logger.info(
        f"Translating {total} entries in {len(batches)} batches "
        f"({source_lang} -> {target_lang}, model {client.model})"
    )

    result = RunResult(RunStatus.COMPLETED, total=total)

    for batch_number, batch in enumerate(batches, 1):
        if cancel_event is not None and cancel_event.is_set():
            logger.info(f"Cancelled after {result.processed}/{total} entries")
            result.status = RunStatus.CANCELLED
            return result

        translations = await translate_batch(
            client, batch, source_lang, target_lang, preserve_formatting
        )
        result.batches_sent += 1

        changes = _merge_batch(batch, translations)
        result.processed += len(batch)

        event = ProgressEvent(
            processed=result.processed,
            total=total,
            batch_number=batch_number,
            batch_count=len(batches),
            changes=changes,
        )
        logger.info(
            f"Batch {batch_number}/{len(batches)}: "
            f"{event.processed}/{event.total} ({event.percentage:.1f}%)"
        )
        if on_progress is not None:
            on_progress(event)

        if autosave_path is not None:
            await asyncio.to_thread(save_srt, entries, autosave_path, True)

    return result
