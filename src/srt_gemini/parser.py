"""SRT file parsing and saving utilities."""

from __future__ import annotations

import re
import logging
from datetime import timedelta
from pathlib import Path
from typing import Iterator, List, Sequence, Optional

from .models import SubtitleEntry, format_timestamp
from .text_utils import normalize_newlines

logger = logging.getLogger(__name__)

# 毫秒分隔符接受逗号或分号
TIMESTAMP_PATTERN = re.compile(r"^(\d{2}):([0-5]\d):([0-5]\d)[,;](\d{3})$")

MAX_FILE_SIZE = 50 * 1024 * 1024  # 50MB

__all__ = [
    "format_timestamp",
    "parse_timestamp",
    "parse_srt",
    "load_srt",
    "save_srt",
    "validate_srt_file",
]


def parse_timestamp(value: str) -> Optional[timedelta]:
    """
    Parse an SRT timestamp.

    Accepts ``HH:MM:SS,fff`` and ``HH:MM:SS;fff``.

    Returns:
        Parsed duration, or None if the value does not match
    """
    match = TIMESTAMP_PATTERN.match(value.strip())
    if not match:
        return None
    h, m, s, ms = (int(part) for part in match.groups())
    return timedelta(hours=h, minutes=m, seconds=s, milliseconds=ms)


def _parse_timecode_line(line: str) -> Optional[tuple[timedelta, timedelta]]:
    parts = [part.strip() for part in line.split("-->")]
    parts = [part for part in parts if part]
    if len(parts) != 2:
        return None

    start = parse_timestamp(parts[0])
    end = parse_timestamp(parts[1])
    if start is None or end is None:
        return None
    return start, end


def _skip_block(lines: Iterator[str]) -> None:
    """Advance past the rest of the current block."""
    for line in lines:
        if not line.strip():
            return


def parse_srt(content: str) -> List[SubtitleEntry]:
    """
    Parse SRT file content into list of SubtitleEntry objects.

    Blocks with an invalid index or timecode line are dropped and parsing
    continues with the next block. Entries are returned in file order.

    Args:
        content: Raw SRT file content as string

    Returns:
        List of parsed SubtitleEntry objects
    """
    if not content or not content.strip():
        return []

    lines = iter(normalize_newlines(content).split("\n"))
    entries: List[SubtitleEntry] = []
    skipped = 0

    while True:
        # 跳过空行，读取序号行
        index_line = next((line for line in lines if line.strip()), None)
        if index_line is None:
            break

        try:
            index = int(index_line.strip())
        except ValueError:
            logger.debug(f"Skipping block with invalid index: {index_line!r}")
            skipped += 1
            _skip_block(lines)
            continue

        time_line = next(lines, None)
        if time_line is None:
            break
        if not time_line.strip():
            logger.debug(f"Skipping block #{index}: missing timecode")
            skipped += 1
            continue

        times = _parse_timecode_line(time_line)
        if times is None:
            logger.debug(f"Skipping block #{index}: invalid timecode {time_line!r}")
            skipped += 1
            _skip_block(lines)
            continue

        text_lines: List[str] = []
        for line in lines:
            if not line.strip():
                break
            text_lines.append(line)

        start, end = times
        entries.append(SubtitleEntry(index, start, end, "\n".join(text_lines)))

    if skipped:
        logger.debug(f"Dropped {skipped} malformed blocks")
    if not entries:
        logger.warning("No valid SRT entries found in content")

    return entries


def load_srt(path: Path) -> List[SubtitleEntry]:
    """
    Read and parse an SRT file.

    Raises:
        OSError: If the file cannot be opened or read
    """
    content = Path(path).read_text(encoding="utf-8-sig")
    return parse_srt(content)


def validate_srt_file(path: Path) -> Optional[str]:
    """
    Validate SRT file before processing.

    Args:
        path: Path to SRT file

    Returns:
        Error message if invalid, None if valid
    """
    if not path.exists():
        return f"File not found: {path}"

    if not path.is_file():
        return f"Not a file: {path}"

    suffix = path.suffix.lower()
    if suffix != '.srt':
        return f"Invalid file extension: {suffix} (expected .srt)"

    # 检查文件大小
    size = path.stat().st_size
    if size == 0:
        return "File is empty"
    if size > MAX_FILE_SIZE:
        return f"File too large: {size / 1024 / 1024:.1f}MB (max 50MB)"

    return None


def save_srt(
    entries: Sequence[SubtitleEntry],
    path: Path,
    use_translated: bool = True,
) -> None:
    """
    Save SubtitleEntry list to SRT file, replacing any previous content.

    Entries are written sorted by index.

    Args:
        entries: Sequence of SubtitleEntry objects to save
        path: Output file path
        use_translated: Write translated text where it is non-blank
    """
    path = Path(path)
    # 确保父目录存在
    path.parent.mkdir(parents=True, exist_ok=True)

    ordered = sorted(entries, key=lambda e: e.index)
    blocks = [e.to_srt(use_translated) for e in ordered]

    with path.open("w", encoding="utf-8") as f:
        if blocks:
            f.write("\n\n".join(blocks))
            f.write("\n")

    logger.debug(f"Saved {len(ordered)} entries to {path}")
