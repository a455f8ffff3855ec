"""
SRT Gemini - Batch subtitle translator for the Gemini API.

Features:
- Tolerant SRT parsing (malformed blocks are skipped)
- JSON-structured batch translation via generateContent
- Auto-save after every batch
- Resume from an earlier auto-save file
"""

__version__ = "1.0.0"

from .models import SubtitleEntry
from .parser import parse_srt, load_srt, save_srt, validate_srt_file
from .prompt import build_translation_prompt
from .response import extract_translations, normalize_json_payload
from .llm_client import GeminiClient, create_client
from .translator import BATCH_SIZE, RunResult, RunStatus, run_translation, translate_batch
from .progress import (
    ProgressEvent,
    ResumeResult,
    apply_existing_translations,
    get_autosave_path,
    needs_translation,
)
from .errors import ProtocolError, ProtocolErrorKind, RemoteCallFailed, TranslationError
from .config import TranslatorConfig

__all__ = [
    # Models
    "SubtitleEntry",
    "ProgressEvent",
    "ResumeResult",
    "RunResult",
    "RunStatus",
    "TranslatorConfig",
    # Parsing
    "parse_srt",
    "load_srt",
    "save_srt",
    "validate_srt_file",
    # Protocol
    "build_translation_prompt",
    "extract_translations",
    "normalize_json_payload",
    "GeminiClient",
    "create_client",
    # Translation
    "BATCH_SIZE",
    "run_translation",
    "translate_batch",
    # Resume
    "needs_translation",
    "get_autosave_path",
    "apply_existing_translations",
    # Errors
    "TranslationError",
    "RemoteCallFailed",
    "ProtocolError",
    "ProtocolErrorKind",
]
