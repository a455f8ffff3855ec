"""Command-line interface for the Gemini SRT translator."""

from __future__ import annotations

import asyncio
import argparse
import logging
import signal
import sys
from pathlib import Path
from typing import List, Optional

from tqdm import tqdm

from .config import TranslatorConfig
from .errors import TranslationError
from .llm_client import create_client
from .parser import load_srt, save_srt, validate_srt_file
from .progress import (
    ProgressEvent,
    apply_existing_translations,
    get_autosave_path,
    pending_entries,
)
from .settings import AppSettings, load_settings, save_settings
from .translator import RunStatus, run_translation

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CANCELLED = 130


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S"
    )
    # 不输出每个 HTTP 请求（URL 中含有 API key）
    logging.getLogger("httpx").setLevel(logging.WARNING)


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Translate SRT subtitles with the Gemini API",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s video.srt                        # Translate to Korean (video.ko.srt)
  %(prog)s video.srt -s en -t ja            # English to Japanese
  %(prog)s video.srt out.srt                # Also write the result to out.srt
  %(prog)s video.srt --no-resume            # Ignore an earlier video.ko.srt
  %(prog)s video.srt --api-key KEY --remember
        """
    )

    # Positional arguments
    parser.add_argument("input_path", help="Input SRT file path")
    parser.add_argument("output_path", nargs='?', default=None, help="Output SRT file path")

    # Languages
    parser.add_argument("-s", "--source", dest="source_lang", default="auto", help="Source language (default: auto)")
    parser.add_argument("-t", "--target", dest="target_lang", default="ko", help="Target language (default: ko)")
    parser.add_argument("--no-preserve-formatting", action="store_true",
                        help="Do not ask the model to keep line breaks and markup")

    # API options
    parser.add_argument("--api-key", help="Gemini API key (or set GEMINI_API_KEY)")
    parser.add_argument("--model", dest="model_name", default=None, help="Model name (default: gemini-2.5-flash)")
    parser.add_argument("--base-url", default="https://generativelanguage.googleapis.com/v1beta")
    parser.add_argument("--timeout", type=float, default=None, help="Request timeout in seconds (default: none)")
    parser.add_argument("--retries", type=int, default=0,
                        help="Retries for rate-limit, server and connection errors (default: 0)")
    parser.add_argument("--remember", action="store_true", help="Save API key and model to the settings file")

    # Progress
    parser.add_argument("--no-autosave", action="store_true", help="Do not write the auto-save file after each batch")
    parser.add_argument("--no-resume", action="store_true", help="Do not reuse an earlier auto-save file")

    # Misc
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")

    return parser.parse_args(argv)


def remember_settings(config: TranslatorConfig, settings: AppSettings) -> None:
    """Persist API key and model, logging instead of failing."""
    logger = logging.getLogger(__name__)
    settings.gemini_api_key = config.api_key
    settings.preferred_model = config.model_name
    try:
        save_settings(settings)
    except OSError as e:
        logger.warning(f"Failed to save settings: {e}")


def _make_cancel_callback(cancel_event: asyncio.Event, task: Optional[asyncio.Task]):
    """First Ctrl+C stops after the current batch; the second aborts ``task``."""
    logger = logging.getLogger(__name__)

    def request_cancel() -> None:
        if not cancel_event.is_set():
            logger.warning("Cancelling after the current batch... (Ctrl+C again to abort)")
            cancel_event.set()
            return
        logger.warning("Aborting the current batch...")
        if task is not None:
            task.cancel()

    return request_cancel


def _install_cancel_handler(cancel_event: asyncio.Event) -> bool:
    """Route Ctrl+C to ``cancel_event``. Returns False where unsupported."""
    callback = _make_cancel_callback(cancel_event, asyncio.current_task())
    try:
        asyncio.get_running_loop().add_signal_handler(signal.SIGINT, callback)
    except (NotImplementedError, RuntimeError):
        return False
    return True


def _remove_cancel_handler() -> None:
    try:
        asyncio.get_running_loop().remove_signal_handler(signal.SIGINT)
    except (NotImplementedError, RuntimeError):
        pass


async def main_async(args: argparse.Namespace) -> int:
    """Main async workflow."""
    logger = logging.getLogger(__name__)
    settings = load_settings()
    config = TranslatorConfig.from_args(args, settings)

    # 验证配置
    error = config.validate()
    if error:
        logger.error(error)
        return EXIT_FAILED

    # 验证输入文件
    in_path = Path(args.input_path).expanduser().resolve()
    error = validate_srt_file(in_path)
    if error:
        logger.error(error)
        return EXIT_FAILED

    # 读取并解析 SRT
    logger.info(f"Reading: {in_path}")
    try:
        entries = load_srt(in_path)
    except OSError as e:
        logger.error(f"Failed to read {in_path}: {e}")
        return EXIT_FAILED

    if not entries:
        logger.error("No valid subtitle entries found")
        return EXIT_FAILED

    entries.sort(key=lambda e: e.index)
    logger.info(f"Parsed {len(entries)} subtitle entries")

    if args.remember:
        remember_settings(config, settings)

    # 断点续译
    if config.resume:
        resumed = apply_existing_translations(entries, in_path, config.target_lang)
        if resumed.error:
            logger.info("Previous translation could not be read, starting fresh")

    autosave_path = get_autosave_path(in_path, config.target_lang) if config.autosave else None
    if autosave_path:
        logger.info(f"Auto-saving to {autosave_path}")

    cancel_event = asyncio.Event()
    handler_installed = _install_cancel_handler(cancel_event)

    bar = tqdm(total=len(pending_entries(entries)), desc="Translating", unit="line")

    def on_progress(event: ProgressEvent) -> None:
        bar.update(event.processed - bar.n)

    try:
        async with create_client(
            config.api_key,
            model=config.model_name,
            base_url=config.base_url,
            timeout=config.timeout,
            max_retries=config.max_retries,
        ) as client:
            result = await run_translation(
                entries,
                client,
                config.source_lang,
                config.target_lang,
                preserve_formatting=config.preserve_formatting,
                autosave_path=autosave_path,
                cancel_event=cancel_event,
                on_progress=on_progress,
            )
    except TranslationError as e:
        logger.error(f"Translation failed: {e}")
        if autosave_path and autosave_path.exists():
            logger.info(f"Completed batches are kept in {autosave_path}")
        return EXIT_FAILED
    finally:
        bar.close()
        if handler_installed:
            _remove_cancel_handler()

    if args.output_path:
        out_path = Path(args.output_path).expanduser()
        save_srt(entries, out_path, use_translated=True)
        logger.info(f"Saved to {out_path}")

    translated = sum(1 for e in entries if e.has_translation)

    if result.status is RunStatus.NOTHING_TO_DO:
        logger.info(f"Nothing to do: all {len(entries)} entries are already translated")
        return EXIT_OK

    if result.status is RunStatus.CANCELLED:
        logger.warning(
            f"Cancelled: {result.processed}/{result.total} entries processed "
            f"({translated}/{len(entries)} translated)"
        )
        return EXIT_CANCELLED

    logger.info(f"Done! {translated}/{len(entries)} translated.")
    return EXIT_OK


def main() -> None:
    """CLI entry point."""
    args = parse_arguments()
    setup_logging(args.verbose)

    try:
        exit_code = asyncio.run(main_async(args))
        sys.exit(exit_code)
    except (KeyboardInterrupt, asyncio.CancelledError):
        print("\nInterrupted by user. Completed batches are saved.")
        sys.exit(EXIT_CANCELLED)
    except Exception as e:
        logging.error(f"Fatal error: {e}")
        if args.verbose:
            import traceback
            traceback.print_exc()
        sys.exit(EXIT_FAILED)


if __name__ == "__main__":
    main()
