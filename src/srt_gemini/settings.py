"""Local settings persistence (API key and preferred model)."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, asdict, fields
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

SETTINGS_DIR_NAME = "srt-gemini"
SETTINGS_FILE_NAME = "settings.json"


@dataclass
class AppSettings:
    """持久化的用户设置。"""
    gemini_api_key: Optional[str] = None
    preferred_model: Optional[str] = None


def get_settings_path() -> Path:
    """获取设置文件路径。"""
    root = os.environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(root) / SETTINGS_DIR_NAME / SETTINGS_FILE_NAME


def load_settings(path: Optional[Path] = None) -> AppSettings:
    """
    从文件加载设置。

    Returns:
        AppSettings; defaults if the file is missing or unreadable
    """
    path = path or get_settings_path()
    if not path.exists():
        return AppSettings()

    try:
        with path.open('r', encoding='utf-8') as f:
            data = json.load(f)

        known = {fld.name for fld in fields(AppSettings)}
        return AppSettings(**{k: v for k, v in data.items() if k in known})
    except (OSError, ValueError, TypeError, AttributeError) as e:
        logger.warning(f"Failed to load settings file: {e}")
        return AppSettings()


def save_settings(settings: AppSettings, path: Optional[Path] = None) -> None:
    """
    保存设置到文件。

    Raises:
        OSError: If the file cannot be written
    """
    path = path or get_settings_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    with path.open('w', encoding='utf-8') as f:
        json.dump(asdict(settings), f, ensure_ascii=False, indent=2)

    logger.debug(f"Settings saved to {path}")
