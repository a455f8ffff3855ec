"""Configuration and constants."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from .llm_client import DEFAULT_ENDPOINT, DEFAULT_MODEL
from .settings import AppSettings, load_settings

# Load environment variables once
load_dotenv()

API_KEY_ENV = "GEMINI_API_KEY"


@dataclass
class TranslatorConfig:
    """Configuration for subtitle translator."""

    # API settings
    api_key: Optional[str] = None
    base_url: str = DEFAULT_ENDPOINT
    model_name: str = DEFAULT_MODEL
    timeout: Optional[float] = None
    max_retries: int = 0

    # Translation settings
    source_lang: str = "auto"
    target_lang: str = "ko"
    preserve_formatting: bool = True

    # Progress settings
    autosave: bool = True
    resume: bool = True

    def __post_init__(self):
        """Load API key from environment if not provided."""
        if self.api_key is None:
            self.api_key = os.environ.get(API_KEY_ENV)

    @classmethod
    def from_args(cls, args, settings: Optional[AppSettings] = None) -> "TranslatorConfig":
        """
        Create config from argparse namespace.

        API key: --api-key, then GEMINI_API_KEY, then the settings file.
        Model: --model, then the settings file, then DEFAULT_MODEL.
        """
        if settings is None:
            settings = load_settings()

        api_key = getattr(args, 'api_key', None)
        if not api_key:
            api_key = os.environ.get(API_KEY_ENV) or settings.gemini_api_key

        model_name = getattr(args, 'model_name', None) or settings.preferred_model or DEFAULT_MODEL

        return cls(
            api_key=api_key,
            base_url=getattr(args, 'base_url', DEFAULT_ENDPOINT),
            model_name=model_name,
            timeout=getattr(args, 'timeout', None),
            max_retries=getattr(args, 'retries', 0),
            source_lang=getattr(args, 'source_lang', "auto"),
            target_lang=getattr(args, 'target_lang', "ko"),
            preserve_formatting=not getattr(args, 'no_preserve_formatting', False),
            autosave=not getattr(args, 'no_autosave', False),
            resume=not getattr(args, 'no_resume', False),
        )

    def validate(self) -> Optional[str]:
        """
        Validate configuration.

        Returns:
            Error message if invalid, None if valid
        """
        if not self.api_key or not self.api_key.strip():
            return f"API key is required. Set {API_KEY_ENV} or use --api-key"

        if not self.source_lang or not self.source_lang.strip():
            return "Source language must not be empty"

        if not self.target_lang or not self.target_lang.strip():
            return "Target language must not be empty"

        if self.max_retries < 0 or self.max_retries > 10:
            return f"Retries must be 0-10, got {self.max_retries}"

        if self.timeout is not None and self.timeout <= 0:
            return f"Timeout must be positive, got {self.timeout}"

        return None
