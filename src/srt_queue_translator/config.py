"""Configuration and constants."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Dict, Optional
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables once
load_dotenv()


# Provider name -> environment variable consulted when no key is stored
API_KEY_ENV_VARS: Dict[str, str] = {
    "openai": "OPENAI_API_KEY",
    "gemini": "GEMINI_API_KEY",
}

# Provider name -> prefix of exported file names
EXPORT_PREFIXES: Dict[str, str] = {
    "openai": "OpenAI_",
    "gemini": "Gemini_",
}

DEFAULT_PROVIDER = "openai"
DEFAULT_TARGET_LANGUAGE = "Vietnamese"
DEFAULT_BATCH_SIZE = 40
MAX_BATCH_SIZE = 200


def default_credentials_path() -> Path:
    """Credential store location, overridable by SRT_QUEUE_CREDENTIALS."""
    env_path = os.environ.get("SRT_QUEUE_CREDENTIALS")
    if env_path:
        return Path(env_path).expanduser()
    return Path.home() / ".srt_queue_translator" / "credentials.json"


@dataclass
class TranslatorConfig:
    """Configuration for the subtitle translation queue."""

    # Provider settings
    provider: str = DEFAULT_PROVIDER
    openai_model: str = "gpt-4o-mini"
    openai_base_url: Optional[str] = None
    gemini_model: str = "gemini-2.5-flash-lite"
    temperature: float = 0.3
    timeout: float = 120.0

    # Translation settings
    target_language: str = DEFAULT_TARGET_LANGUAGE
    batch_size: int = DEFAULT_BATCH_SIZE
    batch_delay: float = 0.0

    # Output settings
    output_dir: Optional[Path] = None

    # Credential store
    credentials_path: Path = field(default_factory=default_credentials_path)

    def __post_init__(self):
        self.provider = self.provider.lower()
        if self.openai_base_url is None:
            self.openai_base_url = os.environ.get("OPENAI_BASE_URL")

    @property
    def export_prefix(self) -> str:
        return EXPORT_PREFIXES.get(self.provider, "translated_")

    @classmethod
    def from_args(cls, args) -> "TranslatorConfig":
        """Create config from argparse namespace."""
        output_dir = getattr(args, 'output_dir', None)
        credentials_path = getattr(args, 'credentials_path', None)

        return cls(
            provider=getattr(args, 'provider', DEFAULT_PROVIDER),
            openai_model=getattr(args, 'openai_model', "gpt-4o-mini"),
            openai_base_url=getattr(args, 'base_url', None),
            gemini_model=getattr(args, 'gemini_model', "gemini-2.5-flash-lite"),
            target_language=getattr(args, 'target_language', DEFAULT_TARGET_LANGUAGE),
            batch_size=getattr(args, 'batch_size', DEFAULT_BATCH_SIZE),
            batch_delay=getattr(args, 'batch_delay', 0.0),
            output_dir=Path(output_dir).expanduser() if output_dir else None,
            credentials_path=(
                Path(credentials_path).expanduser()
                if credentials_path else default_credentials_path()
            ),
        )

    def validate(self) -> Optional[str]:
        """
        Validate configuration.

        Returns:
            Error message if invalid, None if valid
        """
        if self.provider not in API_KEY_ENV_VARS:
            known = ", ".join(sorted(API_KEY_ENV_VARS))
            return f"Unknown provider '{self.provider}' (expected one of: {known})"

        if self.batch_size < 1 or self.batch_size > MAX_BATCH_SIZE:
            return f"Batch size must be 1-{MAX_BATCH_SIZE}, got {self.batch_size}"

        if self.batch_delay < 0:
            return f"Batch delay must be >= 0, got {self.batch_delay}"

        if not self.target_language.strip():
            return "Target language must not be empty"

        return None
