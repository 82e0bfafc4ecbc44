"""Persistent API key storage keyed by provider name."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Dict, List

from .config import API_KEY_ENV_VARS

logger = logging.getLogger(__name__)


class CredentialStore:
    """
    Small JSON-backed key-value store for provider API keys.

    Keys written through ``set`` are flushed to disk immediately so they
    survive across sessions. ``get`` falls back to the provider's
    environment variable (``OPENAI_API_KEY`` / ``GEMINI_API_KEY``) when no
    key has been stored.
    """

    def __init__(self, path: Path, use_env: bool = True):
        self.path = path
        self.use_env = use_env
        self._keys: Dict[str, str] = self._load()

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}

        try:
            with self.path.open('r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Failed to load credential store {self.path}: {e}")
            return {}

        if not isinstance(data, dict):
            logger.warning(f"Ignoring malformed credential store {self.path}")
            return {}

        return {str(k): str(v) for k, v in data.items() if v}

    def _save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open('w', encoding='utf-8') as f:
            json.dump(self._keys, f, indent=2)
        try:
            os.chmod(self.path, 0o600)
        except OSError:
            logger.debug(f"Could not restrict permissions on {self.path}")

    def get(self, provider: str) -> str:
        """Return the stored key for ``provider`` or an empty string."""
        key = self._keys.get(provider, "")
        if not key and self.use_env:
            env_var = API_KEY_ENV_VARS.get(provider)
            if env_var:
                key = os.environ.get(env_var, "")
        return key.strip()

    def set(self, provider: str, key: str) -> None:
        key = key.strip()
        if not key:
            self.clear(provider)
            return
        self._keys[provider] = key
        self._save()
        logger.info(f"Stored API key for '{provider}'")

    def clear(self, provider: str) -> bool:
        """Remove the stored key. Returns True if one was present."""
        if self._keys.pop(provider, None) is None:
            return False
        self._save()
        logger.info(f"Removed API key for '{provider}'")
        return True

    def has(self, provider: str) -> bool:
        return bool(self.get(provider))

    def stored_providers(self) -> List[str]:
        return sorted(self._keys)
