"""Exception types raised by the translation pipeline."""

from __future__ import annotations

from typing import Optional


class TranslatorError(Exception):
    """Base class for all translator errors."""


class AuthenticationError(TranslatorError):
    """Missing or rejected provider credentials."""


class TransportError(TranslatorError):
    """Network or HTTP failure talking to a provider."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class RateLimitError(TransportError):
    """Provider signalled throttling (HTTP 429)."""

    DEFAULT_MESSAGE = "Requests too frequent, please wait a moment and try again."

    def __init__(self, message: Optional[str] = None):
        text = self.DEFAULT_MESSAGE
        if message:
            text = f"{text} ({message})"
        super().__init__(text, status_code=429)


class StructuralError(TranslatorError):
    """Provider response did not match the expected schema."""

    def __init__(self, detail: str = ""):
        message = "response did not match expected schema"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class FormatError(TranslatorError):
    """Input text contains no recognizable subtitle entries."""
