"""LLM API client utilities."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional
from enum import Enum

import httpx
import openai
from openai import AsyncOpenAI
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from .errors import (
    AuthenticationError,
    RateLimitError,
    StructuralError,
    TranslatorError,
    TransportError,
)

logger = logging.getLogger(__name__)


class APIErrorType(Enum):
    """Provider failure categories."""
    RATE_LIMIT = "rate_limit"      # 429
    CONNECTION = "connection"      # network problem, timeout
    AUTH = "auth"                  # 401 / 403
    BAD_REQUEST = "bad_request"    # other 4xx
    SERVER = "server"              # 5xx
    UNKNOWN = "unknown"


def _status_type(status: Optional[int]) -> APIErrorType:
    if status == 429:
        return APIErrorType.RATE_LIMIT
    if status in (401, 403):
        return APIErrorType.AUTH
    if status is not None and status >= 500:
        return APIErrorType.SERVER
    if status is not None and status >= 400:
        return APIErrorType.BAD_REQUEST
    return APIErrorType.UNKNOWN


def classify_error(error: Exception) -> tuple[APIErrorType, Optional[int], str]:
    """
    Classify an SDK or transport exception.

    Returns:
        (error type, HTTP status if known, provider message)
    """
    if isinstance(error, openai.APIConnectionError):
        return APIErrorType.CONNECTION, None, str(error) or "Connection error."
    if isinstance(error, openai.APIStatusError):
        status = error.status_code
        return _status_type(status), status, error.message or str(error)
    if isinstance(error, genai_errors.APIError):
        status = error.code
        return _status_type(status), status, error.message or str(error)
    if isinstance(error, httpx.HTTPError):
        return APIErrorType.CONNECTION, None, str(error) or type(error).__name__
    return APIErrorType.UNKNOWN, None, str(error)


def to_translator_error(error: Exception) -> TranslatorError:
    """Map a provider SDK exception onto the translator error taxonomy."""
    if isinstance(error, TranslatorError):
        return error

    error_type, status, message = classify_error(error)

    if error_type == APIErrorType.RATE_LIMIT:
        return RateLimitError(message)
    if error_type == APIErrorType.AUTH:
        return AuthenticationError(message or "Invalid API key")
    return TransportError(message or "Failed to reach translation provider", status_code=status)


def create_openai_client(
    api_key: str,
    base_url: Optional[str] = None,
    timeout: float = 120.0
) -> AsyncOpenAI:
    """
    Create an AsyncOpenAI client.

    SDK-level retries are disabled: a failed batch fails the file.
    """
    return AsyncOpenAI(
        api_key=api_key,
        base_url=base_url,
        timeout=timeout,
        max_retries=0,
    )


def create_gemini_client(api_key: str, timeout: float = 120.0) -> genai.Client:
    """Create a google-genai client. Timeout is given in seconds."""
    return genai.Client(
        api_key=api_key,
        http_options=types.HttpOptions(timeout=int(timeout * 1000)),
    )


async def call_openai_json(
    client: AsyncOpenAI,
    model: str,
    messages: List[Dict[str, str]],
    temperature: float = 0.3,
) -> str:
    """
    Make one chat completion request in JSON mode.

    Returns:
        Response content as string

    Raises:
        TranslatorError subclass on any failure
    """
    try:
        response = await client.chat.completions.create(
            model=model,
            messages=messages,
            temperature=temperature,
            response_format={"type": "json_object"},
        )
    except Exception as e:
        error = to_translator_error(e)
        logger.error(f"OpenAI request failed ({type(error).__name__}): {error}")
        raise error from e

    if not response.choices:
        raise StructuralError("no choices in response")

    content = response.choices[0].message.content
    if not content:
        raise StructuralError("empty response content")
    return content.strip()


async def call_gemini_json(
    client: genai.Client,
    model: str,
    contents: str,
    system_instruction: str,
    response_schema: types.Schema,
    temperature: float = 0.3,
) -> str:
    """
    Make one generate_content request constrained to a JSON schema.

    Raises:
        TranslatorError subclass on any failure
    """
    config = types.GenerateContentConfig(
        system_instruction=system_instruction,
        temperature=temperature,
        response_mime_type="application/json",
        response_schema=response_schema,
    )

    try:
        response = await client.aio.models.generate_content(
            model=model,
            contents=contents,
            config=config,
        )
    except Exception as e:
        error = to_translator_error(e)
        logger.error(f"Gemini request failed ({type(error).__name__}): {error}")
        raise error from e

    text: Any = response.text
    if not text:
        raise StructuralError("empty response content")
    return text.strip()
