"""Translation provider adapters backed by LLM APIs."""

from __future__ import annotations

import json
import re
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional, Sequence, Type

from openai import AsyncOpenAI
from google import genai
from google.genai import types

from .config import DEFAULT_TARGET_LANGUAGE, EXPORT_PREFIXES, TranslatorConfig
from .errors import AuthenticationError, StructuralError
from .llm_client import (
    call_gemini_json,
    call_openai_json,
    create_gemini_client,
    create_openai_client,
)
from .models import SrtEntry, TranslationResult

logger = logging.getLogger(__name__)


def default_style(target_language: str) -> str:
    return f"Natural, fluent and contextually appropriate {target_language}."


def build_system_instruction(
    count: int,
    style_instruction: str = "",
    target_language: str = DEFAULT_TARGET_LANGUAGE,
) -> str:
    """Build the system prompt shared by every provider."""
    style = style_instruction.strip() or default_style(target_language)

    return f"""You are a professional subtitle translator.
Your task is to translate the provided subtitle entries into {target_language}.

STRICT RULES:
1. You MUST translate EVERY SINGLE entry provided. Do not skip any entry.
2. The number of output entries MUST be EXACTLY {count}.
3. Keep the exact original "id" of each entry. Never renumber ids.
4. Never merge the content of several entries into one output entry, and never split one entry.
5. If an entry is a name, a sound effect, or should not be translated, keep the original text but STILL include the entry.
6. Tone/Style: {style}
7. RESPONSE FORMAT: respond with a JSON object with a "translations" key holding an array of objects with "id" and "translatedText".

## JSON Format Example:
{{"translations": [{{"id": 1, "translatedText": "..."}}, {{"id": 2, "translatedText": "..."}}]}}"""


def build_user_payload(entries: Sequence[SrtEntry]) -> str:
    items = [{"id": e.id, "text": e.text} for e in entries]
    return f"Translate these entries: {json.dumps(items, ensure_ascii=False)}"


def parse_translation_response(
    json_str: str,
    expected_ids: Iterable[int] = (),
) -> List[TranslationResult]:
    """
    Parse the JSON body returned by a provider.

    Items with a non-integer id or a non-string ``translatedText`` are
    dropped. A count mismatch against ``expected_ids`` is only logged; the
    orchestrator keeps the source text for any id that did not come back.

    Raises:
        StructuralError: body is not JSON or has no ``translations`` list
    """
    clean = json_str.strip()
    clean = re.sub(r'^```(?:json)?\s*', '', clean)
    clean = re.sub(r'\s*```$', '', clean)

    try:
        data = json.loads(clean)
    except json.JSONDecodeError as e:
        logger.debug(f"Raw response: {json_str[:200]}...")
        raise StructuralError(f"invalid JSON ({e.msg})") from e

    if not isinstance(data, dict):
        raise StructuralError("top-level value is not an object")

    translations = data.get("translations")
    if not isinstance(translations, list):
        raise StructuralError("'translations' is missing or not a list")

    results: List[TranslationResult] = []
    for item in translations:
        if not isinstance(item, dict):
            continue

        item_id = item.get("id")
        text = item.get("translatedText")

        # bool is a subclass of int, but never a valid id
        if not isinstance(item_id, int) or isinstance(item_id, bool):
            logger.debug(f"Dropping item with invalid id: {item_id!r}")
            continue
        if not isinstance(text, str):
            logger.debug(f"Dropping item {item_id} without translatedText")
            continue

        results.append(TranslationResult(id=item_id, translated_text=text))

    expected = set(expected_ids)
    if expected:
        received = {r.id for r in results}
        missing = expected - received
        if missing or len(results) != len(expected):
            logger.warning(
                f"Count mismatch: expected {len(expected)} entries, got {len(results)} "
                f"(missing ids: {sorted(missing)[:10]})"
            )

    return results


class TranslationProvider(ABC):
    """
    One backing translation service.

    Subclasses implement ``_request`` which performs exactly one network
    call per batch. Credentials are passed per call and never cached.
    """

    name: str = ""

    def __init__(self, target_language: str = DEFAULT_TARGET_LANGUAGE, temperature: float = 0.3):
        self.target_language = target_language
        self.temperature = temperature

    @property
    def export_prefix(self) -> str:
        return EXPORT_PREFIXES.get(self.name, "translated_")

    async def translate_batch(
        self,
        entries: Sequence[SrtEntry],
        style_instruction: str,
        credentials: str,
    ) -> List[TranslationResult]:
        """
        Translate one batch of entries.

        Args:
            entries: Non-empty batch of subtitle entries
            style_instruction: Free-text tone guidance, may be empty
            credentials: Provider API key

        Returns:
            Results addressable by the original entry ids

        Raises:
            AuthenticationError: no API key (raised before any request)
            TransportError, RateLimitError, StructuralError: request failed
        """
        if not entries:
            raise ValueError("entries must not be empty")
        if not credentials or not credentials.strip():
            raise AuthenticationError(f"No API key configured for {self.name}")

        system_instruction = build_system_instruction(
            len(entries), style_instruction or "", self.target_language
        )
        user_payload = build_user_payload(entries)

        logger.debug(f"[{self.name}] Sending batch of {len(entries)} entries")
        raw = await self._request(system_instruction, user_payload, credentials.strip())

        return parse_translation_response(raw, [e.id for e in entries])

    @abstractmethod
    async def _request(self, system_instruction: str, user_payload: str, api_key: str) -> str:
        """Send one request and return the raw JSON text."""
        ...


class OpenAIProvider(TranslationProvider):
    """Chat completions API in JSON mode."""

    name = "openai"

    def __init__(
        self,
        model: str = "gpt-4o-mini",
        base_url: Optional[str] = None,
        timeout: float = 120.0,
        **kwargs: Any,
    ):
        super().__init__(**kwargs)
        self.model = model
        self.base_url = base_url
        self.timeout = timeout

    def _client(self, api_key: str) -> AsyncOpenAI:
        return create_openai_client(api_key, self.base_url, self.timeout)

    async def _request(self, system_instruction: str, user_payload: str, api_key: str) -> str:
        client = self._client(api_key)
        try:
            return await call_openai_json(
                client,
                self.model,
                [
                    {"role": "system", "content": system_instruction},
                    {"role": "user", "content": user_payload},
                ],
                temperature=self.temperature,
            )
        finally:
            await client.close()


def translation_schema() -> types.Schema:
    """Response schema: {"translations": [{"id", "translatedText"}]}."""
    return types.Schema(
        type=types.Type.OBJECT,
        properties={
            "translations": types.Schema(
                type=types.Type.ARRAY,
                items=types.Schema(
                    type=types.Type.OBJECT,
                    properties={
                        "id": types.Schema(type=types.Type.INTEGER),
                        "translatedText": types.Schema(type=types.Type.STRING),
                    },
                    required=["id", "translatedText"],
                ),
            ),
        },
        required=["translations"],
    )


class GeminiProvider(TranslationProvider):
    """Gemini generate_content with a response schema."""

    name = "gemini"

    def __init__(self, model: str = "gemini-2.5-flash-lite", timeout: float = 120.0, **kwargs: Any):
        super().__init__(**kwargs)
        self.model = model
        self.timeout = timeout

    def _client(self, api_key: str) -> genai.Client:
        return create_gemini_client(api_key, self.timeout)

    async def _request(self, system_instruction: str, user_payload: str, api_key: str) -> str:
        client = self._client(api_key)
        try:
            return await call_gemini_json(
                client,
                self.model,
                user_payload,
                system_instruction,
                translation_schema(),
                temperature=self.temperature,
            )
        finally:
            await client.aio.aclose()


PROVIDERS: Dict[str, Type[TranslationProvider]] = {
    OpenAIProvider.name: OpenAIProvider,
    GeminiProvider.name: GeminiProvider,
}


def create_provider(config: TranslatorConfig) -> TranslationProvider:
    """Instantiate the active provider named by ``config.provider``."""
    common = {"target_language": config.target_language, "temperature": config.temperature}

    if config.provider == OpenAIProvider.name:
        return OpenAIProvider(
            model=config.openai_model,
            base_url=config.openai_base_url,
            timeout=config.timeout,
            **common,
        )
    if config.provider == GeminiProvider.name:
        return GeminiProvider(model=config.gemini_model, timeout=config.timeout, **common)

    raise ValueError(f"Unknown provider: {config.provider}")
