"""Shared fixtures: a scripted provider that never touches the network."""

import asyncio
import json

import pytest

from srt_queue_translator.models import SrtEntry
from srt_queue_translator.translator import TranslationProvider

PAYLOAD_PREFIX = "Translate these entries: "


class ScriptedProvider(TranslationProvider):
    """Returns canned JSON bodies (or raises canned errors) in call order."""

    name = "openai"

    def __init__(self, responses=(), **kwargs):
        super().__init__(**kwargs)
        self.responses = list(responses)
        self.calls = []
        self.keys = []
        self.hook = None

    async def _request(self, system_instruction, user_payload, api_key):
        self.calls.append(json.loads(user_payload[len(PAYLOAD_PREFIX):]))
        self.keys.append(api_key)
        if self.hook:
            self.hook(len(self.calls))
        await asyncio.sleep(0)

        if not self.responses:
            # Echo every entry back upper-cased
            return json.dumps({"translations": [
                {"id": item["id"], "translatedText": item["text"].upper()}
                for item in self.calls[-1]
            ]})

        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        if isinstance(response, str):
            return response
        return json.dumps({"translations": response})

    def batch_ids(self):
        return [[item["id"] for item in call] for call in self.calls]


def make_entries(texts, start_id=1):
    return [
        SrtEntry(start_id + i, f"00:00:{i:02d},000", f"00:00:{i:02d},900", text)
        for i, text in enumerate(texts)
    ]


@pytest.fixture
def three_entries():
    return make_entries(["Hello", "World", "!"])
