"""Tests for configuration."""

import argparse
from pathlib import Path

from srt_queue_translator.config import TranslatorConfig, default_credentials_path


class TestTranslatorConfig:

    def test_defaults_are_valid(self):
        config = TranslatorConfig()
        assert config.validate() is None
        assert config.batch_size == 40
        assert config.batch_delay == 0.0
        assert config.target_language == "Vietnamese"

    def test_unknown_provider(self):
        config = TranslatorConfig(provider="deepl")
        assert "Unknown provider" in config.validate()

    def test_provider_is_case_insensitive(self):
        config = TranslatorConfig(provider="Gemini")
        assert config.provider == "gemini"
        assert config.validate() is None

    def test_batch_size_bounds(self):
        assert "Batch size" in TranslatorConfig(batch_size=0).validate()
        assert "Batch size" in TranslatorConfig(batch_size=1000).validate()
        assert TranslatorConfig(batch_size=30).validate() is None

    def test_negative_delay(self):
        assert "delay" in TranslatorConfig(batch_delay=-1).validate()

    def test_export_prefix(self):
        assert TranslatorConfig(provider="openai").export_prefix == "OpenAI_"
        assert TranslatorConfig(provider="gemini").export_prefix == "Gemini_"

    def test_from_args(self, tmp_path):
        args = argparse.Namespace(
            provider="gemini",
            gemini_model="gemini-x",
            batch_size=30,
            batch_delay=1.5,
            target_language="English",
            output_dir=str(tmp_path),
            credentials_path=str(tmp_path / "keys.json"),
        )
        config = TranslatorConfig.from_args(args)
        assert config.provider == "gemini"
        assert config.gemini_model == "gemini-x"
        assert config.batch_size == 30
        assert config.batch_delay == 1.5
        assert config.target_language == "English"
        assert config.output_dir == tmp_path
        assert config.credentials_path == tmp_path / "keys.json"


class TestDefaultCredentialsPath:

    def test_env_override(self, monkeypatch, tmp_path):
        monkeypatch.setenv("SRT_QUEUE_CREDENTIALS", str(tmp_path / "c.json"))
        assert default_credentials_path() == tmp_path / "c.json"

    def test_home_default(self, monkeypatch):
        monkeypatch.delenv("SRT_QUEUE_CREDENTIALS", raising=False)
        assert default_credentials_path().name == "credentials.json"
        assert isinstance(default_credentials_path(), Path)
