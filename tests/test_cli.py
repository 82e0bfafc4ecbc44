"""Tests for the command-line front end."""

import pytest

from srt_queue_translator import cli
from srt_queue_translator.credentials import CredentialStore
from srt_queue_translator.parser import parse_srt

from conftest import ScriptedProvider

SRT_2 = "1\n00:00:01,000 --> 00:00:02,000\nHello\n\n2\n00:00:03,000 --> 00:00:04,000\nWorld\n"


@pytest.fixture(autouse=True)
def no_env_keys(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)


@pytest.fixture
def creds(tmp_path):
    return tmp_path / "credentials.json"


class TestParseArguments:

    def test_defaults(self):
        args = cli.parse_arguments(["a.srt", "b.srt"])
        assert args.input_paths == ["a.srt", "b.srt"]
        assert args.provider == "openai"
        assert args.batch_size == 40
        assert args.batch_delay == 0.0
        assert args.prompt == ""

    def test_provider_choice(self):
        with pytest.raises(SystemExit):
            cli.parse_arguments(["a.srt", "--provider", "deepl"])


class TestMainAsync:

    async def test_set_and_clear_key(self, creds):
        args = cli.parse_arguments(["--provider", "gemini", "--set-key", "AIza", "--credentials", str(creds)])
        assert await cli.main_async(args) == 0
        assert CredentialStore(creds).get("gemini") == "AIza"

        args = cli.parse_arguments(["--provider", "gemini", "--clear-key", "--credentials", str(creds)])
        assert await cli.main_async(args) == 0
        assert CredentialStore(creds).get("gemini") == ""

    async def test_missing_key(self, tmp_path, creds):
        path = tmp_path / "a.srt"
        path.write_text(SRT_2, encoding="utf-8")
        args = cli.parse_arguments([str(path), "--credentials", str(creds)])
        assert await cli.main_async(args) == 1

    async def test_invalid_batch_size(self, creds):
        args = cli.parse_arguments(["a.srt", "--batch-size", "0", "--credentials", str(creds)])
        assert await cli.main_async(args) == 1

    async def test_translates_and_exports(self, tmp_path, creds, monkeypatch):
        provider = ScriptedProvider()
        monkeypatch.setattr(cli, "create_provider", lambda config: provider)
        CredentialStore(creds).set("openai", "sk-test")

        path = tmp_path / "movie.srt"
        path.write_text(SRT_2, encoding="utf-8")
        out_dir = tmp_path / "out"
        args = cli.parse_arguments([
            str(path), "-o", str(out_dir), "-p", "Formal",
            "--batch-size", "1", "--credentials", str(creds),
        ])

        assert await cli.main_async(args) == 0

        exported = out_dir / "OpenAI_movie.srt"
        entries = parse_srt(exported.read_text(encoding="utf-8"))
        assert [e.text for e in entries] == ["HELLO", "WORLD"]
        assert provider.keys == ["sk-test", "sk-test"]

    async def test_failed_file_sets_exit_code(self, tmp_path, creds, monkeypatch):
        provider = ScriptedProvider([RuntimeError("rate limited")])
        monkeypatch.setattr(cli, "create_provider", lambda config: provider)
        CredentialStore(creds).set("openai", "sk-test")

        bad = tmp_path / "bad.srt"
        bad.write_text(SRT_2, encoding="utf-8")
        good = tmp_path / "good.srt"
        good.write_text(SRT_2, encoding="utf-8")
        args = cli.parse_arguments([str(bad), str(good), "--credentials", str(creds)])

        assert await cli.main_async(args) == 1
        assert not (tmp_path / "OpenAI_bad.srt").exists()
        assert (tmp_path / "OpenAI_good.srt").exists()

    async def test_same_name_inputs_do_not_overwrite(self, tmp_path, creds, monkeypatch, caplog):
        provider = ScriptedProvider()
        monkeypatch.setattr(cli, "create_provider", lambda config: provider)
        CredentialStore(creds).set("openai", "sk-test")

        first = tmp_path / "season1" / "movie.srt"
        second = tmp_path / "season2" / "movie.srt"
        for path, text in ((first, "Hello"), (second, "Bye")):
            path.parent.mkdir()
            path.write_text(f"1\n00:00:01,000 --> 00:00:02,000\n{text}\n", encoding="utf-8")
        out_dir = tmp_path / "out"
        args = cli.parse_arguments([str(first), str(second), "-o", str(out_dir), "--credentials", str(creds)])

        with caplog.at_level("WARNING", logger="srt_queue_translator.cli"):
            assert await cli.main_async(args) == 0

        assert parse_srt((out_dir / "OpenAI_movie.srt").read_text(encoding="utf-8"))[0].text == "HELLO"
        assert parse_srt((out_dir / "OpenAI_movie_1.srt").read_text(encoding="utf-8"))[0].text == "BYE"
        assert "saving as OpenAI_movie_1.srt" in caplog.text


class TestUniqueExportName:

    def test_first_use_keeps_name(self, tmp_path):
        used = set()
        assert cli.unique_export_name(tmp_path, "OpenAI_a.srt", used) == "OpenAI_a.srt"
        assert used == {tmp_path / "OpenAI_a.srt"}

    def test_repeats_get_numbered(self, tmp_path):
        used = set()
        names = [cli.unique_export_name(tmp_path, "OpenAI_a.srt", used) for _ in range(3)]
        assert names == ["OpenAI_a.srt", "OpenAI_a_1.srt", "OpenAI_a_2.srt"]

    def test_other_directory_is_independent(self, tmp_path):
        used = {tmp_path / "x" / "OpenAI_a.srt"}
        assert cli.unique_export_name(tmp_path / "y", "OpenAI_a.srt", used) == "OpenAI_a.srt"
