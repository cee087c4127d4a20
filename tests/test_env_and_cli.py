import os
from pathlib import Path
from types import SimpleNamespace
from typing import Optional
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from voice_scribe.core import config as config_module
from voice_scribe.core.config import (
    ensure_project_env,
    get_client,
    get_formatting_client,
    get_project_env_path,
    load_project_env,
)
from voice_scribe.core.history import TranscriptionHistory
from voice_scribe.main import app


class DummyOpenAI:
    """
    Minimal dummy stand-in for OpenAI client to avoid real network/API calls.

    Captures initialization parameters so tests can assert which API key was used.
    """

    def __init__(self, api_key: Optional[str] = None, base_url: Optional[str] = None, timeout: Optional[int] = None, max_retries: Optional[int] = None, **_: object):
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = timeout
        self.max_retries = max_retries


class DummyTranscribingOpenAI(DummyOpenAI):
    """Dummy client whose transcription endpoint returns a fixed transcript."""

    transcript = "hello world transcript"

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.audio = SimpleNamespace(transcriptions=SimpleNamespace(create=lambda **_: self.transcript))


def write_file(path: Path, content: str) -> None:
    """Helper to write a text file with UTF-8 encoding."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


@pytest.fixture(autouse=True)
def clear_client_caches():
    """
    Ensure cached clients and loaded env files do not leak between tests.
    """
    for cached in (get_client, get_formatting_client, config_module.load_config):
        cached.cache_clear()
    yield
    for cached in (get_client, get_formatting_client, config_module.load_config):
        cached.cache_clear()


class TestProjectEnv:
    """Project-scoped .env handling."""

    def test_ensure_project_env_creates_template(self, tmp_path: Path):
        target = ensure_project_env(str(tmp_path))

        assert target == get_project_env_path(str(tmp_path))
        content = target.read_text(encoding="utf-8")
        assert "OPENROUTER_MODEL=google/gemini-2.5-flash" in content
        assert "HISTORY_LIMIT=10" in content

    def test_ensure_project_env_copies_root_env(self, tmp_path: Path):
        write_file(tmp_path / ".env", "OPENAI_API_KEY=from-root\n")

        target = ensure_project_env(str(tmp_path))

        assert target.read_text(encoding="utf-8") == "OPENAI_API_KEY=from-root\n"

    def test_ensure_project_env_preserves_existing(self, tmp_path: Path):
        target = get_project_env_path(str(tmp_path))
        write_file(target, "KEEP=1\n")

        ensure_project_env(str(tmp_path), source_env=None)
        assert target.read_text(encoding="utf-8") == "KEEP=1\n"

        write_file(tmp_path / "other.env", "REPLACED=1\n")
        ensure_project_env(str(tmp_path), source_env=str(tmp_path / "other.env"), overwrite=True)
        assert target.read_text(encoding="utf-8") == "REPLACED=1\n"

    def test_load_project_env(self, tmp_path: Path):
        write_file(get_project_env_path(str(tmp_path)), "OPENROUTER_MODEL=anthropic/claude-haiku\n")

        with patch.dict(os.environ, {}, clear=True):
            loaded = load_project_env(str(tmp_path))
            assert loaded == str(get_project_env_path(str(tmp_path)))
            assert os.environ["OPENROUTER_MODEL"] == "anthropic/claude-haiku"

    def test_explicit_env_file_wins(self, tmp_path: Path):
        explicit = tmp_path / "explicit.env"
        write_file(explicit, "ASR_LANGUAGE=fr\n")
        write_file(get_project_env_path(str(tmp_path)), "ASR_LANGUAGE=de\n")

        with patch.dict(os.environ, {"VS_ENV_FILE": str(explicit)}, clear=True):
            assert load_project_env(str(tmp_path)) == str(explicit)
            assert os.environ["ASR_LANGUAGE"] == "fr"

    def test_nothing_to_load(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.chdir(tmp_path)
        with patch.dict(os.environ, {}, clear=True):
            assert load_project_env(str(tmp_path)) is None

    def test_clients_use_project_env_keys(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        write_file(get_project_env_path(str(tmp_path)), "OPENAI_API_KEY=sk-openai\nOPENROUTER_API_KEY=sk-router\n")
        (tmp_path / "sub").mkdir()
        monkeypatch.chdir(tmp_path / "sub")
        monkeypatch.setattr(config_module, "OpenAI", DummyOpenAI)

        with patch.dict(os.environ, {}, clear=True):
            client = get_client()
            formatting_client = get_formatting_client()

        assert client.api_key == "sk-openai"
        assert client.base_url is None
        assert formatting_client.api_key == "sk-router"
        assert formatting_client.base_url == "https://openrouter.ai/api/v1"
        assert formatting_client.timeout == 60


class TestCli:
    """Command-line interface."""

    def test_extract_prompt(self, tmp_path: Path):
        prompt_file = tmp_path / "email.md"
        write_file(prompt_file, "# Email\n\n## Prompt\n```markdown\nWrite a friendly email.\n```\n")

        result = CliRunner().invoke(app, ["extract-prompt", str(prompt_file)])

        assert result.exit_code == 0
        assert result.stdout.strip() == "Write a friendly email."

    def test_extract_prompt_missing_file(self, tmp_path: Path):
        result = CliRunner().invoke(app, ["extract-prompt", str(tmp_path / "missing.md")])

        assert result.exit_code == 1
        assert "Custom prompt file not found" in result.stdout

    def test_init(self, tmp_path: Path):
        result = CliRunner().invoke(app, ["init", "--project-root", str(tmp_path)])

        assert result.exit_code == 0
        assert get_project_env_path(str(tmp_path)).exists()

    def test_history_commands(self, tmp_path: Path):
        history_path = tmp_path / ".voice_scribe" / "history.json"
        runner = CliRunner()

        with patch.dict(os.environ, {}, clear=True):
            item = TranscriptionHistory(path=history_path, limit=10).save("Buy milk on the way home")

            listed = runner.invoke(app, ["history", "list", "--project-root", str(tmp_path)])
            assert listed.exit_code == 0
            assert "Transcription History" in listed.stdout

            removed = runner.invoke(app, ["history", "remove", item.id, "--project-root", str(tmp_path)])
            assert removed.exit_code == 0
            assert TranscriptionHistory(path=history_path, limit=10).list() == []

            missing = runner.invoke(app, ["history", "remove", item.id, "--project-root", str(tmp_path)])
            assert missing.exit_code == 1

            TranscriptionHistory(path=history_path, limit=10).save("again")
            cleared = runner.invoke(app, ["history", "clear", "--project-root", str(tmp_path)])
            assert cleared.exit_code == 0
            assert not history_path.exists()

    def test_format_requires_one_input(self):
        result = CliRunner().invoke(app, ["format"])

        assert result.exit_code == 1
        assert "Must specify either --text or --file" in result.stdout

    def test_format_original_prints(self, tmp_path: Path):
        with patch.dict(os.environ, {}, clear=True):
            result = CliRunner().invoke(
                app,
                ["format", "--text", "as spoken", "--mode", "original", "--output", "print", "--project-root", str(tmp_path)],
            )

        assert result.exit_code == 0
        assert "as spoken" in result.stdout

    def test_transcribe_rejects_unsupported_file(self, tmp_path: Path):
        notes = tmp_path / "notes.txt"
        write_file(notes, "not audio")

        with patch.dict(os.environ, {"OPENAI_API_KEY": "sk-test"}, clear=True):
            with patch("voice_scribe.core.config.OpenAI", DummyOpenAI):
                result = CliRunner().invoke(app, ["transcribe", str(notes), "--project-root", str(tmp_path)])

        assert result.exit_code == 1
        assert "Invalid audio file" in result.stdout

    def test_transcribe_unknown_mode(self, tmp_path: Path):
        result = CliRunner().invoke(app, ["transcribe", "memo.wav", "--mode", "poem"])

        assert result.exit_code == 1
        assert "Unsupported mode" in result.stdout

    def test_transcribe_prints_and_saves_history(self, tmp_path: Path):
        audio = tmp_path / "memo.wav"
        audio.write_bytes(b"\0" * 4096)

        with patch.dict(os.environ, {"OPENAI_API_KEY": "sk-test"}, clear=True):
            with patch("voice_scribe.core.config.OpenAI", DummyTranscribingOpenAI):
                result = CliRunner().invoke(
                    app, ["transcribe", str(audio), "--output", "print", "--project-root", str(tmp_path)]
                )
            items = TranscriptionHistory(path=tmp_path / ".voice_scribe" / "history.json").list()

        assert result.exit_code == 0
        assert "hello world transcript" in result.stdout
        assert [item.original_text for item in items] == ["hello world transcript"]

    def test_transcribe_delivers_when_history_cannot_be_written(self, tmp_path: Path):
        audio = tmp_path / "memo.wav"
        audio.write_bytes(b"\0" * 4096)
        blocker = tmp_path / "blocker"
        write_file(blocker, "not a directory")

        env = {"OPENAI_API_KEY": "sk-test", "VS_HISTORY_FILE": str(blocker / "history.json")}
        with patch.dict(os.environ, env, clear=True):
            with patch("voice_scribe.core.config.OpenAI", DummyTranscribingOpenAI):
                result = CliRunner().invoke(
                    app, ["transcribe", str(audio), "--output", "print", "--project-root", str(tmp_path)]
                )

        assert result.exit_code == 0
        assert "hello world transcript" in result.stdout
        assert "not saved to history" in result.stdout
