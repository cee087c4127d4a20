"""
Tests for transcript formatting and the reasoning-model fallback.
"""

import os
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import patch

import pytest

from voice_scribe.core.formatter import (
    DEFAULT_FORMATTING_PROMPTS,
    FormattingError,
    format_text,
    get_formatting_prompt,
    sanitize_text,
)
from voice_scribe.core.llm_handler import (
    ReasoningModelError,
    adjust_llm_params_for_reasoning_model,
    get_response_content,
    is_reasoning_model_error,
    make_llm_request_with_reasoning_fallback,
)


class FakeAPIError(Exception):
    """Mimics the attributes of an OpenAI API status error."""

    def __init__(self, status_code: int, body: dict):
        super().__init__(f"Error code: {status_code}")
        self.status_code = status_code
        self.body = body


def reasoning_error(param: str = "temperature") -> FakeAPIError:
    return FakeAPIError(400, {"error": {"type": "invalid_request_error", "code": "unsupported_value", "param": param}})


def chat_response(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


class DummyCompletions:
    """Returns queued results (or raises queued exceptions) and records request params."""

    def __init__(self, *results):
        self.results = list(results)
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


def make_client(completions: DummyCompletions) -> SimpleNamespace:
    return SimpleNamespace(chat=SimpleNamespace(completions=completions))


class TestFormattingPrompt:
    """Resolution of built-in and custom prompts."""

    def test_default_prompt(self):
        with patch.dict(os.environ, {}, clear=True):
            assert get_formatting_prompt("email") == DEFAULT_FORMATTING_PROMPTS["email"]

    def test_custom_prompt_file(self, tmp_path: Path):
        prompt_file = tmp_path / "slack.md"
        prompt_file.write_text("# Slack\n\n## Prompt\n```text\nMake it punchy.\n```\n", encoding="utf-8")

        with patch.dict(os.environ, {"CUSTOM_PROMPT_SLACK_FILE": str(prompt_file)}, clear=True):
            assert get_formatting_prompt("slack") == "Make it punchy."

    def test_missing_custom_prompt_falls_back(self, tmp_path: Path):
        with patch.dict(os.environ, {"CUSTOM_PROMPT_REPORT_FILE": str(tmp_path / "missing.md")}, clear=True):
            assert get_formatting_prompt("report") == DEFAULT_FORMATTING_PROMPTS["report"]

    def test_empty_custom_prompt_falls_back(self, tmp_path: Path):
        prompt_file = tmp_path / "translate.md"
        prompt_file.write_text("## Prompt\n```\n\n```", encoding="utf-8")

        with patch.dict(os.environ, {"CUSTOM_PROMPT_TRANSLATE_FILE": str(prompt_file)}, clear=True):
            assert get_formatting_prompt("translate") == DEFAULT_FORMATTING_PROMPTS["translate"]

    def test_original_mode_has_no_prompt(self):
        with pytest.raises(ValueError):
            get_formatting_prompt("original")


class TestSanitizeText:
    def test_line_breaks_and_quotes(self):
        assert sanitize_text('  first line\r\n\nsecond "quoted" line \n') == 'first line second \\"quoted\\" line'


class TestFormatText:
    """Formatting requests against a dummy client."""

    def test_original_mode_returns_input(self):
        assert format_text("as spoken", "original", client=object()) == "as spoken"

    def test_unknown_mode(self):
        with pytest.raises(ValueError, match="Unsupported format mode"):
            format_text("text", "poem", client=object())

    def test_request_shape(self, tmp_path: Path):
        completions = DummyCompletions(chat_response("  Hi team,\n\nDone.  "))

        with patch.dict(os.environ, {"OPENROUTER_MODEL": "openai/gpt-4o-mini"}, clear=True):
            result = format_text('done with "it"\nthanks', "email", client=make_client(completions), project_root=str(tmp_path))

        assert result == "Hi team,\n\nDone."
        call = completions.calls[0]
        assert call["model"] == "openai/gpt-4o-mini"
        assert call["temperature"] == 0
        assert call["messages"][0]["role"] == "user"
        assert call["messages"][0]["content"] == DEFAULT_FORMATTING_PROMPTS["email"] + '\n\n<input-text>done with \\"it\\" thanks</input-text>'

    def test_empty_reply_returns_input(self, tmp_path: Path):
        completions = DummyCompletions(chat_response(None))

        with patch.dict(os.environ, {}, clear=True):
            assert format_text("keep me", "slack", client=make_client(completions), project_root=str(tmp_path)) == "keep me"

    def test_api_error_becomes_formatting_error(self, tmp_path: Path):
        completions = DummyCompletions(FakeAPIError(500, {"error": {"type": "server_error"}}))

        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(FormattingError, match="Failed to format text"):
                format_text("text", "report", client=make_client(completions), project_root=str(tmp_path))

    def test_missing_openrouter_key(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        from voice_scribe.core.config import ConfigError, get_formatting_client

        get_formatting_client.cache_clear()
        monkeypatch.chdir(tmp_path)
        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(ConfigError, match="OpenRouter API key is required"):
                format_text("text", "slack", project_root=str(tmp_path))
        get_formatting_client.cache_clear()


class TestReasoningFallback:
    """Retry logic for models that reject sampling parameters."""

    def test_detects_reasoning_error(self):
        assert is_reasoning_model_error(reasoning_error())
        assert is_reasoning_model_error(reasoning_error("max_tokens"))
        assert not is_reasoning_model_error(reasoning_error("messages"))
        assert not is_reasoning_model_error(FakeAPIError(429, {"error": {"type": "rate_limit"}}))
        assert not is_reasoning_model_error(ValueError("plain"))

    def test_adjust_params(self):
        adjusted = adjust_llm_params_for_reasoning_model({"model": "o3", "temperature": 0, "max_tokens": 100})
        assert adjusted == {"model": "o3", "max_completion_tokens": 100}

    def test_retries_once_without_temperature(self):
        completions = DummyCompletions(reasoning_error(), chat_response("ok"))

        response = make_llm_request_with_reasoning_fallback(make_client(completions), {"model": "o3", "temperature": 0})

        assert get_response_content(response) == "ok"
        assert "temperature" not in completions.calls[1]

    def test_failed_retry_raises(self):
        completions = DummyCompletions(reasoning_error(), RuntimeError("still failing"))

        with pytest.raises(ReasoningModelError, match="still failing"):
            make_llm_request_with_reasoning_fallback(make_client(completions), {"model": "o3", "temperature": 0})

    def test_other_errors_propagate(self):
        completions = DummyCompletions(RuntimeError("network down"))

        with pytest.raises(RuntimeError, match="network down"):
            make_llm_request_with_reasoning_fallback(make_client(completions), {"model": "x"})
        assert len(completions.calls) == 1

    def test_response_content_without_choices(self):
        assert get_response_content(SimpleNamespace(choices=[])) == ""
