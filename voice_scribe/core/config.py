"""
Configuration management for Voice Scribe.

This module handles environment variables, API keys, prompt file locations and
model settings using python-dotenv for explicit, project-scoped .env loading.
No implicit loading occurs at import time.
"""

import os
import shutil
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from openai import OpenAI

from .types import ErrorTypes


class ConfigError(Exception):
    """Raised when configuration is invalid or missing."""

    pass


DEFAULT_OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_OPENROUTER_MODEL = "google/gemini-2.5-flash"
SUPPORTED_ASR_MODELS = ("whisper-1", "gpt-4o-transcribe")
SUPPORTED_OUTPUT_BEHAVIORS = ("copy", "print", "copy_and_print")

# Environment variables holding a custom prompt file per formatting mode
CUSTOM_PROMPT_ENV_VARS = {
    "email": "CUSTOM_PROMPT_EMAIL_FILE",
    "slack": "CUSTOM_PROMPT_SLACK_FILE",
    "report": "CUSTOM_PROMPT_REPORT_FILE",
    "translate": "CUSTOM_PROMPT_TRANSLATE_FILE",
}


@lru_cache(maxsize=32)
def load_config(env_path: Optional[str] = None, override: bool = False) -> None:
    """Explicitly load environment variables from the given .env file path.

    Notes:
    - This function does NOT perform implicit loading when env_path is None.
    - Callers should pass a project-scoped env path resolved via helpers in this module.
    """
    if env_path:
        load_dotenv(dotenv_path=env_path, override=override)


def _optional_env(name: str) -> Optional[str]:
    value = os.getenv(name, "").strip()
    return value or None


class Config:
    """Configuration settings for Voice Scribe."""

    @property
    def openai_api_key(self) -> str:
        """Get OpenAI API key from environment."""
        key = os.getenv("OPENAI_API_KEY")
        if not key:
            raise ConfigError(f"{ErrorTypes.API_KEY_MISSING.value}. Set OPENAI_API_KEY in your environment or .env file.")
        return key

    @property
    def openai_base_url(self) -> Optional[str]:
        """Get an alternative base URL for the transcription API (default: OpenAI)."""
        return _optional_env("OPENAI_BASE_URL")

    @property
    def openrouter_api_key(self) -> str:
        """Get OpenRouter API key from environment."""
        key = os.getenv("OPENROUTER_API_KEY")
        if not key:
            raise ConfigError(f"{ErrorTypes.OPENROUTER_API_KEY_MISSING.value}. Set OPENROUTER_API_KEY in your environment or .env file.")
        return key

    @property
    def openrouter_base_url(self) -> str:
        return os.getenv("OPENROUTER_BASE_URL", DEFAULT_OPENROUTER_BASE_URL)

    @property
    def openrouter_model(self) -> str:
        """Get the model used for text formatting (default: google/gemini-2.5-flash)."""
        return _optional_env("OPENROUTER_MODEL") or DEFAULT_OPENROUTER_MODEL

    @property
    def asr_model(self) -> str:
        """Get the model name for ASR (default: whisper-1)."""
        model = os.getenv("ASR_MODEL", "whisper-1")
        if model not in SUPPORTED_ASR_MODELS:
            raise ConfigError(f"Unsupported ASR_MODEL: {model}. Available: {list(SUPPORTED_ASR_MODELS)}")
        return model

    @property
    def asr_language(self) -> str:
        """Get the transcription language code, or 'auto' for detection."""
        return os.getenv("ASR_LANGUAGE", "auto").strip() or "auto"

    @property
    def asr_temperature(self) -> float:
        """Get the sampling temperature for ASR, clamped to [0, 1] (default: 0)."""
        raw = os.getenv("ASR_TEMPERATURE", "0")
        try:
            temperature = float(raw)
        except ValueError:
            raise ConfigError(f"Invalid ASR_TEMPERATURE value: {raw}")
        return max(0.0, min(1.0, temperature))

    @property
    def prompt_file(self) -> Optional[str]:
        """Get the transcription context file passed to the recognizer as a prompt."""
        return _optional_env("PROMPT_FILE")

    def custom_prompt_file(self, mode: str) -> Optional[str]:
        """Get the custom prompt file configured for a formatting mode, if any."""
        var = CUSTOM_PROMPT_ENV_VARS.get(mode)
        return _optional_env(var) if var else None

    @property
    def output_behavior(self) -> str:
        """Get how results are delivered: copy, print or copy_and_print (default: copy)."""
        behavior = os.getenv("OUTPUT_BEHAVIOR", "copy").lower()
        if behavior not in SUPPORTED_OUTPUT_BEHAVIORS:
            raise ConfigError(f"Unsupported OUTPUT_BEHAVIOR: {behavior}. Available: {list(SUPPORTED_OUTPUT_BEHAVIORS)}")
        return behavior

    @property
    def history_limit(self) -> int:
        """Get the number of history entries to keep; 0 disables history, -1 keeps all (default: 10)."""
        raw = os.getenv("HISTORY_LIMIT", "10")
        try:
            limit = int(raw)
        except ValueError:
            raise ConfigError(f"Invalid HISTORY_LIMIT value: {raw}")
        if limit < -1:
            raise ConfigError(f"Invalid HISTORY_LIMIT value: {raw}")
        return limit

    @property
    def history_file(self) -> Optional[str]:
        return _optional_env("VS_HISTORY_FILE")

    @property
    def openai_timeout(self) -> int:
        """Get API timeout in seconds (default: 60)."""
        return int(os.getenv("OPENAI_TIMEOUT", "60"))

    @property
    def max_retries(self) -> int:
        """Get maximum number of retries for API calls (default: 3)."""
        return int(os.getenv("MAX_RETRIES", "3"))


# Global config instance
config = Config()

# --- Project-scoped environment helpers ---

METADATA_DIRNAME = ".voice_scribe"
DEFAULT_ENV_FILENAME = os.getenv("VS_ENV_FILENAME", ".env")
ENV_FILE_ENV_VARS = ("VS_ENV_FILE", "VOICE_SCRIBE_ENV_FILE")
PROJECT_ROOT_ENV_VARS = ("VS_PROJECT_ROOT", "VOICE_SCRIBE_PROJECT_ROOT")


def detect_project_root(start_dir: Optional[str] = None) -> Optional[Path]:
    """Detect project root by looking for a .voice_scribe directory upwards from start_dir (or CWD)."""
    start = Path(start_dir) if start_dir else Path.cwd()
    for current in [start] + list(start.parents):
        if (current / METADATA_DIRNAME).exists():
            return current
    return None


def get_project_metadata_dir(project_root: Optional[str] = None) -> Path:
    """Return the .voice_scribe directory for a given or detected project root."""
    root = Path(project_root) if project_root else (detect_project_root() or Path.cwd())
    return root / METADATA_DIRNAME


def ensure_project_metadata_dir(project_root: Optional[str] = None) -> Path:
    """Ensure the .voice_scribe directory exists for the project and return its path."""
    meta_dir = get_project_metadata_dir(project_root)
    meta_dir.mkdir(parents=True, exist_ok=True)
    return meta_dir


def get_project_env_path(project_root: Optional[str] = None, filename: str = DEFAULT_ENV_FILENAME) -> Path:
    """Compute the path to the project-scoped environment file inside .voice_scribe."""
    return get_project_metadata_dir(project_root) / filename


def ensure_project_env(
    project_root: Optional[str] = None,
    source_env: Optional[str] = None,
    filename: str = DEFAULT_ENV_FILENAME,
    overwrite: bool = False,
) -> Path:
    """
    Create or copy a project-scoped env file under .voice_scribe.
    This NEVER loads env values, it only writes/places the file.

    Behavior:
    - If target exists and overwrite is False, the existing file is preserved.
    - If source_env is provided and exists, it's copied to the target.
    - Else if <project_root>/.env exists, it's copied to the target.
    - Else, a minimal template is created at the target.

    Returns:
        Path to the env file under the project's .voice_scribe directory.
    """
    meta = ensure_project_metadata_dir(project_root)
    target = meta / filename
    if target.exists() and not overwrite:
        return target

    src_candidates = []
    if source_env:
        src_candidates.append(Path(source_env))
    root = Path(project_root) if project_root else Path.cwd()
    src_candidates.append(root / ".env")

    for candidate in src_candidates:
        if candidate.is_file():
            shutil.copyfile(candidate, target)
            return target

    template = (
        "# Project-scoped environment for voice_scribe\n"
        "# OPENAI_API_KEY=your-key-here\n"
        "# OPENROUTER_API_KEY=your-key-here\n"
        f"OPENROUTER_MODEL={DEFAULT_OPENROUTER_MODEL}\n"
        "ASR_MODEL=whisper-1\n"
        "ASR_LANGUAGE=auto\n"
        "ASR_TEMPERATURE=0\n"
        "OUTPUT_BEHAVIOR=copy\n"
        "HISTORY_LIMIT=10\n"
        "# PROMPT_FILE=~/prompts/context.md\n"
        "# CUSTOM_PROMPT_EMAIL_FILE=~/prompts/email.md\n"
    )
    target.write_text(template, encoding="utf-8")
    return target


def load_project_env(project_root: Optional[str] = None, filename: str = DEFAULT_ENV_FILENAME, override: bool = False) -> Optional[str]:
    """
    Load a project-scoped environment file, if available.

    Load order (first match wins):
    1) Explicit env file path via VS_ENV_FILE or VOICE_SCRIBE_ENV_FILE
    2) <project_root>/.voice_scribe/<filename> (default: .env)

    Returns the path loaded, or None if nothing was loaded.
    """
    for var in ENV_FILE_ENV_VARS:
        explicit = os.getenv(var)
        if explicit and Path(explicit).is_file():
            load_config(explicit, override=override)
            return explicit

    if project_root is None:
        for var in PROJECT_ROOT_ENV_VARS:
            if os.getenv(var):
                project_root = os.getenv(var)
                break
    if project_root is None:
        detected = detect_project_root()
        project_root = str(detected) if detected else None

    if project_root:
        env_path = get_project_env_path(project_root, filename)
        if env_path.exists():
            load_config(str(env_path), override=override)
            return str(env_path)

    return None


def _ensure_env_key(var: str) -> None:
    """Try the project-scoped env when an API key is missing from the process environment."""
    if not os.getenv(var):
        load_project_env()


@lru_cache(maxsize=1)
def get_client() -> OpenAI:
    """
    Get the configured transcription client.

    Returns:
        OpenAI client instance

    Raises:
        ConfigError: If the OpenAI API key is not configured after project env lookup
    """
    _ensure_env_key("OPENAI_API_KEY")
    api_key = config.openai_api_key
    try:
        return OpenAI(
            api_key=api_key,
            base_url=config.openai_base_url,
            timeout=config.openai_timeout,
            max_retries=config.max_retries,
        )
    except Exception as e:
        raise ConfigError(f"Failed to create OpenAI client: {e}")


@lru_cache(maxsize=1)
def get_formatting_client() -> OpenAI:
    """
    Get the OpenAI-compatible client pointed at OpenRouter for text formatting.

    Raises:
        ConfigError: If the OpenRouter API key is not configured after project env lookup
    """
    _ensure_env_key("OPENROUTER_API_KEY")
    api_key = config.openrouter_api_key
    try:
        return OpenAI(
            api_key=api_key,
            base_url=config.openrouter_base_url,
            timeout=config.openai_timeout,
            max_retries=config.max_retries,
        )
    except Exception as e:
        raise ConfigError(f"Failed to create OpenRouter client: {e}")
