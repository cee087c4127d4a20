"""
Custom prompt file parsing and loading for Voice Scribe.

Prompt files are plain text or Markdown documents. When a document contains a
``## Prompt`` heading followed by a fenced code block, only the body of that
block is used as the prompt; otherwise the whole file (trimmed) is the prompt.

Extraction runs as a small staged pipeline:

1. locate the ``## Prompt`` header and its opening fence
2. slice the remainder of the document after the header
3. locate the first closing fence that occupies a whole line
4. slice body and tail, then reassemble the result

Extraction never raises. File loading errors are reported by the loaders.
"""

import logging
import re
from pathlib import Path
from typing import Optional

from .types import ErrorTypes

logger = logging.getLogger(__name__)

FENCE = "```"

# "## Prompt" heading, end of line, optional blank space, then the opening fence
# with an arbitrary language tag up to the end of its line.
PROMPT_HEADER_PATTERN = re.compile(r"##\s+Prompt[ \t]*\r?\n\s*```[^\n]*\n", re.IGNORECASE)

# A line made of exactly three backticks.
CLOSING_FENCE_PATTERN = re.compile(r"^```\r?$", re.MULTILINE)


class PromptFileError(Exception):
    """Raised when a custom prompt file cannot be loaded."""

    pass


class PromptFileNotFoundError(PromptFileError):
    """Raised when a configured prompt file does not exist."""

    pass


class PromptFileReadError(PromptFileError):
    """Raised when a prompt file exists but cannot be read or decoded."""

    pass


def _locate_header_end(content: str) -> Optional[int]:
    """Return the offset right after the first prompt header, or None."""
    match = PROMPT_HEADER_PATTERN.search(content)
    return match.end() if match else None


def _locate_closing_fence(section: str) -> Optional[re.Match]:
    """Return the first line-anchored closing fence in a section, or None."""
    return CLOSING_FENCE_PATTERN.search(section)


def _reassemble(body: str, tail: str) -> str:
    """
    Join the fenced body with whatever follows its closing fence.

    A blank tail is dropped. Otherwise the tail is appended as-is, and a single
    trailing fence (left behind by a duplicated closing fence) is removed.
    """
    if not tail.strip():
        return body

    combined = body + tail
    if combined.endswith("\n" + FENCE):
        combined = combined[: -len("\n" + FENCE)]
    return combined


def _strip_glued_fence(body: str) -> str:
    """Drop backticks glued to the end of an unterminated body."""
    if body.endswith(FENCE):
        return body[: -len(FENCE)].strip()
    return body


def extract_prompt_from_content(content: str) -> str:
    """
    Extract the prompt body from a prompt file's content.

    Args:
        content: Raw text of the prompt file

    Returns:
        The body of the first ``## Prompt`` fenced block, or the trimmed input
        when no such section exists
    """
    header_end = _locate_header_end(content)
    if header_end is None:
        return content.strip()

    section = content[header_end:]
    closing = _locate_closing_fence(section)

    if closing is None:
        return _strip_glued_fence(section.strip())

    body = section[: closing.start()].strip()
    tail = section[closing.start() + len(FENCE) :]
    return _reassemble(body, tail)


def _read_prompt_file(file_path: str) -> str:
    """Read a prompt file as UTF-8, dropping a leading byte order mark."""
    try:
        return Path(file_path).expanduser().read_text(encoding="utf-8-sig")
    except FileNotFoundError as e:
        raise PromptFileNotFoundError(ErrorTypes.PROMPT_FILE_NOT_FOUND.value) from e
    except (OSError, UnicodeDecodeError) as e:
        raise PromptFileReadError(ErrorTypes.PROMPT_FILE_READ_ERROR.value) from e


def load_prompt_from_file(file_path: Optional[str] = None) -> Optional[str]:
    """
    Load and parse a custom prompt from a file.

    Args:
        file_path: Path to the prompt file; None or blank means "not configured"

    Returns:
        Extracted prompt text, or None if no file is configured

    Raises:
        PromptFileNotFoundError: If the file does not exist
        PromptFileReadError: If the file cannot be read or decoded
    """
    if not file_path or not file_path.strip():
        return None

    try:
        content = _read_prompt_file(file_path)
    except PromptFileNotFoundError:
        logger.error(f"Prompt file not found: {file_path}")
        raise
    except PromptFileReadError as e:
        logger.error(f"Failed to read prompt file: {file_path}: {e.__cause__}")
        raise

    return extract_prompt_from_content(content)


def load_transcription_context(file_path: Optional[str] = None) -> Optional[str]:
    """
    Load optional transcription context from a file.

    Unlike custom formatting prompts, the context is a hint for the speech
    recognizer, so a missing or unreadable file is logged and skipped.

    Args:
        file_path: Path to the context file; None or blank means "not configured"

    Returns:
        Extracted context text, or None if unset, unreadable or empty
    """
    if not file_path or not file_path.strip():
        return None

    try:
        content = _read_prompt_file(file_path)
    except PromptFileError as e:
        logger.warning(f"Failed to read transcription context file: {file_path} ({e})")
        return None

    return extract_prompt_from_content(content) or None
