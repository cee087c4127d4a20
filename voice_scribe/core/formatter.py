"""
Transcript formatting through a chat-completion model.

Each formatting mode has a built-in instruction prompt. Users can replace it
with their own prompt file per mode; prompt files are parsed with
:func:`extract_prompt_from_content`, so either a plain text file or a Markdown
document with a ``## Prompt`` code block works.
"""

import logging
import re
from typing import Any, Optional

from .config import config, get_formatting_client
from .debug_log import get_debug_logger
from .llm_handler import get_response_content, make_llm_request_with_reasoning_fallback
from .prompts import PromptFileError, load_prompt_from_file
from .timing import timer

logger = logging.getLogger(__name__)

FORMAT_MODES = ("email", "slack", "report", "translate", "original")


class FormattingError(Exception):
    """Raised when formatting a transcript fails."""

    pass


DEFAULT_FORMATTING_PROMPTS = {
    "email": """Transform the following text into a well-structured email, maintaining the original language of the input text.
Analyze the tone and style of the input text (casual, professional, cordial, informal, etc.) and maintain that same tone throughout.
Add an appropriate greeting like "Hi," and closing like "Cheers," that matches the detected tone. Do not use placeholders like [name] or [signature].
Organize the information in clear paragraphs. Only return the email text, without subject.

Text to format:""",
    "slack": """Clean up and format the following transcription maintaining the original language, tone, style and words.
Only fix small inconsistencies, errors, and organize the text into proper paragraphs with correct punctuation.
Do not add emojis, greetings, or closings. Do not change the conversational style or add formalities.
Simply present the cleaned transcription with proper formatting.

Text to format:""",
    "report": """Transform the following text into a structured report for a task management system, maintaining the original language of the input text.
Organize the information with:
- **Objective/Task:** [clear description of what needs to be done]
- **Details:** [specific information and steps if any]
- **Requirements:** [if applicable, what is needed to complete the task]

Maintain a clear, professional and action-oriented format.

Text to format:""",
    "translate": """Translate the following text to English. Maintain the original tone, style, and meaning.
If the text is already in English, improve grammar and clarity while preserving the original message.
Provide only the translated/improved text without explanations or notes.

Text to translate:""",
}


def _check_mode(mode: str) -> None:
    if mode not in FORMAT_MODES:
        raise ValueError(f"Unsupported format mode: {mode}. Available: {list(FORMAT_MODES)}")


def get_formatting_prompt(mode: str) -> str:
    """
    Resolve the instruction prompt for a formatting mode.

    A custom prompt file configured for the mode wins; an unset or empty file,
    or one that cannot be loaded, falls back to the built-in prompt.

    Args:
        mode: One of email, slack, report, translate

    Returns:
        Prompt text
    """
    if mode not in DEFAULT_FORMATTING_PROMPTS:
        raise ValueError(f"No formatting prompt for mode: {mode}")

    default_prompt = DEFAULT_FORMATTING_PROMPTS[mode]
    try:
        custom_prompt = load_prompt_from_file(config.custom_prompt_file(mode))
    except PromptFileError as e:
        logger.warning(f"Failed to load custom prompt for {mode}, using default: {e}")
        return default_prompt

    return custom_prompt or default_prompt


def sanitize_text(text: str) -> str:
    """Collapse line breaks into spaces and escape quotes so the text cannot break the prompt."""
    sanitized = re.sub(r"[\r\n]+", " ", text).strip()
    return sanitized.replace('"', '\\"')


def build_formatting_message(prompt: str, text: str) -> str:
    return f"{prompt}\n\n<input-text>{sanitize_text(text)}</input-text>"


@timer
def format_text(text: str, mode: str, client: Optional[Any] = None, project_root: str = ".") -> str:
    """
    Reformat a transcript according to a formatting mode.

    Args:
        text: Transcript to format
        mode: One of email, slack, report, translate, original
        client: Optional OpenAI-compatible client; the configured OpenRouter client by default
        project_root: Project root used for debug logs

    Returns:
        Formatted text, or the input when the mode is 'original' or the model returns nothing

    Raises:
        ConfigError: If the OpenRouter API key is missing
        FormattingError: If the request fails
    """
    _check_mode(mode)
    if mode == "original":
        return text

    prompt = get_formatting_prompt(mode)
    content = build_formatting_message(prompt, text)

    if client is None:
        client = get_formatting_client()

    debug_logger = get_debug_logger(project_root)
    debug_logger.log_formatting_request(mode, content)

    request_params = {
        "model": config.openrouter_model,
        "messages": [{"role": "user", "content": content}],
        "temperature": 0,
    }

    try:
        response = make_llm_request_with_reasoning_fallback(client, request_params)
    except Exception as e:
        logger.error(f"Error formatting text: {e}")
        raise FormattingError(f"Failed to format text ({mode}): {e}") from e

    formatted = get_response_content(response)
    debug_logger.log_formatting_response(formatted, text)

    return formatted or text
