"""
Result delivery: clipboard and console output.
"""

import logging
import re
from typing import Callable, Optional

import pyperclip

logger = logging.getLogger(__name__)


def copy_to_clipboard(text: str) -> bool:
    """
    Copy text to the system clipboard.

    Returns:
        True on success, False when no clipboard mechanism is available
    """
    try:
        pyperclip.copy(text)
    except pyperclip.PyperclipException as e:
        logger.warning(f"Clipboard unavailable: {e}")
        return False
    return True


def deliver_text(text: str, behavior: str = "copy", printer: Optional[Callable[[str], None]] = None) -> bool:
    """
    Hand a result to the user according to the configured output behavior.

    Args:
        text: Result text
        behavior: copy, print or copy_and_print
        printer: Function used to print text (default: print)

    Returns:
        True if the text ended up on the clipboard
    """
    if behavior not in ("copy", "print", "copy_and_print"):
        raise ValueError(f"Unsupported output behavior: {behavior}")

    printer = printer or print
    copied = False

    if behavior in ("copy", "copy_and_print"):
        copied = copy_to_clipboard(text)

    # Printing is the fallback when the clipboard is unavailable
    if behavior != "copy" or not copied:
        printer(text)

    return copied


def format_transcription_text(text: str) -> str:
    """Normalize whitespace and ensure a single space after sentence punctuation."""
    normalized = re.sub(r"\s+", " ", text.strip())
    return re.sub(r"([.!?])\s*([A-Z])", r"\1 \2", normalized)
