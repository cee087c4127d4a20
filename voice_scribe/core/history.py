"""
Local transcription history.

Transcriptions are stored newest first as a JSON list in
{project_root}/.voice_scribe/history.json (or the file named by VS_HISTORY_FILE).
"""

import json
import logging
import time
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from .config import config, get_project_metadata_dir
from .speech import count_words
from .types import TranscriptionHistoryItem

logger = logging.getLogger(__name__)

HISTORY_FILENAME = "history.json"

# Special history limits
HISTORY_DISABLED = 0
HISTORY_UNLIMITED = -1


class HistoryError(Exception):
    """Raised when the history store cannot be written."""

    pass


def get_history_path(project_root: Optional[str] = None) -> Path:
    """Return the history file for a given or detected project root."""
    if config.history_file:
        return Path(config.history_file).expanduser()
    return get_project_metadata_dir(project_root) / HISTORY_FILENAME


class TranscriptionHistory:
    """
    JSON-file backed list of past transcriptions.

    Reads are forgiving: a missing, unreadable or corrupt store reads as empty.
    Writes raise HistoryError.
    """

    def __init__(self, path: Optional[Path] = None, limit: Optional[int] = None):
        self.path = Path(path) if path else get_history_path()
        self._limit = limit

    @property
    def limit(self) -> int:
        """Maximum number of entries kept; 0 disables saving, -1 keeps everything."""
        return self._limit if self._limit is not None else config.history_limit

    def list(self) -> List[TranscriptionHistoryItem]:
        """Return all saved transcriptions, newest first."""
        if not self.path.exists():
            return []

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw_items = json.load(f)
            return [TranscriptionHistoryItem.model_validate(item) for item in raw_items]
        except (OSError, ValueError, TypeError, ValidationError) as e:
            logger.warning(f"Failed to load transcription history from {self.path}: {e}")
            return []

    def _write(self, items: List[TranscriptionHistoryItem]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump([item.model_dump() for item in items], f, indent=2, ensure_ascii=False)
        except OSError as e:
            raise HistoryError(f"Failed to write transcription history to {self.path}: {e}") from e

    def save(self, original_text: str) -> Optional[TranscriptionHistoryItem]:
        """
        Add a transcription at the front of the history.

        Args:
            original_text: Transcript to store

        Returns:
            The stored item, or None when history is disabled
        """
        if self.limit == HISTORY_DISABLED:
            return None

        now_ns = time.time_ns()
        item = TranscriptionHistoryItem(
            id=str(now_ns),
            original_text=original_text,
            timestamp=now_ns // 1_000_000,
            word_count=count_words(original_text),
        )

        history = [item] + self.list()
        if self.limit != HISTORY_UNLIMITED:
            history = history[: self.limit]

        self._write(history)
        return item

    def get(self, item_id: str) -> Optional[TranscriptionHistoryItem]:
        for item in self.list():
            if item.id == item_id:
                return item
        return None

    def remove(self, item_id: str) -> bool:
        """
        Remove a transcription by id.

        Returns:
            True if an entry was removed
        """
        history = self.list()
        remaining = [item for item in history if item.id != item_id]
        if len(remaining) == len(history):
            return False

        self._write(remaining)
        return True

    def clear(self) -> None:
        """Delete the whole history."""
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            raise HistoryError(f"Failed to clear transcription history at {self.path}: {e}") from e
