"""
Debug logging module for transcription and formatting requests.

When VS_DEBUG=1, every request sent to the speech and formatting APIs and every
response received is written as a JSON file into a per-session folder under
{project_root}/.voice_scribe/debug/.
"""

import json
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from .config import METADATA_DIRNAME


def is_debug_enabled() -> bool:
    """
    Check if debug logging is enabled via environment variable.

    Returns:
        True if VS_DEBUG=1 is set
    """
    return os.getenv("VS_DEBUG", "0") == "1"


class DebugLogger:
    """
    Writes request/response records for a single CLI session.

    Logs are stored in {project_root}/.voice_scribe/debug/session_<timestamp>/.
    """

    def __init__(self, project_root: str = ".", enabled: Optional[bool] = None):
        """
        Initialize debug logger.

        Args:
            project_root: Project root directory for log storage
            enabled: Override debug enable flag, uses VS_DEBUG env var if None
        """
        self.project_root = project_root
        self.enabled = enabled if enabled is not None else is_debug_enabled()
        self.session_id = datetime.now().strftime("%Y%m%d_%H%M%S")

        if self.enabled:
            self._setup_log_directory()

    def _setup_log_directory(self) -> None:
        self.log_dir = Path(self.project_root) / METADATA_DIRNAME / "debug"
        self.session_dir = self.log_dir / f"session_{self.session_id}"
        self.session_dir.mkdir(parents=True, exist_ok=True)

    def is_enabled(self) -> bool:
        """Check if debug logging is enabled."""
        return self.enabled

    def _write(self, step: str, record_type: str, payload: Dict[str, Any]) -> Optional[Path]:
        if not self.enabled:
            return None

        timestamp = datetime.now().isoformat()
        log_data = {"timestamp": timestamp, "session_id": self.session_id, "step": step, "type": record_type}
        log_data.update(payload)

        filename = f"{step}_{timestamp.replace(':', '-').replace('.', '_')}.json"
        log_file = self.session_dir / filename

        with open(log_file, "w", encoding="utf-8") as f:
            json.dump(log_data, f, indent=2, ensure_ascii=False, default=str)
        return log_file

    def log_transcription_request(self, audio_path: str, params: Dict[str, Any]) -> Optional[Path]:
        """
        Log the parameters of a transcription request.

        Args:
            audio_path: Audio file being uploaded
            params: Request parameters other than the file handle
        """
        return self._write("transcription_request", "request", {"audio_path": audio_path, "params": params})

    def log_transcription_response(self, text: str) -> Optional[Path]:
        return self._write("transcription_response", "response", {"text": text, "text_length": len(text)})

    def log_formatting_request(self, mode: str, content: str) -> Optional[Path]:
        """
        Log a formatting request.

        Args:
            mode: Formatting mode
            content: Full user message sent to the model
        """
        return self._write("formatting_request", "request", {"mode": mode, "content": content})

    def log_formatting_response(self, response_content: str, original_text: str) -> Optional[Path]:
        """
        Log a formatting response next to the text it was produced from.

        Args:
            response_content: Raw response from the model
            original_text: Original transcript for comparison
        """
        return self._write(
            "formatting_response",
            "response",
            {
                "response_content": response_content,
                "original_text": original_text,
                "response_length": len(response_content),
                "original_length": len(original_text),
            },
        )


# Global debug logger instance
_debug_logger: Optional[DebugLogger] = None


def get_debug_logger(project_root: str = ".") -> DebugLogger:
    """
    Get or create global debug logger instance.

    Args:
        project_root: Project root directory

    Returns:
        DebugLogger instance
    """
    global _debug_logger
    if _debug_logger is None or _debug_logger.project_root != project_root:
        _debug_logger = DebugLogger(project_root)
    return _debug_logger
