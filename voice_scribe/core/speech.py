"""
Speech-to-text functionality using OpenAI Whisper.

This module validates audio files and sends them to the transcription API,
optionally passing a user-supplied context prompt to improve recognition of
names and domain terms.
"""

from pathlib import Path
from typing import Any, Dict

from .config import config, get_client
from .debug_log import get_debug_logger
from .prompts import load_transcription_context
from .timing import timer
from .types import AudioValidationResult, DetailedTranscriptionResult, ErrorTypes, TranscriptionMetadata


class SpeechError(Exception):
    """Raised when speech processing fails."""

    pass


SUPPORTED_AUDIO_EXTENSIONS = {".mp3", ".mp4", ".mpeg", ".mpga", ".m4a", ".wav", ".webm", ".ogg", ".flac"}

# Whisper rejects uploads above 25MB
MAX_AUDIO_BYTES = 25 * 1024 * 1024

# Anything smaller holds little more than a container header
MIN_AUDIO_BYTES = 1024


class SpeechProcessor:
    """
    Handles speech-to-text conversion using OpenAI Whisper.

    The transcript is requested as plain text. Language is either fixed by
    configuration or detected by the API when set to 'auto'.
    """

    def __init__(self, client: Any = None, project_root: str = "."):
        self.client = client if client is not None else get_client()
        self.model = config.asr_model
        self.debug_logger = get_debug_logger(project_root)

    def validate_audio_format(self, path: str) -> bool:
        """
        Validate if the audio file format is supported.

        Args:
            path: Path to the audio file

        Returns:
            True if format is supported, False otherwise
        """
        return Path(path).suffix.lower() in SUPPORTED_AUDIO_EXTENSIONS

    def validate_audio_file(self, path: str) -> AudioValidationResult:
        """
        Check that an audio file exists, has a supported format and an acceptable size.

        Args:
            path: Path to the audio file

        Returns:
            AudioValidationResult describing the first problem found, if any
        """
        audio_path = Path(path)

        if not audio_path.exists():
            return AudioValidationResult(is_valid=False, error=ErrorTypes.AUDIO_NOT_FOUND)

        if not audio_path.is_file() or not self.validate_audio_format(path):
            return AudioValidationResult(is_valid=False, error=ErrorTypes.AUDIO_INVALID)

        size = audio_path.stat().st_size
        if size > MAX_AUDIO_BYTES:
            return AudioValidationResult(is_valid=False, error=ErrorTypes.AUDIO_TOO_LARGE)
        if size < MIN_AUDIO_BYTES:
            return AudioValidationResult(is_valid=False, error=ErrorTypes.AUDIO_TOO_SHORT)

        return AudioValidationResult(is_valid=True)

    def _build_request_params(self) -> Dict[str, Any]:
        language = config.asr_language
        return {
            "model": self.model,
            "language": None if language == "auto" else language,
            "prompt": load_transcription_context(config.prompt_file),
            "response_format": "text",
            "temperature": config.asr_temperature,
        }

    @timer
    def transcribe_audio_detailed(self, path: str) -> DetailedTranscriptionResult:
        """
        Transcribe an audio file to text.

        Args:
            path: Path to the audio file

        Returns:
            DetailedTranscriptionResult with the trimmed transcript

        Raises:
            SpeechError: If the file is rejected or the API call fails
        """
        validation = self.validate_audio_file(path)
        if not validation.is_valid:
            raise SpeechError(f"{validation.error.value}: {path}")

        params = self._build_request_params()
        self.debug_logger.log_transcription_request(path, params)

        # Unset optional parameters are omitted from the request
        request = {key: value for key, value in params.items() if value is not None}

        try:
            with open(path, "rb") as audio_file:
                response = self.client.audio.transcriptions.create(file=audio_file, **request)
        except Exception as e:
            raise SpeechError(f"{ErrorTypes.TRANSCRIPTION_FAILED.value}: {e}") from e

        # response_format="text" yields a plain string; tolerate object responses too
        if isinstance(response, str):
            text = response.strip()
        elif hasattr(response, "text"):
            text = response.text.strip()
        else:
            raise SpeechError(f"{ErrorTypes.TRANSCRIPTION_FAILED.value}: unexpected response format from API")

        self.debug_logger.log_transcription_response(text)

        metadata = TranscriptionMetadata(language=params["language"]) if params["language"] else None
        return DetailedTranscriptionResult(text=text, format="text", metadata=metadata)

    def get_audio_info(self, path: str) -> dict:
        """
        Get basic information about the audio file.

        Args:
            path: Path to the audio file

        Returns:
            Dictionary with file information
        """
        audio_path = Path(path)

        if not audio_path.exists():
            raise FileNotFoundError(f"{ErrorTypes.AUDIO_NOT_FOUND.value}: {path}")

        stat = audio_path.stat()

        return {
            "path": str(audio_path.absolute()),
            "name": audio_path.name,
            "size_bytes": stat.st_size,
            "size_mb": round(stat.st_size / 1024 / 1024, 2),
            "extension": audio_path.suffix.lower(),
            "supported": self.validate_audio_format(path),
        }


def count_words(text: str) -> int:
    """Count whitespace-separated words."""
    return len(text.split())


# Convenience function for simple use cases
def transcribe_audio(path: str, project_root: str = ".") -> str:
    """
    Convenience function to transcribe an audio file.

    Args:
        path: Path to the audio file
        project_root: Project root used for debug logs

    Returns:
        Transcript text

    Raises:
        SpeechError: If validation or transcription fails
    """
    processor = SpeechProcessor(project_root=project_root)
    return processor.transcribe_audio_detailed(path).text
