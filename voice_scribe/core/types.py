"""
Type definitions for Voice Scribe.

This module defines the data structures exchanged between transcription,
formatting and history storage, plus the user-facing error messages.
"""

from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

WhisperModel = Literal["whisper-1", "gpt-4o-transcribe"]

ResponseFormat = Literal["text", "verbose_json", "srt", "vtt"]

FormatMode = Literal["email", "slack", "report", "translate", "original"]

OutputBehavior = Literal["copy", "print", "copy_and_print"]


class ErrorTypes(str, Enum):
    """User-facing error messages."""

    AUDIO_TOO_SHORT = "Audio file is too short"
    AUDIO_NOT_FOUND = "Audio file not found"
    AUDIO_INVALID = "Invalid audio file"
    AUDIO_TOO_LARGE = "Audio file exceeds 25MB limit"
    TRANSCRIPTION_FAILED = "Transcription failed"
    API_KEY_MISSING = "OpenAI API key is required"
    OPENROUTER_API_KEY_MISSING = "OpenRouter API key is required"
    PROMPT_FILE_NOT_FOUND = "Custom prompt file not found"
    PROMPT_FILE_READ_ERROR = "Failed to read custom prompt file"


class TranscriptSegment(BaseModel):
    """A timed piece of a transcript."""

    start: float = Field(..., description="Segment start in seconds")
    end: float = Field(..., description="Segment end in seconds")
    text: str = Field(..., description="Segment text")


class TranscriptionMetadata(BaseModel):
    """Optional details returned alongside a transcript."""

    language: Optional[str] = Field(default=None, description="Detected or requested language code")
    duration: Optional[float] = Field(default=None, description="Audio duration in seconds")
    segments: Optional[List[TranscriptSegment]] = Field(default=None, description="Timed segments")


class DetailedTranscriptionResult(BaseModel):
    """
    Result of automatic speech recognition.
    """

    text: str = Field(..., description="Transcribed text")
    format: ResponseFormat = Field(default="text", description="Response format requested from the API")
    metadata: Optional[TranscriptionMetadata] = Field(default=None, description="Optional transcript details")


class AudioValidationResult(BaseModel):
    """Outcome of checking an audio file before upload."""

    is_valid: bool = Field(..., description="Whether the file can be sent for transcription")
    error: Optional[ErrorTypes] = Field(default=None, description="Reason the file was rejected")


class TranscriptionHistoryItem(BaseModel):
    """
    A saved transcription.

    Attributes:
        id: Unique identifier of the entry
        original_text: Transcript as returned by the speech recognizer
        timestamp: Creation time in milliseconds since the epoch
        word_count: Number of whitespace-separated words
    """

    id: str = Field(..., description="Unique identifier")
    original_text: str = Field(..., description="Transcribed text")
    timestamp: int = Field(..., description="Creation time (ms since epoch)")
    word_count: int = Field(default=0, ge=0, description="Number of words")
