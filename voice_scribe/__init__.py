"""Voice Scribe: transcribe recordings and format them with custom prompts."""

__version__ = "0.1.0"
