"""
Core functionality for Voice Scribe.

This package contains the main logic for:
- Custom prompt file parsing
- Speech-to-text conversion
- Transcript formatting with a chat-completion model
- Local transcription history
- Configuration management
"""
