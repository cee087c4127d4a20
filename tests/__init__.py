"""
Test suite for Voice Scribe.

This package contains tests for all core functionality including:
- Custom prompt file parsing and loading
- Type definitions and configuration
- Speech-to-text processing with dummy clients
- Transcript formatting and reasoning-model fallback
- Local transcription history
- Command-line interface
"""
