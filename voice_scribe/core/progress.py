"""
Global progress reporting module for Voice Scribe.

This module provides a centralized progress reporter that the CLI uses to show
status updates while uploading, transcribing and formatting.
"""

from typing import List, Optional

from rich.console import Console
from rich.status import Status


class ProgressReporter:
    """
    Global progress reporter for status updates with step completion tracking.

    Completed steps are printed with a checkmark; the current step is shown
    in a rich status spinner.
    """

    def __init__(self):
        self._status: Optional[Status] = None
        self._console: Optional[Console] = None
        self._completed_steps: List[str] = []
        self._current_step: Optional[str] = None

    def initialize(self, console: Console, initial_message: str = "Starting...") -> Status:
        """
        Initialize the reporter with a console and create a status object.

        Args:
            console: Rich console instance
            initial_message: Initial status message

        Returns:
            Status object that should be used in a context manager
        """
        self._console = console
        self._status = console.status(f"[dim]{initial_message}[/dim]")
        self._completed_steps = []
        self._current_step = initial_message
        return self._status

    def _mark_completed(self, message: str) -> None:
        self._completed_steps.append(message)
        if self._console is not None:
            self._console.print(f"[green]✓[/green] [dim]{message}[/dim]")

    def step(self, message: str) -> None:
        """
        Update the current progress step and mark previous step as completed.

        Args:
            message: Progress step message to display
        """
        if self._status is None:
            return

        if self._current_step is not None:
            self._mark_completed(self._current_step)

        self._current_step = message
        self._status.update(f"[dim]{message}[/dim]")

    def complete_step(self, message: Optional[str] = None) -> None:
        """
        Mark the current step as completed without starting a new one.

        Args:
            message: Optional custom completion message
        """
        if self._current_step is not None:
            self._mark_completed(message or self._current_step)
            self._current_step = None


# Global reporter instance
reporter = ProgressReporter()
