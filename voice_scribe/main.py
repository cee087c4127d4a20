"""
Main CLI interface for Voice Scribe.

This module provides the Typer-based command-line interface with commands for:
- Audio transcription with optional formatting
- Formatting existing text
- Previewing custom prompt files
- Managing the local transcription history
"""

import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from .core.config import ConfigError, config, ensure_project_env, load_project_env
from .core.formatter import FORMAT_MODES, FormattingError, format_text
from .core.history import HistoryError, TranscriptionHistory, get_history_path
from .core.output import deliver_text
from .core.progress import reporter
from .core.prompts import PromptFileError, load_prompt_from_file
from .core.speech import SpeechError, SpeechProcessor

app = typer.Typer(
    name="voice-scribe",
    help="Voice Scribe CLI - Transcribe recordings and turn them into emails, Slack messages or reports",
    no_args_is_help=True,
)
history_app = typer.Typer(help="Manage the local transcription history", no_args_is_help=True)
app.add_typer(history_app, name="history")

console = Console()


def _setup(project_root: str, debug: bool) -> None:
    """Load the project env and configure logging; the CLI flag overrides .env for debug."""
    load_project_env(project_root)
    if debug:
        os.environ["VS_DEBUG"] = "1"

    level = logging.DEBUG if os.getenv("VS_DEBUG") == "1" else logging.WARNING
    logging.basicConfig(level=level, format="%(message)s", handlers=[RichHandler(console=console, show_path=False)], force=True)


def _check_mode(mode: str) -> None:
    if mode not in FORMAT_MODES:
        console.print(f"[bold red]Error:[/bold red] Unsupported mode: {mode}. Available: {', '.join(FORMAT_MODES)}")
        sys.exit(1)


def _deliver(text: str, output: Optional[str]) -> None:
    behavior = output or config.output_behavior
    copied = deliver_text(text, behavior, printer=lambda value: console.print(Panel(value, border_style="green")))
    if copied:
        console.print("[dim]📋 Text copied to clipboard[/dim]")


@app.command()
def transcribe(
    path: str = typer.Argument(..., help="Path to audio file"),
    mode: str = typer.Option("original", "--mode", "-m", help="Formatting mode (original|email|slack|report|translate)"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Output behavior (copy|print|copy_and_print)"),
    history: bool = typer.Option(True, "--history/--no-history", help="Save the transcript to the local history"),
    project_root: str = typer.Option(".", "--project-root", help="Project root directory for env, history and debug logs"),
    debug: bool = typer.Option(False, "--debug", help="Write request/response debug logs"),
):
    """
    Transcribe an audio file, optionally format it, then copy or print the result.

    Examples:
        voice-scribe transcribe memo.m4a
        voice-scribe transcribe memo.m4a --mode email --output print
    """
    _check_mode(mode)
    _setup(project_root, debug)

    try:
        with reporter.initialize(console, "Checking audio file…"):
            speech_processor = SpeechProcessor(project_root=project_root)

            validation = speech_processor.validate_audio_file(path)
            if not validation.is_valid:
                console.print(f"[bold red]Error:[/bold red] {validation.error.value}: {path}")
                sys.exit(1)

            audio_info = speech_processor.get_audio_info(path)
            console.print(f"[dim]Processing: {audio_info['name']} ({audio_info['size_mb']} MB)[/dim]")

            reporter.step("Transcribing audio…")
            result = speech_processor.transcribe_audio_detailed(path)
            transcript = result.text

            text = transcript
            if mode != "original":
                reporter.step(f"Formatting as {mode}…")
                text = format_text(transcript, mode, project_root=project_root)

            reporter.complete_step()

        console.print(f"[dim]Transcript: {len(transcript.split())} words[/dim]")
        _deliver(text, output)

    except (ConfigError, SpeechError, FormattingError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        sys.exit(1)
    except Exception as e:
        console.print(f"[bold red]Unexpected Error:[/bold red] {e}")
        sys.exit(1)

    if history:
        _save_to_history(transcript, project_root)


def _save_to_history(transcript: str, project_root: str) -> None:
    """Store a delivered transcript; a failure is reported but does not fail the command."""
    try:
        TranscriptionHistory(path=get_history_path(project_root)).save(transcript)
    except (ConfigError, HistoryError) as e:
        console.print(f"[yellow]Warning:[/yellow] Transcript was not saved to history: {e}")


@app.command("format")
def format_command(
    text: Optional[str] = typer.Option(None, "--text", "-t", help="Text to format"),
    file: Optional[str] = typer.Option(None, "--file", help="Path to file containing the text"),
    mode: str = typer.Option("slack", "--mode", "-m", help="Formatting mode (original|email|slack|report|translate)"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Output behavior (copy|print|copy_and_print)"),
    project_root: str = typer.Option(".", "--project-root", help="Project root directory for env and debug logs"),
    debug: bool = typer.Option(False, "--debug", help="Write request/response debug logs"),
):
    """
    Format existing text with one of the formatting modes.

    Examples:
        voice-scribe format --text "hey so the deploy is moved to friday" --mode slack
        voice-scribe format --file notes.txt --mode report
    """
    if text and file:
        console.print("[bold red]Error:[/bold red] Cannot specify both --text and --file options")
        sys.exit(1)

    if not text and not file:
        console.print("[bold red]Error:[/bold red] Must specify either --text or --file option")
        sys.exit(1)

    _check_mode(mode)
    _setup(project_root, debug)

    if file:
        file_path = Path(file)
        if not file_path.exists():
            console.print(f"[bold red]Error:[/bold red] File not found: {file}")
            sys.exit(1)

        try:
            text = file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            console.print(f"[bold red]Error:[/bold red] Failed to read file '{file}': {e}")
            sys.exit(1)

    assert text is not None, "Text should not be None after validation"

    try:
        with reporter.initialize(console, f"Formatting as {mode}…"):
            formatted = format_text(text, mode, project_root=project_root)
            reporter.complete_step()

        _deliver(formatted, output)

    except (ConfigError, FormattingError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        sys.exit(1)


@app.command("extract-prompt")
def extract_prompt(
    file: str = typer.Argument(..., help="Prompt file to parse"),
):
    """
    Show the prompt that would be used from a custom prompt file.

    Examples:
        voice-scribe extract-prompt ~/prompts/email.md
    """
    try:
        prompt = load_prompt_from_file(file)
    except PromptFileError as e:
        console.print(f"[bold red]Error:[/bold red] {e}: {file}")
        sys.exit(1)

    if not prompt:
        console.print("[yellow]Prompt file is empty[/yellow]")
        return

    typer.echo(prompt)


@app.command()
def init(
    project_root: str = typer.Option(".", "--project-root", help="Project root directory"),
    from_env: Optional[str] = typer.Option(None, "--from-env", help="Existing .env file to copy"),
    overwrite: bool = typer.Option(False, "--overwrite", help="Replace an existing project env file"),
):
    """
    Create the project-scoped env file under .voice_scribe/.
    """
    target = ensure_project_env(project_root, source_env=from_env, overwrite=overwrite)
    console.print(f"[bold green]Project env:[/bold green] {target}")


@history_app.command("list")
def history_list(
    max_results: int = typer.Option(20, "--max", "-n", help="Maximum entries to show"),
    project_root: str = typer.Option(".", "--project-root", help="Project root directory"),
):
    """List saved transcriptions, newest first."""
    load_project_env(project_root)
    items = TranscriptionHistory(path=get_history_path(project_root)).list()

    if not items:
        console.print("[yellow]No transcriptions in history[/yellow]")
        return

    table = Table(title="Transcription History")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Recorded", style="white")
    table.add_column("Words", justify="right")
    table.add_column("Text", style="white")

    for item in items[:max_results]:
        recorded = datetime.fromtimestamp(item.timestamp / 1000).strftime("%Y-%m-%d %H:%M")
        preview = item.original_text[:80] + "..." if len(item.original_text) > 80 else item.original_text
        table.add_row(item.id, recorded, str(item.word_count), preview)

    console.print(table)

    if len(items) > max_results:
        console.print(f"[dim]... and {len(items) - max_results} more entries[/dim]")


@history_app.command("remove")
def history_remove(
    item_id: str = typer.Argument(..., help="ID of the entry to remove"),
    project_root: str = typer.Option(".", "--project-root", help="Project root directory"),
):
    """Remove one transcription from the history."""
    load_project_env(project_root)
    try:
        removed = TranscriptionHistory(path=get_history_path(project_root)).remove(item_id)
    except HistoryError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        sys.exit(1)

    if not removed:
        console.print(f"[bold red]Error:[/bold red] No history entry with id {item_id}")
        sys.exit(1)

    console.print(f"[green]✓[/green] Removed {item_id}")


@history_app.command("clear")
def history_clear(
    project_root: str = typer.Option(".", "--project-root", help="Project root directory"),
):
    """Delete all saved transcriptions."""
    load_project_env(project_root)
    try:
        TranscriptionHistory(path=get_history_path(project_root)).clear()
    except HistoryError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        sys.exit(1)

    console.print("[green]✓[/green] History cleared")


if __name__ == "__main__":
    app()
