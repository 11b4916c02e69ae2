"""Shared utilities for CLI commands."""

from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.markup import escape

from obsidian_flashcards.config import Settings, load_settings
from obsidian_flashcards.error_codes import ErrorCode
from obsidian_flashcards.exceptions import FlashcardsError, InvalidElementError
from obsidian_flashcards.obsidian.links import VaultLinkResolver
from obsidian_flashcards.obsidian.note_scanner import discover_notes
from obsidian_flashcards.utils.diagnostics import Diagnostics, DiagnosticLevel
from obsidian_flashcards.utils.logging import configure_logging, get_logger

# Shared console for all commands
console = Console()


def get_settings_and_logger(
    config_path: Path | None = None,
    log_level: str = "WARNING",
    log_file: Path | None = None,
) -> tuple[Settings, Any]:
    """Configure logging and load settings.

    Args:
        config_path: Optional path to a settings YAML file
        log_level: Console log level
        log_file: Optional JSON log file

    Returns:
        Tuple of (Settings, Logger)

    Raises:
        typer.Exit: If the settings cannot be loaded
    """
    configure_logging(log_level, log_file=log_file)
    logger = get_logger("cli")
    try:
        settings = load_settings(config_path)
    except FlashcardsError as e:
        print_error(e)
        raise typer.Exit(code=1) from e
    return settings, logger


def print_error(error: FlashcardsError) -> None:
    console.print(f"\n[bold red]Error:[/bold red] {escape(error.message)}", highlight=False)
    if error.suggestion:
        console.print(f"[dim]{escape(error.suggestion)}[/dim]", highlight=False)


def note_location(
    note: Path, vault: Path | None
) -> tuple[str, str, VaultLinkResolver | None]:
    """Vault-relative path, vault name, and link resolver for a note.

    Without a vault the note's folder is treated as the vault root.
    """
    if vault is None:
        return note.name, note.resolve().parent.name, None
    vault = vault.resolve()
    try:
        relative = note.resolve().relative_to(vault).as_posix()
    except ValueError as e:
        raise InvalidElementError(
            f"'{note}' is not inside the vault '{vault}'",
            suggestion="Pass the vault that contains the note with --vault",
            error_code=ErrorCode.STR_ELEMENT_INVALID.value,
        ) from e
    resolver = VaultLinkResolver(path for _, path in discover_notes(vault))
    return relative, vault.name, resolver


def print_diagnostics(diagnostics: Diagnostics) -> None:
    for entry in diagnostics:
        style = "yellow" if entry.level is DiagnosticLevel.WARNING else "cyan"
        label = f"[{style}]{entry.level.value}[/{style}]"
        console.print(f"{label} {escape(entry.message)}", highlight=False)
