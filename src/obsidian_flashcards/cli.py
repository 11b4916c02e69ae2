"""Command-line interface for inspecting notes."""

from __future__ import annotations

import typer

from .cli_commands import note_commands

app = typer.Typer(
    name="obsidian-flashcards",
    help="Extract flashcards from Obsidian notes and compare them with Anki.",
    no_args_is_help=True,
)

note_commands.register(app)


def cli() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    cli()
