"""Commands that inspect a single note."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated

import typer
from pydantic import ValidationError
from rich.markup import escape
from rich.table import Table

from obsidian_flashcards.domain.entities.remote_card import RemoteCardSnapshot
from obsidian_flashcards.exceptions import FlashcardsError
from obsidian_flashcards.obsidian.parser import NoteParser
from obsidian_flashcards.sync.diff_report import build_card_deltas, render_diff_report
from obsidian_flashcards.sync.reconciler import reconcile
from obsidian_flashcards.sync.rewriter import collect_external_ids
from obsidian_flashcards.utils.logging import configure_logging

from .shared import (
    console,
    get_settings_and_logger,
    note_location,
    print_diagnostics,
    print_error,
)

NoteArgument = Annotated[
    Path,
    typer.Argument(help="Markdown note to inspect", exists=True, dir_okay=False),
]
ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", help="Path to a settings YAML file", exists=True),
]
VaultOption = Annotated[
    Path | None,
    typer.Option("--vault", help="Vault root used for paths and links", file_okay=False),
]
LogLevelOption = Annotated[
    str,
    typer.Option("--log-level", help="Log level (DEBUG, INFO, WARNING, ERROR)"),
]


def _load_snapshots(path: Path) -> list[RemoteCardSnapshot]:
    """Read a JSON list of ``notesInfo``-shaped objects."""
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(raw, list):
            raise TypeError("expected a JSON list")
        return [RemoteCardSnapshot.model_validate(item) for item in raw]
    except (OSError, ValueError, TypeError) as e:
        # pydantic's ValidationError is a ValueError
        kind = "invalid snapshot" if isinstance(e, ValidationError) else "unreadable file"
        console.print(f"\n[bold red]Error:[/bold red] {kind}: {path}")
        raise typer.Exit(code=1) from e


def _parse_note(
    note: Path, vault: Path | None, config_path: Path | None, log_level: str
) -> NoteParser:
    settings, logger = get_settings_and_logger(config_path, log_level)
    note_path, vault_name, resolver = note_location(note, vault)
    logger.debug("note_parse_started", note_path=note_path, vault=vault_name)
    return NoteParser(
        note.read_text(encoding="utf-8"),
        settings,
        note_path=note_path,
        vault_name=vault_name,
        link_resolver=resolver,
    )


def register(app: typer.Typer) -> None:
    """Register note inspection commands on the given Typer app."""

    @app.command(name="cards")
    def list_cards(
        note: NoteArgument,
        config_path: ConfigOption = None,
        vault: VaultOption = None,
        log_level: LogLevelOption = "WARNING",
    ) -> None:
        """List the flashcards found in a note."""
        try:
            parser = _parse_note(note, vault, config_path, log_level)
            cards = parser.generate_cards_sync()
        except FlashcardsError as e:
            print_error(e)
            raise typer.Exit(code=1) from e

        table = Table(title=f"Cards in {parser.note_config.note_path}")
        table.add_column("ID", style="cyan")
        table.add_column("Model")
        table.add_column("Deck", style="green")
        table.add_column("Question")
        table.add_column("Tags", style="magenta")
        for card in cards:
            table.add_row(
                str(card.id) if card.id is not None else "new",
                card.model_name,
                escape(card.deck_name),
                escape(card.original_question),
                " ".join(card.tags),
            )
        console.print(table)
        console.print(f"[bold]{len(cards)}[/bold] card(s)")
        print_diagnostics(parser.diagnostics)

    @app.command(name="ids")
    def list_ids(
        note: NoteArgument,
        log_level: LogLevelOption = "WARNING",
    ) -> None:
        """Print the card identifiers written in a note."""
        configure_logging(log_level)
        for card_id in collect_external_ids(note.read_text(encoding="utf-8")):
            console.print(str(card_id), highlight=False)

    @app.command(name="diff")
    def diff_note(
        note: NoteArgument,
        remote: Annotated[
            Path | None,
            typer.Option(
                "--remote",
                help="JSON dump of the stored notes (AnkiConnect notesInfo)",
                exists=True,
                dir_okay=False,
            ),
        ] = None,
        config_path: ConfigOption = None,
        vault: VaultOption = None,
        log_level: LogLevelOption = "WARNING",
    ) -> None:
        """Show what a sync of the note would create or update."""
        snapshots = _load_snapshots(remote) if remote is not None else None
        try:
            parser = _parse_note(note, vault, config_path, log_level)
            cards = parser.generate_cards_sync()
            if not parser.collect_external_ids():
                snapshots = None
            result = reconcile(
                snapshots,
                cards,
                parser.note_config.settings.anki_tags_to_preserve,
                parser.diagnostics,
            )
        except FlashcardsError as e:
            print_error(e)
            raise typer.Exit(code=1) from e

        report = render_diff_report(parser.note_config.note_path, build_card_deltas(result))
        if report:
            console.print(report, markup=False, highlight=False)
        else:
            console.print("[green]No changes[/green]")
        console.print(
            f"create: {len(result.create)}  update: {len(result.update)}  "
            f"ignore: {len(result.ignore)}",
            highlight=False,
        )
        print_diagnostics(parser.diagnostics)
