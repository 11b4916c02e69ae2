"""Run the parse and reconcile pipeline over a batch of notes."""

from __future__ import annotations

import asyncio
import errno
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ..anki.update_actions import plan_update_actions
from ..config import Settings
from ..domain.entities.card import CardRecord, MediaRef
from ..domain.entities.remote_card import RemoteCardSnapshot
from ..exceptions import FlashcardsError
from ..obsidian.links import LinkResolver
from ..obsidian.parser import NoteParser
from ..utils.diagnostics import Diagnostics
from ..utils.logging import get_logger
from .media_plan import select_media_for_transfer
from .reconciler import ReconciliationResult, reconcile

logger = get_logger(__name__)

RemoteLookup = Callable[[list[int]], Awaitable[list[RemoteCardSnapshot]]]

DEFAULT_MAX_CONCURRENCY = 8


@dataclass
class NoteOutcome:
    """Outcome of processing one note.

    ``error`` is set, and ``result`` is None, when processing was aborted.
    """

    note_path: str
    cards: list[CardRecord] = field(default_factory=list)
    result: ReconciliationResult | None = None
    diagnostics: Diagnostics = field(default_factory=Diagnostics)
    update_actions: list[dict[str, Any]] = field(default_factory=list)
    media_to_transfer: list[tuple[CardRecord, MediaRef]] = field(default_factory=list)
    error: dict[str, Any] | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass
class BatchReport:
    """Outcomes of every note of a batch, in input order."""

    outcomes: list[NoteOutcome] = field(default_factory=list)

    @property
    def failed(self) -> list[NoteOutcome]:
        return [o for o in self.outcomes if not o.succeeded]

    @property
    def cards_total(self) -> int:
        return sum(len(o.cards) for o in self.outcomes)


async def process_note(
    text: str,
    note_path: str,
    settings: Settings,
    vault_name: str = "",
    link_resolver: LinkResolver | None = None,
    remote_lookup: RemoteLookup | None = None,
    diagnostics: Diagnostics | None = None,
) -> NoteOutcome:
    """Extract the cards of one note and reconcile them.

    Without a remote lookup, or when the note carries no identifiers, every
    card is scheduled for creation.

    Raises:
        FlashcardsError: If processing of this note must be aborted
    """
    diagnostics = diagnostics if diagnostics is not None else Diagnostics(note_path=note_path)
    parser = NoteParser(
        text,
        settings,
        note_path=note_path,
        vault_name=vault_name,
        link_resolver=link_resolver,
        diagnostics=diagnostics,
    )
    cards = await parser.generate_cards()

    snapshots: list[RemoteCardSnapshot] | None = None
    ids = parser.collect_external_ids()
    if ids and remote_lookup is not None:
        snapshots = await remote_lookup(ids)

    result = reconcile(snapshots, cards, settings.anki_tags_to_preserve, diagnostics)
    return NoteOutcome(
        note_path=note_path,
        cards=cards,
        result=result,
        diagnostics=diagnostics,
        update_actions=plan_update_actions(result.update),
        media_to_transfer=select_media_for_transfer(result, settings.transfer_media_files),
    )


async def _process_file(
    file_path: Path,
    relative_path: str,
    settings: Settings,
    semaphore: asyncio.Semaphore,
    **kwargs: Any,
) -> NoteOutcome:
    diagnostics = Diagnostics(note_path=relative_path)
    async with semaphore:
        try:
            text = await asyncio.to_thread(file_path.read_text, encoding="utf-8")
            return await process_note(
                text, relative_path, settings, diagnostics=diagnostics, **kwargs
            )
        except FlashcardsError as e:
            logger.error("note_processing_failed", note_path=relative_path, **e.to_dict())
            return NoteOutcome(note_path=relative_path, diagnostics=diagnostics, error=e.to_dict())
        except (UnicodeDecodeError, OSError) as e:
            if isinstance(e, OSError) and e.errno in (errno.EMFILE, errno.ENFILE):
                raise
            logger.warning("failed_to_read_note_content", note_path=relative_path, error=str(e))
            return NoteOutcome(
                note_path=relative_path,
                diagnostics=diagnostics,
                error={"message": str(e), "type": type(e).__name__},
            )


async def process_notes(
    notes: list[tuple[Path, str]],
    settings: Settings,
    vault_name: str = "",
    link_resolver: LinkResolver | None = None,
    remote_lookup: RemoteLookup | None = None,
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
) -> BatchReport:
    """Process notes concurrently; a failing note never stops the others.

    Args:
        notes: ``(absolute_path, vault_relative_path)`` tuples
        settings: Global settings
        vault_name: Vault name used in links
        link_resolver: Resolver for note links
        remote_lookup: Coroutine fetching snapshots for a list of ids
        max_concurrency: Notes processed at the same time

    Returns:
        BatchReport with one outcome per note
    """
    semaphore = asyncio.Semaphore(max(1, max_concurrency))
    outcomes = await asyncio.gather(
        *(
            _process_file(
                path,
                relative,
                settings,
                semaphore,
                vault_name=vault_name,
                link_resolver=link_resolver,
                remote_lookup=remote_lookup,
            )
            for path, relative in notes
        )
    )
    report = BatchReport(outcomes=list(outcomes))
    logger.info(
        "batch_processed",
        notes=len(report.outcomes),
        failed=len(report.failed),
        cards=report.cards_total,
    )
    return report
