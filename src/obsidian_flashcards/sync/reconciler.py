"""Decide which generated cards must be created, updated, or left alone."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from ..domain.entities.card import CardRecord, ChangeFlags
from ..domain.entities.remote_card import RemoteCardSnapshot
from ..error_codes import ErrorCode
from ..utils.diagnostics import Diagnostics
from ..utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class UpdateDelta:
    """A card whose stored version differs from the generated one."""

    generated: CardRecord
    remote: RemoteCardSnapshot
    changes: ChangeFlags


@dataclass
class ReconciliationResult:
    """Partition of the generated cards of one note."""

    create: list[CardRecord] = field(default_factory=list)
    update: list[UpdateDelta] = field(default_factory=list)
    ignore: list[CardRecord] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.create or self.update)


def _mark_for_recreation(card: CardRecord) -> None:
    if not card.is_new:
        card.id_backup = card.id
        card.id = None


def merge_preserved_tags(
    card: CardRecord,
    remote: RemoteCardSnapshot,
    tags_to_preserve: Iterable[str],
    diagnostics: Diagnostics,
) -> list[str]:
    """Fold remote-only preserved tags back into the generated card.

    Mutates ``card.tags`` and reports each merge once, so it must run at most
    once per card.

    Returns:
        The tags that were merged
    """
    preserve = set(tags_to_preserve)
    remote_only = [tag for tag in remote.tags if tag not in card.tags and tag in preserve]
    merged = card.add_tags(remote_only)
    if merged:
        diagnostics.info(
            "preserved_tags_merged",
            f"Kept remote tags {', '.join(merged)} on card {card.id}",
            card_id=card.id,
            tags=merged,
        )
    return merged


def reconcile(
    remote_snapshots: list[RemoteCardSnapshot] | None,
    generated: list[CardRecord],
    tags_to_preserve: Iterable[str] = (),
    diagnostics: Diagnostics | None = None,
) -> ReconciliationResult:
    """Partition generated cards against the remote store's snapshots.

    Cards whose id is unknown to the remote store stay in ``create``; their
    id moves to ``id_backup`` so the stale marker can be superseded when the
    new id is written back. Not re-entrant: preserved tags are merged into
    the generated cards in place.

    Args:
        remote_snapshots: Snapshots of the note's known cards, or None when
            the note carries no identifiers at all
        generated: Cards extracted from the note
        tags_to_preserve: Remote tags that survive even when the note drops them
        diagnostics: Sink for re-creation and tag merge reports

    Returns:
        ReconciliationResult with every generated card in exactly one list
    """
    if diagnostics is None:
        diagnostics = Diagnostics()
    result = ReconciliationResult()
    preserve = list(tags_to_preserve)

    if remote_snapshots is None:
        for card in generated:
            _mark_for_recreation(card)
            result.create.append(card)
        logger.debug("reconcile_without_remote", create=len(result.create))
        return result

    by_id = {snapshot.id: snapshot for snapshot in remote_snapshots}
    for card in generated:
        if card.is_new:
            result.create.append(card)
            continue

        remote = by_id.get(card.id)
        if remote is None:
            diagnostics.warning(
                "card_will_be_recreated",
                f"Card {card.id} no longer exists in the remote store and will be re-created",
                card_id=card.id,
                question=card.original_question,
                error_code=ErrorCode.REC_CARD_RECREATED.value,
            )
            _mark_for_recreation(card)
            result.create.append(card)
            continue

        changes = card.diff_against(remote)
        if changes is not None and changes.tags and preserve:
            if merge_preserved_tags(card, remote, preserve, diagnostics):
                changes = card.diff_against(remote)

        if changes is None:
            result.ignore.append(card)
        else:
            result.update.append(UpdateDelta(generated=card, remote=remote, changes=changes))

    logger.debug(
        "reconcile_completed",
        create=len(result.create),
        update=len(result.update),
        ignore=len(result.ignore),
    )
    return result
