"""Translate update deltas into AnkiConnect actions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..error_codes import ErrorCode
from ..exceptions import ReconciliationIntegrityError
from ..sync.reconciler import UpdateDelta
from ..utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class UpdateStats:
    """Counts reported to the user before the actions are sent."""

    updates: int = 0
    media_updates: int = 0
    moves: int = 0
    model_changes: int = 0


def _integrity_error(
    message: str, delta: UpdateDelta, pending: dict[str, bool]
) -> ReconciliationIntegrityError:
    return ReconciliationIntegrityError(
        message,
        suggestion="This is a bug in change detection; please report the note that triggered it",
        error_code=(
            ErrorCode.REC_INTEGRITY_NO_CHANGES.value
            if not any(pending.values())
            else ErrorCode.REC_INTEGRITY_UNHANDLED.value
        ),
        context={
            "card_id": delta.generated.id,
            "flags": [name for name, value in pending.items() if value],
        },
    )


def _note(
    delta: UpdateDelta, *, with_model: bool = False, with_media: bool = True
) -> dict[str, Any]:
    card = delta.generated
    note: dict[str, Any] = {"id": card.id, "fields": dict(card.fields), "tags": list(card.tags)}
    if with_model:
        note["modelName"] = card.model_name
    if with_media:
        note.update(card.media_payloads())
    return note


def actions_for_delta(
    delta: UpdateDelta, stats: UpdateStats | None = None
) -> list[dict[str, Any]]:
    """Actions needed to bring one remote note in line with its generated card.

    Args:
        delta: The update delta
        stats: Counters to update, if any

    Returns:
        AnkiConnect action dicts in execution order

    Raises:
        ReconciliationIntegrityError: If the delta has no change flags, or a
            flag is left without an action
    """
    pending = {
        "fields": delta.changes.fields,
        "tags": delta.changes.tags,
        "deck": delta.changes.deck,
        "media": delta.changes.media,
        "model": delta.changes.model,
    }
    if not any(pending.values()):
        raise _integrity_error("Update delta carries no changes", delta, pending)

    if stats is not None:
        stats.updates += int(pending["fields"] or pending["tags"])
        stats.moves += int(pending["deck"])
        stats.media_updates += int(pending["media"])
        stats.model_changes += int(pending["model"])

    actions: list[dict[str, Any]] = []
    if pending["model"]:
        pending["model"] = pending["fields"] = pending["tags"] = False
        actions.append(
            {
                "action": "updateNoteModel",
                "params": {"note": _note(delta, with_model=True, with_media=False)},
            }
        )

    if pending["media"] and not pending["fields"]:
        # AnkiConnect only stores picture/audio/video objects alongside fields
        pending["media"] = False
        note = {"id": delta.generated.id, "fields": dict(delta.generated.fields)}
        note.update(delta.generated.media_payloads())
        actions.append({"action": "updateNoteFields", "params": {"note": note}})

    if pending["fields"] or pending["tags"]:
        pending["fields"] = pending["tags"] = pending["media"] = False
        actions.append({"action": "updateNote", "params": {"note": _note(delta)}})

    if pending["deck"]:
        pending["deck"] = False
        actions.append(
            {
                "action": "changeDeck",
                "params": {"cards": list(delta.remote.cards), "deck": delta.generated.deck_name},
            }
        )

    if any(pending.values()):
        raise _integrity_error("Update delta has changes left unhandled", delta, pending)
    return actions


def plan_update_actions(deltas: list[UpdateDelta]) -> list[dict[str, Any]]:
    """AnkiConnect actions for all update deltas of a reconciliation.

    The result is meant to be sent as one ``multi`` request.
    """
    stats = UpdateStats()
    actions: list[dict[str, Any]] = []
    for delta in deltas:
        actions.extend(actions_for_delta(delta, stats))

    if actions:
        logger.info(
            "update_actions_planned",
            actions=len(actions),
            updates=stats.updates,
            media_updates=stats.media_updates,
            moves=stats.moves,
            model_changes=stats.model_changes,
        )
    return actions
