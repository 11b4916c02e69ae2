"""Human-readable report of what a sync would change for one note."""

from __future__ import annotations

import difflib
from dataclasses import dataclass, field
from pathlib import PurePosixPath

from ..domain.entities.card import CardRecord
from .reconciler import ReconciliationResult, UpdateDelta


@dataclass
class CardDelta:
    """Changes of one card, ready to be rendered.

    ``card_id`` is None for cards that will be created.
    """

    card_id: int | None
    change_types: list[str]
    diff_lines: list[str] = field(default_factory=list)


def _field_diff(key: str, before: str, after: str) -> list[str]:
    return list(
        difflib.unified_diff(
            before.splitlines(),
            after.splitlines(),
            fromfile=f"remote/{key}",
            tofile=f"note/{key}",
            lineterm="",
        )
    )


def _created_lines(card: CardRecord) -> list[str]:
    lines = [f"+ deck: {card.deck_name}", f"+ model: {card.model_name}"]
    lines.extend(f"+ {key}: {value}" for key, value in card.fields.items())
    if card.tags:
        lines.append(f"+ tags: {' '.join(card.tags)}")
    lines.extend(f"+ media: {ref.file_name}" for ref in card.media)
    return lines


def _updated_lines(delta: UpdateDelta) -> list[str]:
    card, remote, changes = delta.generated, delta.remote, delta.changes
    lines: list[str] = []
    if changes.fields:
        for key in dict.fromkeys([*remote.fields, *card.fields]):
            before = remote.field_value(key) or ""
            after = card.fields.get(key, "")
            if before != after:
                lines.extend(_field_diff(key, before, after))
    if changes.tags:
        lines.extend(f"- tag: {tag}" for tag in remote.tags if tag not in card.tags)
        lines.extend(f"+ tag: {tag}" for tag in card.tags if tag not in remote.tags)
    if changes.deck:
        lines.extend([f"- deck: {remote.deck_name}", f"+ deck: {card.deck_name}"])
    if changes.model:
        lines.extend([f"- model: {remote.model_name}", f"+ model: {card.model_name}"])
    if changes.media:
        lines.extend(f"+ media: {ref.file_name}" for ref in card.media)
    return lines


def build_card_deltas(result: ReconciliationResult) -> list[CardDelta]:
    """Card deltas for every created and updated card."""
    deltas = [
        CardDelta(card_id=None, change_types=["create"], diff_lines=_created_lines(card))
        for card in result.create
    ]
    deltas.extend(
        CardDelta(
            card_id=delta.generated.id,
            change_types=delta.changes.names(),
            diff_lines=_updated_lines(delta),
        )
        for delta in result.update
    )
    return deltas


def render_diff_report(note_path: str, deltas: list[CardDelta]) -> str:
    """Render deltas as Markdown with one ``diff`` block per card.

    Updated cards link to their identifier block in the note; an empty
    string is returned when nothing changes.
    """
    if not deltas:
        return ""
    note = PurePosixPath(note_path)
    link_target = note_path.removesuffix(".md")
    parts = [f"# [[{link_target}|{note.stem}]]\n\n"]
    for delta in deltas:
        if delta.card_id is None:
            heading = "create"
        else:
            heading = (
                f"[[{link_target}#^{delta.card_id}|{delta.card_id}]] - "
                f"{', '.join(delta.change_types)}"
            )
        body = "\n".join(delta.diff_lines)
        parts.append(f"{heading}\n```diff\n{body}\n```\n")
    return "\n".join(parts)
