"""Write card identifier markers back into note text."""

from __future__ import annotations

from ..domain.entities.card import CardRecord, CardStyle
from ..obsidian.patterns import CARD_SEPARATOR, ID_MARKER_LENGTH, ID_MARKER_RE
from ..utils.logging import get_logger

logger = get_logger(__name__)

MAX_WHITESPACE_LOOKBACK = 2
_WHITESPACE = " \t\n"


def insertion_point(text: str, card: CardRecord) -> int:
    """Offset at which a card's identifier marker is inserted.

    Starting from ``end_offset``, a stale marker for ``id_backup`` is skipped
    together with the whitespace before it; otherwise a trailing ``%%%%``
    separator is skipped. Then up to two whitespace characters are skipped.
    The result never moves before ``initial_offset``.
    """
    floor = card.initial_offset
    position = min(card.end_offset, len(text))

    stale = f"^{card.id_backup}" if card.id_backup is not None else None
    if stale and text[max(floor, position - ID_MARKER_LENGTH) : position] == stale:
        position -= ID_MARKER_LENGTH
        if position > floor and text[position - 1] in _WHITESPACE:
            position -= 1
    elif text[max(floor, position - len(CARD_SEPARATOR)) : position] == CARD_SEPARATOR:
        position -= len(CARD_SEPARATOR)

    for _ in range(MAX_WHITESPACE_LOOKBACK):
        if position > floor and text[position - 1] in _WHITESPACE:
            position -= 1
        else:
            break
    return position


def apply_identifier_insertions(text: str, created_cards: list[CardRecord]) -> str:
    """Insert ``^id`` markers for freshly created cards.

    Cards are applied in descending ``end_offset`` order so that every
    insertion happens after all offsets still to be processed.

    Args:
        text: Note text the cards were extracted from
        created_cards: Cards that now carry the id assigned by the remote store

    Returns:
        The rewritten note text

    Raises:
        MissingCardIdError: If a card has no id
    """
    for card in sorted(created_cards, key=lambda c: c.end_offset, reverse=True):
        marker = card.format_id_marker()
        prefix = "\n" if card.style is CardStyle.BLOCK else " "
        position = insertion_point(text, card)
        text = f"{text[:position]}{prefix}{marker}{text[position:]}"
        logger.debug(
            "identifier_inserted",
            card_id=card.id,
            superseded=card.id_backup,
            position=position,
        )
    return text


def collect_external_ids(text: str) -> list[int]:
    """Identifiers of all markers in the text, in document order, without duplicates."""
    seen: dict[int, None] = {}
    for match in ID_MARKER_RE.finditer(text):
        seen.setdefault(int(match.group("id")), None)
    return list(seen)
