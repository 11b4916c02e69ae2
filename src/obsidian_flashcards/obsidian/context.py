"""Heading context of a card: ancestor chain, deck, and inherited tags."""

from __future__ import annotations

import bisect
from dataclasses import dataclass, field

from ..config import NoteConfig
from ..error_codes import ErrorCode
from ..utils.diagnostics import Diagnostics
from .headings import HeadingEntry
from .patterns import DECK_NAME_RE
from .scoped_settings import IgnoreTarget, ScopedSettings, ScopeTarget

DECK_SEPARATOR = "::"
DECK_ASCEND = "<<"


@dataclass(frozen=True)
class HeadingContext:
    """Context a card inherits from its ancestor headings.

    Attributes:
        ancestor_texts: Display texts of the included ancestors, outermost first
        deck_name: Resolved deck (the note's deck when nothing overrides it)
        context_tags: Tags inherited from ancestors, deduplicated
        ancestors: Headings of the breadcrumb chain, outermost first
    """

    ancestor_texts: list[str] = field(default_factory=list)
    deck_name: str = ""
    context_tags: list[str] = field(default_factory=list)
    ancestors: list[HeadingEntry] = field(default_factory=list)


def apply_deck_modification(
    deck: str, modification: str, diagnostics: Diagnostics
) -> str | None:
    """Apply a deck setting to an accumulated deck path.

    ``::Sub`` descends into ``Sub``, ``<<`` ascends one level (``<<::Other``
    selects a sibling), and a value starting with neither replaces the deck.

    Args:
        deck: Accumulated deck path, segments joined by ``::``
        modification: Deck setting of a heading
        diagnostics: Sink for underflow and empty segment warnings

    Returns:
        The new deck path, or None when the modification is invalid
    """
    if not modification.startswith((DECK_SEPARATOR, DECK_ASCEND)):
        if not DECK_NAME_RE.match(modification):
            diagnostics.warning(
                "deck_modification_invalid",
                f"'{modification}' is not a valid deck name and was ignored",
                deck=deck,
                modification=modification,
                error_code=ErrorCode.PAR_DECK_MODIFICATION_INVALID.value,
            )
            return None
        return modification

    segments = deck.split(DECK_SEPARATOR) if deck else []
    for index, raw_fragment in enumerate(modification.split(DECK_SEPARATOR)):
        fragment = raw_fragment.strip()
        if fragment == "":
            if index == 0:
                continue
            diagnostics.warning(
                "deck_modification_invalid",
                f"Deck modification '{modification}' contains an empty segment",
                deck=deck,
                modification=modification,
                error_code=ErrorCode.PAR_DECK_MODIFICATION_INVALID.value,
            )
            return None
        if fragment == DECK_ASCEND:
            if not segments:
                break
            segments.pop()
        else:
            segments.append(fragment)
    else:
        if segments:
            return DECK_SEPARATOR.join(segments)

    diagnostics.warning(
        "deck_modification_invalid",
        f"Deck modification '{modification}' ascends above the top-level deck",
        deck=deck,
        modification=modification,
        error_code=ErrorCode.PAR_DECK_MODIFICATION_INVALID.value,
    )
    return None


def _includes_tags(settings: ScopedSettings | None, note_config: NoteConfig) -> bool:
    if settings is not None:
        if settings.ignore is IgnoreTarget.ALL:
            return False
        if settings.apply in (ScopeTarget.ALL, ScopeTarget.TAGS):
            return True
        if settings.ignore is IgnoreTarget.PREVIOUS_TAGS:
            return True
        if settings.ignore is IgnoreTarget.TAGS:
            return False
    return note_config.context_mode.includes_tags


def _includes_heading(settings: ScopedSettings | None, note_config: NoteConfig) -> bool:
    if settings is not None:
        if settings.ignore is IgnoreTarget.ALL:
            return False
        if settings.apply in (ScopeTarget.ALL, ScopeTarget.HEADING):
            return True
        if settings.ignore is IgnoreTarget.HEADING:
            return False
    return note_config.context_mode.includes_headings


def _breadcrumb(headings: list[HeadingEntry], found: int, level: int) -> list[HeadingEntry]:
    chain: list[HeadingEntry] = []
    for heading in reversed(headings[: found + 1]):
        if level < 1:
            break
        if heading.level <= level:
            chain.append(heading)
            level = heading.level - 1
    chain.reverse()
    return chain


def resolve_context(
    headings: list[HeadingEntry],
    offset: int,
    heading_level: int,
    note_config: NoteConfig,
    diagnostics: Diagnostics,
) -> HeadingContext:
    """Build the context of a card from the headings above it.

    Args:
        headings: Heading index ordered by offset
        offset: Start offset of the card
        heading_level: Level of the card's own heading marker, 0 for none
        note_config: Resolved note configuration (deck, context mode)
        diagnostics: Sink for deck modification warnings

    Returns:
        Ancestor texts, resolved deck, and inherited tags
    """
    found = bisect.bisect_right([h.offset for h in headings], offset) - 1
    if found < 0:
        return HeadingContext(deck_name=note_config.deck_name)

    level = heading_level if heading_level > 0 else headings[found].level
    chain = _breadcrumb(headings, found, level)

    deck = note_config.deck_name
    ancestor_texts: list[str] = []
    context_tags: list[str] = []
    for heading in chain:
        settings = heading.scoped_settings
        if settings is not None and settings.deck:
            deck = apply_deck_modification(deck, settings.deck, diagnostics) or (
                note_config.deck_name
            )

        if _includes_tags(settings, note_config):
            if settings is not None and settings.ignore is IgnoreTarget.PREVIOUS_TAGS:
                context_tags = []
            context_tags.extend(t for t in heading.tags if t not in context_tags)

        if _includes_heading(settings, note_config):
            ancestor_texts.append(heading.display_text)

    return HeadingContext(
        ancestor_texts=ancestor_texts,
        deck_name=deck,
        context_tags=context_tags,
        ancestors=chain,
    )
