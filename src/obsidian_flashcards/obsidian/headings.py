"""Heading index of a note."""

from __future__ import annotations

from dataclasses import dataclass, field

from ..config import Settings
from ..utils.diagnostics import Diagnostics
from .patterns import HEADING_RE
from .ranges import ExcludedRanges
from .scoped_settings import ScopedSettings, parse_scoped_settings
from .tags import parse_tags


@dataclass(frozen=True)
class HeadingEntry:
    """One heading line.

    Attributes:
        level: Number of ``#`` characters (1-6)
        text: Display text, without tags and without an inline card answer
        offset: Offset of the first ``#``
        scoped_settings: Settings block on the following line, if any
        tags: Tags attached to the heading, flashcard markers removed
    """

    level: int
    text: str
    offset: int
    scoped_settings: ScopedSettings | None = None
    tags: list[str] = field(default_factory=list)

    @property
    def display_text(self) -> str:
        """Text shown in ancestor chains, honouring a ``replace`` setting."""
        if self.scoped_settings is not None and self.scoped_settings.replace is not None:
            return self.scoped_settings.replace
        return self.text


def _strip_inline_answer(text: str, settings: Settings) -> str:
    # A heading that is itself an inline card contributes only its question
    for separator in sorted(
        (settings.inline_separator, settings.inline_separator_reversed), key=len, reverse=True
    ):
        marker = f" {separator} "
        if marker in text:
            return text.split(marker, 1)[0]
    return text


def build_headings(
    text: str,
    excluded: ExcludedRanges,
    settings: Settings,
    diagnostics: Diagnostics,
) -> list[HeadingEntry]:
    """Collect the headings of a note in document order.

    Headings inside code blocks, math blocks, comments, or front matter are
    dropped.

    Args:
        text: Full note text
        excluded: Excluded ranges of the note
        settings: Global settings (flashcard tag, inline separators)
        diagnostics: Sink for scoped settings warnings

    Returns:
        Headings ordered by offset
    """
    headings: list[HeadingEntry] = []
    for match in HEADING_RE.finditer(text):
        if excluded.in_block_range(match.start(), match.end()):
            continue

        display = _strip_inline_answer(match.group("text"), settings).strip()
        parsed = parse_tags(match.group("tags"), settings.flashcards_tag)
        scoped = parse_scoped_settings(
            match.group("scoped"), diagnostics, location=display, offset=match.start()
        )
        headings.append(
            HeadingEntry(
                level=len(match.group("level")),
                text=display,
                offset=match.start(),
                scoped_settings=scoped,
                tags=parsed.tags,
            )
        )
    return headings
