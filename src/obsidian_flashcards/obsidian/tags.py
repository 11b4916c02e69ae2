"""Tag run parsing shared by headings and cards."""

from __future__ import annotations

from dataclasses import dataclass, field

from ..config import normalize_tag
from .patterns import TAG_SPLIT_RE

REVERSE_SUFFIXES = ("-reverse", "/reverse")


@dataclass(frozen=True)
class ParsedTags:
    """Result of parsing a run of ``#tags``.

    Attributes:
        is_flashcard: The run contains the flashcard tag
        is_reversed: The run contains a reversed flashcard tag
        tags: Remaining tags, hierarchical ``/`` rewritten to ``::``
    """

    is_flashcard: bool = False
    is_reversed: bool = False
    tags: list[str] = field(default_factory=list)


def parse_tags(tag_run: str | None, flashcards_tag: str = "card") -> ParsedTags:
    """Split a tag run into the flashcard markers and ordinary tags.

    Args:
        tag_run: Text such as ``"#card-reverse #lang/python"``
        flashcards_tag: Name of the tag marking a flashcard

    Returns:
        ParsedTags; ``parse_tags("#card #foo/bar")`` gives a non-reversed
        flashcard with tags ``["foo::bar"]``
    """
    if not tag_run or not tag_run.strip():
        return ParsedTags()

    marker = flashcards_tag.lower()
    reverse_markers = {marker + suffix for suffix in REVERSE_SUFFIXES}
    is_flashcard = False
    is_reversed = False
    tags: list[str] = []

    for raw in TAG_SPLIT_RE.split(tag_run.strip()):
        raw = raw.strip()
        if not raw:
            continue
        lowered = raw.lower()
        if lowered == marker:
            is_flashcard = True
        elif lowered in reverse_markers:
            is_flashcard = True
            is_reversed = True
        else:
            tag = normalize_tag(raw)
            if tag not in tags:
                tags.append(tag)

    return ParsedTags(is_flashcard=is_flashcard, is_reversed=is_reversed, tags=tags)
