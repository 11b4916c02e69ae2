"""Extract flashcards from Obsidian note text.

Two independent passes locate cards: a block pass for heading-style and
tagged-line cards, and an inline pass for ``question :: answer`` lines.
Both skip text inside excluded ranges, resolve the heading context, and
render question and answer to HTML. Cards are returned sorted by
``end_offset``.
"""

from __future__ import annotations

import asyncio
import re
from collections.abc import Iterator
from dataclasses import dataclass, field
from html import escape
from typing import Any

import frontmatter
import yaml

from ..config import NoteConfig, Settings, resolve_note_config
from ..domain.entities.card import (
    FIELD_KEYS,
    SOURCE_FIELD,
    CardRecord,
    CardStyle,
    ModelKind,
)
from ..error_codes import ErrorCode
from ..rendering.field_renderer import FieldRenderer
from ..utils.diagnostics import Diagnostics
from ..utils.logging import get_logger
from .context import HeadingContext, apply_deck_modification, resolve_context
from .headings import HeadingEntry, build_headings
from .links import LinkResolver, obsidian_uri
from .patterns import build_block_card_re, build_inline_card_re
from .ranges import ExcludedRanges, compute_excluded_ranges
from .scoped_settings import parse_scoped_settings
from .tags import parse_tags

logger = get_logger(__name__)


@dataclass
class CardDraft:
    """A located card before its fields are rendered."""

    question: str
    answer: str
    deck_name: str
    tags: list[str]
    style: CardStyle
    initial_offset: int
    end_offset: int
    is_reversed: bool = False
    swap: bool = False
    id: int | None = None
    original_question: str = ""
    ancestor_texts: list[str] = field(default_factory=list)


def _question_context(context: HeadingContext, card_offset: int, question: str) -> list[str]:
    """Ancestor texts without the card's own heading."""
    texts = list(context.ancestor_texts)
    if (
        texts
        and context.ancestors
        and context.ancestors[-1].offset == card_offset
        and texts[-1] in (context.ancestors[-1].display_text, question)
    ):
        texts.pop()
    return texts


def _compose_tags(note_config: NoteConfig, *groups: list[str]) -> list[str]:
    tags: list[str] = []
    default_tag = note_config.settings.default_anki_tag
    for tag in [default_tag, *(t for group in groups for t in group)]:
        if tag and tag not in tags:
            tags.append(tag)
    return tags


def _skip_warning(
    diagnostics: Diagnostics, match: re.Match[str], kind: str, question: str
) -> None:
    diagnostics.warning(
        "card_skipped_in_excluded_range",
        f"Card '{question}' lies inside code, math, a comment, or front matter "
        "and was skipped",
        card_style=kind,
        offset=match.start(),
        error_code=ErrorCode.PAR_CARD_IN_EXCLUDED_RANGE.value,
    )


def _iter_block_matches(
    text: str,
    excluded: ExcludedRanges,
    settings: Settings,
    diagnostics: Diagnostics,
) -> Iterator[re.Match[str]]:
    """Block card matches outside excluded block ranges.

    A match starting inside an excluded range is dropped and scanning resumes
    after that range, so a card-shaped snippet in a code fence cannot swallow
    the real card that follows the fence.

    Accepted cards are matched again against a copy of the text whose block
    ranges are masked, so a heading line, marker, or blank lines inside a
    fence never end the card. The yielded match runs over that masked copy;
    read its groups with :func:`_group`.
    """
    pattern = build_block_card_re(settings.flashcards_tag)
    masked = excluded.mask_block_ranges(text)
    position = 0
    while position <= len(text):
        match = pattern.search(text, position)
        if match is None:
            return
        blocked = excluded.block_range_containing(match.start())
        if blocked is not None:
            _skip_warning(diagnostics, match, CardStyle.BLOCK.value, match.group("question"))
            position = max(blocked.end, match.start() + 1)
            continue
        match = pattern.match(masked, match.start()) or match
        position = max(match.end(), match.start() + 1)
        yield match


def _group(text: str, match: re.Match[str], name: str) -> str | None:
    """Group ``name`` of ``match`` read from ``text`` by offsets."""
    start, end = match.span(name)
    return None if start < 0 else text[start:end]


def locate_block_cards(
    text: str,
    excluded: ExcludedRanges,
    headings: list[HeadingEntry],
    note_config: NoteConfig,
    diagnostics: Diagnostics,
) -> list[CardDraft]:
    """Find heading-style and tagged-line cards."""
    settings = note_config.settings
    drafts: list[CardDraft] = []
    for match in _iter_block_matches(text, excluded, settings, diagnostics):
        parsed = parse_tags(_group(text, match, "tags"), settings.flashcards_tag)
        if not parsed.is_flashcard:
            continue

        question = _group(text, match, "question").strip()
        card_id = _group(text, match, "id")
        context = resolve_context(
            headings, match.start(), len(match.group("level")), note_config, diagnostics
        )
        drafts.append(
            CardDraft(
                question=question,
                answer=_group(text, match, "content").strip(),
                deck_name=context.deck_name,
                tags=_compose_tags(
                    note_config, context.context_tags, note_config.frontmatter_tags, parsed.tags
                ),
                style=CardStyle.BLOCK,
                initial_offset=match.start(),
                end_offset=match.end(),
                is_reversed=parsed.is_reversed,
                id=int(card_id) if card_id else None,
                original_question=question,
                ancestor_texts=_question_context(context, match.start(), question),
            )
        )
    return drafts


def locate_inline_cards(
    text: str,
    excluded: ExcludedRanges,
    headings: list[HeadingEntry],
    note_config: NoteConfig,
    diagnostics: Diagnostics,
) -> list[CardDraft]:
    """Find ``question :: answer`` cards."""
    settings = note_config.settings
    pattern = build_inline_card_re(settings.inline_separator, settings.inline_separator_reversed)
    drafts: list[CardDraft] = []
    for match in pattern.finditer(text):
        question = match.group("question").strip()
        if excluded.block_range_containing(match.start()) is not None:
            _skip_warning(diagnostics, match, CardStyle.INLINE.value, question)
            continue
        if excluded.in_inline_range(match.start("separator")):
            logger.debug(
                "inline_separator_in_excluded_span", offset=match.start("separator")
            )
            continue

        parsed = parse_tags(match.group("tags"), settings.flashcards_tag)
        scoped = parse_scoped_settings(
            match.group("scoped"), diagnostics, location=question, offset=match.start()
        )
        context = resolve_context(headings, match.start(), 0, note_config, diagnostics)
        deck_name = context.deck_name
        if scoped is not None and scoped.deck:
            deck_name = apply_deck_modification(deck_name, scoped.deck, diagnostics) or deck_name

        drafts.append(
            CardDraft(
                question=question,
                answer=match.group("answer").strip(),
                deck_name=deck_name,
                tags=_compose_tags(
                    note_config, note_config.frontmatter_tags, parsed.tags, context.context_tags
                ),
                style=CardStyle.INLINE,
                initial_offset=match.start(),
                end_offset=match.end("body"),
                is_reversed=(
                    match.group("separator") == settings.inline_separator_reversed
                    or parsed.is_reversed
                ),
                swap=scoped is not None and scoped.swap,
                id=int(match.group("id")) if match.group("id") else None,
                original_question=question,
                ancestor_texts=_question_context(context, match.start(), question),
            )
        )
    return drafts


async def render_card(draft: CardDraft, renderer: FieldRenderer) -> CardRecord:
    """Render a located card into a card record."""
    note_config = renderer.note_config
    settings = note_config.settings
    question_md = settings.context_separator.join([*draft.ancestor_texts, draft.question])
    front, back = await asyncio.gather(
        renderer.render(question_md), renderer.render(draft.answer)
    )

    front_key, back_key = FIELD_KEYS[ModelKind.BASIC]
    fields = {front_key: front.html, back_key: back.html}
    if draft.swap:
        fields = {front_key: back.html, back_key: front.html}
    if settings.include_source_link and note_config.note_path:
        uri = obsidian_uri(note_config.vault_name, note_config.note_path)
        fields[SOURCE_FIELD] = f'<a href="{escape(uri)}">{escape(note_config.note_path)}</a>'

    return CardRecord(
        deck_name=draft.deck_name,
        fields=fields,
        initial_offset=draft.initial_offset,
        end_offset=draft.end_offset,
        model_kind=ModelKind.BASIC_REVERSED if draft.is_reversed else ModelKind.BASIC,
        style=draft.style,
        tags=list(draft.tags),
        media=[*front.media, *back.media],
        is_reversed=draft.is_reversed,
        contains_code=settings.code_highlight_support
        and (front.contains_code or back.contains_code),
        id=draft.id,
        original_question=draft.original_question,
    )


async def extract_cards(
    text: str,
    excluded: ExcludedRanges,
    headings: list[HeadingEntry],
    note_config: NoteConfig,
    diagnostics: Diagnostics,
    link_resolver: LinkResolver | None = None,
) -> list[CardRecord]:
    """Run both passes and render every card.

    All renders are awaited before sorting, so the result order never depends
    on which render finished first.

    Args:
        text: Full note text
        excluded: Excluded ranges of the note
        headings: Heading index of the note
        note_config: Resolved note configuration
        diagnostics: Sink for parse warnings
        link_resolver: Resolver for note links

    Returns:
        Cards sorted by ``end_offset`` ascending
    """
    block_drafts = locate_block_cards(text, excluded, headings, note_config, diagnostics)
    block_starts = {draft.initial_offset for draft in block_drafts}
    drafts = list(block_drafts)
    for draft in locate_inline_cards(text, excluded, headings, note_config, diagnostics):
        # The line is already the question of a block card
        if draft.initial_offset in block_starts:
            diagnostics.info(
                "inline_card_shadowed_by_block_card",
                f"'{draft.question}' is a block card question and was not read as an "
                "inline card",
                offset=draft.initial_offset,
            )
            continue
        drafts.append(draft)
    renderer = FieldRenderer(note_config, diagnostics, link_resolver)
    cards = await asyncio.gather(*(render_card(draft, renderer) for draft in drafts))
    return sorted(cards, key=lambda card: card.end_offset)


def read_frontmatter(text: str, diagnostics: Diagnostics) -> dict[str, Any]:
    """Front matter of a note; invalid front matter is reported and ignored."""
    try:
        post = frontmatter.loads(text)
    except (yaml.YAMLError, ValueError, TypeError) as e:
        diagnostics.warning(
            "frontmatter_unparseable",
            "Front matter is not valid YAML and was ignored",
            error=str(e),
            error_code=ErrorCode.CFG_FRONTMATTER_INVALID.value,
        )
        return {}
    return dict(post.metadata)


class NoteParser:
    """Parses one note: configuration, excluded ranges, headings, and cards."""

    def __init__(
        self,
        text: str,
        settings: Settings,
        note_path: str = "",
        vault_name: str = "",
        link_resolver: LinkResolver | None = None,
        diagnostics: Diagnostics | None = None,
    ) -> None:
        """Prepare a note for card extraction.

        Args:
            text: Full note text
            settings: Global settings
            note_path: Vault-relative path of the note
            vault_name: Vault name used in note links
            link_resolver: Resolver for ``[[links]]``
            diagnostics: Sink for warnings; a new one is created when omitted
        """
        self.text = text
        self.diagnostics = (
            diagnostics if diagnostics is not None else Diagnostics(note_path=note_path)
        )
        self.link_resolver = link_resolver
        self.metadata = read_frontmatter(text, self.diagnostics)
        self.note_config = resolve_note_config(
            settings, note_path, self.metadata, self.diagnostics, vault_name=vault_name
        )
        self.excluded = compute_excluded_ranges(text)
        self.headings = build_headings(text, self.excluded, settings, self.diagnostics)

    async def generate_cards(self) -> list[CardRecord]:
        """Extract and render every card of the note."""
        cards = await extract_cards(
            self.text,
            self.excluded,
            self.headings,
            self.note_config,
            self.diagnostics,
            self.link_resolver,
        )
        logger.debug(
            "cards_extracted",
            note_path=self.note_config.note_path,
            cards=len(cards),
            headings=len(self.headings),
        )
        return cards

    def generate_cards_sync(self) -> list[CardRecord]:
        """Blocking variant of :meth:`generate_cards` for callers without a loop."""
        return asyncio.run(self.generate_cards())

    def collect_external_ids(self) -> list[int]:
        """Identifiers of all cards already known to the remote store."""
        from ..sync.rewriter import collect_external_ids

        return collect_external_ids(self.text)
