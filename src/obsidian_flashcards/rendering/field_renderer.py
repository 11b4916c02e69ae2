"""Render a card's question or answer Markdown into an HTML field."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from ..config import NoteConfig
from ..domain.entities.card import MediaRef
from ..obsidian.links import LinkResolver, substitute_media, substitute_note_links
from ..utils.diagnostics import Diagnostics
from .markdown_converter import convert_markdown_to_html_async
from .math import protect_math, restore_math

_FENCED_CODE_RE = re.compile(r"^[ \t]*```", re.MULTILINE)


@dataclass
class RenderedField:
    """HTML of one field and what it references."""

    html: str
    media: list[MediaRef] = field(default_factory=list)
    contains_code: bool = False


class FieldRenderer:
    """Applies media, link, and math substitutions, then renders Markdown."""

    def __init__(
        self,
        note_config: NoteConfig,
        diagnostics: Diagnostics,
        link_resolver: LinkResolver | None = None,
    ) -> None:
        self.note_config = note_config
        self.diagnostics = diagnostics
        self.link_resolver = link_resolver

    async def render(self, markdown: str) -> RenderedField:
        """Render one field.

        Args:
            markdown: Question or answer text

        Returns:
            The rendered field
        """
        text, media = substitute_media(markdown)
        text = substitute_note_links(
            text,
            self.link_resolver,
            self.note_config.vault_name,
            self.note_config.note_path,
            self.diagnostics,
        )
        math_store: dict[str, str] = {}
        text = protect_math(text, math_store)
        html = await convert_markdown_to_html_async(
            text, sanitize=self.note_config.settings.sanitize_html
        )
        html = restore_math(html, math_store, self.diagnostics)
        return RenderedField(
            html=html,
            media=media,
            contains_code=bool(_FENCED_CODE_RE.search(markdown)),
        )
