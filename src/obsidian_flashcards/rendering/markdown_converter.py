"""Convert card Markdown to HTML for the remote store.

Uses mistune for Markdown parsing, Pygments for syntax highlighting of fenced
code, and nh3 for HTML sanitization. Media tags and ``obsidian://`` links
produced earlier in the pipeline are passed through untouched.
"""

from __future__ import annotations

import asyncio
import re
from typing import Any

import mistune
import nh3
from mistune.util import escape as escape_html
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name, guess_lexer
from pygments.util import ClassNotFound

from ..obsidian.patterns import ARROW_LINE_RE
from ..utils.logging import get_logger

logger = get_logger(__name__)

ARROW_MARKER = "{{ARROW}}"

ALLOWED_TAGS = {
    "p",
    "br",
    "strong",
    "b",
    "em",
    "i",
    "u",
    "s",
    "del",
    "code",
    "pre",
    "ul",
    "ol",
    "li",
    "table",
    "thead",
    "tbody",
    "tr",
    "th",
    "td",
    "blockquote",
    "h1",
    "h2",
    "h3",
    "h4",
    "h5",
    "h6",
    "a",
    "img",
    "audio",
    "video",
    "source",
    "embed",
    "ruby",
    "rt",
    "rp",
    "div",
    "span",
    "section",
    "sup",
    "sub",
    "hr",
}

_GLOBAL_ATTRIBUTES = {"class", "id", "style"}

# "rel" is excluded from "a" because nh3.clean() sets it through link_rel
_TAG_SPECIFIC_ATTRIBUTES = {
    "a": {"href", "title"},
    "img": {"src", "alt", "title", "width", "height"},
    "audio": {"src", "controls"},
    "video": {"src", "controls"},
    "source": {"src", "type"},
    "embed": {"src", "type", "width", "height"},
    "td": {"colspan", "rowspan", "align"},
    "th": {"colspan", "rowspan", "align"},
}

URL_SCHEMES = {"http", "https", "mailto", "obsidian", "data"}


def _build_allowed_attributes() -> dict[str, set[str]]:
    """Build allowed attributes dict with global attrs applied to all tags."""
    return {
        tag: _GLOBAL_ATTRIBUTES | _TAG_SPECIFIC_ATTRIBUTES.get(tag, set())
        for tag in ALLOWED_TAGS
    }


ALLOWED_ATTRIBUTES = _build_allowed_attributes()


class CardHighlightRenderer(mistune.HTMLRenderer):
    """mistune renderer with Pygments highlighting that keeps inline HTML."""

    def __init__(self) -> None:
        super().__init__(escape=False)
        self._formatter = HtmlFormatter(cssclass="codehilite", linenos=False, nowrap=False)

    def block_code(self, code: str, info: str | None = None) -> str:
        """Render code block with syntax highlighting."""
        lang = info.split()[0] if info and info.strip() else None
        try:
            lexer = get_lexer_by_name(lang, stripall=True) if lang else guess_lexer(code)
        except ClassNotFound:
            lang_class = f"language-{lang}" if lang else "language-text"
            return f'<pre><code class="{lang_class}">{escape_html(code.strip())}</code></pre>\n'
        highlighted: str = highlight(code, lexer, self._formatter)
        return highlighted

    def codespan(self, text: str) -> str:
        return f'<code class="language-text">{escape_html(text)}</code>'


DENDEN_RUBY_PATTERN = r"\{(?P<ruby_base>[^{}|\s]+)\|(?P<ruby_text>[^{}\s]+)\}"


def _parse_denden_ruby(inline: Any, m: re.Match[str], state: Any) -> int:
    state.append_token(
        {
            "type": "denden_ruby",
            "raw": m.group(0),
            "attrs": {
                "base": m.group("ruby_base"),
                "sections": [s for s in m.group("ruby_text").split("|") if s],
            },
        }
    )
    return m.end()


def _render_denden_ruby(
    renderer: Any, text: str, base: str, sections: list[str]
) -> str:
    if not sections:
        return escape_html(text)
    if len(sections) == len(base):
        # One reading per base character
        pairs = "".join(
            f"{escape_html(char)}<rt>{escape_html(reading)}</rt>"
            for char, reading in zip(base, sections)
        )
        return f"<ruby>{pairs}</ruby>"
    reading = "".join(sections)
    return f"<ruby>{escape_html(base)}<rt>{escape_html(reading)}</rt></ruby>"


def denden_ruby(md: mistune.Markdown) -> None:
    """mistune plugin for DenDen ruby markup: ``{漢字|かん|じ}``."""
    md.inline.register("denden_ruby", DENDEN_RUBY_PATTERN, _parse_denden_ruby, before="link")
    if md.renderer and md.renderer.NAME == "html":
        md.renderer.register("denden_ruby", _render_denden_ruby)


def _create_mistune_converter() -> mistune.Markdown:
    """Create a configured mistune Markdown converter."""
    return mistune.create_markdown(
        hard_wrap=True,
        renderer=CardHighlightRenderer(),
        plugins=[
            "strikethrough",
            "table",
            "footnotes",
            denden_ruby,
        ],
    )


def _mark_arrow_items(md_content: str) -> str:
    """Turn ``→ text`` lines into list items tagged for arrow styling."""
    return ARROW_LINE_RE.sub(
        lambda m: f"{m.group('indent')}- {ARROW_MARKER} {m.group('text')}", md_content
    )


def convert_markdown_to_html(md_content: str, sanitize: bool = True) -> str:
    """
    Convert Markdown content to HTML using mistune.

    Args:
        md_content: Markdown-formatted text
        sanitize: Whether to sanitize HTML output (default True)

    Returns:
        HTML-formatted text suitable for a card field
    """
    if not md_content or not md_content.strip():
        return ""

    converter = _create_mistune_converter()
    result = converter(_mark_arrow_items(md_content))
    html: str = result if isinstance(result, str) else str(result)
    html = html.replace(f"<li>{ARROW_MARKER} ", '<li class="arrow-item">').strip()

    if sanitize:
        html = sanitize_html(html)
    return html


async def convert_markdown_to_html_async(md_content: str, sanitize: bool = True) -> str:
    """Run :func:`convert_markdown_to_html` in a worker thread.

    Pygments lexing of large code blocks dominates rendering time, so card
    fields of a note are rendered concurrently off the event loop.
    """
    return await asyncio.to_thread(convert_markdown_to_html, md_content, sanitize)


def sanitize_html(html: str) -> str:
    """
    Sanitize HTML using nh3.

    Args:
        html: Raw HTML string

    Returns:
        Sanitized HTML string
    """
    if not html:
        return html
    return nh3.clean(
        html,
        tags=ALLOWED_TAGS,
        attributes=ALLOWED_ATTRIBUTES,
        url_schemes=URL_SCHEMES,
        link_rel="noopener noreferrer",
    )


def get_pygments_css(style: str = "default") -> str:
    """
    Get CSS for Pygments syntax highlighting.

    Args:
        style: Pygments style name (default, monokai, github-dark, etc.)

    Returns:
        CSS rules scoped to the ``codehilite`` class
    """
    formatter = HtmlFormatter(style=style, cssclass="codehilite")
    css: str = formatter.get_style_defs(".codehilite")
    return css
