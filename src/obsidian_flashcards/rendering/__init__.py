"""Card field rendering.

Markdown is rendered with mistune, code is highlighted with Pygments, and
the resulting HTML is sanitized with nh3. Math and embeds are substituted
around the Markdown step by the field renderer.
"""

from obsidian_flashcards.rendering.markdown_converter import (
    convert_markdown_to_html,
    convert_markdown_to_html_async,
    get_pygments_css,
    sanitize_html,
)

__all__ = [
    "convert_markdown_to_html",
    "convert_markdown_to_html_async",
    "get_pygments_css",
    "sanitize_html",
]
