"""Regular expressions for Obsidian note syntax.

Patterns that depend on settings (flashcard tag, inline separators) are built
by the ``build_*`` functions and cached per argument tuple.
"""

import re
from functools import lru_cache

# ``^`` followed by exactly 13 digits, preceded by whitespace or start of text
ID_MARKER = r"(?:(?<=\s)|(?<![\s\S]))\^(?P<id>\d{13})(?!\d)"
ID_MARKER_RE = re.compile(ID_MARKER)
ID_MARKER_LENGTH = 14

TAG = r"#[\w/\-]+"
TAG_RUN = rf"(?:{TAG}[ \t]*)+"
TAG_SPLIT_RE = re.compile(r"\s*#")

SCOPED_SETTINGS = r"%%(?P<scoped>[\s\S]+?)%%"
CARD_SEPARATOR = "%%%%"

HEADING_RE = re.compile(
    rf"^(?P<level>#{{1,6}})[ \t]+(?P<text>[^\n#]*)(?P<tags>{TAG_RUN})?[ \t]*"
    rf"(?:\n{SCOPED_SETTINGS})?",
    re.MULTILINE,
)

# Excluded ranges. Block constructs that fit on one line are reclassified as
# inline ranges by the range filter.
BLOCK_RANGES_RE = re.compile(
    "|".join(
        [
            r"(?P<front_matter>\A---[ \t]*\n[\s\S]*?\n---[ \t]*$)",
            r"(?P<code_block>^[ \t]*```[^\n]*\n[\s\S]*?^[ \t]*```[ \t]*$)",
            r"(?P<math_block>\$\$[\s\S]*?\$\$)",
            r"(?P<obsidian_comment>%%[\s\S]*?%%)",
            r"(?P<html_comment><!--[\s\S]*?-->)",
        ]
    ),
    re.MULTILINE,
)

INLINE_RANGES_RE = re.compile(
    "|".join(
        [
            r"(?P<math_block_inline>\$\$[^\n]*?\$\$)",
            r"(?P<math_inline>(?<!\\)\$[^\n$]+?(?<!\\)\$)",
            r"(?P<code_inline>`[^\n`]+?`)",
            r"(?P<obsidian_comment_inline>%%[^\n]*?%%)",
            r"(?P<html_comment_inline><!--[^\n]*?-->)",
        ]
    )
)

# Rendering substitutions
MATH_BLOCK_RE = re.compile(r"\$\$(?P<content>[\s\S]*?)\$\$")
MATH_INLINE_RE = re.compile(r"(?<!\\)\$(?P<content>[^\n$]+?)(?<!\\)\$")
MATH_PLACEHOLDER_RE = re.compile(
    r"\\(?P<open>[(\[])\{\{(?P<hash>[\da-f]{32})\}\}\\(?P<close>[)\]])"
)

MEDIA_LINK_RE = re.compile(
    r"!\[\[(?P<file_name>[^\[\]|]*?)\.(?:"
    r"(?P<image>avif|bmp|gif|jpe?g|png|svg|webp)(?:\|(?P<dimension>\d+(?:x\d+)?))?"
    r"|(?P<audio>flac|m4a|mp3|ogg|wav|3gp)"
    r"|(?P<video>mkv|mov|mp4|ogv|webm)"
    r"|(?P<pdf>pdf(?P<reference>#(?:page|height)=\d+)?)"
    r")\]\]",
    re.IGNORECASE,
)
DIMENSION_RE = re.compile(r"(?P<width>\d+)(?:x(?P<height>\d+))?")

NOTE_LINK_RE = re.compile(
    r"(?P<embedded>!)?\[\[(?P<note>[^\[\]#|]*)(?P<element>#[^\[\]|]+?)?"
    r"(?:\|(?P<alt>[^\[\]]*?))?\]\]"
)

ARROW_LINE_RE = re.compile(r"^(?P<indent>[ \t]*)→ (?P<text>.+)$", re.MULTILINE)

DECK_NAME_CHARS = r"[\w ._\"*?<>()\[\]\-]+"
DECK_NAME_RE = re.compile(rf"^{DECK_NAME_CHARS}(?:::{DECK_NAME_CHARS})*$")


def _flashcard_tag_lookahead(flashcards_tag: str) -> str:
    tag = re.escape(flashcards_tag)
    return rf"(?=(?:{TAG}[ \t]*)*?(?i:#{tag}(?:[-/]reverse)?)(?![\w/\-]))"


@lru_cache(maxsize=16)
def build_block_card_re(flashcards_tag: str) -> re.Pattern[str]:
    """Pattern for heading-style and tagged-line cards.

    Groups: ``level``, ``question``, ``tags``, ``scoped``, ``content``,
    ``id``, ``separator``.
    """
    return re.compile(
        r"^(?P<level>#{0,6})[ \t]*(?P<question>[^\n#]+?)[ \t]*"
        rf"{_flashcard_tag_lookahead(flashcards_tag)}(?P<tags>{TAG_RUN})\n"
        rf"(?:{SCOPED_SETTINGS}[ \t]*(?:\n|\Z))?"
        r"(?P<content>[\s\S]*?)"
        r"(?:"
        rf"{ID_MARKER}"
        r"|(?=\n#{1,6}[ \t])"
        rf"|(?P<separator>{CARD_SEPARATOR})"
        r"|(?=\n[ \t]*\n[ \t]*\n)"
        r"|\Z"
        r")",
        re.MULTILINE,
    )


@lru_cache(maxsize=16)
def build_inline_card_re(separator: str, reversed_separator: str) -> re.Pattern[str]:
    """Pattern for single-line ``question <sep> answer`` cards.

    The longer separator is tried first so that ``:::`` is never read as
    ``::`` followed by ``:``.

    Groups: ``prefix``, ``question``, ``separator``, ``answer``, ``tags``,
    ``id``, ``scoped``; ``body`` spans everything before the scoped settings.
    """
    separators = sorted((separator, reversed_separator), key=len, reverse=True)
    alternation = "|".join(re.escape(s) for s in separators)
    return re.compile(
        r"^(?P<body>(?P<prefix>(?:[ \t]*[-*→]|[ \t]*\d+\.|#{1,6})[ \t]*|)"
        rf"(?P<question>.+?) (?P<separator>{alternation}) "
        r"(?P<answer>[^\n#^]+?)"
        rf"(?P<tags>{TAG_RUN})?"
        r"(?: \^(?P<id>\d{13})(?!\d)|(?=[ \t]*%%)|$))"
        rf"(?:(?:[ \t]*|[ \t]*\n){SCOPED_SETTINGS})?",
        re.MULTILINE,
    )
