"""Protect LaTeX math from the Markdown renderer.

Math spans are swapped for ``\\({{md5}}\\)`` placeholders before rendering
(``\\[...\\]`` for display math) and restored afterwards. The doubled
backslash survives Markdown escaping as a single one.
"""

from __future__ import annotations

import hashlib
import re

from ..error_codes import ErrorCode
from ..obsidian.patterns import MATH_BLOCK_RE, MATH_INLINE_RE, MATH_PLACEHOLDER_RE
from ..utils.diagnostics import Diagnostics


def _escape_math(content: str) -> str:
    return content.strip().replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def protect_math(text: str, store: dict[str, str]) -> str:
    """Replace math spans with hash placeholders.

    Args:
        text: Markdown text
        store: Mapping filled with ``md5 -> escaped math content``

    Returns:
        Text with placeholders
    """

    def substitute(opening: str, closing: str):
        def replace(match: re.Match[str]) -> str:
            content = _escape_math(match.group("content"))
            digest = hashlib.md5(content.encode("utf-8")).hexdigest()  # noqa: S324
            store[digest] = content
            return f"\\\\{opening}{{{{{digest}}}}}\\\\{closing}"

        return replace

    text = MATH_BLOCK_RE.sub(substitute("[", "]"), text)
    return MATH_INLINE_RE.sub(substitute("(", ")"), text)


def restore_math(html: str, store: dict[str, str], diagnostics: Diagnostics) -> str:
    """Put math content back in place of its placeholders.

    Placeholders with an unknown hash are left as they are and reported.
    """

    def replace(match: re.Match[str]) -> str:
        digest = match.group("hash")
        content = store.get(digest)
        if content is None:
            diagnostics.warning(
                "math_placeholder_missing",
                f"No math content stored for placeholder {digest}",
                hash=digest,
                error_code=ErrorCode.PAR_MATH_PLACEHOLDER_MISSING.value,
            )
            return match.group(0)
        return f"\\{match.group('open')}{content}\\{match.group('close')}"

    return MATH_PLACEHOLDER_RE.sub(replace, html)
