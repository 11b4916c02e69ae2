"""Embedded media and note links inside card text."""

from __future__ import annotations

import re
from collections.abc import Iterable
from pathlib import PurePosixPath
from typing import Protocol
from urllib.parse import quote

from ..domain.entities.card import MediaKind, MediaRef
from ..error_codes import ErrorCode
from ..utils.diagnostics import Diagnostics
from .patterns import DIMENSION_RE, MEDIA_LINK_RE, NOTE_LINK_RE

PDF_WIDTH = 800
PDF_HEIGHT = 600

# encodeURIComponent leaves these unescaped
_URI_SAFE = "!~*'()"


class LinkResolver(Protocol):
    """Resolves a wiki link to the vault-relative path of a note."""

    def resolve(self, link: str, source_path: str) -> str | None: ...


class VaultLinkResolver:
    """Resolve links against a known list of vault-relative note paths.

    A link matches a path exactly (with or without ``.md``) or by file name;
    among several notes with the same name the shortest path wins.
    """

    def __init__(self, note_paths: Iterable[str]) -> None:
        self._paths = sorted({p.replace("\\", "/") for p in note_paths}, key=len)
        self._by_path = {p.lower(): p for p in self._paths}

    def resolve(self, link: str, source_path: str) -> str | None:
        target = link.strip().replace("\\", "/")
        if not target:
            return source_path or None
        candidates = [target] if target.lower().endswith(".md") else [f"{target}.md", target]
        for candidate in candidates:
            found = self._by_path.get(candidate.lower())
            if found is not None:
                return found
        name = PurePosixPath(candidates[0]).name.lower()
        for path in self._paths:
            if PurePosixPath(path).name.lower() == name:
                return path
        return None


def _media_kind(match: re.Match[str]) -> MediaKind:
    if match.group("image"):
        return MediaKind.PICTURE
    if match.group("audio"):
        return MediaKind.AUDIO
    if match.group("video"):
        return MediaKind.VIDEO
    return MediaKind.OTHER


def _media_html(kind: MediaKind, src: str, match: re.Match[str]) -> str:
    if kind is MediaKind.PICTURE:
        attributes = f'src="{src}"'
        dimension = match.group("dimension")
        if dimension:
            size = DIMENSION_RE.fullmatch(dimension)
            if size is not None:
                attributes += f' width="{size.group("width")}"'
                if size.group("height"):
                    attributes += f' height="{size.group("height")}"'
        return f"<img {attributes}>"
    if kind is MediaKind.AUDIO:
        return f'<audio controls="" src="{src}"></audio>'
    if kind is MediaKind.VIDEO:
        return f'<video controls=""><source src="{src}"></video>'
    return (
        f'<embed src="{src}" type="application/pdf" '
        f'width="{PDF_WIDTH}" height="{PDF_HEIGHT}">'
    )


def substitute_media(text: str) -> tuple[str, list[MediaRef]]:
    """Replace ``![[file.ext]]`` embeds with HTML media tags.

    Args:
        text: Card text

    Returns:
        The substituted text and the referenced media, in document order
    """
    media: list[MediaRef] = []

    def replace(match: re.Match[str]) -> str:
        kind = _media_kind(match)
        extension = match.group("image") or match.group("audio") or match.group("video") or "pdf"
        file_name = f"{match.group('file_name')}.{extension}"
        media.append(MediaRef(file_name=file_name, kind=kind))
        src = PurePosixPath(file_name).name
        return _media_html(kind, src, match)

    return MEDIA_LINK_RE.sub(replace, text), media


def obsidian_uri(vault_name: str, file_path: str) -> str:
    """``obsidian://open`` URI for a vault-relative file path."""
    return (
        f"obsidian://open?vault={quote(vault_name, safe=_URI_SAFE)}"
        f"&file={quote(file_path, safe=_URI_SAFE)}"
    )


def substitute_note_links(
    text: str,
    resolver: LinkResolver | None,
    vault_name: str,
    source_path: str,
    diagnostics: Diagnostics,
) -> str:
    """Replace ``[[note#section|alias]]`` links with ``obsidian://`` anchors.

    Links that cannot be resolved are left untouched and reported.

    Args:
        text: Card text with media already substituted
        resolver: Link resolver; without one every link is unresolved
        vault_name: Vault name used in the URI
        source_path: Vault-relative path of the note being parsed
        diagnostics: Sink for unresolved link warnings

    Returns:
        Text with anchors
    """

    def replace(match: re.Match[str]) -> str:
        note = match.group("note")
        element = match.group("element") or ""
        resolved = resolver.resolve(note, source_path) if resolver is not None else None
        if resolved is None:
            diagnostics.warning(
                "note_link_unresolved",
                f"Link '{match.group(0)}' does not point to a note in the vault",
                link=match.group(0),
                source_path=source_path,
                error_code=ErrorCode.PAR_LINK_UNRESOLVED.value,
            )
            return match.group(0)

        display = match.group("alt") or PurePosixPath(resolved).stem
        if match.group("embedded"):
            display = f"[{display}]"
        href = obsidian_uri(vault_name, resolved + element)
        return f'<a href="{href}">{display}</a>'

    return NOTE_LINK_RE.sub(replace, text)
