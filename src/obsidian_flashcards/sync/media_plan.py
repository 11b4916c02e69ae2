"""Decide which embedded media must be sent to the remote store."""

from __future__ import annotations

import base64
import hashlib
from collections.abc import Callable
from pathlib import Path
from typing import Any

from ..domain.entities.card import CardRecord, MediaKind, MediaRef
from ..utils.logging import get_logger
from .reconciler import ReconciliationResult

logger = get_logger(__name__)


def select_media_for_transfer(
    result: ReconciliationResult, transfer_media: bool = True
) -> list[tuple[CardRecord, MediaRef]]:
    """Media of created cards and of updated cards flagged for media.

    PDF and other embeds are never transferred.

    Args:
        result: Reconciliation result of one note
        transfer_media: Global media transfer switch

    Returns:
        ``(card, media)`` pairs in card order
    """
    if not transfer_media:
        return []
    cards = [*result.create, *(d.generated for d in result.update if d.changes.media)]
    return [
        (card, ref) for card in cards for ref in card.media if ref.kind is not MediaKind.OTHER
    ]


def build_media_payload(path: Path, embed_data: bool) -> dict[str, Any]:
    """``storeMediaFile``-style payload for a vault file.

    With ``embed_data`` the file is read and sent base64 encoded together with
    its md5 as ``skipHash``; otherwise the absolute path is sent.
    """
    payload: dict[str, Any] = {"filename": path.name}
    if not embed_data:
        payload["path"] = str(path.resolve())
        return payload
    data = path.read_bytes()
    payload["data"] = base64.b64encode(data).decode("ascii")
    payload["skipHash"] = hashlib.md5(data).hexdigest()  # noqa: S324
    return payload


def attach_media_payloads(
    selected: list[tuple[CardRecord, MediaRef]],
    resolve_media: Callable[[str], Path | None],
    embed_data: bool = True,
) -> list[MediaRef]:
    """Attach payloads to the selected media.

    Args:
        selected: Output of :func:`select_media_for_transfer`
        resolve_media: Maps a media link target to a file, or None
        embed_data: Send file contents instead of paths

    Returns:
        Media that could not be resolved or read
    """
    missing: list[MediaRef] = []
    for card, ref in selected:
        path = resolve_media(ref.file_name)
        if path is None:
            logger.warning("media_unresolved", file_name=ref.file_name, card_id=card.id)
            missing.append(ref)
            continue
        try:
            ref.payload = build_media_payload(path, embed_data)
        except OSError as e:
            logger.warning(
                "media_read_failed", file_name=ref.file_name, path=str(path), error=str(e)
            )
            missing.append(ref)
    return missing
