"""Domain entities package."""

from .card import CardRecord, CardStyle, ChangeFlags, MediaKind, MediaRef, ModelKind
from .remote_card import RemoteCardSnapshot, RemoteField

__all__ = [
    "CardRecord",
    "CardStyle",
    "ChangeFlags",
    "MediaKind",
    "MediaRef",
    "ModelKind",
    "RemoteCardSnapshot",
    "RemoteField",
]
