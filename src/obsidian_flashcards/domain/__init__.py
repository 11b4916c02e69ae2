"""Domain layer: card records and remote snapshots."""

from .entities.card import CardRecord, ChangeFlags, MediaRef, ModelKind
from .entities.remote_card import RemoteCardSnapshot

__all__ = [
    "CardRecord",
    "ChangeFlags",
    "MediaRef",
    "ModelKind",
    "RemoteCardSnapshot",
]
