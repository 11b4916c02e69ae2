"""Snapshot of a card as stored in the remote store."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RemoteField(BaseModel):
    """One field of a stored note."""

    model_config = ConfigDict(frozen=True)

    value: str = ""
    order: int = 0


class RemoteCardSnapshot(BaseModel):
    """Read-only view of a stored note, shaped like AnkiConnect ``notesInfo``.

    The deck name is not part of ``notesInfo``; the collaborator fetching
    snapshots fills it from ``cardsInfo``.
    """

    model_config = ConfigDict(
        populate_by_name=True, frozen=True, extra="ignore", protected_namespaces=()
    )

    id: int = Field(alias="noteId")
    model_name: str = Field(alias="modelName")
    fields: dict[str, RemoteField] = Field(default_factory=dict)
    tags: list[str] = Field(default_factory=list)
    deck_name: str = Field(default="", alias="deckName")
    cards: list[int] = Field(default_factory=list)

    @field_validator("fields", mode="before")
    @classmethod
    def parse_fields(cls, v: Any) -> Any:
        """Accept plain strings as field values."""
        if isinstance(v, dict):
            return {
                key: {"value": value} if isinstance(value, str) else value
                for key, value in v.items()
            }
        return v

    def field_value(self, key: str) -> str | None:
        remote_field = self.fields.get(key)
        return remote_field.value if remote_field is not None else None
