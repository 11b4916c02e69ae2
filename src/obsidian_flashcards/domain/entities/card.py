"""Domain entity for flashcards extracted from notes."""

from __future__ import annotations

from dataclasses import dataclass, field, fields as dataclass_fields
from enum import Enum
from typing import TYPE_CHECKING, Any

from ...error_codes import ErrorCode
from ...exceptions import MissingCardIdError, ParserError

if TYPE_CHECKING:
    from .remote_card import RemoteCardSnapshot

MODEL_PREFIX = "Obsidian-"
SOURCE_MODEL_SUFFIX = "-source"
CODE_MODEL_SUFFIX = "-code"
SOURCE_FIELD = "Source"
ID_MARKER_PREFIX = "^"


class ModelKind(str, Enum):
    """Kind of remote note model a card is stored with."""

    BASIC = "basic"
    BASIC_REVERSED = "basic-reversed"
    CLOZE = "cloze"
    SPACED = "spaced"


FIELD_KEYS: dict[ModelKind, tuple[str, ...]] = {
    ModelKind.BASIC: ("Front", "Back"),
    ModelKind.BASIC_REVERSED: ("Front", "Back"),
    ModelKind.CLOZE: ("Text", "Extra"),
    ModelKind.SPACED: ("Prompt",),
}


class CardStyle(str, Enum):
    """Source syntax a card was written in; decides how its id is written back."""

    BLOCK = "block"
    INLINE = "inline"


class MediaKind(str, Enum):
    """Media categories understood by the remote store."""

    PICTURE = "picture"
    AUDIO = "audio"
    VIDEO = "video"
    OTHER = "other"


@dataclass
class MediaRef:
    """Embedded media file referenced by a card.

    ``payload`` is attached by the media transfer step (file data or path)
    and is None until then.
    """

    file_name: str
    kind: MediaKind
    payload: dict[str, Any] | None = None


@dataclass(frozen=True)
class ChangeFlags:
    """Which aspects of a card differ from its remote counterpart."""

    fields: bool = False
    tags: bool = False
    deck: bool = False
    media: bool = False
    model: bool = False

    def __bool__(self) -> bool:
        return any(getattr(self, f.name) for f in dataclass_fields(self))

    def names(self) -> list[str]:
        """Names of the flags that are set, in declaration order."""
        return [f.name for f in dataclass_fields(self) if getattr(self, f.name)]


@dataclass
class CardRecord:
    """A flashcard extracted from one note.

    One record type covers every model kind; the expected field keys come
    from ``FIELD_KEYS``. Records are mutated only to attach identifiers,
    merged preserved tags, and media payloads.
    """

    deck_name: str
    fields: dict[str, str]
    initial_offset: int
    end_offset: int
    model_kind: ModelKind = ModelKind.BASIC
    style: CardStyle = CardStyle.BLOCK
    tags: list[str] = field(default_factory=list)
    media: list[MediaRef] = field(default_factory=list)
    is_reversed: bool = False
    contains_code: bool = False
    id: int | None = None
    id_backup: int | None = None
    original_question: str = ""

    def __post_init__(self) -> None:
        """Validate entity invariants."""
        if self.initial_offset < 0 or self.initial_offset >= self.end_offset:
            msg = (
                f"Card span [{self.initial_offset}, {self.end_offset}) is empty or negative"
            )
            raise ParserError(msg, context={"question": self.original_question})
        deduplicated: list[str] = []
        for tag in self.tags:
            if tag and tag not in deduplicated:
                deduplicated.append(tag)
        self.tags = deduplicated

    @property
    def is_new(self) -> bool:
        """Check if card is not yet known to the remote store."""
        return self.id is None

    @property
    def model_name(self) -> str:
        """Remote model name derived from kind, reversal, source field, and code."""
        kind = self.model_kind
        if kind is ModelKind.BASIC and self.is_reversed:
            kind = ModelKind.BASIC_REVERSED
        name = MODEL_PREFIX + kind.value
        if self.fields.get(SOURCE_FIELD):
            name += SOURCE_MODEL_SUFFIX
        if self.contains_code:
            name += CODE_MODEL_SUFFIX
        return name

    def add_tags(self, tags: list[str]) -> list[str]:
        """Append tags that are not present yet.

        Returns:
            The tags that were actually added
        """
        added = [tag for tag in tags if tag not in self.tags]
        self.tags.extend(added)
        return added

    def diff_against(self, remote: RemoteCardSnapshot) -> ChangeFlags | None:
        """Compare this card with the stored version of it.

        Media are always reported as changed when the card embeds any, since
        their content is never compared.

        Args:
            remote: Snapshot of the card in the remote store

        Returns:
            Flags of the changed aspects, or None when nothing changed
        """
        field_keys = dict.fromkeys([*self.fields, *remote.fields])
        fields_changed = any(
            self.fields.get(key) != remote.field_value(key) for key in field_keys
        )
        flags = ChangeFlags(
            fields=fields_changed,
            tags=set(self.tags) != set(remote.tags),
            deck=self.deck_name.lower() != remote.deck_name.lower(),
            media=bool(self.media),
            model=self.model_name != remote.model_name,
        )
        return flags if flags else None

    def format_id_marker(self) -> str:
        """Identifier marker written into the note, e.g. ``^1700000000000``.

        Raises:
            MissingCardIdError: If the card has no identifier yet
        """
        if self.id is None:
            raise MissingCardIdError(
                "Cannot format an identifier marker for a card without an id",
                suggestion="Create the card in the remote store before writing its id",
                error_code=ErrorCode.STR_CARD_ID_MISSING.value,
                context={
                    "question": self.original_question,
                    "end_offset": self.end_offset,
                },
            )
        return f"{ID_MARKER_PREFIX}{self.id}"

    def media_payloads(self) -> dict[str, list[dict[str, Any]]]:
        """Attached media payloads grouped by kind; ``other`` media are skipped."""
        grouped: dict[str, list[dict[str, Any]]] = {}
        for ref in self.media:
            if ref.kind is MediaKind.OTHER or ref.payload is None:
                continue
            grouped.setdefault(ref.kind.value, []).append(ref.payload)
        return grouped

    def to_note_payload(self) -> dict[str, Any]:
        """Note payload for the remote store's ``addNote``/``addNotes`` actions."""
        payload: dict[str, Any] = {
            "deckName": self.deck_name,
            "modelName": self.model_name,
            "fields": dict(self.fields),
            "tags": list(self.tags),
            "options": {"allowDuplicate": True},
        }
        payload.update(self.media_payloads())
        return payload
