"""Tests for the card record entity."""

import pytest

from obsidian_flashcards.domain.entities.card import (
    ChangeFlags,
    MediaKind,
    MediaRef,
    ModelKind,
)
from obsidian_flashcards.domain.entities.remote_card import RemoteCardSnapshot
from obsidian_flashcards.exceptions import MissingCardIdError, ParserError


class TestCardRecord:
    """Tests for CardRecord invariants and derived values."""

    def test_empty_span_is_rejected(self, make_card) -> None:
        """``initial_offset`` must be before ``end_offset``."""
        with pytest.raises(ParserError):
            make_card(initial_offset=5, end_offset=5)

    def test_tags_are_deduplicated(self, make_card) -> None:
        """Duplicate tags keep their first position."""
        card = make_card(tags=["a", "b", "a", ""])
        assert card.tags == ["a", "b"]

    @pytest.mark.parametrize(
        ("overrides", "expected"),
        [
            ({}, "Obsidian-basic"),
            ({"is_reversed": True}, "Obsidian-basic-reversed"),
            ({"model_kind": ModelKind.CLOZE}, "Obsidian-cloze"),
            ({"contains_code": True}, "Obsidian-basic-code"),
            (
                {"fields": {"Front": "q", "Back": "a", "Source": "<a>n</a>"}},
                "Obsidian-basic-source",
            ),
        ],
    )
    def test_model_name(self, make_card, overrides, expected) -> None:
        """Model names combine kind, source field and code suffixes."""
        assert make_card(**overrides).model_name == expected

    def test_add_tags_reports_new_tags(self, make_card) -> None:
        """Only missing tags are appended and returned."""
        card = make_card(tags=["a"])
        assert card.add_tags(["a", "b"]) == ["b"]
        assert card.tags == ["a", "b"]

    def test_is_new(self, make_card) -> None:
        """Only cards without an id are unknown remotely."""
        assert make_card().is_new
        assert not make_card(id=1700000000000).is_new

    def test_format_id_marker(self, make_card) -> None:
        """Markers are a caret followed by the id."""
        assert make_card(id=1700000000000).format_id_marker() == "^1700000000000"

    def test_format_id_marker_requires_id(self, make_card) -> None:
        """A card without an id cannot be written back."""
        with pytest.raises(MissingCardIdError):
            make_card().format_id_marker()

    def test_note_payload_includes_media(self, make_card) -> None:
        """Attached media payloads are grouped by kind."""
        card = make_card(
            media=[
                MediaRef("a.png", MediaKind.PICTURE, payload={"filename": "a.png", "path": "/a"}),
                MediaRef("b.pdf", MediaKind.OTHER, payload={"filename": "b.pdf"}),
                MediaRef("c.mp3", MediaKind.AUDIO),
            ]
        )
        payload = card.to_note_payload()
        assert payload["deckName"] == "Base"
        assert payload["modelName"] == "Obsidian-basic"
        assert payload["picture"] == [{"filename": "a.png", "path": "/a"}]
        assert "other" not in payload
        assert "audio" not in payload


class TestDiffAgainst:
    """Tests for change detection against remote snapshots."""

    def test_identical_card(self, make_card, make_snapshot) -> None:
        """A card equal to its snapshot has no changes."""
        card = make_card(id=1)
        assert card.diff_against(make_snapshot(card)) is None

    def test_tag_order_is_irrelevant(self, make_card, make_snapshot) -> None:
        """Tags compare as sets."""
        card = make_card(id=1, tags=["a", "b"])
        assert card.diff_against(make_snapshot(card, tags=["b", "a"])) is None

    def test_deck_compares_case_insensitively(self, make_card, make_snapshot) -> None:
        """Deck names differing only by case are equal."""
        card = make_card(id=1)
        assert card.diff_against(make_snapshot(card, deckName="base")) is None

    def test_each_aspect_is_flagged(self, make_card, make_snapshot) -> None:
        """Fields, tags, deck and model changes are reported together."""
        card = make_card(id=1)
        remote = make_snapshot(
            card,
            fields={"Front": "<p>Old</p>", "Back": "<p>A</p>"},
            tags=["Obsidian", "extra"],
            deckName="Other",
            modelName="Obsidian-basic-reversed",
        )
        assert card.diff_against(remote) == ChangeFlags(
            fields=True, tags=True, deck=True, model=True
        )

    def test_extra_remote_field_is_a_change(self, make_card, make_snapshot) -> None:
        """Fields present only remotely differ."""
        card = make_card(id=1)
        remote = make_snapshot(card, fields={"Front": "<p>Q</p>", "Back": "<p>A</p>", "X": "y"})
        assert card.diff_against(remote) == ChangeFlags(fields=True)

    def test_media_is_always_flagged(self, make_card, make_snapshot) -> None:
        """Cards with media always report a media change."""
        card = make_card(id=1, media=[MediaRef("a.png", MediaKind.PICTURE)])
        flags = card.diff_against(make_snapshot(card))
        assert flags == ChangeFlags(media=True)
        assert flags.names() == ["media"]


class TestRemoteCardSnapshot:
    """Tests for parsing remote snapshots."""

    def test_parses_notes_info_shape(self) -> None:
        """AnkiConnect ``notesInfo`` entries validate directly."""
        snapshot = RemoteCardSnapshot.model_validate(
            {
                "noteId": 42,
                "modelName": "Obsidian-basic",
                "fields": {"Front": {"value": "q", "order": 0}, "Back": "a"},
                "tags": ["x"],
                "deckName": "D",
                "cards": [43],
                "mod": 1,
            }
        )
        assert snapshot.id == 42
        assert snapshot.field_value("Front") == "q"
        assert snapshot.field_value("Back") == "a"
        assert snapshot.field_value("Missing") is None
        assert snapshot.cards == [43]
