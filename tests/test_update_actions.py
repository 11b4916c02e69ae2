"""Tests for translating update deltas into AnkiConnect actions."""

import pytest

from obsidian_flashcards.anki.update_actions import (
    UpdateStats,
    actions_for_delta,
    plan_update_actions,
)
from obsidian_flashcards.domain.entities.card import ChangeFlags, MediaKind, MediaRef
from obsidian_flashcards.exceptions import ReconciliationIntegrityError
from obsidian_flashcards.sync.reconciler import UpdateDelta


def _delta(card, snapshot, **flags):
    return UpdateDelta(generated=card, remote=snapshot, changes=ChangeFlags(**flags))


class TestActionsForDelta:
    """Tests for per-card action planning."""

    def test_fields_and_tags_share_one_update(self, make_card, make_snapshot) -> None:
        """Field and tag changes are sent as one ``updateNote``."""
        card = make_card(id=1, tags=["a"])
        (action,) = actions_for_delta(_delta(card, make_snapshot(card), fields=True, tags=True))
        assert action == {
            "action": "updateNote",
            "params": {
                "note": {"id": 1, "fields": dict(card.fields), "tags": ["a"]},
            },
        }

    def test_deck_change_moves_cards(self, make_card, make_snapshot) -> None:
        """Deck changes move every card of the note."""
        card = make_card(id=1, deck_name="New")
        (action,) = actions_for_delta(_delta(card, make_snapshot(card), deck=True))
        assert action == {"action": "changeDeck", "params": {"cards": [2], "deck": "New"}}

    def test_model_change_covers_fields_and_tags(self, make_card, make_snapshot) -> None:
        """``updateNoteModel`` carries fields and tags with the new model."""
        card = make_card(id=1, is_reversed=True)
        delta = _delta(card, make_snapshot(card), model=True, fields=True, tags=True)
        (action,) = actions_for_delta(delta)
        assert action["action"] == "updateNoteModel"
        assert action["params"]["note"]["modelName"] == "Obsidian-basic-reversed"
        assert action["params"]["note"]["tags"] == card.tags

    def test_media_only_updates_fields(self, make_card, make_snapshot) -> None:
        """Media without field changes are stored through ``updateNoteFields``."""
        ref = MediaRef("a.png", MediaKind.PICTURE, payload={"filename": "a.png", "data": "AA=="})
        card = make_card(id=1, media=[ref])
        (action,) = actions_for_delta(_delta(card, make_snapshot(card), media=True))
        assert action["action"] == "updateNoteFields"
        assert action["params"]["note"]["picture"] == [ref.payload]

    def test_every_flag_yields_ordered_actions(self, make_card, make_snapshot) -> None:
        """Model, deck and media changes combine in execution order."""
        card = make_card(id=1, media=[MediaRef("a.mp3", MediaKind.AUDIO)])
        delta = _delta(
            card, make_snapshot(card), fields=True, tags=True, deck=True, media=True, model=True
        )
        stats = UpdateStats()
        actions = actions_for_delta(delta, stats)
        assert [a["action"] for a in actions] == [
            "updateNoteModel",
            "updateNoteFields",
            "changeDeck",
        ]
        assert stats == UpdateStats(updates=1, media_updates=1, moves=1, model_changes=1)

    def test_empty_flags_are_an_integrity_error(self, make_card, make_snapshot) -> None:
        """An update without changes is rejected."""
        card = make_card(id=1)
        with pytest.raises(ReconciliationIntegrityError) as exc_info:
            actions_for_delta(_delta(card, make_snapshot(card)))
        assert exc_info.value.error_code == "REC-INT-001"


class TestPlanUpdateActions:
    """Tests for planning a whole update set."""

    def test_actions_are_concatenated(self, make_card, make_snapshot) -> None:
        """Actions of all deltas are returned in delta order."""
        first = make_card(id=1)
        second = make_card(id=5, deck_name="Other")
        actions = plan_update_actions(
            [
                _delta(first, make_snapshot(first), fields=True),
                _delta(second, make_snapshot(second), deck=True),
            ]
        )
        assert [a["action"] for a in actions] == ["updateNote", "changeDeck"]
        assert actions[1]["params"]["cards"] == [6]

    def test_no_deltas(self) -> None:
        """Nothing to update yields no actions."""
        assert plan_update_actions([]) == []
