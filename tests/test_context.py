"""Tests for heading context resolution and deck modifications."""

import pytest

from obsidian_flashcards.config import ContextMode
from obsidian_flashcards.obsidian.context import apply_deck_modification, resolve_context
from obsidian_flashcards.obsidian.headings import HeadingEntry
from obsidian_flashcards.obsidian.scoped_settings import (
    IgnoreTarget,
    ScopedSettings,
    ScopeTarget,
)


class TestApplyDeckModification:
    """Tests for deck path arithmetic."""

    @pytest.mark.parametrize(
        ("deck", "modification", "expected"),
        [
            ("Base", "::Sub", "Base::Sub"),
            ("Base::Sub", "<<", "Base"),
            ("Base::Sub", "<<::Other", "Base::Other"),
            ("Base", "Fresh::Deck", "Fresh::Deck"),
            ("", "::Sub", "Sub"),
        ],
    )
    def test_valid_modifications(self, diagnostics, deck, modification, expected) -> None:
        """Descend, ascend, sibling and replacement paths resolve."""
        assert apply_deck_modification(deck, modification, diagnostics) == expected
        assert len(diagnostics) == 0

    def test_underflow(self, diagnostics) -> None:
        """Ascending above the top-level deck fails with one warning."""
        assert apply_deck_modification("Base", "<<::<<", diagnostics) is None
        assert diagnostics.events() == ["deck_modification_invalid"]

    def test_zero_segments(self, diagnostics) -> None:
        """Ascending out of the only segment leaves no deck."""
        assert apply_deck_modification("Base", "<<", diagnostics) is None
        assert len(diagnostics.warnings) == 1

    def test_empty_segment(self, diagnostics) -> None:
        """Empty segments other than a leading one are invalid."""
        assert apply_deck_modification("Base", "::A::::B", diagnostics) is None
        assert diagnostics.events() == ["deck_modification_invalid"]

    def test_blank_segment(self, diagnostics) -> None:
        """A whitespace-only segment counts as empty."""
        assert apply_deck_modification("Base", "::Sub:: ", diagnostics) is None
        assert diagnostics.events() == ["deck_modification_invalid"]

    def test_segments_are_stripped(self, diagnostics) -> None:
        """Spaces around segment names are dropped."""
        assert apply_deck_modification("Base", ":: Sub ::<<:: Other", diagnostics) == "Base::Other"
        assert len(diagnostics) == 0


class TestResolveContext:
    """Tests for ancestor chains, decks and inherited tags."""

    def test_context_composition(self, make_note_config, diagnostics) -> None:
        """A card under ``## B`` inherits ``A > B`` and B's sub-deck."""
        headings = [
            HeadingEntry(level=1, text="A", offset=0),
            HeadingEntry(
                level=2, text="B", offset=10, scoped_settings=ScopedSettings(deck="::Sub")
            ),
        ]
        config = make_note_config(context_mode=ContextMode.ALL)
        context = resolve_context(headings, 20, 0, config, diagnostics)
        assert context.ancestor_texts == ["A", "B"]
        assert context.deck_name == "Base::Sub"

    def test_card_before_first_heading(self, make_note_config, diagnostics) -> None:
        """Without headings above, the note deck applies."""
        headings = [HeadingEntry(level=1, text="A", offset=50)]
        context = resolve_context(headings, 5, 0, make_note_config(), diagnostics)
        assert context.ancestor_texts == []
        assert context.deck_name == "Base"

    def test_siblings_are_not_ancestors(self, make_note_config, diagnostics) -> None:
        """Only the nearest heading of each shallower level is kept."""
        headings = [
            HeadingEntry(level=1, text="Root", offset=0),
            HeadingEntry(level=2, text="First", offset=10),
            HeadingEntry(level=3, text="Deep", offset=20),
            HeadingEntry(level=2, text="Second", offset=30),
        ]
        config = make_note_config(context_mode=ContextMode.HEADINGS)
        context = resolve_context(headings, 40, 0, config, diagnostics)
        assert context.ancestor_texts == ["Root", "Second"]

    def test_heading_card_level_limits_chain(self, make_note_config, diagnostics) -> None:
        """A level-2 heading card starts its chain at its own heading."""
        headings = [
            HeadingEntry(level=1, text="Root", offset=0),
            HeadingEntry(level=2, text="Sub", offset=10),
            HeadingEntry(level=3, text="Deeper", offset=20),
            HeadingEntry(level=2, text="Card", offset=30),
        ]
        config = make_note_config(context_mode=ContextMode.HEADINGS)
        context = resolve_context(headings, 30, 2, config, diagnostics)
        assert context.ancestor_texts == ["Root", "Card"]

    def test_tags_follow_context_mode(self, make_note_config, diagnostics) -> None:
        """Tags are inherited only when the mode includes them."""
        headings = [
            HeadingEntry(level=1, text="A", offset=0, tags=["a"]),
            HeadingEntry(level=2, text="B", offset=10, tags=["b", "a"]),
        ]
        with_tags = resolve_context(
            headings, 20, 0, make_note_config(context_mode=ContextMode.TAGS), diagnostics
        )
        assert with_tags.context_tags == ["a", "b"]
        assert with_tags.ancestor_texts == []

        without = resolve_context(headings, 20, 0, make_note_config(), diagnostics)
        assert without.context_tags == []

    def test_scoped_apply_overrides_mode(self, make_note_config, diagnostics) -> None:
        """``apply: all`` includes a heading even when the note mode is none."""
        headings = [
            HeadingEntry(
                level=1,
                text="A",
                offset=0,
                tags=["a"],
                scoped_settings=ScopedSettings(apply=ScopeTarget.ALL),
            ),
            HeadingEntry(level=2, text="B", offset=10, tags=["b"]),
        ]
        context = resolve_context(headings, 20, 0, make_note_config(), diagnostics)
        assert context.ancestor_texts == ["A"]
        assert context.context_tags == ["a"]

    def test_scoped_ignore_overrides_mode(self, make_note_config, diagnostics) -> None:
        """``ignore: heading`` drops one heading text from the chain."""
        headings = [
            HeadingEntry(level=1, text="A", offset=0),
            HeadingEntry(
                level=2,
                text="B",
                offset=10,
                scoped_settings=ScopedSettings(ignore=IgnoreTarget.HEADING),
            ),
        ]
        config = make_note_config(context_mode=ContextMode.ALL)
        assert resolve_context(headings, 20, 0, config, diagnostics).ancestor_texts == ["A"]

    def test_ignore_previous_tags_resets(self, make_note_config, diagnostics) -> None:
        """``ignore: previous-tags`` drops ancestor tags but keeps its own."""
        headings = [
            HeadingEntry(level=1, text="A", offset=0, tags=["a"]),
            HeadingEntry(
                level=2,
                text="B",
                offset=10,
                tags=["b"],
                scoped_settings=ScopedSettings(ignore=IgnoreTarget.PREVIOUS_TAGS),
            ),
        ]
        config = make_note_config(context_mode=ContextMode.TAGS)
        assert resolve_context(headings, 20, 0, config, diagnostics).context_tags == ["b"]

    def test_deck_underflow_falls_back_to_note_deck(
        self, make_note_config, diagnostics
    ) -> None:
        """An invalid deck modification reverts to the note deck."""
        headings = [
            HeadingEntry(
                level=1, text="A", offset=0, scoped_settings=ScopedSettings(deck="<<::<<")
            ),
            HeadingEntry(
                level=2, text="B", offset=10, scoped_settings=ScopedSettings(deck="::Sub")
            ),
        ]
        context = resolve_context(headings, 20, 0, make_note_config(), diagnostics)
        assert context.deck_name == "Base::Sub"
        assert diagnostics.events() == ["deck_modification_invalid"]
