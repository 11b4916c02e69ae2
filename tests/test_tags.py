"""Tests for tag run parsing."""

from obsidian_flashcards.obsidian.tags import ParsedTags, parse_tags


class TestParseTags:
    """Tests for splitting tag runs into markers and tags."""

    def test_flashcard_with_hierarchical_tag(self) -> None:
        """Hierarchical tags are rewritten with ``::``."""
        assert parse_tags("#card #foo/bar", "card") == ParsedTags(
            is_flashcard=True, is_reversed=False, tags=["foo::bar"]
        )

    def test_reverse_markers(self) -> None:
        """Both reverse marker spellings flag a reversed card."""
        for run in ("#card-reverse", "#card/reverse"):
            parsed = parse_tags(run)
            assert parsed.is_flashcard
            assert parsed.is_reversed
            assert parsed.tags == []

    def test_marker_is_case_insensitive(self) -> None:
        """The flashcard tag matches regardless of case."""
        assert parse_tags("#Card #Other").is_flashcard
        assert parse_tags("#Card #Other").tags == ["Other"]

    def test_custom_flashcard_tag(self) -> None:
        """A configured tag replaces the default one."""
        parsed = parse_tags("#card #flash", "flash")
        assert parsed.is_flashcard
        assert parsed.tags == ["card"]

    def test_no_marker(self) -> None:
        """Runs without the marker are plain tags."""
        parsed = parse_tags("#alpha #beta #alpha")
        assert not parsed.is_flashcard
        assert parsed.tags == ["alpha", "beta"]

    def test_empty_input(self) -> None:
        """Empty or missing runs parse to nothing."""
        assert parse_tags(None) == ParsedTags()
        assert parse_tags("   ") == ParsedTags()
