"""Tests for excluded range detection."""

from obsidian_flashcards.obsidian.ranges import Range, compute_excluded_ranges


class TestRange:
    """Tests for the half-open range helpers."""

    def test_contains_is_half_open(self) -> None:
        """A span may end exactly at the range end."""
        r = Range(5, 10)
        assert r.contains(5, 10)
        assert r.contains(6, 9)
        assert not r.contains(4, 9)
        assert not r.contains(6, 11)

    def test_covers_excludes_end(self) -> None:
        """The end index itself is outside the range."""
        r = Range(5, 10)
        assert r.covers(5)
        assert r.covers(9)
        assert not r.covers(10)


class TestComputeExcludedRanges:
    """Tests for block and inline range scanning."""

    def test_fenced_code_is_block_range(self) -> None:
        """A fenced code block spans from opening to closing fence."""
        text = "intro\n```python\nx = 1\n```\noutro"
        ranges = compute_excluded_ranges(text)
        assert len(ranges.block_ranges) == 1
        block = ranges.block_ranges[0]
        assert text[block.start : block.end] == "```python\nx = 1\n```"

    def test_front_matter_only_at_start(self) -> None:
        """Front matter is excluded only when the note starts with it."""
        text = "---\ntags: [a]\n---\nbody"
        ranges = compute_excluded_ranges(text)
        assert ranges.block_ranges[0].start == 0
        assert text[: ranges.block_ranges[0].end] == "---\ntags: [a]\n---"

        later = compute_excluded_ranges("body\n---\nx\n---\n")
        assert later.block_ranges == []

    def test_multiline_math_and_comments_are_block_ranges(self) -> None:
        """Multi-line math, Obsidian comments and HTML comments are blocks."""
        text = "$$\na\n$$\n%%\nhidden\n%%\n<!--\nnote\n-->"
        kinds = [text[r.start : r.end][:2] for r in compute_excluded_ranges(text).block_ranges]
        assert kinds == ["$$", "%%", "<!"]

    def test_single_line_constructs_are_inline_only(self) -> None:
        """One-line math and comments never become block ranges."""
        text = "a $x$ b `code` c %%note%% d $$y$$"
        ranges = compute_excluded_ranges(text)
        assert ranges.block_ranges == []
        spans = [text[r.start : r.end] for r in ranges.inline_ranges]
        assert spans == ["$x$", "`code`", "%%note%%", "$$y$$"]

    def test_unterminated_construct_produces_no_range(self) -> None:
        """An opening $$ without a closing one is ignored."""
        ranges = compute_excluded_ranges("start $$ never closed\nmore text")
        assert ranges.block_ranges == []

    def test_block_range_containing(self) -> None:
        """Lookups find the enclosing block range by index or span."""
        text = "x\n```\nQ :: A\n```\ny"
        ranges = compute_excluded_ranges(text)
        inside = text.index("Q")
        assert ranges.block_range_containing(inside) == ranges.block_ranges[0]
        assert ranges.in_block_range(inside, inside + 6)
        assert ranges.block_range_containing(text.index("y")) is None

    def test_in_inline_range(self) -> None:
        """Indexes inside an inline code span are reported."""
        text = "`a :: b` and c :: d"
        ranges = compute_excluded_ranges(text)
        assert ranges.in_inline_range(text.index("::"))
        assert not ranges.in_inline_range(text.rindex("::"))


class TestMaskBlockRanges:
    """Tests for the offset-preserving masked copy."""

    def test_interior_is_masked(self) -> None:
        """Only the inside of block ranges changes, delimiters stay."""
        text = "Q #card\n```\n# x\n```\nafter"
        masked = compute_excluded_ranges(text).mask_block_ranges(text, fill="*")
        assert len(masked) == len(text)
        assert masked == "Q #card\n``*******``\nafter"

    def test_without_block_ranges(self) -> None:
        """Text without block ranges is returned unchanged."""
        text = "a `b` c :: d"
        assert compute_excluded_ranges(text).mask_block_ranges(text) == text
