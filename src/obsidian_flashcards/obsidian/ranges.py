"""Text ranges excluded from card detection.

Fenced code, math, comments, and front matter can contain card-shaped text
that must never become a card. Multi-line constructs are block ranges;
single-line constructs are inline ranges.
"""

from __future__ import annotations

import bisect
from dataclasses import dataclass, field

from .patterns import BLOCK_RANGES_RE, INLINE_RANGES_RE

# Constructs that only ever appear as blocks, even on one line
_ALWAYS_BLOCK = frozenset({"front_matter", "code_block"})


@dataclass(frozen=True, order=True)
class Range:
    """Half-open character range ``[start, end)`` into a note's text."""

    start: int
    end: int

    def contains(self, start: int, end: int) -> bool:
        """True if the span ``[start, end)`` lies entirely inside this range."""
        return self.start <= start and end <= self.end

    def covers(self, index: int) -> bool:
        """True if the character at ``index`` lies inside this range."""
        return self.start <= index < self.end


@dataclass(frozen=True)
class ExcludedRanges:
    """Block and inline ranges of one note, each sorted by start offset."""

    block_ranges: list[Range] = field(default_factory=list)
    inline_ranges: list[Range] = field(default_factory=list)

    def block_range_containing(self, start: int, end: int | None = None) -> Range | None:
        """Block range that holds the span, or the index when ``end`` is None."""
        candidate = _last_starting_at_or_before(self.block_ranges, start)
        if candidate is None:
            return None
        if end is None:
            return candidate if candidate.covers(start) else None
        return candidate if candidate.contains(start, end) else None

    def mask_block_ranges(self, text: str, fill: str = "\x00") -> str:
        """Copy of ``text`` with the inside of every block range blanked out.

        Offsets are unchanged, and the two delimiter characters at each end of
        a range are kept so that ``%%...%%`` settings blocks still match.
        Line breaks are masked too, so masked code never reads as blank lines.
        """
        parts: list[str] = []
        position = 0
        for span in self.block_ranges:
            inner_start, inner_end = span.start + 2, span.end - 2
            if inner_end <= inner_start:
                continue
            parts.append(text[position:inner_start])
            parts.append(fill * (inner_end - inner_start))
            position = inner_end
        parts.append(text[position:])
        return "".join(parts)

    def in_block_range(self, start: int, end: int) -> bool:
        return self.block_range_containing(start, end) is not None

    def in_inline_range(self, index: int) -> bool:
        candidate = _last_starting_at_or_before(self.inline_ranges, index)
        return candidate is not None and candidate.covers(index)


def _last_starting_at_or_before(ranges: list[Range], index: int) -> Range | None:
    # Ranges come from non-overlapping left-to-right scans, so the only
    # candidate is the last one starting at or before ``index``.
    position = bisect.bisect_right([r.start for r in ranges], index)
    return ranges[position - 1] if position else None


def compute_excluded_ranges(text: str) -> ExcludedRanges:
    """Scan a note once per scope and collect excluded ranges.

    Unterminated constructs (an opening ``$$`` without a closing one) simply
    produce no range.

    Args:
        text: Full note text

    Returns:
        Excluded block and inline ranges
    """
    block_ranges: list[Range] = []
    inline_ranges: list[Range] = []

    for match in BLOCK_RANGES_RE.finditer(text):
        kind = match.lastgroup
        span = Range(match.start(), match.end())
        if kind not in _ALWAYS_BLOCK and "\n" not in match.group(0):
            # One-line math and comments belong to the inline scan
            continue
        block_ranges.append(span)

    for match in INLINE_RANGES_RE.finditer(text):
        inline_ranges.append(Range(match.start(), match.end()))

    return ExcludedRanges(block_ranges=block_ranges, inline_ranges=inline_ranges)
