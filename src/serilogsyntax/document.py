"""Immutable text snapshot with a line index."""

from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass

from serilogsyntax.errors import require_text
from serilogsyntax.tokens import TextSpan


@dataclass(frozen=True, slots=True)
class Line:
    """One line of a snapshot; ``end`` excludes the line break."""

    number: int
    start: int
    end: int
    text: str

    @property
    def span(self) -> TextSpan:
        return TextSpan(self.start, self.end - self.start)


class TextSnapshot:
    """A fixed version of a document. Line numbers are 0-based."""

    def __init__(self, text: str) -> None:
        self.text = require_text(text)
        starts = [0]
        for i, ch in enumerate(text):
            if ch == "\n":
                starts.append(i + 1)
        self._starts = starts

    def __len__(self) -> int:
        return len(self.text)

    @property
    def line_count(self) -> int:
        return len(self._starts)

    def line(self, number: int) -> Line:
        if not 0 <= number < len(self._starts):
            raise IndexError(f"line {number} out of range (0..{len(self._starts) - 1})")
        start = self._starts[number]
        if number + 1 < len(self._starts):
            end = self._starts[number + 1] - 1
        else:
            end = len(self.text)
        if end > start and self.text[end - 1] == "\r":
            end -= 1
        return Line(number, start, end, self.text[start:end])

    def line_text(self, number: int) -> str:
        return self.line(number).text

    def line_number_at(self, position: int) -> int:
        """Return the number of the line containing *position*."""
        return bisect_right(self._starts, position) - 1

    def lines_in(self, span: TextSpan) -> range:
        first = self.line_number_at(span.start)
        last = self.line_number_at(max(span.start, span.end - 1))
        return range(first, last + 1)

    def get_text(self, span: TextSpan) -> str:
        return self.text[span.start : span.end]
