"""Multi-line string boundary tracking for raw (\"\"\"...) and verbatim (@"...) literals.

Scans are bounded by the windows in StringWindows so a query costs a small
constant number of line reads regardless of file size.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from enum import Enum, auto

from loguru import logger

from serilogsyntax import logs
from serilogsyntax.calls import CallDetector, CallMatch, ExpressionContext
from serilogsyntax.document import TextSnapshot
from serilogsyntax.strings import StringLiteral, count_quotes, iter_string_literals
from serilogsyntax.tokens import TextSpan


@dataclass(frozen=True, slots=True)
class StringWindows:
    """How far (in lines) the tracker may look for delimiters."""

    verbatim_lookback: int = 50
    raw_lookback: int = 100
    raw_lookforward: int = 500
    continuation_lookback: int = 5


class StringKind(Enum):
    RAW = auto()
    VERBATIM = auto()


@dataclass(frozen=True, slots=True)
class StringRegion:
    """A literal spanning several lines.

    ``close_line`` is None when no closing delimiter was found in the window.
    ``owner`` is the logging call the literal is an argument of, if any.
    """

    kind: StringKind
    open_line: int
    close_line: int | None
    delimiter_index: int
    quotes: int
    owner: CallMatch | None

    @property
    def is_logging_call(self) -> bool:
        return self.owner is not None

    @property
    def context(self) -> ExpressionContext:
        return self.owner.context if self.owner is not None else ExpressionContext.NONE

    def contains(self, line: int) -> bool:
        """Is any of *line*'s text inside the literal?

        The closing line of a raw literal holds only indentation before its
        delimiter; the closing line of a verbatim literal can hold content.
        """
        if line <= self.open_line:
            return False
        if self.close_line is None:
            return True
        if self.kind == StringKind.RAW:
            return line < self.close_line
        return line <= self.close_line


_MISSING = object()


def verbatim_close_index(text: str, start: int = 0) -> int:
    """Index of the first lone '"' (one not doubled) in *text*, or -1."""
    i = start
    while i < len(text):
        if text[i] == '"':
            if i + 1 < len(text) and text[i + 1] == '"':
                i += 2
                continue
            return i
        i += 1
    return -1


def _is_verbatim(literal: StringLiteral, text: str) -> bool:
    return "@" in text[literal.start : literal.content_start]


def _unclosed_verbatim(text: str) -> StringLiteral | None:
    """The verbatim literal left open at the end of a single line, if any."""
    last = None
    for literal in iter_string_literals(text):
        last = literal
    if last is not None and not last.closed and _is_verbatim(last, text):
        return last
    return None


def _raw_opener(text: str) -> StringLiteral | None:
    """A raw literal that opens on this line and continues on the next."""
    for literal in iter_string_literals(text):
        if literal.quotes >= 3 and not literal.closed and not literal.content.strip():
            return literal
    return None


class MultiLineStringTracker:
    """Answer "is this line inside a multi-line string, and whose?"."""

    def __init__(self, detector: CallDetector, windows: StringWindows | None = None) -> None:
        self.detector = detector
        self.windows = windows if windows is not None else StringWindows()
        self._cache: dict[int, StringRegion | None] = {}
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def find_region(self, snapshot: TextSnapshot, line: int) -> StringRegion | None:
        """Return the multi-line literal containing *line*, whoever owns it."""
        with self._lock:
            cached = self._cache.get(line, _MISSING)
        if cached is not _MISSING:
            return cached  # type: ignore[return-value]

        region = self._find_raw(snapshot, line)
        if region is None:
            region = self._find_verbatim(snapshot, line)

        with self._lock:
            self._cache[line] = region
        return region

    def is_inside_raw_string_literal(self, snapshot: TextSnapshot, span: TextSpan) -> bool:
        """True if *span* starts inside a raw literal owned by a logging call."""
        region = self.find_region(snapshot, snapshot.line_number_at(span.start))
        return region is not None and region.kind == StringKind.RAW and region.is_logging_call

    def is_inside_verbatim_string(self, snapshot: TextSnapshot, span: TextSpan) -> bool:
        """True if *span* starts inside a verbatim literal owned by a logging call."""
        region = self.find_region(snapshot, snapshot.line_number_at(span.start))
        return (
            region is not None and region.kind == StringKind.VERBATIM and region.is_logging_call
        )

    def invalidate_line(self, line: int) -> None:
        with self._lock:
            self._cache.pop(line, None)

    def clear_cache(self) -> None:
        with self._lock:
            count = len(self._cache)
            self._cache.clear()
        logger.debug(logs.TRACKER_CACHE_CLEARED.format(count=count))

    # ------------------------------------------------------------------
    # Raw strings
    # ------------------------------------------------------------------

    def _find_raw(self, snapshot: TextSnapshot, line: int) -> StringRegion | None:
        i = max(0, line - self.windows.raw_lookback)
        while i < line:
            text = snapshot.line_text(i)
            opener = _raw_opener(text) if '"""' in text else None
            if opener is None or self._find_verbatim(snapshot, i) is not None:
                i += 1
                continue

            close = self._find_raw_close(snapshot, i, opener.quotes)
            if close is not None and close < line:
                # Content lines of a closed literal cannot hold openers
                i = close + 1
                continue
            if close == line:
                return None

            logger.debug(
                logs.RAW_REGION_FOUND.format(quotes=opener.quotes, open_line=i, close_line=close)
            )
            return self._region(snapshot, StringKind.RAW, i, close, opener)
        return None

    def _find_raw_close(self, snapshot: TextSnapshot, open_line: int, quotes: int) -> int | None:
        last = min(snapshot.line_count, open_line + 1 + self.windows.raw_lookforward)
        for j in range(open_line + 1, last):
            stripped = snapshot.line_text(j).lstrip()
            if count_quotes(stripped, 0) == quotes:
                return j
        return None

    # ------------------------------------------------------------------
    # Verbatim strings
    # ------------------------------------------------------------------

    def _find_verbatim(self, snapshot: TextSnapshot, line: int) -> StringRegion | None:
        lowest = max(0, line - self.windows.verbatim_lookback)
        for i in range(line - 1, lowest - 1, -1):
            text = snapshot.line_text(i)
            if '@"' not in text:
                continue
            opener = _unclosed_verbatim(text)
            if opener is None:
                continue
            for j in range(i + 1, line):
                if verbatim_close_index(snapshot.line_text(j)) != -1:
                    return None
            close = self._find_verbatim_close(snapshot, line)
            logger.debug(logs.VERBATIM_REGION_FOUND.format(open_line=i, line=line))
            return self._region(snapshot, StringKind.VERBATIM, i, close, opener)
        return None

    def _find_verbatim_close(self, snapshot: TextSnapshot, line: int) -> int | None:
        last = min(snapshot.line_count, line + self.windows.raw_lookforward)
        for j in range(line, last):
            if verbatim_close_index(snapshot.line_text(j)) != -1:
                return j
        return None

    # ------------------------------------------------------------------
    # Ownership
    # ------------------------------------------------------------------

    def _region(
        self,
        snapshot: TextSnapshot,
        kind: StringKind,
        open_line: int,
        close_line: int | None,
        opener: StringLiteral,
    ) -> StringRegion:
        owner = self._owner(snapshot, open_line, opener.start)
        if owner is None:
            logger.debug(logs.REGION_NOT_LOGGING.format(open_line=open_line))
        return StringRegion(kind, open_line, close_line, opener.start, opener.quotes, owner)

    def _owner(self, snapshot: TextSnapshot, open_line: int, delimiter: int) -> CallMatch | None:
        """The logging call whose argument list is open right before the delimiter.

        The call may start on an earlier line when arguments are wrapped.
        """
        prefix = snapshot.line_text(open_line)[:delimiter]
        first = max(0, open_line - self.windows.continuation_lookback)
        for start in range(open_line, first - 1, -1):
            if start < open_line:
                prefix = snapshot.line_text(start) + "\n" + prefix
            owner = self.detector.find_owner(prefix)
            if owner is not None:
                return owner
        return None
