"""C# string literal scanning: regular, verbatim, raw, and interpolated forms.

Only lexical boundaries are computed here; no escape sequences are decoded.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, replace
from enum import Enum, auto


class LiteralKind(Enum):
    REGULAR = auto()  # "..." with backslash escapes
    VERBATIM = auto()  # @"..." with "" escapes
    RAW = auto()  # """...""" (three or more quotes)
    INTERPOLATED = auto()  # $"...", $@"...", $"""..."""


@dataclass(frozen=True, slots=True)
class StringLiteral:
    """Boundaries of one literal. ``end`` is exclusive and covers the closing quotes."""

    kind: LiteralKind
    start: int
    content_start: int
    content_end: int
    end: int
    quotes: int
    closed: bool
    content: str


def is_escaped(text: str, index: int) -> bool:
    """Return True if the character at *index* is preceded by an odd run of backslashes."""
    count = 0
    i = index - 1
    while i >= 0 and text[i] == "\\":
        count += 1
        i -= 1
    return count % 2 == 1


def count_quotes(text: str, index: int) -> int:
    """Length of the run of '"' characters starting at *index*."""
    i = index
    while i < len(text) and text[i] == '"':
        i += 1
    return i - index


def read_string_literal(text: str, start: int) -> StringLiteral | None:
    """Read the literal beginning at *start* (at its quote or its @/$ prefix).

    Returns None when no literal starts there. An unterminated literal is
    returned with ``closed=False``; it ends at the end of the line for regular
    strings and at the end of the text otherwise.
    """
    i = start
    dollars = ats = 0
    while i < len(text) and text[i] in "@$":
        if text[i] == "@":
            ats += 1
        else:
            dollars += 1
        i += 1
    if i >= len(text) or text[i] != '"' or ats > 1:
        return None
    verbatim = ats == 1
    interpolated = dollars > 0

    quotes = count_quotes(text, i)
    if quotes >= 3 and not verbatim:
        literal = _read_raw(text, start, i, quotes)
    elif verbatim:
        literal = _read_verbatim(text, start, i)
    else:
        literal = _read_regular(text, start, i)

    if interpolated:
        return replace(literal, kind=LiteralKind.INTERPOLATED)
    return literal


def _make(
    kind: LiteralKind,
    text: str,
    start: int,
    content_start: int,
    content_end: int,
    end: int,
    quotes: int,
    closed: bool,
) -> StringLiteral:
    content = text[content_start:content_end]
    return StringLiteral(kind, start, content_start, content_end, end, quotes, closed, content)


def _read_regular(text: str, start: int, quote: int) -> StringLiteral:
    i = quote + 1
    while i < len(text):
        ch = text[i]
        if ch == "\\":
            i += 2
            continue
        if ch == '"':
            return _make(LiteralKind.REGULAR, text, start, quote + 1, i, i + 1, 1, True)
        if ch == "\n":
            break
        i += 1
    i = min(i, len(text))
    return _make(LiteralKind.REGULAR, text, start, quote + 1, i, i, 1, False)


def _read_verbatim(text: str, start: int, quote: int) -> StringLiteral:
    i = quote + 1
    while i < len(text):
        if text[i] == '"':
            if i + 1 < len(text) and text[i + 1] == '"':
                i += 2
                continue
            return _make(LiteralKind.VERBATIM, text, start, quote + 1, i, i + 1, 1, True)
        i += 1
    return _make(LiteralKind.VERBATIM, text, start, quote + 1, len(text), len(text), 1, False)


def _read_raw(text: str, start: int, quote: int, quotes: int) -> StringLiteral:
    content_start = quote + quotes
    i = content_start
    while i < len(text):
        if text[i] == '"':
            run = count_quotes(text, i)
            if run >= quotes:
                return _make(LiteralKind.RAW, text, start, content_start, i, i + quotes, quotes, True)
            i += run
            continue
        i += 1
    return _make(LiteralKind.RAW, text, start, content_start, len(text), len(text), quotes, False)


def literal_at(text: str, i: int) -> StringLiteral | None:
    """Read a literal if one starts at *i*, otherwise return None."""
    ch = text[i]
    if ch == '"' or (ch in "@$" and i + 1 < len(text) and text[i + 1] in '@$"'):
        if i > 0 and (text[i - 1].isalnum() or text[i - 1] == "_") and ch != '"':
            return None
        return read_string_literal(text, i)
    return None


def skip_char_literal(text: str, i: int) -> int:
    """Return the index after a C# char literal at *i* ('x', '\\n')."""
    j = i + 1
    if j < len(text) and text[j] == "\\":
        j += 2
    else:
        j += 1
    if j < len(text) and text[j] == "'":
        return j + 1
    return i + 1


def comment_end(text: str, i: int) -> int | None:
    """If a // or /* comment starts at *i*, return the index just past it.

    A line comment stops before its newline; an unterminated block comment
    runs to the end of *text*.
    """
    if text[i] != "/" or i + 1 >= len(text):
        return None
    if text[i + 1] == "/":
        newline = text.find("\n", i)
        return len(text) if newline == -1 else newline
    if text[i + 1] == "*":
        close = text.find("*/", i + 2)
        return len(text) if close == -1 else close + 2
    return None


def _scan(text: str, start: int = 0) -> Iterator[tuple[int, int, StringLiteral | None]]:
    """Yield (start, end, literal) for each literal; comments come with ``None``."""
    i = start
    while i < len(text):
        if text[i] == "'":
            i = skip_char_literal(text, i)
            continue
        end = comment_end(text, i)
        if end is not None:
            yield i, end, None
            i = end
            continue
        literal = literal_at(text, i)
        if literal is not None:
            yield literal.start, literal.end, literal
            i = max(literal.end, i + 1)
            continue
        i += 1


def iter_string_literals(text: str, start: int = 0) -> Iterator[StringLiteral]:
    """Yield every literal from *start*, skipping char literals and comments."""
    for _, _, literal in _scan(text, start):
        if literal is not None:
            yield literal


def string_ranges(text: str) -> list[tuple[int, int]]:
    """Return (start, end) of every string literal in *text*."""
    return [(lit.start, lit.end) for lit in iter_string_literals(text)]


def comment_ranges(text: str, start: int = 0) -> list[tuple[int, int]]:
    """Return (start, end) of every // and /* */ comment outside literals."""
    return [(s, e) for s, e, literal in _scan(text, start) if literal is None]


def non_code_ranges(text: str, start: int = 0) -> list[tuple[int, int]]:
    """Return (start, end) of every literal and comment, in order."""
    return [(s, e) for s, e, _ in _scan(text, start)]


def is_inside_string(text: str, index: int) -> bool:
    """Return True if *index* falls inside a string literal of *text*."""
    return any(start <= index < end for start, end in string_ranges(text))


def _argument_literals(text: str, start: int) -> Iterator[StringLiteral]:
    """Yield literals that are direct arguments of the call whose '(' precedes *start*."""
    depth = 0
    i = start
    while i < len(text):
        ch = text[i]
        if ch == "'":
            i = skip_char_literal(text, i)
            continue
        end = comment_end(text, i)
        if end is not None:
            i = end
            continue
        literal = literal_at(text, i)
        if literal is not None:
            if depth == 0:
                yield literal
            i = max(literal.end, i + 1)
            continue
        if ch in "([{":
            depth += 1
        elif ch in ")]}":
            depth -= 1
            if depth < 0:
                return
        elif ch == ";" and depth == 0:
            return
        i += 1


def find_string_literal(text: str, start: int, skip_first: bool = False) -> StringLiteral | None:
    """Return the first literal argument at or after *start* (the second if *skip_first*)."""
    skipped = not skip_first
    for literal in _argument_literals(text, start):
        if not skipped:
            skipped = True
            continue
        return literal
    return None


def find_all_string_literals(text: str, start: int) -> list[StringLiteral]:
    """Return every literal argument of the call whose '(' precedes *start*."""
    return list(_argument_literals(text, start))


def find_concatenated_literals(text: str, first: StringLiteral) -> list[StringLiteral]:
    """Return *first* followed by every literal joined to it with '+'."""
    parts = [first]
    if not first.closed:
        return parts
    i = first.end
    while True:
        while i < len(text) and text[i].isspace():
            i += 1
        if i >= len(text) or text[i] != "+":
            break
        i += 1
        while i < len(text) and text[i].isspace():
            i += 1
        if i >= len(text):
            break
        literal = literal_at(text, i)
        if literal is None:
            break
        parts.append(literal)
        if not literal.closed:
            break
        i = literal.end
    return parts
