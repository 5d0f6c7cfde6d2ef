"""Token types, spans, and character classification helpers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto


class TokenType(Enum):
    # Literals
    STRING = auto()  # 'text' with '' escape
    NUMBER = auto()  # 42, -1.5, 0x1F
    BOOLEAN = auto()  # true / false
    NULL = auto()  # null

    # Names
    IDENTIFIER = auto()  # property name or path segment
    BUILTIN = auto()  # @t @m @mt @l @x @p @i @r @sp @tr
    FUNCTION = auto()  # identifier immediately followed by (
    KEYWORD = auto()  # if then else undefined

    # Operators
    COMPARISON = auto()  # = <> != < > <= >=
    BOOLEAN_OPERATOR = auto()  # and or not
    ARITHMETIC = auto()  # + - * / % ^
    STRING_OPERATOR = auto()  # like, not like
    MEMBERSHIP = auto()  # in, not in
    NULL_OPERATOR = auto()  # is null, is not null
    CASE_MODIFIER = auto()  # ci
    SPREAD = auto()  # ..
    WILDCARD = auto()  # ? or * inside an indexer

    # Directives (template holes only)
    IF_DIRECTIVE = auto()  # #if
    ELSE_IF_DIRECTIVE = auto()  # #else if
    ELSE_DIRECTIVE = auto()  # #else
    EACH_DIRECTIVE = auto()  # #each
    END_DIRECTIVE = auto()  # #end
    DELIMIT_DIRECTIVE = auto()  # #delimit

    # Structural (single-character)
    DOT = auto()  # .
    COMMA = auto()  # ,
    COLON = auto()  # :
    LPAREN = auto()  # (
    RPAREN = auto()  # )
    LBRACKET = auto()  # [
    RBRACKET = auto()  # ]
    LBRACE = auto()  # {
    RBRACE = auto()  # }

    UNKNOWN = auto()


@dataclass(frozen=True, slots=True)
class Token:
    """A single expression token: type, source text, and 0-based offset."""

    type: TokenType
    value: str
    start: int
    length: int

    @property
    def end(self) -> int:
        return self.start + self.length


@dataclass(frozen=True, slots=True)
class TextSpan:
    """Half-open character range [start, start + length)."""

    start: int
    length: int

    @property
    def end(self) -> int:
        return self.start + self.length

    def overlaps_with(self, other: TextSpan) -> bool:
        """Return True if the two spans share at least one character."""
        return max(self.start, other.start) < min(self.end, other.end)

    def intersects_with(self, other: TextSpan) -> bool:
        """Like overlaps_with, but touching or zero-length spans count."""
        return self.start <= other.end and other.start <= self.end

    def contains(self, position: int) -> bool:
        return self.start <= position < self.end


def is_name_char(ch: str) -> bool:
    """Return True if ch may appear in a template property name."""
    return ch.isalnum() or ch == "_"


def is_ascii_digits(text: str) -> bool:
    """Return True if text is non-empty and made only of ASCII digits."""
    return bool(text) and all("0" <= ch <= "9" for ch in text)


def is_ident_start(ch: str) -> bool:
    """Return True if ch can start an expression identifier."""
    return ch.isalpha() or ch == "_"


def is_ident_char(ch: str) -> bool:
    """Return True if ch can continue an expression identifier."""
    return ch.isalnum() or ch == "_"


def is_hex_digit(ch: str) -> bool:
    """Return True if ch is a hexadecimal digit."""
    return ch != "" and ch in "0123456789abcdefABCDEF"
