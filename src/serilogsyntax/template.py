"""Message template tokenizer: finds {Property} holes and their clauses."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum, auto

from serilogsyntax.errors import require_text
from serilogsyntax.tokens import is_ascii_digits, is_name_char


class PropertyType(Enum):
    STANDARD = auto()  # {Name}
    DESTRUCTURED = auto()  # {@Name}
    STRINGIFIED = auto()  # {$Name}
    POSITIONAL = auto()  # {0}


class Recovery(Enum):
    """What to do with a property that never reaches its closing brace."""

    STRICT = auto()  # discard it
    PARTIAL = auto()  # emit it with brace_end_index == -1


@dataclass(frozen=True, slots=True)
class TemplateProperty:
    """One {...} placeholder. All indices are 0-based offsets into the template."""

    name: str
    type: PropertyType
    start_index: int
    length: int
    brace_start_index: int
    brace_end_index: int
    operator_index: int | None = None
    format_specifier: str | None = None
    format_start_index: int | None = None
    alignment: str | None = None
    alignment_start_index: int | None = None

    @property
    def is_complete(self) -> bool:
        return self.brace_end_index != -1

    @property
    def end_index(self) -> int:
        """Offset just past the name."""
        return self.start_index + self.length


class _State(Enum):
    OUTSIDE = auto()
    OPEN = auto()  # just after {, operator allowed
    NAME = auto()
    ALIGNMENT = auto()
    FORMAT = auto()


class TemplateParser:
    """Scan message templates into TemplateProperty values.

    The parser holds no per-call state, so one instance can be shared and
    ``parse`` can be restarted or run concurrently.
    """

    def __init__(self, recovery: Recovery = Recovery.STRICT) -> None:
        self.recovery = recovery

    def parse(self, template: str) -> Iterator[TemplateProperty]:
        """Lazily yield the properties of *template* in source order."""
        require_text(template, "template")
        return _TemplateScanner(template, self.recovery).scan()


class _TemplateScanner:
    """Single left-to-right pass over one template."""

    def __init__(self, text: str, recovery: Recovery) -> None:
        self._text = text
        self._recovery = recovery
        self._pos = 0
        self._state = _State.OUTSIDE
        self._reset()

    def _reset(self) -> None:
        self._brace_start = -1
        self._operator_index: int | None = None
        self._type = PropertyType.STANDARD
        self._name_start = -1
        self._name_end = -1
        self._alignment_start: int | None = None
        self._alignment_end: int | None = None
        self._format_start: int | None = None

    def scan(self) -> Iterator[TemplateProperty]:
        text = self._text
        while self._pos < len(text):
            ch = text[self._pos]
            if self._state == _State.OUTSIDE:
                self._scan_outside(ch)
                continue
            if self._state == _State.OPEN:
                self._scan_open(ch)
                continue
            if self._state == _State.NAME:
                prop = self._scan_name(ch)
            elif self._state == _State.ALIGNMENT:
                prop = self._scan_alignment(ch)
            else:
                prop = self._scan_format(ch)
            if prop is not None:
                yield prop

        # End of input inside a property
        if self._state in (_State.NAME, _State.ALIGNMENT, _State.FORMAT):
            prop = self._interrupt()
            if prop is not None:
                yield prop

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _peek(self, offset: int = 0) -> str:
        idx = self._pos + offset
        if idx < len(self._text):
            return self._text[idx]
        return ""

    def _abandon(self) -> None:
        """Drop the property; the current character is rescanned as literal text."""
        self._state = _State.OUTSIDE
        self._reset()

    def _interrupt(self) -> TemplateProperty | None:
        """Handle end of input or an unrelated delimiter before the closing brace."""
        prop = None
        if self._recovery == Recovery.PARTIAL:
            prop = self._build(brace_end=-1)
        self._abandon()
        return prop

    def _finish(self) -> TemplateProperty:
        prop = self._build(brace_end=self._pos)
        self._pos += 1
        self._abandon()
        return prop

    def _build(self, brace_end: int) -> TemplateProperty:
        text = self._text
        if self._state == _State.NAME:
            self._name_end = self._pos
        if self._state == _State.ALIGNMENT:
            self._alignment_end = self._pos
        name = text[self._name_start : self._name_end]

        if self._operator_index is not None:
            prop_type = self._type
        elif is_ascii_digits(name):
            prop_type = PropertyType.POSITIONAL
        else:
            prop_type = PropertyType.STANDARD

        alignment = None
        if self._alignment_start is not None and self._alignment_end is not None:
            alignment = text[self._alignment_start : self._alignment_end]

        format_specifier = None
        if self._format_start is not None:
            format_specifier = text[self._format_start : self._pos]

        return TemplateProperty(
            name=name,
            type=prop_type,
            start_index=self._name_start,
            length=len(name),
            brace_start_index=self._brace_start,
            brace_end_index=brace_end,
            operator_index=self._operator_index,
            format_specifier=format_specifier,
            format_start_index=self._format_start,
            alignment=alignment,
            alignment_start_index=self._alignment_start,
        )

    # ------------------------------------------------------------------
    # States
    # ------------------------------------------------------------------

    def _scan_outside(self, ch: str) -> None:
        if ch == "{":
            if self._peek(1) == "{":
                self._pos += 2
                return
            self._brace_start = self._pos
            self._state = _State.OPEN
            self._pos += 1
            return
        if ch == "}" and self._peek(1) == "}":
            self._pos += 2
            return
        self._pos += 1

    def _scan_open(self, ch: str) -> None:
        if ch in "@$" and self._operator_index is None:
            self._operator_index = self._pos
            self._type = PropertyType.DESTRUCTURED if ch == "@" else PropertyType.STRINGIFIED
            self._pos += 1
            return

        if is_name_char(ch):
            self._name_start = self._pos
            self._state = _State.NAME
            self._pos += 1
            return

        if ch == "}":
            # Empty body: {} {@} {$}
            self._abandon()
            self._pos += 1
            return

        # Whitespace, a second operator, or any other character
        self._abandon()

    def _scan_name(self, ch: str) -> TemplateProperty | None:
        if is_name_char(ch):
            self._pos += 1
            return None
        if ch == "}":
            return self._finish()
        if ch == ",":
            self._name_end = self._pos
            self._alignment_start = self._pos + 1
            self._state = _State.ALIGNMENT
            self._pos += 1
            return None
        if ch == ":":
            self._name_end = self._pos
            self._format_start = self._pos + 1
            self._state = _State.FORMAT
            self._pos += 1
            return None
        if ch == "{":
            return self._interrupt()
        self._abandon()
        return None

    def _scan_alignment(self, ch: str) -> TemplateProperty | None:
        assert self._alignment_start is not None
        if ch == "-" and self._pos == self._alignment_start:
            self._pos += 1
            return None
        if "0" <= ch <= "9":
            self._pos += 1
            return None
        if ch in "}:":
            if not is_ascii_digits(self._text[self._alignment_start : self._pos].lstrip("-")):
                self._abandon()
                return None
            if ch == "}":
                return self._finish()
            self._alignment_end = self._pos
            self._format_start = self._pos + 1
            self._state = _State.FORMAT
            self._pos += 1
            return None
        if ch == "{":
            return self._interrupt()
        self._abandon()
        return None

    def _scan_format(self, ch: str) -> TemplateProperty | None:
        if ch == "}":
            return self._finish()
        if ch == "{":
            return self._interrupt()
        self._pos += 1
        return None


_STRICT = TemplateParser(Recovery.STRICT)
_PARTIAL = TemplateParser(Recovery.PARTIAL)


def parse_strict(template: str) -> list[TemplateProperty]:
    """Parse *template*, discarding any unterminated property."""
    return list(_STRICT.parse(template))


def parse_for_navigation(template: str) -> list[TemplateProperty]:
    """Parse *template*, keeping unterminated properties with brace_end_index == -1."""
    return list(_PARTIAL.parse(template))


def parse_template(template: str) -> list[TemplateProperty]:
    """Parse *template* with the canonical (strict) recovery policy."""
    return parse_strict(template)
