"""Expression parser: turns expression tokens into highlight regions.

Two entry points:

* ``parse`` classifies a bare expression (filters, computed properties,
  conditional sinks).
* ``parse_template`` walks an expression *template*, where expressions sit
  inside ``{...}`` holes and ``{#if}``/``{#each}`` directives open blocks
  closed by ``{#end}``.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum, auto

from serilogsyntax.errors import require_text
from serilogsyntax.lexer import ExpressionLexer
from serilogsyntax.regions import Category, ExpressionRegion
from serilogsyntax.tokens import Token, TokenType, is_ident_char, is_ident_start

TOKEN_CATEGORIES: dict[TokenType, Category] = {
    TokenType.STRING: Category.EXPRESSION_LITERAL,
    TokenType.NUMBER: Category.EXPRESSION_LITERAL,
    TokenType.BOOLEAN: Category.EXPRESSION_LITERAL,
    TokenType.NULL: Category.EXPRESSION_LITERAL,
    TokenType.KEYWORD: Category.EXPRESSION_KEYWORD,
    TokenType.IDENTIFIER: Category.EXPRESSION_PROPERTY,
    TokenType.BUILTIN: Category.EXPRESSION_BUILTIN,
    TokenType.FUNCTION: Category.EXPRESSION_FUNCTION,
    TokenType.COMPARISON: Category.EXPRESSION_OPERATOR,
    TokenType.BOOLEAN_OPERATOR: Category.EXPRESSION_OPERATOR,
    TokenType.ARITHMETIC: Category.EXPRESSION_OPERATOR,
    TokenType.STRING_OPERATOR: Category.EXPRESSION_OPERATOR,
    TokenType.MEMBERSHIP: Category.EXPRESSION_OPERATOR,
    TokenType.NULL_OPERATOR: Category.EXPRESSION_OPERATOR,
    TokenType.CASE_MODIFIER: Category.EXPRESSION_OPERATOR,
    TokenType.SPREAD: Category.EXPRESSION_OPERATOR,
    TokenType.WILDCARD: Category.EXPRESSION_OPERATOR,
    TokenType.IF_DIRECTIVE: Category.EXPRESSION_DIRECTIVE,
    TokenType.ELSE_IF_DIRECTIVE: Category.EXPRESSION_DIRECTIVE,
    TokenType.ELSE_DIRECTIVE: Category.EXPRESSION_DIRECTIVE,
    TokenType.EACH_DIRECTIVE: Category.EXPRESSION_DIRECTIVE,
    TokenType.END_DIRECTIVE: Category.EXPRESSION_DIRECTIVE,
    TokenType.DELIMIT_DIRECTIVE: Category.EXPRESSION_DIRECTIVE,
}

_DIRECTIVE_TYPES = frozenset(
    {
        TokenType.IF_DIRECTIVE,
        TokenType.ELSE_IF_DIRECTIVE,
        TokenType.ELSE_DIRECTIVE,
        TokenType.EACH_DIRECTIVE,
        TokenType.END_DIRECTIVE,
        TokenType.DELIMIT_DIRECTIVE,
    }
)


class DirectiveKind(Enum):
    IF = auto()
    EACH = auto()


@dataclass(frozen=True, slots=True)
class DirectiveBlock:
    """An {#if}/{#each} block. Indices point at the '{' of each directive hole."""

    kind: DirectiveKind
    open_index: int
    close_index: int | None
    branches: tuple[int, ...]
    loop_variables: tuple[str, ...]
    depth: int

    @property
    def closed(self) -> bool:
        """False when the block was still open at end of input."""
        return self.close_index is not None


@dataclass(slots=True)
class _OpenBlock:
    kind: DirectiveKind
    open_index: int
    depth: int
    loop_variables: tuple[str, ...] = ()
    branches: list[int] = field(default_factory=list)

    def freeze(self, close_index: int | None) -> DirectiveBlock:
        return DirectiveBlock(
            kind=self.kind,
            open_index=self.open_index,
            close_index=close_index,
            branches=tuple(self.branches),
            loop_variables=self.loop_variables,
            depth=self.depth,
        )


class ExpressionParser:
    """Stateless parser; every call works on its own walker."""

    def parse(self, expression: str) -> list[ExpressionRegion]:
        """Return one region per non-structural token of *expression*."""
        require_text(expression, "expression")
        return _regions_for(ExpressionLexer(expression), 0)

    def parse_template(self, template: str) -> list[ExpressionRegion]:
        """Return the regions of an expression template, in source order."""
        require_text(template, "template")
        walker = _TemplateWalker(template)
        walker.walk()
        return sorted(walker.regions, key=lambda r: r.start)

    def directive_blocks(self, template: str) -> list[DirectiveBlock]:
        """Return the directive blocks of *template*, ordered by opening position."""
        require_text(template, "template")
        walker = _TemplateWalker(template)
        walker.walk()
        return sorted(walker.blocks, key=lambda b: b.open_index)


def _regions_for(tokens: Iterable[Token], offset: int) -> list[ExpressionRegion]:
    regions = []
    for tok in tokens:
        category = TOKEN_CATEGORIES.get(tok.type)
        if category is not None:
            regions.append(_region(category, tok.start + offset, tok.value))
    return regions


def _region(category: Category, start: int, text: str) -> ExpressionRegion:
    return ExpressionRegion(category, start, len(text), text)


# ----------------------------------------------------------------------
# Template walking
# ----------------------------------------------------------------------


class _TemplateWalker:
    def __init__(self, text: str) -> None:
        self._text = text
        self.regions: list[ExpressionRegion] = []
        self.blocks: list[DirectiveBlock] = []
        self._stack: list[_OpenBlock] = []

    def walk(self) -> None:
        text = self._text
        i = 0
        while i < len(text):
            ch = text[i]
            nxt = text[i + 1] if i + 1 < len(text) else ""
            if ch == "{":
                if nxt == "{":
                    i += 2
                    continue
                end = self._find_hole_end(i)
                if end == -1:
                    self._unterminated_hole(i)
                    i += 1
                    continue
                self._hole(i, end)
                i = end + 1
                continue
            if ch == "}" and nxt == "}":
                i += 2
                continue
            i += 1

        # Anything still open is closed implicitly at end of input
        while self._stack:
            self.blocks.append(self._stack.pop().freeze(None))

    def _find_hole_end(self, start: int) -> int:
        """Return the index of the '}' closing the hole at *start*, or -1."""
        text = self._text
        depth = 0
        i = start + 1
        while i < len(text):
            ch = text[i]
            if ch == "'":
                i += 1
                while i < len(text):
                    if text[i] == "'":
                        if i + 1 < len(text) and text[i + 1] == "'":
                            i += 2
                            continue
                        break
                    i += 1
            elif ch == "{":
                depth += 1
            elif ch == "}":
                if depth == 0:
                    return i
                depth -= 1
            i += 1
        return -1

    def _emit(self, category: Category, start: int, end: int) -> None:
        if end > start:
            self.regions.append(_region(category, start, self._text[start:end]))

    def _loop_variables(self) -> set[str]:
        names: set[str] = set()
        for block in self._stack:
            names.update(block.loop_variables)
        return names

    # ------------------------------------------------------------------
    # Holes
    # ------------------------------------------------------------------

    def _hole(self, start: int, end: int) -> None:
        self._emit(Category.PROPERTY_BRACE, start, start + 1)
        if self._text[start + 1 : end].lstrip().startswith("#"):
            self._directive(start, end)
        else:
            self._expression_hole(start + 1, end)
        self._emit(Category.PROPERTY_BRACE, end, end + 1)

    def _unterminated_hole(self, start: int) -> None:
        """A '{' with no closing brace: highlight a directive keyword, nothing else."""
        body = self._text[start + 1 :]
        if not body.startswith("#"):
            return
        first = next(iter(ExpressionLexer(body)), None)
        if first is not None and first.type in _DIRECTIVE_TYPES:
            self._emit(Category.EXPRESSION_DIRECTIVE, start + 1, start + 1 + first.length)

    def _directive(self, start: int, end: int) -> None:
        content_start = start + 1
        tokens = ExpressionLexer(self._text[content_start:end]).tokenize()
        keyword = tokens[0]
        rest = tokens[1:]
        self.regions.extend(_regions_for(rest, content_start))
        if keyword.type not in _DIRECTIVE_TYPES:
            return
        self._emit(
            Category.EXPRESSION_DIRECTIVE,
            content_start + keyword.start,
            content_start + keyword.end,
        )

        if keyword.type == TokenType.IF_DIRECTIVE:
            self._stack.append(_OpenBlock(DirectiveKind.IF, start, len(self._stack)))
        elif keyword.type == TokenType.EACH_DIRECTIVE:
            block = _OpenBlock(DirectiveKind.EACH, start, len(self._stack))
            block.loop_variables = _each_variables(rest)
            self._stack.append(block)
        elif keyword.type in (TokenType.ELSE_DIRECTIVE, TokenType.ELSE_IF_DIRECTIVE):
            if self._stack:
                self._stack[-1].branches.append(start)
        elif keyword.type == TokenType.END_DIRECTIVE:
            if self._stack:
                self.blocks.append(self._stack.pop().freeze(start))

    def _expression_hole(self, start: int, end: int) -> None:
        expr_end, alignment, format_start = _split_hole(self._text, start, end)

        expr = self._text[start:expr_end]
        stripped = expr.strip()
        if _is_plain_name(stripped):
            name_start = start + (len(expr) - len(expr.lstrip()))
            category = (
                Category.EXPRESSION_PROPERTY
                if stripped in self._loop_variables()
                else Category.PROPERTY_NAME
            )
            self._emit(category, name_start, name_start + len(stripped))
        else:
            self.regions.extend(_regions_for(ExpressionLexer(expr), start))

        if alignment is not None:
            self._emit(Category.ALIGNMENT, alignment[0], alignment[1])
        if format_start is not None:
            self._emit(Category.FORMAT_SPECIFIER, format_start, end)


def _each_variables(tokens: list[Token]) -> tuple[str, ...]:
    """Names bound by '#each a, b in coll': identifiers before 'in'."""
    names = []
    for tok in tokens:
        if tok.type == TokenType.MEMBERSHIP:
            break
        if tok.type == TokenType.IDENTIFIER:
            names.append(tok.value)
    return tuple(names)


def _is_plain_name(text: str) -> bool:
    return bool(text) and is_ident_start(text[0]) and all(is_ident_char(c) for c in text)


_ALIGNMENT = re.compile(r"\s*(-?[0-9]+)\s*")


def _split_hole(text: str, start: int, end: int) -> tuple[int, tuple[int, int] | None, int | None]:
    """Split a hole into (expression end, alignment span, format start).

    The first top-level ':' starts the format. A top-level ',' before it
    starts an alignment only when what follows is an integer.
    """
    depth = 0
    comma = -1
    colon = -1
    i = start
    while i < end:
        ch = text[i]
        if ch == "'":
            i += 1
            while i < end:
                if text[i] == "'":
                    if i + 1 < end and text[i + 1] == "'":
                        i += 2
                        continue
                    break
                i += 1
        elif ch in "([{":
            depth += 1
        elif ch in ")]}":
            depth -= 1
        elif depth == 0 and ch == "," and comma == -1:
            comma = i
        elif depth == 0 and ch == ":":
            colon = i
            break
        i += 1

    format_start = colon + 1 if colon != -1 else None
    clause_end = colon if colon != -1 else end
    if comma != -1:
        m = _ALIGNMENT.fullmatch(text, comma + 1, clause_end)
        if m is not None:
            return comma, (m.start(1), m.end(1)), format_start
    return clause_end, None, format_start


_PARSER = ExpressionParser()


def parse_expression(expression: str) -> list[ExpressionRegion]:
    """Convenience function: classify a filter or computed-property expression."""
    return _PARSER.parse(expression)


def parse_expression_template(template: str) -> list[ExpressionRegion]:
    """Convenience function: classify an expression template."""
    return _PARSER.parse_template(template)


def directive_blocks(template: str) -> list[DirectiveBlock]:
    """Convenience function: the {#if}/{#each} blocks of an expression template."""
    return _PARSER.directive_blocks(template)
