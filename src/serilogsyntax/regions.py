"""Highlighting categories and the region/span values produced by the parsers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from serilogsyntax.tokens import TextSpan


class Category(Enum):
    """Classification names, as registered with the editor."""

    # Message template holes
    PROPERTY_NAME = "serilog.property.name"
    DESTRUCTURE_OPERATOR = "serilog.operator.destructure"
    STRINGIFY_OPERATOR = "serilog.operator.stringify"
    FORMAT_SPECIFIER = "serilog.format"
    PROPERTY_BRACE = "serilog.brace"
    POSITIONAL_INDEX = "serilog.index"
    ALIGNMENT = "serilog.alignment"

    # Expression language
    EXPRESSION_PROPERTY = "serilog.expression.property"
    EXPRESSION_OPERATOR = "serilog.expression.operator"
    EXPRESSION_FUNCTION = "serilog.expression.function"
    EXPRESSION_KEYWORD = "serilog.expression.keyword"
    EXPRESSION_LITERAL = "serilog.expression.literal"
    EXPRESSION_DIRECTIVE = "serilog.expression.directive"
    EXPRESSION_BUILTIN = "serilog.expression.builtin"


@dataclass(frozen=True, slots=True)
class ExpressionRegion:
    """A highlightable run of expression text, offsets relative to the parsed string."""

    category: Category
    start: int
    length: int
    text: str

    @property
    def end(self) -> int:
        return self.start + self.length


@dataclass(frozen=True, slots=True)
class ClassificationSpan:
    """A (span, category) pair in document coordinates."""

    span: TextSpan
    category: Category

    @property
    def start(self) -> int:
        return self.span.start

    @property
    def length(self) -> int:
        return self.span.length
