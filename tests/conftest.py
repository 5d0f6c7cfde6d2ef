"""Shared test fixtures and helpers."""

from __future__ import annotations

import pytest
from loguru import logger

from serilogsyntax.classifier import Classifier
from serilogsyntax.document import TextSnapshot
from serilogsyntax.lexer import tokenize_expression
from serilogsyntax.regions import Category, ClassificationSpan, ExpressionRegion
from serilogsyntax.template import TemplateProperty, parse_for_navigation, parse_strict
from serilogsyntax.tokens import Token, TokenType


@pytest.fixture(autouse=True)
def reset_logging():
    """Undo configure_logging() calls made by CLI tests."""
    yield
    logger.remove()
    logger.disable("serilogsyntax")


@pytest.fixture
def lex():
    """Return a helper that tokenizes an expression."""

    def _lex(source: str) -> list[Token]:
        return tokenize_expression(source)

    return _lex


@pytest.fixture
def props():
    """Return a helper that parses a template; ``partial=True`` keeps unterminated holes."""

    def _props(template: str, partial: bool = False) -> list[TemplateProperty]:
        if partial:
            return parse_for_navigation(template)
        return parse_strict(template)

    return _props


@pytest.fixture
def classify():
    """Return a helper that classifies a whole document with a fresh Classifier.

    Returns ``(category, text)`` pairs in document order.
    """

    def _classify(source: str) -> list[tuple[Category, str]]:
        snapshot = TextSnapshot(source)
        spans = Classifier().classify_document(snapshot)
        return span_texts(snapshot, spans)

    return _classify


def span_texts(
    snapshot: TextSnapshot, spans: list[ClassificationSpan]
) -> list[tuple[Category, str]]:
    return [(s.category, snapshot.get_text(s.span)) for s in spans]


def assert_types(tokens: list[Token], expected: list[TokenType]) -> None:
    """Assert that the token types match the expected list."""
    actual = [t.type for t in tokens]
    assert actual == expected, f"Expected {expected}, got {actual}"


def assert_values(tokens: list[Token], expected: list[str]) -> None:
    """Assert that the token values match the expected list."""
    actual = [t.value for t in tokens]
    assert actual == expected, f"Expected {expected}, got {actual}"


def names(properties: list[TemplateProperty]) -> list[str]:
    return [p.name for p in properties]


def categories(regions: list[ExpressionRegion]) -> list[Category]:
    return [r.category for r in regions]


def texts_of(pairs: list[tuple[Category, str]], category: Category) -> list[str]:
    """Return the texts of every classified span with the given category."""
    return [text for cat, text in pairs if cat == category]
