"""Serilog message template and expression lexing for editor highlighting."""

from __future__ import annotations

from functools import cache
from typing import TYPE_CHECKING

from loguru import logger

if TYPE_CHECKING:
    from serilogsyntax.calls import CallDetector, CallMatch
    from serilogsyntax.regions import ExpressionRegion
    from serilogsyntax.template import TemplateProperty
    from serilogsyntax.tokens import Token

__version__ = "0.1.0"

# Library code stays quiet until an entry point calls configure_logging()
logger.disable("serilogsyntax")


def parse_template(text: str) -> list[TemplateProperty]:
    """Parse a message template, discarding unterminated properties."""
    from serilogsyntax.template import parse_template as _parse_template

    return _parse_template(text)


def tokenize_expression(text: str) -> list[Token]:
    from serilogsyntax.lexer import tokenize_expression as _tokenize_expression

    return _tokenize_expression(text)


def parse_expression(text: str) -> list[ExpressionRegion]:
    from serilogsyntax.parser import parse_expression as _parse_expression

    return _parse_expression(text)


def parse_expression_template(text: str) -> list[ExpressionRegion]:
    from serilogsyntax.parser import parse_expression_template as _parse_expression_template

    return _parse_expression_template(text)


@cache
def _detector() -> CallDetector:
    """The detector behind the package-level helpers; see clear_caches()."""
    from serilogsyntax.calls import CallDetector

    return CallDetector()


def is_logging_call(text: str) -> bool:
    """Return True if *text* contains a Serilog or ILogger call (memoized)."""
    return _detector().is_call_cached(text)


def find_logging_call(text: str) -> CallMatch | None:
    """Return the first logging call in *text*, or None."""
    return _detector().find_call(text)


def clear_caches() -> None:
    """Drop the results memoized by is_logging_call().

    Classifier instances own their caches; this only affects the
    package-level helpers.
    """
    _detector().clear_cache()
