"""Logging call detection.

A two-stage filter decides whether text holds a Serilog/ILogger call:

1. a cheap case-insensitive search for trigger substrings;
2. a regex over the known call-site shapes, each a named alternative.

Results are memoized per exact text in an injected LruCache.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum, auto

from serilogsyntax.cache import LruCache
from serilogsyntax.errors import require_text
from serilogsyntax.strings import find_string_literal, non_code_ranges

DEFAULT_CACHE_CAPACITY = 100

TRIGGERS = (
    "log",  # log, _log, logger, Logger, Log
    "outputtemplate",
    "filter",
    "byexcluding",
    "byincludingonly",
    "withcomputed",
    "expressiontemplate",
    "conditional",
    "when",
)

LEVEL_METHODS = ("Verbose", "Debug", "Information", "Warning", "Error", "Fatal", "Write")
ILOGGER_METHODS = tuple(
    f"Log{level}"
    for level in ("Verbose", "Trace", "Debug", "Information", "Warning", "Error", "Critical", "Fatal")
)

_METHOD = "|".join(ILOGGER_METHODS + LEVEL_METHODS + ("BeginScope",))


class ExpressionContext(Enum):
    """What kind of string a call-site expects as its template argument."""

    NONE = auto()  # plain message template
    OUTPUT_TEMPLATE = auto()  # sink output template (message template syntax)
    FILTER = auto()
    CONDITIONAL = auto()
    COMPUTED_PROPERTY = auto()
    EXPRESSION_TEMPLATE = auto()

    @property
    def is_expression(self) -> bool:
        return self not in (ExpressionContext.NONE, ExpressionContext.OUTPUT_TEMPLATE)


class CallShape(Enum):
    """Call-site shapes; the value is the regex group that recognizes each."""

    CONTEXT_QUALIFIED = "context_qualified"  # Log.ForContext<T>().Information(
    MEMBER = "member"  # logger.LogInformation(, Log.Error(
    OUTPUT_TEMPLATE = "output_template"  # outputTemplate:
    FILTER = "filter"  # Filter.ByExcluding(
    ENRICH = "enrich"  # Enrich.WithComputed(, Enrich.When(
    CONDITIONAL = "conditional"  # WriteTo.Conditional(
    EXPRESSION_TEMPLATE = "expression_template"  # new ExpressionTemplate(


_SHAPE_PATTERNS = {
    CallShape.CONTEXT_QUALIFIED: (
        rf"\b\w+\s*\.\s*ForContext(?:<[^>]+>)?\s*\([^)]*\)\s*\.\s*"
        rf"(?P<context_qualified_method>{_METHOD})\s*\("
    ),
    CallShape.MEMBER: rf"\b\w+\s*\.\s*(?P<member_method>{_METHOD})\s*\(",
    CallShape.OUTPUT_TEMPLATE: r"\b(?P<output_template_method>outputTemplate)\s*:\s*",
    CallShape.FILTER: r"(?:\bFilter\s*\.\s*)?\b(?P<filter_method>ByExcluding|ByIncludingOnly)\s*\(",
    CallShape.ENRICH: r"(?:\bEnrich\s*\.\s*)?\b(?P<enrich_method>WithComputed|When)\s*\(",
    CallShape.CONDITIONAL: r"(?:\bWriteTo\s*\.\s*)?\b(?P<conditional_method>Conditional)\s*\(",
    CallShape.EXPRESSION_TEMPLATE: (
        r"\bnew\s+(?P<expression_template_method>ExpressionTemplate)\s*\("
    ),
}

CALL_PATTERN = re.compile(
    "|".join(f"(?P<{shape.value}>{pattern})" for shape, pattern in _SHAPE_PATTERNS.items())
)


@dataclass(frozen=True, slots=True)
class CallMatch:
    """The matched call prefix, e.g. ``logger.LogInformation(``."""

    index: int
    length: int
    shape: CallShape
    method: str

    @property
    def end(self) -> int:
        return self.index + self.length

    @property
    def context(self) -> ExpressionContext:
        if self.shape == CallShape.FILTER:
            return ExpressionContext.FILTER
        if self.shape == CallShape.CONDITIONAL:
            return ExpressionContext.CONDITIONAL
        if self.shape == CallShape.ENRICH:
            if self.method == "WithComputed":
                return ExpressionContext.COMPUTED_PROPERTY
            return ExpressionContext.CONDITIONAL
        if self.shape == CallShape.EXPRESSION_TEMPLATE:
            return ExpressionContext.EXPRESSION_TEMPLATE
        if self.shape == CallShape.OUTPUT_TEMPLATE:
            return ExpressionContext.OUTPUT_TEMPLATE
        return ExpressionContext.NONE


def _to_match(m: re.Match[str]) -> CallMatch:
    for shape in CallShape:
        if m.group(shape.value) is not None:
            method = m.group(f"{shape.value}_method")
            return CallMatch(m.start(), m.end() - m.start(), shape, method)
    raise AssertionError(f"call pattern matched without a shape group: {m.group(0)!r}")


def has_trigger(text: str) -> bool:
    """Cheap first stage: does *text* mention anything a call could start with?"""
    lowered = text.lower()
    return any(trigger in lowered for trigger in TRIGGERS)


class CallDetector:
    """Find logging and Serilog configuration calls in source text."""

    def __init__(
        self,
        cache: LruCache[str, bool] | None = None,
        context_cache: LruCache[tuple[str, int], ExpressionContext] | None = None,
    ) -> None:
        self.cache = cache if cache is not None else LruCache(DEFAULT_CACHE_CAPACITY, "calls")
        self.context_cache = (
            context_cache
            if context_cache is not None
            else LruCache(DEFAULT_CACHE_CAPACITY, "contexts")
        )

    def is_call(self, text: str) -> bool:
        require_text(text)
        if not text.strip() or not has_trigger(text):
            return False
        return CALL_PATTERN.search(text) is not None

    def is_call_cached(self, text: str) -> bool:
        require_text(text)
        cached = self.cache.get(text)
        if cached is not None:
            return cached
        result = self.is_call(text)
        self.cache.add(text, result)
        return result

    def find_call(self, text: str) -> CallMatch | None:
        require_text(text)
        if not text.strip() or not has_trigger(text):
            return None
        m = CALL_PATTERN.search(text)
        return _to_match(m) if m is not None else None

    def find_all_calls(self, text: str) -> list[CallMatch]:
        require_text(text)
        if not text.strip() or not has_trigger(text):
            return []
        return [_to_match(m) for m in CALL_PATTERN.finditer(text)]

    def find_calls_outside_strings(self, text: str) -> list[CallMatch]:
        """Like find_all_calls, minus matches that begin inside a string literal or comment."""
        calls = self.find_all_calls(text)
        if not calls:
            return calls
        ranges = non_code_ranges(text)
        return [c for c in calls if not any(s <= c.index < e for s, e in ranges)]

    def find_owner(self, prefix: str) -> CallMatch | None:
        """Return the call whose argument list is still open at the end of *prefix*.

        Used to decide who owns a string literal whose opening delimiter
        immediately follows *prefix*.
        """
        for call in reversed(self.find_calls_outside_strings(prefix)):
            if call.shape == CallShape.OUTPUT_TEMPLATE:
                if not prefix[call.end :].strip():
                    return call
                continue
            if _is_open_at_end(prefix, call.end):
                return call
        return None

    def detect_context(self, text: str, position: int) -> ExpressionContext:
        """Return the expression context of the string literal starting at *position*."""
        require_text(text)
        key = (text, position)
        cached = self.context_cache.get(key)
        if cached is not None:
            return cached

        context = ExpressionContext.NONE
        for call in self.find_calls_outside_strings(text):
            if call.end > position:
                break
            skip_first = call.context == ExpressionContext.COMPUTED_PROPERTY
            literal = find_string_literal(text, call.end, skip_first=skip_first)
            if literal is not None and literal.start == position:
                context = call.context
        self.context_cache.add(key, context)
        return context

    def clear_cache(self) -> None:
        self.cache.clear()
        self.context_cache.clear()


def _is_open_at_end(text: str, start: int) -> bool:
    """True if the parenthesis opened just before *start* is still open at the end."""
    depth = 0
    ranges = non_code_ranges(text, start)
    for i in range(start, len(text)):
        if any(s <= i < e for s, e in ranges):
            continue
        ch = text[i]
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth < 0:
                return False
        elif ch == ";":
            return False
    return True
