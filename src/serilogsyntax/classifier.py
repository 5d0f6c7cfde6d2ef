"""Classification orchestrator: source lines in, highlight spans out.

For each requested line the classifier decides whether the line holds
template text of a real logging call, picks the template or expression
parser from the call-site's context, and caches the line's spans until an
edit touches them.
"""

from __future__ import annotations

from collections.abc import Iterable

from loguru import logger

from serilogsyntax import logs
from serilogsyntax.cache import CacheManager, LruCache
from serilogsyntax.calls import CallDetector, CallMatch, ExpressionContext
from serilogsyntax.config import Settings
from serilogsyntax.document import Line, TextSnapshot
from serilogsyntax.multiline import MultiLineStringTracker, StringKind, verbatim_close_index
from serilogsyntax.parser import ExpressionParser
from serilogsyntax.regions import Category, ClassificationSpan, ExpressionRegion
from serilogsyntax.strings import (
    LiteralKind,
    StringLiteral,
    find_all_string_literals,
    find_concatenated_literals,
    find_string_literal,
)
from serilogsyntax.template import PropertyType, TemplateProperty
from serilogsyntax.tokens import TextSpan

_OPERATOR_CATEGORIES = {
    PropertyType.DESTRUCTURED: Category.DESTRUCTURE_OPERATOR,
    PropertyType.STRINGIFIED: Category.STRINGIFY_OPERATOR,
}


def template_spans(properties: Iterable[TemplateProperty], offset: int) -> list[ClassificationSpan]:
    """Spans for parsed template properties; *offset* is where the template starts."""
    spans: list[ClassificationSpan] = []

    def add(start: int, length: int, category: Category) -> None:
        if length > 0:
            spans.append(ClassificationSpan(TextSpan(offset + start, length), category))

    for prop in properties:
        add(prop.brace_start_index, 1, Category.PROPERTY_BRACE)
        if prop.operator_index is not None:
            add(prop.operator_index, 1, _OPERATOR_CATEGORIES[prop.type])
        name_category = (
            Category.POSITIONAL_INDEX if prop.type == PropertyType.POSITIONAL else Category.PROPERTY_NAME
        )
        add(prop.start_index, prop.length, name_category)
        if prop.alignment is not None and prop.alignment_start_index is not None:
            add(prop.alignment_start_index, len(prop.alignment), Category.ALIGNMENT)
        if prop.format_specifier is not None and prop.format_start_index is not None:
            add(prop.format_start_index, len(prop.format_specifier), Category.FORMAT_SPECIFIER)
        if prop.is_complete:
            add(prop.brace_end_index, 1, Category.PROPERTY_BRACE)
    return spans


def region_spans(regions: Iterable[ExpressionRegion], offset: int) -> list[ClassificationSpan]:
    return [
        ClassificationSpan(TextSpan(offset + r.start, r.length), r.category)
        for r in regions
        if r.length > 0
    ]


class Classifier:
    """Owns the caches, the call detector, and the string tracker for one document."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings if settings is not None else Settings()
        self.caches = CacheManager()
        self.detector = CallDetector(
            cache=self.caches.register(LruCache(self.settings.call_cache_capacity, "calls")),
            context_cache=self.caches.register(
                LruCache(self.settings.context_cache_capacity, "contexts")
            ),
        )
        self.tracker = MultiLineStringTracker(self.detector, self.settings.windows)
        self._expressions = ExpressionParser()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def classify(self, snapshot: TextSnapshot, span: TextSpan) -> list[ClassificationSpan]:
        """Return the spans of every line touched by *span*, clipped to *span*."""
        results: list[ClassificationSpan] = []
        for number in snapshot.lines_in(span):
            for result in self._classify_line(snapshot, snapshot.line(number)):
                if span.length == 0 or result.span.overlaps_with(span):
                    results.append(result)
        return results

    def classify_document(self, snapshot: TextSnapshot) -> list[ClassificationSpan]:
        return self.classify(snapshot, TextSpan(0, len(snapshot)))

    def is_inside_multiline_template(self, snapshot: TextSnapshot, span: TextSpan) -> bool:
        """True if *span* starts inside a multi-line literal owned by a logging call."""
        region = self.tracker.find_region(snapshot, snapshot.line_number_at(span.start))
        return region is not None and region.is_logging_call

    # ------------------------------------------------------------------
    # Cache control
    # ------------------------------------------------------------------

    def invalidate(
        self,
        edited: Iterable[TextSpan],
        snapshot: TextSnapshot | None = None,
        previous: TextSnapshot | None = None,
    ) -> int:
        """Drop cached results touched by *edited* spans.

        With *snapshot*, the text after the edit, the invalidation also
        covers later lines whose result can depend on the edited ones: the
        continuation window always, and the forward string window when the
        edited lines held a raw or verbatim delimiter before (*previous*) or
        after the edit. Line-keyed tracker state is always reset.
        """
        spans = list(edited)
        if snapshot is not None:
            spans.extend(self._extensions(snapshot, previous, spans))
        count = self.caches.invalidate(spans)
        self.tracker.clear_cache()
        return count

    def clear_all(self) -> None:
        self.caches.clear()
        self.tracker.clear_cache()

    def _extensions(
        self, snapshot: TextSnapshot, previous: TextSnapshot | None, spans: list[TextSpan]
    ) -> list[TextSpan]:
        windows = self.settings.windows
        extra = []
        for span in spans:
            start = min(span.start, len(snapshot))
            end = min(span.end, len(snapshot))
            lines = snapshot.lines_in(TextSpan(start, end - start))
            forward = windows.continuation_lookback
            if _holds_delimiter(snapshot, span) or (
                previous is not None and _holds_delimiter(previous, span)
            ):
                forward = max(forward, windows.raw_lookforward)
            last = min(snapshot.line_count - 1, lines[-1] + forward)
            extra.append(TextSpan(start, snapshot.line(last).end - start))
        return extra

    # ------------------------------------------------------------------
    # Per-line classification
    # ------------------------------------------------------------------

    def _classify_line(self, snapshot: TextSnapshot, line: Line) -> list[ClassificationSpan]:
        cached = self.caches.classifications.get(line.span)
        if cached is not None:
            return cached
        try:
            spans = self._compute_line(snapshot, line)
        except Exception:
            logger.exception(logs.CLASSIFY_FAILED.format(line=line.number))
            spans = []
        return self.caches.classifications.put(
            line.span, spans, depends_on=self._dependency(snapshot, line)
        )

    def _dependency(self, snapshot: TextSnapshot, line: Line) -> TextSpan | None:
        """Earlier lines the result for *line* was derived from.

        Inside a multi-line literal that is the opener line and the lines a
        wrapped owner call may start on; elsewhere the continuation window.
        """
        lookback = self.settings.windows.continuation_lookback
        region = self.tracker.find_region(snapshot, line.number)
        if region is not None:
            first, last = max(0, region.open_line - lookback), region.open_line
        else:
            first, last = max(0, line.number - lookback), line.number - 1
        if last < first:
            return None
        start = snapshot.line(first).start
        return TextSpan(start, snapshot.line(last).end - start)

    def _compute_line(self, snapshot: TextSnapshot, line: Line) -> list[ClassificationSpan]:
        region = self.tracker.find_region(snapshot, line.number)
        if region is not None:
            if not region.is_logging_call:
                # Documentation or data text that only looks like a template
                return []
            text = line.text
            if region.kind == StringKind.VERBATIM:
                close = verbatim_close_index(text)
                if close != -1:
                    text = text[:close]
            return self._classify_text(text, line.start, region.context)

        spans: list[ClassificationSpan] = []
        if self.detector.is_call_cached(line.text):
            for call in self.detector.find_calls_outside_strings(line.text):
                spans.extend(self._classify_call(line.text, call, line.start))
        spans.extend(self._classify_continuation(snapshot, line))
        spans.sort(key=lambda s: s.start)
        return spans

    def _classify_continuation(self, snapshot: TextSnapshot, line: Line) -> list[ClassificationSpan]:
        """Literals on *line* that belong to a call begun on an earlier line."""
        first = max(0, line.number - self.settings.windows.continuation_lookback)
        if first == line.number or '"' not in line.text:
            return []
        base = snapshot.line(first).start
        joined = snapshot.text[base : line.end]
        line_offset = line.start - base

        spans: list[ClassificationSpan] = []
        for call in self.detector.find_calls_outside_strings(joined):
            if call.index >= line_offset:
                break
            spans.extend(self._classify_call(joined, call, base, min_start=line_offset))
        return spans

    def _classify_call(
        self, text: str, call: CallMatch, base: int, min_start: int = 0
    ) -> list[ClassificationSpan]:
        context = call.context
        literals: list[StringLiteral]
        if context == ExpressionContext.COMPUTED_PROPERTY:
            # WithComputed("PropertyName", "expression")
            literals = find_all_string_literals(text, call.end)[1:2]
        else:
            first = find_string_literal(text, call.end)
            literals = find_concatenated_literals(text, first) if first is not None else []

        spans: list[ClassificationSpan] = []
        for literal in literals:
            if literal.start < min_start or literal.kind == LiteralKind.INTERPOLATED:
                continue
            # A multi-line literal is classified line by line through the tracker
            content = literal.content.split("\n", 1)[0]
            spans.extend(self._classify_text(content, base + literal.content_start, context))
        return spans

    def _classify_text(
        self, text: str, offset: int, context: ExpressionContext
    ) -> list[ClassificationSpan]:
        if context == ExpressionContext.EXPRESSION_TEMPLATE:
            return region_spans(self._expressions.parse_template(text), offset)
        if context.is_expression:
            return region_spans(self._expressions.parse(text), offset)
        return template_spans(self.caches.get_or_parse(text), offset)


def _holds_delimiter(snapshot: TextSnapshot, span: TextSpan) -> bool:
    """Does any line touched by *span* hold a raw or verbatim string delimiter?"""
    start = min(span.start, len(snapshot))
    end = min(span.end, len(snapshot))
    return any(
        '"""' in snapshot.line_text(n) or '@"' in snapshot.line_text(n)
        for n in snapshot.lines_in(TextSpan(start, end - start))
    )
