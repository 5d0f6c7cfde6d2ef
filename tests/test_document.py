"""Tests for text snapshots, spans, and debug formatting."""

from __future__ import annotations

import io

import pytest

from serilogsyntax.debug import dump_properties, dump_spans, format_span
from serilogsyntax.document import TextSnapshot
from serilogsyntax.regions import Category, ClassificationSpan
from serilogsyntax.template import parse_for_navigation
from serilogsyntax.tokens import TextSpan


class TestTextSnapshot:
    def test_lines(self) -> None:
        snapshot = TextSnapshot("ab\ncd\n")
        assert snapshot.line_count == 3
        assert snapshot.line_text(0) == "ab"
        assert snapshot.line_text(1) == "cd"
        assert snapshot.line_text(2) == ""
        assert snapshot.line(1).span == TextSpan(3, 2)

    def test_crlf_excluded_from_line(self) -> None:
        snapshot = TextSnapshot("ab\r\ncd")
        assert snapshot.line_text(0) == "ab"
        assert snapshot.line(1).start == 4

    def test_line_number_at(self) -> None:
        snapshot = TextSnapshot("ab\ncd")
        assert snapshot.line_number_at(0) == 0
        assert snapshot.line_number_at(2) == 0
        assert snapshot.line_number_at(3) == 1

    def test_lines_in(self) -> None:
        snapshot = TextSnapshot("ab\ncd\nef")
        assert list(snapshot.lines_in(TextSpan(1, 4))) == [0, 1]
        assert list(snapshot.lines_in(TextSpan(3, 0))) == [1]

    def test_line_out_of_range(self) -> None:
        with pytest.raises(IndexError):
            TextSnapshot("ab").line(1)


class TestTextSpan:
    def test_overlap_is_strict(self) -> None:
        assert TextSpan(0, 5).overlaps_with(TextSpan(4, 2))
        assert not TextSpan(0, 5).overlaps_with(TextSpan(5, 2))

    def test_intersection_includes_touching(self) -> None:
        assert TextSpan(0, 5).intersects_with(TextSpan(5, 2))
        assert TextSpan(0, 5).intersects_with(TextSpan(3, 0))
        assert not TextSpan(0, 5).intersects_with(TextSpan(6, 1))

    def test_contains(self) -> None:
        assert TextSpan(2, 3).contains(4)
        assert not TextSpan(2, 3).contains(5)


class TestDebugOutput:
    def test_format_span(self) -> None:
        snapshot = TextSnapshot('x\nLog.Debug("{A}");')
        span = ClassificationSpan(TextSpan(14, 1), Category.PROPERTY_NAME)
        assert format_span(snapshot, span) == "2:13 1 serilog.property.name 'A'"

    def test_dump_spans(self) -> None:
        snapshot = TextSnapshot("{A}")
        out = io.StringIO()
        dump_spans(snapshot, [ClassificationSpan(TextSpan(0, 1), Category.PROPERTY_BRACE)], file=out)
        assert out.getvalue() == "1:1 1 serilog.brace '{'\n"

    def test_dump_properties(self) -> None:
        out = io.StringIO()
        template = "{Name,5:x} {Open"
        dump_properties(template, parse_for_navigation(template), file=out)
        lines = out.getvalue().splitlines()
        assert lines[0] == "Template '{Name,5:x} {Open'"
        assert lines[1] == "  STANDARD 'Name' @1 braces=0..9 alignment='5' format='x'"
        assert lines[2] == "  STANDARD 'Open' @12 braces=11..-1"
