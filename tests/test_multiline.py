"""Tests for multi-line raw and verbatim string tracking."""

from __future__ import annotations

import pytest

from serilogsyntax.calls import CallDetector, ExpressionContext
from serilogsyntax.document import TextSnapshot
from serilogsyntax.multiline import (
    MultiLineStringTracker,
    StringKind,
    StringWindows,
    verbatim_close_index,
)


@pytest.fixture
def tracker() -> MultiLineStringTracker:
    return MultiLineStringTracker(CallDetector())


def snap(*lines: str) -> TextSnapshot:
    return TextSnapshot("\n".join(lines))


RAW_LOG = snap(
    "",
    'logger.LogInformation("""',
    "    This is inside",
    "    a raw string",
    '    """);',
)


# ---------------------------------------------------------------------------
# Raw strings
# ---------------------------------------------------------------------------


class TestRawStrings:
    def test_content_line_is_inside(self, tracker: MultiLineStringTracker) -> None:
        region = tracker.find_region(RAW_LOG, 2)
        assert region is not None
        assert region.kind == StringKind.RAW
        assert region.open_line == 1
        assert region.close_line == 4
        assert region.quotes == 3
        assert region.is_logging_call
        assert region.contains(3)

    def test_opening_and_closing_lines_are_outside(self, tracker: MultiLineStringTracker) -> None:
        assert tracker.find_region(RAW_LOG, 1) is None
        assert tracker.find_region(RAW_LOG, 4) is None

    def test_is_inside_raw_string_literal(self, tracker: MultiLineStringTracker) -> None:
        span_line = RAW_LOG.line(2)
        assert tracker.is_inside_raw_string_literal(RAW_LOG, span_line.span)
        assert not tracker.is_inside_verbatim_string(RAW_LOG, span_line.span)
        assert not tracker.is_inside_raw_string_literal(RAW_LOG, RAW_LOG.line(0).span)

    def test_documentation_string_has_no_owner(self, tracker: MultiLineStringTracker) -> None:
        snapshot = snap(
            'var docs = """',
            '    logger.LogInformation("User {UserId}", id);',
            '    """;',
        )
        region = tracker.find_region(snapshot, 1)
        assert region is not None
        assert not region.is_logging_call
        assert region.context == ExpressionContext.NONE
        assert not tracker.is_inside_raw_string_literal(snapshot, snapshot.line(1).span)

    def test_wrapped_arguments_own_the_string(self, tracker: MultiLineStringTracker) -> None:
        snapshot = snap(
            "logger.LogInformation(",
            '    """',
            "    Processing {RecordId}",
            '    """, id);',
        )
        region = tracker.find_region(snapshot, 2)
        assert region is not None
        assert region.is_logging_call

    def test_unclosed_raw_string(self, tracker: MultiLineStringTracker) -> None:
        snapshot = snap('Log.Information("""', "    one", "    two")
        region = tracker.find_region(snapshot, 2)
        assert region is not None
        assert region.close_line is None

    def test_opener_outside_lookback_window(self) -> None:
        lines = ['logger.LogInformation("""'] + [f"    line {n}" for n in range(5)] + ['    """);']
        snapshot = snap(*lines)
        assert MultiLineStringTracker(CallDetector()).find_region(snapshot, 5) is not None
        narrow = MultiLineStringTracker(CallDetector(), StringWindows(raw_lookback=2))
        assert narrow.find_region(snapshot, 5) is None

    def test_closer_outside_lookforward_window(self) -> None:
        lines = ['logger.LogInformation("""'] + [f"    line {n}" for n in range(5)] + ['    """);']
        snapshot = snap(*lines)
        narrow = MultiLineStringTracker(CallDetector(), StringWindows(raw_lookforward=2))
        region = narrow.find_region(snapshot, 1)
        assert region is not None
        assert region.close_line is None

    def test_later_string_after_closed_one(self, tracker: MultiLineStringTracker) -> None:
        snapshot = snap(
            'var docs = """',
            "    text",
            '    """;',
            'Log.Information("""',
            "    Hello {Name}",
            '    """);',
        )
        region = tracker.find_region(snapshot, 4)
        assert region is not None
        assert region.open_line == 3
        assert region.is_logging_call


# ---------------------------------------------------------------------------
# Verbatim strings
# ---------------------------------------------------------------------------


class TestVerbatimStrings:
    def test_verbatim_region(self, tracker: MultiLineStringTracker) -> None:
        snapshot = snap('logger.LogDebug(@"Start', "    inside {Value}", '    end");')
        region = tracker.find_region(snapshot, 1)
        assert region is not None
        assert region.kind == StringKind.VERBATIM
        assert region.open_line == 0
        assert region.close_line == 2
        assert region.is_logging_call

    def test_verbatim_closing_line_is_inside(self, tracker: MultiLineStringTracker) -> None:
        snapshot = snap('logger.LogDebug(@"Start', "    inside {Value}", '    end");')
        region = tracker.find_region(snapshot, 2)
        assert region is not None
        assert region.contains(2)
        assert tracker.is_inside_verbatim_string(snapshot, snapshot.line(2).span)

    def test_after_verbatim_close(self, tracker: MultiLineStringTracker) -> None:
        snapshot = snap('Log.Debug(@"a', 'b");', "var x = 1;")
        assert tracker.find_region(snapshot, 2) is None

    def test_escaped_quotes_do_not_close(self) -> None:
        assert verbatim_close_index('say ""hi"" now') == -1
        assert verbatim_close_index('say ""hi"" now";') == 14

    def test_raw_delimiter_inside_verbatim_is_ignored(
        self, tracker: MultiLineStringTracker
    ) -> None:
        snapshot = snap(
            "var sample = @\"",
            'logger.LogInformation("""',
            "    ID: {RecordId}",
            '    """);',
            '";',
        )
        assert tracker.find_region(snapshot, 2) is None
        region = tracker.find_region(snapshot, 1)
        assert region is not None
        assert region.kind == StringKind.VERBATIM
        assert not region.is_logging_call


class TestTrackerCache:
    def test_cached_region_reused(self, tracker: MultiLineStringTracker) -> None:
        first = tracker.find_region(RAW_LOG, 2)
        assert tracker.find_region(RAW_LOG, 2) is first

    def test_invalidate_line(self, tracker: MultiLineStringTracker) -> None:
        first = tracker.find_region(RAW_LOG, 2)
        tracker.invalidate_line(2)
        second = tracker.find_region(RAW_LOG, 2)
        assert second == first
        assert second is not first

    def test_clear_cache(self, tracker: MultiLineStringTracker) -> None:
        snapshot = snap('Log.Information("""', "    x", '    """);')
        other = snap("var a = 1;", "var b = 2;", "var c = 3;")
        assert tracker.find_region(snapshot, 1) is not None
        tracker.clear_cache()
        assert tracker.find_region(other, 1) is None
