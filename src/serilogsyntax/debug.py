"""--debug dumps of parses, regions, and spans to stderr."""

from __future__ import annotations

import sys
from collections.abc import Iterable
from typing import TextIO

from serilogsyntax.document import TextSnapshot
from serilogsyntax.multiline import StringRegion
from serilogsyntax.regions import ClassificationSpan, ExpressionRegion
from serilogsyntax.template import TemplateProperty


def dump_properties(
    template: str, properties: Iterable[TemplateProperty], *, file: TextIO = sys.stderr
) -> None:
    """Print one line per template property."""
    file.write(f"Template {template!r}\n")
    for prop in properties:
        braces = f"{prop.brace_start_index}..{prop.brace_end_index}"
        file.write(f"  {prop.type.name} {prop.name!r} @{prop.start_index} braces={braces}")
        if prop.alignment is not None:
            file.write(f" alignment={prop.alignment!r}")
        if prop.format_specifier is not None:
            file.write(f" format={prop.format_specifier!r}")
        file.write("\n")


def dump_regions(
    expression: str, regions: Iterable[ExpressionRegion], *, file: TextIO = sys.stderr
) -> None:
    file.write(f"Expression {expression!r}\n")
    for region in regions:
        file.write(f"  {region.category.value} @{region.start} {region.text!r}\n")


def dump_string_region(line: int, region: StringRegion | None, *, file: TextIO = sys.stderr) -> None:
    if region is None:
        return
    owner = region.owner.method if region.owner is not None else "-"
    close = str(region.close_line + 1) if region.close_line is not None else "?"
    file.write(
        f"line {line + 1}: inside {region.kind.name} string "
        f"(lines {region.open_line + 1}..{close}, owner {owner})\n"
    )


def format_span(snapshot: TextSnapshot, span: ClassificationSpan) -> str:
    """``line:col length category text`` with 1-based line and column."""
    number = snapshot.line_number_at(span.start)
    column = span.start - snapshot.line(number).start + 1
    text = snapshot.get_text(span.span)
    return f"{number + 1}:{column} {span.length} {span.category.value} {text!r}"


def dump_spans(
    snapshot: TextSnapshot, spans: Iterable[ClassificationSpan], *, file: TextIO = sys.stderr
) -> None:
    for span in spans:
        file.write(format_span(snapshot, span) + "\n")
