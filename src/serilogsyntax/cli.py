"""Command-line interface: classify a C# file and print the highlight spans."""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass, replace
from pathlib import Path

from serilogsyntax.config import (
    CONFIG_FILENAME,
    LOG_LEVELS,
    Settings,
    configure_logging,
    load_config,
    resolve_settings,
)
from serilogsyntax.errors import ConfigError


@dataclass(frozen=True, slots=True)
class CliOptions:
    """Parsed CLI options."""

    input_file: Path
    settings: Settings
    line: int | None
    debug: bool


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser (separate function for testability)."""
    p = argparse.ArgumentParser(
        prog="serilogsyntax",
        description="Highlight Serilog message templates and expressions in C# source",
    )
    p.add_argument("input", help="Input .cs file")
    p.add_argument(
        "--config",
        metavar="FILE",
        help="Config file (default: auto-discover serilogsyntax.toml)",
    )
    p.add_argument(
        "--line",
        type=int,
        default=None,
        metavar="N",
        help="Only classify line N (1-based)",
    )
    p.add_argument(
        "--log-level",
        choices=LOG_LEVELS,
        default=None,
        help="Log level for diagnostics on stderr (default: from config, else WARNING)",
    )
    p.add_argument(
        "--debug",
        action="store_true",
        help="Dump string regions and template parses to stderr",
    )
    return p


def resolve_options(args: argparse.Namespace) -> CliOptions:
    """Merge config file and CLI args into CliOptions.

    Precedence: config file < CLI flags.
    """
    input_file = Path(args.input)
    input_dir = input_file.parent
    if not input_dir.parts:
        input_dir = Path(".")

    config_path = Path(args.config) if args.config else None
    config = load_config(config_path, input_dir)
    settings = resolve_settings(config, config_path or input_dir / CONFIG_FILENAME)
    if args.log_level is not None:
        settings = replace(settings, log_level=args.log_level)

    if args.line is not None and args.line < 1:
        raise argparse.ArgumentTypeError(f"--line must be 1 or greater, got {args.line}")

    return CliOptions(
        input_file=input_file,
        settings=settings,
        line=args.line,
        debug=args.debug,
    )


def classify_file(options: CliOptions) -> list[str]:
    """Read and classify the input file; return one formatted line per span."""
    from serilogsyntax.calls import ExpressionContext
    from serilogsyntax.classifier import Classifier
    from serilogsyntax.debug import dump_properties, dump_regions, dump_string_region, format_span
    from serilogsyntax.document import TextSnapshot
    from serilogsyntax.parser import parse_expression, parse_expression_template
    from serilogsyntax.strings import find_string_literal
    from serilogsyntax.template import parse_template

    snapshot = TextSnapshot(options.input_file.read_text(encoding="utf-8"))
    classifier = Classifier(options.settings)

    if options.line is not None:
        if options.line > snapshot.line_count:
            return []
        lines = range(options.line - 1, options.line)
    else:
        lines = range(snapshot.line_count)

    output: list[str] = []
    for number in lines:
        line = snapshot.line(number)
        if options.debug:
            dump_string_region(
                number, classifier.tracker.find_region(snapshot, number), file=sys.stderr
            )
            for call in classifier.detector.find_calls_outside_strings(line.text):
                literal = find_string_literal(line.text, call.end)
                if literal is None:
                    continue
                if call.context == ExpressionContext.EXPRESSION_TEMPLATE:
                    dump_regions(
                        literal.content,
                        parse_expression_template(literal.content),
                        file=sys.stderr,
                    )
                elif call.context.is_expression:
                    regions = parse_expression(literal.content)
                    dump_regions(literal.content, regions, file=sys.stderr)
                else:
                    properties = parse_template(literal.content)
                    dump_properties(literal.content, properties, file=sys.stderr)
        for span in classifier.classify(snapshot, line.span):
            output.append(format_span(snapshot, span))
    return output


def main(argv: list[str] | None = None) -> int:
    """CLI entry point. Returns exit code (0/1/2). Does not call sys.exit()."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        options = resolve_options(args)
    except ConfigError as exc:
        print(exc.format(), file=sys.stderr)
        return 2
    except argparse.ArgumentTypeError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    configure_logging("DEBUG" if options.debug else options.settings.log_level)

    try:
        output = classify_file(options)
    except (OSError, UnicodeDecodeError) as exc:
        print(f"error: cannot read {options.input_file}: {exc}", file=sys.stderr)
        return 1

    for text in output:
        sys.stdout.write(text + "\n")
    return 0
