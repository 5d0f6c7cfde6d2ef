"""Navigation helpers: property-to-argument mapping and brace/directive matching."""

from __future__ import annotations

from serilogsyntax.calls import CallMatch
from serilogsyntax.parser import directive_blocks
from serilogsyntax.strings import (
    find_concatenated_literals,
    find_string_literal,
    literal_at,
    skip_char_literal,
)
from serilogsyntax.template import PropertyType, TemplateProperty, parse_for_navigation
from serilogsyntax.tokens import TextSpan


def property_at(template: str, offset: int) -> TemplateProperty | None:
    """Return the property whose braces enclose *offset* (unterminated ones included)."""
    for prop in parse_for_navigation(template):
        end = prop.brace_end_index + 1 if prop.is_complete else len(template)
        if prop.brace_start_index <= offset < end:
            return prop
    return None


def argument_index_for(template: str, prop: TemplateProperty) -> int | None:
    """Index of the argument that supplies *prop*.

    Positional properties name their argument; named properties bind in the
    order they appear, skipping positional ones.
    """
    if prop.type == PropertyType.POSITIONAL:
        return int(prop.name)
    named = [p for p in parse_for_navigation(template) if p.type != PropertyType.POSITIONAL]
    for index, candidate in enumerate(named):
        if candidate.brace_start_index == prop.brace_start_index:
            return index
    return None


def split_arguments(text: str, start: int) -> list[TextSpan]:
    """Spans of the top-level arguments following the template at *start*.

    *start* is the index just past the template literal; the list ends at
    the call's closing parenthesis (or ';', or end of text).
    """
    args: list[TextSpan] = []
    depth = 0
    arg_start: int | None = None
    i = start

    def close(end: int) -> None:
        if arg_start is None:
            return
        raw = text[arg_start:end]
        lead = len(raw) - len(raw.lstrip())
        if raw.strip():
            args.append(TextSpan(arg_start + lead, len(raw.strip())))

    while i < len(text):
        ch = text[i]
        if ch == "'":
            i = skip_char_literal(text, i)
            continue
        literal = literal_at(text, i)
        if literal is not None:
            i = max(literal.end, i + 1)
            continue
        if ch in "([{":
            depth += 1
        elif ch in ")]}":
            if depth == 0:
                break
            depth -= 1
        elif ch == ";" and depth == 0:
            break
        elif ch == "," and depth == 0:
            close(i)
            arg_start = i + 1
        i += 1
    close(i)
    return args


def find_argument(text: str, call: CallMatch, offset: int) -> TextSpan | None:
    """Return the argument span for the template property under *offset*."""
    literal = find_string_literal(text, call.end)
    if literal is None or not literal.content_start <= offset <= literal.content_end:
        return None
    prop = property_at(literal.content, offset - literal.content_start)
    if prop is None:
        return None
    index = argument_index_for(literal.content, prop)
    if index is None:
        return None
    template_end = find_concatenated_literals(text, literal)[-1].end
    args = split_arguments(text, template_end)
    return args[index] if index < len(args) else None


# ----------------------------------------------------------------------
# Brace and directive matching
# ----------------------------------------------------------------------


def _brace_pairs(text: str) -> dict[int, int]:
    pairs: dict[int, int] = {}
    stack: list[int] = []
    i = 0
    while i < len(text):
        ch = text[i]
        nxt = text[i + 1] if i + 1 < len(text) else ""
        if ch == "{":
            if nxt == "{" and not stack:
                i += 2
                continue
            stack.append(i)
        elif ch == "}":
            if stack:
                open_index = stack.pop()
                pairs[open_index] = i
                pairs[i] = open_index
            elif nxt == "}":
                i += 2
                continue
        i += 1
    return pairs


def find_matching_brace(text: str, index: int) -> int | None:
    """Return the partner of the brace at *index*, or None (escaped or unmatched)."""
    if not 0 <= index < len(text) or text[index] not in "{}":
        return None
    return _brace_pairs(text).get(index)


def find_matching_directive(text: str, index: int) -> int | None:
    """From a directive hole at *index*, return the '{' of its partner.

    ``{#if}``/``{#each}`` pair with their ``{#end}`` and vice versa; an
    ``{#else}`` branch jumps to the ``{#end}``. Blocks left open at end of
    input have no partner.
    """
    hole = text.rfind("{", 0, index + 1)
    if hole == -1:
        return None
    for block in directive_blocks(text):
        if hole == block.open_index:
            return block.close_index
        if hole == block.close_index:
            return block.open_index
        if hole in block.branches:
            return block.close_index
    return None
