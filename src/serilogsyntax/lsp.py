"""Minimal LSP server: semantic tokens for Serilog templates and expressions."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from loguru import logger
from lsprotocol.types import (
    TEXT_DOCUMENT_DID_CHANGE,
    TEXT_DOCUMENT_DID_CLOSE,
    TEXT_DOCUMENT_DID_OPEN,
    TEXT_DOCUMENT_SEMANTIC_TOKENS_FULL,
    DidChangeTextDocumentParams,
    DidCloseTextDocumentParams,
    DidOpenTextDocumentParams,
    Position,
    SemanticTokens,
    SemanticTokensLegend,
    SemanticTokensParams,
    TextDocumentSyncKind,
)
from pygls.lsp.server import LanguageServer

from serilogsyntax import __version__, logs
from serilogsyntax.classifier import Classifier
from serilogsyntax.config import Settings, configure_logging, load_config, resolve_settings
from serilogsyntax.document import TextSnapshot
from serilogsyntax.regions import Category, ClassificationSpan
from serilogsyntax.tokens import TextSpan

LEGEND = SemanticTokensLegend(
    token_types=[category.value for category in Category],
    token_modifiers=[],
)

_TOKEN_TYPES = {category: index for index, category in enumerate(Category)}

server = LanguageServer(
    "serilogsyntax-lsp", __version__, text_document_sync_kind=TextDocumentSyncKind.Incremental
)


@dataclass(slots=True)
class _Document:
    classifier: Classifier
    snapshot: TextSnapshot


class DocumentStore:
    """Per-document classifier and the snapshot it last saw."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings if settings is not None else Settings()
        self._documents: dict[str, _Document] = {}

    def open(self, uri: str, text: str) -> None:
        self._documents[uri] = _Document(Classifier(self.settings), TextSnapshot(text))

    def close(self, uri: str) -> None:
        self._documents.pop(uri, None)

    def get(self, uri: str) -> _Document | None:
        return self._documents.get(uri)

    def __contains__(self, uri: str) -> bool:
        return uri in self._documents


documents = DocumentStore()


def offset_at(snapshot: TextSnapshot, position: Position) -> int:
    """Convert an LSP position to an offset, clamped to the document."""
    if position.line >= snapshot.line_count:
        return len(snapshot)
    line = snapshot.line(position.line)
    return min(line.start + position.character, line.end)


def apply_change(doc: _Document, start: int, end: int, new_text: str) -> None:
    """Apply one ranged edit and invalidate what it touched.

    An edit that changes the length shifts every later offset, so the
    invalidated span runs to the end of the old text. Both the old and the
    new text of the edited lines decide how far string boundaries reach.
    """
    previous = doc.snapshot
    old = previous.text
    if len(new_text) != end - start:
        edited = TextSpan(start, len(old) - start)
    else:
        edited = TextSpan(start, end - start)
    doc.snapshot = TextSnapshot(old[:start] + new_text + old[end:])
    doc.classifier.invalidate([edited], doc.snapshot, previous=previous)


def encode_tokens(snapshot: TextSnapshot, spans: list[ClassificationSpan]) -> list[int]:
    """Encode spans in the LSP relative 5-integer format."""
    data: list[int] = []
    prev_line = 0
    prev_char = 0
    for span in sorted(spans, key=lambda s: s.start):
        line = snapshot.line_number_at(span.start)
        char = span.start - snapshot.line(line).start
        delta_line = line - prev_line
        delta_char = char - prev_char if delta_line == 0 else char
        data.extend([delta_line, delta_char, span.length, _TOKEN_TYPES[span.category], 0])
        prev_line = line
        prev_char = char
    return data


@server.feature(TEXT_DOCUMENT_DID_OPEN)
def did_open(ls: LanguageServer, params: DidOpenTextDocumentParams) -> None:
    item = params.text_document
    documents.open(item.uri, item.text)
    logger.debug(logs.LSP_DOCUMENT_OPENED.format(uri=item.uri, lines=item.text.count("\n") + 1))


@server.feature(TEXT_DOCUMENT_DID_CHANGE)
def did_change(ls: LanguageServer, params: DidChangeTextDocumentParams) -> None:
    uri = params.text_document.uri
    doc = documents.get(uri)
    if doc is None:
        documents.open(uri, ls.workspace.get_text_document(uri).source)
        return

    for change in params.content_changes:
        change_range = getattr(change, "range", None)
        if change_range is None:
            # Whole-document replacement
            doc.snapshot = TextSnapshot(change.text)
            doc.classifier.clear_all()
            continue
        start = offset_at(doc.snapshot, change_range.start)
        end = offset_at(doc.snapshot, change_range.end)
        apply_change(doc, start, end, change.text)
    logger.debug(logs.LSP_DOCUMENT_CHANGED.format(uri=uri, edits=len(params.content_changes)))


@server.feature(TEXT_DOCUMENT_DID_CLOSE)
def did_close(ls: LanguageServer, params: DidCloseTextDocumentParams) -> None:
    documents.close(params.text_document.uri)
    logger.debug(logs.LSP_DOCUMENT_CLOSED.format(uri=params.text_document.uri))


@server.feature(TEXT_DOCUMENT_SEMANTIC_TOKENS_FULL, LEGEND)
def semantic_tokens_full(ls: LanguageServer, params: SemanticTokensParams) -> SemanticTokens:
    uri = params.text_document.uri
    doc = documents.get(uri)
    if doc is None:
        documents.open(uri, ls.workspace.get_text_document(uri).source)
        doc = documents.get(uri)
        assert doc is not None
    spans = doc.classifier.classify_document(doc.snapshot)
    return SemanticTokens(data=encode_tokens(doc.snapshot, spans))


def main() -> None:
    settings = resolve_settings(load_config(None, Path.cwd()))
    configure_logging(settings.log_level)
    documents.settings = settings
    server.start_io()
