"""Expression lexer: converts Serilog.Expressions text into a flat token stream."""

from __future__ import annotations

from collections.abc import Iterator

from serilogsyntax.errors import require_text
from serilogsyntax.tokens import Token, TokenType, is_hex_digit, is_ident_char, is_ident_start

BUILTINS = frozenset({"@t", "@m", "@mt", "@l", "@x", "@p", "@i", "@r", "@sp", "@tr"})

KEYWORDS = frozenset({"if", "then", "else", "undefined"})

DIRECTIVES = {
    "#if": TokenType.IF_DIRECTIVE,
    "#else": TokenType.ELSE_DIRECTIVE,
    "#each": TokenType.EACH_DIRECTIVE,
    "#end": TokenType.END_DIRECTIVE,
    "#delimit": TokenType.DELIMIT_DIRECTIVE,
}

_PUNCTUATION = {
    ",": TokenType.COMMA,
    ":": TokenType.COLON,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    "[": TokenType.LBRACKET,
    "]": TokenType.RBRACKET,
    "{": TokenType.LBRACE,
    "}": TokenType.RBRACE,
}

# Tokens after which a '-' is subtraction rather than a sign
_OPERANDS = frozenset(
    {
        TokenType.IDENTIFIER,
        TokenType.BUILTIN,
        TokenType.NUMBER,
        TokenType.STRING,
        TokenType.BOOLEAN,
        TokenType.NULL,
        TokenType.RPAREN,
        TokenType.RBRACKET,
    }
)


class ExpressionLexer:
    """Tokenize an expression. Never raises on malformed input.

    Unrecognized characters become UNKNOWN tokens and unterminated string
    literals run to the end of the text.
    """

    def __init__(self, source: str) -> None:
        self._source = require_text(source, "expression")
        self._pos = 0
        self._last: Token | None = None

    def tokenize(self) -> list[Token]:
        """Tokenize the full source and return the token list."""
        return list(self)

    def __iter__(self) -> Iterator[Token]:
        while True:
            self._skip_ws()
            if self._pos >= len(self._source):
                return
            tok = self._lex_one()
            self._last = tok
            yield tok

    # ------------------------------------------------------------------
    # Position helpers
    # ------------------------------------------------------------------

    def _peek(self, offset: int = 0) -> str:
        idx = self._pos + offset
        if idx < len(self._source):
            return self._source[idx]
        return ""

    def _emit(self, tt: TokenType, start: int) -> Token:
        return Token(tt, self._source[start : self._pos], start, self._pos - start)

    def _skip_ws(self) -> None:
        while self._pos < len(self._source) and self._source[self._pos].isspace():
            self._pos += 1

    def _match_word_after(self, pos: int, word: str) -> int:
        """If *word* follows whitespace at *pos*, return the offset after it, else -1."""
        i = pos
        while i < len(self._source) and self._source[i].isspace():
            i += 1
        if i == pos:
            return -1
        end = i + len(word)
        if self._source[i:end].lower() != word:
            return -1
        if end < len(self._source) and is_ident_char(self._source[end]):
            return -1
        return end

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _lex_one(self) -> Token:
        ch = self._peek()
        start = self._pos

        if ch == "'":
            return self._lex_string()

        if ch.isdigit() or (ch == "-" and self._peek(1).isdigit() and not self._after_operand()):
            return self._lex_number()

        if ch == "@":
            return self._lex_builtin()

        if ch == "#":
            return self._lex_directive()

        if is_ident_start(ch):
            return self._lex_word()

        if ch == ".":
            self._pos += 2 if self._peek(1) == "." else 1
            return self._emit(TokenType.SPREAD if self._pos - start == 2 else TokenType.DOT, start)

        if ch in "<>!=":
            return self._lex_comparison()

        if ch in "?*" and self._last is not None and self._last.type == TokenType.LBRACKET:
            if self._peek(1) == "]":
                self._pos += 1
                return self._emit(TokenType.WILDCARD, start)

        if ch in "+-*/%^":
            self._pos += 1
            return self._emit(TokenType.ARITHMETIC, start)

        tt = _PUNCTUATION.get(ch, TokenType.UNKNOWN)
        self._pos += 1
        return self._emit(tt, start)

    def _after_operand(self) -> bool:
        return self._last is not None and self._last.type in _OPERANDS

    # ------------------------------------------------------------------
    # Literals
    # ------------------------------------------------------------------

    def _lex_string(self) -> Token:
        start = self._pos
        self._pos += 1  # opening quote
        while self._pos < len(self._source):
            if self._peek() == "'":
                if self._peek(1) == "'":
                    self._pos += 2
                    continue
                self._pos += 1
                break
            self._pos += 1
        return self._emit(TokenType.STRING, start)

    def _lex_number(self) -> Token:
        start = self._pos
        if self._peek() == "-":
            self._pos += 1

        if self._peek() == "0" and self._peek(1) in ("x", "X") and is_hex_digit(self._peek(2)):
            self._pos += 2
            while is_hex_digit(self._peek()):
                self._pos += 1
            return self._emit(TokenType.NUMBER, start)

        while self._peek().isdigit():
            self._pos += 1
        if self._peek() == "." and self._peek(1).isdigit():
            self._pos += 1
            while self._peek().isdigit():
                self._pos += 1
        return self._emit(TokenType.NUMBER, start)

    # ------------------------------------------------------------------
    # Names
    # ------------------------------------------------------------------

    def _read_ident(self) -> None:
        while self._pos < len(self._source) and is_ident_char(self._peek()):
            self._pos += 1

    def _lex_builtin(self) -> Token:
        start = self._pos
        self._pos += 1
        self._read_ident()
        tok = self._emit(TokenType.BUILTIN, start)
        if tok.value in BUILTINS:
            return tok
        return Token(TokenType.UNKNOWN, tok.value, tok.start, tok.length)

    def _lex_directive(self) -> Token:
        start = self._pos
        self._pos += 1
        self._read_ident()
        word = self._source[start : self._pos].lower()
        tt = DIRECTIVES.get(word, TokenType.UNKNOWN)
        if tt == TokenType.ELSE_DIRECTIVE:
            end = self._match_word_after(self._pos, "if")
            if end != -1:
                self._pos = end
                tt = TokenType.ELSE_IF_DIRECTIVE
        return self._emit(tt, start)

    def _lex_word(self) -> Token:
        start = self._pos
        self._read_ident()
        word = self._source[start : self._pos].lower()

        # Path segments after '.' are always plain identifiers
        if self._last is not None and self._last.type == TokenType.DOT:
            return self._emit(TokenType.IDENTIFIER, start)

        if word in ("true", "false"):
            return self._emit(TokenType.BOOLEAN, start)
        if word == "null":
            return self._emit(TokenType.NULL, start)
        if word in ("and", "or"):
            return self._emit(TokenType.BOOLEAN_OPERATOR, start)
        if word == "not":
            for follower, tt in (("like", TokenType.STRING_OPERATOR), ("in", TokenType.MEMBERSHIP)):
                end = self._match_word_after(self._pos, follower)
                if end != -1:
                    self._pos = end
                    return self._emit(tt, start)
            return self._emit(TokenType.BOOLEAN_OPERATOR, start)
        if word == "like":
            return self._emit(TokenType.STRING_OPERATOR, start)
        if word == "in":
            return self._emit(TokenType.MEMBERSHIP, start)
        if word == "is":
            end = self._match_word_after(self._pos, "null")
            if end == -1:
                not_end = self._match_word_after(self._pos, "not")
                if not_end != -1:
                    end = self._match_word_after(not_end, "null")
            if end != -1:
                self._pos = end
                return self._emit(TokenType.NULL_OPERATOR, start)
        if word == "ci" and self._last is not None:
            return self._emit(TokenType.CASE_MODIFIER, start)
        if word in KEYWORDS:
            return self._emit(TokenType.KEYWORD, start)

        if self._next_non_ws() == "(":
            return self._emit(TokenType.FUNCTION, start)
        return self._emit(TokenType.IDENTIFIER, start)

    def _next_non_ws(self) -> str:
        i = self._pos
        while i < len(self._source) and self._source[i] in " \t":
            i += 1
        return self._source[i] if i < len(self._source) else ""

    # ------------------------------------------------------------------
    # Operators
    # ------------------------------------------------------------------

    def _lex_comparison(self) -> Token:
        start = self._pos
        pair = self._source[self._pos : self._pos + 2]
        if pair in ("<>", "<=", ">=", "!="):
            self._pos += 2
            return self._emit(TokenType.COMPARISON, start)
        ch = self._peek()
        self._pos += 1
        if ch == "!":
            return self._emit(TokenType.UNKNOWN, start)
        return self._emit(TokenType.COMPARISON, start)


def tokenize_expression(source: str) -> list[Token]:
    """Convenience function: tokenize an expression and return the token list."""
    return ExpressionLexer(source).tokenize()
