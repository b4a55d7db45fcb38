"""Lexer for zapgen's Handlebars-style template syntax.

Splits template source into a flat token stream: DATA tokens for literal
text and delimiter/expression tokens for everything inside ``{{ ... }}``.

Whitespace control is resolved here rather than in the parser: ``{{~``
right-strips the preceding DATA token and ``~}}`` left-strips the next
one. Comments (``{{! ... }}`` and ``{{!-- ... --}}``) produce no tokens.

Example:
    >>> [t.type.name for t in Lexer("a{{#if x}}b{{/if}}").tokenize()]
    ['DATA', 'OPEN_BLOCK', 'ID', 'ID', 'CLOSE', 'DATA', 'OPEN_END', 'ID', 'CLOSE', 'EOF']

"""

from __future__ import annotations

import re
from bisect import bisect_right

from zapgen._types import Token, TokenType
from zapgen.environment.exceptions import ErrorCode, TemplateSyntaxError

# Sigil after "{{" → opener token type
_SIGILS: dict[str, TokenType] = {
    "#": TokenType.OPEN_BLOCK,
    "/": TokenType.OPEN_END,
    ">": TokenType.OPEN_PARTIAL,
}


class Lexer:
    """Tokenizer for one template source.

    Patterns are compiled at class level and shared between instances.
    A Lexer instance is single-use: call ``tokenize()`` once.
    """

    _WHITESPACE = re.compile(r"\s+")
    _STRING = re.compile(r""""((?:[^"\\]|\\.)*)"|'((?:[^'\\]|\\.)*)'""", re.DOTALL)
    _NUMBER = re.compile(r"-?\d+(?:\.\d+)?(?=[\s()~}]|$)")
    _ID = re.compile(
        r"(?:\.\./)*"  # parent segments
        r"(?:@?[A-Za-z_$][\w$]*|\.)"  # head: name, @data name or "."
        r"(?:\.[A-Za-z_$][\w$]*)*"  # tail: .attr.attr
    )
    _CLOSE = re.compile(r"(~?)\}\}")
    _CLOSE_RAW = re.compile(r"(~?)\}\}\}")
    _COMMENT_END = re.compile(r"(~?)\}\}")
    _LONG_COMMENT_END = re.compile(r"--(~?)\}\}")
    _ESCAPE = re.compile(r"\\(.)", re.DOTALL)

    _PUNCT: dict[str, TokenType] = {
        "=": TokenType.EQUALS,
        "(": TokenType.LPAREN,
        ")": TokenType.RPAREN,
    }

    def __init__(self, source: str, name: str | None = None, filename: str | None = None):
        self._source = source
        self._name = name
        self._filename = filename
        self._tokens: list[Token] = []
        self._line_starts = [0] + [m.end() for m in re.finditer(r"\n", source)]
        # Left-strip the next DATA token (set by a "~}}" closer)
        self._strip_next = False

    def tokenize(self) -> list[Token]:
        """Tokenize the whole source, ending with an EOF token."""
        source = self._source
        pos = 0
        while True:
            start = source.find("{{", pos)
            if start == -1:
                self._emit_data(source[pos:], pos, strip_right=False)
                break

            raw = source.startswith("{{{", start)
            cursor = start + (3 if raw else 2)
            strip_left = source.startswith("~", cursor)
            if strip_left:
                cursor += 1

            self._emit_data(source[pos:start], pos, strip_right=strip_left)

            if not raw and source.startswith("!", cursor):
                pos = self._skip_comment(start, cursor)
                continue

            if raw:
                self._emit(TokenType.OPEN_RAW, "{{{", start)
            else:
                sigil_type = _SIGILS.get(source[cursor : cursor + 1])
                if sigil_type is not None:
                    self._emit(sigil_type, source[start : cursor + 1], start)
                    cursor += 1
                else:
                    self._emit(TokenType.OPEN, "{{", start)

            pos = self._lex_tag(cursor, raw)

        self._emit(TokenType.EOF, "", len(source))
        return self._tokens

    # ─────────────────────────────────────────────────────────────────────
    # Internals
    # ─────────────────────────────────────────────────────────────────────

    def _lex_tag(self, pos: int, raw: bool) -> int:
        """Tokenize the inside of a tag starting at ``pos``; return position after the closer."""
        source = self._source
        closer = self._CLOSE_RAW if raw else self._CLOSE
        end = len(source)

        while pos < end:
            ws = self._WHITESPACE.match(source, pos)
            if ws:
                pos = ws.end()
                continue

            close = closer.match(source, pos)
            if close:
                self._emit(TokenType.CLOSE_RAW if raw else TokenType.CLOSE, close.group(0), pos)
                self._strip_next = bool(close.group(1))
                return close.end()

            char = source[pos]
            if char in "\"'":
                match = self._STRING.match(source, pos)
                if match is None:
                    raise self._error("Unterminated string literal", pos, ErrorCode.UNCLOSED_TAG)
                body = match.group(1) if match.group(1) is not None else match.group(2)
                self._emit(TokenType.STRING, self._ESCAPE.sub(r"\1", body), pos)
                pos = match.end()
                continue

            match = self._NUMBER.match(source, pos)
            if match:
                self._emit(TokenType.NUMBER, match.group(0), pos)
                pos = match.end()
                continue

            match = self._ID.match(source, pos)
            if match:
                self._emit(TokenType.ID, match.group(0), pos)
                pos = match.end()
                continue

            punct = self._PUNCT.get(char)
            if punct is not None:
                self._emit(punct, char, pos)
                pos += 1
                continue

            raise self._error(
                f"Unexpected character {char!r} inside tag",
                pos,
                ErrorCode.UNEXPECTED_CHARACTER,
            )

        raise self._error(
            "Unclosed tag",
            pos,
            ErrorCode.UNCLOSED_TAG,
            suggestion="Close the tag with '}}}'" if raw else "Close the tag with '}}'",
        )

    def _skip_comment(self, start: int, cursor: int) -> int:
        """Skip a comment starting at ``start``; ``cursor`` points at the '!'."""
        if self._source.startswith("!--", cursor):
            match = self._LONG_COMMENT_END.search(self._source, cursor + 3)
        else:
            match = self._COMMENT_END.search(self._source, cursor + 1)
        if match is None:
            raise self._error("Unclosed comment", start, ErrorCode.UNCLOSED_COMMENT)
        self._strip_next = bool(match.group(1))
        return match.end()

    def _emit_data(self, text: str, offset: int, strip_right: bool) -> None:
        if self._strip_next:
            stripped = text.lstrip()
            offset += len(text) - len(stripped)
            text = stripped
            self._strip_next = False
        if strip_right:
            text = text.rstrip()
        if text:
            self._emit(TokenType.DATA, text, offset)

    def _emit(self, token_type: TokenType, value: str, offset: int) -> None:
        lineno, col = self._position(offset)
        self._tokens.append(Token(token_type, value, lineno, col))

    def _position(self, offset: int) -> tuple[int, int]:
        line_index = bisect_right(self._line_starts, offset) - 1
        return line_index + 1, offset - self._line_starts[line_index]

    def _error(
        self,
        message: str,
        offset: int,
        code: ErrorCode,
        suggestion: str | None = None,
    ) -> TemplateSyntaxError:
        lineno, col = self._position(offset)
        return TemplateSyntaxError(
            message,
            lineno=lineno,
            name=self._name,
            filename=self._filename,
            source=self._source,
            col_offset=col,
            suggestion=suggestion,
            code=code,
        )


def tokenize(source: str, name: str | None = None) -> list[Token]:
    """Tokenize ``source``; shorthand for ``Lexer(source, name).tokenize()``."""
    return Lexer(source, name).tokenize()
