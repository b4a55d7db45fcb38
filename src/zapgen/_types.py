"""Token types shared by the zapgen lexer and parser."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class TokenType(Enum):
    """Lexical token kinds.

    Tag openers carry their sigil (``{{#``, ``{{/``, ``{{>``) so the parser
    can dispatch on the token type alone.
    """

    DATA = "data"

    # Tag delimiters
    OPEN = "open"  # {{
    OPEN_RAW = "open_raw"  # {{{
    OPEN_BLOCK = "open_block"  # {{#
    OPEN_END = "open_end"  # {{/
    OPEN_PARTIAL = "open_partial"  # {{>
    CLOSE = "close"  # }}
    CLOSE_RAW = "close_raw"  # }}}

    # Inside tags
    ID = "id"
    STRING = "string"
    NUMBER = "number"
    EQUALS = "equals"
    LPAREN = "lparen"
    RPAREN = "rparen"

    EOF = "eof"


@dataclass(frozen=True, slots=True)
class Token:
    """A single lexical token with its source location."""

    type: TokenType
    value: str
    lineno: int
    col_offset: int

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.value!r}, {self.lineno}:{self.col_offset})"


# Human readable token names for error messages
TOKEN_NAMES: dict[TokenType, str] = {
    TokenType.DATA: "text",
    TokenType.OPEN: "'{{'",
    TokenType.OPEN_RAW: "'{{{'",
    TokenType.OPEN_BLOCK: "'{{#'",
    TokenType.OPEN_END: "'{{/'",
    TokenType.OPEN_PARTIAL: "'{{>'",
    TokenType.CLOSE: "'}}'",
    TokenType.CLOSE_RAW: "'}}}'",
    TokenType.ID: "name",
    TokenType.STRING: "string",
    TokenType.NUMBER: "number",
    TokenType.EQUALS: "'='",
    TokenType.LPAREN: "'('",
    TokenType.RPAREN: "')'",
    TokenType.EOF: "end of template",
}
