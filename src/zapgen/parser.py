"""Recursive-descent parser producing the zapgen AST.

Grammar::

    template  := body EOF
    body      := ( DATA | mustache | raw | block | partial )*
    mustache  := '{{' call '}}'
    raw       := '{{{' call '}}}'
    block     := '{{#' call '}}' body [ else ] '{{/' ID '}}'
    else      := '{{' 'else' '}}' body
               | '{{' 'else' call '}}' body [ else ]      # chained, shares the closer
    partial   := '{{>' (ID | STRING) [ param ] ( ID '=' param )* '}}'
    call      := ID param* ( ID '=' param )*
    param     := STRING | NUMBER | ID | '(' call ')'

"""

from __future__ import annotations

from collections.abc import Sequence

from zapgen._types import TOKEN_NAMES, Token, TokenType
from zapgen.environment.exceptions import ErrorCode, TemplateSyntaxError
from zapgen.nodes import Block, Call, Const, Data, Expr, Node, Output, Partial, Path, Template

# Literal keywords inside tags
_KEYWORDS: dict[str, bool | None] = {
    "true": True,
    "false": False,
    "null": None,
    "undefined": None,
}

# Tokens that end a parameter list
_CALL_TERMINATORS = frozenset({TokenType.CLOSE, TokenType.CLOSE_RAW, TokenType.RPAREN, TokenType.EOF})


class Parser:
    """Parse a token stream into a ``Template`` node.

    A Parser instance is single-use: call ``parse()`` once.
    """

    def __init__(
        self,
        tokens: Sequence[Token],
        name: str | None = None,
        filename: str | None = None,
        source: str | None = None,
    ):
        self._tokens = tokens
        self._pos = 0
        self._name = name
        self._filename = filename
        self._source = source

    def parse(self) -> Template:
        body = self._parse_body()
        if self._match(TokenType.OPEN_END):
            closer = self._peek(1)
            raise self._error(
                f"Unexpected closing tag '{{{{/{closer.value}}}}}'",
                code=ErrorCode.UNEXPECTED_TOKEN,
                suggestion="Remove the closing tag or add the matching '{{#...}}' opener",
            )
        if self._at_else():
            raise self._error(
                "'{{else}}' outside of a block",
                code=ErrorCode.UNEXPECTED_TOKEN,
            )
        return Template(1, 0, tuple(body))

    # ─────────────────────────────────────────────────────────────────────
    # Token navigation
    # ─────────────────────────────────────────────────────────────────────

    @property
    def _current(self) -> Token:
        return self._tokens[self._pos]

    def _peek(self, offset: int = 0) -> Token:
        index = min(self._pos + offset, len(self._tokens) - 1)
        return self._tokens[index]

    def _advance(self) -> Token:
        token = self._tokens[self._pos]
        if token.type is not TokenType.EOF:
            self._pos += 1
        return token

    def _match(self, *types: TokenType) -> bool:
        return self._current.type in types

    def _expect(self, token_type: TokenType) -> Token:
        if self._current.type is not token_type:
            raise self._error(
                f"Expected {TOKEN_NAMES[token_type]}, got {TOKEN_NAMES[self._current.type]}",
                code=ErrorCode.UNEXPECTED_TOKEN,
            )
        return self._advance()

    def _at_else(self) -> bool:
        nxt = self._peek(1)
        return self._match(TokenType.OPEN) and nxt.type is TokenType.ID and nxt.value == "else"

    def _error(
        self,
        message: str,
        token: Token | None = None,
        suggestion: str | None = None,
        code: ErrorCode | None = None,
    ) -> TemplateSyntaxError:
        token = token or self._current
        return TemplateSyntaxError(
            message,
            lineno=token.lineno,
            name=self._name,
            filename=self._filename,
            source=self._source,
            col_offset=token.col_offset,
            suggestion=suggestion,
            code=code,
        )

    # ─────────────────────────────────────────────────────────────────────
    # Statements
    # ─────────────────────────────────────────────────────────────────────

    def _parse_body(self) -> list[Node]:
        """Parse nodes until EOF, a closing tag or an ``{{else}}``."""
        nodes: list[Node] = []
        while True:
            token = self._current
            token_type = token.type
            if token_type is TokenType.EOF or token_type is TokenType.OPEN_END:
                return nodes
            if token_type is TokenType.DATA:
                self._advance()
                nodes.append(Data(token.lineno, token.col_offset, token.value))
            elif token_type is TokenType.OPEN:
                if self._at_else():
                    return nodes
                self._advance()
                call = self._parse_call()
                self._expect(TokenType.CLOSE)
                nodes.append(Output(token.lineno, token.col_offset, call, escape=True))
            elif token_type is TokenType.OPEN_RAW:
                self._advance()
                call = self._parse_call()
                self._expect(TokenType.CLOSE_RAW)
                nodes.append(Output(token.lineno, token.col_offset, call, escape=False))
            elif token_type is TokenType.OPEN_BLOCK:
                nodes.append(self._parse_block())
            elif token_type is TokenType.OPEN_PARTIAL:
                nodes.append(self._parse_partial())
            else:
                raise self._error(
                    f"Unexpected {TOKEN_NAMES[token_type]}",
                    code=ErrorCode.UNEXPECTED_TOKEN,
                )

    def _parse_block(self) -> Block:
        opener = self._advance()
        call = self._parse_call()
        self._expect(TokenType.CLOSE)
        block = self._parse_block_contents(call, opener)

        if self._match(TokenType.EOF):
            raise self._error(
                f"Unclosed block '{{{{#{call.path.original}}}}}'",
                token=opener,
                suggestion=f"Add '{{{{/{call.path.original}}}}}' to close the block",
                code=ErrorCode.UNCLOSED_BLOCK,
            )

        self._expect(TokenType.OPEN_END)
        closer = self._expect(TokenType.ID)
        if closer.value != call.path.original:
            raise self._error(
                f"'{{{{/{closer.value}}}}}' does not match '{{{{#{call.path.original}}}}}'",
                token=closer,
                suggestion=f"Close with '{{{{/{call.path.original}}}}}'",
                code=ErrorCode.MISMATCHED_BLOCK,
            )
        self._expect(TokenType.CLOSE)
        return block

    def _parse_block_contents(self, call: Call, opener: Token) -> Block:
        """Parse a block body and its else section; the closer is left unconsumed."""
        body = self._parse_body()
        inverse: list[Node] = []
        if self._at_else():
            else_token = self._advance()
            self._advance()  # 'else'
            if self._match(TokenType.CLOSE):
                self._advance()
                inverse = self._parse_body()
                if self._at_else():
                    raise self._error(
                        "Block has more than one '{{else}}'",
                        code=ErrorCode.UNEXPECTED_TOKEN,
                    )
            else:
                chained = self._parse_call()
                self._expect(TokenType.CLOSE)
                inverse = [self._parse_block_contents(chained, else_token)]
        return Block(opener.lineno, opener.col_offset, call, tuple(body), tuple(inverse))

    def _parse_partial(self) -> Partial:
        opener = self._advance()
        name_token = self._current
        if name_token.type not in (TokenType.ID, TokenType.STRING):
            raise self._error(
                "Expected partial name",
                code=ErrorCode.UNEXPECTED_TOKEN,
                suggestion='Name the partial: {{> header}} or {{> "common/header"}}',
            )
        self._advance()

        context: Expr | None = None
        if not self._match(*_CALL_TERMINATORS) and not self._at_hash_pair():
            context = self._parse_param()
        hash_pairs = self._parse_hash()
        self._expect(TokenType.CLOSE)
        return Partial(opener.lineno, opener.col_offset, name_token.value, context, hash_pairs)

    # ─────────────────────────────────────────────────────────────────────
    # Expressions
    # ─────────────────────────────────────────────────────────────────────

    def _parse_call(self) -> Call:
        head = self._current
        if head.type is not TokenType.ID or head.value in _KEYWORDS:
            raise self._error(
                f"Expected helper or variable name, got {TOKEN_NAMES[head.type]}",
                code=ErrorCode.UNEXPECTED_TOKEN,
            )
        self._advance()
        path = self._parse_path(head)

        params: list[Expr] = []
        while not self._match(*_CALL_TERMINATORS) and not self._at_hash_pair():
            params.append(self._parse_param())
        hash_pairs = self._parse_hash()
        return Call(head.lineno, head.col_offset, path, tuple(params), hash_pairs)

    def _parse_hash(self) -> tuple[tuple[str, Expr], ...]:
        pairs: list[tuple[str, Expr]] = []
        while self._at_hash_pair():
            key = self._advance()
            self._advance()  # '='
            pairs.append((key.value, self._parse_param()))
        if not self._match(*_CALL_TERMINATORS):
            raise self._error(
                "Positional parameter after hash arguments",
                code=ErrorCode.UNEXPECTED_TOKEN,
                suggestion="Put positional parameters before key=value pairs",
            )
        return tuple(pairs)

    def _at_hash_pair(self) -> bool:
        return self._match(TokenType.ID) and self._peek(1).type is TokenType.EQUALS

    def _parse_param(self) -> Expr:
        token = self._current
        if token.type is TokenType.STRING:
            self._advance()
            return Const(token.lineno, token.col_offset, token.value)
        if token.type is TokenType.NUMBER:
            self._advance()
            value: int | float = float(token.value) if "." in token.value else int(token.value)
            return Const(token.lineno, token.col_offset, value)
        if token.type is TokenType.ID:
            self._advance()
            if token.value in _KEYWORDS:
                return Const(token.lineno, token.col_offset, _KEYWORDS[token.value])
            return self._parse_path(token)
        if token.type is TokenType.LPAREN:
            self._advance()
            call = self._parse_call()
            self._expect(TokenType.RPAREN)
            return call
        raise self._error(
            f"Unexpected {TOKEN_NAMES[token.type]} in parameter list",
            code=ErrorCode.UNEXPECTED_TOKEN,
        )

    def _parse_path(self, token: Token) -> Path:
        rest = token.value
        depth = 0
        while rest.startswith("../"):
            depth += 1
            rest = rest[3:]

        data = rest.startswith("@")
        if data:
            rest = rest[1:]

        if rest in ("this", "."):
            parts: tuple[str, ...] = ()
        elif rest.startswith("this."):
            parts = tuple(rest[5:].split("."))
        else:
            parts = tuple(rest.split("."))
        return Path(token.lineno, token.col_offset, parts, token.value, depth, data)


def parse(tokens: Sequence[Token], name: str | None = None, source: str | None = None) -> Template:
    """Parse ``tokens``; shorthand for ``Parser(tokens, name, source=source).parse()``."""
    return Parser(tokens, name, source=source).parse()
