"""Template structure nodes for the zapgen AST."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from zapgen.nodes.base import Node
from zapgen.nodes.expressions import Call, Expr


@dataclass(frozen=True, slots=True)
class Template(Node):
    """Root node of a parsed template."""

    body: Sequence[Node]


@dataclass(frozen=True, slots=True)
class Data(Node):
    """Raw text between tags."""

    value: str


@dataclass(frozen=True, slots=True)
class Output(Node):
    """Mustache: {{ call }} (escape=True) or {{{ call }}} (escape=False)"""

    call: Call
    escape: bool = True


@dataclass(frozen=True, slots=True)
class Block(Node):
    """Block helper: {{#name ...}}body{{else}}inverse{{/name}}"""

    call: Call
    body: Sequence[Node]
    inverse: Sequence[Node] = ()


@dataclass(frozen=True, slots=True)
class Partial(Node):
    """Partial: {{> name [context] key=value}}"""

    name: str
    context: Expr | None = None
    hash: Sequence[tuple[str, Expr]] = ()
