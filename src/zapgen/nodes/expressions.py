"""Expression nodes for the zapgen AST."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from zapgen.nodes.base import Node


@dataclass(frozen=True, slots=True)
class Expr(Node):
    """Base class for expressions."""


@dataclass(frozen=True, slots=True)
class Const(Expr):
    """Literal value: string, number, true/false, null/undefined."""

    value: str | int | float | bool | None


@dataclass(frozen=True, slots=True)
class Path(Expr):
    """Context lookup: name, a.b, this, ../name, @index

    ``depth`` counts leading ``../`` segments, ``data`` marks ``@``-names
    and ``parts`` holds the remaining segments (empty for ``this``/``.``).
    """

    parts: tuple[str, ...]
    original: str
    depth: int = 0
    data: bool = False

    @property
    def is_simple(self) -> bool:
        """True for a bare single-segment name that may also name a helper."""
        return len(self.parts) == 1 and self.original == self.parts[0]

    @property
    def is_this_scoped(self) -> bool:
        """True for ``this.name``: resolve against the current data only."""
        return self.original[3 * self.depth :].startswith("this.")


@dataclass(frozen=True, slots=True)
class Call(Expr):
    """Helper call or lookup: path param* key=value*

    Used for mustache bodies, block openers and ``(subexpressions)``.
    """

    path: Path
    params: Sequence[Expr] = ()
    hash: Sequence[tuple[str, Expr]] = ()

    @property
    def has_arguments(self) -> bool:
        return bool(self.params or self.hash)
