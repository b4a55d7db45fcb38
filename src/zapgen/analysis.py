"""Static analysis of zapgen template ASTs.

Provides ``visit_children`` for generic traversal plus the two questions
the engine asks before rendering: which helpers a template references and
which partials it pulls in. ``is_async`` answers whether a render needs an
event loop.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING

from zapgen.nodes import Call, Node, Partial

if TYPE_CHECKING:
    from zapgen.environment.core import Environment

# Child attributes, traversed in this order
CONTAINER_ATTRS = ("body", "inverse")
EXPR_ATTRS = ("call", "path", "context")
SEQUENCE_ATTRS = ("params",)


def visit_children(node: Node, visit: Callable[[Node], None]) -> None:
    """Visit all child nodes of ``node`` (body, inverse, call, params, hash values)."""
    for attr in CONTAINER_ATTRS:
        children = getattr(node, attr, None)
        if children:
            for child in children:
                visit(child)

    for attr in EXPR_ATTRS:
        child = getattr(node, attr, None)
        if isinstance(child, Node):
            visit(child)

    for attr in SEQUENCE_ATTRS:
        for child in getattr(node, attr, ()):
            visit(child)

    for _key, value in getattr(node, "hash", ()):
        visit(value)


class HelperCollector:
    """Collect helper-position names and partial names from an AST.

    Helper-position names are the heads of mustaches, block openers and
    subexpressions; whether each one is a helper or a plain lookup is
    decided by the environment at render time.
    """

    __slots__ = ("_helpers", "_partials")

    def __init__(self) -> None:
        self._helpers: set[str] = set()
        self._partials: set[str] = set()

    def collect(self, node: Node) -> tuple[frozenset[str], frozenset[str]]:
        self._helpers = set()
        self._partials = set()
        self._visit(node)
        return frozenset(self._helpers), frozenset(self._partials)

    def _visit(self, node: Node) -> None:
        if isinstance(node, Call) and node.path.is_simple:
            self._helpers.add(node.path.original)
        elif isinstance(node, Partial):
            self._partials.add(node.name)
        visit_children(node, self._visit)


def helper_names(node: Node) -> frozenset[str]:
    """Names in helper position anywhere below ``node``."""
    return HelperCollector().collect(node)[0]


def partial_names(node: Node) -> frozenset[str]:
    """Names of the partials ``node`` renders directly."""
    return HelperCollector().collect(node)[1]


def uses_async_helpers(env: Environment, names: Iterable[str]) -> bool:
    return any(env.is_async_helper(name) for name in names)


def is_async_template(env: Environment, name: str | None, ast: Node) -> bool:
    """True when rendering ``ast`` can call an async helper, partials included.

    Partials that fail to load are ignored here; the render reports them.
    """
    from zapgen.environment.exceptions import TemplateError

    seen: set[str] = set()
    if name:
        seen.add(name)
    stack = [ast]
    while stack:
        current = stack.pop()
        helpers, partials = HelperCollector().collect(current)
        if uses_async_helpers(env, helpers):
            return True
        for partial in partials:
            if partial in seen:
                continue
            seen.add(partial)
            try:
                stack.append(env.get_template(partial).ast)
            except TemplateError:
                continue
    return False

