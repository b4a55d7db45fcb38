"""Context model: the chained rendering environment seen by helpers.

Every helper invocation receives a ``Context``. Contexts form a chain
through ``parent`` back to the pass root; all of them share the root's
``global_`` (the ``RenderPass``) by reference. A context is immutable:
helpers that need different positional state derive a child with
``ctx.child(index=..., count=...)`` instead of mutating their own.

Reserved fields:
    index, count: position inside the enclosing iteration (None outside one)
    value, sum: present only on contexts produced by accumulator replay
    key: mapping key on contexts produced by ``each`` over a mapping
    this: the data object names resolve against (render args at the root)

Name resolution for ``{{name}}`` walks the chain: the context's ``this``,
then its reserved fields, then the parent, up to the root. Item fields
therefore win over the loop position; ``@index``/``@count`` always
name the position.

"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from zapgen.render_pass import RenderPass

# Resolved as plain names after the context's data
_RESERVED_FIELDS = ("index", "count", "value", "sum", "key")


@dataclass(frozen=True, slots=True)
class Context:
    """Rendering environment visible to a helper invocation."""

    global_: RenderPass
    parent: Context | None = None
    this: Any = None
    index: int | None = None
    count: int | None = None
    value: int | float | None = None
    sum: int | float | None = None
    key: Any = None

    @classmethod
    def root(cls, render_pass: RenderPass, data: Any = None) -> Context:
        """Create the pass root context over the render arguments."""
        return cls(global_=render_pass, this=data)

    def child(self, **overrides: Any) -> Context:
        """Derive a child context; see ``make_child_context``."""
        return make_child_context(self, **overrides)

    @property
    def is_root(self) -> bool:
        return self.parent is None

    @property
    def in_iteration(self) -> bool:
        """True when both ``index`` and ``count`` are set."""
        return self.index is not None and self.count is not None

    @property
    def is_replay(self) -> bool:
        """True on contexts produced by accumulator replay (``sum`` is always set there)."""
        return self.sum is not None

    def ancestors(self) -> Iterator[Context]:
        """Yield this context and every parent up to the root."""
        ctx: Context | None = self
        while ctx is not None:
            yield ctx
            ctx = ctx.parent

    def reserved(self, name: str) -> tuple[bool, Any]:
        """Look up a reserved field on this context only.

        ``value`` counts as present on replay contexts even when it is
        None (a recorded null).
        """
        if name == "value":
            return (True, self.value) if self.is_replay else (False, None)
        if name in _RESERVED_FIELDS:
            found = getattr(self, name)
            return (found is not None, found)
        return False, None

    def resolve(self, name: str) -> tuple[bool, Any]:
        """Resolve a plain name along the context chain.

        Each context is checked data first, then reserved fields.

        Returns:
            (found, value); ``found`` is False when no context in the chain
            defines ``name``.
        """
        for ctx in self.ancestors():
            found, value = get_field(ctx.this, name)
            if found:
                return True, value
            found, value = ctx.reserved(name)
            if found:
                return True, value
        return False, None

    def data_var(self, name: str) -> tuple[bool, Any]:
        """Resolve an ``@name`` data variable from the nearest iteration frame."""
        for ctx in self.ancestors():
            if name in ("first", "last"):
                if ctx.index is not None and ctx.count is not None:
                    edge = 0 if name == "first" else ctx.count - 1
                    return True, ctx.index == edge
                continue
            if name == "root":
                if ctx.is_root:
                    return True, ctx.this
                continue
            found, value = ctx.reserved(name)
            if found:
                return True, value
        return False, None

    def visible_names(self) -> frozenset[str]:
        """Every name resolvable from this context (for "Did you mean?" hints)."""
        names: set[str] = set()
        for ctx in self.ancestors():
            names.update(n for n in _RESERVED_FIELDS if ctx.reserved(n)[0])
            if isinstance(ctx.this, Mapping):
                names.update(str(k) for k in ctx.this)
        return frozenset(names)

    def __repr__(self) -> str:
        fields = [f"{n}={getattr(self, n)!r}" for n in _RESERVED_FIELDS if self.reserved(n)[0]]
        depth = sum(1 for _ in self.ancestors()) - 1
        return f"<Context {' '.join([f'depth={depth}', *fields])}>"


def make_child_context(parent: Context, **overrides: Any) -> Context:
    """Return a new Context below ``parent``.

    The child shares ``parent.global_`` by reference and gets ``parent`` as
    its parent. All other fields come from ``overrides`` (index, count,
    value, sum, key, this); unspecified fields are unset, not inherited.

    Raises:
        RuntimeError: ``parent`` carries no render pass.
    """
    if parent.global_ is None:
        raise RuntimeError("Cannot derive a child context from a context without a render pass")
    return Context(global_=parent.global_, parent=parent, **overrides)


def get_field(obj: Any, name: str) -> tuple[bool, Any]:
    """Read ``name`` from a mapping key or a public, non-callable attribute.

    Methods are not data: ``count`` on a string item is not ``str.count``.

    Returns:
        (found, value)
    """
    if obj is None:
        return False, None
    if isinstance(obj, Mapping):
        if name in obj:
            return True, obj[name]
        return False, None
    if name.startswith("_"):
        return False, None
    try:
        value = getattr(obj, name)
    except AttributeError:
        return False, None
    if callable(value):
        return False, None
    return True, value
