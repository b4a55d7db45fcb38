"""Fragment: rendered output that may still contain async slots.

The renderer builds output the StringBuilder way (append chunks, join
once), except that a chunk can also be a ``Slot``: the place an async
helper's result goes once its pending operation settles. Synchronous
rendering therefore never waits. Document order is restored when the
fragment is resolved, slot by slot, in the order the slots appear.

Block helpers receive fragments from ``options.fn()`` and combine them
with ``+`` or ``Fragment.concat()`` just like strings.
"""

from __future__ import annotations

import html
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from zapgen.environment.exceptions import TemplateRuntimeError
from zapgen.pending import PendingOperation


@dataclass(frozen=True, slots=True)
class Slot:
    """Output position filled by a pending operation's result."""

    operation: PendingOperation
    escape: bool = False
    lineno: int = 0


Chunk = str | Slot


def stringify(value: Any) -> str:
    """Convert a helper or variable value to output text.

    None renders as "", booleans as "true"/"false".
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def escape(text: str) -> str:
    """HTML-escape ``text`` (used for ``{{ }}`` output when autoescape is on)."""
    return html.escape(text, quote=True)


class Fragment:
    """Ordered text chunks and pending slots.

    Example:
        >>> frag = Fragment(["a", "b"]) + "c"
        >>> str(frag)
        'abc'
    """

    __slots__ = ("_chunks",)

    def __init__(self, chunks: Iterable[Chunk] = ()):
        self._chunks: tuple[Chunk, ...] = tuple(c for c in chunks if c != "")

    @classmethod
    def concat(cls, parts: Iterable[str | Fragment]) -> Fragment:
        """Join strings and fragments in order."""
        chunks: list[Chunk] = []
        for part in parts:
            if isinstance(part, Fragment):
                chunks.extend(part._chunks)
            else:
                chunks.append(part)
        return cls(chunks)

    @property
    def chunks(self) -> tuple[Chunk, ...]:
        return self._chunks

    @property
    def slots(self) -> tuple[Slot, ...]:
        return tuple(c for c in self._chunks if isinstance(c, Slot))

    @property
    def is_resolved(self) -> bool:
        """True when the fragment holds text only."""
        return all(isinstance(c, str) for c in self._chunks)

    async def resolve(self) -> str:
        """Wait for each slot in document order and return the final text.

        Raises:
            Exception: Whatever the first failing slot's operation raised.
        """
        parts: list[str] = []
        for chunk in self._chunks:
            if isinstance(chunk, str):
                parts.append(chunk)
                continue
            value = await chunk.operation
            if isinstance(value, Fragment):
                parts.append(await value.resolve())
            else:
                text = stringify(value)
                parts.append(escape(text) if chunk.escape else text)
        return "".join(parts)

    def __add__(self, other: object) -> Fragment:
        if isinstance(other, (str, Fragment)):
            return Fragment.concat((self, other))
        return NotImplemented

    def __radd__(self, other: object) -> Fragment:
        if isinstance(other, str):
            return Fragment.concat((other, self))
        return NotImplemented

    def __str__(self) -> str:
        if not self.is_resolved:
            raise TemplateRuntimeError(
                f"Fragment still has {len(self.slots)} pending async slot(s)",
                suggestion="Await fragment.resolve() or render with render_async()",
            )
        return "".join(self._chunks)  # type: ignore[arg-type]

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Fragment):
            return self._chunks == other._chunks
        if isinstance(other, str):
            return self.is_resolved and "".join(self._chunks) == other  # type: ignore[arg-type]
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __bool__(self) -> bool:
        return bool(self._chunks)

    def __repr__(self) -> str:
        return f"<Fragment chunks={len(self._chunks)} slots={len(self.slots)}>"
