"""Iteration helpers: iterate and the shared collect_blocks."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from zapgen.helpers.base import argument, require_block, require_int
from zapgen.template.fragment import Fragment

if TYPE_CHECKING:
    from zapgen.context import Context
    from zapgen.template.renderer import HelperOptions


def iterate(ctx: Context, options: HelperOptions, *params: Any) -> Fragment:
    """``{{#iterate count=N}}...{{/iterate}}``: render the body N times.

    Step ``i`` renders against a child context with ``index=i`` and
    ``count=N``; blocks are joined in index order. ``N <= 0`` renders
    nothing.

    Raises:
        HelperConfigurationError: ``count`` is missing or not an integer.
    """
    require_block(options)
    count = require_int(options, "count", argument(options, params, 0, "count"))
    if count <= 0:
        return Fragment()
    return Fragment.concat(options.fn(ctx.child(index=i, count=count)) for i in range(count))


def collect_blocks(items: Sequence[Any], options: HelperOptions, ctx: Context) -> Fragment:
    """Render the body once per item with the item as data and ``index``/``count`` set."""
    count = len(items)
    return Fragment.concat(
        options.fn(ctx.child(this=item, index=i, count=count)) for i, item in enumerate(items)
    )
