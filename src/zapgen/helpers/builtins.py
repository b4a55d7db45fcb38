"""Language built-ins: if, unless, each, with."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from zapgen.helpers.base import argument, require_block, truthy
from zapgen.template.fragment import Fragment

if TYPE_CHECKING:
    from zapgen.context import Context
    from zapgen.template.renderer import HelperOptions


def if_(ctx: Context, options: HelperOptions, *params: Any) -> Fragment:
    """``{{#if cond}}...{{else}}...{{/if}}``; ``includeZero=true`` treats 0 as true."""
    require_block(options)
    condition = argument(options, params, 0, "condition")
    if options.hash.get("includeZero") and condition == 0 and condition is not False:
        return options.fn(ctx)
    return options.fn(ctx) if truthy(condition) else options.inverse(ctx)


def unless(ctx: Context, options: HelperOptions, *params: Any) -> Fragment:
    require_block(options)
    condition = argument(options, params, 0, "condition")
    return options.inverse(ctx) if truthy(condition) else options.fn(ctx)


def each(ctx: Context, options: HelperOptions, *params: Any) -> Fragment:
    """Render the body once per item with ``index``/``count`` (and ``key`` for mappings).

    The item becomes ``this`` of the child context. Empty or missing
    collections render the inverse section.
    """
    require_block(options)
    items = argument(options, params, 0, "items", None)
    if items is None or items is False:
        return options.inverse(ctx)

    if isinstance(items, Mapping):
        entries = list(items.items())
    elif isinstance(items, (str, bytes)):
        entries = [(None, items)]
    else:
        entries = [(None, item) for item in items]

    if not entries:
        return options.inverse(ctx)

    count = len(entries)
    return Fragment.concat(
        options.fn(ctx.child(this=item, index=i, count=count, key=key))
        for i, (key, item) in enumerate(entries)
    )


def with_(ctx: Context, options: HelperOptions, *params: Any) -> Fragment:
    """Render the body with ``value`` as ``this``; inverse when it is falsy."""
    require_block(options)
    value = argument(options, params, 0, "value", None)
    if not truthy(value):
        return options.inverse(ctx)
    return options.fn(ctx.child(this=value))
