"""Positional block helpers: first, last, not_last, middle.

Each renders its body (against the same context) when the nearest
context's ``index``/``count`` say so, and the ``{{else}}`` section
otherwise. Outside an iteration none of them fire.

With ``count == 1`` both ``first`` and ``last`` fire; ``middle`` and
``not_last`` do not.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from zapgen.helpers.base import require_block
from zapgen.template.fragment import Fragment

if TYPE_CHECKING:
    from zapgen.context import Context
    from zapgen.template.renderer import HelperOptions


def is_first(ctx: Context) -> bool:
    return ctx.in_iteration and ctx.index == 0


def is_last(ctx: Context) -> bool:
    return ctx.in_iteration and ctx.index == ctx.count - 1


def is_not_last(ctx: Context) -> bool:
    return ctx.in_iteration and ctx.index != ctx.count - 1


def is_middle(ctx: Context) -> bool:
    return ctx.in_iteration and ctx.index != 0 and ctx.index != ctx.count - 1


def first(ctx: Context, options: HelperOptions) -> Fragment:
    require_block(options)
    return options.fn(ctx) if is_first(ctx) else options.inverse(ctx)


def last(ctx: Context, options: HelperOptions) -> Fragment:
    require_block(options)
    return options.fn(ctx) if is_last(ctx) else options.inverse(ctx)


def not_last(ctx: Context, options: HelperOptions) -> Fragment:
    require_block(options)
    return options.fn(ctx) if is_not_last(ctx) else options.inverse(ctx)


def middle(ctx: Context, options: HelperOptions) -> Fragment:
    require_block(options)
    return options.fn(ctx) if is_middle(ctx) else options.inverse(ctx)
