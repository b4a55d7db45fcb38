"""Stateless string and predicate helpers."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from zapgen.helpers.base import truthy
from zapgen.template.fragment import stringify

if TYPE_CHECKING:
    from zapgen.context import Context
    from zapgen.template.renderer import HelperOptions

ZAP_HEADER = (
    "// This file is generated by ZCL Advanced Platform generator. Please don't edit manually."
)

# One indentation step
INDENT = "  "


def zap_header(ctx: Context, options: HelperOptions) -> str:
    """Top-of-file banner for generated C files."""
    return ZAP_HEADER


def ident(ctx: Context, options: HelperOptions, count: Any = None) -> str:
    """``count`` indentation steps; one step when ``count`` is not an integer."""
    if isinstance(count, int) and not isinstance(count, bool):
        return INDENT * count
    return INDENT


def is_equal(ctx: Context, options: HelperOptions, a: Any, b: Any) -> bool:
    """True when both values are equal after trimming surrounding whitespace."""
    return stringify(a).strip() == stringify(b).strip()


def toggle(ctx: Context, options: HelperOptions, condition: Any, if_true: Any, if_false: Any) -> Any:
    return if_true if truthy(condition) else if_false


def trim_string(ctx: Context, options: HelperOptions, text: Any) -> str:
    return stringify(text).strip()


def as_last_word(ctx: Context, options: HelperOptions, text: Any) -> str:
    """The last space-separated word of ``text``."""
    words = stringify(text).strip().split(" ")
    return words[-1]
