"""Accumulator helpers: addToAccumulator (record) and iterateAccumulator (replay).

Registers live in the render pass (``ctx.global_``), so every context of
one render sees the same registers and nothing outlives the pass.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from zapgen.environment.exceptions import HelperConfigurationError
from zapgen.helpers.base import argument, require_block
from zapgen.template.fragment import Fragment

if TYPE_CHECKING:
    from zapgen.context import Context
    from zapgen.template.renderer import HelperOptions


def _accumulator_name(options: HelperOptions, params: tuple[Any, ...]) -> str:
    name = argument(options, params, 0, "accumulator", None)
    if name is None or name == "":
        raise HelperConfigurationError(
            f"'{options.name}' requires an accumulator name",
            expression=options.name,
            suggestion=f'{{{{{options.name} "offset" value}}}}',
        )
    return str(name)


def add_to_accumulator(ctx: Context, options: HelperOptions, *params: Any) -> None:
    """``{{addToAccumulator "name" value}}``: append ``value`` to a register.

    ``null`` is recorded as a value that leaves the running sum unchanged.
    Renders nothing.

    Raises:
        HelperConfigurationError: No accumulator name, or a value that is
            neither a number nor null.
    """
    name = _accumulator_name(options, params)
    value = argument(options, params, 1, "value", None)
    if value is not None and (isinstance(value, bool) or not isinstance(value, (int, float))):
        raise HelperConfigurationError(
            f"'{options.name}' value must be a number or null, got {type(value).__name__}",
            expression=options.name,
            values={"accumulator": name, "value": value},
        )
    ctx.global_.record(name, value)


def iterate_accumulator(ctx: Context, options: HelperOptions, *params: Any) -> Fragment:
    """``{{#iterateAccumulator accumulator="name"}}``: replay a register.

    Each recorded entry renders the body against a child context with
    ``index``, ``count``, ``value`` and ``sum``. An unknown register
    renders nothing. The register is not modified.
    """
    require_block(options)
    name = _accumulator_name(options, params)
    accumulator = ctx.global_.accumulator(name)
    if accumulator is None:
        return Fragment()
    count = len(accumulator)
    return Fragment.concat(
        options.fn(ctx.child(index=i, count=count, value=value, sum=running))
        for i, value, running in accumulator.entries()
    )
