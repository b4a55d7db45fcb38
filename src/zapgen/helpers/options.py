"""Option helpers: template_options, template_option_with_code, lookupOption.

All of them resolve the owning package of the template first (memoized
per render pass), then query the environment's ``OptionLookup``. They
return coroutines; the renderer registers each one as a pending
operation as soon as the helper returns, so the lookups run while the
rest of the template renders. Lookup failures fail the operation and
surface at the next barrier or at the end of the pass.

Missing configuration (no option lookup on the environment) is reported
synchronously at the call site.
"""

from __future__ import annotations

from collections.abc import Coroutine
from typing import TYPE_CHECKING, Any

from zapgen.environment.exceptions import HelperConfigurationError, OptionLookupError
from zapgen.helpers.base import argument, asynchronous, require_block
from zapgen.helpers.iteration import collect_blocks
from zapgen.template.fragment import Fragment

if TYPE_CHECKING:
    from zapgen.context import Context
    from zapgen.options import OptionLookup, OptionValue
    from zapgen.template.renderer import HelperOptions


def _option_lookup(ctx: Context, options: HelperOptions) -> OptionLookup:
    lookup = ctx.global_.option_lookup
    if lookup is None:
        raise HelperConfigurationError(
            f"'{options.name}' needs an option lookup",
            expression=options.name,
            suggestion="Pass option_lookup=... to Environment()",
        )
    return lookup


async def ensure_template_package_id(ctx: Context) -> Any:
    """Id of the package owning the template being rendered (one lookup per pass)."""
    return await ctx.global_.owning_package(ctx)


@asynchronous
def template_options(ctx: Context, options: HelperOptions, *params: Any) -> Coroutine[Any, Any, Fragment]:
    """``{{#template_options category="types"}}{{code}}={{label}}{{/template_options}}``

    Renders the body once per option value of the category, with the
    value as data and ``index``/``count`` set.
    """
    require_block(options)
    category = argument(options, params, 0, "category")
    lookup = _option_lookup(ctx, options)

    async def run() -> Fragment:
        package_id = await ensure_template_package_id(ctx)
        values = await lookup.fetch_option_values(ctx.global_.db, package_id, category)
        return collect_blocks(values, options, ctx)

    return run()


def _render_option(ctx: Context, options: HelperOptions, value: OptionValue | None) -> Fragment | str:
    if not options.is_block:
        return value.label if value is not None else ""
    if value is None:
        return options.inverse(ctx)
    return options.fn(ctx.child(this=value))


@asynchronous
def template_option_with_code(
    ctx: Context, options: HelperOptions, *params: Any
) -> Coroutine[Any, Any, Fragment | str]:
    """``{{template_option_with_code "types" "uint8_t"}}``: one option value.

    Inline it renders the label (empty when the code is unknown). As a
    block it renders the body with the option as data, or the inverse
    section when the code is unknown.
    """
    category = argument(options, params, 0, "category")
    code = argument(options, params, 1, "code")
    lookup = _option_lookup(ctx, options)

    async def run() -> Fragment | str:
        package_id = await ensure_template_package_id(ctx)
        value = await lookup.fetch_specific_option_value(ctx.global_.db, package_id, category, code)
        return _render_option(ctx, options, value)

    return run()


@asynchronous
def lookup_option(ctx: Context, options: HelperOptions, *params: Any) -> Coroutine[Any, Any, Fragment | str]:
    """``{{lookupOption category key}}`` / ``{{#lookupOption category}}...{{/lookupOption}}``

    With a key: inline renders the option's label and fails the
    operation when the key is unknown; a block renders the body with the
    option as data, or the inverse section when the key is unknown.
    Without a key (block only): iterates every value of the category.

    Raises:
        HelperConfigurationError: Inline use without a key.
    """
    category = argument(options, params, 0, "category")
    key = argument(options, params, 1, "key", None)
    lookup = _option_lookup(ctx, options)
    if key is None and not options.is_block:
        raise HelperConfigurationError(
            f"'{options.name}' without a key must be used as a block helper",
            expression=options.name,
            values={"category": category},
            suggestion=f"{{{{#{options.name} \"{category}\"}}}}...{{{{/{options.name}}}}}",
        )

    async def run() -> Fragment | str:
        package_id = await ensure_template_package_id(ctx)
        db = ctx.global_.db
        if key is None:
            values = await lookup.fetch_option_values(db, package_id, category)
            return collect_blocks(values, options, ctx)
        value = await lookup.fetch_specific_option_value(db, package_id, category, key)
        if value is None and not options.is_block:
            raise OptionLookupError(
                f"No option '{key}' in category '{category}'",
                expression=options.name,
                values={"package_id": package_id, "category": category, "key": key},
            )
        return _render_option(ctx, options, value)

    return run()
