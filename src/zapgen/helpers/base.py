"""Shared pieces of the helper calling convention.

Every helper is called as ``helper(ctx, options, *params)``. Helpers
that return an awaitable must be declared with ``@asynchronous`` (or be
coroutine functions) so the engine knows to render with an event loop.
"""

from __future__ import annotations

import functools
import inspect
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Any, TypeVar

from zapgen.environment.exceptions import HelperConfigurationError

if TYPE_CHECKING:
    from zapgen.template.renderer import HelperOptions

F = TypeVar("F", bound=Callable[..., Any])

_ASYNC_ATTR = "_zapgen_async"

_MISSING: Any = object()


def asynchronous(func: F) -> F:
    """Mark ``func`` as a helper that returns an awaitable.

    Example:
        >>> @asynchronous
        ... def package_name(ctx, options):
        ...     return ctx.global_.owning_package(ctx)
    """
    try:
        setattr(func, _ASYNC_ATTR, True)
    except AttributeError:
        # Bound methods and builtins do not take attributes
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            return func(*args, **kwargs)

        setattr(wrapper, _ASYNC_ATTR, True)
        return wrapper  # type: ignore[return-value]
    return func


def is_async_helper(func: Callable[..., Any]) -> bool:
    return bool(getattr(func, _ASYNC_ATTR, False)) or inspect.iscoroutinefunction(func)


def truthy(value: Any) -> bool:
    """Handlebars truthiness: None, False, 0, "" and empty sequences are falsy."""
    if value is None or value is False:
        return False
    if isinstance(value, (list, tuple, str)):
        return len(value) > 0
    if isinstance(value, (int, float)):
        return value != 0
    return True


def argument(
    options: HelperOptions,
    params: Sequence[Any],
    position: int,
    key: str,
    default: Any = _MISSING,
) -> Any:
    """Read an argument given positionally or as ``key=value``.

    Positional wins when both are given.

    Raises:
        HelperConfigurationError: The argument is missing and has no default.
    """
    if len(params) > position:
        return params[position]
    if key in options.hash:
        return options.hash[key]
    if default is not _MISSING:
        return default
    raise HelperConfigurationError(
        f"'{options.name}' requires a '{key}' argument",
        expression=options.name,
        suggestion=f"Pass it positionally or as {key}=...",
    )


def require_int(options: HelperOptions, key: str, value: Any) -> int:
    """Validate an integer argument without coercion.

    Raises:
        HelperConfigurationError: ``value`` is not an int (bools rejected).
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise HelperConfigurationError(
            f"'{options.name}' {key} must be an integer, got {type(value).__name__} {value!r}",
            expression=options.name,
            values={key: value},
        )
    return value


def require_block(options: HelperOptions) -> None:
    """Raise unless the helper was invoked as ``{{#name}}...{{/name}}``."""
    if not options.is_block:
        raise HelperConfigurationError(
            f"'{options.name}' must be used as a block helper",
            expression=options.name,
            suggestion=f"Use {{{{#{options.name}}}}}...{{{{/{options.name}}}}}",
        )
