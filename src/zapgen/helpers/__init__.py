"""Default helpers.

Helper names are a public contract: templates written against earlier
releases must keep resolving them. Renamed helpers stay registered under
their old names (see ``ALIASES``).

Helpers:
    Language: if, unless, each, with
    Strings: zap_header, ident, isEqual, toggle, trim_string, asLastWord
    Positional: first, last, not_last, middle
    Iteration: iterate
    Accumulators: addToAccumulator, iterateAccumulator
    Options: template_options, template_option_with_code, lookupOption
    Ordering: after
"""

from collections.abc import Callable

from zapgen.helpers.accumulators import add_to_accumulator, iterate_accumulator
from zapgen.helpers.base import asynchronous, is_async_helper, truthy
from zapgen.helpers.builtins import each, if_, unless, with_
from zapgen.helpers.iteration import collect_blocks, iterate
from zapgen.helpers.options import (
    ensure_template_package_id,
    lookup_option,
    template_option_with_code,
    template_options,
)
from zapgen.helpers.ordering import after
from zapgen.helpers.positional import first, last, middle, not_last
from zapgen.helpers.strings import (
    as_last_word,
    ident,
    is_equal,
    toggle,
    trim_string,
    zap_header,
)

BUILTIN_HELPERS: dict[str, Callable] = {
    "if": if_,
    "unless": unless,
    "each": each,
    "with": with_,
}

# Frozen public names
ZAP_HELPERS: dict[str, Callable] = {
    "zap_header": zap_header,
    "ident": ident,
    "template_options": template_options,
    "template_option_with_code": template_option_with_code,
    "lookupOption": lookup_option,
    "first": first,
    "last": last,
    "not_last": not_last,
    "middle": middle,
    "isEqual": is_equal,
    "toggle": toggle,
    "trim_string": trim_string,
    "asLastWord": as_last_word,
    "iterate": iterate,
    "addToAccumulator": add_to_accumulator,
    "iterateAccumulator": iterate_accumulator,
    "after": after,
}

# alias → canonical public name
ALIASES: dict[str, str] = {
    "record": "addToAccumulator",
    "replay": "iterateAccumulator",
}

DEFAULT_HELPERS: dict[str, Callable] = {
    **BUILTIN_HELPERS,
    **ZAP_HELPERS,
    **{alias: ZAP_HELPERS[name] for alias, name in ALIASES.items()},
}

PUBLIC_HELPER_NAMES = frozenset(ZAP_HELPERS) | frozenset(ALIASES)

__all__ = [
    "ALIASES",
    "BUILTIN_HELPERS",
    "DEFAULT_HELPERS",
    "PUBLIC_HELPER_NAMES",
    "ZAP_HELPERS",
    "add_to_accumulator",
    "after",
    "as_last_word",
    "asynchronous",
    "collect_blocks",
    "each",
    "ensure_template_package_id",
    "first",
    "ident",
    "if_",
    "is_async_helper",
    "is_equal",
    "iterate",
    "iterate_accumulator",
    "last",
    "lookup_option",
    "middle",
    "not_last",
    "template_option_with_code",
    "template_options",
    "toggle",
    "trim_string",
    "truthy",
    "unless",
    "with_",
    "zap_header",
]
