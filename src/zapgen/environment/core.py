"""zapgen Environment: configuration, helpers and the template cache.

The Environment is the central configuration object. It owns the loader,
the helper table and the option lookup backend, and it creates the
``RenderPass`` every render runs in.

Example:
    >>> from zapgen import DictLoader, Environment, MemoryOptionLookup
    >>> env = Environment(
    ...     loader=DictLoader({"list.zapt": "{{#iterate count=2}}{{index}}{{/iterate}}"}),
    ...     option_lookup=MemoryOptionLookup(),
    ... )
    >>> env.get_template("list.zapt").render()
    '01'
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from zapgen.environment.registry import HelperRegistry
from zapgen.helpers import DEFAULT_HELPERS
from zapgen.helpers.base import asynchronous, is_async_helper
from zapgen.lexer import Lexer
from zapgen.parser import Parser
from zapgen.pending import DEFAULT_POLL_INTERVAL
from zapgen.render_context import DEFAULT_MAX_INCLUDE_DEPTH
from zapgen.render_pass import RenderPass
from zapgen.template import Template

if TYPE_CHECKING:
    from zapgen.environment.loaders import Loader
    from zapgen.nodes import Template as TemplateNode
    from zapgen.options import OptionLookup

logger = logging.getLogger(__name__)


class Environment:
    """Central configuration for zapgen templates.

    Args:
        loader: Template source provider (``get_source(name)``)
        autoescape: HTML-escape ``{{ }}`` output (off: output is C code)
        strict: Raise ``UndefinedError`` for unresolvable names
        option_lookup: Async option store used by option helpers
        db: Default database handle passed to the option lookup
        barrier_poll_interval: Seconds between ``after`` polls; 0 awaits
            the snapshot directly
        max_include_depth: Maximum partial nesting
        helpers: Extra helpers, merged over the defaults
        globals: Values visible to every template at the root

    Thread-Safety:
        Helper mutations are copy-on-write; the template cache is guarded
        by a lock. Renders share nothing but the immutable templates.
    """

    def __init__(
        self,
        loader: Loader | None = None,
        *,
        autoescape: bool = False,
        strict: bool = True,
        option_lookup: OptionLookup | None = None,
        db: Any = None,
        barrier_poll_interval: float = DEFAULT_POLL_INTERVAL,
        max_include_depth: int = DEFAULT_MAX_INCLUDE_DEPTH,
        helpers: dict[str, Callable] | None = None,
        globals: dict[str, Any] | None = None,
    ):
        if barrier_poll_interval < 0:
            raise ValueError(f"barrier_poll_interval must be >= 0, got {barrier_poll_interval}")
        if max_include_depth < 1:
            raise ValueError(f"max_include_depth must be >= 1, got {max_include_depth}")

        self.loader = loader
        self.autoescape = autoescape
        self.strict = strict
        self.option_lookup = option_lookup
        self.db = db
        self.barrier_poll_interval = barrier_poll_interval
        self.max_include_depth = max_include_depth
        self.globals: dict[str, Any] = dict(globals or {})

        self._helpers: dict[str, Callable] = {**DEFAULT_HELPERS, **(helpers or {})}
        self._helpers_version = 0
        self._cache: dict[str, Template] = {}
        self._cache_lock = threading.Lock()

    # ─────────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────────

    @property
    def helpers(self) -> HelperRegistry:
        """Helper table: ``env.helpers['name'] = func``."""
        return HelperRegistry(self, "_helpers")

    def add_helper(self, name: str, func: Callable, *, is_async: bool | None = None) -> None:
        """Register ``func`` under ``name``.

        Args:
            is_async: Declare that ``func`` returns an awaitable; detected
                for ``@asynchronous`` helpers and coroutine functions
        """
        if is_async:
            func = asynchronous(func)
        self.helpers[name] = func

    def is_async_helper(self, name: str) -> bool:
        func = self._helpers.get(name)
        return func is not None and is_async_helper(func)

    # ─────────────────────────────────────────────────────────────────────
    # Templates
    # ─────────────────────────────────────────────────────────────────────

    def parse(self, source: str, name: str | None = None, filename: str | None = None) -> TemplateNode:
        """Parse ``source`` into an AST without creating a Template."""
        tokens = Lexer(source, name, filename).tokenize()
        return Parser(tokens, name, filename, source).parse()

    def from_string(self, source: str, name: str | None = None) -> Template:
        """Create a template from source text (not cached)."""
        return Template(self, self.parse(source, name), name, None, source)

    def get_template(self, name: str) -> Template:
        """Load, parse and cache the template ``name`` from the loader.

        Raises:
            TemplateNotFoundError: No loader, or the loader cannot find it
            TemplateSyntaxError: The template does not parse
        """
        cached = self._cache.get(name)
        if cached is not None:
            return cached

        if self.loader is None:
            from zapgen.environment.exceptions import TemplateNotFoundError

            raise TemplateNotFoundError(f"Template '{name}' not found (no loader configured)")

        source, filename = self.loader.get_source(name)
        template = Template(self, self.parse(source, name, filename), name, filename, source)
        with self._cache_lock:
            template = self._cache.setdefault(name, template)
        logger.debug("Loaded template %s", name)
        return template

    def clear_cache(self) -> None:
        with self._cache_lock:
            self._cache = {}

    def new_render_pass(
        self,
        template_name: str | None,
        *,
        db: Any = None,
        package_id: Any = None,
    ) -> RenderPass:
        """Fresh per-render state; ``db`` defaults to the environment's."""
        return RenderPass(
            template_name=template_name,
            db=db if db is not None else self.db,
            package_id=package_id,
            option_lookup=self.option_lookup,
            poll_interval=self.barrier_poll_interval,
        )

    def __repr__(self) -> str:
        return (
            f"<Environment loader={type(self.loader).__name__ if self.loader else None} "
            f"helpers={len(self._helpers)} strict={self.strict}>"
        )
