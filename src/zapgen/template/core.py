"""zapgen Template: a parsed template ready for rendering.

Architecture:
    ```
    Template
    ├── _env_ref: WeakRef[Environment]  # Prevents circular refs
    ├── _ast: nodes.Template            # Parsed AST
    ├── _renderer: Renderer             # Tree walker bound to this template
    └── _name, _filename, _source       # For error messages
    ```

One render is one render pass:

    1. A fresh ``RenderPass`` and root ``Context`` are created.
    2. The AST is walked synchronously into a ``Fragment``. Async helpers
       register their operations as they are reached.
    3. The fragment's slots are resolved in document order.
    4. Every operation still registered is settled; any failure fails
       the pass.
    5. The pass is discarded, success or failure.

Templates that reference no async helper (``is_async`` is False) skip
steps 3-4 entirely and render without an event loop.

Thread-Safety:
- Templates are immutable after construction
- All per-render state lives in the RenderPass and the RenderContext
  ContextVar, so concurrent renders never share state
"""

from __future__ import annotations

import asyncio
import logging
import weakref
from typing import TYPE_CHECKING, Any

from zapgen.analysis import helper_names, is_async_template, partial_names
from zapgen.context import Context
from zapgen.environment.exceptions import (
    TemplateNotFoundError,
    TemplateRuntimeError,
    TemplateSyntaxError,
    UndefinedError,
)
from zapgen.render_context import RenderContext, async_render_context, render_context
from zapgen.template.renderer import Renderer, enhance_error

if TYPE_CHECKING:
    from zapgen.environment import Environment
    from zapgen.nodes import Template as TemplateNode
    from zapgen.render_pass import RenderPass

logger = logging.getLogger(__name__)

# Errors that already carry template location
_PASSTHROUGH = (UndefinedError, TemplateNotFoundError, TemplateSyntaxError)


class Template:
    """Parsed template ready for rendering.

    Attributes:
        name: Template identifier (for error messages)
        filename: Source file path (for error messages)
        source: Template source text

    Example:
        >>> env = Environment()
        >>> t = env.from_string("{{#iterate 2}}{{index}}{{/iterate}}")
        >>> t.render()
        '01'
    """

    __slots__ = (
        "__weakref__",
        "_ast",
        "_env_ref",
        "_filename",
        "_analysed_version",
        "_helpers_used",
        "_is_async",
        "_name",
        "_renderer",
        "_source",
    )

    def __init__(
        self,
        env: Environment,
        ast: TemplateNode,
        name: str | None,
        filename: str | None,
        source: str | None = None,
    ):
        self._env_ref: weakref.ref[Environment] = weakref.ref(env)
        self._ast = ast
        self._name = name
        self._filename = filename
        self._source = source
        self._renderer = Renderer(env, name, source)
        self._helpers_used: frozenset[str] | None = None
        self._is_async: bool | None = None
        self._analysed_version = -1

    @property
    def _env(self) -> Environment:
        env = self._env_ref()
        if env is None:
            raise RuntimeError("Environment has been garbage collected")
        return env

    @property
    def name(self) -> str | None:
        return self._name

    @property
    def filename(self) -> str | None:
        return self._filename

    @property
    def source(self) -> str | None:
        return self._source

    @property
    def ast(self) -> TemplateNode:
        return self._ast

    @property
    def renderer(self) -> Renderer:
        return self._renderer

    def _refresh_analysis(self) -> None:
        env = self._env
        if self._analysed_version != env._helpers_version:
            self._helpers_used = None
            self._is_async = None
            self._analysed_version = env._helpers_version

    @property
    def helpers_used(self) -> frozenset[str]:
        """Registered helper names this template calls directly."""
        self._refresh_analysis()
        if self._helpers_used is None:
            registered = self._env.helpers
            self._helpers_used = frozenset(n for n in helper_names(self._ast) if n in registered)
        return self._helpers_used

    @property
    def partials_used(self) -> frozenset[str]:
        return partial_names(self._ast)

    @property
    def is_async(self) -> bool:
        """True when rendering needs an event loop (async helper reachable).

        Recomputed after the environment's helper table changes.
        """
        self._refresh_analysis()
        if self._is_async is None:
            self._is_async = is_async_template(self._env, self._name, self._ast)
        return self._is_async

    # ─────────────────────────────────────────────────────────────────────
    # Rendering
    # ─────────────────────────────────────────────────────────────────────

    def render(self, *args: Any, **kwargs: Any) -> str:
        """Render the template with the given data.

        Args:
            *args: Single dict of template data
            **kwargs: Template data as keyword arguments (``_db`` and
                ``_package_id`` configure the render pass instead)

        Returns:
            Rendered text

        Raises:
            TemplateRuntimeError: Called from a running event loop on a
                template that uses async helpers; use ``render_async()``.

        Example:
            >>> t.render(count=3)
            '[0,1,2]'
        """
        if self.is_async:
            try:
                asyncio.get_running_loop()
            except RuntimeError:
                return asyncio.run(self._render_to_completion(args, kwargs))
            raise TemplateRuntimeError(
                f"Template '{self._name or '(inline)'}' uses async helpers and an "
                f"event loop is already running",
                template_name=self._name,
                suggestion="Use 'await template.render_async(...)' instead of render()",
            )

        data, render_pass = self._start_pass(args, kwargs)
        try:
            with render_context(
                template_name=self._name,
                filename=self._filename,
                source=self._source,
                max_include_depth=self._env.max_include_depth,
            ) as render_ctx:
                try:
                    fragment = self._renderer.render(self._ast.body, Context.root(render_pass, data))
                    return str(fragment)
                except _PASSTHROUGH:
                    raise
                except TemplateRuntimeError as e:
                    raise self._locate(e, render_ctx)
                except Exception as e:
                    raise enhance_error(e, render_ctx) from e
        finally:
            render_pass.discard()

    async def render_async(self, *args: Any, **kwargs: Any) -> str:
        """Render the template, waiting for every async helper.

        Accepts the same arguments as ``render()``.

        Raises:
            TemplateError: A helper failed, a barrier observed a failed
                operation, or an operation still pending at the end of the
                pass failed.
        """
        data, render_pass = self._start_pass(args, kwargs)
        try:
            async with async_render_context(
                template_name=self._name,
                filename=self._filename,
                source=self._source,
                max_include_depth=self._env.max_include_depth,
            ) as render_ctx:
                try:
                    fragment = self._renderer.render(self._ast.body, Context.root(render_pass, data))
                    text = await fragment.resolve()
                    await render_pass.settle()
                    return text
                except _PASSTHROUGH:
                    raise
                except TemplateRuntimeError as e:
                    raise self._locate(e, render_ctx)
                except Exception as e:
                    raise enhance_error(e, render_ctx) from e
        finally:
            render_pass.discard()

    async def _render_to_completion(self, args: tuple[Any, ...], kwargs: dict[str, Any]) -> str:
        # asyncio.run() cancels whatever is left on its loop. A failed pass
        # lets the other operations finish first; their outcomes are dropped.
        try:
            return await self.render_async(*args, **kwargs)
        except Exception:
            current = asyncio.current_task()
            while pending := asyncio.all_tasks() - {current}:
                await asyncio.wait(pending)
            raise

    def _start_pass(self, args: tuple[Any, ...], kwargs: dict[str, Any]) -> tuple[dict[str, Any], RenderPass]:
        data: dict[str, Any] = {}
        data.update(self._env.globals)
        if args:
            if len(args) == 1 and isinstance(args[0], dict):
                data.update(args[0])
            else:
                raise TypeError(
                    f"render() takes at most 1 positional argument (a dict), got {len(args)}"
                )
        data.update(kwargs)

        db = data.pop("_db", None)
        package_id = data.pop("_package_id", None)
        render_pass = self._env.new_render_pass(self._name, db=db, package_id=package_id)
        logger.debug("Render pass started for %s", self._name or "(inline)")
        return data, render_pass

    def _locate(self, error: TemplateRuntimeError, render_ctx: RenderContext) -> TemplateRuntimeError:
        if not error.template_stack and render_ctx.template_stack:
            error.template_stack = render_ctx.template_stack
        return error.with_location(self._name, render_ctx.line or None, self._source)

    def __repr__(self) -> str:
        return f"<Template {self._name or '(inline)'}>"
