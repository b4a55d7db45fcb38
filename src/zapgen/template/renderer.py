"""Tree-walking renderer for parsed zapgen templates.

Rendering is synchronous and strictly in document order. Each node
appends chunks to a list that becomes a ``Fragment``. Helper return values
are emitted as follows:

- ``str`` / other values: stringified (escaped for ``{{ }}`` when autoescape is on)
- ``Fragment``: spliced in unescaped (already rendered template text)
- awaitable: registered with the render pass as a pending operation and
  emitted as a ``Slot`` that is filled when the fragment is resolved

Node dispatch goes through a dict keyed by node type.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable, Sequence
from difflib import get_close_matches
from typing import TYPE_CHECKING, Any

from zapgen.context import get_field
from zapgen.environment.exceptions import (
    ErrorCode,
    HelperConfigurationError,
    TemplateNotFoundError,
    TemplateRuntimeError,
    TemplateSyntaxError,
    UndefinedError,
    build_source_snippet,
)
from zapgen.nodes import Block, Call, Const, Data, Expr, Node, Output, Partial, Path
from zapgen.render_context import (
    RenderContext,
    get_render_context,
    get_render_context_required,
    reset_render_context,
    set_render_context,
)
from zapgen.template.fragment import Chunk, Fragment, Slot, escape, stringify

if TYPE_CHECKING:
    from zapgen.context import Context
    from zapgen.environment.core import Environment


class HelperOptions:
    """The ``options`` argument every helper receives.

    Attributes:
        name: Name the helper was invoked under (aliases keep their own name)
        hash: key=value arguments, evaluated
        lineno: Template line of the invocation
    """

    __slots__ = ("_body", "_inverse", "_renderer", "hash", "lineno", "name")

    def __init__(
        self,
        name: str,
        hash: dict[str, Any],
        renderer: Renderer,
        body: Sequence[Node] | None = None,
        inverse: Sequence[Node] = (),
        lineno: int = 0,
    ):
        self.name = name
        self.hash = hash
        self.lineno = lineno
        self._renderer = renderer
        self._body = body
        self._inverse = inverse

    @property
    def is_block(self) -> bool:
        """True when invoked as ``{{#name}}...{{/name}}``."""
        return self._body is not None

    @property
    def template_name(self) -> str | None:
        return self._renderer.template_name

    def fn(self, ctx: Context) -> Fragment:
        """Render the block body against ``ctx``.

        Raises:
            HelperConfigurationError: The helper was invoked inline.
        """
        if self._body is None:
            raise HelperConfigurationError(
                f"'{self.name}' must be used as a block helper",
                expression=self.name,
                suggestion=f"Use {{{{#{self.name}}}}}...{{{{/{self.name}}}}}",
            )
        return self._renderer.render(self._body, ctx)

    def inverse(self, ctx: Context) -> Fragment:
        """Render the ``{{else}}`` section against ``ctx`` (empty when absent)."""
        if not self._inverse:
            return Fragment()
        return self._renderer.render(self._inverse, ctx)

    def __repr__(self) -> str:
        kind = "block" if self.is_block else "inline"
        return f"<HelperOptions {self.name} {kind} hash={self.hash!r}>"


class Renderer:
    """Render AST nodes of one template against a Context."""

    __slots__ = ("_env", "_source", "template_name")

    def __init__(self, env: Environment, template_name: str | None, source: str | None):
        self._env = env
        self.template_name = template_name
        self._source = source

    def render(self, nodes: Sequence[Node], ctx: Context) -> Fragment:
        """Render ``nodes`` in order into a Fragment."""
        chunks: list[Chunk] = []
        dispatch = _DISPATCH
        for node in nodes:
            dispatch[type(node)](self, node, ctx, chunks)
        return Fragment(chunks)

    # ─────────────────────────────────────────────────────────────────────
    # Nodes
    # ─────────────────────────────────────────────────────────────────────

    def _render_data(self, node: Data, ctx: Context, chunks: list[Chunk]) -> None:
        chunks.append(node.value)

    def _render_output(self, node: Output, ctx: Context, chunks: list[Chunk]) -> None:
        self._track(node)
        value = self._call(node.call, ctx)
        self._emit(value, ctx, chunks, node.call.path.original, node.lineno,
                   escape_text=node.escape and self._env.autoescape)

    def _render_block(self, node: Block, ctx: Context, chunks: list[Chunk]) -> None:
        self._track(node)
        value = self._call(node.call, ctx, node)
        self._emit(value, ctx, chunks, node.call.path.original, node.lineno, escape_text=False)

    def _render_partial(self, node: Partial, ctx: Context, chunks: list[Chunk]) -> None:
        self._track(node)
        render_ctx = get_render_context_required()
        render_ctx.check_include_depth(node.name)
        template = self._env.get_template(node.name)

        partial_ctx = ctx
        if node.context is not None:
            partial_ctx = partial_ctx.child(this=self._evaluate(node.context, ctx))
        if node.hash:
            partial_ctx = partial_ctx.child(this={k: self._evaluate(v, ctx) for k, v in node.hash})

        child_render_ctx = render_ctx.child_context(node.name, template.source)
        token = set_render_context(child_render_ctx)
        try:
            fragment = template.renderer.render(template.ast.body, partial_ctx)
        except TemplateRuntimeError as e:
            if not e.template_stack:
                e.template_stack = child_render_ctx.template_stack
            raise e.with_location(child_render_ctx.template_name, child_render_ctx.line, template.source)
        except (UndefinedError, TemplateNotFoundError, TemplateSyntaxError):
            raise
        except Exception as e:
            raise enhance_error(e, child_render_ctx) from e
        finally:
            reset_render_context(token)
        chunks.extend(fragment.chunks)

    def _emit(
        self,
        value: Any,
        ctx: Context,
        chunks: list[Chunk],
        label: str,
        lineno: int,
        escape_text: bool,
    ) -> None:
        if isinstance(value, Fragment):
            chunks.extend(value.chunks)
        elif inspect.isawaitable(value):
            operation = ctx.global_.register(value, label)
            chunks.append(Slot(operation, escape_text, lineno))
        else:
            text = stringify(value)
            chunks.append(escape(text) if escape_text else text)

    def _track(self, node: Node) -> None:
        render_ctx = get_render_context()
        if render_ctx is not None:
            render_ctx.line = node.lineno

    # ─────────────────────────────────────────────────────────────────────
    # Expressions
    # ─────────────────────────────────────────────────────────────────────

    def _call(self, call: Call, ctx: Context, block: Block | None = None) -> Any:
        """Invoke the helper named by ``call`` or, failing that, look the path up."""
        path = call.path
        helper = self._env.helpers.get(path.original) if path.is_simple else None
        if helper is None:
            if call.has_arguments or block is not None:
                raise self._unknown_helper(path)
            return self._lookup(path, ctx)

        params = [self._evaluate(p, ctx) for p in call.params]
        hash_args = {key: self._evaluate(v, ctx) for key, v in call.hash}
        options = HelperOptions(
            path.original,
            hash_args,
            self,
            body=block.body if block is not None else None,
            inverse=block.inverse if block is not None else (),
            lineno=call.lineno,
        )
        return helper(ctx, options, *params)

    def _evaluate(self, expr: Expr, ctx: Context) -> Any:
        if isinstance(expr, Const):
            return expr.value
        if isinstance(expr, Path):
            return self._lookup(expr, ctx)
        if isinstance(expr, Call):
            value = self._call(expr, ctx)
            if inspect.isawaitable(value):
                if inspect.iscoroutine(value):
                    value.close()
                raise HelperConfigurationError(
                    f"Async helper '{expr.path.original}' cannot be used in a subexpression",
                    expression=expr.path.original,
                    suggestion="Use the async helper as a block and put the dependent output inside it",
                )
            if isinstance(value, Fragment):
                return str(value)
            return value
        raise TypeError(f"Unknown expression node: {type(expr).__name__}")

    def _lookup(self, path: Path, ctx: Context) -> Any:
        target = ctx
        for _ in range(path.depth):
            if target.parent is not None:
                target = target.parent

        parts = path.parts
        if path.data:
            found, value = target.data_var(parts[0])
            parts = parts[1:]
        elif not parts:
            return target.this
        elif path.is_this_scoped:
            found, value = get_field(target.this, parts[0])
            parts = parts[1:]
        else:
            found, value = target.resolve(parts[0])
            parts = parts[1:]

        if found:
            for part in parts:
                found, value = get_field(value, part)
                if not found:
                    break

        if found:
            return value
        if self._env.strict:
            render_ctx = get_render_context()
            lineno = path.lineno
            snippet = build_source_snippet(self._source, lineno) if self._source else None
            raise UndefinedError(
                path.original,
                template=self.template_name,
                lineno=lineno,
                available_names=ctx.visible_names(),
                source_snippet=snippet,
                template_stack=render_ctx.template_stack if render_ctx else None,
            )
        return None

    def _unknown_helper(self, path: Path) -> HelperConfigurationError:
        matches = get_close_matches(path.original, list(self._env.helpers.keys()), n=1, cutoff=0.6)
        suggestion = f"Did you mean '{matches[0]}'?" if matches else "Register it with env.add_helper()"
        error = HelperConfigurationError(
            f"Unknown helper '{path.original}'",
            expression=path.original,
            suggestion=suggestion,
        )
        error.code = ErrorCode.UNKNOWN_HELPER
        return error


_DISPATCH: dict[type, Callable[[Renderer, Any, Context, list[Chunk]], None]] = {
    Data: Renderer._render_data,
    Output: Renderer._render_output,
    Block: Renderer._render_block,
    Partial: Renderer._render_partial,
}


def enhance_error(error: Exception, render_ctx: RenderContext) -> TemplateRuntimeError:
    """Wrap an unexpected exception from helper code with template location.

    Empty exception messages are replaced with the exception type name.
    """
    message = str(error).strip()
    if not message:
        message = f"{type(error).__name__} (no details available)"
    else:
        message = f"{type(error).__name__}: {message}"

    lineno = render_ctx.line or None
    snippet = None
    if render_ctx.source and lineno:
        snippet = build_source_snippet(render_ctx.source, lineno)

    return TemplateRuntimeError(
        message,
        template_name=render_ctx.template_name,
        lineno=lineno,
        source_snippet=snippet,
        template_stack=render_ctx.template_stack,
    )
