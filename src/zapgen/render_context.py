"""RenderContext: per-render diagnostic state held in a ContextVar.

Tracks where rendering currently is (template, line, partial chain) so
errors raised deep inside helpers can be reported against the template
line that triggered them. This is bookkeeping for error messages only;
the state helpers work with lives in ``RenderPass`` and is passed
explicitly through every ``Context``.

ContextVars are copied into asyncio tasks when they are created, so an
async helper scheduled while a partial is rendering keeps reporting
against that partial.

"""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterator
from contextlib import asynccontextmanager, contextmanager
from contextvars import ContextVar, Token
from dataclasses import dataclass, field

# Deep enough for any real partial hierarchy while catching
# self-including partials early.
DEFAULT_MAX_INCLUDE_DEPTH = 50


@dataclass
class RenderContext:
    """Per-render diagnostic state.

    Attributes:
        template_name: Current template name for error messages
        filename: Source file path for error messages
        source: Template source for runtime error snippets
        line: Current line number (updated by the renderer)
        include_depth: Current partial depth
        max_include_depth: Maximum allowed partial depth
        template_stack: (template_name, line) pairs of the partial chain
    """

    template_name: str | None = None
    filename: str | None = None
    source: str | None = None
    line: int = 0
    include_depth: int = 0
    max_include_depth: int = DEFAULT_MAX_INCLUDE_DEPTH
    template_stack: list[tuple[str, int]] = field(default_factory=list)

    def check_include_depth(self, template_name: str) -> None:
        """Raise if rendering partial ``template_name`` would exceed the depth limit.

        Raises:
            TemplateRuntimeError: If depth >= max_include_depth
        """
        if self.include_depth >= self.max_include_depth:
            from zapgen.environment.exceptions import ErrorCode, TemplateRuntimeError

            error = TemplateRuntimeError(
                f"Maximum partial depth exceeded ({self.max_include_depth}) "
                f"when rendering '{template_name}'",
                template_name=self.template_name,
                lineno=self.line or None,
                suggestion="Check for partials that include themselves: A → B → A",
                template_stack=self.template_stack,
            )
            error.code = ErrorCode.INCLUDE_DEPTH
            raise error

    def child_context(self, template_name: str, source: str | None = None) -> RenderContext:
        """Create the context for a partial with incremented depth.

        Appends the current location to ``template_stack``.
        """
        stack = self.template_stack.copy()
        if self.template_name and self.line > 0:
            stack.append((self.template_name, self.line))
        return RenderContext(
            template_name=template_name,
            filename=None,
            source=source,
            line=0,
            include_depth=self.include_depth + 1,
            max_include_depth=self.max_include_depth,
            template_stack=stack,
        )


_render_context: ContextVar[RenderContext | None] = ContextVar(
    "zapgen_render_context",
    default=None,
)


def get_render_context() -> RenderContext | None:
    """Current render context (None outside of a render)."""
    return _render_context.get()


def get_render_context_required() -> RenderContext:
    """Current render context.

    Raises:
        RuntimeError: If not in a render context
    """
    ctx = _render_context.get()
    if ctx is None:
        raise RuntimeError("Not in a render context")
    return ctx


@contextmanager
def render_context(
    template_name: str | None = None,
    filename: str | None = None,
    source: str | None = None,
    max_include_depth: int = DEFAULT_MAX_INCLUDE_DEPTH,
) -> Iterator[RenderContext]:
    """Set a fresh RenderContext for the duration of the with block.

    Example:
        with render_context(template_name="cluster.h", source=src) as ctx:
            fragment = renderer.render(ast.body, root)
    """
    ctx = RenderContext(
        template_name=template_name,
        filename=filename,
        source=source,
        max_include_depth=max_include_depth,
    )
    token: Token[RenderContext | None] = _render_context.set(ctx)
    try:
        yield ctx
    finally:
        _render_context.reset(token)


@asynccontextmanager
async def async_render_context(
    template_name: str | None = None,
    filename: str | None = None,
    source: str | None = None,
    max_include_depth: int = DEFAULT_MAX_INCLUDE_DEPTH,
) -> AsyncIterator[RenderContext]:
    """Async twin of ``render_context()`` for ``async with``.

    ContextVar reset is synchronous; the async wrapper is structural only.
    """
    with render_context(template_name, filename, source, max_include_depth) as ctx:
        yield ctx


def set_render_context(ctx: RenderContext) -> Token[RenderContext | None]:
    """Set ``ctx`` as current and return the reset token (used around partials)."""
    return _render_context.set(ctx)


def reset_render_context(token: Token[RenderContext | None]) -> None:
    """Restore the context that was current before ``set_render_context``."""
    _render_context.reset(token)
