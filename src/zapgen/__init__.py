"""zapgen: Handlebars-style code generation with async option lookups.

Renders C headers and sources from cluster metadata. Templates are
written in a Handlebars subset extended with ZAP helpers: positional
block helpers, bounded iteration, running-sum accumulators, option
lookups against an async store and the ``after`` ordering barrier.

Quickstart:
    >>> from zapgen import Environment
    >>> env = Environment()
    >>> t = env.from_string(
    ...     "{{#iterate count=3}}{{#first}}[{{/first}}{{index}}"
    ...     "{{#not_last}},{{/not_last}}{{#last}}]{{/last}}{{/iterate}}"
    ... )
    >>> t.render()
    '[0,1,2]'

File-based templates:
    >>> from zapgen import Environment, FileSystemLoader
    >>> env = Environment(loader=FileSystemLoader("gen-templates/"))
    >>> env.get_template("endpoint_config.zapt").render(endpoints=endpoints)

Architecture:
Template Source → Lexer → Parser → zapgen AST → Renderer → Fragment → text

Pipeline stages:
1. **Lexer**: Tokenizes template source into a token stream
2. **Parser**: Builds an immutable AST from tokens
3. **Renderer**: Walks the AST synchronously in document order; async
   helpers register pending operations and leave slots in the output
4. **Template**: Runs the render pass, resolves slots in order and
   settles every pending operation

Render passes:
Every render gets a fresh ``RenderPass`` (the ``global`` of its contexts)
holding accumulators, pending operations and the memoized owning-package
lookup. Nothing is shared between renders.

Strict Mode (default):
Undefined names raise ``UndefinedError`` instead of rendering as the
empty string. Pass ``strict=False`` to the Environment to relax it.
"""

from zapgen._types import Token, TokenType
from zapgen.context import Context, make_child_context
from zapgen.environment import (
    BarrierError,
    ChoiceLoader,
    DictLoader,
    Environment,
    ErrorCode,
    FileSystemLoader,
    HelperConfigurationError,
    OptionLookupError,
    SourceSnippet,
    TemplateError,
    TemplateNotFoundError,
    TemplateRuntimeError,
    TemplateSyntaxError,
    UndefinedError,
    build_source_snippet,
)
from zapgen.generation import generate
from zapgen.helpers import DEFAULT_HELPERS, PUBLIC_HELPER_NAMES, asynchronous
from zapgen.options import MemoryOptionLookup, OptionDatabase, OptionLookup, OptionValue
from zapgen.render_context import (
    RenderContext,
    async_render_context,
    get_render_context,
    get_render_context_required,
    render_context,
)
from zapgen.render_pass import RenderPass
from zapgen.template import Fragment, HelperOptions, Template

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_HELPERS",
    "PUBLIC_HELPER_NAMES",
    "BarrierError",
    "ChoiceLoader",
    "Context",
    "DictLoader",
    "Environment",
    "ErrorCode",
    "FileSystemLoader",
    "Fragment",
    "HelperConfigurationError",
    "HelperOptions",
    "MemoryOptionLookup",
    "OptionDatabase",
    "OptionLookup",
    "OptionLookupError",
    "OptionValue",
    "RenderContext",
    "RenderPass",
    "SourceSnippet",
    "Template",
    "TemplateError",
    "TemplateNotFoundError",
    "TemplateRuntimeError",
    "TemplateSyntaxError",
    "Token",
    "TokenType",
    "UndefinedError",
    "__version__",
    "async_render_context",
    "asynchronous",
    "build_source_snippet",
    "generate",
    "get_render_context",
    "get_render_context_required",
    "make_child_context",
    "render_context",
]
