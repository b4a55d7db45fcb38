"""Exceptions for the zapgen template engine.

Exception Hierarchy:
TemplateError (base)
├── TemplateNotFoundError       # Template not found by loader
├── TemplateSyntaxError         # Parse-time syntax error
├── UndefinedError              # Undefined variable access (strict mode)
└── TemplateRuntimeError        # Render-time error with context
    ├── HelperConfigurationError  # Helper called with invalid arguments
    ├── OptionLookupError         # Option store lookup failed
    └── BarrierError              # An `after` barrier saw a failed operation

Configuration errors are raised synchronously at the helper call site.
Lookup failures travel inside the failed pending operation and surface
either at the barrier that drains it (as ``BarrierError`` whose
``__cause__`` is the lookup failure) or when the render pass settles.

Example:
    ```
    Z-RUN-001: Undefined variable 'lable' in options.h:5
       |
    >  5 | #define OPTION_{{lable}}
       |
      Hint: Did you mean 'label'?
    ```

"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from zapgen.environment import terminal


class ErrorCode(Enum):
    """Searchable error codes.

    Format: Z-{CATEGORY}-{NUMBER}
    Categories: LEX (lexer), PAR (parser), RUN (runtime), TPL (template loading)
    """

    # Lexer errors
    UNCLOSED_TAG = "Z-LEX-001"
    UNCLOSED_COMMENT = "Z-LEX-002"
    UNEXPECTED_CHARACTER = "Z-LEX-003"

    # Parser errors
    UNEXPECTED_TOKEN = "Z-PAR-001"
    UNCLOSED_BLOCK = "Z-PAR-002"
    MISMATCHED_BLOCK = "Z-PAR-003"

    # Runtime errors
    UNDEFINED_VARIABLE = "Z-RUN-001"
    UNKNOWN_HELPER = "Z-RUN-002"
    HELPER_CONFIGURATION = "Z-RUN-003"
    OPTION_LOOKUP = "Z-RUN-004"
    BARRIER_FAILED = "Z-RUN-005"
    INCLUDE_DEPTH = "Z-RUN-006"
    RUNTIME_ERROR = "Z-RUN-007"

    # Template loading errors
    TEMPLATE_NOT_FOUND = "Z-TPL-001"
    SYNTAX_ERROR = "Z-TPL-002"

    @property
    def category(self) -> str:
        """Error category (e.g., 'runtime', 'lexer', 'parser', 'template')."""
        prefix = self.value.split("-")[1]
        return {
            "LEX": "lexer",
            "PAR": "parser",
            "RUN": "runtime",
            "TPL": "template",
        }.get(prefix, "unknown")


def format_template_stack(stack: list[tuple[str, int]] | None) -> str:
    """Format the partial call chain as an indented list of locations."""
    if not stack:
        return ""
    lines = [terminal.dim_text("Template stack:")]
    for template_name, line_num in stack:
        lines.append(f"  • {terminal.location(f'{template_name}:{line_num}')}")
    return "\n".join(lines)


@dataclass(frozen=True, slots=True)
class SourceSnippet:
    """Template source lines around an error line."""

    lines: tuple[tuple[int, str], ...]
    error_line: int
    column: int | None = None

    def format(self) -> str:
        parts: list[str] = [terminal.dim_text("   |")]
        for lineno, content in self.lines:
            parts.append(terminal.format_source_line(lineno, content, is_error=lineno == self.error_line))
        if self.column is not None:
            parts.append(f"{terminal.dim_text('   |')} {' ' * self.column}^")
        parts.append(terminal.dim_text("   |"))
        return "\n".join(parts)


def build_source_snippet(
    source: str,
    error_line: int,
    *,
    context_lines: int = 2,
    column: int | None = None,
) -> SourceSnippet:
    """Build a SourceSnippet with ``context_lines`` either side of ``error_line``."""
    all_lines = source.splitlines()
    start = max(0, error_line - 1 - context_lines)
    end = min(len(all_lines), error_line + context_lines)
    lines = tuple((i + 1, all_lines[i]) for i in range(start, end))
    return SourceSnippet(lines=lines, error_line=error_line, column=column)


class TemplateError(Exception):
    """Base exception for all zapgen template errors.

    Attributes:
        code: Optional ErrorCode for searchable error identification.
    """

    code: ErrorCode | None = None

    def format_compact(self) -> str:
        """Format error as a one-screen diagnostic prefixed with its code."""
        header = str(self)
        if self.code and self.code.value not in header:
            header = f"{self.code.value}: {header}"
        return header


class TemplateNotFoundError(TemplateError):
    """Template not found by any configured loader."""

    code: ErrorCode | None = ErrorCode.TEMPLATE_NOT_FOUND


class TemplateSyntaxError(TemplateError):
    """Parse-time syntax error in template source.

    When ``source`` and ``lineno`` are provided the message includes the
    offending line, and a caret when ``col_offset`` is known.
    """

    code: ErrorCode | None = ErrorCode.SYNTAX_ERROR

    def __init__(
        self,
        message: str,
        lineno: int | None = None,
        name: str | None = None,
        filename: str | None = None,
        source: str | None = None,
        col_offset: int | None = None,
        suggestion: str | None = None,
        code: ErrorCode | None = None,
    ):
        if code is not None:
            self.code = code
        self.message = message
        self.lineno = lineno
        self.name = name
        self.filename = filename
        self.source = source
        self.col_offset = col_offset
        self.suggestion = suggestion
        super().__init__(self._format_message())

    def _location(self) -> str:
        location = self.filename or self.name or "<template>"
        if self.lineno:
            location += f":{self.lineno}"
            if self.col_offset is not None:
                location += f":{self.col_offset}"
        return location

    def _format_message(self) -> str:
        message = f"Syntax Error: {self.message}\n  --> {self._location()}"
        if self.source and self.lineno:
            lines = self.source.splitlines()
            if 0 < self.lineno <= len(lines):
                message += f"\n   |\n{self.lineno:>3} | {lines[self.lineno - 1]}"
                if self.col_offset is not None:
                    message += f"\n   | {' ' * self.col_offset}^"
        if self.suggestion:
            message += f"\n\nSuggestion: {self.suggestion}"
        return message

    def format_compact(self) -> str:
        code_prefix = f"{self.code.value}: " if self.code else ""
        return f"{code_prefix}{self.message}\n  --> {self._location()}"


class TemplateRuntimeError(TemplateError):
    """Render-time error with debugging context.

    Output Format:
            ```
            Runtime Error: iterate count must be an integer, got 'three'
              Location: endpoints.c:12
              Expression: iterate
              Values:
                count = 'three' (str)
              Suggestion: Pass an integer literal: {{#iterate count=3}}
            ```

    Attributes:
        message: Error description
        expression: Helper or path that failed
        values: Dict of argument names → values for context
        template_name: Name of the template
        lineno: Line number in template source
        suggestion: Actionable fix suggestion
    """

    code: ErrorCode | None = ErrorCode.RUNTIME_ERROR

    def __init__(
        self,
        message: str,
        *,
        expression: str | None = None,
        values: dict[str, Any] | None = None,
        template_name: str | None = None,
        lineno: int | None = None,
        suggestion: str | None = None,
        source_snippet: SourceSnippet | None = None,
        template_stack: list[tuple[str, int]] | None = None,
    ):
        self.message = message
        self.expression = expression
        self.values = values or {}
        self.template_name = template_name
        self.lineno = lineno
        self.suggestion = suggestion
        self.source_snippet = source_snippet
        self.template_stack = template_stack or []
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        parts = [f"Runtime Error: {self.message}"]

        if self.template_name or self.lineno:
            loc = self.template_name or "<template>"
            if self.lineno:
                loc += f":{self.lineno}"
            parts.append(f"  Location: {terminal.location(loc)}")

        if self.source_snippet:
            parts.append(self.source_snippet.format())

        if self.template_stack:
            parts.append("")
            parts.append(format_template_stack(self.template_stack))

        if self.expression:
            parts.append(f"  Expression: {self.expression}")

        if self.values:
            parts.append("  Values:")
            for name, value in self.values.items():
                value_repr = repr(value)
                if len(value_repr) > 80:
                    value_repr = value_repr[:77] + "..."
                parts.append(f"    {name} = {value_repr} ({type(value).__name__})")

        if self.suggestion:
            parts.append(f"\n  {terminal.hint('Suggestion:')} {self.suggestion}")

        return "\n".join(parts)

    def with_location(
        self,
        template_name: str | None,
        lineno: int | None,
        source: str | None = None,
    ) -> TemplateRuntimeError:
        """Fill in location details the raising helper could not know.

        Helpers raise without a template name or line; the renderer adds
        them on the way out. Existing location details are kept.
        """
        if self.template_name is None and self.lineno is None:
            self.template_name = template_name
            self.lineno = lineno
            if source and lineno and self.source_snippet is None:
                self.source_snippet = build_source_snippet(source, lineno)
            self.args = (self._format_message(),)
        return self

    def format_compact(self) -> str:
        loc = self.template_name or "<template>"
        if self.lineno:
            loc += f":{self.lineno}"
        parts = [
            terminal.format_error_header(self.code.value if self.code else None, self.message),
            f"  Location: {terminal.location(loc)}",
        ]
        if self.source_snippet:
            parts.append(self.source_snippet.format())
        if self.expression:
            parts.append(f"  Expression: {self.expression}")
        if self.suggestion:
            parts.append(f"  {terminal.hint('Hint:')} {self.suggestion}")
        return "\n".join(parts)


class HelperConfigurationError(TemplateRuntimeError):
    """A helper was invoked with arguments it cannot work with.

    Raised synchronously at the call site: non-integer iterate counts,
    accumulator writes without a name, block-only helpers used inline,
    unknown helper names.

    Example:
            >>> {{#iterate count="3"}}...{{/iterate}}
        HelperConfigurationError: iterate count must be an integer, got '3'

    """

    code: ErrorCode | None = ErrorCode.HELPER_CONFIGURATION


class OptionLookupError(TemplateRuntimeError):
    """The option store could not answer a lookup.

    Raised inside the pending operation: missing database handle, a
    template without an owning package, unknown packages or categories.
    """

    code: ErrorCode | None = ErrorCode.OPTION_LOOKUP


class BarrierError(TemplateRuntimeError):
    """An ``after`` barrier drained at least one failed operation.

    ``__cause__`` holds the first failure in registration order; ``failed``
    holds the number of failed operations in the barrier's snapshot.
    """

    code: ErrorCode | None = ErrorCode.BARRIER_FAILED

    def __init__(self, message: str, *, failed: int = 1, **kwargs: Any):
        self.failed = failed
        super().__init__(message, **kwargs)


class UndefinedError(TemplateError):
    """Raised when a template reads a name that does not resolve.

    Strict mode is on by default. If ``available_names`` is provided, a
    "Did you mean?" suggestion is included for close matches.

    Example:
            >>> env = Environment()
            >>> env.from_string("{{ missing }}").render()
        UndefinedError: Undefined variable 'missing' in <template>:1

    """

    code: ErrorCode | None = ErrorCode.UNDEFINED_VARIABLE

    def __init__(
        self,
        name: str,
        template: str | None = None,
        lineno: int | None = None,
        available_names: frozenset[str] | None = None,
        source_snippet: SourceSnippet | None = None,
        template_stack: list[tuple[str, int]] | None = None,
    ):
        self.name = name
        self.template = template or "<template>"
        self.lineno = lineno
        self._available_names = available_names
        self.source_snippet = source_snippet
        self.template_stack = template_stack or []
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        location = self.template
        if self.lineno:
            location += f":{self.lineno}"
        msg = f"Undefined variable '{self.name}' in {terminal.location(location)}"

        if self._available_names:
            from difflib import get_close_matches

            matches = get_close_matches(self.name, self._available_names, n=1, cutoff=0.6)
            if matches:
                msg += f". Did you mean '{terminal.suggestion(matches[0])}'?"

        if self.source_snippet:
            msg += "\n" + self.source_snippet.format()

        if self.template_stack:
            msg += "\n\n" + format_template_stack(self.template_stack)

        msg += f"\n  {terminal.hint('Hint:')} Pass '{self.name}' to render() or use strict=False"
        return msg
