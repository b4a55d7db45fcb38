"""zapgen environment: configuration, loaders, helper registry and errors."""

from zapgen.environment.core import Environment
from zapgen.environment.exceptions import (
    BarrierError,
    ErrorCode,
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
from zapgen.environment.loaders import ChoiceLoader, DictLoader, FileSystemLoader, Loader
from zapgen.environment.registry import HelperRegistry

__all__ = [
    "BarrierError",
    "ChoiceLoader",
    "DictLoader",
    "Environment",
    "ErrorCode",
    "FileSystemLoader",
    "HelperConfigurationError",
    "HelperRegistry",
    "Loader",
    "OptionLookupError",
    "SourceSnippet",
    "TemplateError",
    "TemplateNotFoundError",
    "TemplateRuntimeError",
    "TemplateSyntaxError",
    "UndefinedError",
    "build_source_snippet",
]
