"""Template loaders for the zapgen environment.

Loaders provide template source to the Environment. They implement
``get_source(name)`` returning ``(source, filename)``.

Built-in Loaders:
- ``FileSystemLoader``: Load from template directories (``*.zapt`` and friends)
- ``DictLoader``: Load from an in-memory dictionary (tests, partial sets)
- ``ChoiceLoader``: Try multiple loaders in order (override directories)

Custom Loaders:
Implement the Loader protocol:
    ```python
    class PackageTemplateLoader:
        def get_source(self, name: str) -> tuple[str, str | None]:
            entry = gen_templates.get(name)
            if entry is None:
                raise TemplateNotFoundError(f"Template '{name}' not found")
            return entry.read_text(), str(entry)

        def list_templates(self) -> list[str]:
            return sorted(gen_templates)
    ```
"""

from __future__ import annotations

from difflib import get_close_matches
from pathlib import Path
from typing import Protocol

from zapgen.environment.exceptions import TemplateNotFoundError

# Suffixes reported by FileSystemLoader.list_templates()
TEMPLATE_SUFFIXES = (".zapt", ".hbs", ".handlebars")


class Loader(Protocol):
    def get_source(self, name: str) -> tuple[str, str | None]: ...


class FileSystemLoader:
    """Load templates from filesystem directories.

    Directories are searched in order; the first matching file wins:
        ```python
        loader = FileSystemLoader(["overrides/", "gen-templates/"])
        ```

    Raises:
        TemplateNotFoundError: If template not found in any search path
    """

    __slots__ = ("_encoding", "_paths")

    def __init__(
        self,
        paths: str | Path | list[str | Path],
        encoding: str = "utf-8",
    ):
        if isinstance(paths, (str, Path)):
            paths = [paths]
        self._paths = [Path(p) for p in paths]
        self._encoding = encoding

    def get_source(self, name: str) -> tuple[str, str]:
        """Load template source from the filesystem."""
        for base in self._paths:
            path = base / name
            if path.is_file():
                return path.read_text(self._encoding), str(path)

        raise TemplateNotFoundError(
            f"Template '{name}' not found in: {', '.join(str(p) for p in self._paths)}"
        )

    def list_templates(self) -> list[str]:
        """List all templates in search paths."""
        templates = set()
        for base in self._paths:
            if base.is_dir():
                for path in base.rglob("*"):
                    if path.suffix in TEMPLATE_SUFFIXES and path.is_file():
                        templates.add(path.relative_to(base).as_posix())
        return sorted(templates)


class DictLoader:
    """Load templates from an in-memory dictionary.

    Example:
        >>> loader = DictLoader({
        ...     "header.zapt": "{{zap_header}}",
        ...     "cluster.zapt": "{{> header.zapt}}\\n#pragma once",
        ... })
        >>> env = Environment(loader=loader)

    Raises:
        TemplateNotFoundError: If template name not in mapping
    """

    __slots__ = ("_mapping",)

    def __init__(self, mapping: dict[str, str]):
        self._mapping = mapping

    def get_source(self, name: str) -> tuple[str, None]:
        if name not in self._mapping:
            available = sorted(self._mapping.keys())
            msg = f"Template '{name}' not found"
            matches = get_close_matches(name, available, n=1, cutoff=0.6)
            if matches:
                msg += f". Did you mean '{matches[0]}'?"
            elif available:
                msg += f". Available: {', '.join(available[:10])}"
                if len(available) > 10:
                    msg += f" ... ({len(available)} total)"
            raise TemplateNotFoundError(msg)
        return self._mapping[name], None

    def list_templates(self) -> list[str]:
        return sorted(self._mapping.keys())


class ChoiceLoader:
    """Try multiple loaders in order, returning the first match.

    Raises:
        TemplateNotFoundError: If no loader can find the template
    """

    __slots__ = ("_loaders",)

    def __init__(self, loaders: list[Loader]):
        self._loaders = loaders

    def get_source(self, name: str) -> tuple[str, str | None]:
        """Try each loader in order, return first match."""
        for loader in self._loaders:
            try:
                return loader.get_source(name)
            except TemplateNotFoundError:
                continue
        raise TemplateNotFoundError(
            f"Template '{name}' not found in any of {len(self._loaders)} loaders"
        )

    def list_templates(self) -> list[str]:
        """Merge template lists from all loaders (deduplicated, sorted)."""
        templates: set[str] = set()
        for loader in self._loaders:
            if hasattr(loader, "list_templates"):
                templates.update(loader.list_templates())
        return sorted(templates)
