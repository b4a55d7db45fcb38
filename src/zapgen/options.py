"""Option lookup: the async store interface consumed by option helpers.

Option helpers never talk to a database directly. They go through an
``OptionLookup``, configured on the Environment, which answers three
questions asynchronously:

- which package owns the template being rendered
- every option value of a category in that package
- one option value by category and code

``MemoryOptionLookup`` answers them from an in-memory ``OptionDatabase``
and is what tests and the bundled example use. Production callers plug
in their own implementation backed by the real metadata store.

Example:
    >>> db = OptionDatabase()
    >>> db.add_package(1, "zcl-builtin/gen-templates.json")
    >>> db.assign_template("endpoint_config.zapt", 1)
    >>> db.add_option(1, "types", "uint8_t", "u8")
    >>> env = Environment(option_lookup=MemoryOptionLookup(), db=db)
"""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from zapgen.environment.exceptions import OptionLookupError

if TYPE_CHECKING:
    from zapgen.context import Context

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class OptionValue:
    """One package option value.

    Attributes:
        category: Option category (e.g. "types")
        code: Option key within the category
        label: Human-readable value
    """

    category: str
    code: str
    label: str

    def __str__(self) -> str:
        return self.label


@runtime_checkable
class OptionLookup(Protocol):
    """Async option store interface.

    Failures raise; the engine turns them into failed pending operations.
    """

    async def resolve_owning_package(self, context: Context) -> Any: ...

    async def fetch_option_values(
        self, db: Any, package_id: Any, category: str
    ) -> Sequence[OptionValue]: ...

    async def fetch_specific_option_value(
        self, db: Any, package_id: Any, category: str, key: str
    ) -> OptionValue | None: ...


@dataclass
class OptionDatabase:
    """In-memory option store used as the ``db`` handle.

    Attributes:
        packages: package id → package path
        template_packages: template name → owning package id
        options: package id → category → option values, in insertion order
    """

    packages: dict[Any, str] = field(default_factory=dict)
    template_packages: dict[str, Any] = field(default_factory=dict)
    options: dict[Any, dict[str, list[OptionValue]]] = field(default_factory=dict)

    def add_package(self, package_id: Any, path: str) -> None:
        self.packages[package_id] = path
        self.options.setdefault(package_id, {})

    def assign_template(self, template_name: str, package_id: Any) -> None:
        """Record that ``template_name`` belongs to package ``package_id``."""
        self.template_packages[template_name] = package_id

    def add_option(self, package_id: Any, category: str, code: str, label: str) -> OptionValue:
        if package_id not in self.packages:
            raise KeyError(f"Unknown package {package_id!r}")
        value = OptionValue(category, code, label)
        self.options[package_id].setdefault(category, []).append(value)
        return value


class MemoryOptionLookup:
    """``OptionLookup`` over an ``OptionDatabase``.

    Args:
        latency: Seconds each call sleeps before answering
        latencies: Per-category overrides of ``latency``

    ``calls`` counts invocations by method name.
    """

    def __init__(self, latency: float = 0.0, latencies: dict[str, float] | None = None):
        self.latency = latency
        self.latencies = dict(latencies or {})
        self.calls: Counter[str] = Counter()

    async def _wait(self, category: str | None = None) -> None:
        delay = self.latencies.get(category, self.latency) if category else self.latency
        # Always yield so results settle on a later loop iteration
        await asyncio.sleep(delay)

    @staticmethod
    def _database(db: Any) -> OptionDatabase:
        if db is None:
            raise OptionLookupError(
                "No option database for this render",
                suggestion="Pass db=... to Environment() or _db=... to render()",
            )
        if not isinstance(db, OptionDatabase):
            raise OptionLookupError(f"Unsupported option database {type(db).__name__}")
        return db

    @staticmethod
    def _categories(db: OptionDatabase, package_id: Any) -> dict[str, list[OptionValue]]:
        if package_id not in db.packages:
            raise OptionLookupError(
                f"Unknown package {package_id!r}",
                values={"package_id": package_id},
            )
        return db.options[package_id]

    async def resolve_owning_package(self, context: Context) -> Any:
        self.calls["resolve_owning_package"] += 1
        await self._wait()
        render_pass = context.global_
        db = self._database(render_pass.db)
        name = render_pass.template_name
        if name not in db.template_packages:
            raise OptionLookupError(
                f"Template '{name or '(inline)'}' does not belong to any package",
                template_name=name,
                suggestion="Register it with db.assign_template() or render with _package_id=...",
            )
        package_id = db.template_packages[name]
        logger.debug("Template %s belongs to package %r", name, package_id)
        return package_id

    async def fetch_option_values(self, db: Any, package_id: Any, category: str) -> list[OptionValue]:
        self.calls["fetch_option_values"] += 1
        await self._wait(category)
        categories = self._categories(self._database(db), package_id)
        if category not in categories:
            raise OptionLookupError(
                f"Package {package_id!r} has no option category '{category}'",
                values={"package_id": package_id, "category": category},
            )
        return list(categories[category])

    async def fetch_specific_option_value(
        self, db: Any, package_id: Any, category: str, key: str
    ) -> OptionValue | None:
        self.calls["fetch_specific_option_value"] += 1
        await self._wait(category)
        categories = self._categories(self._database(db), package_id)
        for value in categories.get(category, ()):
            if value.code == key:
                return value
        return None
