"""Helper registry for the zapgen environment.

Provides a dict-like interface over the environment's helper table.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from zapgen.environment.core import Environment


class HelperRegistry:
    """Dict-like interface for helpers.

    Supports:
        - env.helpers['name'] = func
        - env.helpers.update({'name': func})
        - func = env.helpers['name']
        - 'name' in env.helpers

    All mutations use copy-on-write, so a render that already looked up
    the table keeps a consistent view. Mutations clear the environment's
    template cache and bump its helper version, so templates already held
    by callers recompute ``is_async`` on their next render.
    """

    __slots__ = ("_attr", "_env")

    def __init__(self, env: Environment, attr: str = "_helpers"):
        self._env = env
        self._attr = attr

    def _get_dict(self) -> dict[str, Callable]:
        return getattr(self._env, self._attr)

    def _set_dict(self, d: dict[str, Callable]) -> None:
        setattr(self._env, self._attr, d)
        self._env._helpers_version += 1
        self._env.clear_cache()

    def __getitem__(self, name: str) -> Callable:
        return self._get_dict()[name]

    def __setitem__(self, name: str, func: Callable) -> None:
        new = self._get_dict().copy()
        new[name] = func
        self._set_dict(new)

    def __delitem__(self, name: str) -> None:
        new = self._get_dict().copy()
        del new[name]
        self._set_dict(new)

    def __contains__(self, name: object) -> bool:
        return name in self._get_dict()

    def __len__(self) -> int:
        return len(self._get_dict())

    def __iter__(self):
        return iter(self._get_dict())

    def get(self, name: str, default: Callable | None = None) -> Callable | None:
        return self._get_dict().get(name, default)

    def update(self, mapping: dict[str, Callable]) -> None:
        """Batch update helpers."""
        new = self._get_dict().copy()
        new.update(mapping)
        self._set_dict(new)

    def copy(self) -> dict[str, Callable]:
        """Return a copy of the underlying dict."""
        return self._get_dict().copy()

    def keys(self):
        return self._get_dict().keys()

    def values(self):
        return self._get_dict().values()

    def items(self):
        return self._get_dict().items()
