"""Tests for the Environment helper table."""

from __future__ import annotations

import pytest

from zapgen import DEFAULT_HELPERS, PUBLIC_HELPER_NAMES, Environment
from zapgen.helpers import ALIASES, ZAP_HELPERS


class TestHelperTable:
    def test_public_names_are_registered(self, env: Environment) -> None:
        for name in PUBLIC_HELPER_NAMES:
            assert name in env.helpers

    def test_aliases_share_implementation(self) -> None:
        for alias, name in ALIASES.items():
            assert DEFAULT_HELPERS[alias] is ZAP_HELPERS[name]

    def test_copy_on_write(self, env: Environment) -> None:
        before = env.helpers.copy()
        env.helpers["shout"] = lambda ctx, options, text: str(text).upper()
        assert "shout" not in before
        assert env.from_string('{{shout "x"}}').render() == "X"
        del env.helpers["shout"]
        assert "shout" not in env.helpers

    def test_environments_do_not_share_helpers(self) -> None:
        first, second = Environment(), Environment()
        first.add_helper("only_here", lambda ctx, options: "x")
        assert "only_here" not in second.helpers

    def test_constructor_helpers_override_defaults(self) -> None:
        env = Environment(helpers={"zap_header": lambda ctx, options: "// custom"})
        assert env.from_string("{{zap_header}}").render() == "// custom"

    def test_update_and_views(self, env: Environment) -> None:
        env.helpers.update({"a": lambda ctx, options: "a", "b": lambda ctx, options: "b"})
        assert {"a", "b"} <= set(env.helpers.keys())
        assert len(env.helpers) == len(list(env.helpers.items()))

    def test_is_async_helper(self, env: Environment) -> None:
        assert env.is_async_helper("lookupOption")
        assert env.is_async_helper("after")
        assert not env.is_async_helper("iterate")
        assert not env.is_async_helper("missing")

    def test_repr(self, env: Environment) -> None:
        assert "strict=True" in repr(env)
        assert repr(env.from_string("x", name="a.zapt")) == "<Template a.zapt>"

    def test_missing_helper_lookup(self, env: Environment) -> None:
        with pytest.raises(KeyError):
            env.helpers["missing"]
