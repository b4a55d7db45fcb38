"""Tests for the chained Context model."""

from __future__ import annotations

from dataclasses import FrozenInstanceError

import pytest

from zapgen import RenderPass
from zapgen.context import Context, get_field, make_child_context


class TestMakeChildContext:
    def test_child_shares_global_by_reference(self, root_ctx: Context) -> None:
        child = make_child_context(root_ctx, index=0, count=2)
        grandchild = child.child(index=1, count=3)
        assert child.global_ is root_ctx.global_
        assert grandchild.global_ is root_ctx.global_

    def test_child_links_parent(self, root_ctx: Context) -> None:
        child = root_ctx.child(index=0, count=1)
        assert child.parent is root_ctx
        assert root_ctx.is_root
        assert not child.is_root

    def test_fields_are_not_inherited(self, root_ctx: Context) -> None:
        child = root_ctx.child(index=2, count=5)
        grandchild = child.child()
        assert grandchild.index is None
        assert grandchild.count is None
        assert not grandchild.in_iteration

    def test_missing_global_is_a_programming_error(self) -> None:
        orphan = Context(global_=None)  # type: ignore[arg-type]
        with pytest.raises(RuntimeError):
            make_child_context(orphan, index=0)

    def test_context_is_immutable(self, root_ctx: Context) -> None:
        with pytest.raises(FrozenInstanceError):
            root_ctx.index = 3  # type: ignore[misc]


class TestResolution:
    def test_resolves_root_data(self, root_ctx: Context) -> None:
        assert root_ctx.resolve("name") == (True, "root")

    def test_walks_parent_chain(self, root_ctx: Context) -> None:
        child = root_ctx.child(this={"other": 1}, index=0, count=1)
        assert child.resolve("name") == (True, "root")
        assert child.resolve("other") == (True, 1)

    def test_reserved_fields_resolve_as_names(self, root_ctx: Context) -> None:
        child = root_ctx.child(index=3, count=4)
        assert child.resolve("index") == (True, 3)
        assert child.resolve("count") == (True, 4)

    def test_data_wins_over_reserved_fields(self, root_ctx: Context) -> None:
        child = root_ctx.child(this={"index": "x"}, index=0, count=1)
        assert child.resolve("index") == (True, "x")
        assert child.resolve("count") == (True, 1)
        assert child.data_var("index") == (True, 0)

    def test_nearest_iteration_wins(self, root_ctx: Context) -> None:
        outer = root_ctx.child(index=1, count=2)
        inner = outer.child(index=0, count=5)
        assert inner.resolve("index") == (True, 0)

    def test_value_present_only_on_replay(self, root_ctx: Context) -> None:
        replay = root_ctx.child(index=0, count=1, value=None, sum=0)
        assert replay.is_replay
        assert replay.resolve("value") == (True, None)
        assert root_ctx.child(index=0, count=1).reserved("value") == (False, None)

    def test_unresolved(self, root_ctx: Context) -> None:
        assert root_ctx.resolve("missing") == (False, None)

    def test_data_vars(self, root_ctx: Context) -> None:
        first = root_ctx.child(index=0, count=3)
        last = root_ctx.child(index=2, count=3)
        assert first.data_var("first") == (True, True)
        assert first.data_var("last") == (True, False)
        assert last.data_var("last") == (True, True)
        assert last.data_var("root") == (True, {"name": "root"})
        assert root_ctx.data_var("first") == (False, None)

    def test_visible_names(self, root_ctx: Context) -> None:
        child = root_ctx.child(this={"code": 1}, index=0, count=1)
        assert child.visible_names() >= {"name", "code", "index", "count"}

    def test_repr_shows_depth(self, root_ctx: Context) -> None:
        child = root_ctx.child(index=1, count=2)
        assert "depth=1" in repr(child)
        assert "index=1" in repr(child)


class TestGetField:
    def test_mapping(self) -> None:
        assert get_field({"a": 1}, "a") == (True, 1)
        assert get_field({"a": None}, "a") == (True, None)
        assert get_field({}, "a") == (False, None)

    def test_attribute(self) -> None:
        render_pass = RenderPass(template_name="t")
        assert get_field(render_pass, "template_name") == (True, "t")

    def test_methods_hidden(self) -> None:
        assert get_field("abc", "count") == (False, None)
        assert get_field(RenderPass(), "record") == (False, None)

    def test_private_attributes_hidden(self) -> None:
        assert get_field(RenderPass(), "_package_future") == (False, None)

    def test_none(self) -> None:
        assert get_field(None, "a") == (False, None)
