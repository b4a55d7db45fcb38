"""Tests for RenderPass, the pending registry and fragments."""

from __future__ import annotations

import asyncio

import pytest

from zapgen import (
    Environment,
    HelperConfigurationError,
    MemoryOptionLookup,
    OptionLookupError,
    RenderPass,
    TemplateRuntimeError,
)
from zapgen.context import Context
from zapgen.pending import PendingRegistry, first_failure, wait_for_settled
from zapgen.template.fragment import Fragment, Slot


async def value_after(delay: float, value: object) -> object:
    await asyncio.sleep(delay)
    return value


async def fail_after(delay: float, error: BaseException) -> None:
    await asyncio.sleep(delay)
    raise error


class TestPendingRegistry:
    def test_register_without_loop_is_rejected(self) -> None:
        coro = value_after(0, 1)
        with pytest.raises(TemplateRuntimeError, match="outside of async rendering"):
            PendingRegistry().register(coro, "lookup")
        # closed, not left to warn
        assert coro.cr_frame is None

    @pytest.mark.asyncio
    async def test_registration_order_and_state(self) -> None:
        registry = PendingRegistry()
        slow = registry.register(value_after(0.02, "a"), "slow")
        fast = registry.register(value_after(0, "b"), "fast")
        assert [op.sequence for op in registry.snapshot()] == [0, 1]
        assert not slow.settled
        await wait_for_settled(registry.snapshot(), 0.001)
        assert slow.settled and fast.settled
        assert slow.result() == "a"
        assert first_failure(registry.snapshot()) is None

    @pytest.mark.asyncio
    async def test_first_failure_in_registration_order(self) -> None:
        registry = PendingRegistry()
        registry.register(value_after(0, 1))
        late = registry.register(fail_after(0.02, ValueError("first")), "late")
        early = registry.register(fail_after(0, ValueError("second")), "early")
        await wait_for_settled(registry.snapshot(), 0)
        assert first_failure(registry.snapshot()) is late
        assert early.failed
        assert isinstance(late.exception(), ValueError)

    @pytest.mark.asyncio
    async def test_wait_for_empty_snapshot(self) -> None:
        await wait_for_settled((), 0.5)


class TestRenderPass:
    def test_record_returns_running_sum(self) -> None:
        render_pass = RenderPass()
        assert render_pass.record("a", 2) == 2
        assert render_pass.record("a", None) == 2
        assert render_pass.record("a", 3) == 5
        assert render_pass.accumulator("missing") is None

    @pytest.mark.asyncio
    async def test_settle_includes_late_registrations(self) -> None:
        render_pass = RenderPass()
        async def spawner() -> None:
            await asyncio.sleep(0)
            render_pass.register(value_after(0.01, "child"), "child")

        render_pass.register(spawner(), "parent")
        await render_pass.settle()
        assert [op.label for op in render_pass.pending] == ["parent", "child"]
        assert all(op.settled for op in render_pass.pending)

    @pytest.mark.asyncio
    async def test_settle_reraises_template_errors(self) -> None:
        render_pass = RenderPass()
        render_pass.register(fail_after(0, OptionLookupError("no such option")), "lookup")
        with pytest.raises(OptionLookupError):
            await render_pass.settle()

    @pytest.mark.asyncio
    async def test_settle_wraps_foreign_errors(self) -> None:
        render_pass = RenderPass(template_name="t.zapt")
        render_pass.register(fail_after(0, KeyError("k")), "lookup")
        with pytest.raises(TemplateRuntimeError, match="lookup") as exc_info:
            await render_pass.settle()
        assert isinstance(exc_info.value.__cause__, KeyError)
        assert exc_info.value.template_name == "t.zapt"

    @pytest.mark.asyncio
    async def test_discard_drops_state(self) -> None:
        render_pass = RenderPass(package_id=3)
        render_pass.record("a", 1)
        render_pass.register(value_after(0, 1))
        await render_pass.owning_package(Context.root(render_pass))
        render_pass.discard()
        assert render_pass.accumulators == {}
        assert len(render_pass.pending) == 0
        assert render_pass._package_future is None

    @pytest.mark.asyncio
    async def test_owning_package_is_shared(self) -> None:
        lookup = MemoryOptionLookup(latency=0.01)
        render_pass = RenderPass(template_name="t.zapt", option_lookup=lookup)
        ctx = Context.root(render_pass)
        assert render_pass.owning_package(ctx) is render_pass.owning_package(ctx)
        with pytest.raises(OptionLookupError):
            await render_pass.owning_package(ctx)
        assert lookup.calls["resolve_owning_package"] == 1

    @pytest.mark.asyncio
    async def test_owning_package_preset(self) -> None:
        render_pass = RenderPass(package_id="pkg")
        assert await render_pass.owning_package(Context.root(render_pass)) == "pkg"

    @pytest.mark.asyncio
    async def test_owning_package_without_lookup(self) -> None:
        render_pass = RenderPass()
        with pytest.raises(HelperConfigurationError):
            render_pass.owning_package(Context.root(render_pass))


class TestFragment:
    def test_text_only(self) -> None:
        fragment = Fragment(["a", "", "b"]) + "c"
        assert str(fragment) == "abc"
        assert fragment.chunks == ("a", "b", "c")
        assert "x" + fragment == "xabc"
        assert fragment.is_resolved

    def test_concat(self) -> None:
        assert Fragment.concat(["a", Fragment(["b"]), "c"]) == "abc"
        assert not Fragment()

    @pytest.mark.asyncio
    async def test_unresolved_fragment_cannot_be_stringified(self) -> None:
        registry = PendingRegistry()
        fragment = Fragment(["a", Slot(registry.register(value_after(0, "b")))])
        with pytest.raises(TemplateRuntimeError, match="pending async slot"):
            str(fragment)
        assert await fragment.resolve() == "ab"

    @pytest.mark.asyncio
    async def test_resolve_in_document_order(self) -> None:
        registry = PendingRegistry()
        slow = registry.register(value_after(0.02, "1"))
        fast = registry.register(value_after(0, "2"))
        nested = registry.register(value_after(0, Fragment(["<", "n", ">"])))
        fragment = Fragment(["[", Slot(slow), Slot(fast), Slot(nested), "]"])
        assert await fragment.resolve() == "[12<n>]"

    @pytest.mark.asyncio
    async def test_escaped_slot(self) -> None:
        registry = PendingRegistry()
        fragment = Fragment([Slot(registry.register(value_after(0, "<b>")), escape=True)])
        assert await fragment.resolve() == "&lt;b&gt;"


class TestRenderIsolation:
    @pytest.mark.asyncio
    async def test_sync_template_renders_inside_loop(self, env: Environment) -> None:
        assert env.from_string("{{#iterate 2}}{{index}}{{/iterate}}").render() == "01"

    @pytest.mark.asyncio
    async def test_concurrent_renders_do_not_share_passes(self, barrier_env: Environment) -> None:
        template = barrier_env.from_string(
            '{{record "a" n}}{{fetch "x" 0.01}}{{#after}}{{#replay "a"}}{{sum}}{{/replay}}{{/after}}'
        )
        results = await asyncio.gather(*(template.render_async(n=i) for i in range(5)))
        assert results == [f"x{i}" for i in range(5)]

    def test_failed_sync_render_lets_other_operations_finish(
        self, barrier_env: Environment, delayed
    ) -> None:
        template = barrier_env.from_string('{{fail "bad" 0}}{{fetch "slow" 0.02}}')
        with pytest.raises(TemplateRuntimeError, match="bad"):
            template.render()
        assert delayed.log == ["failed:bad", "settled:slow"]

    def test_sync_render_of_async_template(self, barrier_env: Environment, delayed) -> None:
        template = barrier_env.from_string('{{fetch "a" 0.01}}-{{fetch "b" 0}}')
        assert template.render() == "a-b"
        assert delayed.log == ["settled:b", "settled:a"]
