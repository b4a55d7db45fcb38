"""Tests for the after barrier."""

from __future__ import annotations

import pytest

from zapgen import BarrierError, Environment, HelperConfigurationError, TemplateRuntimeError
from zapgen.environment.exceptions import ErrorCode

from .conftest import DelayedValues


def spawn(ctx, options, message):
    """Start a failing operation without leaving a slot in the output."""

    async def run():
        raise LookupError(message)

    ctx.global_.register(run(), "spawn")


class TestAfterOrdering:
    @pytest.mark.asyncio
    async def test_empty_snapshot_renders_immediately(self, barrier_env: Environment) -> None:
        assert await barrier_env.from_string("{{#after}}done{{/after}}").render_async() == "done"

    @pytest.mark.asyncio
    async def test_waits_for_earlier_operations(
        self, barrier_env: Environment, delayed: DelayedValues
    ) -> None:
        template = barrier_env.from_string(
            '{{fetch "slow" 0.05}}{{fetch "fast" 0}}{{#after}}{{mark "barrier"}}{{/after}}'
        )
        assert await template.render_async() == "slowfastbarrier"
        assert delayed.log == ["settled:fast", "settled:slow", "barrier"]

    @pytest.mark.asyncio
    async def test_snapshot_excludes_later_operations(
        self, barrier_env: Environment, delayed: DelayedValues
    ) -> None:
        template = barrier_env.from_string('{{#after}}{{mark "barrier"}}{{/after}}{{fetch "late" 0.02}}')
        assert await template.render_async() == "barrierlate"
        assert delayed.log == ["barrier", "settled:late"]

    @pytest.mark.asyncio
    async def test_later_barrier_waits_for_earlier_barrier(
        self, barrier_env: Environment, delayed: DelayedValues
    ) -> None:
        template = barrier_env.from_string(
            '{{fetch "a" 0.02}}{{#after}}{{mark "one"}}{{/after}}{{#after}}{{mark "two"}}{{/after}}'
        )
        assert await template.render_async() == "aonetwo"
        assert delayed.log == ["settled:a", "one", "two"]

    @pytest.mark.asyncio
    async def test_body_operations_are_resolved(self, barrier_env: Environment) -> None:
        template = barrier_env.from_string('{{#after}}<{{fetch "inner" 0.01}}>{{/after}}')
        assert await template.render_async() == "<inner>"

    @pytest.mark.asyncio
    async def test_direct_await_without_polling(self, delayed: DelayedValues) -> None:
        env = Environment(
            helpers={"fetch": delayed.fetch_helper(), "mark": delayed.mark_helper()},
            barrier_poll_interval=0,
        )
        template = env.from_string('{{fetch "slow" 0.02}}{{#after}}{{mark "barrier"}}{{/after}}')
        assert await template.render_async() == "slowbarrier"
        assert delayed.log == ["settled:slow", "barrier"]

    def test_barrier_template_is_async(self, barrier_env: Environment) -> None:
        template = barrier_env.from_string("{{#after}}x{{/after}}")
        assert template.is_async
        assert template.render() == "x"


class TestAfterFailures:
    @pytest.mark.asyncio
    async def test_failed_operation_fails_barrier(self, barrier_env: Environment) -> None:
        barrier_env.add_helper("spawn", spawn)
        template = barrier_env.from_string('{{spawn "boom"}}{{#after}}never{{/after}}', name="b.zapt")
        with pytest.raises(BarrierError) as exc_info:
            await template.render_async()
        error = exc_info.value
        assert error.code is ErrorCode.BARRIER_FAILED
        assert error.failed == 1
        assert isinstance(error.__cause__, LookupError)
        assert str(error.__cause__) == "boom"
        assert error.template_name == "b.zapt"

    @pytest.mark.asyncio
    async def test_counts_every_failure_and_chains_the_first(self, barrier_env: Environment) -> None:
        barrier_env.add_helper("spawn", spawn)
        template = barrier_env.from_string('{{spawn "one"}}{{spawn "two"}}{{#after}}x{{/after}}')
        with pytest.raises(BarrierError) as exc_info:
            await template.render_async()
        assert exc_info.value.failed == 2
        assert str(exc_info.value.__cause__) == "one"

    @pytest.mark.asyncio
    async def test_slotted_failure_surfaces_first(self, barrier_env: Environment) -> None:
        template = barrier_env.from_string('{{fail "bad"}}{{#after}}x{{/after}}')
        with pytest.raises(TemplateRuntimeError, match="bad") as exc_info:
            await template.render_async()
        assert not isinstance(exc_info.value, BarrierError)
        assert isinstance(exc_info.value.__cause__, LookupError)

    @pytest.mark.asyncio
    async def test_failure_after_barrier_fails_the_pass(self, barrier_env: Environment) -> None:
        barrier_env.add_helper("spawn", spawn)
        template = barrier_env.from_string('{{#after}}ok{{/after}}{{spawn "late"}}')
        with pytest.raises(TemplateRuntimeError, match="late"):
            await template.render_async()

    @pytest.mark.asyncio
    async def test_inline_after_is_rejected(self, barrier_env: Environment) -> None:
        with pytest.raises(HelperConfigurationError):
            await barrier_env.from_string("{{after}}").render_async()
