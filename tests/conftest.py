"""Pytest configuration and fixtures for zapgen tests."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

import pytest

from zapgen import (
    DictLoader,
    Environment,
    MemoryOptionLookup,
    OptionDatabase,
    RenderPass,
    asynchronous,
)
from zapgen.context import Context


@pytest.fixture
def env() -> Environment:
    """Create a basic strict Environment."""
    return Environment()


@pytest.fixture
def env_lenient() -> Environment:
    """Create an Environment that renders undefined names as ''."""
    return Environment(strict=False)


@pytest.fixture
def option_db() -> OptionDatabase:
    """Option store with one package owning 'types.zapt' and 'cluster.zapt'."""
    db = OptionDatabase()
    db.add_package(1, "zcl-builtin/gen-templates.json")
    db.assign_template("types.zapt", 1)
    db.assign_template("cluster.zapt", 1)
    db.add_option(1, "types", "uint8_t", "u8")
    db.add_option(1, "types", "uint16_t", "u16")
    db.add_option(1, "types", "uint32_t", "u32")
    db.add_option(1, "manufacturerCodes", "0x1002", "Silicon Labs")
    return db


@pytest.fixture
def option_lookup() -> MemoryOptionLookup:
    return MemoryOptionLookup()


@pytest.fixture
def option_env(option_db: OptionDatabase, option_lookup: MemoryOptionLookup) -> Environment:
    """Environment wired to the in-memory option store, polling every millisecond."""
    return Environment(option_lookup=option_lookup, db=option_db, barrier_poll_interval=0.001)


@pytest.fixture
def env_with_loader() -> Environment:
    """Create an Environment with DictLoader partials."""
    loader = DictLoader(
        {
            "header.zapt": "{{zap_header}}",
            "item.zapt": "{{name}}={{id}}",
            "list.zapt": "{{#each items}}{{> item.zapt}}{{#not_last}}, {{/not_last}}{{/each}}",
            "self.zapt": "x{{> self.zapt}}",
        }
    )
    return Environment(loader=loader)


@pytest.fixture
def root_ctx() -> Context:
    """Pass root context over an empty RenderPass."""
    return Context.root(RenderPass(), {"name": "root"})


class DelayedValues:
    """Controllable async helper: ``{{fetch "name" delay}}``.

    Records settlement order in ``log``; ``mark`` is a sync helper that
    records when it rendered.
    """

    def __init__(self) -> None:
        self.log: list[str] = []

    def fetch_helper(self) -> Callable[..., Any]:
        @asynchronous
        def fetch(ctx, options, name, delay=0):
            async def run():
                await asyncio.sleep(delay)
                self.log.append(f"settled:{name}")
                return name

            return run()

        return fetch

    def failing_helper(self) -> Callable[..., Any]:
        @asynchronous
        def fail(ctx, options, message="lookup failed", delay=0):
            async def run():
                await asyncio.sleep(delay)
                self.log.append(f"failed:{message}")
                raise LookupError(message)

            return run()

        return fail

    def mark_helper(self) -> Callable[..., Any]:
        def mark(ctx, options, label="mark"):
            self.log.append(label)
            return label

        return mark


@pytest.fixture
def delayed() -> DelayedValues:
    return DelayedValues()


@pytest.fixture
def barrier_env(delayed: DelayedValues) -> Environment:
    """Environment with fetch / fail / mark test helpers."""
    return Environment(
        helpers={
            "fetch": delayed.fetch_helper(),
            "fail": delayed.failing_helper(),
            "mark": delayed.mark_helper(),
        },
        barrier_poll_interval=0.001,
    )


def assert_contains(result: str, *expected_parts: str) -> None:
    """Assert the rendered result contains all expected parts."""
    for part in expected_parts:
        assert part in result, (
            f"Template output missing expected content:\n"
            f"  Missing: {part!r}\n"
            f"  Actual: {result!r}"
        )
