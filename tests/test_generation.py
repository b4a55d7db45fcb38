"""Tests for batch generation."""

from __future__ import annotations

import logging

import pytest

from zapgen import (
    DictLoader,
    Environment,
    MemoryOptionLookup,
    OptionDatabase,
    OptionLookupError,
    generate,
)


@pytest.fixture
def gen_env(option_db: OptionDatabase) -> Environment:
    option_db.assign_template("broken.zapt", 1)
    loader = DictLoader(
        {
            "types.zapt": '{{#template_options "types"}}{{code}} {{/template_options}}',
            "cluster.zapt": "{{zap_header}}\n{{#each clusters}}{{name}};{{/each}}",
            "broken.zapt": '{{lookupOption "types" "bogus"}}',
        }
    )
    return Environment(loader=loader, option_lookup=MemoryOptionLookup(), db=option_db)


class TestGenerate:
    @pytest.mark.asyncio
    async def test_renders_every_template(self, gen_env: Environment) -> None:
        results = await generate(
            gen_env, ["types.zapt", "cluster.zapt"], clusters=[{"name": "Basic"}]
        )
        assert list(results) == ["types.zapt", "cluster.zapt"]
        assert results["types.zapt"] == "uint8_t uint16_t uint32_t "
        assert results["cluster.zapt"].endswith("\nBasic;")

    @pytest.mark.asyncio
    async def test_all_or_nothing(
        self, gen_env: Environment, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING, logger="zapgen.generation"):
            with pytest.raises(OptionLookupError):
                await generate(gen_env, ["types.zapt", "broken.zapt", "cluster.zapt"], clusters=[])
        assert "broken.zapt (2/3)" in caplog.text
        assert "discarding 1 rendered template(s)" in caplog.text

    @pytest.mark.asyncio
    async def test_empty_batch(self, gen_env: Environment) -> None:
        assert await generate(gen_env, []) == {}
