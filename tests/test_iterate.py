"""Tests for the iterate helper."""

from __future__ import annotations

import pytest
from hypothesis import given

from zapgen import Environment, HelperConfigurationError
from zapgen.environment.exceptions import ErrorCode

from .strategies import iteration_count


class TestIterate:
    def test_bracketed_list(self, env: Environment) -> None:
        source = (
            "{{#iterate count=3}}{{#first}}[{{/first}}{{index}}"
            "{{#not_last}},{{/not_last}}{{#last}}]{{/last}}{{/iterate}}"
        )
        assert env.from_string(source).render() == "[0,1,2]"

    def test_positional_count(self, env: Environment) -> None:
        assert env.from_string("{{#iterate 4}}{{index}}{{/iterate}}").render() == "0123"

    def test_count_from_data(self, env: Environment) -> None:
        template = env.from_string("{{#iterate count=size}}{{index}}/{{count}} {{/iterate}}")
        assert template.render(size=2) == "0/2 1/2 "

    @pytest.mark.parametrize("count", [0, -1, -20])
    def test_non_positive_count_renders_nothing(self, env: Environment, count: int) -> None:
        assert env.from_string("{{#iterate count=n}}x{{/iterate}}").render(n=count) == ""

    @pytest.mark.parametrize(
        "source",
        [
            '{{#iterate count="3"}}x{{/iterate}}',
            "{{#iterate count=true}}x{{/iterate}}",
            "{{#iterate count=2.5}}x{{/iterate}}",
            "{{#iterate count=null}}x{{/iterate}}",
            "{{#iterate}}x{{/iterate}}",
        ],
    )
    def test_invalid_count_is_rejected(self, env: Environment, source: str) -> None:
        with pytest.raises(HelperConfigurationError) as exc_info:
            env.from_string(source).render()
        assert exc_info.value.code is ErrorCode.HELPER_CONFIGURATION

    def test_inline_use_is_rejected(self, env: Environment) -> None:
        with pytest.raises(HelperConfigurationError, match="block helper"):
            env.from_string("{{iterate 3}}").render()

    def test_error_carries_location(self, env: Environment) -> None:
        with pytest.raises(HelperConfigurationError) as exc_info:
            env.from_string('line one\n{{#iterate count="3"}}x{{/iterate}}', name="ep.zapt").render()
        assert exc_info.value.template_name == "ep.zapt"
        assert exc_info.value.lineno == 2

    def test_nested_iterations_use_nearest_position(self, env: Environment) -> None:
        source = "{{#iterate 2}}{{#iterate 3}}{{index}}{{/iterate}}{{#last}}.{{else}}|{{/last}}{{/iterate}}"
        assert env.from_string(source).render() == "012|012."

    def test_outer_index_through_parent_path(self, env: Environment) -> None:
        source = "{{#iterate 2}}{{#iterate 2}}{{../index}}{{index}} {{/iterate}}{{/iterate}}"
        assert env.from_string(source).render() == "00 01 10 11 "

    @given(count=iteration_count)
    def test_body_renders_count_times(self, count: int) -> None:
        env = Environment()
        output = env.from_string("{{#iterate count=n}}{{index}};{{/iterate}}").render(n=count)
        assert output.split(";")[:-1] == [str(i) for i in range(count)]
