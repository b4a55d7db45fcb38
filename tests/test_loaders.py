"""Tests for template loaders and the environment cache."""

from __future__ import annotations

from pathlib import Path

import pytest

from zapgen import ChoiceLoader, DictLoader, Environment, FileSystemLoader, TemplateNotFoundError


class TestDictLoader:
    def test_get_source(self) -> None:
        assert DictLoader({"a.zapt": "A"}).get_source("a.zapt") == ("A", None)

    def test_missing_suggests_close_match(self) -> None:
        with pytest.raises(TemplateNotFoundError, match="Did you mean 'cluster.zapt'"):
            DictLoader({"cluster.zapt": ""}).get_source("clustr.zapt")

    def test_missing_lists_available(self) -> None:
        with pytest.raises(TemplateNotFoundError, match="Available: a.zapt"):
            DictLoader({"a.zapt": ""}).get_source("endpoint_config.zapt")

    def test_list_templates(self) -> None:
        assert DictLoader({"b": "", "a": ""}).list_templates() == ["a", "b"]


class TestFileSystemLoader:
    def test_first_path_wins(self, tmp_path: Path) -> None:
        overrides = tmp_path / "overrides"
        base = tmp_path / "base"
        for directory, text in ((overrides, "override"), (base, "base")):
            directory.mkdir()
            (directory / "header.zapt").write_text(text)
        (base / "only.hbs").write_text("only")

        loader = FileSystemLoader([overrides, base])
        assert loader.get_source("header.zapt")[0] == "override"
        assert loader.get_source("only.hbs") == ("only", str(base / "only.hbs"))
        assert loader.list_templates() == ["header.zapt", "only.hbs"]

    def test_missing(self, tmp_path: Path) -> None:
        with pytest.raises(TemplateNotFoundError):
            FileSystemLoader(tmp_path).get_source("nope.zapt")

    def test_nested_names(self, tmp_path: Path) -> None:
        (tmp_path / "c").mkdir()
        (tmp_path / "c" / "types.handlebars").write_text("{{zap_header}}")
        (tmp_path / "c" / "notes.txt").write_text("ignored")
        assert FileSystemLoader(str(tmp_path)).list_templates() == ["c/types.handlebars"]


class TestChoiceLoader:
    def test_falls_through(self) -> None:
        loader = ChoiceLoader([DictLoader({"a": "1"}), DictLoader({"a": "2", "b": "3"})])
        assert loader.get_source("a") == ("1", None)
        assert loader.get_source("b") == ("3", None)
        assert loader.list_templates() == ["a", "b"]

    def test_missing_everywhere(self) -> None:
        with pytest.raises(TemplateNotFoundError, match="any of 2 loaders"):
            ChoiceLoader([DictLoader({}), DictLoader({})]).get_source("x")


class TestEnvironmentTemplates:
    def test_get_template_is_cached(self, env_with_loader: Environment) -> None:
        first = env_with_loader.get_template("item.zapt")
        assert env_with_loader.get_template("item.zapt") is first
        env_with_loader.clear_cache()
        assert env_with_loader.get_template("item.zapt") is not first

    def test_no_loader(self, env: Environment) -> None:
        with pytest.raises(TemplateNotFoundError, match="no loader"):
            env.get_template("a.zapt")

    def test_helper_change_clears_cache(self, env_with_loader: Environment) -> None:
        first = env_with_loader.get_template("item.zapt")
        env_with_loader.add_helper("shout", lambda ctx, options, text: str(text).upper())
        assert env_with_loader.get_template("item.zapt") is not first

    def test_globals_visible_at_root(self) -> None:
        env = Environment(globals={"vendor": "acme"})
        assert env.from_string("{{vendor}}").render() == "acme"
        assert env.from_string("{{vendor}}").render(vendor="other") == "other"

    @pytest.mark.parametrize(
        "kwargs", [{"barrier_poll_interval": -1}, {"max_include_depth": 0}]
    )
    def test_invalid_configuration(self, kwargs: dict) -> None:
        with pytest.raises(ValueError):
            Environment(**kwargs)

    def test_render_accepts_a_single_dict(self, env: Environment) -> None:
        template = env.from_string("{{a}}{{b}}")
        assert template.render({"a": 1}, b=2) == "12"
        with pytest.raises(TypeError):
            template.render({"a": 1}, {"b": 2})
