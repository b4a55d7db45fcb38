"""Shared pytest configuration for zapgen examples.

``example_app`` runs the ``app.py`` next to the requesting test and hands
back its globals as attributes (``output``, ``template``, ``env``...).
The script is re-run for every test, so no state leaks between them.
"""

import runpy
from pathlib import Path
from types import SimpleNamespace

import pytest


@pytest.fixture
def example_app(request: pytest.FixtureRequest) -> SimpleNamespace:
    app_path = Path(request.path).parent / "app.py"
    assert app_path.is_file(), f"missing {app_path}"
    namespace = runpy.run_path(str(app_path), run_name=f"example_{app_path.parent.name}")
    return SimpleNamespace(**namespace)
