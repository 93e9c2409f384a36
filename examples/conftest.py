"""pytest fixtures shared by the perch examples.

Each example directory holds an ``app.py`` and its ``test_app.py``.
``example_app`` executes the sibling ``app.py`` afresh for every test,
so in-memory stores start out empty.
"""

import importlib.util
from pathlib import Path

import pytest


@pytest.fixture
def example_app(request: pytest.FixtureRequest):
    """The ``app`` object of a freshly executed sibling ``app.py``."""
    source = Path(request.path).with_name("app.py")
    spec = importlib.util.spec_from_file_location(f"perch_example_{source.parent.name}", source)
    assert spec is not None and spec.loader is not None
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module.app
