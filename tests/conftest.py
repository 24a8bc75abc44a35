import json

import pytest

from fortress.models import CheckConfig, FortressConfig


@pytest.fixture
def make_project(tmp_path):
    """Write a file tree under tmp_path. Dict values are written as JSON."""

    def _make(files: dict):
        for rel, content in files.items():
            path = tmp_path / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, (dict, list)):
                content = json.dumps(content)
            path.write_text(content, encoding="utf-8")
        return tmp_path

    return _make


@pytest.fixture
def make_config(tmp_path):
    """Build a FortressConfig rooted at tmp_path from per-check kwargs."""

    def _make(checks: dict, threshold: int = 95, **kwargs):
        return FortressConfig(
            root=kwargs.pop("root", tmp_path),
            checks={key: CheckConfig(**value) for key, value in checks.items()},
            scoring={"deployThreshold": threshold},
            **kwargs,
        )

    return _make
