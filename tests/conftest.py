"""Shared fixtures for contextengine tests."""

import textwrap
from pathlib import Path

import pytest

from contextengine.core.config import Config


@pytest.fixture
def workspace(tmp_path):
    """A workspace directory nested one level down, so ``../.augment`` stays in tmp_path."""
    ws = tmp_path / "workspace"
    ws.mkdir()
    return ws


@pytest.fixture
def config(workspace):
    """Provide a Config rooted at the temp workspace."""
    return Config(workspace_root=workspace)


@pytest.fixture
def make_tree():
    """Write a {relative_path: source} mapping under a root directory."""

    def _make(root: Path, files: dict) -> Path:
        for rel, content in files.items():
            path = root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(textwrap.dedent(content), encoding="utf-8")
        return root

    return _make
