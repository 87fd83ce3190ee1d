"""Shared fixtures for the prepare-after-updater test suite."""

from pathlib import Path

import pytest


@pytest.fixture
def home(tmp_path: Path) -> Path:
    """An empty user home directory."""
    p = tmp_path / "home" / "alice"
    p.mkdir(parents=True)
    return p
