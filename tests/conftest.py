"""
Pytest configuration and fixtures.
"""

from pathlib import Path

import pytest

from structconf.container import ConfigNode


@pytest.fixture
def root() -> ConfigNode:
    """Empty root section."""
    return ConfigNode.root()


@pytest.fixture
def write_source(tmp_path: Path):
    """Write text to a file under tmp_path and return its path."""

    def _write(name: str, text: str) -> Path:
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path

    return _write
