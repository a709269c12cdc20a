"""Tests for the package metadata."""

import tomllib
from pathlib import Path

PYPROJECT = Path(__file__).resolve().parents[2] / "pyproject.toml"


class TestPyproject:
    """Test pyproject.toml."""

    def test_python_floor_covers_tomllib(self):
        """Test that the declared Python floor has tomllib for SimpleUnit.from_toml."""
        project = tomllib.loads(PYPROJECT.read_text(encoding="utf-8"))["project"]

        assert project["requires-python"] == ">=3.11"
