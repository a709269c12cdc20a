"""Shared fixtures for opkit tests."""

import pytest

from opkit.config import UnitConfig

_ENV_VARS = (
    "OPKIT_OUTPUT_MODE",
    "OPKIT_STRUCTURED_ERRORS",
    "OPKIT_MANIFEST_FORMAT",
    "OPKIT_LOG_LEVEL",
    "OPKIT_LOG_PRETTY",
    "OPKIT_REJECT_RESERVED",
)


@pytest.fixture(autouse=True)
def opkit_home(tmp_path, monkeypatch):
    """Point OPKIT_HOME at a temporary directory and clear other overrides."""
    home = tmp_path / "opkit-home"
    monkeypatch.setenv("OPKIT_HOME", str(home))
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return home


@pytest.fixture
def config(opkit_home):
    """Default configuration rooted in the temporary home."""
    return UnitConfig(home=opkit_home)
