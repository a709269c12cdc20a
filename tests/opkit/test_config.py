"""
Tests for unit configuration.

Tests cover:
- Defaults and validation
- Loading from config.yaml
- Environment variable overrides
- Saving
"""

import logging
from pathlib import Path

import pytest
import yaml

from opkit.config import UnitConfig, default_home
from opkit.core.codec import OutputMode


class TestUnitConfig:
    """Test UnitConfig defaults and validation."""

    def test_defaults(self, opkit_home):
        config = UnitConfig()

        assert config.home == opkit_home
        assert config.output_mode is OutputMode.LEGACY
        assert config.structured_errors is False
        assert config.manifest_format == "json"
        assert config.log_level == "INFO"
        assert config.log_pretty is True
        assert config.reject_reserved is False

    def test_derived_paths(self, tmp_path):
        config = UnitConfig(home=tmp_path)

        assert config.log_dir == tmp_path / "log"
        assert config.units_dir == tmp_path / "units"

    def test_default_home_without_env(self, monkeypatch):
        monkeypatch.delenv("OPKIT_HOME")

        assert default_home() == Path.home() / ".opkit"

    def test_invalid_output_mode(self, tmp_path):
        with pytest.raises(ValueError, match="Invalid output_mode"):
            UnitConfig(home=tmp_path, output_mode="loud")

    def test_invalid_manifest_format(self, tmp_path):
        with pytest.raises(ValueError, match="Invalid manifest_format"):
            UnitConfig(home=tmp_path, manifest_format="toml")

    def test_invalid_log_level(self, tmp_path):
        with pytest.raises(ValueError, match="Invalid log_level"):
            UnitConfig(home=tmp_path, log_level="LOUD")

    def test_log_level_normalized(self, tmp_path):
        assert UnitConfig(home=tmp_path, log_level="warn").log_level == "WARNING"
        assert UnitConfig(home=tmp_path, log_level="debug").log_level_number == logging.DEBUG
        assert UnitConfig(home=tmp_path, log_level="TRACE").log_level_number == 5


class TestLoad:
    """Test UnitConfig.load()."""

    def test_load_without_file(self, opkit_home):
        config = UnitConfig.load()

        assert config.home == opkit_home
        assert config.output_mode is OutputMode.LEGACY

    def test_load_from_file(self, opkit_home):
        opkit_home.mkdir(parents=True)
        (opkit_home / "config.yaml").write_text(
            "output_mode: strict\n"
            "manifest_format: yaml\n"
            "log_pretty: false\n"
            "unknown_key: ignored\n"
        )

        config = UnitConfig.load()

        assert config.output_mode is OutputMode.STRICT
        assert config.manifest_format == "yaml"
        assert config.log_pretty is False

    def test_load_explicit_home(self, tmp_path):
        (tmp_path / "config.yaml").write_text("structured_errors: true\n")

        config = UnitConfig.load(tmp_path)

        assert config.home == tmp_path
        assert config.structured_errors is True

    def test_invalid_yaml(self, opkit_home):
        opkit_home.mkdir(parents=True)
        (opkit_home / "config.yaml").write_text("output_mode: [unclosed\n")

        with pytest.raises(ValueError, match="Invalid config.yaml"):
            UnitConfig.load()

    def test_non_mapping_yaml(self, opkit_home):
        opkit_home.mkdir(parents=True)
        (opkit_home / "config.yaml").write_text("- a\n- b\n")

        with pytest.raises(ValueError, match="expected a mapping"):
            UnitConfig.load()

    def test_invalid_value_in_file(self, opkit_home):
        opkit_home.mkdir(parents=True)
        (opkit_home / "config.yaml").write_text("output_mode: noisy\n")

        with pytest.raises(ValueError, match="Invalid output_mode"):
            UnitConfig.load()


class TestEnvironmentOverrides:
    """Test OPKIT_* environment variables."""

    def test_env_overrides_file(self, opkit_home, monkeypatch):
        opkit_home.mkdir(parents=True)
        (opkit_home / "config.yaml").write_text("output_mode: legacy\nmanifest_format: json\n")
        monkeypatch.setenv("OPKIT_OUTPUT_MODE", "STRICT")
        monkeypatch.setenv("OPKIT_MANIFEST_FORMAT", "yaml")

        config = UnitConfig.load()

        assert config.output_mode is OutputMode.STRICT
        assert config.manifest_format == "yaml"

    @pytest.mark.parametrize("value,expected", [
        ("true", True),
        ("1", True),
        ("yes", True),
        ("false", False),
        ("no", False),
    ])
    def test_boolean_flags(self, monkeypatch, value, expected):
        monkeypatch.setenv("OPKIT_STRUCTURED_ERRORS", value)
        monkeypatch.setenv("OPKIT_REJECT_RESERVED", value)

        config = UnitConfig.load()

        assert config.structured_errors is expected
        assert config.reject_reserved is expected

    def test_log_pretty_disabled_only_by_false(self, monkeypatch):
        monkeypatch.setenv("OPKIT_LOG_PRETTY", "false")
        assert UnitConfig.load().log_pretty is False

        monkeypatch.setenv("OPKIT_LOG_PRETTY", "anything")
        assert UnitConfig.load().log_pretty is True

    def test_log_level_env(self, monkeypatch):
        monkeypatch.setenv("OPKIT_LOG_LEVEL", "debug")

        assert UnitConfig.load().log_level == "DEBUG"

    def test_invalid_log_level_env_falls_back(self, monkeypatch):
        """Test that a bad OPKIT_LOG_LEVEL never fails the invocation."""
        monkeypatch.setenv("OPKIT_LOG_LEVEL", "chatty")

        assert UnitConfig.load().log_level == "INFO"


class TestSave:
    """Test UnitConfig.save()."""

    def test_save_round_trip(self, tmp_path):
        config = UnitConfig(home=tmp_path, output_mode="strict", log_level="DEBUG")

        path = config.save()
        loaded = UnitConfig.load(tmp_path)

        assert path == tmp_path / "config.yaml"
        assert loaded.output_mode is OutputMode.STRICT
        assert loaded.log_level == "DEBUG"

    def test_save_omits_home(self, tmp_path):
        data = yaml.safe_load(UnitConfig(home=tmp_path).save().read_text())

        assert "home" not in data
        assert data["output_mode"] == "legacy"
