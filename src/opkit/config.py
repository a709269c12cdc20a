"""
Unit configuration.

Handles loading the shared configuration file ($OPKIT_HOME/config.yaml)
and environment overrides. The output mode is a compatibility contract
with the host: LEGACY (single channel) stays the default.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from opkit.core.codec import OutputMode
from opkit.core.context import TRACE
from opkit.core.manifest import MANIFEST_FORMATS

LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "WARNING", "ERROR")

CONFIG_FILENAME = "config.yaml"

_TRUE_VALUES = ("true", "1", "yes")


def default_home() -> Path:
    """Return the opkit home directory ($OPKIT_HOME or ~/.opkit)."""
    if "OPKIT_HOME" in os.environ:
        return Path(os.environ["OPKIT_HOME"]).expanduser()
    return Path.home() / ".opkit"


@dataclass
class UnitConfig:
    """
    Runtime configuration shared by every unit on this machine.

    Attributes:
        home: Base directory for logs and unit data (default: ~/.opkit)
        output_mode: "legacy" (errors on stdout) or "strict" (errors on
            stderr with exit status 1)
        structured_errors: Write errors as a JSON envelope carrying the kind
        manifest_format: Encoding of the describe response ("json" or "yaml")
        log_level: Minimum level written to the invocation log
        log_pretty: Multi-line log records instead of one line per record
        reject_reserved: Refuse to register reserved ids such as "describe"
    """

    home: Path = field(default_factory=default_home)
    output_mode: OutputMode = OutputMode.LEGACY
    structured_errors: bool = False
    manifest_format: str = "json"
    log_level: str = "INFO"
    log_pretty: bool = True
    reject_reserved: bool = False

    def __post_init__(self):
        """Validate configuration after initialization."""
        self.home = Path(self.home)

        try:
            self.output_mode = OutputMode(self.output_mode)
        except ValueError:
            raise ValueError(
                f"Invalid output_mode '{self.output_mode}'. "
                "Must be 'legacy' or 'strict'."
            )

        if self.manifest_format not in MANIFEST_FORMATS:
            raise ValueError(
                f"Invalid manifest_format '{self.manifest_format}'. "
                "Must be 'json' or 'yaml'."
            )

        self.log_level = str(self.log_level).upper()
        if self.log_level == "WARN":
            self.log_level = "WARNING"
        if self.log_level not in LOG_LEVELS:
            raise ValueError(
                f"Invalid log_level '{self.log_level}'. "
                f"Must be one of: {', '.join(LOG_LEVELS)}."
            )

    @property
    def log_dir(self) -> Path:
        return self.home / "log"

    @property
    def units_dir(self) -> Path:
        return self.home / "units"

    @property
    def log_level_number(self) -> int:
        return TRACE if self.log_level == "TRACE" else logging.getLevelName(self.log_level)

    @classmethod
    def load(cls, home: Optional[Path] = None) -> "UnitConfig":
        """
        Load configuration from <home>/config.yaml.

        Falls back to defaults if the file doesn't exist. Environment
        variables override config file values. An invalid OPKIT_LOG_LEVEL
        falls back to INFO rather than failing the invocation.

        Args:
            home: opkit home directory (default: $OPKIT_HOME or ~/.opkit)

        Returns:
            UnitConfig instance with loaded/default values

        Raises:
            ValueError: If the config file has invalid format or values
        """
        home = Path(home) if home is not None else default_home()
        config_file = home / CONFIG_FILENAME
        config_dict: Dict[str, Any] = {}

        if config_file.exists():
            try:
                with open(config_file) as f:
                    config_dict = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid {CONFIG_FILENAME}: {e}") from e
            if not isinstance(config_dict, dict):
                raise ValueError(f"Invalid {CONFIG_FILENAME}: expected a mapping")

        if "OPKIT_OUTPUT_MODE" in os.environ:
            config_dict["output_mode"] = os.environ["OPKIT_OUTPUT_MODE"].lower()

        if "OPKIT_STRUCTURED_ERRORS" in os.environ:
            config_dict["structured_errors"] = os.environ["OPKIT_STRUCTURED_ERRORS"].lower() in _TRUE_VALUES

        if "OPKIT_MANIFEST_FORMAT" in os.environ:
            config_dict["manifest_format"] = os.environ["OPKIT_MANIFEST_FORMAT"].lower()

        if "OPKIT_LOG_LEVEL" in os.environ:
            level = os.environ["OPKIT_LOG_LEVEL"].upper()
            config_dict["log_level"] = level if level in LOG_LEVELS + ("WARN",) else "INFO"

        if "OPKIT_LOG_PRETTY" in os.environ:
            config_dict["log_pretty"] = os.environ["OPKIT_LOG_PRETTY"].lower() != "false"

        if "OPKIT_REJECT_RESERVED" in os.environ:
            config_dict["reject_reserved"] = os.environ["OPKIT_REJECT_RESERVED"].lower() in _TRUE_VALUES

        config_dict["home"] = home
        return cls(**{k: v for k, v in config_dict.items() if k in cls.__annotations__})

    def save(self) -> Path:
        """
        Save configuration to <home>/config.yaml.

        Does NOT save ``home`` (the file lives inside it).

        Returns:
            Path of the written file
        """
        config_file = self.home / CONFIG_FILENAME
        config_file.parent.mkdir(parents=True, exist_ok=True)

        config_dict = {
            "output_mode": self.output_mode.value,
            "structured_errors": self.structured_errors,
            "manifest_format": self.manifest_format,
            "log_level": self.log_level,
            "log_pretty": self.log_pretty,
            "reject_reserved": self.reject_reserved,
        }

        with open(config_file, "w") as f:
            yaml.dump(config_dict, f, default_flow_style=False, sort_keys=False)
        return config_file
