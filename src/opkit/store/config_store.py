"""
Flat-file key/value store for unit settings.

Each unit owns one ``<units_dir>/<unit-id>.config`` file holding
``key=value`` lines. Writes take a file lock so two invocations of the
same unit cannot interleave a read-modify-write.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional

from filelock import FileLock, Timeout as FilelockTimeout

from .persistence import atomic_write

logger = logging.getLogger(__name__)

DEFAULT_LOCK_TIMEOUT = 10


class ConfigStoreError(Exception):
    """Raised when the store file cannot be read, locked or written."""
    pass


class ConfigStore:
    """Key/value settings of one unit."""

    def __init__(self, path: Path, lock_timeout: float = DEFAULT_LOCK_TIMEOUT):
        """
        Initialize store.

        Args:
            path: Store file (created on first write)
            lock_timeout: Seconds to wait for the write lock
        """
        self.path = Path(path)
        self.lock_file = self.path.with_name(f".{self.path.name}.lock")
        self.lock_timeout = lock_timeout

    @classmethod
    def for_unit(cls, unit_id: str, config) -> "ConfigStore":
        """Create the store of a unit inside the configured units directory."""
        return cls(Path(config.units_dir) / f"{unit_id}.config")

    def _read_lines(self) -> List[str]:
        if not self.path.exists():
            return []
        try:
            # newline="" keeps a stored "\r" from being translated on read
            with open(self.path, encoding="utf-8", newline="") as f:
                text = f.read()
        except OSError as e:
            raise ConfigStoreError(f"error while opening config file: {e}") from e
        # only "\n" separates records; other line breaks are value text
        lines = text.split("\n")
        if lines and lines[-1] == "":
            lines.pop()
        return lines

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """
        Read one value.

        Args:
            key: Setting name
            default: Returned when the key (or the whole file) is missing

        Returns:
            Stored value or ``default``
        """
        for line in self._read_lines():
            k, sep, v = line.partition("=")
            if sep and k == key:
                return v
        return default

    def as_map(self) -> Dict[str, str]:
        """Return every stored setting (later duplicates win)."""
        values: Dict[str, str] = {}
        for line in self._read_lines():
            k, sep, v = line.partition("=")
            if sep:
                values[k] = v
        return values

    def set(self, key: str, value: str) -> None:
        """
        Store one value, replacing it in place or appending it.

        Lines for other keys (and lines that are not settings) are kept.

        Raises:
            ValueError: If key or value cannot be represented in the file
            ConfigStoreError: If the lock or the write fails
        """
        if not key or "=" in key or "\n" in key:
            raise ValueError(f"Invalid config key {key!r}: must be non-empty without '=' or newlines")
        if "\n" in value:
            raise ValueError(f"Invalid value for config key '{key}': newlines are not allowed")

        self.path.parent.mkdir(parents=True, exist_ok=True)
        lock = FileLock(self.lock_file, timeout=self.lock_timeout)
        try:
            with lock.acquire(timeout=self.lock_timeout):
                lines = self._read_lines()
                updated = False
                for i, line in enumerate(lines):
                    k, sep, _ = line.partition("=")
                    if sep and k == key:
                        lines[i] = f"{key}={value}"
                        updated = True

                if not updated:
                    lines.append(f"{key}={value}")

                atomic_write(self.path, "".join(f"{line}\n" for line in lines))
                logger.debug(f"Stored config key '{key}' in {self.path}")
        except FilelockTimeout:
            raise ConfigStoreError(
                f"Config file {self.path} is locked by another process. "
                f"Retry in a moment or increase timeout (current: {self.lock_timeout}s)."
            )
        except OSError as e:
            raise ConfigStoreError(f"error while writing config file: {e}") from e
