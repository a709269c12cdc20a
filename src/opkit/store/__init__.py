"""Persistent key/value settings for units."""

from .config_store import ConfigStore, ConfigStoreError
from .persistence import atomic_write

__all__ = [
    "ConfigStore",
    "ConfigStoreError",
    "atomic_write",
]
