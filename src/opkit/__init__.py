"""
opkit: operation units served over a one-shot stdio protocol.

A unit is a small executable that a host runs once per request. The host
writes ``<operation-id>\\n<delimiter>\\n<payload>`` to its stdin and reads
the response from stdout.

Architecture:
- core/: codec, registry, manifest builder and dispatcher
- units/: compound (Unit) and simple (SimpleUnit) facades
- actions/: built-in file and build handlers
- store/: per-unit key/value settings
- config.py: shared configuration and environment overrides
- cli/: developer command line
"""

__all__ = [
    "ActionResponse",
    "ArgumentSpec",
    "Card",
    "HandlerError",
    "SimpleUnit",
    "Unit",
    "UnitConfig",
    "UnitError",
]

__version__ = "0.1.0"

from .config import UnitConfig
from .core import ArgumentSpec, Card, HandlerError, UnitError
from .units import ActionResponse, SimpleUnit, Unit
