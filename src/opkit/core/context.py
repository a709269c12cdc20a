"""
Per-invocation logging context.

Each invocation opens its own log sink, hands an ``InvocationContext`` to
the dispatcher and to handlers that ask for it, and closes the sink on
every exit path. Nothing logging-related outlives the invocation.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator, Optional

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

PACKAGE_LOGGER = "opkit"

LEVEL_ABBREVIATIONS = {
    TRACE: "TRC",
    logging.DEBUG: "DBG",
    logging.INFO: "INF",
    logging.WARNING: "WRN",
    logging.ERROR: "ERR",
    logging.CRITICAL: "CRT",
}

# LogRecord attributes that are not user-supplied extra fields
_RECORD_ATTRS = set(vars(logging.makeLogRecord({}))) | {"message", "asctime", "unit"}


def _extra_fields(record: logging.LogRecord) -> dict:
    return {k: v for k, v in vars(record).items() if k not in _RECORD_ATTRS}


class PrettyFormatter(logging.Formatter):
    """Multi-line records: a header line then one ``- key: value`` line per field."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = self.formatTime(record, "%I:%M%p").lstrip("0")
        level = LEVEL_ABBREVIATIONS.get(record.levelno, "???")
        line = f"\n{timestamp} {level} {record.getMessage()}\n"
        for key, value in _extra_fields(record).items():
            line += f"  - {key}: {value}\n"
        if record.exc_info:
            line += self.formatException(record.exc_info) + "\n"
        return line.rstrip("\n")


class PlainFormatter(logging.Formatter):
    """Single-line records tagged with the unit id."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = self.formatTime(record, "%I:%M%p").lstrip("0")
        message = record.getMessage()
        for key, value in _extra_fields(record).items():
            message += f" {key}={value}"
        unit = getattr(record, "unit", "-")
        line = f"[{record.levelname}] ({unit}) {timestamp} {message}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class _UnitFilter(logging.Filter):
    def __init__(self, unit_id: str):
        super().__init__()
        self.unit_id = unit_id

    def filter(self, record: logging.LogRecord) -> bool:
        record.unit = self.unit_id
        return True


@dataclass
class InvocationContext:
    """
    State shared by everything that runs during one invocation.

    Attributes:
        unit_id: Id of the invoked unit
        log: Logger for the invocation (writes to the invocation sink)
        config: UnitConfig in effect
        log_file: Path of the open log file, if any
    """

    unit_id: str
    log: logging.Logger
    config: Any = None
    log_file: Optional[Path] = None
    _store: Any = field(default=None, init=False, repr=False)

    @property
    def store(self):
        """The unit's key/value store (opened on first use)."""
        if self._store is None:
            from opkit.store import ConfigStore

            self._store = ConfigStore.for_unit(self.unit_id, self.config)
        return self._store

    def trace(self, msg: str, **fields: Any) -> None:
        self.log.log(TRACE, msg, extra=fields)


@contextmanager
def invocation_log(unit_id: str, config: Any, logname: str = "units.log") -> Iterator[InvocationContext]:
    """
    Open the log sink for one invocation.

    The handler is attached to the package logger for the duration of the
    ``with`` block and always removed and closed on exit.

    Args:
        unit_id: Id of the invoked unit
        config: UnitConfig providing log_dir, log level and format
        logname: Log file name inside the log directory

    Yields:
        InvocationContext bound to the open sink

    Raises:
        OSError: If the log directory or file cannot be created
    """
    log_dir = Path(config.log_dir)
    log_dir.mkdir(mode=0o700, parents=True, exist_ok=True)
    log_file = log_dir / logname

    handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
    handler.setFormatter(PrettyFormatter() if config.log_pretty else PlainFormatter())
    handler.addFilter(_UnitFilter(unit_id))
    level = config.log_level_number
    handler.setLevel(level)

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    previous_level = package_logger.level
    package_logger.addHandler(handler)
    package_logger.setLevel(level)

    context = InvocationContext(
        unit_id=unit_id,
        log=logging.getLogger(f"{PACKAGE_LOGGER}.unit.{unit_id}"),
        config=config,
        log_file=log_file,
    )
    try:
        yield context
    finally:
        package_logger.removeHandler(handler)
        package_logger.setLevel(previous_level)
        handler.close()
