"""Confinement of request paths to a safe root directory."""

import logging
import os
from pathlib import Path
from typing import Union

from opkit.core.errors import HandlerError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def _within(root: Path, candidate: Path) -> bool:
    return candidate == root or root in candidate.parents


def _relative(value: str, prefix: str) -> str:
    """
    Drop a leading ``prefix`` and any leading separators.

    The prefix only matches whole path components: ``notes`` is dropped from
    ``notes/a.txt`` but not from ``notes.txt`` or ``notes-archive/a.txt``.
    """
    seps = "/" + os.sep
    prefix = prefix.rstrip(seps)
    if prefix:
        if value == prefix:
            value = ""
        elif value.startswith(prefix) and value[len(prefix)] in seps:
            value = value[len(prefix):]
    return value.lstrip(seps)


def safe_path(safe_dir: PathLike, base_dir: str, name: str) -> Path:
    """
    Resolve ``base_dir``/``name`` inside ``safe_dir``.

    Both parts may already be prefixed with the safe directory (or ``name``
    with ``base_dir``); the prefix is dropped before joining.

    Raises:
        HandlerError: If the resolved path escapes the safe directory
    """
    root = Path(safe_dir).resolve()
    rel_dir = _relative(base_dir or "", str(safe_dir))
    rel_name = _relative(name or "", base_dir or "")

    candidate = (root / rel_dir / rel_name).resolve()
    if not _within(root, candidate):
        logger.error(f"Path {candidate} is not within the safe directory {root}")
        raise HandlerError(f"path is not within the safe directory: {candidate}")
    return candidate


def safe_directory(safe_dir: PathLike, directory: str) -> Path:
    """
    Resolve ``directory`` inside ``safe_dir``.

    Raises:
        HandlerError: If the resolved directory escapes the safe directory
    """
    root = Path(safe_dir).resolve()
    candidate = (root / _relative(directory or "", str(safe_dir))).resolve()
    if not _within(root, candidate):
        logger.error(f"Directory {candidate} is not within the safe directory {root}")
        raise HandlerError(f"path is not within the safe directory: {candidate}")
    return candidate
