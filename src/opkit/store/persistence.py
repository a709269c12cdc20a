"""Atomic file operations for unit data."""

import os
import tempfile
from pathlib import Path


def atomic_write(file_path: Path, content: str):
    """
    Write content to file atomically.

    Writes a temporary file in the same directory, fsyncs it and renames it
    over the target, so readers never see a half-written file.

    Args:
        file_path: Target file path
        content: String content to write

    Raises:
        OSError: If write or rename fails
    """
    file_path.parent.mkdir(parents=True, exist_ok=True)

    # same directory keeps the rename on one filesystem
    temp_fd, temp_path = tempfile.mkstemp(
        dir=file_path.parent,
        prefix=f".{file_path.name}.tmp."
    )

    closed = False
    try:
        os.write(temp_fd, content.encode("utf-8"))
        os.fsync(temp_fd)
        os.close(temp_fd)
        closed = True
        os.replace(temp_path, file_path)
    except BaseException:
        if not closed:
            os.close(temp_fd)
        if os.path.exists(temp_path):
            os.unlink(temp_path)
        raise
