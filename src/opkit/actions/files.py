"""
File actions.

Each factory binds a handler to a safe root directory and returns a
descriptor ready for ``unit.register``. Paths in payloads never resolve
outside their root.
"""

import logging
import os
import shutil
from pathlib import Path
from typing import Any, Callable, Dict

from opkit.core.errors import HandlerError
from opkit.core.registry import OperationDescriptor, OperationKind
from opkit.core.schema import ArgumentSpec

from .paths import PathLike, safe_path

logger = logging.getLogger(__name__)

READ_FILE_ARGUMENTS = (
    ArgumentSpec("dir", description="the directory of the file", required=True),
    ArgumentSpec("name", description="the name of the file without the directory", required=True),
)

SAVE_FILE_ARGUMENTS = READ_FILE_ARGUMENTS + (
    ArgumentSpec("content", description="the contents of the file", required=True),
)

COPY_FILE_ARGUMENTS = (
    ArgumentSpec("src", description="the path of the source file", required=True),
    ArgumentSpec("dest", description="the path of the destination file", required=True),
)


def _read_file(safe_dir: PathLike) -> Callable[[Dict[str, Any]], str]:
    def handler(request: Dict[str, Any]) -> str:
        logger.debug(f"read-file dir={request['dir']} name={request['name']}")

        filename = safe_path(safe_dir, request["dir"], request["name"])
        try:
            data = filename.read_text(encoding="utf-8")
        except OSError as e:
            raise HandlerError(f"error while reading file at {filename}: {e}") from e

        logger.debug(f"File read successfully: {filename}")
        return data
    return handler


def _save_file(safe_dir: PathLike) -> Callable[[Dict[str, Any]], str]:
    def handler(request: Dict[str, Any]) -> str:
        logger.debug(f"save-file dir={request['dir']} name={request['name']}")

        filename = safe_path(safe_dir, request["dir"], request["name"])
        try:
            filename.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise HandlerError(
                f"error while making the destination directory at {filename.parent}: {e}"
            ) from e

        try:
            filename.write_text(request["content"], encoding="utf-8")
        except OSError as e:
            raise HandlerError(f"error while writing file at {filename}: {e}") from e

        logger.debug(f"File saved successfully: {filename}")
        return "file saved successfully"
    return handler


def _copy_file(safe_src: PathLike, safe_dest: PathLike) -> Callable[[Dict[str, Any]], str]:
    def handler(request: Dict[str, Any]) -> str:
        logger.debug(f"copy-file src={request['src']} dest={request['dest']}")

        src = safe_path(safe_src, "", request["src"])
        dest = safe_path(safe_dest, "", request["dest"])

        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise HandlerError(
                f"error while making the destination directory at {dest.parent}: {e}"
            ) from e

        try:
            with open(src, "rb") as src_file, open(dest, "wb") as dest_file:
                shutil.copyfileobj(src_file, dest_file)
                dest_file.flush()
                os.fsync(dest_file.fileno())
        except OSError as e:
            raise HandlerError(f"error while copying file from {src} to {dest}: {e}") from e

        logger.debug(f"File copied successfully: {src} -> {dest}")
        return "file copied successfully"
    return handler


def _list_directories(safe_dir: PathLike) -> Callable[[str], str]:
    def handler(payload: str) -> str:
        root = Path(safe_dir)
        if not root.is_dir():
            raise HandlerError(f"error while walking directory at {root}: not a directory")

        dirs = []
        for current, subdirs, _ in os.walk(root):
            # .git trees are never listed
            subdirs[:] = sorted(d for d in subdirs if d != ".git")
            dirs.append(os.path.abspath(current))
        return "\n".join(dirs)
    return handler


def read_file(safe_dir: PathLike) -> OperationDescriptor:
    """``read-file``: return a file's text. Arguments: dir, name."""
    return OperationDescriptor(
        id="read-file",
        display_name="read-file",
        description="reads a file",
        kind=OperationKind.ACTION,
        handler=_read_file(safe_dir),
        arguments=READ_FILE_ARGUMENTS,
        pass_arguments=True,
    )


def save_file(safe_dir: PathLike) -> OperationDescriptor:
    """``save-file``: write a file, creating parent directories. Arguments: dir, name, content."""
    return OperationDescriptor(
        id="save-file",
        display_name="save-file",
        description="saves a file",
        kind=OperationKind.ACTION,
        handler=_save_file(safe_dir),
        arguments=SAVE_FILE_ARGUMENTS,
        pass_arguments=True,
    )


def copy_file(safe_src: PathLike, safe_dest: PathLike) -> OperationDescriptor:
    """``copy-file``: copy from the source root to the destination root. Arguments: src, dest."""
    return OperationDescriptor(
        id="copy-file",
        display_name="copy-file",
        description="copies a file",
        kind=OperationKind.ACTION,
        handler=_copy_file(safe_src, safe_dest),
        arguments=COPY_FILE_ARGUMENTS,
        pass_arguments=True,
    )


def list_directories(safe_dir: PathLike) -> OperationDescriptor:
    """``list-directories``: newline-separated absolute paths of every directory under the root."""
    return OperationDescriptor(
        id="list-directories",
        display_name="list-directories",
        description="lists the directories in a directory",
        kind=OperationKind.ACTION,
        handler=_list_directories(safe_dir),
    )
