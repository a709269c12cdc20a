"""
Built-in operation handlers.

Each factory takes its safe root directories and returns an
OperationDescriptor to hand to ``unit.register``:

    unit.register(read_file("/srv/notes"))
"""

from typing import Callable, Dict

from opkit.core.registry import OperationDescriptor

from .build import build, run_command
from .files import copy_file, list_directories, read_file, save_file
from .paths import safe_directory, safe_path

STANDARD_ACTIONS: Dict[str, Callable[..., OperationDescriptor]] = {
    "read-file": read_file,
    "save-file": save_file,
    "copy-file": copy_file,
    "list-directories": list_directories,
    "build": build,
}

__all__ = [
    "STANDARD_ACTIONS",
    "build",
    "copy_file",
    "list_directories",
    "read_file",
    "run_command",
    "safe_directory",
    "safe_path",
    "save_file",
]
