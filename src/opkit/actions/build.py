"""
Build action.

Compiles a Go program found in a working directory under the source root
and places the binary under the destination root. Each toolchain step runs
with its own timeout; a failing step reports its stderr verbatim.
"""

import logging
import subprocess
from pathlib import Path
from typing import Any, Callable, Dict, List

from opkit.core.errors import HandlerExitError, HandlerTimeout
from opkit.core.registry import OperationDescriptor, OperationKind
from opkit.core.schema import ArgumentSpec

from .paths import PathLike, safe_directory, safe_path

logger = logging.getLogger(__name__)

DEFAULT_STEP_TIMEOUT = 60.0

BUILD_ARGUMENTS = (
    ArgumentSpec("workingDir", description="the directory containing main.go", required=True),
    ArgumentSpec("outputDir", description="the directory to write the binary to", required=True),
    ArgumentSpec("outputName", description="the file name of the binary", required=True),
)


def run_command(argv: List[str], cwd: PathLike, timeout: float = DEFAULT_STEP_TIMEOUT) -> str:
    """
    Run a command to completion and return its stdout.

    Args:
        argv: Program and arguments
        cwd: Working directory
        timeout: Seconds before the process is killed

    Returns:
        Captured stdout

    Raises:
        HandlerTimeout: If the command outlives its timeout
        HandlerExitError: If the command exits non-zero (message is its stderr)
    """
    command = " ".join(argv)
    logger.debug(f"Running '{command}' in {cwd}")
    try:
        completed = subprocess.run(
            argv,
            cwd=str(cwd),
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as e:
        logger.error(f"'{command}' timed out after {timeout}s")
        raise HandlerTimeout(command, timeout) from e
    except OSError as e:
        # missing executable behaves like a failed step
        logger.error(f"Failed to start '{command}': {e}")
        raise HandlerExitError(str(e), 127) from e

    if completed.returncode != 0:
        logger.error(f"'{command}' exited with {completed.returncode}")
        raise HandlerExitError(completed.stderr, completed.returncode)
    return completed.stdout


def _build(safe_src: PathLike, safe_dest: PathLike, timeout: float) -> Callable[[Dict[str, Any]], str]:
    def handler(request: Dict[str, Any]) -> str:
        working_dir = safe_directory(safe_src, request["workingDir"])
        output = safe_path(safe_dest, request["outputDir"], request["outputName"])
        output.parent.mkdir(parents=True, exist_ok=True)

        logger.info(f"Building {working_dir} -> {output}")
        run_command(["go", "mod", "tidy"], working_dir, timeout)
        run_command(["goimports", "-w", "main.go"], working_dir, timeout)
        run_command(["go", "build", "-o", str(output), "main.go"], working_dir, timeout)
        return str(Path(output))
    return handler


def build(safe_src: PathLike, safe_dest: PathLike, timeout: float = DEFAULT_STEP_TIMEOUT) -> OperationDescriptor:
    """``build``: compile workingDir into outputDir/outputName and return the binary path."""
    return OperationDescriptor(
        id="build",
        display_name="build",
        description="builds a go program",
        kind=OperationKind.ACTION,
        handler=_build(safe_src, safe_dest, timeout),
        arguments=BUILD_ARGUMENTS,
        pass_arguments=True,
    )
