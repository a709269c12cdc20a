"""
Unit base class.

A unit is one process answering one request. ``BaseUnit`` owns the
registry and the stdio wiring; subclasses decide which registration calls
exist and which manifest shape they publish.
"""

import io
import sys
from contextlib import ExitStack
from typing import IO, Any, List, Optional, Union

from opkit.config import UnitConfig
from opkit.core.codec import Encoded, Result, build_request, encode
from opkit.core.context import invocation_log
from opkit.core.dispatcher import Dispatcher
from opkit.core.errors import LogSinkError
from opkit.core.manifest import Card, Manifest, build_manifest, render_manifest
from opkit.core.registry import OperationDescriptor, OperationRegistry, slugify

Stream = Union[IO[str], IO[bytes]]


class BaseUnit:
    """
    Shared behaviour of simple and compound units.

    Attributes:
        id: Unit id (slug of the name unless given explicitly)
        name: Display name
        description: Human-readable description
        version: Optional version published in the manifest
        config: UnitConfig in effect
        registry: Registered operations
    """

    compound = True
    logname = "units.log"

    def __init__(
        self,
        name: str,
        description: str = "",
        *,
        unit_id: Optional[str] = None,
        version: Optional[str] = None,
        config: Optional[UnitConfig] = None,
    ):
        self.id = unit_id if unit_id is not None else slugify(name)
        self.name = name
        self.description = description
        self.version = version
        self.config = config if config is not None else UnitConfig.load()
        self.registry = OperationRegistry(self.id, reject_reserved=self.config.reject_reserved)
        self.cards: List[Card] = []

    def __str__(self) -> str:
        return f"({self.id})"

    def register(self, descriptor: OperationDescriptor) -> OperationDescriptor:
        """Register a prebuilt descriptor (e.g. a built-in action)."""
        return self.registry.register(descriptor)

    def describe(self, now=None) -> Manifest:
        """Build the manifest from the current registry."""
        return build_manifest(
            self.id,
            self.name,
            self.description,
            self.registry,
            cards=self.cards,
            compound=self.compound,
            version=self.version,
            now=now,
        )

    def _render_manifest(self) -> str:
        return render_manifest(self.describe(), self.config.manifest_format)

    def run(self, stream: Stream) -> Result:
        """
        Serve one request from ``stream`` and return the Result.

        The invocation log is opened before decoding and closed before this
        returns, whatever the outcome.
        """
        with ExitStack() as stack:
            try:
                context = stack.enter_context(invocation_log(self.id, self.config, self.logname))
            except OSError as e:
                return Result.failure(LogSinkError(e))

            dispatcher = Dispatcher(self.registry, self._render_manifest, context)
            return dispatcher.dispatch(stream)

    def execute(self, stream: Stream) -> Encoded:
        """Serve one request and encode the outcome per the configured output mode."""
        result = self.run(stream)
        return encode(result, self.config.output_mode, self.config.structured_errors)

    def respond(
        self,
        stdin: Optional[Stream] = None,
        stdout: Optional[IO[Any]] = None,
        stderr: Optional[IO[Any]] = None,
    ) -> int:
        """
        Read the request from stdin, write the response and return the exit status.

        Args:
            stdin: Request stream (default: sys.stdin)
            stdout: Success channel (default: sys.stdout)
            stderr: Error channel in strict mode (default: sys.stderr)
        """
        stdin = stdin if stdin is not None else getattr(sys.stdin, "buffer", sys.stdin)
        encoded = self.execute(stdin)
        encoded.write(stdout or sys.stdout, stderr or sys.stderr)
        return encoded.exit_code

    def main(self) -> None:
        """Entry point for unit executables: respond, then exit with its status."""
        raise SystemExit(self.respond())

    def test(self, stream: Stream) -> str:
        """Serve one request and return the single-channel text (success or error)."""
        result = self.run(stream)
        return result.output if result.ok else result.error.message

    def payload(self, operation_id: str, data: str = "") -> io.StringIO:
        """Build a request stream for ``operation_id``. Useful for testing."""
        return io.StringIO(build_request(operation_id, data, delimiter=""))
