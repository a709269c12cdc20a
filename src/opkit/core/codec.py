"""
Payload codec for the line-delimited stdio protocol.

Request layout::

    <operation-id>
    <delimiter line, ignored>
    <payload line 1>
    <payload line 2>
    ...

The codec knows nothing about registered operations. It turns a raw stream
into a ``Request`` and a ``Result`` back into bytes for stdout/stderr.
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import IO, Any, Optional, Union

from .errors import DecodeError, UnitError

DEFAULT_DELIMITER = "---"


@dataclass(frozen=True)
class Request:
    """One decoded request. Lives for the duration of a single dispatch."""

    operation_id: str
    payload: str = ""


@dataclass
class Result:
    """
    Outcome of a single dispatch.

    Exactly one of ``output`` and ``error`` is set.
    """

    output: Optional[str] = None
    error: Optional[UnitError] = None

    def __post_init__(self):
        if (self.output is None) == (self.error is None):
            raise ValueError("Result requires exactly one of output or error")

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, output: str) -> "Result":
        """Create success result."""
        return cls(output=output)

    @classmethod
    def failure(cls, error: UnitError) -> "Result":
        """Create error result."""
        return cls(error=error)


class OutputMode(str, Enum):
    """
    How results are written back to the host.

    LEGACY writes success and error text to stdout and always exits 0.
    STRICT writes errors to stderr, leaves stdout empty and exits 1.
    """

    LEGACY = "legacy"
    STRICT = "strict"


@dataclass(frozen=True)
class Encoded:
    """Bytes destined for each output channel plus the process exit status."""

    stdout: bytes = b""
    stderr: bytes = b""
    exit_code: int = 0

    def write(self, stdout: IO[Any], stderr: IO[Any]) -> None:
        """Write both channels to binary or text streams and flush them."""
        _write_stream(stdout, self.stdout)
        _write_stream(stderr, self.stderr)


def _write_stream(stream: IO[Any], data: bytes) -> None:
    if not data:
        return
    target = getattr(stream, "buffer", None)
    if target is not None:
        target.write(data)
    else:
        try:
            stream.write(data)
        except TypeError:
            stream.write(data.decode("utf-8"))
    stream.flush()


def _read_text(stream: Union[IO[str], IO[bytes]]) -> str:
    try:
        data = stream.read()
    except OSError as e:
        raise DecodeError(f"error while reading request: {e}") from e

    if isinstance(data, bytes):
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecodeError(f"error while reading request: {e}") from e
    return data


def decode(stream: Union[IO[str], IO[bytes]]) -> Request:
    """
    Decode one request from a stream.

    Line 1 is the operation id, compared verbatim later on. Line 2 is
    dropped whatever it holds. The remaining lines are joined with ``\\n``
    to rebuild the payload; a final line terminator is not part of it.
    Lines may end in ``\\r\\n``; the ``\\r`` is dropped with the terminator.

    Args:
        stream: Text or binary stream positioned at the start of a request

    Returns:
        Decoded Request (payload is "" when the stream ends early)

    Raises:
        DecodeError: If the stream cannot be read or holds no request at all
    """
    text = _read_text(stream)
    if text == "":
        raise DecodeError("error while reading request: empty request stream")

    # CRLF hosts: a "\r" just before "\n" belongs to the terminator
    lines = text.replace("\r\n", "\n").split("\n")
    if lines[-1] == "":
        lines.pop()

    operation_id = lines[0] if lines else ""
    payload = "\n".join(lines[2:])
    return Request(operation_id=operation_id, payload=payload)


def build_request(
    operation_id: str,
    payload: str = "",
    delimiter: str = DEFAULT_DELIMITER,
) -> str:
    """
    Build raw request text the way a host writes it.

    Every payload line is written with its own ``\\n`` terminator, so
    ``decode`` restores ``payload`` exactly, embedded and trailing newlines
    included.
    """
    parts = [operation_id, delimiter] + payload.split("\n")
    return "".join(f"{part}\n" for part in parts)


def _error_text(error: UnitError, structured_errors: bool) -> str:
    if structured_errors:
        return json.dumps({"error": error.to_dict()})
    return error.message


def encode(
    result: Result,
    mode: OutputMode = OutputMode.LEGACY,
    structured_errors: bool = False,
) -> Encoded:
    """
    Encode a Result for the host.

    Args:
        result: Dispatch outcome
        mode: LEGACY (single channel, default) or STRICT (split channel)
        structured_errors: Emit errors as a JSON envelope carrying the kind

    Returns:
        Encoded bytes per channel and the exit status
    """
    mode = OutputMode(mode)

    if result.ok:
        return Encoded(stdout=result.output.encode("utf-8"))

    text = _error_text(result.error, structured_errors).encode("utf-8")
    if mode is OutputMode.STRICT:
        return Encoded(stderr=text, exit_code=1)
    return Encoded(stdout=text)
