"""
Protocol core: codec, registry, manifest builder and dispatcher.

Architecture:
- codec.py: request decoding and result encoding
- registry.py: operation descriptors and lookup
- schema.py: argument schemas and payload validation
- manifest.py: capability manifest projection
- cron.py: cron summaries for the manifest
- dispatcher.py: single-request state machine
- context.py: per-invocation logging context
- errors.py: error kinds
"""

from .codec import (
    DEFAULT_DELIMITER,
    Encoded,
    OutputMode,
    Request,
    Result,
    build_request,
    decode,
    encode,
)
from .context import TRACE, InvocationContext, invocation_log
from .cron import next_run, summarize_cron
from .dispatcher import DispatchState, Dispatcher
from .errors import (
    DecodeError,
    EncodingError,
    HandlerError,
    HandlerExitError,
    HandlerTimeout,
    LogSinkError,
    ReservedOperationError,
    UnitError,
    UnknownOperation,
)
from .manifest import Card, Manifest, Message, Quicklink, build_manifest, render_manifest
from .registry import (
    DESCRIBE_OPERATION,
    UNORDERED_INDEX,
    OperationDescriptor,
    OperationKind,
    OperationRegistry,
    normalize_output,
    slugify,
)
from .schema import ArgumentSpec, validate_arguments

__all__ = [
    "DEFAULT_DELIMITER",
    "Encoded",
    "OutputMode",
    "Request",
    "Result",
    "build_request",
    "decode",
    "encode",
    "TRACE",
    "InvocationContext",
    "invocation_log",
    "next_run",
    "summarize_cron",
    "DispatchState",
    "Dispatcher",
    "DecodeError",
    "EncodingError",
    "HandlerError",
    "HandlerExitError",
    "HandlerTimeout",
    "LogSinkError",
    "ReservedOperationError",
    "UnitError",
    "UnknownOperation",
    "Card",
    "Manifest",
    "Message",
    "Quicklink",
    "build_manifest",
    "render_manifest",
    "DESCRIBE_OPERATION",
    "UNORDERED_INDEX",
    "OperationDescriptor",
    "OperationKind",
    "OperationRegistry",
    "normalize_output",
    "slugify",
    "ArgumentSpec",
    "validate_arguments",
]
