"""
Error kinds raised while serving a unit request.

Every failure that reaches the host has a kind: the invocation log could
not be opened (``log_sink``), the request could not be decoded
(``decode``), the operation is unknown (``unknown_operation``), the handler
failed (``handler``) or the result could not be serialized (``encoding``).
All of them end the invocation.
"""

from typing import Any, Dict, Optional


class UnitError(Exception):
    """Base exception for all invocation errors."""

    kind = "unit_error"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the structured error envelope body."""
        return {"kind": self.kind, "message": self.message}


class DecodeError(UnitError):
    """Raised when the request stream is malformed, truncated or unreadable."""

    kind = "decode"


class UnknownOperation(UnitError):
    """Raised when the operation id is neither registered nor reserved."""

    kind = "unknown_operation"

    def __init__(self, operation_id: str):
        self.operation_id = operation_id
        super().__init__(f"unknown operation: {operation_id}")

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["operation"] = self.operation_id
        return data


class HandlerError(UnitError):
    """
    Raised when an operation handler reports failure.

    The message is the handler's own error text, unchanged. The wrapped
    exception, if any, is kept on ``cause``.
    """

    kind = "handler"
    sub_cause: Optional[str] = None

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(message)

    @classmethod
    def wrap(cls, exc: BaseException) -> "HandlerError":
        """Wrap an arbitrary handler exception, keeping its text verbatim."""
        if isinstance(exc, HandlerError):
            return exc
        return cls(str(exc), cause=exc)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        if self.sub_cause:
            data["cause"] = self.sub_cause
        return data


class HandlerTimeout(HandlerError):
    """Raised when an external process exceeds its bounded wait."""

    sub_cause = "timeout"

    def __init__(self, command: str, timeout: float):
        self.command = command
        self.timeout = timeout
        super().__init__(f"command timed out after {timeout:g}s: {command}")


class HandlerExitError(HandlerError):
    """
    Raised when an external process exits with a non-zero status.

    The message is the process's standard error text, verbatim.
    """

    sub_cause = "exit"

    def __init__(self, stderr: str, returncode: int):
        self.stderr = stderr
        self.returncode = returncode
        super().__init__(stderr)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["returncode"] = self.returncode
        return data


class LogSinkError(UnitError):
    """Raised when the per-invocation log file cannot be opened."""

    kind = "log_sink"

    def __init__(self, cause: OSError):
        self.cause = cause
        super().__init__(f"error while creating logger: {cause}")


class EncodingError(UnitError):
    """Raised when a manifest or handler result cannot be serialized."""

    kind = "encoding"


class ReservedOperationError(ValueError):
    """Raised when registering a reserved operation id is rejected."""

    def __init__(self, operation_id: str):
        self.operation_id = operation_id
        super().__init__(
            f"Operation id '{operation_id}' is reserved. "
            "Choose a different id for this operation."
        )
