"""
Dispatcher: one request in, one result out.

State machine::

    AWAITING_REQUEST -> DECODING -> RESOLVING -> EXECUTING -> ENCODING -> DONE

A failure before EXECUTING (decode error, unknown id, invalid arguments)
jumps straight to ENCODING, so no handler runs for a request that could
not be resolved. A dispatcher serves exactly one request.
"""

import logging
from enum import Enum
from typing import IO, Any, Callable, Dict, List, Optional, Union

from .codec import Request, Result, decode
from .context import TRACE
from .errors import HandlerError, UnitError, UnknownOperation
from .registry import DESCRIBE_OPERATION, OperationDescriptor, OperationRegistry, normalize_output
from .schema import validate_arguments

logger = logging.getLogger(__name__)


class DispatchState(str, Enum):
    AWAITING_REQUEST = "awaiting_request"
    DECODING = "decoding"
    RESOLVING = "resolving"
    EXECUTING = "executing"
    ENCODING = "encoding"
    DONE = "done"


class Dispatcher:
    """
    Resolves and executes a single request against a registry.

    The reserved ``describe`` id always resolves to the ``describe``
    callable, whatever the registry holds.
    """

    def __init__(
        self,
        registry: OperationRegistry,
        describe: Callable[[], str],
        context: Any = None,
        *,
        validate: bool = True,
    ):
        """
        Initialize dispatcher.

        Args:
            registry: Registered operations
            describe: Returns the rendered manifest
            context: InvocationContext passed to handlers that request it
            validate: Check payloads against argument schemas before running;
                the coerced values are kept on ``arguments`` and handed to
                operations registered with ``pass_arguments``
        """
        self.registry = registry
        self.describe = describe
        self.context = context
        self.validate = validate
        self.state = DispatchState.AWAITING_REQUEST
        self.history: List[DispatchState] = [self.state]
        self.request: Optional[Request] = None
        self.arguments: Optional[Dict[str, Any]] = None

    @property
    def log(self) -> logging.Logger:
        return getattr(self.context, "log", None) or logger

    def _enter(self, state: DispatchState) -> None:
        self.state = state
        self.history.append(state)

    def dispatch(self, stream: Union[IO[str], IO[bytes]]) -> Result:
        """
        Decode a request from ``stream`` and dispatch it.

        Returns:
            Result holding the success payload or the error

        Raises:
            RuntimeError: If this dispatcher already served a request
        """
        self._start()
        self._enter(DispatchState.DECODING)
        try:
            request = decode(stream)
        except UnitError as e:
            return self._finish(Result.failure(e), operation_id=None)
        return self._run(request)

    def dispatch_request(self, request: Request) -> Result:
        """Dispatch an already decoded request."""
        self._start()
        self._enter(DispatchState.DECODING)
        return self._run(request)

    def _start(self) -> None:
        if self.state is not DispatchState.AWAITING_REQUEST:
            raise RuntimeError(
                "Dispatcher already served a request. "
                "Create a new dispatcher for each invocation."
            )

    def _run(self, request: Request) -> Result:
        self.request = request
        operation_id = request.operation_id

        self._enter(DispatchState.RESOLVING)
        if operation_id == DESCRIBE_OPERATION:
            self.log.debug("describe called")
            self._enter(DispatchState.EXECUTING)
            try:
                return self._finish(Result.success(self.describe()), operation_id)
            except UnitError as e:
                return self._finish(Result.failure(e), operation_id)

        try:
            descriptor = self._resolve(request)
        except UnitError as e:
            return self._finish(Result.failure(e), operation_id)

        self._enter(DispatchState.EXECUTING)
        try:
            output = self._execute(descriptor, request.payload)
        except UnitError as e:
            return self._finish(Result.failure(e), operation_id)
        return self._finish(Result.success(output), operation_id)

    def _resolve(self, request: Request) -> OperationDescriptor:
        descriptor = self.registry.lookup(request.operation_id)
        if descriptor is None:
            raise UnknownOperation(request.operation_id)
        if self.validate and descriptor.arguments:
            self.arguments = validate_arguments(request.payload, descriptor.arguments)
        return descriptor

    def _execute(self, descriptor: OperationDescriptor, payload: str) -> str:
        label = "command" if descriptor.kind.namespace == "commands" else "action"
        self.log.info(f"calling {label}", extra={"operation": descriptor.id})
        self.log.debug(f"calling {label}", extra={"payload": payload})

        try:
            value = descriptor.invoke(payload, self.context, self.arguments)
        except UnitError:
            raise
        except Exception as e:
            self.log.debug("handler raised", exc_info=True)
            raise HandlerError.wrap(e) from e

        return normalize_output(value)

    def _finish(self, result: Result, operation_id: Optional[str]) -> Result:
        self._enter(DispatchState.ENCODING)
        name = operation_id if operation_id is not None else "<undecoded>"

        if result.ok:
            self.log.log(TRACE, "operation response", extra={"operation": name, "output": result.output})
        else:
            error = result.error
            self.log.info("operation failed", extra={"operation": name, "kind": error.kind})
            self.log.debug("operation failed", extra={"operation": name, "error": error.message})

        self._enter(DispatchState.DONE)
        return result
