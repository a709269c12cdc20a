"""
Operation registry.

Maps operation ids to ``OperationDescriptor`` entries. Every operation kind
(action, command, cron action, navigation action) is the same descriptor
type with a ``kind`` tag, so lookup and manifest projection treat them
uniformly.
"""

import dataclasses
import json
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from .errors import EncodingError, ReservedOperationError, UnknownOperation
from .schema import ArgumentSpec, validate_arguments

logger = logging.getLogger(__name__)

DESCRIBE_OPERATION = "describe"
RESERVED_OPERATION_IDS = frozenset({DESCRIBE_OPERATION})

UNORDERED_INDEX = -1
"""Display index of operations that take no part in navigation ordering."""

URL_PATH_TEMPLATE = "/extension/action/{unit_id}/{operation_id}"

Handler = Callable[..., Any]

_SLUG_STRIP = re.compile(r"[^a-z0-9\-]+")


def slugify(value: str) -> str:
    """
    Normalize a name into an operation/unit id.

    Lowercases, turns spaces into hyphens and strips everything that is not
    an ASCII letter, digit or hyphen.

    Examples:
        >>> slugify("Read File!")
        'read-file'
    """
    s = value.lower().replace(" ", "-")
    return _SLUG_STRIP.sub("", s)


class OperationKind(str, Enum):
    """Discriminant of OperationDescriptor."""

    ACTION = "action"
    COMMAND = "command"
    CRON_ACTION = "cron"
    NAVIGATION_ACTION = "navigation"

    @property
    def ordered(self) -> bool:
        """Whether operations of this kind get a display index."""
        return self in (OperationKind.ACTION, OperationKind.NAVIGATION_ACTION)

    @property
    def namespace(self) -> str:
        return "commands" if self is OperationKind.COMMAND else "actions"


@dataclass(frozen=True)
class OperationDescriptor:
    """
    One invocable capability of a unit.

    Attributes:
        id: Operation id, unique per namespace (already slug-normalized)
        display_name: Human-readable name
        description: Human-readable description
        kind: Operation kind
        handler: Callable receiving the raw payload, or the validated
            argument mapping when ``pass_arguments`` is set (and the
            invocation context when ``pass_context`` is set)
        arguments: Ordered argument schema
        cron: Cron expression (CRON_ACTION only)
        pass_context: Call ``handler(payload, context)`` instead of
            ``handler(payload)``
        pass_arguments: Pass the coerced argument mapping instead of the
            raw payload text
        url_path: Host routing path (derived at registration)
        index: Display order among actions (derived at registration)
    """

    id: str
    display_name: str
    description: str
    kind: OperationKind
    handler: Handler
    arguments: Tuple[ArgumentSpec, ...] = ()
    cron: Optional[str] = None
    pass_context: bool = False
    pass_arguments: bool = False
    url_path: str = ""
    index: int = UNORDERED_INDEX

    def __post_init__(self):
        object.__setattr__(self, "kind", OperationKind(self.kind))
        object.__setattr__(self, "arguments", tuple(self.arguments))

        if self.kind is OperationKind.CRON_ACTION and not self.cron:
            raise ValueError(f"Cron operation '{self.id}' requires a cron expression")
        if self.kind is not OperationKind.CRON_ACTION and self.cron is not None:
            raise ValueError(
                f"Operation '{self.id}' of kind '{self.kind.value}' cannot have a cron expression"
            )

    @property
    def required_arguments(self) -> List[str]:
        return [spec.name for spec in self.arguments if spec.required]

    def invoke(self, payload: str, context: Any = None, arguments: Optional[Dict[str, Any]] = None) -> Any:
        """
        Call the handler with the payload.

        With ``pass_arguments`` the handler gets ``arguments`` (the mapping
        already validated by the caller), validating ``payload`` here when
        none was given.

        Raises:
            DecodeError: If ``payload`` fails the argument schema
        """
        data: Any = payload
        if self.pass_arguments:
            data = arguments if arguments is not None else validate_arguments(payload, self.arguments)
        if self.pass_context:
            return self.handler(data, context)
        return self.handler(data)


def normalize_output(value: Any) -> str:
    """
    Turn a handler return value into the raw success payload.

    Strings pass through verbatim and ``None`` becomes "". Mappings,
    sequences, dataclasses and objects with ``to_dict()`` are serialized
    as compact JSON.

    Raises:
        EncodingError: If the value cannot be serialized
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bytes):
        try:
            return value.decode("utf-8")
        except UnicodeDecodeError as e:
            raise EncodingError(f"error while marshaling response: {e}") from e

    if hasattr(value, "to_dict"):
        value = value.to_dict()
    elif dataclasses.is_dataclass(value) and not isinstance(value, type):
        value = dataclasses.asdict(value)

    try:
        return json.dumps(value, separators=(",", ":"))
    except (TypeError, ValueError) as e:
        raise EncodingError(f"error while marshaling response: {e}") from e


class OperationRegistry:
    """
    Registry of a unit's operations.

    Actions (plain, cron and navigation) and commands live in separate
    namespaces. Lookup checks actions first, then commands, so an id present
    in both resolves to the action.
    """

    def __init__(self, unit_id: str, reject_reserved: bool = False):
        """
        Initialize an empty registry.

        Args:
            unit_id: Id of the owning unit (used in derived URL paths)
            reject_reserved: Raise on reserved ids instead of letting the
                built-in operation shadow them
        """
        self.unit_id = unit_id
        self.reject_reserved = reject_reserved
        self._actions: Dict[str, OperationDescriptor] = {}
        self._commands: Dict[str, OperationDescriptor] = {}
        self._ordered_ids: List[str] = []

    def url_path(self, operation_id: str) -> str:
        return URL_PATH_TEMPLATE.format(unit_id=self.unit_id, operation_id=operation_id)

    def _index_for(self, descriptor: OperationDescriptor) -> int:
        if not descriptor.kind.ordered:
            return UNORDERED_INDEX
        if descriptor.id not in self._ordered_ids:
            self._ordered_ids.append(descriptor.id)
        return self._ordered_ids.index(descriptor.id)

    def register(self, descriptor: OperationDescriptor) -> OperationDescriptor:
        """
        Insert or overwrite an operation.

        ``url_path`` and ``index`` are derived here; any values set by the
        caller are replaced. Registering an id that already exists in the
        same namespace replaces the previous entry.

        Args:
            descriptor: Operation to register

        Returns:
            The stored descriptor, with derived fields filled in

        Raises:
            ReservedOperationError: If the id is reserved and the registry
                rejects reserved ids
        """
        if descriptor.id in RESERVED_OPERATION_IDS:
            if self.reject_reserved:
                raise ReservedOperationError(descriptor.id)
            logger.warning(
                f"Operation '{descriptor.id}' is shadowed by the built-in "
                f"'{descriptor.id}' operation and will never be invoked"
            )

        namespace = self._commands if descriptor.kind is OperationKind.COMMAND else self._actions
        previous = namespace.get(descriptor.id)

        stored = dataclasses.replace(
            descriptor,
            url_path=self.url_path(descriptor.id),
            index=self._index_for(descriptor),
        )

        if previous is not None:
            logger.debug(f"Overwriting operation '{descriptor.id}' ({descriptor.kind.value})")
        namespace[descriptor.id] = stored
        return stored

    def lookup(self, operation_id: str) -> Optional[OperationDescriptor]:
        """Find an operation by exact id, actions before commands."""
        descriptor = self._actions.get(operation_id)
        if descriptor is None:
            descriptor = self._commands.get(operation_id)
        return descriptor

    def resolve_and_invoke(self, operation_id: str, payload: str, context: Any = None) -> Any:
        """
        Look up an operation and call its handler.

        Whatever the handler returns or raises reaches the caller unchanged.

        Raises:
            UnknownOperation: If no operation has this id
        """
        descriptor = self.lookup(operation_id)
        if descriptor is None:
            raise UnknownOperation(operation_id)
        return descriptor.invoke(payload, context)

    def actions(self) -> List[OperationDescriptor]:
        return list(self._actions.values())

    def commands(self) -> List[OperationDescriptor]:
        return list(self._commands.values())

    def __iter__(self) -> Iterator[OperationDescriptor]:
        yield from self._actions.values()
        yield from self._commands.values()

    def __len__(self) -> int:
        return len(self._actions) + len(self._commands)

    def __contains__(self, operation_id: object) -> bool:
        return operation_id in self._actions or operation_id in self._commands
