"""
Argument schemas for operations.

Each operation declares an ordered list of ``ArgumentSpec``. The same list
drives payload validation before a handler runs and the parameter schema
published in the manifest.
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Sequence, Tuple

from .errors import DecodeError

ARGUMENT_TYPES = ("string", "integer", "number", "boolean", "array", "object")


@dataclass(frozen=True)
class ArgumentSpec:
    """
    One named argument of an operation.

    Attributes:
        name: Field name in the JSON payload
        type: One of ARGUMENT_TYPES (default: "string")
        description: Human-readable description
        enum: Allowed values; empty means unrestricted
        required: Whether the field must be present
    """

    name: str
    type: str = "string"
    description: str = ""
    enum: Tuple[Any, ...] = ()
    required: bool = False

    def __post_init__(self):
        if self.type not in ARGUMENT_TYPES:
            raise ValueError(
                f"Invalid argument type '{self.type}' for '{self.name}'. "
                f"Must be one of: {', '.join(ARGUMENT_TYPES)}."
            )
        # accept lists from callers, keep the dataclass hashable
        object.__setattr__(self, "enum", tuple(self.enum))

    def to_property(self) -> Dict[str, Any]:
        """Project to a JSON-schema property (enum omitted when empty)."""
        prop: Dict[str, Any] = {"type": self.type, "description": self.description}
        if self.enum:
            prop["enum"] = list(self.enum)
        return prop


def _coerce(spec: ArgumentSpec, value: Any) -> Any:
    kind = spec.type

    if kind == "string":
        if isinstance(value, str):
            return value
    elif kind == "integer":
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str):
            try:
                return int(value.strip())
            except ValueError:
                pass
    elif kind == "number":
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return value
        if isinstance(value, str):
            try:
                return float(value.strip())
            except ValueError:
                pass
    elif kind == "boolean":
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.lower() in ("true", "false"):
            return value.lower() == "true"
    elif kind == "array":
        if isinstance(value, list):
            return value
    elif kind == "object":
        if isinstance(value, dict):
            return value

    raise DecodeError(
        f"invalid value for argument '{spec.name}': expected {kind}, "
        f"got {type(value).__name__}"
    )


def parse_payload(payload: str) -> Dict[str, Any]:
    """
    Parse a payload as a JSON object.

    An empty or whitespace-only payload is an empty object.

    Raises:
        DecodeError: If the payload is not valid JSON or not an object
    """
    if not payload.strip():
        return {}

    try:
        data = json.loads(payload)
    except json.JSONDecodeError as e:
        raise DecodeError(f"error while unmarshaling payload: {e}") from e

    if not isinstance(data, dict):
        raise DecodeError(
            f"error while unmarshaling payload: expected a JSON object, "
            f"got {type(data).__name__}"
        )
    return data


def validate_arguments(
    payload: str,
    arguments: Sequence[ArgumentSpec],
) -> Dict[str, Any]:
    """
    Validate and coerce a payload against an argument schema.

    Args:
        payload: Raw request payload (JSON object text)
        arguments: Declared arguments of the operation

    Returns:
        Mapping of argument name to coerced value (only fields present)

    Raises:
        DecodeError: On invalid JSON, unknown fields, missing required
            fields, mistyped values or values outside the enum
    """
    data = parse_payload(payload)
    specs = {spec.name: spec for spec in arguments}

    unknown = sorted(set(data) - set(specs))
    if unknown:
        raise DecodeError(f"unknown argument(s): {', '.join(unknown)}")

    missing = [spec.name for spec in arguments if spec.required and spec.name not in data]
    if missing:
        raise DecodeError(f"missing required argument(s): {', '.join(missing)}")

    values: Dict[str, Any] = {}
    for name, raw in data.items():
        spec = specs[name]
        value = _coerce(spec, raw)
        if spec.enum and value not in spec.enum:
            allowed = ", ".join(str(v) for v in spec.enum)
            raise DecodeError(
                f"invalid value for argument '{name}': {value!r} (allowed: {allowed})"
            )
        values[name] = value
    return values


def to_json_schema(arguments: Iterable[ArgumentSpec]) -> Dict[str, Any]:
    """Build an object JSON schema; empty parts are left out."""
    arguments = list(arguments)
    if not arguments:
        return {}

    schema: Dict[str, Any] = {
        "type": "object",
        "properties": {spec.name: spec.to_property() for spec in arguments},
    }
    required = [spec.name for spec in arguments if spec.required]
    if required:
        schema["required"] = required
    return schema
