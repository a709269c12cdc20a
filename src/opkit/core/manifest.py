"""
Manifest builder.

Projects a registry into the document a unit returns for ``describe``.
Field names are stable across versions: new fields may only be added as
optional, and empty collections are left out instead of written empty so
older host parsers keep working against newer units.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

import yaml

from .cron import next_run, summarize_cron
from .errors import EncodingError
from .registry import OperationDescriptor, OperationKind, OperationRegistry
from .schema import to_json_schema

logger = logging.getLogger(__name__)

MANIFEST_FORMATS = ("json", "yaml")


@dataclass(frozen=True)
class Card:
    """Pre-rendered UI fragment shown by the host."""

    id: str
    html: str

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "html": self.html}


@dataclass(frozen=True)
class Message:
    """Seed conversation message of a simple unit."""

    role: str
    content: str

    def to_dict(self) -> Dict[str, Any]:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class Quicklink:
    """Canned prompt a host offers next to a simple unit."""

    title: str
    content: str

    def to_dict(self) -> Dict[str, Any]:
        return {"title": self.title, "content": self.content}


@dataclass
class ManifestAction:
    """Manifest entry of an action, cron action or navigation action."""

    id: str
    index: int
    name: str
    description: str
    kind: str
    cron: str = ""
    cron_summary: str = ""
    next_run: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "index": self.index,
            "name": self.name,
            "description": self.description,
            "kind": self.kind,
            "cron": self.cron,
            "cronSummary": self.cron_summary,
        }
        if self.next_run is not None:
            data["nextRun"] = self.next_run
        return data


@dataclass
class ManifestCommand:
    """Manifest entry of a fire-and-forget command."""

    id: str

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id}


@dataclass
class Manifest:
    """
    Snapshot of a unit's identity and capabilities.

    Simple units fill ``operations`` and the conversational fields
    (``model``, ``placeholder``, ``instructions``, ``messages``,
    ``quicklinks``, ``image``); compound units fill ``actions``,
    ``commands`` and ``cards``.
    """

    id: str
    name: str
    description: str
    version: Optional[str] = None
    model: Optional[str] = None
    placeholder: Optional[str] = None
    instructions: Optional[str] = None
    messages: List[Message] = field(default_factory=list)
    operations: List[Dict[str, Any]] = field(default_factory=list)
    quicklinks: List[Quicklink] = field(default_factory=list)
    image: Optional[str] = None
    actions: Dict[str, ManifestAction] = field(default_factory=dict)
    commands: Dict[str, ManifestCommand] = field(default_factory=dict)
    cards: List[Card] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize, omitting unset optional fields and empty collections."""
        data: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
        }
        if self.version is not None:
            data["version"] = self.version
        for key in ("model", "placeholder", "instructions"):
            value = getattr(self, key)
            if value:
                data[key] = value
        if self.messages:
            data["messages"] = [message.to_dict() for message in self.messages]
        if self.operations:
            data["operations"] = list(self.operations)
        if self.quicklinks:
            data["quicklinks"] = [link.to_dict() for link in self.quicklinks]
        if self.image:
            data["image"] = self.image
        if self.actions:
            data["actions"] = {key: action.to_dict() for key, action in self.actions.items()}
        if self.commands:
            data["commands"] = {key: command.to_dict() for key, command in self.commands.items()}
        if self.cards:
            data["cards"] = [card.to_dict() for card in self.cards]
        return data


def _project_action(descriptor: OperationDescriptor, now: Optional[datetime]) -> ManifestAction:
    entry = ManifestAction(
        id=descriptor.id,
        index=descriptor.index,
        name=descriptor.display_name,
        description=descriptor.description,
        kind=descriptor.kind.value,
    )
    if descriptor.kind is OperationKind.CRON_ACTION:
        entry.cron = descriptor.cron
        entry.cron_summary = summarize_cron(descriptor.cron)
        if now is not None:
            upcoming = next_run(descriptor.cron, now)
            if upcoming is not None:
                entry.next_run = upcoming.isoformat()
    return entry


def _project_operation(descriptor: OperationDescriptor) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "id": descriptor.id,
        "name": descriptor.display_name,
        "description": descriptor.description,
    }
    parameters = to_json_schema(descriptor.arguments)
    if parameters:
        data["parameters"] = parameters
    return data


def build_manifest(
    unit_id: str,
    name: str,
    description: str,
    registry: OperationRegistry,
    *,
    cards: Iterable[Card] = (),
    compound: bool = True,
    version: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Manifest:
    """
    Build the manifest of a unit from its registry.

    Pure and idempotent for a given registry. A malformed cron expression
    only degrades its summary to the raw expression.

    Args:
        unit_id: Unit id
        name: Unit display name
        description: Unit description
        registry: Registered operations
        cards: UI cards (compound units only)
        compound: Project actions/commands/cards instead of a flat list
        version: Optional unit version
        now: Reference time for ``nextRun``; omitted when None

    Returns:
        Manifest instance
    """
    manifest = Manifest(id=unit_id, name=name, description=description, version=version)

    if not compound:
        manifest.operations = [_project_operation(d) for d in registry]
        return manifest

    for descriptor in registry.actions():
        manifest.actions[descriptor.id] = _project_action(descriptor, now)
    for descriptor in registry.commands():
        manifest.commands[descriptor.id] = ManifestCommand(id=descriptor.id)
    manifest.cards = list(cards)
    return manifest


def render_manifest(manifest: Manifest, fmt: str = "json") -> str:
    """
    Serialize a manifest.

    Args:
        manifest: Manifest to serialize
        fmt: "json" (compact) or "yaml" (block style, insertion order)

    Raises:
        EncodingError: If serialization fails
        ValueError: If the format is unknown
    """
    if fmt not in MANIFEST_FORMATS:
        raise ValueError(
            f"Invalid manifest format '{fmt}'. Must be one of: {', '.join(MANIFEST_FORMATS)}."
        )

    data = manifest.to_dict()
    try:
        if fmt == "yaml":
            return yaml.safe_dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True)
        return json.dumps(data, separators=(",", ":"))
    except (TypeError, ValueError, yaml.YAMLError) as e:
        raise EncodingError(f"error while marshaling manifest: {e}") from e
