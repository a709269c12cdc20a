"""
Compound units.

A compound unit publishes actions (plain, navigation and cron), fire and
forget commands, and pre-rendered cards. The manifest partitions them into
``actions``, ``commands`` and ``cards``.
"""

import logging
from functools import wraps
from typing import Any, Callable, Iterable, Optional

from opkit.core.manifest import Card
from opkit.core.registry import OperationDescriptor, OperationKind, slugify
from opkit.core.schema import ArgumentSpec

from .base import BaseUnit
from .cards import render_card

logger = logging.getLogger(__name__)


def _discard_result(handler: Callable[..., Any]) -> Callable[..., str]:
    """Commands report success with an empty payload, whatever the handler returns."""
    @wraps(handler)
    def wrapper(*args):
        handler(*args)
        return ""
    return wrapper


class Unit(BaseUnit):
    """
    Unit exposing actions, commands, cron actions and cards.

    Example:
        unit = Unit("Notes", "Keeps notes")

        @unit.action("list-notes")
        def list_notes(payload):
            return ActionResponse(html_body="<ul></ul>")

        unit.add_cron("cleanup", "0 * * * *", cleanup)
        unit.main()
    """

    compound = True
    logname = "extensions.log"

    def _add(
        self,
        kind: OperationKind,
        operation_id: str,
        handler: Callable[..., Any],
        name: Optional[str] = None,
        description: Optional[str] = None,
        arguments: Iterable[ArgumentSpec] = (),
        cron: Optional[str] = None,
        pass_context: bool = False,
        pass_arguments: bool = False,
    ) -> OperationDescriptor:
        return self.register(OperationDescriptor(
            id=slugify(operation_id),
            display_name=name or operation_id,
            description=description or name or operation_id,
            kind=kind,
            handler=handler,
            arguments=tuple(arguments),
            cron=cron,
            pass_context=pass_context,
            pass_arguments=pass_arguments,
        ))

    def add_action(self, operation_id: str, handler: Callable[..., Any], **options) -> OperationDescriptor:
        """
        Register an action.

        Args:
            operation_id: Id (slug-normalized) of the action
            handler: Called with the raw payload; may return a string,
                an ActionResponse or any JSON-serializable value
            **options: name, description, arguments, pass_context,
                pass_arguments

        Returns:
            Stored descriptor
        """
        return self._add(OperationKind.ACTION, operation_id, handler, **options)

    def add_navigation(self, operation_id: str, handler: Callable[..., Any], **options) -> OperationDescriptor:
        """Register an action the host lists in its navigation."""
        return self._add(OperationKind.NAVIGATION_ACTION, operation_id, handler, **options)

    def add_command(self, operation_id: str, handler: Callable[..., Any], **options) -> OperationDescriptor:
        """Register a command; its success payload is always empty."""
        return self._add(OperationKind.COMMAND, operation_id, _discard_result(handler), **options)

    def add_cron(self, operation_id: str, cron: str, handler: Callable[..., Any], **options) -> OperationDescriptor:
        """
        Register an action the host runs on a cron schedule.

        The expression is not validated here; a malformed one only shows
        up as an unparsed summary in the manifest.
        """
        return self._add(OperationKind.CRON_ACTION, operation_id, handler, cron=cron, **options)

    def action(self, operation_id: Optional[str] = None, **options) -> Callable:
        """Decorator form of add_action (id defaults to the function name)."""
        def decorator(handler):
            self.add_action(operation_id or handler.__name__.replace("_", "-"), handler, **options)
            return handler
        return decorator

    def command(self, operation_id: Optional[str] = None, **options) -> Callable:
        """Decorator form of add_command."""
        def decorator(handler):
            self.add_command(operation_id or handler.__name__.replace("_", "-"), handler, **options)
            return handler
        return decorator

    def cron(self, cron: str, operation_id: Optional[str] = None, **options) -> Callable:
        """Decorator form of add_cron."""
        def decorator(handler):
            self.add_cron(operation_id or handler.__name__.replace("_", "-"), cron, handler, **options)
            return handler
        return decorator

    def action_by_id(self, operation_id: str) -> Optional[OperationDescriptor]:
        descriptor = self.registry.lookup(operation_id)
        if descriptor is None or descriptor.kind is OperationKind.COMMAND:
            return None
        return descriptor

    def action_url(self, operation_id: str) -> str:
        """Host routing path of an action, or "" if there is no such action."""
        descriptor = self.action_by_id(operation_id)
        return descriptor.url_path if descriptor is not None else ""

    def add_card(self, card_id: str, action_id: str, title: str, description: str = "") -> Card:
        """
        Add a default card linking to one of this unit's actions.

        Register the action first; a card for an unknown action gets an
        empty link.
        """
        href = self.action_url(action_id)
        if not href:
            logger.warning(f"Card '{card_id}' links to unknown action '{action_id}'")
        card = Card(id=card_id, html=render_card(self.name, title, description, href))
        self.cards.append(card)
        return card

    def add_card_custom(self, card: Card) -> Card:
        """Add a card with caller-supplied markup."""
        self.cards.append(card)
        return card
