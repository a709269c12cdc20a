"""
Simple units: a flat list of operations with argument schemas.

Besides its operations a simple unit describes how a host should present
it as a conversational assistant: the model to run, the input placeholder,
standing instructions, seed messages, quicklinks and an avatar image.
"""

import base64
import logging
import tomllib
from typing import Any, Callable, Iterable, List, Optional

from opkit.core.manifest import Manifest, Message, Quicklink
from opkit.core.registry import OperationDescriptor, OperationKind, slugify
from opkit.core.schema import ArgumentSpec

from .base import BaseUnit

logger = logging.getLogger(__name__)

MODEL_GPT35_TURBO = "gpt-3.5-turbo-1106"
MODEL_GPT4_TURBO = "gpt-4-1106-preview"
DEFAULT_MODEL = MODEL_GPT35_TURBO
DEFAULT_PLACEHOLDER = "How can I help you?"

MESSAGE_ROLES = ("system", "user", "assistant")


class SimpleUnit(BaseUnit):
    """
    Unit publishing a flat ``operations`` list in its manifest.

    Each operation carries a JSON-schema ``parameters`` object built from
    its arguments, so a host can offer the operations as callable tools.

    Attributes:
        model: Model the host should run the conversation with
        placeholder: Hint text for the host's input box
        instructions: Standing instructions for the model ("" when unset)
        messages: Seed conversation messages
        quicklinks: Canned prompts offered by the host
        image: Avatar image bytes, published base64-encoded (None when unset)
    """

    compound = False
    logname = "assistants.log"

    def __init__(
        self,
        name: str,
        description: str = "",
        *,
        model: str = DEFAULT_MODEL,
        placeholder: str = DEFAULT_PLACEHOLDER,
        instructions: str = "",
        **kwargs,
    ):
        super().__init__(name, description, **kwargs)
        self.model = model
        self.placeholder = placeholder
        self.instructions = instructions
        self.messages: List[Message] = []
        self.quicklinks: List[Quicklink] = []
        self.image: Optional[bytes] = None

    def __str__(self) -> str:
        return f"({self.id}) {{{self.model}}}"

    @classmethod
    def from_toml(cls, text: str, **kwargs) -> "SimpleUnit":
        """
        Build a unit from a TOML definition.

        Recognized keys: ``static_id``, ``name``, ``description``,
        ``version``, ``model``, ``placeholder``, ``instructions``,
        ``messages`` (``role``/``content`` tables) and ``quicklinks``
        (``title``/``content`` tables). Operations still have to be added
        in code, since TOML cannot carry handlers.

        Args:
            text: TOML document
            **kwargs: Passed to the constructor (e.g. ``config``)

        Raises:
            ValueError: If the document is not valid TOML, has no name, or
                holds a message with an unknown role
        """
        try:
            data = tomllib.loads(text)
        except tomllib.TOMLDecodeError as e:
            raise ValueError(f"error while unmarshaling toml: {e}") from e

        name = data.get("name")
        if not name:
            raise ValueError("error while unmarshaling toml: missing 'name'")

        unit = cls(
            name,
            data.get("description", ""),
            unit_id=data.get("static_id") or None,
            version=data.get("version") or None,
            model=data.get("model") or DEFAULT_MODEL,
            placeholder=data.get("placeholder") or DEFAULT_PLACEHOLDER,
            instructions=data.get("instructions", ""),
            **kwargs,
        )
        for message in data.get("messages", []):
            unit.add_message(message.get("role", ""), message.get("content", ""))
        for link in data.get("quicklinks", []):
            unit.add_quicklink(link.get("title", ""), link.get("content", ""))

        logger.debug(f"Loaded unit {unit} from TOML")
        return unit

    def set_model(self, model: str) -> None:
        self.model = model

    def set_placeholder(self, placeholder: str) -> None:
        self.placeholder = placeholder

    def add_instructions(self, instructions: str) -> None:
        """Set the standing instructions (replacing any earlier ones)."""
        self.instructions = instructions

    def add_message(self, role: str, content: str) -> Message:
        """
        Append a seed message; surrounding whitespace is trimmed from ``content``.

        Raises:
            ValueError: If ``role`` is not one of MESSAGE_ROLES
        """
        if role not in MESSAGE_ROLES:
            raise ValueError(
                f"Invalid message role '{role}'. Must be one of: {', '.join(MESSAGE_ROLES)}."
            )
        message = Message(role=role, content=content.strip())
        self.messages.append(message)
        return message

    def add_quicklink(self, title: str, content: str) -> Quicklink:
        link = Quicklink(title=title, content=content)
        self.quicklinks.append(link)
        return link

    def set_image(self, data: bytes) -> None:
        """Set the avatar image (raw bytes, e.g. a PNG file's contents)."""
        self.image = data

    def add_operation(
        self,
        name: str,
        description: str,
        handler: Callable[..., Any],
        arguments: Iterable[ArgumentSpec] = (),
        pass_context: bool = False,
        pass_arguments: bool = False,
    ) -> OperationDescriptor:
        """Register an operation under the slug of ``name``."""
        return self.register(OperationDescriptor(
            id=slugify(name),
            display_name=name,
            description=description,
            kind=OperationKind.ACTION,
            handler=handler,
            arguments=tuple(arguments),
            pass_context=pass_context,
            pass_arguments=pass_arguments,
        ))

    def describe(self, now=None) -> Manifest:
        manifest = super().describe(now)
        manifest.model = self.model
        manifest.placeholder = self.placeholder
        manifest.instructions = self.instructions or None
        manifest.messages = list(self.messages)
        manifest.quicklinks = list(self.quicklinks)
        if self.image:
            manifest.image = base64.b64encode(self.image).decode("ascii")
        return manifest

