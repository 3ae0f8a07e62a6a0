"""Name-to-descriptor registry and the two wire encodings.

Callers invoke instructions by name through an explicit registry object
built once per engine configuration; nothing is registered globally.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

from ..descriptors import BUNDLED_APPLICATIONS, BUNDLED_COMMANDS
from ..descriptors.base import Descriptor, DescriptorKind, GenericApplication, GenericCommand
from ..protocol.classifier import MessageKind
from ..protocol.errors import UnknownInstructionError
from .sequencer import Instruction
from .types import Continuation

_LOGGER = logging.getLogger(__name__)

DEFAULT_ASYNC_KEYWORD = "bgapi"

DescriptorFactory = Callable[..., Descriptor]


def encode_command(name: str, arguments: Iterable[str], *, keyword: str = DEFAULT_ASYNC_KEYWORD) -> bytes:
    """Encodes ``<keyword> <name>[ <args>]`` followed by a blank line."""
    line = " ".join([keyword, name, *arguments])
    return f"{line}\n\n".encode("utf-8")


def encode_api_request(name: str, arguments: Iterable[str]) -> bytes:
    """Encodes a blocking ``api`` request, used for synthetic lookups."""
    return encode_command(name, arguments, keyword="api")


def encode_application(name: str, arguments: Iterable[str]) -> bytes:
    """Encodes a ``sendmsg`` execute block for the connected channel."""
    argument_text = " ".join(arguments)
    lines = [
        "sendmsg",
        "call-command: execute",
        f"execute-app-name: {name}",
    ]
    if argument_text:
        lines.append(f"execute-app-arg: {argument_text}")
    # Hold the channel until this app finishes so replies stay in order.
    lines.append("event-lock: true")
    return ("\n".join(lines) + "\n\n").encode("utf-8")


def encode_descriptor(
    descriptor: Descriptor,
    *,
    async_keyword: str = DEFAULT_ASYNC_KEYWORD,
) -> tuple[bytes, MessageKind]:
    """Returns wire bytes and the completion kind for a descriptor."""
    if descriptor.kind is DescriptorKind.COMMAND:
        return (
            encode_command(descriptor.name, descriptor.arguments, keyword=async_keyword),
            MessageKind.API_RESPONSE,
        )
    if descriptor.kind is DescriptorKind.APPLICATION:
        return encode_application(descriptor.name, descriptor.arguments), MessageKind.REPLY
    raise ValueError(f"Unsupported descriptor kind: {descriptor.kind!r}")


def build_instruction(
    descriptor: Descriptor,
    continuation: Continuation | None = None,
    *,
    async_keyword: str = DEFAULT_ASYNC_KEYWORD,
) -> Instruction:
    """Wraps a descriptor into a sequencer ``Instruction``."""
    wire, expects = encode_descriptor(descriptor, async_keyword=async_keyword)
    label = " ".join([descriptor.kind.value, descriptor.name, *descriptor.arguments])
    return Instruction(wire=wire, expects=expects, continuation=continuation, label=label)


class InstructionRegistry:
    """Maps instruction names to descriptor factories."""

    def __init__(self) -> None:
        self._factories: dict[str, DescriptorFactory] = {}

    def register(
        self,
        factory: DescriptorFactory,
        *,
        name: str | None = None,
        replace: bool = False,
    ) -> None:
        """Adds a descriptor factory under ``name`` (defaults to ``factory.name``).

        Raises:
            ValueError: If the name is missing or already registered and
                ``replace`` is false.
        """
        resolved = name or getattr(factory, "name", None)
        if not resolved or not isinstance(resolved, str):
            raise ValueError(f"Cannot determine instruction name for {factory!r}")
        if resolved in self._factories and not replace:
            raise ValueError(f"Instruction already registered: {resolved}")
        self._factories[resolved] = factory
        _LOGGER.debug("Registered instruction descriptor.", extra={"instruction": resolved})

    def register_application(self, name: str) -> None:
        """Registers an application that takes free-form string arguments."""
        self.register(lambda *args: GenericApplication(name, tuple(str(arg) for arg in args)), name=name)

    def register_command(self, name: str) -> None:
        """Registers a command that takes free-form string arguments."""
        self.register(lambda *args: GenericCommand(name, tuple(str(arg) for arg in args)), name=name)

    def create(self, name: str, *args: object, **kwargs: object) -> Descriptor:
        """Builds the descriptor registered under ``name``.

        Raises:
            UnknownInstructionError: If nothing is registered under ``name``.
        """
        try:
            factory = self._factories[name]
        except KeyError:
            raise UnknownInstructionError(name) from None
        return factory(*args, **kwargs)

    def names(self) -> tuple[str, ...]:
        return tuple(sorted(self._factories))

    def __contains__(self, name: object) -> bool:
        return name in self._factories

    def __len__(self) -> int:
        return len(self._factories)


def default_registry() -> InstructionRegistry:
    """Returns a new registry holding every bundled descriptor."""
    registry = InstructionRegistry()
    for factory in (*BUNDLED_APPLICATIONS, *BUNDLED_COMMANDS):
        registry.register(factory)
    return registry
