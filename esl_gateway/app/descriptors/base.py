"""Base descriptor types for channel applications and administrative commands.

A descriptor is a small immutable record: a stable ``name``, an ordered
``arguments`` tuple and a ``kind`` that selects the wire encoding. The
engine never looks further inside a descriptor than that.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol, runtime_checkable


class DescriptorKind(str, Enum):
    """Selects how a descriptor is put on the wire."""

    APPLICATION = "application"
    COMMAND = "command"


@runtime_checkable
class Descriptor(Protocol):
    """Contract every application or command descriptor satisfies."""

    name: str
    kind: DescriptorKind

    @property
    def arguments(self) -> tuple[str, ...]: ...

    @property
    def read_variable(self) -> str | None: ...


class Application:
    """Base for applications executed on the channel via ``sendmsg``."""

    __slots__ = ()

    kind = DescriptorKind.APPLICATION

    @property
    def arguments(self) -> tuple[str, ...]:
        return ()

    @property
    def read_variable(self) -> str | None:
        """Channel variable holding the application's result, if any."""
        return None


class Command:
    """Base for administrative commands sent through the async api keyword."""

    __slots__ = ()

    kind = DescriptorKind.COMMAND

    @property
    def arguments(self) -> tuple[str, ...]:
        return ()

    @property
    def read_variable(self) -> str | None:
        return None


@dataclass(slots=True, frozen=True)
class GenericApplication(Application):
    """Application known only by name, for apps without a dedicated descriptor."""

    name: str
    args: tuple[str, ...] = ()

    @property
    def arguments(self) -> tuple[str, ...]:
        return self.args


@dataclass(slots=True, frozen=True)
class GenericCommand(Command):
    """Command known only by name."""

    name: str
    args: tuple[str, ...] = ()

    @property
    def arguments(self) -> tuple[str, ...]:
        return self.args
