"""Administrative command descriptors bundled with the gateway."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from .base import Command


@dataclass(slots=True, frozen=True)
class Hupall(Command):
    """Disconnects every call on the switch, optionally with a hangup cause."""

    name: ClassVar[str] = "hupall"
    cause: str | None = None

    @property
    def arguments(self) -> tuple[str, ...]:
        return (self.cause,) if self.cause else ()


@dataclass(slots=True, frozen=True)
class UuidKill(Command):
    """Hangs up one channel by UUID."""

    name: ClassVar[str] = "uuid_kill"
    uuid: str
    cause: str | None = None

    @property
    def arguments(self) -> tuple[str, ...]:
        return (self.uuid, self.cause) if self.cause else (self.uuid,)


@dataclass(slots=True, frozen=True)
class Status(Command):
    name: ClassVar[str] = "status"


BUNDLED_COMMANDS: tuple[type[Command], ...] = (Hupall, Status, UuidKill)
