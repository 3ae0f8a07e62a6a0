"""Application and command descriptors understood by the instruction registry."""

from .applications import (
    BUNDLED_APPLICATIONS,
    Answer,
    Hangup,
    Park,
    PlayAndGetDigits,
    Playback,
    Read,
    Set,
    Sleep,
)
from .base import Application, Command, Descriptor, DescriptorKind, GenericApplication, GenericCommand
from .commands import BUNDLED_COMMANDS, Hupall, Status, UuidKill

__all__ = [
    "Answer",
    "Application",
    "BUNDLED_APPLICATIONS",
    "BUNDLED_COMMANDS",
    "Command",
    "Descriptor",
    "DescriptorKind",
    "GenericApplication",
    "GenericCommand",
    "Hangup",
    "Hupall",
    "Park",
    "PlayAndGetDigits",
    "Playback",
    "Read",
    "Set",
    "Sleep",
    "Status",
    "UuidKill",
]
