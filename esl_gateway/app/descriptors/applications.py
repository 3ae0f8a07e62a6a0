"""Channel application descriptors bundled with the gateway."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from .base import Application


@dataclass(slots=True, frozen=True)
class Answer(Application):
    name: ClassVar[str] = "answer"


@dataclass(slots=True, frozen=True)
class Park(Application):
    name: ClassVar[str] = "park"


@dataclass(slots=True, frozen=True)
class Hangup(Application):
    """Hangs up the channel, optionally with a cause (``USER_BUSY``...)."""

    name: ClassVar[str] = "hangup"
    cause: str | None = None

    @property
    def arguments(self) -> tuple[str, ...]:
        return (self.cause,) if self.cause else ()


@dataclass(slots=True, frozen=True)
class Playback(Application):
    name: ClassVar[str] = "playback"
    path: str

    @property
    def arguments(self) -> tuple[str, ...]:
        return (self.path,)


@dataclass(slots=True, frozen=True)
class Sleep(Application):
    name: ClassVar[str] = "sleep"
    milliseconds: int | str

    @property
    def arguments(self) -> tuple[str, ...]:
        return (str(self.milliseconds),)


@dataclass(slots=True, frozen=True)
class Set(Application):
    """Sets a channel variable (``set name=value``)."""

    name: ClassVar[str] = "set"
    variable: str
    value: str

    @property
    def arguments(self) -> tuple[str, ...]:
        return (f"{self.variable}={self.value}",)


@dataclass(slots=True, frozen=True)
class PlayAndGetDigits(Application):
    """Plays a prompt and stores the collected digits in a channel variable.

    The collected digits are only visible through the channel variable, so
    ``read_variable`` names it for the reader extension.
    """

    name: ClassVar[str] = "play_and_get_digits"
    min_digits: int | str
    max_digits: int | str
    tries: int | str
    timeout_ms: int | str
    terminators: str
    prompt: str
    invalid_prompt: str
    variable_name: str = "digits"
    digits_regex: str = "\\d+"

    @property
    def arguments(self) -> tuple[str, ...]:
        return (
            str(self.min_digits),
            str(self.max_digits),
            str(self.tries),
            str(self.timeout_ms),
            self.terminators,
            self.prompt,
            self.invalid_prompt,
            self.variable_name,
            self.digits_regex,
        )

    @property
    def read_variable(self) -> str | None:
        return self.variable_name


@dataclass(slots=True, frozen=True)
class Read(Application):
    """Collects digits with the ``read`` application into ``variable_name``."""

    name: ClassVar[str] = "read"
    min_digits: int | str
    max_digits: int | str
    prompt: str
    variable_name: str = "digits"
    timeout_ms: int | str = 5000
    terminators: str = "#"

    @property
    def arguments(self) -> tuple[str, ...]:
        return (
            str(self.min_digits),
            str(self.max_digits),
            self.prompt,
            self.variable_name,
            str(self.timeout_ms),
            self.terminators,
        )

    @property
    def read_variable(self) -> str | None:
        return self.variable_name


BUNDLED_APPLICATIONS: tuple[type[Application], ...] = (
    Answer,
    Hangup,
    Park,
    PlayAndGetDigits,
    Playback,
    Read,
    Set,
    Sleep,
)
