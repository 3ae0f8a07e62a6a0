"""Session handlers shipped with the gateway."""

from __future__ import annotations

import logging

from ..config import settings
from ..descriptors import Answer, Hangup, Park, PlayAndGetDigits, Playback
from ..engine.base import SessionHandler
from ..engine.outbound_engine import OutboundEngine
from ..engine.registry import encode_descriptor
from ..protocol.classifier import ClassifiedMessage

_LOGGER = logging.getLogger(__name__)


class ParkHandler(SessionHandler):
    """Answers the call and parks it for another controller to pick up."""

    def session_initiated(self, engine: OutboundEngine) -> None:
        engine.run(Answer())
        engine.run(Park())


class GreetingHandler(SessionHandler):
    """Answers, plays a greeting, collects one digit, then hangs up.

    The collected digit is only reachable through a channel variable, so it
    is read back with the engine's reader extension before hanging up.

    The ``uuid_dump`` request behind that read completes on a command reply,
    while a live switch answers ``api`` with an ``api/response``. Anything
    queued after the read would then wait until the instruction watchdog or
    the caller ends the call, so the hangup is written straight to the
    socket instead of going through the instruction queue.
    """

    DIGIT_VARIABLE = "greeting_digit"

    def __init__(
        self,
        *,
        greeting_sound: str | None = None,
        prompt_sound: str | None = None,
        invalid_sound: str | None = None,
    ) -> None:
        self.greeting_sound = greeting_sound or settings.GREETING_SOUND
        self.prompt_sound = prompt_sound or settings.DIGIT_PROMPT_SOUND
        self.invalid_sound = invalid_sound or settings.INVALID_DIGIT_SOUND
        self.collected_digit: str | None = None

    def session_initiated(self, engine: OutboundEngine) -> None:
        engine.run(Answer())
        engine.run(Playback(self.greeting_sound))
        engine.run_and_read(
            PlayAndGetDigits(
                min_digits=1,
                max_digits=1,
                tries=3,
                timeout_ms=5000,
                terminators="#",
                prompt=self.prompt_sound,
                invalid_prompt=self.invalid_sound,
                variable_name=self.DIGIT_VARIABLE,
                digits_regex="\\d",
            ),
            lambda digit: self._on_digit(engine, digit),
        )

    def on_disconnect(self, engine: OutboundEngine, message: ClassifiedMessage) -> None:
        _LOGGER.debug(
            "Caller left greeting session.",
            extra={"unique_id": engine.session.unique_id if engine.session else None, "digit": self.collected_digit},
        )

    def _on_digit(self, engine: OutboundEngine, digit: str) -> None:
        self.collected_digit = digit
        _LOGGER.info(
            "Caller entered digit.",
            extra={"unique_id": engine.session.unique_id if engine.session else None, "digit": digit},
        )
        wire, _ = encode_descriptor(Hangup("NORMAL_CLEARING"))
        engine.send_data(wire)
