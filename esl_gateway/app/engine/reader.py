"""Reads a channel variable back after an application has run.

Some applications (``play_and_get_digits``, ``read``) leave their result in
a channel variable instead of the reply. Reading it takes two sequenced
instructions: the application itself, then a ``uuid_dump`` of the call.
The dump's own acknowledgement is handled by the sequencer like any other
reply; independently, the reader watches every message after the
application's reply for a ``variable_<name>`` header and hands the value to
the caller once.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Callable
from dataclasses import dataclass

from ..protocol.classifier import ClassifiedMessage, MessageKind
from ..protocol.errors import SessionError
from ..protocol.framing import normalize_header_name
from ..protocol.session import Session
from .registry import encode_api_request
from .sequencer import ExecutionSequencer, Instruction
from .types import VariableContinuation

_LOGGER = logging.getLogger(__name__)

DUMP_COMMAND = "uuid_dump"


def variable_key(variable: str) -> str:
    """Returns the normalized header key the switch uses for a channel variable."""
    return normalize_header_name(f"variable_{variable}")


@dataclass(slots=True)
class _PendingRead:
    key: str
    continuation: VariableContinuation
    # The application reply that started the read; it is never inspected.
    registered_by: ClassifiedMessage | None = None


class ChannelVariableReader:
    """Chains an application with a dump request and delivers one variable."""

    def __init__(
        self,
        sequencer: ExecutionSequencer,
        session_provider: Callable[[], Session | None],
    ) -> None:
        self._sequencer = sequencer
        self._session_provider = session_provider
        self._watchers: list[_PendingRead] = []

    @property
    def watching(self) -> tuple[str, ...]:
        """Header keys still awaited, in request order."""
        return tuple(pending.key for pending in self._watchers)

    def read(self, instruction: Instruction, variable: str, continuation: VariableContinuation) -> None:
        """Enqueues ``instruction`` and then delivers ``variable`` to ``continuation``.

        Args:
            instruction: Application instruction; it must complete on a reply.
            variable: Channel variable name, without the ``variable_`` prefix.
            continuation: Receives the variable's value exactly once.
        """
        if instruction.expects is not MessageKind.REPLY:
            raise ValueError("channel variables can only be read after an application")
        key = variable_key(variable)
        chained = instruction.continuation

        def after_application(reply: ClassifiedMessage) -> None:
            if chained is not None:
                chained(reply)
            dump = self._dump_instruction(key)
            self._watchers.append(_PendingRead(key=key, continuation=continuation, registered_by=reply))
            self._sequencer.enqueue(dump)

        self._sequencer.enqueue(dataclasses.replace(instruction, continuation=after_application))

    def on_message(self, message: ClassifiedMessage) -> int:
        """Delivers every awaited variable present in ``message``.

        Returns:
            Number of continuations invoked.
        """
        delivered = 0
        for pending in list(self._watchers):
            if message is pending.registered_by:
                continue
            value = message.get(pending.key)
            if value is None:
                continue
            self._watchers.remove(pending)
            delivered += 1
            _LOGGER.debug("Channel variable delivered.", extra={"variable_key": pending.key})
            pending.continuation(value)
        return delivered

    def _dump_instruction(self, key: str) -> Instruction:
        session = self._session_provider()
        unique_id = session.unique_id if session is not None else None
        if not unique_id:
            raise SessionError("session has no Unique-ID; cannot request a variable dump")
        return Instruction(
            wire=encode_api_request(DUMP_COMMAND, [unique_id]),
            expects=MessageKind.REPLY,
            label=f"{DUMP_COMMAND} {unique_id} for {key}",
        )
