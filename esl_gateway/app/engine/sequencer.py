"""Single-in-flight execution sequencer for outbound instructions.

The switch acknowledges every instruction with a reply, and the next
instruction may only be sent once that acknowledgement has arrived. The
sequencer keeps a FIFO of pending instructions and at most one in flight:

- ``enqueue`` appends to the tail and dispatches right away when idle.
- ``on_message`` completes the in-flight instruction only when the message
  kind is exactly the one recorded on it; any other message is ignored.
- A completed instruction's continuation runs before the next dispatch, so
  anything it enqueues lands behind instructions that were already pending.

Instructions enqueued before ``activate()`` (session not yet established)
are held, never dropped.
"""

from __future__ import annotations

import logging
import time
from collections import deque
from dataclasses import dataclass
from enum import Enum

from ..protocol.classifier import ClassifiedMessage, MessageKind
from .types import Continuation, OutboundSender

_LOGGER = logging.getLogger(__name__)


class SequencerState(str, Enum):
    DEFERRED = "deferred"
    IDLE = "idle"
    SENDING = "sending"
    AWAITING_REPLY = "awaiting_reply"
    AWAITING_API_RESPONSE = "awaiting_api_response"


_AWAITING_STATES = {
    MessageKind.REPLY: SequencerState.AWAITING_REPLY,
    MessageKind.API_RESPONSE: SequencerState.AWAITING_API_RESPONSE,
}


@dataclass(slots=True)
class Instruction:
    """One queued unit of outbound work.

    Attributes:
        wire: Bytes written to the transport when dispatched.
        expects: Message kind that acknowledges this instruction.
        continuation: Called once with the acknowledging message.
        label: Short description used in logs.
    """

    wire: bytes
    expects: MessageKind
    continuation: Continuation | None = None
    label: str = ""

    def __post_init__(self) -> None:
        if self.expects not in _AWAITING_STATES:
            raise ValueError(f"instructions complete on a reply or api response, not {self.expects}")


class ExecutionSequencer:
    """Sends instructions strictly one at a time, in enqueue order."""

    def __init__(self, send: OutboundSender) -> None:
        self._send = send
        self._queue: deque[Instruction] = deque()
        self._in_flight: Instruction | None = None
        self._in_flight_since: float | None = None
        self._state = SequencerState.DEFERRED
        self._dispatched_count = 0
        self._completed_count = 0

    @property
    def state(self) -> SequencerState:
        return self._state

    @property
    def pending(self) -> int:
        """Number of instructions queued behind the in-flight one."""
        return len(self._queue)

    @property
    def in_flight(self) -> Instruction | None:
        return self._in_flight

    @property
    def in_flight_since(self) -> float | None:
        """``time.monotonic()`` stamp of the current dispatch, if any."""
        return self._in_flight_since

    @property
    def completed_count(self) -> int:
        return self._completed_count

    def activate(self) -> None:
        """Leaves the deferred state and sends anything queued meanwhile."""
        if self._state is not SequencerState.DEFERRED:
            _LOGGER.debug("Sequencer already active; ignoring activate().", extra={"state": self._state.value})
            return
        _LOGGER.debug("Sequencer activated.", extra={"pending": len(self._queue)})
        self._state = SequencerState.SENDING
        self._advance()

    def enqueue(self, instruction: Instruction) -> None:
        """Appends ``instruction`` and dispatches it if nothing is in flight."""
        self._queue.append(instruction)
        _LOGGER.debug(
            "Instruction enqueued.",
            extra={"label": instruction.label, "state": self._state.value, "pending": len(self._queue)},
        )
        if self._state is SequencerState.IDLE:
            self._state = SequencerState.SENDING
            self._dispatch()

    def on_message(self, message: ClassifiedMessage) -> bool:
        """Offers one classified message to the in-flight instruction.

        Returns:
            ``True`` when the message completed the in-flight instruction.
        """
        instruction = self._in_flight
        if instruction is None:
            return False
        if message.kind is not instruction.expects:
            _LOGGER.debug(
                "Message does not complete in-flight instruction.",
                extra={
                    "label": instruction.label,
                    "expected": instruction.expects.value,
                    "received": message.kind.value,
                },
            )
            return False

        self._in_flight = None
        self._in_flight_since = None
        self._completed_count += 1
        self._state = SequencerState.SENDING
        _LOGGER.debug(
            "Instruction acknowledged.",
            extra={"label": instruction.label, "reply_text": message.reply_text, "pending": len(self._queue)},
        )
        try:
            if instruction.continuation is not None:
                instruction.continuation(message)
        finally:
            self._advance()
        return True

    def _advance(self) -> None:
        if self._queue:
            self._dispatch()
        else:
            self._state = SequencerState.IDLE

    def _dispatch(self) -> None:
        instruction = self._queue.popleft()
        self._in_flight = instruction
        self._in_flight_since = time.monotonic()
        self._state = _AWAITING_STATES[instruction.expects]
        self._dispatched_count += 1
        _LOGGER.debug(
            "Dispatching instruction.",
            extra={
                "label": instruction.label,
                "expects": instruction.expects.value,
                "dispatched_count": self._dispatched_count,
            },
        )
        self._send(instruction.wire)
