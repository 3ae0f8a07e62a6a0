"""Outbound session engine: one connection, one call leg.

Data flows one way: bytes -> ``FrameDecoder`` -> ``classify`` -> session
merge -> handshake (until established) or sequencer and variable reader
(afterwards). Outgoing bytes go through the ``send`` callable supplied by
the host, which must hand them to the transport without blocking.
"""

from __future__ import annotations

import logging
from typing import Any

from ..descriptors.base import Descriptor, DescriptorKind
from ..protocol.classifier import ClassifiedMessage, MessageKind, classify
from ..protocol.framing import DEFAULT_MAX_HEADER_BYTES, FrameDecoder
from ..protocol.session import Session
from .base import SessionHandler
from .handshake import HandshakeController, HandshakeState
from .reader import ChannelVariableReader
from .registry import DEFAULT_ASYNC_KEYWORD, InstructionRegistry, build_instruction, default_registry
from .sequencer import ExecutionSequencer, Instruction
from .types import Continuation, OutboundSender, VariableContinuation

_LOGGER = logging.getLogger(__name__)


class OutboundEngine:
    """Protocol engine for a single outbound event-socket connection.

    Usage pattern:
    1. The host creates one engine per accepted connection.
    2. ``start()`` sends the first handshake request.
    3. ``receive_data()`` is called with every chunk read from the socket.
    4. After the handshake, ``handler.session_initiated(engine)`` queues
       instructions through ``invoke``/``run``/``read``.

    Both entry points must be called from the same task; the engine holds no
    locks.
    """

    def __init__(
        self,
        *,
        send: OutboundSender,
        handler: SessionHandler,
        registry: InstructionRegistry | None = None,
        async_keyword: str = DEFAULT_ASYNC_KEYWORD,
        max_header_bytes: int = DEFAULT_MAX_HEADER_BYTES,
    ) -> None:
        self._send = send
        self._handler = handler
        self._registry = registry if registry is not None else default_registry()
        self._async_keyword = async_keyword
        self._decoder = FrameDecoder(max_header_bytes=max_header_bytes)
        self._session: Session | None = None
        self._sequencer = ExecutionSequencer(send)
        self._handshake = HandshakeController(send, self._on_established)
        self._reader = ChannelVariableReader(self._sequencer, lambda: self._session)
        self._disconnected = False
        self._messages_received = 0

    @property
    def session(self) -> Session | None:
        """Session state, available once the connect response arrived."""
        return self._session

    @property
    def registry(self) -> InstructionRegistry:
        return self._registry

    @property
    def sequencer(self) -> ExecutionSequencer:
        return self._sequencer

    @property
    def handshake_state(self) -> HandshakeState:
        return self._handshake.state

    @property
    def established(self) -> bool:
        return self._handshake.established

    @property
    def disconnected(self) -> bool:
        """Whether a disconnect notice has been received."""
        return self._disconnected

    def start(self) -> None:
        """Begins the handshake."""
        self._handshake.start()

    def receive_data(self, chunk: bytes) -> list[ClassifiedMessage]:
        """Processes newly arrived bytes.

        Returns:
            Messages completed by this chunk, in arrival order.

        Raises:
            FrameDecodeError: If the stream cannot be framed.
        """
        self._decoder.feed(chunk)
        return [self.handle_message(classify(frame)) for frame in self._decoder]

    def close(self) -> None:
        """Checks the stream ended on a frame boundary.

        Raises:
            FrameDecodeError: If a partial frame is still buffered.
        """
        self._decoder.finish()

    def handle_message(self, message: ClassifiedMessage) -> ClassifiedMessage:
        """Applies one classified message to session, handshake and sequencer."""
        self._messages_received += 1
        if self._session is None:
            self._session = Session(message)
        else:
            self._session.merge(message)

        if message.kind is MessageKind.DISCONNECT:
            self._disconnected = True
            _LOGGER.info(
                "Disconnect notice received.",
                extra={"unique_id": self._session.unique_id, "reply_text": message.reply_text},
            )
            self._handler.on_disconnect(self, message)

        if not self._handshake.established:
            self._handshake.on_message(message)
            return message

        self._sequencer.on_message(message)
        self._reader.on_message(message)
        return message

    def invoke(self, name: str, *args: Any, continuation: Continuation | None = None, **kwargs: Any) -> None:
        """Queues the registered instruction ``name`` built from ``args``.

        Raises:
            UnknownInstructionError: If ``name`` is not registered.
        """
        self.run(self._registry.create(name, *args, **kwargs), continuation)

    def run(self, descriptor: Descriptor, continuation: Continuation | None = None) -> None:
        """Queues an already-built descriptor."""
        self.enqueue(build_instruction(descriptor, continuation, async_keyword=self._async_keyword))

    def enqueue(self, instruction: Instruction) -> None:
        """Queues a prebuilt instruction; deferred until the session is established."""
        self._sequencer.enqueue(instruction)

    def read(
        self,
        name: str,
        *args: Any,
        continuation: VariableContinuation,
        variable: str | None = None,
        **kwargs: Any,
    ) -> None:
        """Runs application ``name`` and passes a channel variable to ``continuation``.

        ``variable`` defaults to the descriptor's ``read_variable``.
        """
        self.run_and_read(self._registry.create(name, *args, **kwargs), continuation, variable=variable)

    def run_and_read(
        self,
        descriptor: Descriptor,
        continuation: VariableContinuation,
        *,
        variable: str | None = None,
    ) -> None:
        """Descriptor form of ``read``.

        Raises:
            ValueError: If the descriptor is not an application or no
                variable name is known.
        """
        if descriptor.kind is not DescriptorKind.APPLICATION:
            raise ValueError(f"{descriptor.name} is not a channel application")
        target = variable or descriptor.read_variable
        if not target:
            raise ValueError(f"No channel variable to read after {descriptor.name}")
        instruction = build_instruction(descriptor, async_keyword=self._async_keyword)
        self._reader.read(instruction, target, continuation)

    def send_data(self, data: str | bytes) -> None:
        """Writes raw output to the transport, outside the instruction queue."""
        payload = data.encode("utf-8") if isinstance(data, str) else data
        self._send(payload)

    def snapshot(self) -> dict[str, Any]:
        """Returns a status summary for diagnostics endpoints."""
        session = self._session
        return {
            "unique_id": session.unique_id if session else None,
            "caller_id_number": session.get("caller_caller_id_number") if session else None,
            "destination_number": session.get("caller_destination_number") if session else None,
            "handshake_state": self._handshake.state.value,
            "sequencer_state": self._sequencer.state.value,
            "pending_instructions": self._sequencer.pending,
            "messages_received": self._messages_received,
            "disconnected": self._disconnected,
        }

    def _on_established(self) -> None:
        assert self._session is not None
        self._session.established = True
        _LOGGER.debug(
            "Session established; invoking session handler.",
            extra={"unique_id": self._session.unique_id, "deferred": self._sequencer.pending},
        )
        self._sequencer.activate()
        self._handler.session_initiated(self)
