"""Fixed connect -> myevents -> linger handshake for outbound sockets."""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import Enum

from ..protocol.classifier import ClassifiedMessage, MessageKind
from .types import OutboundSender

_LOGGER = logging.getLogger(__name__)

CONNECT_REQUEST = b"connect\n\n"
EVENT_SUBSCRIPTION_REQUEST = b"myevents\n\n"
LINGER_REQUEST = b"linger\n\n"


class HandshakeState(str, Enum):
    AWAITING_CONNECT = "awaiting_connect"
    AWAITING_EVENT_SUBSCRIPTION = "awaiting_event_subscription"
    AWAITING_LINGER = "awaiting_linger"
    SESSION_ESTABLISHED = "session_established"


class HandshakeController:
    """Drives the three-step handshake and reports establishment once.

    Every ``command/reply`` advances one step; any other kind of message is
    ignored here. Once established the controller stays established.
    """

    def __init__(self, send: OutboundSender, on_established: Callable[[], None]) -> None:
        self._send = send
        self._on_established = on_established
        self._state = HandshakeState.AWAITING_CONNECT
        self._started = False

    @property
    def state(self) -> HandshakeState:
        return self._state

    @property
    def established(self) -> bool:
        return self._state is HandshakeState.SESSION_ESTABLISHED

    def start(self) -> None:
        """Requests the call description; only the first call sends anything."""
        if self._started:
            _LOGGER.debug("Handshake already started; ignoring start().")
            return
        self._started = True
        _LOGGER.debug("Handshake started; requesting call description.")
        self._send(CONNECT_REQUEST)

    def on_message(self, message: ClassifiedMessage) -> bool:
        """Advances on a reply.

        Returns:
            ``True`` when the message moved the handshake forward.
        """
        if self.established or message.kind is not MessageKind.REPLY:
            return False
        if message.is_error:
            _LOGGER.warning(
                "Switch rejected a handshake step.",
                extra={"state": self._state.value, "reply_text": message.reply_text},
            )

        if self._state is HandshakeState.AWAITING_CONNECT:
            self._transition(HandshakeState.AWAITING_EVENT_SUBSCRIPTION)
            self._send(EVENT_SUBSCRIPTION_REQUEST)
        elif self._state is HandshakeState.AWAITING_EVENT_SUBSCRIPTION:
            self._transition(HandshakeState.AWAITING_LINGER)
            self._send(LINGER_REQUEST)
        else:
            self._transition(HandshakeState.SESSION_ESTABLISHED)
            self._on_established()
        return True

    def _transition(self, state: HandshakeState) -> None:
        _LOGGER.debug(
            "Handshake state change.",
            extra={"from_state": self._state.value, "to_state": state.value},
        )
        self._state = state
