"""Caller-side hooks invoked by the outbound engine."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from ..protocol.classifier import ClassifiedMessage

if TYPE_CHECKING:
    from .outbound_engine import OutboundEngine


class SessionHandler(ABC):
    """Interface implemented by call-control applications.

    One handler instance drives one call leg; ``session_initiated`` is the
    entry point and queues the instructions that run the call.
    """

    @abstractmethod
    def session_initiated(self, engine: OutboundEngine) -> None:
        """Called exactly once, synchronously, after the handshake completes."""

    def on_disconnect(self, engine: OutboundEngine, message: ClassifiedMessage) -> None:
        """Called when the switch announces that the call is gone.

        The connection stays open while the switch lingers; closing it is the
        host's job once the stream ends.
        """


class NullSessionHandler(SessionHandler):
    """Handler that queues nothing; useful for probing the handshake."""

    def session_initiated(self, engine: OutboundEngine) -> None:
        del engine
