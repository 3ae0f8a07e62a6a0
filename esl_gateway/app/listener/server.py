"""TCP listener that accepts outbound connections from the switch."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from ..engine.registry import InstructionRegistry
from ..handlers.factory import SessionHandlerFactory
from .outbound_handler import OutboundConnectionHandler

_LOGGER = logging.getLogger(__name__)


class OutboundSocketServer:
    """Accepts switch connections and runs one handler per call leg.

    The instruction registry is built once and shared; each connection
    gets its own session handler from ``handler_factory``.
    """

    def __init__(
        self,
        *,
        host: str,
        port: int,
        handler_factory: SessionHandlerFactory,
        registry: InstructionRegistry | None = None,
    ) -> None:
        self.host = host
        self.port = port
        self._handler_factory = handler_factory
        self._registry = registry
        self._server: asyncio.Server | None = None
        self._active: set[OutboundConnectionHandler] = set()
        self.connections_accepted = 0

    @property
    def serving(self) -> bool:
        return self._server is not None and self._server.is_serving()

    @property
    def bound_ports(self) -> list[int]:
        """Ports actually bound, useful when ``port`` is ``0``."""
        if self._server is None:
            return []
        return [sock.getsockname()[1] for sock in self._server.sockets]

    async def start(self) -> None:
        if self._server is not None:
            _LOGGER.debug("OutboundSocketServer.start() called twice; ignoring.")
            return
        self._server = await asyncio.start_server(self.handle_connection, self.host, self.port)
        _LOGGER.info(
            "Outbound socket listener started.",
            extra={"host": self.host, "ports": self.bound_ports},
        )

    async def stop(self) -> None:
        """Stops accepting, then shuts down every active connection."""
        if self._server is None:
            return
        server, self._server = self._server, None
        server.close()
        for handler in list(self._active):
            await handler.shutdown()
        await server.wait_closed()
        _LOGGER.info("Outbound socket listener stopped.", extra={"host": self.host, "port": self.port})

    async def handle_connection(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        """Connection callback passed to ``asyncio.start_server``."""
        self.connections_accepted += 1
        try:
            session_handler = self._handler_factory()
        except Exception:
            _LOGGER.exception("Failed to create session handler; refusing connection.")
            writer.close()
            return

        handler = OutboundConnectionHandler(
            reader,
            writer,
            session_handler=session_handler,
            registry=self._registry,
        )
        self._active.add(handler)
        try:
            await handler.start()
            await handler.wait_until_done()
        except Exception:
            _LOGGER.exception("Unhandled error while serving outbound connection.")
        finally:
            await handler.shutdown()
            self._active.discard(handler)

    def active_calls(self) -> list[dict[str, Any]]:
        return [handler.status() for handler in self._active]
