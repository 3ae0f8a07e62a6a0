"""Asyncio stream bridge between one switch connection and its engine.

The switch opens a TCP connection per call leg. This handler owns that
connection: it feeds received bytes to an ``OutboundEngine``, writes the
engine's output back, and enforces the optional instruction timeout the
engine itself does not have.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from typing import Any

from ..config import settings
from ..engine.base import SessionHandler
from ..engine.outbound_engine import OutboundEngine
from ..engine.registry import InstructionRegistry
from ..protocol.errors import FrameDecodeError

_LOGGER = logging.getLogger(__name__)


class OutboundConnectionHandler:
    """Drives one outbound socket connection.

    Usage pattern:
    1. The listener creates one ``OutboundConnectionHandler`` per accepted
       connection.
    2. ``start()`` builds the engine, sends the first handshake request and
       starts the background loops.
    3. ``wait_until_done()`` blocks until the switch closes the stream.
    4. ``shutdown()`` is called in a ``finally`` block to release resources.

    Background tasks started by ``start()``:
    - ``_read_loop_task``: Reads switch bytes into the engine.
    - ``_watchdog_task``: Drops the call when an instruction stays
      unacknowledged past ``INSTRUCTION_TIMEOUT_S`` (only when enabled).
    """

    def __init__(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        *,
        session_handler: SessionHandler,
        registry: InstructionRegistry | None = None,
    ) -> None:
        """Initializes per-connection state.

        Args:
            reader: Stream the switch writes frames to.
            writer: Stream used for handshake and instruction bytes.
            session_handler: Call-control logic for this call leg.
            registry: Instruction registry shared by all connections.
        """
        self.reader = reader
        self.writer = writer
        self.engine: OutboundEngine | None = None
        self._session_handler = session_handler
        self._registry = registry

        self._read_loop_task: asyncio.Task[None] | None = None
        self._watchdog_task: asyncio.Task[None] | None = None

        # Set during shutdown to stop loops and prevent duplicate close.
        self._is_shutting_down = False

        self._bytes_received = 0
        self._bytes_sent = 0
        self._started_monotonic = time.monotonic()
        peer = writer.get_extra_info("peername")
        self.peer = str(peer) if peer else None
        _LOGGER.debug("OutboundConnectionHandler initialized.", extra={"peer": self.peer})

    async def start(self) -> None:
        """Creates the engine, starts the handshake and background loops."""
        if self.engine is not None:
            _LOGGER.debug("OutboundConnectionHandler.start() called after startup; ignoring.")
            return
        self.engine = OutboundEngine(
            send=self._send,
            handler=self._session_handler,
            registry=self._registry,
            async_keyword=settings.ASYNC_API_KEYWORD,
            max_header_bytes=settings.MAX_HEADER_BYTES,
        )
        self.engine.start()
        await self.writer.drain()

        self._read_loop_task = asyncio.create_task(self._read_loop())
        if settings.INSTRUCTION_TIMEOUT_S > 0:
            self._watchdog_task = asyncio.create_task(self._watchdog_loop())
        _LOGGER.info(
            "Outbound connection started.",
            extra={"peer": self.peer, "watchdog": self._watchdog_task is not None},
        )

    async def wait_until_done(self) -> None:
        """Waits for the read loop to finish, then shuts down.

        The read loop is the liveness signal: it ends when the switch closes
        the socket (normally after the linger period), on a fatal decode
        error, or when the watchdog cancels it.
        """
        if not self._read_loop_task:
            _LOGGER.debug("wait_until_done() called before start; returning early.")
            return
        try:
            await asyncio.wait({self._read_loop_task})
        finally:
            await self.shutdown()

    async def shutdown(self) -> None:
        """Idempotently cancels loops and closes the connection."""
        if self._is_shutting_down:
            _LOGGER.debug("OutboundConnectionHandler.shutdown() called while already shutting down.")
            return
        self._is_shutting_down = True

        await self._cancel_background_tasks()

        if not self.writer.is_closing():
            with contextlib.suppress(Exception):
                self.writer.close()
                await self.writer.wait_closed()
        _LOGGER.info(
            "Outbound connection closed.",
            extra={
                "peer": self.peer,
                "unique_id": self.engine.session.unique_id if self.engine and self.engine.session else None,
                "bytes_received": self._bytes_received,
                "bytes_sent": self._bytes_sent,
                "duration_s": round(time.monotonic() - self._started_monotonic, 3),
            },
        )

    def status(self) -> dict[str, Any]:
        """Returns a diagnostics summary of this connection."""
        summary: dict[str, Any] = {
            "peer": self.peer,
            "bytes_received": self._bytes_received,
            "bytes_sent": self._bytes_sent,
        }
        if self.engine is not None:
            summary.update(self.engine.snapshot())
        return summary

    def instruction_timed_out(self, now: float | None = None) -> bool:
        """Returns whether the in-flight instruction exceeded the timeout."""
        if self.engine is None or settings.INSTRUCTION_TIMEOUT_S <= 0:
            return False
        since = self.engine.sequencer.in_flight_since
        if since is None:
            return False
        current = time.monotonic() if now is None else now
        return current - since > settings.INSTRUCTION_TIMEOUT_S

    def _send(self, data: bytes) -> None:
        """Hands bytes to the transport; draining happens in the read loop."""
        if self._is_shutting_down or self.writer.is_closing():
            _LOGGER.debug("Dropping outbound bytes on closing connection.", extra={"bytes": len(data)})
            return
        self._bytes_sent += len(data)
        if settings.VERBOSE_PROTOCOL_LOGGING:
            _LOGGER.debug("Sending bytes to switch.", extra={"peer": self.peer, "data": data})
        self.writer.write(data)

    async def _cancel_background_tasks(self) -> None:
        """Cancels and awaits handler-owned tasks, except the current one."""
        current = asyncio.current_task()
        tasks = [self._read_loop_task, self._watchdog_task]
        for task in tasks:
            if task and task is not current and not task.done():
                task.cancel()
        for task in tasks:
            if task and task is not current:
                with contextlib.suppress(asyncio.CancelledError, Exception):
                    await task

    async def _read_loop(self) -> None:
        """Feeds switch bytes into the engine until the stream ends."""
        assert self.engine is not None
        _LOGGER.debug("Outbound read loop started.", extra={"peer": self.peer})
        try:
            while not self._is_shutting_down:
                chunk = await self.reader.read(settings.READ_CHUNK_BYTES)
                if not chunk:
                    _LOGGER.info("Switch closed the outbound connection.", extra={"peer": self.peer})
                    self._check_stream_end()
                    return
                self._bytes_received += len(chunk)
                if settings.VERBOSE_PROTOCOL_LOGGING:
                    _LOGGER.debug("Received bytes from switch.", extra={"peer": self.peer, "data": chunk})
                self.engine.receive_data(chunk)
                await self.writer.drain()
        except asyncio.CancelledError:
            _LOGGER.debug("Outbound read loop cancelled.")
            raise
        except FrameDecodeError:
            _LOGGER.error("Undecodable data from switch; closing connection.", exc_info=True)
        except ConnectionError:
            _LOGGER.info("Outbound connection reset by switch.", extra={"peer": self.peer})
        except Exception:
            _LOGGER.exception("Outbound read loop failed.")

    async def _watchdog_loop(self) -> None:
        """Drops the connection when an instruction waits too long."""
        try:
            while not self._is_shutting_down:
                await asyncio.sleep(settings.WATCHDOG_INTERVAL_S)
                if self.instruction_timed_out():
                    in_flight = self.engine.sequencer.in_flight if self.engine else None
                    _LOGGER.error(
                        "Instruction not acknowledged in time; dropping call.",
                        extra={
                            "peer": self.peer,
                            "label": in_flight.label if in_flight else None,
                            "timeout_s": settings.INSTRUCTION_TIMEOUT_S,
                        },
                    )
                    await self.shutdown()
                    return
        except asyncio.CancelledError:
            raise
        except Exception:
            _LOGGER.exception("Instruction watchdog failed.")

    def _check_stream_end(self) -> None:
        assert self.engine is not None
        try:
            self.engine.close()
        except FrameDecodeError as exc:
            _LOGGER.warning("Stream ended with a partial frame.", extra={"peer": self.peer, "error": str(exc)})
