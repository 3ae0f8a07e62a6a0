"""FastAPI entrypoint hosting the outbound event-socket listener.

This module performs three primary responsibilities:
1. Configure logging for the gateway and its protocol internals.
2. Start and stop the TCP listener the switch dials for every call.
3. Expose liveness and active-call status over HTTP.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any

import uvicorn
from fastapi import FastAPI, HTTPException, Request, status

from .config import settings
from .engine.registry import default_registry
from .handlers.factory import resolve_session_handler
from .listener.server import OutboundSocketServer

_LOGGER = logging.getLogger(__name__)


def _configure_logging() -> None:
    """Configures runtime log level for call lifecycle tracing."""
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    protocol_level = getattr(logging, settings.PROTOCOL_LOG_LEVEL.upper(), logging.INFO)
    root_logger = logging.getLogger()
    if not root_logger.handlers:
        logging.basicConfig(
            level=level,
            format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        )
    else:
        root_logger.setLevel(level)

    _LOGGER.setLevel(level)
    logging.getLogger("esl_gateway").setLevel(level)
    logging.getLogger("esl_gateway.app.protocol").setLevel(protocol_level)
    _LOGGER.debug(
        "Logging configured for esl gateway.",
        extra={
            "log_level": settings.LOG_LEVEL,
            "protocol_log_level": settings.PROTOCOL_LOG_LEVEL,
            "verbose_protocol_logging": settings.VERBOSE_PROTOCOL_LOGGING,
        },
    )


def _build_server() -> OutboundSocketServer:
    """Builds the listener from settings; fails fast on a bad handler name."""
    handler_factory = resolve_session_handler(settings.SESSION_HANDLER)
    return OutboundSocketServer(
        host=settings.ESL_LISTEN_HOST,
        port=settings.ESL_LISTEN_PORT,
        handler_factory=handler_factory,
        registry=default_registry(),
    )


@asynccontextmanager
async def _lifespan(app: FastAPI):
    """Starts the outbound listener and stops it on shutdown.

    Args:
        app: FastAPI app instance; the listener is stored on ``app.state``.
    """
    _LOGGER.debug("ESL gateway lifespan startup beginning.")
    server = _build_server()
    await server.start()
    app.state.outbound_server = server
    try:
        yield
    finally:
        _LOGGER.debug("ESL gateway lifespan shutdown beginning.")
        try:
            await server.stop()
        except Exception:
            _LOGGER.exception("Failed to stop outbound socket listener.")
        app.state.outbound_server = None


_configure_logging()
app = FastAPI(lifespan=_lifespan)


@app.get("/health")
async def health() -> dict[str, str]:
    """Returns a minimal liveness response for probes."""
    return {"status": "ok", "service": "esl_gateway"}


@app.get("/calls")
async def calls(request: Request) -> dict[str, Any]:
    """Lists connections currently served by the outbound listener.

    Raises:
        HTTPException: If the listener is not running.
    """
    server: OutboundSocketServer | None = getattr(request.app.state, "outbound_server", None)
    if server is None or not server.serving:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Outbound listener is not running.",
        )
    active = server.active_calls()
    return {
        "listen_address": settings.listen_address,
        "connections_accepted": server.connections_accepted,
        "active": len(active),
        "calls": active,
    }


def run() -> None:
    """Runs the status app, and with it the listener, under uvicorn."""
    uvicorn.run(app, host=settings.ESL_LISTEN_HOST, port=settings.STATUS_PORT, log_config=None)


if __name__ == "__main__":
    run()
