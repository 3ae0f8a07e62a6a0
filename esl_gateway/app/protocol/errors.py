"""Exceptions raised by the event-socket protocol and engine layers."""

from __future__ import annotations


class FrameDecodeError(ValueError):
    """Incoming bytes cannot be framed; the connection must be closed."""


class UnknownInstructionError(KeyError):
    """No descriptor is registered under the requested instruction name."""


class SessionError(RuntimeError):
    """An operation needs call data the session does not carry."""
