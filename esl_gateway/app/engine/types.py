"""Shared type definitions for the outbound session engine."""

from __future__ import annotations

from collections.abc import Callable

from ..protocol.classifier import ClassifiedMessage

# Hands bytes to the transport and returns immediately.
OutboundSender = Callable[[bytes], None]

# Runs once when the instruction it belongs to is acknowledged.
Continuation = Callable[[ClassifiedMessage], None]

# Receives the value of a channel variable delivered by the reader extension.
VariableContinuation = Callable[[str], None]
