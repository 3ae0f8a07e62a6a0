"""Outbound session engine: handshake, sequencing and variable reads."""

from .base import NullSessionHandler, SessionHandler
from .handshake import HandshakeController, HandshakeState
from .outbound_engine import OutboundEngine
from .reader import ChannelVariableReader
from .registry import InstructionRegistry, build_instruction, default_registry, encode_descriptor
from .sequencer import ExecutionSequencer, Instruction, SequencerState
from .types import Continuation, OutboundSender, VariableContinuation

__all__ = [
    "ChannelVariableReader",
    "Continuation",
    "ExecutionSequencer",
    "HandshakeController",
    "HandshakeState",
    "Instruction",
    "InstructionRegistry",
    "NullSessionHandler",
    "OutboundEngine",
    "OutboundSender",
    "SequencerState",
    "SessionHandler",
    "VariableContinuation",
    "build_instruction",
    "default_registry",
    "encode_descriptor",
]
