"""Event-socket wire protocol: framing, classification and session state."""

from .classifier import ClassifiedMessage, MessageKind, classify
from .errors import FrameDecodeError, SessionError, UnknownInstructionError
from .framing import FrameDecoder, Message, normalize_header_name, parse_header_block
from .session import Session

__all__ = [
    "ClassifiedMessage",
    "FrameDecodeError",
    "FrameDecoder",
    "Message",
    "MessageKind",
    "Session",
    "SessionError",
    "UnknownInstructionError",
    "classify",
    "normalize_header_name",
    "parse_header_block",
]
