"""Tags decoded frames by content type and extracts their nested headers."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType

from .framing import Message, parse_header_block

_LOGGER = logging.getLogger(__name__)


class MessageKind(str, Enum):
    """Kinds of frames the switch sends to an outbound socket."""

    REPLY = "command/reply"
    API_RESPONSE = "api/response"
    EVENT = "text/event-plain"
    DISCONNECT = "text/disconnect-notice"
    UNRECOGNIZED = "unrecognized"


_KINDS_BY_CONTENT_TYPE = {
    kind.value: kind for kind in MessageKind if kind is not MessageKind.UNRECOGNIZED
}

_EMPTY: Mapping[str, str] = MappingProxyType({})


@dataclass(slots=True, frozen=True)
class ClassifiedMessage:
    """A frame together with its kind and the headers carried in its body.

    Attributes:
        kind: Kind derived from the ``Content-Type`` header.
        message: The decoded frame.
        content: Nested header block parsed from the body; empty when the
            body is absent or is not header-shaped (``+OK``, ``Lingering``).
    """

    kind: MessageKind
    message: Message
    content: Mapping[str, str] = field(default_factory=lambda: _EMPTY)

    @property
    def headers(self) -> Mapping[str, str]:
        return self.message.headers

    @property
    def reply_text(self) -> str:
        """Returns the ``Reply-Text`` header, or the body text when absent."""
        text = self.message.headers.get("reply_text")
        if text is not None:
            return text
        return self.message.body_text.strip()

    @property
    def is_error(self) -> bool:
        return self.reply_text.startswith("-ERR")

    def get(self, key: str) -> str | None:
        """Looks up a normalized key in the nested content, then the headers."""
        value = self.content.get(key)
        if value is None:
            value = self.message.headers.get(key)
        return value


def classify(message: Message) -> ClassifiedMessage:
    """Determines the kind of ``message`` and parses any nested headers."""
    kind = _KINDS_BY_CONTENT_TYPE.get(message.content_type, MessageKind.UNRECOGNIZED)
    if kind is MessageKind.UNRECOGNIZED:
        _LOGGER.warning(
            "Unrecognized content type from switch.",
            extra={"content_type": message.content_type or None},
        )

    content: Mapping[str, str] = _EMPTY
    if message.body:
        # Plain event bodies are percent-encoded; reply and api bodies are not.
        nested = parse_header_block(
            message.body_text,
            url_decoded=kind is MessageKind.EVENT,
        )
        if nested:
            content = MappingProxyType(nested)

    return ClassifiedMessage(kind=kind, message=message, content=content)
