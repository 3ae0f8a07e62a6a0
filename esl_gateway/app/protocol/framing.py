"""Incremental frame decoder for the event-socket wire format.

A frame is a block of ``Key: value`` lines terminated by a blank line. When
the block declares ``Content-Length`` the frame also owns that many bytes
that follow the blank line; those bytes are attached verbatim as the body.
Nothing here knows what a frame means; classification happens in
``classifier.py``.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from urllib.parse import unquote

from .errors import FrameDecodeError

_LOGGER = logging.getLogger(__name__)

_NON_ALNUM_RUN = re.compile(r"[^0-9a-z]+")
_HEADER_TERMINATORS = (b"\r\n\r\n", b"\n\n")
_CONTENT_LENGTH = "content_length"

DEFAULT_MAX_HEADER_BYTES = 64 * 1024


def normalize_header_name(name: str) -> str:
    """Lowercases a header name and collapses separator runs to ``_``.

    ``Caller-Caller-ID-Number`` becomes ``caller_caller_id_number``.
    """
    return _NON_ALNUM_RUN.sub("_", name.strip().lower()).strip("_")


def parse_header_lines(text: str) -> list[tuple[str, str]]:
    """Splits ``Key: value`` lines, keeping original names and order.

    Lines without a colon are not headers and are skipped.
    """
    pairs: list[tuple[str, str]] = []
    for line in text.splitlines():
        name, sep, value = line.partition(":")
        if not sep or not name.strip():
            continue
        pairs.append((name.strip(), value.strip()))
    return pairs


def parse_header_block(text: str, *, url_decoded: bool = False) -> dict[str, str]:
    """Parses a header block into a normalized-name mapping.

    Args:
        text: Header lines, with or without the terminating blank line.
        url_decoded: Percent-decode values (plain event bodies are encoded).

    Returns:
        Mapping of normalized header name to value; later duplicates win.
    """
    headers: dict[str, str] = {}
    for name, value in parse_header_lines(text):
        headers[normalize_header_name(name)] = unquote(value) if url_decoded else value
    return headers


@dataclass(slots=True, frozen=True)
class Message:
    """One decoded frame.

    Attributes:
        headers: Normalized header name -> value.
        body: Raw body bytes when the frame declared a length.
        raw_headers: Header pairs exactly as received, for diagnostics.
    """

    headers: Mapping[str, str]
    body: bytes | None = None
    raw_headers: tuple[tuple[str, str], ...] = field(default=())

    @property
    def content_type(self) -> str:
        return self.headers.get("content_type", "").strip().lower()

    @property
    def body_text(self) -> str:
        if self.body is None:
            return ""
        return self.body.decode("utf-8", errors="replace")


def _build_message(pairs: list[tuple[str, str]], body: bytes | None) -> Message:
    headers = {normalize_header_name(name): value for name, value in pairs}
    return Message(headers=MappingProxyType(headers), body=body, raw_headers=tuple(pairs))


def _declared_length(pairs: list[tuple[str, str]]) -> int | None:
    """Returns the declared body length, if any.

    Raises:
        FrameDecodeError: If the declared length is not a non-negative integer.
    """
    declared: str | None = None
    for name, value in pairs:
        if normalize_header_name(name) == _CONTENT_LENGTH:
            declared = value
    if declared is None:
        return None
    if not (declared.isascii() and declared.isdigit()):
        raise FrameDecodeError(f"malformed Content-Length: {declared!r}")
    return int(declared)


def _find_header_end(buffer: bytearray) -> tuple[int, int] | None:
    """Locates the earliest blank-line terminator as ``(start, end)``."""
    found: list[tuple[int, int]] = []
    for terminator in _HEADER_TERMINATORS:
        index = buffer.find(terminator)
        if index != -1:
            found.append((index, index + len(terminator)))
    return min(found) if found else None


class FrameDecoder:
    """Turns appended byte chunks into complete ``Message`` frames.

    Usage::

        decoder = FrameDecoder()
        decoder.feed(chunk)
        for message in decoder:
            ...

    Iteration yields every frame that is complete right now and then stops;
    after more ``feed`` calls the decoder can be iterated again and resumes
    where it left off. Partial headers and partial bodies stay buffered.
    """

    def __init__(self, *, max_header_bytes: int = DEFAULT_MAX_HEADER_BYTES) -> None:
        self._buffer = bytearray()
        self._max_header_bytes = max_header_bytes
        # Header pairs and declared length of a frame still waiting for its body.
        self._pending: tuple[list[tuple[str, str]], int] | None = None
        self._frames_decoded = 0

    @property
    def buffered(self) -> int:
        """Number of received bytes not yet emitted as part of a frame."""
        return len(self._buffer)

    @property
    def frames_decoded(self) -> int:
        return self._frames_decoded

    def feed(self, chunk: bytes) -> None:
        """Appends bytes in arrival order."""
        self._buffer.extend(chunk)

    def decode(self, chunk: bytes) -> list[Message]:
        """Feeds ``chunk`` and returns every frame it completed."""
        self.feed(chunk)
        return list(self)

    def __iter__(self) -> Iterator[Message]:
        while True:
            message = self._next_message()
            if message is None:
                return
            self._frames_decoded += 1
            yield message

    def finish(self) -> None:
        """Checks that the stream ended on a frame boundary.

        Raises:
            FrameDecodeError: If a partial header block or body is buffered.
        """
        if self._pending is not None:
            _pairs, length = self._pending
            raise FrameDecodeError(
                f"stream ended inside a body: expected {length} bytes, got {len(self._buffer)}"
            )
        if self._buffer.strip():
            raise FrameDecodeError(f"unterminated header block ({len(self._buffer)} bytes buffered)")

    def _skip_blank_lines(self) -> None:
        """Drops separators left between frames (for example after a body)."""
        remainder = self._buffer.lstrip(b"\r\n")
        skipped = len(self._buffer) - len(remainder)
        if skipped:
            del self._buffer[:skipped]

    def _next_message(self) -> Message | None:
        if self._pending is None:
            self._skip_blank_lines()
            if not self._buffer:
                return None
            bounds = _find_header_end(self._buffer)
            if bounds is None:
                if len(self._buffer) > self._max_header_bytes:
                    raise FrameDecodeError(
                        f"header block exceeds {self._max_header_bytes} bytes without terminator"
                    )
                return None
            start, end = bounds
            text = bytes(self._buffer[:start]).decode("utf-8", errors="replace")
            del self._buffer[:end]
            pairs = parse_header_lines(text)
            length = _declared_length(pairs)
            if length is None:
                return _build_message(pairs, None)
            self._pending = (pairs, length)

        pairs, length = self._pending
        if len(self._buffer) < length:
            _LOGGER.debug(
                "Waiting for remainder of frame body.",
                extra={"declared_length": length, "buffered": len(self._buffer)},
            )
            return None
        body = bytes(self._buffer[:length])
        del self._buffer[:length]
        self._pending = None
        return _build_message(pairs, body)
