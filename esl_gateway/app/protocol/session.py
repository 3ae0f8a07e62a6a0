"""Per-call session state accumulated from switch traffic."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from types import MappingProxyType

from .classifier import ClassifiedMessage

_LOGGER = logging.getLogger(__name__)


class Session:
    """Accumulated view of one call leg.

    ``headers`` is seeded once from the connect response. ``content`` is
    merged from every later frame (outer headers first, then the nested
    body headers), most recent value winning per key. Callers only get
    read-only views; the engine is the sole writer.
    """

    def __init__(self, connect_message: ClassifiedMessage) -> None:
        self._headers: dict[str, str] = dict(connect_message.headers)
        self._headers.update(connect_message.content)
        self._content: dict[str, str] = {}
        self.established = False
        _LOGGER.debug(
            "Session created from connect response.",
            extra={"unique_id": self._headers.get("unique_id"), "header_count": len(self._headers)},
        )

    @property
    def headers(self) -> Mapping[str, str]:
        return MappingProxyType(self._headers)

    @property
    def content(self) -> Mapping[str, str]:
        return MappingProxyType(self._content)

    @property
    def unique_id(self) -> str | None:
        """Channel UUID from the connect response, falling back to later data."""
        return self._headers.get("unique_id") or self._content.get("unique_id")

    def get(self, key: str, default: str | None = None) -> str | None:
        """Returns the freshest known value for a normalized key."""
        if key in self._content:
            return self._content[key]
        return self._headers.get(key, default)

    def merge(self, message: ClassifiedMessage) -> None:
        """Folds one frame's headers and nested content into ``content``."""
        self._content.update(message.headers)
        self._content.update(message.content)
