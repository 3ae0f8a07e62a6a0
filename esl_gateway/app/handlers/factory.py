"""Factory for constructing per-call session handlers."""

from __future__ import annotations

import importlib
import logging
from collections.abc import Callable

from ..engine.base import NullSessionHandler, SessionHandler
from .builtin import GreetingHandler, ParkHandler

_LOGGER = logging.getLogger(__name__)

SessionHandlerFactory = Callable[[], SessionHandler]

_BUILTIN_HANDLERS: dict[str, SessionHandlerFactory] = {
    "greeting": GreetingHandler,
    "null": NullSessionHandler,
    "park": ParkHandler,
}


def supported_handler_names() -> tuple[str, ...]:
    """Returns built-in handler names for documentation and validation."""
    return tuple(sorted(_BUILTIN_HANDLERS))


def resolve_session_handler(name: str) -> SessionHandlerFactory:
    """Resolves a handler factory from a built-in name or import path.

    Args:
        name: Built-in name (for example ``park``) or ``module:attribute``.

    Returns:
        A zero-argument callable producing a fresh handler per call.

    Raises:
        ValueError: If the name is neither built in nor importable.
    """
    normalized = name.strip()
    _LOGGER.debug(
        "Resolving session handler from config.",
        extra={"requested_handler": name, "normalized_handler": normalized},
    )
    builtin = _BUILTIN_HANDLERS.get(normalized.lower())
    if builtin is not None:
        return builtin

    module_name, sep, attribute = normalized.partition(":")
    if not sep or not module_name or not attribute:
        raise ValueError(f"Unsupported SESSION_HANDLER: {name}")
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise ValueError(f"Cannot import SESSION_HANDLER module: {module_name}") from exc
    factory = getattr(module, attribute, None)
    if not callable(factory):
        raise ValueError(f"SESSION_HANDLER attribute is not callable: {normalized}")
    return factory


def create_session_handler(name: str) -> SessionHandler:
    """Builds one handler instance for a new call leg.

    Raises:
        ValueError: If the name cannot be resolved or the factory does not
            return a ``SessionHandler``.
    """
    handler = resolve_session_handler(name)()
    if not isinstance(handler, SessionHandler):
        raise ValueError(f"SESSION_HANDLER {name} did not produce a SessionHandler")
    return handler
