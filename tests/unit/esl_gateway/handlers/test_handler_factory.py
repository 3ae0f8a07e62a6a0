from __future__ import annotations

import pytest

from esl_gateway.app.engine.base import NullSessionHandler, SessionHandler
from esl_gateway.app.handlers.builtin import GreetingHandler, ParkHandler
from esl_gateway.app.handlers.factory import (
    create_session_handler,
    resolve_session_handler,
    supported_handler_names,
)


class ImportableHandler(SessionHandler):
    def session_initiated(self, engine) -> None:
        del engine


def not_a_handler() -> object:
    return object()


def test_create_session_handler_returns_builtins() -> None:
    assert isinstance(create_session_handler("park"), ParkHandler)
    assert isinstance(create_session_handler(" Greeting "), GreetingHandler)
    assert isinstance(create_session_handler("null"), NullSessionHandler)


def test_create_session_handler_builds_fresh_instances() -> None:
    assert create_session_handler("greeting") is not create_session_handler("greeting")


def test_resolve_session_handler_accepts_import_path() -> None:
    factory = resolve_session_handler(f"{__name__}:ImportableHandler")

    assert factory is ImportableHandler
    assert isinstance(create_session_handler(f"{__name__}:ImportableHandler"), ImportableHandler)


def test_resolve_session_handler_rejects_unknown_names() -> None:
    with pytest.raises(ValueError):
        resolve_session_handler("voicemail")
    with pytest.raises(ValueError):
        resolve_session_handler("no_such_module_here:Handler")
    with pytest.raises(ValueError):
        resolve_session_handler(f"{__name__}:missing_attribute")


def test_create_session_handler_rejects_non_handlers() -> None:
    with pytest.raises(ValueError):
        create_session_handler(f"{__name__}:not_a_handler")


def test_supported_handler_names_lists_builtins() -> None:
    assert supported_handler_names() == ("greeting", "null", "park")
