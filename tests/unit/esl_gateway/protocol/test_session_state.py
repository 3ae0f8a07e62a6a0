from __future__ import annotations

import pytest

from esl_gateway.app.protocol.classifier import classify
from esl_gateway.app.protocol.framing import FrameDecoder
from esl_gateway.app.protocol.session import Session


def _classify_one(data: bytes):
    return classify(FrameDecoder().decode(data)[0])


def test_session_headers_come_from_connect_response() -> None:
    session = Session(_classify_one(b"Content-Type: command/reply\nCaller-Caller-ID-Number: 8675309\n\n"))

    assert session.headers["caller_caller_id_number"] == "8675309"
    assert dict(session.content) == {}
    assert session.established is False


def test_merge_updates_content_not_headers() -> None:
    session = Session(_classify_one(b"Content-Type: command/reply\nSession-Var: First\nUnique-ID: 1234\n\n"))
    body = b"Event-Name: CHANNEL_DATA\nSession-Var: Second\n\n"

    session.merge(_classify_one(b"Content-Type: command/reply\nContent-Length: %d\n\n" % len(body) + body))

    assert session.headers["session_var"] == "First"
    assert session.content["session_var"] == "Second"
    assert session.content["content_type"] == "command/reply"
    assert session.get("session_var") == "Second"


def test_merge_is_last_write_wins_and_idempotent() -> None:
    session = Session(_classify_one(b"Content-Type: command/reply\n\n"))
    first = _classify_one(b"Content-Type: api/response\nX-Value: one\n\n")
    second = _classify_one(b"Content-Type: api/response\nX-Value: two\n\n")

    session.merge(first)
    session.merge(first)
    assert session.content["x_value"] == "one"

    session.merge(second)
    assert session.content["x_value"] == "two"


def test_unique_id_falls_back_to_content() -> None:
    session = Session(_classify_one(b"Content-Type: command/reply\n\n"))
    assert session.unique_id is None

    session.merge(_classify_one(b"Content-Type: api/response\nUnique-ID: abcd\n\n"))

    assert session.unique_id == "abcd"


def test_session_views_are_read_only() -> None:
    session = Session(_classify_one(b"Content-Type: command/reply\n\n"))

    with pytest.raises(TypeError):
        session.headers["content_type"] = "other"  # type: ignore[index]
    with pytest.raises(TypeError):
        session.content["anything"] = "value"  # type: ignore[index]


def test_get_returns_default_for_unknown_key() -> None:
    session = Session(_classify_one(b"Content-Type: command/reply\n\n"))

    assert session.get("nope", "fallback") == "fallback"
