from __future__ import annotations

import pytest

from esl_gateway.app.engine.sequencer import ExecutionSequencer, Instruction, SequencerState
from esl_gateway.app.protocol.classifier import MessageKind, classify
from esl_gateway.app.protocol.framing import FrameDecoder


def _message(data: bytes):
    return classify(FrameDecoder().decode(data)[0])


REPLY = b"Content-Type: command/reply\nReply-Text: +OK\n\n"
API_RESPONSE = b"Content-Type: api/response\nContent-Length: 3\n\n+OK"
EVENT = b"Content-Type: text/event-plain\nContent-Length: 25\n\nEvent-Name: CHANNEL_DATA\n"
DISCONNECT = b"Content-Type: text/disconnect-notice\nContent-Length: 9\n\nLingering"


def _active_sequencer():
    sent: list[bytes] = []
    sequencer = ExecutionSequencer(sent.append)
    sequencer.activate()
    return sequencer, sent


def _app(label: str, continuation=None) -> Instruction:
    return Instruction(wire=label.encode(), expects=MessageKind.REPLY, continuation=continuation, label=label)


def _cmd(label: str, continuation=None) -> Instruction:
    return Instruction(wire=label.encode(), expects=MessageKind.API_RESPONSE, continuation=continuation, label=label)


def test_instruction_rejects_event_completion_kind() -> None:
    with pytest.raises(ValueError):
        Instruction(wire=b"x", expects=MessageKind.EVENT)


def test_enqueue_before_activation_is_deferred() -> None:
    sent: list[bytes] = []
    sequencer = ExecutionSequencer(sent.append)

    sequencer.enqueue(_app("foo"))
    assert sent == []
    assert sequencer.state is SequencerState.DEFERRED
    assert sequencer.pending == 1

    sequencer.activate()

    assert sent == [b"foo"]
    assert sequencer.state is SequencerState.AWAITING_REPLY


def test_activate_with_empty_queue_goes_idle() -> None:
    sequencer, sent = _active_sequencer()

    assert sequencer.state is SequencerState.IDLE
    assert sent == []


def test_only_one_instruction_in_flight() -> None:
    sequencer, sent = _active_sequencer()

    sequencer.enqueue(_app("foo"))
    sequencer.enqueue(_app("bar"))

    assert sent == [b"foo"]
    assert sequencer.pending == 1
    assert sequencer.in_flight is not None and sequencer.in_flight.label == "foo"
    assert sequencer.in_flight_since is not None

    assert sequencer.on_message(_message(REPLY)) is True
    assert sent == [b"foo", b"bar"]

    sequencer.on_message(_message(REPLY))
    assert sequencer.state is SequencerState.IDLE
    assert sequencer.in_flight is None
    assert sequencer.completed_count == 2


def test_events_api_responses_and_disconnects_do_not_complete_a_reply() -> None:
    sequencer, sent = _active_sequencer()
    sequencer.enqueue(_app("foo"))
    sequencer.enqueue(_app("bar"))

    for data in (EVENT, API_RESPONSE, DISCONNECT):
        assert sequencer.on_message(_message(data)) is False

    assert sent == [b"foo"]
    assert sequencer.state is SequencerState.AWAITING_REPLY


def test_command_completes_only_on_api_response() -> None:
    sequencer, sent = _active_sequencer()
    sequencer.enqueue(_cmd("bar"))
    sequencer.enqueue(_app("baz"))

    assert sequencer.state is SequencerState.AWAITING_API_RESPONSE
    for data in (REPLY, EVENT, DISCONNECT):
        assert sequencer.on_message(_message(data)) is False
    assert sent == [b"bar"]

    assert sequencer.on_message(_message(API_RESPONSE)) is True
    assert sent == [b"bar", b"baz"]


def test_message_with_nothing_in_flight_is_ignored() -> None:
    sequencer, _ = _active_sequencer()

    assert sequencer.on_message(_message(REPLY)) is False
    assert sequencer.state is SequencerState.IDLE


def test_nested_continuation_runs_after_pending_siblings() -> None:
    sequencer, sent = _active_sequencer()

    sequencer.enqueue(_app("foo", lambda _reply: sequencer.enqueue(_app("nested"))))
    sequencer.enqueue(_app("sibling"))

    sequencer.on_message(_message(REPLY))
    assert sent == [b"foo", b"sibling"]

    sequencer.on_message(_message(REPLY))
    assert sent == [b"foo", b"sibling", b"nested"]


def test_continuation_enqueue_on_empty_queue_dispatches_once() -> None:
    sequencer, sent = _active_sequencer()

    sequencer.enqueue(_app("foo", lambda _reply: sequencer.enqueue(_app("bar"))))
    sequencer.on_message(_message(REPLY))

    assert sent == [b"foo", b"bar"]
    assert sequencer.state is SequencerState.AWAITING_REPLY
    assert sequencer.pending == 0


def test_continuation_receives_completing_message() -> None:
    sequencer, _ = _active_sequencer()
    received = []

    sequencer.enqueue(_cmd("status", received.append))
    sequencer.on_message(_message(API_RESPONSE))

    assert len(received) == 1
    assert received[0].kind is MessageKind.API_RESPONSE
    assert received[0].reply_text == "+OK"


def test_failing_continuation_still_advances_queue() -> None:
    sequencer, sent = _active_sequencer()

    def explode(_reply) -> None:
        raise RuntimeError("boom")

    sequencer.enqueue(_app("foo", explode))
    sequencer.enqueue(_app("bar"))

    with pytest.raises(RuntimeError):
        sequencer.on_message(_message(REPLY))

    assert sent == [b"foo", b"bar"]
    assert sequencer.state is SequencerState.AWAITING_REPLY
