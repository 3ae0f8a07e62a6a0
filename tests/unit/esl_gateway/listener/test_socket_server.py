from __future__ import annotations

import asyncio

from esl_gateway.app.engine.base import NullSessionHandler
from esl_gateway.app.handlers.builtin import ParkHandler
from esl_gateway.app.listener.server import OutboundSocketServer

OK_REPLY = b"Content-Type: command/reply\nReply-Text: +OK\n\n"


def run(coro):
    return asyncio.run(coro)


class _FakeStreamWriter:
    def __init__(self) -> None:
        self.closed = False

    def close(self) -> None:
        self.closed = True


async def _wait_for(predicate, timeout: float = 2.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        assert loop.time() < deadline
        await asyncio.sleep(0.01)


def test_server_drives_switch_connection_end_to_end() -> None:
    server = OutboundSocketServer(host="127.0.0.1", port=0, handler_factory=ParkHandler)

    async def scenario() -> tuple[list[bytes], list[dict], int]:
        await server.start()
        port = server.bound_ports[0]
        reader, writer = await asyncio.open_connection("127.0.0.1", port)

        received = [await reader.readuntil(b"\n\n")]
        writer.write(b"Content-Type: command/reply\nUnique-ID: 1234\nCaller-Caller-ID-Number: 8675309\n\n")
        received.append(await reader.readuntil(b"\n\n"))
        writer.write(OK_REPLY)
        received.append(await reader.readuntil(b"\n\n"))
        writer.write(OK_REPLY)
        received.append(await reader.readuntil(b"\n\n"))
        calls = server.active_calls()

        writer.close()
        await writer.wait_closed()
        await _wait_for(lambda: not server.active_calls())
        accepted = server.connections_accepted
        await server.stop()
        return received, calls, accepted

    received, calls, accepted = run(scenario())

    assert received[:3] == [b"connect\n\n", b"myevents\n\n", b"linger\n\n"]
    assert b"execute-app-name: answer" in received[3]
    assert len(calls) == 1
    assert calls[0]["unique_id"] == "1234"
    assert calls[0]["caller_id_number"] == "8675309"
    assert calls[0]["sequencer_state"] == "awaiting_reply"
    assert accepted == 1
    assert server.serving is False


def test_stop_closes_active_connections() -> None:
    server = OutboundSocketServer(host="127.0.0.1", port=0, handler_factory=NullSessionHandler)

    async def scenario() -> bytes:
        await server.start()
        reader, writer = await asyncio.open_connection("127.0.0.1", server.bound_ports[0])
        await reader.readuntil(b"\n\n")
        await _wait_for(lambda: len(server.active_calls()) == 1)

        await server.stop()
        remainder = await asyncio.wait_for(reader.read(), timeout=2)
        writer.close()
        return remainder

    assert run(scenario()) == b""
    assert server.active_calls() == []


def test_failing_handler_factory_refuses_connection() -> None:
    def broken_factory():
        raise RuntimeError("no handler")

    server = OutboundSocketServer(host="127.0.0.1", port=0, handler_factory=broken_factory)
    writer = _FakeStreamWriter()

    run(server.handle_connection(object(), writer))  # type: ignore[arg-type]

    assert writer.closed is True
    assert server.active_calls() == []
    assert server.connections_accepted == 1


def test_stop_before_start_is_a_no_op() -> None:
    server = OutboundSocketServer(host="127.0.0.1", port=0, handler_factory=NullSessionHandler)

    run(server.stop())

    assert server.bound_ports == []
    assert server.serving is False
