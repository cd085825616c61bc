"""Tests for the WebSocket session state machine."""

from __future__ import annotations

import time

import pytest

from conductor.chain import AssertionFailure, Chain, FailureKind
from conductor.engine import SessionState, WebSocketSession
from conductor.errors import ConnectionClosedError, DeadlineExceeded
from conductor.transport import MessageType, WsMessage, format_close_message

from fakes import FakeConnection, RecordingPrinter, SpyHandler


def make_session(conn: FakeConnection, **kwargs) -> tuple[WebSocketSession, SpyHandler, RecordingPrinter]:
    handler = SpyHandler()
    printer = RecordingPrinter()
    session = WebSocketSession(conn, Chain("connect()", handler), printers=[printer], **kwargs)
    return session, handler, printer


class TestRead:
    @pytest.mark.asyncio
    async def test_reads_text_frame(self):
        conn = FakeConnection(WsMessage(MessageType.TEXT, b"hello"), subprotocol="chat")
        session, handler, printer = make_session(conn)

        message, failure = await session.read_message()

        assert failure is None
        assert message.text == "hello"
        assert session.subprotocol == "chat"
        assert session.state == SessionState.OPEN
        assert printer.events == [("read", MessageType.TEXT, b"hello", 0)]
        assert session.chain.context().message is message
        assert handler.failures == []

    @pytest.mark.asyncio
    async def test_peer_close_frame_closes_session(self):
        conn = FakeConnection(WsMessage(MessageType.CLOSE, b"", close_code=1001))
        session, handler, _ = make_session(conn)

        message, failure = await session.read_message()

        assert failure is None
        assert message.type == MessageType.CLOSE
        assert session.closed
        assert session.close_code == 1001

        message, failure = await session.read_message()
        assert message is None
        assert failure.kind == FailureKind.WEBSOCKET_CLOSED
        assert conn.reads == 1
        assert len(handler.failures) == 1

    @pytest.mark.asyncio
    async def test_read_timeout_closes_abnormally(self):
        conn = FakeConnection()
        session, handler, printer = make_session(conn)

        message, failure = await session.read_message(timeout=0.5)

        assert message is None
        assert failure.kind == FailureKind.WEBSOCKET_TIMEOUT
        assert session.closed
        assert session.close_code == 1006
        assert printer.events == [("read", MessageType.CLOSE, b"", 1006)]
        assert len(handler.failures) == 1

    @pytest.mark.asyncio
    async def test_read_error(self):
        conn = FakeConnection(ConnectionClosedError("gone"))
        session, _, _ = make_session(conn)
        _, failure = await session.read_message()
        assert failure.kind == FailureKind.WEBSOCKET_ERROR
        assert session.closed

    @pytest.mark.asyncio
    async def test_read_deadline_is_absolute(self):
        conn = FakeConnection(WsMessage(MessageType.TEXT, b"a"), WsMessage(MessageType.TEXT, b"b"))
        session, _, _ = make_session(conn)

        before = time.monotonic()
        await session.read_message(timeout=5.0)
        await session.read_message()

        assert conn.read_deadlines[0] >= before + 5.0
        assert conn.read_deadlines[1] is None

    @pytest.mark.asyncio
    async def test_default_read_timeout(self):
        conn = FakeConnection(WsMessage(MessageType.TEXT, b"a"))
        session, _, _ = make_session(conn, read_timeout=2.0)
        before = time.monotonic()
        await session.read_message()
        assert conn.read_deadlines[0] >= before + 2.0


class TestWrite:
    @pytest.mark.asyncio
    async def test_write_text_and_json(self):
        conn = FakeConnection()
        session, handler, printer = make_session(conn)

        assert await session.write_text("hi") is None
        assert await session.write_json({"a": 1}) is None
        assert await session.write_bytes(b"\x00\x01") is None

        assert conn.written == [
            (MessageType.TEXT, b"hi"),
            (MessageType.TEXT, b'{"a": 1}'),
            (MessageType.BINARY, b"\x00\x01"),
        ]
        assert [e[0] for e in printer.events] == ["write", "write", "write"]
        assert handler.failures == []

    @pytest.mark.asyncio
    async def test_write_error_closes_session(self):
        conn = FakeConnection(write_error=DeadlineExceeded("write deadline exceeded"))
        session, handler, printer = make_session(conn)

        failure = await session.write_text("hi")

        assert failure.kind == FailureKind.WEBSOCKET_TIMEOUT
        assert session.closed
        assert printer.events == [("write", MessageType.TEXT, b"hi", 0)]
        assert len(handler.failures) == 1

    @pytest.mark.asyncio
    async def test_write_after_close_fails_without_touching_connection(self):
        conn = FakeConnection(WsMessage(MessageType.CLOSE, b"", close_code=1000))
        session, _, _ = make_session(conn)
        await session.read_message()

        failure = await session.write_text("late")
        assert failure.kind == FailureKind.WEBSOCKET_CLOSED
        assert conn.written == []

    @pytest.mark.asyncio
    async def test_writing_close_frame_closes_session(self):
        conn = FakeConnection()
        session, _, printer = make_session(conn)
        await session.write_message(MessageType.CLOSE, format_close_message(4000, "done"))
        assert session.closed
        assert session.close_code == 4000
        assert printer.events == [("write", MessageType.CLOSE, format_close_message(4000, "done"), 4000)]

    @pytest.mark.asyncio
    async def test_default_write_timeout(self):
        conn = FakeConnection()
        session, _, _ = make_session(conn, write_timeout=1.0)
        before = time.monotonic()
        await session.write_text("x")
        assert conn.write_deadlines[0] >= before + 1.0


class TestClose:
    @pytest.mark.asyncio
    async def test_close_sends_frame_and_releases(self):
        conn = FakeConnection()
        session, handler, _ = make_session(conn)

        assert await session.close(1000, "bye") is None

        assert conn.written == [(MessageType.CLOSE, format_close_message(1000, "bye"))]
        assert conn.closed
        assert session.state == SessionState.CLOSED
        assert handler.failures == []

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self):
        conn = FakeConnection()
        session, handler, _ = make_session(conn)
        await session.close()
        assert await session.close() is None
        assert len(conn.written) == 1
        assert conn.close_calls == 1
        assert handler.failures == []

    @pytest.mark.asyncio
    async def test_close_after_error_only_releases(self):
        conn = FakeConnection(ConnectionClosedError("gone"))
        session, handler, _ = make_session(conn)
        await session.read_message()

        assert await session.close() is None
        assert conn.written == []
        assert conn.close_calls == 1
        assert len(handler.failures) == 1

    @pytest.mark.asyncio
    async def test_release_error_on_open_session_is_reported(self):
        conn = FakeConnection(close_error=ConnectionResetError("reset"))
        session, handler, _ = make_session(conn)
        failure = await session.close()
        assert failure.kind == FailureKind.WEBSOCKET_ERROR
        assert len(handler.failures) == 1

    @pytest.mark.asyncio
    async def test_release_error_on_closed_session_is_ignored(self):
        conn = FakeConnection(
            WsMessage(MessageType.CLOSE, b"", close_code=1000),
            close_error=ConnectionResetError("reset"),
        )
        session, handler, _ = make_session(conn)
        await session.read_message()
        assert await session.close() is None
        assert handler.failures == []


class TestFailedChain:
    @pytest.mark.asyncio
    async def test_write_after_matcher_failure_is_skipped(self):
        conn = FakeConnection(WsMessage(MessageType.TEXT, b"hello"))
        session, handler, printer = make_session(conn)
        session.chain.clone("type(BINARY)").fail(AssertionFailure.assertion("Unexpected message type"))

        assert await session.write_message(MessageType.TEXT, b"after-failure") is None
        message, failure = await session.read_message()

        assert (message, failure) == (None, None)
        assert conn.written == []
        assert conn.reads == 0
        assert printer.events == []
        assert len(handler.failures) == 1

    @pytest.mark.asyncio
    async def test_close_still_releases_connection(self):
        conn = FakeConnection()
        session, handler, _ = make_session(conn)
        session.chain.clone("type(TEXT)").fail(AssertionFailure.assertion("Unexpected message type"))

        assert await session.close() is None

        assert conn.written == []
        assert conn.close_calls == 1
        assert session.closed
        assert len(handler.failures) == 1
