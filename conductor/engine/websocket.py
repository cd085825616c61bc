"""
WebSocket session state machine.

A session wraps an upgraded Connection and moves from OPEN to CLOSED
exactly once: on an explicit close, on a close frame from the peer, or
on any read/write error. Once CLOSED, reads and writes fail without
touching the connection. Reads and writes on a failed chain are
skipped.
"""

from __future__ import annotations

import json
import logging
import time
from enum import Enum
from typing import Any, Iterable

from ..chain import AssertionFailure, Chain, FailureKind
from ..transport.base import Connection
from ..transport.models import CloseCode, MessageType, WsMessage, format_close_message
from .printer import Printer

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    OPEN = "open"
    CLOSED = "closed"


def _deadline(timeout: float | None) -> float | None:
    if timeout is None:
        return None
    return time.monotonic() + timeout


class WebSocketSession:
    """
    Mediates message exchange over one WebSocket connection.

    Timeouts are in seconds; None means no deadline. Every read and
    write, successful or not, is shown to each printer.
    """

    def __init__(
        self,
        conn: Connection,
        chain: Chain,
        *,
        printers: Iterable[Printer] = (),
        read_timeout: float | None = None,
        write_timeout: float | None = None,
    ):
        self.conn = conn
        self.chain = chain
        self.printers = list(printers)
        self.read_timeout = read_timeout
        self.write_timeout = write_timeout
        self.subprotocol = conn.subprotocol
        self.state = SessionState.OPEN
        self.close_code: int = 0
        self._released = False

    @property
    def closed(self) -> bool:
        return self.state == SessionState.CLOSED

    def _closed_failure(self, operation: str) -> AssertionFailure:
        return AssertionFailure(
            kind=FailureKind.WEBSOCKET_CLOSED,
            message=f"Cannot {operation}: connection closed",
            details={"close_code": self.close_code},
        )

    def _error_failure(self, operation: str, error: BaseException) -> AssertionFailure:
        kind = FailureKind.WEBSOCKET_TIMEOUT if isinstance(error, TimeoutError) else FailureKind.WEBSOCKET_ERROR
        return AssertionFailure.from_error(kind, f"WebSocket {operation} failed", error)

    def _mark_closed(self, code: int) -> None:
        if self.state == SessionState.OPEN:
            logger.debug(f"WebSocket session closed (code={code})")
        self.state = SessionState.CLOSED
        self.close_code = code

    async def read_message(
        self, timeout: float | None = None
    ) -> tuple[WsMessage | None, AssertionFailure | None]:
        """
        Read one frame.

        A close frame from the peer is returned normally and closes the
        session. Errors close the session and are surfaced to printers
        as an abnormal closure.
        """
        if self.chain.failed:
            return None, None

        if self.closed:
            failure = self._closed_failure("read")
            self.chain.fail(failure)
            return None, failure

        try:
            self.conn.set_read_deadline(_deadline(timeout if timeout is not None else self.read_timeout))
            message = await self.conn.read_message()
        except Exception as e:
            self._mark_closed(int(CloseCode.ABNORMAL_CLOSURE))
            for printer in self.printers:
                printer.websocket_read(MessageType.CLOSE, b"", self.close_code)
            failure = self._error_failure("read", e)
            self.chain.fail(failure)
            return None, failure

        if message.type == MessageType.CLOSE:
            self._mark_closed(message.close_code)

        for printer in self.printers:
            printer.websocket_read(message.type, message.data, message.close_code)
        self.chain.attach_message(message)
        return message, None

    async def write_message(
        self,
        message_type: MessageType,
        data: bytes = b"",
        timeout: float | None = None,
    ) -> AssertionFailure | None:
        """Write one frame. Writing a close frame closes the session."""
        if self.chain.failed:
            return None

        if self.closed:
            failure = self._closed_failure("write")
            self.chain.fail(failure)
            return failure

        close_code = 0
        if message_type == MessageType.CLOSE:
            close_code = int.from_bytes(data[:2], "big") if len(data) >= 2 else int(CloseCode.NO_STATUS_RECEIVED)

        try:
            self.conn.set_write_deadline(_deadline(timeout if timeout is not None else self.write_timeout))
            await self.conn.write_message(message_type, data)
        except Exception as e:
            self._mark_closed(int(CloseCode.ABNORMAL_CLOSURE))
            for printer in self.printers:
                printer.websocket_write(message_type, data, close_code)
            failure = self._error_failure("write", e)
            self.chain.fail(failure)
            return failure

        for printer in self.printers:
            printer.websocket_write(message_type, data, close_code)

        if message_type == MessageType.CLOSE:
            self._mark_closed(close_code)
        return None

    async def write_text(self, text: str, timeout: float | None = None) -> AssertionFailure | None:
        return await self.write_message(MessageType.TEXT, text.encode("utf-8"), timeout)

    async def write_bytes(self, data: bytes, timeout: float | None = None) -> AssertionFailure | None:
        return await self.write_message(MessageType.BINARY, data, timeout)

    async def write_json(self, value: Any, timeout: float | None = None) -> AssertionFailure | None:
        return await self.write_text(json.dumps(value), timeout)

    async def close(
        self,
        code: int = CloseCode.NORMAL_CLOSURE,
        reason: str = "",
        timeout: float | None = None,
    ) -> AssertionFailure | None:
        """
        Send a close frame and release the connection.

        On an already closed session this only releases the connection
        (if still held) and succeeds.
        """
        was_open = not self.closed
        failure = None
        if was_open:
            failure = await self.write_message(
                MessageType.CLOSE, format_close_message(code, reason), timeout
            )

        if not self._released:
            self._released = True
            try:
                await self.conn.close()
            except Exception as e:
                if was_open and failure is None:
                    failure = self._error_failure("close", e)
                    self.chain.fail(failure)
                else:
                    logger.debug(f"Ignoring close error: {e}")

        self._mark_closed(self.close_code or int(code))

        return failure

    def __repr__(self) -> str:
        return f"WebSocketSession(state={self.state.value}, subprotocol={self.subprotocol!r}, close_code={self.close_code})"
