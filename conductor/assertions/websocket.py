"""
Assertable WebSocket connection and messages.
"""

from __future__ import annotations

from typing import Any

from ..chain import AssertionFailure, Chain
from ..engine.websocket import WebSocketSession
from ..transport.models import CloseCode, MessageType, TransportResponse, WsMessage


class WebSocket:
    """
    An upgraded connection together with its chain.

    `session` is None when the handshake failed; reads and writes are
    then skipped and the chain has already recorded why.

    Example:
        async with await e.websocket("/ws").connect() as ws:
            await ws.write_text("hi")
            msg = await ws.expect(timeout=1.0)
            msg.type(MessageType.TEXT)
    """

    def __init__(
        self,
        chain: Chain,
        session: WebSocketSession | None,
        handshake: TransportResponse | None = None,
    ):
        self.chain = chain
        self.session = session
        self.handshake = handshake

    @property
    def subprotocol(self) -> str | None:
        return self.session.subprotocol if self.session is not None else None

    @property
    def closed(self) -> bool:
        return self.session is None or self.session.closed

    async def expect(self, timeout: float | None = None) -> WebSocketMessage:
        """Read the next message."""
        if self.session is None:
            return WebSocketMessage(self.chain.clone("expect()"), None)
        message, _ = await self.session.read_message(timeout)
        # cloned after the read so a read failure carries over to the message
        return WebSocketMessage(self.chain.clone("expect()"), message)

    async def write_message(
        self, message_type: MessageType, data: bytes = b"", timeout: float | None = None
    ) -> WebSocket:
        if self.session is not None:
            await self.session.write_message(message_type, data, timeout)
        return self

    async def write_text(self, text: str, timeout: float | None = None) -> WebSocket:
        if self.session is not None:
            await self.session.write_text(text, timeout)
        return self

    async def write_bytes(self, data: bytes, timeout: float | None = None) -> WebSocket:
        if self.session is not None:
            await self.session.write_bytes(data, timeout)
        return self

    async def write_json(self, value: Any, timeout: float | None = None) -> WebSocket:
        if self.session is not None:
            await self.session.write_json(value, timeout)
        return self

    async def close(
        self, code: int = CloseCode.NORMAL_CLOSURE, reason: str = "", timeout: float | None = None
    ) -> WebSocket:
        if self.session is not None:
            await self.session.close(code, reason, timeout)
        return self

    async def __aenter__(self) -> WebSocket:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


class WebSocketMessage:
    """A received frame together with its chain."""

    def __init__(self, chain: Chain, raw: WsMessage | None):
        self.chain = chain
        self.raw = raw

    @property
    def data(self) -> bytes:
        return self.raw.data if self.raw is not None else b""

    @property
    def text(self) -> str:
        return self.raw.text if self.raw is not None else ""

    def type(self, *expected: MessageType) -> WebSocketMessage:
        """Assert the frame type is one of `expected`."""
        names = ", ".join(t.name for t in expected)
        self.chain.clone(f"type({names})").assert_flag(
            self.raw is not None and self.raw.type in expected,
            AssertionFailure.assertion(
                "Unexpected message type",
                expected=names,
                actual=self.raw.type.name if self.raw is not None else None,
            ),
        )
        return self

    def close_code(self, *expected: int) -> WebSocketMessage:
        """Assert the frame is a close frame with one of `expected` codes."""
        codes = ", ".join(str(int(c)) for c in expected)
        self.chain.clone(f"close_code({codes})").assert_flag(
            self.raw is not None
            and self.raw.type == MessageType.CLOSE
            and self.raw.close_code in expected,
            AssertionFailure.assertion(
                "Unexpected close code",
                expected=codes,
                actual=self.raw.close_code if self.raw is not None else None,
            ),
        )
        return self

    def __repr__(self) -> str:
        return f"WebSocketMessage({self.raw!r})"
