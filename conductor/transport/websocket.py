"""
aiohttp-backed WebSocket connection and dialer.

AiohttpConnection adapts aiohttp.ClientWebSocketResponse to the
deadline-based Connection capability used by WebSocketSession.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING

import aiohttp
from multidict import CIMultiDict

from ..errors import ConnectionClosedError, DeadlineExceeded
from .base import Connection, Dialer
from .http import apply_auth_headers, translate_client_error
from .models import (
    CloseCode,
    MessageType,
    Request,
    ResponseBody,
    TransportResponse,
    WsMessage,
    parse_close_message,
)

if TYPE_CHECKING:
    from ..config.models import AuthConfig

logger = logging.getLogger(__name__)


def _remaining(deadline: float | None) -> float | None:
    if deadline is None:
        return None
    remaining = deadline - time.monotonic()
    if remaining <= 0:
        raise DeadlineExceeded("deadline already passed")
    return remaining


class AiohttpConnection(Connection):
    """Connection over an aiohttp client WebSocket."""

    def __init__(self, ws: aiohttp.ClientWebSocketResponse):
        self._ws = ws
        self._read_deadline: float | None = None
        self._write_deadline: float | None = None

    @property
    def subprotocol(self) -> str | None:
        return self._ws.protocol

    def set_read_deadline(self, deadline: float | None) -> None:
        self._read_deadline = deadline

    def set_write_deadline(self, deadline: float | None) -> None:
        self._write_deadline = deadline

    async def read_message(self) -> WsMessage:
        timeout = _remaining(self._read_deadline)
        try:
            msg = await self._ws.receive(timeout=timeout)
        except asyncio.TimeoutError as e:
            raise DeadlineExceeded("read deadline exceeded") from e

        if msg.type == aiohttp.WSMsgType.TEXT:
            return WsMessage(MessageType.TEXT, msg.data.encode("utf-8"))
        if msg.type == aiohttp.WSMsgType.BINARY:
            return WsMessage(MessageType.BINARY, msg.data)
        if msg.type == aiohttp.WSMsgType.PING:
            return WsMessage(MessageType.PING, msg.data or b"")
        if msg.type == aiohttp.WSMsgType.PONG:
            return WsMessage(MessageType.PONG, msg.data or b"")
        if msg.type == aiohttp.WSMsgType.CLOSE:
            reason = (msg.extra or "").encode("utf-8")
            return WsMessage(MessageType.CLOSE, reason, close_code=int(msg.data))
        if msg.type in (aiohttp.WSMsgType.CLOSING, aiohttp.WSMsgType.CLOSED):
            code = self._ws.close_code or int(CloseCode.ABNORMAL_CLOSURE)
            return WsMessage(MessageType.CLOSE, b"", close_code=code)
        if msg.type == aiohttp.WSMsgType.ERROR:
            raise ConnectionClosedError(f"websocket error: {msg.data}")

        raise ConnectionClosedError(f"unexpected websocket message type: {msg.type}")

    async def write_message(self, message_type: MessageType, data: bytes) -> None:
        timeout = _remaining(self._write_deadline)
        if message_type == MessageType.TEXT:
            send = self._ws.send_str(data.decode("utf-8"))
        elif message_type == MessageType.BINARY:
            send = self._ws.send_bytes(data)
        elif message_type == MessageType.PING:
            send = self._ws.ping(data)
        elif message_type == MessageType.PONG:
            send = self._ws.pong(data)
        elif message_type == MessageType.CLOSE:
            code, reason = parse_close_message(data)
            send = self._ws.close(code=code, message=reason.encode("utf-8"))
        else:
            raise ValueError(f"Unsupported message type: {message_type}")

        try:
            await asyncio.wait_for(send, timeout=timeout)
        except asyncio.TimeoutError as e:
            raise DeadlineExceeded("write deadline exceeded") from e
        except ConnectionResetError as e:
            raise ConnectionClosedError(str(e)) from e

    async def close(self) -> None:
        if not self._ws.closed:
            await self._ws.close()

    def __repr__(self) -> str:
        status = "closed" if self._ws.closed else "open"
        return f"AiohttpConnection(protocol={self.subprotocol!r}, status={status})"


class AiohttpDialer(Dialer):
    """Performs the upgrade handshake with aiohttp.ClientSession.ws_connect."""

    def __init__(
        self,
        timeout_ms: int = 30000,
        auth_config: AuthConfig | None = None,
        session: aiohttp.ClientSession | None = None,
    ):
        self.timeout_ms = timeout_ms
        self._auth_config = auth_config
        self._session = session
        self._owns_session = session is None

    async def connect(self) -> None:
        if self._session is None:
            self._session = aiohttp.ClientSession()
            self._owns_session = True

    async def disconnect(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None

    async def dial(
        self,
        request: Request,
        subprotocols: list[str] | None = None,
    ) -> tuple[Connection, TransportResponse]:
        if self._session is None:
            await self.connect()

        headers = CIMultiDict(request.headers)
        apply_auth_headers(headers, self._auth_config)

        logger.debug(f"WebSocket upgrade: {request.url}")

        try:
            ws = await asyncio.wait_for(
                self._session.ws_connect(
                    request.url,
                    method=request.method,
                    headers=headers,
                    protocols=tuple(subprotocols or ()),
                ),
                timeout=self.timeout_ms / 1000,
            )
        except (asyncio.TimeoutError, aiohttp.ClientError) as e:
            raise translate_client_error(e, request.url) from e

        logger.info(f"WebSocket connected: {request.url} (protocol={ws.protocol!r})")
        response = TransportResponse(
            status=101,
            headers=CIMultiDict(),
            body=ResponseBody(b""),
            reason="Switching Protocols",
            url=request.url,
        )
        return AiohttpConnection(ws), response
