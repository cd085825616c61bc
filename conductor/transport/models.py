"""
Transport layer models for HTTP and WebSocket exchanges.

This module defines the concrete request handed to a transport, the
response it returns, and the message frames exchanged over an upgraded
WebSocket connection.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass, field
from datetime import timedelta
from enum import IntEnum
from typing import Any

from multidict import CIMultiDict
from yarl import URL

logger = logging.getLogger(__name__)


class MessageType(IntEnum):
    """WebSocket frame opcodes (RFC 6455)."""
    TEXT = 1
    BINARY = 2
    CLOSE = 8
    PING = 9
    PONG = 10


class CloseCode(IntEnum):
    """Common WebSocket close codes."""
    NORMAL_CLOSURE = 1000
    GOING_AWAY = 1001
    PROTOCOL_ERROR = 1002
    UNSUPPORTED_DATA = 1003
    NO_STATUS_RECEIVED = 1005
    ABNORMAL_CLOSURE = 1006
    INVALID_PAYLOAD = 1007
    POLICY_VIOLATION = 1008
    MESSAGE_TOO_BIG = 1009
    INTERNAL_ERROR = 1011


@dataclass
class Request:
    """A concrete request ready to be dispatched."""
    method: str
    url: URL
    headers: CIMultiDict[str] = field(default_factory=CIMultiDict)
    body: bytes | None = None

    def copy(self) -> Request:
        return Request(
            method=self.method,
            url=self.url,
            headers=CIMultiDict(self.headers),
            body=self.body,
        )

    def __str__(self) -> str:
        return f"{self.method} {self.url}"


class ResponseBody:
    """
    Response payload that is read from its source at most once.

    The source may be bytes, a file-like object with `read()`, or an
    async reader whose `read()` is a coroutine. After the first read the
    bytes are kept and served to every later caller.
    """

    def __init__(self, source: Any = None):
        self._source = source
        self._buffer: bytes | None = None
        self._error: BaseException | None = None

        if source is None:
            self._buffer = b""
        elif isinstance(source, (bytes, bytearray)):
            self._buffer = bytes(source)
            self._source = None

    @property
    def buffered(self) -> bool:
        return self._buffer is not None

    @property
    def content(self) -> bytes | None:
        """Buffered bytes, or None if the source has not been read yet."""
        return self._buffer

    async def read(self) -> bytes:
        if self._buffer is not None:
            return self._buffer
        if self._error is not None:
            raise self._error

        source, self._source = self._source, None
        try:
            data = source.read()
            if inspect.isawaitable(data):
                data = await data
            self._buffer = bytes(data)
        except Exception as e:
            self._error = e
            raise
        finally:
            await _close_quietly(source)

        return self._buffer

    def __repr__(self) -> str:
        if self._buffer is None:
            return "ResponseBody(<unread>)"
        return f"ResponseBody({len(self._buffer)} bytes)"


async def _close_quietly(source: Any) -> None:
    close = getattr(source, "close", None)
    if close is None:
        return
    try:
        result = close()
        if inspect.isawaitable(result):
            await result
    except Exception as e:
        logger.warning(f"Error closing response body: {e}")


@dataclass
class TransportResponse:
    """A response returned by a transport."""
    status: int
    headers: CIMultiDict[str] = field(default_factory=CIMultiDict)
    body: ResponseBody = field(default_factory=ResponseBody)
    reason: str = ""
    url: URL | None = None
    elapsed: timedelta = field(default_factory=timedelta)

    @property
    def location(self) -> str | None:
        return self.headers.get("Location")

    def __str__(self) -> str:
        return f"{self.status} {self.reason}".strip()


@dataclass(frozen=True)
class WsMessage:
    """A single WebSocket frame as seen by the session."""
    type: MessageType
    data: bytes = b""
    close_code: int = 0

    @property
    def text(self) -> str:
        return self.data.decode("utf-8", errors="replace")


def format_close_message(code: int, reason: str = "") -> bytes:
    """Encode a close frame payload: 2-byte code followed by UTF-8 reason."""
    if code == CloseCode.NO_STATUS_RECEIVED:
        return b""
    return int(code).to_bytes(2, "big") + reason.encode("utf-8")


def parse_close_message(data: bytes) -> tuple[int, str]:
    """Decode a close frame payload into (code, reason)."""
    if len(data) < 2:
        return int(CloseCode.NO_STATUS_RECEIVED), ""
    return int.from_bytes(data[:2], "big"), data[2:].decode("utf-8", errors="replace")
