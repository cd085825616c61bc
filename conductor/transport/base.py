"""
Capability interfaces consumed by the execution engine.

This module defines the abstract transport, the WebSocket connection and
dialer, plus the small request-factory and query-encoder protocols.
Production implementations live in http.py and websocket.py; tests
supply their own fakes.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from multidict import CIMultiDict, MultiDict
from yarl import URL

from ..errors import InvalidRequestError
from .models import Request

if TYPE_CHECKING:
    from .models import MessageType, TransportResponse, WsMessage


# RFC 7230 token
_METHOD_PATTERN = re.compile(r"[!#$%&'*+\-.^_`|~0-9A-Za-z]+")

SUPPORTED_SCHEMES = {"http", "https", "ws", "wss"}


@runtime_checkable
class QueryEncoder(Protocol):
    """Encodes one key into query parameters; raises on bad input."""

    def encode_values(self, key: str, values: MultiDict[str]) -> None:
        ...


@runtime_checkable
class RequestFactory(Protocol):
    """Creates concrete requests; raises InvalidRequestError on bad input."""

    def new_request(self, method: str, url: str | URL, body: bytes | None) -> Request:
        ...


class DefaultRequestFactory:
    """Validates method and URL and returns a bare Request."""

    def new_request(self, method: str, url: str | URL, body: bytes | None) -> Request:
        if not method or not _METHOD_PATTERN.fullmatch(method):
            raise InvalidRequestError(f"Invalid HTTP method: {method!r}")

        try:
            parsed = url if isinstance(url, URL) else URL(url)
        except (TypeError, ValueError) as e:
            raise InvalidRequestError(f"Invalid URL {url!r}: {e}") from e

        if not parsed.is_absolute() or parsed.scheme not in SUPPORTED_SCHEMES:
            raise InvalidRequestError(f"URL must be absolute http(s) or ws(s): {url!r}")

        return Request(method=method.upper(), url=parsed, headers=CIMultiDict(), body=body)


class Transport(ABC):
    """
    Abstract base class for HTTP transports.

    A transport dispatches exactly one request and returns exactly one
    response. Network failures are raised, preferably as TransportError
    with timeout/temporary flags set; the engine classifies them.
    """

    @abstractmethod
    async def do(self, request: Request) -> TransportResponse:
        """
        Dispatch a request.

        Args:
            request: The request to send

        Returns:
            TransportResponse; redirects are returned as-is unless
            follows_redirects is True
        """
        pass

    @property
    def follows_redirects(self) -> bool:
        """True if the transport applies its own redirect handling."""
        return False

    async def connect(self) -> None:
        """Acquire any resources needed for dispatch."""
        pass

    async def disconnect(self) -> None:
        """Release resources acquired by connect()."""
        pass

    async def __aenter__(self) -> Transport:
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.disconnect()


class Connection(ABC):
    """
    An upgraded WebSocket connection.

    Deadlines are absolute `time.monotonic()` values, or None for no
    deadline. Reads and writes that outlive their deadline raise
    DeadlineExceeded.
    """

    @property
    @abstractmethod
    def subprotocol(self) -> str | None:
        pass

    @abstractmethod
    async def close(self) -> None:
        pass

    @abstractmethod
    def set_read_deadline(self, deadline: float | None) -> None:
        pass

    @abstractmethod
    def set_write_deadline(self, deadline: float | None) -> None:
        pass

    @abstractmethod
    async def read_message(self) -> WsMessage:
        pass

    @abstractmethod
    async def write_message(self, message_type: MessageType, data: bytes) -> None:
        pass


class Dialer(ABC):
    """Performs the WebSocket upgrade handshake."""

    @abstractmethod
    async def dial(
        self,
        request: Request,
        subprotocols: list[str] | None = None,
    ) -> tuple[Connection, TransportResponse]:
        """
        Upgrade a request to a WebSocket connection.

        Raises:
            TransportError: If the handshake fails
        """
        pass

    async def connect(self) -> None:
        pass

    async def disconnect(self) -> None:
        pass
