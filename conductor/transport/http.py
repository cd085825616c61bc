"""
aiohttp-backed HTTP transport.

This module implements the Transport capability on top of
aiohttp.ClientSession. Redirects are never followed here; the engine's
redirect policy handles them hop by hop.
"""

from __future__ import annotations

import asyncio
import base64
import logging
from typing import TYPE_CHECKING

import aiohttp
from multidict import CIMultiDict

from ..errors import TransportError
from .base import Transport
from .models import Request, ResponseBody, TransportResponse

if TYPE_CHECKING:
    from ..config.models import AuthConfig

logger = logging.getLogger(__name__)

AUTHORIZATION = "Authorization"


def apply_auth_headers(headers: CIMultiDict[str], auth_config: AuthConfig | None) -> None:
    """Apply authentication headers based on auth config, without overriding explicit ones."""
    if auth_config is None:
        return

    auth_type = auth_config.type.value

    if auth_type == "bearer":
        token = auth_config.token
        if token and AUTHORIZATION not in headers:
            headers[AUTHORIZATION] = f"Bearer {token}"
            logger.debug("Applied bearer auth header")

    elif auth_type == "api_key":
        key = auth_config.key
        header_name = auth_config.header or "X-API-Key"
        if key and header_name not in headers:
            headers[header_name] = key
            logger.debug(f"Applied API key auth header: {header_name}")

    elif auth_type == "basic":
        username = auth_config.username
        password = auth_config.password
        if username and password and AUTHORIZATION not in headers:
            credentials = base64.b64encode(
                f"{username}:{password}".encode()
            ).decode("ascii")
            headers[AUTHORIZATION] = f"Basic {credentials}"
            logger.debug("Applied basic auth header")


def translate_client_error(e: BaseException, url: object) -> TransportError:
    """Map aiohttp/asyncio exceptions onto TransportError flags."""
    if isinstance(e, asyncio.TimeoutError):
        return TransportError(f"Request to {url} timed out", timeout=True, temporary=True)
    if isinstance(e, (aiohttp.ClientConnectorError, aiohttp.ServerDisconnectedError)):
        return TransportError(f"Connection failed: {e}", temporary=True)
    if isinstance(e, aiohttp.ClientError):
        return TransportError(f"HTTP error: {e}")
    return TransportError(f"Unexpected error: {type(e).__name__}: {e}")


class AiohttpTransport(Transport):
    """
    HTTP transport using aiohttp.

    The session is created on connect() (or lazily on first dispatch) and
    closed on disconnect(). A caller-supplied session is never closed.
    """

    def __init__(
        self,
        timeout_ms: int = 30000,
        auth_config: AuthConfig | None = None,
        session: aiohttp.ClientSession | None = None,
    ):
        """
        Initialize the transport.

        Args:
            timeout_ms: Total timeout per dispatch in milliseconds
            auth_config: Optional authentication configuration
            session: Optional externally managed session
        """
        self.timeout_ms = timeout_ms
        self._auth_config = auth_config
        self._session = session
        self._owns_session = session is None

    @property
    def is_connected(self) -> bool:
        return self._session is not None and not self._session.closed

    async def connect(self) -> None:
        """Create the HTTP session."""
        if self._session is None:
            self._session = aiohttp.ClientSession()
            self._owns_session = True

    async def disconnect(self) -> None:
        """Close the HTTP session if we created it."""
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None

    async def do(self, request: Request) -> TransportResponse:
        """
        Send a request over HTTP.

        Raises:
            TransportError: On timeout, connection failure or other client error
        """
        if not self.is_connected:
            await self.connect()

        headers = CIMultiDict(request.headers)
        apply_auth_headers(headers, self._auth_config)
        timeout = aiohttp.ClientTimeout(total=self.timeout_ms / 1000)

        logger.debug(f"{request.method} {request.url}")

        try:
            async with self._session.request(
                request.method,
                request.url,
                headers=headers,
                data=request.body,
                allow_redirects=False,
                timeout=timeout,
            ) as resp:
                body = await resp.read()
                logger.debug(f"Response status: {resp.status}")
                return TransportResponse(
                    status=resp.status,
                    headers=CIMultiDict(resp.headers),
                    body=ResponseBody(body),
                    reason=resp.reason or "",
                    url=resp.url,
                )

        except (asyncio.TimeoutError, aiohttp.ClientError) as e:
            raise translate_client_error(e, request.url) from e

    def __repr__(self) -> str:
        status = "connected" if self.is_connected else "disconnected"
        return f"AiohttpTransport(timeout_ms={self.timeout_ms}, status={status})"
