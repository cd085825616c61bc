"""
Entry point for building requests.
"""

from __future__ import annotations

import logging
from urllib.parse import quote

from ..config.models import Config
from .request import RequestBuilder

logger = logging.getLogger(__name__)


class Expect:
    """
    Creates request builders that share one configuration.

    Use it as an async context manager so the transport and dialer
    sessions are released at the end of the test.

    Example:
        async with Expect(Config(base_url="http://localhost:8000")) as e:
            resp = await e.get("/users/{}", 42).expect()
            resp.status(200)
            (await resp.json_path("$.name")).equal("ada")
    """

    def __init__(self, config: Config | None = None):
        self.config = (config or Config()).with_defaults()

    def url(self, path: str, *args: object) -> str:
        """
        Resolve a path against base_url.

        `{}` placeholders in the path are filled with URL-quoted args.
        """
        if args:
            path = path.format(*(quote(str(arg), safe="") for arg in args))
        if "://" in path or not self.config.base_url:
            return path
        return f"{self.config.base_url.rstrip('/')}/{path.lstrip('/')}"

    def request(self, method: str, path: str, *args: object) -> RequestBuilder:
        return RequestBuilder(self.config, method, self.url(path, *args))

    def get(self, path: str, *args: object) -> RequestBuilder:
        return self.request("GET", path, *args)

    def head(self, path: str, *args: object) -> RequestBuilder:
        return self.request("HEAD", path, *args)

    def post(self, path: str, *args: object) -> RequestBuilder:
        return self.request("POST", path, *args)

    def put(self, path: str, *args: object) -> RequestBuilder:
        return self.request("PUT", path, *args)

    def patch(self, path: str, *args: object) -> RequestBuilder:
        return self.request("PATCH", path, *args)

    def delete(self, path: str, *args: object) -> RequestBuilder:
        return self.request("DELETE", path, *args)

    def options(self, path: str, *args: object) -> RequestBuilder:
        return self.request("OPTIONS", path, *args)

    def websocket(self, path: str, *args: object) -> RequestBuilder:
        """Start a WebSocket upgrade request; send it with connect()."""
        return self.request("GET", path, *args)

    async def close(self) -> None:
        """Release transport and dialer resources."""
        await self.config.transport.disconnect()
        await self.config.dialer.disconnect()
        logger.debug("Expect closed")

    async def __aenter__(self) -> Expect:
        await self.config.transport.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
