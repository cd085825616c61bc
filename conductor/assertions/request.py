"""
Fluent request builder.

A RequestBuilder accumulates a RequestSpec and owns the root chain of
one assertion tree. Sending it produces a Response (HTTP) or a
WebSocket (upgrade), each holding a clone of that chain.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import replace
from datetime import timedelta
from typing import TYPE_CHECKING, Any

from multidict import CIMultiDict

from ..chain import AssertionFailure, Chain, FailureKind
from ..engine.executor import RequestExecutor, RequestSpec, classify_transport_error
from ..engine.redirect import RedirectPolicy
from ..engine.websocket import WebSocketSession
from ..transport.base import QueryEncoder, Transport
from .response import Response
from .websocket import WebSocket

if TYPE_CHECKING:
    from ..config.models import Config

logger = logging.getLogger(__name__)


class RequestBuilder:
    """
    Builds and sends one request.

    Example:
        resp = await (
            e.post("/users")
            .with_header("X-Trace", "1")
            .with_json({"name": "ada"})
            .expect()
        )
        resp.status(201)
    """

    def __init__(self, config: Config, method: str, url: str):
        self.config = config
        self.chain = Chain(f"Request({method})", config.handler, test_name=config.test_name)
        self.spec = RequestSpec(method=method, url=url, headers=CIMultiDict(config.headers))
        self.transport: Transport = config.transport
        self.redirect_policy: RedirectPolicy = config.redirect_policy
        self.subprotocols: list[str] = []
        self._sent = False

    def _check_unsent(self, operation: str) -> bool:
        if self._sent:
            self.chain.fail(AssertionFailure(
                kind=FailureKind.CONSTRUCTION,
                message=f"Cannot {operation}: request already sent",
            ))
            return False
        return True

    def with_header(self, name: str, value: str) -> RequestBuilder:
        if self._check_unsent("add header"):
            self.spec.headers.add(name, value)
        return self

    def with_headers(self, headers: dict[str, str]) -> RequestBuilder:
        for name, value in headers.items():
            self.with_header(name, value)
        return self

    def with_query(self, key: str, value: Any) -> RequestBuilder:
        if self._check_unsent("add query parameter"):
            self.spec.query.add(key, str(value))
        return self

    def with_query_encoder(self, key: str, encoder: QueryEncoder) -> RequestBuilder:
        """Register an encoder; encoders run in registration order when the request is built."""
        if self._check_unsent("add query encoder"):
            self.spec.query_encoders.append((key, encoder))
        return self

    def with_bytes(self, body: bytes, content_type: str | None = None) -> RequestBuilder:
        if self._check_unsent("set body"):
            self.spec.body = body
            if content_type:
                self.spec.headers["Content-Type"] = content_type
        return self

    def with_text(self, text: str) -> RequestBuilder:
        return self.with_bytes(text.encode("utf-8"), "text/plain; charset=utf-8")

    def with_json(self, value: Any) -> RequestBuilder:
        return self.with_bytes(json.dumps(value).encode("utf-8"), "application/json")

    def with_redirect_policy(self, policy: RedirectPolicy) -> RequestBuilder:
        if self._check_unsent("set redirect policy"):
            self.redirect_policy = policy
        return self

    def with_max_redirects(self, max_redirects: int | None) -> RequestBuilder:
        if self._check_unsent("set max redirects"):
            self.redirect_policy = replace(self.redirect_policy, max_redirects=max_redirects)
        return self

    def with_transport(self, transport: Transport) -> RequestBuilder:
        if self._check_unsent("set transport"):
            self.transport = transport
        return self

    def with_subprotocols(self, *subprotocols: str) -> RequestBuilder:
        if self._check_unsent("set subprotocols"):
            self.subprotocols.extend(subprotocols)
        return self

    def _executor(self) -> RequestExecutor:
        return RequestExecutor(
            self.chain,
            factory=self.config.request_factory,
            printers=self.config.printers,
        )

    async def expect(self) -> Response:
        """Send the request and wrap the final response."""
        if not self._check_unsent("send"):
            return Response(self.chain.clone("expect()"), None)
        self._sent = True

        executor = self._executor()
        request, _ = executor.build(self.spec)
        response = None
        if request is not None:
            response, _ = await executor.execute(request, self.transport, self.redirect_policy)

        return Response(self.chain.clone("expect()"), response)

    async def connect(self) -> WebSocket:
        """Perform the WebSocket upgrade and wrap the session."""
        if not self._check_unsent("connect"):
            return WebSocket(self.chain.clone("connect()"), None)
        self._sent = True

        request, _ = self._executor().build(self.spec)
        if request is None:
            return WebSocket(self.chain.clone("connect()"), None)

        self.chain.attach_request(request)
        for printer in self.config.printers:
            printer.request(request)

        started = time.monotonic()
        try:
            conn, handshake = await self.config.dialer.dial(request, self.subprotocols or None)
        except Exception as e:
            kind = classify_transport_error(e)
            logger.warning(f"WebSocket handshake failed: {request.url}: {e}")
            self.chain.fail(AssertionFailure.from_error(
                kind, f"WebSocket handshake failed: {request.url}", e,
            ))
            return WebSocket(self.chain.clone("connect()"), None)

        handshake.elapsed = timedelta(seconds=time.monotonic() - started)
        for printer in self.config.printers:
            printer.response(handshake, handshake.elapsed)
        self.chain.attach_response(handshake)

        chain = self.chain.clone("connect()")
        session = WebSocketSession(
            conn,
            chain,
            printers=self.config.printers,
            read_timeout=self.config.ws_read_timeout,
            write_timeout=self.config.ws_write_timeout,
        )
        return WebSocket(chain, session, handshake)

    def __repr__(self) -> str:
        return f"RequestBuilder({self.spec.method} {self.spec.url})"
