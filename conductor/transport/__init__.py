"""
Transport Layer

This package provides the capabilities the execution engine dispatches
through (Transport, Connection, Dialer, RequestFactory, QueryEncoder),
their aiohttp implementations, and the request/response/frame models.

Usage:
    from conductor.transport import AiohttpTransport, DefaultRequestFactory

    request = DefaultRequestFactory().new_request("GET", "http://localhost:8000/health", None)

    async with AiohttpTransport(timeout_ms=5000) as transport:
        response = await transport.do(request)
        print(response.status, await response.body.read())
"""

# Capabilities
from .base import (
    Connection,
    DefaultRequestFactory,
    Dialer,
    QueryEncoder,
    RequestFactory,
    Transport,
)

# Implementations
from .http import AiohttpTransport
from .websocket import AiohttpConnection, AiohttpDialer

# Models
from .models import (
    CloseCode,
    MessageType,
    Request,
    ResponseBody,
    TransportResponse,
    WsMessage,
    format_close_message,
    parse_close_message,
)

__all__ = [
    # Capabilities
    "Connection",
    "DefaultRequestFactory",
    "Dialer",
    "QueryEncoder",
    "RequestFactory",
    "Transport",
    # Implementations
    "AiohttpTransport",
    "AiohttpConnection",
    "AiohttpDialer",
    # Models
    "CloseCode",
    "MessageType",
    "Request",
    "ResponseBody",
    "TransportResponse",
    "WsMessage",
    "format_close_message",
    "parse_close_message",
]
