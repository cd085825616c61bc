"""
Assertable Objects

This package provides the fluent surface over the engine: Expect creates
request builders; sending a builder yields a Response or a WebSocket.
Every object owns a chain, and matchers record their outcome on a clone
of it.

Usage:
    from conductor.assertions import Expect

    async with Expect(config) as e:
        resp = await e.get("/users").with_query("page", 2).expect()
        resp.status(200)
        (await resp.json_path("$.items[0].id")).exists()
"""

# Entry point
from .expect import Expect

# Builders and assertables
from .request import RequestBuilder
from .response import Response, Value
from .websocket import WebSocket, WebSocketMessage

__all__ = [
    # Entry point
    "Expect",
    # Builders and assertables
    "RequestBuilder",
    "Response",
    "Value",
    "WebSocket",
    "WebSocketMessage",
]
