"""
Execution Engine

This package provides the request executor (build, dispatch, redirect
handling), the WebSocket session state machine, and traffic printers.

Usage:
    from conductor.engine import RequestExecutor, RequestSpec, RedirectPolicy

    executor = RequestExecutor(chain)
    request, failure = executor.build(RequestSpec("GET", "http://localhost:8000/users"))
    if request is not None:
        response, failure = await executor.execute(
            request, transport, RedirectPolicy.follow_all(max_redirects=3)
        )
"""

# Redirects
from .redirect import FollowMode, RedirectPolicy, REDIRECT_STATUSES

# Printers
from .printer import CompactPrinter, DebugPrinter, Printer

# Executor
from .executor import RequestExecutor, RequestSpec, classify_transport_error

# WebSocket
from .websocket import SessionState, WebSocketSession

__all__ = [
    # Redirects
    "FollowMode",
    "RedirectPolicy",
    "REDIRECT_STATUSES",
    # Printers
    "CompactPrinter",
    "DebugPrinter",
    "Printer",
    # Executor
    "RequestExecutor",
    "RequestSpec",
    "classify_transport_error",
    # WebSocket
    "SessionState",
    "WebSocketSession",
]
