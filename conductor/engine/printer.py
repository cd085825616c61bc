"""
Printers observe requests, responses and WebSocket frames.

The executor and the WebSocket session call every configured printer
once per hop / per frame. Printers must not consume response bodies;
the executor buffers them before printing.
"""

from __future__ import annotations

import json
from datetime import timedelta
from typing import Protocol, runtime_checkable

from rich.console import Console

from ..transport.models import MessageType, Request, TransportResponse


@runtime_checkable
class Printer(Protocol):
    """Observer for traffic passing through the engine."""

    def request(self, request: Request) -> None:
        ...

    def response(self, response: TransportResponse, round_trip: timedelta) -> None:
        ...

    def websocket_write(self, message_type: MessageType, data: bytes, close_code: int) -> None:
        ...

    def websocket_read(self, message_type: MessageType, data: bytes, close_code: int) -> None:
        ...


def _ms(duration: timedelta) -> str:
    return f"{duration.total_seconds() * 1000:.0f}ms"


def _frame_summary(message_type: MessageType, data: bytes, close_code: int) -> str:
    if message_type == MessageType.CLOSE:
        return f"close {close_code}"
    if message_type == MessageType.TEXT:
        return f"text {data.decode('utf-8', errors='replace')!r}"
    return f"{message_type.name.lower()} ({len(data)} bytes)"


class CompactPrinter:
    """One line per request, response and frame."""

    def __init__(self, console: Console | None = None):
        self.console = console or Console(stderr=True)

    def request(self, request: Request) -> None:
        self.console.print(f"[bold cyan]→[/bold cyan] {request.method} {request.url}", highlight=False)

    def response(self, response: TransportResponse, round_trip: timedelta) -> None:
        style = "green" if response.status < 400 else "red"
        self.console.print(
            f"[bold {style}]←[/bold {style}] {response.status} {response.reason} ({_ms(round_trip)})",
            highlight=False,
        )

    def websocket_write(self, message_type: MessageType, data: bytes, close_code: int) -> None:
        self.console.print(f"[bold cyan]-> ws[/bold cyan] {_frame_summary(message_type, data, close_code)}", highlight=False)

    def websocket_read(self, message_type: MessageType, data: bytes, close_code: int) -> None:
        self.console.print(f"[bold magenta]<- ws[/bold magenta] {_frame_summary(message_type, data, close_code)}", highlight=False)


class DebugPrinter:
    """Full dump of headers and bodies."""

    def __init__(self, console: Console | None = None, max_body: int = 4096):
        self.console = console or Console(stderr=True)
        self.max_body = max_body

    def _body(self, data: bytes | None) -> None:
        if not data:
            return
        text = data[: self.max_body].decode("utf-8", errors="replace")
        try:
            self.console.print_json(text)
        except json.JSONDecodeError:
            self.console.print(text, highlight=False, markup=False)

    def request(self, request: Request) -> None:
        self.console.rule(f"{request.method} {request.url}")
        for name, value in request.headers.items():
            self.console.print(f"{name}: {value}", highlight=False, markup=False)
        self._body(request.body)

    def response(self, response: TransportResponse, round_trip: timedelta) -> None:
        self.console.rule(f"{response.status} {response.reason} ({_ms(round_trip)})")
        for name, value in response.headers.items():
            self.console.print(f"{name}: {value}", highlight=False, markup=False)
        self._body(response.body.content)

    def websocket_write(self, message_type: MessageType, data: bytes, close_code: int) -> None:
        self.console.rule(f"-> {message_type.name}")
        self._frame(message_type, data, close_code)

    def websocket_read(self, message_type: MessageType, data: bytes, close_code: int) -> None:
        self.console.rule(f"<- {message_type.name}")
        self._frame(message_type, data, close_code)

    def _frame(self, message_type: MessageType, data: bytes, close_code: int) -> None:
        if message_type == MessageType.CLOSE:
            self.console.print(f"code: {close_code}", highlight=False)
        elif message_type == MessageType.BINARY:
            self.console.print(data[: self.max_body].hex(" "), highlight=False)
        else:
            self._body(data)
