"""
Formatters render assertion events into human-readable text.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from ..chain.models import AssertionContext, AssertionFailure, format_value


@runtime_checkable
class Formatter(Protocol):
    """Turns success/failure events into strings."""

    def format_success(self, ctx: AssertionContext) -> str:
        ...

    def format_failure(self, ctx: AssertionContext, failure: AssertionFailure) -> str:
        ...


class DefaultFormatter:
    """
    Plain-text formatter.

    Failures list the assertion path, the failure details and, where
    available, the request line, response status and last WebSocket
    frame that the chain had attached.
    """

    def __init__(self, show_request: bool = True, show_response: bool = True, max_body: int = 200):
        self.show_request = show_request
        self.show_response = show_response
        self.max_body = max_body

    def format_success(self, ctx: AssertionContext) -> str:
        prefix = f"[{ctx.test_name}] " if ctx.test_name else ""
        return f"✅ PASS: {prefix}{ctx.path_str}"

    def format_failure(self, ctx: AssertionContext, failure: AssertionFailure) -> str:
        prefix = f"[{ctx.test_name}] " if ctx.test_name else ""
        lines = [f"❌ FAIL: {prefix}{ctx.path_str}"]
        lines.extend(f"   {line}" for line in str(failure).splitlines())

        if self.show_request and ctx.request is not None:
            lines.append(f"   Request:  {ctx.request.method} {ctx.request.url}")

        if self.show_response and ctx.response is not None:
            response = ctx.response
            lines.append(f"   Response: {response.status} {response.reason}".rstrip())
            body = response.body.content
            if body:
                lines.append(f"   Body:     {format_value(body.decode('utf-8', errors='replace'), self.max_body)}")

        if ctx.message is not None:
            message = ctx.message
            lines.append(f"   Message:  {message.type.name} {format_value(message.data, self.max_body)}")

        return "\n".join(lines)
