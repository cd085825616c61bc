"""
Failure and context models for assertion chains.

This module defines the data carried by a chain when it reports:
the failure classification, the failure details, and the context
snapshot handed to formatters.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum, IntEnum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..transport.models import Request, TransportResponse, WsMessage


class ChainFlag(IntEnum):
    """Failure state of a chain. Values only ever increase."""
    OK = 0
    FAILED = 1  # failed through a child or at creation; handler not invoked here
    FAILED_REPORTED = 2  # this chain invoked the handler


class FailureCategory(str, Enum):
    """Broad failure taxonomy."""
    CONSTRUCTION = "construction"
    TRANSPORT = "transport"
    PROTOCOL = "protocol"
    ASSERTION = "assertion"
    WEBSOCKET = "websocket"


class FailureKind(str, Enum):
    """Specific failure classification."""
    CONSTRUCTION = "construction"

    TRANSPORT_TIMEOUT = "transport_timeout"
    TRANSPORT_TEMPORARY = "transport_temporary"
    TRANSPORT_FATAL = "transport_fatal"

    TOO_MANY_REDIRECTS = "too_many_redirects"
    BAD_REDIRECT = "bad_redirect"

    ASSERTION = "assertion"

    WEBSOCKET_TIMEOUT = "websocket_timeout"
    WEBSOCKET_CLOSED = "websocket_closed"
    WEBSOCKET_ERROR = "websocket_error"

    @property
    def category(self) -> FailureCategory:
        return _CATEGORIES[self]

    @property
    def retryable(self) -> bool:
        """True for failures an external retry policy may resubmit."""
        return self in (FailureKind.TRANSPORT_TIMEOUT, FailureKind.TRANSPORT_TEMPORARY)


_CATEGORIES = {
    FailureKind.CONSTRUCTION: FailureCategory.CONSTRUCTION,
    FailureKind.TRANSPORT_TIMEOUT: FailureCategory.TRANSPORT,
    FailureKind.TRANSPORT_TEMPORARY: FailureCategory.TRANSPORT,
    FailureKind.TRANSPORT_FATAL: FailureCategory.TRANSPORT,
    FailureKind.TOO_MANY_REDIRECTS: FailureCategory.PROTOCOL,
    FailureKind.BAD_REDIRECT: FailureCategory.PROTOCOL,
    FailureKind.ASSERTION: FailureCategory.ASSERTION,
    FailureKind.WEBSOCKET_TIMEOUT: FailureCategory.WEBSOCKET,
    FailureKind.WEBSOCKET_CLOSED: FailureCategory.WEBSOCKET,
    FailureKind.WEBSOCKET_ERROR: FailureCategory.WEBSOCKET,
}


@dataclass
class AssertionFailure:
    """
    Details of a single failure.

    Attributes:
        kind: Classification of the failure
        message: Human-readable description
        expected: What was expected (for comparison assertions)
        actual: What was actually found
        errors: Underlying exceptions, if any
        details: Additional context for debugging
    """
    kind: FailureKind
    message: str
    expected: Any = None
    actual: Any = None
    errors: list[BaseException] = field(default_factory=list)
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def retryable(self) -> bool:
        return self.kind.retryable

    def __str__(self) -> str:
        lines = [f"{self.kind.value}: {self.message}"]

        if self.expected is not None:
            lines.append(f"   Expected: {format_value(self.expected)}")

        if self.actual is not None:
            lines.append(f"   Actual:   {format_value(self.actual)}")

        for err in self.errors:
            lines.append(f"   Error: {type(err).__name__}: {err}")

        for key, value in self.details.items():
            lines.append(f"   {key}: {format_value(value)}")

        return "\n".join(lines)

    @classmethod
    def assertion(
        cls,
        message: str,
        expected: Any = None,
        actual: Any = None,
        details: dict[str, Any] | None = None,
    ) -> AssertionFailure:
        """Create a failure for a false matcher condition."""
        return cls(
            kind=FailureKind.ASSERTION,
            message=message,
            expected=expected,
            actual=actual,
            details=details or {},
        )

    @classmethod
    def from_error(
        cls,
        kind: FailureKind,
        message: str,
        error: BaseException,
        details: dict[str, Any] | None = None,
    ) -> AssertionFailure:
        """Create a failure wrapping an exception."""
        return cls(kind=kind, message=message, errors=[error], details=details or {})


@dataclass
class AssertionContext:
    """
    Snapshot handed to formatters with each success or failure.

    The request/response/message fields hold whatever the owning chain
    had attached when the event fired.
    """
    test_name: str
    path: list[str]
    request: Request | None = None
    response: TransportResponse | None = None
    message: WsMessage | None = None
    round_trip: timedelta | None = None

    @property
    def path_str(self) -> str:
        return ".".join(self.path)


def format_value(value: Any, max_length: int = 100) -> str:
    """Format a value for display, truncating if too long."""
    if value is None:
        return "null"

    if isinstance(value, str):
        formatted = repr(value)
    elif isinstance(value, (bytes, bytearray)):
        formatted = repr(bytes(value))
    elif isinstance(value, (list, dict)):
        try:
            formatted = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError):
            formatted = repr(value)
    else:
        formatted = repr(value)

    if len(formatted) > max_length:
        return formatted[: max_length - 3] + "..."

    return formatted
