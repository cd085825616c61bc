"""
Exception hierarchy for Conductor collaborators.

These are raised by transports, dialers, connections, encoders and request
factories. The execution engine catches them at its boundary and converts
them into AssertionFailure values recorded on a chain.
"""

from __future__ import annotations


class ConductorError(Exception):
    """Base class for all Conductor errors."""


class InvalidRequestError(ConductorError):
    """A request could not be constructed (bad method or URL)."""


class EncodingError(ConductorError):
    """A query encoder rejected its input."""


class TransportError(ConductorError):
    """
    A network-level failure raised by a transport or dialer.

    Attributes:
        timeout: The operation ran out of time
        temporary: The condition is transient and a resubmission may succeed
    """

    def __init__(self, message: str, *, timeout: bool = False, temporary: bool = False):
        super().__init__(message)
        self.timeout = timeout
        self.temporary = temporary


class DeadlineExceeded(TimeoutError, ConductorError):
    """A WebSocket read or write deadline passed before the operation finished."""


class ConnectionClosedError(ConductorError):
    """The underlying WebSocket connection is gone."""
