"""
Failure-propagation chain.

Every assertable object owns one Chain. A chain remembers whether any
assertion on it (or on a chain cloned from it) has failed, and routes
success/failure events to its AssertionHandler.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import TYPE_CHECKING, Any

from .models import AssertionContext, AssertionFailure, ChainFlag

if TYPE_CHECKING:
    from ..reporting.handler import AssertionHandler
    from ..transport.models import Request, TransportResponse, WsMessage

logger = logging.getLogger(__name__)


class Chain:
    """
    Sticky, bubbling failure state for one node of an assertion tree.

    Once a chain fails it stays failed. A failure on a clone marks every
    ancestor failed too, but the handler hears about it only once: from
    the chain where the failure happened.

    Example:
        chain = Chain("Request(GET)", handler, test_name="test_users")
        child = chain.clone("status()")
        child.assert_flag(resp.status == 200, AssertionFailure.assertion(
            "unexpected status", expected=200, actual=resp.status,
        ))
        chain.failed  # True if the status check failed
    """

    def __init__(
        self,
        label: str,
        handler: AssertionHandler | None,
        *,
        test_name: str = "",
        parent: Chain | None = None,
    ):
        self.label = label
        self.handler = handler
        self.test_name = test_name
        self.parent = parent
        self.flag = ChainFlag.OK
        self.failures: list[AssertionFailure] = []
        self._entries: list[tuple[str, Any]] = []

    @property
    def failed(self) -> bool:
        return self.flag != ChainFlag.OK

    @property
    def path(self) -> list[str]:
        labels: list[str] = []
        node: Chain | None = self
        while node is not None:
            labels.append(node.label)
            node = node.parent
        return list(reversed(labels))

    def clone(self, label: str) -> Chain:
        """
        Start an isolated sub-assertion.

        The clone inherits the attached context and, if this chain has
        already failed, starts out failed as well.
        """
        child = Chain(label, self.handler, test_name=self.test_name, parent=self)
        child._entries = list(self._entries)
        if self.failed:
            child.flag = ChainFlag.FAILED
        return child

    def attach_request(self, request: Request) -> None:
        self._entries.append(("request", request))

    def attach_response(self, response: TransportResponse) -> None:
        self._entries.append(("response", response))

    def attach_message(self, message: WsMessage) -> None:
        self._entries.append(("message", message))

    def context(self) -> AssertionContext:
        """Build the snapshot handed to the handler."""
        ctx = AssertionContext(test_name=self.test_name, path=self.path)
        for kind, value in self._entries:
            if kind == "request":
                ctx.request = value
            elif kind == "response":
                ctx.response = value
                ctx.round_trip = getattr(value, "elapsed", None) or timedelta(0)
            elif kind == "message":
                ctx.message = value
        return ctx

    def fail(self, failure: AssertionFailure) -> None:
        """
        Record a failure.

        Only the first failure on a chain reaches the handler; later ones
        are kept in `failures` but not reported.
        """
        self.failures.append(failure)
        if self.failed:
            logger.debug(f"{'.'.join(self.path)}: suppressed repeat failure: {failure.message}")
            return

        self.flag = ChainFlag.FAILED_REPORTED
        node = self.parent
        while node is not None:
            node.failures.append(failure)
            if node.flag == ChainFlag.OK:
                node.flag = ChainFlag.FAILED
            node = node.parent

        # ancestors are marked before the handler runs; AssertReporter raises
        if self.handler is not None:
            self.handler.failure(self.context(), failure)

    def succeed(self) -> None:
        """Report success unless the chain has already failed."""
        if self.failed:
            return
        if self.handler is not None:
            self.handler.success(self.context())

    def assert_flag(self, condition: bool, failure: AssertionFailure) -> bool:
        """
        Primitive used by every matcher.

        Returns the condition so callers can branch on it.
        """
        if condition:
            self.succeed()
        else:
            self.fail(failure)
        return condition

    def __repr__(self) -> str:
        return f"Chain(path={'.'.join(self.path)!r}, flag={self.flag.name})"
