"""
Assertion handlers sit between chains and reporters.

A chain calls its handler synchronously on every success and on the
first failure of each failure episode.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Protocol, runtime_checkable

from ..chain.models import AssertionContext, AssertionFailure
from .formatter import DefaultFormatter, Formatter
from .models import AssertionLog, AssertionRecord, EventStatus
from .reporter import Logger, Reporter


@runtime_checkable
class AssertionHandler(Protocol):
    """Receives raw success/failure events from chains."""

    def success(self, ctx: AssertionContext) -> None:
        ...

    def failure(self, ctx: AssertionContext, failure: AssertionFailure) -> None:
        ...


class DefaultAssertionHandler:
    """
    Formats events and fans them out.

    Successes go to loggers, failures go to reporters. With no
    reporters configured, failures are dropped.
    """

    def __init__(
        self,
        formatter: Formatter | None = None,
        reporters: Iterable[Reporter] = (),
        loggers: Iterable[Logger] = (),
    ):
        self.formatter = formatter or DefaultFormatter()
        self.reporters = list(reporters)
        self.loggers = list(loggers)

    def success(self, ctx: AssertionContext) -> None:
        if not self.loggers:
            return
        message = self.formatter.format_success(ctx)
        for logger in self.loggers:
            logger.log(message)

    def failure(self, ctx: AssertionContext, failure: AssertionFailure) -> None:
        if not self.reporters:
            return
        message = self.formatter.format_failure(ctx, failure)
        for reporter in self.reporters:
            reporter.report(message)


class RecordingHandler:
    """
    Records every event into an AssertionLog, then delegates.

    The record is written before delegating, so it is kept even when the
    wrapped handler's reporter raises.

    Example:
        handler = RecordingHandler(DefaultAssertionHandler(reporters=[CollectingReporter()]))
        ... run assertions ...
        log = handler.finish()
        print(log.summary())
        handler.save_json("reports/assertions.json")
    """

    def __init__(self, inner: AssertionHandler | None = None):
        self.inner = inner
        self.log = AssertionLog()

    def success(self, ctx: AssertionContext) -> None:
        self.log.add(_record(EventStatus.PASSED, ctx))
        if self.inner is not None:
            self.inner.success(ctx)

    def failure(self, ctx: AssertionContext, failure: AssertionFailure) -> None:
        record = _record(EventStatus.FAILED, ctx)
        record.kind = failure.kind.value
        record.message = failure.message
        record.expected_value = failure.expected
        record.actual_value = failure.actual
        record.retryable = failure.retryable
        self.log.add(record)
        if self.inner is not None:
            self.inner.failure(ctx, failure)

    def finish(self) -> AssertionLog:
        self.log.complete()
        return self.log

    def save_json(self, path: str | Path) -> None:
        """
        Save the log to a JSON file.

        Args:
            path: Path to save the JSON file
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.log.to_json())


def _record(status: EventStatus, ctx: AssertionContext) -> AssertionRecord:
    record = AssertionRecord(status=status, path=ctx.path_str, test_name=ctx.test_name)
    if ctx.request is not None:
        record.request_line = f"{ctx.request.method} {ctx.request.url}"
    if ctx.response is not None:
        record.response_status = ctx.response.status
    if ctx.round_trip is not None:
        record.round_trip_ms = ctx.round_trip.total_seconds() * 1000
    return record
