"""
Reporting for Assertion Events

This package turns chain events into output: formatters render them,
handlers fan them out, reporters and loggers deliver them, and the
recording handler keeps a JSON-serializable assertion log.

Usage:
    from conductor.reporting import (
        CollectingReporter,
        DefaultAssertionHandler,
        RecordingHandler,
    )

    reporter = CollectingReporter()
    handler = RecordingHandler(DefaultAssertionHandler(reporters=[reporter]))

    # ... run assertions with Config(handler=handler) ...

    log = handler.finish()
    print(log.summary())
    handler.save_json("reports/assertions.json")
"""

# Formatters
from .formatter import DefaultFormatter, Formatter

# Reporters and loggers
from .reporter import (
    AssertReporter,
    CollectingReporter,
    ConsoleReporter,
    Logger,
    LoggingReporter,
    Reporter,
    StdLogger,
)

# Handlers
from .handler import AssertionHandler, DefaultAssertionHandler, RecordingHandler

# Models
from .models import AssertionLog, AssertionRecord, EventStatus, RunStatus

__all__ = [
    # Formatters
    "DefaultFormatter",
    "Formatter",
    # Reporters and loggers
    "AssertReporter",
    "CollectingReporter",
    "ConsoleReporter",
    "Logger",
    "LoggingReporter",
    "Reporter",
    "StdLogger",
    # Handlers
    "AssertionHandler",
    "DefaultAssertionHandler",
    "RecordingHandler",
    # Models
    "AssertionLog",
    "AssertionRecord",
    "EventStatus",
    "RunStatus",
]
