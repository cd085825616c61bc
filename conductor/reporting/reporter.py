"""
Reporters and loggers receive formatted assertion output.

Reporters are handed failures; loggers are handed successes. Which one
aborts a test is up to the reporter: AssertReporter raises
AssertionError, the others only record or print.
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from rich.console import Console


@runtime_checkable
class Reporter(Protocol):
    """Receives formatted failure messages."""

    def report(self, message: str) -> None:
        ...


@runtime_checkable
class Logger(Protocol):
    """Receives formatted success messages."""

    def log(self, message: str) -> None:
        ...


class AssertReporter:
    """Raises AssertionError, which pytest reports as a test failure."""

    def report(self, message: str) -> None:
        raise AssertionError(message)


class CollectingReporter:
    """
    Keeps every failure so a test can assert on them at the end.

    Example:
        reporter = CollectingReporter()
        ... run assertions ...
        reporter.raise_if_failed()
    """

    def __init__(self):
        self.messages: list[str] = []

    @property
    def reported(self) -> bool:
        return bool(self.messages)

    def report(self, message: str) -> None:
        self.messages.append(message)

    def raise_if_failed(self) -> None:
        if self.messages:
            raise AssertionError("\n\n".join(self.messages))

    def clear(self) -> None:
        self.messages.clear()


class LoggingReporter:
    """Sends failures to the standard logging module."""

    def __init__(self, name: str = "conductor.assertions", level: int = logging.ERROR):
        self.logger = logging.getLogger(name)
        self.level = level

    def report(self, message: str) -> None:
        self.logger.log(self.level, message)


class ConsoleReporter:
    """Prints failures to a rich console."""

    def __init__(self, console: Console | None = None):
        self.console = console or Console(stderr=True)

    def report(self, message: str) -> None:
        self.console.print(message, style="red", highlight=False, markup=False)


class StdLogger:
    """Sends successes to the standard logging module at DEBUG level."""

    def __init__(self, name: str = "conductor.assertions", level: int = logging.DEBUG):
        self.logger = logging.getLogger(name)
        self.level = level

    def log(self, message: str) -> None:
        self.logger.log(self.level, message)
