"""
Typed configuration for Conductor.

This module contains the enums and dataclasses describing how an
Expect instance builds, dispatches and reports.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import TYPE_CHECKING

from ..engine.printer import CompactPrinter, DebugPrinter
from ..engine.redirect import RedirectPolicy
from ..reporting import (
    AssertReporter,
    CollectingReporter,
    ConsoleReporter,
    DefaultAssertionHandler,
    DefaultFormatter,
    LoggingReporter,
)
from ..transport.base import DefaultRequestFactory
from ..transport.http import AiohttpTransport
from ..transport.websocket import AiohttpDialer

if TYPE_CHECKING:
    from ..engine.printer import Printer
    from ..reporting import AssertionHandler, Formatter, Logger, Reporter
    from ..transport.base import Dialer, RequestFactory, Transport


# ─────────────────────────────────────────────────────────────────────────────
# Enums
# ─────────────────────────────────────────────────────────────────────────────

class AuthType(str, Enum):
    """Supported authentication types."""
    BEARER = "bearer"
    API_KEY = "api_key"
    BASIC = "basic"


class PrinterKind(str, Enum):
    """Printer selectable from YAML."""
    NONE = "none"
    COMPACT = "compact"
    DEBUG = "debug"


class ReporterKind(str, Enum):
    """Reporter selectable from YAML."""
    ASSERT = "assert"
    LOGGING = "logging"
    CONSOLE = "console"
    COLLECT = "collect"


# ─────────────────────────────────────────────────────────────────────────────
# Auth Configuration
# ─────────────────────────────────────────────────────────────────────────────

@dataclass
class AuthConfig:
    """
    Authentication applied by the aiohttp transport and dialer.

    Supports three auth types:
    - bearer: Uses Authorization: Bearer <token> header
    - api_key: Uses a custom header with the API key
    - basic: Uses Authorization: Basic <base64(user:pass)> header
    """
    type: AuthType
    # For bearer auth
    token: str | None = None
    # For api_key auth
    header: str = "X-API-Key"
    key: str | None = None
    # For basic auth
    username: str | None = None
    password: str | None = None


# ─────────────────────────────────────────────────────────────────────────────
# Config
# ─────────────────────────────────────────────────────────────────────────────

@dataclass
class Config:
    """
    Everything an Expect instance needs.

    Collaborator fields left as None are filled in by with_defaults().
    An explicit empty list of reporters means failures are dropped.
    """
    base_url: str = ""
    test_name: str = ""
    timeout_ms: int = 30000
    headers: dict[str, str] = field(default_factory=dict)
    auth: AuthConfig | None = None

    redirect_policy: RedirectPolicy | None = None
    ws_read_timeout_ms: int | None = None
    ws_write_timeout_ms: int | None = None

    formatter: Formatter | None = None
    reporters: list[Reporter] | None = None
    loggers: list[Logger] | None = None
    handler: AssertionHandler | None = None
    printers: list[Printer] | None = None

    request_factory: RequestFactory | None = None
    transport: Transport | None = None
    dialer: Dialer | None = None

    @property
    def ws_read_timeout(self) -> float | None:
        return self.ws_read_timeout_ms / 1000 if self.ws_read_timeout_ms is not None else None

    @property
    def ws_write_timeout(self) -> float | None:
        return self.ws_write_timeout_ms / 1000 if self.ws_write_timeout_ms is not None else None

    def with_defaults(self) -> Config:
        """Return a copy with every unset collaborator filled in."""
        cfg = replace(self)

        if cfg.formatter is None:
            cfg.formatter = DefaultFormatter()
        if cfg.reporters is None:
            cfg.reporters = [AssertReporter()]
        if cfg.loggers is None:
            cfg.loggers = []
        if cfg.handler is None:
            cfg.handler = DefaultAssertionHandler(cfg.formatter, cfg.reporters, cfg.loggers)
        if cfg.printers is None:
            cfg.printers = []
        if cfg.redirect_policy is None:
            cfg.redirect_policy = RedirectPolicy()
        if cfg.request_factory is None:
            cfg.request_factory = DefaultRequestFactory()
        if cfg.transport is None:
            cfg.transport = AiohttpTransport(timeout_ms=cfg.timeout_ms, auth_config=cfg.auth)
        if cfg.dialer is None:
            cfg.dialer = AiohttpDialer(timeout_ms=cfg.timeout_ms, auth_config=cfg.auth)

        return cfg


def make_printer(kind: PrinterKind) -> Printer | None:
    if kind == PrinterKind.COMPACT:
        return CompactPrinter()
    if kind == PrinterKind.DEBUG:
        return DebugPrinter()
    return None


def make_reporter(kind: ReporterKind) -> Reporter:
    if kind == ReporterKind.LOGGING:
        return LoggingReporter()
    if kind == ReporterKind.CONSOLE:
        return ConsoleReporter()
    if kind == ReporterKind.COLLECT:
        return CollectingReporter()
    return AssertReporter()
