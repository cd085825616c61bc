"""
Conductor - Fluent HTTP and WebSocket Assertions

This package provides a fluent assertion library for exercising HTTP and
WebSocket endpoints in tests. Failures are recorded per assertion node on
a chain and reported through pluggable handlers instead of aborting at
the first problem.

Subpackages:
    - chain: Failure-propagation state machine
    - engine: Request executor, redirect policy, WebSocket session, printers
    - transport: Transport capabilities and their aiohttp implementations
    - reporting: Formatters, handlers, reporters and the assertion log
    - config: Config dataclass and YAML loader
    - assertions: Expect, request builder, response and WebSocket assertables

Usage:
    from conductor import Config, Expect, CollectingReporter

    reporter = CollectingReporter()
    config = Config(base_url="http://localhost:8000", reporters=[reporter])

    async with Expect(config) as e:
        resp = await e.get("/health").expect()
        resp.status(200)

    reporter.raise_if_failed()
"""

__version__ = "0.1.0"

# Re-export chain for convenience
from .chain import (
    AssertionContext,
    AssertionFailure,
    Chain,
    ChainFlag,
    FailureCategory,
    FailureKind,
)

# Re-export engine for convenience
from .engine import (
    CompactPrinter,
    DebugPrinter,
    FollowMode,
    Printer,
    RedirectPolicy,
    RequestExecutor,
    RequestSpec,
    SessionState,
    WebSocketSession,
)

# Re-export transport for convenience
from .transport import (
    AiohttpDialer,
    AiohttpTransport,
    CloseCode,
    Connection,
    DefaultRequestFactory,
    Dialer,
    MessageType,
    QueryEncoder,
    Request,
    RequestFactory,
    ResponseBody,
    Transport,
    TransportResponse,
    WsMessage,
)

# Re-export reporting for convenience
from .reporting import (
    AssertReporter,
    AssertionHandler,
    AssertionLog,
    CollectingReporter,
    ConsoleReporter,
    DefaultAssertionHandler,
    DefaultFormatter,
    Formatter,
    Logger,
    LoggingReporter,
    RecordingHandler,
    Reporter,
    StdLogger,
)

# Re-export config for convenience
from .config import AuthConfig, AuthType, Config, load_config, validate_config_yaml

# Re-export assertions for convenience
from .assertions import Expect, RequestBuilder, Response, Value, WebSocket, WebSocketMessage

# Errors
from .errors import (
    ConductorError,
    ConnectionClosedError,
    DeadlineExceeded,
    EncodingError,
    InvalidRequestError,
    TransportError,
)

__all__ = [
    # Package info
    "__version__",
    # Chain
    "AssertionContext",
    "AssertionFailure",
    "Chain",
    "ChainFlag",
    "FailureCategory",
    "FailureKind",
    # Engine
    "CompactPrinter",
    "DebugPrinter",
    "FollowMode",
    "Printer",
    "RedirectPolicy",
    "RequestExecutor",
    "RequestSpec",
    "SessionState",
    "WebSocketSession",
    # Transport
    "AiohttpDialer",
    "AiohttpTransport",
    "CloseCode",
    "Connection",
    "DefaultRequestFactory",
    "Dialer",
    "MessageType",
    "QueryEncoder",
    "Request",
    "RequestFactory",
    "ResponseBody",
    "Transport",
    "TransportResponse",
    "WsMessage",
    # Reporting
    "AssertReporter",
    "AssertionHandler",
    "AssertionLog",
    "CollectingReporter",
    "ConsoleReporter",
    "DefaultAssertionHandler",
    "DefaultFormatter",
    "Formatter",
    "Logger",
    "LoggingReporter",
    "RecordingHandler",
    "Reporter",
    "StdLogger",
    # Config
    "AuthConfig",
    "AuthType",
    "Config",
    "load_config",
    "validate_config_yaml",
    # Assertions
    "Expect",
    "RequestBuilder",
    "Response",
    "Value",
    "WebSocket",
    "WebSocketMessage",
    # Errors
    "ConductorError",
    "ConnectionClosedError",
    "DeadlineExceeded",
    "EncodingError",
    "InvalidRequestError",
    "TransportError",
]
