"""
Validation for Conductor YAML configuration.

This module checks raw parsed YAML against the configuration schema
and reports errors with helpful messages.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..engine.redirect import FollowMode
from .models import AuthType, PrinterKind, ReporterKind


# ─────────────────────────────────────────────────────────────────────────────
# Validation Result Types
# ─────────────────────────────────────────────────────────────────────────────

@dataclass
class ValidationError:
    """Represents a single validation error with context."""
    path: str  # e.g., "redirects.max_redirects"
    message: str
    value: Any = None
    suggestion: str | None = None

    def __str__(self) -> str:
        parts = [f"❌ {self.path}: {self.message}"]
        if self.value is not None:
            parts.append(f"   Got: {repr(self.value)}")
        if self.suggestion:
            parts.append(f"   💡 {self.suggestion}")
        return "\n".join(parts)


@dataclass
class ValidationResult:
    """Result of config validation."""
    errors: list[ValidationError] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def add_error(
        self,
        path: str,
        message: str,
        value: Any = None,
        suggestion: str | None = None
    ) -> None:
        self.errors.append(ValidationError(path, message, value, suggestion))

    def __str__(self) -> str:
        if self.is_valid:
            return "✅ Config validation passed"
        lines = [f"Config validation failed with {len(self.errors)} error(s):\n"]
        lines.extend(str(e) for e in self.errors)
        return "\n".join(lines)


# ─────────────────────────────────────────────────────────────────────────────
# Config Validator
# ─────────────────────────────────────────────────────────────────────────────

class ConfigValidator:
    """Validates raw parsed YAML against the config schema."""

    TOP_LEVEL = {
        "base_url", "test_name", "timeout_ms", "headers", "auth",
        "redirects", "websocket", "printer", "reporter",
    }
    REDIRECT_KEYS = {"follow", "max_redirects", "downgrade_post", "drop_headers"}
    WEBSOCKET_KEYS = {"read_timeout_ms", "write_timeout_ms"}
    VALID_FOLLOW = {m.value for m in FollowMode}
    VALID_AUTH_TYPES = {t.value for t in AuthType}
    VALID_PRINTERS = {p.value for p in PrinterKind}
    VALID_REPORTERS = {r.value for r in ReporterKind}

    def __init__(self, data: dict[str, Any]):
        self.data = data
        self.result = ValidationResult()

    def validate(self) -> ValidationResult:
        """Run all validation checks and return result."""
        self._validate_top_level()
        self._validate_base_url()
        self._validate_timeout("timeout_ms", self.data.get("timeout_ms"))
        self._validate_headers()
        self._validate_auth()
        self._validate_redirects()
        self._validate_websocket()
        self._validate_choice("printer", self.VALID_PRINTERS)
        self._validate_choice("reporter", self.VALID_REPORTERS)
        return self.result

    def _validate_top_level(self) -> None:
        for key in set(self.data.keys()) - self.TOP_LEVEL:
            self.result.add_error(
                key,
                f"Unknown top-level field '{key}'",
                suggestion=f"Valid fields are: {', '.join(sorted(self.TOP_LEVEL))}"
            )

    def _validate_base_url(self) -> None:
        base_url = self.data.get("base_url")
        if base_url is None:
            return
        if not isinstance(base_url, str):
            self.result.add_error("base_url", "Must be a string", value=base_url)
        elif not base_url.startswith(("http://", "https://", "ws://", "wss://", "{{")):
            self.result.add_error(
                "base_url",
                "Must be an absolute URL",
                value=base_url,
                suggestion="Use e.g. 'http://localhost:8000'"
            )

    def _validate_timeout(self, path: str, value: Any) -> None:
        if value is None:
            return
        if not isinstance(value, int) or isinstance(value, bool):
            self.result.add_error(path, "Must be an integer (milliseconds)", value=value)
        elif value <= 0:
            self.result.add_error(path, "Must be > 0", value=value)

    def _validate_headers(self) -> None:
        headers = self.data.get("headers")
        if headers is None:
            return
        if not isinstance(headers, dict):
            self.result.add_error("headers", "Must be an object", value=headers)
            return
        for name, value in headers.items():
            if not isinstance(value, str):
                self.result.add_error(f"headers.{name}", "Must be a string", value=value)

    def _validate_auth(self) -> None:
        auth = self.data.get("auth")
        if auth is None:
            return
        if not isinstance(auth, dict):
            self.result.add_error("auth", "Must be an object", value=auth)
            return

        auth_type = auth.get("type")
        if not isinstance(auth_type, str) or auth_type not in self.VALID_AUTH_TYPES:
            self.result.add_error(
                "auth.type",
                "Invalid auth type",
                value=auth_type,
                suggestion=f"Valid types are: {', '.join(sorted(self.VALID_AUTH_TYPES))}"
            )
            return

        required = {
            "bearer": ["token"],
            "api_key": ["key"],
            "basic": ["username", "password"],
        }[auth_type]
        for key in required:
            if not auth.get(key):
                self.result.add_error(
                    f"auth.{key}",
                    f"Required for '{auth_type}' auth",
                    suggestion="Use '{{env.VAR}}' to read secrets from the environment"
                )

    def _validate_redirects(self) -> None:
        redirects = self.data.get("redirects")
        if redirects is None:
            return
        if not isinstance(redirects, dict):
            self.result.add_error("redirects", "Must be an object", value=redirects)
            return

        for key in set(redirects.keys()) - self.REDIRECT_KEYS:
            self.result.add_error(f"redirects.{key}", "Unknown field")

        follow = redirects.get("follow")
        if follow is not None and (not isinstance(follow, str) or follow not in self.VALID_FOLLOW):
            self.result.add_error(
                "redirects.follow",
                "Invalid follow mode",
                value=follow,
                suggestion=f"Valid modes are: {', '.join(sorted(self.VALID_FOLLOW))}"
            )

        max_redirects = redirects.get("max_redirects")
        if max_redirects is not None and (
            not isinstance(max_redirects, int) or isinstance(max_redirects, bool) or max_redirects < 0
        ):
            self.result.add_error(
                "redirects.max_redirects",
                "Must be a non-negative integer or null for unbounded",
                value=max_redirects
            )

        downgrade = redirects.get("downgrade_post")
        if downgrade is not None and not isinstance(downgrade, bool):
            self.result.add_error("redirects.downgrade_post", "Must be a boolean", value=downgrade)

        drop = redirects.get("drop_headers")
        if drop is not None and (
            not isinstance(drop, list) or not all(isinstance(h, str) for h in drop)
        ):
            self.result.add_error("redirects.drop_headers", "Must be a list of header names", value=drop)

    def _validate_websocket(self) -> None:
        websocket = self.data.get("websocket")
        if websocket is None:
            return
        if not isinstance(websocket, dict):
            self.result.add_error("websocket", "Must be an object", value=websocket)
            return
        for key in set(websocket.keys()) - self.WEBSOCKET_KEYS:
            self.result.add_error(f"websocket.{key}", "Unknown field")
        for key in self.WEBSOCKET_KEYS:
            self._validate_timeout(f"websocket.{key}", websocket.get(key))

    def _validate_choice(self, key: str, valid: set[str]) -> None:
        value = self.data.get(key)
        if value is not None and (not isinstance(value, str) or value not in valid):
            self.result.add_error(
                key,
                f"Invalid {key}",
                value=value,
                suggestion=f"Valid values are: {', '.join(sorted(valid))}"
            )
