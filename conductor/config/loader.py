"""
Config loader for Conductor.

This module provides the public API for loading and validating
configuration files from disk or YAML strings.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any, Mapping

import yaml

from ..engine.redirect import FollowMode, RedirectPolicy
from .models import AuthConfig, AuthType, Config, PrinterKind, ReporterKind, make_printer, make_reporter
from .validation import ConfigValidator, ValidationResult

ENV_PATTERN = re.compile(r"\{\{env\.(\w+)\}\}")


def interpolate_value(value: Any, env: Mapping[str, str]) -> Any:
    """Replace {{env.NAME}} placeholders; unknown names are left untouched."""
    if isinstance(value, str):
        def replace_env(match: re.Match) -> str:
            return str(env.get(match.group(1), match.group(0)))
        return ENV_PATTERN.sub(replace_env, value)
    elif isinstance(value, dict):
        return {k: interpolate_value(v, env) for k, v in value.items()}
    elif isinstance(value, list):
        return [interpolate_value(v, env) for v in value]
    return value


class ConfigParser:
    """Converts validated YAML data to a Config."""

    def __init__(self, data: dict[str, Any], env: Mapping[str, str] | None = None):
        self.data = interpolate_value(data, os.environ if env is None else env)

    def parse(self) -> Config:
        websocket = self.data.get("websocket") or {}
        printer = make_printer(PrinterKind(self.data.get("printer", PrinterKind.NONE.value)))

        return Config(
            base_url=self.data.get("base_url", ""),
            test_name=self.data.get("test_name", ""),
            timeout_ms=self.data.get("timeout_ms", 30000),
            headers=dict(self.data.get("headers") or {}),
            auth=self._parse_auth(self.data.get("auth")),
            redirect_policy=self._parse_redirects(self.data.get("redirects")),
            ws_read_timeout_ms=websocket.get("read_timeout_ms"),
            ws_write_timeout_ms=websocket.get("write_timeout_ms"),
            reporters=[make_reporter(ReporterKind(self.data.get("reporter", ReporterKind.ASSERT.value)))],
            printers=[printer] if printer is not None else [],
        )

    def _parse_auth(self, auth: dict[str, Any] | None) -> AuthConfig | None:
        if not auth:
            return None
        return AuthConfig(
            type=AuthType(auth["type"]),
            token=auth.get("token"),
            header=auth.get("header", "X-API-Key"),
            key=auth.get("key"),
            username=auth.get("username"),
            password=auth.get("password"),
        )

    def _parse_redirects(self, redirects: dict[str, Any] | None) -> RedirectPolicy:
        if not redirects:
            return RedirectPolicy()
        defaults = RedirectPolicy()
        return RedirectPolicy(
            follow=FollowMode(redirects.get("follow", defaults.follow.value)),
            max_redirects=redirects.get("max_redirects", defaults.max_redirects),
            downgrade_post=redirects.get("downgrade_post", defaults.downgrade_post),
            drop_headers=frozenset(redirects.get("drop_headers") or ()),
        )


def _load_data(data: Any, source: str) -> tuple[Config | None, ValidationResult]:
    if data is None:
        data = {}

    if not isinstance(data, dict):
        result = ValidationResult()
        result.add_error(
            source,
            "Config must be a YAML object (not a list or scalar)",
            value=type(data).__name__
        )
        return None, result

    validator = ConfigValidator(data)
    result = validator.validate()

    if not result.is_valid:
        return None, result

    return ConfigParser(data).parse(), result


def load_config(path: str | Path) -> tuple[Config | None, ValidationResult]:
    """
    Load and validate a config from a YAML file.

    Args:
        path: Path to the YAML config file

    Returns:
        Tuple of (Config or None, ValidationResult)
        If validation fails, Config will be None.

    Example:
        config, result = load_config("conductor.yaml")
        if not result.is_valid:
            print(result)
            sys.exit(1)
    """
    path = Path(path)

    if not path.exists():
        result = ValidationResult()
        result.add_error(
            str(path),
            "File not found",
            suggestion="Check the file path is correct"
        )
        return None, result

    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        result = ValidationResult()
        result.add_error(
            str(path),
            f"Invalid YAML syntax: {e}",
            suggestion="Check YAML formatting (indentation, colons, etc.)"
        )
        return None, result

    return _load_data(data, str(path))


def validate_config_yaml(yaml_string: str) -> tuple[Config | None, ValidationResult]:
    """
    Validate a config from a YAML string (useful for testing).

    Returns:
        Tuple of (Config or None, ValidationResult)
    """
    try:
        data = yaml.safe_load(yaml_string)
    except yaml.YAMLError as e:
        result = ValidationResult()
        result.add_error("yaml", f"Invalid YAML syntax: {e}")
        return None, result

    return _load_data(data, "yaml")
