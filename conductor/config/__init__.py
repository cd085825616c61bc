"""
Configuration for Conductor

Usage:
    from conductor.config import Config, load_config

    # Build in code
    config = Config(base_url="http://localhost:8000", test_name="test_users")

    # Or load from YAML
    config, result = load_config("conductor.yaml")
    if not result.is_valid:
        print(result)
"""

# Loader functions
from .loader import ConfigParser, interpolate_value, load_config, validate_config_yaml

# Models
from .models import AuthConfig, AuthType, Config, PrinterKind, ReporterKind

# Validation
from .validation import ConfigValidator, ValidationError, ValidationResult

__all__ = [
    # Loader functions
    "ConfigParser",
    "interpolate_value",
    "load_config",
    "validate_config_yaml",
    # Models
    "AuthConfig",
    "AuthType",
    "Config",
    "PrinterKind",
    "ReporterKind",
    # Validation
    "ConfigValidator",
    "ValidationError",
    "ValidationResult",
]
