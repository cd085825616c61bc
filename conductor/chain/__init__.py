"""
Assertion Chains

This package provides the failure-propagation state machine that sits
under every assertable object.

Usage:
    from conductor.chain import Chain, AssertionFailure

    chain = Chain("Response", handler)
    field = chain.clone("json_path($.id)")
    field.assert_flag(value == 1, AssertionFailure.assertion(
        "value does not match", expected=1, actual=value,
    ))

    if chain.failed:
        print(chain.failures)
"""

# Models
from .models import (
    AssertionContext,
    AssertionFailure,
    ChainFlag,
    FailureCategory,
    FailureKind,
    format_value,
)

# Chain
from .chain import Chain

__all__ = [
    # Models
    "AssertionContext",
    "AssertionFailure",
    "ChainFlag",
    "FailureCategory",
    "FailureKind",
    "format_value",
    # Chain
    "Chain",
]
