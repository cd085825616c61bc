"""
Assertion log models.

This module defines the data structures for capturing a complete
record of the assertion events emitted during a test run.
"""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class EventStatus(str, Enum):
    """Outcome of a single assertion event."""
    PASSED = "passed"
    FAILED = "failed"


class RunStatus(str, Enum):
    """Overall status of an assertion log."""
    RUNNING = "running"
    PASSED = "passed"
    FAILED = "failed"


@dataclass
class AssertionRecord:
    """
    Record of a single success or failure event.

    Captures the assertion path, the failure classification and the
    request/response summary the chain had attached.
    """
    status: EventStatus
    path: str
    test_name: str = ""
    recorded_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    # Failure details
    kind: str | None = None
    message: str | None = None
    expected_value: Any = None
    actual_value: Any = None
    retryable: bool = False

    # Context
    request_line: str | None = None
    response_status: int | None = None
    round_trip_ms: float | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "status": self.status.value,
            "path": self.path,
            "test_name": self.test_name,
            "recorded_at": self.recorded_at.isoformat(),
            "kind": self.kind,
            "message": self.message,
            "expected_value": _safe_serialize(self.expected_value),
            "actual_value": _safe_serialize(self.actual_value),
            "retryable": self.retryable,
            "request_line": self.request_line,
            "response_status": self.response_status,
            "round_trip_ms": self.round_trip_ms,
        }


@dataclass
class AssertionLog:
    """
    Complete record of the assertion events of one run.

    Summary counts are recomputed by complete().
    """
    run_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    ended_at: datetime | None = None
    duration_ms: float | None = None

    status: RunStatus = RunStatus.RUNNING
    records: list[AssertionRecord] = field(default_factory=list)

    total: int = 0
    passed: int = 0
    failed: int = 0

    def add(self, record: AssertionRecord) -> None:
        self.records.append(record)

    def complete(self) -> None:
        """Mark the log as completed and calculate final status."""
        self.ended_at = datetime.now(timezone.utc)
        delta = self.ended_at - self.started_at
        self.duration_ms = delta.total_seconds() * 1000

        self.total = len(self.records)
        self.passed = sum(1 for r in self.records if r.status == EventStatus.PASSED)
        self.failed = sum(1 for r in self.records if r.status == EventStatus.FAILED)
        self.status = RunStatus.FAILED if self.failed else RunStatus.PASSED

    def failures(self) -> list[AssertionRecord]:
        return [r for r in self.records if r.status == EventStatus.FAILED]

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "run_id": self.run_id,
            "started_at": self.started_at.isoformat(),
            "ended_at": self.ended_at.isoformat() if self.ended_at else None,
            "duration_ms": self.duration_ms,
            "status": self.status.value,
            "summary": {
                "total": self.total,
                "passed": self.passed,
                "failed": self.failed,
            },
            "records": [r.to_dict() for r in self.records],
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, default=str)

    def summary(self) -> str:
        """Generate a human-readable summary."""
        lines = [
            f"═══════════════════════════════════════════════════════════",
            f"  Assertion Log: {self.run_id}",
            f"═══════════════════════════════════════════════════════════",
            f"  Status:     {_status_icon(self.status)} {self.status.value.upper()}",
            f"  Duration:   {self.duration_ms:.0f}ms" if self.duration_ms else "  Duration:   N/A",
            f"───────────────────────────────────────────────────────────",
            f"  Assertions: {self.passed} passed, {self.failed} failed",
            f"───────────────────────────────────────────────────────────",
        ]

        for record in self.records:
            icon = "✅" if record.status == EventStatus.PASSED else "❌"
            lines.append(f"  {icon} {record.path}")
            if record.message:
                lines.append(f"      └─ {record.kind}: {record.message}")

        lines.append(f"═══════════════════════════════════════════════════════════")
        return "\n".join(lines)


def _safe_serialize(value: Any) -> Any:
    """Safely serialize a value, handling non-JSON types."""
    if value is None:
        return None
    try:
        json.dumps(value)
        return value
    except (TypeError, ValueError):
        return str(value)


def _status_icon(status: RunStatus) -> str:
    return {
        RunStatus.RUNNING: "🔄",
        RunStatus.PASSED: "✅",
        RunStatus.FAILED: "❌",
    }.get(status, "❓")
