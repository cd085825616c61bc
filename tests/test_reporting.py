"""Tests for formatters, handlers, reporters and the assertion log."""

from __future__ import annotations

import io
import json
import logging

import pytest
from rich.console import Console
from yarl import URL

from conductor.chain import AssertionContext, AssertionFailure, FailureKind
from conductor.reporting import (
    AssertReporter,
    CollectingReporter,
    ConsoleReporter,
    DefaultAssertionHandler,
    DefaultFormatter,
    EventStatus,
    LoggingReporter,
    RecordingHandler,
    RunStatus,
    StdLogger,
)
from conductor.transport import MessageType, Request, WsMessage

from fakes import make_response


def ctx(**kwargs) -> AssertionContext:
    return AssertionContext(test_name="test_users", path=["Request(GET)", "expect()", "status(200)"], **kwargs)


def status_failure() -> AssertionFailure:
    return AssertionFailure.assertion("Unexpected status code", expected=200, actual=404)


class ListLogger:
    def __init__(self):
        self.messages: list[str] = []

    def log(self, message: str) -> None:
        self.messages.append(message)


class TestDefaultFormatter:
    def test_success(self):
        assert DefaultFormatter().format_success(ctx()) == "✅ PASS: [test_users] Request(GET).expect().status(200)"

    def test_success_without_test_name(self):
        text = DefaultFormatter().format_success(AssertionContext(test_name="", path=["Request(GET)"]))
        assert text == "✅ PASS: Request(GET)"

    def test_failure_includes_context(self):
        text = DefaultFormatter().format_failure(
            ctx(
                request=Request("GET", URL("http://example.com/users")),
                response=make_response(404, b'{"error": "missing"}', reason="Not Found"),
            ),
            status_failure(),
        )
        lines = text.splitlines()
        assert lines[0] == "❌ FAIL: [test_users] Request(GET).expect().status(200)"
        assert "assertion: Unexpected status code" in text
        assert "Expected: 200" in text
        assert "Actual:   404" in text
        assert "Request:  GET http://example.com/users" in text
        assert "Response: 404 Not Found" in text
        assert "missing" in text

    def test_failure_with_message(self):
        text = DefaultFormatter().format_failure(
            ctx(message=WsMessage(MessageType.TEXT, b"hello")),
            status_failure(),
        )
        assert "Message:  TEXT b'hello'" in text

    def test_hiding_request_and_response(self):
        formatter = DefaultFormatter(show_request=False, show_response=False)
        text = formatter.format_failure(
            ctx(request=Request("GET", URL("http://example.com/")), response=make_response(500)),
            status_failure(),
        )
        assert "Request:" not in text
        assert "Response:" not in text


class TestDefaultAssertionHandler:
    def test_success_goes_to_loggers_only(self):
        reporter, logger = CollectingReporter(), ListLogger()
        handler = DefaultAssertionHandler(reporters=[reporter], loggers=[logger])
        handler.success(ctx())
        assert len(logger.messages) == 1
        assert reporter.messages == []

    def test_failure_goes_to_reporters_only(self):
        reporter, logger = CollectingReporter(), ListLogger()
        handler = DefaultAssertionHandler(reporters=[reporter], loggers=[logger])
        handler.failure(ctx(), status_failure())
        assert len(reporter.messages) == 1
        assert logger.messages == []

    def test_no_reporters_drops_failures(self):
        DefaultAssertionHandler().failure(ctx(), status_failure())

    def test_every_reporter_is_called(self):
        first, second = CollectingReporter(), CollectingReporter()
        DefaultAssertionHandler(reporters=[first, second]).failure(ctx(), status_failure())
        assert first.messages == second.messages
        assert first.reported


class TestReporters:
    def test_assert_reporter_raises(self):
        with pytest.raises(AssertionError, match="boom"):
            AssertReporter().report("boom")

    def test_collecting_reporter(self):
        reporter = CollectingReporter()
        reporter.raise_if_failed()
        reporter.report("one")
        reporter.report("two")
        with pytest.raises(AssertionError, match="one\n\ntwo"):
            reporter.raise_if_failed()
        reporter.clear()
        assert not reporter.reported

    def test_logging_reporter(self, caplog):
        with caplog.at_level(logging.ERROR, logger="conductor.assertions"):
            LoggingReporter().report("failed thing")
        assert "failed thing" in caplog.text

    def test_std_logger(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="conductor.assertions"):
            StdLogger().log("passed thing")
        assert "passed thing" in caplog.text

    def test_console_reporter_prints_brackets_literally(self):
        buffer = io.StringIO()
        ConsoleReporter(Console(file=buffer, width=200)).report("❌ FAIL: [test_users] Request(GET)")
        assert "[test_users]" in buffer.getvalue()


class TestRecordingHandler:
    def test_records_and_delegates(self):
        reporter = CollectingReporter()
        handler = RecordingHandler(DefaultAssertionHandler(reporters=[reporter]))

        handler.success(ctx(response=make_response(200)))
        handler.failure(ctx(), AssertionFailure(kind=FailureKind.TRANSPORT_TIMEOUT, message="slow"))
        log = handler.finish()

        assert log.status == RunStatus.FAILED
        assert (log.total, log.passed, log.failed) == (2, 1, 1)
        assert log.records[0].response_status == 200
        failed = log.failures()[0]
        assert failed.status == EventStatus.FAILED
        assert failed.kind == "transport_timeout"
        assert failed.retryable
        assert len(reporter.messages) == 1

    def test_records_even_when_reporter_raises(self):
        handler = RecordingHandler(DefaultAssertionHandler(reporters=[AssertReporter()]))
        with pytest.raises(AssertionError):
            handler.failure(ctx(), status_failure())
        assert len(handler.log.records) == 1

    def test_all_passed(self):
        handler = RecordingHandler()
        handler.success(ctx())
        assert handler.finish().status == RunStatus.PASSED

    def test_json_and_summary(self, tmp_path):
        handler = RecordingHandler()
        handler.success(ctx())
        handler.failure(ctx(), status_failure())
        log = handler.finish()

        data = json.loads(log.to_json())
        assert data["summary"] == {"total": 2, "passed": 1, "failed": 1}
        assert data["records"][1]["expected_value"] == 200
        assert data["records"][1]["actual_value"] == 404

        summary = log.summary()
        assert "1 passed, 1 failed" in summary
        assert "assertion: Unexpected status code" in summary

        path = tmp_path / "reports" / "log.json"
        handler.save_json(path)
        assert json.loads(path.read_text())["run_id"] == log.run_id
