"""Tests for the failure-propagation chain."""

from __future__ import annotations

from datetime import timedelta

import pytest
from yarl import URL

from conductor.chain import AssertionFailure, Chain, ChainFlag, FailureCategory, FailureKind
from conductor.reporting import AssertReporter, DefaultAssertionHandler
from conductor.transport import Request

from fakes import SpyHandler, make_response


def failure(message: str = "boom") -> AssertionFailure:
    return AssertionFailure.assertion(message, expected=1, actual=2)


class TestChainState:
    def test_new_chain_is_ok(self):
        chain = Chain("Request(GET)", SpyHandler())
        assert chain.flag == ChainFlag.OK
        assert not chain.failed
        assert chain.failures == []

    def test_fail_reports_once(self):
        handler = SpyHandler()
        chain = Chain("Request(GET)", handler)
        chain.fail(failure("first"))
        chain.fail(failure("second"))

        assert chain.flag == ChainFlag.FAILED_REPORTED
        assert len(handler.failures) == 1
        assert handler.failures[0][1].message == "first"
        assert [f.message for f in chain.failures] == ["first", "second"]

    def test_fail_without_handler(self):
        chain = Chain("Request(GET)", None)
        chain.fail(failure())
        assert chain.failed

    def test_assert_flag_true_reports_success(self):
        handler = SpyHandler()
        chain = Chain("Request(GET)", handler)
        assert chain.assert_flag(True, failure()) is True
        assert len(handler.successes) == 1
        assert handler.failures == []

    def test_assert_flag_false_reports_failure(self):
        handler = SpyHandler()
        chain = Chain("Request(GET)", handler)
        assert chain.assert_flag(False, failure()) is False
        assert handler.successes == []
        assert len(handler.failures) == 1

    def test_failed_chain_never_succeeds_again(self):
        handler = SpyHandler()
        chain = Chain("Request(GET)", handler)
        chain.fail(failure())
        chain.succeed()
        chain.assert_flag(True, failure())
        assert handler.successes == []
        assert chain.failed


class TestChainClone:
    def test_child_failure_bubbles_without_second_report(self):
        handler = SpyHandler()
        root = Chain("Request(GET)", handler)
        child = root.clone("status(200)")
        child.fail(failure())

        assert child.flag == ChainFlag.FAILED_REPORTED
        assert root.flag == ChainFlag.FAILED
        assert len(handler.failures) == 1
        assert len(root.failures) == 1

    def test_grandchild_failure_marks_every_ancestor(self):
        handler = SpyHandler()
        root = Chain("Request(GET)", handler)
        child = root.clone("expect()")
        grandchild = child.clone("status(200)")
        grandchild.fail(failure())

        assert root.failed
        assert child.failed
        assert len(handler.failures) == 1

    def test_parent_fail_after_child_is_not_reported(self):
        handler = SpyHandler()
        root = Chain("Request(GET)", handler)
        root.clone("status(200)").fail(failure())
        root.fail(failure("later"))
        assert len(handler.failures) == 1

    def test_clone_of_failed_chain_starts_failed(self):
        handler = SpyHandler()
        root = Chain("Request(GET)", handler)
        root.fail(failure())

        child = root.clone("status(200)")
        assert child.flag == ChainFlag.FAILED
        child.assert_flag(False, failure("suppressed"))
        child.assert_flag(True, failure())
        assert len(handler.failures) == 1
        assert handler.successes == []

    def test_ancestors_marked_when_reporter_raises(self):
        root = Chain("Request(GET)", DefaultAssertionHandler(reporters=[AssertReporter()]))
        response = root.clone("expect()")
        status = response.clone("status(200)")

        with pytest.raises(AssertionError):
            status.fail(failure())

        assert status.flag == ChainFlag.FAILED_REPORTED
        assert response.flag == ChainFlag.FAILED
        assert root.flag == ChainFlag.FAILED
        assert len(root.failures) == 1

    def test_sibling_is_unaffected_by_clone_created_before_failure(self):
        root = Chain("Request(GET)", SpyHandler())
        first = root.clone("status(200)")
        second = root.clone("json_path('$.id')")
        first.fail(failure())
        assert not second.failed

    def test_path_and_test_name(self):
        handler = SpyHandler()
        root = Chain("Request(GET)", handler, test_name="test_users")
        child = root.clone("expect()").clone("status(200)")
        child.succeed()

        ctx = handler.successes[0]
        assert child.path == ["Request(GET)", "expect()", "status(200)"]
        assert ctx.path_str == "Request(GET).expect().status(200)"
        assert ctx.test_name == "test_users"


class TestChainContext:
    def test_context_carries_attached_entries(self):
        root = Chain("Request(GET)", SpyHandler())
        request = Request("GET", URL("http://example.com/"))
        response = make_response(204)
        response.elapsed = timedelta(milliseconds=42)
        root.attach_request(request)
        root.attach_response(response)

        ctx = root.clone("status(204)").context()
        assert ctx.request is request
        assert ctx.response is response
        assert ctx.round_trip == timedelta(milliseconds=42)

    def test_entries_attached_after_clone_stay_on_parent(self):
        root = Chain("Request(GET)", SpyHandler())
        child = root.clone("expect()")
        root.attach_response(make_response(200))
        assert child.context().response is None
        assert root.context().response is not None


class TestFailureKind:
    def test_categories(self):
        assert FailureKind.CONSTRUCTION.category == FailureCategory.CONSTRUCTION
        assert FailureKind.TRANSPORT_TIMEOUT.category == FailureCategory.TRANSPORT
        assert FailureKind.TOO_MANY_REDIRECTS.category == FailureCategory.PROTOCOL
        assert FailureKind.BAD_REDIRECT.category == FailureCategory.PROTOCOL
        assert FailureKind.WEBSOCKET_CLOSED.category == FailureCategory.WEBSOCKET

    def test_only_timeout_and_temporary_are_retryable(self):
        retryable = {k for k in FailureKind if k.retryable}
        assert retryable == {FailureKind.TRANSPORT_TIMEOUT, FailureKind.TRANSPORT_TEMPORARY}

    def test_failure_str_includes_details(self):
        f = AssertionFailure.from_error(
            FailureKind.CONSTRUCTION,
            "Query encoder #1 failed",
            ValueError("bad"),
            details={"key": "ids"},
        )
        text = str(f)
        assert text.startswith("construction: Query encoder #1 failed")
        assert "ValueError: bad" in text
        assert "key: 'ids'" in text
