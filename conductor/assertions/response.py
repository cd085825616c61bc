"""
Assertable HTTP response and JSON values.

Each matcher runs on a clone of the owning chain, so its failure is
attributed to the matcher's label.
"""

from __future__ import annotations

import json
import logging
from datetime import timedelta
from typing import Any

from jsonpath_ng import parse as parse_jsonpath
from jsonpath_ng.exceptions import JsonPathLexerError, JsonPathParserError
from multidict import CIMultiDict

from ..chain import AssertionFailure, Chain, FailureKind
from ..transport.models import TransportResponse

logger = logging.getLogger(__name__)


class Response:
    """
    Wraps a TransportResponse together with its chain.

    `raw` is None when the request never produced a response; every
    matcher is then inert because the chain has already failed.
    """

    def __init__(self, chain: Chain, raw: TransportResponse | None):
        self.chain = chain
        self.raw = raw

    @property
    def status_code(self) -> int | None:
        return self.raw.status if self.raw is not None else None

    @property
    def headers(self) -> CIMultiDict[str]:
        return self.raw.headers if self.raw is not None else CIMultiDict()

    @property
    def elapsed(self) -> timedelta:
        return self.raw.elapsed if self.raw is not None else timedelta(0)

    def status(self, expected: int) -> Response:
        """Assert the status code."""
        child = self.chain.clone(f"status({expected})")
        child.assert_flag(
            self.raw is not None and self.raw.status == expected,
            AssertionFailure.assertion(
                "Unexpected status code",
                expected=expected,
                actual=self.status_code,
            ),
        )
        return self

    async def body(self) -> bytes:
        """Return the body bytes; identical on every call."""
        if self.raw is None:
            return b""
        try:
            return await self.raw.body.read()
        except Exception as e:
            self.chain.fail(AssertionFailure.from_error(
                FailureKind.TRANSPORT_FATAL, "Failed to read response body", e,
            ))
            return b""

    async def text(self) -> str:
        return (await self.body()).decode("utf-8", errors="replace")

    async def json(self) -> Any:
        """Decode the body as JSON; None (and a failure) if it is not JSON."""
        return await self._decode_json(self.chain)

    async def _decode_json(self, chain: Chain) -> Any:
        body = await self.body()
        try:
            return json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            chain.fail(AssertionFailure.from_error(
                FailureKind.ASSERTION,
                "Response body is not valid JSON",
                e,
                details={"body": body[:200].decode("utf-8", errors="replace")},
            ))
            return None

    async def json_path(self, expression: str) -> Value:
        """
        Select a value from the JSON body.

        The returned Value owns a clone of this response's chain, so a
        failing matcher on it also marks the response failed.
        """
        child = self.chain.clone(f"json_path({expression!r})")
        if child.failed:
            return Value(child, None, found=False)

        data = await self._decode_json(child)
        if child.failed:
            return Value(child, None, found=False)

        try:
            matches = parse_jsonpath(expression).find(data)
        except (JsonPathParserError, JsonPathLexerError) as e:
            child.fail(AssertionFailure.from_error(
                FailureKind.CONSTRUCTION,
                f"Invalid JSONPath: {expression}",
                e,
            ))
            return Value(child, None, found=False)

        if not matches:
            return Value(child, None, found=False)
        return Value(child, matches[0].value)

    def __repr__(self) -> str:
        return f"Response(status={self.status_code}, chain={self.chain!r})"


class Value:
    """A value selected from a response, with its own chain."""

    def __init__(self, chain: Chain, value: Any, found: bool = True):
        self.chain = chain
        self.raw = value
        self.found = found

    def exists(self) -> Value:
        self.chain.clone("exists()").assert_flag(
            self.found,
            AssertionFailure.assertion("Path does not exist", expected="path to exist", actual="no matches found"),
        )
        return self

    def equal(self, expected: Any) -> Value:
        self.chain.clone(f"equal({expected!r})").assert_flag(
            self.found and self.raw == expected,
            AssertionFailure.assertion(
                "Value does not match" if self.found else "Path does not exist",
                expected=expected,
                actual=self.raw if self.found else "<path not found>",
            ),
        )
        return self

    def __repr__(self) -> str:
        return f"Value({self.raw!r}, found={self.found})"
