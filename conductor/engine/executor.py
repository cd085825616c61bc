"""
Request executor: build, dispatch, follow redirects.

The executor never raises for request, transport or redirect problems.
Each operation returns a (result, failure) pair and records the failure
on its chain, so the owning assertable object can keep going.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Iterable

from multidict import CIMultiDict, MultiDict
from yarl import URL

from ..chain import AssertionFailure, Chain, FailureKind
from ..errors import InvalidRequestError
from ..transport.base import DefaultRequestFactory, QueryEncoder, RequestFactory, Transport
from ..transport.models import Request, TransportResponse
from .printer import Printer
from .redirect import RedirectPolicy

logger = logging.getLogger(__name__)

HTTP_SCHEMES = ("http", "https")


@dataclass
class RequestSpec:
    """Declarative description of a request before construction."""
    method: str
    url: str | URL
    headers: CIMultiDict[str] = field(default_factory=CIMultiDict)
    query: MultiDict[str] = field(default_factory=MultiDict)
    query_encoders: list[tuple[str, QueryEncoder]] = field(default_factory=list)
    body: bytes | None = None


def _signal(error: BaseException, name: str) -> bool:
    value = getattr(error, name, False)
    if callable(value):
        value = value()
    return value is True


def classify_transport_error(error: BaseException) -> FailureKind:
    """Map a dispatch exception onto a transport failure kind."""
    if _signal(error, "timeout") or isinstance(error, (TimeoutError, asyncio.TimeoutError)):
        return FailureKind.TRANSPORT_TIMEOUT
    if _signal(error, "temporary") or isinstance(error, ConnectionError):
        return FailureKind.TRANSPORT_TEMPORARY
    return FailureKind.TRANSPORT_FATAL


class RequestExecutor:
    """
    Builds requests from specs and runs them through a transport.

    Example:
        executor = RequestExecutor(chain, printers=[CompactPrinter()])
        request, failure = executor.build(RequestSpec("GET", "http://example.com/"))
        if request is not None:
            response, failure = await executor.execute(request, transport)
    """

    def __init__(
        self,
        chain: Chain,
        *,
        factory: RequestFactory | None = None,
        printers: Iterable[Printer] = (),
    ):
        self.chain = chain
        self.factory = factory or DefaultRequestFactory()
        self.printers = list(printers)

    def build(self, spec: RequestSpec) -> tuple[Request | None, AssertionFailure | None]:
        """
        Construct a concrete request.

        Query encoders run in registration order; the first one to raise
        aborts construction. Returns (None, None) if the chain had already
        failed.
        """
        if self.chain.failed:
            logger.debug("build skipped: chain already failed")
            return None, None

        values: MultiDict[str] = MultiDict(spec.query)
        for index, (key, encoder) in enumerate(spec.query_encoders):
            try:
                encoder.encode_values(key, values)
            except Exception as e:
                return None, self._fail(AssertionFailure.from_error(
                    FailureKind.CONSTRUCTION,
                    f"Query encoder #{index} failed for key {key!r}",
                    e,
                    details={"encoder_index": index, "key": key},
                ))

        try:
            request = self.factory.new_request(spec.method, spec.url, spec.body)
        except InvalidRequestError as e:
            return None, self._fail(AssertionFailure.from_error(
                FailureKind.CONSTRUCTION,
                "Invalid request",
                e,
                details={"method": spec.method, "url": str(spec.url)},
            ))

        if values:
            request.url = request.url.extend_query(list(values.items()))
        request.headers.extend(spec.headers)

        return request, None

    async def execute(
        self,
        request: Request,
        transport: Transport,
        policy: RedirectPolicy | None = None,
    ) -> tuple[TransportResponse | None, AssertionFailure | None]:
        """
        Dispatch a request, following redirects according to policy.

        Returns the final response, or the last response received when a
        failure interrupted the redirect sequence. Returns (None, None)
        if the chain had already failed.
        """
        if self.chain.failed:
            logger.debug("execute skipped: chain already failed")
            return None, None

        policy = policy or RedirectPolicy()
        self.chain.attach_request(request)

        started = time.monotonic()
        current = request
        last: TransportResponse | None = None
        hops = 0

        while True:
            for printer in self.printers:
                printer.request(current)

            hop_started = time.monotonic()
            try:
                response = await transport.do(current)
            except Exception as e:
                kind = classify_transport_error(e)
                logger.warning(f"{current}: {kind.value}: {e}")
                return last, self._fail(AssertionFailure.from_error(
                    kind,
                    f"Request failed: {current}",
                    e,
                    details={"hops": hops},
                ))
            hop_rtt = timedelta(seconds=time.monotonic() - hop_started)
            response.elapsed = hop_rtt
            last = response

            try:
                await response.body.read()
            except Exception as e:
                for printer in self.printers:
                    printer.response(response, hop_rtt)
                response.elapsed = timedelta(seconds=time.monotonic() - started)
                return last, self._fail(AssertionFailure.from_error(
                    FailureKind.TRANSPORT_FATAL,
                    f"Failed to read response body: {current}",
                    e,
                ))

            for printer in self.printers:
                printer.response(response, hop_rtt)

            if transport.follows_redirects or not policy.is_redirect(response):
                break

            _, next_body = policy.next_method_and_body(response.status, current.method, current.body)
            if not policy.should_follow(next_body):
                logger.debug(f"{current}: not following {response.status} redirect")
                break

            if not policy.allows_hop(hops):
                response.elapsed = timedelta(seconds=time.monotonic() - started)
                self.chain.attach_response(response)
                return response, self._fail(AssertionFailure(
                    kind=FailureKind.TOO_MANY_REDIRECTS,
                    message=f"Too many redirects (max {policy.max_redirects})",
                    actual=hops + 1,
                    expected=policy.max_redirects,
                    details={"location": response.location},
                ))

            target, failure = self._resolve_location(current.url, response.location)
            if failure is not None:
                response.elapsed = timedelta(seconds=time.monotonic() - started)
                self.chain.attach_response(response)
                return response, self._fail(failure)

            current = policy.next_request(current, response, target)
            hops += 1
            logger.debug(f"redirect #{hops}: {response.status} -> {current}")

        last.elapsed = timedelta(seconds=time.monotonic() - started)
        self.chain.attach_response(last)
        return last, None

    def _resolve_location(
        self, base: URL, location: str
    ) -> tuple[URL | None, AssertionFailure | None]:
        try:
            target = base.join(URL(location))
        except (TypeError, ValueError) as e:
            return None, AssertionFailure.from_error(
                FailureKind.BAD_REDIRECT,
                f"Malformed redirect location: {location!r}",
                e,
            )

        if target.scheme not in HTTP_SCHEMES or not target.host:
            return None, AssertionFailure(
                kind=FailureKind.BAD_REDIRECT,
                message=f"Unsupported redirect location: {location!r}",
                actual=str(target),
            )
        return target, None

    def _fail(self, failure: AssertionFailure) -> AssertionFailure:
        self.chain.fail(failure)
        return failure
