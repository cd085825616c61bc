"""Fake collaborators shared by the test suite."""

from __future__ import annotations

import asyncio
from datetime import timedelta

from multidict import CIMultiDict, MultiDict

from conductor.chain import AssertionContext, AssertionFailure
from conductor.errors import DeadlineExceeded, EncodingError
from conductor.transport import (
    Connection,
    Dialer,
    MessageType,
    Request,
    ResponseBody,
    Transport,
    TransportResponse,
    WsMessage,
)


def make_response(
    status: int = 200,
    body: bytes | ResponseBody = b"",
    headers: dict[str, str] | None = None,
    reason: str = "",
) -> TransportResponse:
    if not isinstance(body, ResponseBody):
        body = ResponseBody(body)
    return TransportResponse(
        status=status,
        headers=CIMultiDict(headers or {}),
        body=body,
        reason=reason,
    )


class SpyHandler:
    """AssertionHandler that records raw events."""

    def __init__(self):
        self.successes: list[AssertionContext] = []
        self.failures: list[tuple[AssertionContext, AssertionFailure]] = []

    def success(self, ctx: AssertionContext) -> None:
        self.successes.append(ctx)

    def failure(self, ctx: AssertionContext, failure: AssertionFailure) -> None:
        self.failures.append((ctx, failure))


class FakeTransport(Transport):
    """
    Returns queued responses (or raises queued exceptions) in order.

    Every dispatched request is kept in `requests`.
    """

    def __init__(self, *outcomes: TransportResponse | BaseException, delay: float = 0.0):
        self.outcomes = list(outcomes)
        self.requests: list[Request] = []
        self.delay = delay
        self.connected = False
        self.disconnected = False

    async def do(self, request: Request) -> TransportResponse:
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    async def connect(self) -> None:
        self.connected = True

    async def disconnect(self) -> None:
        self.disconnected = True


class RedirectTransport(Transport):
    """
    Answers the first `redirects` dispatches with a redirect, then 200.

    Locations are relative ("/hop/1", "/hop/2", ...) unless `location`
    is given.
    """

    def __init__(
        self,
        redirects: int,
        status: int = 308,
        location: str | None = None,
        delay: float = 0.0,
    ):
        self.redirects = redirects
        self.status = status
        self.location = location
        self.delay = delay
        self.requests: list[Request] = []

    async def do(self, request: Request) -> TransportResponse:
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        hop = len(self.requests)
        if hop <= self.redirects:
            location = self.location or f"/hop/{hop}"
            return make_response(self.status, headers={"Location": location})
        return make_response(200, b"done", reason="OK")


class CountingSource:
    """Body source that counts reads and closes."""

    def __init__(self, data: bytes = b"payload", error: BaseException | None = None):
        self.data = data
        self.error = error
        self.reads = 0
        self.closes = 0

    def read(self) -> bytes:
        self.reads += 1
        if self.error is not None:
            raise self.error
        return self.data

    def close(self) -> None:
        self.closes += 1


class AsyncSource(CountingSource):
    async def read(self) -> bytes:
        return super().read()


class FakeEncoder:
    """QueryEncoder adding a fixed value, or raising when value is None."""

    def __init__(self, value: str | None):
        self.value = value
        self.calls = 0

    def encode_values(self, key: str, values: MultiDict[str]) -> None:
        self.calls += 1
        if self.value is None:
            raise EncodingError(f"cannot encode {key}")
        values.add(key, self.value)


class RecordingPrinter:
    """Printer that records the order of events."""

    def __init__(self):
        self.events: list[tuple] = []

    def request(self, request: Request) -> None:
        self.events.append(("request", request.method, str(request.url)))

    def response(self, response: TransportResponse, round_trip: timedelta) -> None:
        self.events.append(("response", response.status, response.body.buffered))

    def websocket_write(self, message_type: MessageType, data: bytes, close_code: int) -> None:
        self.events.append(("write", message_type, data, close_code))

    def websocket_read(self, message_type: MessageType, data: bytes, close_code: int) -> None:
        self.events.append(("read", message_type, data, close_code))


class FakeConnection(Connection):
    """
    Connection fed from an inbox.

    Inbox items are WsMessage values or exceptions to raise. An empty
    inbox behaves like a read deadline passing.
    """

    def __init__(
        self,
        *inbox: WsMessage | BaseException,
        subprotocol: str | None = None,
        write_error: BaseException | None = None,
        close_error: BaseException | None = None,
    ):
        self.inbox = list(inbox)
        self._subprotocol = subprotocol
        self.write_error = write_error
        self.close_error = close_error
        self.written: list[tuple[MessageType, bytes]] = []
        self.reads = 0
        self.closed = False
        self.close_calls = 0
        self.read_deadlines: list[float | None] = []
        self.write_deadlines: list[float | None] = []

    @property
    def subprotocol(self) -> str | None:
        return self._subprotocol

    async def close(self) -> None:
        self.close_calls += 1
        self.closed = True
        if self.close_error is not None:
            raise self.close_error

    def set_read_deadline(self, deadline: float | None) -> None:
        self.read_deadlines.append(deadline)

    def set_write_deadline(self, deadline: float | None) -> None:
        self.write_deadlines.append(deadline)

    async def read_message(self) -> WsMessage:
        self.reads += 1
        if not self.inbox:
            raise DeadlineExceeded("read deadline exceeded")
        item = self.inbox.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item

    async def write_message(self, message_type: MessageType, data: bytes) -> None:
        if self.write_error is not None:
            raise self.write_error
        self.written.append((message_type, data))


class FakeDialer(Dialer):
    """Hands out a prepared connection, or raises `error`."""

    def __init__(self, conn: FakeConnection | None = None, error: BaseException | None = None):
        self.conn = conn or FakeConnection()
        self.error = error
        self.requests: list[tuple[Request, list[str] | None]] = []
        self.disconnected = False

    async def dial(
        self,
        request: Request,
        subprotocols: list[str] | None = None,
    ) -> tuple[Connection, TransportResponse]:
        self.requests.append((request, subprotocols))
        if self.error is not None:
            raise self.error
        return self.conn, make_response(101, reason="Switching Protocols")

    async def disconnect(self) -> None:
        self.disconnected = True
