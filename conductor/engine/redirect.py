"""
Redirect policy for the request executor.

The policy decides whether a response is a redirect worth following,
how many hops are allowed, and how the next request is derived.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from multidict import CIMultiDict
from yarl import URL

from ..transport.models import Request, TransportResponse

REDIRECT_STATUSES = frozenset({301, 302, 303, 307, 308})

# Headers describing the body; dropped together with it
BODY_HEADERS = ("Content-Type", "Content-Length", "Content-Encoding", "Transfer-Encoding")


class FollowMode(str, Enum):
    """Which redirects the executor follows."""
    NEVER = "never"
    ALL = "all"
    WITHOUT_BODY = "without_body"  # skip redirects that would resend a body


@dataclass
class RedirectPolicy:
    """
    Bounded redirect handling.

    Attributes:
        follow: Which redirects to follow at all
        max_redirects: Maximum number of hops; None means unbounded
        downgrade_post: Turn POST into a body-less GET on 301/302
        drop_headers: Header names removed from every redirected request
    """
    follow: FollowMode = FollowMode.WITHOUT_BODY
    max_redirects: int | None = 10
    downgrade_post: bool = True
    drop_headers: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def never(cls) -> RedirectPolicy:
        return cls(follow=FollowMode.NEVER)

    @classmethod
    def follow_all(cls, max_redirects: int | None = 10) -> RedirectPolicy:
        return cls(follow=FollowMode.ALL, max_redirects=max_redirects)

    def is_redirect(self, response: TransportResponse) -> bool:
        return response.status in REDIRECT_STATUSES and bool(response.location)

    def allows_hop(self, hops: int) -> bool:
        """True if one more hop fits after `hops` already taken."""
        return self.max_redirects is None or hops < self.max_redirects

    def next_method_and_body(
        self, status: int, method: str, body: bytes | None
    ) -> tuple[str, bytes | None]:
        """Apply the per-status method/body preservation rules."""
        if status == 303:
            return ("HEAD" if method == "HEAD" else "GET"), None
        if status in (301, 302) and method == "POST" and self.downgrade_post:
            return "GET", None
        return method, body

    def should_follow(self, next_body: bytes | None) -> bool:
        if self.follow == FollowMode.NEVER:
            return False
        if self.follow == FollowMode.WITHOUT_BODY:
            return not next_body
        return True

    def next_request(self, previous: Request, response: TransportResponse, location: URL) -> Request:
        """
        Derive the request for the next hop.

        `location` must already be resolved against the previous URL.
        """
        method, body = self.next_method_and_body(response.status, previous.method, previous.body)

        headers = CIMultiDict(previous.headers)
        for name in self.drop_headers:
            headers.popall(name, None)
        if body is None:
            for name in BODY_HEADERS:
                headers.popall(name, None)

        return Request(method=method, url=location, headers=headers, body=body)
