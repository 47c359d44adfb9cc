"""Rate-limited httpx transport shared by every outbound call.

:class:`RateLimitedTransport` wraps another :class:`httpx.BaseTransport`
(normally :class:`httpx.HTTPTransport`, or :class:`httpx.MockTransport` in
tests) and consults a :class:`~helixwrap.client.ratelimit.RateLimitPolicy`
before handing each request on. Token, revoke, validate, and resource calls
all go through the same transport, so they all share one budget.
"""

from __future__ import annotations

from typing import Optional

import httpx

from helixwrap.client.ratelimit import RateLimitPolicy, Unlimited


class RateLimitedTransport(httpx.BaseTransport):
    """Apply a rate-limit policy in front of an inner transport.

    Args:
        policy: Policy consulted before and after every request. Defaults to
            :class:`~helixwrap.client.ratelimit.Unlimited`.
        inner: The transport that performs the actual I/O. Defaults to a
            new :class:`httpx.HTTPTransport`.

    Example::

        transport = RateLimitedTransport(SlidingWindowPolicy(800, 60.0))
        client = httpx.Client(transport=transport)
    """

    def __init__(
        self,
        policy: Optional[RateLimitPolicy] = None,
        inner: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._policy = policy or Unlimited()
        self._inner = inner or httpx.HTTPTransport()

    @property
    def policy(self) -> RateLimitPolicy:
        return self._policy

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        self._policy.acquire()
        response = self._inner.handle_request(request)
        self._policy.observe(response)
        return response

    def close(self) -> None:
        self._inner.close()
