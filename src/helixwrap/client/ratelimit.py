"""Pluggable rate-limit policies applied before every outbound request.

The transport (:class:`~helixwrap.client.transport.RateLimitedTransport`)
only knows the two-method :class:`RateLimitPolicy` interface:
:meth:`~RateLimitPolicy.acquire` blocks until a request may be sent, and
:meth:`~RateLimitPolicy.observe` lets the policy learn from the response
headers. Two implementations ship with the package:

- :class:`Unlimited` -- never waits.
- :class:`SlidingWindowPolicy` -- at most *max_requests* per *window*
  seconds, and honours the provider's ``Ratelimit-Remaining`` /
  ``Ratelimit-Reset`` headers when the bucket is reported empty.

Policies are shared between threads and must be thread-safe.
"""

from __future__ import annotations

import logging
import threading
import time
from abc import ABC, abstractmethod
from collections import deque

import httpx

logger = logging.getLogger(__name__)


class RateLimitPolicy(ABC):
    """Interface for rate-limit policies used by the transport."""

    @abstractmethod
    def acquire(self) -> None:
        """Block the calling thread until one request may be sent."""
        ...

    def observe(self, response: httpx.Response) -> None:
        """Inspect a completed response. The default ignores it."""
        return None


class Unlimited(RateLimitPolicy):
    """Policy that never delays a request."""

    def acquire(self) -> None:
        return None


class SlidingWindowPolicy(RateLimitPolicy):
    """Sliding-window limiter: at most *max_requests* sends per *window* seconds.

    In addition to its own bookkeeping the policy reads the provider's
    rate-limit headers. When a response reports ``Ratelimit-Remaining: 0``
    every subsequent :meth:`acquire` waits until the ``Ratelimit-Reset``
    epoch timestamp has passed.

    Args:
        max_requests: Requests allowed per window.
        window: Window length in seconds.
    """

    def __init__(self, max_requests: int, window: float) -> None:
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        self.max_requests = max_requests
        self.window = window
        self._sent: deque[float] = deque()
        self._blocked_until = 0.0  # wall-clock epoch seconds
        self._lock = threading.Lock()

    def _cleanup(self, now: float) -> None:
        while self._sent and now - self._sent[0] >= self.window:
            self._sent.popleft()

    def acquire(self) -> None:
        while True:
            with self._lock:
                now = time.monotonic()
                self._cleanup(now)
                reset_wait = self._blocked_until - time.time()
                if reset_wait <= 0 and len(self._sent) < self.max_requests:
                    self._sent.append(now)
                    return
                window_wait = 0.0
                if len(self._sent) >= self.max_requests:
                    window_wait = self._sent[0] + self.window - now
                wait = max(reset_wait, window_wait, 0.0)

            if wait > 0:
                logger.debug("Rate limit reached, waiting %.2fs", wait)
                time.sleep(wait)

    def observe(self, response: httpx.Response) -> None:
        remaining = response.headers.get("Ratelimit-Remaining")
        reset = response.headers.get("Ratelimit-Reset")
        if remaining is None or reset is None:
            return
        try:
            remaining_count = int(remaining)
            reset_at = float(reset)
        except ValueError:
            logger.warning(
                "Ignoring malformed rate-limit headers: remaining=%r reset=%r",
                remaining,
                reset,
            )
            return
        if remaining_count <= 0:
            with self._lock:
                self._blocked_until = max(self._blocked_until, reset_at)
