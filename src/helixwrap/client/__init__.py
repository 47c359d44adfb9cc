"""HTTP layer for helixwrap.

Provides the authenticated resource client and the rate-limited transport
that every outbound call (token endpoints included) goes through.

Classes:
    :class:`ApiClient` -- attaches credentials and decodes resource responses.
    :class:`RateLimitedTransport` -- :class:`httpx.BaseTransport` wrapper
    that consults a rate-limit policy before each request.
    :class:`RateLimitPolicy`, :class:`SlidingWindowPolicy`,
    :class:`Unlimited` -- the pluggable policies.

The :class:`~helixwrap.helix.HelixClient` facade assembles these around a
single :class:`httpx.Client`.
"""

from helixwrap.client.api_client import ApiClient
from helixwrap.client.ratelimit import RateLimitPolicy, SlidingWindowPolicy, Unlimited
from helixwrap.client.transport import RateLimitedTransport

__all__ = [
    "ApiClient",
    "RateLimitPolicy",
    "RateLimitedTransport",
    "SlidingWindowPolicy",
    "Unlimited",
]
