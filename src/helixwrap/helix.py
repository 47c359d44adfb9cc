"""High-level client that wires transport, credentials, API, and cache together.

:class:`HelixClient` owns a single :class:`httpx.Client` whose transport
applies the configured rate-limit policy. The
:class:`~helixwrap.auth.CredentialManager`,
:class:`~helixwrap.client.api_client.ApiClient`, and
:class:`~helixwrap.cache.GameCache` all share it.

Example::

    with HelixClient(config) as helix:
        helix.games.load_from(snapshot_path)
        print(helix.games.resolve("33214"))
"""

from __future__ import annotations

from typing import Any, Optional

import httpx

from helixwrap.auth.credentials import CredentialManager
from helixwrap.cache.game_cache import GameCache
from helixwrap.client.api_client import ApiClient
from helixwrap.client.ratelimit import RateLimitPolicy, SlidingWindowPolicy, Unlimited
from helixwrap.client.transport import RateLimitedTransport
from helixwrap.models import ClientConfig


def _default_policy(config: ClientConfig) -> RateLimitPolicy:
    if config.rate_limit_requests == 0:
        return Unlimited()
    return SlidingWindowPolicy(config.rate_limit_requests, config.rate_limit_window)


class HelixClient:
    """Facade over the credential manager, API client, and game cache.

    Must be used as a context manager so the underlying connection pool is
    opened and closed. Credentials are obtained on ``__enter__``.

    Args:
        config: Client configuration.
        policy: Rate-limit policy. Defaults to a
            :class:`~helixwrap.client.ratelimit.SlidingWindowPolicy` built
            from ``config`` (or :class:`~helixwrap.client.ratelimit.Unlimited`
            when ``rate_limit_requests`` is 0).
        transport: Inner transport that performs the I/O. Tests pass an
            :class:`httpx.MockTransport` here.
        authenticate: Obtain a valid token on ``__enter__`` instead of on
            the first request.
    """

    def __init__(
        self,
        config: ClientConfig,
        policy: Optional[RateLimitPolicy] = None,
        transport: Optional[httpx.BaseTransport] = None,
        authenticate: bool = True,
    ) -> None:
        self._config = config
        self._policy = policy or _default_policy(config)
        self._transport = transport
        self._authenticate = authenticate
        self._http: Optional[httpx.Client] = None
        self._credentials: Optional[CredentialManager] = None
        self._api: Optional[ApiClient] = None
        self._games: Optional[GameCache] = None

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> HelixClient:
        self._http = httpx.Client(
            transport=RateLimitedTransport(self._policy, self._transport),
            timeout=self._config.timeout,
        )
        try:
            self._credentials = CredentialManager(
                self._config, self._http, authenticate=self._authenticate
            )
        except BaseException:
            self._http.close()
            self._http = None
            raise
        self._api = ApiClient(self._credentials, self._http, self._config.api_base_url)
        self._games = GameCache(
            self._api,
            batch_size=self._config.batch_size,
            max_workers=self._config.max_workers,
        )
        return self

    def __exit__(self, *args: object) -> None:
        if self._http:
            self._http.close()
            self._http = None

    # ------------------------------------------------------------------ #
    # Components
    # ------------------------------------------------------------------ #

    @property
    def credentials(self) -> CredentialManager:
        assert self._credentials is not None, "Client not initialised -- use as context manager"
        return self._credentials

    @property
    def api(self) -> ApiClient:
        assert self._api is not None, "Client not initialised -- use as context manager"
        return self._api

    @property
    def games(self) -> GameCache:
        assert self._games is not None, "Client not initialised -- use as context manager"
        return self._games

    def request(self, path: str, params: Optional[dict[str, Any]] = None) -> Any:
        """Shortcut for :meth:`ApiClient.request <helixwrap.client.api_client.ApiClient.request>`."""
        return self.api.request(path, params=params)
