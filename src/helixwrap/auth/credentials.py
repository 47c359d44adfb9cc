"""OAuth2 client-credentials lifecycle: request, validate, revoke, refresh.

This module provides :class:`CredentialManager`, the single owner of the
application's bearer token. It performs the non-interactive Client
Credentials grant (:rfc:`6749` section 4.4) against the provider's
``/oauth2/token`` endpoint and keeps the token usable for every caller of
:class:`~helixwrap.client.api_client.ApiClient`.

Each network sub-operation (token request, revoke, validate) is attempted up
to ``max_attempts`` times with a short random pause (50-120 ms by default)
between attempts. What happens when the attempts run out differs:

- token request -> :class:`~helixwrap.exceptions.CredentialUnavailable`
- validate -> :class:`~helixwrap.exceptions.RemoteUncertain`
- revoke -> logged, ``False`` returned

Refreshes are serialised by a :class:`threading.Lock`. Token reads are
lock-free.

See Also:
    :class:`helixwrap.client.api_client.ApiClient`, the main consumer.
"""

from __future__ import annotations

import logging
import random
import threading
import time
from typing import Callable, Optional, TypeVar

import httpx

from helixwrap.exceptions import CredentialUnavailable, RemoteUncertain
from helixwrap.models import ClientConfig, Credential

logger = logging.getLogger(__name__)

T = TypeVar("T")


class _AttemptFailed(Exception):
    """One attempt of a sub-operation produced an unusable result."""


class _AttemptsExhausted(Exception):
    """Every attempt of a sub-operation failed."""


class CredentialManager:
    """Owns the bearer credential and keeps it valid.

    On construction the manager either requests a fresh token (no token
    configured) or validates the configured one and refreshes it when the
    provider rejects it. Pass ``authenticate=False`` to defer that work to
    the first :meth:`ensure_valid` call.

    Args:
        config: Client configuration (credentials, auth base URL, retry
            settings).
        http: Shared HTTP client used for every provider call.
        authenticate: Whether to obtain a usable token immediately.

    Raises:
        CredentialUnavailable: If ``authenticate`` is set and no token could
            be obtained.
        RemoteUncertain: If ``authenticate`` is set, a token was configured,
            and its validity could not be determined.

    Example::

        manager = CredentialManager(config, httpx.Client())
        manager.ensure_valid()
        headers = {"Authorization": f"Bearer {manager.token}"}
    """

    def __init__(
        self,
        config: ClientConfig,
        http: httpx.Client,
        authenticate: bool = True,
    ) -> None:
        self._http = http
        self._credential = Credential(
            client_id=config.client_id,
            client_secret=config.client_secret,
            token=config.token or "",
        )
        self._auth_base_url = config.auth_base_url.rstrip("/")
        self._max_attempts = config.max_attempts
        self._delay_ms = config.retry_delay_ms
        self._lock = threading.Lock()

        if authenticate:
            if self._credential.token:
                self.refresh()
            else:
                with self._lock:
                    self._credential.token = self.request_token()

    # ------------------------------------------------------------------ #
    # Read-only accessors
    # ------------------------------------------------------------------ #

    @property
    def client_id(self) -> str:
        return self._credential.client_id

    @property
    def token(self) -> str:
        """The current bearer token (empty before the first successful request)."""
        return self._credential.token

    # ------------------------------------------------------------------ #
    # Validity
    # ------------------------------------------------------------------ #

    def is_valid(self) -> bool:
        """Ask the provider whether the current token is still valid.

        Returns:
            ``True`` on HTTP 200, ``False`` on HTTP 401 or when no token has
            been issued yet.

        Raises:
            RemoteUncertain: If no attempt produced a definite answer.
        """
        return self._check(self._credential.token)

    def ensure_valid(self) -> None:
        """Make sure the stored token is valid, refreshing it if necessary.

        Blocks while another thread's refresh is in progress.
        """
        observed = self._credential.token
        if not self._check(observed):
            self.refresh(observed=observed)

    def refresh(self, observed: Optional[str] = None) -> None:
        """Replace the stored token if it is invalid.

        Only one refresh runs at a time. After acquiring the lock the
        manager first checks whether another caller already replaced
        *observed* (in which case nothing is sent), then re-validates the
        current token. Only an invalid token is revoked (best effort) and
        replaced.

        Args:
            observed: The token the caller found to be invalid, if known.

        Raises:
            CredentialUnavailable: If a new token could not be obtained.
            RemoteUncertain: If the re-validation inside the lock was
                inconclusive.
        """
        with self._lock:
            current = self._credential.token
            if observed is not None and current != observed:
                logger.debug("Token was already replaced by a concurrent refresh")
                return
            if self._check(current):
                logger.debug("Refreshing the token is not needed")
                return
            if current and not self.revoke_token(current):
                logger.warning("Continuing without revoking the previous token")
            self._credential.token = self.request_token()

    # ------------------------------------------------------------------ #
    # Provider sub-operations
    # ------------------------------------------------------------------ #

    def request_token(self) -> str:
        """Request a new access token via the client-credentials grant.

        The returned token is not stored; :meth:`refresh` is the only place
        that replaces the managed token.

        Returns:
            The newly issued access token.

        Raises:
            CredentialUnavailable: If every attempt failed.
        """

        def attempt() -> str:
            response = self._http.post(
                f"{self._auth_base_url}/oauth2/token",
                params={
                    "client_id": self._credential.client_id,
                    "client_secret": self._credential.client_secret.get_secret_value(),
                    "grant_type": "client_credentials",
                },
            )
            if response.status_code != 200:
                raise _AttemptFailed(f"Unexpected response code: {response.status_code}")
            try:
                body = response.json()
            except ValueError as exc:
                raise _AttemptFailed(f"Unparseable token response: {exc}") from exc
            token = body.get("access_token") if isinstance(body, dict) else None
            if not isinstance(token, str) or not token:
                raise _AttemptFailed("Token response missing 'access_token' field")
            return token

        try:
            token = self._with_retries("Requesting new bearer token", attempt)
        except _AttemptsExhausted as exc:
            logger.error("Failed to request bearer token")
            raise CredentialUnavailable(
                f"Failed to request bearer token after {self._max_attempts} attempts: "
                f"{exc.__cause__}"
            ) from exc
        logger.debug("Successfully requested bearer token")
        return token

    def revoke_token(self, token: str) -> bool:
        """Revoke *token* at the provider.

        HTTP 400 counts as revoked: the provider answers that way for tokens
        that are already invalid.

        Returns:
            ``True`` if the provider acknowledged the revocation, ``False``
            if every attempt failed.
        """

        def attempt() -> bool:
            response = self._http.post(
                f"{self._auth_base_url}/oauth2/revoke",
                params={"client_id": self._credential.client_id, "token": token},
            )
            if response.status_code not in (200, 400):
                raise _AttemptFailed(f"Unexpected response code: {response.status_code}")
            return True

        try:
            self._with_retries("Revoking bearer token", attempt)
        except _AttemptsExhausted:
            logger.error("Failed to revoke bearer token")
            return False
        logger.debug("Successfully revoked bearer token")
        return True

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _check(self, token: str) -> bool:
        """Validate *token* at the provider (see :meth:`is_valid`)."""
        if not token:
            return False

        def attempt() -> bool:
            response = self._http.get(
                f"{self._auth_base_url}/oauth2/validate",
                headers={"Authorization": f"OAuth {token}"},
            )
            if response.status_code == 200:
                return True
            if response.status_code == 401:
                return False
            raise _AttemptFailed(f"Unexpected response code: {response.status_code}")

        try:
            return self._with_retries("Verifying bearer token", attempt)
        except _AttemptsExhausted as exc:
            logger.error("Failed to verify bearer token")
            raise RemoteUncertain(
                f"Could not determine token validity after {self._max_attempts} attempts: "
                f"{exc.__cause__}"
            ) from exc

    def _with_retries(self, action: str, attempt: Callable[[], T]) -> T:
        """Run *attempt* up to ``max_attempts`` times with a random pause in between."""
        for number in range(1, self._max_attempts + 1):
            try:
                logger.debug("%s (attempt %d/%d)", action, number, self._max_attempts)
                return attempt()
            except (httpx.HTTPError, _AttemptFailed) as exc:
                logger.warning(
                    "%s failed (attempt %d/%d): %s", action, number, self._max_attempts, exc
                )
                if number == self._max_attempts:
                    raise _AttemptsExhausted(action) from exc
            low, high = self._delay_ms
            time.sleep(random.randint(low, high) / 1000)
        raise _AttemptsExhausted(action)  # pragma: no cover
