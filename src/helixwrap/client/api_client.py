"""Thin authenticated request issuer for the resource API.

:class:`ApiClient` makes sure the
:class:`~helixwrap.auth.credentials.CredentialManager` holds a valid token
before every call, attaches ``Client-ID`` and ``Authorization: Bearer``
headers, sends the request over the shared (rate-limited)
:class:`httpx.Client`, and decodes the body via
:func:`~helixwrap.client.response.extract_response_data`.

Resource calls are not retried; a failure goes straight to the caller.
Token sub-operations retry inside the credential manager.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

import httpx
from pydantic import ValidationError

from helixwrap.auth.credentials import CredentialManager
from helixwrap.client.response import extract_response_data
from helixwrap.exceptions import RequestFailed
from helixwrap.models import GameEntry

logger = logging.getLogger(__name__)

GAMES_PATH = "/helix/games"


class ApiClient:
    """Issue authenticated GET requests against the resource API.

    Args:
        credentials: Manager that owns the bearer token.
        http: Shared HTTP client (its transport applies rate limiting).
        base_url: Resource API root, e.g. ``https://api.twitch.tv``.

    Example::

        api = ApiClient(manager, http, "https://api.twitch.tv")
        body = api.request("/helix/games", params={"id": ["33214", "509658"]})
    """

    def __init__(
        self,
        credentials: CredentialManager,
        http: httpx.Client,
        base_url: str,
    ) -> None:
        self._credentials = credentials
        self._http = http
        self._base_url = base_url.rstrip("/")

    def request(self, path: str, params: Optional[dict[str, Any]] = None) -> Any:
        """Send an authenticated GET request and return the decoded body.

        List values in *params* are sent as repeated keys
        (``{"id": ["1", "2"]}`` -> ``?id=1&id=2``).

        Args:
            path: URL path appended to the resource base URL.
            params: Query parameters.

        Returns:
            The JSON-decoded response body.

        Raises:
            CredentialUnavailable: If no valid token could be obtained.
            RemoteUncertain: If token validity could not be determined.
            RequestFailed: On transport errors, non-2xx statuses, or empty
                or unparseable bodies.
        """
        self._credentials.ensure_valid()

        headers = {
            "Accept": "application/json",
            "Client-ID": self._credentials.client_id,
            "Authorization": f"Bearer {self._credentials.token}",
        }
        try:
            response = self._http.get(
                f"{self._base_url}{path}", params=params, headers=headers
            )
        except httpx.HTTPError as exc:
            raise RequestFailed(f"Failed to execute request: {exc}") from exc

        return extract_response_data(response)

    def get_games(self, ids: Iterable[str]) -> list[GameEntry]:
        """Fetch game records for *ids* in a single request.

        Records that do not carry a usable ``id`` and ``name`` are skipped.

        Raises:
            RequestFailed: If the request fails or the body has no ``data``
                list.
        """
        body = self.request(GAMES_PATH, params={"id": list(ids)})
        records = body.get("data") if isinstance(body, dict) else None
        if not isinstance(records, list):
            raise RequestFailed("Response body has no 'data' list")

        games: list[GameEntry] = []
        for record in records:
            try:
                games.append(GameEntry.model_validate(record))
            except ValidationError as exc:
                logger.warning("Skipping malformed game record %r: %s", record, exc)
        return games
