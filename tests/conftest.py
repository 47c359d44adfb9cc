"""Shared test fixtures for helixwrap.

Provides an in-process fake of the provider (OAuth2 token/validate/revoke
endpoints plus ``/helix/games``) served through :class:`httpx.MockTransport`,
fast client configs, and isolation of output, logging, and config state.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Callable, Optional

import httpx
import pytest
from rich.logging import RichHandler

from helixwrap.models import ClientConfig
from helixwrap.output import reset_output


# ---------------------------------------------------------------------------
# Fake provider
# ---------------------------------------------------------------------------


class FakeProvider:
    """Minimal stateful stand-in for the provider's HTTP API.

    Tokens are issued as ``token-1``, ``token-2``, ... and are valid until
    revoked or until a test removes them from :attr:`valid_tokens`. The
    ``*_status`` attributes force a status code for the matching endpoint;
    :attr:`games_handler` replaces the games endpoint entirely.
    """

    def __init__(self) -> None:
        self.calls: list[httpx.Request] = []
        self.valid_tokens: set[str] = set()
        self.games: dict[str, str] = {}
        self.token_status: Optional[int] = None
        self.validate_status: Optional[int] = None
        self.revoke_status: Optional[int] = None
        self.games_handler: Optional[Callable[[httpx.Request], httpx.Response]] = None
        self._issued = 0
        self._lock = threading.Lock()

    def __call__(self, request: httpx.Request) -> httpx.Response:
        with self._lock:
            self.calls.append(request)
        path = request.url.path
        if path == "/oauth2/token":
            return self._token(request)
        if path == "/oauth2/validate":
            return self._validate(request)
        if path == "/oauth2/revoke":
            return self._revoke(request)
        if path == "/helix/games":
            return self._games(request)
        return httpx.Response(404, json={"message": "not found"})

    def calls_to(self, path: str) -> list[httpx.Request]:
        with self._lock:
            return [call for call in self.calls if call.url.path == path]

    def issue(self) -> str:
        with self._lock:
            self._issued += 1
            token = f"token-{self._issued}"
            self.valid_tokens.add(token)
        return token

    def _token(self, request: httpx.Request) -> httpx.Response:
        if self.token_status is not None:
            return httpx.Response(self.token_status, json={"message": "forced"})
        return httpx.Response(200, json={"access_token": self.issue(), "expires_in": 3600})

    def _validate(self, request: httpx.Request) -> httpx.Response:
        if self.validate_status is not None:
            return httpx.Response(self.validate_status)
        token = request.headers.get("Authorization", "").removeprefix("OAuth ")
        if token in self.valid_tokens:
            return httpx.Response(200, json={"client_id": "cid", "expires_in": 3600})
        return httpx.Response(401, json={"status": 401, "message": "invalid access token"})

    def _revoke(self, request: httpx.Request) -> httpx.Response:
        if self.revoke_status is not None:
            return httpx.Response(self.revoke_status)
        token = request.url.params.get("token", "")
        with self._lock:
            if token not in self.valid_tokens:
                return httpx.Response(400, json={"message": "Invalid token"})
            self.valid_tokens.discard(token)
        return httpx.Response(200)

    def _games(self, request: httpx.Request) -> httpx.Response:
        if self.games_handler is not None:
            return self.games_handler(request)
        token = request.headers.get("Authorization", "").removeprefix("Bearer ")
        if token not in self.valid_tokens:
            return httpx.Response(401, json={"message": "Invalid OAuth token"})
        ids = request.url.params.get_list("id")
        data = [{"id": gid, "name": self.games[gid], "box_art_url": ""} for gid in ids if gid in self.games]
        return httpx.Response(200, json={"data": data})


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def http(provider: FakeProvider) -> httpx.Client:
    client = httpx.Client(transport=httpx.MockTransport(provider))
    yield client
    client.close()


def make_config(**overrides: object) -> ClientConfig:
    """Build a ClientConfig with no retry delay and no rate limiting."""
    defaults: dict[str, object] = {
        "client_id": "cid",
        "client_secret": "csecret",
        "max_attempts": 3,
        "retry_delay_ms": (0, 0),
        "rate_limit_requests": 0,
    }
    defaults.update(overrides)
    return ClientConfig(**defaults)  # type: ignore[arg-type]


@pytest.fixture
def config() -> ClientConfig:
    return make_config()


@pytest.fixture
def config_factory() -> Callable[..., ClientConfig]:
    """Return the ClientConfig builder so tests can override individual fields."""
    return make_config


# ---------------------------------------------------------------------------
# State isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager and CLI log handlers after every test."""
    yield
    reset_output()
    logger = logging.getLogger("helixwrap")
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point XDG dirs at tmp_path and clear HELIXWRAP_* env vars."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setattr("helixwrap.config._is_xdg_platform", lambda: True)
    for var in ["HELIXWRAP_CLIENT_ID", "HELIXWRAP_CLIENT_SECRET", "HELIXWRAP_TOKEN"]:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path

