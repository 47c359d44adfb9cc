"""Tests for the bearer credential lifecycle manager."""

from __future__ import annotations

import threading
from unittest.mock import patch

import httpx
import pytest

from helixwrap.auth import CredentialManager
from helixwrap.exceptions import CredentialUnavailable, RemoteUncertain


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


class TestConstruction:
    def test_without_token_requests_one(self, provider, http, config) -> None:
        manager = CredentialManager(config, http)

        assert manager.token == "token-1"
        assert len(provider.calls_to("/oauth2/token")) == 1
        assert provider.calls_to("/oauth2/validate") == []
        assert provider.calls_to("/oauth2/revoke") == []

    def test_token_request_sends_client_credentials(self, provider, http, config) -> None:
        CredentialManager(config, http)

        request = provider.calls_to("/oauth2/token")[0]
        assert request.method == "POST"
        assert request.url.host == "id.twitch.tv"
        assert request.url.params["client_id"] == "cid"
        assert request.url.params["client_secret"] == "csecret"
        assert request.url.params["grant_type"] == "client_credentials"

    def test_valid_existing_token_is_kept(self, provider, http, config_factory) -> None:
        provider.valid_tokens.add("known")

        manager = CredentialManager(config_factory(token="known"), http)

        assert manager.token == "known"
        assert len(provider.calls_to("/oauth2/validate")) == 1
        assert provider.calls_to("/oauth2/token") == []

    def test_invalid_existing_token_is_replaced(self, provider, http, config_factory) -> None:
        manager = CredentialManager(config_factory(token="stale"), http)

        assert manager.token == "token-1"
        paths = [call.url.path for call in provider.calls]
        assert paths == ["/oauth2/validate", "/oauth2/revoke", "/oauth2/token"]

    def test_authenticate_false_makes_no_calls(self, provider, http, config) -> None:
        manager = CredentialManager(config, http, authenticate=False)

        assert manager.token == ""
        assert provider.calls == []

    def test_exhausted_token_request_raises(self, provider, http, config) -> None:
        provider.token_status = 503

        with pytest.raises(CredentialUnavailable):
            CredentialManager(config, http)
        assert len(provider.calls_to("/oauth2/token")) == config.max_attempts

    def test_secret_is_not_exposed(self, http, config) -> None:
        manager = CredentialManager(config, http)

        assert "csecret" not in repr(manager._credential)
        assert "csecret" not in str(manager._credential.model_dump())


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class TestIsValid:
    def test_200_is_valid(self, provider, http, config) -> None:
        manager = CredentialManager(config, http)
        assert manager.is_valid() is True

        request = provider.calls_to("/oauth2/validate")[-1]
        assert request.headers["Authorization"] == "OAuth token-1"

    def test_401_is_invalid(self, provider, http, config) -> None:
        manager = CredentialManager(config, http)
        provider.valid_tokens.clear()

        assert manager.is_valid() is False
        assert len(provider.calls_to("/oauth2/validate")) == 1

    def test_no_token_is_invalid_without_network(self, provider, http, config) -> None:
        manager = CredentialManager(config, http, authenticate=False)

        assert manager.is_valid() is False
        assert provider.calls == []

    def test_unexpected_status_raises_remote_uncertain(self, provider, http, config) -> None:
        manager = CredentialManager(config, http)
        provider.validate_status = 500

        with pytest.raises(RemoteUncertain):
            manager.is_valid()
        assert len(provider.calls_to("/oauth2/validate")) == config.max_attempts

    def test_network_error_raises_remote_uncertain(self, config) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/oauth2/token":
                return httpx.Response(200, json={"access_token": "tok"})
            raise httpx.ConnectTimeout("timed out", request=request)

        with httpx.Client(transport=httpx.MockTransport(handler)) as client:
            manager = CredentialManager(config, client)
            with pytest.raises(RemoteUncertain):
                manager.is_valid()

    def test_uncertain_then_definite_answer(self, provider, http, config) -> None:
        manager = CredentialManager(config, http)
        statuses = iter([502, 200])
        original = provider._validate

        def flaky(request: httpx.Request) -> httpx.Response:
            status = next(statuses, None)
            return httpx.Response(status) if status else original(request)

        provider._validate = flaky  # type: ignore[method-assign]
        assert manager.is_valid() is True


# ---------------------------------------------------------------------------
# Retry schedule
# ---------------------------------------------------------------------------


class TestRetries:
    def test_token_request_recovers_after_transient_errors(self, config_factory) -> None:
        responses = iter([500, 500, 200])

        def handler(request: httpx.Request) -> httpx.Response:
            status = next(responses)
            if status == 200:
                return httpx.Response(200, json={"access_token": "fresh"})
            return httpx.Response(status)

        config = config_factory(max_attempts=10, retry_delay_ms=(50, 120))
        with httpx.Client(transport=httpx.MockTransport(handler)) as client:
            with patch("helixwrap.auth.credentials.time.sleep") as mock_sleep:
                manager = CredentialManager(config, client)

        assert manager.token == "fresh"
        assert mock_sleep.call_count == 2
        for call in mock_sleep.call_args_list:
            assert 0.05 <= call.args[0] <= 0.12

    def test_no_pause_after_final_attempt(self, provider, http, config_factory) -> None:
        provider.token_status = 500
        config = config_factory(max_attempts=4, retry_delay_ms=(50, 120))

        with patch("helixwrap.auth.credentials.time.sleep") as mock_sleep:
            with pytest.raises(CredentialUnavailable):
                CredentialManager(config, http)
        assert mock_sleep.call_count == 3

    def test_missing_access_token_counts_as_failure(self, config) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"token_type": "bearer"})

        with httpx.Client(transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(CredentialUnavailable, match="access_token"):
                CredentialManager(config, client)

    def test_unparseable_token_response_counts_as_failure(self, config) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=b"<html>")

        with httpx.Client(transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(CredentialUnavailable):
                CredentialManager(config, client)


# ---------------------------------------------------------------------------
# Revoke
# ---------------------------------------------------------------------------


class TestRevoke:
    def test_400_counts_as_revoked(self, provider, http, config) -> None:
        manager = CredentialManager(config, http)

        assert manager.revoke_token("never-issued") is True
        assert len(provider.calls_to("/oauth2/revoke")) == 1

    def test_revoke_sends_client_id_and_token(self, provider, http, config) -> None:
        manager = CredentialManager(config, http)
        manager.revoke_token("token-1")

        request = provider.calls_to("/oauth2/revoke")[0]
        assert request.method == "POST"
        assert request.url.params["client_id"] == "cid"
        assert request.url.params["token"] == "token-1"

    def test_exhausted_revoke_returns_false(self, provider, http, config) -> None:
        manager = CredentialManager(config, http)
        provider.revoke_status = 500

        assert manager.revoke_token("token-1") is False
        assert len(provider.calls_to("/oauth2/revoke")) == config.max_attempts

    def test_failed_revoke_does_not_block_refresh(self, provider, http, config) -> None:
        manager = CredentialManager(config, http)
        provider.valid_tokens.clear()
        provider.revoke_status = 500

        manager.refresh()

        assert manager.token == "token-2"


# ---------------------------------------------------------------------------
# Refresh
# ---------------------------------------------------------------------------


class TestRefresh:
    def test_refresh_of_valid_token_is_a_no_op(self, provider, http, config) -> None:
        manager = CredentialManager(config, http)
        provider.calls.clear()

        manager.refresh()

        assert manager.token == "token-1"
        assert [call.url.path for call in provider.calls] == ["/oauth2/validate"]

    def test_refresh_of_invalid_token_revokes_then_requests(self, provider, http, config) -> None:
        manager = CredentialManager(config, http)
        provider.valid_tokens.clear()
        provider.calls.clear()

        manager.refresh()

        assert manager.token == "token-2"
        paths = [call.url.path for call in provider.calls]
        assert paths == ["/oauth2/validate", "/oauth2/revoke", "/oauth2/token"]

    def test_already_replaced_token_skips_network(self, provider, http, config) -> None:
        manager = CredentialManager(config, http)
        provider.calls.clear()

        manager.refresh(observed="some-older-token")

        assert provider.calls == []
        assert manager.token == "token-1"

    def test_lock_released_after_failure(self, provider, http, config) -> None:
        manager = CredentialManager(config, http)
        provider.valid_tokens.clear()
        provider.token_status = 500

        with pytest.raises(CredentialUnavailable):
            manager.refresh()
        assert not manager._lock.locked()

        provider.token_status = None
        manager.refresh()
        assert manager.token == "token-2"

    def test_ensure_valid_refreshes_invalid_token(self, provider, http, config) -> None:
        manager = CredentialManager(config, http)
        provider.valid_tokens.clear()

        manager.ensure_valid()

        assert manager.token == "token-2"

    def test_concurrent_callers_trigger_one_refresh(self, provider, http, config) -> None:
        manager = CredentialManager(config, http)
        provider.valid_tokens.clear()
        provider.calls.clear()

        callers = 8
        barrier = threading.Barrier(callers)
        errors: list[BaseException] = []

        def worker() -> None:
            barrier.wait()
            try:
                manager.ensure_valid()
            except BaseException as exc:  # pragma: no cover
                errors.append(exc)

        threads = [threading.Thread(target=worker) for _ in range(callers)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert manager.token == "token-2"
        assert len(provider.calls_to("/oauth2/token")) == 1
        assert len(provider.calls_to("/oauth2/revoke")) == 1
