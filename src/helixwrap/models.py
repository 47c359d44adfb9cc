"""Canonical Pydantic models shared across all helixwrap modules.

The models fall into two groups:

**Configuration models** -- loaded from the user's config directory and the
environment: :class:`ClientConfig`.

**Domain models** -- credentials and the game lookup data:
:class:`Credential`, :class:`GameEntry`, and :class:`GameSnapshot` (the
persisted snapshot format ``{"games": [{"id": ..., "name": ...}]}``).

All models use Pydantic v2. Secrets are held in :class:`~pydantic.SecretStr`
so that they never appear in ``repr``, logs, or JSON dumps.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr, model_validator

MAX_BATCH_SIZE = 100
"""Largest number of ids the provider accepts in one ``/helix/games`` query."""


# --- Configuration ---


class ClientConfig(BaseModel):
    """Connection and behaviour settings for a :class:`~helixwrap.client.HelixClient`.

    Only ``client_id`` and ``client_secret`` are required. A pre-existing
    ``token`` is validated (and refreshed if needed) at start-up instead of
    unconditionally requesting a new one.

    Example::

        ClientConfig(client_id="abc", client_secret="s3cr3t", max_workers=8)
    """

    client_id: str = Field(min_length=1, description="OAuth2 client identifier")
    client_secret: SecretStr = Field(description="OAuth2 client secret")
    token: Optional[str] = Field(
        default=None, description="Previously issued bearer token to reuse"
    )
    auth_base_url: str = "https://id.twitch.tv"
    api_base_url: str = "https://api.twitch.tv"
    timeout: float = Field(default=10.0, gt=0, description="Per-request timeout in seconds")
    max_attempts: int = Field(
        default=10, ge=1, description="Attempts per token request/revoke/validate"
    )
    retry_delay_ms: tuple[int, int] = Field(
        default=(50, 120), description="Random delay bounds between attempts"
    )
    batch_size: int = Field(default=MAX_BATCH_SIZE, ge=1, le=MAX_BATCH_SIZE)
    max_workers: int = Field(default=4, ge=1, description="Bulk refresh worker threads")
    rate_limit_requests: int = Field(default=800, ge=0, description="0 disables rate limiting")
    rate_limit_window: float = Field(default=60.0, gt=0)

    @model_validator(mode="after")
    def _check_delay_bounds(self) -> ClientConfig:
        low, high = self.retry_delay_ms
        if low < 0 or high < low:
            raise ValueError("retry_delay_ms must be (low, high) with 0 <= low <= high")
        return self


# --- Domain ---


class Credential(BaseModel):
    """Client credentials plus the currently issued bearer token.

    ``token`` is empty until the first successful request; afterwards it
    only ever holds a value returned by the token endpoint.
    """

    client_id: str
    client_secret: SecretStr
    token: str = ""


class GameEntry(BaseModel):
    """A single id -> name record, as returned by ``/helix/games`` or persisted."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(min_length=1)
    name: str


class GameSnapshot(BaseModel):
    """Persisted form of a :class:`~helixwrap.cache.GameCache`."""

    games: list[GameEntry] = Field(default_factory=list)
