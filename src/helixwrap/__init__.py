"""helixwrap -- OAuth2-authenticated Helix API client with a game name cache.

The package keeps an application access token usable for concurrent
callers and resolves game ids to names through a batched, persistable
lookup cache. All outbound calls go through a rate-limited httpx transport.

Typical usage::

    from helixwrap.helix import HelixClient
    from helixwrap.models import ClientConfig

    config = ClientConfig(client_id="...", client_secret="...")
    with HelixClient(config) as helix:
        print(helix.games.resolve("33214"))

Modules:
    helix: :class:`~helixwrap.helix.HelixClient` facade.
    auth: Bearer credential lifecycle (:class:`~helixwrap.auth.CredentialManager`).
    client: Resource client, rate-limited transport, rate-limit policies.
    cache: Game id -> name lookup cache.
    models: Pydantic models shared across the package.
    config: XDG-aware configuration and precedence resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    app: Typer CLI entry point.
"""

__version__ = "0.1.0"
