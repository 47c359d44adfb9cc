"""Bearer credential management for helixwrap.

The single entry point is :class:`CredentialManager`, which obtains an
application access token through the OAuth2 client-credentials grant,
validates it against the provider, and serialises refreshes so that
concurrent callers never trigger more than one refresh cycle at a time.

Typical usage::

    from helixwrap.auth import CredentialManager

    manager = CredentialManager(config, http_client)
    manager.ensure_valid()
    token = manager.token
"""

from helixwrap.auth.credentials import CredentialManager

__all__ = ["CredentialManager"]
