"""Exception hierarchy for helixwrap.

All exceptions inherit from :class:`HelixError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`helixwrap.exit_codes`.
The top-level error handler in :func:`helixwrap.app.main` catches
``HelixError`` and exits with the appropriate code.

Subclass hierarchy::

    HelixError (exit 1)
    +-- CredentialUnavailable   (exit 3)
    +-- RemoteUncertain         (exit 6)
    +-- RequestFailed           (exit 5)
    +-- CacheResolutionFailed   (exit 1, never leaves GameCache)
    +-- SnapshotError           (exit 1)
    +-- ConfigError             (exit 1)
"""

from __future__ import annotations

from helixwrap.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_GENERIC_FAILURE,
    EXIT_REMOTE_UNCERTAIN,
    EXIT_REQUEST_FAILED,
)


class HelixError(Exception):
    """Base exception for all helixwrap errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class CredentialUnavailable(HelixError):
    """Raised when every attempt to request a new token has failed."""

    exit_code = EXIT_AUTH_FAILURE


class RemoteUncertain(HelixError):
    """Raised when token validation returned neither "valid" nor "invalid".

    Callers must retry; the outcome must not be read as either answer.
    """

    exit_code = EXIT_REMOTE_UNCERTAIN


class RequestFailed(HelixError):
    """Raised when a resource call fails or returns an unusable body.

    Args:
        message: Human-readable description.
        status_code: The HTTP status of the response, or ``None`` when the
            failure happened before a response arrived or the body was
            malformed on a 2xx response.
    """

    exit_code = EXIT_REQUEST_FAILED

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class CacheResolutionFailed(HelixError):
    """Raised inside :class:`~helixwrap.cache.GameCache` when a name cannot be resolved.

    Absorbed into the ``"Unknown Game"`` sentinel at the cache boundary.
    """


class SnapshotError(HelixError):
    """Raised when a persisted game snapshot cannot be read or written."""


class ConfigError(HelixError):
    """Raised for configuration problems (missing credentials, invalid JSON)."""
