"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~helixwrap.exceptions.HelixError` subclass.
Shell wrappers can inspect the exit code to tell an unusable credential
apart from a failed resource call without parsing stderr.

Example::

    $ helixwrap token validate
    $ echo $?
    3   # EXIT_AUTH_FAILURE -- the stored token was rejected
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_AUTH_FAILURE = 3
"""No usable credential could be obtained, or the current one is invalid."""

EXIT_REQUEST_FAILED = 5
"""A resource call returned a non-2xx status or a malformed body."""

EXIT_REMOTE_UNCERTAIN = 6
"""The provider gave no usable answer (network error, timeout, unexpected status)."""
