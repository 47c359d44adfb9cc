"""Token commands -- check and renew the application bearer token.

Provides the ``helixwrap token`` sub-command group:

* ``validate`` asks the provider whether the configured token is valid and
  exits with :data:`~helixwrap.exit_codes.EXIT_AUTH_FAILURE` when it is not.
* ``refresh`` makes sure a valid token exists (revoking and replacing an
  invalid one) and prints it, so it can be stored as ``HELIXWRAP_TOKEN``.
"""

from __future__ import annotations

import typer

from helixwrap.commands import client_config
from helixwrap.exceptions import HelixError
from helixwrap.exit_codes import EXIT_AUTH_FAILURE
from helixwrap.helix import HelixClient
from helixwrap.output import error, print_data, success

token_app = typer.Typer(no_args_is_help=True)


@token_app.command("validate")
def token_validate(ctx: typer.Context) -> None:
    """Check whether the configured token is still valid.

    Prints ``valid`` or ``invalid`` to stdout. No new token is requested.

    Example::

        HELIXWRAP_TOKEN=abc helixwrap token validate
    """
    try:
        with HelixClient(client_config(ctx), authenticate=False) as helix:
            valid = helix.credentials.is_valid()
    except HelixError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    if not valid:
        print_data("invalid")
        raise typer.Exit(code=EXIT_AUTH_FAILURE)
    print_data("valid")


@token_app.command("refresh")
def token_refresh(ctx: typer.Context) -> None:
    """Ensure a valid token exists and print it.

    A configured token that is still valid is printed unchanged; otherwise
    it is revoked and a new one requested.
    """
    try:
        with HelixClient(client_config(ctx)) as helix:
            token = helix.credentials.token
    except HelixError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    print_data(token)
    success("Token is valid.")
