"""Built-in CLI sub-commands for helixwrap.

* :mod:`~helixwrap.commands.auth` -- validate and refresh the bearer token.
* :mod:`~helixwrap.commands.games` -- resolve, refresh, and list cached game
  names.

Each module exports a :class:`typer.Typer` sub-application that
:mod:`helixwrap.app` mounts on the root app. :func:`client_config` turns the
root options stored on the Typer context into a
:class:`~helixwrap.models.ClientConfig`.
"""

from __future__ import annotations

import typer

from helixwrap.models import ClientConfig


def client_config(ctx: typer.Context) -> ClientConfig:
    """Resolve the effective :class:`~helixwrap.models.ClientConfig` for a command.

    Raises:
        ConfigError: If the merged configuration is incomplete or invalid.
    """
    from helixwrap.config import resolve_config

    obj = ctx.obj or {}
    return resolve_config(
        config_path=obj.get("config_path"),
        cli_client_id=obj.get("client_id"),
        cli_client_secret=obj.get("client_secret"),
        cli_token=obj.get("token"),
    )
