"""Typer application and CLI entry point for helixwrap.

This module wires together the top-level Typer application and registers the
``token`` and ``games`` sub-command groups. Connection options given here
(``--client-id``, ``--client-secret``, ``--token``, ``--config``) are stored
on the Typer context and resolved into a
:class:`~helixwrap.models.ClientConfig` by each command.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. :class:`~helixwrap.exceptions.HelixError` exits with its
``exit_code``; any other exception is written to a crash log under the data
directory.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import typer

from helixwrap import __version__
from helixwrap.commands.auth import token_app
from helixwrap.commands.games import games_app
from helixwrap.exit_codes import EXIT_GENERIC_FAILURE

app = typer.Typer(
    name="helixwrap",
    help="Manage Helix API credentials and the game name cache.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.add_typer(token_app, name="token", help="Bearer token management.")
app.add_typer(games_app, name="games", help="Game id -> name lookups.")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"helixwrap {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    client_id: Optional[str] = typer.Option(
        None, "--client-id", help="OAuth2 client id (env: HELIXWRAP_CLIENT_ID)."
    ),
    client_secret: Optional[str] = typer.Option(
        None, "--client-secret", help="OAuth2 client secret (env: HELIXWRAP_CLIENT_SECRET)."
    ),
    token: Optional[str] = typer.Option(
        None, "--token", help="Existing bearer token to reuse (env: HELIXWRAP_TOKEN)."
    ),
    config_path: Optional[Path] = typer.Option(
        None, "--config", help="Path to a JSON config file."
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~helixwrap.output.OutputManager`, routes
    library logging to stderr, and stores the connection options in
    ``ctx.obj`` for the sub-commands.
    """
    from helixwrap.output import OutputFormat, OutputManager, set_output

    output = OutputManager(
        format=OutputFormat.JSON if json_output else OutputFormat.AUTO,
        no_color=no_color,
        quiet=quiet,
        verbose=verbose,
    )
    set_output(output)
    output.install_log_handler()

    ctx.ensure_object(dict)
    ctx.obj["client_id"] = client_id
    ctx.obj["client_secret"] = client_secret
    ctx.obj["token"] = token
    ctx.obj["config_path"] = config_path


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from helixwrap.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``helixwrap`` console script.

    Unhandled :class:`~helixwrap.exceptions.HelixError` instances cause a
    clean exit with the error's ``exit_code``. All other exceptions produce
    a crash log and a generic failure exit.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from helixwrap.exceptions import HelixError
        from helixwrap.output import error

        if isinstance(exc, HelixError):
            error(str(exc))
            sys.exit(exc.exit_code)
        log_path = _write_crash_log(exc)
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
