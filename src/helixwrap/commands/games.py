"""Games commands -- resolve game ids and maintain the persisted name cache.

Provides the ``helixwrap games`` sub-command group. Every command works on
a snapshot file (default ``<cache_dir>/games.json``, override with
``--cache-file``):

* ``resolve ID...`` loads the snapshot, resolves each id (fetching misses),
  prints an id/name table, and saves the snapshot back.
* ``refresh`` re-fetches every cached name in batches of up to 100 ids.
* ``list`` prints the snapshot without any network access.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from helixwrap.cache import read_snapshot
from helixwrap.commands import client_config
from helixwrap.exceptions import HelixError
from helixwrap.helix import HelixClient
from helixwrap.output import error, info, print_table, warning

games_app = typer.Typer(no_args_is_help=True)

_CACHE_FILE_HELP = "Snapshot file (default: <cache dir>/games.json)."


def _snapshot_path(cache_file: Optional[Path]) -> Path:
    from helixwrap.config import default_snapshot_path

    return cache_file or default_snapshot_path()


@games_app.command("resolve")
def games_resolve(
    ctx: typer.Context,
    ids: list[str] = typer.Argument(help="Game ids to resolve."),
    cache_file: Optional[Path] = typer.Option(None, "--cache-file", help=_CACHE_FILE_HELP),
) -> None:
    """Resolve game ids to names.

    Ids that cannot be resolved are shown as ``Unknown Game``.

    Example::

        helixwrap games resolve 33214 509658
    """
    path = _snapshot_path(cache_file)
    try:
        with HelixClient(client_config(ctx), authenticate=False) as helix:
            helix.games.load_from(path)
            rows = [[game_id, helix.games.resolve(game_id)] for game_id in ids]
            helix.games.save_to(path)
    except HelixError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    print_table(["id", "name"], rows, title="Games")


@games_app.command("refresh")
def games_refresh(
    ctx: typer.Context,
    cache_file: Optional[Path] = typer.Option(None, "--cache-file", help=_CACHE_FILE_HELP),
) -> None:
    """Re-fetch the names of every cached game id."""
    path = _snapshot_path(cache_file)
    try:
        with HelixClient(client_config(ctx)) as helix:
            loaded = helix.games.load_from(path)
            result = helix.games.bulk_refresh()
            helix.games.save_to(path)
    except HelixError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    info(
        f"Refreshed {loaded} games in {result.groups} requests "
        f"({result.updated} records updated)."
    )
    if result.failed:
        warning(f"{result.failed} of {result.groups} requests failed; see log output.")


@games_app.command("list")
def games_list(
    cache_file: Optional[Path] = typer.Option(None, "--cache-file", help=_CACHE_FILE_HELP),
) -> None:
    """Print the cached games without contacting the API."""
    try:
        snapshot = read_snapshot(_snapshot_path(cache_file))
    except HelixError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    rows = [[game.id, game.name] for game in snapshot.games]
    print_table(["id", "name"], rows, title="Games")
