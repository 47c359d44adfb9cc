"""In-memory game id -> name lookup cache with batched bulk refresh.

:class:`GameCache` answers the one question callers ask over and over:
*what is the name of game 33214?* A cache hit costs nothing. A miss issues
a single-id ``/helix/games`` request through
:class:`~helixwrap.client.api_client.ApiClient` and stores the answer.
Lookups never raise; anything that goes wrong yields :data:`UNKNOWN_GAME`.

:meth:`GameCache.bulk_refresh` re-fetches every cached id. The ids are
split into groups of at most :data:`~helixwrap.models.MAX_BATCH_SIZE` (the
provider's limit for one query), and each group is fetched on a bounded
thread pool. Results merge into the shared mapping as each group
completes; a failed group is logged and does not affect the others.

Entries are never evicted. The mapping can be persisted as a
:class:`~helixwrap.models.GameSnapshot` via :meth:`GameCache.save_to` and
restored with :meth:`GameCache.load_from`.
"""

from __future__ import annotations

import json
import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence, Union

from pydantic import ValidationError

from helixwrap.client.api_client import ApiClient
from helixwrap.config import atomic_write
from helixwrap.exceptions import CacheResolutionFailed, HelixError, SnapshotError
from helixwrap.models import MAX_BATCH_SIZE, GameEntry, GameSnapshot

logger = logging.getLogger(__name__)

UNKNOWN_GAME = "Unknown Game"
"""Name returned by :meth:`GameCache.resolve` when an id cannot be resolved."""


def partition(keys: Sequence[str], size: int) -> list[list[str]]:
    """Split *keys* into consecutive groups of at most *size* items.

    Every key lands in exactly one group, order is preserved, and no empty
    group is produced (an empty input yields an empty list).

    Example::

        >>> partition(["a", "b", "c"], 2)
        [['a', 'b'], ['c']]
    """
    if size < 1:
        raise ValueError("size must be at least 1")
    return [list(keys[start:start + size]) for start in range(0, len(keys), size)]


@dataclass
class BulkRefreshResult:
    """Outcome of one :meth:`GameCache.bulk_refresh` run.

    Attributes:
        groups: Number of group fetches issued.
        succeeded: Groups whose fetch completed and merged.
        failed: Groups whose fetch failed (logged, not raised).
        updated: Total records merged back into the cache.
    """

    groups: int = 0
    succeeded: int = 0
    failed: int = 0
    updated: int = 0


class GameCache:
    """Thread-safe, append-only id -> name mapping backed by the games endpoint.

    Args:
        api: Client used to fetch game records.
        batch_size: Ids per bulk-refresh request (at most 100).
        max_workers: Upper bound on concurrent bulk-refresh requests.

    Example::

        cache = GameCache(api)
        cache.load_from(Path("games.json"))
        name = cache.resolve("33214")
        cache.bulk_refresh()
        cache.save_to(Path("games.json"))
    """

    def __init__(
        self,
        api: ApiClient,
        batch_size: int = MAX_BATCH_SIZE,
        max_workers: int = 4,
    ) -> None:
        if not 1 <= batch_size <= MAX_BATCH_SIZE:
            raise ValueError(f"batch_size must be between 1 and {MAX_BATCH_SIZE}")
        self._api = api
        self._batch_size = batch_size
        self._max_workers = max_workers
        self._names: dict[str, str] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._names)

    def __contains__(self, game_id: object) -> bool:
        return game_id in self._names

    def get(self, game_id: str) -> Optional[str]:
        """Return the cached name for *game_id* without any network call."""
        return self._names.get(game_id)

    # ------------------------------------------------------------------ #
    # Lookups
    # ------------------------------------------------------------------ #

    def resolve(self, game_id: str) -> str:
        """Return the name of *game_id*, fetching and caching it on a miss.

        Never raises. When the id cannot be resolved (request failure,
        malformed payload, no matching record) :data:`UNKNOWN_GAME` is
        returned and nothing is cached, so a later call tries again.
        """
        name = self._names.get(game_id)
        if name is not None:
            return name

        try:
            name = self._fetch_name(game_id)
        except CacheResolutionFailed as exc:
            logger.warning("Could not resolve the name of game id %r: %s", game_id, exc)
            return UNKNOWN_GAME

        with self._lock:
            self._names[game_id] = name
        return name

    def _fetch_name(self, game_id: str) -> str:
        if not game_id:
            raise CacheResolutionFailed("Empty game id")
        try:
            games = self._api.get_games([game_id])
        except HelixError as exc:
            raise CacheResolutionFailed(str(exc)) from exc
        except Exception as exc:
            logger.debug("Unexpected error fetching game id %r", game_id, exc_info=True)
            raise CacheResolutionFailed(f"Unexpected error: {exc!r}") from exc
        if not games:
            raise CacheResolutionFailed(f"No game matches id {game_id}")
        return games[0].name

    # ------------------------------------------------------------------ #
    # Bulk refresh
    # ------------------------------------------------------------------ #

    def bulk_refresh(self) -> BulkRefreshResult:
        """Re-fetch the names of every cached id in groups.

        Works on a point-in-time snapshot of the keys; ids added while the
        refresh runs are picked up by the next run. Blocks until every
        group has finished.

        Returns:
            A :class:`BulkRefreshResult` summarising the run.
        """
        with self._lock:
            keys = list(self._names)
        groups = partition(keys, self._batch_size)
        result = BulkRefreshResult(groups=len(groups))
        if not groups:
            return result

        logger.debug("Refreshing %d game ids in %d groups", len(keys), len(groups))
        workers = min(self._max_workers, len(groups))
        with ThreadPoolExecutor(
            max_workers=workers, thread_name_prefix="helixwrap-refresh"
        ) as pool:
            futures = {
                pool.submit(self._refresh_group, group): index
                for index, group in enumerate(groups, start=1)
            }
            for future in as_completed(futures):
                index = futures[future]
                try:
                    merged = future.result()
                except Exception as exc:
                    result.failed += 1
                    logger.warning(
                        "Bulk refresh group %d/%d (%d ids) failed: %s",
                        index,
                        len(groups),
                        len(groups[index - 1]),
                        exc,
                        exc_info=not isinstance(exc, HelixError),
                    )
                else:
                    result.succeeded += 1
                    result.updated += merged

        logger.debug(
            "Bulk refresh finished: %d/%d groups succeeded, %d records merged",
            result.succeeded,
            result.groups,
            result.updated,
        )
        return result

    def _refresh_group(self, group: list[str]) -> int:
        games = self._api.get_games(group)
        with self._lock:
            for game in games:
                self._names[game.id] = game.name
        return len(games)

    # ------------------------------------------------------------------ #
    # Persistence
    # ------------------------------------------------------------------ #

    def load(self, snapshot: Union[GameSnapshot, Mapping[str, Any]]) -> int:
        """Merge a snapshot into the cache.

        Args:
            snapshot: A :class:`~helixwrap.models.GameSnapshot` or its JSON
                form ``{"games": [...]}``. Malformed entries in the JSON
                form are skipped with a warning.

        Returns:
            The number of entries loaded.

        Raises:
            SnapshotError: If the JSON form has no ``games`` list.
        """
        if not isinstance(snapshot, GameSnapshot):
            snapshot = parse_snapshot(snapshot)
        with self._lock:
            for entry in snapshot.games:
                self._names[entry.id] = entry.name
        return len(snapshot.games)

    def snapshot(self) -> GameSnapshot:
        """Return the current mapping as a :class:`~helixwrap.models.GameSnapshot`."""
        with self._lock:
            items = list(self._names.items())
        return GameSnapshot(games=[GameEntry(id=gid, name=name) for gid, name in items])

    def load_from(self, path: Path) -> int:
        """Load a snapshot file written by :meth:`save_to`.

        A missing or empty file counts as an empty snapshot.

        Returns:
            The number of entries loaded.

        Raises:
            SnapshotError: If the file cannot be read or is not a snapshot.
        """
        count = self.load(read_snapshot(path))
        logger.debug("Loaded %d games from %s", count, path)
        return count

    def save_to(self, path: Path) -> None:
        """Atomically write the current mapping to *path*.

        Raises:
            SnapshotError: If the file cannot be written.
        """
        data = self.snapshot().model_dump(mode="json")
        try:
            atomic_write(path, json.dumps(data, indent=2, ensure_ascii=False) + "\n")
        except OSError as exc:
            raise SnapshotError(f"Failed to write game snapshot {path}: {exc}") from exc
        logger.debug("Stored %d games to %s", len(data["games"]), path)


def parse_snapshot(data: Mapping[str, Any]) -> GameSnapshot:
    """Validate the JSON form of a snapshot entry by entry.

    Entries that are not ``{"id": <non-empty str>, "name": <str>}`` are
    skipped with a warning instead of failing the whole snapshot.

    Raises:
        SnapshotError: If *data* has no ``games`` list.
    """
    records = data.get("games")
    if not isinstance(records, list):
        raise SnapshotError("Snapshot has no 'games' list")

    games: list[GameEntry] = []
    for index, record in enumerate(records):
        try:
            games.append(GameEntry.model_validate(record))
        except ValidationError as exc:
            logger.warning("Skipping malformed snapshot entry %d: %s", index, exc)
    return GameSnapshot(games=games)


def read_snapshot(path: Path) -> GameSnapshot:
    """Read a snapshot file; a missing or empty file yields an empty snapshot.

    Raises:
        SnapshotError: If the file cannot be read, is not JSON, or is not a
            ``{"games": [...]}`` object.
    """
    if not path.is_file():
        logger.debug("No game snapshot at %s, starting empty", path)
        return GameSnapshot()
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SnapshotError(f"Failed to read game snapshot {path}: {exc}") from exc
    if not text.strip():
        return GameSnapshot()
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise SnapshotError(f"Invalid game snapshot {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise SnapshotError(f"Invalid game snapshot {path}: expected a JSON object")
    return parse_snapshot(data)
