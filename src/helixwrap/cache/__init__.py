"""Game id -> name lookup cache for helixwrap.

This package provides :class:`GameCache`, an append-only in-memory mapping
that resolves game ids through the ``/helix/games`` endpoint on a miss,
refreshes every cached id in batches of at most 100, and persists itself as
a ``{"games": [...]}`` snapshot file.
"""

from helixwrap.cache.game_cache import (
    UNKNOWN_GAME,
    BulkRefreshResult,
    GameCache,
    parse_snapshot,
    partition,
    read_snapshot,
)

__all__ = [
    "BulkRefreshResult",
    "GameCache",
    "UNKNOWN_GAME",
    "parse_snapshot",
    "partition",
    "read_snapshot",
]
