"""Shared list-result cache keyed by collection name."""
from __future__ import annotations

from typing import Any

import structlog

logger = structlog.get_logger()


class QueryCache:
    """Holds the last successful ``list`` snapshot per collection and options.

    Every screen reading a collection goes through the same cache instance,
    so an invalidation issued after a write refreshes all of them.  Entries
    never expire on their own.
    """

    def __init__(self) -> None:
        self._entries: dict[str, dict[str, list[dict[str, Any]]]] = {}
        self._generations: dict[str, int] = {}

    def get(self, collection: str, key: str) -> list[dict[str, Any]] | None:
        rows = self._entries.get(collection, {}).get(key)
        if rows is None:
            return None
        return [dict(row) for row in rows]

    def generation(self, collection: str) -> int:
        return self._generations.get(collection, 0)

    def put(
        self,
        collection: str,
        key: str,
        rows: list[dict[str, Any]],
        *,
        generation: int | None = None,
    ) -> bool:
        """Store ``rows`` unless the collection was invalidated since ``generation``."""

        if generation is not None and generation != self.generation(collection):
            logger.debug("cache_put_skipped", collection=collection, reason="invalidated_in_flight")
            return False
        self._entries.setdefault(collection, {})[key] = [dict(row) for row in rows]
        return True

    def invalidate(self, collection: str) -> None:
        self._entries.pop(collection, None)
        self._generations[collection] = self.generation(collection) + 1
        logger.debug("cache_invalidated", collection=collection)

    def collections(self) -> list[str]:
        return sorted(self._entries)

    def clear(self) -> None:
        # Generations only grow, so reads started before a clear stay stale.
        for collection in set(self._entries) | set(self._generations):
            self._generations[collection] = self.generation(collection) + 1
        self._entries.clear()
