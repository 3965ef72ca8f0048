# src/query/invalidation.py — v1
"""Prefix-based invalidation over the key tree.

Invalidating ``("tables",)`` reaches ``("tables", "list", "public")`` and
every other descendant, so a mutation only has to name the common ancestor.
"""

from __future__ import annotations

import logging

from metacache.cache.base_cache_store import BaseCacheStore
from metacache.query.keys import QueryKey, is_prefix_of

logger = logging.getLogger(__name__)


class InvalidationEngine:
    """Marks or evicts subtrees of a cache store."""

    def __init__(self, store: BaseCacheStore) -> None:
        self._store = store

    def invalidate(self, prefix: QueryKey) -> int:
        """Mark every entry under ``prefix`` stale; data is kept.

        Pending entries are flagged too, so the result they settle with is
        already stale and the next resolution fetches again.
        """
        count = 0
        for entry in self._store.entries():
            if not is_prefix_of(prefix, entry.key) or entry.invalidated:
                continue
            self._store.set(entry.key, entry.model_copy(update={"invalidated": True}))
            count += 1
        logger.debug("Invalidated %d entries under %s", count, prefix)
        return count

    def remove(self, prefix: QueryKey) -> int:
        """Evict every entry under ``prefix``."""
        return self._store.delete_subtree(prefix)

    def invalidate_all(self) -> int:
        count = 0
        for entry in self._store.entries():
            if not entry.invalidated:
                self._store.set(entry.key, entry.model_copy(update={"invalidated": True}))
                count += 1
        logger.debug("Invalidated all %d entries", count)
        return count
