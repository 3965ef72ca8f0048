# src/cache/memory_store.py — v1
"""In-memory cache store, one instance per request or per session."""

from __future__ import annotations

import logging
from collections.abc import Iterator

from metacache.cache.base_cache_store import BaseCacheStore
from metacache.cache.models import CacheEntry
from metacache.query.errors import KeyConstructionError
from metacache.query.keys import QueryKey, is_prefix_of, serialize_key

logger = logging.getLogger(__name__)


class MemoryCacheStore(BaseCacheStore):
    """Dict-backed store keyed by the canonical key serialization."""

    def __init__(self, scope: str = "request") -> None:
        self.scope = scope
        self._entries: dict[str, CacheEntry] = {}

    def get(self, key: QueryKey) -> CacheEntry | None:
        return self._entries.get(serialize_key(key))

    def set(self, key: QueryKey, entry: CacheEntry) -> None:
        if entry.key != key:
            raise KeyConstructionError(
                f"Entry key {entry.key!r} does not match slot {key!r}"
            )
        self._entries[serialize_key(key)] = entry

    def delete(self, key: QueryKey) -> bool:
        return self._entries.pop(serialize_key(key), None) is not None

    def delete_subtree(self, prefix: QueryKey) -> int:
        doomed = [
            slot for slot, entry in self._entries.items()
            if is_prefix_of(prefix, entry.key)
        ]
        for slot in doomed:
            del self._entries[slot]
        if doomed:
            logger.debug("Evicted %d entries under %s", len(doomed), prefix)
        return len(doomed)

    def entries(self) -> Iterator[CacheEntry]:
        return iter(list(self._entries.values()))

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"MemoryCacheStore(scope={self.scope!r}, entries={len(self)})"
