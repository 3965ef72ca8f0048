# src/cache/base_cache_store.py — v2
"""Abstract cache store interface.

Store operations are synchronous: nothing between two suspension points of
the fetch orchestrator can interleave with a read or a write.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator

from metacache.cache.models import CacheEntry
from metacache.query.keys import QueryKey


class BaseCacheStore(ABC):
    """Mapping from query key to CacheEntry."""

    @abstractmethod
    def get(self, key: QueryKey) -> CacheEntry | None:
        """Entry for ``key``, or None."""

    @abstractmethod
    def set(self, key: QueryKey, entry: CacheEntry) -> None:
        """Store (or overwrite) the entry for ``key``."""

    @abstractmethod
    def delete(self, key: QueryKey) -> bool:
        """Remove the entry for ``key``; True if one existed."""

    @abstractmethod
    def delete_subtree(self, prefix: QueryKey) -> int:
        """Remove every entry under ``prefix``; return how many went."""

    @abstractmethod
    def entries(self) -> Iterator[CacheEntry]:
        """Iterate entries in insertion order."""

    @abstractmethod
    def clear(self) -> None:
        """Drop every entry."""

    @abstractmethod
    def __len__(self) -> int: ...

    def keys(self) -> list[QueryKey]:
        return [entry.key for entry in self.entries()]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, QueryKey) and self.get(key) is not None
