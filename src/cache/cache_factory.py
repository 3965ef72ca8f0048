# src/cache/cache_factory.py — v3
"""Factory for cache store instantiation.

Server-side renders get a fresh request-scoped store each time so no data
leaks between requests. The client session gets one long-lived store,
created on first use and reused until the process ends.
"""

from __future__ import annotations

import logging

from metacache.cache.base_cache_store import BaseCacheStore
from metacache.cache.memory_store import MemoryCacheStore

logger = logging.getLogger(__name__)

_session_store: BaseCacheStore | None = None


def create_cache_store() -> BaseCacheStore:
    """Instantiate a new request-scoped store."""
    return MemoryCacheStore(scope="request")


def get_session_store() -> BaseCacheStore:
    """Return the session's store, creating it on first call."""
    global _session_store
    if _session_store is None:
        _session_store = MemoryCacheStore(scope="session")
        logger.debug("Created session cache store")
    return _session_store


def reset_session_store() -> None:
    """Forget the session store (test isolation only)."""
    global _session_store
    _session_store = None
