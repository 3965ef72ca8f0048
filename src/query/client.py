# src/query/client.py — v2
"""Fetch orchestrator: resolve a descriptor against store, registry and backend.

Resolution order:
  1. fresh entry in the store -> returned, no network activity
  2. fetch already in flight for the key -> join it
  3. otherwise own the fetch: mark pending, run under the retry policy,
     write the terminal success/error entry, release the in-flight handle

Backend failures come back as ``QueryResult(status="error")``. Only
programming errors (bad keys) propagate.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Callable

from metacache.cache.base_cache_store import BaseCacheStore
from metacache.cache.freshness import is_fresh, now_ms
from metacache.cache.memory_store import MemoryCacheStore
from metacache.cache.models import CacheEntry, ErrorInfo
from metacache.config.settings import Settings
from metacache.logging.context import set_query_context
from metacache.query.errors import RetryExhausted
from metacache.query.inflight import InFlightRegistry
from metacache.query.invalidation import InvalidationEngine
from metacache.query.keys import QueryKey
from metacache.query.models import QueryDescriptor, QueryResult
from metacache.query.retry import RetryPolicy, run_with_retry

if TYPE_CHECKING:
    from metacache.query.view import QueryView

logger = logging.getLogger(__name__)

Clock = Callable[[], float]

# set_query_data default: keep the current staleness window
_KEEP: Any = object()


def _last_good(entry: CacheEntry) -> Any:
    """Most recent successful value held by ``entry``."""
    return entry.data if entry.status == "success" else entry.last_data


class QueryClient:
    """Owns one cache store and its in-flight registry.

    Args:
        store: Cache store; a new request-scoped store when omitted.
        settings: Retry and staleness defaults. Loaded from .env if None.
        clock: Returns epoch milliseconds; ``now_ms`` by default.
    """

    def __init__(
        self,
        store: BaseCacheStore | None = None,
        settings: Settings | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.store = store if store is not None else MemoryCacheStore()
        self.settings = settings or Settings()
        self._clock = clock or now_ms
        self._inflight = InFlightRegistry()
        self._invalidation = InvalidationEngine(self.store)
        self._tasks: set[asyncio.Task[Any]] = set()

    def now(self) -> float:
        """Current time in epoch milliseconds, per the client clock."""
        return self._clock()

    # --- resolution ---

    async def resolve(self, descriptor: QueryDescriptor, now: float | None = None) -> QueryResult:
        """Return a fresh cached result or fetch one."""
        current = self._clock() if now is None else now
        entry = self.store.get(descriptor.key)
        if is_fresh(entry, current):
            logger.debug("Cache hit for %s", descriptor.key)
            return QueryResult.from_entry(entry, from_cache=True)  # type: ignore[arg-type]
        logger.debug("Cache miss for %s", descriptor.key)
        return await self._fetch(descriptor, now)

    async def fetch(self, descriptor: QueryDescriptor, now: float | None = None) -> QueryResult:
        """Fetch regardless of freshness; still joins a running fetch."""
        return await self._fetch(descriptor, now)

    async def prefetch(self, descriptor: QueryDescriptor, now: float | None = None) -> None:
        """Warm the cache for ``descriptor``; the outcome lands in the store."""
        await self.resolve(descriptor, now)

    async def _fetch(self, descriptor: QueryDescriptor, now: float | None) -> QueryResult:
        is_new, handle = self._inflight.begin_fetch(descriptor.key)
        if is_new:
            self._mark_pending(descriptor)
            # The fetch runs in its own task: a caller giving up does not
            # cancel it, the result still lands in the store.
            task = asyncio.ensure_future(self._run_fetch(descriptor, now))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
        return await asyncio.shield(handle)

    def _mark_pending(self, descriptor: QueryDescriptor) -> None:
        previous = self.store.get(descriptor.key)
        if previous is None:
            pending = CacheEntry(
                key=descriptor.key,
                status="pending",
                stale_time_ms=descriptor.stale_time_ms,
            )
        else:
            pending = previous.model_copy(
                update={
                    "status": "pending",
                    "data": None,
                    "last_data": _last_good(previous),
                    "stale_time_ms": descriptor.stale_time_ms,
                    "invalidated": False,
                }
            )
        self.store.set(descriptor.key, pending)

    async def _run_fetch(self, descriptor: QueryDescriptor, now: float | None) -> None:
        key = descriptor.key
        set_query_context(str(key))
        policy = RetryPolicy.from_settings(self.settings, descriptor.retry_limit)
        try:
            try:
                attempt = await run_with_retry(descriptor.fetch, policy, label=str(key))
            except RetryExhausted as exc:
                logger.error("Fetch failed for %s: %s", key, exc.last_error)
                result = self._settle(
                    descriptor, now, error=ErrorInfo.from_exception(exc), attempts=exc.attempts,
                )
            else:
                result = self._settle(
                    descriptor, now, data=attempt.value, attempts=attempt.attempts,
                )
        except asyncio.CancelledError:
            self._rollback_pending(descriptor)
            self._inflight.abort(key)
            raise
        except Exception as exc:
            # contract violation: every waiter gets the exception
            logger.error("Fetch aborted for %s: %s", key, exc)
            self._rollback_pending(descriptor)
            self._inflight.end_fetch(key, error=exc)
            return
        self._inflight.end_fetch(key, result=result)

    def _settle(
        self,
        descriptor: QueryDescriptor,
        now: float | None,
        *,
        data: Any = None,
        error: ErrorInfo | None = None,
        attempts: int = 1,
    ) -> QueryResult:
        """Write the terminal entry; touches no other key."""
        key = descriptor.key
        fetched_at = self._clock() if now is None else now
        current = self.store.get(key)
        base_fetches = current.fetch_count if current is not None else 0
        if error is None:
            entry = CacheEntry(
                key=key,
                status="success",
                data=data,
                fetched_at=fetched_at,
                stale_time_ms=descriptor.stale_time_ms,
                invalidated=current.invalidated if current is not None else False,
                fetch_count=base_fetches + 1,
                failure_count=0,
            )
        else:
            entry = CacheEntry(
                key=key,
                status="error",
                last_data=_last_good(current) if current is not None else None,
                error=error,
                fetched_at=fetched_at,
                stale_time_ms=descriptor.stale_time_ms,
                invalidated=current.invalidated if current is not None else False,
                fetch_count=base_fetches + 1,
                failure_count=attempts,
            )
        if current is None:
            # removed while in flight: hand the result to waiters, keep it out of the store
            logger.debug("Entry for %s removed during fetch, not re-created", key)
        else:
            self.store.set(key, entry)
        return QueryResult.from_entry(entry)

    def _rollback_pending(self, descriptor: QueryDescriptor) -> None:
        """Undo the pending marker of a fetch that never settled."""
        current = self.store.get(descriptor.key)
        if current is None or current.status != "pending":
            return
        if current.fetched_at is None:
            self.store.delete(descriptor.key)
        elif current.error is None:
            self.store.set(
                descriptor.key,
                current.model_copy(
                    update={"status": "success", "data": current.last_data, "last_data": None}
                ),
            )
        else:
            self.store.set(descriptor.key, current.model_copy(update={"status": "error"}))

    # --- direct store access ---

    def get_entry(self, key: QueryKey) -> CacheEntry | None:
        return self.store.get(key)

    def get_query_data(self, key: QueryKey) -> Any:
        """Cached data for ``key`` or None, without fetching."""
        entry = self.store.get(key)
        return entry.data if entry is not None else None

    def set_query_data(
        self,
        key: QueryKey,
        data: Any,
        stale_time_ms: Any = _KEEP,
        now: float | None = None,
    ) -> CacheEntry:
        """Write data for ``key`` as a fresh success (e.g. after a mutation).

        ``stale_time_ms`` defaults to the entry's current window, or the
        settings default for a new key; pass None for a never-stale entry.
        """
        current = self.store.get(key)
        if stale_time_ms is _KEEP:
            stale_time_ms = (
                current.stale_time_ms if current is not None
                else self.settings.stale_time_default_ms
            )
        entry = CacheEntry(
            key=key,
            status="success",
            data=data,
            fetched_at=self._clock() if now is None else now,
            stale_time_ms=stale_time_ms,
            fetch_count=current.fetch_count if current is not None else 0,
        )
        self.store.set(key, entry)
        return entry

    def is_fetching(self, key: QueryKey) -> bool:
        return key in self._inflight

    # --- invalidation ---

    def invalidate(self, prefix: QueryKey) -> int:
        """Mark the subtree under ``prefix`` stale."""
        return self._invalidation.invalidate(prefix)

    def remove(self, prefix: QueryKey) -> int:
        """Evict the subtree under ``prefix``."""
        return self._invalidation.remove(prefix)

    def invalidate_all(self) -> int:
        return self._invalidation.invalidate_all()

    # --- rendering contract ---

    def view(
        self, descriptor: QueryDescriptor, invalidation_scope: QueryKey | None = None,
    ) -> QueryView:
        from metacache.query.view import QueryView

        return QueryView(self, descriptor, invalidation_scope)

    async def drain(self) -> None:
        """Wait for every fetch started by this client to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
