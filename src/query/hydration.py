# src/query/hydration.py — v2
"""Server-to-client handoff of cache entries.

``dehydrate`` snapshots settled entries of a request-scoped store; the
client calls ``hydrate`` once at start-up to seed its session store. An
entry the client already holds is never overwritten, and hydration never
triggers a fetch: freshness of a hydrated entry is judged from its own
``fetched_at`` and ``stale_time_ms``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any, Literal

from pydantic import BaseModel, Field, PrivateAttr
from pydantic import ValidationError as PydanticValidationError

from metacache.cache.base_cache_store import BaseCacheStore
from metacache.cache.models import CacheEntry, ErrorInfo
from metacache.query.errors import HydrationError, KeyConstructionError
from metacache.query.keys import QueryKey, parse_key

logger = logging.getLogger(__name__)


class DehydratedQuery(BaseModel):
    """Snapshot of one settled cache entry."""

    key: list[Any]
    status: Literal["success", "error"]
    data: Any = None
    last_data: Any = None
    error: ErrorInfo | None = None
    fetched_at: float
    stale_time_ms: int | None = None
    invalidated: bool = False

    @classmethod
    def from_entry(cls, entry: CacheEntry) -> DehydratedQuery:
        return cls(
            key=entry.key.to_wire(),
            status=entry.status,  # type: ignore[arg-type]
            data=entry.data,
            last_data=entry.last_data,
            error=entry.error,
            fetched_at=entry.fetched_at,  # type: ignore[arg-type]
            stale_time_ms=entry.stale_time_ms,
            invalidated=entry.invalidated,
        )

    def to_entry(self) -> CacheEntry:
        return CacheEntry(
            key=parse_key(self.key),
            status=self.status,
            data=self.data,
            last_data=self.last_data,
            error=self.error,
            fetched_at=self.fetched_at,
            stale_time_ms=self.stale_time_ms,
            invalidated=self.invalidated,
        )


class HydrationPayload(BaseModel):
    """Ordered dehydrated queries for one rendered page."""

    queries: list[DehydratedQuery] = Field(default_factory=list)

    _consumed: bool = PrivateAttr(default=False)

    @property
    def consumed(self) -> bool:
        return self._consumed

    def __len__(self) -> int:
        return len(self.queries)

    def to_json(self) -> str:
        return self.model_dump_json()

    @classmethod
    def from_json(cls, text: str | bytes) -> HydrationPayload:
        try:
            return cls.model_validate_json(text)
        except PydanticValidationError as exc:
            raise HydrationError(f"Malformed hydration payload: {exc}") from exc


def dehydrate(
    store: BaseCacheStore,
    keys: Iterable[QueryKey] | None = None,
) -> HydrationPayload:
    """Snapshot settled entries; all of them when ``keys`` is None.

    Pending and idle entries are skipped, as are requested keys with no entry.
    """
    if keys is None:
        candidates = list(store.entries())
    else:
        seen: set[QueryKey] = set()
        candidates = []
        for key in keys:
            if key in seen:
                continue
            seen.add(key)
            entry = store.get(key)
            if entry is not None:
                candidates.append(entry)

    queries = [DehydratedQuery.from_entry(e) for e in candidates if e.is_settled]
    logger.debug("Dehydrated %d of %d entries", len(queries), len(candidates))
    return HydrationPayload(queries=queries)


def hydrate(store: BaseCacheStore, payload: HydrationPayload) -> int:
    """Seed ``store`` from ``payload`` (first write wins); return entries written.

    Every query is converted before anything is written, so a rejected
    payload leaves ``store`` untouched and stays unconsumed.

    Raises:
        HydrationError: payload already consumed or carries a bad entry.
    """
    if payload.consumed:
        raise HydrationError("Hydration payload was already consumed")

    entries: list[CacheEntry] = []
    for query in payload.queries:
        try:
            entries.append(query.to_entry())
        except KeyConstructionError as exc:
            raise HydrationError(f"Bad key in hydration payload: {query.key!r}") from exc
        except PydanticValidationError as exc:
            raise HydrationError(f"Bad entry in hydration payload: {query.key!r}") from exc
    payload._consumed = True

    written = 0
    for entry in entries:
        if store.get(entry.key) is not None:
            logger.debug("Keeping local entry for %s", entry.key)
            continue
        store.set(entry.key, entry)
        written += 1
    logger.debug("Hydrated %d of %d entries", written, len(payload))
    return written
