# src/query/view.py — v2
"""Per-key view handed to presentation code.

Exposes status/data/error of one descriptor plus ``refetch`` and
``invalidate``; it never lets callers reach the store or the registry.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from metacache.cache.freshness import is_fresh
from metacache.cache.models import ErrorInfo, QueryStatus
from metacache.query.keys import QueryKey
from metacache.query.models import QueryDescriptor, QueryResult

if TYPE_CHECKING:
    from metacache.query.client import QueryClient


class QueryView:
    """Read-only window on one cached query."""

    def __init__(
        self,
        client: QueryClient,
        descriptor: QueryDescriptor,
        invalidation_scope: QueryKey | None = None,
    ) -> None:
        self._client = client
        self._descriptor = descriptor
        self._scope = invalidation_scope or descriptor.key

    @property
    def key(self) -> QueryKey:
        return self._descriptor.key

    @property
    def status(self) -> QueryStatus:
        entry = self._client.get_entry(self.key)
        return entry.status if entry is not None else "idle"

    @property
    def data(self) -> Any:
        return self._client.get_query_data(self.key)

    @property
    def last_data(self) -> Any:
        """Previous successful data while pending or after an error."""
        entry = self._client.get_entry(self.key)
        return entry.last_data if entry is not None else None

    @property
    def error(self) -> ErrorInfo | None:
        entry = self._client.get_entry(self.key)
        return entry.error if entry is not None else None

    @property
    def is_fetching(self) -> bool:
        return self._client.is_fetching(self.key)

    def is_fresh(self, now: float | None = None) -> bool:
        entry = self._client.get_entry(self.key)
        return is_fresh(entry, self._client.now() if now is None else now)

    async def resolve(self) -> QueryResult:
        return await self._client.resolve(self._descriptor)

    async def refetch(self) -> QueryResult:
        """Fetch again even if the cached data is fresh."""
        return await self._client.fetch(self._descriptor)

    def invalidate(self, scope: QueryKey | None = None) -> int:
        """Invalidate ``scope`` (default: the view's configured scope)."""
        return self._client.invalidate(scope or self._scope)
