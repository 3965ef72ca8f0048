# src/query/models.py — v1
"""Query domain models: QueryDescriptor, QueryResult, CapabilitySnapshot."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

from pydantic import BaseModel, ConfigDict, Field

from metacache.cache.models import CacheEntry, ErrorInfo, QueryStatus
from metacache.query.keys import QueryKey

FetchFn = Callable[[], Awaitable[Any]]


@dataclass(frozen=True)
class QueryDescriptor:
    """Everything needed to resolve one key.

    Built by the stable builders in ``metacache.queries``; two descriptors
    for the same request always carry equal keys.
    """

    key: QueryKey
    fetch: FetchFn = field(compare=False, repr=False)
    stale_time_ms: int | None = 0
    retry_limit: int = 2

    def __post_init__(self) -> None:
        if self.retry_limit < 0:
            raise ValueError("retry_limit must be >= 0")
        if self.stale_time_ms is not None and self.stale_time_ms < 0:
            raise ValueError("stale_time_ms must be >= 0 or None")


class QueryResult(BaseModel):
    """Explicit outcome of a resolution; never an exception."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    key: QueryKey
    status: QueryStatus
    data: Any = None
    error: ErrorInfo | None = None
    from_cache: bool = False
    fetched_at: float | None = None

    @property
    def is_success(self) -> bool:
        return self.status == "success"

    @property
    def is_error(self) -> bool:
        return self.status == "error"

    @classmethod
    def from_entry(cls, entry: CacheEntry, from_cache: bool = False) -> QueryResult:
        return cls(
            key=entry.key,
            status=entry.status,
            data=entry.data,
            error=entry.error,
            from_cache=from_cache,
            fetched_at=entry.fetched_at,
        )


class CapabilitySnapshot(BaseModel):
    """Read-only access flags of the current identity.

    Wire form uses the backend's camelCase names.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    is_admin: bool = Field(default=False, alias="isAdmin")
    is_viewer: bool = Field(default=False, alias="isViewer")
    has_user_management_access: bool = Field(default=False, alias="hasUserManagementAccess")
    has_db_access: bool = Field(default=False, alias="hasDbAccess")
    has_db_read_access: bool = Field(default=False, alias="hasDbReadAccess")
    has_db_write_access: bool = Field(default=False, alias="hasDbWriteAccess")
