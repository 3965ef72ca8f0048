# src/cache/models.py — v3
"""Cache domain models: ErrorInfo, CacheEntry.

Timestamps are epoch milliseconds. ``stale_time_ms=None`` means the entry
never goes stale on its own (only invalidation makes it stale).

Only a success entry carries ``data``. Pending and error entries keep the
last successful value in ``last_data`` so a view can still show it.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, model_validator

from metacache.query.errors import (
    AuthorizationError,
    NetworkError,
    RetryExhausted,
    ServerError,
    ValidationError,
)
from metacache.query.keys import QueryKey

QueryStatus = Literal["idle", "pending", "success", "error"]
ErrorKind = Literal["network", "server", "validation", "authorization", "unknown"]


class ErrorInfo(BaseModel):
    """Recorded form of the last failure of a fetch."""

    model_config = ConfigDict(frozen=True)

    kind: ErrorKind
    message: str
    error_type: str = ""
    status_code: int | None = None
    attempts: int = 1

    @classmethod
    def from_exception(cls, exc: BaseException, attempts: int = 1) -> ErrorInfo:
        """Wrap a backend exception (unwrapping RetryExhausted)."""
        if isinstance(exc, RetryExhausted):
            return cls.from_exception(exc.last_error, attempts=exc.attempts)
        kind: ErrorKind = "unknown"
        if isinstance(exc, NetworkError):
            kind = "network"
        elif isinstance(exc, ServerError):
            kind = "server"
        elif isinstance(exc, AuthorizationError):
            kind = "authorization"
        elif isinstance(exc, ValidationError):
            kind = "validation"
        return cls(
            kind=kind,
            message=str(exc) or type(exc).__name__,
            error_type=type(exc).__name__,
            status_code=getattr(exc, "status_code", None),
            attempts=attempts,
        )


class CacheEntry(BaseModel):
    """State of one cached query."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    key: QueryKey
    status: QueryStatus = "idle"
    data: Any = None
    last_data: Any = None
    error: ErrorInfo | None = None
    fetched_at: float | None = None
    stale_time_ms: int | None = 0
    invalidated: bool = False
    fetch_count: int = 0
    failure_count: int = 0

    @model_validator(mode="after")
    def check_status_consistency(self) -> CacheEntry:
        """data only on success, success carries no error, error always carries one."""
        if self.status != "success" and self.data is not None:
            raise ValueError(f"{self.status} entries must not carry data")
        if self.status == "success" and self.error is not None:
            raise ValueError("success entries must not carry an error")
        if self.status == "error" and self.error is None:
            raise ValueError("error entries must carry an error")
        if self.status in ("success", "error") and self.fetched_at is None:
            raise ValueError(f"{self.status} entries must carry fetched_at")
        return self

    @property
    def is_settled(self) -> bool:
        return self.status in ("success", "error")
