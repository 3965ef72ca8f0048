# src/queries/base.py — v1
"""Shared plumbing for the per-resource descriptor builders.

Builders validate their arguments before building any key, so malformed
input surfaces as ValidationError and never reaches the cache.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

from metacache.config.settings import Settings
from metacache.query.errors import ValidationError
from metacache.query.keys import QueryKey
from metacache.query.models import FetchFn, QueryDescriptor

if TYPE_CHECKING:
    from metacache.adapters.backend_client import BackendClient

MAX_IDENTIFIER_LENGTH = 63
_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")
_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def validate_identifier(value: Any, field: str) -> str:
    """Schema/table/view name: non-empty, no '/', no control chars."""
    if not isinstance(value, str):
        raise ValidationError(field, f"expected a string, got {type(value).__name__}")
    if not value.strip():
        raise ValidationError(field, "must not be empty")
    if len(value) > MAX_IDENTIFIER_LENGTH:
        raise ValidationError(field, f"longer than {MAX_IDENTIFIER_LENGTH} characters")
    if "/" in value or _CONTROL_CHARS.search(value):
        raise ValidationError(field, "contains '/' or control characters")
    return value


def validate_flag(value: Any, field: str) -> bool:
    if not isinstance(value, bool):
        raise ValidationError(field, f"expected a bool, got {type(value).__name__}")
    return value


def validate_date(value: Any, field: str) -> str | None:
    """Optional ISO date (YYYY-MM-DD)."""
    if value is None:
        return None
    if not isinstance(value, str) or not _DATE.match(value):
        raise ValidationError(field, "expected YYYY-MM-DD")
    return value


class QueryFactory:
    """Base for descriptor builders bound to one backend.

    Args:
        backend: Data-access functions (a BackendClient in production).
        settings: Staleness windows and retry limit. Loaded from .env if None.
    """

    def __init__(self, backend: BackendClient, settings: Settings | None = None) -> None:
        self.backend = backend
        self.settings = settings or Settings()

    @property
    def short_stale(self) -> int:
        return self.settings.stale_time_short_ms

    @property
    def default_stale(self) -> int:
        return self.settings.stale_time_default_ms

    @property
    def detail_stale(self) -> int:
        return self.settings.stale_time_detail_ms

    def descriptor(
        self, key: QueryKey, fetch: FetchFn, stale_time_ms: int | None,
    ) -> QueryDescriptor:
        return QueryDescriptor(
            key=key,
            fetch=fetch,
            stale_time_ms=stale_time_ms,
            retry_limit=self.settings.retry_limit,
        )
