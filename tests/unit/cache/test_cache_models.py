# tests/unit/cache/test_cache_models.py — v1
"""Tests for cache/models.py — ErrorInfo and CacheEntry invariants."""

from __future__ import annotations

import pydantic
import pytest

from metacache.cache.models import CacheEntry, ErrorInfo
from metacache.query.errors import (
    AuthorizationError,
    NetworkError,
    RetryExhausted,
    ServerError,
    ValidationError,
)
from metacache.query.keys import build_key

KEY = build_key("tables", "list", "public")


class TestErrorInfo:
    def test_kinds(self):
        assert ErrorInfo.from_exception(NetworkError("x")).kind == "network"
        assert ErrorInfo.from_exception(ServerError("x")).kind == "server"
        assert ErrorInfo.from_exception(AuthorizationError("x")).kind == "authorization"
        assert ErrorInfo.from_exception(ValidationError("f", "x")).kind == "validation"
        assert ErrorInfo.from_exception(RuntimeError("x")).kind == "unknown"

    def test_unwraps_retry_exhausted(self):
        last = ServerError("bad gateway", status_code=502)
        info = ErrorInfo.from_exception(RetryExhausted("k", "server", 3, last))
        assert info.kind == "server"
        assert info.message == "bad gateway"
        assert info.error_type == "ServerError"
        assert info.status_code == 502
        assert info.attempts == 3

    def test_empty_message_uses_type_name(self):
        assert ErrorInfo.from_exception(TimeoutError()).message == "TimeoutError"

    def test_frozen(self):
        info = ErrorInfo.from_exception(NetworkError("x"))
        with pytest.raises(pydantic.ValidationError):
            info.kind = "server"


class TestCacheEntry:
    def test_defaults(self):
        entry = CacheEntry(key=KEY)
        assert entry.status == "idle"
        assert entry.data is None
        assert entry.fetched_at is None
        assert entry.fetch_count == 0
        assert not entry.is_settled

    def test_success_rejects_error(self):
        with pytest.raises(pydantic.ValidationError, match="must not carry an error"):
            CacheEntry(
                key=KEY, status="success", fetched_at=1.0,
                error=ErrorInfo.from_exception(NetworkError("x")),
            )

    def test_error_requires_error(self):
        with pytest.raises(pydantic.ValidationError, match="must carry an error"):
            CacheEntry(key=KEY, status="error", fetched_at=1.0)

    def test_settled_requires_fetched_at(self):
        with pytest.raises(pydantic.ValidationError, match="fetched_at"):
            CacheEntry(key=KEY, status="success")

    def test_pending_keeps_previous_data_aside(self):
        entry = CacheEntry(key=KEY, status="pending", last_data=[1], fetched_at=5.0)
        assert entry.data is None
        assert entry.last_data == [1]
        assert not entry.is_settled

    @pytest.mark.parametrize("status", ["idle", "pending"])
    def test_unsettled_rejects_data(self, status):
        with pytest.raises(pydantic.ValidationError, match="must not carry data"):
            CacheEntry(key=KEY, status=status, data=[1])

    def test_error_rejects_data(self):
        with pytest.raises(pydantic.ValidationError, match="must not carry data"):
            CacheEntry(
                key=KEY, status="error", data=[1], fetched_at=1.0,
                error=ErrorInfo.from_exception(NetworkError("x")),
            )

    def test_model_copy_keeps_key(self):
        entry = CacheEntry(key=KEY, status="success", fetched_at=1.0)
        assert entry.model_copy(update={"invalidated": True}).key == KEY

    def test_unknown_status_rejected(self):
        with pytest.raises(pydantic.ValidationError):
            CacheEntry(key=KEY, status="loading")
