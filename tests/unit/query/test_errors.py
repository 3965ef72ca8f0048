# tests/unit/query/test_errors.py — v1
"""Tests for query/errors.py — error taxonomy."""

from __future__ import annotations

from metacache.query.errors import (
    AuthorizationError,
    HydrationError,
    KeyConstructionError,
    NetworkError,
    QueryCacheError,
    RetryExhausted,
    ServerError,
    ValidationError,
)


class TestErrors:
    def test_common_base(self):
        for cls in (HydrationError, KeyConstructionError, NetworkError):
            assert issubclass(cls, QueryCacheError)

    def test_validation_error_message(self):
        err = ValidationError("schema_name", "must not be empty")
        assert err.field == "schema_name"
        assert str(err) == "Invalid schema_name: must not be empty"

    def test_status_codes(self):
        assert ServerError("boom", status_code=502).status_code == 502
        assert AuthorizationError("no").status_code is None

    def test_retry_exhausted_keeps_last_error(self):
        last = NetworkError("timeout")
        err = RetryExhausted("tables/list/public", "network", 3, last)
        assert err.last_error is last
        assert err.attempts == 3
        assert "3 attempts" in str(err)
        assert "tables/list/public" in str(err)
