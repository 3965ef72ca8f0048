# src/query/errors.py — v1
"""Error taxonomy for the query cache layer.

Backend failures (NetworkError, ServerError) are retried and then recorded
on the cache entry as an ErrorInfo. AuthorizationError is never retried.
KeyConstructionError signals a programming-contract violation and is the
only error allowed to escape the fetch orchestrator.
"""

from __future__ import annotations


class QueryCacheError(Exception):
    """Base class for every error raised by metacache."""


class ValidationError(QueryCacheError):
    """Malformed arguments, rejected before any key or fetch is built."""

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        super().__init__(f"Invalid {field}: {message}")


class KeyConstructionError(QueryCacheError):
    """A query key segment outside the closed segment algebra."""


class NetworkError(QueryCacheError):
    """Transport-level failure talking to the backend (incl. timeouts)."""


class ServerError(QueryCacheError):
    """The backend answered with an error status or a failed envelope."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class AuthorizationError(QueryCacheError):
    """The caller lacks the capability required for a request."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class RetryExhausted(QueryCacheError):
    """All attempts for a fetch failed; only the last error is kept."""

    def __init__(self, label: str, error_type: str, attempts: int, last_error: Exception):
        self.label = label
        self.error_type = error_type
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"Query '{label}' failed after {attempts} attempts ({error_type}): {last_error}"
        )


class HydrationError(QueryCacheError):
    """A hydration payload was malformed or replayed more than once."""
