# src/logging/context.py — v2
"""Contextual logging support: attach session, request, page and query key.

Each resolution runs its fetch in its own task, which copies the current
context, so ``query_key`` never bleeds across concurrent fetches.
"""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

_session_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "session_id", default=None
)
_request_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "request_id", default=None
)
_page: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "page", default=None
)
_query_key: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "query_key", default=None
)


@dataclass
class LogContext:
    """Snapshot of current logging context."""

    session_id: str | None = None
    request_id: str | None = None
    page: str | None = None
    query_key: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        session_id=_session_id.get(),
        request_id=_request_id.get(),
        page=_page.get(),
        query_key=_query_key.get(),
    )


def set_session_context(session_id: str) -> None:
    """Set the client-session id (once per session)."""
    _session_id.set(session_id)


def set_request_context(request_id: str, page: str | None = None) -> None:
    """Set request-level context (once per server-side render)."""
    _request_id.set(request_id)
    _page.set(page)


def set_query_context(query_key: str | None) -> None:
    """Set the key being fetched (per fetch task)."""
    _query_key.set(query_key)


def clear_context() -> None:
    """Reset all context variables."""
    _session_id.set(None)
    _request_id.set(None)
    _page.set(None)
    _query_key.set(None)
