# tests/conftest.py — v2
"""Shared test fixtures for all unit tests.

Provides a controllable clock, counting fetch functions, a mocked backend
and a QueryClient wired to them. No network I/O: the backend is an
AsyncMock and HTTP tests use httpx.MockTransport.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any
from unittest.mock import AsyncMock

import pytest

from metacache.cache.cache_factory import reset_session_store
from metacache.cache.memory_store import MemoryCacheStore
from metacache.config.settings import Settings
from metacache.logging.context import clear_context
from metacache.query.client import QueryClient


# === HELPERS ===


class FakeClock:
    """Epoch-millisecond clock moved by hand."""

    def __init__(self, start: float = 1_700_000_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


class CountingFetch:
    """Async fetch function that records calls.

    ``outcomes`` are consumed one per call; an Exception instance is raised,
    anything else returned. Once exhausted, ``value`` is returned. When
    ``gate`` is set, each call waits on it before answering.
    """

    def __init__(
        self,
        value: Any = None,
        outcomes: list[Any] | None = None,
        gate: asyncio.Event | None = None,
    ) -> None:
        self.value = value
        self.outcomes = list(outcomes or [])
        self.gate = gate
        self.calls = 0

    async def __call__(self) -> Any:
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        outcome = self.outcomes.pop(0) if self.outcomes else self.value
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


# === FIXTURES ===


@pytest.fixture(autouse=True)
def _isolate_globals():
    """Reset context variables, the session store and log handlers."""
    clear_context()
    reset_session_store()
    yield
    clear_context()
    reset_session_store()
    root = logging.getLogger("metacache")
    for handler in root.handlers:
        handler.close()
    root.handlers.clear()


@pytest.fixture
def settings() -> Settings:
    """Default settings, ignoring any local .env file."""
    return Settings(_env_file=None)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> MemoryCacheStore:
    return MemoryCacheStore()


@pytest.fixture
def client(store: MemoryCacheStore, settings: Settings, clock: FakeClock) -> QueryClient:
    return QueryClient(store=store, settings=settings, clock=clock)


@pytest.fixture
def capability_data() -> dict[str, bool]:
    """Capability snapshot in the backend's wire form, read access granted."""
    return {
        "isAdmin": False,
        "isViewer": True,
        "hasUserManagementAccess": False,
        "hasDbAccess": True,
        "hasDbReadAccess": True,
        "hasDbWriteAccess": False,
    }


@pytest.fixture
def mock_backend(capability_data: dict[str, bool]) -> AsyncMock:
    """Backend double with canned answers for every read."""
    backend = AsyncMock()
    backend.get_current_user.return_value = {"username": "alice", "role": "viewer"}
    backend.get_is_system_admin.return_value = False
    backend.get_current_user_permissions.return_value = capability_data
    backend.get_detailed_permissions.return_value = {"canSelect": True}
    backend.get_all_schemas.return_value = [{"name": "public"}, {"name": "sales"}]
    backend.get_schema.return_value = {"name": "public", "tableCount": 2}
    backend.get_all_tables_in_schema.return_value = [{"name": "users"}]
    backend.get_table.return_value = {"name": "users", "columns": []}
    backend.get_all_views_in_schema.return_value = [{"name": "active_users"}]
    backend.get_view.return_value = {"name": "active_users"}
    backend.get_table_records.return_value = {"content": [{"id": 1}], "totalElements": 1}
    backend.get_view_records.return_value = {"content": [{"id": 1}], "totalElements": 1}
    backend.get_table_record_count.return_value = 1
    backend.get_view_record_count.return_value = 1
    backend.get_database_stats.return_value = {"totalSchemas": 2, "totalTables": 5}
    backend.get_database_usage.return_value = {"sizeBytes": 1024}
    backend.get_database_type.return_value = "postgresql"
    backend.get_dashboard_stats.return_value = {"users": 3}
    backend.get_role_distribution.return_value = [{"role": "admin", "count": 1}]
    backend.get_audit_activity.return_value = []
    return backend
