# src/queries/__init__.py — v2
"""Stable descriptor builders, one canonical key root per resource."""

from metacache.queries.analytics import AnalyticsQueries
from metacache.queries.auth import AuthQueries
from metacache.queries.database import DatabaseQueries
from metacache.queries.record import RecordQueries
from metacache.queries.schema import SchemaQueries
from metacache.queries.table import TableQueries
from metacache.queries.view import ViewQueries

__all__ = [
    "AnalyticsQueries",
    "AuthQueries",
    "DatabaseQueries",
    "RecordQueries",
    "SchemaQueries",
    "TableQueries",
    "ViewQueries",
]
