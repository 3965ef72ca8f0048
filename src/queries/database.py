# src/queries/database.py — v1
"""Descriptors for database-wide statistics.

``("database", "stats")`` is the single key root for database statistics;
dashboards and the analytics pages resolve these same descriptors, so one
invalidation reaches every consumer.
"""

from __future__ import annotations

from functools import partial

from metacache.query.keys import Params, QueryKey, build_key
from metacache.query.models import QueryDescriptor
from metacache.queries.base import QueryFactory, validate_flag


class DatabaseQueries(QueryFactory):
    """Keys under ``("database",)``."""

    @staticmethod
    def root() -> QueryKey:
        return build_key("database")

    @classmethod
    def stats_key(cls) -> QueryKey:
        return build_key(cls.root(), "stats")

    @classmethod
    def usage_key(cls) -> QueryKey:
        return build_key(cls.root(), "usage")

    @classmethod
    def type_key(cls) -> QueryKey:
        return build_key(cls.root(), "type")

    def stats(self, include_system: bool = True) -> QueryDescriptor:
        validate_flag(include_system, "include_system")
        return self.descriptor(
            build_key(self.stats_key(), Params(includeSystem=include_system)),
            partial(self.backend.get_database_stats, include_system),
            self.default_stale,
        )

    def usage(self, include_system: bool = True) -> QueryDescriptor:
        validate_flag(include_system, "include_system")
        return self.descriptor(
            build_key(self.usage_key(), Params(includeSystem=include_system)),
            partial(self.backend.get_database_usage, include_system),
            self.default_stale,
        )

    def type(self) -> QueryDescriptor:
        # the engine behind the console never changes at runtime
        return self.descriptor(self.type_key(), self.backend.get_database_type, None)
