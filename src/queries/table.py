# src/queries/table.py — v1
"""Descriptors for tables."""

from __future__ import annotations

from functools import partial

from metacache.query.keys import QueryKey, build_key
from metacache.query.models import QueryDescriptor
from metacache.queries.base import QueryFactory, validate_identifier


class TableQueries(QueryFactory):
    """Keys under ``("tables",)``; lists are per schema."""

    @staticmethod
    def root() -> QueryKey:
        return build_key("tables")

    @classmethod
    def lists(cls) -> QueryKey:
        return build_key(cls.root(), "list")

    @classmethod
    def details(cls) -> QueryKey:
        return build_key(cls.root(), "detail")

    def list(self, schema_name: str) -> QueryDescriptor:
        validate_identifier(schema_name, "schema_name")
        return self.descriptor(
            build_key(self.lists(), schema_name),
            partial(self.backend.get_all_tables_in_schema, schema_name),
            self.default_stale,
        )

    def detail(self, schema_name: str, table_name: str) -> QueryDescriptor:
        validate_identifier(schema_name, "schema_name")
        validate_identifier(table_name, "table_name")
        return self.descriptor(
            build_key(self.details(), schema_name, table_name),
            partial(self.backend.get_table, schema_name, table_name),
            self.detail_stale,
        )

    @classmethod
    def schema_scope(cls, schema_name: str) -> tuple[QueryKey, QueryKey]:
        """List and detail prefixes touched by a mutation in ``schema_name``."""
        validate_identifier(schema_name, "schema_name")
        return build_key(cls.lists(), schema_name), build_key(cls.details(), schema_name)
