# src/queries/schema.py — v1
"""Descriptors for database schemas."""

from __future__ import annotations

from functools import partial

from metacache.query.keys import Params, QueryKey, build_key
from metacache.query.models import QueryDescriptor
from metacache.queries.base import QueryFactory, validate_flag, validate_identifier


class SchemaQueries(QueryFactory):
    """Keys under ``("schemas",)``."""

    @staticmethod
    def root() -> QueryKey:
        return build_key("schemas")

    @classmethod
    def lists(cls) -> QueryKey:
        return build_key(cls.root(), "list")

    @classmethod
    def details(cls) -> QueryKey:
        return build_key(cls.root(), "detail")

    def list(self, include_system: bool = False) -> QueryDescriptor:
        validate_flag(include_system, "include_system")
        return self.descriptor(
            build_key(self.lists(), Params(includeSystem=include_system)),
            partial(self.backend.get_all_schemas, include_system),
            self.default_stale,
        )

    def detail(self, schema_name: str) -> QueryDescriptor:
        validate_identifier(schema_name, "schema_name")
        return self.descriptor(
            build_key(self.details(), schema_name),
            partial(self.backend.get_schema, schema_name),
            self.detail_stale,
        )
