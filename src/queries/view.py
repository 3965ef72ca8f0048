# src/queries/view.py — v1
"""Descriptors for database views."""

from __future__ import annotations

from functools import partial

from metacache.query.keys import QueryKey, build_key
from metacache.query.models import QueryDescriptor
from metacache.queries.base import QueryFactory, validate_identifier


class ViewQueries(QueryFactory):
    """Keys under ``("views",)``."""

    @staticmethod
    def root() -> QueryKey:
        return build_key("views")

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
            partial(self.backend.get_all_views_in_schema, schema_name),
            self.default_stale,
        )

    def detail(self, schema_name: str, view_name: str) -> QueryDescriptor:
        validate_identifier(schema_name, "schema_name")
        validate_identifier(view_name, "view_name")
        return self.descriptor(
            build_key(self.details(), schema_name, view_name),
            partial(self.backend.get_view, schema_name, view_name),
            self.detail_stale,
        )
