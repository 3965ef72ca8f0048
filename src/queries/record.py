# src/queries/record.py — v1
"""Descriptors for table and view records.

Lists are keyed per object and page:
    ("records", "list", "table"|"view", schema, name, {page, size, sortBy, sortDirection})
Counts sit under their own root so a mutation can invalidate them next to
the lists:
    ("records", "count", "table"|"view", schema, name)
"""

from __future__ import annotations

from functools import partial
from typing import Any, Literal

from metacache.query.errors import ValidationError
from metacache.query.keys import Params, QueryKey, build_key
from metacache.query.models import QueryDescriptor
from metacache.queries.base import QueryFactory, validate_identifier

ObjectKind = Literal["table", "view"]

SORT_DIRECTIONS = ("ASC", "DESC")


def _validate_count(value: Any, field: str, minimum: int) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(field, f"expected an int, got {type(value).__name__}")
    if value < minimum:
        raise ValidationError(field, f"must be >= {minimum}")
    return value


def pagination_params(
    page: int | None = None,
    size: int | None = None,
    sort_by: str | None = None,
    sort_direction: str | None = None,
) -> Params:
    """Validated paging record; unset fields are left out of the key."""
    _validate_count(page, "page", 0)
    _validate_count(size, "size", 1)
    if sort_by is not None:
        validate_identifier(sort_by, "sort_by")
    if sort_direction is not None and sort_direction not in SORT_DIRECTIONS:
        raise ValidationError("sort_direction", f"expected one of {SORT_DIRECTIONS}")
    fields = (
        ("page", page), ("size", size),
        ("sortBy", sort_by), ("sortDirection", sort_direction),
    )
    return Params({k: v for k, v in fields if v is not None})


class RecordQueries(QueryFactory):
    """Keys under ``("records",)``; record data goes stale after two minutes."""

    @staticmethod
    def root() -> QueryKey:
        return build_key("records")

    @classmethod
    def lists(cls) -> QueryKey:
        return build_key(cls.root(), "list")

    @classmethod
    def counts(cls) -> QueryKey:
        return build_key(cls.root(), "count")

    @classmethod
    def lists_for(cls, kind: ObjectKind, schema_name: str, object_name: str) -> QueryKey:
        """Every page of one table's or view's records."""
        return build_key(cls.lists(), kind, *_object(kind, schema_name, object_name))

    @classmethod
    def count_key(cls, kind: ObjectKind, schema_name: str, object_name: str) -> QueryKey:
        return build_key(cls.counts(), kind, *_object(kind, schema_name, object_name))

    @classmethod
    def mutation_scope(cls, schema_name: str, table_name: str) -> tuple[QueryKey, QueryKey]:
        """Prefixes to invalidate after a record write: every page and the total count."""
        return (
            cls.lists_for("table", schema_name, table_name),
            cls.count_key("table", schema_name, table_name),
        )

    def list_for_table(self, schema_name: str, table_name: str, **paging: Any) -> QueryDescriptor:
        return self._list("table", self.backend.get_table_records, schema_name, table_name, paging)

    def list_for_view(self, schema_name: str, view_name: str, **paging: Any) -> QueryDescriptor:
        return self._list("view", self.backend.get_view_records, schema_name, view_name, paging)

    def count_for_table(self, schema_name: str, table_name: str) -> QueryDescriptor:
        return self.descriptor(
            self.count_key("table", schema_name, table_name),
            partial(self.backend.get_table_record_count, schema_name, table_name),
            self.short_stale,
        )

    def count_for_view(self, schema_name: str, view_name: str) -> QueryDescriptor:
        return self.descriptor(
            self.count_key("view", schema_name, view_name),
            partial(self.backend.get_view_record_count, schema_name, view_name),
            self.short_stale,
        )

    def _list(
        self, kind: ObjectKind, read: Any, schema_name: str, object_name: str,
        paging: dict[str, Any],
    ) -> QueryDescriptor:
        prefix = self.lists_for(kind, schema_name, object_name)
        params = pagination_params(**paging)
        return self.descriptor(
            build_key(prefix, params),
            partial(read, schema_name, object_name, params.to_dict()),
            self.short_stale,
        )


def _object(kind: str, schema_name: str, object_name: str) -> tuple[str, str]:
    if kind not in ("table", "view"):
        raise ValidationError("kind", "expected 'table' or 'view'")
    validate_identifier(schema_name, "schema_name")
    validate_identifier(object_name, f"{kind}_name")
    return schema_name, object_name
