# src/queries/auth.py — v1
"""Descriptors for the current identity and its capability snapshot."""

from __future__ import annotations

from functools import partial

from metacache.query.keys import Params, QueryKey, build_key
from metacache.query.models import QueryDescriptor
from metacache.queries.base import QueryFactory, validate_identifier


class AuthQueries(QueryFactory):
    """Keys under ``("auth",)``."""

    @staticmethod
    def root() -> QueryKey:
        return build_key("auth")

    @classmethod
    def current_user_key(cls) -> QueryKey:
        return build_key(cls.root(), "currentUser")

    @classmethod
    def permissions_key(cls) -> QueryKey:
        return build_key(cls.root(), "permissions")

    @classmethod
    def detailed_permissions_key(cls) -> QueryKey:
        return build_key(cls.root(), "detailedPermissions")

    @classmethod
    def is_system_admin_key(cls) -> QueryKey:
        return build_key(cls.root(), "isSystemAdmin")

    def current_user(self) -> QueryDescriptor:
        # identity does not change within a session
        return self.descriptor(self.current_user_key(), self.backend.get_current_user, None)

    def permissions(self) -> QueryDescriptor:
        """Capability snapshot used to gate prefetches."""
        return self.descriptor(
            self.permissions_key(),
            self.backend.get_current_user_permissions,
            self.default_stale,
        )

    def is_system_admin(self) -> QueryDescriptor:
        return self.descriptor(
            self.is_system_admin_key(), self.backend.get_is_system_admin, self.default_stale,
        )

    def detailed_permissions(
        self, schema_name: str | None = None, table_name: str | None = None,
    ) -> QueryDescriptor:
        if schema_name is not None:
            validate_identifier(schema_name, "schema_name")
        if table_name is not None:
            validate_identifier(table_name, "table_name")
        params = Params(
            {k: v for k, v in (("schemaName", schema_name), ("tableName", table_name)) if v is not None}
        )
        return self.descriptor(
            build_key(self.detailed_permissions_key(), params),
            partial(self.backend.get_detailed_permissions, schema_name, table_name),
            self.default_stale,
        )
