# tests/unit/queries/test_builders.py — v1
"""Tests for queries/* — canonical keys, staleness windows and validation."""

from __future__ import annotations

import pytest

from metacache.config.settings import MINUTE_MS, Settings
from metacache.query.errors import ValidationError
from metacache.query.keys import build_key, is_prefix_of
from metacache.queries import (
    AnalyticsQueries,
    AuthQueries,
    DatabaseQueries,
    RecordQueries,
    SchemaQueries,
    TableQueries,
    ViewQueries,
)
from metacache.queries.base import validate_date, validate_flag, validate_identifier


class TestValidators:
    @pytest.mark.parametrize("bad", ["", "   ", "a/b", "tab\tle", "x" * 64, 5, None])
    def test_identifier_rejected(self, bad):
        with pytest.raises(ValidationError):
            validate_identifier(bad, "schema_name")

    def test_identifier_accepted(self):
        assert validate_identifier("public", "schema_name") == "public"
        assert validate_identifier("x" * 63, "schema_name") == "x" * 63

    def test_flag(self):
        assert validate_flag(True, "include_system") is True
        with pytest.raises(ValidationError, match="include_system"):
            validate_flag("true", "include_system")

    def test_date(self):
        assert validate_date(None, "start_date") is None
        assert validate_date("2024-03-01", "start_date") == "2024-03-01"
        with pytest.raises(ValidationError):
            validate_date("03/01/2024", "start_date")


class TestAuthQueries:
    def test_permissions(self, mock_backend, settings):
        d = AuthQueries(mock_backend, settings).permissions()
        assert d.key == build_key("auth", "permissions")
        assert d.stale_time_ms == 5 * MINUTE_MS
        assert d.retry_limit == 2

    def test_current_user_never_stale(self, mock_backend, settings):
        d = AuthQueries(mock_backend, settings).current_user()
        assert d.key == build_key("auth", "currentUser")
        assert d.stale_time_ms is None

    def test_is_system_admin(self, mock_backend, settings):
        assert AuthQueries(mock_backend, settings).is_system_admin().key == build_key("auth", "isSystemAdmin")

    def test_detailed_permissions_drops_none(self, mock_backend, settings):
        queries = AuthQueries(mock_backend, settings)
        assert queries.detailed_permissions("public").key == build_key(
            "auth", "detailedPermissions", {"schemaName": "public"},
        )
        assert queries.detailed_permissions().key == build_key("auth", "detailedPermissions", {})

    def test_detailed_permissions_validates(self, mock_backend, settings):
        with pytest.raises(ValidationError):
            AuthQueries(mock_backend, settings).detailed_permissions("public", "")

    @pytest.mark.asyncio
    async def test_fetch_calls_backend(self, mock_backend, settings):
        d = AuthQueries(mock_backend, settings).detailed_permissions("public", "users")
        assert await d.fetch() == {"canSelect": True}
        mock_backend.get_detailed_permissions.assert_awaited_once_with("public", "users")


class TestSchemaQueries:
    def test_list_key(self, mock_backend, settings):
        d = SchemaQueries(mock_backend, settings).list(include_system=False)
        assert d.key == build_key("schemas", "list", {"includeSystem": False})
        assert d.stale_time_ms == 5 * MINUTE_MS

    def test_list_variants_distinct(self, mock_backend, settings):
        queries = SchemaQueries(mock_backend, settings)
        assert queries.list(True).key != queries.list(False).key

    def test_detail(self, mock_backend, settings):
        d = SchemaQueries(mock_backend, settings).detail("public")
        assert d.key == build_key("schemas", "detail", "public")
        assert d.stale_time_ms == 10 * MINUTE_MS

    def test_detail_validates_before_key(self, mock_backend, settings):
        with pytest.raises(ValidationError, match="schema_name"):
            SchemaQueries(mock_backend, settings).detail("a/b")

    def test_list_rejects_non_bool(self, mock_backend, settings):
        with pytest.raises(ValidationError):
            SchemaQueries(mock_backend, settings).list(1)

    @pytest.mark.asyncio
    async def test_fetch(self, mock_backend, settings):
        d = SchemaQueries(mock_backend, settings).list(True)
        await d.fetch()
        mock_backend.get_all_schemas.assert_awaited_once_with(True)


class TestTableAndViewQueries:
    def test_table_list(self, mock_backend, settings):
        d = TableQueries(mock_backend, settings).list("public")
        assert d.key == build_key("tables", "list", "public")

    def test_table_detail(self, mock_backend, settings):
        d = TableQueries(mock_backend, settings).detail("public", "users")
        assert d.key == build_key("tables", "detail", "public", "users")
        assert d.stale_time_ms == 10 * MINUTE_MS

    def test_schema_scope_covers_schema_entries(self, mock_backend, settings):
        queries = TableQueries(mock_backend, settings)
        lists, details = TableQueries.schema_scope("public")
        assert is_prefix_of(lists, queries.list("public").key)
        assert is_prefix_of(details, queries.detail("public", "users").key)
        assert not is_prefix_of(details, queries.detail("sales", "users").key)

    def test_view_keys(self, mock_backend, settings):
        queries = ViewQueries(mock_backend, settings)
        assert queries.list("public").key == build_key("views", "list", "public")
        assert queries.detail("public", "v").key == build_key("views", "detail", "public", "v")

    def test_view_detail_validates(self, mock_backend, settings):
        with pytest.raises(ValidationError, match="view_name"):
            ViewQueries(mock_backend, settings).detail("public", "")

    @pytest.mark.asyncio
    async def test_view_fetch(self, mock_backend, settings):
        await ViewQueries(mock_backend, settings).detail("public", "v").fetch()
        mock_backend.get_view.assert_awaited_once_with("public", "v")


class TestDatabaseQueries:
    def test_stats_is_canonical_root(self, mock_backend, settings):
        d = DatabaseQueries(mock_backend, settings).stats(True)
        assert d.key == build_key("database", "stats", {"includeSystem": True})
        assert is_prefix_of(DatabaseQueries.stats_key(), d.key)

    def test_usage(self, mock_backend, settings):
        d = DatabaseQueries(mock_backend, settings).usage(False)
        assert d.key == build_key("database", "usage", {"includeSystem": False})

    def test_type_never_stale(self, mock_backend, settings):
        d = DatabaseQueries(mock_backend, settings).type()
        assert d.key == build_key("database", "type")
        assert d.stale_time_ms is None


class TestAnalyticsQueries:
    def test_dashboard_stats(self, mock_backend, settings):
        d = AnalyticsQueries(mock_backend, settings).dashboard_stats(True)
        assert d.key == build_key("analytics", "admin", "dashboard", "stats", {"includeSystem": True})
        assert d.stale_time_ms == 2 * MINUTE_MS

    def test_role_distribution(self, mock_backend, settings):
        d = AnalyticsQueries(mock_backend, settings).role_distribution()
        assert d.key == build_key("analytics", "admin", "role", "distribution")
        assert d.stale_time_ms == 10 * MINUTE_MS

    def test_audit_activity(self, mock_backend, settings):
        d = AnalyticsQueries(mock_backend, settings).audit_activity("2024-01-01", "2024-01-31")
        assert d.key == build_key(
            "analytics", "admin", "audit", "activity",
            {"startDate": "2024-01-01", "endDate": "2024-01-31"},
        )

    def test_audit_range_order(self, mock_backend, settings):
        with pytest.raises(ValidationError, match="end_date"):
            AnalyticsQueries(mock_backend, settings).audit_activity("2024-02-01", "2024-01-01")

    def test_admin_prefix_covers_all(self, mock_backend, settings):
        queries = AnalyticsQueries(mock_backend, settings)
        for d in (queries.dashboard_stats(), queries.role_distribution(), queries.audit_activity()):
            assert is_prefix_of(AnalyticsQueries.admin(), d.key)

    def test_no_second_database_stats_root(self, mock_backend, settings):
        queries = AnalyticsQueries(mock_backend, settings)
        assert not is_prefix_of(DatabaseQueries.stats_key(), queries.dashboard_stats().key)


class TestSettingsFlowThrough:
    def test_custom_windows_and_retry(self, mock_backend):
        s = Settings(_env_file=None, retry_limit=0, stale_time_default_ms=1_000,
                     stale_time_short_ms=500, stale_time_detail_ms=2_000)
        d = SchemaQueries(mock_backend, s).list()
        assert d.retry_limit == 0
        assert d.stale_time_ms == 1_000

    def test_builders_are_referentially_stable(self, mock_backend, settings):
        a = TableQueries(mock_backend, settings).detail("public", "users")
        b = TableQueries(mock_backend, settings).detail("public", "users")
        assert a == b


class TestRecordQueries:
    def test_table_list_key(self, mock_backend, settings):
        d = RecordQueries(mock_backend, settings).list_for_table("public", "users", page=0, size=25)
        assert d.key.to_wire() == ["records", "list", "table", "public", "users", {"page": 0, "size": 25}]
        assert d.stale_time_ms == 2 * MINUTE_MS
        assert d.retry_limit == 2

    def test_unpaged_list_key(self, mock_backend, settings):
        d = RecordQueries(mock_backend, settings).list_for_view("public", "active_users")
        assert d.key == build_key("records", "list", "view", "public", "active_users", {})

    def test_pages_are_distinct(self, mock_backend, settings):
        queries = RecordQueries(mock_backend, settings)
        assert queries.list_for_table("public", "users", page=0).key != queries.list_for_table(
            "public", "users", page=1,
        ).key

    def test_count_keys(self, mock_backend, settings):
        queries = RecordQueries(mock_backend, settings)
        assert queries.count_for_table("public", "users").key == build_key(
            "records", "count", "table", "public", "users",
        )
        assert queries.count_for_view("public", "v").key == build_key("records", "count", "view", "public", "v")
        assert queries.count_for_view("public", "v").stale_time_ms == 2 * MINUTE_MS

    def test_mutation_scope(self, mock_backend, settings):
        queries = RecordQueries(mock_backend, settings)
        lists, count = RecordQueries.mutation_scope("public", "users")
        assert is_prefix_of(lists, queries.list_for_table("public", "users", page=3).key)
        assert is_prefix_of(count, queries.count_for_table("public", "users").key)
        assert not is_prefix_of(lists, queries.list_for_table("public", "orders").key)
        assert not is_prefix_of(lists, queries.list_for_view("public", "users").key)

    @pytest.mark.parametrize(
        "paging, field",
        [
            ({"page": -1}, "page"),
            ({"page": True}, "page"),
            ({"size": 0}, "size"),
            ({"sort_by": ""}, "sort_by"),
            ({"sort_direction": "up"}, "sort_direction"),
        ],
    )
    def test_paging_validated(self, mock_backend, settings, paging, field):
        with pytest.raises(ValidationError, match=field):
            RecordQueries(mock_backend, settings).list_for_table("public", "users", **paging)

    def test_names_validated(self, mock_backend, settings):
        with pytest.raises(ValidationError, match="view_name"):
            RecordQueries(mock_backend, settings).count_for_view("public", "a/b")

    @pytest.mark.asyncio
    async def test_list_fetch_passes_paging(self, mock_backend, settings):
        d = RecordQueries(mock_backend, settings).list_for_table(
            "public", "users", page=2, size=10, sort_by="id", sort_direction="DESC",
        )
        await d.fetch()
        mock_backend.get_table_records.assert_awaited_once_with(
            "public", "users", {"page": 2, "size": 10, "sortBy": "id", "sortDirection": "DESC"},
        )

    @pytest.mark.asyncio
    async def test_record_write_refetches_list_and_count(self, mock_backend, settings, client):
        queries = RecordQueries(mock_backend, settings)
        page = queries.list_for_table("public", "users", page=0)
        count = queries.count_for_table("public", "users")
        other = queries.count_for_view("public", "active_users")
        for d in (page, count, other):
            await client.resolve(d)

        lists, count_key = RecordQueries.mutation_scope("public", "users")
        assert client.invalidate(lists) == 1
        assert client.invalidate(count_key) == 1

        assert (await client.resolve(page)).from_cache is False
        assert (await client.resolve(count)).from_cache is False
        assert (await client.resolve(other)).from_cache is True
        assert mock_backend.get_table_records.await_count == 2
        assert mock_backend.get_table_record_count.await_count == 2
        assert mock_backend.get_view_record_count.await_count == 1
