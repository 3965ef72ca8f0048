# src/queries/analytics.py — v1
"""Descriptors for the admin analytics dashboard.

Database statistics are not defined here: dashboards use
``DatabaseQueries.stats`` so that resource keeps a single key root.
"""

from __future__ import annotations

from functools import partial

from metacache.query.errors import ValidationError
from metacache.query.keys import Params, QueryKey, build_key
from metacache.query.models import QueryDescriptor
from metacache.queries.base import QueryFactory, validate_date, validate_flag


class AnalyticsQueries(QueryFactory):
    """Keys under ``("analytics", "admin")``."""

    @staticmethod
    def root() -> QueryKey:
        return build_key("analytics")

    @classmethod
    def admin(cls) -> QueryKey:
        return build_key(cls.root(), "admin")

    @classmethod
    def dashboard(cls) -> QueryKey:
        return build_key(cls.admin(), "dashboard")

    @classmethod
    def roles(cls) -> QueryKey:
        return build_key(cls.admin(), "role")

    @classmethod
    def audit(cls) -> QueryKey:
        return build_key(cls.admin(), "audit")

    def dashboard_stats(self, include_system: bool = True) -> QueryDescriptor:
        validate_flag(include_system, "include_system")
        return self.descriptor(
            build_key(self.dashboard(), "stats", Params(includeSystem=include_system)),
            partial(self.backend.get_dashboard_stats, include_system),
            self.short_stale,
        )

    def role_distribution(self) -> QueryDescriptor:
        return self.descriptor(
            build_key(self.roles(), "distribution"),
            self.backend.get_role_distribution,
            self.detail_stale,
        )

    def audit_activity(
        self, start_date: str | None = None, end_date: str | None = None,
    ) -> QueryDescriptor:
        validate_date(start_date, "start_date")
        validate_date(end_date, "end_date")
        if start_date and end_date and start_date > end_date:
            raise ValidationError("end_date", "must not be before start_date")
        params = Params(
            {k: v for k, v in (("startDate", start_date), ("endDate", end_date)) if v is not None}
        )
        return self.descriptor(
            build_key(self.audit(), "activity", params),
            partial(self.backend.get_audit_activity, start_date, end_date),
            self.short_stale,
        )
