# src/pages/prefetch.py — v2
"""Server-side prefetch plans for console pages and the client bootstrap.

Each render gets its own request-scoped store. The capability snapshot is
always prefetched; the page's main query only when the snapshot grants
access. The settled entries are dehydrated into one payload that the client
replays into its session store exactly once.

Usage:
    payload = await prefetch_page("tables", backend)
    client = bootstrap_client(payload.to_json())
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Callable

from metacache.adapters.backend_client import BackendClient
from metacache.cache.cache_factory import create_cache_store, get_session_store
from metacache.config.settings import Settings
from metacache.logging.context import set_request_context, set_session_context
from metacache.query.client import QueryClient
from metacache.query.errors import ValidationError
from metacache.query.hydration import HydrationPayload, dehydrate, hydrate
from metacache.query.models import QueryDescriptor
from metacache.query.permission_gate import Gate, prefetch_if_authorized, requires_db_read
from metacache.queries import AuthQueries, SchemaQueries

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PagePlan:
    """Gated dependent query prefetched for one page."""

    name: str
    gate: Gate
    dependent: Callable[[BackendClient, Settings], QueryDescriptor]


PAGE_PLANS: dict[str, PagePlan] = {
    "schemas": PagePlan(
        "schemas", requires_db_read, lambda b, s: SchemaQueries(b, s).list(False),
    ),
    "tables": PagePlan(
        "tables", requires_db_read, lambda b, s: SchemaQueries(b, s).list(True),
    ),
    "views": PagePlan(
        "views", requires_db_read, lambda b, s: SchemaQueries(b, s).list(True),
    ),
}


async def prefetch_page(
    page: str,
    backend: BackendClient,
    settings: Settings | None = None,
    request_id: str | None = None,
) -> HydrationPayload:
    """Run ``page``'s plan in a fresh store and dehydrate the result.

    Raises:
        ValidationError: unknown page name.
    """
    plan = PAGE_PLANS.get(page)
    if plan is None:
        raise ValidationError("page", f"unknown page {page!r}; expected one of {sorted(PAGE_PLANS)}")

    settings = settings or Settings()
    set_request_context(request_id or uuid.uuid4().hex[:12], page)

    client = QueryClient(store=create_cache_store(), settings=settings)
    outcome = await prefetch_if_authorized(
        client,
        AuthQueries(backend, settings).permissions(),
        plan.gate,
        plan.dependent(backend, settings),
    )
    logger.info("Prefetch for page '%s': %s", page, outcome.status)
    return dehydrate(client.store)


def bootstrap_client(
    payload: HydrationPayload | str | bytes | None,
    settings: Settings | None = None,
    session_id: str | None = None,
) -> QueryClient:
    """Client start-up: seed the session store once, return its client.

    ``session_id`` tags every log record of the session; a random id is
    used when omitted.
    """
    set_session_context(session_id or uuid.uuid4().hex[:12])
    store = get_session_store()
    if payload is not None:
        if not isinstance(payload, HydrationPayload):
            payload = HydrationPayload.from_json(payload)
        written = hydrate(store, payload)
        logger.debug("Session store seeded with %d entries", written)
    return QueryClient(store=store, settings=settings)
