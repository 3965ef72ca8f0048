# src/query/permission_gate.py — v1
"""Capability-gated prefetch.

The capability snapshot is always resolved first; the dependent query is
only issued when that succeeded and the gate accepted the snapshot. When
it is not issued, no entry exists for it: absence means "not fetched",
which is different from an explicit error entry.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Literal

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from metacache.cache.models import ErrorInfo
from metacache.query.client import QueryClient
from metacache.query.errors import AuthorizationError
from metacache.query.models import CapabilitySnapshot, QueryDescriptor, QueryResult

logger = logging.getLogger(__name__)

Gate = Callable[[CapabilitySnapshot], bool]
GateStatus = Literal["authorized", "denied", "capability_unavailable"]


def requires_db_read(snapshot: CapabilitySnapshot) -> bool:
    return snapshot.has_db_read_access


def requires_db_write(snapshot: CapabilitySnapshot) -> bool:
    return snapshot.has_db_write_access


def requires_admin(snapshot: CapabilitySnapshot) -> bool:
    return snapshot.is_admin


def requires_user_management(snapshot: CapabilitySnapshot) -> bool:
    return snapshot.has_user_management_access


class GateOutcome(BaseModel):
    """What happened during a gated prefetch."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    status: GateStatus
    capability: QueryResult
    snapshot: CapabilitySnapshot | None = None
    dependent: QueryResult | None = None
    error: ErrorInfo | None = None

    @property
    def authorized(self) -> bool:
        return self.status == "authorized"


def to_snapshot(data: Any) -> CapabilitySnapshot | None:
    """Coerce cached capability data into a snapshot; None if unusable."""
    if data is None:
        return None
    if isinstance(data, CapabilitySnapshot):
        return data
    try:
        return CapabilitySnapshot.model_validate(data)
    except PydanticValidationError as exc:
        logger.warning("Capability data is malformed: %s", exc)
        return None


async def prefetch_if_authorized(
    client: QueryClient,
    capability_query: QueryDescriptor,
    gate: Gate,
    dependent: QueryDescriptor,
) -> GateOutcome:
    """Resolve ``capability_query``, then ``dependent`` if ``gate`` allows it."""
    capability = await client.resolve(capability_query)
    snapshot = to_snapshot(capability.data) if capability.is_success else None
    if snapshot is None:
        logger.info(
            "Capability snapshot unavailable, skipping %s", dependent.key,
        )
        return GateOutcome(
            status="capability_unavailable",
            capability=capability,
            error=capability.error,
        )

    if not gate(snapshot):
        gate_name = getattr(gate, "__name__", "gate")
        logger.info("Access gate %s denied %s", gate_name, dependent.key)
        denial = AuthorizationError(f"{gate_name} denied access to {dependent.key}")
        return GateOutcome(
            status="denied",
            capability=capability,
            snapshot=snapshot,
            error=ErrorInfo.from_exception(denial),
        )

    result = await client.resolve(dependent)
    return GateOutcome(
        status="authorized",
        capability=capability,
        snapshot=snapshot,
        dependent=result,
    )
