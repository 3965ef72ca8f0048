# src/cache/freshness.py — v1
"""Freshness policy: per-entry staleness windows."""

from __future__ import annotations

import time

from metacache.cache.models import CacheEntry


def now_ms() -> float:
    """Wall-clock time in epoch milliseconds."""
    return time.time() * 1000.0


def is_fresh(entry: CacheEntry | None, now: float) -> bool:
    """True when ``entry`` can be served without a fetch."""
    if entry is None or entry.status != "success" or entry.invalidated:
        return False
    if entry.fetched_at is None:
        return False
    if entry.stale_time_ms is None:
        return True
    return now - entry.fetched_at < entry.stale_time_ms


def age_ms(entry: CacheEntry, now: float) -> float | None:
    """Milliseconds since the last completed attempt, None if never fetched."""
    if entry.fetched_at is None:
        return None
    return max(0.0, now - entry.fetched_at)
