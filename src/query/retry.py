# src/query/retry.py — v1
"""Retry policy for backend fetches.

A failed attempt is retried up to ``retry_limit`` more times. Retries are
immediate unless a base delay is configured, in which case the delay grows
monotonically with each attempt. Only the last error survives exhaustion.
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, TypeVar

from metacache.config.settings import Settings
from metacache.query.errors import (
    AuthorizationError,
    KeyConstructionError,
    NetworkError,
    RetryExhausted,
    ServerError,
    ValidationError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

NON_RETRYABLE = frozenset({"validation", "authorization"})


@dataclass(frozen=True)
class RetryPolicy:
    """Retry configuration for one query."""

    retry_limit: int = 2
    base_delay_ms: int = 0
    backoff_factor: float = 2.0
    max_delay_ms: int = 30_000
    jitter: bool = False

    def __post_init__(self) -> None:
        if self.retry_limit < 0:
            raise ValueError("retry_limit must be >= 0")

    @property
    def max_attempts(self) -> int:
        return 1 + self.retry_limit

    @classmethod
    def from_settings(cls, settings: Settings, retry_limit: int | None = None) -> RetryPolicy:
        return cls(
            retry_limit=settings.retry_limit if retry_limit is None else retry_limit,
            base_delay_ms=settings.retry_base_delay_ms,
            backoff_factor=settings.retry_backoff_factor,
            max_delay_ms=settings.retry_max_delay_ms,
        )


@dataclass(frozen=True)
class Attempt(Generic[T]):
    """Successful outcome of ``run_with_retry``."""

    value: T
    attempts: int


def classify_error(error: BaseException) -> str:
    """Classify an exception into a retry error type."""
    if isinstance(error, NetworkError):
        return "network"
    if isinstance(error, ServerError):
        return "server"
    if isinstance(error, AuthorizationError):
        return "authorization"
    if isinstance(error, ValidationError):
        return "validation"

    name = type(error).__name__.lower()
    if "timeout" in name or isinstance(error, (ConnectionError, TimeoutError)):
        return "network"
    return "unknown"


def compute_delay_ms(policy: RetryPolicy, retry_number: int) -> float:
    """Delay before the given retry (1-based); 0 when no base delay is set."""
    if policy.base_delay_ms <= 0:
        return 0.0
    delay = policy.base_delay_ms * (policy.backoff_factor ** (retry_number - 1))
    if policy.jitter:
        delay *= 0.5 + random.random() / 2  # noqa: S311
    return min(delay, policy.max_delay_ms)


async def run_with_retry(
    fn: Callable[[], Awaitable[Any]],
    policy: RetryPolicy,
    *,
    label: str = "query",
) -> Attempt[Any]:
    """Run ``fn`` under ``policy``.

    Raises:
        RetryExhausted: when every permitted attempt failed, or the first
            failure was not retryable.
        KeyConstructionError: programming errors are never retried.
    """
    attempts = 0

    while True:
        attempts += 1
        try:
            value = await fn()
        except KeyConstructionError:
            raise
        except Exception as e:
            error_type = classify_error(e)
            if error_type in NON_RETRYABLE or attempts > policy.retry_limit:
                raise RetryExhausted(label, error_type, attempts, e) from e

            delay_ms = compute_delay_ms(policy, attempts)
            logger.warning(
                "Query '%s' %s (attempt %d/%d), retrying in %.0fms",
                label, error_type, attempts, policy.max_attempts, delay_ms,
            )
            if delay_ms:
                await asyncio.sleep(delay_ms / 1000.0)
            continue

        if attempts > 1:
            logger.info("Query '%s' succeeded on attempt %d", label, attempts)
        return Attempt(value=value, attempts=attempts)
