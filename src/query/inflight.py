# src/query/inflight.py — v1
"""In-flight registry: one shared handle per key while a fetch is running."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from metacache.query.keys import QueryKey, serialize_key

logger = logging.getLogger(__name__)


class InFlightRegistry:
    """Coalesces concurrent fetches of the same key.

    The first caller for a key gets ``is_new=True`` and owns the fetch; later
    callers get the same future and await it. ``end_fetch`` always removes
    the handle, so the next resolution after a failure can try again.
    """

    def __init__(self) -> None:
        self._handles: dict[str, asyncio.Future[Any]] = {}

    def begin_fetch(self, key: QueryKey) -> tuple[bool, asyncio.Future[Any]]:
        slot = serialize_key(key)
        handle = self._handles.get(slot)
        if handle is not None:
            logger.debug("Joining in-flight fetch for %s", key)
            return False, handle
        handle = asyncio.get_running_loop().create_future()
        self._handles[slot] = handle
        return True, handle

    def end_fetch(self, key: QueryKey, result: Any = None, error: BaseException | None = None) -> None:
        """Settle and drop the handle for ``key``."""
        handle = self._handles.pop(serialize_key(key), None)
        if handle is None or handle.done():
            return
        if error is not None:
            handle.set_exception(error)
            # nobody may be waiting; mark the exception as retrieved
            handle.exception()
        else:
            handle.set_result(result)

    def abort(self, key: QueryKey) -> None:
        """Cancel and drop the handle for ``key`` (fetch task was cancelled)."""
        handle = self._handles.pop(serialize_key(key), None)
        if handle is not None and not handle.done():
            handle.cancel()

    def pending(self, key: QueryKey) -> asyncio.Future[Any] | None:
        return self._handles.get(serialize_key(key))

    def __len__(self) -> int:
        return len(self._handles)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, QueryKey) and serialize_key(key) in self._handles
