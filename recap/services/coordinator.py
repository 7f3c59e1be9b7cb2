# services/coordinator.py – in-flight request deduplication
# ============================================================================
# One producer per key at a time; every concurrent caller awaits the same task
# and sees the same result or the same exception.
# ============================================================================

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict

log = logging.getLogger(__name__)


@dataclass
class PendingFuture:
    key: str
    task: asyncio.Task
    created_at: float


class InFlightCoordinator:
    """
    Registry of in-flight fetches keyed by a cache key string.

    The lookup and the registration in ``dedupe`` run with no ``await``
    between them, so on a single event loop two callers can never both
    decide to start the producer for the same key.
    """

    def __init__(self, window: float = 30.0, clock: Callable[[], float] = time.monotonic):
        self._window = window
        self._clock = clock
        self._pending: Dict[str, PendingFuture] = {}

    async def dedupe(self, key: str, producer: Callable[[], Awaitable[Any]]) -> Any:
        now = self._clock()
        pending = self._pending.get(key)

        if pending is not None and not pending.task.done():
            if now - pending.created_at < self._window:
                log.debug(f"[Dedup] Joining in-flight request {key}")
                return await asyncio.shield(pending.task)
            log.warning(
                f"[Dedup] In-flight request {key} older than {self._window:.0f}s, starting a new one"
            )

        task = asyncio.ensure_future(producer())
        entry = PendingFuture(key=key, task=task, created_at=now)
        self._pending[key] = entry
        task.add_done_callback(lambda t: self._retire(entry))

        # shield: a cancelled caller must not cancel the shared fetch
        return await asyncio.shield(task)

    def _retire(self, entry: PendingFuture) -> None:
        # a stale entry may already have been replaced by a newer one
        if self._pending.get(entry.key) is entry:
            del self._pending[entry.key]
        if not entry.task.cancelled():
            # mark the exception as retrieved even if every waiter went away
            entry.task.exception()

    def pending_count(self) -> int:
        return len(self._pending)

    def is_pending(self, key: str) -> bool:
        return key in self._pending
