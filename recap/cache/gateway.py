# cache/gateway.py – typed read/write access to the resource store
#
# The only component allowed to write cache entries. Every read is checked
# against the TTL table and logged as Hit / Miss / Expired.

from __future__ import annotations

import datetime as dt
import enum
import logging
from collections import Counter
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from recap.cache.keys import CacheKey
from recap.cache.policy import ResourceType, is_valid, utcnow
from recap.db.store import ResourceStore

log = logging.getLogger(__name__)


class CacheOutcome(str, enum.Enum):
    HIT = "hit"
    MISS = "miss"
    EXPIRED = "expired"
    INSUFFICIENT = "insufficient"   # match-ID list shorter than requested


@dataclass(frozen=True)
class CacheLookup:
    outcome: CacheOutcome
    payload: Any = None
    age: Optional[dt.timedelta] = None

    @property
    def hit(self) -> bool:
        return self.outcome is CacheOutcome.HIT


def _expect(key: CacheKey, resource_type: ResourceType) -> None:
    if key.resource_type is not resource_type:
        raise ValueError(f"Expected a {resource_type.value} key, got {key}")


def _fmt_age(age: dt.timedelta) -> str:
    seconds = int(age.total_seconds())
    if seconds < 120:
        return f"{seconds}s"
    if seconds < 7200:
        return f"{seconds // 60}m"
    return f"{seconds // 3600}h"


class CacheGateway:
    """Per-resource read/write pairs on top of a ResourceStore."""

    def __init__(self, store: ResourceStore, clock: Callable[[], dt.datetime] = utcnow):
        self.store = store
        self._clock = clock
        self._counters: Counter = Counter()

    # ------------------------------------------------------------- internals
    def _lookup(self, key: CacheKey) -> CacheLookup:
        entry = self.store.get(key)
        if entry is None:
            return CacheLookup(CacheOutcome.MISS)

        now = self._clock()
        age = now - entry.stored_at
        if not is_valid(key.resource_type, entry.stored_at, now):
            return CacheLookup(CacheOutcome.EXPIRED, age=age)
        return CacheLookup(CacheOutcome.HIT, entry.payload, age)

    def _report(self, key: CacheKey, lookup: CacheLookup, detail: str = "") -> CacheLookup:
        self._record(lookup.outcome.value)
        suffix = f" (age: {_fmt_age(lookup.age)})" if lookup.age is not None else ""
        if lookup.outcome is CacheOutcome.MISS:
            log.debug(f"[Cache] Miss: {key}")
        else:
            log.info(f"[Cache] {lookup.outcome.value.capitalize()}: {key}{suffix}{detail}")
        return lookup

    def _read(self, key: CacheKey) -> CacheLookup:
        return self._report(key, self._lookup(key))

    def _write(self, key: CacheKey, payload: Any) -> bool:
        """Best-effort side write; never raises."""
        if payload is None:
            return False
        try:
            written = self.store.put(key, payload)
        except Exception:
            # the store already absorbs storage errors, this covers bad payloads
            log.exception(f"[Cache] Error storing {key}")
            return False
        if written:
            self._record("writes")
            log.debug(f"[Cache] Stored: {key}")
        return written

    def _record(self, name: str) -> None:
        self._counters[name] += 1

    def stats(self) -> Dict[str, int]:
        """Counters since start, exposed on /metrics."""
        return {
            "hits": self._counters["hit"],
            "misses": self._counters["miss"] + self._counters["insufficient"],
            "expired": self._counters["expired"],
            "writes": self._counters["writes"],
        }

    # --------------------------------------------------------------- account
    def read_account(self, key: CacheKey) -> CacheLookup:
        _expect(key, ResourceType.ACCOUNT)
        return self._read(key)

    def write_account(self, key: CacheKey, account: Dict[str, Any]) -> bool:
        return self._write(key, account)

    # --------------------------------------------------------------- profile
    def read_profile(self, key: CacheKey) -> CacheLookup:
        _expect(key, ResourceType.PROFILE)
        return self._read(key)

    def write_profile(self, key: CacheKey, profile: Dict[str, Any]) -> bool:
        return self._write(key, profile)

    # ------------------------------------------------------------- match ids
    def read_match_ids(self, key: CacheKey, count: int) -> CacheLookup:
        """
        Hit only when the cached list is fresh AND holds at least ``count``
        IDs; the returned list is truncated to ``count``.
        """
        _expect(key, ResourceType.MATCH_IDS)
        lookup = self._lookup(key)
        if not lookup.hit:
            return self._report(key, lookup)

        match_ids: List[str] = lookup.payload or []
        if len(match_ids) < count:
            return self._report(
                key,
                CacheLookup(CacheOutcome.INSUFFICIENT, age=lookup.age),
                f" {len(match_ids)} < {count}",
            )
        return self._report(key, CacheLookup(CacheOutcome.HIT, match_ids[:count], lookup.age))

    def write_match_ids(self, key: CacheKey, match_ids: List[str]) -> bool:
        # full replacement, never merged with the previous list
        return self._write(key, list(match_ids))

    # ----------------------------------------------------------------- match
    def read_match(self, key: CacheKey) -> CacheLookup:
        _expect(key, ResourceType.MATCH)
        return self._read(key)

    def write_match(self, key: CacheKey, match: Dict[str, Any]) -> bool:
        return self._write(key, match)

    # ---------------------------------------------------------------- ranked
    def read_ranked(self, key: CacheKey) -> CacheLookup:
        _expect(key, ResourceType.RANKED)
        return self._read(key)

    def write_ranked(self, key: CacheKey, entries: List[Dict[str, Any]]) -> bool:
        return self._write(key, entries)
