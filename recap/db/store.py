# db/store.py – persistent store behind the cache gateway
#
# Storage problems never reach callers: every public method logs and
# degrades to "miss" / "nothing written".

from __future__ import annotations

import datetime as dt
import logging
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, Optional, Type

from sqlalchemy import delete, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from recap.cache.keys import CacheEntry, CacheKey
from recap.cache.policy import ResourceType, is_write_once, utcnow
from recap.db.riot_cache import (
    AccountCache, MatchCache, MatchIdListCache, ProfileCache, RankedCache,
)
from recap.exceptions import CacheIOError

log = logging.getLogger(__name__)

MODELS: Dict[ResourceType, Type] = {
    ResourceType.ACCOUNT:   AccountCache,
    ResourceType.PROFILE:   ProfileCache,
    ResourceType.MATCH_IDS: MatchIdListCache,
    ResourceType.MATCH:     MatchCache,
    ResourceType.RANKED:    RankedCache,
}


def _primary_key(key: CacheKey) -> Dict[str, str]:
    rt, nk = key.resource_type, key.natural_key
    if rt is ResourceType.ACCOUNT:
        return {"game_name": nk[0], "tag_line": nk[1], "region": key.region}
    if rt in (ResourceType.PROFILE, ResourceType.MATCH_IDS):
        return {"puuid": nk[0], "region": key.region}
    if rt is ResourceType.MATCH:
        # match IDs already carry their platform prefix (NA1_…)
        return {"match_id": nk[0]}
    return {"summoner_id": nk[0], "region": key.region}


def _game_datetime(payload: Any) -> Optional[dt.datetime]:
    try:
        millis = payload["info"]["game_datetime"]
    except (KeyError, TypeError):
        return None
    return dt.datetime.fromtimestamp(millis / 1000, tz=dt.timezone.utc).replace(tzinfo=None)


def _columns(key: CacheKey, payload: Any, now: dt.datetime) -> Dict[str, Any]:
    """Non-key column values for ``payload`` (timestamps included)."""
    rt = key.resource_type
    if rt is ResourceType.ACCOUNT:
        return {"puuid": payload.get("puuid", ""), "json": payload, "updated_at": now}
    if rt is ResourceType.PROFILE:
        return {"summoner_id": payload.get("id"), "json": payload, "updated_at": now}
    if rt is ResourceType.MATCH_IDS:
        return {"match_ids": list(payload), "created_at": now}
    if rt is ResourceType.MATCH:
        return {"region": key.region, "json": payload,
                "game_datetime": _game_datetime(payload), "created_at": now}
    return {"json": payload, "updated_at": now}


def _row_payload(rt: ResourceType, row: Any) -> Any:
    return row.match_ids if rt is ResourceType.MATCH_IDS else row.json


def _row_stored_at(rt: ResourceType, row: Any) -> dt.datetime:
    if rt in (ResourceType.MATCH_IDS, ResourceType.MATCH):
        return row.created_at
    return row.updated_at


class ResourceStore:
    """
    Key/value view over the cache tables.

    Built with ``session_factory=None`` the store is "not configured":
    reads always miss and writes do nothing, so the app keeps working uncached.
    """

    def __init__(self, session_factory: Optional[sessionmaker],
                 clock: Callable[[], dt.datetime] = utcnow):
        self._session_factory = session_factory
        self._clock = clock
        if session_factory is None:
            log.warning("[Store] No database configured - caching disabled")

    @property
    def configured(self) -> bool:
        return self._session_factory is not None

    @contextmanager
    def _session(self) -> Iterator[Session]:
        with self._session_factory() as session:
            try:
                yield session
            except SQLAlchemyError as e:
                session.rollback()
                raise CacheIOError(str(e)) from e

    # ------------------------------------------------------------------ read
    def get(self, key: CacheKey) -> Optional[CacheEntry]:
        if not self.configured:
            return None
        model = MODELS[key.resource_type]
        try:
            with self._session() as session:
                row = session.get(model, _primary_key(key))
                if row is None:
                    return None
                return CacheEntry(
                    key=key,
                    payload=_row_payload(key.resource_type, row),
                    stored_at=_row_stored_at(key.resource_type, row),
                )
        except CacheIOError as e:
            log.error(f"[Store] Error reading {key}: {e}")
            return None

    # ----------------------------------------------------------------- write
    def put(self, key: CacheKey, payload: Any) -> bool:
        """
        Store ``payload`` under ``key``.

        Upsert for mutable types; first writer wins for write-once types.
        Returns True when a row was inserted or updated.
        """
        if not self.configured:
            return False
        model = MODELS[key.resource_type]
        pk = _primary_key(key)
        values = _columns(key, payload, self._clock())
        try:
            with self._session() as session:
                row = session.get(model, pk)
                if row is not None:
                    if is_write_once(key.resource_type):
                        return False
                    for column, value in values.items():
                        setattr(row, column, value)
                else:
                    session.add(model(**pk, **values))
                try:
                    session.commit()
                except IntegrityError:
                    # lost an insert race with another writer
                    session.rollback()
                    if is_write_once(key.resource_type):
                        return False
                    raise
                return True
        except CacheIOError as e:
            log.error(f"[Store] Error storing {key}: {e}")
            return False

    # ----------------------------------------------------------------- admin
    def purge(self, resource_type: Optional[ResourceType] = None) -> int:
        """Delete every row of one resource type (or of all of them)."""
        if not self.configured:
            return 0
        types = [resource_type] if resource_type else list(MODELS)
        removed = 0
        try:
            with self._session() as session:
                for rt in types:
                    result = session.execute(delete(MODELS[rt]))
                    removed += result.rowcount or 0
                session.commit()
        except CacheIOError as e:
            log.error(f"[Store] Error purging {types}: {e}")
            return 0
        log.info(f"[Store] Purged {removed} rows from {[rt.value for rt in types]}")
        return removed

    def cleanup_match_id_lists(self, max_age: dt.timedelta = dt.timedelta(hours=1)) -> int:
        """Drop match-ID lists created more than ``max_age`` ago."""
        if not self.configured:
            return 0
        cutoff = self._clock() - max_age
        try:
            with self._session() as session:
                result = session.execute(
                    delete(MatchIdListCache).where(MatchIdListCache.created_at < cutoff)
                )
                session.commit()
        except CacheIOError as e:
            log.error(f"[Store] Error during cleanup: {e}")
            return 0
        removed = result.rowcount or 0
        if removed:
            log.info(f"[Store] Cleanup: removed {removed} expired match ID lists")
        return removed

    def ping(self) -> bool:
        if not self.configured:
            return False
        try:
            with self._session() as session:
                session.execute(text("SELECT 1"))
            return True
        except CacheIOError as e:
            log.warning(f"[Store] Ping failed: {e}")
            return False
