# cache/policy.py – per-resource expiry rules
#
#   account   7 d   upsert       (Riot ID -> PUUID almost never changes)
#   profile  24 h   upsert
#   match_ids 1 h   upsert       (+ minimum count check in the gateway)
#   match     ∞     insert-once  (finished games are immutable)
#   ranked    1 h   upsert

from __future__ import annotations

import datetime as dt
import enum
from types import MappingProxyType
from typing import Mapping, Optional


class ResourceType(str, enum.Enum):
    ACCOUNT = "account"
    PROFILE = "profile"
    MATCH_IDS = "match_ids"
    MATCH = "match"
    RANKED = "ranked"


TTL_POLICY: Mapping[ResourceType, Optional[dt.timedelta]] = MappingProxyType({
    ResourceType.ACCOUNT:   dt.timedelta(days=7),
    ResourceType.PROFILE:   dt.timedelta(hours=24),
    ResourceType.MATCH_IDS: dt.timedelta(hours=1),
    ResourceType.MATCH:     None,
    ResourceType.RANKED:    dt.timedelta(hours=1),
})

# Types whose first stored payload is kept forever
WRITE_ONCE = frozenset({ResourceType.MATCH})


def utcnow() -> dt.datetime:
    """Naive UTC now, the form every cache timestamp is stored in."""
    return dt.datetime.now(dt.timezone.utc).replace(tzinfo=None)


def ttl_for(resource_type: ResourceType) -> Optional[dt.timedelta]:
    """TTL of a resource type, None meaning it never expires."""
    return TTL_POLICY[resource_type]


def is_write_once(resource_type: ResourceType) -> bool:
    return resource_type in WRITE_ONCE


def is_valid(resource_type: ResourceType, stored_at: dt.datetime, now: dt.datetime) -> bool:
    """True while ``now - stored_at`` is strictly below the type's TTL."""
    ttl = TTL_POLICY[resource_type]
    if ttl is None:
        return True
    return now - stored_at < ttl
