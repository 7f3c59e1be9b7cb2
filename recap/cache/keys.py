# cache/keys.py – composite cache keys

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Any, Tuple

from recap.cache.policy import ResourceType


@dataclass(frozen=True)
class CacheKey:
    """(resource type, region, natural key) – identifies one cached item."""
    resource_type: ResourceType
    region: str
    natural_key: Tuple[str, ...]

    @classmethod
    def for_account(cls, region: str, game_name: str, tag_line: str) -> "CacheKey":
        # Riot IDs are case-insensitive
        return cls(ResourceType.ACCOUNT, region.lower(),
                   (game_name.strip().casefold(), tag_line.strip().casefold()))

    @classmethod
    def for_profile(cls, region: str, puuid: str) -> "CacheKey":
        return cls(ResourceType.PROFILE, region.lower(), (puuid,))

    @classmethod
    def for_match_ids(cls, region: str, puuid: str) -> "CacheKey":
        return cls(ResourceType.MATCH_IDS, region.lower(), (puuid,))

    @classmethod
    def for_match(cls, region: str, match_id: str) -> "CacheKey":
        return cls(ResourceType.MATCH, region.lower(), (match_id,))

    @classmethod
    def for_ranked(cls, region: str, summoner_id: str) -> "CacheKey":
        return cls(ResourceType.RANKED, region.lower(), (summoner_id,))

    def __str__(self) -> str:
        return f"{self.resource_type.value}:{self.region}:{'/'.join(self.natural_key)}"


@dataclass(frozen=True)
class CacheEntry:
    """A stored payload. ``stored_at`` always comes from the store."""
    key: CacheKey
    payload: Any
    stored_at: dt.datetime
