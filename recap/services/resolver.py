# services/resolver.py – cache-aware access to Riot resources
# ============================================================================
# Every public operation follows the same path:
#   coordinator.dedupe(key) → gateway read → (miss) client call → gateway write
# ============================================================================

from __future__ import annotations

import asyncio
import datetime as dt
import logging
from typing import Any, Dict, List, Optional, Tuple

from recap.cache.gateway import CacheGateway
from recap.cache.keys import CacheKey
from recap.exceptions import NotFound, PlayerNotFound
from recap.riot.client import RiotClient
from recap.services.coordinator import InFlightCoordinator

log = logging.getLogger(__name__)

# Tag assumed when a player types a bare game name
DEFAULT_TAGS = {
    "na1": "NA1", "br1": "BR1", "la1": "LA1", "la2": "LA2",
    "euw1": "EUW", "eun1": "EUNE", "tr1": "TR1", "ru": "RU",
    "kr": "KR", "jp1": "JP1", "oc1": "OCE",
}


def parse_riot_id(region: str, name: str) -> Tuple[str, str]:
    """
    ``"Name#TAG"`` → (game_name, tag_line), defaulting the tag per region.

    Only the segment right after the first ``#`` is the tag: ``"a#b#c"`` → (a, b).
    """
    if "#" in name:
        parts = name.split("#")
        return parts[0].strip(), parts[1].strip()
    return name.strip(), DEFAULT_TAGS.get(region.lower(), "NA1")


def match_datetime(match: Dict[str, Any]) -> dt.datetime:
    """Start time of a match as an aware UTC datetime."""
    millis = match["info"]["game_datetime"]
    return dt.datetime.fromtimestamp(millis / 1000, tz=dt.timezone.utc)


def _as_utc(value: dt.datetime) -> dt.datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=dt.timezone.utc)
    return value


class ResourceResolver:
    """Public entry point for Riot data: resolves from cache or upstream."""

    def __init__(
        self,
        client: RiotClient,
        gateway: CacheGateway,
        coordinator: InFlightCoordinator,
        max_match_fetch: int = 100,
    ):
        self.client = client
        self.gateway = gateway
        self.coordinator = coordinator
        self.max_match_fetch = max_match_fetch

    # ------------------------------------------------------------- accounts
    async def resolve_account(self, region: str, game_name: str, tag_line: str) -> Dict[str, Any]:
        key = CacheKey.for_account(region, game_name, tag_line)

        async def produce() -> Dict[str, Any]:
            cached = self.gateway.read_account(key)
            if cached.hit:
                return cached.payload
            try:
                account = await self.client.get_account_by_riot_id(region, game_name, tag_line)
            except NotFound as e:
                raise PlayerNotFound(f"No account for {game_name}#{tag_line} in {region}") from e
            self.gateway.write_account(key, account)
            return account

        return await self.coordinator.dedupe(str(key), produce)

    async def get_profile(self, region: str, puuid: str) -> Dict[str, Any]:
        key = CacheKey.for_profile(region, puuid)

        async def produce() -> Dict[str, Any]:
            cached = self.gateway.read_profile(key)
            if cached.hit:
                return cached.payload
            try:
                profile = await self.client.get_summoner_by_puuid(region, puuid)
            except NotFound as e:
                raise PlayerNotFound(f"No summoner for {puuid} in {region}") from e
            self.gateway.write_profile(key, profile)
            return profile

        return await self.coordinator.dedupe(str(key), produce)

    async def get_summoner_by_riot_id(self, region: str, game_name: str, tag_line: str) -> Dict[str, Any]:
        """Account lookup followed by the profile, merged into one dict."""
        account = await self.resolve_account(region, game_name, tag_line)
        profile = await self.get_profile(region, account["puuid"])

        name = account.get("gameName") or game_name
        tag = account.get("tagLine") or tag_line
        return {**profile, "gameName": name, "tagLine": tag, "riotId": f"{name}#{tag}"}

    async def get_summoner_by_name(self, region: str, name: str) -> Dict[str, Any]:
        game_name, tag_line = parse_riot_id(region, name)
        log.debug(f'Parsed summoner name "{name}" -> "{game_name}" / "{tag_line}"')
        return await self.get_summoner_by_riot_id(region, game_name, tag_line)

    # -------------------------------------------------------------- matches
    async def list_match_ids(self, region: str, puuid: str, count: int = 20) -> List[str]:
        key = CacheKey.for_match_ids(region, puuid)

        async def produce() -> List[str]:
            cached = self.gateway.read_match_ids(key, count)
            if cached.hit:
                return cached.payload
            match_ids = await self.client.get_match_ids(region, puuid, count)
            self.gateway.write_match_ids(key, match_ids)
            return match_ids

        # a smaller request must not join a larger one (or the reverse)
        return await self.coordinator.dedupe(f"{key}?count={count}", produce)

    async def get_match(self, region: str, match_id: str) -> Dict[str, Any]:
        key = CacheKey.for_match(region, match_id)

        async def produce() -> Dict[str, Any]:
            cached = self.gateway.read_match(key)
            if cached.hit:
                return cached.payload
            match = await self.client.get_match_by_id(region, match_id)
            self.gateway.write_match(key, match)
            return match

        return await self.coordinator.dedupe(str(key), produce)

    async def get_matches(self, region: str, puuid: str, count: int = 20) -> List[Dict[str, Any]]:
        """The ``count`` most recent matches; fails as a whole if any fetch fails."""
        match_ids = await self.list_match_ids(region, puuid, count)
        return list(await asyncio.gather(*(self.get_match(region, m) for m in match_ids)))

    async def get_matches_in_date_range(
        self,
        region: str,
        puuid: str,
        start: dt.datetime,
        end: dt.datetime,
    ) -> List[Dict[str, Any]]:
        """
        Matches played between ``start`` and ``end`` (inclusive).

        Walks at most ``max_match_fetch`` IDs in list order and stops at the
        first match older than ``start``. This relies on Riot returning match
        IDs newest-first; an out-of-order pair is logged when seen.
        """
        start, end = _as_utc(start), _as_utc(end)
        match_ids = await self.list_match_ids(region, puuid, self.max_match_fetch)

        matches: List[Dict[str, Any]] = []
        previous: Optional[dt.datetime] = None
        for match_id in match_ids:
            match = await self.get_match(region, match_id)
            played_at = match_datetime(match)

            if previous is not None and played_at > previous:
                log.warning(f"Match IDs for {puuid} are not newest-first ({match_id})")
            previous = played_at

            if start <= played_at <= end:
                matches.append(match)
            elif played_at < start:
                break

        log.info(f"{len(matches)} matches in range for {puuid} ({region})")
        return matches

    # --------------------------------------------------------------- ranked
    async def get_ranked_standing(self, region: str, summoner_id: str) -> List[Dict[str, Any]]:
        key = CacheKey.for_ranked(region, summoner_id)

        async def produce() -> List[Dict[str, Any]]:
            cached = self.gateway.read_ranked(key)
            if cached.hit:
                return cached.payload
            entries = await self.client.get_league_entries(region, summoner_id)
            self.gateway.write_ranked(key, entries)
            return entries

        return await self.coordinator.dedupe(str(key), produce)
