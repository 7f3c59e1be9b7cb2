# services/year_review.py – the "year in review" query behind /api/riot/stats

from __future__ import annotations

import datetime as dt
import logging
from typing import Any, Dict, Tuple

from recap.exceptions import NoMatchesFound
from recap.services.aggregator import aggregate_yearly_stats, apply_ranked
from recap.services.resolver import ResourceResolver

log = logging.getLogger(__name__)


def year_bounds(year: int) -> Tuple[dt.datetime, dt.datetime]:
    """Jan 1 00:00:00 → Dec 31 23:59:59 of ``year``, UTC."""
    start = dt.datetime(year, 1, 1, tzinfo=dt.timezone.utc)
    end = dt.datetime(year, 12, 31, 23, 59, 59, tzinfo=dt.timezone.utc)
    return start, end


async def build_year_review(resolver: ResourceResolver, name: str, region: str, year: int) -> Dict[str, Any]:
    """
    Aggregated statistics for ``name`` in ``region`` over ``year``.

    Raises:
        PlayerNotFound: unknown Riot ID
        NoMatchesFound: no match played that year
        UpstreamError: any Riot API failure, unchanged
    """
    summoner = await resolver.get_summoner_by_name(region, name)
    start, end = year_bounds(year)

    matches = await resolver.get_matches_in_date_range(region, summoner["puuid"], start, end)
    if not matches:
        raise NoMatchesFound(f"No matches found for {summoner['riotId']} in {year}")

    stats = aggregate_yearly_stats(matches, summoner["puuid"], summoner["riotId"])
    stats["summoner"]["level"] = summoner.get("summonerLevel", 0)
    stats["summoner"]["profileIconId"] = summoner.get("profileIconId", 0)

    if summoner.get("id"):
        entries = await resolver.get_ranked_standing(region, summoner["id"])
        apply_ranked(stats, entries)

    log.info(f"Year review built for {summoner['riotId']} ({year}): {len(matches)} games")
    return stats
