# recap/services/aggregator.py
# ============================================================================
# Year-in-review statistics from a list of TFT match payloads
# Pure function: no I/O, no cache
# ============================================================================

from __future__ import annotations
from collections import Counter, defaultdict
from typing import Any, Callable, Dict, Iterable, List, Optional

TOP_N = 5
RANKED_QUEUE = "RANKED_TFT"
UNRANKED = {"tier": "UNRANKED", "division": "", "lp": 0}


def _unit_name(character_id: str) -> str:
    # "TFT13_Jinx" -> "Jinx"
    return character_id.split("_")[-1] or character_id


def _favorites(placements: Dict[str, List[int]], id_field: str, count_field: str,
               name: Optional[Callable[[str], str]] = None) -> List[Dict[str, Any]]:
    """Top-N entries by play count with their average placement."""
    rows = []
    for ident, places in placements.items():
        row = {id_field: ident}
        if name is not None:
            row["name"] = name(ident)
        row[count_field] = len(places)
        row["averagePlacement"] = sum(places) / len(places)
        rows.append(row)
    rows.sort(key=lambda r: r[count_field], reverse=True)
    return rows[:TOP_N]


def economy_style(avg_gold_left: float) -> str:
    if avg_gold_left > 15:
        return "Greedy"
    if avg_gold_left > 5:
        return "Balanced"
    return "Aggressive"


def aggregate_yearly_stats(matches: Iterable[Dict[str, Any]], puuid: str, summoner_name: str) -> Dict[str, Any]:
    """
    Reduce ``matches`` to the statistics shown on the recap pages.

    Matches where ``puuid`` is not a participant are ignored.
    """
    units: Dict[str, List[int]] = defaultdict(list)
    traits: Dict[str, List[int]] = defaultdict(list)
    items: Dict[str, List[int]] = defaultdict(list)
    sets: Counter = Counter()

    total_games = total_time = top4 = wins = placement_sum = gold_left = 0

    for match in matches:
        info = match.get("info", {})
        me = next((p for p in info.get("participants", []) if p.get("puuid") == puuid), None)
        if me is None:
            continue

        place = me["placement"]
        total_games += 1
        total_time += info.get("game_length", 0)
        placement_sum += place
        top4 += place <= 4
        wins += place == 1
        gold_left += me.get("gold_left", 0)
        sets[info.get("tft_set_number", 0)] += 1

        for unit in me.get("units", []):
            units[unit["character_id"]].append(place)
            for item_name in unit.get("itemNames", []):
                items[item_name].append(place)
        for trait in me.get("traits", []):
            if trait.get("style", 0) > 0:          # only active traits
                traits[trait["name"]].append(place)

    games = total_games or 1   # avoid /0, every ratio is 0 anyway

    return {
        "summoner": {"name": summoner_name, "level": 0, "profileIconId": 0},
        "overview": {
            "totalGames": total_games,
            "totalHoursPlayed": round(total_time / 3600),
            "averagePlacement": round(placement_sum / games, 1),
            "top4Rate": round(top4 / games * 100),
            "winRate": round(wins / games * 100),
        },
        "favoriteComps": [],
        "rankedPerformance": {
            "currentRank": dict(UNRANKED),
            "peakRank": dict(UNRANKED),
            "progression": [],
            "totalWins": wins,
            "totalLosses": total_games - wins,
        },
        "playstyle": {
            "averageGameLength": round(total_time / games / 60),
            "mostPlayedSet": sets.most_common(1)[0][0] if sets else 0,
            "favoriteUnits": _favorites(units, "unitId", "timesPlayed", name=_unit_name),
            "favoriteTraits": _favorites(traits, "traitId", "timesPlayed", name=str),
            "favoriteItems": _favorites(items, "itemName", "timesUsed"),
            "economyStyle": economy_style(gold_left / games),
        },
        "achievements": [],
    }


def ranked_entry(entries: Iterable[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """The RANKED_TFT league entry, if the player has one."""
    return next((e for e in entries if e.get("queueType") == RANKED_QUEUE), None)


def apply_ranked(stats: Dict[str, Any], entries: Iterable[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Fill current rank from league entries.

    No rank history is kept, so the peak rank is the current rank.
    """
    entry = ranked_entry(entries)
    if entry is None:
        return stats
    rank = {"tier": entry.get("tier", "UNRANKED"), "division": entry.get("rank", ""),
            "lp": entry.get("leaguePoints", 0)}
    perf = stats["rankedPerformance"]
    perf["currentRank"] = rank
    perf["peakRank"] = dict(rank)
    return stats
