"""Payload builders shared by the tests."""

import datetime as dt


def make_match(match_id: str, played_at: dt.datetime, puuid: str = "puuid-1", placement: int = 4) -> dict:
    """Minimal TFT match payload."""
    return {
        "metadata": {"match_id": match_id, "participants": [puuid]},
        "info": {
            "game_datetime": int(played_at.replace(tzinfo=dt.timezone.utc).timestamp() * 1000),
            "game_length": 1800,
            "tft_set_number": 13,
            "participants": [{
                "puuid": puuid,
                "placement": placement,
                "gold_left": 10,
                "traits": [{"name": "Set13_Rebel", "style": 1}],
                "units": [{"character_id": "TFT13_Jinx", "itemNames": ["TFT_Item_InfinityEdge"]}],
            }],
        },
    }
