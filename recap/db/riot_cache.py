# riot_cache.py – Riot API response cache tables (SQLAlchemy)
#
# Timestamps are naive UTC and always written by ResourceStore.

from sqlalchemy import Column, String, DateTime, JSON, Index

from recap.database import Base


class AccountCache(Base):
    """account-v1 by-riot-id. Key is the case-folded Riot ID."""
    __tablename__ = "riot_accounts"
    game_name  = Column(String, primary_key=True)
    tag_line   = Column(String, primary_key=True)
    region     = Column(String, primary_key=True)
    puuid      = Column(String, nullable=False, index=True)
    json       = Column(JSON)                       # raw response
    updated_at = Column(DateTime, nullable=False)


class ProfileCache(Base):
    """tft summoner-v1 by-puuid."""
    __tablename__ = "summoners"
    puuid       = Column(String, primary_key=True)
    region      = Column(String, primary_key=True)
    summoner_id = Column(String, nullable=True)
    json        = Column(JSON)
    updated_at  = Column(DateTime, nullable=False)


class MatchIdListCache(Base):
    """Newest-first list of match IDs for one player."""
    __tablename__ = "match_id_lists"
    puuid      = Column(String, primary_key=True)
    region     = Column(String, primary_key=True)
    match_ids  = Column(JSON, nullable=False)
    created_at = Column(DateTime, nullable=False, index=True)


class MatchCache(Base):
    """Raw tft match-v1 payload. Written once, never updated."""
    __tablename__ = "matches"
    match_id      = Column(String, primary_key=True)
    region        = Column(String, nullable=False)
    json          = Column(JSON, nullable=False)
    game_datetime = Column(DateTime, nullable=True)
    created_at    = Column(DateTime, nullable=False)

    __table_args__ = (Index("ix_matches_game_datetime", "game_datetime"),)


class RankedCache(Base):
    """tft league-v1 entries for one summoner (every queue in one row)."""
    __tablename__ = "league_entries"
    summoner_id = Column(String, primary_key=True)
    region      = Column(String, primary_key=True)
    json        = Column(JSON)
    updated_at  = Column(DateTime, nullable=False)
