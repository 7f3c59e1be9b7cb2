"""Shared fixtures: in-memory SQLite store, controllable clock, fake Riot client."""

import datetime as dt
from unittest.mock import AsyncMock, MagicMock

import pytest

from recap.cache.gateway import CacheGateway
from recap.database import create_session_factory
from recap.db.store import ResourceStore
from recap.riot.client import RiotClient
from recap.services.coordinator import InFlightCoordinator
from recap.services.resolver import ResourceResolver


class FakeClock:
    """Naive-UTC clock that only moves when told to."""

    def __init__(self, start: dt.datetime = dt.datetime(2025, 6, 1, 12, 0, 0)):
        self.now = start

    def __call__(self) -> dt.datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += dt.timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def session_factory():
    return create_session_factory("sqlite://")


@pytest.fixture
def store(session_factory, clock):
    return ResourceStore(session_factory, clock=clock)


@pytest.fixture
def gateway(store, clock):
    return CacheGateway(store, clock=clock)


@pytest.fixture
def fake_client():
    client = MagicMock(spec=RiotClient)
    client.get_account_by_riot_id = AsyncMock()
    client.get_summoner_by_puuid = AsyncMock()
    client.get_match_ids = AsyncMock()
    client.get_match_by_id = AsyncMock()
    client.get_league_entries = AsyncMock()
    client.close = AsyncMock()
    return client


@pytest.fixture
def resolver(fake_client, gateway):
    return ResourceResolver(fake_client, gateway, InFlightCoordinator(), max_match_fetch=100)
