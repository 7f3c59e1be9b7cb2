"""Admin CLI for purging the cache."""

import pytest

from recap.cache.keys import CacheKey
from recap.db.store import ResourceStore
from recap.tools.clear_cache import parse_args, run


def _fill(store):
    store.put(CacheKey.for_profile("na1", "a"), {"id": "1"})
    store.put(CacheKey.for_match_ids("na1", "a"), ["NA1_1"])
    store.put(CacheKey.for_ranked("na1", "s"), [])


class TestClearCache:

    def test_all(self, store, capsys):
        _fill(store)
        assert run(parse_args(["--all"]), store) == 0
        assert "3 entries" in capsys.readouterr().out
        assert store.get(CacheKey.for_profile("na1", "a")) is None

    def test_single_table(self, store):
        _fill(store)
        run(parse_args(["--table", "profile"]), store)

        assert store.get(CacheKey.for_profile("na1", "a")) is None
        assert store.get(CacheKey.for_ranked("na1", "s")) is not None

    def test_cleanup(self, store, clock):
        _fill(store)
        clock.advance(minutes=61)
        run(parse_args(["--cleanup"]), store)

        assert store.get(CacheKey.for_match_ids("na1", "a")) is None
        assert store.get(CacheKey.for_profile("na1", "a")) is not None

    def test_requires_database(self):
        assert run(parse_args(["--all"]), ResourceStore(None)) == 1

    def test_options_are_exclusive(self):
        with pytest.raises(SystemExit):
            parse_args(["--all", "--cleanup"])
