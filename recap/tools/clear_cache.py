#!/usr/bin/env python3
"""
tools/clear_cache.py
Administrative maintenance of the Riot response cache.
  --all            empty every cache table
  --table TYPE     empty one table (account, profile, match_ids, match, ranked)
  --cleanup        drop match-ID lists older than one hour
"""
import argparse
import datetime as dt
import sys
from typing import List, Optional

from recap.cache.policy import ResourceType
from recap.config import settings
from recap.database import create_session_factory
from recap.db.store import ResourceStore
from recap.logging_config import setup_logging


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Clear the Riot response cache")
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument("--all", action="store_true", help="empty every cache table")
    group.add_argument("--table", choices=[rt.value for rt in ResourceType],
                       help="empty a single cache table")
    group.add_argument("--cleanup", action="store_true",
                       help="drop match-ID lists older than --max-age-minutes")
    parser.add_argument("--max-age-minutes", type=int, default=60)
    parser.add_argument("--db-url", default=settings.DB_URL)
    return parser.parse_args(argv)


def run(args: argparse.Namespace, store: Optional[ResourceStore] = None) -> int:
    store = store or ResourceStore(create_session_factory(args.db_url))
    if not store.configured:
        print("⛔  No database configured (DB_URL).")
        return 1

    if args.cleanup:
        removed = store.cleanup_match_id_lists(dt.timedelta(minutes=args.max_age_minutes))
        print(f"✓ Removed {removed} expired match ID lists")
    elif args.table:
        removed = store.purge(ResourceType(args.table))
        print(f"✓ Cleared {removed} entries from {args.table}")
    else:
        removed = store.purge()
        print(f"✅ All caches cleared ({removed} entries)")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    setup_logging(settings.LOG_LEVEL)
    return run(parse_args(argv))


if __name__ == "__main__":
    sys.exit(main())
