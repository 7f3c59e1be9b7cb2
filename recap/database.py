# database.py – SQLAlchemy setup for the Riot response cache

from pathlib import Path
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from recap.logging_config import get_logger

log = get_logger(__name__)

# Base for the ORM models
Base = declarative_base()


def create_db_engine(db_url: str) -> Engine:
    """Build the engine, creating the parent folder of a SQLite file if needed."""
    if db_url.startswith("sqlite:///") and db_url != "sqlite:///:memory:":
        db_file = db_url.replace("sqlite:///", "")
        Path(db_file).parent.mkdir(parents=True, exist_ok=True)

    if db_url in ("sqlite://", "sqlite:///:memory:"):
        # one shared connection, otherwise every session sees an empty database
        return create_engine(
            db_url,
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(db_url, future=True, pool_pre_ping=True)


def create_session_factory(db_url: Optional[str]) -> Optional[sessionmaker]:
    """
    Return a session factory bound to ``db_url``, or None when no database
    is configured. Tables are created on the way.

    A database that cannot be opened also yields None: the service then
    runs uncached instead of failing at startup.
    """
    if not db_url:
        return None

    try:
        engine = create_db_engine(db_url)
        init_db(engine)
    except (SQLAlchemyError, OSError) as e:
        log.error(f"Cache database unavailable, running uncached: {e}")
        return None
    return sessionmaker(
        bind=engine,
        autoflush=False,
        autocommit=False,
        future=True,
        expire_on_commit=False,
    )


def init_db(engine: Engine) -> None:
    """Create the cache tables if they do not exist yet."""
    # local import avoids the import cycle with the models module
    from recap.db import riot_cache  # noqa: F401
    Base.metadata.create_all(bind=engine)
