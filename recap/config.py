# config.py – Settings loaded through pydantic-settings

from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    # — Riot API —
    RIOT_API_KEY: str = ""
    DEFAULT_REGION: str = "na1"   # platform route used when none is given

    # — Database —
    DB_URL: Optional[str] = None  # unset => cache disabled, every read is a miss

    # — Logging —
    LOG_LEVEL: str = "INFO"

    # — Upstream retry / throttle —
    RIOT_MAX_RETRIES: int = 3          # retries after the first attempt
    RIOT_BACKOFF_BASE: float = 1.0     # seconds, doubled per attempt
    RIOT_REQUEST_TIMEOUT: float = 10.0
    RIOT_QUOTA_MAX: int = 100          # dev key: 100 requests / 120 s
    RIOT_QUOTA_WINDOW: float = 120.0

    # — Request coordination —
    DEDUP_WINDOW_SECONDS: float = 30.0
    MAX_MATCH_FETCH: int = 100         # upper bound on match IDs per range fetch

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

settings = Settings()
