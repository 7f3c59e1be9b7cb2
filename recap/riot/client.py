# riot/client.py

import asyncio
import logging
from collections import deque
from typing import Any, Dict, List, Optional
from urllib.parse import quote
import time

import aiohttp

from recap.exceptions import (
    InvalidRegion,
    NotFound,
    UpstreamClientError,
    UpstreamRateLimited,
    UpstreamServerError,
    UpstreamTransientNetwork,
)

# Platform route → regional route, used by /account-v1 and /tft/match/v1
REGION_GROUPS = {
    "na1": "americas", "br1": "americas", "la1": "americas", "la2": "americas",
    "euw1": "europe", "eun1": "europe", "tr1": "europe", "ru": "europe",
    "kr": "asia", "jp1": "asia",
    "oc1": "sea",
}

log = logging.getLogger(__name__)


def check_region(region: str) -> str:
    """Normalized platform route; anything outside REGION_GROUPS is rejected."""
    platform = region.lower()
    if platform not in REGION_GROUPS:
        raise InvalidRegion(f"Unknown region: {region!r}")
    return platform


def platform_host(region: str) -> str:
    """Per-region host (summoner, league endpoints)."""
    return f"https://{check_region(region)}.api.riotgames.com"


def regional_host(region: str) -> str:
    """Aggregated-region host (account, match endpoints)."""
    group = REGION_GROUPS[check_region(region)]
    return f"https://{group}.api.riotgames.com"


def compute_backoff(attempt: int, base: float) -> float:
    """Exponential backoff: base, 2*base, 4*base, … for attempt 0, 1, 2, …"""
    return base * (2 ** attempt)


def parse_retry_after(value: Optional[str]) -> Optional[float]:
    """Seconds from a Retry-After header, None if absent or unparseable."""
    if value is None:
        return None
    try:
        seconds = float(value)
    except ValueError:
        return None
    return seconds if seconds >= 0 else None


class RiotClient:
    """Async Riot API client with throttling, retry and error classification."""

    def __init__(
        self,
        api_key: str,
        *,
        max_retries: int = 3,
        backoff_base: float = 1.0,
        timeout: float = 10.0,
        quota_max: int = 100,
        quota_window: float = 120.0,
    ):
        if not api_key:
            log.warning("RIOT_API_KEY is not set, upstream calls will be rejected")
        self.api_key = api_key
        self.max_retries = max_retries
        self.backoff_base = backoff_base
        self._timeout = timeout
        self._session: Optional[aiohttp.ClientSession] = None

        # Sliding window of recent request timestamps
        self._req_times: deque = deque()
        self._quota_window = quota_window
        self._quota_max = quota_max
        self._lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings) -> "RiotClient":
        return cls(
            settings.RIOT_API_KEY,
            max_retries=settings.RIOT_MAX_RETRIES,
            backoff_base=settings.RIOT_BACKOFF_BASE,
            timeout=settings.RIOT_REQUEST_TIMEOUT,
            quota_max=settings.RIOT_QUOTA_MAX,
            quota_window=settings.RIOT_QUOTA_WINDOW,
        )

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers={"X-Riot-Token": self.api_key},
                timeout=aiohttp.ClientTimeout(total=self._timeout)
            )
        return self._session

    async def close(self):
        """Close the aiohttp session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def _throttle(self):
        """Client-side quota so a burst of cache misses does not trip 429s."""
        async with self._lock:
            now = time.monotonic()

            while self._req_times and self._req_times[0] <= now - self._quota_window:
                self._req_times.popleft()

            if len(self._req_times) >= self._quota_max:
                wait = self._quota_window - (now - self._req_times[0])
                log.warning(f"Local quota reached, waiting {wait:.1f}s")
                await asyncio.sleep(wait)

            self._req_times.append(time.monotonic())

    async def _request(self, url: str) -> Any:
        """
        GET ``url`` and return the decoded JSON body.

        429 and transport failures are retried up to ``max_retries`` times.
        A 429 waits for the server's Retry-After when given, otherwise the
        exponential backoff; transport failures always use the backoff.

        Raises:
            UpstreamRateLimited: still rate limited after the last retry
            UpstreamTransientNetwork: still failing at transport level
            NotFound: 404
            UpstreamClientError / UpstreamServerError: any other non-2xx
        """
        attempt = 0
        while True:
            await self._throttle()
            session = await self._get_session()
            try:
                async with session.get(url) as resp:
                    if resp.status == 429:
                        retry_after = parse_retry_after(resp.headers.get("Retry-After"))
                        if attempt >= self.max_retries:
                            raise UpstreamRateLimited(
                                f"Rate limit exceeded after {attempt} retries",
                                retry_after=retry_after, url=url,
                            )
                        delay = retry_after if retry_after is not None else compute_backoff(attempt, self.backoff_base)
                        attempt += 1
                        log.warning(f"429 Rate limited, retrying in {delay:.1f}s (retry {attempt}/{self.max_retries})")
                        await asyncio.sleep(delay)
                        continue

                    if resp.status == 404:
                        log.debug(f"404 Not Found: {url}")
                        raise NotFound(f"Not found: {url}")

                    if 400 <= resp.status < 500:
                        raise UpstreamClientError(
                            f"Riot API error {resp.status}: {resp.reason}", status=resp.status, url=url
                        )
                    if resp.status >= 500:
                        raise UpstreamServerError(
                            f"Riot API error {resp.status}: {resp.reason}", status=resp.status, url=url
                        )

                    try:
                        return await resp.json()
                    except (aiohttp.ContentTypeError, ValueError) as e:
                        raise UpstreamServerError(
                            f"Invalid JSON from Riot API: {e}", status=resp.status, url=url
                        ) from e

            except aiohttp.ClientResponseError as e:
                raise UpstreamServerError(f"API error {e.status}: {e.message}", status=e.status, url=url) from e
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                if attempt >= self.max_retries:
                    raise UpstreamTransientNetwork(
                        f"Network error after {attempt} retries: {e!r}", url=url
                    ) from e
                delay = compute_backoff(attempt, self.backoff_base)
                attempt += 1
                log.warning(f"Network error, retrying in {delay:.1f}s (retry {attempt}/{self.max_retries}): {e!r}")
                await asyncio.sleep(delay)

    # ------------------------------------------------------------ endpoints
    async def get_account_by_riot_id(self, region: str, game_name: str, tag_line: str) -> Dict[str, Any]:
        """
        Account-V1: GET /riot/account/v1/accounts/by-riot-id/{gameName}/{tagLine}
        Routed via region group (americas/europe/asia/sea).
        """
        url = (
            f"{regional_host(region)}/riot/account/v1/accounts/by-riot-id/"
            f"{quote(game_name, safe='')}/{quote(tag_line, safe='')}"
        )
        log.info(f"[Riot API] Looking up {game_name}#{tag_line} in region {region}")
        return await self._request(url)

    async def get_summoner_by_puuid(self, region: str, puuid: str) -> Dict[str, Any]:
        """TFT summoner profile by PUUID."""
        url = f"{platform_host(region)}/tft/summoner/v1/summoners/by-puuid/{puuid}"
        return await self._request(url)

    async def get_match_ids(self, region: str, puuid: str, count: int = 20) -> List[str]:
        """Newest-first list of TFT match IDs for a player."""
        url = f"{regional_host(region)}/tft/match/v1/matches/by-puuid/{puuid}/ids?start=0&count={count}"
        try:
            return await self._request(url)
        except NotFound:
            return []

    async def get_match_by_id(self, region: str, match_id: str) -> Dict[str, Any]:
        """Full TFT match payload."""
        url = f"{regional_host(region)}/tft/match/v1/matches/{match_id}"
        return await self._request(url)

    async def get_league_entries(self, region: str, summoner_id: str) -> List[Dict[str, Any]]:
        """Ranked entries for a summoner (one per TFT queue)."""
        url = f"{platform_host(region)}/tft/league/v1/entries/by-summoner/{summoner_id}"
        try:
            return await self._request(url)
        except NotFound:
            return []
