"""HTTP endpoints: health probes, metrics and the Riot recap API."""

from contextlib import asynccontextmanager
import datetime as dt
import time
from typing import Any, Dict, Optional

from fastapi import FastAPI, Query, Request, Response
from fastapi.responses import JSONResponse

from recap.cache.gateway import CacheGateway
from recap.config import settings
from recap.database import create_session_factory
from recap.db.store import ResourceStore
from recap.exceptions import InvalidRegion, NotFound, UpstreamError, UpstreamRateLimited
from recap.logging_config import get_logger, setup_logging
from recap.riot.client import RiotClient, check_region
from recap.services.coordinator import InFlightCoordinator
from recap.services.resolver import ResourceResolver
from recap.services.year_review import build_year_review

log = get_logger(__name__)

START_TIME = time.time()

# TFT launched in 2019; the upper bound keeps year + 1 a valid datetime
FIRST_YEAR = 2019
LAST_YEAR = 9998


def build_resolver(config=settings) -> ResourceResolver:
    """Wire store → gateway → coordinator → client → resolver once per process."""
    store = ResourceStore(create_session_factory(config.DB_URL))
    return ResourceResolver(
        client=RiotClient.from_settings(config),
        gateway=CacheGateway(store),
        coordinator=InFlightCoordinator(window=config.DEDUP_WINDOW_SECONDS),
        max_match_fetch=config.MAX_MATCH_FETCH,
    )


def _error(status: int, message: str, headers: Optional[Dict[str, str]] = None) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status, headers=headers)


def create_app(resolver: Optional[ResourceResolver] = None) -> FastAPI:
    """
    Build the FastAPI app.

    Args:
        resolver: pre-built resolver (tests); built from settings otherwise
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(settings.LOG_LEVEL)
        app.state.resolver = resolver or build_resolver()
        try:
            yield
        finally:
            await app.state.resolver.client.close()

    app = FastAPI(title="Recap API", lifespan=lifespan)

    # ------------------------------------------------------------- errors
    @app.exception_handler(InvalidRegion)
    async def invalid_region_handler(request: Request, exc: InvalidRegion) -> JSONResponse:
        return _error(400, str(exc))

    @app.exception_handler(NotFound)
    async def not_found_handler(request: Request, exc: NotFound) -> JSONResponse:
        return _error(404, str(exc))

    @app.exception_handler(UpstreamRateLimited)
    async def rate_limited_handler(request: Request, exc: UpstreamRateLimited) -> JSONResponse:
        headers = {"Retry-After": str(int(exc.retry_after))} if exc.retry_after else None
        return _error(429, "Riot API rate limit reached, try again later", headers)

    @app.exception_handler(UpstreamError)
    async def upstream_handler(request: Request, exc: UpstreamError) -> JSONResponse:
        log.error(f"Upstream failure on {request.url.path}: {exc}")
        return _error(502, f"Failed to fetch data from Riot API: {exc}")

    # ------------------------------------------------------------- probes
    @app.get("/health")
    async def health_check() -> JSONResponse:
        uptime = int(time.time() - START_TIME)
        return JSONResponse({
            "status": "healthy",
            "uptime_seconds": uptime,
            "service": "recap-api"
        })

    @app.get("/readiness")
    async def readiness_check(request: Request) -> Response:
        """
        200 when ready; 503 when a configured database does not answer.
        Running without a database is allowed (uncached mode).
        """
        store = request.app.state.resolver.gateway.store
        if store.configured and not store.ping():
            return Response(status_code=503, content="Not ready: database unreachable")
        return Response(status_code=200, content="Ready")

    @app.get("/liveness")
    async def liveness_check() -> Response:
        return Response(status_code=200, content="Alive")

    @app.get("/metrics")
    async def metrics(request: Request) -> Dict[str, Any]:
        resolver: ResourceResolver = request.app.state.resolver
        return {
            "uptime_seconds": int(time.time() - START_TIME),
            "start_time": START_TIME,
            "cache_configured": resolver.gateway.store.configured,
            "cache": resolver.gateway.stats(),
            "in_flight": resolver.coordinator.pending_count(),
        }

    # ---------------------------------------------------------------- riot
    @app.get("/api/riot/summoner")
    async def summoner(request: Request, name: Optional[str] = None,
                       region: str = settings.DEFAULT_REGION):
        if not name:
            return _error(400, "Summoner name is required")
        return await request.app.state.resolver.get_summoner_by_name(check_region(region), name)

    @app.get("/api/riot/matches")
    async def matches(request: Request, puuid: Optional[str] = None,
                      region: str = settings.DEFAULT_REGION,
                      count: int = Query(20, ge=1, le=100)):
        if not puuid:
            return _error(400, "PUUID is required")
        found = await request.app.state.resolver.get_matches(check_region(region), puuid, count)
        return {"matches": found, "count": len(found)}

    @app.get("/api/riot/stats")
    async def stats(request: Request, name: Optional[str] = None,
                    region: str = settings.DEFAULT_REGION,
                    year: Optional[int] = Query(None, ge=FIRST_YEAR, le=LAST_YEAR)):
        if not name:
            return _error(400, "Summoner name is required")
        if year is None:
            year = dt.datetime.now(dt.timezone.utc).year
        return await build_year_review(request.app.state.resolver, name, check_region(region), year)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
