import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

import httpx
import redis.asyncio as aioredis
from fastapi import Body, Depends, FastAPI, Query, Request

from cache import get_or_create_metrics, refresh_metrics
from config import Settings, settings as app_settings
from schemas import Coordinate, MetricsResponse, RouteSearchRequest, RouteSearchResult
from services.metrics.presentation import build_metric_cards
from services.metrics.synthesizer import synthesize
from services.routing.pipeline import find_eco_route

logging.basicConfig(
    level=getattr(logging, (app_settings.log_level or "INFO").upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


# -----------------------------
# App setup
# -----------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    redis_url = (app_settings.redis_url or "").strip()
    app.state.redis = aioredis.from_url(redis_url, decode_responses=True) if redis_url else None
    if app.state.redis is None:
        logger.warning("REDIS_URL not set; metrics will not persist across restarts")
    app.state.http_client = httpx.AsyncClient(timeout=app_settings.http_timeout_s)
    if not app_settings.routing_configured:
        logger.warning("TOMTOM_API_KEY not set; route search disabled")
    if not app_settings.air_quality_configured:
        logger.warning("OPENWEATHER_API_KEY not set; routes will not be ranked by air quality")
    try:
        yield
    finally:
        await app.state.http_client.aclose()
        if app.state.redis is not None:
            await app.state.redis.aclose()


app = FastAPI(title="EcoRoute", version="0.1.0", lifespan=lifespan)


# -----------------------------
# Dependencies
# -----------------------------
def get_settings() -> Settings:
    return app_settings


def get_redis(request: Request) -> Optional[Any]:
    return getattr(request.app.state, "redis", None)


async def get_http_client(request: Request) -> AsyncIterator[httpx.AsyncClient]:
    client = getattr(request.app.state, "http_client", None)
    if client is not None:
        yield client
        return
    async with httpx.AsyncClient(timeout=app_settings.http_timeout_s) as client:
        yield client


# -----------------------------
# Metrics
# -----------------------------
@app.get("/api/metrics", response_model=MetricsResponse)
async def api_metrics(
    lat: Optional[float] = Query(None, ge=-90, le=90),
    lng: Optional[float] = Query(None, ge=-180, le=180),
    redis: Optional[Any] = Depends(get_redis),
    settings: Settings = Depends(get_settings),
):
    """Metrics for a map location (default center if omitted); cached per ~11 m cell."""
    if lat is None or lng is None:
        coordinate = Coordinate(lat=settings.default_center_lat, lng=settings.default_center_lng)
    else:
        coordinate = Coordinate(lat=lat, lng=lng)
    snapshot = await get_or_create_metrics(redis, coordinate, synthesize)
    return MetricsResponse(coordinate=coordinate, metrics=snapshot, cards=build_metric_cards(snapshot))


@app.post("/api/metrics/refresh", response_model=MetricsResponse)
async def api_metrics_refresh(
    coordinate: Coordinate = Body(...),
    redis: Optional[Any] = Depends(get_redis),
):
    """Regenerate and persist metrics for a location, superseding the cached snapshot."""
    snapshot = await refresh_metrics(redis, coordinate, synthesize)
    return MetricsResponse(coordinate=coordinate, metrics=snapshot, cards=build_metric_cards(snapshot))


# -----------------------------
# Routes
# -----------------------------
@app.post("/api/route/eco", response_model=RouteSearchResult)
async def api_route_eco(
    body: RouteSearchRequest,
    client: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_settings),
):
    result = await find_eco_route(client, body.start, body.end, settings)
    logger.info("Route search %r -> %r: %s", body.start, body.end, result.status.value)
    return result


@app.get("/api/status")
async def api_status(
    redis: Optional[Any] = Depends(get_redis),
    settings: Settings = Depends(get_settings),
):
    return {
        "routing": settings.routing_configured,
        "air_quality": settings.air_quality_configured,
        "cache": redis is not None,
    }
