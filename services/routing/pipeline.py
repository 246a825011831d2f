"""
Route search: geocode -> (eco route | alternatives -> AQI sampling -> ranking).

Every failure degrades to a smaller dataset or an Unknown label; the caller
always gets a RouteSearchResult with a user-facing message when there is no route.
"""
import logging
from typing import List, Optional

import httpx

from config import Settings, settings as default_settings
from schemas import Coordinate, RouteCandidate, RouteSearchResult, RouteSearchStatus
from services.routing.air_quality import sample_route
from services.routing.geocoder import geocode
from services.routing.ranking import select
from services.routing.route_fetcher import fetch_alternatives, fetch_eco_route
from services.routing.throttle import ThrottledQueue

logger = logging.getLogger(__name__)

MSG_MISSING_TOMTOM = "TomTom API key missing. Set TOMTOM_API_KEY and restart."
MSG_NO_ROUTES = "No routes returned from TomTom."
MSG_UNDECIDED = "Unable to decide on a route."
MSG_ERROR = "Error computing route. Check the server logs for details."
MSG_NO_AQI_ECO = "No air-quality provider configured; showing the TomTom eco route."
MSG_NO_AQI = "Air quality unavailable; route quality is Unknown."


def fallback_start(settings: Settings) -> Coordinate:
    return Coordinate(lat=settings.fallback_start_lat, lng=settings.fallback_start_lng)


def fallback_end(settings: Settings) -> Coordinate:
    return Coordinate(lat=settings.fallback_end_lat, lng=settings.fallback_end_lng)


async def sample_candidates(
    client: httpx.AsyncClient,
    candidates: List[RouteCandidate],
    queue: ThrottledQueue,
    settings: Settings,
) -> List[RouteCandidate]:
    """Sequential across candidates as well as within each one."""
    sampled: List[RouteCandidate] = []
    for c in candidates:
        sampled.append(await sample_route(client, c, queue, settings))
    return sampled


async def _search(
    client: httpx.AsyncClient,
    start_text: str,
    end_text: str,
    settings: Settings,
    queue: ThrottledQueue,
) -> RouteSearchResult:
    start = await geocode(client, start_text, settings)
    if start is None:
        start = fallback_start(settings)
        logger.info("Using fallback start %s for %r", start.key(), start_text)
    end = await geocode(client, end_text, settings)
    if end is None:
        end = fallback_end(settings)
        logger.info("Using fallback end %s for %r", end.key(), end_text)

    if not settings.air_quality_configured:
        eco = await fetch_eco_route(client, start, end, settings)
        if eco is not None:
            return RouteSearchResult(
                status=RouteSearchStatus.OK, message=MSG_NO_AQI_ECO, route=eco, start=start, end=end, candidates=[eco]
            )
        logger.info("Eco route unavailable; falling back to alternatives")

    candidates = await fetch_alternatives(client, start, end, settings)
    if not candidates:
        return RouteSearchResult(status=RouteSearchStatus.NO_CANDIDATES, message=MSG_NO_ROUTES, start=start, end=end)

    if settings.air_quality_configured and any(c.path for c in candidates):
        candidates = await sample_candidates(client, candidates, queue, settings)

    winner = select(candidates, air_quality_configured=settings.air_quality_configured)
    if winner is None:
        return RouteSearchResult(status=RouteSearchStatus.ERROR, message=MSG_UNDECIDED, start=start, end=end)
    message = None if winner.avg_aqi_approx is not None else MSG_NO_AQI
    return RouteSearchResult(
        status=RouteSearchStatus.OK, message=message, route=winner, start=start, end=end, candidates=candidates
    )


async def find_eco_route(
    client: httpx.AsyncClient,
    start_text: str,
    end_text: str,
    settings: Settings = default_settings,
    queue: Optional[ThrottledQueue] = None,
) -> RouteSearchResult:
    """Resolve endpoints and return the single recommended route."""
    if not settings.routing_configured:
        logger.warning("Route search requested without TomTom API key")
        return RouteSearchResult(status=RouteSearchStatus.CONFIGURATION_MISSING, message=MSG_MISSING_TOMTOM)
    queue = queue or ThrottledQueue(settings.aq_sample_interval_s)
    try:
        return await _search(client, start_text, end_text, settings, queue)
    except Exception as e:
        logger.exception("Route search failed: %s", e)
        return RouteSearchResult(status=RouteSearchStatus.ERROR, message=MSG_ERROR)
