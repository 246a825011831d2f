"""
Resolve free-text places to coordinates via TomTom Search.
Never raises: any failure resolves to None and callers supply a fallback.
"""
import logging
from typing import Any, Optional
from urllib.parse import quote

import httpx

from config import TOMTOM_SEARCH_PATH, Settings, settings as default_settings
from schemas import Coordinate

logger = logging.getLogger(__name__)


def parse_coordinates(text: str) -> Optional[Coordinate]:
    """'28.61, 77.20' -> Coordinate; None unless a valid WGS84 lat,lng pair."""
    if not text:
        return None
    parts = text.split(",")
    if len(parts) != 2:
        return None
    try:
        lat = float(parts[0].strip())
        lng = float(parts[1].strip())
    except ValueError:
        return None
    if -90 <= lat <= 90 and -180 <= lng <= 180:
        return Coordinate(lat=lat, lng=lng)
    return None


def _first_position(payload: Any) -> Optional[Coordinate]:
    if not isinstance(payload, dict):
        return None
    results = payload.get("results") or []
    if not isinstance(results, list) or not results:
        return None
    first = results[0]
    if not isinstance(first, dict):
        return None
    position = first.get("position")
    if not isinstance(position, dict):
        position = {}
    lat = position.get("lat", first.get("lat"))
    lon = position.get("lon", first.get("lon"))
    if lat is None or lon is None:
        return None
    try:
        return Coordinate(lat=float(lat), lng=float(lon))
    except (TypeError, ValueError):
        return None


async def geocode(
    client: httpx.AsyncClient,
    text: str,
    settings: Settings = default_settings,
) -> Optional[Coordinate]:
    """Resolve text to a Coordinate using the first search result."""
    query = (text or "").strip()
    if not query:
        return None
    coords = parse_coordinates(query)
    if coords:
        return coords
    if not settings.tomtom_api_key:
        logger.warning("TomTom API key missing; cannot geocode %r", query)
        return None
    url = f"{settings.tomtom_base_url.rstrip('/')}{TOMTOM_SEARCH_PATH}/{quote(query, safe='')}.json"
    try:
        r = await client.get(url, params={"key": settings.tomtom_api_key, "limit": 1})
        if r.status_code != 200:
            logger.warning("TomTom geocoding failed for %r: HTTP %s", query, r.status_code)
            return None
        position = _first_position(r.json())
    except (httpx.HTTPError, ValueError) as e:
        logger.warning("Geocode error for %r: %s", query, e)
        return None
    if position is None:
        logger.info("No geocoding result for %r", query)
    return position
