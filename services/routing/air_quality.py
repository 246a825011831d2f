"""
Sample air quality along a candidate route via OpenWeather Air Pollution.

OpenWeather reports a categorical index 1..5; it is mapped to an approximate
US-style AQI so candidates can be compared and labelled like dashboard metrics.
"""
import logging
import math
from typing import Any, Dict, List, Optional

import httpx

from config import OPENWEATHER_AIR_POLLUTION_PATH, Settings, settings as default_settings
from schemas import Coordinate, RouteCandidate
from services.metrics.constants import route_quality_label
from services.routing.throttle import ThrottledQueue

logger = logging.getLogger(__name__)

DEFAULT_MAX_SAMPLES = 5

# OpenWeather main.aqi -> approximate AQI
INDEX_TO_APPROX_AQI: Dict[int, int] = {
    1: 40,
    2: 80,
    3: 120,
    4: 180,
    5: 250,
}

INDEX_LABEL: Dict[int, str] = {
    1: "Good",
    2: "Fair",
    3: "Moderate",
    4: "Unhealthy",
    5: "Very Unhealthy",
}


def approx_aqi(index: Optional[int]) -> Optional[int]:
    """Approximate AQI for a provider index; None if absent or out of range."""
    if index is None:
        return None
    return INDEX_TO_APPROX_AQI.get(index)


def index_label(index: Optional[int]) -> str:
    if index is None:
        return "Unknown"
    return INDEX_LABEL.get(index, "Unknown")


def sample_indices(n: int, max_samples: int = DEFAULT_MAX_SAMPLES) -> List[int]:
    """
    Evenly strided indices into a path of n points, at most max_samples long,
    always ending on the final point.
    """
    if n <= 0 or max_samples <= 0:
        return []
    stride = max(1, n // max_samples)
    idx = list(range(0, n, stride))
    if idx[-1] != n - 1:
        idx.append(n - 1)
    if len(idx) > max_samples:
        idx = idx[: max_samples - 1] + [n - 1]
    return idx


def sample_points(path: List[Coordinate], max_samples: int = DEFAULT_MAX_SAMPLES) -> List[Coordinate]:
    return [path[i] for i in sample_indices(len(path), max_samples)]


def _index_from_payload(payload: Any) -> Optional[int]:
    try:
        value = payload["list"][0]["main"]["aqi"]
    except (KeyError, IndexError, TypeError):
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        return None
    return int(value)


async def fetch_index(
    client: httpx.AsyncClient,
    point: Coordinate,
    settings: Settings = default_settings,
) -> Optional[int]:
    """OpenWeather main.aqi (1..5) at point, or None on any failure."""
    if not settings.openweather_api_key:
        return None
    url = f"{settings.openweather_base_url.rstrip('/')}{OPENWEATHER_AIR_POLLUTION_PATH}"
    params = {"lat": point.lat, "lon": point.lng, "appid": settings.openweather_api_key}
    try:
        r = await client.get(url, params=params)
        if r.status_code != 200:
            logger.warning("OpenWeather AQI HTTP %s at %s", r.status_code, point.key())
            return None
        return _index_from_payload(r.json())
    except (httpx.HTTPError, ValueError) as e:
        logger.warning("OpenWeather AQI fetch error at %s: %s", point.key(), e)
        return None


async def sample_route(
    client: httpx.AsyncClient,
    candidate: RouteCandidate,
    queue: ThrottledQueue,
    settings: Settings = default_settings,
) -> RouteCandidate:
    """
    Return a copy of candidate with avg_aqi_approx / quality_label filled in.
    Samples are fetched one at a time through queue; failed samples are skipped.
    """
    values: List[int] = []
    for point in sample_points(candidate.path, settings.aq_max_samples):
        a = approx_aqi(await queue.submit(fetch_index, client, point, settings))
        if a is not None:
            values.append(a)
    avg = math.floor(sum(values) / len(values) + 0.5) if values else None
    if avg is None:
        logger.info("No air-quality samples for route %s", candidate.id)
    return candidate.model_copy(update={"avg_aqi_approx": avg, "quality_label": route_quality_label(avg)})
