"""
Fetch candidate routes from TomTom Routing and decode them into RouteCandidates.

TomTom has answered with several payload shapes over time. classify_payload()
maps a payload onto exactly one known shape (or Unrecognized) and
decode_routes() handles each shape explicitly.
"""
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

import httpx

from config import TOMTOM_ROUTING_PATH, Settings, settings as default_settings
from schemas import Coordinate, RouteCandidate

logger = logging.getLogger(__name__)

ECO_ROUTE_ID = "eco-tomtom"
ECO_ROUTE_NAME = "Eco Route (TomTom)"
ECO_QUALITY_LABEL = "Eco"


# ----- Payload shapes -----
@dataclass(frozen=True)
class TopLevelRoutes:
    """{"routes": [route, ...]}"""

    routes: List[Dict[str, Any]]


@dataclass(frozen=True)
class NestedRoutes:
    """{"routes": {"routes": [route, ...]}}"""

    routes: List[Dict[str, Any]]


@dataclass(frozen=True)
class RootRoute:
    """A single route's summary / geometry at the payload root."""

    route: Dict[str, Any]


@dataclass(frozen=True)
class Unrecognized:
    payload: Any = field(default=None)


RoutePayload = Union[TopLevelRoutes, NestedRoutes, RootRoute, Unrecognized]


def classify_payload(payload: Any) -> RoutePayload:
    if not isinstance(payload, dict):
        return Unrecognized(payload)
    routes = payload.get("routes")
    if isinstance(routes, list):
        return TopLevelRoutes([r for r in routes if isinstance(r, dict)])
    if isinstance(routes, dict) and isinstance(routes.get("routes"), list):
        return NestedRoutes([r for r in routes["routes"] if isinstance(r, dict)])
    if any(isinstance(payload.get(k), (dict, list)) for k in ("summary", "geometry", "legs")):
        return RootRoute(payload)
    return Unrecognized(payload)


# ----- Geometry -----
def _coord(lat: Any, lng: Any) -> Optional[Coordinate]:
    if lat is None or lng is None:
        return None
    try:
        return Coordinate(lat=float(lat), lng=float(lng))
    except (TypeError, ValueError):
        return None


def _path_from_coordinates(coordinates: Any) -> List[Coordinate]:
    """GeoJSON-style [lng, lat] pairs."""
    if not isinstance(coordinates, list):
        return []
    out: List[Coordinate] = []
    for c in coordinates:
        if isinstance(c, (list, tuple)) and len(c) >= 2:
            p = _coord(c[1], c[0])
            if p:
                out.append(p)
    return out


def _path_from_points(points: Any) -> List[Coordinate]:
    """TomTom point objects: {latitude, longitude} or {lat, lon}."""
    if not isinstance(points, list):
        return []
    out: List[Coordinate] = []
    for pt in points:
        if not isinstance(pt, dict):
            continue
        p = _coord(pt.get("latitude", pt.get("lat")), pt.get("longitude", pt.get("lon")))
        if p:
            out.append(p)
    return out


def decode_path(route: Dict[str, Any]) -> List[Coordinate]:
    geometry = route.get("geometry")
    if isinstance(geometry, dict) and isinstance(geometry.get("coordinates"), list):
        return _path_from_coordinates(geometry["coordinates"])
    legs = route.get("legs")
    if isinstance(legs, list):
        path: List[Coordinate] = []
        for leg in legs:
            if isinstance(leg, dict):
                path.extend(_path_from_points(leg.get("points")))
        return path
    if isinstance(geometry, dict) and isinstance(geometry.get("points"), list):
        return _path_from_points(geometry["points"])
    return []


# ----- Summary -----
def km_from_meters(m: float) -> float:
    return round(m / 1000.0, 1)


def min_from_seconds(s: float) -> int:
    return math.floor(s / 60.0 + 0.5)


def _summary_value(summary: Dict[str, Any], *keys: str) -> float:
    for k in keys:
        v = summary.get(k)
        if v is not None:
            try:
                f = float(v)
            except (TypeError, ValueError):
                continue
            if math.isfinite(f):
                return f
    return 0.0


def decode_route(route: Dict[str, Any], route_id: str, name: str) -> RouteCandidate:
    summary = route.get("summary") if isinstance(route.get("summary"), dict) else {}
    return RouteCandidate(
        id=route_id,
        name=name,
        distance_km=km_from_meters(_summary_value(summary, "lengthInMeters", "length")),
        duration_min=min_from_seconds(_summary_value(summary, "travelTimeInSeconds", "travelTime")),
        path=decode_path(route),
    )


def decode_routes(payload: Any) -> List[RouteCandidate]:
    """All candidates in a routing payload, in provider order."""
    shape = classify_payload(payload)
    if isinstance(shape, (TopLevelRoutes, NestedRoutes)):
        return [decode_route(rt, f"r-{i}", f"Alternative {i + 1}") for i, rt in enumerate(shape.routes)]
    if isinstance(shape, RootRoute):
        return [decode_route(shape.route, "r-0", "Route")]
    logger.warning("Unrecognized routing payload: %s", type(shape.payload).__name__)
    return []


# ----- Provider calls -----
def build_route_url(start: Coordinate, end: Coordinate, settings: Settings = default_settings) -> str:
    """calculateRoute takes lat,lng:lat,lng in the path."""
    locations = f"{start.lat},{start.lng}:{end.lat},{end.lng}"
    return f"{settings.tomtom_base_url.rstrip('/')}{TOMTOM_ROUTING_PATH}/{locations}/json"


async def _get_routing_payload(
    client: httpx.AsyncClient,
    start: Coordinate,
    end: Coordinate,
    params: Dict[str, Any],
    settings: Settings,
) -> Optional[Any]:
    if not settings.tomtom_api_key:
        logger.warning("TomTom API key missing; routing disabled")
        return None
    query = {"key": settings.tomtom_api_key, "routeRepresentation": "polyline", **params}
    try:
        r = await client.get(build_route_url(start, end, settings), params=query)
        if r.status_code != 200:
            logger.warning("TomTom routing error: HTTP %s %s", r.status_code, r.text[:200])
            return None
        return r.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.warning("TomTom routing request failed: %s", e)
        return None


async def fetch_alternatives(
    client: httpx.AsyncClient,
    start: Coordinate,
    end: Coordinate,
    settings: Settings = default_settings,
) -> List[RouteCandidate]:
    """Best route plus up to route_max_alternatives alternatives; [] on failure."""
    max_alt = settings.route_max_alternatives
    payload = await _get_routing_payload(client, start, end, {"maxAlternatives": max_alt}, settings)
    if payload is None:
        return []
    return decode_routes(payload)[: max_alt + 1]


async def fetch_eco_route(
    client: httpx.AsyncClient,
    start: Coordinate,
    end: Coordinate,
    settings: Settings = default_settings,
) -> Optional[RouteCandidate]:
    """Provider's own routeType=eco route, or None so callers can fall back to ranking."""
    payload = await _get_routing_payload(client, start, end, {"routeType": "eco"}, settings)
    if payload is None:
        return None
    routes = decode_routes(payload)
    if not routes:
        return None
    return routes[0].model_copy(
        update={"id": ECO_ROUTE_ID, "name": ECO_ROUTE_NAME, "quality_label": ECO_QUALITY_LABEL}
    )
