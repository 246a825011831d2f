"""
Helpers shared by test modules: fake HTTP providers and route fixtures.
"""
import json
from typing import Any, Callable, Optional

import httpx

from schemas import Coordinate, RouteCandidate


def json_response(payload: Any, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, content=json.dumps(payload).encode(), headers={"Content-Type": "application/json"})


def make_client(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def make_path(n: int, lat0: float = 28.6, lng0: float = 77.2, step: float = 0.001):
    return [Coordinate(lat=lat0 + i * step, lng=lng0 + i * step) for i in range(n)]


def make_candidate(idx: int, avg: Optional[int] = None, n_points: int = 3) -> RouteCandidate:
    return RouteCandidate(
        id=f"r-{idx}",
        name=f"Alternative {idx + 1}",
        distance_km=10.0 + idx,
        duration_min=20 + idx,
        path=make_path(n_points, lat0=28.6 + idx * 0.01),
        avg_aqi_approx=avg,
    )
