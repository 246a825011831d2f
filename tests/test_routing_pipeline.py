"""
End-to-end route search against fake TomTom / OpenWeather providers.
"""
from typing import List

import httpx
import pytest

from schemas import RouteSearchStatus
from services.routing.pipeline import MSG_NO_ROUTES, find_eco_route
from services.routing.throttle import ThrottledQueue
from tests.helpers import json_response, make_client


def _route(lat0: float, n: int = 10, length: int = 10000, seconds: int = 1200):
    return {
        "summary": {"lengthInMeters": length, "travelTimeInSeconds": seconds},
        "legs": [{"points": [{"latitude": lat0 + i * 0.001, "longitude": 77.2} for i in range(n)]}],
    }


class FakeProviders:
    """Dispatch requests by host/path; record everything that was called."""

    def __init__(self, routes=None, eco=None, geocode=True, aqi_by_lat0=None, eco_status=200, position=None):
        self.routes = routes if routes is not None else [_route(28.0), _route(29.0), _route(30.0)]
        self.eco = eco
        self.eco_status = eco_status
        self.geocode = geocode
        self.position = position if position is not None else {"lat": 28.7, "lon": 77.1}
        self.aqi_by_lat0 = aqi_by_lat0 or {28: 4, 29: 1, 30: 3}
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path.startswith("/search/"):
            if not self.geocode:
                return json_response({"results": []})
            return json_response({"results": [{"position": self.position}]})
        if path.startswith("/routing/"):
            if request.url.params.get("routeType") == "eco":
                if self.eco is None:
                    return json_response({"error": "unsupported"}, status_code=self.eco_status)
                return json_response({"routes": [self.eco]})
            return json_response({"routes": self.routes})
        if path.startswith("/data/2.5/air_pollution"):
            lat0 = int(float(request.url.params["lat"]))
            return json_response({"list": [{"main": {"aqi": self.aqi_by_lat0[lat0]}}]})
        return json_response({}, status_code=404)

    def count(self, prefix: str) -> int:
        return sum(1 for r in self.requests if r.url.path.startswith(prefix))


class TestFindEcoRoute:
    @pytest.mark.asyncio
    async def test_missing_tomtom_key(self, make_settings):
        providers = FakeProviders()
        async with make_client(providers) as client:
            result = await find_eco_route(client, "A", "B", make_settings(tomtom_api_key=None))
        assert result.status == RouteSearchStatus.CONFIGURATION_MISSING
        assert result.route is None
        assert "TomTom" in result.message
        assert providers.requests == []

    @pytest.mark.asyncio
    async def test_ranks_by_sampled_air_quality(self, make_settings):
        providers = FakeProviders()
        async with make_client(providers) as client:
            result = await find_eco_route(client, "Connaught Place", "Airport", make_settings())
        assert result.status == RouteSearchStatus.OK
        assert result.route.id == "r-1"
        assert result.route.name == "Eco-Optimized Route"
        assert result.route.avg_aqi_approx == 40
        assert result.route.quality_label == "Good"
        assert [c.avg_aqi_approx for c in result.candidates] == [180, 40, 120]
        assert providers.count("/routing/") == 1
        assert providers.count("/data/2.5/air_pollution") == 15

    @pytest.mark.asyncio
    async def test_sampling_is_sequential_through_one_queue(self, make_settings):
        providers = FakeProviders()
        queue = ThrottledQueue(0)
        async with make_client(providers) as client:
            await find_eco_route(client, "A", "B", make_settings(), queue=queue)
        assert queue.calls == 15

    @pytest.mark.asyncio
    async def test_geocode_failure_uses_fallbacks(self, make_settings):
        providers = FakeProviders(geocode=False)
        async with make_client(providers) as client:
            result = await find_eco_route(client, "nowhere", "also nowhere", make_settings())
        assert (result.start.lat, result.start.lng) == (28.6139, 77.2090)
        assert (result.end.lat, result.end.lng) == (28.5562, 77.1025)
        routing = [r for r in providers.requests if r.url.path.startswith("/routing/")][0]
        assert "28.6139,77.209:28.5562,77.1025" in routing.url.path

    @pytest.mark.asyncio
    async def test_malformed_geocode_position_uses_fallbacks(self, make_settings):
        providers = FakeProviders(position=["x"])
        async with make_client(providers) as client:
            result = await find_eco_route(client, "somewhere", "elsewhere", make_settings())
        assert result.status == RouteSearchStatus.OK
        assert (result.start.lat, result.start.lng) == (28.6139, 77.2090)
        assert (result.end.lat, result.end.lng) == (28.5562, 77.1025)

    @pytest.mark.asyncio
    async def test_malformed_leg_keeps_summary(self, make_settings):
        routes = [{"summary": {"lengthInMeters": 1000, "travelTimeInSeconds": 60}, "legs": [{"points": 5}]}]
        providers = FakeProviders(routes=routes)
        async with make_client(providers) as client:
            result = await find_eco_route(client, "A", "B", make_settings())
        assert result.status == RouteSearchStatus.OK
        assert result.route.distance_km == 1.0
        assert result.route.quality_label == "Unknown"

    @pytest.mark.asyncio
    async def test_non_finite_aqi_sample_is_skipped(self, make_settings):
        def handler(request):
            if request.url.path.startswith("/data/2.5/air_pollution"):
                lat0 = int(float(request.url.params["lat"]))
                body = b'{"list": [{"main": {"aqi": Infinity}}]}' if lat0 == 28 else b'{"list": [{"main": {"aqi": 2}}]}'
                return httpx.Response(200, content=body, headers={"Content-Type": "application/json"})
            return FakeProviders()(request)

        async with make_client(handler) as client:
            result = await find_eco_route(client, "A", "B", make_settings())
        assert result.status == RouteSearchStatus.OK
        assert [c.avg_aqi_approx for c in result.candidates] == [None, 80, 80]
        assert result.route.id == "r-1"

    @pytest.mark.asyncio
    async def test_no_aqi_key_prefers_eco_route(self, make_settings):
        providers = FakeProviders(eco=_route(31.0))
        async with make_client(providers) as client:
            result = await find_eco_route(client, "A", "B", make_settings(openweather_api_key=None))
        assert result.status == RouteSearchStatus.OK
        assert result.route.id == "eco-tomtom"
        assert result.route.quality_label == "Eco"
        assert result.message
        assert providers.count("/routing/") == 1

    @pytest.mark.asyncio
    async def test_no_aqi_key_eco_failure_falls_back_to_first_alternative(self, make_settings):
        providers = FakeProviders(eco=None)
        async with make_client(providers) as client:
            result = await find_eco_route(client, "A", "B", make_settings(openweather_api_key=None))
        assert result.status == RouteSearchStatus.OK
        assert result.route.id == "r-0"
        assert result.route.quality_label == "Unknown"
        assert providers.count("/routing/") == 2
        assert providers.count("/data/2.5/air_pollution") == 0

    @pytest.mark.asyncio
    async def test_no_candidates(self, make_settings):
        providers = FakeProviders(routes=[])
        async with make_client(providers) as client:
            result = await find_eco_route(client, "A", "B", make_settings())
        assert result.status == RouteSearchStatus.NO_CANDIDATES
        assert result.message == MSG_NO_ROUTES
        assert result.route is None

    @pytest.mark.asyncio
    async def test_candidates_without_geometry_skip_sampling(self, make_settings):
        bare = [{"summary": {"lengthInMeters": 1000, "travelTimeInSeconds": 60}} for _ in range(3)]
        providers = FakeProviders(routes=bare)
        async with make_client(providers) as client:
            result = await find_eco_route(client, "A", "B", make_settings())
        assert result.route.id == "r-0"
        assert result.route.quality_label == "Unknown"
        assert providers.count("/data/2.5/air_pollution") == 0

    @pytest.mark.asyncio
    async def test_unexpected_error_is_reported(self, make_settings):
        def handler(request):
            raise RuntimeError("bug")

        async with make_client(handler) as client:
            result = await find_eco_route(client, "A", "B", make_settings())
        assert result.status == RouteSearchStatus.ERROR
        assert result.message
