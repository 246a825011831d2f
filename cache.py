"""
Redis-backed metrics cache: key builder, async get/set, read-through helpers.
Redis is optional (REDIS_URL empty = no persistence). Entries never expire;
staleness is reported through MetricsSnapshot.generated_at.
"""
import json
import logging
from typing import Any, Callable, Optional

from pydantic import ValidationError

from schemas import Coordinate, MetricsSnapshot, to_fixed

logger = logging.getLogger(__name__)

METRICS_KEY_PREFIX = "metrics"

SynthesizeFn = Callable[[Coordinate], MetricsSnapshot]


def key_metrics(lat: float, lng: float) -> str:
    """Cache key for a location rounded to 4 decimals (~11 m)."""
    return f"{METRICS_KEY_PREFIX}:{to_fixed(lat)},{to_fixed(lng)}"


async def cache_get(redis: Any, key: str) -> Optional[Any]:
    """Return deserialized value if key exists, else None."""
    if redis is None:
        return None
    try:
        raw = await redis.get(key)
        if raw is None:
            return None
        return json.loads(raw)
    except Exception as e:
        logger.warning("Cache read failed for %s: %s", key, e)
        return None


async def cache_set(redis: Any, key: str, value: Any, ttl: Optional[int] = None) -> None:
    """Serialize value and store it; no expiry unless ttl is given."""
    if redis is None:
        return
    try:
        payload = json.dumps(value, default=str)
        if ttl:
            await redis.setex(key, ttl, payload)
        else:
            await redis.set(key, payload)
    except Exception as e:
        logger.warning("Cache write failed for %s: %s", key, e)


async def get_cached_metrics(redis: Any, coordinate: Coordinate) -> Optional[MetricsSnapshot]:
    """Snapshot stored for coordinate's rounded key, or None (miss or unreadable entry)."""
    key = key_metrics(coordinate.lat, coordinate.lng)
    cached = await cache_get(redis, key)
    if cached is None:
        return None
    try:
        return MetricsSnapshot.model_validate(cached)
    except ValidationError as e:
        logger.warning("Discarding malformed cached metrics for %s: %s", key, e)
        return None


async def put_cached_metrics(redis: Any, coordinate: Coordinate, snapshot: MetricsSnapshot) -> None:
    """Overwrite the entry for coordinate's rounded key."""
    key = key_metrics(coordinate.lat, coordinate.lng)
    await cache_set(redis, key, snapshot.model_dump(mode="json", by_alias=True))


async def get_or_create_metrics(redis: Any, coordinate: Coordinate, synthesize_fn: SynthesizeFn) -> MetricsSnapshot:
    """Return metrics from cache or synthesize and cache."""
    cached = await get_cached_metrics(redis, coordinate)
    if cached is not None:
        return cached
    snapshot = synthesize_fn(coordinate)
    await put_cached_metrics(redis, coordinate, snapshot)
    return snapshot


async def refresh_metrics(redis: Any, coordinate: Coordinate, synthesize_fn: SynthesizeFn) -> MetricsSnapshot:
    """Synthesize a new snapshot and supersede whatever is cached."""
    snapshot = synthesize_fn(coordinate)
    await put_cached_metrics(redis, coordinate, snapshot)
    return snapshot
