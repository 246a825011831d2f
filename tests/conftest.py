"""
Pytest configuration and shared fixtures for EcoRoute tests.
"""
import os
import sys
from typing import Any, Callable, Dict, Optional
from unittest.mock import AsyncMock

import pytest

# Ensure project root is on path
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from config import Settings  # noqa: E402


def pytest_configure(config):
    config.addinivalue_line("markers", "asyncio: mark test as async (pytest-asyncio).")


@pytest.fixture
def mock_redis() -> AsyncMock:
    """Fake async Redis for cache tests (get/set return OK)."""
    redis = AsyncMock()
    redis.get = AsyncMock(return_value=None)
    redis.set = AsyncMock(return_value=True)
    redis.setex = AsyncMock(return_value=True)
    return redis


class DictRedis:
    """In-memory stand-in for redis.asyncio.Redis (get/set only)."""

    def __init__(self):
        self.store: Dict[str, str] = {}

    async def get(self, key: str) -> Optional[str]:
        return self.store.get(key)

    async def set(self, key: str, value: str) -> bool:
        self.store[key] = value
        return True


@pytest.fixture
def dict_redis() -> DictRedis:
    return DictRedis()


@pytest.fixture
def make_settings() -> Callable[..., Settings]:
    """Settings isolated from the developer's environment and .env."""

    def _make(**overrides: Any) -> Settings:
        values: Dict[str, Any] = {
            "tomtom_api_key": "tt-key",
            "openweather_api_key": "ow-key",
            "redis_url": None,
            "tomtom_base_url": "https://tomtom.test",
            "openweather_base_url": "https://openweather.test",
            "aq_sample_interval_s": 0.0,
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make
