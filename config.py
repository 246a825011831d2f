"""
Application configuration from environment variables.
"""
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Settings loaded from environment (and .env)."""

    # Provider credentials (empty = degraded mode, never a hard failure)
    tomtom_api_key: Optional[str] = None
    openweather_api_key: Optional[str] = None

    # Redis (empty = no persistence; metrics are synthesized on every request)
    redis_url: Optional[str] = "redis://localhost:6379/0"

    # Provider endpoints
    tomtom_base_url: str = "https://api.tomtom.com"
    openweather_base_url: str = "https://api.openweathermap.org"
    http_timeout_s: float = 15.0

    # Routing
    route_max_alternatives: int = 3

    # Air-quality sampling along candidate routes
    aq_max_samples: int = 5
    aq_sample_interval_s: float = 0.12  # self-imposed gap between provider calls

    # Fallbacks when geocoding fails (Connaught Place -> Indira Gandhi Airport)
    fallback_start_lat: float = 28.6139
    fallback_start_lng: float = 77.2090
    fallback_end_lat: float = 28.5562
    fallback_end_lng: float = 77.1025

    # Initial map center for the dashboard
    default_center_lat: float = 28.6139
    default_center_lng: float = 77.2090

    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @property
    def routing_configured(self) -> bool:
        return bool(self.tomtom_api_key)

    @property
    def air_quality_configured(self) -> bool:
        return bool(self.openweather_api_key)


settings = Settings()

TOMTOM_SEARCH_PATH = "/search/2/search"
TOMTOM_ROUTING_PATH = "/routing/1/calculateRoute"
OPENWEATHER_AIR_POLLUTION_PATH = "/data/2.5/air_pollution"
