"""
Pydantic schemas shared by the metrics and routing services and the HTTP API.
"""
import math
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def to_fixed(x: float, digits: int = 4) -> str:
    """
    Fixed-point text matching JavaScript toFixed: exact ties round away from
    zero (0.03125 -> "0.0313"), and negative zero prints as "0.0000".
    """
    if math.isnan(x):
        return "NaN"
    if math.isinf(x):
        return "Infinity" if x > 0 else "-Infinity"
    if abs(x) >= 1e21:
        return str(x)
    if x == 0:
        x = 0.0
    d = Decimal(x).quantize(Decimal(1).scaleb(-digits), rounding=ROUND_HALF_UP)
    return f"{d:f}"


class _Model(BaseModel):
    """camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ----- Coordinates -----
class Coordinate(_Model):
    model_config = ConfigDict(frozen=True)

    lat: float
    lng: float

    def key(self) -> str:
        """Stable 4-decimal (~11 m) location key."""
        return f"{to_fixed(self.lat)},{to_fixed(self.lng)}"


# ----- Metrics -----
class AqiLabel(str, Enum):
    GOOD = "Good"
    MODERATE = "Moderate"
    UNHEALTHY_FOR_SENSITIVE_GROUPS = "Unhealthy for Sensitive Groups"
    UNHEALTHY = "Unhealthy"
    VERY_UNHEALTHY = "Very Unhealthy"
    HAZARDOUS = "Hazardous"


class AlertLevel(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MODERATE = "moderate"


class Alert(_Model):
    model_config = ConfigDict(frozen=True)

    id: str
    level: AlertLevel
    title: str
    description: str


class MetricsSnapshot(_Model):
    model_config = ConfigDict(frozen=True)

    aqi: int = Field(..., ge=0, le=500)
    aqi_label: AqiLabel
    congestion_pct: int = Field(..., ge=10, le=95)
    fuel_lph: float = Field(..., ge=20, le=500)
    alerts: List[Alert] = Field(default_factory=list)
    generated_at: datetime


class MetricCard(_Model):
    title: str
    value: str
    subtitle: str
    variant: str = "default"


class MetricsResponse(_Model):
    coordinate: Coordinate
    metrics: MetricsSnapshot
    cards: List[MetricCard] = Field(default_factory=list)


# ----- Routes -----
class RouteCandidate(_Model):
    id: str
    name: str
    distance_km: float = 0.0
    duration_min: int = 0
    path: List[Coordinate] = Field(default_factory=list)
    avg_aqi_approx: Optional[int] = None
    quality_label: Optional[str] = None


class RouteSearchStatus(str, Enum):
    OK = "ok"
    CONFIGURATION_MISSING = "configuration_missing"
    NO_CANDIDATES = "no_candidates"
    ERROR = "error"


class RouteSearchRequest(_Model):
    start: str = Field(..., min_length=1)
    end: str = Field(..., min_length=1)


class RouteSearchResult(_Model):
    status: RouteSearchStatus
    message: Optional[str] = None
    route: Optional[RouteCandidate] = None
    start: Optional[Coordinate] = None
    end: Optional[Coordinate] = None
    candidates: List[RouteCandidate] = Field(default_factory=list)
