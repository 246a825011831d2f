"""
Synthesize a traffic / air-quality snapshot for a coordinate.

Values are derived, not measured: the same coordinate always yields the same
aqi, congestion, fuel and alert identities. Only generated_at varies.
"""
import math
import re
from datetime import datetime, timezone
from typing import List, Optional, Sequence, Tuple

from schemas import Alert, AlertLevel, Coordinate, MetricsSnapshot, to_fixed
from services.metrics.constants import ALERT_TEMPLATES, aqi_label
from services.metrics.seeded_random import SeededRandom, location_seed

AQI_BASE = 30
AQI_SPAN = 270
AQI_SKEW = 1.2  # > 1 compresses the low end of the draw

CONGESTION_MIN = 10
CONGESTION_MAX = 95

FUEL_MIN = 20
FUEL_MAX = 500

MAX_ALERTS = 3


def round_half_up(x: float) -> int:
    return math.floor(x + 0.5)


def clamp(n: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, n))


def title_slug(title: str) -> str:
    return re.sub(r"\s+", "-", title)


def alert_count(aqi: int, roll: float) -> int:
    """0 alerts for clean air and a low roll, up to MAX_ALERTS when both are high."""
    chance = clamp((aqi - 50) / 300 + roll * 0.5, 0, 1)
    if chance > 0.6:
        return math.ceil(chance * MAX_ALERTS)
    return math.floor(chance * 2)


def alert_id(coordinate: Coordinate, index: int, title: str) -> str:
    return f"{to_fixed(coordinate.lat)}:{to_fixed(coordinate.lng)}:{index}:{title_slug(title)}"


def synthesize(
    coordinate: Coordinate,
    now: Optional[datetime] = None,
    templates: Sequence[Tuple[AlertLevel, str, str]] = ALERT_TEMPLATES,
) -> MetricsSnapshot:
    """Build a MetricsSnapshot for coordinate. Draw order is fixed; do not reorder."""
    rand = SeededRandom(location_seed(coordinate.lat, coordinate.lng))

    aqi = round_half_up(AQI_BASE + rand() ** AQI_SKEW * AQI_SPAN)
    congestion = int(clamp(CONGESTION_MIN + round_half_up(rand() * 85), CONGESTION_MIN, CONGESTION_MAX))
    fuel = round_half_up(clamp(FUEL_MIN + congestion * (5 + rand() * 1.5), FUEL_MIN, FUEL_MAX))

    alerts: List[Alert] = []
    for i in range(alert_count(aqi, rand())):
        level, title, hint = templates[math.floor(rand() * len(templates))]
        alerts.append(
            Alert(
                id=alert_id(coordinate, i, title),
                level=level,
                title=title,
                description=f"{hint} • AQI: {aqi} • {congestion}% Traffic Congestion",
            )
        )

    return MetricsSnapshot(
        aqi=aqi,
        aqi_label=aqi_label(aqi),
        congestion_pct=congestion,
        fuel_lph=float(fuel),
        alerts=alerts,
        generated_at=now or datetime.now(timezone.utc),
    )
