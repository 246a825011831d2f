"""
AQI thresholds and the alert template table used by the metrics synthesizer.
"""
from typing import List, Optional, Tuple

from schemas import AlertLevel, AqiLabel

# Upper bound (inclusive) -> label; anything above the last bound is Hazardous
AQI_THRESHOLDS: List[Tuple[int, AqiLabel]] = [
    (50, AqiLabel.GOOD),
    (100, AqiLabel.MODERATE),
    (150, AqiLabel.UNHEALTHY_FOR_SENSITIVE_GROUPS),
    (200, AqiLabel.UNHEALTHY),
    (300, AqiLabel.VERY_UNHEALTHY),
]

# Coarser buckets used for route quality labels
ROUTE_QUALITY_THRESHOLDS: List[Tuple[int, str]] = [
    (50, "Good"),
    (100, "Moderate"),
    (200, "Unhealthy"),
]
ROUTE_QUALITY_HAZARDOUS = "Hazardous"
ROUTE_QUALITY_UNKNOWN = "Unknown"

# (level, title, hint); order matters, the synthesizer indexes into it
ALERT_TEMPLATES: List[Tuple[AlertLevel, str, str]] = [
    (AlertLevel.CRITICAL, "Critical AQI Level", "Avoid area—health risk"),
    (AlertLevel.HIGH, "High NO₂ Levels", "Use alternate routes"),
    (AlertLevel.HIGH, "Traffic Bottleneck", "Expect delays"),
    (AlertLevel.MODERATE, "Elevated Emissions", "Worsening during evening"),
    (AlertLevel.MODERATE, "Construction Work", "Slow traffic expected"),
]


def aqi_label(aqi: float) -> AqiLabel:
    """Map numeric AQI to its category label."""
    for upper, label in AQI_THRESHOLDS:
        if aqi <= upper:
            return label
    return AqiLabel.HAZARDOUS


def route_quality_label(avg_aqi: Optional[float]) -> str:
    """Collapsed label for a route's approximate AQI. 'Unknown' if not sampled."""
    if avg_aqi is None:
        return ROUTE_QUALITY_UNKNOWN
    for upper, label in ROUTE_QUALITY_THRESHOLDS:
        if avg_aqi <= upper:
            return label
    return ROUTE_QUALITY_HAZARDOUS
