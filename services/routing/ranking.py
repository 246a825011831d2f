"""
Order candidates by sampled air quality and pick the eco-optimized route.
"""
from typing import List, Optional, Sequence

from schemas import RouteCandidate
from services.metrics.constants import ROUTE_QUALITY_UNKNOWN

ECO_OPTIMIZED_NAME = "Eco-Optimized Route"


def rank(candidates: Sequence[RouteCandidate]) -> List[RouteCandidate]:
    """Ascending avg_aqi_approx, unsampled last; ties keep fetch order (sorted is stable)."""
    return sorted(
        candidates,
        key=lambda c: (c.avg_aqi_approx is None, c.avg_aqi_approx or 0),
    )


def select(
    candidates: Sequence[RouteCandidate],
    air_quality_configured: bool = True,
) -> Optional[RouteCandidate]:
    """
    Winner of rank(), renamed 'Eco-Optimized Route'. Without an AQI provider, or
    when no candidate has geometry, ranking is skipped: the first fetched
    candidate is returned labelled Unknown. None only for no candidates.
    """
    if not candidates:
        return None
    if not air_quality_configured or not any(c.path for c in candidates):
        return candidates[0].model_copy(update={"quality_label": ROUTE_QUALITY_UNKNOWN})
    return rank(candidates)[0].model_copy(update={"name": ECO_OPTIMIZED_NAME})
