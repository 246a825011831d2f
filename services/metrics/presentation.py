"""
Dashboard cards derived from a MetricsSnapshot: relative age and severity variants.
"""
from datetime import datetime, timezone
from typing import List, Optional

from schemas import MetricCard, MetricsSnapshot

RUSH_HOUR_CONGESTION_PCT = 75


def time_ago(generated_at: datetime, now: Optional[datetime] = None) -> str:
    """'42s ago', '5 min ago' or '3 hr ago'. Future timestamps count as 0s."""
    now = now or datetime.now(timezone.utc)
    diff = max(0, int((now - generated_at).total_seconds()))
    if diff < 60:
        return f"{diff}s ago"
    if diff < 3600:
        return f"{diff // 60} min ago"
    return f"{diff // 3600} hr ago"


def aqi_variant(aqi: int) -> str:
    if aqi > 150:
        return "destructive"
    if aqi > 100:
        return "warning"
    return "default"


def build_metric_cards(snapshot: MetricsSnapshot, now: Optional[datetime] = None) -> List[MetricCard]:
    updated = f"Last updated {time_ago(snapshot.generated_at, now)}"
    rush_hour = snapshot.congestion_pct > RUSH_HOUR_CONGESTION_PCT
    n_alerts = len(snapshot.alerts)
    return [
        MetricCard(
            title="Average AQI",
            value=str(snapshot.aqi),
            subtitle=f"{snapshot.aqi_label.value} • {updated}",
            variant=aqi_variant(snapshot.aqi),
        ),
        MetricCard(
            title="Traffic Congestion",
            value=f"{snapshot.congestion_pct}%",
            subtitle=f"{'Above average • Rush hour' if rush_hour else 'Normal'} • {updated}",
            variant="warning" if rush_hour else "default",
        ),
        MetricCard(
            title="Fuel Wasted",
            value=f"{snapshot.fuel_lph:g} L/hr",
            subtitle=f"Estimated across all zones • {updated}",
            variant="warning",
        ),
        MetricCard(
            title="Active Alerts",
            value=str(n_alerts),
            subtitle=f"{n_alerts} active • {updated}",
            variant="destructive" if n_alerts > 0 else "default",
        ),
    ]
