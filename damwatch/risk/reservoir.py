"""
reservoir.py — Synthetic reservoir fill estimate.

There is no live reservoir telemetry for the monitored dams, so the fill
percentage is synthesised from a monsoon-driven seasonal baseline adjusted by
live rainfall, discharge and soil signals:

    level = baseline[month]
          + min(capacity / 100, 1) · 15 − 7        capacity variation
          + min(Σ precip_7d / 10, 15)              recent rainfall
          + min(latest_Q / max(max_Q, 1), 1) · 12  discharge relative to peak
          + min(surface_soil / 0.4, 1) · 8         soil saturation
          + min(avg_Q / 100, 1) · 5                sustained discharge

clamped to [10, 98] and rounded to one decimal. Any missing input
contributes 0, so the estimate never fails and falls back to the baseline.

Downstream flood scores depend on this formula; keep it exact.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Dict, Optional, Sequence, Tuple

from damwatch.ingestion.models import HistoricalPrecipitation, RiverDischarge, SoilMoisture
from damwatch.sites.models import Site
from .models import TrendLabel

# Jan..Dec, percent full. Pre-monsoon trough in May, post-monsoon peak in Oct.
SEASONAL_BASELINE: Tuple[int, ...] = (38, 35, 33, 30, 28, 32, 45, 58, 70, 75, 65, 50)

MIN_LEVEL = 10.0
MAX_LEVEL = 98.0

TREND_WINDOW = 3
TREND_MIN_SAMPLES = 6
TREND_RISE_RATIO = 1.3
TREND_FALL_RATIO = 0.7


def rainfall_trend(values: Sequence[float]) -> TrendLabel:
    """
    Compare the last three daily totals against the first three.

    Fewer than six samples is reported as stable.
    """
    if len(values) < TREND_MIN_SAMPLES:
        return TrendLabel.STABLE
    recent = sum(values[-TREND_WINDOW:])
    earlier = sum(values[:TREND_WINDOW])
    if recent > earlier * TREND_RISE_RATIO:
        return TrendLabel.INCREASING
    if recent < earlier * TREND_FALL_RATIO:
        return TrendLabel.DECREASING
    return TrendLabel.STABLE


@dataclass(frozen=True)
class ReservoirEstimate:
    level: float
    trend: TrendLabel
    seasonal_baseline: int
    cumulative_precip_7d: float = 0.0
    river_discharge: float = 0.0
    soil_moisture: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level,
            "trend": self.trend.value,
            "seasonal_baseline": self.seasonal_baseline,
            "inputs": {
                "cumulative_precip_7d": self.cumulative_precip_7d,
                "river_discharge": self.river_discharge,
                "soil_moisture": self.soil_moisture,
            },
        }


class ReservoirEstimator:
    """Stateless apart from the calendar source used for the baseline month."""

    def __init__(self, today: Callable[[], date] = date.today):
        self._today = today

    def estimate(
        self,
        capacity: float,
        historical: Optional[HistoricalPrecipitation] = None,
        discharge: Optional[RiverDischarge] = None,
        soil: Optional[SoilMoisture] = None,
        *,
        month: Optional[int] = None,
    ) -> ReservoirEstimate:
        month = month or self._today().month
        baseline = SEASONAL_BASELINE[month - 1]

        precip = historical.values if historical is not None else []
        cumulative = sum(precip)

        latest_q = discharge.latest_discharge if discharge is not None else 0.0
        max_q = discharge.max_discharge if discharge is not None else 0.0
        avg_q = discharge.avg_discharge if discharge is not None else 0.0

        surface = 0.0
        if soil is not None:
            surface = soil.current.surface or soil.avg_24h.surface or 0.0

        level = (
            baseline
            + (min(capacity / 100.0, 1.0) * 15.0 - 7.0)
            + min(cumulative / 10.0, 15.0)
            + min(latest_q / max(max_q, 1.0), 1.0) * 12.0
            + min(surface / 0.4, 1.0) * 8.0
            + min(avg_q / 100.0, 1.0) * 5.0
        )
        level = min(max(level, MIN_LEVEL), MAX_LEVEL)

        return ReservoirEstimate(
            level=round(level, 1),
            trend=rainfall_trend(precip),
            seasonal_baseline=baseline,
            cumulative_precip_7d=round(cumulative, 2),
            river_discharge=latest_q,
            soil_moisture=surface,
        )

    def estimate_for_site(
        self,
        site: Site,
        historical: Optional[HistoricalPrecipitation] = None,
        discharge: Optional[RiverDischarge] = None,
        soil: Optional[SoilMoisture] = None,
    ) -> ReservoirEstimate:
        return self.estimate(site.capacity, historical, discharge, soil)
