"""
prediction.py — 24-hour score extrapolation.

    delta = trend shift (+12 increasing, +3 stable, −8 decreasing)
          + 5 if river discharge is high
          + 4 if the surface soil is saturated
          + 3 if any earthquake was recorded nearby
    predicted_24h = clamp(current + delta, 0, 100)

Confidence starts at 60 and gains 10 for each live source category that
reported (weather, soil, discharge, seismic), capped at 95.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Any, Dict

from .models import Prediction, TrendLabel

if TYPE_CHECKING:
    from damwatch.ingestion.snapshot import EnvironmentalSnapshot

HIGH_DISCHARGE_M3S = 500
SATURATED_SOIL = 0.35

TREND_DELTA: Dict[TrendLabel, int] = {
    TrendLabel.INCREASING: 12,
    TrendLabel.STABLE: 3,
    TrendLabel.DECREASING: -8,
}
HIGH_DISCHARGE_DELTA = 5
SATURATED_SOIL_DELTA = 4
SEISMIC_DELTA = 3

BASE_CONFIDENCE = 60
CONFIDENCE_PER_SOURCE = 10
MAX_CONFIDENCE = 95


@dataclass(frozen=True)
class PredictionFactors:
    high_discharge: bool = False
    saturated_soil: bool = False
    seismic_activity: bool = False
    has_weather_data: bool = False
    has_soil_data: bool = False
    has_discharge_data: bool = False
    has_seismic_data: bool = False

    @classmethod
    def from_snapshot(cls, snapshot: "EnvironmentalSnapshot") -> "PredictionFactors":
        return cls(
            high_discharge=snapshot.river_discharge_latest > HIGH_DISCHARGE_M3S,
            saturated_soil=snapshot.surface_soil_moisture > SATURATED_SOIL,
            seismic_activity=snapshot.earthquake_count > 0,
            has_weather_data=snapshot.forecast.ok,
            has_soil_data=snapshot.soil_moisture.ok,
            has_discharge_data=snapshot.river_discharge.ok,
            has_seismic_data=snapshot.seismic.ok,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def prediction_confidence(factors: PredictionFactors) -> int:
    available = sum((
        factors.has_weather_data,
        factors.has_soil_data,
        factors.has_discharge_data,
        factors.has_seismic_data,
    ))
    return min(BASE_CONFIDENCE + CONFIDENCE_PER_SOURCE * available, MAX_CONFIDENCE)


def predict_24h(current: int, trend: TrendLabel, factors: PredictionFactors) -> Prediction:
    trend = TrendLabel(trend)
    delta = TREND_DELTA[trend]
    if factors.high_discharge:
        delta += HIGH_DISCHARGE_DELTA
    if factors.saturated_soil:
        delta += SATURATED_SOIL_DELTA
    if factors.seismic_activity:
        delta += SEISMIC_DELTA

    return Prediction(
        current=current,
        predicted_24h=max(0, min(100, current + delta)),
        trend=trend,
        confidence=prediction_confidence(factors),
    )
