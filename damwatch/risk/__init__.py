"""Reservoir estimation, hazard scoring and 24-hour prediction."""

from .models import HazardKind, Prediction, RiskLevel, RiskScore, SiteRisk, TrendLabel
from .prediction import PredictionFactors, predict_24h, prediction_confidence
from .reservoir import ReservoirEstimate, ReservoirEstimator, rainfall_trend
from .scoring import classify_level, compute_risk, flood_risk, landslide_risk, region_susceptibility

__all__ = [
    "HazardKind",
    "Prediction",
    "PredictionFactors",
    "ReservoirEstimate",
    "ReservoirEstimator",
    "RiskLevel",
    "RiskScore",
    "SiteRisk",
    "TrendLabel",
    "classify_level",
    "compute_risk",
    "flood_risk",
    "landslide_risk",
    "predict_24h",
    "prediction_confidence",
    "rainfall_trend",
    "region_susceptibility",
]
