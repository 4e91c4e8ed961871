"""Batch coordination and the HazardEngine facade."""

from .batch import BatchCoordinator, BatchResult, SiteFailure, chunked
from .engine import AlertFeed, HazardEngine, RainfallBundle, ReservoirReading, RiskOverview, SiteAssessment

__all__ = [
    "AlertFeed",
    "BatchCoordinator",
    "BatchResult",
    "HazardEngine",
    "RainfallBundle",
    "ReservoirReading",
    "RiskOverview",
    "SiteAssessment",
    "SiteFailure",
    "chunked",
]
