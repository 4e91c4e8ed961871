"""
Upstream source clients and their normalised payloads.

The per-site aggregator lives in ``damwatch.ingestion.snapshot``.
"""

from .base import SourceClient
from .models import FetchStatus, SourceError, SourceKind, SourceResult
from .nasa_power import SatelliteClient
from .open_meteo import ForecastClient, HistoricalClient, RiverDischargeClient, SoilMoistureClient
from .usgs_seismic import SeismicClient

__all__ = [
    "FetchStatus",
    "ForecastClient",
    "HistoricalClient",
    "RiverDischargeClient",
    "SatelliteClient",
    "SeismicClient",
    "SoilMoistureClient",
    "SourceClient",
    "SourceError",
    "SourceKind",
    "SourceResult",
]
