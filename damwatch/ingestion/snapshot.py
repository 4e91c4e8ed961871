"""
snapshot.py — Per-site fan-out over the six sources.

    SnapshotAggregator.build_snapshot(site)
        ├── forecast        ┐
        ├── historical      │
        ├── soil_moisture   │  asyncio.gather, each cache-checked,
        ├── river_discharge │  each independently success-or-error
        ├── satellite       │
        └── seismic         ┘
        └── ReservoirEstimator (historical + discharge + soil) → always present

A degraded field contributes 0 to scoring through the accessors below; it
never aborts the snapshot.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence

import httpx

from damwatch.core.cache import TTLCache
from damwatch.core.config import Settings
from damwatch.risk.reservoir import ReservoirEstimate, ReservoirEstimator
from damwatch.sites.models import Site
from .base import SourceClient
from .models import (
    FetchStatus,
    ForecastPrecipitation,
    HistoricalPrecipitation,
    RiverDischarge,
    SatellitePrecipitation,
    SeismicActivity,
    SoilMoisture,
    SourceKind,
    SourceResult,
)
from .nasa_power import SatelliteClient
from .open_meteo import ForecastClient, HistoricalClient, RiverDischargeClient, SoilMoistureClient
from .usgs_seismic import SeismicClient

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


# ═══════════════════════════════════════════════════════════════════════════
# Source set
# ═══════════════════════════════════════════════════════════════════════════

@dataclass
class SourceSet:
    """The six clients, sharing one HTTP client and one cache."""
    forecast: ForecastClient
    historical: HistoricalClient
    soil_moisture: SoilMoistureClient
    river_discharge: RiverDischargeClient
    satellite: SatelliteClient
    seismic: SeismicClient

    @classmethod
    def create(
        cls,
        http: httpx.AsyncClient,
        *,
        cache: Optional[TTLCache] = None,
        config: Optional[Settings] = None,
        today: Callable[[], date] = date.today,
    ) -> "SourceSet":
        kw: Dict[str, Any] = {"cache": cache, "config": config, "today": today}
        return cls(
            forecast=ForecastClient(http, **kw),
            historical=HistoricalClient(http, **kw),
            soil_moisture=SoilMoistureClient(http, **kw),
            river_discharge=RiverDischargeClient(http, **kw),
            satellite=SatelliteClient(http, **kw),
            seismic=SeismicClient(http, **kw),
        )


# ═══════════════════════════════════════════════════════════════════════════
# Snapshot
# ═══════════════════════════════════════════════════════════════════════════

@dataclass
class EnvironmentalSnapshot:
    site: Site
    forecast: SourceResult[ForecastPrecipitation]
    historical: SourceResult[HistoricalPrecipitation]
    soil_moisture: SourceResult[SoilMoisture]
    river_discharge: SourceResult[RiverDischarge]
    satellite: SourceResult[SatellitePrecipitation]
    seismic: SourceResult[SeismicActivity]
    reservoir: ReservoirEstimate
    generated_at: datetime = field(default_factory=_now)

    @property
    def results(self) -> List[SourceResult]:
        return [
            self.forecast,
            self.historical,
            self.soil_moisture,
            self.river_discharge,
            self.satellite,
            self.seismic,
        ]

    # ── Scoring inputs (0 when the source is degraded) ──

    @property
    def forecast_rainfall_max(self) -> float:
        return self.forecast.data.max_precipitation if self.forecast.ok else 0.0

    @property
    def historical_rainfall_sum(self) -> float:
        return self.historical.data.total_precipitation if self.historical.ok else 0.0

    @property
    def river_discharge_latest(self) -> float:
        return self.river_discharge.data.latest_discharge if self.river_discharge.ok else 0.0

    @property
    def surface_soil_moisture(self) -> float:
        if not self.soil_moisture.ok:
            return 0.0
        soil = self.soil_moisture.data
        return soil.current.surface or soil.avg_24h.surface or 0.0

    @property
    def deep_soil_moisture(self) -> float:
        if not self.soil_moisture.ok:
            return 0.0
        soil = self.soil_moisture.data
        return soil.current.deep or soil.avg_24h.deep or 0.0

    @property
    def earthquake_count(self) -> int:
        return self.seismic.data.count if self.seismic.ok else 0

    @property
    def max_earthquake_magnitude(self) -> float:
        return self.seismic.data.max_magnitude if self.seismic.ok else 0.0

    # ── Provenance ──

    @property
    def availability(self) -> Dict[str, bool]:
        return {r.source.value: r.ok for r in self.results}

    @property
    def errors(self) -> Dict[str, str]:
        return {r.source.value: r.error_message for r in self.results if not r.ok}

    @property
    def data_sources(self) -> List[str]:
        return [r.label for r in self.results if r.ok]

    def environmental_summary(self) -> Dict[str, Any]:
        return {
            "reservoir_level": self.reservoir.level,
            "rainfall_trend": self.reservoir.trend.value,
            "forecast_rainfall_max": self.forecast_rainfall_max,
            "historical_rainfall_sum": self.historical_rainfall_sum,
            "river_discharge": self.river_discharge_latest,
            "soil_moisture": self.surface_soil_moisture,
            "deep_soil_moisture": self.deep_soil_moisture,
            "earthquake_count": self.earthquake_count,
            "max_earthquake_magnitude": self.max_earthquake_magnitude,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "site": self.site.summary(),
            "generated_at": self.generated_at.isoformat(),
            "sources": {r.source.value: r.to_dict() for r in self.results},
            "reservoir": self.reservoir.to_dict(),
            "summary": self.environmental_summary(),
            "data_sources": self.data_sources,
            "errors": self.errors,
        }


# ═══════════════════════════════════════════════════════════════════════════
# Aggregator
# ═══════════════════════════════════════════════════════════════════════════

def _settle(source: SourceKind, outcome: Any) -> SourceResult:
    """
    Merge one gathered outcome into a SourceResult.

    Clients never raise, so an exception here is a bug in a client; it still
    only degrades its own field. Cancellation propagates.
    """
    if isinstance(outcome, SourceResult):
        return outcome
    if isinstance(outcome, BaseException) and not isinstance(outcome, Exception):
        raise outcome
    logger.warning(
        "Source %s raised past its boundary: %r", source.value, outcome,
        extra={"source": source.value},
    )
    return SourceResult.failure(source, FetchStatus.PARSE_ERROR, f"Unexpected error: {outcome!r}")


class SnapshotAggregator:
    def __init__(self, sources: SourceSet, estimator: Optional[ReservoirEstimator] = None):
        self.sources = sources
        self.estimator = estimator or ReservoirEstimator()

    async def _gather(self, site: Site, clients: Sequence[SourceClient]) -> List[SourceResult]:
        outcomes = await asyncio.gather(
            *(client.fetch(site.latitude, site.longitude) for client in clients),
            return_exceptions=True,
        )
        return [_settle(client.kind, outcome) for client, outcome in zip(clients, outcomes)]

    async def build_snapshot(self, site: Site) -> EnvironmentalSnapshot:
        s = self.sources
        forecast, historical, soil, discharge, satellite, seismic = await self._gather(
            site,
            [s.forecast, s.historical, s.soil_moisture, s.river_discharge, s.satellite, s.seismic],
        )
        reservoir = self.estimator.estimate_for_site(site, historical.data, discharge.data, soil.data)

        snapshot = EnvironmentalSnapshot(
            site=site,
            forecast=forecast,
            historical=historical,
            soil_moisture=soil,
            river_discharge=discharge,
            satellite=satellite,
            seismic=seismic,
            reservoir=reservoir,
        )
        if snapshot.errors:
            logger.info(
                "Snapshot for %s degraded: %d/6 sources failed (%s)",
                site.id, len(snapshot.errors), ", ".join(sorted(snapshot.errors)),
                extra={"site_id": site.id},
            )
        return snapshot

    async def estimate_reservoir(self, site: Site) -> ReservoirEstimate:
        """Reservoir estimate alone: three sources instead of six."""
        s = self.sources
        historical, discharge, soil = await self._gather(
            site, [s.historical, s.river_discharge, s.soil_moisture],
        )
        return self.estimator.estimate_for_site(site, historical.data, discharge.data, soil.data)
