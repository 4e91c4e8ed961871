"""
engine.py — HazardEngine: the one object callers hold.

Owns the shared pieces, constructed once and passed by reference:

    Settings ─┬─ TTLCache ─────────┐
              ├─ httpx.AsyncClient ┼─ SourceSet ─ SnapshotAggregator
              └─ BatchCoordinator  │
                                   └─ (one cache, one connection pool)

Usage:
    async with HazardEngine() as engine:
        overview = await engine.assess_all(sites)
        feed = await engine.collect_alerts(sites, severity=AlertSeverity.HIGH)
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, TypeVar

import httpx

from damwatch.alerts.generator import generate_alerts
from damwatch.alerts.models import Alert, AlertSeverity
from damwatch.core.cache import TTLCache
from damwatch.core.config import Settings, get_settings
from damwatch.ingestion.models import (
    ForecastPrecipitation,
    HistoricalPrecipitation,
    SatellitePrecipitation,
    SourceResult,
)
from damwatch.ingestion.snapshot import EnvironmentalSnapshot, SnapshotAggregator, SourceSet
from damwatch.risk.models import Prediction, RiskScore, SiteRisk, TrendLabel
from damwatch.risk.prediction import PredictionFactors, predict_24h
from damwatch.risk.reservoir import ReservoirEstimate, ReservoirEstimator
from damwatch.risk.scoring import compute_risk
from damwatch.sites.models import Site
from damwatch.spatial.radius_utils import Coordinate
from .batch import BatchCoordinator, BatchResult, SiteFailure

logger = logging.getLogger(__name__)

R = TypeVar("R")


def _now() -> datetime:
    return datetime.now(timezone.utc)


# ═══════════════════════════════════════════════════════════════════════════
# Result types
# ═══════════════════════════════════════════════════════════════════════════

@dataclass
class SiteAssessment:
    """Everything computed for one site in one cycle."""
    site: Site
    snapshot: EnvironmentalSnapshot
    risk: SiteRisk
    flood_prediction: Prediction
    landslide_prediction: Prediction
    alerts: List[Alert]
    assessed_at: datetime = field(default_factory=_now)

    @property
    def flood(self) -> RiskScore:
        return self.risk.flood

    @property
    def landslide(self) -> RiskScore:
        return self.risk.landslide

    @property
    def overall(self) -> int:
        return self.risk.overall

    def overview_entry(self) -> Dict[str, Any]:
        return {
            **self.site.summary(),
            "flood_risk": {"level": self.flood.level.value, "score": self.flood.score},
            "landslide_risk": {"level": self.landslide.level.value, "score": self.landslide.score},
            "overall_risk": self.overall,
            "environmental": self.snapshot.environmental_summary(),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "site": self.site.summary(),
            "flood_risk": {**self.flood.to_dict(), "prediction": self.flood_prediction.to_dict()},
            "landslide_risk": {**self.landslide.to_dict(), "prediction": self.landslide_prediction.to_dict()},
            "overall_risk": self.overall,
            "reservoir": self.snapshot.reservoir.to_dict(),
            "environmental": self.snapshot.environmental_summary(),
            "alerts": [a.to_dict() for a in self.alerts],
            "data_sources": self.snapshot.data_sources,
            "source_errors": self.snapshot.errors,
            "assessed_at": self.assessed_at.isoformat(),
        }


@dataclass
class RiskOverview:
    """All sites, highest overall risk first."""
    assessments: List[SiteAssessment]
    failures: List[SiteFailure] = field(default_factory=list)
    generated_at: datetime = field(default_factory=_now)

    def __post_init__(self) -> None:
        self.assessments = sorted(self.assessments, key=lambda a: a.overall, reverse=True)

    @property
    def dropped(self) -> int:
        return len(self.failures)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sites": [a.overview_entry() for a in self.assessments],
            "total": len(self.assessments),
            "dropped": self.dropped,
            "failures": [f.to_dict() for f in self.failures],
            "generated_at": self.generated_at.isoformat(),
        }


@dataclass
class AlertFeed:
    """Alerts across all sites, highest score first."""
    alerts: List[Alert]
    severity: Optional[AlertSeverity] = None
    failures: List[SiteFailure] = field(default_factory=list)
    generated_at: datetime = field(default_factory=_now)

    def __post_init__(self) -> None:
        if self.severity is not None:
            self.alerts = [a for a in self.alerts if a.severity == self.severity]
        self.alerts = sorted(self.alerts, key=lambda a: a.score, reverse=True)

    @property
    def dropped(self) -> int:
        return len(self.failures)

    def counts(self) -> Dict[str, int]:
        return {s.name: sum(1 for a in self.alerts if a.severity == s) for s in AlertSeverity}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "alerts": [a.to_dict() for a in self.alerts],
            "total": len(self.alerts),
            "counts": self.counts(),
            "severity": self.severity.name if self.severity is not None else None,
            "dropped": self.dropped,
            "generated_at": self.generated_at.isoformat(),
        }


@dataclass
class ReservoirReading:
    site: Site
    estimate: ReservoirEstimate

    def to_dict(self) -> Dict[str, Any]:
        return {**self.site.summary(), "capacity": self.site.capacity, **self.estimate.to_dict()}


@dataclass
class RainfallBundle:
    """Forecast, recent history and satellite rainfall for one point."""
    coordinate: Coordinate
    forecast: SourceResult[ForecastPrecipitation]
    historical: SourceResult[HistoricalPrecipitation]
    satellite: SourceResult[SatellitePrecipitation]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "coordinates": self.coordinate.to_dict(),
            "forecast": self.forecast.to_dict(),
            "historical": self.historical.to_dict(),
            "satellite": self.satellite.to_dict(),
        }


# ═══════════════════════════════════════════════════════════════════════════
# Engine
# ═══════════════════════════════════════════════════════════════════════════

class HazardEngine:
    def __init__(
        self,
        config: Optional[Settings] = None,
        *,
        http: Optional[httpx.AsyncClient] = None,
        cache: Optional[TTLCache] = None,
        today: Callable[[], date] = date.today,
    ):
        self.config = config or get_settings()
        self.cache = cache if cache is not None else TTLCache(self.config.CACHE_TTL_SECONDS)
        self._owns_http = http is None
        self.http = http or httpx.AsyncClient(
            headers={"User-Agent": f"{self.config.APP_NAME}/{self.config.APP_VERSION}"},
        )
        self.sources = SourceSet.create(self.http, cache=self.cache, config=self.config, today=today)
        self.aggregator = SnapshotAggregator(self.sources, ReservoirEstimator(today))
        self.coordinator = BatchCoordinator(self.config.BATCH_SIZE)

    async def aclose(self) -> None:
        logger.debug("Engine closing, cache stats: %s", self.cache.stats())
        if self._owns_http:
            await self.http.aclose()

    async def __aenter__(self) -> "HazardEngine":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # ── Core contract ──

    async def compute_snapshot(self, site: Site) -> EnvironmentalSnapshot:
        return await self.aggregator.build_snapshot(site)

    def compute_risk(self, snapshot: EnvironmentalSnapshot) -> SiteRisk:
        return compute_risk(snapshot)

    def predict(self, score: int, trend: TrendLabel, flags: PredictionFactors) -> Prediction:
        return predict_24h(score, trend, flags)

    def generate_alerts(
        self, flood: RiskScore, landslide: RiskScore, site_name: str, *, site_id: str = "",
    ) -> List[Alert]:
        return generate_alerts(flood, landslide, site_name, site_id=site_id)

    async def process_batch(
        self,
        sites: Sequence[Site],
        fn: Callable[[Site], Awaitable[R]],
        batch_size: Optional[int] = None,
    ) -> BatchResult[R]:
        return await self.coordinator.process_all(sites, fn, batch_size)

    # ── Site-level and fleet-level views ──

    async def assess_site(self, site: Site) -> SiteAssessment:
        snapshot = await self.compute_snapshot(site)
        risk = self.compute_risk(snapshot)
        factors = PredictionFactors.from_snapshot(snapshot)
        trend = snapshot.reservoir.trend

        assessment = SiteAssessment(
            site=site,
            snapshot=snapshot,
            risk=risk,
            flood_prediction=self.predict(risk.flood.score, trend, factors),
            landslide_prediction=self.predict(risk.landslide.score, trend, factors),
            alerts=self.generate_alerts(risk.flood, risk.landslide, site.name, site_id=site.id),
        )
        logger.debug(
            "Assessed %s: flood=%d (%s) landslide=%d (%s)",
            site.id, risk.flood.score, risk.flood.level.value,
            risk.landslide.score, risk.landslide.level.value,
            extra={"site_id": site.id},
        )
        return assessment

    async def assess_all(self, sites: Sequence[Site], batch_size: Optional[int] = None) -> RiskOverview:
        batch = await self.process_batch(sites, self.assess_site, batch_size)
        return RiskOverview(assessments=batch.results, failures=batch.failures)

    async def collect_alerts(
        self,
        sites: Sequence[Site],
        severity: Optional[AlertSeverity] = None,
        batch_size: Optional[int] = None,
    ) -> AlertFeed:
        batch = await self.process_batch(sites, self.assess_site, batch_size)
        alerts = [alert for assessment in batch.results for alert in assessment.alerts]
        return AlertFeed(alerts=alerts, severity=severity, failures=batch.failures)

    async def reservoir_levels(
        self, sites: Sequence[Site], batch_size: Optional[int] = None,
    ) -> BatchResult[ReservoirReading]:
        async def reading(site: Site) -> ReservoirReading:
            return ReservoirReading(site=site, estimate=await self.aggregator.estimate_reservoir(site))

        return await self.process_batch(sites, reading, batch_size)

    async def rainfall_bundle(self, coordinate: Coordinate) -> RainfallBundle:
        lat, lon = coordinate.latitude, coordinate.longitude
        forecast, historical, satellite = await asyncio.gather(
            self.sources.forecast.fetch(lat, lon),
            self.sources.historical.fetch(lat, lon),
            self.sources.satellite.fetch(lat, lon),
        )
        return RainfallBundle(
            coordinate=coordinate,
            forecast=forecast,
            historical=historical,
            satellite=satellite,
        )
