"""
models.py — Normalised source payloads and the per-source result type.

Every upstream client returns a ``SourceResult``: a tagged union that is
either SUCCESS with a typed payload, or a failure status with a
``SourceError`` carrying the reason. Downstream code checks ``result.ok``
and never inspects raw upstream JSON.

    Source            Payload                   Upstream
    ──────────────    ──────────────────────    ─────────────────────────────
    forecast          ForecastPrecipitation     Open-Meteo Forecast
    historical        HistoricalPrecipitation   Open-Meteo (past window)
    soil_moisture     SoilMoisture              Open-Meteo Land-Surface Model
    river_discharge   RiverDischarge            Open-Meteo GloFAS Flood API
    satellite         SatellitePrecipitation    NASA POWER PRECTOTCORR
    seismic           SeismicActivity           USGS FDSN event service
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, TypeVar


# ═══════════════════════════════════════════════════════════════════════════
# Enums
# ═══════════════════════════════════════════════════════════════════════════

class SourceKind(str, Enum):
    """The six independent upstream sources."""
    FORECAST = "forecast"
    HISTORICAL = "historical"
    SOIL_MOISTURE = "soil_moisture"
    RIVER_DISCHARGE = "river_discharge"
    SATELLITE = "satellite"
    SEISMIC = "seismic"


class FetchStatus(str, Enum):
    """Outcome of a single source fetch."""
    SUCCESS = "success"
    NETWORK_ERROR = "network_error"
    API_ERROR = "api_error"          # HTTP 4xx/5xx
    TIMEOUT = "timeout"
    PARSE_ERROR = "parse_error"      # payload missing expected fields
    NO_DATA = "no_data"              # well-formed but empty
    INVALID_INPUT = "invalid_input"


def _now() -> datetime:
    return datetime.now(timezone.utc)


# ═══════════════════════════════════════════════════════════════════════════
# Result type
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class SourceError:
    source: SourceKind
    status: FetchStatus
    message: str

    def __str__(self) -> str:
        return f"{self.source.value}: {self.status.value}: {self.message}"


T = TypeVar("T")


@dataclass
class SourceResult(Generic[T]):
    """
    Either a normalised payload (``status == SUCCESS``) or an error.

    Build with ``SourceResult.success(...)`` / ``SourceResult.failure(...)``
    rather than the constructor so the two variants stay consistent.
    """
    source: SourceKind
    status: FetchStatus
    data: Optional[T] = None
    error: Optional[SourceError] = None
    label: str = ""
    fetched_at: datetime = field(default_factory=_now)
    fetch_duration_ms: int = 0

    @classmethod
    def success(
        cls,
        source: SourceKind,
        data: T,
        *,
        label: str = "",
        fetch_duration_ms: int = 0,
    ) -> "SourceResult[T]":
        return cls(
            source=source,
            status=FetchStatus.SUCCESS,
            data=data,
            label=label,
            fetch_duration_ms=fetch_duration_ms,
        )

    @classmethod
    def failure(
        cls,
        source: SourceKind,
        status: FetchStatus,
        message: str,
        *,
        fetch_duration_ms: int = 0,
    ) -> "SourceResult[T]":
        if status == FetchStatus.SUCCESS:
            raise ValueError("failure() requires a non-success status")
        return cls(
            source=source,
            status=status,
            error=SourceError(source, status, message),
            fetch_duration_ms=fetch_duration_ms,
        )

    @property
    def ok(self) -> bool:
        return self.status == FetchStatus.SUCCESS and self.data is not None

    @property
    def error_message(self) -> Optional[str]:
        return self.error.message if self.error else None

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "source": self.source.value,
            "status": self.status.value,
            "fetched_at": self.fetched_at.isoformat(),
            "fetch_duration_ms": self.fetch_duration_ms,
        }
        if self.ok:
            d["label"] = self.label
            d["data"] = self.data.to_dict()
        else:
            d["error"] = self.error_message
        return d


# ═══════════════════════════════════════════════════════════════════════════
# Normalised payloads
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class DailyValue:
    date: str  # ISO date, YYYY-MM-DD
    value: float

    def to_dict(self) -> Dict[str, Any]:
        return {"date": self.date, "value": self.value}


@dataclass(frozen=True)
class ForecastPrecipitation:
    """Daily precipitation forecast (mm) plus daily context series."""
    days: List[DailyValue]
    max_precipitation: float
    total_precipitation: float
    temperature_max: List[Optional[float]] = field(default_factory=list)
    temperature_min: List[Optional[float]] = field(default_factory=list)
    precipitation_probability: List[Optional[float]] = field(default_factory=list)

    @property
    def values(self) -> List[float]:
        return [d.value for d in self.days]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "daily": [d.to_dict() for d in self.days],
            "max_precipitation_mm": self.max_precipitation,
            "total_precipitation_mm": self.total_precipitation,
            "temperature_max": self.temperature_max,
            "temperature_min": self.temperature_min,
            "precipitation_probability": self.precipitation_probability,
        }


@dataclass(frozen=True)
class HistoricalPrecipitation:
    """Observed daily precipitation (mm), oldest first."""
    start_date: str
    end_date: str
    days: List[DailyValue]
    total_precipitation: float

    @property
    def values(self) -> List[float]:
        return [d.value for d in self.days]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "period": {"start_date": self.start_date, "end_date": self.end_date},
            "daily": [d.to_dict() for d in self.days],
            "total_precipitation_mm": self.total_precipitation,
        }


@dataclass(frozen=True)
class SoilLayers:
    """Volumetric soil moisture (m³/m³) by depth band."""
    surface: float = 0.0  # 0–3 cm
    mid: float = 0.0      # 3–27 cm
    deep: float = 0.0     # 27–81 cm

    def to_dict(self) -> Dict[str, float]:
        return {"surface": self.surface, "mid": self.mid, "deep": self.deep}


@dataclass(frozen=True)
class SoilMoisture:
    current: SoilLayers
    avg_24h: SoilLayers
    surface_temperature_c: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current": self.current.to_dict(),
            "avg_24h": self.avg_24h.to_dict(),
            "surface_temperature_c": self.surface_temperature_c,
        }


@dataclass(frozen=True)
class RiverDischarge:
    """Daily river discharge (m³/s) with summary statistics."""
    days: List[DailyValue]
    max_discharge: float
    avg_discharge: float
    latest_discharge: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "daily": [d.to_dict() for d in self.days],
            "stats": {
                "max_discharge": self.max_discharge,
                "avg_discharge": self.avg_discharge,
                "latest_discharge": self.latest_discharge,
            },
        }


@dataclass(frozen=True)
class SatellitePrecipitation:
    days: List[DailyValue]
    total_precipitation: float
    avg_precipitation: float

    @property
    def day_count(self) -> int:
        return len(self.days)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "daily": [d.to_dict() for d in self.days],
            "stats": {
                "total_precipitation_mm": self.total_precipitation,
                "avg_precipitation_mm": self.avg_precipitation,
                "days": self.day_count,
            },
        }


@dataclass(frozen=True)
class SeismicEvent:
    event_id: str
    magnitude: float
    depth_km: float
    place: str
    time: datetime
    latitude: float
    longitude: float
    distance_km: float  # great-circle distance from the site

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.event_id,
            "magnitude": self.magnitude,
            "depth_km": self.depth_km,
            "place": self.place,
            "time": self.time.isoformat(),
            "coordinates": {"latitude": self.latitude, "longitude": self.longitude},
            "distance_km": self.distance_km,
        }


@dataclass(frozen=True)
class SeismicActivity:
    """Events within the search radius, newest first."""
    events: List[SeismicEvent]
    radius_km: float

    @property
    def count(self) -> int:
        return len(self.events)

    @property
    def max_magnitude(self) -> float:
        return max((e.magnitude for e in self.events), default=0.0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "radius_km": self.radius_km,
            "count": self.count,
            "max_magnitude": self.max_magnitude,
            "events": [e.to_dict() for e in self.events],
        }
