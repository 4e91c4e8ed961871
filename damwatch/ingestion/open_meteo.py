"""
Open-Meteo sources: forecast, recent history, soil moisture, river discharge.

═══════════════════════════════════════════════════════════════════════════
ENDPOINTS
═══════════════════════════════════════════════════════════════════════════

    {OPEN_METEO_BASE_URL}/forecast   forecast, history (past window), soil
    {OPEN_METEO_FLOOD_URL}           GloFAS daily river discharge

No API key required. All requests pass ``timezone`` so daily buckets line up
with local calendar days at the monitored sites.

Nulls inside daily/hourly arrays are normal (model spin-up, gaps). Rainfall
nulls count as 0 mm; soil and discharge nulls are skipped.
═══════════════════════════════════════════════════════════════════════════
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any, Dict, List, Optional, Sequence

from .base import SourceClient, no_data, parse_error
from .models import (
    DailyValue,
    ForecastPrecipitation,
    HistoricalPrecipitation,
    RiverDischarge,
    SoilLayers,
    SoilMoisture,
    SourceKind,
)

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
# Constants
# ═══════════════════════════════════════════════════════════════════════════

FORECAST_DAILY_PARAMS = [
    "precipitation_sum",
    "rain_sum",
    "precipitation_probability_max",
    "temperature_2m_max",
    "temperature_2m_min",
    "windspeed_10m_max",
]

FORECAST_HOURLY_PARAMS = [
    "precipitation",
    "precipitation_probability",
    "relative_humidity_2m",
    "soil_moisture_0_to_1cm",
]

HISTORICAL_DAILY_PARAMS = ["precipitation_sum", "rain_sum"]

SOIL_BANDS = [
    "soil_moisture_0_to_1cm",
    "soil_moisture_1_to_3cm",
    "soil_moisture_3_to_9cm",
    "soil_moisture_9_to_27cm",
    "soil_moisture_27_to_81cm",
]
SOIL_TEMPERATURE = "soil_temperature_0cm"

SOIL_PAST_DAYS = 2
SOIL_FORECAST_DAYS = 1
SOIL_AVERAGE_SAMPLES = 24  # hourly samples → 24 h


# ═══════════════════════════════════════════════════════════════════════════
# Helpers
# ═══════════════════════════════════════════════════════════════════════════

def _daily_series(raw: Any, key: str, source: SourceKind) -> Dict[str, List[Any]]:
    """Return the ``daily`` block, requiring ``time`` and ``key`` arrays."""
    daily = raw.get("daily") if isinstance(raw, dict) else None
    if not isinstance(daily, dict) or not isinstance(daily.get(key), list):
        raise parse_error(source, f"response has no daily.{key} array")
    if not isinstance(daily.get("time"), list):
        raise parse_error(source, "response has no daily.time array")
    return daily


def _rain_days(dates: Sequence[str], values: Sequence[Any]) -> List[DailyValue]:
    return [
        DailyValue(date=str(d), value=float(v) if v is not None else 0.0)
        for d, v in zip(dates, values)
    ]


def _valid(values: Optional[Sequence[Any]]) -> List[float]:
    return [float(v) for v in (values or []) if v is not None]


def _mean_available(*values: Optional[float]) -> float:
    """
    Mean of the values that are present.

    A genuine 0.0 reading counts as present; None means the band had no
    valid sample. Returns 0.0 when nothing is present.
    """
    present = [v for v in values if v is not None]
    if not present:
        return 0.0
    return round(sum(present) / len(present), 4)


def _last(values: List[float]) -> Optional[float]:
    return values[-1] if values else None


def _recent_mean(values: List[float], n: int = SOIL_AVERAGE_SAMPLES) -> float:
    window = values[-n:]
    if not window:
        return 0.0
    return round(sum(window) / len(window), 4)


# ═══════════════════════════════════════════════════════════════════════════
# Clients
# ═══════════════════════════════════════════════════════════════════════════

class ForecastClient(SourceClient[ForecastPrecipitation]):
    """Daily precipitation forecast for the next FORECAST_DAYS days."""

    kind = SourceKind.FORECAST
    label = "Open-Meteo Forecast"

    async def _request(self, latitude: float, longitude: float, **params: Any) -> Any:
        return await self._get(
            f"{self.config.OPEN_METEO_BASE_URL}/forecast",
            {
                "latitude": latitude,
                "longitude": longitude,
                "daily": ",".join(FORECAST_DAILY_PARAMS),
                "hourly": ",".join(FORECAST_HOURLY_PARAMS),
                "timezone": self.config.SOURCE_TIMEZONE,
                "forecast_days": params.get("days", self.config.FORECAST_DAYS),
            },
        )

    def _normalise(self, raw: Any, latitude: float, longitude: float, **params: Any) -> ForecastPrecipitation:
        daily = _daily_series(raw, "precipitation_sum", self.kind)
        days = _rain_days(daily["time"], daily["precipitation_sum"])
        values = [d.value for d in days]
        return ForecastPrecipitation(
            days=days,
            max_precipitation=max(values, default=0.0),
            total_precipitation=round(sum(values), 2),
            temperature_max=list(daily.get("temperature_2m_max") or []),
            temperature_min=list(daily.get("temperature_2m_min") or []),
            precipitation_probability=list(daily.get("precipitation_probability_max") or []),
        )


class HistoricalClient(SourceClient[HistoricalPrecipitation]):
    """
    Observed precipitation for the HISTORY_DAYS days ending yesterday.

    Uses the forecast endpoint with an explicit past window, which Open-Meteo
    serves from its analysis archive with no archive-API delay.
    """

    kind = SourceKind.HISTORICAL
    label = "Open-Meteo Historical"

    def window(self, days: Optional[int] = None) -> tuple:
        today = self.today()
        start = today - timedelta(days=days or self.config.HISTORY_DAYS)
        end = today - timedelta(days=1)
        return start.isoformat(), end.isoformat()

    async def _request(self, latitude: float, longitude: float, **params: Any) -> Any:
        start, end = self.window(params.get("days"))
        return await self._get(
            f"{self.config.OPEN_METEO_BASE_URL}/forecast",
            {
                "latitude": latitude,
                "longitude": longitude,
                "start_date": start,
                "end_date": end,
                "daily": ",".join(HISTORICAL_DAILY_PARAMS),
                "timezone": self.config.SOURCE_TIMEZONE,
            },
        )

    def _normalise(self, raw: Any, latitude: float, longitude: float, **params: Any) -> HistoricalPrecipitation:
        daily = _daily_series(raw, "precipitation_sum", self.kind)
        days = _rain_days(daily["time"], daily["precipitation_sum"])
        start, end = self.window(params.get("days"))
        return HistoricalPrecipitation(
            start_date=start,
            end_date=end,
            days=days,
            total_precipitation=round(sum(d.value for d in days), 2),
        )


class SoilMoistureClient(SourceClient[SoilMoisture]):
    """Multi-depth volumetric soil moisture from the land-surface model."""

    kind = SourceKind.SOIL_MOISTURE
    label = "Open-Meteo Soil Moisture"

    async def _request(self, latitude: float, longitude: float, **params: Any) -> Any:
        return await self._get(
            f"{self.config.OPEN_METEO_BASE_URL}/forecast",
            {
                "latitude": latitude,
                "longitude": longitude,
                "hourly": ",".join(SOIL_BANDS + [SOIL_TEMPERATURE]),
                "timezone": self.config.SOURCE_TIMEZONE,
                "past_days": SOIL_PAST_DAYS,
                "forecast_days": SOIL_FORECAST_DAYS,
            },
        )

    def _normalise(self, raw: Any, latitude: float, longitude: float, **params: Any) -> SoilMoisture:
        hourly = raw.get("hourly") if isinstance(raw, dict) else None
        if not isinstance(hourly, dict):
            raise parse_error(self.kind, "response has no hourly block")

        bands = {name: _valid(hourly.get(name)) for name in SOIL_BANDS}
        if not any(bands.values()):
            raise no_data(self.kind, "no valid soil moisture samples")

        b0_1, b1_3, b3_9, b9_27, b27_81 = (bands[name] for name in SOIL_BANDS)

        current = SoilLayers(
            surface=_mean_available(_last(b0_1), _last(b1_3)),
            mid=_mean_available(_last(b3_9), _last(b9_27)),
            deep=round(_last(b27_81) or 0.0, 4),
        )
        avg_24h = SoilLayers(
            surface=_recent_mean(b0_1),
            mid=_recent_mean(b9_27),
            deep=_recent_mean(b27_81),
        )
        return SoilMoisture(
            current=current,
            avg_24h=avg_24h,
            surface_temperature_c=_last(_valid(hourly.get(SOIL_TEMPERATURE))),
        )


class RiverDischargeClient(SourceClient[RiverDischarge]):
    """GloFAS daily river discharge (m³/s)."""

    kind = SourceKind.RIVER_DISCHARGE
    label = "GloFAS River Discharge"

    async def _request(self, latitude: float, longitude: float, **params: Any) -> Any:
        return await self._get(
            self.config.OPEN_METEO_FLOOD_URL,
            {
                "latitude": latitude,
                "longitude": longitude,
                "daily": "river_discharge",
                "forecast_days": params.get("days", self.config.FORECAST_DAYS),
            },
        )

    def _normalise(self, raw: Any, latitude: float, longitude: float, **params: Any) -> RiverDischarge:
        daily = raw.get("daily") if isinstance(raw, dict) else None
        discharge = daily.get("river_discharge") if isinstance(daily, dict) else None
        dates = (daily or {}).get("time") or []
        if not discharge:
            raise no_data(self.kind, "no river discharge data for this location")

        days = [
            DailyValue(date=str(d), value=float(v))
            for d, v in zip(dates, discharge)
            if v is not None
        ]
        values = [d.value for d in days]
        if not values:
            raise no_data(self.kind, "river discharge series is all null")

        return RiverDischarge(
            days=days,
            max_discharge=round(max(values), 2),
            avg_discharge=round(sum(values) / len(values), 2),
            latest_discharge=round(values[-1], 2),
        )
