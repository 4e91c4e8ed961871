"""
nasa_power.py — Satellite-derived daily precipitation from NASA POWER.

NASA POWER exposes the MERRA-2 bias-corrected precipitation parameter
``PRECTOTCORR`` (mm/day) as a date-keyed map:

    {"properties": {"parameter": {"PRECTOTCORR": {"20240601": 12.4, ...}}}}

Data lags real time by roughly two days, so the window ends at today − 2.
Missing days are reported as the fill value −999.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Any, Dict, Optional, Tuple

from .base import SourceClient, parse_error
from .models import DailyValue, SatellitePrecipitation, SourceKind

PARAMETER = "PRECTOTCORR"
COMMUNITY = "RE"  # renewable energy community, daily point data
FILL_VALUE = -999
LATENCY_DAYS = 2


def _iso(yyyymmdd: str) -> str:
    if len(yyyymmdd) == 8 and yyyymmdd.isdigit():
        return f"{yyyymmdd[:4]}-{yyyymmdd[4:6]}-{yyyymmdd[6:]}"
    return yyyymmdd


class SatelliteClient(SourceClient[SatellitePrecipitation]):
    kind = SourceKind.SATELLITE
    label = "NASA POWER Satellite"

    def default_timeout(self) -> float:
        return self.config.SATELLITE_TIMEOUT_SECONDS

    def window(self, days: Optional[int] = None) -> Tuple[date, date]:
        today = self.today()
        span = days or self.config.SATELLITE_DAYS
        return today - timedelta(days=span + LATENCY_DAYS), today - timedelta(days=LATENCY_DAYS)

    async def _request(self, latitude: float, longitude: float, **params: Any) -> Any:
        start, end = self.window(params.get("days"))
        return await self._get(
            self.config.NASA_POWER_URL,
            {
                "parameters": PARAMETER,
                "community": COMMUNITY,
                "longitude": longitude,
                "latitude": latitude,
                "start": start.strftime("%Y%m%d"),
                "end": end.strftime("%Y%m%d"),
                "format": "JSON",
            },
        )

    def _normalise(self, raw: Any, latitude: float, longitude: float, **params: Any) -> SatellitePrecipitation:
        try:
            series: Dict[str, Any] = raw["properties"]["parameter"][PARAMETER]
        except (KeyError, TypeError):
            raise parse_error(self.kind, f"response has no properties.parameter.{PARAMETER}") from None
        if not isinstance(series, dict):
            raise parse_error(self.kind, f"{PARAMETER} is not a date-keyed map")

        days = []
        for key in sorted(series):
            value = series[key]
            if value is None or value == FILL_VALUE:
                value = 0.0
            value = float(value)
            if value < 0:
                continue
            days.append(DailyValue(date=_iso(str(key)), value=value))

        total = sum(d.value for d in days)
        return SatellitePrecipitation(
            days=days,
            total_precipitation=round(total, 2),
            avg_precipitation=round(total / len(days), 2) if days else 0.0,
        )
