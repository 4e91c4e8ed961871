"""
usgs_seismic.py — Recent earthquakes around a site from the USGS FDSN service.

USGS API Reference:
    https://earthquake.usgs.gov/fdsnws/event/1/

Query: circle of SEISMIC_RADIUS_KM around the site, last
SEISMIC_LOOKBACK_DAYS days, magnitude ≥ SEISMIC_MIN_MAGNITUDE, GeoJSON.
Each event is tagged with its haversine distance from the site.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from damwatch.spatial.radius_utils import Coordinate
from .base import SourceClient, parse_error
from .models import SeismicActivity, SeismicEvent, SourceKind

logger = logging.getLogger(__name__)


def parse_feature(feature: Dict[str, Any], origin: Coordinate) -> Optional[SeismicEvent]:
    """
    Parse a single GeoJSON feature into a SeismicEvent.

    USGS GeoJSON format:
        feature = {
            "type": "Feature",
            "properties": { "mag": 5.2, "place": "...", "time": 1708617600000, ... },
            "geometry": { "type": "Point", "coordinates": [lon, lat, depth_km] },
            "id": "us7000m..."
        }

    Returns None (with a warning) for a malformed feature.
    """
    try:
        props = feature["properties"]
        geom = feature["geometry"]["coordinates"]  # [lon, lat, depth]

        latitude = float(geom[1])
        longitude = float(geom[0])
        depth_km = float(geom[2]) if len(geom) > 2 and geom[2] is not None else 0.0

        # USGS gives milliseconds since epoch
        ts_ms = props.get("time") or 0
        event_time = datetime.fromtimestamp(ts_ms / 1000.0, tz=timezone.utc)

        distance = origin.distance_to(Coordinate(latitude, longitude))

        return SeismicEvent(
            event_id=str(feature.get("id", "")),
            magnitude=float(props.get("mag") or 0.0),
            depth_km=depth_km,
            place=str(props.get("place") or "Unknown"),
            time=event_time,
            latitude=latitude,
            longitude=longitude,
            distance_km=round(distance, 1),
        )
    except (KeyError, IndexError, TypeError, ValueError) as exc:
        logger.warning("Failed to parse USGS feature: %s", exc)
        return None


class SeismicClient(SourceClient[SeismicActivity]):
    kind = SourceKind.SEISMIC
    label = "USGS Earthquakes"

    def _radius(self, params: Dict[str, Any]) -> float:
        return float(params.get("radius_km", self.config.SEISMIC_RADIUS_KM))

    async def _request(self, latitude: float, longitude: float, **params: Any) -> Any:
        today = self.today()
        start = today - timedelta(days=self.config.SEISMIC_LOOKBACK_DAYS)
        return await self._get(
            self.config.USGS_EARTHQUAKE_URL,
            {
                "format": "geojson",
                "starttime": start.isoformat(),
                "endtime": today.isoformat(),
                "latitude": latitude,
                "longitude": longitude,
                "maxradiuskm": self._radius(params),
                "minmagnitude": self.config.SEISMIC_MIN_MAGNITUDE,
                "orderby": "time",
            },
        )

    def _normalise(self, raw: Any, latitude: float, longitude: float, **params: Any) -> SeismicActivity:
        features = raw.get("features") if isinstance(raw, dict) else None
        if not isinstance(features, list):
            raise parse_error(self.kind, "response has no features array")

        origin = Coordinate(latitude, longitude)
        events = [
            event
            for event in (parse_feature(f, origin) for f in features)
            if event is not None
        ]
        events.sort(key=lambda e: e.time, reverse=True)
        return SeismicActivity(events=events, radius_km=self._radius(params))
