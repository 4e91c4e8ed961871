"""
radius_utils.py — Site coordinates and great-circle distance.

Distances are kilometers, coordinates decimal degrees. Seismic events are
tagged with their distance from the monitored dam using the haversine
formula on a spherical Earth:

    a = sin²(Δφ / 2) + cos(φ₁) · cos(φ₂) · sin²(Δλ / 2)
    d = 2R · atan2(√a, √(1 − a))
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Tuple

EARTH_RADIUS_KM: float = 6_371.0


def _check_range(name: str, value: float, bound: float) -> None:
    if not -bound <= value <= bound:
        raise ValueError(f"{name} must be in [-{bound:g}, {bound:g}], got {value}")


@dataclass(frozen=True)
class Coordinate:
    """A point in decimal degrees; construction fails outside the globe."""
    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        _check_range("Latitude", self.latitude, 90.0)
        _check_range("Longitude", self.longitude, 180.0)

    @property
    def radians(self) -> Tuple[float, float]:
        return math.radians(self.latitude), math.radians(self.longitude)

    def distance_to(self, other: "Coordinate") -> float:
        return haversine(self, other)

    def to_dict(self) -> Dict[str, float]:
        return {"latitude": self.latitude, "longitude": self.longitude}


def haversine(origin: Coordinate, target: Coordinate) -> float:
    """
    Great-circle distance in kilometers, rounded to 4 decimals.

    >>> haversine(Coordinate(0, 0), Coordinate(0, 0))
    0.0
    """
    phi1, lam1 = origin.radians
    phi2, lam2 = target.radians
    half_chord = (
        math.sin((phi2 - phi1) / 2.0) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin((lam2 - lam1) / 2.0) ** 2
    )
    angle = 2.0 * math.atan2(math.sqrt(half_chord), math.sqrt(1.0 - half_chord))
    return round(EARTH_RADIUS_KM * angle, 4)
