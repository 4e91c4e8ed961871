"""Geographic primitives: Coordinate and haversine distance."""

from .radius_utils import EARTH_RADIUS_KM, Coordinate, haversine

__all__ = ["EARTH_RADIUS_KM", "Coordinate", "haversine"]
