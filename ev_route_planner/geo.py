from __future__ import annotations

from math import asin, cos, floor, radians, sin, sqrt

from .config import EARTH_RADIUS_MILES, MILES_TO_KM
from .models import GeoPoint


def distance(a: GeoPoint, b: GeoPoint) -> float:
    """Haversine great-circle distance in miles."""
    if a == b:
        return 0.0
    d_lat = radians(b.latitude - a.latitude)
    d_lng = radians(b.longitude - a.longitude)
    h = sin(d_lat / 2) ** 2 + cos(radians(a.latitude)) * cos(radians(b.latitude)) * sin(d_lng / 2) ** 2
    # rounding can push h a hair outside [0, 1] near antipodes
    h = min(1.0, max(0.0, h))
    return 2.0 * EARTH_RADIUS_MILES * asin(sqrt(h))


def round_half_up(x: float) -> int:
    """Halves round towards +inf (2.5 -> 3, -2.5 -> -2), unlike round()."""
    return int(floor(x + 0.5))


def miles_to_km(miles: float) -> float:
    return miles * MILES_TO_KM
