from __future__ import annotations
from math import atan2, cos, radians, sin, sqrt
from typing import Protocol

"""
Great-circle distance helpers.

The view only needs the textbook haversine distance, so we keep it here without
pulling in a GIS dependency.
"""

EARTH_RADIUS_KM = 6371.0


class HasLatLon(Protocol):
    """Anything carrying decimal-degree `lat` / `lon` attributes."""

    @property
    def lat(self) -> float: ...

    @property
    def lon(self) -> float: ...


def haversine_km(a: HasLatLon, b: HasLatLon) -> float:
    """Compute great-circle distance in kilometres between two points."""
    lat1 = radians(a.lat)
    lat2 = radians(b.lat)
    dlat = radians(b.lat - a.lat)
    dlon = radians(b.lon - a.lon)

    h = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlon / 2) ** 2
    # Rounding can push near-antipodal pairs just past 1.
    h = min(1.0, h)
    c = 2 * atan2(sqrt(h), sqrt(1 - h))
    return EARTH_RADIUS_KM * c


def distance_km(a: HasLatLon, b: HasLatLon) -> float:
    """Haversine distance rounded to 2 decimals, as shown to users."""
    return round(haversine_km(a, b), 2)


def format_distance(km: float | None) -> str | None:
    """Render a distance for display (`None` while no distance is known)."""
    if km is None:
        return None
    return f"Distance: {km:.2f} km"
