"""
Geospatial helpers.

Every distance in FamilySpots goes through `distance_km`, so venue lists, event lists
and the API agree to the metre. Spherical model with a fixed Earth radius of 6371 km.
"""

from __future__ import annotations

from math import atan2, cos, radians, sin, sqrt

EARTH_RADIUS_KM = 6371.0


def distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute great-circle (Haversine) distance in kilometers between two coordinates."""
    phi1 = radians(lat1)
    phi2 = radians(lat2)
    dphi = radians(lat2 - lat1)
    dlmb = radians(lon2 - lon1)

    h = sin(dphi / 2) ** 2 + cos(phi1) * cos(phi2) * sin(dlmb / 2) ** 2
    # Rounding can push h a hair outside [0, 1] near antipodes.
    h = min(1.0, max(0.0, h))
    return 2 * EARTH_RADIUS_KM * atan2(sqrt(h), sqrt(1 - h))


def format_distance(km: float) -> str:
    """Render a distance for display: metres below 1 km, one decimal otherwise."""
    if km < 1:
        return f"{round(km * 1000)} m"
    return f"{km:.1f} km"
