"""
Great-circle distance and speed helpers.

Distances use the haversine formula on a sphere with the WGS84 mean
radius (6,371 km). The result is bit-reproducible for a given pair of
points: same inputs, same float out.
"""
import math
from typing import Optional

EARTH_RADIUS_M = 6_371_000.0
_MS_PER_HOUR = 3_600_000
_KMH_PER_MPS = 3.6


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Compute the great-circle distance in meters between two lat/lon points.

    Args:
        lat1: Latitude 1 in degrees.
        lon1: Longitude 1 in degrees.
        lat2: Latitude 2 in degrees.
        lon2: Longitude 2 in degrees.

    Returns:
        Distance in meters, always >= 0. Identical points return exactly 0.0.
    """
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = (
        math.sin(d_phi / 2.0) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2.0) ** 2
    )
    # Rounding can push `a` a hair outside [0, 1] for near-antipodal points
    a = min(1.0, max(0.0, a))
    c = 2.0 * math.atan2(math.sqrt(a), math.sqrt(1.0 - a))
    return EARTH_RADIUS_M * c


def speed_kmh_from_mps(speed_mps: Optional[float]) -> float:
    """
    Convert a provider-reported speed to km/h.

    Providers report None when speed is unknown and sometimes -1 as an
    "invalid" sentinel; both map to 0.0.
    """
    if speed_mps is None or speed_mps <= 0:
        return 0.0
    return speed_mps * _KMH_PER_MPS


def average_speed_kmh(distance_meters: float, duration_ms: int) -> float:
    """Average speed over a duration. Returns 0.0 when duration is zero."""
    if duration_ms <= 0:
        return 0.0
    return (distance_meters / 1000.0) / (duration_ms / _MS_PER_HOUR)
