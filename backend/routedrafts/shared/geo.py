"""
Geographic utility functions.

This is the SINGLE SOURCE OF TRUTH for geographic calculations.
DO NOT duplicate these functions elsewhere.

Coordinates are GeoJSON-ordered: [lng, lat] or [lng, lat, elevation].
"""
import math
from typing import Sequence

# Earth radius in kilometers
EARTH_RADIUS_KM = 6371.0

# Metres per degree of latitude (equirectangular approximation)
METERS_PER_DEGREE = 111320.0


def haversine(
    lat1: float, lon1: float,
    lat2: float, lon2: float
) -> float:
    """
    Calculate great-circle distance between two points.

    Args:
        lat1, lon1: First point coordinates (degrees)
        lat2, lon2: Second point coordinates (degrees)

    Returns:
        Distance in kilometers
    """
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    delta_lat = math.radians(lat2 - lat1)
    delta_lon = math.radians(lon2 - lon1)

    a = (
        math.sin(delta_lat / 2) ** 2 +
        math.cos(lat1_rad) * math.cos(lat2_rad) *
        math.sin(delta_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def equirectangular_distance_m(
    start: Sequence[float],
    end: Sequence[float]
) -> float:
    """
    Planar approximate distance between two [lng, lat] points.

    dx is scaled by cos(mean latitude); good enough for the
    start/end proximity checks used in route summaries, not for
    measuring routes.

    Returns:
        Distance in meters
    """
    lon1, lat1 = start[0], start[1]
    lon2, lat2 = end[0], end[1]
    avg_lat = math.radians((lat1 + lat2) / 2)
    dx = (lon2 - lon1) * math.cos(avg_lat)
    dy = lat2 - lat1
    return math.sqrt(dx * dx + dy * dy) * METERS_PER_DEGREE


def calculate_total_distance(points: Sequence[Sequence[float]]) -> float:
    """
    Calculate total distance for a route.

    Args:
        points: List of [lng, lat] or [lng, lat, elevation] points

    Returns:
        Total distance in kilometers
    """
    total = 0.0

    for i in range(1, len(points)):
        lon1, lat1 = points[i - 1][0], points[i - 1][1]
        lon2, lat2 = points[i][0], points[i][1]
        total += haversine(lat1, lon1, lat2, lon2)

    return total
