"""
Geographic utility functions.

This module provides core geospatial calculations used throughout the application.
"""

from decimal import Decimal, ROUND_HALF_UP
from math import radians, cos, sin, asin, sqrt

from common.exceptions import DomainValidationError


def calculate_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Calculate distance between two points in meters using Haversine formula.

    Args:
        lat1: Latitude of first point
        lon1: Longitude of first point
        lat2: Latitude of second point
        lon2: Longitude of second point

    Returns:
        Distance in meters
    """
    lat1, lon1, lat2, lon2 = map(radians, [float(lat1), float(lon1), float(lat2), float(lon2)])
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    a = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlon / 2) ** 2
    c = 2 * asin(sqrt(a))
    r = 6371000  # Earth's radius in meters
    return c * r


def estimate_arrival_minutes(distance_km: float, speed_kmh: float) -> float:
    """
    Minutes needed to cover distance_km at a constant speed_kmh.

    Raises:
        DomainValidationError: if the speed is not positive or the distance is negative
    """
    if speed_kmh is None or float(speed_kmh) <= 0:
        raise DomainValidationError("Speed must be greater than zero")
    if float(distance_km) < 0:
        raise DomainValidationError("Distance cannot be negative")
    return (float(distance_km) / float(speed_kmh)) * 60


def round_half_up(value) -> int:
    """Round to the nearest integer with halves going up (2.5 -> 3)."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
