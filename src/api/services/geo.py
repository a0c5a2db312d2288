"""Spherical distance helpers for GeoJSON points."""

from __future__ import annotations

import math
from typing import Any

from src.core.exceptions import ValidationFailure

# Mean equatorial radius used for great-circle distances
EARTH_RADIUS_METERS = 6378100.0

LATLNG_MESSAGE = "Please provide latitude and longitude in the format lat,lng."


def parse_latlng(latlng: str) -> tuple[float, float]:
    """Parse a ``"lat,lng"`` path segment.

    Args:
        latlng: Comma separated latitude and longitude.

    Returns:
        Tuple of (latitude, longitude).

    Raises:
        ValidationFailure: If the value is not two numbers in range.
    """
    parts = latlng.split(",")
    if len(parts) != 2:
        raise ValidationFailure(LATLNG_MESSAGE)
    try:
        lat, lng = float(parts[0]), float(parts[1])
    except ValueError as e:
        raise ValidationFailure(LATLNG_MESSAGE) from e
    if not (-90 <= lat <= 90 and -180 <= lng <= 180):
        raise ValidationFailure(LATLNG_MESSAGE)
    return lat, lng


def point_coordinates(point: dict[str, Any] | None) -> tuple[float, float] | None:
    """Return (lat, lng) of a GeoJSON point, which stores ``[lng, lat]``."""
    if not point:
        return None
    coordinates = point.get("coordinates")
    if not coordinates or len(coordinates) < 2:
        return None
    return float(coordinates[1]), float(coordinates[0])


def central_angle(a: tuple[float, float], b: tuple[float, float]) -> float:
    """Great-circle angle in radians between two (lat, lng) pairs (haversine)."""
    lat1, lng1 = map(math.radians, a)
    lat2, lng2 = map(math.radians, b)
    h = (
        math.sin((lat2 - lat1) / 2) ** 2
        + math.cos(lat1) * math.cos(lat2) * math.sin((lng2 - lng1) / 2) ** 2
    )
    return 2 * math.asin(min(1.0, math.sqrt(h)))


def distance_meters(a: tuple[float, float], b: tuple[float, float]) -> float:
    """Great-circle distance in meters between two (lat, lng) pairs."""
    return central_angle(a, b) * EARTH_RADIUS_METERS
