"""Great-circle distance and local degree/metre scale helpers."""

from __future__ import annotations

import math

import numpy as np

from shared.constants import (
    EARTH_MEAN_RADIUS_M,
    METERS_PER_DEGREE_LAT,
    MIN_METERS_PER_DEGREE_LON,
)


def haversine_distance(
    lat1: float,
    lng1: float,
    lat2: float,
    lng2: float,
) -> float:
    """Great-circle distance in metres between two WGS84 points."""
    dlat = math.radians(lat2 - lat1)
    dlng = math.radians(lng2 - lng1)
    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(math.radians(lat1))
        * math.cos(math.radians(lat2))
        * math.sin(dlng / 2) ** 2
    )
    return EARTH_MEAN_RADIUS_M * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def haversine_distances(
    lat: float,
    lng: float,
    lats: np.ndarray,
    lngs: np.ndarray,
) -> np.ndarray:
    """Vectorised Haversine distance from one point to many (metres)."""
    lat_r = math.radians(lat)
    lats_r = np.radians(lats)
    dlat = lats_r - lat_r
    dlng = np.radians(lngs - lng)
    a = np.sin(dlat / 2) ** 2 + math.cos(lat_r) * np.cos(lats_r) * np.sin(dlng / 2) ** 2
    a = np.clip(a, 0.0, 1.0)
    return EARTH_MEAN_RADIUS_M * 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))


def meters_per_degree(lat: float) -> tuple[float, float]:
    """
    Local scale at a latitude.

    Returns:
        (metres per degree of longitude, metres per degree of latitude)

    """
    m_lon = METERS_PER_DEGREE_LAT * math.cos(math.radians(lat))
    return max(m_lon, MIN_METERS_PER_DEGREE_LON), METERS_PER_DEGREE_LAT


def radius_to_degrees(radius_m: float, lat: float) -> tuple[float, float]:
    """Convert a radius in metres to (d_lon, d_lat) half-extents in degrees."""
    m_lon, m_lat = meters_per_degree(lat)
    return radius_m / m_lon, radius_m / m_lat


def round_half_up(value: float) -> int:
    """Round to nearest integer, halves towards +inf (not banker's rounding)."""
    return math.floor(value + 0.5)
