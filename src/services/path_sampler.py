"""
Path densification at a fixed arc-length interval.

Interpolation is linear in (lon, lat), not along the great circle; at the
kilometre scale of flight paths the difference is negligible.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

import numpy as np

from domain.models import GeoPoint
from geo.geodesy import haversine_distance

if TYPE_CHECKING:
    from collections.abc import Sequence

# Minimum points emitted per segment (both ends)
_MIN_POINTS_PER_SEGMENT = 2


def segment_point_count(distance_m: float, interval_m: float) -> int:
    """Points on a segment, both ends included."""
    return max(_MIN_POINTS_PER_SEGMENT, math.ceil(distance_m / interval_m))


def _interpolate_height(a: float | None, b: float | None, t: np.ndarray) -> list[float | None]:
    if a is None and b is None:
        return [None] * len(t)
    ha = b if a is None else a
    hb = a if b is None else b
    return [float(v) for v in ha + t * (hb - ha)]


def densify(vertices: Sequence[GeoPoint], interval_m: float) -> list[GeoPoint]:
    """
    Densify a polyline into closely spaced points.

    Each segment of geodesic length ``d`` yields ``max(2, ceil(d / interval_m))``
    evenly spaced points including both ends; the point shared by consecutive
    segments is emitted once. Per-vertex flight heights are interpolated the
    same way (a missing height on one end takes the other end's value).

    Args:
        vertices: Ordered path vertices.
        interval_m: Target spacing in metres (> 0).

    Returns:
        Densified points; first and last equal the input's first and last.

    """
    if not (interval_m > 0 and math.isfinite(interval_m)):
        msg = f'Sampling interval must be a positive number, got {interval_m}'
        raise ValueError(msg)
    if len(vertices) < _MIN_POINTS_PER_SEGMENT:
        return list(vertices)

    points: list[GeoPoint] = [vertices[0]]
    for a, b in zip(vertices[:-1], vertices[1:]):
        distance = haversine_distance(a.lat, a.lon, b.lat, b.lon)
        n = segment_point_count(distance, interval_m)
        t = np.linspace(0.0, 1.0, n)[1:]
        lons = a.lon + t * (b.lon - a.lon)
        lats = a.lat + t * (b.lat - a.lat)
        heights = _interpolate_height(a.flight_height, b.flight_height, t)
        points.extend(
            GeoPoint(lon=float(lon), lat=float(lat), flight_height=h)
            for lon, lat, h in zip(lons, lats, heights)
        )
        # Land exactly on the vertex rather than on a float approximation of it
        points[-1] = GeoPoint(lon=b.lon, lat=b.lat, flight_height=heights[-1])
    return points
