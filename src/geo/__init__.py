"""Geo module - geodesy and coordinate reprojection."""

from .geodesy import (
    haversine_distance,
    haversine_distances,
    meters_per_degree,
    radius_to_degrees,
    round_half_up,
)
from .reprojection import (
    CoordinateReprojector,
    PyprojReprojector,
    resolve_raster_crs,
)

__all__ = [
    'CoordinateReprojector',
    'PyprojReprojector',
    'haversine_distance',
    'haversine_distances',
    'meters_per_degree',
    'radius_to_degrees',
    'resolve_raster_crs',
    'round_half_up',
]
