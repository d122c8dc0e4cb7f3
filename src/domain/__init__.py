"""Domain layer - profile data models and requests."""
from domain.models import (
    ElevationRange,
    ElevationSample,
    GeoPoint,
    PixelCoord,
    ProfileRequest,
    ProfileSummary,
)

__all__ = [
    'ElevationRange',
    'ElevationSample',
    'GeoPoint',
    'PixelCoord',
    'ProfileRequest',
    'ProfileSummary',
]
