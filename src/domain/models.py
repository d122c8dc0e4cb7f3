from __future__ import annotations

import math
from dataclasses import dataclass

from pydantic import BaseModel, field_validator

from shared.constants import (
    DEFAULT_NOMINAL_FLIGHT_HEIGHT_M,
    DEFAULT_RADIUS_M,
    DEFAULT_SAMPLING_INTERVAL_M,
    WORLD_LAT_MAX_DEG,
    WORLD_LNG_MAX_DEG,
)

# [lon, lat] or [lon, lat, flight_height]
_COORD_MIN_LEN = 2
_COORD_MAX_LEN = 3


@dataclass(frozen=True)
class GeoPoint:
    """WGS84 point in degrees, optionally carrying a flight height (m AGL)."""

    lon: float
    lat: float
    flight_height: float | None = None


@dataclass(frozen=True)
class PixelCoord:
    """Raster pixel index, clamped to the grid."""

    x: int
    y: int


@dataclass(frozen=True)
class ElevationRange:
    """Minimum and maximum elevation found around a point."""

    min: float
    max: float


@dataclass(frozen=True)
class ElevationSample:
    """One point of an elevation profile."""

    distance_from_start: float
    elevation: float | None
    longitude: float
    latitude: float
    min_elevation_in_radius: float | None = None
    max_elevation_in_radius: float | None = None
    flight_height: float | None = None

    @property
    def flight_altitude(self) -> float | None:
        """Flight altitude above the datum: ground elevation plus AGL height."""
        if self.elevation is None or self.flight_height is None:
            return None
        return self.elevation + self.flight_height

    def safety_altitude(self, safety_height_m: float) -> float | None:
        """Clearance line above the local maximum, or above the point elevation without one."""
        base = self.max_elevation_in_radius
        if base is None:
            base = self.elevation
        return None if base is None else base + safety_height_m

    def resolution_altitude(self, resolution_height_m: float) -> float | None:
        """Clearance line above the local minimum, or above the point elevation without one."""
        base = self.min_elevation_in_radius
        if base is None:
            base = self.elevation
        return None if base is None else base + resolution_height_m


@dataclass(frozen=True)
class ProfileSummary:
    """Aggregate figures over a built profile."""

    total_distance_m: float
    sample_count: int
    valid_sample_count: int
    min_elevation: float | None
    max_elevation: float | None
    lowest_in_radius: float | None
    highest_in_radius: float | None
    # Highest point of each clearance line; None when its height was not requested
    max_safety_altitude: float | None = None
    max_resolution_altitude: float | None = None


class ProfileRequest(BaseModel):
    """Elevation-profile request: path coordinates plus sampling parameters."""

    coordinates: list[list[float]]
    radius_m: float = DEFAULT_RADIUS_M
    sampling_interval_m: float = DEFAULT_SAMPLING_INTERVAL_M
    nominal_flight_height_m: float = DEFAULT_NOMINAL_FLIGHT_HEIGHT_M

    @field_validator('coordinates')
    @classmethod
    def validate_coordinates(cls, v: list[list[float]]) -> list[list[float]]:
        for i, item in enumerate(v):
            if not (_COORD_MIN_LEN <= len(item) <= _COORD_MAX_LEN):
                msg = f'Coordinate #{i} must be [lon, lat] or [lon, lat, height]'
                raise ValueError(msg)
            if not all(math.isfinite(c) for c in item):
                msg = f'Coordinate #{i} contains non-finite values'
                raise ValueError(msg)
            lon, lat = item[0], item[1]
            if abs(lon) > WORLD_LNG_MAX_DEG or abs(lat) > WORLD_LAT_MAX_DEG:
                msg = f'Coordinate #{i} is outside WGS84 range: ({lon}, {lat})'
                raise ValueError(msg)
        return v

    @field_validator('radius_m', 'nominal_flight_height_m')
    @classmethod
    def validate_non_negative(cls, v: float) -> float:
        v = float(v)
        if not math.isfinite(v) or v < 0.0:
            msg = 'Value must be a finite number >= 0'
            raise ValueError(msg)
        return v

    @field_validator('sampling_interval_m')
    @classmethod
    def validate_interval(cls, v: float) -> float:
        v = float(v)
        if not math.isfinite(v) or v <= 0.0:
            msg = 'Sampling interval must be a finite number > 0'
            raise ValueError(msg)
        return v

    def to_vertices(self) -> list[GeoPoint]:
        return [
            GeoPoint(
                lon=float(c[0]),
                lat=float(c[1]),
                flight_height=float(c[2]) if len(c) == _COORD_MAX_LEN else None,
            )
            for c in self.coordinates
        ]
