"""
Elevation profile along a path over a decoded DTM.

Per-point failures never abort a build: the affected sample keeps its
position and distance but carries null elevation fields.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from domain.models import ElevationSample, GeoPoint, ProfileSummary
from elevation.sampler import ElevationSampler
from elevation.stats import RadiusStatistics
from geo.geodesy import haversine_distance
from services.path_sampler import densify
from settings import EngineSettings
from shared.constants import MIN_PATH_VERTICES
from shared.errors import InvalidPathError, ProfilerError

if TYPE_CHECKING:
    from dem.grid import RasterGrid
    from domain.models import ProfileRequest
    from geo.reprojection import CoordinateReprojector

logger = logging.getLogger(__name__)

Profile = tuple[ElevationSample, ...]

# [lon, lat] items; a third value is the flight height
_LON_LAT_LEN = 2


def _as_geo_point(vertex: GeoPoint | Sequence[float]) -> GeoPoint:
    if isinstance(vertex, GeoPoint):
        return vertex
    height = float(vertex[2]) if len(vertex) > _LON_LAT_LEN else None
    return GeoPoint(lon=float(vertex[0]), lat=float(vertex[1]), flight_height=height)


class ProfileBuilder:
    """Builds dense elevation profiles.

    Usage:
        builder = ProfileBuilder(settings=load_settings('engine.toml'))
        profile = builder.build(vertices, grid, radius_m=50)
    """

    def __init__(
        self,
        *,
        settings: EngineSettings | None = None,
        reprojector: CoordinateReprojector | None = None,
        native_crs: str | None = None,
    ) -> None:
        """
        Args:
            settings: Engine settings; defaults when omitted.
            reprojector: Coordinate transform backend shared by all builds.
            native_crs: Explicit raster CRS, overriding raster metadata.
        """
        self.settings = settings or EngineSettings()
        self.reprojector = reprojector
        self.native_crs = native_crs

    def _make_sampler(self, raster: RasterGrid) -> ElevationSampler:
        return ElevationSampler(
            raster,
            self.reprojector,
            native_crs=self.native_crs,
            default_projected_crs=self.settings.default_projected_crs,
            require_explicit_crs=self.settings.require_explicit_crs,
        )

    def build(
        self,
        vertices: Sequence[GeoPoint | Sequence[float]],
        raster: RasterGrid,
        radius_m: float | None = None,
        sampling_interval_m: float | None = None,
        *,
        nominal_flight_height_m: float | None = None,
    ) -> Profile:
        """
        Build the elevation profile of a path.

        Args:
            vertices: Path vertices as GeoPoint or [lon, lat(, height)] items.
            raster: Decoded DTM.
            radius_m: Radius for local min/max (settings default when None).
            sampling_interval_m: Densification spacing (settings default when None).
            nominal_flight_height_m: AGL height for vertices without their own.

        Returns:
            Ordered samples; the first has distance 0, distances never decrease.

        Raises:
            InvalidPathError: Fewer than two vertices (checked before raster access).
            ReprojectionError: Projected raster without CRS while guessing is disabled.

        """
        if len(vertices) < MIN_PATH_VERTICES:
            raise InvalidPathError(len(vertices), MIN_PATH_VERTICES)

        s = self.settings
        radius = s.radius_m if radius_m is None else float(radius_m)
        interval = s.sampling_interval_m if sampling_interval_m is None else float(sampling_interval_m)
        nominal = s.nominal_flight_height_m if nominal_flight_height_m is None else float(nominal_flight_height_m)

        points = densify([_as_geo_point(v) for v in vertices], interval)

        sampler = self._make_sampler(raster)
        stats = RadiusStatistics(
            sampler,
            min_samples=s.radius_min_samples,
            max_samples=s.radius_max_samples,
            center_probe_px=s.center_probe_px,
        )

        started = time.monotonic()
        samples: list[ElevationSample] = []
        failures = 0
        distance = 0.0
        prev: GeoPoint | None = None
        for point in points:
            if prev is not None:
                distance += haversine_distance(prev.lat, prev.lon, point.lat, point.lon)
            prev = point

            elevation = lo = hi = None
            try:
                elevation = sampler.sample(point.lon, point.lat)
                rng = stats.min_max_in_radius(point.lon, point.lat, radius)
                if rng is not None:
                    lo, hi = rng.min, rng.max
            except ProfilerError as e:
                failures += 1
                elevation = lo = hi = None
                logger.debug('Sampling failed at (%s, %s): %s', point.lon, point.lat, e)

            samples.append(
                ElevationSample(
                    distance_from_start=distance,
                    elevation=elevation,
                    longitude=point.lon,
                    latitude=point.lat,
                    min_elevation_in_radius=lo,
                    max_elevation_in_radius=hi,
                    flight_height=nominal if point.flight_height is None else point.flight_height,
                )
            )

        if failures:
            logger.warning('%d of %d profile samples could not be resolved', failures, len(samples))
        logger.info(
            'Profile built: %d vertices -> %d samples, %.1f m, radius=%sm in %.2fs',
            len(vertices),
            len(samples),
            distance,
            radius,
            time.monotonic() - started,
        )
        return tuple(samples)

    def build_from_request(self, request: ProfileRequest, raster: RasterGrid) -> Profile:
        """Build a profile from a validated request."""
        return self.build(
            request.to_vertices(),
            raster,
            request.radius_m,
            request.sampling_interval_m,
            nominal_flight_height_m=request.nominal_flight_height_m,
        )


def _max_or_none(values: list[float | None]) -> float | None:
    present = [v for v in values if v is not None]
    return max(present) if present else None


def summarize_profile(
    profile: Sequence[ElevationSample],
    *,
    safety_height_m: float | None = None,
    resolution_height_m: float | None = None,
) -> ProfileSummary:
    """
    Aggregate figures over a profile; elevation fields are None without valid data.

    Clearance heights, when given, add the highest point of the safety line
    (local max plus ``safety_height_m``) and of the resolution line (local min
    plus ``resolution_height_m``).
    """
    elevations = [s.elevation for s in profile if s.elevation is not None]
    lows = [s.min_elevation_in_radius for s in profile if s.min_elevation_in_radius is not None]
    highs = [s.max_elevation_in_radius for s in profile if s.max_elevation_in_radius is not None]
    max_safety = None
    if safety_height_m is not None:
        max_safety = _max_or_none([s.safety_altitude(safety_height_m) for s in profile])
    max_resolution = None
    if resolution_height_m is not None:
        max_resolution = _max_or_none([s.resolution_altitude(resolution_height_m) for s in profile])
    return ProfileSummary(
        total_distance_m=profile[-1].distance_from_start if profile else 0.0,
        sample_count=len(profile),
        valid_sample_count=len(elevations),
        min_elevation=min(elevations) if elevations else None,
        max_elevation=max(elevations) if elevations else None,
        lowest_in_radius=min(lows) if lows else None,
        highest_in_radius=max(highs) if highs else None,
        max_safety_altitude=max_safety,
        max_resolution_altitude=max_resolution,
    )


def profile_to_records(
    profile: Sequence[ElevationSample],
    *,
    safety_height_m: float | None = None,
    resolution_height_m: float | None = None,
) -> list[dict[str, Any]]:
    """JSON-ready records in the profile response schema, plus requested clearance lines."""
    records = []
    for s in profile:
        record = {
            'distance': s.distance_from_start,
            'elevation': s.elevation,
            'longitude': s.longitude,
            'latitude': s.latitude,
            'minElevation': s.min_elevation_in_radius,
            'maxElevation': s.max_elevation_in_radius,
            'flightHeight': s.flight_height,
            'flightAltitude': s.flight_altitude,
        }
        if safety_height_m is not None:
            record['safetyLine'] = s.safety_altitude(safety_height_m)
        if resolution_height_m is not None:
            record['resolutionLine'] = s.resolution_altitude(resolution_height_m)
        records.append(record)
    return records


def summary_to_record(summary: ProfileSummary) -> dict[str, Any]:
    record = {
        'totalDistance': summary.total_distance_m,
        'sampleCount': summary.sample_count,
        'validSampleCount': summary.valid_sample_count,
        'minElevation': summary.min_elevation,
        'maxElevation': summary.max_elevation,
        'lowestInRadius': summary.lowest_in_radius,
        'highestInRadius': summary.highest_in_radius,
    }
    if summary.max_safety_altitude is not None:
        record['maxSafetyLine'] = summary.max_safety_altitude
    if summary.max_resolution_altitude is not None:
        record['maxResolutionLine'] = summary.max_resolution_altitude
    return record
