"""Nearest-pixel elevation sampling of a RasterGrid at WGS84 coordinates."""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING

import numpy as np

from domain.models import GeoPoint, PixelCoord
from geo.geodesy import round_half_up
from geo.reprojection import PyprojReprojector, resolve_raster_crs
from shared.constants import DEFAULT_PROJECTED_CRS, WGS84_CRS
from shared.errors import ReprojectionError

if TYPE_CHECKING:
    from dem.grid import RasterGrid
    from geo.reprojection import CoordinateReprojector

logger = logging.getLogger(__name__)


class ElevationSampler:
    """Maps WGS84 points to raster pixels and reads their elevation.

    Out-of-extent points are clamped to the nearest edge pixel, not rejected.

    Usage:
        sampler = ElevationSampler(grid)
        elevation = sampler.sample(lon=34.78, lat=32.08)
    """

    def __init__(
        self,
        raster: RasterGrid,
        reprojector: CoordinateReprojector | None = None,
        *,
        native_crs: str | None = None,
        default_projected_crs: str = DEFAULT_PROJECTED_CRS,
        require_explicit_crs: bool = False,
    ) -> None:
        """
        Initialize sampler for one raster.

        Args:
            raster: Decoded raster.
            reprojector: Coordinate transform backend (pyproj by default).
            native_crs: Explicit CRS of the raster, overriding its metadata.
            default_projected_crs: CRS assumed for projected rasters without metadata.
            require_explicit_crs: Refuse to guess a CRS for projected rasters.

        Raises:
            ReprojectionError: No CRS could be resolved and guessing is disabled.

        """
        self.raster = raster
        self.reprojector = reprojector or PyprojReprojector()
        self.native_crs = native_crs or resolve_raster_crs(
            raster,
            default_projected_crs=default_projected_crs,
            require_explicit_crs=require_explicit_crs,
        )

    def to_native(self, lon: float, lat: float) -> tuple[float, float]:
        """WGS84 -> raster-native coordinates (identity for geographic rasters)."""
        if not self.raster.is_projected:
            return lon, lat
        x, y = self.reprojector.transform(lon, lat, WGS84_CRS, self.native_crs)
        return float(x), float(y)

    def _native_to_fractional_pixel(self, x, y):
        raster = self.raster
        if raster.affine_transform is not None:
            return raster.affine_transform.native_to_pixel(x, y)
        px = (x - raster.min_x) / (raster.max_x - raster.min_x) * raster.width
        py = (raster.max_y - y) / (raster.max_y - raster.min_y) * raster.height
        return px, py

    def _pixel_to_native(self, px, py):
        raster = self.raster
        if raster.affine_transform is not None:
            return raster.affine_transform.pixel_to_native(px, py)
        x = raster.min_x + px / raster.width * (raster.max_x - raster.min_x)
        y = raster.max_y - py / raster.height * (raster.max_y - raster.min_y)
        return x, y

    def geo_to_pixel(self, lon: float, lat: float) -> PixelCoord | None:
        """
        Resolve the raster pixel for a WGS84 point.

        Returns:
            Clamped pixel coordinate, or None if the point is not finite or
            cannot be reprojected.

        """
        try:
            x, y = self.to_native(lon, lat)
        except ReprojectionError as e:
            logger.debug('geo_to_pixel(%s, %s) failed: %s', lon, lat, e)
            return None
        px, py = self._native_to_fractional_pixel(x, y)
        if not (math.isfinite(px) and math.isfinite(py)):
            logger.debug('geo_to_pixel(%s, %s): non-finite pixel position', lon, lat)
            return None
        cx, cy = self.raster.clamp_pixel(round_half_up(px), round_half_up(py))
        return PixelCoord(cx, cy)

    def pixels_to_geo(
        self, xs: np.ndarray, ys: np.ndarray
    ) -> tuple[np.ndarray, np.ndarray]:
        """
        Vectorised inverse mapping: pixel indices -> WGS84 (lons, lats).

        Raises:
            ReprojectionError: If native coordinates cannot be mapped back to WGS84.

        """
        x, y = self._pixel_to_native(
            np.asarray(xs, dtype=np.float64), np.asarray(ys, dtype=np.float64)
        )
        if not self.raster.is_projected:
            return x, y
        lons, lats = self.reprojector.transform(x, y, self.native_crs, WGS84_CRS)
        return np.asarray(lons, dtype=np.float64), np.asarray(lats, dtype=np.float64)

    def pixel_to_geo(self, px: int, py: int) -> GeoPoint | None:
        """WGS84 location of a pixel index, or None when reprojection fails."""
        try:
            lons, lats = self.pixels_to_geo(np.array([px]), np.array([py]))
        except ReprojectionError as e:
            logger.debug('pixel_to_geo(%s, %s) failed: %s', px, py, e)
            return None
        return GeoPoint(lon=float(lons[0]), lat=float(lats[0]))

    def read(self, pixel: PixelCoord) -> float | None:
        """Elevation stored at a pixel; None for no-data, NaN and infinities."""
        value = self.raster.value_at(pixel.x, pixel.y)
        if self.raster.is_missing(value):
            return None
        return value

    def sample(self, lon: float, lat: float) -> float | None:
        """Elevation at a WGS84 point, or None when missing or unmappable."""
        pixel = self.geo_to_pixel(lon, lat)
        if pixel is None:
            return None
        return self.read(pixel)
