from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING

import numpy as np

from domain.models import ElevationRange
from geo.geodesy import haversine_distances, radius_to_degrees
from shared.constants import (
    RADIUS_CENTER_PROBE_PX,
    RADIUS_MAX_SAMPLES,
    RADIUS_MIN_SAMPLES,
)

if TYPE_CHECKING:
    from domain.models import PixelCoord
    from elevation.sampler import ElevationSampler

logger = logging.getLogger(__name__)


def _stepped_count(span_x: int, span_y: int, step: int) -> int:
    return math.ceil(span_x / step) * math.ceil(span_y / step)


def anchored_range(lo: int, hi: int, anchor: int, step: int) -> np.ndarray:
    """Indices in [lo, hi] spaced by ``step`` and aligned so ``anchor`` is on the lattice."""
    start = lo + (anchor - lo) % step
    return np.arange(start, hi + 1, step)


def choose_sampling_step(
    span_x: int,
    span_y: int,
    *,
    min_samples: int = RADIUS_MIN_SAMPLES,
    max_samples: int = RADIUS_MAX_SAMPLES,
) -> int:
    """
    Pick a pixel stride so a span_x * span_y window yields a bounded sample count.

    Windows no larger than ``max_samples`` are scanned exhaustively. Larger
    windows get the smallest stride that keeps the count within
    ``max_samples``, backing off while the count would drop below
    ``min_samples``.
    """
    total = span_x * span_y
    if total <= max_samples:
        return 1
    step = max(1, math.ceil(math.sqrt(total / max_samples)))
    while step > 1 and _stepped_count(span_x, span_y, step - 1) <= max_samples:
        step -= 1
    while _stepped_count(span_x, span_y, step) > max_samples:
        step += 1
    while step > 1 and _stepped_count(span_x, span_y, step) < min_samples:
        step -= 1
    return step


class RadiusStatistics:
    """Local min/max elevation within a geodesic radius of a point.

    Large windows are sampled on an adaptive stride, so results for big radii
    are approximate. A fixed neighbourhood around the query pixel is always
    read exactly, so the point's own elevation is never skipped.

    Usage:
        stats = RadiusStatistics(ElevationSampler(grid))
        rng = stats.min_max_in_radius(lon, lat, radius_m=50)
    """

    def __init__(
        self,
        sampler: ElevationSampler,
        *,
        min_samples: int = RADIUS_MIN_SAMPLES,
        max_samples: int = RADIUS_MAX_SAMPLES,
        center_probe_px: int = RADIUS_CENTER_PROBE_PX,
    ) -> None:
        self.sampler = sampler
        self.min_samples = max(1, int(min_samples))
        self.max_samples = max(self.min_samples, int(max_samples))
        self.center_probe_px = max(0, int(center_probe_px))

    def _search_window(
        self, lon: float, lat: float, radius_m: float
    ) -> tuple[int, int, int, int] | None:
        """Clamped pixel window (x0, y0, x1, y1) covering the radius box, inclusive."""
        d_lon, d_lat = radius_to_degrees(radius_m, lat)
        corners = [
            self.sampler.geo_to_pixel(lon + sx * d_lon, lat + sy * d_lat)
            for sx in (-1, 1)
            for sy in (-1, 1)
        ]
        if any(c is None for c in corners):
            return None
        xs = [c.x for c in corners]
        ys = [c.y for c in corners]
        return min(xs), min(ys), max(xs), max(ys)

    def _accepted_values(
        self,
        xs: np.ndarray,
        ys: np.ndarray,
        lon: float,
        lat: float,
        radius_m: float,
    ) -> np.ndarray:
        """Valid elevations at pixel indices lying within ``radius_m`` of the point."""
        raster = self.sampler.raster
        values = raster.pixels[ys * raster.width + xs]
        valid = ~raster.missing_mask(values)
        if not np.any(valid):
            return values[valid]
        xs, ys, values = xs[valid], ys[valid], values[valid]
        lons, lats = self.sampler.pixels_to_geo(xs, ys)
        dist = haversine_distances(lat, lon, lats, lons)
        return values[dist <= radius_m]

    def _probe_center(
        self, center: PixelCoord, lon: float, lat: float, radius_m: float
    ) -> list[float]:
        raster = self.sampler.raster
        r = self.center_probe_px
        x0, y0 = raster.clamp_pixel(center.x - r, center.y - r)
        x1, y1 = raster.clamp_pixel(center.x + r, center.y + r)
        gx, gy = np.meshgrid(np.arange(x0, x1 + 1), np.arange(y0, y1 + 1))
        found = list(self._accepted_values(gx.ravel(), gy.ravel(), lon, lat, radius_m))
        own = self.sampler.read(center)
        if own is not None:
            found.append(own)
        return found

    def min_max_in_radius(
        self, lon: float, lat: float, radius_m: float
    ) -> ElevationRange | None:
        """
        Min/max valid elevation within ``radius_m`` metres of a WGS84 point.

        Args:
            lon: Longitude (degrees).
            lat: Latitude (degrees).
            radius_m: Search radius in metres; <= 0 reads the centre probe only.

        Returns:
            ElevationRange, or None when no valid elevation was found.

        Raises:
            ReprojectionError: Window pixels could not be mapped back to WGS84.

        """
        center = self.sampler.geo_to_pixel(lon, lat)
        if center is None:
            return None
        radius_m = max(0.0, float(radius_m))

        lo = math.inf
        hi = -math.inf

        window = self._search_window(lon, lat, radius_m) if radius_m > 0 else None
        if window is not None:
            x0, y0, x1, y1 = window
            step = choose_sampling_step(
                x1 - x0 + 1,
                y1 - y0 + 1,
                min_samples=self.min_samples,
                max_samples=self.max_samples,
            )
            # Lattice through the centre pixel keeps nested windows sampling the same pixels
            gx, gy = np.meshgrid(
                anchored_range(x0, x1, center.x, step),
                anchored_range(y0, y1, center.y, step),
            )
            accepted = self._accepted_values(gx.ravel(), gy.ravel(), lon, lat, radius_m)
            if accepted.size:
                lo = float(accepted.min())
                hi = float(accepted.max())

        for value in self._probe_center(center, lon, lat, radius_m):
            lo = min(lo, value)
            hi = max(hi, value)

        if lo > hi:
            return None
        return ElevationRange(min=lo, max=hi)
