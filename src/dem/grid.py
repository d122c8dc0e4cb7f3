"""
In-memory representation of a decoded DTM raster.

A RasterGrid is built once per loaded DTM and never mutated afterwards:
the pixel buffer is a read-only float64 array, row-major, top row first.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import numpy as np

from shared.constants import GEOGRAPHIC_LAT_LIMIT, GEOGRAPHIC_LON_LIMIT
from shared.errors import InvalidBoundsError, RasterDecodeError

if TYPE_CHECKING:
    from affine import Affine

_BBOX_LEN = 4
# GeoTIFF ModelTiepointTag is (I, J, K, X, Y, Z); ModelPixelScaleTag is (SX, SY, SZ)
_TIEPOINT_LEN = 6
_PIXEL_SCALE_MIN_LEN = 2
_GRID_NDIM = 2


@dataclass(frozen=True)
class TiePointTransform:
    """Pixel <-> native coordinate mapping via one tie point and per-axis scale."""

    tie_pixel: tuple[float, float]
    tie_geo: tuple[float, float]
    scale: tuple[float, float]

    def __post_init__(self) -> None:
        sx, sy = self.scale
        if not (math.isfinite(sx) and math.isfinite(sy)) or sx == 0 or sy == 0:
            msg = f'Invalid pixel scale: {self.scale}'
            raise InvalidBoundsError(msg)

    @classmethod
    def from_geotiff_tags(
        cls,
        model_tiepoint: Sequence[float],
        model_pixel_scale: Sequence[float],
    ) -> TiePointTransform:
        """Build from raw ModelTiepointTag / ModelPixelScaleTag values."""
        if len(model_tiepoint) < _TIEPOINT_LEN or len(model_pixel_scale) < _PIXEL_SCALE_MIN_LEN:
            msg = 'Incomplete GeoTIFF tie point or pixel scale tags'
            raise InvalidBoundsError(msg)
        tie_i, tie_j, _k, geo_x, geo_y = (float(v) for v in model_tiepoint[:5])
        sx, sy = float(model_pixel_scale[0]), float(model_pixel_scale[1])
        return cls(tie_pixel=(tie_i, tie_j), tie_geo=(geo_x, geo_y), scale=(sx, sy))

    @classmethod
    def from_affine(cls, transform: Affine) -> TiePointTransform | None:
        """Build from a north-up affine transform; None for rotated/sheared ones."""
        if transform.b != 0 or transform.d != 0:
            return None
        if transform.a == 0 or transform.e == 0:
            return None
        return cls(
            tie_pixel=(0.0, 0.0),
            tie_geo=(float(transform.c), float(transform.f)),
            scale=(float(transform.a), float(-transform.e)),
        )

    def native_to_pixel(self, x: Any, y: Any) -> tuple[Any, Any]:
        """Fractional pixel position of native coordinates (Y axis inverted)."""
        (tie_i, tie_j), (geo_x, geo_y), (sx, sy) = self.tie_pixel, self.tie_geo, self.scale
        return (x - geo_x) / sx + tie_i, (geo_y - y) / sy + tie_j

    def pixel_to_native(self, px: Any, py: Any) -> tuple[Any, Any]:
        (tie_i, tie_j), (geo_x, geo_y), (sx, sy) = self.tie_pixel, self.tie_geo, self.scale
        return geo_x + (px - tie_i) * sx, geo_y - (py - tie_j) * sy


@dataclass(frozen=True, eq=False)
class RasterGrid:
    """Decoded single-band elevation raster."""

    width: int
    height: int
    pixels: np.ndarray
    bounding_box: tuple[float, float, float, float]
    no_data_value: float | None = None
    affine_transform: TiePointTransform | None = None
    crs_identifier: str | None = None
    is_projected: bool = field(init=False, default=False)

    def __post_init__(self) -> None:
        pixels = np.ascontiguousarray(self.pixels, dtype=np.float64).reshape(-1)
        pixels.flags.writeable = False
        object.__setattr__(self, 'pixels', pixels)
        if self.pixels.size != self.width * self.height:
            msg = (
                f'Pixel buffer holds {self.pixels.size} values, '
                f'expected {self.width}x{self.height}={self.width * self.height}'
            )
            raise RasterDecodeError(msg)
        object.__setattr__(self, 'is_projected', classify_projected(self.bounding_box))

    @property
    def min_x(self) -> float:
        return self.bounding_box[0]

    @property
    def min_y(self) -> float:
        return self.bounding_box[1]

    @property
    def max_x(self) -> float:
        return self.bounding_box[2]

    @property
    def max_y(self) -> float:
        return self.bounding_box[3]

    def is_missing(self, value: float) -> bool:
        """True for the no-data sentinel, NaN and infinities."""
        if not math.isfinite(value):
            return True
        return self.no_data_value is not None and value == self.no_data_value

    def missing_mask(self, values: np.ndarray) -> np.ndarray:
        """Vectorised :meth:`is_missing`."""
        mask = ~np.isfinite(values)
        if self.no_data_value is not None:
            mask |= values == self.no_data_value
        return mask

    def value_at(self, x: int, y: int) -> float:
        """Raw pixel value at column ``x``, row ``y`` (no missing-data handling)."""
        return float(self.pixels[y * self.width + x])

    def clamp_pixel(self, x: int, y: int) -> tuple[int, int]:
        return (
            max(0, min(self.width - 1, x)),
            max(0, min(self.height - 1, y)),
        )

    def elevation_range(self) -> tuple[float, float]:
        """Min/max over valid pixels, ``(0.0, 0.0)`` when none are valid."""
        valid = self.pixels[~self.missing_mask(self.pixels)]
        if valid.size == 0:
            return (0.0, 0.0)
        return float(valid.min()), float(valid.max())


def classify_projected(bounding_box: Sequence[float]) -> bool:
    """Bounds outside +-180 / +-90 degrees are taken to be projected units."""
    min_x, min_y, max_x, max_y = bounding_box
    return (
        abs(min_x) > GEOGRAPHIC_LON_LIMIT
        or abs(min_y) > GEOGRAPHIC_LAT_LIMIT
        or abs(max_x) > GEOGRAPHIC_LON_LIMIT
        or abs(max_y) > GEOGRAPHIC_LAT_LIMIT
    )


def _validate_bounding_box(bbox: Any) -> tuple[float, float, float, float]:
    if bbox is None:
        msg = 'Raster bounding box is missing'
        raise InvalidBoundsError(msg)
    try:
        values = tuple(float(v) for v in bbox)
    except (TypeError, ValueError) as e:
        msg = f'Raster bounding box is malformed: {bbox!r}'
        raise InvalidBoundsError(msg) from e
    if len(values) != _BBOX_LEN or not all(math.isfinite(v) for v in values):
        msg = f'Raster bounding box needs 4 finite values, got {bbox!r}'
        raise InvalidBoundsError(msg)
    min_x, min_y, max_x, max_y = values
    if max_x == min_x or max_y == min_y:
        msg = f'Raster bounding box is degenerate: {values}'
        raise InvalidBoundsError(msg)
    return values  # type: ignore[return-value]


def _coerce_transform(value: Any) -> TiePointTransform | None:
    if value is None or isinstance(value, TiePointTransform):
        return value
    if isinstance(value, Mapping):
        return TiePointTransform(
            tie_pixel=tuple(value['tie_pixel']),
            tie_geo=tuple(value['tie_geo']),
            scale=tuple(value['scale']),
        )
    msg = f'Unsupported affine transform: {value!r}'
    raise InvalidBoundsError(msg)


def load_raster_grid(raw: Mapping[str, Any] | None = None, **fields: Any) -> RasterGrid:
    """
    Validate raw decoded raster fields and build a RasterGrid.

    Accepts either a mapping or keyword fields: ``pixels`` (flat row-major or
    2-D), ``width``/``height`` (inferred from 2-D pixels when omitted),
    ``bounding_box``, and optionally ``no_data_value``, ``affine_transform``
    and ``crs_identifier``.

    Raises:
        InvalidBoundsError: Empty pixels or missing/malformed bounding box.
        RasterDecodeError: Pixel count does not match width*height.

    """
    data = {**(raw or {}), **fields}

    pixels_raw = data.get('pixels')
    if pixels_raw is None:
        msg = 'Raster has no pixel data'
        raise InvalidBoundsError(msg)
    pixels = np.array(pixels_raw, dtype=np.float64)
    if pixels.size == 0:
        msg = 'Raster has no pixel data'
        raise InvalidBoundsError(msg)

    bbox = _validate_bounding_box(data.get('bounding_box'))

    if pixels.ndim == _GRID_NDIM:
        height, width = pixels.shape
        width = int(data.get('width', width))
        height = int(data.get('height', height))
    else:
        try:
            width = int(data['width'])
            height = int(data['height'])
        except KeyError as e:
            msg = f'Flat pixel buffer needs width and height ({e.args[0]} missing)'
            raise RasterDecodeError(msg) from e
    if width <= 0 or height <= 0:
        msg = f'Invalid raster size {width}x{height}'
        raise RasterDecodeError(msg)

    no_data = data.get('no_data_value')
    return RasterGrid(
        width=width,
        height=height,
        pixels=pixels,
        bounding_box=bbox,
        no_data_value=float(no_data) if no_data is not None else None,
        affine_transform=_coerce_transform(data.get('affine_transform')),
        crs_identifier=data.get('crs_identifier') or None,
    )
