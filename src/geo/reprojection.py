"""Coordinate transformations between WGS84 and raster-native CRS."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from functools import lru_cache
from typing import TYPE_CHECKING

import numpy as np
from pyproj import CRS, Transformer
from pyproj.exceptions import CRSError, ProjError

from shared.constants import DEFAULT_PROJECTED_CRS, WGS84_CRS
from shared.errors import ReprojectionError

if TYPE_CHECKING:
    from numpy.typing import ArrayLike

    from dem.grid import RasterGrid

logger = logging.getLogger(__name__)


class CoordinateReprojector(ABC):
    """Stateless transform between two coordinate reference systems.

    Coordinates are always (x, y) = (easting/longitude, northing/latitude).
    Implementations accept scalars or array-likes and return the same shape.
    """

    @abstractmethod
    def transform(
        self,
        x: ArrayLike,
        y: ArrayLike,
        source_crs: str,
        target_crs: str,
    ) -> tuple[ArrayLike, ArrayLike]:
        """Transform coordinates.

        Raises:
            ReprojectionError: When the CRS pair has no known transform.

        """


@lru_cache(maxsize=32)
def _get_transformer(source_crs: str, target_crs: str) -> Transformer:
    """Build (and cache) a pyproj transformer for a CRS pair."""
    try:
        return Transformer.from_crs(
            CRS.from_user_input(source_crs),
            CRS.from_user_input(target_crs),
            always_xy=True,
        )
    except (CRSError, ProjError) as e:
        raise ReprojectionError(source_crs, target_crs, str(e)) from e


class PyprojReprojector(CoordinateReprojector):
    """CoordinateReprojector backed by pyproj."""

    def transform(
        self,
        x: ArrayLike,
        y: ArrayLike,
        source_crs: str,
        target_crs: str,
    ) -> tuple[ArrayLike, ArrayLike]:
        if _same_crs(source_crs, target_crs):
            return x, y
        transformer = _get_transformer(source_crs, target_crs)
        try:
            tx, ty = transformer.transform(x, y, errcheck=True)
        except ProjError as e:
            raise ReprojectionError(source_crs, target_crs, str(e)) from e
        if not (np.all(np.isfinite(tx)) and np.all(np.isfinite(ty))):
            raise ReprojectionError(source_crs, target_crs, 'non-finite result')
        return tx, ty


def _same_crs(a: str, b: str) -> bool:
    return a.strip().upper() == b.strip().upper()


def resolve_raster_crs(
    raster: RasterGrid,
    *,
    default_projected_crs: str = DEFAULT_PROJECTED_CRS,
    require_explicit_crs: bool = False,
) -> str:
    """
    Determine the native CRS of a raster.

    Projected rasters without CRS metadata get ``default_projected_crs``
    substituted unless ``require_explicit_crs`` is set. Geographic rasters
    without metadata are assumed to be WGS84.

    Raises:
        ReprojectionError: If the CRS is missing and an explicit one is required.

    """
    if raster.crs_identifier:
        return raster.crs_identifier
    if not raster.is_projected:
        return WGS84_CRS
    if require_explicit_crs:
        raise ReprojectionError(
            None, WGS84_CRS, 'projected raster has no CRS and none was supplied'
        )
    logger.warning(
        'Projected raster has no CRS metadata; assuming %s. '
        'Elevations may be geometrically shifted. Pass an explicit CRS to avoid this.',
        default_projected_crs,
    )
    return default_projected_crs
