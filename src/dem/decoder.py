"""GeoTIFF decoding into :class:`~dem.grid.RasterGrid`.

The only I/O-bound step of the engine. Callers are expected to decode a DTM
once and keep the result in a :class:`~dem.cache.RasterCache`.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import TYPE_CHECKING

import numpy as np
import rasterio
from rasterio.errors import RasterioError
from rasterio.io import MemoryFile

from dem.grid import RasterGrid, TiePointTransform, load_raster_grid
from shared.constants import LARGE_RASTER_PIXELS, RASTER_BAND_INDEX
from shared.diagnostics import estimate_array_mb, log_memory_usage
from shared.errors import ProfilerError, RasterDecodeError

if TYPE_CHECKING:
    from rasterio.crs import CRS
    from rasterio.io import DatasetReader

logger = logging.getLogger(__name__)


def crs_identifier_from(crs: CRS | None) -> str | None:
    """``EPSG:XXXX`` when an EPSG code is recoverable, else the CRS string."""
    if crs is None:
        return None
    epsg = crs.to_epsg()
    if epsg is not None:
        return f'EPSG:{epsg}'
    text = crs.to_string()
    return text or None


def _grid_from_dataset(ds: DatasetReader, crs_override: str | None) -> RasterGrid:
    if ds.count < RASTER_BAND_INDEX:
        msg = f'Raster has no bands: {ds.name}'
        raise RasterDecodeError(msg)
    if ds.count > RASTER_BAND_INDEX:
        logger.debug('Raster %s has %d bands; reading band %d only', ds.name, ds.count, RASTER_BAND_INDEX)

    started = time.monotonic()
    band = ds.read(RASTER_BAND_INDEX).astype(np.float64, copy=False)
    elapsed = time.monotonic() - started
    logger.info(
        'Decoded %s: %dx%d px (%s MB) in %.2fs',
        ds.name,
        ds.width,
        ds.height,
        estimate_array_mb(band.size),
        elapsed,
    )
    if band.size > LARGE_RASTER_PIXELS:
        log_memory_usage(f'after decoding {ds.name}')

    bounds = ds.bounds
    crs_identifier = crs_override or crs_identifier_from(ds.crs)
    affine = TiePointTransform.from_affine(ds.transform)
    if affine is None:
        logger.warning(
            'Raster %s has a rotated or missing geotransform; '
            'falling back to bounding-box pixel mapping',
            ds.name,
        )

    return load_raster_grid(
        width=ds.width,
        height=ds.height,
        pixels=band,
        bounding_box=(bounds.left, bounds.bottom, bounds.right, bounds.top),
        no_data_value=ds.nodata,
        affine_transform=affine,
        crs_identifier=crs_identifier,
    )


def decode_geotiff(path: str | Path, *, crs_override: str | None = None) -> RasterGrid:
    """
    Decode a GeoTIFF DTM file.

    Args:
        path: Path to the GeoTIFF.
        crs_override: CRS identifier to use instead of the file's metadata.

    Returns:
        Immutable RasterGrid with band 1 as float64.

    Raises:
        RasterDecodeError: File missing, unreadable or inconsistent.
        InvalidBoundsError: Bounds are malformed.

    """
    path = Path(path).expanduser()
    if not path.exists():
        msg = f'DTM file not found: {path}'
        raise RasterDecodeError(msg)
    try:
        with rasterio.open(path, 'r') as ds:
            grid = _grid_from_dataset(ds, crs_override)
    except ProfilerError:
        raise
    except (RasterioError, OSError) as e:
        msg = f'Failed to decode DTM {path}: {e}'
        raise RasterDecodeError(msg) from e
    logger.info(
        'Loaded DTM %s (crs=%s, projected=%s)',
        path.name,
        grid.crs_identifier,
        grid.is_projected,
    )
    return grid


def decode_geotiff_bytes(
    data: bytes,
    *,
    name: str = '<memory>',
    crs_override: str | None = None,
) -> RasterGrid:
    """Decode GeoTIFF content already held in memory (e.g. an upload body)."""
    if not data:
        msg = f'Empty raster payload: {name}'
        raise RasterDecodeError(msg)
    try:
        with MemoryFile(data) as memfile, memfile.open() as ds:
            return _grid_from_dataset(ds, crs_override)
    except ProfilerError:
        raise
    except (RasterioError, OSError) as e:
        msg = f'Failed to decode DTM {name}: {e}'
        raise RasterDecodeError(msg) from e
