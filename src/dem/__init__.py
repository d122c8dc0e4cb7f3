# DTM raster loading and caching
from dem.cache import RasterCache, RasterCacheStats
from dem.decoder import crs_identifier_from, decode_geotiff, decode_geotiff_bytes
from dem.grid import (
    RasterGrid,
    TiePointTransform,
    classify_projected,
    load_raster_grid,
)

__all__ = [
    'RasterCache',
    'RasterCacheStats',
    'RasterGrid',
    'TiePointTransform',
    'classify_projected',
    'crs_identifier_from',
    'decode_geotiff',
    'decode_geotiff_bytes',
    'load_raster_grid',
]
