"""Tests for GeoTIFF decoding with rasterio."""

import numpy as np
import pytest
import rasterio
from rasterio.crs import CRS
from rasterio.transform import from_origin

from dem.decoder import crs_identifier_from, decode_geotiff, decode_geotiff_bytes
from shared.errors import RasterDecodeError


def _write_geotiff(path, data, *, crs='EPSG:4326', transform=None, nodata=-9999.0):
    transform = transform or from_origin(30.0, 40.0, 0.01, 0.01)
    height, width = data.shape
    with rasterio.open(
        path,
        'w',
        driver='GTiff',
        height=height,
        width=width,
        count=1,
        dtype='float32',
        crs=crs,
        transform=transform,
        nodata=nodata,
    ) as ds:
        ds.write(data.astype('float32'), 1)
    return path


@pytest.fixture
def dtm_data():
    return np.arange(12, dtype=np.float32).reshape(3, 4) + 100.0


class TestDecodeGeotiff:
    """decode_geotiff()/decode_geotiff_bytes()."""

    def test_decode_geographic(self, tmp_path, dtm_data):
        path = _write_geotiff(tmp_path / 'dtm.tif', dtm_data)
        grid = decode_geotiff(path)
        assert (grid.width, grid.height) == (4, 3)
        assert grid.pixels.dtype == np.float64
        assert grid.value_at(1, 2) == 109.0
        assert grid.no_data_value == -9999.0
        assert grid.crs_identifier == 'EPSG:4326'
        assert not grid.is_projected
        assert grid.bounding_box == pytest.approx((30.0, 39.97, 30.04, 40.0))

    def test_affine_transform(self, tmp_path, dtm_data):
        path = _write_geotiff(tmp_path / 'dtm.tif', dtm_data)
        grid = decode_geotiff(path)
        t = grid.affine_transform
        assert t.tie_geo == pytest.approx((30.0, 40.0))
        assert t.scale == pytest.approx((0.01, 0.01))

    def test_projected(self, tmp_path, dtm_data):
        path = _write_geotiff(
            tmp_path / 'utm.tif',
            dtm_data,
            crs='EPSG:32636',
            transform=from_origin(500000.0, 3540000.0, 30.0, 30.0),
        )
        grid = decode_geotiff(path)
        assert grid.is_projected
        assert grid.crs_identifier == 'EPSG:32636'

    def test_missing_crs_with_override(self, tmp_path, dtm_data):
        path = _write_geotiff(
            tmp_path / 'nocrs.tif',
            dtm_data,
            crs=None,
            transform=from_origin(500000.0, 3540000.0, 30.0, 30.0),
        )
        assert decode_geotiff(path).crs_identifier is None
        assert decode_geotiff(path, crs_override='EPSG:32636').crs_identifier == 'EPSG:32636'

    def test_decode_bytes(self, tmp_path, dtm_data):
        path = _write_geotiff(tmp_path / 'dtm.tif', dtm_data)
        grid = decode_geotiff_bytes(path.read_bytes(), name='upload.tif')
        assert grid.value_at(0, 0) == 100.0

    def test_missing_file(self, tmp_path):
        with pytest.raises(RasterDecodeError, match='not found'):
            decode_geotiff(tmp_path / 'absent.tif')

    def test_corrupt_file(self, tmp_path):
        path = tmp_path / 'broken.tif'
        path.write_bytes(b'definitely not a tiff')
        with pytest.raises(RasterDecodeError):
            decode_geotiff(path)

    def test_empty_bytes(self):
        with pytest.raises(RasterDecodeError):
            decode_geotiff_bytes(b'')


class TestCrsIdentifier:
    """crs_identifier_from()."""

    def test_none(self):
        assert crs_identifier_from(None) is None

    def test_epsg(self):
        assert crs_identifier_from(CRS.from_epsg(32636)) == 'EPSG:32636'
