"""Tests for constants module."""

from shared.constants import (
    DEFAULT_PROJECTED_CRS,
    EARTH_MEAN_RADIUS_M,
    METERS_PER_DEGREE_LAT,
    RADIUS_MAX_SAMPLES,
    RADIUS_MIN_SAMPLES,
    WGS84_CODE,
    WGS84_CRS,
    ProfileOutputFormat,
    default_output_format,
)


def test_geodesy_constants():
    assert EARTH_MEAN_RADIUS_M == 6371000.0
    assert METERS_PER_DEGREE_LAT == 111320.0


def test_crs_constants():
    assert WGS84_CRS == f'EPSG:{WGS84_CODE}'
    assert DEFAULT_PROJECTED_CRS == 'EPSG:32636'


def test_sample_bounds():
    assert 0 < RADIUS_MIN_SAMPLES < RADIUS_MAX_SAMPLES


def test_output_format():
    assert default_output_format() is ProfileOutputFormat.JSON
    assert ProfileOutputFormat('jsonl') is ProfileOutputFormat.JSON_LINES
