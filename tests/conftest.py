"""Pytest configuration and fixtures for profiler tests."""

import sys
from pathlib import Path

import numpy as np
import pytest

# Add src directory to path for imports
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from dem.grid import RasterGrid, load_raster_grid  # noqa: E402


@pytest.fixture
def grid_factory():
    """Build a RasterGrid from a 2-D array and a bounding box."""

    def _make(values, bounding_box, **kwargs) -> RasterGrid:
        return load_raster_grid(
            pixels=np.asarray(values, dtype=np.float64),
            bounding_box=bounding_box,
            **kwargs,
        )

    return _make


@pytest.fixture
def small_geo_grid(grid_factory) -> RasterGrid:
    """4x4 geographic grid over (0, 0)-(4, 4); pixel (x, y) holds 10*(y+1)+x."""
    values = [[10 * (y + 1) + x for x in range(4)] for y in range(4)]
    return grid_factory(values, (0.0, 0.0, 4.0, 4.0))


@pytest.fixture
def equator_grid(grid_factory) -> RasterGrid:
    """Flat 100 m terrain around the equator, 0.001 deg pixels."""
    values = np.full((20, 30), 100.0)
    return grid_factory(values, (-0.01, -0.01, 0.02, 0.01))
