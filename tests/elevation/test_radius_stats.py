"""Tests for elevation.stats: adaptive stride and radius min/max."""

import numpy as np
import pytest

from elevation.sampler import ElevationSampler
from elevation.stats import RadiusStatistics, anchored_range, choose_sampling_step


class TestChooseSamplingStep:
    """choose_sampling_step()."""

    def test_small_window_exhaustive(self):
        assert choose_sampling_step(10, 10) == 1
        assert choose_sampling_step(1, 1) == 1

    @pytest.mark.parametrize(('span_x', 'span_y'), [(15, 15), (50, 40), (200, 200), (1000, 3), (997, 1013)])
    def test_count_within_bounds(self, span_x, span_y):
        step = choose_sampling_step(span_x, span_y, min_samples=10, max_samples=200)
        count = -(-span_x // step) * -(-span_y // step)
        assert count <= 200
        assert count >= 10

    def test_custom_bounds(self):
        step = choose_sampling_step(100, 100, min_samples=5, max_samples=25)
        assert step == 20


class TestAnchoredRange:
    """anchored_range()."""

    def test_anchor_inside_window(self):
        assert list(anchored_range(0, 10, 5, 3)) == [2, 5, 8]

    def test_anchor_left_of_window(self):
        assert list(anchored_range(3, 10, 1, 3)) == [4, 7, 10]

    def test_unit_step_is_full_range(self):
        assert list(anchored_range(2, 5, 4, 1)) == [2, 3, 4, 5]


@pytest.fixture
def random_grid(grid_factory):
    """10x10 grid of distinct values over 0.01 deg (about 111 m per pixel)."""
    values = np.random.default_rng(0).permutation(100).reshape(10, 10).astype(float)
    return grid_factory(values, (0.0, 0.0, 0.01, 0.01))


class TestMinMaxInRadius:
    """RadiusStatistics.min_max_in_radius()."""

    def test_contains_own_elevation(self, random_grid):
        sampler = ElevationSampler(random_grid)
        stats = RadiusStatistics(sampler)
        for lon, lat in [(0.005, 0.005), (0.0012, 0.0087), (0.0099, 0.0001)]:
            elevation = sampler.sample(lon, lat)
            rng = stats.min_max_in_radius(lon, lat, 150.0)
            assert rng is not None
            assert rng.min <= elevation <= rng.max

    def test_zero_radius_is_own_value(self, random_grid):
        sampler = ElevationSampler(random_grid)
        stats = RadiusStatistics(sampler)
        elevation = sampler.sample(0.0043, 0.0057)
        rng = stats.min_max_in_radius(0.0043, 0.0057, 0.0)
        assert rng.min == rng.max == elevation

    def test_non_finite_point_gives_none(self, random_grid):
        stats = RadiusStatistics(ElevationSampler(random_grid))
        assert stats.min_max_in_radius(float('nan'), 0.005, 150.0) is None

    def test_widening_radius_is_monotonic(self, random_grid):
        stats = RadiusStatistics(ElevationSampler(random_grid))
        previous = None
        for radius in (50.0, 150.0, 300.0, 500.0):
            rng = stats.min_max_in_radius(0.005, 0.005, radius)
            if previous is not None:
                assert rng.min <= previous.min
                assert rng.max >= previous.max
            previous = rng

    def test_large_radius_covers_whole_grid(self, random_grid):
        stats = RadiusStatistics(ElevationSampler(random_grid))
        rng = stats.min_max_in_radius(0.005, 0.005, 5000.0)
        assert (rng.min, rng.max) == (0.0, 99.0)

    def test_no_data_ignored(self, grid_factory):
        values = np.full((5, 5), 50.0)
        values[0, 0] = -9999.0
        grid = grid_factory(values, (0.0, 0.0, 0.005, 0.005), no_data_value=-9999)
        stats = RadiusStatistics(ElevationSampler(grid))
        rng = stats.min_max_in_radius(0.0025, 0.0025, 1000.0)
        assert (rng.min, rng.max) == (50.0, 50.0)

    def test_all_no_data(self, grid_factory):
        grid = grid_factory(np.full((4, 4), -9999.0), (0.0, 0.0, 0.004, 0.004), no_data_value=-9999)
        stats = RadiusStatistics(ElevationSampler(grid))
        assert stats.min_max_in_radius(0.002, 0.002, 200.0) is None

    def test_strided_window_keeps_centre(self, grid_factory):
        values = np.zeros((301, 301))
        values[150, 150] = 500.0
        grid = grid_factory(values, (0.0, 0.0, 0.0301, 0.0301))
        sampler = ElevationSampler(grid)
        stats = RadiusStatistics(sampler, min_samples=10, max_samples=50)
        pixel = sampler.geo_to_pixel(0.015, 0.0151)
        assert (pixel.x, pixel.y) == (150, 150)
        rng = stats.min_max_in_radius(0.015, 0.0151, 1500.0)
        assert rng.max == 500.0
        assert rng.min == 0.0

    def test_strided_widening_keeps_extremes(self, grid_factory):
        # Ramp rising one metre per column, about 111 m per pixel
        values = np.tile(np.arange(1000.0), (1000, 1))
        grid = grid_factory(values, (0.0, 0.0, 1.0, 1.0))
        stats = RadiusStatistics(ElevationSampler(grid), min_samples=10, max_samples=100)
        ranges = [stats.min_max_in_radius(0.5, 0.5, r) for r in (2000.0, 4000.0, 8000.0, 16000.0)]
        for narrow, wide in zip(ranges, ranges[1:]):
            assert wide.max >= narrow.max
            assert wide.min <= narrow.min
        # Every window is strided; the widest still reaches within two strides of its edge
        step = choose_sampling_step(289, 289, min_samples=10, max_samples=100)
        assert step > 1
        tolerance = 2 * step
        assert ranges[-1].max >= 500 + 143 - tolerance
        assert ranges[-1].min <= 500 - 143 + tolerance
