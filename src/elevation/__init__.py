"""Elevation module - point sampling and local statistics over a DTM."""

from .sampler import ElevationSampler
from .stats import RadiusStatistics, choose_sampling_step

__all__ = [
    'ElevationSampler',
    'RadiusStatistics',
    'choose_sampling_step',
]
