"""Shared utilities and helpers."""
from shared.diagnostics import log_memory_usage
from shared.errors import (
    InvalidBoundsError,
    InvalidPathError,
    ProfilerError,
    RasterDecodeError,
    ReprojectionError,
)

__all__ = [
    'InvalidBoundsError',
    'InvalidPathError',
    'ProfilerError',
    'RasterDecodeError',
    'ReprojectionError',
    'log_memory_usage',
]
