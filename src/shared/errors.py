"""Error hierarchy for raster loading and profile building."""

from __future__ import annotations


class ProfilerError(Exception):
    """Base error for DTM sampling and profile operations."""


class RasterDecodeError(ProfilerError):
    """Raster bytes are corrupt, unsupported, or the file is missing."""


class InvalidBoundsError(ProfilerError):
    """Raster bounding box is missing or malformed, or the grid is empty."""


class ReprojectionError(ProfilerError):
    """No usable transform between the requested coordinate systems."""

    def __init__(self, source_crs: str | None, target_crs: str | None, reason: str = '') -> None:
        self.source_crs = source_crs
        self.target_crs = target_crs
        msg = f'Cannot transform {source_crs} -> {target_crs}'
        if reason:
            msg = f'{msg}: {reason}'
        super().__init__(msg)


class InvalidPathError(ProfilerError):
    """Path has too few vertices for a profile."""

    def __init__(self, vertex_count: int, minimum: int) -> None:
        self.vertex_count = vertex_count
        self.minimum = minimum
        super().__init__(
            f'Path needs at least {minimum} vertices, got {vertex_count}'
        )
