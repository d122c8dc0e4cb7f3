import logging
from pathlib import Path

import tomlkit
from pydantic import BaseModel, field_validator, model_validator
from pyproj import CRS
from pyproj.exceptions import CRSError

from domain.toml_sections import flat_to_sectioned, sectioned_to_flat
from shared.constants import (
    DEFAULT_NOMINAL_FLIGHT_HEIGHT_M,
    DEFAULT_PROJECTED_CRS,
    DEFAULT_RADIUS_M,
    DEFAULT_SAMPLING_INTERVAL_M,
    RADIUS_CENTER_PROBE_PX,
    RADIUS_MAX_SAMPLES,
    RADIUS_MIN_SAMPLES,
    RASTER_CACHE_MAX_ENTRIES,
)

logger = logging.getLogger(__name__)


class EngineSettings(BaseModel):
    """Tunable parameters of the profile engine."""

    model_config = {
        'extra': 'ignore',  # unknown keys in TOML files are skipped
    }

    # Local min/max search radius (m)
    radius_m: float = DEFAULT_RADIUS_M
    # Spacing of densified path points (m)
    sampling_interval_m: float = DEFAULT_SAMPLING_INTERVAL_M
    # Flight height above ground for vertices without their own (m AGL)
    nominal_flight_height_m: float = DEFAULT_NOMINAL_FLIGHT_HEIGHT_M

    # CRS guessed for projected rasters without metadata
    default_projected_crs: str = DEFAULT_PROJECTED_CRS
    # Refuse to guess: projected rasters must carry or be given a CRS
    require_explicit_crs: bool = False

    # Adaptive sampling bounds for radius statistics
    radius_min_samples: int = RADIUS_MIN_SAMPLES
    radius_max_samples: int = RADIUS_MAX_SAMPLES
    # Exact neighbourhood read around each query pixel (px)
    center_probe_px: int = RADIUS_CENTER_PROBE_PX

    # Clearance lines above the local max / min (m); omitted from output when unset
    safety_height_m: float | None = None
    resolution_height_m: float | None = None

    # Decoded rasters kept in memory
    raster_cache_size: int = RASTER_CACHE_MAX_ENTRIES

    @field_validator('radius_m', 'nominal_flight_height_m')
    @classmethod
    def validate_non_negative(cls, v: float | str) -> float:
        v = float(v)
        if v < 0.0:
            msg = 'Value must be >= 0'
            raise ValueError(msg)
        return v

    @field_validator('safety_height_m', 'resolution_height_m')
    @classmethod
    def validate_clearance(cls, v: float | str | None) -> float | None:
        if v is None:
            return None
        v = float(v)
        if v < 0.0:
            msg = 'Clearance height must be >= 0'
            raise ValueError(msg)
        return v

    @field_validator('sampling_interval_m')
    @classmethod
    def validate_interval(cls, v: float | str) -> float:
        v = float(v)
        if v <= 0.0:
            msg = 'sampling_interval_m must be > 0'
            raise ValueError(msg)
        return v

    @field_validator('default_projected_crs')
    @classmethod
    def validate_crs(cls, v: str) -> str:
        try:
            CRS.from_user_input(v)
        except CRSError as e:
            msg = f'Unknown CRS: {v}'
            raise ValueError(msg) from e
        return v

    @field_validator('radius_min_samples', 'radius_max_samples', 'raster_cache_size')
    @classmethod
    def validate_positive_int(cls, v: int | str) -> int:
        v = int(v)
        if v < 1:
            msg = 'Value must be >= 1'
            raise ValueError(msg)
        return v

    @field_validator('center_probe_px')
    @classmethod
    def validate_probe(cls, v: int | str) -> int:
        return max(0, int(v))

    @model_validator(mode='after')
    def validate_sample_bounds(self) -> 'EngineSettings':
        if self.radius_max_samples < self.radius_min_samples:
            msg = 'radius_max_samples must be >= radius_min_samples'
            raise ValueError(msg)
        return self


def load_settings(path: str | Path | None = None) -> EngineSettings:
    """
    Load engine settings from a TOML file.

    Accepts both flat keys and the sectioned layout of ``domain.toml_sections``.
    Without a path, defaults are returned.
    """
    if path is None:
        return EngineSettings()
    path = Path(path)
    if not path.exists():
        msg = f'Settings file not found: {path}'
        raise FileNotFoundError(msg)
    data = tomlkit.parse(path.read_text(encoding='utf-8')).unwrap()
    settings = EngineSettings.model_validate(sectioned_to_flat(data))
    logger.info(
        'Settings loaded from %s: radius=%sm interval=%sm default_crs=%s',
        path,
        settings.radius_m,
        settings.sampling_interval_m,
        settings.default_projected_crs,
    )
    return settings


def save_settings(path: str | Path, settings: EngineSettings) -> Path:
    """Write settings as sectioned TOML (no atomicity or backups)."""
    path = Path(path)
    text = tomlkit.dumps(flat_to_sectioned(settings.model_dump()))
    path.write_text(text, encoding='utf-8')
    return path
