"""Mapping layer between flat EngineSettings fields and sectioned TOML format.

EngineSettings remains a flat Pydantic model. This module provides two functions:
- flat_to_sectioned(): flat dict → sectioned dict (for TOML save)
- sectioned_to_flat(): sectioned dict → flat dict (for TOML load)
"""

from __future__ import annotations

# {section_name: {flat_field_name: short_name_in_toml}}
SECTION_MAP: dict[str, dict[str, str]] = {
    'profile': {
        'radius_m': 'radius_m',
        'sampling_interval_m': 'sampling_interval_m',
        'nominal_flight_height_m': 'nominal_flight_height_m',
    },
    'projection': {
        'default_projected_crs': 'default_crs',
        'require_explicit_crs': 'require_explicit',
    },
    'radius_stats': {
        'radius_min_samples': 'min_samples',
        'radius_max_samples': 'max_samples',
        'center_probe_px': 'center_probe_px',
    },
    'clearance': {
        'safety_height_m': 'safety_height_m',
        'resolution_height_m': 'resolution_height_m',
    },
    'cache': {
        'raster_cache_size': 'max_entries',
    },
}

# Reverse index: flat_field → (section, short_name)
_FLAT_TO_SECTION: dict[str, tuple[str, str]] = {}
for _section, _fields in SECTION_MAP.items():
    for _flat, _short in _fields.items():
        _FLAT_TO_SECTION[_flat] = (_section, _short)

# Reverse index: (section, short_name) → flat_field
_SECTION_TO_FLAT: dict[str, dict[str, str]] = {}
for _section, _fields in SECTION_MAP.items():
    _SECTION_TO_FLAT[_section] = {v: k for k, v in _fields.items()}


def flat_to_sectioned(flat: dict) -> dict:
    """Convert flat EngineSettings dict to sectioned dict for TOML output."""
    result: dict = {'common': {}}
    for key, value in flat.items():
        if value is None:
            # TOML has no null
            continue
        if key in _FLAT_TO_SECTION:
            section, short_name = _FLAT_TO_SECTION[key]
            result.setdefault(section, {})[short_name] = value
        else:
            result['common'][key] = value
    if not result['common']:
        del result['common']
    return result


def sectioned_to_flat(data: dict) -> dict:
    """Convert sectioned TOML dict to flat dict for EngineSettings validation."""
    flat: dict = {}
    for key, value in data.items():
        if isinstance(value, dict) and key in _SECTION_TO_FLAT:
            # Known section: expand short names
            mapping = _SECTION_TO_FLAT[key]
            for short_name, field_value in value.items():
                flat[mapping.get(short_name, short_name)] = field_value
        elif isinstance(value, dict):
            # common or unknown section: keys pass through
            flat.update(value)
        else:
            # Top-level key (flat TOML)
            flat[key] = value
    return flat
