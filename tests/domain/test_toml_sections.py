"""Tests for TOML sectioned settings mapping layer."""

import tomlkit

from domain.toml_sections import (
    SECTION_MAP,
    flat_to_sectioned,
    sectioned_to_flat,
)
from settings import EngineSettings


class TestFlatToSectioned:
    """Tests for flat_to_sectioned()."""

    def test_creates_expected_sections(self):
        result = flat_to_sectioned(EngineSettings().model_dump())
        assert set(result) == {'profile', 'projection', 'radius_stats', 'cache'}

    def test_short_names(self):
        result = flat_to_sectioned(EngineSettings().model_dump())
        assert result['projection']['default_crs'] == 'EPSG:32636'
        assert result['cache']['max_entries'] == 4
        # Flat name must NOT be in the section
        assert 'default_projected_crs' not in result['projection']

    def test_unknown_keys_go_to_common(self):
        result = flat_to_sectioned({'radius_m': 1.0, 'custom': 'x'})
        assert result['common'] == {'custom': 'x'}

    def test_none_skipped(self):
        result = flat_to_sectioned({'radius_m': None})
        assert result == {}


class TestSectionedToFlat:
    """Tests for sectioned_to_flat()."""

    def test_expands_short_names(self):
        flat = sectioned_to_flat({'radius_stats': {'min_samples': 5, 'center_probe_px': 1}})
        assert flat == {'radius_min_samples': 5, 'center_probe_px': 1}

    def test_flat_keys_pass_through(self):
        assert sectioned_to_flat({'radius_m': 3.0}) == {'radius_m': 3.0}

    def test_common_section(self):
        assert sectioned_to_flat({'common': {'radius_m': 3.0}}) == {'radius_m': 3.0}

    def test_round_trip_through_toml(self):
        flat = EngineSettings(sampling_interval_m=7.5, safety_height_m=40.0, resolution_height_m=10.0).model_dump()
        text = tomlkit.dumps(flat_to_sectioned(flat))
        restored = sectioned_to_flat(tomlkit.parse(text).unwrap())
        assert restored == flat

    def test_every_field_mapped(self):
        mapped = {f for fields in SECTION_MAP.values() for f in fields}
        assert mapped == set(EngineSettings.model_fields)

    def test_unset_clearance_section_omitted(self):
        result = flat_to_sectioned(EngineSettings(safety_height_m=40.0).model_dump())
        assert result['clearance'] == {'safety_height_m': 40.0}
