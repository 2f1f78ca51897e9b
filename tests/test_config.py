"""
Tests for Configuration Loading and Validation
===============================================
"""

import pytest
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from modules.utils.config import Config, ConfigError, SculptingConfig
from main import build_overrides, parse_args


@pytest.fixture
def config():
    cfg = Config()
    cfg.reset()
    yield cfg
    cfg.reset()


class TestSculptingConfig:
    """Test suite for the typed sculpting tunables."""

    def test_defaults(self):
        cfg = SculptingConfig.from_dict({})
        assert cfg.pinch_threshold == 0.05
        assert cfg.required_frames == 8
        assert cfg.edit_cooldown_frames == 10
        assert cfg.voxel_size == 0.3
        assert cfg.orbit_sensitivity == 10.0
        assert cfg.mapping_profile == "perspective"
        assert cfg.placement_profile == "midpoint"
        assert cfg.orbit_profile == "group"

    def test_from_dict_overrides(self):
        cfg = SculptingConfig.from_dict({"required_frames": 3, "orbit_profile": "camera"})
        assert cfg.required_frames == 3
        assert cfg.orbit_profile == "camera"

    def test_unknown_keys_ignored(self):
        cfg = SculptingConfig.from_dict({"voxel_colour": "red"})
        assert cfg == SculptingConfig()

    @pytest.mark.parametrize("field,value", [
        ("required_frames", 0),
        ("required_frames", -1),
        ("edit_cooldown_frames", -1),
        ("pinch_threshold", 0.0),
        ("voxel_size", -0.3),
        ("orbit_sensitivity", 0),
        ("camera_fov_deg", 180),
        ("mapping_profile", "orthographic"),
        ("placement_profile", "palm"),
        ("orbit_profile", "zoom"),
    ])
    def test_rejects_misconfiguration(self, field, value):
        with pytest.raises(ConfigError):
            SculptingConfig.from_dict({field: value})

    def test_config_error_is_value_error(self):
        with pytest.raises(ValueError):
            SculptingConfig(required_frames=0).validate()

    def test_zero_cooldown_allowed(self):
        assert SculptingConfig.from_dict({"edit_cooldown_frames": 0}).edit_cooldown_frames == 0


class TestConfig:
    """Test suite for the YAML-backed configuration manager."""

    def test_load_yaml(self, config, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "camera:\n  device_id: 2\n"
            "sculpting:\n  required_frames: 4\n  mapping_profile: fixed_range\n"
        )
        config.load(config_path=str(path))
        assert config.get("camera.device_id") == 2
        assert config.sculpting.required_frames == 4
        assert config.sculpting.mapping_profile == "fixed_range"

    def test_missing_file_uses_defaults(self, config, tmp_path):
        config.load(config_path=str(tmp_path / "missing.yaml"))
        assert config.camera == {}
        assert config.sculpting == SculptingConfig()

    def test_invalid_value_in_file_raises(self, config, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("sculpting:\n  required_frames: 0\n")
        config.load(config_path=str(path))
        with pytest.raises(ConfigError):
            config.sculpting

    def test_get_default(self, config):
        assert config.get("visualization.window_name", "x") == "x"

    def test_override_merges(self, config, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("sculpting:\n  required_frames: 4\n  voxel_size: 0.5\n")
        config.load(config_path=str(path))
        config.override({"sculpting": {"required_frames": 1}})
        assert config.sculpting.required_frames == 1
        assert config.sculpting.voxel_size == 0.5

    def test_singleton(self):
        assert Config() is Config()

    def test_shipped_config_is_valid(self, config):
        config.load()
        sculpting = config.sculpting
        assert sculpting.required_frames == 8
        assert config.get("mediapipe.max_num_hands") == 2


class TestCommandLine:

    def test_no_flags_no_overrides(self):
        assert build_overrides(parse_args([])) == {}

    def test_flags_map_to_sections(self):
        args = parse_args(["--camera", "1", "--placement", "index_tip",
                           "--orbit", "camera", "--required-frames", "1",
                           "--mapping", "fixed_range"])
        assert build_overrides(args) == {
            "camera": {"device_id": 1},
            "sculpting": {
                "mapping_profile": "fixed_range",
                "placement_profile": "index_tip",
                "orbit_profile": "camera",
                "required_frames": 1,
            },
        }

    def test_rejects_unknown_profile(self):
        with pytest.raises(SystemExit):
            parse_args(["--orbit", "zoom"])


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
