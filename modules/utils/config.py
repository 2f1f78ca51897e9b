"""
Centralized configuration manager.
Loads the YAML config and provides typed access with defaults.

    - Schema validation for the loose sections (warnings only)
    - Strict validation of the sculpting tunables (errors)
    - Reset support for testing
"""

import os
import logging
from dataclasses import dataclass, asdict

import yaml

logger = logging.getLogger(__name__)

_BASE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
_CONFIG_DIR = os.path.join(_BASE_DIR, "config")

# Schema: sections and their expected types
_CONFIG_SCHEMA = {
    "camera": {
        "device_id": int,
        "width": int,
        "height": int,
        "fps": int,
    },
    "mediapipe": {
        "max_num_hands": int,
        "min_detection_confidence": float,
        "min_tracking_confidence": float,
    },
    "sculpting": {
        "pinch_threshold": float,
        "required_frames": int,
        "edit_cooldown_frames": int,
        "voxel_size": float,
        "orbit_sensitivity": float,
        "mapping_profile": str,
        "placement_profile": str,
        "orbit_profile": str,
    },
}

MAPPING_PROFILES = ("perspective", "fixed_range")
PLACEMENT_PROFILES = ("midpoint", "index_tip")
ORBIT_PROFILES = ("group", "camera")


class ConfigError(ValueError):
    """Raised when a tunable is outside its valid range."""


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override into base dict."""
    merged = base.copy()
    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


@dataclass
class SculptingConfig:
    """Tunables of the gesture interpretation layer."""
    pinch_threshold: float = 0.05       # normalized landmark units
    required_frames: int = 8            # stable frames before a mode commits
    edit_cooldown_frames: int = 10      # frames between two placements
    voxel_size: float = 0.3             # lattice spacing in world units
    orbit_sensitivity: float = 10.0     # radians per normalized unit
    mapping_profile: str = "perspective"
    placement_profile: str = "midpoint"
    orbit_profile: str = "group"

    # Perspective mapping
    camera_fov_deg: float = 60.0
    camera_distance: float = 5.0
    aspect_ratio: float = 640 / 480
    depth_range: float = 4.0

    # Fixed-range mapping
    world_width: float = 8.0
    world_height: float = 6.0
    world_depth: float = 4.0

    # Camera orbit
    orbit_radius: float = 5.0
    polar_margin: float = 0.1

    @classmethod
    def from_dict(cls, d: dict) -> "SculptingConfig":
        """Create config from dictionary, ignoring unknown keys."""
        known = {k: v for k, v in (d or {}).items() if k in cls.__dataclass_fields__}
        unknown = set(d or {}) - set(known)
        if unknown:
            logger.warning("Ignoring unknown sculpting keys: %s", sorted(unknown))
        return cls(**known).validate()

    def validate(self) -> "SculptingConfig":
        """Reject misconfiguration before any frame is processed."""
        if self.required_frames <= 0:
            raise ConfigError("required_frames must be >= 1, got %r" % self.required_frames)
        if self.edit_cooldown_frames < 0:
            raise ConfigError("edit_cooldown_frames must be >= 0, got %r" % self.edit_cooldown_frames)
        for name in ("pinch_threshold", "voxel_size", "orbit_sensitivity",
                     "camera_fov_deg", "camera_distance", "aspect_ratio",
                     "world_width", "world_height", "world_depth", "orbit_radius"):
            if getattr(self, name) <= 0:
                raise ConfigError("%s must be positive, got %r" % (name, getattr(self, name)))
        if not 0 < self.camera_fov_deg < 180:
            raise ConfigError("camera_fov_deg must be in (0, 180), got %r" % self.camera_fov_deg)
        if not 0 <= self.polar_margin < 1.5:
            raise ConfigError("polar_margin must be in [0, 1.5), got %r" % self.polar_margin)
        if self.mapping_profile not in MAPPING_PROFILES:
            raise ConfigError("Unknown mapping_profile %r (expected one of %s)"
                              % (self.mapping_profile, MAPPING_PROFILES))
        if self.placement_profile not in PLACEMENT_PROFILES:
            raise ConfigError("Unknown placement_profile %r (expected one of %s)"
                              % (self.placement_profile, PLACEMENT_PROFILES))
        if self.orbit_profile not in ORBIT_PROFILES:
            raise ConfigError("Unknown orbit_profile %r (expected one of %s)"
                              % (self.orbit_profile, ORBIT_PROFILES))
        return self

    def to_dict(self) -> dict:
        return asdict(self)


class Config:
    """Singleton configuration manager."""

    _instance = None
    _data = {}

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def load(self, config_path=None):
        """Load configuration from a YAML file."""
        config_path = config_path or os.path.join(_CONFIG_DIR, "config.yaml")

        try:
            with open(config_path, "r") as f:
                self._data = yaml.safe_load(f) or {}
            logger.info("Loaded config from %s", config_path)
        except FileNotFoundError:
            logger.warning("Config file not found: %s, using defaults", config_path)
            self._data = {}

        self._validate()

        return self

    def _validate(self):
        """Validate config fields against schema."""
        warnings = []
        for section_name, fields in _CONFIG_SCHEMA.items():
            section = self._data.get(section_name)
            if section is None:
                warnings.append(f"Missing config section: '{section_name}'")
                continue
            if not isinstance(section, dict):
                warnings.append(f"Section '{section_name}' should be a dict, got {type(section).__name__}")
                continue
            for field_name, expected_type in fields.items():
                if field_name in section:
                    value = section[field_name]
                    # Allow int where float is expected
                    if expected_type is float and isinstance(value, (int, float)):
                        continue
                    if not isinstance(value, expected_type):
                        warnings.append(
                            f"{section_name}.{field_name}: expected {expected_type.__name__}, "
                            f"got {type(value).__name__} ({value!r})"
                        )

        if warnings:
            for w in warnings:
                logger.warning("Config validation: %s", w)
        else:
            logger.debug("Config validation passed")

    def override(self, overrides: dict):
        """Merge command-line overrides on top of the loaded file."""
        self._data = _deep_merge(self._data, overrides)
        return self

    def get(self, key_path: str, default=None):
        """Get nested config value using dot notation: 'camera.width'."""
        keys = key_path.split(".")
        value = self._data
        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default
        return value

    def get_section(self, section: str) -> dict:
        """Get an entire config section."""
        return self._data.get(section, {})

    @property
    def camera(self) -> dict:
        return self._data.get("camera", {})

    @property
    def mediapipe(self) -> dict:
        return self._data.get("mediapipe", {})

    @property
    def visualization(self) -> dict:
        return self._data.get("visualization", {})

    @property
    def logging(self) -> dict:
        return self._data.get("logging", {})

    @property
    def sculpting(self) -> SculptingConfig:
        """Typed, validated sculpting tunables."""
        return SculptingConfig.from_dict(self._data.get("sculpting", {}))

    def reset(self):
        """Drop loaded data (for testing)."""
        self._data = {}
