"""
Tests for Normalized-to-Grid Mapping
=====================================
"""

import math
import pytest
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.types import VoxelKey
from modules.mapping.coordinate_mapper import (
    FixedRangeMapper, PerspectiveMapper, build_mapper, snap_index,
)
from modules.utils.config import SculptingConfig


class TestSnapIndex:

    def test_nearest(self):
        assert snap_index(0.0, 0.3) == 0
        assert snap_index(0.31, 0.3) == 1
        assert snap_index(-0.31, 0.3) == -1
        assert snap_index(0.89, 0.3) == 3

    def test_halves_round_up(self):
        assert snap_index(0.25, 0.5) == 1
        assert snap_index(-0.25, 0.5) == 0


class TestPerspectiveMapper:
    """Test suite for the overlay-matched mapping profile."""

    @pytest.fixture
    def mapper(self):
        return PerspectiveMapper(voxel_size=0.3, fov_deg=60.0, aspect_ratio=4 / 3,
                                 distance=5.0, depth_range=4.0)

    def test_extent_from_camera(self, mapper):
        width, height, depth = mapper.extent()
        expected_height = 2 * math.tan(math.radians(30)) * 5.0
        assert height == pytest.approx(expected_height)
        assert width == pytest.approx(expected_height * 4 / 3)
        assert depth == 4.0

    def test_center_maps_to_origin(self, mapper):
        assert mapper.map_to_grid(0.5, 0.5, 0.5) == VoxelKey(0, 0, 0)

    def test_horizontal_is_mirrored(self, mapper):
        wx, _, _ = mapper.to_world(0.2, 0.5, 0.5)
        assert wx > 0
        wx, _, _ = mapper.to_world(0.8, 0.5, 0.5)
        assert wx < 0

    def test_vertical_is_flipped(self, mapper):
        _, wy, _ = mapper.to_world(0.5, 0.1, 0.5)
        assert wy > 0

    def test_closer_hand_is_positive_depth(self, mapper):
        _, _, wz = mapper.to_world(0.5, 0.5, 0.0)
        assert wz == pytest.approx(2.0)
        _, _, wz = mapper.to_world(0.5, 0.5, 1.0)
        assert wz == pytest.approx(-2.0)

    def test_edges_reach_view_extent(self, mapper):
        width, height, _ = mapper.extent()
        wx, wy, _ = mapper.to_world(0.0, 0.0, 0.5)
        assert wx == pytest.approx(width / 2)
        assert wy == pytest.approx(height / 2)

    def test_nearby_points_collapse(self, mapper):
        a = mapper.map_to_grid(0.50, 0.50, 0.50)
        b = mapper.map_to_grid(0.51, 0.49, 0.52)
        assert a == b

    def test_snapped_output_lies_on_lattice(self, mapper):
        key = mapper.map_to_grid(0.13, 0.77, 0.31)
        x, y, z = mapper.key_to_world(key)
        for value, index in zip((x, y, z), key):
            assert value == pytest.approx(index * 0.3)

    def test_snapped_output_is_within_half_voxel(self, mapper):
        point = (0.13, 0.77, 0.31)
        snapped = mapper.key_to_world(mapper.map_to_grid(*point))
        for raw, lattice in zip(mapper.to_world(*point), snapped):
            assert abs(raw - lattice) <= 0.15 + 1e-9

    def test_deterministic(self, mapper):
        assert mapper.map_to_grid(0.3, 0.6, 0.2) == mapper.map_to_grid(0.3, 0.6, 0.2)

    def test_set_aspect_widens_view(self, mapper):
        width_before, height_before, _ = mapper.extent()
        mapper.set_aspect(16 / 9)
        width_after, height_after, _ = mapper.extent()
        assert height_after == pytest.approx(height_before)
        assert width_after > width_before

    @pytest.mark.parametrize("kwargs", [
        {"voxel_size": 0}, {"fov_deg": 0}, {"fov_deg": 180},
        {"distance": -1}, {"aspect_ratio": 0},
    ])
    def test_invalid_arguments(self, kwargs):
        with pytest.raises(ValueError):
            PerspectiveMapper(**kwargs)


class TestFixedRangeMapper:
    """Test suite for the camera-independent mapping profile."""

    @pytest.fixture
    def mapper(self):
        return FixedRangeMapper(voxel_size=0.5, width=8.0, height=6.0, depth=4.0)

    def test_center_maps_to_origin(self, mapper):
        assert mapper.map_to_grid(0.5, 0.5, 0.5) == VoxelKey(0, 0, 0)

    def test_corners(self, mapper):
        assert mapper.map_to_grid(0.0, 0.0, 0.0) == VoxelKey(8, 6, 4)
        assert mapper.map_to_grid(1.0, 1.0, 1.0) == VoxelKey(-8, -6, -4)

    def test_ignores_aspect(self, mapper):
        before = mapper.extent()
        mapper.set_aspect(3.0)
        assert mapper.extent() == before

    def test_invalid_box(self):
        with pytest.raises(ValueError):
            FixedRangeMapper(width=0)


class TestBuildMapper:

    def test_perspective_profile(self):
        mapper = build_mapper(SculptingConfig(mapping_profile="perspective"))
        assert isinstance(mapper, PerspectiveMapper)
        assert mapper.voxel_size == 0.3

    def test_fixed_range_profile(self):
        mapper = build_mapper(SculptingConfig(mapping_profile="fixed_range", voxel_size=0.5))
        assert isinstance(mapper, FixedRangeMapper)
        assert mapper.voxel_size == 0.5

    def test_unknown_profile(self):
        with pytest.raises(ValueError):
            build_mapper(SculptingConfig(mapping_profile="orthographic"))


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
