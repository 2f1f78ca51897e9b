"""
Normalized camera-space to voxel-grid mapping.

Two profiles are supported and chosen at configuration time:

    - PerspectiveMapper: reconstructs the world extent visible at the
      working depth from the render camera's FOV, aspect ratio and distance,
      so placed blocks line up with the hand in the video overlay.
    - FixedRangeMapper: linear remap of [0, 1] into a constant world box,
      independent of the camera.

Both mirror the horizontal axis (the preview is shown as a selfie view),
flip the vertical axis (image y grows downward), remap detector depth so a
closer hand lands at positive z, and snap every axis to the voxel lattice.
"""

import math
import logging
from typing import Tuple

from core.types import VoxelKey

logger = logging.getLogger(__name__)

WorldPoint = Tuple[float, float, float]


def snap_index(value: float, voxel_size: float) -> int:
    """Index of the lattice point nearest to value (halves round up)."""
    return int(math.floor(value / voxel_size + 0.5))


class CoordinateMapper:
    """Shared affine map + grid snapping; subclasses provide the extent."""

    def __init__(self, voxel_size: float):
        if voxel_size <= 0:
            raise ValueError("voxel_size must be positive, got %r" % voxel_size)
        self._voxel_size = voxel_size

    def extent(self) -> WorldPoint:
        """World (width, height, depth) covered by the normalized unit cube."""
        raise NotImplementedError

    def to_world(self, nx: float, ny: float, nz: float) -> WorldPoint:
        """Unsnapped world position of a normalized point."""
        width, height, depth = self.extent()
        return (
            -(nx - 0.5) * width,
            -(ny - 0.5) * height,
            (0.5 - nz) * depth,
        )

    def map_to_grid(self, nx: float, ny: float, nz: float) -> VoxelKey:
        wx, wy, wz = self.to_world(nx, ny, nz)
        return VoxelKey(
            snap_index(wx, self._voxel_size),
            snap_index(wy, self._voxel_size),
            snap_index(wz, self._voxel_size),
        )

    def key_to_world(self, key: VoxelKey) -> WorldPoint:
        """World position of a lattice cell."""
        return (
            key.ix * self._voxel_size,
            key.iy * self._voxel_size,
            key.iz * self._voxel_size,
        )

    @property
    def voxel_size(self) -> float:
        return self._voxel_size


class PerspectiveMapper(CoordinateMapper):
    """Matches the overlay: the visible frustum slice at ``distance``."""

    def __init__(self, voxel_size: float = 0.3, fov_deg: float = 60.0,
                 aspect_ratio: float = 640 / 480, distance: float = 5.0,
                 depth_range: float = 4.0):
        super().__init__(voxel_size)
        if not 0 < fov_deg < 180:
            raise ValueError("fov_deg must be in (0, 180), got %r" % fov_deg)
        if distance <= 0 or depth_range <= 0:
            raise ValueError("distance and depth_range must be positive")
        self._fov = math.radians(fov_deg)
        self._distance = distance
        self._depth_range = depth_range
        self._aspect = 1.0
        self.set_aspect(aspect_ratio)

    def set_aspect(self, aspect_ratio: float):
        """Follow the live viewport aspect ratio (window resize)."""
        if aspect_ratio <= 0:
            raise ValueError("aspect_ratio must be positive, got %r" % aspect_ratio)
        if aspect_ratio != self._aspect:
            logger.debug("Perspective mapper aspect %.3f -> %.3f", self._aspect, aspect_ratio)
        self._aspect = aspect_ratio

    def extent(self) -> WorldPoint:
        view_height = 2 * math.tan(self._fov / 2) * self._distance
        view_width = view_height * self._aspect
        return (view_width, view_height, self._depth_range)

    @property
    def aspect_ratio(self) -> float:
        return self._aspect


class FixedRangeMapper(CoordinateMapper):
    """Camera-independent mapping into a constant world box."""

    def __init__(self, voxel_size: float = 0.3, width: float = 8.0,
                 height: float = 6.0, depth: float = 4.0):
        super().__init__(voxel_size)
        if min(width, height, depth) <= 0:
            raise ValueError("World box dimensions must be positive")
        self._box = (width, height, depth)

    def extent(self) -> WorldPoint:
        return self._box

    def set_aspect(self, aspect_ratio: float):
        """Fixed box: the viewport shape does not matter."""


def build_mapper(config) -> CoordinateMapper:
    """Create the mapper selected by a SculptingConfig."""
    if config.mapping_profile == "perspective":
        return PerspectiveMapper(
            voxel_size=config.voxel_size,
            fov_deg=config.camera_fov_deg,
            aspect_ratio=config.aspect_ratio,
            distance=config.camera_distance,
            depth_range=config.depth_range,
        )
    if config.mapping_profile == "fixed_range":
        return FixedRangeMapper(
            voxel_size=config.voxel_size,
            width=config.world_width,
            height=config.world_height,
            depth=config.world_depth,
        )
    raise ValueError("Unknown mapping profile: %r" % config.mapping_profile)
