"""
In-memory scene state: voxel registry, voxel-group rotation and orbit camera.

This is the renderer-facing side of the sculpting pipeline. The pipeline only
asks it to add voxels and to rotate the group or move the camera; drawing is
done elsewhere from the state kept here.
"""

import math
import logging
from dataclasses import dataclass
from typing import Dict, Iterator, Optional, Tuple

import numpy as np

from core.types import VoxelKey

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VoxelStyle:
    """How a voxel is drawn."""
    color: int = 0x00CED1       # cyan
    edge_color: int = 0x000000
    opacity: float = 0.9

    @property
    def bgr(self) -> Tuple[int, int, int]:
        """Color as an OpenCV BGR tuple."""
        return (self.color & 0xFF, (self.color >> 8) & 0xFF, (self.color >> 16) & 0xFF)

    @property
    def edge_bgr(self) -> Tuple[int, int, int]:
        c = self.edge_color
        return (c & 0xFF, (c >> 8) & 0xFF, (c >> 16) & 0xFF)


@dataclass(frozen=True)
class VoxelHandle:
    """Opaque per-voxel record owned by the scene."""
    key: VoxelKey
    position: Tuple[float, float, float]
    style: VoxelStyle


@dataclass
class OrbitCamera:
    """Camera on a sphere around the origin, always aimed at the origin.

    ``azimuth`` turns around the vertical axis; ``polar`` is measured from
    +y, so ``polar = pi / 2`` sits on the horizon. The default pose is
    (0, 0, radius).
    """
    radius: float = 5.0
    azimuth: float = 0.0
    polar: float = math.pi / 2

    @property
    def position(self) -> np.ndarray:
        sin_polar = math.sin(self.polar)
        return np.array([
            self.radius * sin_polar * math.sin(self.azimuth),
            self.radius * math.cos(self.polar),
            self.radius * sin_polar * math.cos(self.azimuth),
        ])

    def view_rotation(self) -> np.ndarray:
        """World-to-camera rotation (rows = camera right, up, back axes)."""
        back = self.position / np.linalg.norm(self.position)
        right = np.cross(np.array([0.0, 1.0, 0.0]), back)
        norm = np.linalg.norm(right)
        if norm < 1e-9:
            right = np.array([1.0, 0.0, 0.0])
        else:
            right = right / norm
        up = np.cross(back, right)
        return np.vstack([right, up, back])


class VoxelScene:
    """Voxel registry plus the transforms the orbit gesture drives.

    Keys are unique for the lifetime of the scene: adding an existing key
    is a silent no-op and nothing is ever removed.
    """

    def __init__(self, voxel_size: float = 0.3, style: Optional[VoxelStyle] = None,
                 camera: Optional[OrbitCamera] = None):
        self._voxel_size = voxel_size
        self._style = style or VoxelStyle()
        self._voxels: Dict[VoxelKey, VoxelHandle] = {}
        self.group_yaw = 0.0
        self.group_pitch = 0.0
        self.camera = camera or OrbitCamera()

    def add_voxel(self, key: VoxelKey, style: Optional[VoxelStyle] = None) -> bool:
        """Insert a voxel; returns False if the cell was already occupied."""
        if key in self._voxels:
            logger.debug("Voxel %s already present, ignoring", tuple(key))
            return False
        position = (key.ix * self._voxel_size, key.iy * self._voxel_size, key.iz * self._voxel_size)
        self._voxels[key] = VoxelHandle(key=key, position=position, style=style or self._style)
        return True

    def has_voxel(self, key: VoxelKey) -> bool:
        return key in self._voxels

    def get(self, key: VoxelKey) -> Optional[VoxelHandle]:
        return self._voxels.get(key)

    def rotate_group(self, d_yaw: float, d_pitch: float):
        """Incremental rotation of the voxel group (y axis, then x axis)."""
        self.group_yaw += d_yaw
        self.group_pitch += d_pitch

    def set_camera_angles(self, azimuth: float, polar: float):
        """Move the orbit camera; it stays aimed at the origin."""
        self.camera.azimuth = azimuth
        self.camera.polar = polar

    def group_rotation(self) -> np.ndarray:
        """Group rotation matrix, Euler order XYZ (pitch about x, yaw about y)."""
        cp, sp = math.cos(self.group_pitch), math.sin(self.group_pitch)
        cy, sy = math.cos(self.group_yaw), math.sin(self.group_yaw)
        rx = np.array([[1, 0, 0], [0, cp, -sp], [0, sp, cp]])
        ry = np.array([[cy, 0, sy], [0, 1, 0], [-sy, 0, cy]])
        return rx @ ry

    def __iter__(self) -> Iterator[VoxelHandle]:
        return iter(self._voxels.values())

    def __len__(self) -> int:
        return len(self._voxels)

    @property
    def voxel_count(self) -> int:
        return len(self._voxels)

    @property
    def voxel_size(self) -> float:
        return self._voxel_size

    def world_positions(self) -> np.ndarray:
        """(N, 3) array of voxel centers in group space."""
        if not self._voxels:
            return np.zeros((0, 3))
        return np.array([v.position for v in self._voxels.values()], dtype=float)
