"""
Video overlay: hand skeleton, projected voxels, and the mode HUD.

Draw order per frame:
    1. Hand skeleton on the raw camera frame (landmarks are in raw image
       space).
    2. Mirror the frame for the selfie preview.
    3. Voxels projected through the scene camera, then the HUD.
"""

import math
import logging
from typing import Sequence

import cv2
import numpy as np

from core.types import Hand, InteractionMode, LandmarkIndex
from modules.scene.voxel_scene import VoxelScene

logger = logging.getLogger(__name__)

HAND_CONNECTIONS = [
    (0, 1), (1, 2), (2, 3), (3, 4),         # Thumb
    (0, 5), (5, 6), (6, 7), (7, 8),         # Index
    (0, 9), (9, 10), (10, 11), (11, 12),    # Middle
    (0, 13), (13, 14), (14, 15), (15, 16),  # Ring
    (0, 17), (17, 18), (18, 19), (19, 20),  # Pinky
    (5, 9), (9, 13), (13, 17),              # Palm
]

# 8 cube corners as +-0.5 offsets, and the 12 edges between them
_CUBE_CORNERS = np.array([
    [x, y, z] for x in (-0.5, 0.5) for y in (-0.5, 0.5) for z in (-0.5, 0.5)
])
_CUBE_EDGES = [
    (0, 1), (0, 2), (0, 4), (1, 3), (1, 5), (2, 3),
    (2, 6), (3, 7), (4, 5), (4, 6), (5, 7), (6, 7),
]

MODE_COLORS = {
    InteractionMode.READY: (200, 200, 200),
    InteractionMode.EDITING: (0, 200, 0),
    InteractionMode.ORBITING: (255, 160, 0),
}


class Overlay:
    """Renders the sculpting view on top of the webcam frame."""

    def __init__(self, config: dict, fov_deg: float = 60.0):
        self._mirror = config.get("mirror_preview", True)
        self._show_skeleton = config.get("show_skeleton", True)
        self._show_hud = config.get("show_hud", True)
        self._fov = math.radians(fov_deg)
        self._label = InteractionMode.READY.label
        self._label_mode = InteractionMode.READY

    def on_mode_changed(self, mode=None, label=None, **_):
        """Event bus listener: the HUD label only changes on a committed transition."""
        if mode is not None:
            self._label_mode = mode
            self._label = label or mode.label

    def render(self, frame: np.ndarray, hands: Sequence[Hand], scene: VoxelScene,
               fps: float = 0.0) -> np.ndarray:
        if self._show_skeleton:
            for hand in hands:
                self.draw_hand(frame, hand)

        if self._mirror:
            frame = cv2.flip(frame, 1)

        self.draw_voxels(frame, scene)

        if self._show_hud:
            self.draw_hud(frame, scene, fps)
        return frame

    def draw_hand(self, frame: np.ndarray, hand: Hand):
        """2-D skeleton with enlarged thumb and index tips."""
        h, w = frame.shape[:2]
        points = [lm.to_pixel(w, h) for lm in hand.landmarks]

        for start, end in HAND_CONNECTIONS:
            cv2.line(frame, points[start], points[end], (0, 255, 0), 2)

        for idx, point in enumerate(points):
            is_tip = idx in (LandmarkIndex.THUMB_TIP, LandmarkIndex.INDEX_TIP)
            color = (0, 0, 255) if is_tip else (0, 255, 0)
            cv2.circle(frame, point, 12 if is_tip else 5, color, -1)

    def project(self, points: np.ndarray, scene: VoxelScene, width: int, height: int):
        """Project group-space points to pixels.

        Returns:
            (pixels (N, 2) float array, depth (N,) array); depth <= 0 means
            the point is behind the camera.
        """
        world = points @ scene.group_rotation().T
        view = scene.camera.view_rotation()
        cam = (world - scene.camera.position) @ view.T
        depth = -cam[:, 2]
        focal = (height / 2) / math.tan(self._fov / 2)
        safe = np.where(depth > 1e-6, depth, 1e-6)
        u = width / 2 + focal * cam[:, 0] / safe
        v = height / 2 - focal * cam[:, 1] / safe
        return np.stack([u, v], axis=1), depth

    def draw_voxels(self, frame: np.ndarray, scene: VoxelScene):
        """Wireframe cubes, far to near, each blended at its own style opacity."""
        if len(scene) == 0:
            return

        h, w = frame.shape[:2]
        centers = scene.world_positions()
        _, center_depth = self.project(centers, scene, w, h)
        handles = list(scene)

        order = np.argsort(-center_depth)
        for i in order:
            if center_depth[i] <= 0:
                continue
            handle = handles[i]
            corners = centers[i] + _CUBE_CORNERS * scene.voxel_size
            pixels, depth = self.project(corners, scene, w, h)
            if np.any(depth <= 0):
                continue
            self._blend_cube(frame, pixels.astype(np.int32), handle.style)

    def _blend_cube(self, frame: np.ndarray, pts: np.ndarray, style):
        # Blend only the cube's bounding box; edges are 2 px wide
        h, w = frame.shape[:2]
        x0, y0 = np.maximum(pts.min(axis=0) - 2, 0)
        x1, y1 = np.minimum(pts.max(axis=0) + 3, (w, h))
        if x0 >= x1 or y0 >= y1:
            return

        base = frame[y0:y1, x0:x1].copy()
        layer = base.copy()
        local = (pts - (x0, y0)).astype(np.int32)
        cv2.fillConvexPoly(layer, cv2.convexHull(local), style.bgr)
        corners_px = [(int(u), int(v)) for u, v in local]
        for a, b in _CUBE_EDGES:
            cv2.line(layer, corners_px[a], corners_px[b], style.edge_bgr, 2)
        frame[y0:y1, x0:x1] = cv2.addWeighted(layer, style.opacity, base, 1 - style.opacity, 0)

    def draw_hud(self, frame: np.ndarray, scene: VoxelScene, fps: float):
        w = frame.shape[1]
        overlay = frame.copy()
        cv2.rectangle(overlay, (0, 0), (w, 50), (20, 20, 20), -1)
        cv2.addWeighted(overlay, 0.6, frame, 0.4, 0, frame)

        cv2.putText(frame, self._label, (15, 35), cv2.FONT_HERSHEY_SIMPLEX, 0.9,
                    MODE_COLORS.get(self._label_mode, (255, 255, 255)), 2)
        cv2.putText(frame, f"Voxels: {scene.voxel_count}", (w // 2 - 60, 35),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.6, (255, 255, 255), 1)
        cv2.putText(frame, f"FPS: {fps:.1f}", (w - 120, 35),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.6, (255, 255, 255), 1)

    @property
    def label(self) -> str:
        return self._label
