"""
Per-mode actions of a sculpting session.

    EDITING   - place one voxel at the first pinching hand, then hold off
                for a cooldown of N frames.
    ORBITING  - rotate the view by the motion of the two pinching hands'
                index tips since the previous frame.
    READY     - nothing.

Placement point and orbit target are strategies chosen by configuration.
"""

import math
import logging
from dataclasses import replace
from typing import NamedTuple, Optional, Sequence, Tuple

from core.types import Hand, InteractionMode, LandmarkIndex, SessionState, VoxelKey
from modules.mapping.coordinate_mapper import CoordinateMapper
from modules.recognition.gesture_classifier import PinchClassifier
from modules.scene.voxel_scene import VoxelScene

logger = logging.getLogger(__name__)

DEFAULT_EDIT_COOLDOWN = 10
DEFAULT_ORBIT_SENSITIVITY = 10.0


# =============================================================================
# Placement strategies
# =============================================================================

class MidpointPlacement:
    """Place at the midpoint between thumb tip and index tip."""

    name = "midpoint"

    def point(self, hand: Hand) -> Tuple[float, float, float]:
        thumb = hand.get(LandmarkIndex.THUMB_TIP)
        index = hand.get(LandmarkIndex.INDEX_TIP)
        return (
            (thumb.x + index.x) / 2,
            (thumb.y + index.y) / 2,
            (thumb.z + index.z) / 2,
        )


class IndexTipPlacement:
    """Place at the index fingertip."""

    name = "index_tip"

    def point(self, hand: Hand) -> Tuple[float, float, float]:
        index = hand.get(LandmarkIndex.INDEX_TIP)
        return (index.x, index.y, index.z)


# =============================================================================
# Orbit strategies
# =============================================================================

class OrbitDelta(NamedTuple):
    """Angle increments applied by one orbit step (radians)."""
    horizontal: float
    vertical: float


class GroupRotationOrbit:
    """Rotate the voxel group: yaw from horizontal, pitch from vertical motion."""

    name = "group"

    def apply(self, scene: VoxelScene, dx: float, dy: float) -> OrbitDelta:
        scene.rotate_group(dx, dy)
        return OrbitDelta(dx, dy)


class CameraOrbit:
    """Move the camera over a sphere of fixed radius around the origin.

    The polar angle is kept ``polar_margin`` away from both poles so the
    look-at basis never flips.
    """

    name = "camera"

    def __init__(self, radius: float = 5.0, polar_margin: float = 0.1):
        if radius <= 0:
            raise ValueError("Orbit radius must be positive, got %r" % radius)
        self._radius = radius
        self._polar_margin = polar_margin

    def apply(self, scene: VoxelScene, dx: float, dy: float) -> OrbitDelta:
        camera = scene.camera
        camera.radius = self._radius
        azimuth = camera.azimuth - dx
        polar = min(max(camera.polar + dy, self._polar_margin), math.pi - self._polar_margin)
        applied = OrbitDelta(camera.azimuth - azimuth, polar - camera.polar)
        scene.set_camera_angles(azimuth, polar)
        return applied


PLACEMENT_STRATEGIES = {
    "midpoint": MidpointPlacement,
    "index_tip": IndexTipPlacement,
}


# =============================================================================
# Dispatcher
# =============================================================================

class DispatchResult(NamedTuple):
    """Outcome of one dispatch step."""
    state: SessionState
    placed: Optional[VoxelKey] = None
    orbit: Optional[OrbitDelta] = None


class ModeActionDispatcher:
    """Runs the single side-effecting action of the committed mode."""

    def __init__(self, scene: VoxelScene, mapper: CoordinateMapper,
                 classifier: Optional[PinchClassifier] = None,
                 placement=None, orbit=None,
                 edit_cooldown: int = DEFAULT_EDIT_COOLDOWN,
                 orbit_sensitivity: float = DEFAULT_ORBIT_SENSITIVITY):
        if edit_cooldown < 0:
            raise ValueError("edit_cooldown must be >= 0, got %r" % edit_cooldown)
        if orbit_sensitivity <= 0:
            raise ValueError("orbit_sensitivity must be positive, got %r" % orbit_sensitivity)
        if not math.isclose(scene.voxel_size, mapper.voxel_size):
            raise ValueError("scene voxel_size %r does not match mapper voxel_size %r"
                             % (scene.voxel_size, mapper.voxel_size))
        self._scene = scene
        self._mapper = mapper
        self._classifier = classifier or PinchClassifier()
        self._placement = placement or MidpointPlacement()
        self._orbit = orbit or GroupRotationOrbit()
        self._edit_cooldown = edit_cooldown
        self._sensitivity = orbit_sensitivity

    def dispatch(self, state: SessionState, hands: Sequence[Hand]) -> DispatchResult:
        hands = hands or ()
        mode = state.mode

        if mode is InteractionMode.READY:
            return DispatchResult(state)
        elif mode is InteractionMode.EDITING:
            return self._handle_editing(state, hands)
        elif mode is InteractionMode.ORBITING:
            return self._handle_orbiting(state, hands)
        raise ValueError("Unhandled interaction mode: %r" % (mode,))

    def _handle_editing(self, state: SessionState, hands: Sequence[Hand]) -> DispatchResult:
        # Cooldown only runs down on frames that actually show a hand
        if not hands:
            return DispatchResult(state)
        if state.edit_cooldown > 0:
            return DispatchResult(replace(state, edit_cooldown=state.edit_cooldown - 1))

        for hand in hands:
            if not self._classifier.is_pinching(hand):
                continue

            key = self._mapper.map_to_grid(*self._placement.point(hand))
            added = self._scene.add_voxel(key)
            if added:
                logger.info("Placed voxel at %s", tuple(key))
            new_state = replace(state, edit_cooldown=self._edit_cooldown)
            return DispatchResult(new_state, placed=key if added else None)

        return DispatchResult(state)

    def _handle_orbiting(self, state: SessionState, hands: Sequence[Hand]) -> DispatchResult:
        if len(hands) < 2:
            return DispatchResult(state)

        pinching = [hand for hand in hands if self._classifier.is_pinching(hand)]
        if len(pinching) < 2:
            return DispatchResult(state)

        first = pinching[0].get(LandmarkIndex.INDEX_TIP)
        second = pinching[1].get(LandmarkIndex.INDEX_TIP)
        avg = ((first.x + second.x) / 2, (first.y + second.y) / 2)

        delta = None
        if state.orbit_anchor is not None:
            dx = (avg[0] - state.orbit_anchor[0]) * self._sensitivity
            dy = (avg[1] - state.orbit_anchor[1]) * self._sensitivity
            delta = self._orbit.apply(self._scene, dx, dy)
            logger.debug("Orbit step %s: d_h=%.4f d_v=%.4f", self._orbit.name, delta.horizontal, delta.vertical)

        return DispatchResult(replace(state, orbit_anchor=avg), orbit=delta)

    @property
    def scene(self) -> VoxelScene:
        return self._scene

    @property
    def mapper(self) -> CoordinateMapper:
        return self._mapper


def build_dispatcher(config, scene: VoxelScene, mapper: CoordinateMapper,
                     classifier: Optional[PinchClassifier] = None) -> ModeActionDispatcher:
    """Create the dispatcher with the strategies selected by a SculptingConfig."""
    placement_cls = PLACEMENT_STRATEGIES.get(config.placement_profile)
    if placement_cls is None:
        raise ValueError("Unknown placement profile: %r" % config.placement_profile)

    if config.orbit_profile == "group":
        orbit = GroupRotationOrbit()
    elif config.orbit_profile == "camera":
        orbit = CameraOrbit(radius=config.orbit_radius, polar_margin=config.polar_margin)
    else:
        raise ValueError("Unknown orbit profile: %r" % config.orbit_profile)

    return ModeActionDispatcher(
        scene=scene,
        mapper=mapper,
        classifier=classifier,
        placement=placement_cls(),
        orbit=orbit,
        edit_cooldown=config.edit_cooldown_frames,
        orbit_sensitivity=config.orbit_sensitivity,
    )
