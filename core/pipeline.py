"""
Core pipeline orchestrator for the sculpting system.
Runs the classify -> detect mode -> stabilize -> act cycle for one frame.

Architecture:
    HandDetector -> PinchClassifier (per hand) -> ModeDetector
    -> ModeStabilizer -> ModeActionDispatcher (-> CoordinateMapper, VoxelScene)

Session state is not kept here: every tick takes a SessionState and returns
the next one, so frames can be replayed one at a time.
"""

import logging
from typing import Optional, Sequence

from core.types import Hand, InteractionMode, SessionState, VoxelKey
from core.events import EventBus, Events
from modules.control.mode_dispatcher import ModeActionDispatcher, OrbitDelta, build_dispatcher
from modules.mapping.coordinate_mapper import build_mapper
from modules.recognition.gesture_classifier import PinchClassifier
from modules.recognition.mode_detector import ModeDetector
from modules.recognition.mode_stabilizer import ModeStabilizer
from modules.scene.voxel_scene import VoxelScene

logger = logging.getLogger(__name__)


class TickResult:
    """Result of a single pipeline iteration."""

    __slots__ = (
        "state", "candidate", "hand_count", "pinch_count",
        "mode_changed", "previous_mode", "placed", "orbit",
    )

    def __init__(self, state: SessionState, candidate: InteractionMode):
        self.state = state
        self.candidate = candidate
        self.hand_count = 0
        self.pinch_count = 0
        self.mode_changed = False
        self.previous_mode: Optional[InteractionMode] = None
        self.placed: Optional[VoxelKey] = None
        self.orbit: Optional[OrbitDelta] = None

    @property
    def mode(self) -> InteractionMode:
        return self.state.mode

    def __repr__(self):
        return "TickResult(mode=%s, candidate=%s, placed=%s)" % (
            self.state.mode.value, self.candidate.value, self.placed)


class Pipeline:
    """Composable gesture interpretation pipeline.

    Example:
        >>> pipeline = Pipeline(detector, stabilizer, dispatcher)
        >>> state = pipeline.initial_state()
        >>> while running:
        ...     result = pipeline.tick(state, hands)
        ...     state = result.state
    """

    def __init__(self, mode_detector: ModeDetector, stabilizer: ModeStabilizer,
                 dispatcher: ModeActionDispatcher, event_bus: Optional[EventBus] = None):
        self._mode_detector = mode_detector
        self._stabilizer = stabilizer
        self._dispatcher = dispatcher
        self._bus = event_bus or EventBus()
        self._frame_count = 0

    @classmethod
    def from_config(cls, config, scene: Optional[VoxelScene] = None,
                    event_bus: Optional[EventBus] = None) -> "Pipeline":
        """Wire all stages from a validated SculptingConfig."""
        classifier = PinchClassifier(config.pinch_threshold)
        if scene is None:
            scene = VoxelScene(voxel_size=config.voxel_size)
        dispatcher = build_dispatcher(config, scene, build_mapper(config), classifier)
        logger.info(
            "Pipeline: mapping=%s placement=%s orbit=%s required_frames=%d",
            config.mapping_profile, config.placement_profile,
            config.orbit_profile, config.required_frames,
        )
        return cls(ModeDetector(classifier), ModeStabilizer(config.required_frames),
                   dispatcher, event_bus)

    def initial_state(self) -> SessionState:
        return self._stabilizer.initial_state()

    def tick(self, state: SessionState, hands: Sequence[Hand]) -> TickResult:
        """Execute one full pipeline iteration."""
        hands = list(hands or ())
        self._frame_count += 1

        # --- 1. Candidate mode ---
        candidate = self._mode_detector.detect_candidate_mode(hands)

        # --- 2. Stabilize ---
        stabilized = self._stabilizer.update(state, candidate)

        # --- 3. Mode action ---
        dispatched = self._dispatcher.dispatch(stabilized.state, hands)

        result = TickResult(dispatched.state, candidate)
        result.hand_count = len(hands)
        result.pinch_count = self._mode_detector.count_pinching(hands)
        result.mode_changed = stabilized.changed
        result.previous_mode = stabilized.previous
        result.placed = dispatched.placed
        result.orbit = dispatched.orbit

        # --- 4. Notify ---
        if stabilized.changed:
            self._bus.emit(Events.MODE_CHANGED, mode=result.mode,
                           previous=stabilized.previous, label=result.mode.label)
        if dispatched.placed is not None:
            self._bus.emit(Events.VOXEL_PLACED, key=dispatched.placed,
                           position=self._dispatcher.mapper.key_to_world(dispatched.placed))
        if dispatched.orbit is not None:
            self._bus.emit(Events.VIEW_ORBITED, delta=dispatched.orbit)

        return result

    @property
    def frame_count(self) -> int:
        return self._frame_count

    @property
    def dispatcher(self) -> ModeActionDispatcher:
        return self._dispatcher
