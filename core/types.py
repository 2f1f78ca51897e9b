"""
Shared domain types for the hand-gesture voxel sculpting system.

Centralizes enums, data classes, and type definitions used across modules
to eliminate circular imports and ensure type consistency.
"""

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import List, NamedTuple, Optional, Sequence, Tuple

import numpy as np


HAND_LANDMARK_COUNT = 21


# =============================================================================
# Landmarks & Hands
# =============================================================================

class LandmarkIndex(IntEnum):
    """Hand landmark indices following MediaPipe convention."""
    WRIST = 0
    THUMB_CMC = 1
    THUMB_MCP = 2
    THUMB_IP = 3
    THUMB_TIP = 4
    INDEX_MCP = 5
    INDEX_PIP = 6
    INDEX_DIP = 7
    INDEX_TIP = 8
    MIDDLE_MCP = 9
    MIDDLE_PIP = 10
    MIDDLE_DIP = 11
    MIDDLE_TIP = 12
    RING_MCP = 13
    RING_PIP = 14
    RING_DIP = 15
    RING_TIP = 16
    PINKY_MCP = 17
    PINKY_PIP = 18
    PINKY_DIP = 19
    PINKY_TIP = 20


class Landmark(NamedTuple):
    """A single landmark point in normalized camera space."""
    x: float  # 0.0 to 1.0, normalized by image width
    y: float  # 0.0 to 1.0, normalized by image height
    z: float  # Depth relative to the detector, smaller = closer

    def to_pixel(self, width: int, height: int) -> Tuple[int, int]:
        """Convert normalized coordinates to pixel coordinates."""
        return (int(self.x * width), int(self.y * height))


class Hand:
    """One detected hand: 21 ordered landmarks plus optional handedness.

    Built fresh every frame and never retained. A landmark list of the wrong
    length is a caller error and is rejected immediately instead of being
    mis-indexed later.
    """

    __slots__ = ("landmarks", "handedness")

    def __init__(self, landmarks: Sequence[Landmark], handedness: Optional[str] = None):
        if len(landmarks) != HAND_LANDMARK_COUNT:
            raise ValueError(
                "Expected %d landmarks, got %d" % (HAND_LANDMARK_COUNT, len(landmarks))
            )
        self.landmarks: List[Landmark] = [Landmark(*lm) for lm in landmarks]
        self.handedness = handedness

    def get(self, index: LandmarkIndex) -> Landmark:
        """Get landmark by index."""
        return self.landmarks[index]

    @property
    def thumb_tip(self) -> Landmark:
        return self.landmarks[LandmarkIndex.THUMB_TIP]

    @property
    def index_tip(self) -> Landmark:
        return self.landmarks[LandmarkIndex.INDEX_TIP]

    def to_numpy(self) -> np.ndarray:
        """Convert landmarks to numpy array of shape (21, 3)."""
        return np.array(self.landmarks, dtype=float)

    def __repr__(self):
        return "Hand(handedness=%r, index_tip=%r)" % (self.handedness, tuple(self.index_tip))


# =============================================================================
# Interaction Modes
# =============================================================================

class InteractionMode(Enum):
    """Committed interaction modes of a sculpting session."""
    READY = "ready"
    EDITING = "editing"
    ORBITING = "orbiting"

    @property
    def label(self) -> str:
        """Display name shown in the HUD."""
        return self.value.upper()


# =============================================================================
# Voxel Grid
# =============================================================================

class VoxelKey(NamedTuple):
    """Integer lattice indices of one voxel cell.

    The world position of a key is ``index * voxel_size`` on each axis.
    """
    ix: int
    iy: int
    iz: int


OrbitAnchor = Optional[Tuple[float, float]]


# =============================================================================
# Session State
# =============================================================================

@dataclass(frozen=True)
class ModeStabilityState:
    """Streak tracking for the mode stabilizer."""
    last_candidate: InteractionMode = InteractionMode.READY
    consecutive_count: int = 0
    required_frames: int = 8

    def __post_init__(self):
        if self.required_frames <= 0:
            raise ValueError("required_frames must be >= 1, got %r" % self.required_frames)


@dataclass(frozen=True)
class SessionState:
    """Everything that survives from one tick to the next.

    Passed into and returned from ``Pipeline.tick`` so a single frame can be
    replayed deterministically in tests.
    """
    mode: InteractionMode = InteractionMode.READY
    stability: ModeStabilityState = field(default_factory=ModeStabilityState)
    orbit_anchor: OrbitAnchor = None
    edit_cooldown: int = 0

    @classmethod
    def initial(cls, required_frames: int = 8) -> "SessionState":
        return cls(stability=ModeStabilityState(required_frames=required_frames))
