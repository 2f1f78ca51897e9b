"""
MediaPipe hand detection wrapper producing Hand objects.
"""

import logging
from dataclasses import dataclass
from typing import List

import numpy as np
import mediapipe as mp

from core.types import Hand, Landmark
from modules.utils.logger import log_timing

logger = logging.getLogger(__name__)


@dataclass
class HandDetectorConfig:
    """Configuration for hand detector."""
    max_num_hands: int = 2
    model_complexity: int = 0
    min_detection_confidence: float = 0.5
    min_tracking_confidence: float = 0.5

    @classmethod
    def from_dict(cls, d: dict) -> "HandDetectorConfig":
        """Create config from dictionary."""
        return cls(
            max_num_hands=d.get("max_num_hands", 2),
            model_complexity=d.get("model_complexity", 0),
            min_detection_confidence=d.get("min_detection_confidence", 0.5),
            min_tracking_confidence=d.get("min_tracking_confidence", 0.5),
        )


def hands_from_results(results) -> List[Hand]:
    """Convert a MediaPipe Hands result into Hand objects, in detector order."""
    if not results or not results.multi_hand_landmarks:
        return []

    handedness = results.multi_handedness or []
    hands = []
    for idx, hand_landmarks in enumerate(results.multi_hand_landmarks):
        label = None
        if idx < len(handedness) and handedness[idx].classification:
            label = handedness[idx].classification[0].label
        hands.append(Hand(
            [Landmark(lm.x, lm.y, lm.z) for lm in hand_landmarks.landmark],
            handedness=label,
        ))
    return hands


class HandDetector:
    """MediaPipe Hands wrapper tuned for two-hand sculpting."""

    def __init__(self, config: HandDetectorConfig):
        self._config = config
        self._mp_hands = mp.solutions.hands
        self._hands = None
        self._initialized = False

    def initialize(self):
        """Initialize MediaPipe Hands solution."""
        self._hands = self._mp_hands.Hands(
            static_image_mode=False,
            model_complexity=self._config.model_complexity,
            max_num_hands=self._config.max_num_hands,
            min_detection_confidence=self._config.min_detection_confidence,
            min_tracking_confidence=self._config.min_tracking_confidence,
        )
        self._initialized = True
        logger.info(
            "MediaPipe Hands initialized (complexity=%d, max_hands=%d, "
            "detect_conf=%.2f, track_conf=%.2f)",
            self._config.model_complexity, self._config.max_num_hands,
            self._config.min_detection_confidence, self._config.min_tracking_confidence,
        )

    @log_timing
    def detect_hands(self, rgb_frame: np.ndarray) -> List[Hand]:
        """Run hand detection on an RGB frame.

        Returns:
            Detected hands (possibly empty), in detector order
        """
        if not self._initialized:
            self.initialize()

        # Set frame as non-writable for performance
        rgb_frame.flags.writeable = False
        results = self._hands.process(rgb_frame)
        rgb_frame.flags.writeable = True

        return hands_from_results(results)

    def close(self):
        """Release MediaPipe resources."""
        if self._hands:
            self._hands.close()
            self._hands = None
            self._initialized = False
            logger.info("MediaPipe Hands closed")

    def __enter__(self):
        self.initialize()
        return self

    def __exit__(self, *args):
        self.close()
