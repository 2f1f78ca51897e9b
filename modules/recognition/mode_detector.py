"""
Per-frame candidate mode detection.

Counts pinching hands and maps the count to an interaction mode. Keeps no
memory between frames; smoothing is the stabilizer's job.
"""

from typing import Optional, Sequence

from core.types import Hand, InteractionMode
from modules.recognition.gesture_classifier import PinchClassifier


class ModeDetector:
    """Maps the number of pinching hands to a candidate mode.

    0 pinching -> READY, 1 -> EDITING, 2 or more -> ORBITING.
    """

    def __init__(self, classifier: Optional[PinchClassifier] = None):
        self._classifier = classifier or PinchClassifier()

    def count_pinching(self, hands: Sequence[Hand]) -> int:
        return sum(1 for hand in hands or () if self._classifier.is_pinching(hand))

    def detect_candidate_mode(self, hands: Sequence[Hand]) -> InteractionMode:
        pinch_count = self.count_pinching(hands)

        if pinch_count == 0:
            return InteractionMode.READY
        if pinch_count == 1:
            return InteractionMode.EDITING
        return InteractionMode.ORBITING

    @property
    def classifier(self) -> PinchClassifier:
        return self._classifier
