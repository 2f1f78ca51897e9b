"""
Pinch classification from hand landmarks.

A hand is pinching when its thumb tip and index tip are closer than a fixed
threshold in normalized 3-D landmark space. No other landmark is consulted.
"""

import logging

import numpy as np

from core.types import Hand, LandmarkIndex

logger = logging.getLogger(__name__)

DEFAULT_PINCH_THRESHOLD = 0.05


def pinch_distance(hand: Hand) -> float:
    """Euclidean distance between thumb tip and index tip."""
    thumb = np.asarray(hand.get(LandmarkIndex.THUMB_TIP), dtype=float)
    index = np.asarray(hand.get(LandmarkIndex.INDEX_TIP), dtype=float)
    return float(np.linalg.norm(thumb - index))


class PinchClassifier:
    """Decides whether a single hand is pinching."""

    def __init__(self, threshold: float = DEFAULT_PINCH_THRESHOLD):
        if threshold <= 0:
            raise ValueError("Pinch threshold must be positive, got %r" % threshold)
        self._threshold = threshold

    def is_pinching(self, hand: Hand) -> bool:
        return pinch_distance(hand) < self._threshold

    @property
    def threshold(self) -> float:
        return self._threshold
