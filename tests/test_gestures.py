"""
Tests for Pinch Classification and Mode Detection
==================================================
"""

import pytest
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.types import Hand, InteractionMode, Landmark, LandmarkIndex
from modules.recognition.gesture_classifier import PinchClassifier, pinch_distance
from modules.recognition.mode_detector import ModeDetector
from mock_hands import create_mock_hand, open_hand, pinching


class TestHand:
    """Test suite for the Hand container."""

    def test_rejects_short_landmark_list(self):
        with pytest.raises(ValueError):
            Hand([Landmark(0.5, 0.5, 0.0)] * 20)

    def test_rejects_long_landmark_list(self):
        with pytest.raises(ValueError):
            Hand([Landmark(0.5, 0.5, 0.0)] * 22)

    def test_accepts_plain_tuples(self):
        hand = Hand([(0.1, 0.2, 0.3)] * 21)
        assert isinstance(hand.get(LandmarkIndex.WRIST), Landmark)
        assert hand.handedness is None

    def test_tips(self):
        hand = create_mock_hand((0.3, 0.4, 0.1), pinch_gap=0.02)
        assert hand.index_tip == Landmark(0.3, 0.4, 0.1)
        assert hand.thumb_tip.x == pytest.approx(0.32)

    def test_to_numpy(self):
        arr = pinching().to_numpy()
        assert arr.shape == (21, 3)


class TestPinchClassifier:
    """Test suite for the pinch predicate."""

    @pytest.fixture
    def classifier(self):
        return PinchClassifier(threshold=0.05)

    def test_close_tips_pinch(self, classifier):
        assert classifier.is_pinching(create_mock_hand(pinch_gap=0.02))

    def test_far_tips_do_not_pinch(self, classifier):
        assert not classifier.is_pinching(create_mock_hand(pinch_gap=0.2))

    def test_threshold_is_strict(self, classifier):
        # Binary-exact coordinates: the gap is exactly 0.0625
        hand = Hand([(0.0, 0.0, 0.0)] * 4 + [(0.125, 0.0, 0.0)]
                    + [(0.0, 0.0, 0.0)] * 3 + [(0.0625, 0.0, 0.0)]
                    + [(0.0, 0.0, 0.0)] * 12)
        assert pinch_distance(hand) == 0.0625
        assert not PinchClassifier(threshold=0.0625).is_pinching(hand)
        assert PinchClassifier(threshold=0.0626).is_pinching(hand)

    def test_uses_depth(self, classifier):
        hand = create_mock_hand(pinch_gap=0.0)
        landmarks = list(hand.landmarks)
        tip = landmarks[LandmarkIndex.THUMB_TIP]
        landmarks[LandmarkIndex.THUMB_TIP] = Landmark(tip.x, tip.y, tip.z + 0.1)
        assert not classifier.is_pinching(Hand(landmarks))

    def test_ignores_other_landmarks(self, classifier):
        hand = create_mock_hand(pinch_gap=0.02)
        landmarks = list(hand.landmarks)
        for idx in range(21):
            if idx not in (LandmarkIndex.THUMB_TIP, LandmarkIndex.INDEX_TIP):
                landmarks[idx] = Landmark(0.9, 0.1, -0.3)
        assert classifier.is_pinching(Hand(landmarks))

    def test_invalid_threshold(self):
        with pytest.raises(ValueError):
            PinchClassifier(threshold=0)


class TestModeDetector:
    """Test suite for per-frame candidate mode detection."""

    @pytest.fixture
    def detector(self):
        return ModeDetector(PinchClassifier(0.05))

    def test_no_hands_is_ready(self, detector):
        assert detector.detect_candidate_mode([]) == InteractionMode.READY
        assert detector.detect_candidate_mode(None) == InteractionMode.READY

    def test_open_hands_are_ready(self, detector):
        assert detector.detect_candidate_mode([open_hand(), open_hand()]) == InteractionMode.READY

    def test_one_pinch_is_editing(self, detector):
        hands = [open_hand(0.2), pinching(0.7)]
        assert detector.detect_candidate_mode(hands) == InteractionMode.EDITING

    def test_two_pinches_are_orbiting(self, detector):
        hands = [pinching(0.3), pinching(0.7)]
        assert detector.detect_candidate_mode(hands) == InteractionMode.ORBITING

    def test_three_pinches_are_orbiting(self, detector):
        hands = [pinching(0.2), pinching(0.5), pinching(0.8)]
        assert detector.detect_candidate_mode(hands) == InteractionMode.ORBITING

    def test_no_history(self, detector):
        detector.detect_candidate_mode([pinching(0.3), pinching(0.7)])
        assert detector.detect_candidate_mode([pinching()]) == InteractionMode.EDITING
        assert detector.detect_candidate_mode([]) == InteractionMode.READY

    def test_count_pinching(self, detector):
        assert detector.count_pinching([pinching(), open_hand(), pinching()]) == 2


class TestInteractionMode:

    def test_labels(self):
        assert InteractionMode.READY.label == "READY"
        assert InteractionMode.EDITING.label == "EDITING"
        assert InteractionMode.ORBITING.label == "ORBITING"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
