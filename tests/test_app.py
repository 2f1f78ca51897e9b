"""
Tests for the Application Loop
==============================
"""

import pytest
import numpy as np
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import main
from core.events import EventBus
from core.types import InteractionMode
from modules.utils.config import Config
from mock_hands import pinching


class ScriptedCamera:
    """Serves a fixed list of frame ids the way the threaded reader does."""

    def __init__(self, config):
        self.frame_ids = []
        self.exhausted = False

    def read(self):
        if not self.frame_ids:
            self.exhausted = True
            return None, None
        return self.frame_ids.pop(0), np.zeros((480, 640, 3), dtype=np.uint8)


class CountingDetector:

    def __init__(self, config):
        self.calls = 0
        self.hands = []

    def detect_hands(self, rgb):
        self.calls += 1
        return list(self.hands)


@pytest.fixture
def app(monkeypatch, tmp_path):
    bus = EventBus()
    bus.reset()
    config = Config()
    config.reset()
    path = tmp_path / "config.yaml"
    path.write_text("visualization:\n  enabled: false\n")
    config.load(config_path=str(path))

    monkeypatch.setattr(main, "CameraManager", ScriptedCamera)
    monkeypatch.setattr(main, "HandDetector", CountingDetector)
    app = main.SculptApp(config)
    monkeypatch.setattr(main.cv2, "waitKey",
                        lambda delay: ord("q") if app._camera.exhausted else -1)
    app._running = True
    yield app
    bus.reset()
    config.reset()


class TestMainLoop:
    """Test suite for per-frame processing in SculptApp."""

    def test_ticks_once_per_captured_frame(self, app):
        app._camera.frame_ids = [1, 1, 1, 2, 2, 3, 3, 3, 3]
        app._run_main_loop()
        assert app._pipeline.frame_count == 3
        assert app._detector.calls == 3

    def test_repeated_frame_cannot_commit_a_mode(self, app):
        app._detector.hands = [pinching()]
        app._camera.frame_ids = [1] * 8
        app._run_main_loop()
        assert app._pipeline.frame_count == 1
        assert app._state.mode == InteractionMode.READY

    def test_distinct_frames_commit_a_mode(self, app):
        app._detector.hands = [pinching()]
        app._camera.frame_ids = list(range(1, 9))
        app._run_main_loop()
        assert app._state.mode == InteractionMode.EDITING


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
