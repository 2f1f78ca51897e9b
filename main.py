#!/usr/bin/env python3
"""
Voxel Sculpt - build voxel structures with bare-hand gestures.
Main application entry point.

    One hand pinching   -> EDITING: place a block at the pinch
    Two hands pinching  -> ORBITING: drag both pinches to rotate the view
    No pinch            -> READY

Usage:
    python main.py                          # Defaults from config/config.yaml
    python main.py --placement index_tip    # Place at the index fingertip
    python main.py --orbit camera           # Orbit the camera instead of the blocks
    python main.py --required-frames 1      # Switch modes without debouncing
"""

import sys
import os
import signal
import argparse
import logging

import cv2

# Add project root to path
PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, PROJECT_ROOT)

from core.events import EventBus, Events
from core.pipeline import Pipeline
from modules.capture.camera_manager import CameraManager
from modules.detection.hand_detector import HandDetector, HandDetectorConfig
from modules.scene.voxel_scene import VoxelScene
from modules.utils.config import Config, ConfigError, MAPPING_PROFILES, ORBIT_PROFILES, PLACEMENT_PROFILES
from modules.utils.logger import setup_logging, SculptLogger
from modules.utils.performance_monitor import PerformanceMonitor
from modules.visualization.overlay import Overlay

logger = logging.getLogger(__name__)


class SculptApp:
    """Wires capture, detection, the sculpting pipeline and the overlay."""

    def __init__(self, config: Config):
        self._config = config
        self._running = False

        sculpting = config.sculpting
        self._sculpting = sculpting

        self._bus = EventBus()
        self._camera = CameraManager(config.camera)
        self._detector = HandDetector(HandDetectorConfig.from_dict(config.mediapipe))
        self._scene = VoxelScene(voxel_size=sculpting.voxel_size)
        self._pipeline = Pipeline.from_config(sculpting, scene=self._scene, event_bus=self._bus)
        self._state = self._pipeline.initial_state()
        self._last_frame_id = None

        self._overlay = Overlay(config.visualization, fov_deg=sculpting.camera_fov_deg)
        self._perf = PerformanceMonitor(target_fps=config.get("camera.fps", 30))
        self._sculpt_logger = SculptLogger()

        self._bus.subscribe(Events.MODE_CHANGED, self._overlay.on_mode_changed, priority=10)
        self._bus.subscribe(Events.MODE_CHANGED, self._sculpt_logger.log_mode_change)
        self._bus.subscribe(Events.VOXEL_PLACED, self._sculpt_logger.log_placement)
        self._bus.subscribe(Events.SESSION_STARTED, self._sculpt_logger.log_session_started)
        self._bus.subscribe(Events.SESSION_ENDED, self._sculpt_logger.log_session_ended)

        logger.info("SculptApp initialized")

    def start(self) -> bool:
        """Open the camera and run the main loop until quit."""
        if not self._camera.open():
            logger.error("Failed to open camera. Check connection and permissions.")
            return False

        if self._config.get("camera.threaded", True):
            self._camera.start_async()

        self._detector.initialize()

        w, h = self._camera.resolution
        self._pipeline.dispatcher.mapper.set_aspect(w / h)

        self._running = True
        self._bus.emit(Events.SESSION_STARTED)
        logger.info("Starting main loop (mode=%s)", self._state.mode.label)
        try:
            self._run_main_loop()
        finally:
            self._shutdown()
        return True

    def _run_main_loop(self):
        window_name = self._config.get("visualization.window_name", "Voxel Sculpt")
        show = self._config.get("visualization.enabled", True)
        mapper = self._pipeline.dispatcher.mapper

        while self._running:
            with self._perf.measure("capture"):
                frame_id, frame = self._camera.read()
            # The threaded reader keeps serving its latest frame; each
            # captured frame is detected and ticked exactly once
            if frame is None or frame_id == self._last_frame_id:
                if cv2.waitKey(1) & 0xFF == ord("q"):
                    break
                continue
            self._last_frame_id = frame_id

            h, w = frame.shape[:2]
            mapper.set_aspect(w / h)

            with self._perf.measure("detection"):
                rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
                hands = self._detector.detect_hands(rgb)

            with self._perf.measure("pipeline"):
                result = self._pipeline.tick(self._state, hands)
                self._state = result.state

            if show:
                with self._perf.measure("render"):
                    frame = self._overlay.render(frame, hands, self._scene, self._perf.fps)
                cv2.imshow(window_name, frame)

            self._perf.tick()

            key = cv2.waitKey(1) & 0xFF
            if key == ord("q"):
                self._running = False
            elif key == ord("p"):
                self._perf.print_report()

    def _shutdown(self):
        """Clean shutdown of all modules."""
        logger.info("Shutting down...")
        self._running = False
        self._bus.emit(Events.SESSION_ENDED, voxel_count=self._scene.voxel_count)
        self._bus.unsubscribe(Events.MODE_CHANGED, self._overlay.on_mode_changed)
        self._camera.stop()
        self._detector.close()
        cv2.destroyAllWindows()

        self._perf.print_report()
        logger.info("Orbit updates this session: %d", self._bus.count(Events.VIEW_ORBITED))

    def handle_signal(self, signum, frame):
        """Handle SIGINT/SIGTERM for graceful shutdown."""
        logger.info("Signal %d received, shutting down...", signum)
        self._running = False


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Voxel Sculpt - hand-gesture voxel building"
    )
    parser.add_argument("--config", type=str, default=None, help="Path to config.yaml")
    parser.add_argument("--camera", type=int, default=None, help="Camera device ID")
    parser.add_argument("--mapping", choices=MAPPING_PROFILES, default=None,
                        help="Hand-to-grid mapping profile")
    parser.add_argument("--placement", choices=PLACEMENT_PROFILES, default=None,
                        help="Point of the pinching hand where blocks are placed")
    parser.add_argument("--orbit", choices=ORBIT_PROFILES, default=None,
                        help="Rotate the block group or orbit the camera")
    parser.add_argument("--required-frames", type=int, default=None,
                        help="Stable frames before a mode switch commits")
    parser.add_argument("--log-level", type=str, default=None, help="Logging level")
    parser.add_argument("--log-file", type=str, default=None, help="Rotating log file path")
    return parser.parse_args(argv)


def build_overrides(args) -> dict:
    """Translate CLI flags into a config override dict."""
    overrides = {}
    if args.camera is not None:
        overrides.setdefault("camera", {})["device_id"] = args.camera
    sculpting = {}
    if args.mapping:
        sculpting["mapping_profile"] = args.mapping
    if args.placement:
        sculpting["placement_profile"] = args.placement
    if args.orbit:
        sculpting["orbit_profile"] = args.orbit
    if args.required_frames is not None:
        sculpting["required_frames"] = args.required_frames
    if sculpting:
        overrides["sculpting"] = sculpting
    return overrides


def main(argv=None):
    args = parse_args(argv)

    config = Config()
    config.load(config_path=args.config)
    config.override(build_overrides(args))

    setup_logging(
        level=args.log_level or config.get("logging.level", "INFO"),
        log_file=args.log_file or config.get("logging.file"),
    )

    try:
        app = SculptApp(config)
    except ConfigError as e:
        logger.error("Invalid configuration: %s", e)
        return 2

    signal.signal(signal.SIGINT, app.handle_signal)
    signal.signal(signal.SIGTERM, app.handle_signal)

    return 0 if app.start() else 1


if __name__ == "__main__":
    sys.exit(main())
