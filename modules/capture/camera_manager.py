"""
Webcam capture for the sculpting loop.

Frames are delivered unmirrored: MediaPipe landmarks stay in raw image space,
the coordinate mapper flips X into world space and the overlay mirrors only
the preview. A background reader can keep the newest frame ready so a slow
detection step never drains a stale capture queue.
"""

import time
import threading
import logging
from typing import Optional, Tuple

import cv2
import numpy as np

logger = logging.getLogger(__name__)

_BACKENDS = {
    "auto": cv2.CAP_ANY,
    "v4l2": cv2.CAP_V4L2,
    "dshow": cv2.CAP_DSHOW,
    "msmf": cv2.CAP_MSMF,
    "avfoundation": cv2.CAP_AVFOUNDATION,
}

Frame = Tuple[Optional[int], Optional[np.ndarray]]


class CameraManager:
    """Opens a webcam and serves the latest BGR frame as ``(frame_id, image)``."""

    def __init__(self, config: dict):
        self._device_id = config.get("device_id", 0)
        self._size = (config.get("width", 640), config.get("height", 480))
        self._fps = config.get("fps", 30)
        self._backend_name = config.get("backend", "auto")
        self._flip = config.get("flip_horizontal", False)
        self._warmup = config.get("warmup_frames", 5)

        self._cap = None
        self._latest: Frame = (None, None)
        self._next_id = 0
        self._lock = threading.Lock()
        self._reader = None
        self._reading = False

    def open(self) -> bool:
        """Open the device; returns False when it cannot be opened."""
        backend = _BACKENDS.get(self._backend_name)
        if backend is None:
            logger.warning("Unknown camera backend '%s', using auto", self._backend_name)
            backend = cv2.CAP_ANY

        cap = cv2.VideoCapture(self._device_id, backend)
        if not cap.isOpened():
            logger.error("Cannot open camera %s (backend=%s)", self._device_id, self._backend_name)
            return False

        width, height = self._size
        cap.set(cv2.CAP_PROP_FRAME_WIDTH, width)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, height)
        cap.set(cv2.CAP_PROP_FPS, self._fps)
        cap.set(cv2.CAP_PROP_BUFFERSIZE, 1)

        # The driver may pick another resolution; the mapper aspect follows it
        self._size = (int(cap.get(cv2.CAP_PROP_FRAME_WIDTH)) or width,
                      int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT)) or height)
        logger.info("Camera %s opened at %dx%d", self._device_id, *self._size)

        for _ in range(self._warmup):
            cap.read()

        self._cap = cap
        return True

    def start_async(self):
        """Read frames on a daemon thread from now on."""
        if self._cap is None or self._reading:
            return
        self._reading = True
        self._reader = threading.Thread(target=self._reader_loop, name="camera-reader", daemon=True)
        self._reader.start()
        logger.debug("Background camera reader started")

    def _reader_loop(self):
        while self._reading:
            frame = self._grab()
            if frame is None:
                time.sleep(0.005)
                continue
            with self._lock:
                self._latest = (self._next_id, frame)

    def _grab(self) -> Optional[np.ndarray]:
        ok, frame = self._cap.read()
        if not ok or frame is None:
            return None
        if self._flip:
            frame = cv2.flip(frame, 1)
        self._next_id += 1
        return frame

    def read(self) -> Frame:
        """Latest frame, or ``(None, None)`` when nothing is available yet."""
        if self._reading:
            with self._lock:
                frame_id, frame = self._latest
            return (frame_id, frame.copy()) if frame is not None else (None, None)

        if self._cap is None:
            return None, None
        frame = self._grab()
        return (self._next_id, frame) if frame is not None else (None, None)

    @property
    def resolution(self) -> Tuple[int, int]:
        return self._size

    @property
    def is_open(self) -> bool:
        return self._cap is not None

    def stop(self):
        self._reading = False
        if self._reader is not None:
            self._reader.join(timeout=2.0)
            self._reader = None
        if self._cap is not None:
            self._cap.release()
            self._cap = None
            logger.info("Camera %s released", self._device_id)

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, *args):
        self.stop()
