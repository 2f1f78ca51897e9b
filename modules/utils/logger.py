"""
Structured logging with sculpting session event logging.
"""

import os
import logging
import logging.handlers
import time
from functools import wraps


def setup_logging(level="INFO", log_file=None, max_size_mb=10, backup_count=3):
    """Configure structured logging for the application."""
    # Compact console format
    console_format = "%(asctime)s  %(levelname)-5s  %(message)s"
    # Verbose format for log file
    file_format = "%(asctime)s [%(levelname)-7s] %(name)-25s | %(message)s"
    date_format = "%H:%M:%S"

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))

    root_logger.handlers.clear()

    console = logging.StreamHandler()
    console.setLevel(logging.INFO)
    console.setFormatter(logging.Formatter(console_format, datefmt=date_format))
    root_logger.addHandler(console)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_size_mb * 1024 * 1024,
            backupCount=backup_count,
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(file_format, datefmt=date_format))
        root_logger.addHandler(file_handler)

    return root_logger


class SculptLogger:
    """Records mode transitions and voxel placements of a session.

    Subscribed to the event bus by the application; the history is what
    the exit summary is built from.
    """

    def __init__(self):
        self.logger = logging.getLogger("sculpt_events")
        self._mode_history = []
        self._placements = []
        self._session_start = None

    def log_mode_change(self, mode=None, previous=None, label=None, **_):
        """Log a committed mode transition."""
        self._mode_history.append({
            "timestamp": time.time(),
            "mode": mode,
            "previous": previous,
        })
        self.logger.info(
            "Mode: %-9s <- %-9s",
            label or "?",
            previous.label if previous is not None else "none",
        )

    def log_placement(self, key=None, position=None, **_):
        """Log a voxel that was actually added to the scene."""
        self._placements.append({"timestamp": time.time(), "key": key})
        self.logger.info(
            "Voxel: %-14s | World: (%.2f, %.2f, %.2f)",
            tuple(key) if key is not None else "?",
            *(position or (0.0, 0.0, 0.0)),
        )

    def log_session_started(self, **_):
        self._session_start = time.time()
        self.logger.info("Session started")

    def log_session_ended(self, voxel_count=None, **_):
        """Log the closing summary of a session."""
        duration = time.time() - self._session_start if self._session_start else 0.0
        self.logger.info(
            "Session ended after %.1fs: %d voxels in scene, %d placed, %d mode changes",
            duration, voxel_count or 0, self.total_placements, self.total_transitions,
        )

    def get_history(self, last_n=None):
        """Get recent mode transitions."""
        if last_n:
            return self._mode_history[-last_n:]
        return self._mode_history.copy()

    @property
    def total_placements(self):
        return len(self._placements)

    @property
    def total_transitions(self):
        return len(self._mode_history)


def log_timing(func):
    """Decorator to log function execution time."""
    logger = logging.getLogger(func.__module__)

    @wraps(func)
    def wrapper(*args, **kwargs):
        start = time.perf_counter()
        result = func(*args, **kwargs)
        elapsed = (time.perf_counter() - start) * 1000
        logger.debug("%s took %.2fms", func.__name__, elapsed)
        return result

    return wrapper
