"""
Event bus between the sculpting pipeline and its observers.

``Pipeline.tick`` publishes mode commits, voxel placements and view orbits.
The HUD label and the session logger subscribe. Nothing published here
feeds back into the mode state machine.

Usage:
    bus = EventBus()
    bus.subscribe(Events.MODE_CHANGED, overlay.on_mode_changed, priority=10)
    bus.emit(Events.MODE_CHANGED, mode=InteractionMode.EDITING, label="EDITING")
"""

import time
import logging
import threading
from collections import Counter, deque
from typing import Callable, List, NamedTuple

logger = logging.getLogger(__name__)


class Subscription(NamedTuple):
    priority: int
    callback: Callable


class EventRecord(NamedTuple):
    event: str
    timestamp: float
    payload: dict


class EventBus:
    """Process-wide synchronous publish/subscribe bus.

    Listeners run on the emitting thread in descending priority order.
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self, history_size: int = 200):
        if self._initialized:
            return
        self._subscriptions = {}  # event -> [Subscription], highest priority first
        self._lock = threading.Lock()
        self._history = deque(maxlen=history_size)
        self._counts = Counter()
        self._initialized = True

    def subscribe(self, event_name: str, callback: Callable, priority: int = 0):
        """Register ``callback(**payload)`` for an event.

        Args:
            event_name: One of the ``Events`` constants
            callback: Receives the keyword payload passed to emit()
            priority: Higher runs first; ties keep subscription order
        """
        with self._lock:
            subs = self._subscriptions.setdefault(event_name, [])
            subs.append(Subscription(priority, callback))
            subs.sort(key=lambda s: -s.priority)
        logger.debug("Listener %s on '%s' (priority=%d)",
                     getattr(callback, "__name__", repr(callback)), event_name, priority)

    def unsubscribe(self, event_name: str, callback: Callable):
        with self._lock:
            subs = self._subscriptions.get(event_name, [])
            self._subscriptions[event_name] = [s for s in subs if s.callback != callback]

    def emit(self, event_name: str, **payload):
        """Deliver an event to every listener.

        Listener exceptions are logged and swallowed; the frame that emitted
        the event carries on with the next listener.
        """
        with self._lock:
            subs = list(self._subscriptions.get(event_name, ()))
            self._history.append(EventRecord(event_name, time.time(), dict(payload)))
            self._counts[event_name] += 1

        for sub in subs:
            try:
                sub.callback(**payload)
            except Exception:
                logger.exception("Listener %s failed on '%s'",
                                 getattr(sub.callback, "__name__", repr(sub.callback)), event_name)

    def count(self, event_name: str) -> int:
        """How many times an event has been emitted since the last reset."""
        return self._counts[event_name]

    def recent(self, last_n: int = 10, event_name: str = None) -> List[EventRecord]:
        """Most recent emitted events, oldest first."""
        with self._lock:
            records = [r for r in self._history if event_name is None or r.event == event_name]
        return records[-last_n:]

    def reset(self):
        """Drop all listeners, history and counts (tests, app restart)."""
        with self._lock:
            self._subscriptions.clear()
            self._history.clear()
            self._counts.clear()


class Events:
    """Event names published on the bus."""

    # Emitted by Pipeline.tick
    MODE_CHANGED = "mode_changed"      # mode, previous, label
    VOXEL_PLACED = "voxel_placed"      # key, position
    VIEW_ORBITED = "view_orbited"      # delta

    # Emitted by SculptApp
    SESSION_STARTED = "session_started"
    SESSION_ENDED = "session_ended"    # voxel_count
