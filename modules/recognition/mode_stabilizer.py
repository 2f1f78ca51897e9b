"""
Consecutive-frame debouncing of the interaction mode.

A candidate mode is committed only after it has been the raw per-frame
candidate for ``required_frames`` frames in a row. Any differing frame
restarts the streak at 1 for the new candidate; no partial credit carries
over. With ``required_frames=1`` the mode follows the detector immediately.
"""

import logging
from dataclasses import replace
from typing import NamedTuple, Optional

from core.types import InteractionMode, ModeStabilityState, SessionState

logger = logging.getLogger(__name__)

DEFAULT_REQUIRED_FRAMES = 8


class StabilizerResult(NamedTuple):
    """Outcome of one stabilizer step."""
    state: SessionState
    changed: bool
    previous: Optional[InteractionMode]


class ModeStabilizer:
    """Mealy-style machine over (ModeStabilityState, committed mode).

    Example:
        >>> stabilizer = ModeStabilizer(required_frames=8)
        >>> state = SessionState.initial(8)
        >>> for candidate in candidates:
        ...     result = stabilizer.update(state, candidate)
        ...     state = result.state
        ...     if result.changed:
        ...         show_label(state.mode.label)
    """

    def __init__(self, required_frames: int = DEFAULT_REQUIRED_FRAMES):
        """
        Args:
            required_frames: Streak length written into ``initial_state()``.
                ``update`` always reads the threshold carried by the state.
        """
        if required_frames <= 0:
            raise ValueError("required_frames must be >= 1, got %r" % required_frames)
        self._required_frames = required_frames

    def initial_state(self) -> SessionState:
        return SessionState.initial(self._required_frames)

    def update(self, state: SessionState, candidate: InteractionMode) -> StabilizerResult:
        """Feed one frame's candidate and return the next session state."""
        stability = state.stability
        required = stability.required_frames

        if stability.consecutive_count > 0 and candidate == stability.last_candidate:
            stability = replace(stability, consecutive_count=stability.consecutive_count + 1)
        else:
            stability = ModeStabilityState(
                last_candidate=candidate,
                consecutive_count=1,
                required_frames=required,
            )

        if stability.consecutive_count >= required and candidate != state.mode:
            previous = state.mode
            anchor = state.orbit_anchor if candidate == InteractionMode.ORBITING else None
            logger.info("Mode committed: %s -> %s (after %d frames)",
                        previous.label, candidate.label, stability.consecutive_count)
            new_state = replace(state, mode=candidate, stability=stability, orbit_anchor=anchor)
            return StabilizerResult(new_state, True, previous)

        return StabilizerResult(replace(state, stability=stability), False, None)

    @property
    def required_frames(self) -> int:
        return self._required_frames
