"""
Per-path animation state machine.

The controller owns no timer. A host loop calls tick() with the time elapsed
since its previous call and receives the interpolated vehicle position.
"""

from dataclasses import dataclass, replace
from typing import Hashable, List, NamedTuple, Optional, Sequence
import logging

from .corners import DEFAULT_LOOK_AHEAD, speed_profile
from .geometry import GeoPoint, calculate_bearing, haversine_distance, interpolate

logger = logging.getLogger(__name__)

DEFAULT_BASE_SPEED = 0.01


@dataclass
class MotionState:
    """Progress of one animated path."""

    path_id: Optional[Hashable]
    segment_index: int = 0
    elapsed_in_segment: float = 0.0
    segment_duration: float = 0.0


class Frame(NamedTuple):
    """Vehicle position produced by a single tick."""

    position: GeoPoint
    heading: Optional[float]  # Initial bearing of the segment, degrees
    segment_index: int
    fraction: float
    path_id: Optional[Hashable]


class MotionController:
    """Moves a vehicle along one path, slowing into corners."""

    def __init__(
        self,
        base_speed: float = DEFAULT_BASE_SPEED,
        look_ahead: int = DEFAULT_LOOK_AHEAD,
    ):
        """Initializes an idle controller.

        Args:
            base_speed: Scale factor dividing segment length into duration.
                With distances in meters and ticks in milliseconds a segment
                takes distance / base_speed ms at full speed.
            look_ahead: Number of points inspected for upcoming corners.

        Raises:
            ValueError: If base_speed is not positive.
        """
        if base_speed <= 0:
            raise ValueError(f"Base speed must be positive, got {base_speed}")

        self.base_speed = base_speed
        self.look_ahead = look_ahead
        self.path: List[GeoPoint] = []
        self._state: Optional[MotionState] = None
        self._token = 0

    @property
    def token(self) -> int:
        """Scheduling token of the current animation."""
        return self._token

    @property
    def is_animating(self) -> bool:
        return self._state is not None

    @property
    def state(self) -> Optional[MotionState]:
        """A copy of the current state, or None when idle."""
        if self._state is None:
            return None
        return replace(self._state)

    def start(
        self, path: Sequence[GeoPoint], path_id: Optional[Hashable] = None
    ) -> int:
        """
        Start animating a path from its first segment.

        Any previous progress is discarded.

        Args:
            path: Smoothed path to follow
            path_id: Identifier reported back in frames

        Returns:
            The new scheduling token
        """
        self.path = list(path)
        self._token += 1
        self._state = MotionState(path_id=path_id)
        self._state.segment_duration = self.segment_duration(0)

        logger.debug(
            f"Started path {path_id!r} with {len(self.path)} points "
            f"(token {self._token})"
        )
        return self._token

    def switch_path(
        self, path: Sequence[GeoPoint], path_id: Optional[Hashable] = None
    ) -> int:
        """Replace the animated path; progress restarts at segment 0."""
        return self.start(path, path_id)

    def stop(self) -> None:
        """Stop animating. Calling stop on an idle controller is harmless."""
        if self._state is None:
            return
        logger.debug(f"Stopped path {self._state.path_id!r}")
        self._state = None
        self._token += 1

    def segment_duration(self, index: int) -> float:
        """
        Time needed to cross a segment at the speed allowed there.

        Args:
            index: Index of the segment's start point

        Returns:
            Duration in tick units; 0 for a missing or zero-length segment
        """
        if index < 0 or index + 1 >= len(self.path):
            return 0.0

        distance = haversine_distance(self.path[index], self.path[index + 1])
        profile = speed_profile(self.path, index, self.look_ahead)
        return distance / (self.base_speed * profile.current_speed)

    def tick(self, elapsed: float, token: Optional[int] = None) -> Optional[Frame]:
        """
        Advance the animation.

        Args:
            elapsed: Time since the previous tick
            token: Scheduling token from start(); a stale token is ignored

        Returns:
            The vehicle frame, or None when idle, the token is stale or
            the path is empty
        """
        state = self._state
        if state is None:
            return None
        if token is not None and token != self._token:
            return None
        if not self.path:
            return None
        if len(self.path) == 1:
            return Frame(self.path[0], None, 0, 0.0, state.path_id)

        state.elapsed_in_segment += elapsed
        if state.segment_duration > 0:
            fraction = min(state.elapsed_in_segment / state.segment_duration, 1.0)
        else:
            fraction = 1.0

        index = state.segment_index
        start, end = self.path[index], self.path[index + 1]
        frame = Frame(
            position=interpolate(start, end, fraction),
            heading=calculate_bearing(start, end),
            segment_index=index,
            fraction=fraction,
            path_id=state.path_id,
        )

        if fraction >= 1.0:
            state.segment_index = (index + 1) % (len(self.path) - 1)
            state.elapsed_in_segment = 0.0
            state.segment_duration = self.segment_duration(state.segment_index)

        return frame
