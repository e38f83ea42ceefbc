"""
Fixed-step host loop driving motion controllers.
"""

from typing import Hashable, Iterator, List, NamedTuple, Optional, Sequence, Tuple
import logging

from .geometry import GeoPoint
from .motion import Frame, MotionController

logger = logging.getLogger(__name__)


class TimedFrame(NamedTuple):
    """A frame stamped with the simulated time it was produced at."""

    time: float
    frame: Frame


def simulate(
    controller: MotionController, duration: float, frame_interval: float
) -> Iterator[TimedFrame]:
    """
    Tick a started controller at a fixed interval.

    The loop captures the controller's scheduling token up front, so a
    stop() or switch_path() issued while iterating ends it.

    Args:
        controller: Controller on which start() has been called
        duration: Total simulated time
        frame_interval: Time between ticks

    Yields:
        TimedFrame for every tick that produced a position

    Raises:
        ValueError: If frame_interval is not positive
    """
    if frame_interval <= 0:
        raise ValueError(f"Frame interval must be positive, got {frame_interval}")

    token = controller.token
    elapsed = 0.0
    while elapsed < duration:
        elapsed += frame_interval
        frame = controller.tick(frame_interval, token)
        if frame is None:
            return
        yield TimedFrame(elapsed, frame)


def simulate_path(
    path: Sequence[GeoPoint],
    duration: float,
    frame_interval: float,
    path_id: Optional[Hashable] = None,
    base_speed: Optional[float] = None,
    look_ahead: Optional[int] = None,
) -> List[TimedFrame]:
    """
    Animate a path with its own controller and collect the frames.

    Args:
        path: Smoothed path
        duration: Total simulated time
        frame_interval: Time between ticks
        path_id: Identifier reported in frames
        base_speed: Controller base speed (controller default if None)
        look_ahead: Corner look-ahead (controller default if None)

    Returns:
        The produced frames in time order
    """
    options = {}
    if base_speed is not None:
        options["base_speed"] = base_speed
    if look_ahead is not None:
        options["look_ahead"] = look_ahead

    controller = MotionController(**options)
    controller.start(path, path_id)
    frames = list(simulate(controller, duration, frame_interval))
    controller.stop()

    logger.debug(
        f"Simulated path {path_id!r}: {len(frames)} frames over {duration:.0f} time units"
    )
    return frames


def segments_reached(frames: Sequence[TimedFrame]) -> Tuple[int, int]:
    """
    Summarize how far a simulation got.

    Returns:
        (number of segment completions, highest segment index seen)
    """
    completions = sum(1 for timed in frames if timed.frame.fraction >= 1.0)
    highest = max((timed.frame.segment_index for timed in frames), default=0)
    return completions, highest
