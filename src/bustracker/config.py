from dataclasses import dataclass

from .corners import DEFAULT_LOOK_AHEAD
from .motion import DEFAULT_BASE_SPEED
from .smoothing import DEFAULT_MIN_SEPARATION, DEFAULT_SMOOTHING_ITERATIONS


@dataclass
class TrackerConfig:
    """Configuration for the bustracker CLI."""

    min_separation: float = DEFAULT_MIN_SEPARATION
    smoothing_iterations: int = DEFAULT_SMOOTHING_ITERATIONS
    look_ahead: int = DEFAULT_LOOK_AHEAD
    base_speed: float = DEFAULT_BASE_SPEED
    duration: float = 60000.0
    frame_interval: float = 100.0
    map_buffer: float = 50.0
    log_level: str = "WARNING"
    metrics: bool = False
