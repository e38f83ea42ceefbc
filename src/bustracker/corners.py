"""
Corner detection and speed profiles for upcoming turns.
"""

from typing import Dict, List, NamedTuple, Sequence, Tuple
import math

from .geometry import GeoPoint, haversine_distance

DEFAULT_LOOK_AHEAD = 3

# Distance in meters at which an upcoming corner starts to slow the vehicle
SLOWDOWN_DISTANCE = 10.0

# (angle below which the speed applies, speed multiplier), sharpest first.
# 180° is a straight line, 0° a full reversal.
CORNER_SPEEDS: List[Tuple[float, float]] = [
    (30.0, 0.2),
    (45.0, 0.3),
    (90.0, 0.5),
    (135.0, 0.7),
]
FULL_SPEED = 1.0


class SpeedProfile(NamedTuple):
    """Speed multipliers derived from the corners ahead of the vehicle."""

    current_speed: float  # Multiplier to apply right now
    target_speed: float  # Multiplier required at the most restrictive corner
    distance_to_corner: float  # Meters to that corner, inf when there is none


NEUTRAL_PROFILE = SpeedProfile(FULL_SPEED, FULL_SPEED, math.inf)


def _to_unit_vector(point: GeoPoint) -> Tuple[float, float, float]:
    lat, lng = math.radians(point.lat), math.radians(point.lng)
    return (
        math.cos(lat) * math.cos(lng),
        math.cos(lat) * math.sin(lng),
        math.sin(lat),
    )


def turn_angle(prev: GeoPoint, mid: GeoPoint, next_: GeoPoint) -> float:
    """
    Calculate the angle at mid between the chords to its neighbours.

    Points are placed on the unit sphere and the angle is measured between
    the 3D chord vectors mid→prev and mid→next.

    Args:
        prev: Point before the corner
        mid: Corner point
        next_: Point after the corner

    Returns:
        Angle in degrees: 180 for a straight line, 0 for a full reversal.
        A zero-length chord counts as straight.
    """
    a = _to_unit_vector(prev)
    b = _to_unit_vector(mid)
    c = _to_unit_vector(next_)

    v1 = (a[0] - b[0], a[1] - b[1], a[2] - b[2])
    v2 = (c[0] - b[0], c[1] - b[1], c[2] - b[2])

    norm1 = math.sqrt(v1[0] ** 2 + v1[1] ** 2 + v1[2] ** 2)
    norm2 = math.sqrt(v2[0] ** 2 + v2[1] ** 2 + v2[2] ** 2)
    if norm1 == 0.0 or norm2 == 0.0:
        return 180.0

    dot = v1[0] * v2[0] + v1[1] * v2[1] + v1[2] * v2[2]
    cosine = max(-1.0, min(1.0, dot / (norm1 * norm2)))
    return math.degrees(math.acos(cosine))


def corner_speed(angle: float) -> float:
    """
    Map a turn angle to a speed multiplier; sharper turns are slower.

    Args:
        angle: Turn angle in degrees (180 = straight)

    Returns:
        Speed multiplier in (0, 1]
    """
    for threshold, speed in CORNER_SPEEDS:
        if angle < threshold:
            return speed
    return FULL_SPEED


def speed_profile(
    path: Sequence[GeoPoint],
    current_index: int,
    look_ahead: int = DEFAULT_LOOK_AHEAD,
) -> SpeedProfile:
    """
    Derive the speed profile for a vehicle at a point on the path.

    The look-ahead window covers path[current_index .. current_index + look_ahead].
    Every consecutive triple in it is checked for a corner; the most
    restrictive one sets the target speed, and the current speed eases
    quadratically towards it over the last SLOWDOWN_DISTANCE meters.

    Args:
        path: Smoothed path
        current_index: Index of the point the vehicle is leaving
        look_ahead: Number of points ahead to inspect

    Returns:
        SpeedProfile; NEUTRAL_PROFILE when fewer than 3 points are in view
    """
    if current_index < 0:
        return NEUTRAL_PROFILE

    window = path[current_index : current_index + look_ahead + 1]
    if len(window) < 3:
        return NEUTRAL_PROFILE

    target_speed = FULL_SPEED
    distance_to_corner = math.inf
    travelled = 0.0

    for i in range(len(window) - 2):
        # Distance from the window start to this triple's middle point
        travelled += haversine_distance(window[i], window[i + 1])

        speed = corner_speed(turn_angle(window[i], window[i + 1], window[i + 2]))
        if speed < target_speed:
            target_speed = speed
            distance_to_corner = travelled

    if distance_to_corner > SLOWDOWN_DISTANCE:
        current_speed = FULL_SPEED
    else:
        ratio = distance_to_corner / SLOWDOWN_DISTANCE
        current_speed = target_speed + (FULL_SPEED - target_speed) * ratio**2

    return SpeedProfile(current_speed, target_speed, distance_to_corner)


def classify_corners(path: Sequence[GeoPoint]) -> Dict[float, int]:
    """
    Count interior path points by the speed their turn angle allows.

    Args:
        path: Smoothed path

    Returns:
        Mapping of speed multiplier to number of points, only for speeds
        below full speed
    """
    counts: Dict[float, int] = {}
    for i in range(1, len(path) - 1):
        speed = corner_speed(turn_angle(path[i - 1], path[i], path[i + 1]))
        if speed < FULL_SPEED:
            counts[speed] = counts.get(speed, 0) + 1
    return counts
