"""
Cleaning and smoothing of raw shape points.
"""

from typing import Iterable, List, Sequence
import logging
import math

from .geometry import GeoPoint

logger = logging.getLogger(__name__)

DEFAULT_MIN_SEPARATION = 0.00005
DEFAULT_SMOOTHING_ITERATIONS = 2


def filter_close_points(
    points: Sequence[GeoPoint], min_separation: float = DEFAULT_MIN_SEPARATION
) -> List[GeoPoint]:
    """
    Drop points that sit too close to the previously kept point.

    Separation is the planar distance in coordinate degrees, not meters.

    Args:
        points: Ordered points
        min_separation: Points at or below this separation are dropped

    Returns:
        Filtered points; the first point is always kept
    """
    if not points:
        return []

    kept = [points[0]]
    for point in points[1:]:
        last = kept[-1]
        separation = math.hypot(point.lat - last.lat, point.lng - last.lng)
        if separation > min_separation:
            kept.append(point)

    return kept


def chaikin_smoothing(
    points: Sequence[GeoPoint], iterations: int = DEFAULT_SMOOTHING_ITERATIONS
) -> List[GeoPoint]:
    """
    Smooth a path with Chaikin's corner-cutting algorithm.

    Each pass replaces every edge (p0, p1) with the points at 1/4 and 3/4
    along it, then re-attaches the first and last points of that pass.

    Args:
        points: Ordered points
        iterations: Number of passes

    Returns:
        Smoothed points with the original endpoints
    """
    points = list(points)
    if len(points) < 2:
        return points

    for _ in range(max(0, iterations)):
        cut: List[GeoPoint] = []
        for p0, p1 in zip(points, points[1:]):
            cut.append(
                GeoPoint(
                    lat=0.75 * p0.lat + 0.25 * p1.lat,
                    lng=0.75 * p0.lng + 0.25 * p1.lng,
                )
            )
            cut.append(
                GeoPoint(
                    lat=0.25 * p0.lat + 0.75 * p1.lat,
                    lng=0.25 * p0.lng + 0.75 * p1.lng,
                )
            )
        points = [points[0]] + cut + [points[-1]]

    return points


def preprocess_shape_points(
    raw_points: Iterable,
    min_separation: float = DEFAULT_MIN_SEPARATION,
    iterations: int = DEFAULT_SMOOTHING_ITERATIONS,
) -> List[GeoPoint]:
    """
    Turn raw shape points into a smooth path.

    Args:
        raw_points: Objects with lat and lng attributes, in path order
        min_separation: Threshold for filter_close_points (degrees)
        iterations: Number of Chaikin passes

    Returns:
        The smoothed path
    """
    points = [GeoPoint(lat=p.lat, lng=p.lng) for p in raw_points]
    filtered = filter_close_points(points, min_separation)
    smoothed = chaikin_smoothing(filtered, iterations)

    logger.debug(
        f"Preprocessed {len(points)} raw points: {len(filtered)} after filtering, "
        f"{len(smoothed)} after {iterations} smoothing passes"
    )
    return smoothed
