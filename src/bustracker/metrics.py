"""
Module for collecting and logging metrics related to processed shapes.
"""

import logging
from typing import Dict, NamedTuple

from .config import TrackerConfig
from .corners import classify_corners
from .shape import Shape
from .smoothing import filter_close_points

logger = logging.getLogger(__name__)


class ShapeMetrics(NamedTuple):
    """Container for per-shape preprocessing metrics."""

    raw_points: int
    filtered_points: int
    smoothed_points: int
    length_m: float
    corner_counts: Dict[float, int]  # speed multiplier -> interior points


def collect_metrics(shape: Shape, config: TrackerConfig) -> ShapeMetrics:
    """
    Collect metrics for a shape after preprocessing.

    Args:
        shape: Shape to analyze
        config: Configuration holding the filter threshold used for the shape

    Returns:
        ShapeMetrics for the shape
    """
    filtered = filter_close_points(shape.raw_points, config.min_separation)

    return ShapeMetrics(
        raw_points=len(shape.raw_points),
        filtered_points=len(filtered),
        smoothed_points=len(shape.path),
        length_m=shape.length,
        corner_counts=classify_corners(shape.path),
    )


def log_metrics(metrics: Dict[str, ShapeMetrics], config: TrackerConfig) -> None:
    """
    Log detailed metrics for every processed shape.

    Args:
        metrics: ShapeMetrics keyed by shape id
        config: Configuration; nothing is logged unless config.metrics is set
    """
    if not config.metrics:
        return

    logger.debug("=== BUSTRACKER_METRICS ===")
    logger.debug(f"total_shapes={len(metrics)}")
    for shape_id, shape_metrics in metrics.items():
        logger.debug(f"raw_points[{shape_id}]={shape_metrics.raw_points}")
        logger.debug(f"filtered_points[{shape_id}]={shape_metrics.filtered_points}")
        logger.debug(f"smoothed_points[{shape_id}]={shape_metrics.smoothed_points}")
        logger.debug(f"length_m[{shape_id}]={shape_metrics.length_m:.1f}")
        for speed, count in sorted(shape_metrics.corner_counts.items()):
            logger.debug(f"corners[{shape_id}][{speed}]={count}")
    logger.debug("=== END_BUSTRACKER_METRICS ===")
