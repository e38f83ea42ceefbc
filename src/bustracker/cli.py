#!/usr/bin/env python3
"""
Bus Shape Animation Tool
This script loads vehicle shapes from a GTFS shapes.txt or GPX file, smooths
them, simulates a vehicle driving each selected shape (slowing into corners),
and generates an interactive HTML map replaying the simulation.

Requirements:
    pip install gpxpy folium shapely pyproj

"""

from typing import Dict, List, Optional
import webbrowser
import argparse
import logging
import sys
import os
from gpxpy import gpx

from . import __version__
from . import visualization
from .config import TrackerConfig
from .metrics import ShapeMetrics, collect_metrics, log_metrics
from .shape import Shape
from .simulation import TimedFrame, segments_reached, simulate_path
from .file_utils import generate_output_filename

# Configure logging
logger = logging.getLogger("bustracker")


def create_argument_parser() -> argparse.ArgumentParser:
    """
    Create and configure the command-line argument parser.

    Returns:
        Configured ArgumentParser instance
    """
    defaults = TrackerConfig()
    parser = argparse.ArgumentParser(
        description="Bus shape smoothing and animation tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "filename",
        type=str,
        nargs="?",
        help="GTFS shapes.txt or GPX file to process",
    )
    parser.add_argument(
        "--shape-id",
        type=str,
        action="append",
        default=None,
        help="Shape to animate; repeat for several shapes (default: first shape in file)",
    )
    parser.add_argument(
        "--list-shapes",
        action="store_true",
        help="List the shapes in the file and exit",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Output HTML map file (default: auto-generated based on input filename)",
    )
    parser.add_argument(
        "--duration",
        type=float,
        default=defaults.duration,
        help=f"Simulated time in milliseconds (default: {defaults.duration:g})",
    )
    parser.add_argument(
        "--frame-interval",
        type=float,
        default=defaults.frame_interval,
        help=f"Milliseconds between simulation ticks (default: {defaults.frame_interval:g})",
    )
    parser.add_argument(
        "--min-separation",
        type=float,
        default=defaults.min_separation,
        help=f"Drop points closer than this many degrees to the previous kept point (default: {defaults.min_separation:g})",
    )
    parser.add_argument(
        "--smoothing-iterations",
        type=int,
        default=defaults.smoothing_iterations,
        help=f"Number of Chaikin smoothing passes (default: {defaults.smoothing_iterations})",
    )
    parser.add_argument(
        "--look-ahead",
        type=int,
        default=defaults.look_ahead,
        help=f"Points inspected ahead for corners (default: {defaults.look_ahead})",
    )
    parser.add_argument(
        "--base-speed",
        type=float,
        default=defaults.base_speed,
        help=f"Vehicle speed scale factor (default: {defaults.base_speed:g})",
    )
    parser.add_argument(
        "--map-buffer",
        type=float,
        default=defaults.map_buffer,
        help=f"Map margin around the shapes in meters (default: {defaults.map_buffer:g})",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=defaults.log_level,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help=f"Set logging level (default: {defaults.log_level})",
    )
    parser.add_argument(
        "--no-open",
        action="store_true",
        help="Don't automatically open the HTML file in browser",
    )
    parser.add_argument(
        "--metrics",
        action="store_true",
        help="Output structured metrics after processing",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"bustracker {__version__}",
    )
    return parser


def config_from_args(args: argparse.Namespace) -> TrackerConfig:
    """Build a TrackerConfig from parsed command-line arguments."""
    return TrackerConfig(
        min_separation=args.min_separation,
        smoothing_iterations=args.smoothing_iterations,
        look_ahead=args.look_ahead,
        base_speed=args.base_speed,
        duration=args.duration,
        frame_interval=args.frame_interval,
        map_buffer=args.map_buffer,
        log_level=args.log_level,
        metrics=args.metrics,
    )


def determine_output_filename(input_filename: str, output_arg: Optional[str]) -> str:
    """
    Determine the output filename to use.

    Args:
        input_filename: Path to the input shapes file
        output_arg: Value from --output argument (None if not specified)

    Returns:
        Output filename to use

    Raises:
        RuntimeError: If auto-generation fails
        ValueError: If constructed filename would be illegal
    """
    if output_arg is not None:
        return output_arg

    try:
        return generate_output_filename(input_filename)
    except (RuntimeError, ValueError) as e:
        logger.error(f"Failed to generate output filename: {e}")
        raise


def open_file_in_browser(filename: str) -> None:
    """
    Open the specified file in the default browser.

    Args:
        filename: Path to the file to open
    """
    abs_path = os.path.abspath(filename)
    try:
        webbrowser.open(f"file://{abs_path}")
        logger.debug(f"Opening {abs_path} in your default browser...")
    except Exception as e:
        logger.warning(f"Could not automatically open browser: {e}")
        logger.warning(f"Please manually open {abs_path}")


def setup_logging(config: TrackerConfig) -> None:
    """Setup logging configuration."""
    level = getattr(logging, config.log_level)

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%H:%M:%S"
    )

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)

    # Configure the root logger so all modules inherit the configuration
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.addHandler(console_handler)


def list_shapes(shapes: Dict[str, Shape]) -> None:
    """Print every shape id with its raw and smoothed point counts."""
    if not shapes:
        print("No shapes found")
        return

    width = max(len(shape_id) for shape_id in shapes)
    for shape_id, shape in shapes.items():
        print(
            f"{shape_id:<{width}}  {len(shape.raw_points):6d} points  "
            f"{shape.length / 1000:8.2f} km"
        )


def select_shapes(
    shapes: Dict[str, Shape], shape_ids: Optional[List[str]]
) -> Dict[str, Shape]:
    """
    Pick the shapes to animate.

    Args:
        shapes: All loaded shapes
        shape_ids: Requested ids; None selects the first shape

    Returns:
        Selected shapes keyed by id, in request order

    Raises:
        KeyError: If a requested id is not present
    """
    if not shape_ids:
        first_id = next(iter(shapes))
        return {first_id: shapes[first_id]}

    missing = [shape_id for shape_id in shape_ids if shape_id not in shapes]
    if missing:
        raise KeyError(", ".join(missing))

    return {shape_id: shapes[shape_id] for shape_id in shape_ids}


def log_simulation_summary(
    selected: Dict[str, Shape],
    frames: Dict[str, List[TimedFrame]],
    metrics: Dict[str, ShapeMetrics],
) -> None:
    """
    Print one line per animated shape describing preprocessing and progress.

    Args:
        selected: Animated shapes keyed by id
        frames: Simulated frames keyed by shape id
        metrics: ShapeMetrics keyed by shape id
    """
    print(f"Animated shapes ({len(selected)}):")
    for shape_id in selected:
        shape_metrics = metrics[shape_id]
        shape_frames = frames.get(shape_id, [])
        completions, highest = segments_reached(shape_frames)
        print(
            f"  {shape_id}: {shape_metrics.raw_points} raw -> "
            f"{shape_metrics.filtered_points} filtered -> "
            f"{shape_metrics.smoothed_points} smoothed points, "
            f"{shape_metrics.length_m / 1000:.2f} km, "
            f"{len(shape_frames)} frames, {completions} segments completed "
            f"(furthest segment {highest})"
        )


def main():
    """
    Parses command-line arguments, loads and smooths the shapes,
    simulates the vehicles, and generates an interactive map.
    """
    parser = create_argument_parser()
    args = parser.parse_args()

    if not args.filename:
        parser.print_help()
        sys.exit(1)

    config = config_from_args(args)
    if config.frame_interval <= 0:
        parser.error("--frame-interval must be positive")
    if config.base_speed <= 0:
        parser.error("--base-speed must be positive")

    setup_logging(config)

    # Load and preprocess the shapes
    try:
        shapes = Shape.from_file(
            args.filename,
            min_separation=config.min_separation,
            smoothing_iterations=config.smoothing_iterations,
        )
    except FileNotFoundError:
        logger.error(f"Shapes file not found: {args.filename}")
        sys.exit(1)
    except PermissionError:
        logger.error(f"Cannot read shapes file (permission denied): {args.filename}")
        sys.exit(1)
    except gpx.GPXException as e:
        logger.error(f"Invalid GPX file: {e}")
        sys.exit(1)
    except ValueError as e:
        logger.error(f"Invalid shapes file: {e}")
        sys.exit(1)
    logger.info(f"Loaded {len(shapes)} shapes from {args.filename}")

    if args.list_shapes:
        list_shapes(shapes)
        return

    if not shapes:
        logger.error(f"No shapes found in {args.filename}")
        sys.exit(1)

    try:
        selected = select_shapes(shapes, args.shape_id)
    except KeyError as e:
        logger.error(f"Unknown shape id: {e.args[0]}")
        list_shapes(shapes)
        sys.exit(1)

    try:
        output_filename = determine_output_filename(args.filename, args.output)
        logger.debug(f"Output filename: {output_filename}")
    except (RuntimeError, ValueError):
        sys.exit(1)

    metrics = {
        shape_id: collect_metrics(shape, config) for shape_id, shape in shapes.items()
    }

    # Each shape gets its own independent controller
    frames: Dict[str, List[TimedFrame]] = {}
    for shape_id, shape in selected.items():
        if len(shape) < 2:
            logger.warning(f"Shape {shape_id} has fewer than two points; not animated")
        frames[shape_id] = simulate_path(
            shape.path,
            config.duration,
            config.frame_interval,
            path_id=shape_id,
            base_speed=config.base_speed,
            look_ahead=config.look_ahead,
        )

    log_simulation_summary(selected, frames, metrics)

    try:
        visualization.create_shape_map(
            shapes, frames, output_filename, metrics, config
        )
    except Exception as e:
        logger.error(f"Failed to create map: {e}")
        sys.exit(1)

    log_metrics(metrics, config)

    if not args.no_open:
        open_file_in_browser(output_filename)


if __name__ == "__main__":
    main()
