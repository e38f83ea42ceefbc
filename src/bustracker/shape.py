"""
Shape data model: a named vehicle path with its raw and smoothed points.
"""

from typing import Dict, List, Optional, Sequence, TextIO, Tuple
import logging
import os
import gpxpy
import gpxpy.gpx
from shapely.geometry import LineString

from .geometry import (
    GeoPoint,
    buffer_bbox,
    calculate_bbox,
    coords_to_polyline,
    create_transverse_mercator_projection,
)
from .gtfs import ShapePoint, parse_gtfs_shapes
from .smoothing import (
    DEFAULT_MIN_SEPARATION,
    DEFAULT_SMOOTHING_ITERATIONS,
    preprocess_shape_points,
)

logger = logging.getLogger(__name__)


class Shape:
    """A vehicle path loaded from GTFS or GPX data."""

    def __init__(
        self,
        shape_id: str,
        raw_points: Sequence[ShapePoint],
        min_separation: float = DEFAULT_MIN_SEPARATION,
        smoothing_iterations: int = DEFAULT_SMOOTHING_ITERATIONS,
    ):
        """Initializes a Shape and preprocesses its points.

        Args:
            shape_id: Identifier of the shape in its source file.
            raw_points: Raw points ordered by sequence.
            min_separation: Near-duplicate threshold in degrees.
            smoothing_iterations: Number of Chaikin smoothing passes.
        """
        self.shape_id = shape_id
        self.raw_points = list(raw_points)
        self.path: List[GeoPoint] = preprocess_shape_points(
            self.raw_points, min_separation, smoothing_iterations
        )

        self.bbox: Optional[Tuple[float, float, float, float]] = None
        self.linestring: Optional[LineString] = None
        if self.path:
            self.bbox = calculate_bbox(self.path)
        if len(self.path) >= 2:
            # Projected LineString in meters, centered on this shape
            projection = create_transverse_mercator_projection(self.bbox)
            self.linestring = coords_to_polyline(self.path, projection)

    @property
    def length(self) -> float:
        """Length of the smoothed path in meters (projected)."""
        if self.linestring is None:
            return 0.0
        return self.linestring.length

    def get_bbox(self, buffer: float = 0.0) -> Tuple[float, float, float, float]:
        """
        Get bounding box for this shape's path, optionally with a buffer.

        Args:
            buffer: Buffer distance in meters (default: 0.0)

        Returns:
            Tuple of (south, west, north, east) in decimal degrees

        Raises:
            ValueError: If the shape has no points
        """
        if self.bbox is None:
            raise ValueError(f"Shape {self.shape_id} has no points")
        return buffer_bbox(self.bbox, buffer)

    @classmethod
    def from_gtfs(
        cls, file_input: TextIO, **kwargs
    ) -> Dict[str, "Shape"]:
        """
        Build shapes from GTFS shapes.txt data.

        Args:
            file_input: File-like object containing shapes.txt CSV data
            **kwargs: Preprocessing options passed to Shape

        Returns:
            Dictionary of Shape objects keyed by shape_id, in file order

        Raises:
            ValueError: If required columns are missing.
        """
        raw_shapes = parse_gtfs_shapes(file_input)
        return {
            shape_id: cls(shape_id, points, **kwargs)
            for shape_id, points in raw_shapes.items()
        }

    @classmethod
    def from_gpx(cls, file_input: TextIO, **kwargs) -> Dict[str, "Shape"]:
        """
        Build one shape per GPX track, concatenating its segments.

        Args:
            file_input: File-like object containing GPX data
            **kwargs: Preprocessing options passed to Shape

        Returns:
            Dictionary of Shape objects keyed by track name (or track-<n>)

        Raises:
            gpxpy.gpx.GPXException: If GPX file is malformed.
        """
        gpx_data = gpxpy.parse(file_input)

        shapes: Dict[str, Shape] = {}
        for track_number, track in enumerate(gpx_data.tracks, start=1):
            points = []
            for segment in track.segments:
                for point in segment.points:
                    points.append(
                        ShapePoint(
                            lat=point.latitude,
                            lng=point.longitude,
                            sequence=len(points),
                        )
                    )
            if not points:
                logger.warning(f"Skipping GPX track {track_number} without points")
                continue

            shape_id = track.name or f"track-{track_number}"
            if shape_id in shapes:
                shape_id = f"{shape_id}-{track_number}"
            shapes[shape_id] = cls(shape_id, points, **kwargs)

        logger.debug(f"Parsed {len(shapes)} tracks from GPX file")
        return shapes

    @classmethod
    def from_file(cls, filename: str, **kwargs) -> Dict[str, "Shape"]:
        """
        Load shapes from a GPX file or a GTFS shapes.txt file.

        Args:
            filename: Path to the file; a .gpx extension selects GPX parsing
            **kwargs: Preprocessing options passed to Shape

        Returns:
            Dictionary of Shape objects keyed by shape id

        Raises:
            FileNotFoundError: If file doesn't exist.
            PermissionError: If file can't be read.
            gpxpy.gpx.GPXException: If GPX file is malformed.
            ValueError: If shapes.txt lacks required columns.
        """
        logger.debug(f"Reading shapes file: {filename}")
        if os.path.splitext(filename)[1].lower() == ".gpx":
            with open(filename, "r", encoding="utf-8") as f:
                return cls.from_gpx(f, **kwargs)

        # utf-8-sig drops the BOM that spreadsheet exports often add
        with open(filename, "r", encoding="utf-8-sig", newline="") as f:
            return cls.from_gtfs(f, **kwargs)

    def __len__(self) -> int:
        """Return number of points in the smoothed path."""
        return len(self.path)

    def __getitem__(self, index):
        """Allow indexing into the smoothed path."""
        return self.path[index]

    def __iter__(self):
        """Allow iteration over the smoothed path."""
        return iter(self.path)
