"""
Geographic primitives for path preprocessing and motion.

This module provides the point type used throughout the package, great-circle
distance and bearing helpers, and the projection helpers used to build
Shapely LineStrings in meters for length and bounding-box queries.
"""

from typing import Iterable, List, Optional, Tuple, NamedTuple
import math
from shapely.geometry import LineString
import pyproj

# Mean Earth radius in meters
EARTH_RADIUS = 6371000.0


class GeoPoint(NamedTuple):
    """Represents a geographic point with latitude and longitude in degrees."""

    lat: float
    lng: float


def haversine_distance(a: GeoPoint, b: GeoPoint) -> float:
    """
    Calculate the great-circle distance between two points.

    Args:
        a: First point
        b: Second point

    Returns:
        Distance in meters
    """
    lat1, lng1 = math.radians(a.lat), math.radians(a.lng)
    lat2, lng2 = math.radians(b.lat), math.radians(b.lng)

    dlat = lat2 - lat1
    dlng = lng2 - lng1

    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlng / 2) ** 2

    # Rounding can push h slightly outside [0, 1] for antipodal points
    h = min(1.0, max(0.0, h))

    return 2 * EARTH_RADIUS * math.asin(math.sqrt(h))


def calculate_bearing(a: GeoPoint, b: GeoPoint) -> float:
    """
    Calculate the initial great-circle bearing from one point to another.

    Args:
        a: Start point
        b: End point

    Returns:
        Bearing in degrees, in the range [0, 360). Identical points give 0.
    """
    lat1, lat2 = math.radians(a.lat), math.radians(b.lat)
    dlng = math.radians(b.lng - a.lng)

    y = math.sin(dlng) * math.cos(lat2)
    x = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(
        dlng
    )

    bearing = math.degrees(math.atan2(y, x))
    return (bearing + 360.0) % 360.0


def interpolate(start: GeoPoint, end: GeoPoint, fraction: float) -> GeoPoint:
    """
    Linearly interpolate between two points.

    Latitude and longitude are interpolated independently, which is what the
    map renderer draws between consecutive path points.

    Args:
        start: Segment start
        end: Segment end
        fraction: Position along the segment, 0 at start and 1 at end

    Returns:
        Interpolated point
    """
    return GeoPoint(
        lat=start.lat + (end.lat - start.lat) * fraction,
        lng=start.lng + (end.lng - start.lng) * fraction,
    )


def calculate_cumulative_distances(points: List[GeoPoint]) -> List[float]:
    """
    Calculate cumulative great-circle distances along a path.

    Args:
        points: Ordered path points

    Returns:
        List of cumulative distances in meters, with same length as points
    """
    if not points:
        return []

    cumulative_distances = [0.0]
    for i in range(1, len(points)):
        segment = haversine_distance(points[i - 1], points[i])
        cumulative_distances.append(cumulative_distances[-1] + segment)

    return cumulative_distances


def calculate_bbox(points: Iterable[GeoPoint]) -> Tuple[float, float, float, float]:
    """
    Calculate the bounding box of a set of points.

    Args:
        points: Points to enclose (must not be empty)

    Returns:
        Tuple of (south, west, north, east) in decimal degrees

    Raises:
        ValueError: If points is empty
    """
    points = list(points)
    if not points:
        raise ValueError("Cannot calculate a bounding box without points")

    latitudes = [p.lat for p in points]
    longitudes = [p.lng for p in points]
    return (min(latitudes), min(longitudes), max(latitudes), max(longitudes))


def buffer_bbox(
    bbox: Tuple[float, float, float, float], buffer: float
) -> Tuple[float, float, float, float]:
    """
    Expand a bounding box by an approximate distance.

    Args:
        bbox: Tuple of (south, west, north, east) in decimal degrees
        buffer: Buffer distance in meters

    Returns:
        Buffered (south, west, north, east), clamped to valid coordinate ranges
    """
    south, west, north, east = bbox
    if buffer <= 0:
        return bbox

    # 1 degree latitude ≈ 111 km; longitude shrinks with latitude
    avg_lat = (south + north) / 2
    lat_buffer = buffer / 111000.0
    lon_buffer = buffer / (111000.0 * max(abs(math.cos(math.radians(avg_lat))), 1e-6))

    return (
        max(-90.0, south - lat_buffer),
        max(-180.0, west - lon_buffer),
        min(90.0, north + lat_buffer),
        min(180.0, east + lon_buffer),
    )


def create_transverse_mercator_projection(
    bbox: Tuple[float, float, float, float],
) -> pyproj.Proj:
    """
    Create a custom transverse mercator projection centered on the given bounding box.

    Args:
        bbox: Tuple of (south, west, north, east) in decimal degrees

    Returns:
        pyproj.Proj object for the custom projection
    """
    south, west, north, east = bbox

    center_lat = (south + north) / 2.0
    center_lon = (west + east) / 2.0

    proj_string = f"+proj=tmerc +lat_0={center_lat} +lon_0={center_lon} +k=1 +x_0=0 +y_0=0 +datum=WGS84 +units=m +no_defs"
    return pyproj.Proj(proj_string)


def coords_to_polyline(
    points: List[GeoPoint], projection: Optional[pyproj.Proj] = None
) -> LineString:
    """
    Convert a list of points to a Shapely LineString.

    Args:
        points: Ordered path points
        projection: Optional pyproj.Proj object for coordinate transformation.
                   If None, uses (lng, lat) coordinates directly.

    Returns:
        LineString in projected meters if projection is provided,
        otherwise in geographic coordinates

    Raises:
        ValueError: If points has fewer than 2 entries
    """
    if len(points) < 2:
        raise ValueError("At least two points are required to create a LineString.")

    lngs = [p.lng for p in points]
    lats = [p.lat for p in points]

    if projection is not None:
        x_coords, y_coords = projection(lngs, lats)
        return LineString(list(zip(x_coords, y_coords)))

    return LineString(list(zip(lngs, lats)))
