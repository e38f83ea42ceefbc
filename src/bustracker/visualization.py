#!/usr/bin/env python3
"""
Shape and vehicle visualization using folium maps.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Sequence, Tuple
import logging
import folium
from folium.plugins import TimestampedGeoJson
from folium.template import Template

from .config import TrackerConfig
from .corners import speed_profile
from .geometry import buffer_bbox
from .metrics import ShapeMetrics
from .shape import Shape
from .simulation import TimedFrame

logger = logging.getLogger(__name__)

# Simulated time 0 is shown on the time slider as this instant
ANIMATION_EPOCH = datetime(2000, 1, 1, tzinfo=timezone.utc)

SHAPE_COLORS = ["#2E86AB", "#D23C4C", "#69498F", "#F18F01", "#3B8B5A", "#8C6D46"]

# (speed multiplier at or below which the color applies, color), slowest first
SPEED_COLORS: List[Tuple[float, str]] = [
    (0.3, "#D23C4C"),
    (0.5, "#F18F01"),
    (0.7, "#F6C85F"),
    (1.0, "#3B8B5A"),
]


class ShapeLegend(folium.MacroElement):
    """Legend listing the drawn shapes and the vehicle speed colors."""

    def __init__(self, shape_entries: List[Dict[str, Any]]):
        super().__init__()
        self.shape_entries = shape_entries
        self.speed_entries = [
            {"color": color, "label": f"≤ {int(speed * 100)}% speed"}
            for speed, color in SPEED_COLORS
        ]

        self._template = Template(
            """
        {% macro html(this, kwargs) %}
        <div id="shape-legend" style="
            position: fixed;
            bottom: 50px;
            left: 50px;
            width: 230px;
            background-color: white;
            border: 2px solid grey;
            z-index: 9999;
            font-size: 13px;
            padding: 12px;
            font-family: Arial, sans-serif;
            border-radius: 5px;
            box-shadow: 0 2px 5px rgba(0,0,0,0.2);
            box-sizing: border-box;
        ">
            <b>Shapes</b><br>
            {% for entry in this.shape_entries %}
            <div style="margin: 4px 0; line-height: 1.3;">
                <span style="color: {{ entry.color }}; font-weight: bold; font-size: 18px;">—</span>
                {{ entry.shape_id }} ({{ entry.length_km }} km)
            </div>
            {% endfor %}
            <b>Vehicle</b><br>
            {% for entry in this.speed_entries %}
            <div style="margin: 4px 0; line-height: 1.3;">
                <span style="color: {{ entry.color }}; font-size: 18px;">●</span>
                {{ entry.label }}
            </div>
            {% endfor %}
        </div>
        {% endmacro %}
        """
        )


def speed_color(speed: float) -> str:
    """Pick the vehicle marker color for a speed multiplier."""
    for threshold, color in SPEED_COLORS:
        if speed <= threshold:
            return color
    return SPEED_COLORS[-1][1]


def frames_to_geojson(
    shape: Shape, frames: Sequence[TimedFrame], look_ahead: int
) -> Dict[str, Any]:
    """
    Convert simulated frames to a GeoJSON FeatureCollection for TimestampedGeoJson.

    Args:
        shape: Shape the frames were simulated on
        frames: Frames in time order
        look_ahead: Corner look-ahead used to report the speed at each frame

    Returns:
        GeoJSON dictionary with one timestamped Point feature per frame
    """
    features = []
    for timed in frames:
        frame = timed.frame
        speed = speed_profile(shape.path, frame.segment_index, look_ahead).current_speed
        heading = f"{frame.heading:.0f}°" if frame.heading is not None else "N/A"
        timestamp = ANIMATION_EPOCH + timedelta(milliseconds=timed.time)

        features.append(
            {
                "type": "Feature",
                "geometry": {
                    "type": "Point",
                    "coordinates": [frame.position.lng, frame.position.lat],
                },
                "properties": {
                    "time": timestamp.isoformat(),
                    "popup": (
                        f"<b>{shape.shape_id}</b><br>Segment {frame.segment_index}"
                        f"<br>Speed: {speed * 100:.0f}%<br>Heading: {heading}"
                    ),
                    "icon": "circle",
                    "iconstyle": {
                        "fillColor": speed_color(speed),
                        "fillOpacity": 0.9,
                        "stroke": False,
                        "radius": 6,
                    },
                },
            }
        )

    return {"type": "FeatureCollection", "features": features}


def _combined_bbox(
    shapes: Sequence[Shape], buffer: float
) -> Tuple[float, float, float, float]:
    boxes = [shape.get_bbox() for shape in shapes]
    bbox = (
        min(b[0] for b in boxes),
        min(b[1] for b in boxes),
        max(b[2] for b in boxes),
        max(b[3] for b in boxes),
    )
    return buffer_bbox(bbox, buffer)


def create_shape_map(
    shapes: Dict[str, Shape],
    frames: Dict[str, List[TimedFrame]],
    output_filename: str,
    metrics: Dict[str, ShapeMetrics],
    config: TrackerConfig,
) -> None:
    """
    Create an interactive map of the shapes and the simulated vehicles, save as HTML.

    Every shape is drawn in its own layer so it can be toggled from the layer
    control. Frames are played back on a time slider.

    Args:
        shapes: Shapes to draw, keyed by shape id
        frames: Simulated frames keyed by shape id (shapes without frames are drawn only)
        output_filename: Path where HTML map file should be saved
        metrics: ShapeMetrics keyed by shape id, used for the legend
        config: Configuration (map buffer, frame interval, look-ahead)

    Raises:
        ValueError: If there is no shape with points to draw
    """
    drawable = [shape for shape in shapes.values() if len(shape) > 0]
    if not drawable:
        raise ValueError("Cannot create map without shape points")

    south, west, north, east = _combined_bbox(drawable, config.map_buffer)
    center_lat = (south + north) / 2
    center_lon = (west + east) / 2

    logger.debug(f"Creating map centered at ({center_lat:.4f}, {center_lon:.4f})")

    shape_map = folium.Map(
        location=[center_lat, center_lon],
        tiles=None,
    )

    folium.TileLayer(
        tiles="CartoDB positron",
        attr=(
            "&copy; <a href='https://www.openstreetmap.org/copyright'>OpenStreetMap</a> "
            "contributors &copy; <a href='https://carto.com/attributions'>CARTO</a>"
        ),
        name="Standard",
        control=True,
        show=True,
    ).add_to(shape_map)

    folium.TileLayer(
        tiles="https://server.arcgisonline.com/ArcGIS/rest/services/World_Imagery/MapServer/tile/{z}/{y}/{x}",
        attr=(
            "Tiles &copy; Esri &mdash; Source: Esri, i-cubed, USDA, USGS, AEX, GeoEye, "
            "Getmapping, Aerogrid, IGN, IGP, UPR-EGP, and the GIS User Community"
        ),
        name="Satellite",
        control=True,
        show=False,
    ).add_to(shape_map)

    legend_entries = []
    features: List[Dict[str, Any]] = []

    for i, shape in enumerate(drawable):
        color = SHAPE_COLORS[i % len(SHAPE_COLORS)]
        shape_metrics = metrics.get(shape.shape_id)
        length_m = shape_metrics.length_m if shape_metrics else shape.length
        legend_entries.append(
            {
                "shape_id": shape.shape_id,
                "color": color,
                "length_km": f"{length_m / 1000:.2f}",
            }
        )

        # Only animated shapes are shown initially
        layer = folium.FeatureGroup(
            name=f"Shape {shape.shape_id}", show=shape.shape_id in frames
        )

        coordinates = [[p.lat, p.lng] for p in shape.path]
        if len(coordinates) >= 2:
            folium.PolyLine(
                coordinates,
                color=color,
                weight=5,
                opacity=0.7,
                popup=f"Shape {shape.shape_id}",
            ).add_to(layer)

        folium.Marker(
            coordinates[0],
            popup=f"Start of {shape.shape_id}",
            icon=folium.Icon(color="green", icon="play"),
        ).add_to(layer)
        folium.Marker(
            coordinates[-1],
            popup=f"End of {shape.shape_id}",
            icon=folium.Icon(color="red", icon="stop"),
        ).add_to(layer)

        layer.add_to(shape_map)

        shape_frames = frames.get(shape.shape_id)
        if shape_frames:
            features.extend(
                frames_to_geojson(shape, shape_frames, config.look_ahead)["features"]
            )

    if features:
        period = f"PT{config.frame_interval / 1000:g}S"
        TimestampedGeoJson(
            data={"type": "FeatureCollection", "features": features},
            period=period,
            duration=period,
            transition_time=max(1, int(config.frame_interval)),
            add_last_point=False,
            auto_play=True,
            loop=True,
        ).add_to(shape_map)

    folium.LayerControl().add_to(shape_map)

    shape_map.add_child(ShapeLegend(legend_entries))

    shape_map.fit_bounds([[south, west], [north, east]])

    shape_map.save(output_filename)

    logger.debug(
        f"Map saved to {output_filename} with {len(drawable)} shapes and "
        f"{len(features)} vehicle frames"
    )
