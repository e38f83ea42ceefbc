"""
Parsing of GTFS shapes.txt data.
"""

from typing import Dict, List, NamedTuple, TextIO
import csv
import logging

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("shape_id", "shape_pt_lat", "shape_pt_lon", "shape_pt_sequence")


class ShapePoint(NamedTuple):
    """A raw shape point as listed in shapes.txt."""

    lat: float
    lng: float
    sequence: int


def parse_gtfs_shapes(file_input: TextIO) -> Dict[str, List[ShapePoint]]:
    """
    Parse GTFS shapes.txt content into ordered point lists per shape.

    Args:
        file_input: File-like object containing shapes.txt CSV data

    Returns:
        Dictionary mapping shape_id to its points sorted by shape_pt_sequence,
        in order of first appearance in the file

    Raises:
        ValueError: If a required column is missing from the header
    """
    reader = csv.DictReader(file_input)

    # Strip whitespace and a UTF-8 BOM left by some exporters
    fieldnames = [name.strip().lstrip("\ufeff") for name in reader.fieldnames or []]
    reader.fieldnames = fieldnames

    missing = [column for column in REQUIRED_COLUMNS if column not in fieldnames]
    if missing:
        raise ValueError(f"shapes.txt is missing required columns: {', '.join(missing)}")

    shapes: Dict[str, List[ShapePoint]] = {}
    skipped = 0

    for line_number, row in enumerate(reader, start=2):
        shape_id = (row.get("shape_id") or "").strip()
        try:
            if not shape_id:
                raise ValueError("empty shape_id")
            point = ShapePoint(
                lat=float(row["shape_pt_lat"]),
                lng=float(row["shape_pt_lon"]),
                sequence=int(row["shape_pt_sequence"]),
            )
        except (TypeError, ValueError) as e:
            logger.warning(f"Skipping shapes.txt line {line_number}: {e}")
            skipped += 1
            continue

        shapes.setdefault(shape_id, []).append(point)

    for points in shapes.values():
        points.sort(key=lambda p: p.sequence)

    logger.debug(
        f"Parsed {sum(len(p) for p in shapes.values())} points in {len(shapes)} shapes"
        f" ({skipped} rows skipped)"
    )
    return shapes
