import io
import logging

import pytest

from bustracker.gtfs import ShapePoint, parse_gtfs_shapes

SHAPES_TXT = """shape_id,shape_pt_lat,shape_pt_lon,shape_pt_sequence,shape_dist_traveled
A,40.0,-74.0,1,0.0
A,40.002,-74.0,3,
B,41.0,-73.0,10,
A,40.001,-74.0,2,
B,41.001,-73.001,20,
"""


def test_parse_groups_points_by_shape():
    shapes = parse_gtfs_shapes(io.StringIO(SHAPES_TXT))

    assert list(shapes) == ["A", "B"], "Shapes should keep order of first appearance"
    assert len(shapes["A"]) == 3
    assert len(shapes["B"]) == 2


def test_parse_sorts_points_by_sequence():
    shapes = parse_gtfs_shapes(io.StringIO(SHAPES_TXT))

    assert [p.sequence for p in shapes["A"]] == [1, 2, 3]
    assert shapes["A"][1] == ShapePoint(lat=40.001, lng=-74.0, sequence=2)
    assert [p.sequence for p in shapes["B"]] == [10, 20]


def test_parse_any_column_order():
    data = "shape_pt_sequence,shape_pt_lon,shape_id,shape_pt_lat\n2,5.0,X,1.0\n1,6.0,X,2.0\n"
    shapes = parse_gtfs_shapes(io.StringIO(data))

    assert shapes == {
        "X": [ShapePoint(2.0, 6.0, 1), ShapePoint(1.0, 5.0, 2)],
    }


def test_parse_header_with_bom_and_whitespace():
    data = "\ufeffshape_id, shape_pt_lat ,shape_pt_lon,shape_pt_sequence\nS,1.0,2.0,1\n"
    shapes = parse_gtfs_shapes(io.StringIO(data))
    assert shapes["S"] == [ShapePoint(1.0, 2.0, 1)]


def test_parse_missing_required_column():
    data = "shape_id,shape_pt_lat,shape_pt_sequence\nA,1.0,1\n"
    with pytest.raises(ValueError, match="shape_pt_lon"):
        parse_gtfs_shapes(io.StringIO(data))


def test_parse_empty_input():
    with pytest.raises(ValueError):
        parse_gtfs_shapes(io.StringIO(""))


def test_parse_header_only():
    data = "shape_id,shape_pt_lat,shape_pt_lon,shape_pt_sequence\n"
    assert parse_gtfs_shapes(io.StringIO(data)) == {}


def test_parse_skips_bad_rows(caplog):
    data = (
        "shape_id,shape_pt_lat,shape_pt_lon,shape_pt_sequence\n"
        "A,1.0,2.0,1\n"
        "A,not-a-number,2.0,2\n"
        ",1.0,2.0,3\n"
        "A,1.0\n"
        "A,1.1,2.1,4\n"
    )
    with caplog.at_level(logging.WARNING, logger="bustracker.gtfs"):
        shapes = parse_gtfs_shapes(io.StringIO(data))

    assert shapes == {"A": [ShapePoint(1.0, 2.0, 1), ShapePoint(1.1, 2.1, 4)]}

    messages = [record.getMessage() for record in caplog.records]
    assert len(messages) == 3
    assert "line 3" in messages[0]
    assert "line 4" in messages[1]
    assert "line 5" in messages[2]
