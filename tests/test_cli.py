import logging
import os
import shutil
import sys
from pathlib import Path

import pytest

from bustracker import cli
from bustracker.gtfs import ShapePoint
from bustracker.shape import Shape

FIXTURE = Path(__file__).parent / "fixtures" / "shapes.txt"


@pytest.fixture(autouse=True)
def restore_root_logger():
    """main() attaches a console handler to the root logger; undo it."""
    root_logger = logging.getLogger()
    handlers = list(root_logger.handlers)
    level = root_logger.level
    yield
    root_logger.handlers = handlers
    root_logger.setLevel(level)


@pytest.fixture
def shapes_file(tmp_path):
    target = tmp_path / "shapes.txt"
    shutil.copy(FIXTURE, target)
    return target


def run_main(monkeypatch, *args):
    monkeypatch.setattr(sys, "argv", ["bustracker", *map(str, args)])
    cli.main()


def test_main_writes_map(monkeypatch, capsys, shapes_file, tmp_path):
    output = tmp_path / "out.html"
    run_main(monkeypatch, shapes_file, "--output", output, "--no-open", "--duration", 5000)

    assert output.exists()
    assert "Shape R1" in output.read_text(encoding="utf-8")

    stdout = capsys.readouterr().out
    assert "Animated shapes (1):" in stdout
    assert "R1: 9 raw -> 8 filtered -> 32 smoothed points" in stdout
    assert "50 frames" in stdout


def test_main_auto_output_filename(monkeypatch, shapes_file, tmp_path):
    run_main(monkeypatch, shapes_file, "--no-open", "--duration", 1000)
    assert (tmp_path / "shapes map.html").exists()


def test_main_multiple_shape_ids(monkeypatch, capsys, shapes_file, tmp_path):
    output = tmp_path / "out.html"
    run_main(
        monkeypatch,
        shapes_file,
        "--shape-id", "R2",
        "--shape-id", "R3",
        "--output", output,
        "--no-open",
        "--duration", 1000,
    )

    stdout = capsys.readouterr().out
    assert "Animated shapes (2):" in stdout
    assert "R2:" in stdout
    # A single point shape still "animates" in place
    assert "R3: 1 raw -> 1 filtered -> 1 smoothed points" in stdout


def test_main_opens_browser(monkeypatch, shapes_file, tmp_path):
    opened = []
    monkeypatch.setattr(cli.webbrowser, "open", opened.append)
    output = tmp_path / "out.html"

    run_main(monkeypatch, shapes_file, "--output", output, "--duration", 500)

    assert opened == [f"file://{os.path.abspath(output)}"]


def test_main_list_shapes(monkeypatch, capsys, shapes_file):
    run_main(monkeypatch, shapes_file, "--list-shapes")

    lines = capsys.readouterr().out.splitlines()
    assert [line.split()[0] for line in lines] == ["R1", "R2", "R3"]
    assert "9 points" in lines[0]


def test_main_unknown_shape_id(monkeypatch, capsys, shapes_file, tmp_path):
    with pytest.raises(SystemExit) as excinfo:
        run_main(
            monkeypatch, shapes_file, "--shape-id", "nope", "--output", tmp_path / "x.html"
        )
    assert excinfo.value.code == 1
    # Available shapes are listed to help the user
    assert "R1" in capsys.readouterr().out


def test_main_missing_file(monkeypatch, tmp_path):
    with pytest.raises(SystemExit) as excinfo:
        run_main(monkeypatch, tmp_path / "missing.txt", "--no-open")
    assert excinfo.value.code == 1


def test_main_invalid_shapes_file(monkeypatch, tmp_path):
    bad = tmp_path / "bad.txt"
    bad.write_text("route_id,route_name\n1,Main\n", encoding="utf-8")
    with pytest.raises(SystemExit) as excinfo:
        run_main(monkeypatch, bad, "--no-open")
    assert excinfo.value.code == 1


def test_main_without_filename(monkeypatch):
    with pytest.raises(SystemExit) as excinfo:
        run_main(monkeypatch)
    assert excinfo.value.code == 1


@pytest.mark.parametrize("option", ["--frame-interval", "--base-speed"])
def test_main_rejects_non_positive_options(monkeypatch, shapes_file, option):
    with pytest.raises(SystemExit) as excinfo:
        run_main(monkeypatch, shapes_file, option, 0)
    assert excinfo.value.code == 2


def test_main_metrics_block(monkeypatch, caplog, shapes_file, tmp_path):
    with caplog.at_level(logging.DEBUG, logger="bustracker"):
        run_main(
            monkeypatch,
            shapes_file,
            "--output", tmp_path / "out.html",
            "--no-open",
            "--metrics",
            "--log-level", "DEBUG",
            "--duration", 500,
        )

    messages = [record.getMessage() for record in caplog.records]
    assert "=== BUSTRACKER_METRICS ===" in messages
    assert "total_shapes=3" in messages
    assert "filtered_points[R1]=8" in messages


def test_config_from_args():
    args = cli.create_argument_parser().parse_args(
        ["shapes.txt", "--min-separation", "0.001", "--look-ahead", "5", "--metrics"]
    )
    config = cli.config_from_args(args)

    assert config.min_separation == 0.001
    assert config.look_ahead == 5
    assert config.metrics is True
    assert config.smoothing_iterations == 2


class TestSelectShapes:
    """Tests for select_shapes."""

    @pytest.fixture
    def shapes(self):
        return {
            shape_id: Shape(shape_id, [ShapePoint(0.0, float(i), 1)])
            for i, shape_id in enumerate(["a", "b", "c"])
        }

    def test_defaults_to_first_shape(self, shapes):
        assert list(cli.select_shapes(shapes, None)) == ["a"]

    def test_keeps_request_order(self, shapes):
        assert list(cli.select_shapes(shapes, ["c", "a"])) == ["c", "a"]

    def test_reports_missing_ids(self, shapes):
        with pytest.raises(KeyError) as excinfo:
            cli.select_shapes(shapes, ["a", "x", "y"])
        assert excinfo.value.args[0] == "x, y"


def test_determine_output_filename_prefers_argument():
    assert cli.determine_output_filename("shapes.txt", "given.html") == "given.html"
