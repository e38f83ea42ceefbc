import pytest
import math
from hypothesis import given, strategies as st, assume
from bustracker.geometry import (
    GeoPoint,
    calculate_bearing,
    haversine_distance,
    interpolate,
)
from bustracker.smoothing import chaikin_smoothing, filter_close_points
from bustracker.corners import CORNER_SPEEDS, corner_speed, speed_profile
from bustracker.motion import MotionController

# Strategy for valid GPS coordinates
valid_lat = st.floats(-85.0, 85.0)
valid_lon = st.floats(-180.0, 180.0)
valid_point = st.builds(GeoPoint, lat=valid_lat, lng=valid_lon)

# Points clustered in a small area, like a real vehicle path
local_point = st.builds(
    GeoPoint, lat=st.floats(47.0, 47.01), lng=st.floats(8.0, 8.01)
)
local_path = st.lists(local_point, min_size=2, max_size=30)

ALLOWED_SPEEDS = {speed for _, speed in CORNER_SPEEDS} | {1.0}


class TestDistanceProperties:

    @given(valid_point, valid_point)
    def test_distance_is_non_negative_and_bounded(self, p1, p2):
        """Distance never exceeds half the circumference."""
        distance = haversine_distance(p1, p2)
        assert 0 <= distance <= math.pi * 6371000.0 + 1e-6

    @given(valid_point)
    def test_distance_to_self_is_zero(self, p):
        assert haversine_distance(p, p) == 0

    @given(valid_point, valid_point)
    def test_distance_is_symmetric(self, p1, p2):
        assert haversine_distance(p1, p2) == pytest.approx(
            haversine_distance(p2, p1), abs=1e-6
        )

    @given(valid_point, valid_point)
    def test_bearing_range(self, p1, p2):
        """Bearing is always in range [0, 360)."""
        assume(haversine_distance(p1, p2) > 1e-6)
        assert 0 <= calculate_bearing(p1, p2) < 360

    @given(valid_point, valid_point, st.floats(0.0, 1.0))
    def test_interpolation_stays_between_endpoints(self, p1, p2, fraction):
        result = interpolate(p1, p2, fraction)
        assert min(p1.lat, p2.lat) - 1e-9 <= result.lat <= max(p1.lat, p2.lat) + 1e-9
        assert min(p1.lng, p2.lng) - 1e-9 <= result.lng <= max(p1.lng, p2.lng) + 1e-9


class TestFilterProperties:

    @given(st.lists(local_point, max_size=40), st.floats(0.0, 0.01))
    def test_filter_keeps_first_and_preserves_order(self, points, threshold):
        result = filter_close_points(points, threshold)

        if points:
            assert result[0] == points[0]
        # Kept points appear in their original order
        iterator = iter(points)
        assert all(any(p == q for q in iterator) for p in result)

    @given(st.lists(local_point, max_size=40), st.floats(0.0, 0.01))
    def test_kept_points_are_separated(self, points, threshold):
        result = filter_close_points(points, threshold)
        for a, b in zip(result, result[1:]):
            assert math.hypot(b.lat - a.lat, b.lng - a.lng) > threshold

    @given(st.lists(local_point, max_size=40), st.floats(0.0, 0.01))
    def test_filter_is_idempotent(self, points, threshold):
        once = filter_close_points(points, threshold)
        assert filter_close_points(once, threshold) == once


class TestChaikinProperties:

    @given(local_path, st.integers(0, 3))
    def test_point_count_doubles_per_pass(self, path, iterations):
        assert len(chaikin_smoothing(path, iterations)) == len(path) * 2**iterations

    @given(local_path, st.integers(0, 3))
    def test_endpoints_preserved(self, path, iterations):
        result = chaikin_smoothing(path, iterations)
        assert result[0] == path[0]
        assert result[-1] == path[-1]

    @given(local_path, st.integers(1, 3))
    def test_result_within_input_bounds(self, path, iterations):
        result = chaikin_smoothing(path, iterations)
        eps = 1e-9
        assert all(
            min(p.lat for p in path) - eps <= q.lat <= max(p.lat for p in path) + eps
            and min(p.lng for p in path) - eps <= q.lng <= max(p.lng for p in path) + eps
            for q in result
        )


class TestSpeedProperties:

    @given(st.floats(0.0, 180.0), st.floats(0.0, 180.0))
    def test_corner_speed_monotonic(self, a, b):
        """Sharper corners are never faster."""
        if a <= b:
            assert corner_speed(a) <= corner_speed(b)
        else:
            assert corner_speed(a) >= corner_speed(b)

    @given(local_path, st.integers(-2, 40), st.integers(0, 6))
    def test_speed_profile_ranges(self, path, index, look_ahead):
        profile = speed_profile(path, index, look_ahead)

        assert profile.target_speed in ALLOWED_SPEEDS
        assert 0.0 < profile.target_speed <= profile.current_speed <= 1.0
        assert profile.distance_to_corner >= 0.0
        if profile.target_speed == 1.0:
            assert profile.current_speed == 1.0


class TestMotionProperties:

    @given(local_path, st.lists(st.floats(0.0, 1e12), min_size=1, max_size=20))
    def test_ticks_stay_on_path(self, path, ticks):
        controller = MotionController()
        controller.start(path)

        for elapsed in ticks:
            frame = controller.tick(elapsed)
            assert frame is not None
            assert 0 <= frame.segment_index < len(path) - 1
            assert 0.0 <= frame.fraction <= 1.0
            assert 0 <= controller.state.segment_index < len(path) - 1

    @given(local_path)
    def test_huge_tick_advances_exactly_one_segment(self, path):
        controller = MotionController()
        controller.start(path)

        frame = controller.tick(1e12)

        assert frame.fraction == 1.0
        assert frame.position.lat == pytest.approx(path[1].lat)
        assert frame.position.lng == pytest.approx(path[1].lng)
        assert controller.state.segment_index == 1 % (len(path) - 1)
