"""
tests/unit/test_geometry.py - Geometry Primitive Tests

Tests for vector helpers, line predicates, intersection solving and
the oriented segment volume.
"""

import math

import numpy as np
import pytest

from trayroute.geometry.vector import (
    normalize,
    angle_between,
    manhattan_distance,
    round_point,
    nearest_point_on_segment,
    perpendicular_point_on_line,
    projection_fraction,
    quadratic_bezier,
    as_vector,
)
from trayroute.geometry.predicates import (
    is_parallel,
    is_colinear,
    is_coplanar,
    is_overlap,
    is_far_away,
    distance_point_to_line,
    line_to_line_distance,
)
from trayroute.geometry.intersection import (
    intersection_points,
    closest_points_with_margins,
    inside_with_margin,
)
from trayroute.geometry.volume import (
    point_inside_segment,
    segment_box_corners,
    SIDE_END1,
    SIDE_MID,
    SIDE_NONE,
)


# =============================================================================
# VECTOR TESTS
# =============================================================================

class TestVector:
    """Tests for vector.py"""

    def test_normalize_zero_stays_zero(self):
        """Zero vector has no direction."""
        assert not normalize((0, 0, 0)).any()

    def test_normalize_unit_length(self):
        v = normalize((3, 4, 0))
        assert np.allclose(v, (0.6, 0.8, 0))

    def test_angle_between_right_angle(self):
        assert angle_between((1, 0, 0), (0, 1, 0)) == pytest.approx(math.pi / 2)

    def test_angle_between_nearly_aligned_is_finite(self):
        """Rounding the dot product keeps acos in range."""
        angle = angle_between((1, 0, 0), (1, 1e-9, 0))
        assert angle == pytest.approx(0.0)

    def test_angle_between_zero_vector(self):
        assert angle_between((0, 0, 0), (1, 0, 0)) == 0.0

    def test_manhattan_distance(self):
        assert manhattan_distance((0, 0, 0), (1, -2, 3)) == pytest.approx(6.0)

    def test_round_point_clears_negative_zero(self):
        p = round_point((-0.0001, 1.23456, 0.0))
        assert np.allclose(p, (0.0, 1.235, 0.0))
        assert not np.signbit(p[0])

    def test_nearest_point_on_segment_clamps(self):
        p = nearest_point_on_segment((5, 5, 0), (0, 0, 0), (2, 0, 0))
        assert np.allclose(p, (2, 0, 0))

    def test_perpendicular_point_on_line_unclamped(self):
        p = perpendicular_point_on_line((5, 5, 0), (0, 0, 0), (2, 0, 0))
        assert np.allclose(p, (5, 0, 0))

    def test_projection_fraction(self):
        assert projection_fraction((2.5, 1, 0), (0, 0, 0), (10, 0, 0)) == pytest.approx(0.25)

    def test_quadratic_bezier_midpoint(self):
        p = quadratic_bezier((0, 0, 0), (1, 1, 0), (2, 0, 0), 0.5)
        assert np.allclose(p, (1, 0.5, 0))

    def test_as_vector_rejects_2d(self):
        with pytest.raises(ValueError):
            as_vector((1, 2))


# =============================================================================
# PREDICATE TESTS
# =============================================================================

class TestPredicates:
    """Tests for predicates.py"""

    def test_parallel(self):
        assert is_parallel((0, 0, 0), (1, 0, 0), (0, 1, 0), (2, 1, 0))
        assert is_parallel((0, 0, 0), (1, 0, 0), (3, 1, 0), (2, 1, 0))

    def test_not_parallel(self):
        assert not is_parallel((0, 0, 0), (1, 0, 0), (0, 0, 0), (0, 1, 0))

    def test_zero_length_never_parallel(self):
        assert not is_parallel((0, 0, 0), (0, 0, 0), (0, 0, 0), (1, 0, 0))

    def test_colinear(self):
        assert is_colinear((0, 0, 0), (1, 0, 0), (2, 0, 0), (3, 0, 0))
        assert not is_colinear((0, 0, 0), (1, 0, 0), (0, 1, 0), (1, 1, 0))

    def test_distance_point_to_line(self):
        assert distance_point_to_line((3, 2, 0), (0, 0, 0), (1, 0, 0)) == pytest.approx(2.0)

    def test_line_to_line_distance_skew(self):
        d = line_to_line_distance((0, 0, 0), (1, 0, 0), (0, 0, 1), (0, 1, 1))
        assert d == pytest.approx(1.0)

    def test_coplanar(self):
        assert is_coplanar((-1, 0, 0), (1, 0, 0), (0, -1, 0), (0, 1, 0))
        assert is_coplanar((0, 0, 0), (1, 0, 0), (0, 5, 3), (1, 5, 3))  # parallel
        assert not is_coplanar((0, 0, 0), (1, 0, 0), (0, 0, 1), (0, 1, 1))

    def test_overlap(self):
        assert is_overlap((0, 0, 0), (5, 0, 0), (4, 0, 0), (8, 0, 0), 0.02)

    def test_touching_colinear_counts_as_overlap(self):
        """Sharing an end point is within the gap allowance."""
        assert is_overlap((0, 0, 0), (5, 0, 0), (5, 0, 0), (8, 0, 0), 0.02)

    def test_separated_colinear_not_overlap(self):
        assert not is_overlap((0, 0, 0), (5, 0, 0), (6, 0, 0), (8, 0, 0), 0.02)

    def test_far_away(self):
        assert is_far_away((0, 0, 0), (1, 0, 0), (0, 5, 0), (1, 5, 0), 0.1)
        assert not is_far_away((0, 0, 0), (1, 0, 0), (0, 0.05, 0), (1, 0.05, 0), 0.1)


# =============================================================================
# INTERSECTION TESTS
# =============================================================================

class TestIntersection:
    """Tests for intersection.py"""

    def test_inside_with_margin(self):
        a, b = np.array([0.0, 0, 0]), np.array([10.0, 0, 0])
        assert inside_with_margin(np.array([5.0, 0, 0]), a, b, 0.01)
        assert not inside_with_margin(np.array([12.0, 0, 0]), a, b, 0.01)

    def test_coplanar_crossing(self):
        pair = intersection_points((-1, 0, 0), (1, 0, 0), (0, -1, 0), (0, 1, 0))
        assert pair is not None
        p, q = pair
        assert np.allclose(p, (0, 0, 0))
        assert np.allclose(q, (0, 0, 0))

    def test_skew_closest_points(self):
        pair = intersection_points((-1, 0, 0), (1, 0, 0), (0, -1, 1), (0, 1, 1))
        assert pair is not None
        p, q = pair
        assert np.allclose(p, (0, 0, 0))
        assert np.allclose(q, (0, 0, 1))

    def test_colinear_meeting_midpoint(self):
        pair = intersection_points((0, 0, 0), (1, 0, 0), (1.5, 0, 0), (3, 0, 0))
        assert pair is not None
        assert np.allclose(pair[0], (1.25, 0, 0))

    def test_parallel_offset_lines_do_not_meet(self):
        assert intersection_points((0, 0, 0), (1, 0, 0), (0, 1, 0), (1, 1, 0)) is None

    def test_closest_points_with_margins(self):
        pair = closest_points_with_margins(
            (-1, 0, 0), (1, 0, 0), (0, -1, 1), (0, 1, 1), 0.01, 0.01, 0.01, 0.01)
        assert pair is not None
        assert np.allclose(pair[0], (0, 0, 0))
        assert np.allclose(pair[1], (0, 0, 1))

    def test_closest_points_outside_margin(self):
        pair = closest_points_with_margins(
            (2, 0, 0), (4, 0, 0), (0, -1, 1), (0, 1, 1), 0.01, 0.01, 0.01, 0.01)
        assert pair is None

    def test_closest_points_overshoot_within_margin(self):
        """A tray stopping just short of another still meets it."""
        pair = closest_points_with_margins(
            (0.003, 0, 0), (4, 0, 0), (0, -1, 0), (0, 1, 0), 0.004, 0.004, 0.004, 0.004)
        assert pair is not None
        assert np.allclose(pair[0], (0, 0, 0))

    def test_closest_points_near_parallel_refused(self):
        pair = closest_points_with_margins(
            (0, 0, 0), (1, 0, 0), (0, 1, 0), (1, 1.01, 0), 1, 1, 1, 1)
        assert pair is None


# =============================================================================
# VOLUME TESTS
# =============================================================================

class TestVolume:
    """Tests for volume.py"""

    SEG = ((0, 0, 0), (10, 0, 0), 0.3, 0.1, (0, 0, 1))

    def test_point_inside_mid(self):
        inside, side = point_inside_segment((5, 0, 0.05), *self.SEG)
        assert inside
        assert side == SIDE_MID

    def test_point_on_end_face(self):
        inside, side = point_inside_segment((0, 0, 0.05), *self.SEG)
        assert inside
        assert side == SIDE_END1

    def test_point_above_tray_outside(self):
        inside, side = point_inside_segment((5, 0, 0.5), *self.SEG)
        assert not inside
        assert side == SIDE_NONE

    def test_point_beside_tray_outside(self):
        inside, _ = point_inside_segment((5, 0.2, 0.05), *self.SEG)
        assert not inside

    def test_box_corners(self):
        corners = segment_box_corners(*self.SEG)
        assert len(corners) == 8
        zs = sorted(round(float(c[2]), 6) for c in corners)
        assert zs == [0.0] * 4 + [0.1] * 4
