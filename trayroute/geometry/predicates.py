"""
trayroute/geometry/predicates.py - Line relationship predicates

Parallel / colinear / coplanar tests, point-to-line distances and the
bounding-box proximity filter used by every pairwise scan.
"""

import numpy as np

from .vector import Vec3

__all__ = [
    'is_parallel',
    'is_colinear',
    'is_coplanar',
    'is_overlap',
    'is_far_away',
    'distance_point_to_line',
    'distance_point_to_line_squared',
    'line_to_line_distance',
]


def _arr(p: Vec3) -> np.ndarray:
    return np.asarray(p, dtype=float)


def is_parallel(a: Vec3, b: Vec3, c: Vec3, d: Vec3, tolerance: float = 1e-5) -> bool:
    """
    True when direction a->b is parallel to c->d.

    Compares the squared cross-product length with tolerance squared.
    Zero-length directions are never parallel to anything.
    """
    v1 = _arr(b) - _arr(a)
    v2 = _arr(d) - _arr(c)
    if not v1.any() or not v2.any():
        return False
    cross = np.cross(v1, v2)
    return float(np.dot(cross, cross)) < tolerance * tolerance


def distance_point_to_line_squared(point: Vec3, line_start: Vec3, line_end: Vec3) -> float:
    """Squared distance from point to the infinite line start-end."""
    direction = _arr(line_end) - _arr(line_start)
    to_start = _arr(line_start) - _arr(point)
    dd = float(np.dot(direction, direction))
    if dd == 0:
        return float(np.dot(to_start, to_start))
    cross = np.cross(to_start, direction)
    return float(np.dot(cross, cross)) / dd


def distance_point_to_line(point: Vec3, line_start: Vec3, line_end: Vec3) -> float:
    return float(np.sqrt(distance_point_to_line_squared(point, line_start, line_end)))


def is_colinear(a: Vec3, b: Vec3, c: Vec3, d: Vec3,
                parallel_tolerance: float = 1e-5, tolerance: float = 1e-5) -> bool:
    """Parallel and either of c, d lies on line a-b (squared distance below tolerance)."""
    if not is_parallel(a, b, c, d, parallel_tolerance):
        return False
    if distance_point_to_line_squared(c, a, b) < tolerance:
        return True
    return distance_point_to_line_squared(d, a, b) < tolerance


def line_to_line_distance(a: Vec3, b: Vec3, c: Vec3, d: Vec3) -> float:
    """Length of the common perpendicular of lines a-b and c-d."""
    u = _arr(b) - _arr(a)
    v = _arr(d) - _arr(c)
    n = np.cross(u, v)
    nn = float(np.linalg.norm(n))
    if nn < 1e-12:
        # parallel lines: distance of c from a-b
        return distance_point_to_line(c, a, b)
    return abs(float(np.dot(_arr(c) - _arr(a), n))) / nn


def is_coplanar(a: Vec3, b: Vec3, c: Vec3, d: Vec3,
                tolerance: float = 0.01, parallel_tolerance: float = 1e-5) -> bool:
    """
    True when lines a-b and c-d lie in one plane.

    Parallel lines always share a plane; otherwise the common
    perpendicular must be shorter than tolerance.
    """
    if is_parallel(a, b, c, d, parallel_tolerance):
        return True
    return line_to_line_distance(a, b, c, d) < tolerance


def is_overlap(a: Vec3, b: Vec3, c: Vec3, d: Vec3, gap: float,
               parallel_tolerance: float = 1e-5, colinear_tolerance: float = 1e-5) -> bool:
    """Colinear segments whose mid-points are closer than half their summed lengths plus gap."""
    if not is_colinear(a, b, c, d, parallel_tolerance, colinear_tolerance):
        return False
    a, b, c, d = _arr(a), _arr(b), _arr(c), _arr(d)
    mid_gap = 2 * np.linalg.norm((a + b) / 2 - (c + d) / 2)
    return bool(mid_gap < np.linalg.norm(a - b) + np.linalg.norm(c - d) + gap)


def is_far_away(a1: Vec3, a2: Vec3, b1: Vec3, b2: Vec3, d: float = 0.1) -> bool:
    """Axis-aligned bounding boxes of the two segments are more than d apart on some axis."""
    lo_a = np.minimum(_arr(a1), _arr(a2))
    hi_a = np.maximum(_arr(a1), _arr(a2))
    lo_b = np.minimum(_arr(b1), _arr(b2))
    hi_b = np.maximum(_arr(b1), _arr(b2))
    return bool(np.any(lo_b - hi_a > d) or np.any(lo_a - hi_b > d))
