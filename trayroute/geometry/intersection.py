"""
trayroute/geometry/intersection.py - Segment intersection solving

Two solvers are used by the network code:

- intersection_points: classifies the pair as parallel/colinear,
  coplanar or skew and returns the candidate meeting points (P on a-b,
  Q on c-d) when both lie inside their segments within a margin.
- closest_points_with_margins: the "decremented" closest-approach solve
  used for joint breaking and jumps. Each endpoint gets its own
  overshoot allowance, so a tray stopping just short of another still
  registers as meeting it.
"""

from typing import Optional, Tuple
import logging

import numpy as np

from .vector import Vec3, perpendicular_point_on_line, normalize
from .predicates import is_parallel, line_to_line_distance

__all__ = [
    'PointPair',
    'intersection_points',
    'closest_points_with_margins',
    'inside_with_margin',
]

logger = logging.getLogger(__name__)

PointPair = Tuple[np.ndarray, np.ndarray]


def inside_with_margin(point: np.ndarray, a: np.ndarray, b: np.ndarray, margin: float) -> bool:
    """|a-p| + |b-p| exceeds |a-b| by less than margin."""
    excess = np.linalg.norm(a - point) + np.linalg.norm(b - point) - np.linalg.norm(a - b)
    return bool(abs(excess) < margin)


def _colinear_meeting(a, b, c, d, gap_limit: float) -> Optional[PointPair]:
    # Nearest pair of endpoints; meeting point is their mid-point
    candidates = [
        (np.linalg.norm(c - a), c, a),
        (np.linalg.norm(d - b), d, b),
        (np.linalg.norm(a - d), a, d),
        (np.linalg.norm(c - b), c, b),
    ]
    gap, p1, p2 = min(candidates, key=lambda item: item[0])
    if gap >= gap_limit:
        return None
    p = (p1 + p2) / 2
    return p, p.copy()


def _coplanar_meeting(a, b, c, d, margin: float) -> Optional[PointPair]:
    # Feet of the perpendiculars from c and d onto a-b; the crossing
    # divides c-d in the ratio of the signed offsets.
    foot_c = perpendicular_point_on_line(c, a, b)
    foot_d = perpendicular_point_on_line(d, a, b)
    off_c = c - foot_c
    off_d = d - foot_d
    side = normalize(off_d if off_d.any() else off_c)
    sc = float(np.dot(off_c, side))
    sd = float(np.dot(off_d, side))
    if sd == sc:
        return None
    p = d + (c - d) * sd / (sd - sc)
    if inside_with_margin(p, a, b, margin) and inside_with_margin(p, c, d, margin):
        return p, p.copy()
    return None


def _skew_meeting(a, b, c, d, margin: float) -> Optional[PointPair]:
    d1 = b - a
    d2 = d - c
    w = c - a
    c1 = float(np.dot(w, d1))
    c2 = float(np.dot(w, d2))
    c3 = float(np.dot(d1, d2))
    c4 = float(np.dot(d1, d1))
    c5 = float(np.dot(d2, d2))
    k = c4 * c5 - c3 * c3
    if abs(k) < 1e-5:
        return None
    s = (c1 * c5 - c2 * c3) / k
    t = (c1 * c3 - c2 * c4) / k
    p = a + s * d1
    q = c + t * d2
    if inside_with_margin(p, a, b, margin) and inside_with_margin(q, c, d, margin):
        return p, q
    return None


def intersection_points(
    a: Vec3,
    b: Vec3,
    c: Vec3,
    d: Vec3,
    parallel_tolerance: float = 1e-5,
    coplanar_tolerance: float = 0.01,
    colinear_gap_limit: float = 1.5,
    coplanar_end_margin: float = 1.5,
    skew_end_margin: float = 0.01,
) -> Optional[PointPair]:
    """
    Candidate meeting points of segments a-b and c-d.

    Args:
        a, b: Ends of the first segment
        c, d: Ends of the second segment
        parallel_tolerance: Cross-product tolerance for the parallel case
        coplanar_tolerance: Common-perpendicular length below which the
            lines are handled as coplanar
        colinear_gap_limit: Colinear pairs with a larger end gap do not meet
        coplanar_end_margin: Inside-segment margin in the coplanar case
        skew_end_margin: Inside-segment margin in the skew case

    Returns:
        (P, Q) with P on a-b and Q on c-d, or None when the segments
        do not meet inside their margins
    """
    a, b, c, d = (np.asarray(p, dtype=float) for p in (a, b, c, d))

    if is_parallel(a, b, c, d, parallel_tolerance):
        # Only colinear parallels can meet
        if line_to_line_distance(a, b, c, d) > coplanar_tolerance:
            return None
        return _colinear_meeting(a, b, c, d, colinear_gap_limit)

    if line_to_line_distance(a, b, c, d) < coplanar_tolerance:
        return _coplanar_meeting(a, b, c, d, coplanar_end_margin)

    return _skew_meeting(a, b, c, d, skew_end_margin)


def closest_points_with_margins(
    a: Vec3,
    b: Vec3,
    c: Vec3,
    d: Vec3,
    gap_a: float,
    gap_b: float,
    gap_c: float,
    gap_d: float,
    max_dot: float = 0.99,
) -> Optional[PointPair]:
    """
    Closest points of lines a-b and c-d, accepted only near the segments.

    With P = a + s*u and Q = c + t*v (u, v unit directions), the pair is
    returned when -gap_a <= s <= |ab| + gap_b and -gap_c <= t <= |cd| + gap_d.

    Returns:
        (P, Q), or None for near-parallel lines (|u.v| >= max_dot) or
        when a closest point falls outside its margins
    """
    a, b, c, d = (np.asarray(p, dtype=float) for p in (a, b, c, d))
    u = normalize(b - a)
    v = normalize(d - c)
    if not u.any() or not v.any():
        return None

    uv = float(np.dot(u, v))
    if abs(uv) >= max_dot:
        return None

    denom = 1 - uv * uv
    s = (np.dot(c, u) - np.dot(a, u) - uv * np.dot(c, v) + uv * np.dot(a, v)) / denom
    t = (np.dot(a, v) - np.dot(c, v) - uv * np.dot(a, u) + uv * np.dot(c, u)) / denom

    len_ab = float(np.linalg.norm(b - a))
    len_cd = float(np.linalg.norm(d - c))
    if s >= -gap_a and t >= -gap_c and s <= len_ab + gap_b and t <= len_cd + gap_d:
        return a + s * u, c + t * v
    return None
