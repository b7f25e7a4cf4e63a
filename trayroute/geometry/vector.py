"""
trayroute/geometry/vector.py - Vector helpers

Thin numpy helpers shared by the predicates, the intersection solvers
and the network builder. Points are float arrays of shape (3,).
"""

from typing import Sequence, Union
import math

import numpy as np

__all__ = [
    'Vec3',
    'as_vector',
    'length',
    'distance',
    'normalize',
    'angle_between',
    'perpendicular_point_on_line',
    'nearest_point_on_segment',
    'projection_fraction',
    'quadratic_bezier',
    'manhattan_distance',
    'round_point',
]

Vec3 = Union[np.ndarray, Sequence[float]]

UP = np.array([0.0, 0.0, 1.0])
PLUS_Y = np.array([0.0, 1.0, 0.0])


def as_vector(p: Vec3) -> np.ndarray:
    """Coerce a point-like into a float array of shape (3,)."""
    v = np.asarray(p, dtype=float)
    if v.shape != (3,):
        raise ValueError(f"Expected a 3D point, got shape {v.shape}")
    return v


def length(v: Vec3) -> float:
    return float(np.linalg.norm(v))


def distance(a: Vec3, b: Vec3) -> float:
    return float(np.linalg.norm(np.asarray(a, dtype=float) - np.asarray(b, dtype=float)))


def normalize(v: Vec3) -> np.ndarray:
    """Unit vector of v; the zero vector stays zero."""
    v = np.asarray(v, dtype=float)
    n = np.linalg.norm(v)
    if n == 0 or not np.isfinite(n):
        return np.zeros(3)
    return v / n


def angle_between(a: Vec3, b: Vec3) -> float:
    """
    Angle between two vectors in radians.

    The dot product is rounded to 4 places before acos so that
    nearly-aligned legs do not produce NaN. A zero vector gives 0.
    """
    ua = normalize(a)
    ub = normalize(b)
    if not ua.any() or not ub.any():
        return 0.0
    dot = round(float(np.dot(ua, ub)), 4)
    return math.acos(max(-1.0, min(1.0, dot)))


def perpendicular_point_on_line(point: Vec3, line_start: Vec3, line_end: Vec3) -> np.ndarray:
    """Foot of the perpendicular from point to the infinite line start-end."""
    start = np.asarray(line_start, dtype=float)
    direction = np.asarray(line_end, dtype=float) - start
    if not direction.any():
        return start.copy()
    u = direction / np.linalg.norm(direction)
    return start + np.dot(np.asarray(point, dtype=float) - start, u) * u


def projection_fraction(point: Vec3, end1: Vec3, end2: Vec3) -> float:
    """Position of point's projection along end1-end2, 0 at end1 and 1 at end2."""
    e1 = np.asarray(end1, dtype=float)
    d = np.asarray(end2, dtype=float) - e1
    dd = float(np.dot(d, d))
    if dd == 0:
        return 0.0
    return float(np.dot(np.asarray(point, dtype=float) - e1, d)) / dd


def nearest_point_on_segment(point: Vec3, end1: Vec3, end2: Vec3) -> np.ndarray:
    """Projection of point onto the segment, clamped to its ends."""
    s = min(1.0, max(0.0, projection_fraction(point, end1, end2)))
    e1 = np.asarray(end1, dtype=float)
    return e1 + s * (np.asarray(end2, dtype=float) - e1)


def quadratic_bezier(p0: Vec3, p1: Vec3, p2: Vec3, t: float) -> np.ndarray:
    """Point at t on the quadratic Bezier with control point p1."""
    p0, p1, p2 = (np.asarray(p, dtype=float) for p in (p0, p1, p2))
    return (1 - t) ** 2 * p0 + 2 * t * (1 - t) * p1 + t ** 2 * p2


def manhattan_distance(a: Vec3, b: Vec3) -> float:
    return float(np.abs(np.asarray(a, dtype=float) - np.asarray(b, dtype=float)).sum())


def round_point(p: Vec3, decimals: int = 3) -> np.ndarray:
    # + 0.0 clears negative zeros
    return np.round(np.asarray(p, dtype=float), decimals) + 0.0

