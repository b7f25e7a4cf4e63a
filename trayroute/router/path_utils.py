"""
trayroute/router/path_utils.py - Route path utilities

Length and rendering helpers for routed point lists.
"""

from typing import List, Sequence
import logging

import numpy as np

from ..geometry.vector import distance, normalize, quadratic_bezier

__all__ = [
    'route_length',
    'route_curve_points',
    'simplify_points',
]

logger = logging.getLogger(__name__)


# =============================================================================
# MEASUREMENT
# =============================================================================

def route_length(points: Sequence[np.ndarray]) -> float:
    """Euclidean length of a polyline."""
    return sum(distance(points[i], points[i + 1]) for i in range(len(points) - 1))


def simplify_points(points: Sequence[np.ndarray], tolerance: float = 1e-6) -> List[np.ndarray]:
    """
    Drop repeated points and interior points on a straight run.

    Args:
        points: Route polyline
        tolerance: Distance below which two points are the same

    Returns:
        New list of point copies
    """
    kept: List[np.ndarray] = []
    for p in points:
        p = np.asarray(p, dtype=float)
        if kept and distance(kept[-1], p) < tolerance:
            continue
        if len(kept) >= 2:
            u = normalize(kept[-1] - kept[-2])
            v = normalize(p - kept[-1])
            if np.linalg.norm(np.cross(u, v)) < tolerance and np.dot(u, v) > 0:
                kept[-1] = p.copy()
                continue
        kept.append(p.copy())
    return kept


# =============================================================================
# RENDERING
# =============================================================================

def route_curve_points(points: Sequence[np.ndarray], radius: float = 0.3,
                       steps: int = 5) -> List[np.ndarray]:
    """
    Point set for drawing a route with rounded corners.

    Each interior corner is replaced by a quadratic Bezier from radius
    before the corner to radius after it, with the corner itself as the
    control point. The cut is limited to half of each adjacent leg so
    neighbouring curves never cross.

    Args:
        points: Route polyline
        radius: Corner cut distance
        steps: Bezier subdivisions per corner

    Returns:
        Curve points, first and last equal to the route ends
    """
    path = simplify_points(points)
    if len(path) < 3:
        return [p.copy() for p in path]

    curve: List[np.ndarray] = [path[0].copy()]
    for i in range(1, len(path) - 1):
        prev_pt, corner, next_pt = path[i - 1], path[i], path[i + 1]
        cut = min(radius, distance(prev_pt, corner) / 2, distance(corner, next_pt) / 2)
        entry = corner + normalize(prev_pt - corner) * cut
        leave = corner + normalize(next_pt - corner) * cut
        for k in range(steps + 1):
            curve.append(quadratic_bezier(entry, corner, leave, k / steps))
    curve.append(path[-1].copy())
    return curve
