"""
trayroute.geometry - Geometry primitives

Vector helpers, line predicates, intersection solvers and oriented
tray volumes.
"""

from .vector import (
    as_vector,
    length,
    distance,
    normalize,
    angle_between,
    perpendicular_point_on_line,
    nearest_point_on_segment,
    projection_fraction,
    quadratic_bezier,
    manhattan_distance,
    round_point,
)
from .predicates import (
    is_parallel,
    is_colinear,
    is_coplanar,
    is_overlap,
    is_far_away,
    distance_point_to_line,
    distance_point_to_line_squared,
    line_to_line_distance,
)
from .intersection import (
    intersection_points,
    closest_points_with_margins,
)
from .volume import (
    SIDE_END1,
    SIDE_END2,
    SIDE_MID,
    segment_frame,
    point_inside_segment,
    segment_box_corners,
)

__all__ = [
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
    'is_parallel',
    'is_colinear',
    'is_coplanar',
    'is_overlap',
    'is_far_away',
    'distance_point_to_line',
    'distance_point_to_line_squared',
    'line_to_line_distance',
    'intersection_points',
    'closest_points_with_margins',
    'SIDE_END1',
    'SIDE_END2',
    'SIDE_MID',
    'segment_frame',
    'point_inside_segment',
    'segment_box_corners',
]
