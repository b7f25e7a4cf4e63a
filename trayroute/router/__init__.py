"""
trayroute.router - Cable routing

Capacity bookkeeping, route end landings, the capacity-aware A* cable
router and the bidirectional alternate pathfinder.
"""

from .capacity import has_capacity, space_for_cable, required_width, node_can_take, CableOccupancy
from .landing import Landing, segment_spans, sleeve_landings, segment_landings, find_landings
from .astar_router import CableRouter, SearchState
from .bidirectional import find_path, find_node_at
from .path_utils import route_length, route_curve_points, simplify_points

__all__ = [
    'has_capacity',
    'space_for_cable',
    'required_width',
    'node_can_take',
    'CableOccupancy',
    'Landing',
    'segment_spans',
    'sleeve_landings',
    'segment_landings',
    'find_landings',
    'CableRouter',
    'SearchState',
    'find_path',
    'find_node_at',
    'route_length',
    'route_curve_points',
    'simplify_points',
]
