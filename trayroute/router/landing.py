"""
trayroute/router/landing.py - Route end landings

A cable's start and goal points are equipment locations, not network
nodes. Each end is landed on the network either at nearby sleeve nodes
or, failing that, at temporary nodes projected onto nearby segments.

Landing nodes are added to the graph passed in, which is always the
router's own copy of the network.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Set, Tuple
import logging

import numpy as np

from ..config import LayoutConfig, DEFAULT_CONFIG
from ..geometry.vector import distance, nearest_point_on_segment
from ..schema.node import Node, NodeType, SegmentEnd
from ..network.graph import NodeGraph
from .capacity import has_capacity

__all__ = [
    'Landing',
    'segment_spans',
    'sleeve_landings',
    'segment_landings',
    'find_landings',
]

logger = logging.getLogger(__name__)


@dataclass
class Landing:
    """Candidate network entry for one route end."""
    node_id: int
    distance: float
    temporary: bool = False


def segment_spans(graph: NodeGraph) -> Dict[str, Tuple[Node, Node]]:
    """
    (end1 node, end2 node) of every tray segment in the graph.

    Segment geometry after trimming is exactly the span between these
    two nodes, so landings need no access to the segment list.
    """
    ends: Dict[str, Dict[int, Node]] = {}
    for node in graph:
        if node.node_type != NodeType.SEGMENT or node.segment_uid is None:
            continue
        if node.segment_end in (SegmentEnd.END1, SegmentEnd.END2):
            ends.setdefault(node.segment_uid, {})[node.segment_end] = node
    return {
        uid: (pair[SegmentEnd.END1], pair[SegmentEnd.END2])
        for uid, pair in ends.items()
        if SegmentEnd.END1 in pair and SegmentEnd.END2 in pair
    }


def sleeve_landings(graph: NodeGraph, point: np.ndarray, criteria: str, od: float,
                    search_range: float) -> List[Landing]:
    """Sleeve nodes within range that accept the cable, nearest first."""
    found = []
    for node in graph.nodes_of_type(NodeType.SLEEVE):
        d = distance(node.point, point)
        if d > search_range:
            continue
        if not node.accepts(criteria) or not has_capacity(node.available_width, od):
            continue
        found.append(Landing(node.node_id, d))
    found.sort(key=lambda l: (l.distance, l.node_id))
    return found


def segment_landings(graph: NodeGraph, point: np.ndarray, criteria: str, od: float,
                     search_range: float, limit: int, label: str) -> List[Landing]:
    """
    Temporary landing nodes on the nearest usable segments.

    A segment qualifies when either end node is within range, it accepts
    the cable's route criteria and both end nodes have room for the
    cable. The landing sits at the closest point of the segment span and
    is linked to both end nodes.

    Args:
        graph: Router-owned graph; landing nodes are added to it
        point: Route end point
        criteria: Cable route criteria
        od: Cable outer diameter
        search_range: Maximum end-node distance
        limit: Maximum number of landings
        label: Tag suffix keeping start and goal landings apart

    Returns:
        Created landings, nearest first
    """
    point = np.asarray(point, dtype=float)
    options = []
    for uid, (n1, n2) in segment_spans(graph).items():
        if min(distance(n1.point, point), distance(n2.point, point)) > search_range:
            continue
        if not (n1.accepts(criteria) and n2.accepts(criteria)):
            continue
        if not (has_capacity(n1.available_width, od) and has_capacity(n2.available_width, od)):
            continue
        foot = nearest_point_on_segment(point, n1.point, n2.point)
        options.append((distance(foot, point), uid, n1, n2, foot))

    options.sort(key=lambda o: (o[0], o[1]))

    landings = []
    for d, uid, n1, n2, foot in options[:limit]:
        # the landing inherits the tighter of the two ends
        tight = n1 if n1.available_width <= n2.available_width else n2
        node_id = graph.add_node(Node(
            point=foot,
            width=n1.width,
            face=n1.face,
            node_type=NodeType.SEGMENT,
            segment_uid=uid,
            segment_end=SegmentEnd.NONE,
            allowable_types=list(n1.allowable_types),
            available_width=tight.available_width,
            laid_cables=list(tight.laid_cables),
        ), tag=f"{n1.tag}-{label}")
        graph.connect(node_id, n1.node_id)
        graph.connect(node_id, n2.node_id)
        landings.append(Landing(node_id, d, temporary=True))
    return landings


def find_landings(graph: NodeGraph, point: np.ndarray, criteria: str, od: float,
                  excluded: Set[int], label: str,
                  config: Optional[LayoutConfig] = None) -> List[Landing]:
    """
    Landing candidates for one route end.

    Sleeves within the sleeve range win outright; otherwise temporary
    segment landings are made. At most config.landing_candidates are
    returned and excluded nodes are never among them.
    """
    cfg = config or DEFAULT_CONFIG
    candidates = sleeve_landings(graph, point, criteria, od, cfg.sleeve_landing_range)
    if not candidates:
        candidates = segment_landings(graph, point, criteria, od,
                                      cfg.segment_landing_range,
                                      cfg.landing_candidates, label)
    candidates = candidates[:cfg.landing_candidates]
    kept = [c for c in candidates if c.node_id not in excluded]
    if len(kept) < len(candidates):
        logger.debug(f"Dropped {len(candidates) - len(kept)} excluded landing(s) for {label}")
    return kept
