"""
trayroute/router/bidirectional.py - Bidirectional alternate pathfinder

Width-constrained path search between two network nodes, run from both
ends at once. Used to look for alternate paths wide enough for a
bundle; unlike CableRouter it ignores route criteria and laid cables
and only checks the physical width of each node.

When the two searches never meet, the closest pair of discovered nodes
within the jump distance is bridged instead.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
import heapq
import logging

import numpy as np

from ..geometry.vector import distance
from ..network.graph import NodeGraph
from ..schema.node import Node

__all__ = ['find_path', 'find_node_at', 'Frontier']

logger = logging.getLogger(__name__)

# Two points closer than this are the same node location
POINT_MATCH_TOLERANCE = 1e-6


@dataclass
class Frontier:
    """Search state of one direction."""
    origin: int
    target_point: np.ndarray
    g: Dict[int, float] = field(default_factory=dict)
    parent: Dict[int, Optional[int]] = field(default_factory=dict)
    closed: set = field(default_factory=set)
    heap: List[Tuple[float, int, int]] = field(default_factory=list)
    counter: int = 0

    def push(self, node_id: int, g: float, point: np.ndarray) -> None:
        self.counter += 1
        heapq.heappush(self.heap, (g + distance(point, self.target_point), self.counter, node_id))

    def best_priority(self) -> float:
        return self.heap[0][0] if self.heap else float('inf')

    def path_to(self, node_id: int) -> List[int]:
        """Node ids from origin to node_id."""
        path = []
        current: Optional[int] = node_id
        while current is not None:
            path.append(current)
            current = self.parent[current]
        path.reverse()
        return path


def find_node_at(graph: NodeGraph, point) -> Optional[Node]:
    """Node located at point, or None."""
    p = np.asarray(point, dtype=float)
    for node in graph:
        if distance(node.point, p) < POINT_MATCH_TOLERANCE:
            return node
    return None


def _expand(graph: NodeGraph, frontier: Frontier, other: Frontier,
            path_width: float) -> Optional[int]:
    """
    Pop and expand one node of frontier.

    Returns:
        The popped node id when it is already closed by the other side
    """
    while frontier.heap:
        _, _, current = heapq.heappop(frontier.heap)
        if current in frontier.closed:
            continue
        frontier.closed.add(current)
        if current in other.closed:
            return current

        node = graph.get(current)
        for nb in graph.neighbors(current):
            if nb.node_id in frontier.closed or nb.width < path_width:
                continue
            tentative = frontier.g[current] + distance(node.point, nb.point)
            if tentative < frontier.g.get(nb.node_id, float('inf')):
                frontier.g[nb.node_id] = tentative
                frontier.parent[nb.node_id] = current
                frontier.push(nb.node_id, tentative, nb.point)
        return None
    return None


def _best_jump(graph: NodeGraph, forward: Frontier, backward: Frontier,
               path_width: float, jump_distance: float) -> Optional[Tuple[int, int]]:
    """Discovered (forward, backward) pair within jump distance with lowest total cost."""
    best = None
    best_cost = float('inf')
    for f_id, f_cost in forward.g.items():
        f_node = graph.get(f_id)
        if f_node.width < path_width:
            continue
        for b_id, b_cost in backward.g.items():
            b_node = graph.get(b_id)
            if b_node.width < path_width:
                continue
            gap = distance(f_node.point, b_node.point)
            if gap > jump_distance:
                continue
            total = f_cost + b_cost + gap
            if total < best_cost:
                best, best_cost = (f_id, b_id), total
    return best


def find_path(graph: NodeGraph, start_point, goal_point, path_width: float,
              jump_distance: float) -> Optional[List[np.ndarray]]:
    """
    Find a path of nodes at least path_width wide between two node locations.

    Args:
        graph: Network node graph
        start_point: Location of the start node
        goal_point: Location of the goal node
        path_width: Minimum node width along the path
        jump_distance: Largest gap bridged when the searches do not meet

    Returns:
        Point list from start to goal, or None when no path exists
    """
    start = find_node_at(graph, start_point)
    goal = find_node_at(graph, goal_point)
    if start is None or goal is None:
        logger.warning(f"find_path: no node at {'start' if start is None else 'goal'} point")
        return None

    forward = Frontier(origin=start.node_id, target_point=goal.point)
    backward = Frontier(origin=goal.node_id, target_point=start.point)
    for frontier, node in ((forward, start), (backward, goal)):
        frontier.g[node.node_id] = 0.0
        frontier.parent[node.node_id] = None
        frontier.push(node.node_id, 0.0, node.point)

    meeting = None
    while forward.heap or backward.heap:
        if forward.best_priority() <= backward.best_priority():
            meeting = _expand(graph, forward, backward, path_width)
        else:
            meeting = _expand(graph, backward, forward, path_width)
        if meeting is not None:
            break

    if meeting is not None:
        ids = forward.path_to(meeting) + list(reversed(backward.path_to(meeting)))[1:]
        logger.debug(f"find_path: searches met at {graph.get(meeting).tag}")
    else:
        jump = _best_jump(graph, forward, backward, path_width, jump_distance)
        if jump is None:
            logger.debug("find_path: no meeting and no jump within range")
            return None
        f_id, b_id = jump
        ids = forward.path_to(f_id) + list(reversed(backward.path_to(b_id)))[int(f_id == b_id):]
        logger.debug(f"find_path: jumped {graph.get(f_id).tag} -> {graph.get(b_id).tag}")

    return [graph.get(i).point.copy() for i in ids]
