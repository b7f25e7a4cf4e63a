"""
trayroute/router/astar_router.py - Capacity-Aware Cable Router

A* search over the tray node graph for a single cable.

Each route:
1. Copies the network graph (the caller's graph is never touched)
2. Lands the start and goal points on sleeves or nearby segments
3. Searches with Manhattan cost and heuristic; nodes without room for
   the cable stay usable at a prohibitive cost, nodes carrying an
   excluded cable are skipped
4. Returns the path, or the best partial path with a diagnostic
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Set
import heapq
import logging
import math
import time

import numpy as np

from ..config import LayoutConfig, DEFAULT_CONFIG
from ..errors import ErrorCode, ErrorSeverity, LayoutIssue, create_lookup_issue, create_routing_issue
from ..geometry.vector import manhattan_distance
from ..schema.cable import Cable, RouteResult
from ..schema.node import Node, NodeType, SegmentEnd
from ..schema.spacing import SpacingTable
from ..network.graph import NodeGraph
from .capacity import node_can_take
from .landing import find_landings
from .path_utils import route_curve_points

__all__ = ['CableRouter', 'SearchState']

logger = logging.getLogger(__name__)

SOURCE = "router.astar"


@dataclass
class SearchState:
    """Parent-index search state over one graph arena."""
    g: List[float]
    parent: List[int]
    closed: List[bool]

    @classmethod
    def sized(cls, n: int) -> 'SearchState':
        return cls(g=[math.inf] * n, parent=[-1] * n, closed=[False] * n)

    def path_to(self, node_id: int) -> List[int]:
        path = []
        while node_id != -1:
            path.append(node_id)
            node_id = self.parent[node_id]
        path.reverse()
        return path


class CableRouter:
    """
    Routes cables through a tray node graph one at a time.

    Usage:
        router = CableRouter(spacing=SpacingTable.from_rows(rows))
        result = router.route(cable, cable.start, cable.goal, network.graph)
        if result.success:
            occupancy.lay(cable, result.node_ids)
    """

    def __init__(
        self,
        config: Optional[LayoutConfig] = None,
        spacing: Optional[SpacingTable] = None,
        cables: Optional[Dict[str, Cable]] = None,
    ):
        """
        Initialize router.

        Args:
            config: Layout configuration
            spacing: Spacing rules between cable classes (optional)
            cables: Known cables by tag, needed to space against laid cables
        """
        self.config = config or DEFAULT_CONFIG
        self.spacing = spacing
        self.cables: Dict[str, Cable] = dict(cables or {})
        self.issues: List[LayoutIssue] = []

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    def route(
        self,
        cable: Cable,
        start=None,
        goal=None,
        graph: Optional[NodeGraph] = None,
        previous_routes: Optional[Dict[str, List[str]]] = None,
    ) -> RouteResult:
        """
        Route one cable.

        Args:
            cable: Cable to route
            start: Start point (defaults to cable.start)
            goal: Goal point (defaults to cable.goal)
            graph: Network node graph
            previous_routes: Node tags of already routed cables by cable tag,
                used for exclusions in addition to laid cables on the nodes

        Returns:
            RouteResult
        """
        started = time.perf_counter()
        start = np.asarray(cable.start if start is None else start, dtype=float)
        goal = np.asarray(cable.goal if goal is None else goal, dtype=float)
        self.cables.setdefault(cable.tag, cable)

        work = graph.copy() if graph is not None else NodeGraph()
        excluded = self._excluded_nodes(cable, work, previous_routes or {})

        result = self._route_on(cable, start, goal, work, excluded)
        result.cable_tag = cable.tag
        result.routing_time_ms = (time.perf_counter() - started) * 1000
        if result.points:
            result.curve_points = route_curve_points(result.points, steps=self.config.curve_steps)

        if result.success:
            logger.debug(f"Routed {cable.tag} through {len(result.node_ids)} node(s), cost {result.cost:.3f}")
        else:
            logger.warning(f"Cable {cable.tag}: {result.diagnostic}")
        return result

    # =========================================================================
    # SETUP
    # =========================================================================

    def _excluded_nodes(self, cable: Cable, graph: NodeGraph,
                        previous_routes: Dict[str, List[str]]) -> Set[int]:
        """Nodes used by any cable in the exclusion list."""
        if not cable.exclusion_tags:
            return set()
        exclusions = set(cable.exclusion_tags)
        excluded = {n.node_id for n in graph if exclusions.intersection(n.laid_cables)}
        for other in exclusions:
            for tag in previous_routes.get(other, []):
                node = graph.find(tag)
                if node is None:
                    logger.warning(f"Excluded route node {tag} of {other} not in graph")
                    self.issues.append(create_lookup_issue(
                        f"Route node {tag} of excluded cable {other} not found",
                        SOURCE, subject=cable.tag))
                    continue
                excluded.add(node.node_id)
        return excluded

    def _synthetic_node(self, graph: NodeGraph, cable: Cable, point: np.ndarray, label: str) -> int:
        width = cable.od + self.config.synthetic_width_extra
        return graph.add_node(Node(
            point=point,
            width=width,
            node_type=NodeType.CABLE,
            segment_end=SegmentEnd.NONE,
            available_width=width,
        ), tag=f"{cable.tag}:{label}")

    # =========================================================================
    # SEARCH
    # =========================================================================

    def _route_on(self, cable: Cable, start: np.ndarray, goal: np.ndarray,
                  graph: NodeGraph, excluded: Set[int]) -> RouteResult:
        cfg = self.config

        # resolve both ends before adding synthetic nodes so landings
        # never pick them
        start_landings = find_landings(graph, start, cable.route_criteria, cable.od,
                                       excluded, f"{cable.tag}:start", cfg)
        if not start_landings:
            return self._no_landing(cable, "start", start)
        goal_landings = find_landings(graph, goal, cable.route_criteria, cable.od,
                                      excluded, f"{cable.tag}:goal", cfg)
        if not goal_landings:
            return self._no_landing(cable, "goal", goal)

        start_id = self._synthetic_node(graph, cable, start, "START")
        goal_id = self._synthetic_node(graph, cable, goal, "GOAL")
        for landing in start_landings:
            graph.connect(start_id, landing.node_id)
        for landing in goal_landings:
            graph.connect(goal_id, landing.node_id)

        feasible = [node_can_take(cable, n, self.cables, self.spacing) for n in graph]
        state = SearchState.sized(len(graph))
        terminal = self._search(graph, start_id, goal_id, excluded, feasible, state)

        if terminal == goal_id:
            ids = [i for i in state.path_to(goal_id) if i not in (start_id, goal_id)]
            degraded = any(not feasible[i] for i in ids)
            result = self._result(graph, ids, start, goal, state.g[goal_id])
            result.success = True
            result.degraded = degraded
            if degraded:
                blocked = [graph.get(i).tag for i in ids if not feasible[i]]
                result.diagnostic = (
                    f"Route passes {len(blocked)} node(s) without room for "
                    f"{cable.od}: {', '.join(blocked)}"
                )
                result.issue = create_routing_issue(
                    result.diagnostic, SOURCE, cable.tag,
                    code=ErrorCode.RTE_DEGRADED, severity=ErrorSeverity.WARNING)
            return result

        return self._partial(cable, graph, state, terminal, start_id, start, goal)

    def _search(self, graph: NodeGraph, start_id: int, goal_id: int, excluded: Set[int],
                feasible: List[bool], state: SearchState) -> int:
        """
        A* from start_id to goal_id.

        Returns:
            goal_id when reached, otherwise the expanded node nearest the goal
        """
        cfg = self.config
        nodes = graph.nodes
        goal_point = nodes[goal_id].point

        def heuristic(i: int) -> float:
            if feasible[i] and i not in excluded:
                return manhattan_distance(nodes[i].point, goal_point)
            return cfg.infeasible_heuristic

        state.g[start_id] = 0.0
        counter = 0
        open_heap = [(heuristic(start_id), counter, start_id)]
        nearest, nearest_dist = start_id, math.inf

        while open_heap:
            cfg.check_cancelled("A* search")
            _, _, current = heapq.heappop(open_heap)
            if state.closed[current]:
                continue
            state.closed[current] = True

            dist = round(manhattan_distance(nodes[current].point, goal_point), 3)
            if dist <= nearest_dist:
                nearest, nearest_dist = current, dist
            if current == goal_id:
                return goal_id

            for nb in nodes[current].connections:
                if state.closed[nb] or nb in excluded:
                    continue
                if feasible[nb]:
                    step = manhattan_distance(nodes[current].point, nodes[nb].point)
                else:
                    step = cfg.infeasible_edge_cost
                tentative = state.g[current] + step
                if tentative < state.g[nb]:
                    state.g[nb] = tentative
                    state.parent[nb] = current
                    counter += 1
                    heapq.heappush(open_heap, (tentative + heuristic(nb), counter, nb))

        return nearest

    # =========================================================================
    # RESULTS
    # =========================================================================

    def _result(self, graph: NodeGraph, ids: List[int], start: np.ndarray,
                goal: Optional[np.ndarray], cost: float) -> RouteResult:
        points = [start.copy()] + [graph.get(i).point.copy() for i in ids]
        if goal is not None:
            points.append(goal.copy())
        return RouteResult(
            node_ids=list(ids),
            node_tags=[graph.get(i).tag for i in ids],
            points=points,
            cost=cost,
        )

    def _partial(self, cable: Cable, graph: NodeGraph, state: SearchState, terminal: int,
                 start_id: int, start: np.ndarray, goal: np.ndarray) -> RouteResult:
        ids = [i for i in state.path_to(terminal) if i != start_id]
        result = self._result(graph, ids, start, None, 0.0 if not ids else state.g[terminal])
        result.degraded = True

        last = graph.get(terminal)
        away = manhattan_distance(last.point, goal)
        point_text = ", ".join(f"{c:.3f}" for c in last.point)
        result.diagnostic = (
            f"Route not found beyond {last.tag} ({point_text}) {away:.3f} away. "
            f"Path: {' > '.join(result.node_tags) or '(none)'}."
        )
        result.issue = create_routing_issue(
            result.diagnostic, SOURCE, cable.tag,
            code=ErrorCode.RTE_PARTIAL, severity=ErrorSeverity.WARNING)
        return result

    def _no_landing(self, cable: Cable, which: str, point: np.ndarray) -> RouteResult:
        message = f"No segment or sleeve available within range of the {which} point"
        issue = create_routing_issue(
            message, SOURCE, cable.tag, code=ErrorCode.RTE_NO_LANDING,
            detail=f"{which} point {np.round(point, 3).tolist()}")
        return RouteResult(diagnostic=message, issue=issue)
