"""
tests/unit/test_cable_router.py - Cable Router Tests

Tests for the capacity-aware A* router: optimality, capacity
avoidance, degraded and partial routes, exclusions and landing
failures.
"""

import networkx as nx
import numpy as np
import pytest

from trayroute.config import LayoutConfig
from trayroute.errors import ErrorCategory, ErrorCode, LayoutCancelledError
from trayroute.geometry.vector import manhattan_distance
from trayroute.network.graph import NodeGraph
from trayroute.router.astar_router import CableRouter, SearchState
from trayroute.router.landing import find_landings
from trayroute.schema.cable import Cable
from trayroute.schema.node import Node


def _block(graph, node_ids, width: float = 0.03):
    for node_id in node_ids:
        graph.get(node_id).available_width = width


def _reference_cost(graph, cable: Cable, config: LayoutConfig) -> float:
    """Cheapest start-to-goal cost over every simple path of the landed graph."""
    work = graph.copy()
    starts = find_landings(work, cable.start, cable.route_criteria, cable.od,
                           set(), f"{cable.tag}:start", config)
    goals = find_landings(work, cable.goal, cable.route_criteria, cable.od,
                          set(), f"{cable.tag}:goal", config)
    G = work.to_networkx()
    for landing in starts:
        G.add_edge("S", landing.node_id,
                   cost=manhattan_distance(cable.start, work.get(landing.node_id).point))
    for landing in goals:
        G.add_edge(landing.node_id, "G",
                   cost=manhattan_distance(work.get(landing.node_id).point, cable.goal))
    return min(nx.path_weight(G, p, weight="cost") for p in nx.all_simple_paths(G, "S", "G"))


# =============================================================================
# SUCCESSFUL ROUTES
# =============================================================================

class TestRouting:
    """Routes on networks with room to spare."""

    def test_route_on_loop(self, build, loop_segments, power_cable):
        network = build(loop_segments)
        result = CableRouter().route(power_cable, graph=network.graph)

        assert result.success
        assert not result.degraded
        assert result.cable_tag == "PWR-001"
        assert result.issue is None
        assert np.allclose(result.points[0], power_cable.start)
        assert np.allclose(result.points[-1], power_cable.goal)
        assert len(result.points) == len(result.node_ids) + 2
        assert result.node_tags[0].endswith("PWR-001:start")
        assert result.node_tags[-1].endswith("PWR-001:goal")

    def test_route_cost_is_optimal(self, build, loop_segments, power_cable, config):
        network = build(loop_segments)
        result = CableRouter(config).route(power_cable, graph=network.graph)

        assert result.cost == pytest.approx(_reference_cost(network.graph, power_cable, config))

    def test_caller_graph_untouched(self, build, loop_segments, power_cable):
        network = build(loop_segments)
        before = [(n.available_width, list(n.laid_cables), set(n.connections)) for n in network.graph]
        size = len(network.graph)

        CableRouter().route(power_cable, graph=network.graph)

        assert len(network.graph) == size
        after = [(n.available_width, list(n.laid_cables), set(n.connections)) for n in network.graph]
        assert after == before

    def test_curve_points_follow_route(self, build, loop_segments, power_cable):
        network = build(loop_segments)
        result = CableRouter().route(power_cable, graph=network.graph)

        assert len(result.curve_points) >= 2
        assert np.allclose(result.curve_points[0], power_cable.start)
        assert np.allclose(result.curve_points[-1], power_cable.goal)

    def test_explicit_points_override_cable(self, build, isolated_segment):
        network = build(isolated_segment)
        cable = Cable(tag="C1", od=0.02)
        result = CableRouter().route(cable, (1, -1, 0), (9, -1, 0), network.graph)
        assert result.success
        assert np.allclose(result.points[0], (1, -1, 0))

    def test_route_result_to_dict(self, build, isolated_segment):
        network = build(isolated_segment)
        cable = Cable(tag="C1", od=0.02, start=(1, -1, 0), goal=(9, -1, 0))
        data = CableRouter().route(cable, graph=network.graph).to_dict()
        assert data['success'] is True
        assert data['issue'] is None
        assert data['points'][0] == [1.0, -1.0, 0.0]


# =============================================================================
# CAPACITY
# =============================================================================

class TestCapacityRouting:
    """Routing around and through full trays."""

    def test_full_tee_avoided(self, build, loop_segments):
        """A cable that does not fit the bottom tee goes round the loop instead."""
        network = build(loop_segments)
        blocked = {n.node_id for n in network.graph.nodes_near((5, 0, 0), 0.5)}
        assert len(blocked) == 3
        _block(network.graph, blocked)
        cable = Cable(tag="P1", od=0.05, start=(2, -1, 0), goal=(8, -1, 0))

        result = CableRouter().route(cable, graph=network.graph)

        assert result.success
        assert not result.degraded
        assert not blocked.intersection(result.node_ids)

    def test_no_alternative_gives_degraded_route(self, build, chain_segments):
        network = build(chain_segments)
        blocked = [n.node_id for n in network.graph if n.segment_uid == "B"]
        _block(network.graph, blocked)
        cable = Cable(tag="P1", od=0.05, start=(1, -1, 0), goal=(19, 11, 0))

        result = CableRouter().route(cable, graph=network.graph)

        assert result.success
        assert result.degraded
        assert set(blocked) <= set(result.node_ids)
        assert result.issue.code == ErrorCode.RTE_DEGRADED
        for node_id in blocked:
            assert network.graph.get(node_id).tag in result.diagnostic

    def test_spacing_against_laid_cable(self, build, isolated_segment, spacing_table):
        network = build(isolated_segment)
        for node in network.graph:
            node.laid_cables.append("P1")
            node.available_width = 0.207
        cables = {"P1": Cable(tag="P1", od=0.1, route_criteria="power")}
        cable = Cable(tag="P2", od=0.12, route_criteria="power", start=(1, -1, 0), goal=(9, -1, 0))

        plain = CableRouter(cables=cables).route(cable, graph=network.graph)
        spaced = CableRouter(spacing=spacing_table, cables=cables).route(cable, graph=network.graph)

        assert plain.success and not plain.degraded
        assert spaced.success and spaced.degraded
        assert spaced.issue.code == ErrorCode.RTE_DEGRADED


# =============================================================================
# FAILURES
# =============================================================================

class TestRouteFailures:
    """Partial routes and landing failures."""

    def test_partial_route(self, build, segment):
        network = build([
            segment("A", (0, 0, 0), (10, 0, 0)),
            segment("B", (0, 50, 0), (10, 50, 0)),
        ])
        cable = Cable(tag="P1", od=0.05, start=(5, -1, 0), goal=(5, 51, 0))

        result = CableRouter().route(cable, graph=network.graph)

        assert not result.success
        assert result.degraded
        assert result.diagnostic.startswith("Route not found beyond")
        assert "51.000 away" in result.diagnostic
        assert len(result.node_tags) == 1
        assert np.allclose(result.points[-1], (5, 0, 0))
        assert result.issue.code == ErrorCode.RTE_PARTIAL

    def test_nearest_tie_goes_to_last_expanded(self):
        """Two expanded nodes equally near an unreachable goal: the later one ends the route."""
        graph = NodeGraph()
        start = graph.add_node(Node(point=(0, 0, 0), width=0.3))
        first = graph.add_node(Node(point=(1, 0, 0), width=0.3))
        second = graph.add_node(Node(point=(1, 1, 0), width=0.3))
        goal = graph.add_node(Node(point=(5, 0.5, 0), width=0.3))
        graph.connect(start, first)
        graph.connect(first, second)
        state = SearchState.sized(len(graph))

        terminal = CableRouter()._search(graph, start, goal, set(), [True] * len(graph), state)

        assert terminal == second
        assert state.path_to(second) == [start, first, second]

    @pytest.mark.parametrize("which,start,goal", [
        ("start", (100, 100, 0), (5, -1, 0)),
        ("goal", (5, -1, 0), (100, 100, 0)),
    ])
    def test_no_landing(self, build, isolated_segment, which, start, goal):
        network = build(isolated_segment)
        cable = Cable(tag="P1", od=0.05, start=start, goal=goal)

        result = CableRouter().route(cable, graph=network.graph)

        assert not result.success
        assert not result.degraded
        assert result.node_tags == []
        assert f"{which} point" in result.diagnostic
        assert result.issue.code == ErrorCode.RTE_NO_LANDING

    def test_cancel_check_stops_search(self, build, loop_segments, power_cable):
        network = build(loop_segments)
        router = CableRouter(LayoutConfig(cancel_check=lambda: True))
        with pytest.raises(LayoutCancelledError):
            router.route(power_cable, graph=network.graph)


# =============================================================================
# EXCLUSIONS
# =============================================================================

class TestExclusions:
    """Cables that must not share trays."""

    EXCLUDED_SEGMENTS = ("BOTTOM", "BOTTOM-02", "RUNG")

    def _excluded_ids(self, network):
        return {n.node_id for n in network.graph if n.segment_uid in self.EXCLUDED_SEGMENTS}

    def test_laid_cable_excluded(self, build, loop_segments):
        network = build(loop_segments)
        excluded = self._excluded_ids(network)
        for node_id in excluded:
            network.graph.get(node_id).laid_cables.append("X1")
        cable = Cable(tag="C2", od=0.02, exclusion_tags=["X1"], start=(2, -1, 0), goal=(8, -1, 0))

        result = CableRouter().route(cable, graph=network.graph)

        assert result.success
        assert not excluded.intersection(result.node_ids)

    def test_previous_route_excluded(self, build, loop_segments):
        network = build(loop_segments)
        excluded = self._excluded_ids(network)
        previous = {"X1": [network.graph.get(i).tag for i in excluded] + ["N999999"]}
        cable = Cable(tag="C2", od=0.02, exclusion_tags=["X1"], start=(2, -1, 0), goal=(8, -1, 0))
        router = CableRouter()

        result = router.route(cable, graph=network.graph, previous_routes=previous)

        assert result.success
        assert not excluded.intersection(result.node_ids)
        assert len(router.issues) == 1
        assert router.issues[0].category == ErrorCategory.LOOKUP

    def test_without_exclusion_takes_bottom(self, build, loop_segments):
        network = build(loop_segments)
        cable = Cable(tag="C2", od=0.02, start=(2, -1, 0), goal=(8, -1, 0))
        result = CableRouter().route(cable, graph=network.graph)
        assert self._excluded_ids(network).intersection(result.node_ids)
