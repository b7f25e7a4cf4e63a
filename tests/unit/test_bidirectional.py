"""
tests/unit/test_bidirectional.py - Alternate Pathfinder and Path Utility Tests
"""

import numpy as np
import pytest

from trayroute.network.graph import NodeGraph
from trayroute.router.bidirectional import find_node_at, find_path
from trayroute.router.path_utils import route_curve_points, route_length, simplify_points
from trayroute.schema.node import Node


def _line_graph(n: int, width: float = 0.3) -> NodeGraph:
    graph = NodeGraph()
    ids = [graph.add_node(Node(point=(i, 0, 0), width=width)) for i in range(n)]
    for a, b in zip(ids, ids[1:]):
        graph.connect(a, b)
    return graph


def _ring_graph() -> NodeGraph:
    """
    Two branches between (0,0,0) and (4,0,0): a short narrow one along
    y = 0 and a longer wide one along y = 2.
    """
    graph = NodeGraph()
    start = graph.add_node(Node(point=(0, 0, 0), width=0.3))
    narrow = graph.add_node(Node(point=(2, 0, 0), width=0.1))
    wide_a = graph.add_node(Node(point=(0, 2, 0), width=0.3))
    wide_b = graph.add_node(Node(point=(4, 2, 0), width=0.3))
    goal = graph.add_node(Node(point=(4, 0, 0), width=0.3))
    graph.connect(start, narrow)
    graph.connect(narrow, goal)
    graph.connect(start, wide_a)
    graph.connect(wide_a, wide_b)
    graph.connect(wide_b, goal)
    return graph


# =============================================================================
# BIDIRECTIONAL SEARCH
# =============================================================================

class TestFindPath:
    """Tests for bidirectional.py"""

    def test_straight_line(self):
        graph = _line_graph(5)
        path = find_path(graph, (0, 0, 0), (4, 0, 0), 0.2, 0.6)
        assert [p[0] for p in path] == [0, 1, 2, 3, 4]

    def test_same_start_and_goal(self):
        graph = _line_graph(3)
        path = find_path(graph, (1, 0, 0), (1, 0, 0), 0.2, 0.6)
        assert len(path) == 1
        assert np.allclose(path[0], (1, 0, 0))

    def test_narrow_branch_skipped(self):
        path = find_path(_ring_graph(), (0, 0, 0), (4, 0, 0), 0.2, 0.6)
        assert [tuple(p) for p in path] == [(0, 0, 0), (0, 2, 0), (4, 2, 0), (4, 0, 0)]

    def test_narrow_branch_used_when_wide_enough(self):
        path = find_path(_ring_graph(), (0, 0, 0), (4, 0, 0), 0.05, 0.6)
        assert [tuple(p) for p in path] == [(0, 0, 0), (2, 0, 0), (4, 0, 0)]

    def test_blocked_without_jump_returns_none(self):
        graph = _line_graph(5)
        graph.get(2).width = 0.1
        assert find_path(graph, (0, 0, 0), (4, 0, 0), 0.2, 0.6) is None

    def test_jump_bridges_gap(self):
        graph = _line_graph(5)
        graph.get(2).width = 0.1
        path = find_path(graph, (0, 0, 0), (4, 0, 0), 0.2, 2.5)
        assert [p[0] for p in path] == [0, 1, 3, 4]

    def test_unknown_point_returns_none(self):
        graph = _line_graph(3)
        assert find_path(graph, (0, 5, 0), (2, 0, 0), 0.2, 0.6) is None

    def test_find_node_at(self):
        graph = _line_graph(3)
        assert find_node_at(graph, (2, 0, 0)).node_id == 2
        assert find_node_at(graph, (2, 0.01, 0)) is None

    def test_graph_not_modified(self):
        graph = _line_graph(4)
        find_path(graph, (0, 0, 0), (3, 0, 0), 0.2, 0.6)
        assert len(graph) == 4
        assert graph.edge_count() == 3


# =============================================================================
# PATH UTILITIES
# =============================================================================

class TestPathUtils:
    """Tests for path_utils.py"""

    def test_route_length(self):
        points = [np.array(p, dtype=float) for p in [(0, 0, 0), (3, 0, 0), (3, 4, 0)]]
        assert route_length(points) == pytest.approx(7.0)
        assert route_length(points[:1]) == 0.0

    def test_simplify_drops_repeats_and_straight_runs(self):
        points = [(0, 0, 0), (0, 0, 0), (1, 0, 0), (2, 0, 0), (2, 1, 0)]
        simplified = simplify_points(points)
        assert [tuple(p) for p in simplified] == [(0, 0, 0), (2, 0, 0), (2, 1, 0)]

    def test_simplify_keeps_reversal(self):
        points = [(0, 0, 0), (2, 0, 0), (1, 0, 0)]
        assert len(simplify_points(points)) == 3

    def test_curve_points_round_corner(self):
        points = [(0, 0, 0), (2, 0, 0), (2, 2, 0)]
        curve = route_curve_points(points, radius=0.3, steps=4)

        assert np.allclose(curve[0], (0, 0, 0))
        assert np.allclose(curve[-1], (2, 2, 0))
        assert len(curve) == 2 + 5
        assert np.allclose(curve[1], (1.7, 0, 0))
        assert np.allclose(curve[-2], (2, 0.3, 0))
        # the corner itself is only a control point
        assert not any(np.allclose(p, (2, 0, 0)) for p in curve)

    def test_curve_cut_limited_by_short_leg(self):
        points = [(0, 0, 0), (0.2, 0, 0), (0.2, 2, 0)]
        curve = route_curve_points(points, radius=0.3, steps=2)
        assert np.allclose(curve[1], (0.1, 0, 0))

    def test_straight_route_unchanged(self):
        curve = route_curve_points([(0, 0, 0), (1, 0, 0), (2, 0, 0)])
        assert [tuple(p) for p in curve] == [(0, 0, 0), (2, 0, 0)]
