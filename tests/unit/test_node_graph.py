"""
tests/unit/test_node_graph.py - Node Graph Tests

Tests for the node arena, connectivity bookkeeping and networkx export.
"""

import networkx as nx
import pytest

from trayroute.network.graph import NodeGraph
from trayroute.schema.node import Node, NodeType
from trayroute.schema.sleeve import Sleeve


def _line_graph(n: int) -> NodeGraph:
    graph = NodeGraph()
    ids = [graph.add_node(Node(point=(i, 0, 0), width=0.3)) for i in range(n)]
    for a, b in zip(ids, ids[1:]):
        graph.connect(a, b)
    return graph


class TestNodeGraph:
    """Tests for graph.py"""

    def test_add_node_assigns_id_and_tag(self):
        graph = NodeGraph()
        a = graph.add_node(Node(point=(0, 0, 0), width=0.3))
        b = graph.add_node(Node(point=(1, 0, 0), width=0.3))
        assert (a, b) == (0, 1)
        assert graph.get(b).tag == "N000001"
        assert graph.find("N000001") is graph.get(b)

    def test_duplicate_tag_rejected(self):
        graph = NodeGraph()
        graph.add_node(Node(point=(0, 0, 0)), tag="X")
        with pytest.raises(ValueError):
            graph.add_node(Node(point=(1, 0, 0)), tag="X")

    def test_lookups_return_none(self):
        graph = _line_graph(2)
        assert graph.get(7) is None
        assert graph.get(None) is None
        assert graph.find("N999999") is None

    def test_connect_is_symmetric(self):
        graph = _line_graph(3)
        assert 1 in graph.get(0).connections
        assert 0 in graph.get(1).connections
        assert graph.is_symmetric()
        assert graph.edge_count() == 2

    def test_connect_rejects_self_and_unknown(self):
        graph = _line_graph(2)
        assert not graph.connect(0, 0)
        assert not graph.connect(0, 42)
        assert graph.edge_count() == 1

    def test_disconnect(self):
        graph = _line_graph(3)
        graph.disconnect(0, 1)
        assert graph.edge_count() == 1
        assert graph.is_symmetric()

    def test_connect_all(self):
        graph = NodeGraph()
        ids = [graph.add_node(Node(point=(i, 0, 0))) for i in range(4)]
        graph.connect_all(ids)
        assert graph.edge_count() == 6

    def test_dead_ends(self):
        graph = _line_graph(4)
        assert [n.node_id for n in graph.dead_ends()] == [0, 3]

    def test_nodes_near(self):
        graph = _line_graph(5)
        near = graph.nodes_near((2, 0, 0), 1.5)
        assert sorted(n.node_id for n in near) == [1, 2, 3]

    def test_copy_is_owned(self):
        graph = _line_graph(3)
        clone = graph.copy()
        clone.connect(0, 2)
        clone.get(1).available_width = 0.0
        clone.add_node(Node(point=(9, 9, 9)))
        assert graph.edge_count() == 2
        assert graph.get(1).available_width == 0.3
        assert len(graph) == 3
        assert clone.find("N000001").node_id == 1

    def test_add_sleeve(self):
        graph = NodeGraph()
        sleeve = Sleeve(tag="SL1", points=[(0, 0, 0), (0, 0, 3)], diameter=0.15)
        a, b = graph.add_sleeve(sleeve)
        assert sleeve.node1 == a and sleeve.node2 == b
        assert graph.get(a).node_type == NodeType.SLEEVE
        assert graph.get(a).available_width == 0.15
        assert b in graph.get(a).connections

    def test_apply_margins_skips_laid_nodes(self):
        graph = _line_graph(2)
        graph.get(1).laid_cables.append("C1")
        graph.get(1).available_width = 0.1
        graph.apply_margins(0.035, 0.035, 0.1)
        assert graph.get(0).available_width == pytest.approx(0.207)
        assert graph.get(1).available_width == 0.1

    def test_to_networkx(self):
        graph = NodeGraph()
        a = graph.add_node(Node(point=(0, 0, 0), width=0.3))
        b = graph.add_node(Node(point=(1, 2, 0), width=0.3))
        graph.connect(a, b)
        G = graph.to_networkx()
        assert isinstance(G, nx.Graph)
        assert G.nodes[a]['tag'] == "N000000"
        assert G.edges[a, b]['cost'] == pytest.approx(3.0)

    def test_component_count(self):
        graph = _line_graph(3)
        graph.add_node(Node(point=(10, 0, 0)))
        assert graph.component_count() == 2
        assert NodeGraph().component_count() == 0
