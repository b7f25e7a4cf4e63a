"""
trayroute/network/graph.py - Node arena and routing graph

NodeGraph owns every Node of a layout. A node's identity is its index
in the arena; tags are resolved through a dictionary so lookups never
scan the node list. Connections are stored on the nodes as id sets and
are always kept symmetric.
"""

from typing import Dict, Iterator, List, Optional, Tuple, Set
import logging

import networkx as nx
import numpy as np

from ..schema.node import Node, NodeType, SegmentEnd, node_tag, compute_available_width
from ..schema.sleeve import Sleeve
from ..geometry.vector import manhattan_distance

__all__ = ['NodeGraph']

logger = logging.getLogger(__name__)


class NodeGraph:
    """
    Arena of routing nodes.

    Usage:
        graph = NodeGraph()
        a = graph.add_node(Node(point=(0, 0, 0), width=0.3))
        b = graph.add_node(Node(point=(1, 0, 0), width=0.3))
        graph.connect(a, b)
        graph.find("N000001")  # -> node b
    """

    def __init__(self):
        self._nodes: List[Node] = []
        self._by_tag: Dict[str, int] = {}

    # =========================================================================
    # ACCESS
    # =========================================================================

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[Node]:
        return iter(self._nodes)

    def __contains__(self, node_id: int) -> bool:
        return 0 <= node_id < len(self._nodes)

    @property
    def nodes(self) -> List[Node]:
        return list(self._nodes)

    def get(self, node_id: Optional[int]) -> Optional[Node]:
        """Node by arena index, or None."""
        if node_id is None or not 0 <= node_id < len(self._nodes):
            return None
        return self._nodes[node_id]

    def find(self, tag: str) -> Optional[Node]:
        """Node by display tag, or None."""
        index = self._by_tag.get(tag)
        return None if index is None else self._nodes[index]

    def tag_map(self) -> Dict[int, str]:
        return {n.node_id: n.tag for n in self._nodes}

    def neighbors(self, node_id: int) -> List[Node]:
        node = self.get(node_id)
        if node is None:
            return []
        return [self._nodes[i] for i in sorted(node.connections)]

    def nodes_of_type(self, node_type: NodeType) -> List[Node]:
        return [n for n in self._nodes if n.node_type == node_type]

    def dead_ends(self) -> List[Node]:
        """Nodes with exactly one connection."""
        return [n for n in self._nodes if len(n.connections) == 1]

    def nodes_near(self, point, radius: float) -> List[Node]:
        p = np.asarray(point, dtype=float)
        return [n for n in self._nodes if np.linalg.norm(n.point - p) < radius]

    # =========================================================================
    # MUTATION
    # =========================================================================

    def add_node(self, node: Node, tag: Optional[str] = None) -> int:
        """
        Add a node to the arena.

        Args:
            node: Node to add; its node_id and tag are assigned here
            tag: Override for the display tag (defaults to "N" + index)

        Returns:
            Arena index of the node
        """
        index = len(self._nodes)
        node.node_id = index
        node.tag = tag or node_tag(index)
        if node.tag in self._by_tag:
            raise ValueError(f"Duplicate node tag {node.tag}")
        self._nodes.append(node)
        self._by_tag[node.tag] = index
        return index

    def connect(self, a: int, b: int) -> bool:
        """Connect two nodes both ways. Returns False for unknown ids or a == b."""
        if a == b:
            return False
        node_a = self.get(a)
        node_b = self.get(b)
        if node_a is None or node_b is None:
            logger.warning(f"connect: unknown node id {a if node_a is None else b}")
            return False
        node_a.connections.add(b)
        node_b.connections.add(a)
        return True

    def disconnect(self, a: int, b: int) -> None:
        node_a = self.get(a)
        node_b = self.get(b)
        if node_a is not None:
            node_a.connections.discard(b)
        if node_b is not None:
            node_b.connections.discard(a)

    def connect_all(self, node_ids: List[int]) -> None:
        """Fully connect a group of nodes."""
        for i, a in enumerate(node_ids):
            for b in node_ids[i + 1:]:
                self.connect(a, b)

    def add_sleeve(self, sleeve: Sleeve) -> Tuple[int, int]:
        """
        Add the two end nodes of a sleeve and connect them.

        Sleeve nodes are as wide as the sleeve bore; no tray margins apply.
        """
        ids = []
        for end, point in ((SegmentEnd.END1, sleeve.start), (SegmentEnd.END2, sleeve.end)):
            ids.append(self.add_node(Node(
                point=point,
                width=sleeve.diameter,
                node_type=NodeType.SLEEVE,
                segment_uid=sleeve.uid,
                segment_end=end,
                allowable_types=list(sleeve.allowable_types),
                available_width=sleeve.diameter,
            )))
        self.connect(ids[0], ids[1])
        sleeve.node1, sleeve.node2 = ids
        return ids[0], ids[1]

    def apply_margins(self, margin_side1: float, margin_side2: float, margin_spare: float) -> None:
        """Reset available width of every SEGMENT node from its physical width."""
        for node in self._nodes:
            if node.node_type == NodeType.SEGMENT and not node.laid_cables:
                node.available_width = compute_available_width(
                    node.width, margin_side1, margin_side2, margin_spare)

    # =========================================================================
    # SNAPSHOTS / CHECKS
    # =========================================================================

    def copy(self) -> 'NodeGraph':
        """Owned copy: new Node objects, same ids and tags."""
        clone = NodeGraph()
        clone._nodes = [n.copy() for n in self._nodes]
        clone._by_tag = dict(self._by_tag)
        return clone

    def asymmetric_links(self) -> List[Tuple[int, int]]:
        """(a, b) pairs where a lists b but b does not list a."""
        bad = []
        for node in self._nodes:
            for other in node.connections:
                target = self.get(other)
                if target is None or node.node_id not in target.connections:
                    bad.append((node.node_id, other))
        return bad

    def is_symmetric(self) -> bool:
        return not self.asymmetric_links()

    def edge_count(self) -> int:
        return sum(len(n.connections) for n in self._nodes) // 2

    def to_networkx(self) -> nx.Graph:
        """
        Export as a networkx graph.

        Nodes carry tag, point, width, available_width and node_type;
        edges carry the Manhattan length as 'cost'.
        """
        G = nx.Graph()
        for node in self._nodes:
            G.add_node(
                node.node_id,
                tag=node.tag,
                point=tuple(node.point),
                width=node.width,
                available_width=node.available_width,
                node_type=node.node_type.value,
            )
        for node in self._nodes:
            for other in node.connections:
                if other > node.node_id:
                    G.add_edge(node.node_id, other,
                               cost=manhattan_distance(node.point, self._nodes[other].point))
        return G

    def component_count(self) -> int:
        return nx.number_connected_components(self.to_networkx()) if self._nodes else 0
