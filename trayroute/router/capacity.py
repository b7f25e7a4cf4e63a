"""
trayroute/router/capacity.py - Tray capacity and cable occupancy

A node can take a cable when its available width covers the cable's
outer diameter plus the spacing required against the last cable laid
through it. Laying a cable consumes that same amount.

Capacity comparisons use ">=" everywhere: a cable that exactly fills
the remaining width fits.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional
import logging

from ..schema.cable import Cable
from ..schema.node import Node
from ..schema.spacing import SpacingTable
from ..network.graph import NodeGraph

__all__ = [
    'has_capacity',
    'space_for_cable',
    'required_width',
    'node_can_take',
    'CableOccupancy',
]

logger = logging.getLogger(__name__)

# Float noise allowance on capacity comparisons
CAPACITY_EPSILON = 1e-9


def has_capacity(available: float, required: float) -> bool:
    """True when available width covers required width."""
    return available + CAPACITY_EPSILON >= required


def space_for_cable(cable: Cable, node: Node, cables: Dict[str, Cable],
                    spacing: Optional[SpacingTable]) -> float:
    """
    Gap needed between cable and the last cable laid through node.

    Only the most recently laid cable is considered. Unknown cable tags
    and missing spacing tables need no gap.
    """
    last_tag = node.last_laid_cable
    if not last_tag or spacing is None:
        return 0.0
    last = cables.get(last_tag)
    if last is None:
        logger.debug(f"Last cable {last_tag} on {node.tag} not in the cable list, no spacing applied")
        return 0.0
    return spacing.gap_between(cable.route_criteria, cable.od, last.route_criteria, last.od)


def required_width(cable: Cable, node: Node, cables: Dict[str, Cable],
                   spacing: Optional[SpacingTable]) -> float:
    """Outer diameter plus spacing against the last laid cable."""
    return cable.od + space_for_cable(cable, node, cables, spacing)


def node_can_take(cable: Cable, node: Node, cables: Dict[str, Cable],
                  spacing: Optional[SpacingTable]) -> bool:
    return has_capacity(node.available_width, required_width(cable, node, cables, spacing))


@dataclass
class CableOccupancy:
    """
    Records laid cables on a node graph.

    Routing cables one after another with lay() in between makes each
    route see the capacity left by the earlier ones.
    """

    graph: NodeGraph
    spacing: Optional[SpacingTable] = None
    cables: Dict[str, Cable] = field(default_factory=dict)

    def register(self, cables: Iterable[Cable]) -> None:
        for cable in cables:
            self.cables[cable.tag] = cable

    def lay(self, cable: Cable, node_ids: List[int]) -> List[int]:
        """
        Lay cable through the given nodes.

        Ids not in the graph (route-local landing nodes) are skipped, as
        is any node already carrying the cable.

        Returns:
            Ids of the nodes the cable was laid on
        """
        self.cables.setdefault(cable.tag, cable)
        laid = []
        for node_id in node_ids:
            node = self.graph.get(node_id)
            if node is None or cable.tag in node.laid_cables:
                continue
            needed = required_width(cable, node, self.cables, self.spacing)
            if not has_capacity(node.available_width, needed):
                logger.warning(
                    f"Laying {cable.tag} on {node.tag} over capacity "
                    f"({node.available_width:.4f} < {needed:.4f})"
                )
            node.available_width = max(0.0, node.available_width - needed)
            node.laid_cables.append(cable.tag)
            laid.append(node_id)
        logger.debug(f"Laid {cable.tag} on {len(laid)} node(s)")
        return laid

    def nodes_carrying(self, cable_tag: str) -> List[Node]:
        return [n for n in self.graph if cable_tag in n.laid_cables]
