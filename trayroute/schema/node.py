"""
trayroute/schema/node.py - Routing Node Schema

Nodes are the vertices of the tray routing graph: one per accessory
leg, one per open segment end, plus jump, sleeve and synthetic cable
nodes. Identity is the integer index into the NodeGraph arena; the tag
("N000123") is a display handle.
"""

from dataclasses import dataclass, field
from typing import List, Dict, Optional, Any, Set
from enum import Enum

import numpy as np

from .segment import route_type_accepted

__all__ = [
    'NodeType',
    'SegmentEnd',
    'Node',
    'node_tag',
    'compute_available_width',
]


class NodeType(Enum):
    """What a node belongs to."""
    SEGMENT = "segment"    # Owned by a tray segment
    SLEEVE = "sleeve"      # End of a conduit sleeve
    CABLE = "cable"        # Synthetic start/goal of a cable route


class SegmentEnd:
    """Where on its owning segment a node sits."""
    NONE = 0   # Synthetic / dummy
    END1 = 1
    END2 = 2
    MID = 9    # Mid-span (jump or containment)


def node_tag(index: int) -> str:
    """Display tag for arena index."""
    return f"N{index:06d}"


def compute_available_width(width: float, margin_side1: float, margin_side2: float,
                            margin_spare: float) -> float:
    """
    Usable width of a tray for laying cables.

    Side margins are removed and the spare fraction held back. Never
    negative and never above width minus both side margins.
    """
    return max(0.0, (width - margin_side1 - margin_side2) * (1.0 - margin_spare))


@dataclass(eq=False)
class Node:
    """
    Vertex of the routing graph.

    Attributes:
        node_id: Arena index (set by NodeGraph.add_node)
        tag: Display tag derived from node_id
        point: 3D location
        width: Physical width of the tray (or sleeve diameter)
        face: Cross-section normal of the owning tray
        node_type: SEGMENT, SLEEVE or CABLE
        segment_uid: Owning segment (or sleeve) uid
        segment_end: SegmentEnd marker
        connections: Connected node ids (kept symmetric by NodeGraph)
        allowable_types: Route criteria accepted (empty = any)
        available_width: Width left for new cables
        laid_cables: Tags of cables routed through, in laying order
    """

    point: np.ndarray
    width: float = 0.0
    face: np.ndarray = field(default_factory=lambda: np.zeros(3))
    node_type: NodeType = NodeType.SEGMENT
    segment_uid: Optional[str] = None
    segment_end: int = SegmentEnd.NONE
    allowable_types: List[str] = field(default_factory=list)
    available_width: Optional[float] = None

    node_id: int = -1
    tag: str = ""
    connections: Set[int] = field(default_factory=set)
    laid_cables: List[str] = field(default_factory=list)

    def __post_init__(self):
        self.point = np.asarray(self.point, dtype=float).copy()
        self.face = np.asarray(self.face, dtype=float).copy()
        if self.available_width is None:
            self.available_width = self.width

    @property
    def last_laid_cable(self) -> Optional[str]:
        return self.laid_cables[-1] if self.laid_cables else None

    def accepts(self, criteria: str) -> bool:
        return route_type_accepted(self.allowable_types, criteria)

    def copy(self) -> 'Node':
        return Node(
            point=self.point.copy(),
            width=self.width,
            face=self.face.copy(),
            node_type=self.node_type,
            segment_uid=self.segment_uid,
            segment_end=self.segment_end,
            allowable_types=list(self.allowable_types),
            available_width=self.available_width,
            node_id=self.node_id,
            tag=self.tag,
            connections=set(self.connections),
            laid_cables=list(self.laid_cables),
        )

    def to_dict(self, node_tags: Optional[Dict[int, str]] = None) -> Dict[str, Any]:
        """Serialize node; connections resolve to tags when node_tags is given."""
        if node_tags is None:
            connected = sorted(self.connections)
        else:
            connected = sorted(node_tags.get(i, str(i)) for i in self.connections)
        return {
            'node_id': self.node_id,
            'tag': self.tag,
            'point': self.point.tolist(),
            'width': self.width,
            'face': self.face.tolist(),
            'node_type': self.node_type.value,
            'segment_uid': self.segment_uid,
            'segment_end': self.segment_end,
            'connections': connected,
            'allowable_types': list(self.allowable_types),
            'available_width': self.available_width,
            'laid_cables': list(self.laid_cables),
        }
