"""
trayroute/schema/segment.py - Tray Segment Schema

A segment is one straight run of cable tray. Raw segments come from
the geometry source; the network builder returns finalized copies whose
ends are trimmed back to their junction accessories and whose node
references point into the NodeGraph arena.
"""

from dataclasses import dataclass, field
from typing import List, Dict, Optional, Any, Tuple
import uuid

import numpy as np

__all__ = ['Segment', 'JumpAttachment', 'generate_segment_uid', 'route_type_accepted']


def generate_segment_uid() -> str:
    """Generate unique segment ID."""
    return f"seg_{uuid.uuid4().hex[:12]}"


def route_type_accepted(allowable_types: List[str], criteria: str) -> bool:
    """An empty allowable list or an empty criteria accepts everything."""
    return not criteria or not allowable_types or criteria in allowable_types


def _point(value) -> np.ndarray:
    return np.asarray(value, dtype=float).copy()


@dataclass
class JumpAttachment:
    """A mid-span jump node recorded on its host segment."""
    node_id: int
    point: np.ndarray

    def to_dict(self) -> Dict[str, Any]:
        return {'node_id': self.node_id, 'point': self.point.tolist()}


@dataclass(eq=False)
class Segment:
    """
    Straight cable tray segment.

    Attributes:
        end1, end2: Centre-line end points
        width, height: Tray cross-section
        face: Cross-section normal (the direction cables are laid on)
        allowable_types: Route criteria this tray accepts (empty = any)

        tag: Display tag, split children carry a "-NN" suffix
        uid: Unique identity
        parent_uid: uid of the segment this one was split from
        branch: Cable-way branch the segment belongs to

        node1, node2: Node ids (NodeGraph arena indices) at each end
        junction1, junction2: Clustered, untrimmed end points once built
        jump_nodes: Mid-span jump nodes attached to this segment
        isolated: True when no other segment shares a junction with it
    """

    end1: np.ndarray
    end2: np.ndarray
    width: float = 0.3
    height: float = 0.1
    face: np.ndarray = field(default_factory=lambda: np.array([0.0, 0.0, 1.0]))
    allowable_types: List[str] = field(default_factory=list)

    tag: str = ""
    uid: str = field(default_factory=generate_segment_uid)
    parent_uid: Optional[str] = None
    branch: str = ""

    node1: Optional[int] = None
    node2: Optional[int] = None
    junction1: Optional[np.ndarray] = None
    junction2: Optional[np.ndarray] = None
    jump_nodes: List[JumpAttachment] = field(default_factory=list)
    isolated: bool = False

    def __post_init__(self):
        self.end1 = _point(self.end1)
        self.end2 = _point(self.end2)
        self.face = _point(self.face)
        if self.junction1 is not None:
            self.junction1 = _point(self.junction1)
        if self.junction2 is not None:
            self.junction2 = _point(self.junction2)
        if not self.tag:
            self.tag = self.uid

    # =========================================================================
    # GEOMETRY
    # =========================================================================

    @property
    def length(self) -> float:
        return float(np.linalg.norm(self.end2 - self.end1))

    @property
    def direction(self) -> np.ndarray:
        d = self.end2 - self.end1
        n = np.linalg.norm(d)
        return d / n if n > 0 else np.zeros(3)

    @property
    def midpoint(self) -> np.ndarray:
        return (self.end1 + self.end2) / 2

    def end(self, which: int) -> np.ndarray:
        return self.end1 if which == 1 else self.end2

    def set_end(self, which: int, point) -> None:
        if which == 1:
            self.end1 = _point(point)
        else:
            self.end2 = _point(point)

    def node(self, which: int) -> Optional[int]:
        return self.node1 if which == 1 else self.node2

    def set_node(self, which: int, node_id: Optional[int]) -> None:
        if which == 1:
            self.node1 = node_id
        else:
            self.node2 = node_id

    def build_ends(self) -> Tuple[np.ndarray, np.ndarray]:
        """End points the builder should start from (untrimmed junctions when known)."""
        e1 = self.junction1 if self.junction1 is not None else self.end1
        e2 = self.junction2 if self.junction2 is not None else self.end2
        return e1, e2

    def accepts(self, criteria: str) -> bool:
        """Check whether cables with this route criteria may use the tray."""
        return route_type_accepted(self.allowable_types, criteria)

    # =========================================================================
    # COPY / SERIALIZATION
    # =========================================================================

    def copy(self) -> 'Segment':
        """Owned copy with its own arrays and jump list."""
        return Segment(
            end1=self.end1.copy(),
            end2=self.end2.copy(),
            width=self.width,
            height=self.height,
            face=self.face.copy(),
            allowable_types=list(self.allowable_types),
            tag=self.tag,
            uid=self.uid,
            parent_uid=self.parent_uid,
            branch=self.branch,
            node1=self.node1,
            node2=self.node2,
            junction1=None if self.junction1 is None else self.junction1.copy(),
            junction2=None if self.junction2 is None else self.junction2.copy(),
            jump_nodes=[JumpAttachment(j.node_id, j.point.copy()) for j in self.jump_nodes],
            isolated=self.isolated,
        )

    def to_dict(self, node_tags: Optional[Dict[int, str]] = None) -> Dict[str, Any]:
        """
        Serialize segment to dictionary.

        Args:
            node_tags: Optional node id -> tag map used to resolve the
                end node references into display tags
        """
        node_tags = node_tags or {}
        return {
            'tag': self.tag,
            'uid': self.uid,
            'parent_uid': self.parent_uid,
            'branch': self.branch,
            'end1': self.end1.tolist(),
            'end2': self.end2.tolist(),
            'width': self.width,
            'height': self.height,
            'face': self.face.tolist(),
            'allowable_types': list(self.allowable_types),
            'node1': node_tags.get(self.node1, self.node1),
            'node2': node_tags.get(self.node2, self.node2),
            'junction1': None if self.junction1 is None else self.junction1.tolist(),
            'junction2': None if self.junction2 is None else self.junction2.tolist(),
            'jump_nodes': [j.to_dict() for j in self.jump_nodes],
            'isolated': self.isolated,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Segment':
        """
        Deserialize segment from dictionary.

        Node references are arena indices and are only meaningful with
        the graph they were built with, so they are not restored.
        """
        return cls(
            end1=data['end1'],
            end2=data['end2'],
            width=data.get('width', 0.3),
            height=data.get('height', 0.1),
            face=data.get('face', (0.0, 0.0, 1.0)),
            allowable_types=list(data.get('allowable_types', [])),
            tag=data.get('tag', ""),
            uid=data.get('uid') or generate_segment_uid(),
            parent_uid=data.get('parent_uid'),
            branch=data.get('branch', ""),
            junction1=data.get('junction1'),
            junction2=data.get('junction2'),
            isolated=data.get('isolated', False),
        )
