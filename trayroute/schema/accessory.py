"""
trayroute/schema/accessory.py - Junction Accessory Schema

Bends, tees and crosses are derived from the connection count at a
clustered junction point. They are rebuilt on every network build and
carry the leg trim points, cross-sections and node references that a
renderer or a bill-of-materials needs.
"""

from dataclasses import dataclass, field
from typing import List, Dict, Optional, Any, ClassVar
from enum import Enum
import math

import numpy as np

from ..geometry.vector import normalize, angle_between, quadratic_bezier

__all__ = [
    'JunctionType',
    'classify_junction',
    'AccessoryLeg',
    'Accessory',
    'Bend',
    'Tee',
    'Cross',
    'accessory_for',
]


class JunctionType(Enum):
    """Shape of a junction, a pure function of its connection count."""
    OPEN_END = "open_end"
    BEND = "bend"
    TEE = "tee"
    CROSS = "cross"


def classify_junction(connection_count: int) -> JunctionType:
    """
    Junction shape for a number of converging segment ends.

    1 -> open end, 2 -> bend, 3 -> tee, 4 or more -> cross.
    """
    if connection_count < 1:
        raise ValueError(f"connection_count must be positive, got {connection_count}")
    if connection_count == 1:
        return JunctionType.OPEN_END
    if connection_count == 2:
        return JunctionType.BEND
    if connection_count == 3:
        return JunctionType.TEE
    return JunctionType.CROSS


@dataclass
class AccessoryLeg:
    """One segment end entering a junction."""
    segment_uid: str
    segment_end: int
    trim_point: np.ndarray
    width: float
    height: float
    face: np.ndarray
    node_id: Optional[int] = None
    node_tag: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            'segment_uid': self.segment_uid,
            'segment_end': self.segment_end,
            'trim_point': self.trim_point.tolist(),
            'width': self.width,
            'height': self.height,
            'face': self.face.tolist(),
            'node_tag': self.node_tag,
        }


def _edge_curve(x: np.ndarray, a: AccessoryLeg, b: AccessoryLeg,
                steps: int, straight_sin: float) -> List[List[np.ndarray]]:
    # Outer and inner edge between the trim points of legs a and b
    p1, p2 = a.trim_point, b.trim_point
    if np.linalg.norm(x - p1) < 0.001 or np.linalg.norm(x - p2) < 0.001:
        x = (p1 + p2) / 2

    w1 = normalize(np.cross(p1 - x, a.face))
    w2 = normalize(np.cross(p2 - x, b.face))
    if np.dot(w1, p2 - x) < 0:
        w1 = -w1
    if np.dot(w2, p1 - x) < 0:
        w2 = -w2

    outer_a = p1 - a.width / 2 * w1
    inner_a = p1 + a.width / 2 * w1
    outer_b = p2 - b.width / 2 * w2
    inner_b = p2 + b.width / 2 * w2

    angle = math.pi - angle_between(p1 - x, p2 - x)
    sin_a = math.sin(angle)
    if abs(sin_a) < straight_sin:
        # near-straight: rectangular join
        return [[outer_a, outer_b], [inner_a, inner_b]]

    offset = (normalize(p2 - x) * (a.width / 2) + normalize(p1 - x) * (b.width / 2)) / sin_a
    outer_ctrl = x - offset
    inner_ctrl = x + offset

    ts = [i / steps for i in range(steps + 1)]
    outer = [quadratic_bezier(outer_a, outer_ctrl, outer_b, t) for t in ts]
    inner = [quadratic_bezier(inner_a, inner_ctrl, inner_b, t) for t in ts]
    return [outer, inner]


@dataclass(eq=False)
class Accessory:
    """
    Base class for derived junction shapes.

    Attributes:
        tag: Display tag ("B000001", "T000002", "C000003")
        junction_point: Clustered centre-line meeting point
        legs: Legs with full geometry (at most 4 for a cross)
        extra_node_ids: Nodes of legs beyond the shaped ones
    """

    TAG_PREFIX: ClassVar[str] = "A"
    JUNCTION_TYPE: ClassVar[JunctionType] = JunctionType.OPEN_END

    tag: str
    junction_point: np.ndarray
    legs: List[AccessoryLeg] = field(default_factory=list)
    extra_node_ids: List[int] = field(default_factory=list)

    @property
    def kind(self) -> JunctionType:
        return self.JUNCTION_TYPE

    @property
    def node_ids(self) -> List[int]:
        return [leg.node_id for leg in self.legs if leg.node_id is not None]

    @property
    def node_tags(self) -> List[str]:
        return [leg.node_tag for leg in self.legs]

    def leg_pairs(self) -> List[tuple]:
        """Adjacent leg pairs whose edges are drawn."""
        n = len(self.legs)
        if n == 2:
            return [(0, 1)]
        return [(i, (i + 1) % n) for i in range(n)]

    def edge_curves(self, steps: int = 5, straight_sin: float = 0.05) -> List[List[np.ndarray]]:
        """
        Edge polylines between adjacent legs, for renderers.

        Each leg pair contributes its outer and inner edge, drawn as a
        quadratic Bezier through the corner offset by half the widths.
        """
        curves: List[List[np.ndarray]] = []
        for i, j in self.leg_pairs():
            curves.extend(_edge_curve(self.junction_point, self.legs[i], self.legs[j],
                                      steps, straight_sin))
        return curves

    def to_dict(self) -> Dict[str, Any]:
        return {
            'tag': self.tag,
            'type': self.kind.value,
            'junction_point': self.junction_point.tolist(),
            'legs': [leg.to_dict() for leg in self.legs],
            'node_tags': self.node_tags,
        }


@dataclass(eq=False)
class Bend(Accessory):
    """Two-leg junction."""
    TAG_PREFIX: ClassVar[str] = "B"
    JUNCTION_TYPE: ClassVar[JunctionType] = JunctionType.BEND


@dataclass(eq=False)
class Tee(Accessory):
    """Three-leg junction."""
    TAG_PREFIX: ClassVar[str] = "T"
    JUNCTION_TYPE: ClassVar[JunctionType] = JunctionType.TEE


@dataclass(eq=False)
class Cross(Accessory):
    """Four-leg junction. Legs are ordered so that leg 2 is opposite leg 1."""
    TAG_PREFIX: ClassVar[str] = "C"
    JUNCTION_TYPE: ClassVar[JunctionType] = JunctionType.CROSS

    def leg_pairs(self) -> List[tuple]:
        # 1 and 2 are opposite, so going round the cross is 1-3-2-4
        return [(0, 2), (2, 1), (1, 3), (3, 0)]


_ACCESSORY_CLASSES = {
    JunctionType.BEND: Bend,
    JunctionType.TEE: Tee,
    JunctionType.CROSS: Cross,
}


def accessory_for(junction_type: JunctionType) -> Optional[type]:
    """Accessory class for a junction type (None for open ends)."""
    return _ACCESSORY_CLASSES.get(junction_type)
