"""
trayroute/schema/sleeve.py - Sleeve Schema

A sleeve is a conduit (pipe, penetration) given as a polyline with a
diameter. Only its two ends take part in routing, as SLEEVE nodes
joined by a direct connection.
"""

from dataclasses import dataclass, field
from typing import List, Dict, Optional, Any
import uuid

import numpy as np

from .segment import route_type_accepted

__all__ = ['Sleeve']


@dataclass(eq=False)
class Sleeve:
    """Conduit polyline with a diameter."""

    tag: str
    points: List[np.ndarray]
    diameter: float
    allowable_types: List[str] = field(default_factory=list)
    uid: str = field(default_factory=lambda: f"slv_{uuid.uuid4().hex[:12]}")

    node1: Optional[int] = None
    node2: Optional[int] = None

    def __post_init__(self):
        self.points = [np.asarray(p, dtype=float) for p in self.points]
        if len(self.points) < 2:
            raise ValueError(f"Sleeve {self.tag} needs at least two points")

    @property
    def start(self) -> np.ndarray:
        return self.points[0]

    @property
    def end(self) -> np.ndarray:
        return self.points[-1]

    @property
    def length(self) -> float:
        return float(sum(np.linalg.norm(b - a) for a, b in zip(self.points, self.points[1:])))

    def accepts(self, criteria: str) -> bool:
        return route_type_accepted(self.allowable_types, criteria)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'tag': self.tag,
            'uid': self.uid,
            'points': [p.tolist() for p in self.points],
            'diameter': self.diameter,
            'allowable_types': list(self.allowable_types),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Sleeve':
        return cls(
            tag=data['tag'],
            points=data['points'],
            diameter=data['diameter'],
            allowable_types=list(data.get('allowable_types', [])),
            uid=data.get('uid') or f"slv_{uuid.uuid4().hex[:12]}",
        )
