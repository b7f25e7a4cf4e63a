"""
trayroute/schema/cable.py - Cable and route result schema

Cables are consumed, not owned: the application supplies them, the
router returns a RouteResult per cable and the layout service records
which nodes each cable was laid through.
"""

from dataclasses import dataclass, field
from typing import List, Dict, Optional, Any

import numpy as np

from ..errors import LayoutIssue

__all__ = ['Cable', 'RouteResult']


@dataclass(eq=False)
class Cable:
    """
    Cable routing request.

    Attributes:
        tag: Cable tag
        od: Outer diameter
        route_criteria: Class of cable, matched against tray allowable types
        exclusion_tags: Cables whose trays this cable must not share
        associated_tags: Cables this one should run with (informational)
        start, goal: Route end points
    """

    tag: str
    od: float
    route_criteria: str = ""
    exclusion_tags: List[str] = field(default_factory=list)
    associated_tags: List[str] = field(default_factory=list)
    start: Optional[np.ndarray] = None
    goal: Optional[np.ndarray] = None

    def __post_init__(self):
        if self.start is not None:
            self.start = np.asarray(self.start, dtype=float)
        if self.goal is not None:
            self.goal = np.asarray(self.goal, dtype=float)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'tag': self.tag,
            'od': self.od,
            'route_criteria': self.route_criteria,
            'exclusion_tags': list(self.exclusion_tags),
            'associated_tags': list(self.associated_tags),
            'start': None if self.start is None else self.start.tolist(),
            'goal': None if self.goal is None else self.goal.tolist(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Cable':
        known = {'tag', 'od', 'route_criteria', 'exclusion_tags',
                 'associated_tags', 'start', 'goal'}
        return cls(**{k: v for k, v in data.items() if k in known})


@dataclass
class RouteResult:
    """
    Result of routing one cable.

    node_tags and node_ids run from the first landing node to the last
    node reached; points are bracketed by the true start (and the true
    goal when the goal was reached).
    """

    cable_tag: str = ""
    success: bool = False
    degraded: bool = False

    node_ids: List[int] = field(default_factory=list)
    node_tags: List[str] = field(default_factory=list)
    points: List[np.ndarray] = field(default_factory=list)
    curve_points: List[np.ndarray] = field(default_factory=list)

    cost: float = 0.0
    diagnostic: str = ""
    issue: Optional[LayoutIssue] = None

    routing_time_ms: float = 0.0

    @property
    def is_empty(self) -> bool:
        return not self.node_ids

    def as_tuple(self):
        """(node_tags, points, diagnostic)."""
        return self.node_tags, self.points, self.diagnostic

    def to_dict(self) -> Dict[str, Any]:
        return {
            'cable_tag': self.cable_tag,
            'success': self.success,
            'degraded': self.degraded,
            'node_tags': list(self.node_tags),
            'points': [p.tolist() for p in self.points],
            'curve_points': [p.tolist() for p in self.curve_points],
            'cost': self.cost,
            'diagnostic': self.diagnostic,
            'issue': None if self.issue is None else self.issue.to_dict(),
            'routing_time_ms': self.routing_time_ms,
        }
