"""
trayroute/schema/snapshot.py - Layout snapshots

A snapshot bundles a previously computed layout. When several are on
hand (one per save), the builder starts from the most recent.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Dict, Optional, Any, Iterable
import logging

from .segment import Segment
from .sleeve import Sleeve

__all__ = ['LayoutSnapshot', 'select_latest_snapshot']

logger = logging.getLogger(__name__)


@dataclass
class LayoutSnapshot:
    """
    Previously computed layout state.

    Accessories and nodes are derived data; a rebuild only needs the
    segments (with their junction points) and sleeves. The derived
    lists are kept as plain dictionaries for callers that inspect them.
    """

    segments: List[Segment] = field(default_factory=list)
    sleeves: List[Sleeve] = field(default_factory=list)
    bends: List[Dict[str, Any]] = field(default_factory=list)
    tees: List[Dict[str, Any]] = field(default_factory=list)
    crosses: List[Dict[str, Any]] = field(default_factory=list)
    nodes: List[Dict[str, Any]] = field(default_factory=list)
    updated_at: datetime = field(default_factory=datetime.utcnow)
    label: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            'label': self.label,
            'updated_at': self.updated_at.isoformat(),
            'segments': [s.to_dict() for s in self.segments],
            'sleeves': [s.to_dict() for s in self.sleeves],
            'bends': list(self.bends),
            'tees': list(self.tees),
            'crosses': list(self.crosses),
            'nodes': list(self.nodes),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LayoutSnapshot':
        updated = data.get('updated_at')
        return cls(
            segments=[Segment.from_dict(s) for s in data.get('segments', [])],
            sleeves=[Sleeve.from_dict(s) for s in data.get('sleeves', [])],
            bends=list(data.get('bends', [])),
            tees=list(data.get('tees', [])),
            crosses=list(data.get('crosses', [])),
            nodes=list(data.get('nodes', [])),
            updated_at=datetime.fromisoformat(updated) if updated else datetime.utcnow(),
            label=data.get('label', ""),
        )


def select_latest_snapshot(snapshots: Iterable[LayoutSnapshot]) -> Optional[LayoutSnapshot]:
    """Most recently updated snapshot, or None when there are none."""
    latest = None
    for snap in snapshots:
        if latest is None or snap.updated_at > latest.updated_at:
            latest = snap
    if latest is not None:
        logger.debug(f"Using layout snapshot '{latest.label}' from {latest.updated_at.isoformat()}")
    return latest
