"""
trayroute.schema - Data model

Segments, nodes, junction accessories, sleeves, cables, spacing rules
and layout snapshots.
"""

from .segment import Segment, JumpAttachment, generate_segment_uid, route_type_accepted
from .node import Node, NodeType, SegmentEnd, node_tag, compute_available_width
from .accessory import (
    JunctionType,
    classify_junction,
    AccessoryLeg,
    Accessory,
    Bend,
    Tee,
    Cross,
    accessory_for,
)
from .sleeve import Sleeve
from .cable import Cable, RouteResult
from .spacing import SpacingRule, SpacingTable, GapSpec, parse_gap_spec
from .snapshot import LayoutSnapshot, select_latest_snapshot

__all__ = [
    'Segment',
    'JumpAttachment',
    'generate_segment_uid',
    'route_type_accepted',
    'Node',
    'NodeType',
    'SegmentEnd',
    'node_tag',
    'compute_available_width',
    'JunctionType',
    'classify_junction',
    'AccessoryLeg',
    'Accessory',
    'Bend',
    'Tee',
    'Cross',
    'accessory_for',
    'Sleeve',
    'Cable',
    'RouteResult',
    'SpacingRule',
    'SpacingTable',
    'GapSpec',
    'parse_gap_spec',
    'LayoutSnapshot',
    'select_latest_snapshot',
]
