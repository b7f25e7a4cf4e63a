"""
trayroute - Cable tray network construction and cable routing

Turns hand-drawn tray centre lines into a routing network of segments,
bends, tees and crosses, then routes cables through it with a
capacity-aware A* search.

Usage:
    from trayroute import LayoutService, Segment, Cable

    service = LayoutService()
    network = service.build_network(segments)
    run = service.route_cables(cables, network)
"""

from .config import LayoutConfig, DEFAULT_CONFIG
from .errors import (
    ErrorSeverity,
    ErrorCategory,
    ErrorCode,
    LayoutIssue,
    LayoutError,
    ConfigurationError,
    LayoutCancelledError,
    ErrorAggregator,
)
from .schema import (
    Segment,
    Node,
    NodeType,
    Sleeve,
    Cable,
    RouteResult,
    Bend,
    Tee,
    Cross,
    SpacingTable,
    LayoutSnapshot,
)
from .network import NodeGraph, NetworkBuilder, NetworkResult, JumpAugmenter
from .router import CableRouter, CableOccupancy, find_path
from .service import LayoutService, LayoutRunResult

__version__ = "1.0.0"

__all__ = [
    'LayoutConfig',
    'DEFAULT_CONFIG',
    'ErrorSeverity',
    'ErrorCategory',
    'ErrorCode',
    'LayoutIssue',
    'LayoutError',
    'ConfigurationError',
    'LayoutCancelledError',
    'ErrorAggregator',
    'Segment',
    'Node',
    'NodeType',
    'Sleeve',
    'Cable',
    'RouteResult',
    'Bend',
    'Tee',
    'Cross',
    'SpacingTable',
    'LayoutSnapshot',
    'NodeGraph',
    'NetworkBuilder',
    'NetworkResult',
    'JumpAugmenter',
    'CableRouter',
    'CableOccupancy',
    'find_path',
    'LayoutService',
    'LayoutRunResult',
]
