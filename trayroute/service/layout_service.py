"""
trayroute/service/layout_service.py - Layout Service Facade

Single entry point for a layout run: build the tray network (builder
plus jump pass), then route cables one after another, laying each
routed cable so later cables see the capacity it used.

Per-cable failures are reported as diagnostics and issues. Only
cancellation and invalid configuration raise.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Any, Iterable
import logging
import time

import numpy as np

from ..config import LayoutConfig, DEFAULT_CONFIG
from ..errors import (
    ErrorAggregator,
    ErrorCode,
    ErrorSeverity,
    LayoutIssue,
    create_routing_issue,
)
from ..schema.cable import Cable, RouteResult
from ..schema.segment import Segment
from ..schema.sleeve import Sleeve
from ..schema.snapshot import LayoutSnapshot, select_latest_snapshot
from ..schema.spacing import SpacingTable
from ..network.builder import NetworkBuilder, NetworkResult
from ..network.jumps import JumpAugmenter
from ..router.astar_router import CableRouter
from ..router.bidirectional import find_path
from ..router.capacity import CableOccupancy

__all__ = ['LayoutService', 'LayoutRunResult']

logger = logging.getLogger(__name__)

SOURCE = "service.layout"


@dataclass
class LayoutRunResult:
    """Result of routing a batch of cables."""
    success: bool = False
    network: Optional[NetworkResult] = None
    routes: Dict[str, RouteResult] = field(default_factory=dict)
    issues: List[LayoutIssue] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    routing_time_ms: float = 0.0

    @property
    def routed(self) -> List[str]:
        return [tag for tag, r in self.routes.items() if r.success and not r.degraded]

    @property
    def failed(self) -> List[str]:
        return [tag for tag, r in self.routes.items() if not r.success or r.degraded]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'success': self.success,
            'routes': {tag: r.to_dict() for tag, r in self.routes.items()},
            'issues': [i.to_dict() for i in self.issues],
            'errors': list(self.errors),
            'warnings': list(self.warnings),
            'routing_time_ms': self.routing_time_ms,
        }


class LayoutService:
    """
    Layout service facade.

    Usage:
        service = LayoutService(spacing=SpacingTable.from_rows(rows))
        network = service.build_network(segments, sleeves=sleeves)
        run = service.route_cables(cables, network)
        for tag, route in run.routes.items():
            print(tag, route.node_tags, route.diagnostic)
    """

    def __init__(
        self,
        config: Optional[LayoutConfig] = None,
        spacing: Optional[SpacingTable] = None,
        with_jumps: bool = True,
    ):
        """
        Initialize layout service.

        Args:
            config: Layout configuration (validated here)
            spacing: Spacing rules between cable classes
            with_jumps: Run the jump pass after building
        """
        self.config = (config or DEFAULT_CONFIG).ensure_valid()
        self.spacing = spacing
        self.with_jumps = with_jumps

    # =========================================================================
    # NETWORK
    # =========================================================================

    def build_network(
        self,
        segments: Optional[List[Segment]] = None,
        sleeves: Optional[List[Sleeve]] = None,
        snapshot: Optional[LayoutSnapshot] = None,
    ) -> NetworkResult:
        """
        Build the tray network from segments or a saved snapshot.

        Args:
            segments: Segments to build from
            sleeves: Sleeves to add (ignored when a snapshot is given)
            snapshot: Previously saved layout

        Returns:
            NetworkResult, with jump connectivity when enabled
        """
        builder = NetworkBuilder(self.config)
        if snapshot is not None:
            network = builder.build_from_snapshot(snapshot)
        else:
            network = builder.build(list(segments or []), sleeves=sleeves)

        if self.with_jumps:
            network, stats = JumpAugmenter(self.config).augment(network, in_place=True)
            logger.debug(f"Jump stats: {stats.to_dict()}")
        return network

    def build_latest(self, snapshots: Iterable[LayoutSnapshot]) -> Optional[NetworkResult]:
        """Build from the most recently updated snapshot, or None if there are none."""
        latest = select_latest_snapshot(snapshots)
        if latest is None:
            logger.warning("No layout snapshot to build from")
            return None
        return self.build_network(snapshot=latest)

    # =========================================================================
    # ROUTING
    # =========================================================================

    def route_cables(self, cables: List[Cable], network: NetworkResult,
                     in_place: bool = False) -> LayoutRunResult:
        """
        Route cables in the given order.

        Each successfully routed cable is laid on the network graph
        before the next cable is routed.

        Args:
            cables: Cables to route (start and goal must be set)
            network: Built network
            in_place: Lay cables on network itself instead of a copy

        Returns:
            LayoutRunResult
        """
        started = time.perf_counter()
        result = LayoutRunResult()
        issues = ErrorAggregator()

        routed_network = network if in_place else network.copy()
        occupancy = CableOccupancy(routed_network.graph, self.spacing)
        occupancy.register(cables)
        router = CableRouter(self.config, self.spacing, occupancy.cables)
        previous: Dict[str, List[str]] = {}

        for cable in cables:
            self.config.check_cancelled(f"routing {cable.tag}")
            if cable.start is None or cable.goal is None:
                message = f"Cable {cable.tag} has no {'start' if cable.start is None else 'goal'} point"
                issues.add(create_routing_issue(message, SOURCE, cable.tag))
                result.routes[cable.tag] = RouteResult(cable_tag=cable.tag, diagnostic=message)
                continue

            route = router.route(cable, cable.start, cable.goal, routed_network.graph, previous)
            result.routes[cable.tag] = route
            if route.issue is not None:
                issues.add(route.issue)

            if route.success:
                laid = occupancy.lay(cable, route.node_ids)
                previous[cable.tag] = [occupancy.graph.get(i).tag for i in laid]
                over = [occupancy.graph.get(i).tag for i in laid
                        if occupancy.graph.get(i).available_width <= 0.0]
                if over:
                    issues.add(create_routing_issue(
                        f"Cable {cable.tag} filled {len(over)} node(s)",
                        SOURCE, cable.tag, code=ErrorCode.RTE_CAPACITY,
                        severity=ErrorSeverity.INFO, detail=", ".join(over)))

        issues.add_all(router.issues)

        result.network = routed_network
        result.issues = issues.issues
        result.errors = issues.messages(ErrorSeverity.ERROR, ErrorSeverity.CRITICAL)
        result.warnings = issues.messages(ErrorSeverity.WARNING)
        result.success = bool(cables) and not result.failed
        result.routing_time_ms = (time.perf_counter() - started) * 1000

        logger.info(
            f"Routed {len(result.routed)}/{len(cables)} cable(s) "
            f"in {result.routing_time_ms:.1f}ms"
        )
        return result

    def find_alternate_path(self, network: NetworkResult, start_point, goal_point,
                            path_width: float, jump_distance: float = 0.6) -> Optional[List[np.ndarray]]:
        """Width-constrained alternate path between two node locations."""
        return find_path(network.graph, start_point, goal_point, path_width, jump_distance)
