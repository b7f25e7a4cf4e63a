"""
trayroute/network/jumps.py - Jump Connectivity Augmenter

Real tray layouts are drawn by hand and rarely meet exactly. This pass
adds "jump" connections where a cable could reasonably leap between
trays:

- crossing jumps between skew trays passing close to each other
- containment jumps for nodes sitting inside another tray's volume
- dead-end reconciliation for nodes with a single connection
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Any
import logging

import numpy as np

from ..config import LayoutConfig, DEFAULT_CONFIG
from ..geometry.vector import distance, projection_fraction
from ..geometry.predicates import is_parallel, is_coplanar, is_far_away
from ..geometry.intersection import closest_points_with_margins
from ..geometry.volume import point_inside_segment
from ..schema.segment import Segment, JumpAttachment
from ..schema.node import Node, NodeType, SegmentEnd, compute_available_width
from .graph import NodeGraph
from .builder import NetworkResult

__all__ = ['JumpAugmenter', 'JumpStats']

logger = logging.getLogger(__name__)


@dataclass
class JumpStats:
    """What one augmentation pass added."""
    crossing_pairs: int = 0
    jump_nodes_created: int = 0
    jump_nodes_reused: int = 0
    containment_links: int = 0
    dead_end_links: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.__dict__)


class JumpAugmenter:
    """
    Adds jump connectivity to a built network.

    Usage:
        augmented, stats = JumpAugmenter().augment(result)
    """

    def __init__(self, config: Optional[LayoutConfig] = None):
        self.config = config or DEFAULT_CONFIG
        self.stats = JumpStats()

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    def augment(self, result: NetworkResult, in_place: bool = False):
        """
        Run all jump passes.

        Args:
            result: Network from NetworkBuilder.build
            in_place: Modify result instead of an owned copy

        Returns:
            (network, JumpStats)
        """
        network = result if in_place else result.copy()
        self.stats = JumpStats()
        segments = network.all_segments

        self.add_crossing_jumps(segments, network.graph)
        self.add_containment_jumps(segments, network.graph)
        self.reconcile_dead_ends(network.graph)

        logger.info(
            f"Jump pass: {self.stats.crossing_pairs} crossing pair(s), "
            f"{self.stats.jump_nodes_created} jump node(s), "
            f"{self.stats.containment_links} containment and "
            f"{self.stats.dead_end_links} dead-end link(s)"
        )
        return network, self.stats

    # =========================================================================
    # CROSSING JUMPS
    # =========================================================================

    def _open_ended(self, graph: NodeGraph, node_id: Optional[int]) -> bool:
        """A node whose connections all stay on its own segment."""
        node = graph.get(node_id)
        if node is None:
            return False
        return all(graph.get(other).segment_uid == node.segment_uid
                   for other in node.connections)

    def _end_margin(self, graph: NodeGraph, node_id: Optional[int]) -> float:
        cfg = self.config
        return cfg.jump_open_end_margin if self._open_ended(graph, node_id) else cfg.jump_end_margin

    def add_crossing_jumps(self, segments: List[Segment], graph: NodeGraph) -> int:
        """
        Link skew segments whose closest approach is inside the jump band.

        Returns:
            Number of segment pairs linked
        """
        cfg = self.config
        linked = 0
        for i in range(len(segments) - 1):
            cfg.check_cancelled("crossing jump scan")
            s1 = segments[i]
            for s2 in segments[i + 1:]:
                if is_far_away(s1.end1, s1.end2, s2.end1, s2.end2, cfg.jump_max_distance):
                    continue
                if is_parallel(s1.end1, s1.end2, s2.end1, s2.end2, cfg.parallel_tolerance):
                    continue
                if is_coplanar(s1.end1, s1.end2, s2.end1, s2.end2,
                               cfg.coplanar_tolerance, cfg.parallel_tolerance):
                    continue

                pair = closest_points_with_margins(
                    s1.end1, s1.end2, s2.end1, s2.end2,
                    self._end_margin(graph, s1.node1), self._end_margin(graph, s1.node2),
                    self._end_margin(graph, s2.node1), self._end_margin(graph, s2.node2),
                    cfg.max_direction_dot)
                if pair is None:
                    continue
                p, q = pair
                gap = distance(p, q)
                if not cfg.jump_min_distance < gap < cfg.jump_max_distance:
                    continue

                n1 = self.get_or_create_jump_node(s1, p, graph)
                n2 = self.get_or_create_jump_node(s2, q, graph)
                if n1 is None or n2 is None:
                    continue
                graph.connect(n1, n2)
                linked += 1

        self.stats.crossing_pairs += linked
        return linked

    def get_or_create_jump_node(self, seg: Segment, point: np.ndarray,
                                graph: NodeGraph) -> Optional[int]:
        """
        Node on seg to attach a jump at point.

        Points within one tray width of an end use that end's node.
        Existing jump nodes within the dedupe radius are reused. A new
        jump node is linked to both end nodes and to the segment's other
        jump nodes.
        """
        cfg = self.config
        if distance(point, seg.end1) < seg.width:
            return seg.node1
        if distance(point, seg.end2) < seg.width:
            return seg.node2

        for attachment in seg.jump_nodes:
            if distance(attachment.point, point) < cfg.jump_dedupe_radius:
                self.stats.jump_nodes_reused += 1
                return attachment.node_id

        node_id = graph.add_node(Node(
            point=point,
            width=seg.width,
            face=seg.face,
            node_type=NodeType.SEGMENT,
            segment_uid=seg.uid,
            segment_end=SegmentEnd.MID,
            allowable_types=list(seg.allowable_types),
            available_width=compute_available_width(
                seg.width, cfg.margin_side1, cfg.margin_side2, cfg.margin_spare),
        ))
        for end_node in (seg.node1, seg.node2):
            if end_node is not None:
                graph.connect(node_id, end_node)
        for attachment in seg.jump_nodes:
            graph.connect(node_id, attachment.node_id)

        seg.jump_nodes.append(JumpAttachment(node_id, np.asarray(point, dtype=float).copy()))
        self.stats.jump_nodes_created += 1
        return node_id

    # =========================================================================
    # CONTAINMENT JUMPS
    # =========================================================================

    def add_containment_jumps(self, segments: List[Segment], graph: NodeGraph) -> int:
        """
        Link nodes that sit inside another segment's volume to that segment.

        Near either end (projection fraction below / above the configured
        limit) the node is linked to that end's node, otherwise to a
        mid-span node at its position.

        Returns:
            Number of links added
        """
        cfg = self.config
        links = 0
        # snapshot: nodes added here are not themselves tested
        candidates = list(graph)
        for seg in segments:
            cfg.check_cancelled("containment scan")
            lo = np.minimum(seg.end1, seg.end2) - seg.width - seg.height
            hi = np.maximum(seg.end1, seg.end2) + seg.width + seg.height
            for node in candidates:
                if node.segment_uid == seg.uid:
                    continue
                if np.any(node.point < lo) or np.any(node.point > hi):
                    continue
                inside, _ = point_inside_segment(
                    node.point, seg.end1, seg.end2, seg.width, seg.height, seg.face,
                    cfg.containment_tolerance)
                if not inside:
                    continue

                s = projection_fraction(node.point, seg.end1, seg.end2)
                if s < cfg.containment_end_fraction:
                    target = seg.node1
                elif s > 1 - cfg.containment_end_fraction:
                    target = seg.node2
                else:
                    target = self.get_or_create_jump_node(seg, node.point, graph)
                if target is None or target == node.node_id or target in node.connections:
                    continue
                graph.connect(node.node_id, target)
                links += 1

        self.stats.containment_links += links
        return links

    # =========================================================================
    # DEAD ENDS
    # =========================================================================

    def reconcile_dead_ends(self, graph: NodeGraph) -> int:
        """
        Connect every single-connection node to all unconnected nodes nearby.

        Returns:
            Number of links added
        """
        radius = self.config.dead_end_radius
        links = 0
        for node in graph.dead_ends():
            for other in graph.nodes_near(node.point, radius):
                if other.node_id == node.node_id or other.node_id in node.connections:
                    continue
                graph.connect(node.node_id, other.node_id)
                links += 1

        self.stats.dead_end_links += links
        return links
