"""
trayroute/network/builder.py - Segment Network Builder

Turns a list of raw tray segments into a routing network:

1. cull short segments, merge colinear overlaps
2. break segments where others join or cross them
3. cluster end points into junctions
4. trim each leg back from its junction and classify the junction
   (open end / bend / tee / cross)
5. create one node per accessory leg, fully connected per junction
6. give open ends their own node, connect the two ends of every segment
7. set isolated segments aside with their own pair of nodes

Every build works on owned copies; the caller's segments are never
modified. Finalized segments remember their junction points, so feeding
a result back in reproduces it.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Any, Set
import logging
import math
import time

import numpy as np

from ..config import LayoutConfig, DEFAULT_CONFIG
from ..errors import (
    ErrorAggregator,
    ErrorCode,
    ErrorSeverity,
    LayoutIssue,
    create_geometry_issue,
)
from ..geometry.vector import normalize, angle_between, round_point, distance
from ..geometry.predicates import is_parallel, is_overlap, is_far_away
from ..geometry.intersection import closest_points_with_margins
from ..schema.segment import Segment
from ..schema.node import Node, NodeType, SegmentEnd, compute_available_width
from ..schema.accessory import (
    AccessoryLeg,
    Accessory,
    Bend,
    Tee,
    Cross,
    JunctionType,
    classify_junction,
    accessory_for,
)
from ..schema.sleeve import Sleeve
from ..schema.snapshot import LayoutSnapshot
from .graph import NodeGraph
from .faces import assign_faces

__all__ = ['NetworkBuilder', 'NetworkResult', 'BuildStats', 'JunctionCluster']

logger = logging.getLogger(__name__)

SOURCE = "network.builder"


# =============================================================================
# RESULT TYPES
# =============================================================================

@dataclass
class BuildStats:
    """Counters for one build pass."""
    input_segments: int = 0
    culled_short: int = 0
    merged_overlaps: int = 0
    joint_splits: int = 0
    joint_snaps: int = 0
    collapsed: int = 0
    junctions: int = 0
    faces_reset: int = 0
    build_time_ms: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.__dict__)


@dataclass
class NetworkResult:
    """
    Output of NetworkBuilder.build.

    Attributes:
        segments: Finalized, connected segments (trimmed ends, node refs)
        bends, tees, crosses: Derived junction accessories
        graph: Node arena with connectivity
        isolated: Segments with no junction, each with two fresh nodes
        sleeves: Sleeves whose end nodes were added to the graph
        issues: Recovered problems found while building
    """

    segments: List[Segment] = field(default_factory=list)
    bends: List[Bend] = field(default_factory=list)
    tees: List[Tee] = field(default_factory=list)
    crosses: List[Cross] = field(default_factory=list)
    graph: NodeGraph = field(default_factory=NodeGraph)
    isolated: List[Segment] = field(default_factory=list)
    sleeves: List[Sleeve] = field(default_factory=list)
    issues: List[LayoutIssue] = field(default_factory=list)
    stats: BuildStats = field(default_factory=BuildStats)

    @property
    def accessories(self) -> List[Accessory]:
        return [*self.bends, *self.tees, *self.crosses]

    @property
    def nodes(self) -> List[Node]:
        return self.graph.nodes

    @property
    def all_segments(self) -> List[Segment]:
        return [*self.segments, *self.isolated]

    def segment_by_uid(self, uid: str) -> Optional[Segment]:
        for seg in self.all_segments:
            if seg.uid == uid:
                return seg
        return None

    def copy(self) -> 'NetworkResult':
        """Owned copy of the mutable parts (graph and segments)."""
        return NetworkResult(
            segments=[s.copy() for s in self.segments],
            bends=list(self.bends),
            tees=list(self.tees),
            crosses=list(self.crosses),
            graph=self.graph.copy(),
            isolated=[s.copy() for s in self.isolated],
            sleeves=list(self.sleeves),
            issues=list(self.issues),
            stats=self.stats,
        )

    def to_dict(self) -> Dict[str, Any]:
        tags = self.graph.tag_map()
        return {
            'segments': [s.to_dict(tags) for s in self.segments],
            'bends': [b.to_dict() for b in self.bends],
            'tees': [t.to_dict() for t in self.tees],
            'crosses': [c.to_dict() for c in self.crosses],
            'nodes': [n.to_dict(tags) for n in self.graph],
            'isolated': [s.to_dict(tags) for s in self.isolated],
            'sleeves': [s.to_dict() for s in self.sleeves],
            'issues': [i.to_dict() for i in self.issues],
            'stats': self.stats.to_dict(),
        }


@dataclass
class JunctionCluster:
    """Clustered end point and the (segment index, end) pairs meeting there."""
    point: np.ndarray
    refs: List[Tuple[int, int]] = field(default_factory=list)

    @property
    def junction_type(self) -> JunctionType:
        return classify_junction(len(self.refs))


# =============================================================================
# BUILDER
# =============================================================================

class NetworkBuilder:
    """
    Builds the tray routing network from straight segments.

    Usage:
        builder = NetworkBuilder()
        result = builder.build(segments)
        result.tees[0].node_tags  # ['N000000', 'N000001', 'N000002']
    """

    def __init__(self, config: Optional[LayoutConfig] = None):
        self.config = config or DEFAULT_CONFIG

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    def build_from_snapshot(self, snapshot: LayoutSnapshot) -> NetworkResult:
        """Rebuild from a previously saved layout."""
        return self.build(snapshot.segments, sleeves=snapshot.sleeves)

    def accessory_curves(self, network: NetworkResult) -> Dict[str, List[List[np.ndarray]]]:
        """Bezier edge curves of every accessory, keyed by accessory tag."""
        cfg = self.config
        return {
            acc.tag: acc.edge_curves(steps=cfg.curve_steps, straight_sin=cfg.bend_curve_sin_threshold)
            for acc in network.accessories
        }

    def build(self, segments: List[Segment],
              sleeves: Optional[List[Sleeve]] = None) -> NetworkResult:
        """
        Build the network.

        Args:
            segments: Raw or previously finalized segments
            sleeves: Optional sleeves to add as SLEEVE node pairs

        Returns:
            NetworkResult with segments, accessories, node graph and
            isolated segments
        """
        start = time.perf_counter()
        cfg = self.config
        issues = ErrorAggregator()
        stats = BuildStats(input_segments=len(segments))

        work = self._working_copies(segments)
        finalized = {s.uid for s in segments
                     if s.junction1 is not None and s.junction2 is not None}

        stats.faces_reset = len(assign_faces(work, tolerance=cfg.parallel_tolerance))
        if stats.faces_reset:
            issues.add(create_geometry_issue(
                f"{stats.faces_reset} segment face(s) reset to a default direction",
                SOURCE, code=ErrorCode.GEO_DEGENERATE_FACE))

        work = self._cull_short(work, stats, issues)
        work = self._remove_overlaps(work, finalized, stats, issues)
        work = self._cull_short(work, stats, issues)

        self._break_joints(work, stats)

        clusters, work = self._cluster_points(work, stats)
        stats.junctions = len(clusters)

        trims = self._compute_trims(work, clusters)
        self._verify_trims(work, trims)

        result = NetworkResult(stats=stats)
        self._create_accessories(work, clusters, trims, result, issues)
        self._connect_segment_ends(work, result, issues)

        for sleeve in sleeves or []:
            result.graph.add_sleeve(sleeve)
            result.sleeves.append(sleeve)

        result.issues = issues.issues
        stats.build_time_ms = (time.perf_counter() - start) * 1000
        logger.info(
            f"Built network: {len(result.segments)} segments, {len(result.bends)} bends, "
            f"{len(result.tees)} tees, {len(result.crosses)} crosses, "
            f"{len(result.graph)} nodes, {len(result.isolated)} isolated "
            f"in {stats.build_time_ms:.1f}ms"
        )
        return result

    # =========================================================================
    # PREPARATION
    # =========================================================================

    def _working_copies(self, segments: List[Segment]) -> List[Segment]:
        work = []
        for seg in segments:
            copy = seg.copy()
            copy.end1, copy.end2 = (e.copy() for e in seg.build_ends())
            copy.node1 = copy.node2 = None
            copy.junction1 = copy.junction2 = None
            copy.jump_nodes = []
            copy.isolated = False
            work.append(copy)
        return work

    def _cull_short(self, work: List[Segment], stats: BuildStats,
                    issues: ErrorAggregator) -> List[Segment]:
        kept = [s for s in work if s.length >= self.config.min_segment_length]
        dropped = len(work) - len(kept)
        if dropped:
            stats.culled_short += dropped
            for seg in work:
                if seg.length < self.config.min_segment_length:
                    issues.add(create_geometry_issue(
                        f"Segment {seg.tag} shorter than {self.config.min_segment_length} dropped",
                        SOURCE, subject=seg.tag))
        return kept

    # =========================================================================
    # OVERLAP REMOVAL
    # =========================================================================

    def _touching_finalized(self, a: Segment, b: Segment, finalized: Set[str]) -> bool:
        # Colinear pieces produced by an earlier split only touch at a
        # junction; they are not overlaps.
        if a.uid not in finalized or b.uid not in finalized:
            return False
        mid_gap = distance(a.midpoint, b.midpoint)
        return mid_gap >= (a.length + b.length) / 2 - self.config.overlap_gap

    def _remove_overlaps(self, work: List[Segment], finalized: Set[str],
                         stats: BuildStats, issues: ErrorAggregator) -> List[Segment]:
        cfg = self.config
        removed: Set[int] = set()

        for i in range(len(work) - 1):
            cfg.check_cancelled("overlap removal")
            if i in removed:
                continue
            for j in range(i + 1, len(work)):
                if j in removed or i in removed:
                    continue
                a, b = work[i], work[j]
                if is_far_away(a.end1, a.end2, b.end1, b.end2, cfg.build_far_gap):
                    continue
                if not is_overlap(a.end1, a.end2, b.end1, b.end2, cfg.overlap_gap * 2,
                                  cfg.parallel_tolerance, cfg.colinear_tolerance):
                    continue
                if self._touching_finalized(a, b, finalized):
                    continue

                keep, drop = (i, j) if a.length >= b.length else (j, i)
                self._span_extremes(work[keep], work[drop])
                removed.add(drop)
                stats.merged_overlaps += 1
                issues.add(create_geometry_issue(
                    f"Overlapping segment {work[drop].tag} merged into {work[keep].tag}",
                    SOURCE, subject=work[drop].tag, code=ErrorCode.GEO_OVERLAP_MERGED))

        if removed:
            logger.debug(f"Removed {len(removed)} overlapping segment(s)")
        return [s for k, s in enumerate(work) if k not in removed]

    def _span_extremes(self, keep: Segment, drop: Segment) -> None:
        """Stretch keep over the outermost points of both segments."""
        direction = keep.direction
        points = [keep.end1, keep.end2, drop.end1, drop.end2]
        along = [float(np.dot(p - keep.end1, direction)) for p in points]
        lo = points[int(np.argmin(along))]
        hi = points[int(np.argmax(along))]
        decimals = self.config.point_decimals
        keep.end1 = round_point(lo, decimals)
        keep.end2 = round_point(hi, decimals)

    # =========================================================================
    # JOINT BREAKING
    # =========================================================================

    def _near_an_end(self, seg: Segment, point: np.ndarray) -> bool:
        guard = self.config.micro_split_guard
        return distance(seg.end1, point) < guard or distance(seg.end2, point) < guard

    def _break_joints(self, work: List[Segment], stats: BuildStats) -> None:
        cfg = self.config
        margin = cfg.joint_end_margin
        roots = {s.uid: (s.parent_uid or s.uid, s.tag) for s in work}

        # work grows while we iterate; new pieces are checked too
        i = 1
        while i < len(work):
            cfg.check_cancelled("joint breaking")
            for j in range(i):
                a, b = work[i], work[j]
                if is_far_away(a.end1, a.end2, b.end1, b.end2, cfg.build_far_gap):
                    continue
                if is_parallel(a.end1, a.end2, b.end1, b.end2, cfg.parallel_tolerance):
                    continue
                pair = closest_points_with_margins(
                    a.end1, a.end2, b.end1, b.end2, margin, margin, margin, margin,
                    cfg.max_direction_dot)
                if pair is None:
                    continue
                p, q = pair
                if distance(p, q) > cfg.joint_max_separation:
                    continue
                x = round_point((p + q) / 2, cfg.point_decimals)
                if self._near_an_end(a, x) and self._near_an_end(b, x):
                    continue
                self._break_or_snap(a, x, work, roots, stats)
                self._break_or_snap(b, x, work, roots, stats)
            i += 1

    def _break_or_snap(self, seg: Segment, x: np.ndarray, work: List[Segment],
                       roots: Dict[str, Tuple[str, str]], stats: BuildStats) -> None:
        guard = self.config.micro_split_guard
        d1 = distance(seg.end1, x)
        d2 = distance(seg.end2, x)
        if d1 < guard and d2 < guard:
            return
        if d1 < guard:
            seg.end1 = x.copy()
            stats.joint_snaps += 1
        elif d2 < guard:
            seg.end2 = x.copy()
            stats.joint_snaps += 1
        else:
            root_uid, root_tag = roots[seg.uid]
            count = 2
            while f"{root_uid}-{count:02d}" in roots:
                count += 1
            child = seg.copy()
            child.uid = f"{root_uid}-{count:02d}"
            child.parent_uid = root_uid
            child.tag = f"{root_tag}-{count:02d}"
            child.end1 = x.copy()
            roots[child.uid] = (root_uid, root_tag)
            work.append(child)
            seg.end2 = x.copy()
            stats.joint_splits += 1

    # =========================================================================
    # CLUSTERING
    # =========================================================================

    def _cluster_points(self, work: List[Segment],
                        stats: BuildStats) -> Tuple[List[JunctionCluster], List[Segment]]:
        radius = self.config.merge_radius
        points: List[np.ndarray] = []

        def snap(p: np.ndarray) -> np.ndarray:
            for existing in points:
                if distance(existing, p) < radius:
                    return existing
            points.append(p)
            return p

        for seg in work:
            seg.end1 = snap(seg.end1).copy()
            seg.end2 = snap(seg.end2).copy()

        kept = [s for s in work if s.length >= radius]
        stats.collapsed = len(work) - len(kept)

        clusters: List[JunctionCluster] = []
        index: Dict[Tuple[float, float, float], int] = {}
        for k, seg in enumerate(kept):
            for end in (1, 2):
                p = seg.end(end)
                key = tuple(p.tolist())
                if key not in index:
                    index[key] = len(clusters)
                    clusters.append(JunctionCluster(point=p.copy()))
                clusters[index[key]].refs.append((k, end))
        return clusters, kept

    # =========================================================================
    # TRIMS
    # =========================================================================

    @staticmethod
    def _away(seg: Segment, end: int, x: np.ndarray) -> np.ndarray:
        far = seg.end2 if end == 1 else seg.end1
        return normalize(far - x)

    def _cross_order(self, work: List[Segment], cluster: JunctionCluster) -> List[Tuple[int, int]]:
        """First four legs ordered so that the second is opposite the first."""
        legs = cluster.refs[:4]
        x = cluster.point
        u = [self._away(work[k], end, x) for k, end in legs]
        angles = [angle_between(u[0], u[m]) for m in (1, 2, 3)]
        widest = int(np.argmax(angles))
        if widest == 0:
            order = (0, 1, 2, 3)
        elif widest == 1:
            order = (0, 2, 1, 3)
        else:
            order = (0, 3, 2, 1)
        return [legs[m] for m in order]

    def _compute_trims(self, work: List[Segment],
                       clusters: List[JunctionCluster]) -> List[Dict[int, np.ndarray]]:
        # trim 1 starts at end 2 and trim 2 at end 1: "no limit yet"
        trims = [{1: s.end2.copy(), 2: s.end1.copy()} for s in work]

        for cluster in clusters:
            refs = cluster.refs
            kind = cluster.junction_type
            if kind == JunctionType.OPEN_END:
                k, end = refs[0]
                trims[k][end] = cluster.point.copy()
                continue
            if kind == JunctionType.BEND:
                pairs = [(0, 1)]
            elif kind == JunctionType.TEE:
                pairs = [(0, 1), (1, 2), (2, 0)]
            else:
                pairs = [(0, 1), (0, 2), (0, 3), (1, 2), (1, 3), (2, 3)]
            for m, n in pairs:
                self._assign_edge(work, trims, cluster.point, refs[m], refs[n])
            # legs past the fourth only back off from the shaped ones
            for extra in refs[4:] if kind == JunctionType.CROSS else []:
                for leg in refs[:4]:
                    self._assign_edge(work, trims, cluster.point, extra, leg, both=False)
        return trims

    def _assign_edge(self, work: List[Segment], trims: List[Dict[int, np.ndarray]],
                     x: np.ndarray, leg1: Tuple[int, int], leg2: Tuple[int, int],
                     both: bool = True) -> None:
        k1, e1 = leg1
        k2, e2 = leg2
        s1, s2 = work[k1], work[k2]
        u1 = self._away(s1, e1, x)
        u2 = self._away(s2, e2, x)

        sin_a = math.sin(angle_between(u1, u2))
        if abs(sin_a) < self.config.straight_sin_threshold:
            sin_a = 1.0

        d1 = min(distance(x, trims[k1][e1]), s2.width / sin_a)
        trims[k1][e1] = x + d1 * u1
        if not both:
            return
        d2 = min(distance(x, trims[k2][e2]), s1.width / sin_a)
        trims[k2][e2] = x + d2 * u2

    def _verify_trims(self, work: List[Segment], trims: List[Dict[int, np.ndarray]]) -> None:
        """Keep trims realistic on short segments."""
        for seg, trim in zip(work, trims):
            length = seg.length
            d1 = distance(seg.end1, trim[1])
            d2 = distance(seg.end2, trim[2])
            e1_to_t2 = distance(seg.end1, trim[2])

            if d1 <= 0.001 and d2 > length / 2:
                trim[2] = seg.midpoint
            if d2 <= 0.001 and d1 > length / 2:
                trim[1] = seg.midpoint
            if d1 > 0.001 and d2 > 0.001 and e1_to_t2 - d1 < length / 3:
                trim[1] = (2 * seg.end1 + seg.end2) / 3
                trim[2] = (seg.end1 + 2 * seg.end2) / 3

    # =========================================================================
    # ACCESSORIES / NODES
    # =========================================================================

    def _new_segment_node(self, graph: NodeGraph, seg: Segment, end: int, point) -> int:
        cfg = self.config
        return graph.add_node(Node(
            point=point,
            width=seg.width,
            face=seg.face,
            node_type=NodeType.SEGMENT,
            segment_uid=seg.uid,
            segment_end=end,
            allowable_types=list(seg.allowable_types),
            available_width=compute_available_width(
                seg.width, cfg.margin_side1, cfg.margin_side2, cfg.margin_spare),
        ))

    def _create_accessories(self, work: List[Segment], clusters: List[JunctionCluster],
                            trims: List[Dict[int, np.ndarray]], result: NetworkResult,
                            issues: ErrorAggregator) -> None:
        graph = result.graph
        for cluster in clusters:
            kind = cluster.junction_type
            if kind == JunctionType.OPEN_END:
                k, end = cluster.refs[0]
                work[k].set_end(end, cluster.point)
                if end == 1:
                    work[k].junction1 = cluster.point.copy()
                else:
                    work[k].junction2 = cluster.point.copy()
                continue

            refs = self._cross_order(work, cluster) if kind == JunctionType.CROSS else cluster.refs
            extra = cluster.refs[4:] if kind == JunctionType.CROSS else []

            legs: List[AccessoryLeg] = []
            node_ids: List[int] = []
            for k, end in [*refs, *extra]:
                seg = work[k]
                trim = trims[k][end]
                node_id = self._new_segment_node(graph, seg, end, trim)
                node_ids.append(node_id)
                if (k, end) in extra:
                    continue
                legs.append(AccessoryLeg(
                    segment_uid=seg.uid,
                    segment_end=end,
                    trim_point=trim.copy(),
                    width=seg.width,
                    height=seg.height,
                    face=seg.face.copy(),
                    node_id=node_id,
                    node_tag=graph.get(node_id).tag,
                ))

            graph.connect_all(node_ids)

            for (k, end), node_id in zip([*refs, *extra], node_ids):
                seg = work[k]
                seg.set_end(end, trims[k][end])
                seg.set_node(end, node_id)
                if end == 1:
                    seg.junction1 = cluster.point.copy()
                else:
                    seg.junction2 = cluster.point.copy()

            cls = accessory_for(kind)
            bucket = {Bend: result.bends, Tee: result.tees, Cross: result.crosses}[cls]
            accessory = cls(
                tag=f"{cls.TAG_PREFIX}{len(bucket):06d}",
                junction_point=cluster.point.copy(),
                legs=legs,
                extra_node_ids=node_ids[len(legs):],
            )
            bucket.append(accessory)

            if extra:
                issues.add(LayoutIssue(
                    code=ErrorCode.NET_EXTRA_CROSS_LEG,
                    severity=ErrorSeverity.WARNING,
                    message=f"{len(cluster.refs)} segments meet at {accessory.tag}; "
                            f"{len(extra)} leg(s) get nodes but no cross geometry",
                    source=SOURCE,
                    subject=accessory.tag,
                ))

    def _connect_segment_ends(self, work: List[Segment], result: NetworkResult,
                              issues: ErrorAggregator) -> None:
        graph = result.graph
        isolated: List[Segment] = []

        for seg in work:
            present = [end for end in (1, 2) if seg.node(end) is not None]
            if not present:
                isolated.append(seg)
                continue
            if len(present) == 1:
                open_end = 2 if present[0] == 1 else 1
                seg.set_node(open_end, self._new_segment_node(graph, seg, open_end, seg.end(open_end)))
            graph.connect(seg.node1, seg.node2)
            result.segments.append(seg)

        for seg in isolated:
            seg.node1 = self._new_segment_node(graph, seg, SegmentEnd.END1, seg.end1)
            seg.node2 = self._new_segment_node(graph, seg, SegmentEnd.END2, seg.end2)
            graph.connect(seg.node1, seg.node2)
            seg.isolated = True
            result.isolated.append(seg)
            issues.add(create_geometry_issue(
                f"Segment {seg.tag} has no junction with any other segment",
                SOURCE, subject=seg.tag, code=ErrorCode.NET_ISOLATED))
