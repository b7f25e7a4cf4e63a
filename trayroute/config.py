"""
trayroute/config.py - Layout configuration

Configuration dataclass for the tray network builder, the jump
augmenter and the cable routers. Every geometric tolerance lives here
so that a layout run can be reproduced from a single dictionary.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional
import logging

from .errors import ConfigurationError, LayoutCancelledError

__all__ = [
    'LayoutConfig',
    'DEFAULT_CONFIG',
]

logger = logging.getLogger(__name__)


# =============================================================================
# LAYOUT CONFIGURATION
# =============================================================================

@dataclass
class LayoutConfig:
    """
    Configuration for tray network construction and cable routing.

    Distances are in model units (metres in every layout seen so far).
    """

    # =========================================================================
    # SEGMENT CLEANUP
    # =========================================================================

    # Segments shorter than this are culled before and after merging
    min_segment_length: float = 0.1

    # Bounding-box gap for the overlap and joint scans
    build_far_gap: float = 0.1

    # Extra allowance when deciding whether colinear segments overlap
    overlap_gap: float = 0.01

    # Coordinates of merged and split points are rounded to this many places
    point_decimals: int = 3

    # =========================================================================
    # JOINT BREAKING
    # =========================================================================

    # Overshoot tolerated past each endpoint in the decremented intersection
    joint_end_margin: float = 0.004

    # Closest points further apart than this are not a joint
    joint_max_separation: float = 0.01

    # No split within this distance of a segment's own endpoint
    micro_split_guard: float = 0.09

    # =========================================================================
    # CLUSTERING / JUNCTIONS
    # =========================================================================

    # Endpoints within this radius share one junction point
    merge_radius: float = 0.05

    # Below this |sin(angle)| a join is treated as straight
    straight_sin_threshold: float = 0.1

    # Below this |sin(angle)| a bend curve is drawn as a rectangular join
    bend_curve_sin_threshold: float = 0.05

    # Number of Bezier steps per accessory edge curve
    curve_steps: int = 5

    # =========================================================================
    # GEOMETRY PREDICATES
    # =========================================================================

    parallel_tolerance: float = 1e-5
    colinear_tolerance: float = 1e-5
    coplanar_tolerance: float = 0.01

    # Closest-approach solve is refused above this |u.v|
    max_direction_dot: float = 0.99

    # =========================================================================
    # JUMPS
    # =========================================================================

    # Jump band: closest approach strictly between these two values
    jump_min_distance: float = 0.1
    jump_max_distance: float = 0.6

    # End margins for the jump closest-approach solve
    jump_end_margin: float = 0.01
    jump_open_end_margin: float = 0.6

    # Jump nodes on a segment closer than this are reused
    jump_dedupe_radius: float = 0.01

    # Dead-end nodes connect to everything inside this radius
    dead_end_radius: float = 1.0

    # Projection fraction limits for containment jumps
    containment_end_fraction: float = 0.1

    # Tolerance of the oriented bounding volume test
    containment_tolerance: float = 0.001

    # =========================================================================
    # CAPACITY
    # =========================================================================

    margin_side1: float = 0.035
    margin_side2: float = 0.035
    margin_spare: float = 0.1

    # =========================================================================
    # ROUTING
    # =========================================================================

    # Candidate landings per route end
    landing_candidates: int = 5

    # Search radius for sleeve landings and for segment landings
    sleeve_landing_range: float = 5.0
    segment_landing_range: float = 10.0

    # Synthetic start/goal node width is cable od plus this
    synthetic_width_extra: float = 0.75

    # Penalties for nodes without room for the cable
    infeasible_heuristic: float = 999999.0
    infeasible_edge_cost: float = 999999999.0

    # =========================================================================
    # CANCELLATION
    # =========================================================================

    # Polled at every outer loop; returning True aborts the operation
    cancel_check: Optional[Callable[[], bool]] = None

    # =========================================================================
    # VALIDATION
    # =========================================================================

    def validate(self) -> List[str]:
        """
        Check the configuration for inconsistent values.

        Returns:
            List of problems found (empty when valid)
        """
        problems: List[str] = []

        for name in ('min_segment_length', 'merge_radius', 'parallel_tolerance',
                     'colinear_tolerance', 'dead_end_radius', 'jump_dedupe_radius'):
            if getattr(self, name) <= 0:
                problems.append(f"{name} must be positive")

        if self.jump_min_distance >= self.jump_max_distance:
            problems.append("jump_min_distance must be below jump_max_distance")

        if not 0.0 <= self.margin_spare < 1.0:
            problems.append("margin_spare must be in [0, 1)")

        if self.margin_side1 < 0 or self.margin_side2 < 0:
            problems.append("side margins must not be negative")

        if not 0.0 < self.containment_end_fraction < 0.5:
            problems.append("containment_end_fraction must be in (0, 0.5)")

        if self.landing_candidates < 1:
            problems.append("landing_candidates must be at least 1")

        if self.curve_steps < 1:
            problems.append("curve_steps must be at least 1")

        return problems

    def ensure_valid(self) -> "LayoutConfig":
        """Raise ConfigurationError if validate() reports problems."""
        problems = self.validate()
        if problems:
            raise ConfigurationError("; ".join(problems))
        return self

    def check_cancelled(self, where: str = "") -> None:
        """Raise LayoutCancelledError if the cancel hook asks to stop."""
        if self.cancel_check is not None and self.cancel_check():
            logger.info(f"Layout operation cancelled at {where or 'unknown point'}")
            raise LayoutCancelledError(f"Cancelled during {where}" if where else "Cancelled")

    # =========================================================================
    # SERIALIZATION
    # =========================================================================

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary (the cancel hook is not serialized)."""
        return {
            name: getattr(self, name)
            for name in self.__dataclass_fields__
            if name != 'cancel_check'
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LayoutConfig":
        """Deserialize from dictionary."""
        # Filter to known fields
        known_fields = {f.name for f in cls.__dataclass_fields__.values()}
        filtered = {k: v for k, v in data.items() if k in known_fields}

        return cls(**filtered)


# =============================================================================
# DEFAULT CONFIGURATION
# =============================================================================

DEFAULT_CONFIG = LayoutConfig()
