"""
trayroute/network/faces.py - Segment face assignment

A segment's face is the normal of its cross-section: the direction
cables rest against. Faces from the geometry source can be missing or
nonsense, so every build runs them through resolve_face.
"""

from typing import Dict, List
import logging

import numpy as np

from ..schema.segment import Segment
from ..geometry.predicates import is_parallel

__all__ = ['resolve_face', 'assign_faces', 'propagate_branch_faces']

logger = logging.getLogger(__name__)

UP = np.array([0.0, 0.0, 1.0])
PLUS_Y = np.array([0.0, 1.0, 0.0])

ORIGIN = np.zeros(3)


def _degenerate(face: np.ndarray, end1: np.ndarray, end2: np.ndarray, tolerance: float) -> bool:
    if not np.all(np.isfinite(face)):
        return True
    if np.all(np.abs(face) < 0.01):
        return True
    return is_parallel(end1, end2, ORIGIN, face, tolerance)


def resolve_face(end1, end2, face, tolerance: float = 1e-5) -> np.ndarray:
    """
    Face to use for a segment.

    A near-zero, NaN or along-the-tray face falls back to up (+Z); a
    vertical tray, for which up is along the tray, gets +Y.
    """
    end1 = np.asarray(end1, dtype=float)
    end2 = np.asarray(end2, dtype=float)
    face = np.asarray(face, dtype=float)
    if not _degenerate(face, end1, end2, tolerance):
        return face.copy()
    if not is_parallel(end1, end2, ORIGIN, UP, tolerance):
        return UP.copy()
    return PLUS_Y.copy()


def propagate_branch_faces(segments: List[Segment], tolerance: float = 1e-5) -> int:
    """
    Give segments with a degenerate face the face of a usable sibling.

    Siblings are segments of the same cable-way branch; the first one
    with a good face that is not along the segment is used. Segments
    without a branch are left alone.

    Returns:
        Number of segments whose face was taken from a sibling
    """
    by_branch: Dict[str, List[Segment]] = {}
    for seg in segments:
        if seg.branch:
            by_branch.setdefault(seg.branch, []).append(seg)

    changed = 0
    for branch, members in by_branch.items():
        good = [s for s in members if not _degenerate(s.face, s.end1, s.end2, tolerance)]
        if not good:
            continue
        for seg in members:
            if not _degenerate(seg.face, seg.end1, seg.end2, tolerance):
                continue
            for donor in good:
                if not is_parallel(seg.end1, seg.end2, ORIGIN, donor.face, tolerance):
                    seg.face = donor.face.copy()
                    changed += 1
                    break
    if changed:
        logger.debug(f"Propagated branch faces to {changed} segment(s)")
    return changed


def assign_faces(segments: List[Segment], use_branches: bool = True,
                 tolerance: float = 1e-5) -> List[Segment]:
    """
    Make every segment's face usable, in place.

    Returns:
        Segments whose face had to be reset to a default direction
    """
    if use_branches:
        propagate_branch_faces(segments, tolerance)

    reset: List[Segment] = []
    for seg in segments:
        face = resolve_face(seg.end1, seg.end2, seg.face, tolerance)
        if not np.array_equal(face, seg.face):
            reset.append(seg)
            seg.face = face
    return reset
