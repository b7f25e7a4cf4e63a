"""
trayroute/geometry/volume.py - Oriented tray volumes

A tray segment occupies a box built from its local basis: l along the
centre line, h along the face and w = l x h across the width. The
centre line runs along the bottom of the box, so heights are measured
upward from it.
"""

from typing import List, Tuple

import numpy as np

from .vector import Vec3, normalize

__all__ = [
    'SIDE_END1',
    'SIDE_END2',
    'SIDE_MID',
    'segment_frame',
    'point_inside_segment',
    'segment_box_corners',
]

# Position markers returned by point_inside_segment
SIDE_NONE = 0
SIDE_END1 = 1
SIDE_END2 = 2
SIDE_MID = 9


def segment_frame(end1: Vec3, end2: Vec3, face: Vec3) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Unit (length, width, height) directions of a segment."""
    l = normalize(np.asarray(end2, dtype=float) - np.asarray(end1, dtype=float))
    h = normalize(face)
    w = np.cross(l, h)
    return l, w, h


def point_inside_segment(
    point: Vec3,
    end1: Vec3,
    end2: Vec3,
    width: float,
    height: float,
    face: Vec3,
    tolerance: float = 0.001,
) -> Tuple[bool, int]:
    """
    Test whether point lies in the segment's oriented volume.

    Returns:
        (inside, side) where side is SIDE_END1 / SIDE_END2 when the point
        sits on an end face, SIDE_MID anywhere in between and SIDE_NONE
        when it is outside
    """
    e1 = np.asarray(end1, dtype=float)
    seg_len = float(np.linalg.norm(np.asarray(end2, dtype=float) - e1))
    l, w, h = segment_frame(end1, end2, face)

    corner = e1 - width / 2 * w
    rel = np.asarray(point, dtype=float) - corner
    lx = float(np.dot(l, rel))
    wx = float(np.dot(w, rel))
    hx = float(np.dot(h, rel))

    err = tolerance
    inside = (-err <= lx < seg_len + err
              and -err <= wx < width + err
              and -err <= hx < height + err)
    if not inside:
        return False, SIDE_NONE

    if abs(lx) < err:
        return True, SIDE_END1
    if abs(seg_len - lx) < err:
        return True, SIDE_END2
    return True, SIDE_MID


def segment_box_corners(end1: Vec3, end2: Vec3, width: float, height: float,
                        face: Vec3) -> List[np.ndarray]:
    """Eight corners of the tray volume: end1 bottom pair, end1 top pair, then end2."""
    e1 = np.asarray(end1, dtype=float)
    e2 = np.asarray(end2, dtype=float)
    _, w, h = segment_frame(end1, end2, face)
    half = width / 2 * w
    top = height * h
    corners = []
    for e in (e1, e2):
        corners.extend([e - half, e + half, e + half + top, e - half + top])
    return corners
