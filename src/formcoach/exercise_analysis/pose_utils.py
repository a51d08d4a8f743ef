"""
pose_utils.py - Shared geometry helpers for landmark-based form analysis.
"""
import math
from typing import List, Optional, Tuple

import numpy as np

from ..pose_detection.types import Landmark, PoseFrame

Point = Tuple[float, float]


# --- Math & Geometry Utilities ---
def calculate_angle(a, b, c) -> float:
    """
    Calculate the interior angle at point ``b`` formed by points ``a`` and ``c``.

    Uses the difference of the two atan2 vector directions. Results above 180
    degrees are folded back to ``360 - angle`` so the angle is symmetric in
    ``a`` and ``c`` and always within [0, 180].

    Args:
        a: First point (e.g., hip for knee angle), Landmark or (x, y)
        b: Middle point (e.g., knee) - the angle is measured here
        c: Last point (e.g., ankle)

    Returns:
        Angle in degrees, or NaN if any coordinate is not finite
    """
    ax, ay = _xy(a)
    bx, by = _xy(b)
    cx, cy = _xy(c)
    if not all(math.isfinite(v) for v in (ax, ay, bx, by, cx, cy)):
        return float("nan")
    radians = np.arctan2(cy - by, cx - bx) - np.arctan2(ay - by, ax - bx)
    angle = abs(float(np.degrees(radians)))
    if angle > 180.0:
        angle = 360.0 - angle
    return angle


def midpoint(a, b) -> Point:
    ax, ay = _xy(a)
    bx, by = _xy(b)
    return ((ax + bx) / 2, (ay + by) / 2)


def average_angle(angles: List[float]) -> Optional[float]:
    """Mean of the finite angles, or None when none are usable."""
    valid = [a for a in angles if a is not None and math.isfinite(a)]
    return float(np.mean(valid)) if valid else None


def bilateral_angle(frame: PoseFrame, first: str, middle: str, last: str) -> Tuple[float, float]:
    """
    Calculate the same joint angle on both body sides.

    Args:
        frame: Pose frame
        first, middle, last: Landmark names without the side prefix (e.g. "hip", "knee", "ankle")

    Returns:
        Tuple of (left_angle, right_angle)
    """
    left = calculate_angle(frame[f"left_{first}"], frame[f"left_{middle}"], frame[f"left_{last}"])
    right = calculate_angle(frame[f"right_{first}"], frame[f"right_{middle}"], frame[f"right_{last}"])
    return left, right


def body_midpoint(frame: PoseFrame, part: str) -> Point:
    """Midpoint of the left/right landmark pair, e.g. body_midpoint(frame, "hip")."""
    return midpoint(frame[f"left_{part}"], frame[f"right_{part}"])


def calculate_torso_lean(shoulder: Point, hip: Point) -> float:
    """Forward/backward lean of the hip->shoulder line from vertical, in degrees (0 = upright)."""
    above_hip = (hip[0], hip[1] - 1.0)
    return calculate_angle(shoulder, hip, above_hip)


def calculate_line_offset(start: Point, end: Point, point: Point) -> float:
    """
    Vertical offset of ``point`` from the straight line start -> end.

    Positive means the point sits below the line on screen (y grows downwards),
    i.e. a sagging hip when the line runs shoulder -> ankle.
    """
    dx = end[0] - start[0]
    if abs(dx) < 1e-6:
        return point[1] - (start[1] + end[1]) / 2
    t = (point[0] - start[0]) / dx
    line_y = start[1] + t * (end[1] - start[1])
    return point[1] - line_y


def _xy(point) -> Point:
    if isinstance(point, Landmark):
        return float(point.x), float(point.y)
    return float(point[0]), float(point[1])
