"""
2-D joint geometry on normalized image coordinates.

All helpers accept anything indexable as ``(x, y, ...)``: landmark array
rows, ``Landmark`` tuples or plain sequences. Image y grows downward.
"""

import math
from typing import Sequence

import numpy as np

# Rays shorter than this are treated as zero-length
_EPS = 1e-9


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (Python's round is banker's)."""
    return int(math.floor(value + 0.5))


def angle_deg(a: Sequence[float], b: Sequence[float], c: Sequence[float]) -> float:
    """Angle at joint *b* formed by points a-b-c, in degrees.

    Uses cos(θ) = (ba·bc) / (|ba||bc|) on the x/y plane.

    Args:
        a, b, c: Points with x at index 0 and y at index 1.

    Returns:
        float in [0, 180]. A zero-length ray yields 180 (a straight,
        fully-extended joint), not an error.
    """
    ba = np.array([a[0] - b[0], a[1] - b[1]], dtype=np.float64)
    bc = np.array([c[0] - b[0], c[1] - b[1]], dtype=np.float64)

    mag_ba = np.linalg.norm(ba)
    mag_bc = np.linalg.norm(bc)
    if mag_ba < _EPS or mag_bc < _EPS:
        return 180.0

    cos_angle = np.clip(np.dot(ba, bc) / (mag_ba * mag_bc), -1.0, 1.0)
    return float(np.degrees(np.arccos(cos_angle)))


def mid(a: Sequence[float], b: Sequence[float]) -> tuple[float, float]:
    """2-D midpoint of two points."""
    return ((a[0] + b[0]) / 2.0, (a[1] + b[1]) / 2.0)


def dist(a: Sequence[float], b: Sequence[float]) -> float:
    """2-D Euclidean distance."""
    return float(math.hypot(a[0] - b[0], a[1] - b[1]))


def torso_angle(shoulder_mid: Sequence[float], hip_mid: Sequence[float]) -> float:
    """Deviation of the shoulder→hip segment from vertical, in degrees.

    0 = standing straight, 90 = lying flat. Always in [0, 180].
    """
    dx = hip_mid[0] - shoulder_mid[0]
    dy = hip_mid[1] - shoulder_mid[1]
    return abs(math.degrees(math.atan2(dx, dy)))
