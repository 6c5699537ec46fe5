"""Shared pytest fixtures: synthetic MediaPipe landmark frames."""

import sys
from pathlib import Path

import numpy as np
import pytest

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))


# Front-view bottom-of-squat pose (x, y); y grows downward.
# Knees ~90°, hips ~100°, arms hanging, torso ~10° from vertical.
_SQUAT_XY = {
    0: (0.544, 0.200),                       # nose
    1: (0.554, 0.190), 2: (0.560, 0.190), 3: (0.566, 0.190),
    4: (0.534, 0.190), 5: (0.528, 0.190), 6: (0.522, 0.190),
    7: (0.580, 0.200), 8: (0.508, 0.200),
    9: (0.554, 0.215), 10: (0.534, 0.215),
    11: (0.624, 0.300), 12: (0.464, 0.300),  # shoulders
    13: (0.650, 0.430), 14: (0.438, 0.430),  # elbows
    15: (0.640, 0.540), 16: (0.448, 0.540),  # wrists
    17: (0.642, 0.560), 18: (0.446, 0.560),
    19: (0.640, 0.565), 20: (0.448, 0.565),
    21: (0.636, 0.555), 22: (0.452, 0.555),
    23: (0.580, 0.550), 24: (0.420, 0.550),  # hips
    25: (0.698, 0.571), 26: (0.302, 0.571),  # knees
    27: (0.670, 0.729), 28: (0.330, 0.729),  # ankles
    29: (0.660, 0.740), 30: (0.340, 0.740),
    31: (0.700, 0.750), 32: (0.300, 0.750),
}


def build_landmarks(xy: dict) -> np.ndarray:
    """(33, 4) array of [x, y, z=0, visibility=1]."""
    lm = np.zeros((33, 4), dtype=np.float64)
    lm[:, 3] = 1.0
    for idx, (x, y) in xy.items():
        lm[idx, 0] = x
        lm[idx, 1] = y
    return lm


@pytest.fixture
def squat_pose() -> np.ndarray:
    return build_landmarks(_SQUAT_XY)


@pytest.fixture
def valgus_squat_pose() -> np.ndarray:
    """Squat with knees caved in to 60% of the ankle gap."""
    xy = dict(_SQUAT_XY)
    xy[25] = (0.602, 0.571)
    xy[26] = (0.398, 0.571)
    return build_landmarks(xy)


@pytest.fixture
def random_poses() -> list:
    rng = np.random.RandomState(7)
    poses = []
    for _ in range(25):
        lm = rng.uniform(0.0, 1.0, size=(33, 4))
        lm[:, 2] = 0.0
        lm[:, 3] = 1.0
        poses.append(lm)
    return poses


@pytest.fixture
def standing_pose() -> np.ndarray:
    """Top of the squat: same upper body, legs straight under the hips."""
    xy = dict(_SQUAT_XY)
    xy[25] = (0.60, 0.70)
    xy[26] = (0.40, 0.70)
    xy[27] = (0.62, 0.85)
    xy[28] = (0.38, 0.85)
    return build_landmarks(xy)
