"""
Single-frame pose feature extraction.

Turns 33 MediaPipe landmarks into bilateral-averaged joint angles, a torso
orientation and a set of positional booleans. The same ``FeatureVector``
feeds the heuristic classifier, the learning store and (through
``to_vector``) the optional neural classifier.
"""

import logging
from typing import Any, Optional, Sequence

import numpy as np
from pydantic import BaseModel, Field

from ..data.landmarks import PoseLandmark as P, as_landmark_array
from ..pipelines.config import (
    MIN_LANDMARKS,
    TORSO_UPRIGHT_MAX,
    TORSO_LEANING_MAX,
    WRIST_ABOVE_TOLERANCE,
    WRIST_LEVEL_TOLERANCE,
    ANKLE_NEAR_HIP_TOLERANCE,
    ELBOWS_PINNED_SHOULDER_MAX,
    ELBOWS_PINNED_ELEVATION_MAX,
)
from .geometry import angle_deg, dist, mid, round_half_up, torso_angle

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Model input contract: fixed order, never reorder
# ---------------------------------------------------------------------------
FEATURE_NAMES: list[str] = [
    "knee",
    "hip",
    "elbow",
    "shoulder",
    "torso_from_vertical",
    "arm_elevation",
    "arm_spread",
    "wrist_height_norm",
    "stance_width",
    "knee_asym",
    "elbow_asym",
    "is_upright",
    "is_leaning",
    "is_horizontal",
    "wrist_above_shoulder",
    "wrist_at_shoulder",
    "wrist_at_chest",
    "wrist_below_hip",
    "elbows_pinned",
    "wrist_above_elbow",
]
NUM_FEATURES: int = len(FEATURE_NAMES)

SNAPSHOT_NAMES: list[str] = ["knee", "hip", "elbow", "shoulder", "torso_from_vertical"]


class FeatureVector(BaseModel):
    """Joint angles (degrees) and positional flags for one frame."""

    # Bilateral averages
    knee: float
    hip: float
    elbow: float
    shoulder: float

    # Per-side
    knee_left: float
    knee_right: float
    hip_left: float
    hip_right: float
    elbow_left: float
    elbow_right: float
    shoulder_left: float
    shoulder_right: float

    torso_from_vertical: float = Field(description="0 = upright, 90 = lying flat")
    is_upright: bool
    is_leaning: bool
    is_horizontal: bool

    wrist_above_shoulder: bool
    wrist_at_shoulder: bool
    wrist_at_chest: bool
    wrist_below_hip: bool
    wrist_above_elbow: bool

    arm_spread: float = Field(description="Wrist distance / shoulder distance")
    stance_width: float = Field(description="Ankle distance / hip distance")
    wrist_height_norm: float = Field(description="0 = shoulder line, 1 = hip line")
    arm_elevation: float = Field(description="Upper arm angle from straight down")

    knee_asym: float
    elbow_asym: float

    ankle_near_hip: bool
    is_standing_bent_over: bool
    elbows_pinned: bool

    def to_vector(self) -> np.ndarray:
        """Return the ``FEATURE_NAMES``-ordered float32 vector (booleans as 0/1)."""
        return np.array(
            [float(getattr(self, name)) for name in FEATURE_NAMES],
            dtype=np.float32,
        )

    def snapshot(self) -> list[int]:
        """Compact 5-value similarity key used by the learning store."""
        return [round_half_up(getattr(self, name)) for name in SNAPSHOT_NAMES]


def _avg(a: float, b: float) -> float:
    return (a + b) / 2.0


def extract_features(landmarks: Optional[Sequence[Any]]) -> Optional[FeatureVector]:
    """Compute the per-frame feature vector.

    Args:
        landmarks: 33 pose landmarks in any shape accepted by
            ``as_landmark_array``.

    Returns:
        ``FeatureVector``, or ``None`` when fewer than ``MIN_LANDMARKS``
        landmarks are present.
    """
    lm = as_landmark_array(landmarks)
    if lm is None or lm.shape[0] < MIN_LANDMARKS:
        logger.debug(
            "Not enough landmarks for feature extraction (%s)",
            None if lm is None else lm.shape[0],
        )
        return None

    ls, rs = lm[P.LEFT_SHOULDER], lm[P.RIGHT_SHOULDER]
    le, re = lm[P.LEFT_ELBOW], lm[P.RIGHT_ELBOW]
    lw, rw = lm[P.LEFT_WRIST], lm[P.RIGHT_WRIST]
    lh, rh = lm[P.LEFT_HIP], lm[P.RIGHT_HIP]
    lk, rk = lm[P.LEFT_KNEE], lm[P.RIGHT_KNEE]
    la, ra = lm[P.LEFT_ANKLE], lm[P.RIGHT_ANKLE]

    # ---- joint angles ----
    knee_l, knee_r = angle_deg(lh, lk, la), angle_deg(rh, rk, ra)
    hip_l, hip_r = angle_deg(ls, lh, lk), angle_deg(rs, rh, rk)
    elbow_l, elbow_r = angle_deg(ls, le, lw), angle_deg(rs, re, rw)
    shoulder_l, shoulder_r = angle_deg(le, ls, lh), angle_deg(re, rs, rh)

    # ---- body orientation ----
    s_mid = mid(ls, rs)
    h_mid = mid(lh, rh)
    torso = torso_angle(s_mid, h_mid)
    is_upright = torso < TORSO_UPRIGHT_MAX
    is_leaning = TORSO_UPRIGHT_MAX <= torso < TORSO_LEANING_MAX
    is_horizontal = torso >= TORSO_LEANING_MAX

    # ---- wrist position ----
    w_mid = mid(lw, rw)
    e_mid = mid(le, re)
    wrist_above_shoulder = w_mid[1] < s_mid[1] - WRIST_ABOVE_TOLERANCE
    wrist_at_shoulder = abs(w_mid[1] - s_mid[1]) < WRIST_LEVEL_TOLERANCE
    wrist_at_chest = s_mid[1] < w_mid[1] < h_mid[1]
    wrist_below_hip = w_mid[1] > h_mid[1]
    wrist_above_elbow = w_mid[1] < e_mid[1]

    torso_height = h_mid[1] - s_mid[1]
    wrist_height_norm = (w_mid[1] - s_mid[1]) / torso_height if torso_height != 0 else 0.0

    # ---- ratios ----
    shoulder_w = dist(ls, rs)
    arm_spread = dist(lw, rw) / shoulder_w if shoulder_w > 0 else 1.0
    hip_w = dist(lh, rh)
    stance_width = dist(la, ra) / hip_w if hip_w > 0 else 1.0

    # Virtual point straight below each shoulder
    elev_l = angle_deg(le, ls, (ls[0], ls[1] + 1.0))
    elev_r = angle_deg(re, rs, (rs[0], rs[1] + 1.0))
    arm_elevation = _avg(elev_l, elev_r)

    shoulder = _avg(shoulder_l, shoulder_r)
    elbows_pinned = (
        shoulder < ELBOWS_PINNED_SHOULDER_MAX
        and arm_elevation < ELBOWS_PINNED_ELEVATION_MAX
    )

    # ---- bent-over detection ----
    ankle_near_hip = abs(_avg(la[1], ra[1]) - h_mid[1]) < ANKLE_NEAR_HIP_TOLERANCE
    is_standing_bent_over = (is_horizontal or is_leaning) and ankle_near_hip

    return FeatureVector(
        knee=_avg(knee_l, knee_r),
        hip=_avg(hip_l, hip_r),
        elbow=_avg(elbow_l, elbow_r),
        shoulder=shoulder,
        knee_left=knee_l,
        knee_right=knee_r,
        hip_left=hip_l,
        hip_right=hip_r,
        elbow_left=elbow_l,
        elbow_right=elbow_r,
        shoulder_left=shoulder_l,
        shoulder_right=shoulder_r,
        torso_from_vertical=torso,
        is_upright=is_upright,
        is_leaning=is_leaning,
        is_horizontal=is_horizontal,
        wrist_above_shoulder=bool(wrist_above_shoulder),
        wrist_at_shoulder=bool(wrist_at_shoulder),
        wrist_at_chest=bool(wrist_at_chest),
        wrist_below_hip=bool(wrist_below_hip),
        wrist_above_elbow=bool(wrist_above_elbow),
        arm_spread=arm_spread,
        stance_width=stance_width,
        wrist_height_norm=float(wrist_height_norm),
        arm_elevation=arm_elevation,
        knee_asym=abs(knee_l - knee_r),
        elbow_asym=abs(elbow_l - elbow_r),
        ankle_near_hip=bool(ankle_near_hip),
        is_standing_bent_over=bool(is_standing_bent_over),
        elbows_pinned=bool(elbows_pinned),
    )
