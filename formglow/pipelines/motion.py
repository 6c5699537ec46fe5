"""
Exercise Recognition (multi-frame).

``MotionTracker`` buffers per-frame features over a rolling window and
classifies the exercise from how joints move across it (range of motion,
average posture) rather than from a single snapshot. Static frames that
look alike, e.g. the bottom of a squat and a curl, separate once the
tracker has seen which joints travel.
"""

import logging
from collections import deque
from typing import Any, Optional, Sequence

import numpy as np
from pydantic import BaseModel

from ..preprocessing.features import FeatureVector, extract_features
from ..preprocessing.geometry import round_half_up
from .config import (
    CONFIDENCE_SCALE,
    ELBOW_MOTION_THRESHOLD,
    HIP_MOTION_THRESHOLD,
    KNEE_MOTION_THRESHOLD,
    MOTION_MAX_HISTORY,
    MOTION_MIN_BEST_SCORE,
    MOTION_MIN_FRAMES,
    SHOULDER_MOTION_THRESHOLD,
    TOP_K,
    TORSO_LEANING_MAX,
    TORSO_UPRIGHT_MAX,
)
from .recognition import ClassificationResult, ExerciseScore
from .rules import MOTION_RULES

logger = logging.getLogger(__name__)


class MotionFeatures(BaseModel):
    """Joint ranges and averages (degrees) over a frame history."""

    knee_range: float
    elbow_range: float
    hip_range: float
    shoulder_range: float

    avg_torso: float
    avg_shoulder: float
    avg_knee: float
    avg_knee_asym: float

    is_upright: bool
    is_leaning: bool
    is_horizontal: bool

    has_knee_motion: bool
    has_elbow_motion: bool
    has_hip_motion: bool
    has_shoulder_motion: bool


def compute_motion_features(history: Sequence[FeatureVector]) -> MotionFeatures:
    """Summarize a non-empty sequence of per-frame features.

    Raises:
        ValueError: If *history* is empty.
    """
    if len(history) == 0:
        raise ValueError("Motion features need at least one frame.")

    knee = np.array([f.knee for f in history])
    elbow = np.array([f.elbow for f in history])
    hip = np.array([f.hip for f in history])
    shoulder = np.array([f.shoulder for f in history])
    torso = np.array([f.torso_from_vertical for f in history])
    knee_asym = np.array([abs(f.knee_left - f.knee_right) for f in history])

    knee_range = float(np.ptp(knee))
    elbow_range = float(np.ptp(elbow))
    hip_range = float(np.ptp(hip))
    shoulder_range = float(np.ptp(shoulder))
    avg_torso = float(torso.mean())

    return MotionFeatures(
        knee_range=knee_range,
        elbow_range=elbow_range,
        hip_range=hip_range,
        shoulder_range=shoulder_range,
        avg_torso=avg_torso,
        avg_shoulder=float(shoulder.mean()),
        avg_knee=float(knee.mean()),
        avg_knee_asym=float(knee_asym.mean()),
        is_upright=avg_torso < TORSO_UPRIGHT_MAX,
        is_leaning=TORSO_UPRIGHT_MAX <= avg_torso < TORSO_LEANING_MAX,
        is_horizontal=avg_torso >= TORSO_LEANING_MAX,
        has_knee_motion=knee_range > KNEE_MOTION_THRESHOLD,
        has_elbow_motion=elbow_range > ELBOW_MOTION_THRESHOLD,
        has_hip_motion=hip_range > HIP_MOTION_THRESHOLD,
        has_shoulder_motion=shoulder_range > SHOULDER_MOTION_THRESHOLD,
    )


class MotionTracker:
    """Rolling-window exercise classifier.

    Args:
        max_history: Frames kept; older frames drop off the front.
        min_frames: Frames needed before any classification is attempted.
        min_best_score: Best raw motion score below which the window is
            treated as inconclusive.
        confidence_scale: Raw-score → confidence multiplier.
    """

    def __init__(
        self,
        max_history: int = MOTION_MAX_HISTORY,
        min_frames: int = MOTION_MIN_FRAMES,
        min_best_score: int = MOTION_MIN_BEST_SCORE,
        confidence_scale: float = CONFIDENCE_SCALE,
    ):
        if max_history <= 0:
            raise ValueError(f"max_history must be positive, got {max_history}.")
        if not 0 < min_frames <= max_history:
            raise ValueError(
                f"min_frames must be in 1..{max_history}, got {min_frames}."
            )
        self.max_history = max_history
        self.min_frames = min_frames
        self.min_best_score = min_best_score
        self.confidence_scale = confidence_scale

        self._history: deque[tuple[FeatureVector, Optional[float]]] = deque(maxlen=max_history)
        self._detected: Optional[str] = None
        self._confidence = 0

    def __len__(self) -> int:
        return len(self._history)

    @property
    def detected_exercise(self) -> Optional[str]:
        """Last conclusive classification, or None."""
        return self._detected

    @property
    def confidence(self) -> int:
        return self._confidence

    def score_all(self, motion: MotionFeatures) -> dict[str, int]:
        """Raw motion-rule score per exercise, in rule order."""
        return {key: rule.score(motion) for key, rule in MOTION_RULES.items()}

    def add_frame(
        self,
        landmarks: Optional[Sequence[Any]],
        timestamp: Optional[float] = None,
    ) -> Optional[ClassificationResult]:
        """Append one frame and classify the window.

        Args:
            landmarks: 33 pose landmarks for the frame.
            timestamp: Capture time, stored with the frame.

        Returns:
            ``ClassificationResult`` once the window is long enough and
            conclusive; None while warming up, for unusable landmarks, or
            when no exercise reaches ``min_best_score``.
        """
        features = extract_features(landmarks)
        if features is None:
            return None

        self._history.append((features, timestamp))
        if len(self._history) < self.min_frames:
            return None
        return self._analyze()

    def _analyze(self) -> Optional[ClassificationResult]:
        motion = compute_motion_features([f for f, _ in self._history])
        scores = self.score_all(motion)

        best_key: Optional[str] = None
        best_score = 0
        for key, score in scores.items():
            if score > best_score:
                best_key, best_score = key, score

        if best_key is None or best_score < self.min_best_score:
            logger.debug(
                "Motion window inconclusive (best score %d over %d frames)",
                best_score, len(self._history),
            )
            return None

        ranked = sorted(scores.items(), key=lambda kv: kv[1], reverse=True)
        top3 = [ExerciseScore(key=k, score=v) for k, v in ranked[:TOP_K]]
        confidence = min(100, round_half_up(best_score * self.confidence_scale))

        if best_key != self._detected:
            logger.info("Motion tracker detected '%s' (confidence %d)", best_key, confidence)
        self._detected = best_key
        self._confidence = confidence

        return ClassificationResult(
            key=best_key,
            confidence=confidence,
            top3=top3,
            used_learning=False,
            source="rules",
        )

    def reset(self) -> None:
        """Forget the window and the last detection (e.g. between sets)."""
        self._history.clear()
        self._detected = None
        self._confidence = 0
