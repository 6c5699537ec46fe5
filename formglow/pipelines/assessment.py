"""
Form Assessment.

Scores a single frame against the chosen exercise's weighted checkpoints
and maps failures back onto the muscles they load, so the renderer can
paint badly-worked regions red and show the matching correction cues.
"""

import logging
from typing import Any, Literal, Optional, Sequence, Union

import numpy as np
from pydantic import BaseModel, Field

from ..data.landmarks import PoseLandmark as P, as_landmark_array
from ..preprocessing.features import FeatureVector, extract_features
from ..preprocessing.geometry import round_half_up
from .config import INSUFFICIENT_INPUT_SCORE
from .exercise_criteria import CheckpointResult, FormCriteria, get_criteria
from .registry import ExerciseId, get_exercise
from .utils import Status, status_for_score

logger = logging.getLogger(__name__)


class PoseAngles(FeatureVector):
    """Feature vector plus form-specific derived measurements."""
    knee_gap: float = Field(description="Horizontal knee separation")
    ankle_gap: float
    hip_gap: float
    knee_valgus_ratio: float = Field(description="< 1 means knees narrower than feet/hips")
    front_knee: float = Field(description="More flexed knee angle")
    back_knee: float = Field(description="Less flexed knee angle")


class FormResult(BaseModel):
    exercise: str
    criteria_key: Optional[str] = None
    overall_score: int = Field(ge=0, le=100)
    status: Status
    checkpoints: list[CheckpointResult] = Field(default_factory=list)
    wrong_muscles: set[str] = Field(default_factory=set)
    active_muscles: list[str] = Field(default_factory=list)
    corrections: list[str] = Field(default_factory=list)
    muscle_status: dict[str, Literal["good", "bad"]] = Field(default_factory=dict)


def _safe_ratio(num: float, den: float) -> float:
    return num / den if den > 0 else 1.0


def compute_pose_angles(landmarks: Optional[Sequence[Any]]) -> Optional[PoseAngles]:
    """Feature vector extended with knee-valgus and lunge-specific values.

    Returns:
        ``PoseAngles`` or ``None`` when landmarks are insufficient.
    """
    features = extract_features(landmarks)
    if features is None:
        return None
    lm = as_landmark_array(landmarks)

    knee_gap = float(abs(lm[P.LEFT_KNEE, 0] - lm[P.RIGHT_KNEE, 0]))
    ankle_gap = float(abs(lm[P.LEFT_ANKLE, 0] - lm[P.RIGHT_ANKLE, 0]))
    hip_gap = float(abs(lm[P.LEFT_HIP, 0] - lm[P.RIGHT_HIP, 0]))
    valgus = min(_safe_ratio(knee_gap, ankle_gap), _safe_ratio(knee_gap, hip_gap))

    return PoseAngles(
        **features.model_dump(),
        knee_gap=knee_gap,
        ankle_gap=ankle_gap,
        hip_gap=hip_gap,
        knee_valgus_ratio=valgus,
        front_knee=min(features.knee_left, features.knee_right),
        back_knee=max(features.knee_left, features.knee_right),
    )


class FormAnalyzer:
    """Weighted-checkpoint form scorer."""

    def resolve_criteria(self, exercise_key: Union[str, ExerciseId, None]) -> FormCriteria:
        return get_criteria(exercise_key)

    def analyze(
        self,
        landmarks: Optional[Sequence[Any]],
        exercise_key: Union[str, ExerciseId, None],
    ) -> FormResult:
        """Score one frame for *exercise_key*.

        Args:
            landmarks: 33 pose landmarks.
            exercise_key: Registry key; unknown keys are scored with the
                generic criteria.

        Returns:
            ``FormResult``. Insufficient landmarks produce a neutral
            "good" result with no checkpoints instead of an error.
        """
        spec = get_exercise(exercise_key)
        key = spec.key if spec is not None else str(exercise_key)
        active = spec.muscles if spec is not None else []

        angles = compute_pose_angles(landmarks)
        if angles is None:
            return FormResult(
                exercise=key,
                criteria_key=None,
                overall_score=INSUFFICIENT_INPUT_SCORE,
                status="good",
                active_muscles=active,
                muscle_status={m: "good" for m in active},
            )

        keypoints = as_landmark_array(landmarks)
        criteria = self.resolve_criteria(exercise_key)
        primary = spec.primary if spec is not None else []

        results: list[CheckpointResult] = []
        wrong: set[str] = set()
        corrections: list[str] = []
        for cp in criteria.checkpoints:
            res = cp.evaluate(keypoints, angles)
            results.append(res)
            if not res.passed:
                wrong.update(res.muscles or primary)
                corrections.append(res.message)

        total_weight = sum(r.weight for r in results)
        weighted = sum(r.score * r.weight for r in results)
        overall = round_half_up(weighted / total_weight) if total_weight else INSUFFICIENT_INPUT_SCORE
        overall = int(np.clip(overall, 0, 100))

        muscle_status = {m: ("bad" if m in wrong else "good") for m in active}
        muscle_status.update({m: "bad" for m in sorted(wrong) if m not in muscle_status})

        logger.debug(
            "Form '%s' (criteria '%s'): score=%d failed=%s",
            key, criteria.key, overall, [r.id for r in results if not r.passed],
        )
        return FormResult(
            exercise=key,
            criteria_key=criteria.key,
            overall_score=overall,
            status=status_for_score(overall),
            checkpoints=results,
            wrong_muscles=wrong,
            active_muscles=active,
            corrections=corrections,
            muscle_status=muscle_status,
        )


_default_analyzer = FormAnalyzer()


def analyze_pose(
    landmarks: Optional[Sequence[Any]],
    exercise_key: Union[str, ExerciseId, None],
) -> FormResult:
    """Module-level shortcut for ``FormAnalyzer().analyze``."""
    return _default_analyzer.analyze(landmarks, exercise_key)
