"""
Form criteria tables.

Each scorable exercise owns a ``FormCriteria``: a handful of weighted
checkpoints whose weights sum to 100. A checkpoint measures one value from
the frame (usually a joint angle), shapes it into a 0-100 sub-score and
names the muscles to flag when it fails.

Exercises without their own table borrow one through the registry alias
(e.g. inclineBench → benchPress); anything else falls back to the generic
stability + alignment set.
"""

import logging
from functools import partial
from typing import TYPE_CHECKING, Any, Callable, Optional, Union

import numpy as np
from pydantic import BaseModel, ConfigDict, Field

from .config import PASS_THRESHOLD
from .registry import ExerciseId, get_exercise
from .utils import above_threshold_score, below_threshold_score, range_score

if TYPE_CHECKING:
    from .assessment import PoseAngles

logger = logging.getLogger(__name__)

GENERIC_CRITERIA_KEY = "generic"


# ============================================================================
# Models
# ============================================================================

class CheckpointResult(BaseModel):
    id: str
    label: str
    weight: int
    value: float = Field(description="Raw measurement that was scored")
    score: float = Field(ge=0.0, le=100.0)
    passed: bool
    message: str
    muscles: list[str]


class Checkpoint(BaseModel):
    """One weighted biomechanical rule."""
    model_config = ConfigDict(frozen=True)

    id: str
    label: str
    weight: int = Field(gt=0)
    muscles: list[str] = Field(default_factory=list)
    measure: Callable[..., float] = Field(description="(keypoints, angles) -> value")
    shape: Callable[[float], float] = Field(description="value -> 0-100 sub-score")
    correction: str = Field(description="Cue shown when the checkpoint fails")

    def evaluate(self, keypoints: np.ndarray, angles: "PoseAngles") -> CheckpointResult:
        value = float(self.measure(keypoints, angles))
        score = min(100.0, max(0.0, float(self.shape(value))))
        passed = score >= PASS_THRESHOLD
        return CheckpointResult(
            id=self.id,
            label=self.label,
            weight=self.weight,
            value=value,
            score=score,
            passed=passed,
            message=f"{self.label}: OK" if passed else self.correction,
            muscles=list(self.muscles),
        )


class FormCriteria(BaseModel):
    key: str
    checkpoints: list[Checkpoint]

    @property
    def total_weight(self) -> int:
        return sum(cp.weight for cp in self.checkpoints)


# ============================================================================
# Measurement helpers
# ============================================================================

def _angle(name: str) -> Callable[..., float]:
    return lambda kp, a: getattr(a, name)


def _wrist_stack(kp: np.ndarray, a: Any) -> float:
    """Mean horizontal wrist-over-elbow offset."""
    return (abs(kp[15, 0] - kp[13, 0]) + abs(kp[16, 0] - kp[14, 0])) / 2.0


def _in_range(lo: float, hi: float, tolerance: float) -> Callable[[float], float]:
    return partial(range_score, lo=lo, hi=hi, tolerance=tolerance)


def _below(threshold: float, tolerance: float) -> Callable[[float], float]:
    return partial(below_threshold_score, threshold=threshold, tolerance=tolerance)


def _above(threshold: float, tolerance: float) -> Callable[[float], float]:
    return partial(above_threshold_score, threshold=threshold, tolerance=tolerance)


def _criteria(key: str, *checkpoints: tuple) -> FormCriteria:
    cps = [
        Checkpoint(
            id=cp_id, label=label, weight=weight, muscles=muscles,
            measure=measure, shape=shape, correction=correction,
        )
        for cp_id, label, weight, muscles, measure, shape, correction in checkpoints
    ]
    return FormCriteria(key=key, checkpoints=cps)


# ============================================================================
# Tables
# ============================================================================

FORM_CRITERIA: dict[str, FormCriteria] = {
    "squat": _criteria(
        "squat",
        ("depth", "Squat depth", 30, ["quadriceps", "glutes"],
         _angle("knee"), _in_range(70, 120, 30),
         "Sit deeper: aim for knees around 90 degrees."),
        ("knee_alignment", "Knee alignment", 30, ["quadriceps"],
         _angle("knee_valgus_ratio"), _above(0.85, 0.5),
         "Knees are caving in. Push them out over your toes."),
        ("hip_depth", "Hip hinge", 20, ["glutes", "hamstrings"],
         _angle("hip"), _in_range(70, 130, 25),
         "Push your hips back and down."),
        ("torso", "Torso angle", 20, ["core", "lowerBack"],
         _angle("torso_from_vertical"), _below(25, 20),
         "Chest up: your torso is leaning too far forward."),
    ),
    "benchPress": _criteria(
        "benchPress",
        ("elbow_depth", "Elbow bend", 50, ["triceps", "chest"],
         _angle("elbow"), _in_range(75, 120, 25),
         "Lower the bar until your elbows reach about 90 degrees."),
        ("elbow_flare", "Elbow flare", 50, ["shoulders"],
         _angle("shoulder"), _in_range(45, 75, 20),
         "Elbows are flared too wide. Tuck them to 45-75 degrees."),
    ),
    "deadlift": _criteria(
        "deadlift",
        ("hip_hinge", "Hip hinge", 35, ["glutes", "hamstrings"],
         _angle("hip"), _in_range(80, 160, 25),
         "Hinge at the hips, not the lower back."),
        ("back", "Back position", 40, ["lowerBack", "core"],
         _angle("torso_from_vertical"), _below(50, 30),
         "Your back is rounding. Chest up and keep a neutral spine."),
        ("knees", "Knee bend", 25, ["quadriceps"],
         _angle("knee"), _in_range(130, 170, 20),
         "Keep a soft bend in the knees."),
    ),
    "shoulderPress": _criteria(
        "shoulderPress",
        ("lockout", "Overhead reach", 35, ["shoulders"],
         _angle("shoulder"), _in_range(120, 180, 30),
         "Press all the way overhead."),
        ("elbow_extension", "Elbow extension", 25, ["triceps"],
         _angle("elbow"), _in_range(90, 180, 30),
         "Extend your elbows at the top of the press."),
        ("back_arch", "Back arch", 30, ["core"],
         _angle("torso_from_vertical"), _below(15, 25),
         "You are arching your back. Brace your core and stay neutral."),
        ("wrist_stack", "Wrists over elbows", 10, ["shoulders", "triceps"],
         _wrist_stack, _below(0.06, 0.1),
         "Stack your wrists directly above your elbows."),
    ),
    "bicepCurl": _criteria(
        "bicepCurl",
        ("curl_range", "Curl range", 60, ["biceps"],
         _angle("elbow"), _in_range(30, 90, 25),
         "Curl the weight higher for a full contraction."),
        ("elbow_drift", "Elbow position", 40, ["biceps"],
         _angle("shoulder"), _below(25, 25),
         "Elbows are drifting away. Pin them to your sides."),
    ),
    "latPulldown": _criteria(
        "latPulldown",
        ("pull_depth", "Pull depth", 60, ["lats", "biceps"],
         _angle("elbow"), _in_range(70, 140, 25),
         "Pull the bar down to upper-chest height."),
        ("shoulder_path", "Shoulder path", 40, ["shoulders"],
         _angle("shoulder"), _in_range(90, 170, 25),
         "Keep the bar in front of your head, not behind the neck."),
    ),
    "plank": _criteria(
        "plank",
        ("body_line", "Body line", 70, ["core", "glutes"],
         _angle("hip"), _in_range(160, 180, 20),
         "Hips are sagging. Squeeze your glutes and keep a straight line."),
        ("legs_straight", "Leg extension", 30, ["quadriceps"],
         _angle("knee"), _above(160, 30),
         "Straighten your legs."),
    ),
    "lunge": _criteria(
        "lunge",
        ("front_knee", "Front knee", 60, ["quadriceps"],
         _angle("front_knee"), _in_range(80, 110, 20),
         "Keep the front knee near 90 degrees, not past your toes."),
        ("back_knee", "Back knee", 40, ["glutes"],
         _angle("back_knee"), _in_range(80, 120, 25),
         "Drop the back knee lower toward the floor."),
    ),
    "barbellRow": _criteria(
        "barbellRow",
        ("torso", "Torso angle", 50, ["lowerBack", "core"],
         _angle("torso_from_vertical"), _in_range(30, 60, 15),
         "Hold your torso at 30-60 degrees of forward lean."),
        ("pull", "Row depth", 50, ["lats", "traps"],
         _angle("elbow"), _in_range(60, 120, 25),
         "Pull your elbows back past your torso."),
    ),
    "pullUp": _criteria(
        "pullUp",
        ("pull", "Pull height", 100, ["lats", "biceps"],
         _angle("elbow"), _in_range(50, 130, 25),
         "Pull your chin up toward the bar."),
    ),
    "hipThrust": _criteria(
        "hipThrust",
        ("hip_extension", "Hip extension", 60, ["glutes", "hamstrings"],
         _angle("hip"), _above(150, 20),
         "Drive your hips higher until torso and thighs line up."),
        ("knee_angle", "Shin position", 40, ["quadriceps"],
         _angle("knee"), _in_range(80, 100, 15),
         "Adjust your feet so the knees sit at about 90 degrees."),
    ),
    "legPress": _criteria(
        "legPress",
        ("depth", "Press depth", 70, ["quadriceps", "glutes"],
         _angle("knee"), _in_range(80, 120, 20),
         "Lower the sled until your knees reach about 90 degrees."),
        ("lockout", "Knee lockout", 30, ["quadriceps"],
         _angle("back_knee"), _below(170, 10),
         "Do not lock out your knees at the top."),
    ),
    "legCurl": _criteria(
        "legCurl",
        ("curl", "Curl range", 100, ["hamstrings"],
         _angle("knee"), _in_range(40, 100, 25),
         "Curl your heels closer to your glutes."),
    ),
    "cableFly": _criteria(
        "cableFly",
        ("elbow_bend", "Elbow bend", 100, ["chest"],
         _angle("elbow"), _in_range(130, 170, 20),
         "Keep a slight, fixed bend in your elbows."),
    ),
    "lateralRaise": _criteria(
        "lateralRaise",
        ("raise_height", "Raise height", 60, ["shoulders"],
         _angle("shoulder"), _in_range(70, 100, 20),
         "Raise your arms to shoulder height, no higher."),
        ("elbow_bend", "Elbow bend", 40, ["shoulders"],
         _angle("elbow"), _in_range(150, 175, 15),
         "Keep a soft bend in the elbows."),
    ),
}

# Checkpoints with no muscles are attributed to the exercise's primary muscles
GENERIC_CRITERIA: FormCriteria = _criteria(
    GENERIC_CRITERIA_KEY,
    ("stability", "Torso stability", 50, ["core"],
     _angle("torso_from_vertical"), _below(30, 30),
     "Keep your torso stable and upright."),
    ("alignment", "Left/right balance", 50, [],
     lambda kp, a: max(a.knee_asym, a.elbow_asym), _below(20, 30),
     "Move both sides evenly."),
)


# ============================================================================
# Lookup and validation
# ============================================================================

def get_criteria(exercise_key: Union[str, ExerciseId, None]) -> FormCriteria:
    """Resolve criteria: direct table, then registry alias, then generic.

    Never raises; unknown keys get the generic criteria.
    """
    key = exercise_key.value if isinstance(exercise_key, ExerciseId) else exercise_key
    if key in FORM_CRITERIA:
        return FORM_CRITERIA[key]

    spec = get_exercise(key)
    if spec is not None and spec.criteria_key in FORM_CRITERIA:
        return FORM_CRITERIA[spec.criteria_key]

    logger.debug("No criteria for '%s', using generic", exercise_key)
    return GENERIC_CRITERIA


def validate_criteria(criteria: Optional[dict[str, FormCriteria]] = None) -> None:
    """Check every criteria set is non-empty, has unique ids and weights summing to 100.

    Raises:
        ValueError: On the first malformed set.
    """
    tables = dict(criteria) if criteria is not None else {**FORM_CRITERIA, GENERIC_CRITERIA_KEY: GENERIC_CRITERIA}
    for key, fc in tables.items():
        if not fc.checkpoints:
            raise ValueError(f"Criteria '{key}' has no checkpoints.")
        ids = [cp.id for cp in fc.checkpoints]
        if len(set(ids)) != len(ids):
            raise ValueError(f"Criteria '{key}' has duplicate checkpoint ids: {ids}.")
        if fc.total_weight != 100:
            raise ValueError(
                f"Criteria '{key}' weights sum to {fc.total_weight}, expected 100."
            )
