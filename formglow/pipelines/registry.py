"""
Exercise registry.

Single source of truth for every exercise the engine knows about: display
name, category, trained muscles, the heuristic detection rule (if the
exercise can be auto-detected) and which criteria set scores its form.

Registry order matters: it is the classifier iteration order and therefore
the tie-break order between equal scores.
"""

import logging
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .rules import RULES, ExerciseRule

logger = logging.getLogger(__name__)


class ExerciseId(str, Enum):
    # ---- auto-detectable, in classifier order ----
    PLANK = "plank"
    BENCH_PRESS = "benchPress"
    LEG_CURL = "legCurl"
    SQUAT = "squat"
    DEADLIFT = "deadlift"
    BARBELL_ROW = "barbellRow"
    DUMBBELL_ROW = "dumbbellRow"
    SEATED_ROW = "seatedRow"
    SHOULDER_PRESS = "shoulderPress"
    BICEP_CURL = "bicepCurl"
    LAT_PULLDOWN = "latPulldown"
    PULL_UP = "pullUp"
    LUNGE = "lunge"
    LEG_PRESS = "legPress"
    CABLE_FLY = "cableFly"
    LATERAL_RAISE = "lateralRaise"
    HIP_THRUST = "hipThrust"

    # ---- selectable only ----
    FRONT_SQUAT = "frontSquat"
    BULGARIAN_SPLIT = "bulgarianSplit"
    INCLINE_BENCH = "inclineBench"
    DECLINE_BENCH = "declineBench"
    CHEST_PRESS = "chestPress"
    PUSH_UP = "pushUp"
    DIP = "dip"
    DUMBBELL_FLY = "dumbbellFly"
    CHIN_UP = "chinUp"
    FACE_PULL = "facePull"
    BACK_EXTENSION = "backExtension"
    ARNOLD_PRESS = "arnoldPress"
    FRONT_RAISE = "frontRaise"
    REAR_DELT_FLY = "rearDeltFly"
    UPRIGHT_ROW = "uprightRow"
    SHRUG = "shrug"
    HAMMER_CURL = "hammerCurl"
    PREACHER_CURL = "preacherCurl"
    TRICEP_PUSHDOWN = "tricepPushdown"
    SKULL_CRUSHER = "skullCrusher"
    OVERHEAD_EXTENSION = "overheadExtension"
    WRIST_CURL = "wristCurl"
    LEG_EXTENSION = "legExtension"
    CALF_RAISE = "calfRaise"
    CRUNCH = "crunch"
    LEG_RAISE = "legRaise"
    RUSSIAN_TWIST = "russianTwist"
    AB_WHEEL_ROLLOUT = "abWheelRollout"
    ROMANIAN_DEADLIFT = "romanianDeadlift"
    CLEAN_AND_PRESS = "cleanAndPress"
    KETTLEBELL_SWING = "kettlebellSwing"
    BURPEE = "burpee"


class ExerciseSpec(BaseModel):
    """Static description of one exercise."""
    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    id: ExerciseId
    name: str = Field(description="Display name")
    category: str
    primary: list[str] = Field(default_factory=list, description="Primary muscles")
    secondary: list[str] = Field(default_factory=list, description="Secondary muscles")
    alias: Optional[ExerciseId] = Field(
        default=None,
        description="Exercise whose form criteria are reused for this one",
    )
    rule: Optional[ExerciseRule] = Field(
        default=None,
        description="Heuristic detection rule; None if never auto-detected",
    )

    @property
    def key(self) -> str:
        return self.id.value

    @property
    def muscles(self) -> list[str]:
        """Primary then secondary muscles, without duplicates."""
        return list(dict.fromkeys(self.primary + self.secondary))

    @property
    def criteria_key(self) -> str:
        return (self.alias or self.id).value


def _spec(
    ex: ExerciseId,
    name: str,
    category: str,
    primary: list[str],
    secondary: list[str],
    alias: Optional[ExerciseId] = None,
) -> ExerciseSpec:
    return ExerciseSpec(
        id=ex,
        name=name,
        category=category,
        primary=primary,
        secondary=secondary,
        alias=alias,
        rule=RULES.get(ex.value),
    )


E = ExerciseId

_SPECS: list[ExerciseSpec] = [
    _spec(E.PLANK, "Plank", "core", ["core"], ["shoulders", "glutes", "quadriceps"]),
    _spec(E.BENCH_PRESS, "Bench Press", "chest", ["chest", "triceps"], ["shoulders", "core"]),
    _spec(E.LEG_CURL, "Leg Curl", "legs", ["hamstrings"], ["calves", "glutes"]),
    _spec(E.SQUAT, "Squat", "legs", ["quadriceps", "glutes"], ["hamstrings", "calves", "core", "lowerBack"]),
    _spec(E.DEADLIFT, "Deadlift", "fullBody", ["hamstrings", "glutes", "lowerBack"],
          ["quadriceps", "core", "traps", "forearms"]),
    _spec(E.BARBELL_ROW, "Barbell Row", "back", ["lats", "traps"], ["biceps", "lowerBack", "core"]),
    _spec(E.DUMBBELL_ROW, "Dumbbell Row", "back", ["lats", "traps"], ["biceps", "forearms"],
          alias=E.BARBELL_ROW),
    _spec(E.SEATED_ROW, "Seated Row", "back", ["lats", "traps"], ["biceps", "forearms", "shoulders"],
          alias=E.BARBELL_ROW),
    _spec(E.SHOULDER_PRESS, "Shoulder Press", "shoulders", ["shoulders", "triceps"], ["traps", "core"]),
    _spec(E.BICEP_CURL, "Bicep Curl", "arms", ["biceps"], ["forearms"]),
    _spec(E.LAT_PULLDOWN, "Lat Pulldown", "back", ["lats", "biceps"], ["traps", "shoulders", "forearms"]),
    _spec(E.PULL_UP, "Pull-Up", "back", ["lats", "biceps"], ["traps", "forearms", "core"]),
    _spec(E.LUNGE, "Lunge", "legs", ["quadriceps", "glutes"], ["hamstrings", "calves", "core"]),
    _spec(E.LEG_PRESS, "Leg Press", "legs", ["quadriceps", "glutes"], ["hamstrings", "calves"]),
    _spec(E.CABLE_FLY, "Cable Fly", "chest", ["chest"], ["shoulders", "biceps"]),
    _spec(E.LATERAL_RAISE, "Lateral Raise", "shoulders", ["shoulders"], ["traps"]),
    _spec(E.HIP_THRUST, "Hip Thrust", "legs", ["glutes", "hamstrings"], ["core", "quadriceps"]),

    _spec(E.FRONT_SQUAT, "Front Squat", "legs", ["quadriceps", "core"], ["glutes", "calves"], alias=E.SQUAT),
    _spec(E.BULGARIAN_SPLIT, "Bulgarian Split Squat", "legs", ["quadriceps", "glutes"],
          ["hamstrings", "core"], alias=E.LUNGE),
    _spec(E.INCLINE_BENCH, "Incline Bench Press", "chest", ["chest", "shoulders"], ["triceps", "core"],
          alias=E.BENCH_PRESS),
    _spec(E.DECLINE_BENCH, "Decline Bench Press", "chest", ["chest", "triceps"], ["shoulders"],
          alias=E.BENCH_PRESS),
    _spec(E.CHEST_PRESS, "Chest Press Machine", "chest", ["chest", "triceps"], ["shoulders"],
          alias=E.BENCH_PRESS),
    _spec(E.PUSH_UP, "Push-Up", "chest", ["chest", "triceps"], ["shoulders", "core"], alias=E.BENCH_PRESS),
    _spec(E.DIP, "Dip", "chest", ["chest", "triceps"], ["shoulders", "core"], alias=E.BENCH_PRESS),
    _spec(E.DUMBBELL_FLY, "Dumbbell Fly", "chest", ["chest"], ["shoulders", "biceps"], alias=E.CABLE_FLY),
    _spec(E.CHIN_UP, "Chin-Up", "back", ["lats", "biceps"], ["traps", "forearms"], alias=E.PULL_UP),
    _spec(E.FACE_PULL, "Face Pull", "back", ["traps", "shoulders"], ["biceps"], alias=E.BARBELL_ROW),
    _spec(E.BACK_EXTENSION, "Back Extension", "back", ["lowerBack", "glutes"], ["hamstrings"],
          alias=E.DEADLIFT),
    _spec(E.ARNOLD_PRESS, "Arnold Press", "shoulders", ["shoulders", "triceps"], ["traps"],
          alias=E.SHOULDER_PRESS),
    _spec(E.FRONT_RAISE, "Front Raise", "shoulders", ["shoulders"], ["chest", "traps"],
          alias=E.LATERAL_RAISE),
    _spec(E.REAR_DELT_FLY, "Rear Delt Fly", "shoulders", ["shoulders", "traps"], ["lats"],
          alias=E.LATERAL_RAISE),
    _spec(E.UPRIGHT_ROW, "Upright Row", "shoulders", ["shoulders", "traps"], ["biceps", "forearms"],
          alias=E.SHOULDER_PRESS),
    _spec(E.SHRUG, "Shrug", "shoulders", ["traps"], ["shoulders", "forearms"], alias=E.SHOULDER_PRESS),
    _spec(E.HAMMER_CURL, "Hammer Curl", "arms", ["biceps", "forearms"], [], alias=E.BICEP_CURL),
    _spec(E.PREACHER_CURL, "Preacher Curl", "arms", ["biceps"], ["forearms"], alias=E.BICEP_CURL),
    _spec(E.TRICEP_PUSHDOWN, "Tricep Pushdown", "arms", ["triceps"], [], alias=E.BICEP_CURL),
    _spec(E.SKULL_CRUSHER, "Skull Crusher", "arms", ["triceps"], ["shoulders"], alias=E.BENCH_PRESS),
    _spec(E.OVERHEAD_EXTENSION, "Overhead Extension", "arms", ["triceps"], ["shoulders"],
          alias=E.SHOULDER_PRESS),
    _spec(E.WRIST_CURL, "Wrist Curl", "arms", ["forearms"], [], alias=E.BICEP_CURL),
    _spec(E.LEG_EXTENSION, "Leg Extension", "legs", ["quadriceps"], [], alias=E.LEG_PRESS),
    _spec(E.CALF_RAISE, "Calf Raise", "legs", ["calves"], [], alias=E.SQUAT),
    _spec(E.CRUNCH, "Crunch", "core", ["core"], [], alias=E.PLANK),
    _spec(E.LEG_RAISE, "Leg Raise", "core", ["core"], ["quadriceps"], alias=E.PLANK),
    _spec(E.RUSSIAN_TWIST, "Russian Twist", "core", ["core"], ["shoulders"], alias=E.PLANK),
    _spec(E.AB_WHEEL_ROLLOUT, "Ab Wheel Rollout", "core", ["core", "lats"], ["shoulders", "triceps"],
          alias=E.PLANK),
    _spec(E.ROMANIAN_DEADLIFT, "Romanian Deadlift", "fullBody", ["hamstrings", "glutes", "lowerBack"],
          ["core", "traps"], alias=E.DEADLIFT),
    _spec(E.CLEAN_AND_PRESS, "Clean and Press", "fullBody", ["shoulders", "quadriceps", "glutes"],
          ["core", "traps", "triceps", "hamstrings"], alias=E.SHOULDER_PRESS),
    _spec(E.KETTLEBELL_SWING, "Kettlebell Swing", "fullBody", ["glutes", "hamstrings", "core"],
          ["shoulders", "lats", "quadriceps"], alias=E.DEADLIFT),
    _spec(E.BURPEE, "Burpee", "fullBody", ["quadriceps", "chest", "core"],
          ["shoulders", "triceps", "glutes"], alias=E.SQUAT),
]

EXERCISE_REGISTRY: dict[ExerciseId, ExerciseSpec] = {s.id: s for s in _SPECS}

# Rule-bearing exercises in iteration order
DETECTABLE_EXERCISES: list[ExerciseSpec] = [s for s in _SPECS if s.rule is not None]


def resolve_exercise(key: Union[str, ExerciseId, None]) -> Optional[ExerciseId]:
    """Map a raw key (or enum member) to an ``ExerciseId``.

    Returns:
        The matching member, or ``None`` for unknown keys.
    """
    if key is None:
        return None
    if isinstance(key, ExerciseId):
        return key
    try:
        return ExerciseId(key)
    except ValueError:
        logger.debug("Unknown exercise key '%s'", key)
        return None


def get_exercise(key: Union[str, ExerciseId, None]) -> Optional[ExerciseSpec]:
    """Registry lookup by key; ``None`` for unknown exercises."""
    ex = resolve_exercise(key)
    return EXERCISE_REGISTRY.get(ex) if ex is not None else None
