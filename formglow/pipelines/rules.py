"""
Additive heuristic scoring rules for exercise detection.

Each rule is an ordered list of ``ScoringClause``s. A clause contributes its
points when its predicate holds for the input; the rule score is the
(unclamped) sum. ``RULES`` score a single frame's ``FeatureVector``;
``MOTION_RULES`` score the ``MotionFeatures`` of a frame history. Clause
names double as the explanation shown by ``HeuristicClassifier.explain``.
"""

from typing import Any, Callable, Iterable, NamedTuple


class ScoringClause(NamedTuple):
    name: str
    predicate: Callable[[Any], bool]
    points: int


class ExerciseRule:
    """Ordered collection of scoring clauses for one exercise."""

    def __init__(self, clauses: Iterable[ScoringClause]):
        self.clauses: tuple[ScoringClause, ...] = tuple(clauses)

    def score(self, f: Any) -> int:
        return sum(c.points for c in self.clauses if c.predicate(f))

    def fired(self, f: Any) -> list[str]:
        """Names of clauses whose predicate holds, in declaration order."""
        return [c.name for c in self.clauses if c.predicate(f)]

    def __len__(self) -> int:
        return len(self.clauses)


def _rule(*clauses: tuple) -> ExerciseRule:
    return ExerciseRule(ScoringClause(*c) for c in clauses)


# ============================================================================
# Rule table (camelCase keys match ExerciseId values)
# ============================================================================

RULES: dict[str, ExerciseRule] = {
    "plank": _rule(
        ("horizontal, not standing", lambda f: f.is_horizontal and not f.is_standing_bent_over, 45),
        ("legs straight", lambda f: f.knee > 150, 20),
        ("arms extended", lambda f: f.elbow > 140, 20),
        ("hips extended", lambda f: f.hip > 150, 15),
        ("standing bent over", lambda f: f.is_standing_bent_over, -30),
    ),
    "benchPress": _rule(
        ("horizontal, not standing", lambda f: f.is_horizontal and not f.is_standing_bent_over, 30),
        ("elbows mid-press", lambda f: 60 < f.elbow < 150, 20),
        ("shoulders abducted", lambda f: 40 < f.shoulder < 120, 15),
        ("wide grip", lambda f: f.arm_spread > 1.5, 10),
        ("knees bent on bench", lambda f: f.knee > 100, 5),
        ("standing bent over", lambda f: f.is_standing_bent_over, -40),
        ("bent elbows while leaning", lambda f: f.elbow < 100 and f.is_leaning, -15),
    ),
    "legCurl": _rule(
        ("horizontal", lambda f: f.is_horizontal, 25),
        ("knees flexed", lambda f: f.knee < 100, 35),
        ("hips extended", lambda f: f.hip > 140, 20),
    ),
    "squat": _rule(
        ("upright", lambda f: f.is_upright, 20),
        ("knees bent", lambda f: f.knee < 140, 15),
        ("deep knee bend", lambda f: f.knee < 110, 20),
        ("hips flexed", lambda f: f.hip < 140, 10),
        ("deep hip flexion", lambda f: f.hip < 110, 10),
        ("hands between shoulder and hip",
         lambda f: not f.wrist_above_shoulder and not f.wrist_below_hip, 5),
        ("leaning", lambda f: f.is_leaning, -15),
    ),
    "deadlift": _rule(
        ("torso inclined", lambda f: f.is_leaning or f.is_horizontal, 25),
        ("hip hinge", lambda f: f.hip < 130, 20),
        ("soft knees", lambda f: 120 < f.knee < 170, 15),
        ("hands below hips", lambda f: f.wrist_below_hip, 15),
        ("arms straight", lambda f: f.elbow > 150, 15),
        ("arms bent", lambda f: f.elbow < 120, -15),
    ),
    "barbellRow": _rule(
        ("torso inclined", lambda f: f.is_leaning or f.is_horizontal, 30),
        ("torso past 30 degrees", lambda f: f.torso_from_vertical >= 30, 10),
        ("elbows pulling", lambda f: f.elbow < 130, 25),
        ("elbows fully pulled", lambda f: f.elbow < 100, 10),
        ("upper arm near torso", lambda f: 30 < f.shoulder < 90, 15),
        ("hands at chest or below hips", lambda f: f.wrist_at_chest or f.wrist_below_hip, 10),
        ("bent over and pulling", lambda f: f.is_standing_bent_over and f.elbow < 130, 10),
        ("arms locked out", lambda f: f.elbow > 155, -20),
    ),
    "dumbbellRow": _rule(
        ("torso inclined", lambda f: f.is_leaning or f.is_horizontal, 25),
        ("torso past 30 degrees", lambda f: f.torso_from_vertical >= 30, 10),
        ("elbows pulling", lambda f: f.elbow < 130, 20),
        ("one arm pulling", lambda f: f.elbow_asym > 15, 25),
        ("strongly one-sided", lambda f: f.elbow_asym > 30, 10),
        ("upper arm near torso", lambda f: 30 < f.shoulder < 90, 10),
        ("hands at chest or below hips", lambda f: f.wrist_at_chest or f.wrist_below_hip, 5),
        ("bent over, one arm", lambda f: f.is_standing_bent_over and f.elbow_asym > 15, 10),
        ("arms locked out", lambda f: f.elbow > 155, -15),
    ),
    "seatedRow": _rule(
        ("upright or leaning", lambda f: f.is_upright or f.is_leaning, 10),
        ("elbows pulled", lambda f: f.elbow < 110, 20),
        ("upper arm low", lambda f: 20 < f.shoulder < 70, 15),
        ("legs extended", lambda f: f.knee > 130, 10),
        ("hands at chest", lambda f: f.wrist_at_chest, 15),
    ),
    "shoulderPress": _rule(
        ("upright", lambda f: f.is_upright, 15),
        ("hands overhead", lambda f: f.wrist_above_shoulder, 40),
        ("arms raised", lambda f: f.shoulder > 120, 25),
        ("elbows opened", lambda f: f.elbow > 90, 10),
    ),
    "bicepCurl": _rule(
        ("upright", lambda f: f.is_upright, 15),
        ("elbows flexed", lambda f: f.elbow < 80, 35),
        ("elbows at sides", lambda f: f.shoulder < 35, 25),
        ("hands at chest", lambda f: f.wrist_at_chest, 15),
        ("leaning", lambda f: f.is_leaning, -10),
    ),
    "latPulldown": _rule(
        ("hands overhead", lambda f: f.wrist_above_shoulder, 15),
        ("very wide grip", lambda f: f.arm_spread > 2.0, 25),
        ("arms raised", lambda f: f.shoulder > 100, 20),
        ("elbows mid-pull", lambda f: 60 < f.elbow < 130, 15),
        ("legs extended", lambda f: f.knee > 140, 5),
    ),
    "pullUp": _rule(
        ("hands overhead", lambda f: f.wrist_above_shoulder, 25),
        ("wide grip", lambda f: f.arm_spread > 1.5, 15),
        ("arms raised", lambda f: f.shoulder > 110, 20),
        ("elbows bent", lambda f: f.elbow < 120, 15),
    ),
    "lunge": _rule(
        ("upright", lambda f: f.is_upright, 10),
        ("split stance", lambda f: f.knee_asym > 30, 40),
        ("deep split stance", lambda f: f.knee_asym > 50, 15),
        ("knees bent", lambda f: f.knee < 150, 10),
    ),
    "legPress": _rule(
        ("horizontal", lambda f: f.is_horizontal, 20),
        ("knees flexed", lambda f: f.knee < 110, 25),
        ("hips deeply flexed", lambda f: f.hip < 90, 25),
        ("arms at sides", lambda f: f.shoulder < 40, 10),
        ("upright", lambda f: f.is_upright, -10),
        ("leaning", lambda f: f.is_leaning and not f.is_horizontal, -10),
    ),
    "cableFly": _rule(
        ("upright", lambda f: f.is_upright, 10),
        ("arms spread", lambda f: f.arm_spread > 1.8, 25),
        ("hands at shoulder or chest", lambda f: f.wrist_at_shoulder or f.wrist_at_chest, 25),
        ("soft elbows", lambda f: f.elbow > 110, 15),
        ("arms abducted", lambda f: 50 < f.shoulder < 120, 10),
    ),
    "lateralRaise": _rule(
        ("upright", lambda f: f.is_upright, 10),
        ("very wide hands", lambda f: f.arm_spread > 2.0, 25),
        ("hands at shoulder height", lambda f: f.wrist_at_shoulder, 30),
        ("arms straight", lambda f: f.elbow > 140, 15),
        ("arms at horizontal", lambda f: 70 < f.shoulder < 110, 10),
    ),
    "hipThrust": _rule(
        ("horizontal or leaning", lambda f: f.is_horizontal or f.is_leaning, 15),
        ("knees at right angle", lambda f: 70 < f.knee < 120, 20),
        ("hips extended", lambda f: f.hip > 140, 25),
        ("arms low", lambda f: f.shoulder < 50, 10),
    ),
}


# ============================================================================
# Motion rule table (scored on MotionFeatures over a frame history)
# ============================================================================

MOTION_RULES: dict[str, ExerciseRule] = {
    "squat": _rule(
        ("upright", lambda m: m.is_upright, 25),
        ("knees travel", lambda m: m.has_knee_motion and m.knee_range > 30, 35),
        ("hips travel", lambda m: m.has_hip_motion, 20),
        ("elbows still", lambda m: not m.has_elbow_motion, 10),
    ),
    "benchPress": _rule(
        ("horizontal", lambda m: m.is_horizontal, 30),
        ("elbows travel", lambda m: m.has_elbow_motion and m.elbow_range > 25, 30),
        ("knees still", lambda m: not m.has_knee_motion, 15),
    ),
    "bicepCurl": _rule(
        ("upright", lambda m: m.is_upright, 20),
        ("elbows travel", lambda m: m.has_elbow_motion and m.elbow_range > 30, 35),
        ("knees still", lambda m: not m.has_knee_motion, 10),
        ("shoulders quiet", lambda m: not m.has_shoulder_motion or m.shoulder_range < 20, 15),
        ("elbows at sides", lambda m: m.avg_shoulder < 40, 10),
    ),
    "shoulderPress": _rule(
        ("upright", lambda m: m.is_upright, 15),
        ("shoulders travel", lambda m: m.has_shoulder_motion and m.shoulder_range > 20, 30),
        ("elbows moving", lambda m: m.has_elbow_motion, 20),
        ("arms high", lambda m: m.avg_shoulder > 100, 20),
    ),
    "deadlift": _rule(
        ("leaning", lambda m: m.is_leaning, 25),
        ("hips travel", lambda m: m.has_hip_motion and m.hip_range > 20, 30),
        ("moderate knee travel", lambda m: 10 < m.knee_range < 40, 15),
        ("elbows quiet", lambda m: not m.has_elbow_motion or m.elbow_range < 20, 15),
    ),
    "latPulldown": _rule(
        ("upright", lambda m: m.is_upright, 10),
        ("shoulders travel", lambda m: m.has_shoulder_motion and m.shoulder_range > 25, 25),
        ("elbows travel", lambda m: m.has_elbow_motion and m.elbow_range > 25, 25),
        ("arms raised", lambda m: m.avg_shoulder > 80, 15),
    ),
    "lunge": _rule(
        ("upright", lambda m: m.is_upright, 15),
        ("knees moving", lambda m: m.has_knee_motion, 15),
        ("split stance", lambda m: m.avg_knee_asym > 20, 35),
        ("deep split stance", lambda m: m.avg_knee_asym > 40, 15),
    ),
    "plank": _rule(
        ("horizontal", lambda m: m.is_horizontal, 40),
        ("holding still",
         lambda m: not m.has_knee_motion and not m.has_elbow_motion and not m.has_hip_motion, 30),
        ("legs straight", lambda m: m.avg_knee > 150, 15),
    ),
    "barbellRow": _rule(
        ("leaning", lambda m: m.is_leaning, 25),
        ("elbows travel", lambda m: m.has_elbow_motion and m.elbow_range > 20, 30),
        ("knees quiet", lambda m: not m.has_knee_motion or m.knee_range < 15, 10),
    ),
    "lateralRaise": _rule(
        ("upright", lambda m: m.is_upright, 15),
        ("shoulders travel", lambda m: m.has_shoulder_motion and m.shoulder_range > 25, 35),
        ("knees still", lambda m: not m.has_knee_motion, 10),
        ("elbows quiet", lambda m: not m.has_elbow_motion or m.elbow_range < 15, 15),
    ),
    "hipThrust": _rule(
        ("horizontal or leaning", lambda m: m.is_horizontal or m.is_leaning, 15),
        ("hips travel", lambda m: m.has_hip_motion and m.hip_range > 25, 30),
        ("knees quiet", lambda m: m.knee_range < 20, 15),
    ),
}
