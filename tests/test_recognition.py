"""Tests for the exercise registry and the heuristic classifier."""

import pytest

from formglow.pipelines.recognition import (
    ClassificationResult,
    HeuristicClassifier,
    fallback_result,
)
from formglow.pipelines.registry import (
    DETECTABLE_EXERCISES,
    EXERCISE_REGISTRY,
    ExerciseId,
    get_exercise,
    resolve_exercise,
)
from formglow.pipelines.rules import RULES


# ============================================================================
# Registry
# ============================================================================

class TestRegistry:

    def test_detectable_order(self):
        keys = [s.key for s in DETECTABLE_EXERCISES]
        assert keys == [
            "plank", "benchPress", "legCurl", "squat", "deadlift", "barbellRow",
            "dumbbellRow", "seatedRow", "shoulderPress", "bicepCurl", "latPulldown",
            "pullUp", "lunge", "legPress", "cableFly", "lateralRaise", "hipThrust",
        ]

    def test_every_rule_has_a_registered_exercise(self):
        for key in RULES:
            assert resolve_exercise(key) is not None

    def test_every_enum_member_registered(self):
        assert set(EXERCISE_REGISTRY) == set(ExerciseId)

    def test_resolve(self):
        assert resolve_exercise("squat") is ExerciseId.SQUAT
        assert resolve_exercise(ExerciseId.LUNGE) is ExerciseId.LUNGE
        assert resolve_exercise("zumba") is None
        assert resolve_exercise(None) is None

    def test_alias_and_muscles(self):
        spec = get_exercise("inclineBench")
        assert spec.criteria_key == "benchPress"
        assert spec.rule is None
        squat = get_exercise("squat")
        assert squat.criteria_key == "squat"
        assert squat.muscles[:2] == ["quadriceps", "glutes"]
        assert len(squat.muscles) == len(set(squat.muscles))


# ============================================================================
# Heuristic classifier
# ============================================================================

class _FixedScores(HeuristicClassifier):
    """Classifier whose raw scores are injected by the test."""

    def __init__(self, scores, **kwargs):
        super().__init__(**kwargs)
        self._scores = scores

    def score_all(self, features):
        base = {s.key: 0 for s in DETECTABLE_EXERCISES}
        base.update(self._scores)
        return base


class TestHeuristicClassifier:

    def test_fallback_on_missing_landmarks(self):
        clf = HeuristicClassifier()
        for landmarks in (None, [], [[0.5, 0.5]] * 10):
            result = clf.classify(landmarks)
            assert result == fallback_result()
            assert result.key == "squat"
            assert result.confidence == 0
            assert result.top3 == []
            assert result.used_learning is False

    def test_squat_pose(self, squat_pose):
        result = HeuristicClassifier().classify(squat_pose)
        assert isinstance(result, ClassificationResult)
        assert result.key == "squat"
        assert result.confidence == 88
        assert result.source == "rules"
        assert [t.key for t in result.top3] == ["squat", "bicepCurl", "cableFly"]
        assert [t.score for t in result.top3] == [80, 55, 50]
        assert result.used_learning is False

    def test_score_all_covers_detectable(self, squat_pose):
        from formglow.preprocessing.features import extract_features

        scores = HeuristicClassifier().score_all(extract_features(squat_pose))
        assert list(scores) == [s.key for s in DETECTABLE_EXERCISES]
        assert scores["squat"] == 80
        # Penalties can push raw scores below zero
        assert scores["barbellRow"] < 0

    def test_tie_goes_to_first_registered(self, squat_pose):
        clf = _FixedScores({"squat": 40, "plank": 40, "lunge": 40})
        result = clf.classify(squat_pose)
        assert result.key == "plank"
        assert [t.key for t in result.top3] == ["plank", "squat", "lunge"]
        assert result.confidence == 44

    def test_nothing_positive_falls_back_to_default(self, squat_pose):
        clf = _FixedScores({"plank": -10})
        result = clf.classify(squat_pose)
        assert result.key == "squat"
        assert result.confidence == 0

    def test_confidence_capped(self, squat_pose):
        result = _FixedScores({"lunge": 200}).classify(squat_pose)
        assert result.key == "lunge"
        assert result.confidence == 100

    def test_confidence_rounds_half_up(self, squat_pose):
        # 5 * 1.1 = 5.5 → 6
        result = _FixedScores({"lunge": 5}).classify(squat_pose)
        assert result.confidence == 6

    def test_custom_default_and_scale(self, squat_pose):
        clf = HeuristicClassifier(confidence_scale=1.0, default_exercise="plank")
        assert clf.classify(None).key == "plank"
        assert clf.classify(squat_pose).confidence == 80

    def test_explain(self, squat_pose):
        clf = HeuristicClassifier()
        fired = clf.explain(squat_pose, "squat")
        assert "upright" in fired
        assert "deep knee bend" in fired
        assert "leaning" not in fired
        assert clf.explain(None, "squat") == []

    def test_explain_unknown_rule(self, squat_pose):
        with pytest.raises(ValueError, match="No detection rule"):
            HeuristicClassifier().explain(squat_pose, "inclineBench")
