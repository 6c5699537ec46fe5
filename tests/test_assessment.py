"""Tests for form criteria, scoring and feedback."""

import pytest

from formglow.pipelines.assessment import (
    FormAnalyzer,
    FormResult,
    analyze_pose,
    compute_pose_angles,
)
from formglow.pipelines.exercise_criteria import (
    FORM_CRITERIA,
    GENERIC_CRITERIA,
    Checkpoint,
    CheckpointResult,
    FormCriteria,
    get_criteria,
    validate_criteria,
)
from formglow.pipelines.registry import EXERCISE_REGISTRY, ExerciseId
from formglow.pipelines.utils import (
    above_threshold_score,
    below_threshold_score,
    generate_feedback,
    range_score,
    status_for_score,
)


def _straight_left_leg(pose):
    """Squat pose with the left leg fully extended."""
    lm = pose.copy()
    lm[25, :2] = [0.625, 0.6395]
    return lm


# ============================================================================
# Shaping and status
# ============================================================================

class TestShaping:

    def test_range_score(self):
        assert range_score(90, 70, 120, 30) == 100.0
        assert range_score(70, 70, 120, 30) == 100.0
        assert range_score(55, 70, 120, 30) == pytest.approx(50.0)
        assert range_score(135, 70, 120, 30) == pytest.approx(50.0)
        assert range_score(10, 70, 120, 30) == 0.0

    def test_below_threshold_score(self):
        assert below_threshold_score(10, 25, 20) == 100.0
        assert below_threshold_score(35, 25, 20) == pytest.approx(50.0)
        assert below_threshold_score(90, 25, 20) == 0.0

    def test_above_threshold_score(self):
        assert above_threshold_score(1.2, 0.85, 0.5) == 100.0
        assert above_threshold_score(0.6, 0.85, 0.5) == pytest.approx(50.0)
        assert above_threshold_score(0.0, 0.85, 0.5) == 0.0

    @pytest.mark.parametrize("score,expected", [
        (100, "good"), (80, "good"), (79, "warning"), (60, "warning"), (59, "bad"), (0, "bad"),
    ])
    def test_status_boundaries(self, score, expected):
        assert status_for_score(score) == expected


# ============================================================================
# Criteria tables
# ============================================================================

class TestCriteria:

    def test_all_tables_valid(self):
        validate_criteria()

    def test_weights_sum_to_100(self):
        for key, fc in {**FORM_CRITERIA, "generic": GENERIC_CRITERIA}.items():
            assert fc.total_weight == 100, key

    def test_bad_weights_rejected(self):
        bad = FormCriteria(key="bad", checkpoints=[
            Checkpoint(id="a", label="A", weight=40, measure=lambda kp, a: 0.0,
                       shape=lambda v: 100.0, correction="fix a"),
        ])
        with pytest.raises(ValueError, match="sum to 40"):
            validate_criteria({"bad": bad})

    def test_duplicate_ids_rejected(self):
        cp = Checkpoint(id="a", label="A", weight=50, measure=lambda kp, a: 0.0,
                        shape=lambda v: 100.0, correction="fix a")
        with pytest.raises(ValueError, match="duplicate"):
            validate_criteria({"dup": FormCriteria(key="dup", checkpoints=[cp, cp])})

    def test_empty_rejected(self):
        with pytest.raises(ValueError, match="no checkpoints"):
            validate_criteria({"empty": FormCriteria(key="empty", checkpoints=[])})

    def test_resolution(self):
        assert get_criteria("squat").key == "squat"
        assert get_criteria(ExerciseId.SQUAT).key == "squat"
        assert get_criteria("inclineBench").key == "benchPress"
        assert get_criteria("dumbbellRow").key == "barbellRow"
        assert get_criteria("zumba") is GENERIC_CRITERIA
        assert get_criteria(None) is GENERIC_CRITERIA

    def test_every_registered_exercise_has_criteria(self):
        for ex in EXERCISE_REGISTRY:
            assert get_criteria(ex) is not GENERIC_CRITERIA, ex


# ============================================================================
# Analyzer
# ============================================================================

class TestFormAnalyzer:

    def test_good_squat(self, squat_pose):
        result = analyze_pose(squat_pose, "squat")
        assert isinstance(result, FormResult)
        assert result.criteria_key == "squat"
        assert result.overall_score == 100
        assert result.status == "good"
        assert all(c.passed for c in result.checkpoints)
        assert result.wrong_muscles == set()
        assert result.corrections == []
        assert result.active_muscles[:2] == ["quadriceps", "glutes"]
        assert set(result.muscle_status.values()) == {"good"}

    def test_valgus_squat(self, valgus_squat_pose):
        result = analyze_pose(valgus_squat_pose, "squat")
        by_id = {c.id: c for c in result.checkpoints}

        assert by_id["depth"].score == 0.0
        assert by_id["knee_alignment"].score == pytest.approx(50.0, abs=0.5)
        assert not by_id["knee_alignment"].passed
        assert by_id["hip_depth"].passed
        assert by_id["torso"].score == 100.0

        assert result.overall_score == 52
        assert result.status == "bad"
        assert result.wrong_muscles == {"quadriceps", "glutes"}
        assert result.muscle_status["quadriceps"] == "bad"
        assert result.muscle_status["core"] == "good"
        assert len(result.corrections) == 2
        assert "caving in" in result.corrections[1]

    def test_valgus_ratio(self, squat_pose, valgus_squat_pose):
        assert compute_pose_angles(squat_pose).knee_valgus_ratio == pytest.approx(1.165, abs=0.01)
        assert compute_pose_angles(valgus_squat_pose).knee_valgus_ratio == pytest.approx(0.6, abs=0.01)

    def test_front_and_back_knee(self, squat_pose):
        angles = compute_pose_angles(_straight_left_leg(squat_pose))
        assert angles.front_knee == pytest.approx(90.0, abs=1.0)
        assert angles.back_knee == pytest.approx(180.0, abs=0.5)

    def test_insufficient_input(self):
        for landmarks in (None, [], [[0.5, 0.5]] * 5):
            result = analyze_pose(landmarks, "squat")
            assert result.overall_score == 85
            assert result.status == "good"
            assert result.checkpoints == []
            assert result.criteria_key is None
            assert "quadriceps" in result.active_muscles
            assert set(result.muscle_status.values()) == {"good"}

    def test_alias_scored_with_parent_criteria(self, squat_pose):
        result = analyze_pose(squat_pose, "inclineBench")
        assert result.exercise == "inclineBench"
        assert result.criteria_key == "benchPress"
        # Arms hanging: both bench checkpoints fail
        assert result.overall_score == 0
        assert result.wrong_muscles == {"triceps", "chest", "shoulders"}
        assert result.muscle_status["chest"] == "bad"

    def test_wrist_stack_uses_keypoints(self, squat_pose):
        result = analyze_pose(squat_pose, "shoulderPress")
        stack = next(c for c in result.checkpoints if c.id == "wrist_stack")
        assert stack.value == pytest.approx(0.01, abs=1e-6)
        assert stack.passed

    def test_unknown_exercise_uses_generic(self, squat_pose):
        result = analyze_pose(_straight_left_leg(squat_pose), "zumba")
        assert result.exercise == "zumba"
        assert result.criteria_key == "generic"
        assert [c.id for c in result.checkpoints] == ["stability", "alignment"]
        assert result.overall_score == 50
        # Unknown exercise has no primary muscles to blame
        assert result.wrong_muscles == set()
        assert result.corrections == ["Move both sides evenly."]

    def test_unattributed_failure_blames_primary_muscles(self, squat_pose):
        class _GenericOnly(FormAnalyzer):
            def resolve_criteria(self, exercise_key):
                return GENERIC_CRITERIA

        result = _GenericOnly().analyze(_straight_left_leg(squat_pose), "squat")
        assert result.wrong_muscles == {"quadriceps", "glutes"}

    def test_scores_bounded_on_random_poses(self, random_poses):
        analyzer = FormAnalyzer()
        for lm in random_poses[:8]:
            for ex in EXERCISE_REGISTRY:
                result = analyzer.analyze(lm, ex)
                assert 0 <= result.overall_score <= 100
                assert result.status == status_for_score(result.overall_score)
                for c in result.checkpoints:
                    assert 0.0 <= c.score <= 100.0
                    assert c.passed == (c.score >= 60)
                assert set(result.muscle_status) >= set(result.active_muscles)


# ============================================================================
# Feedback
# ============================================================================

class TestFeedback:

    def test_good_form(self, squat_pose):
        tips = generate_feedback(analyze_pose(squat_pose, "squat"))
        assert tips == ["Great form! Score 100/100."]

    def test_bad_form_lists_corrections(self, valgus_squat_pose):
        result = analyze_pose(valgus_squat_pose, "squat")
        tips = generate_feedback(result)
        assert tips[0].startswith("Your form needs attention (52/100)")
        assert tips[1:] == result.corrections

    def test_weakest_passing_checkpoint_mentioned(self):
        result = FormResult(
            exercise="plank",
            overall_score=91,
            status="good",
            checkpoints=[
                CheckpointResult(id="body_line", label="Body line", weight=70, value=170.0,
                                 score=100.0, passed=True, message="Body line: OK", muscles=["core"]),
                CheckpointResult(id="legs_straight", label="Leg extension", weight=30, value=150.0,
                                 score=70.0, passed=True, message="Leg extension: OK",
                                 muscles=["quadriceps"]),
            ],
        )
        assert generate_feedback(result) == [
            "Great form! Score 91/100.",
            "Watch your leg extension (70/100).",
        ]

    def test_warning_summary(self):
        result = FormResult(exercise="plank", overall_score=65, status="warning")
        assert generate_feedback(result) == ["Decent form (65/100). A few things to tighten up."]
