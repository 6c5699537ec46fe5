"""Tests for classification metrics."""

import numpy as np
import pytest

from formglow.pipelines.recognition import ClassificationResult, HeuristicClassifier
from formglow.utils.metrics import (
    confusion_matrix,
    evaluate_classifier,
    macro_f1_score,
    per_class_f1_scores,
)


class _EchoClassifier:
    """Returns the label smuggled in as the 'landmarks'."""

    def classify(self, landmarks):
        return ClassificationResult(key=landmarks, confidence=100, top3=[], used_learning=False)


class TestF1:

    def test_perfect(self):
        y = np.array([0, 1, 2, 1])
        assert macro_f1_score(y, y, 3) == pytest.approx(1.0, abs=1e-6)

    def test_per_class(self):
        y_true = np.array([0, 0, 1, 1])
        y_pred = np.array([0, 1, 1, 1])
        scores = per_class_f1_scores(y_true, y_pred, 2)
        # class 0: p=1, r=0.5 → 2/3; class 1: p=2/3, r=1 → 0.8
        assert scores[0] == pytest.approx(2 / 3, abs=1e-6)
        assert scores[1] == pytest.approx(0.8, abs=1e-6)

    def test_confusion_matrix(self):
        cm = confusion_matrix([0, 0, 1, 1], [0, 1, 1, 1], 2)
        np.testing.assert_array_equal(cm, [[1, 1], [0, 2]])


class TestEvaluateClassifier:

    def test_summary(self):
        samples = [("squat", "squat"), ("lunge", "squat"), ("plank", "plank")]
        results = evaluate_classifier(_EchoClassifier(), samples)
        assert results["num_samples"] == 3
        assert results["accuracy"] == pytest.approx(2 / 3)
        assert results["labels"] == ["lunge", "plank", "squat"]
        assert results["per_class_f1"]["plank"] == pytest.approx(1.0, abs=1e-6)
        assert results["per_class_f1"]["lunge"] == pytest.approx(0.0, abs=1e-6)
        assert results["confusion_matrix"].sum() == 3

    def test_heuristic_on_squat(self, squat_pose):
        results = evaluate_classifier(HeuristicClassifier(), [(squat_pose, "squat")] * 3)
        assert results["accuracy"] == 1.0

    def test_empty(self):
        with pytest.raises(ValueError):
            evaluate_classifier(_EchoClassifier(), [])
