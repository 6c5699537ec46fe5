"""
Exercise Recognition (heuristic).

Scores every auto-detectable exercise with its additive rule, folds in
learned boosts from user corrections, and returns the best key with a
0-100 confidence and the top-3 candidates.
"""

import logging
from typing import TYPE_CHECKING, Any, Literal, Optional, Sequence

from pydantic import BaseModel, Field

from ..preprocessing.features import FeatureVector, extract_features
from ..preprocessing.geometry import round_half_up
from .config import CONFIDENCE_SCALE, DEFAULT_EXERCISE, TOP_K
from .registry import DETECTABLE_EXERCISES, get_exercise

if TYPE_CHECKING:
    from .learning import LearningStore

logger = logging.getLogger(__name__)


class ExerciseScore(BaseModel):
    key: str
    score: int


class ClassificationResult(BaseModel):
    """Best exercise guess for one frame."""
    key: str = Field(description="Exercise key (camelCase registry value)")
    confidence: int = Field(ge=0, le=100, description="0-100 confidence")
    top3: list[ExerciseScore] = Field(default_factory=list)
    used_learning: bool = Field(
        default=False, description="True when learned boosts were available"
    )
    source: Literal["rules", "ml"] = "rules"


def fallback_result(default_exercise: str = DEFAULT_EXERCISE) -> ClassificationResult:
    """Result returned when the frame cannot be classified."""
    return ClassificationResult(key=default_exercise, confidence=0, top3=[], used_learning=False)


class HeuristicClassifier:
    """Rule-based single-frame classifier.

    Args:
        learning_store: Optional store providing ``get_learned_boosts``.
        confidence_scale: Raw-score → confidence multiplier.
        default_exercise: Key reported when nothing scores above zero.
    """

    def __init__(
        self,
        learning_store: Optional["LearningStore"] = None,
        confidence_scale: float = CONFIDENCE_SCALE,
        default_exercise: str = DEFAULT_EXERCISE,
    ):
        self.learning_store = learning_store
        self.confidence_scale = confidence_scale
        self.default_exercise = default_exercise

    def score_all(self, features: FeatureVector) -> dict[str, int]:
        """Raw rule score per detectable exercise, in registry order."""
        return {spec.key: spec.rule.score(features) for spec in DETECTABLE_EXERCISES}

    def classify(self, landmarks: Optional[Sequence[Any]]) -> ClassificationResult:
        """Classify a single frame.

        Args:
            landmarks: 33 pose landmarks (any shape accepted by
                ``as_landmark_array``).

        Returns:
            ``ClassificationResult``; the fallback result (default key,
            confidence 0) when landmarks are missing or too few.
        """
        features = extract_features(landmarks)
        if features is None:
            return fallback_result(self.default_exercise)

        scores = self.score_all(features)

        boosts: dict[str, int] = {}
        if self.learning_store is not None:
            boosts = self.learning_store.get_learned_boosts(landmarks)
        for key, boost in boosts.items():
            if key in scores:
                scores[key] = max(0, scores[key] + boost)

        best_key = self.default_exercise
        best_score = 0
        for key, score in scores.items():
            if score > best_score:
                best_key, best_score = key, score

        # sorted() is stable: ties keep registry order
        ranked = sorted(scores.items(), key=lambda kv: kv[1], reverse=True)
        top3 = [ExerciseScore(key=k, score=v) for k, v in ranked[:TOP_K]]

        confidence = min(100, round_half_up(best_score * self.confidence_scale))

        logger.debug(
            "Classification: '%s' score=%d confidence=%d boosts=%s",
            best_key, best_score, confidence, boosts,
        )
        return ClassificationResult(
            key=best_key,
            confidence=confidence,
            top3=top3,
            used_learning=bool(boosts),
            source="rules",
        )

    def explain(self, landmarks: Optional[Sequence[Any]], key: str) -> list[str]:
        """Names of the scoring clauses that fired for *key* on this frame.

        Raises:
            ValueError: If *key* is not an auto-detectable exercise.
        """
        spec = get_exercise(key)
        if spec is None or spec.rule is None:
            raise ValueError(f"No detection rule for exercise '{key}'.")
        features = extract_features(landmarks)
        if features is None:
            return []
        return spec.rule.fired(features)
