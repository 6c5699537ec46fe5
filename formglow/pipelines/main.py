"""
Entry point for hosts (UI, video loop, services) driving the engine.

``FormCoach`` wires the classifier, form analyzer and learning store
together and exposes the per-frame operations:

    classify_exercise(landmarks)            → ClassificationResult
    analyze_pose(landmarks, exercise_key)   → FormResult
    record_correction(landmarks, correct, ai_guess)
    get_learning_stats()                    → LearningStats
    export_for_training()                   → list[TrainingSample]
    process_frame(PoseFrame)                → FrameAnalysis
    track_motion(landmarks, timestamp)      → ClassificationResult | None

Frames are independent except for ``track_motion``, which reads a rolling
window; hosts may skip or debounce calls freely.
"""

import logging
from pathlib import Path
from typing import Any, Optional, Sequence, Union

from pydantic import BaseModel, Field

from ..data.landmarks import PoseFrame
from ..data.storage import JsonFileStore, KeyValueStore, MemoryStore
from ..utils.io_utils import load_config
from .assessment import FormAnalyzer, FormResult
from .config import (
    CLASSIFIER_BACKEND,
    CONFIDENCE_SCALE,
    DEFAULT_CONFIG_PATH,
    DEFAULT_EXERCISE,
    LEARNING_MAX_ENTRIES,
    MOTION_MAX_HISTORY,
    MOTION_MIN_BEST_SCORE,
    MOTION_MIN_FRAMES,
    SIMILARITY_THRESHOLD,
    BOOST_SCALE,
    PENALTY_RATIO,
    STORAGE_DIR,
)
from .learning import CorrectionEntry, LearningStats, LearningStore, TrainingSample
from .motion import MotionTracker
from .recognition import ClassificationResult, HeuristicClassifier
from .utils import generate_feedback

logger = logging.getLogger(__name__)

BACKENDS = ("rules", "ml")


class FrameAnalysis(BaseModel):
    """Classification and form score for one pose-detector frame."""
    classification: ClassificationResult
    form: FormResult
    feedback: list[str] = Field(default_factory=list)
    is_fallback: bool = False


class FormCoach:
    """Facade over classifier, analyzer and learning store.

    Args:
        learning_store: Correction memory; a volatile one is created if omitted.
        classifier: Object with ``classify(landmarks)``; defaults to a
            ``HeuristicClassifier`` reading boosts from *learning_store*.
        analyzer: Form scorer; defaults to ``FormAnalyzer()``.
        motion_tracker: Multi-frame classifier fed by ``track_motion``.
    """

    def __init__(
        self,
        learning_store: Optional[LearningStore] = None,
        classifier: Optional[Any] = None,
        analyzer: Optional[FormAnalyzer] = None,
        motion_tracker: Optional[MotionTracker] = None,
    ):
        self.learning_store = learning_store if learning_store is not None else LearningStore(MemoryStore())
        self.classifier = classifier if classifier is not None else HeuristicClassifier(self.learning_store)
        self.analyzer = analyzer if analyzer is not None else FormAnalyzer()
        self.motion_tracker = motion_tracker if motion_tracker is not None else MotionTracker()

    # ------------------------------------------------------------------
    # Construction from settings
    # ------------------------------------------------------------------

    @classmethod
    def from_config(
        cls,
        config_path: Union[str, Path, None] = None,
        storage: Optional[KeyValueStore] = None,
    ) -> "FormCoach":
        """Build the stack from a YAML settings file.

        Args:
            config_path: YAML file; defaults to ``config/formglow.yaml``.
                Missing default file → built-in defaults.
            storage: Overrides the storage backend named in the config.

        Raises:
            ValueError: On an unknown classifier backend.
        """
        if config_path is None and not DEFAULT_CONFIG_PATH.exists():
            config: dict = {}
        else:
            config = load_config(config_path or DEFAULT_CONFIG_PATH)

        clf_cfg = config.get("classifier") or {}
        learn_cfg = config.get("learning") or {}
        motion_cfg = config.get("motion") or {}

        if storage is None:
            if learn_cfg.get("persist", True):
                storage = JsonFileStore(learn_cfg.get("storage_dir") or STORAGE_DIR)
            else:
                storage = MemoryStore()

        store = LearningStore(
            storage,
            max_entries=int(learn_cfg.get("max_entries", LEARNING_MAX_ENTRIES)),
            similarity_threshold=float(learn_cfg.get("similarity_threshold", SIMILARITY_THRESHOLD)),
            boost_scale=float(learn_cfg.get("boost_scale", BOOST_SCALE)),
            penalty_ratio=float(learn_cfg.get("penalty_ratio", PENALTY_RATIO)),
        )

        heuristic = HeuristicClassifier(
            store,
            confidence_scale=float(clf_cfg.get("confidence_scale", CONFIDENCE_SCALE)),
            default_exercise=clf_cfg.get("default_exercise", DEFAULT_EXERCISE),
        )

        backend = clf_cfg.get("backend") or CLASSIFIER_BACKEND
        if backend not in BACKENDS:
            raise ValueError(f"Unknown classifier backend '{backend}'. Choose from {BACKENDS}.")

        classifier: Any = heuristic
        if backend == "ml":
            from .ml_recognition import MLClassifier
            from .utils import preload_classifier

            classifier = MLClassifier(clf_cfg.get("model_dir"), fallback=heuristic)
            preload_classifier(classifier)

        motion_tracker = MotionTracker(
            max_history=int(motion_cfg.get("max_history", MOTION_MAX_HISTORY)),
            min_frames=int(motion_cfg.get("min_frames", MOTION_MIN_FRAMES)),
            min_best_score=int(motion_cfg.get("min_best_score", MOTION_MIN_BEST_SCORE)),
            confidence_scale=heuristic.confidence_scale,
        )

        logger.info("FormCoach ready: backend=%s, %d stored corrections", backend, len(store))
        return cls(learning_store=store, classifier=classifier, motion_tracker=motion_tracker)

    # ------------------------------------------------------------------
    # Per-frame operations
    # ------------------------------------------------------------------

    def classify_exercise(self, landmarks: Optional[Sequence[Any]]) -> ClassificationResult:
        return self.classifier.classify(landmarks)

    def analyze_pose(self, landmarks: Optional[Sequence[Any]], exercise_key: str) -> FormResult:
        return self.analyzer.analyze(landmarks, exercise_key)

    def process_frame(self, frame: PoseFrame, exercise_key: Optional[str] = None) -> FrameAnalysis:
        """Classify and score one frame.

        Args:
            frame: Pose-detector output.
            exercise_key: Exercise chosen by the user; when omitted the
                classified exercise is scored.
        """
        if frame.is_fallback:
            logger.debug("Processing low-trust fallback frame")

        classification = self.classify_exercise(frame.landmarks)
        form = self.analyze_pose(frame.landmarks, exercise_key or classification.key)
        return FrameAnalysis(
            classification=classification,
            form=form,
            feedback=generate_feedback(form),
            is_fallback=frame.is_fallback,
        )

    def track_motion(
        self,
        landmarks: Optional[Sequence[Any]],
        timestamp: Optional[float] = None,
    ) -> Optional[ClassificationResult]:
        """Feed one frame to the motion tracker; None until it is conclusive."""
        return self.motion_tracker.add_frame(landmarks, timestamp)

    def reset_motion(self) -> None:
        self.motion_tracker.reset()

    # ------------------------------------------------------------------
    # Learning
    # ------------------------------------------------------------------

    def record_correction(
        self,
        landmarks: Optional[Sequence[Any]],
        correct: str,
        ai_guess: Optional[str] = None,
    ) -> Optional[CorrectionEntry]:
        return self.learning_store.record_correction(landmarks, correct, ai_guess)

    def get_learning_stats(self) -> LearningStats:
        return self.learning_store.get_learning_stats()

    def export_for_training(self) -> list[TrainingSample]:
        return self.learning_store.export_for_training()

    def clear_learning(self) -> None:
        self.learning_store.clear()
