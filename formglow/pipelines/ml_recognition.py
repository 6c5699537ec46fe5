"""
Exercise Recognition (neural).

Loads a trained feature-vector classifier bundle (``model.keras`` +
``model-meta.json``), normalizes the 20-value feature vector with the
bundle's parameters and returns the same ``ClassificationResult`` shape as
the heuristic classifier. Without a usable bundle every call is delegated
to the fallback classifier.
"""

import json
import logging
from pathlib import Path
from typing import Any, Optional, Sequence, Union

import numpy as np
import tensorflow as tf

from ..data.preprocessing import normalize_features
from ..preprocessing.features import FEATURE_NAMES, extract_features
from ..preprocessing.geometry import round_half_up
from .config import MODEL_DIR, MODEL_FILENAME, MODEL_META_FILENAME, TOP_K
from .recognition import ClassificationResult, ExerciseScore, HeuristicClassifier, fallback_result

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Module-level model cache: bundle dir → (model, meta)
# ---------------------------------------------------------------------------
_model_cache: dict[str, tuple[tf.keras.Model, dict]] = {}


def load_model_bundle(model_dir: Union[str, Path]) -> tuple[tf.keras.Model, dict]:
    """Load (or return cached) model + metadata from *model_dir*.

    Returns:
        ``(model, meta)`` where meta holds ``class_names``,
        ``feature_names`` and ``norm_params``.

    Raises:
        FileNotFoundError: If the model or metadata file is missing.
        ValueError: If the bundle was trained on a different feature order
            or its metadata is inconsistent.
    """
    model_dir = Path(model_dir)
    cache_key = str(model_dir.resolve())
    if cache_key in _model_cache:
        return _model_cache[cache_key]

    model_path = model_dir / MODEL_FILENAME
    meta_path = model_dir / MODEL_META_FILENAME
    if not model_path.exists() or not meta_path.exists():
        raise FileNotFoundError(
            f"Classifier bundle not found in {model_dir} "
            f"(expected {MODEL_FILENAME} and {MODEL_META_FILENAME})."
        )

    with open(meta_path, "r") as f:
        meta = json.load(f)

    feature_names = meta.get("feature_names")
    if feature_names != FEATURE_NAMES:
        raise ValueError(
            f"Model feature order {feature_names} does not match FEATURE_NAMES {FEATURE_NAMES}."
        )
    norm = meta.get("norm_params") or {}
    if len(norm.get("means", [])) != len(FEATURE_NAMES) or len(norm.get("stds", [])) != len(FEATURE_NAMES):
        raise ValueError("Model normalization params do not cover every feature.")

    logger.info("Loading exercise classifier: %s", model_path)
    model = tf.keras.models.load_model(str(model_path), compile=False)

    n_out = model.output_shape[-1]
    if n_out != len(meta.get("class_names", [])):
        raise ValueError(
            f"Model has {n_out} outputs but metadata lists {len(meta.get('class_names', []))} classes."
        )

    _model_cache[cache_key] = (model, meta)
    return model, meta


def clear_model_cache() -> None:
    _model_cache.clear()


class MLClassifier:
    """Neural classifier with lazy loading and a heuristic fallback.

    Args:
        model_dir: Bundle directory (defaults to ``FORMGLOW_MODEL_DIR``).
        fallback: Classifier used when the bundle is unavailable; defaults
            to a plain ``HeuristicClassifier``.
    """

    def __init__(
        self,
        model_dir: Union[str, Path, None] = None,
        fallback: Optional[HeuristicClassifier] = None,
    ):
        self.model_dir = Path(model_dir) if model_dir is not None else MODEL_DIR
        self.fallback = fallback if fallback is not None else HeuristicClassifier()
        self._model: Optional[tf.keras.Model] = None
        self._meta: Optional[dict] = None
        self._unavailable = False

    @property
    def is_ready(self) -> bool:
        return self._model is not None

    def load(self) -> None:
        """Load the bundle now instead of on first use.

        Raises:
            FileNotFoundError: If the bundle is missing.
            ValueError: If the bundle is inconsistent with ``FEATURE_NAMES``.
        """
        self._model, self._meta = load_model_bundle(self.model_dir)
        self._unavailable = False

    def ensure_loaded(self) -> bool:
        """Load the bundle once; False means calls use the fallback.

        A missing, unreadable or mismatched bundle marks the classifier
        unavailable for the rest of its life.
        """
        if self._model is not None:
            return True
        if self._unavailable:
            return False
        try:
            self.load()
            return True
        except (OSError, ValueError) as e:
            # Warn once; later calls go straight to the fallback
            self._unavailable = True
            logger.warning("Exercise classifier unavailable, using rules fallback: %s", e)
            return False

    def predict_proba(self, feature_vector: np.ndarray) -> np.ndarray:
        """Class probabilities for one raw (unnormalized) 20-value vector."""
        if not self.ensure_loaded():
            raise FileNotFoundError(f"No classifier bundle in {self.model_dir}.")
        x = normalize_features(feature_vector, self._meta["norm_params"]).reshape(1, -1)
        probs = self._model.predict(x, verbose=0)
        return np.asarray(probs[0], dtype=np.float64)

    def classify(self, landmarks: Optional[Sequence[Any]]) -> ClassificationResult:
        """Classify one frame with the neural model (or the fallback)."""
        if not self.ensure_loaded():
            return self.fallback.classify(landmarks)

        features = extract_features(landmarks)
        if features is None:
            return fallback_result(self.fallback.default_exercise)

        probs = self.predict_proba(features.to_vector())
        class_names = self._meta["class_names"]

        best_idx = int(np.argmax(probs))
        order = np.argsort(-probs, kind="stable")[:TOP_K]
        top3 = [
            ExerciseScore(key=class_names[i], score=round_half_up(float(probs[i]) * 100))
            for i in order
        ]
        confidence = round_half_up(float(probs[best_idx]) * 100)

        logger.debug(
            "ML classification: '%s' confidence=%d", class_names[best_idx], confidence,
        )
        return ClassificationResult(
            key=class_names[best_idx],
            confidence=min(100, max(0, confidence)),
            top3=top3,
            used_learning=False,
            source="ml",
        )
