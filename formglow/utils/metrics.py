"""
Classification metrics for evaluating exercise classifiers on labelled frames.
"""

import logging
from typing import Any, Dict, Iterable, List, Sequence, Tuple

import numpy as np

logger = logging.getLogger(__name__)

_EPS = 1e-8


def _f1_for_class(y_true: np.ndarray, y_pred: np.ndarray, cls: int) -> float:
    true_pos = np.sum((y_true == cls) & (y_pred == cls))
    false_pos = np.sum((y_true != cls) & (y_pred == cls))
    false_neg = np.sum((y_true == cls) & (y_pred != cls))

    precision = true_pos / (true_pos + false_pos + _EPS)
    recall = true_pos / (true_pos + false_neg + _EPS)
    return float(2 * precision * recall / (precision + recall + _EPS))


def macro_f1_score(y_true: np.ndarray, y_pred: np.ndarray, num_classes: int) -> float:
    """Compute macro F1 score for integer-encoded labels."""
    y_true, y_pred = np.asarray(y_true), np.asarray(y_pred)
    return float(np.mean([_f1_for_class(y_true, y_pred, c) for c in range(num_classes)]))


def per_class_f1_scores(y_true: np.ndarray, y_pred: np.ndarray, num_classes: int) -> Dict[int, float]:
    """Return per-class F1 scores as a dictionary."""
    y_true, y_pred = np.asarray(y_true), np.asarray(y_pred)
    return {c: _f1_for_class(y_true, y_pred, c) for c in range(num_classes)}


def confusion_matrix(y_true: np.ndarray, y_pred: np.ndarray, num_classes: int) -> np.ndarray:
    """Rows are true classes, columns predicted classes."""
    cm = np.zeros((num_classes, num_classes), dtype=np.int64)
    for t, p in zip(np.asarray(y_true), np.asarray(y_pred)):
        cm[int(t), int(p)] += 1
    return cm


def evaluate_classifier(
    classifier: Any,
    samples: Iterable[Tuple[Sequence[Any], str]],
) -> Dict[str, Any]:
    """
    Run *classifier* over labelled frames and summarize its accuracy.

    Args:
        classifier: Anything with ``classify(landmarks) -> ClassificationResult``.
        samples: ``(landmarks, true_label)`` pairs.

    Returns:
        Dict with ``num_samples``, ``accuracy``, ``macro_f1``,
        ``per_class_f1`` (keyed by label), ``labels`` and ``confusion_matrix``.
    """
    y_true_labels: List[str] = []
    y_pred_labels: List[str] = []
    for landmarks, label in samples:
        y_true_labels.append(label)
        y_pred_labels.append(classifier.classify(landmarks).key)

    if not y_true_labels:
        raise ValueError("evaluate_classifier needs at least one sample.")

    labels = sorted(set(y_true_labels) | set(y_pred_labels))
    index = {label: i for i, label in enumerate(labels)}
    y_true = np.array([index[l] for l in y_true_labels])
    y_pred = np.array([index[l] for l in y_pred_labels])

    per_class = per_class_f1_scores(y_true, y_pred, len(labels))
    results = {
        "num_samples": len(y_true_labels),
        "accuracy": float(np.mean(y_true == y_pred)),
        "macro_f1": macro_f1_score(y_true, y_pred, len(labels)),
        "per_class_f1": {labels[i]: f1 for i, f1 in per_class.items()},
        "labels": labels,
        "confusion_matrix": confusion_matrix(y_true, y_pred, len(labels)),
    }
    logger.info(
        "Evaluated %d samples: accuracy=%.3f macro_f1=%.3f",
        results["num_samples"], results["accuracy"], results["macro_f1"],
    )
    return results
