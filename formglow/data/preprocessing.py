"""
Feature-vector preprocessing for the neural exercise classifier.

Per-feature standardization (mean/std), label encoding, and conversion of
exported correction samples into training arrays.
"""

import logging
from typing import Dict, List, Mapping, Sequence, Tuple

import numpy as np

logger = logging.getLogger(__name__)

# Replaces zero standard deviations so constant features don't divide by zero
STD_FLOOR = 1e-8


def compute_norm_params(features: np.ndarray) -> Dict[str, List[float]]:
    """
    Compute per-feature mean and standard deviation.

    Args:
        features (np.ndarray): Shape (N, F)

    Returns:
        Dict[str, List[float]]: ``{"means": [F], "stds": [F]}``; zero stds
        are replaced with ``STD_FLOOR``.
    """
    X = np.asarray(features, dtype=np.float64)
    if X.ndim != 2 or X.shape[0] == 0:
        raise ValueError(f"Expected a non-empty (N, F) array, got shape {X.shape}.")

    means = X.mean(axis=0)
    stds = X.std(axis=0)
    stds = np.where(stds == 0, STD_FLOOR, stds)
    return {"means": means.tolist(), "stds": stds.tolist()}


def normalize_features(features: np.ndarray, norm_params: Mapping[str, Sequence[float]]) -> np.ndarray:
    """
    Standardize features with precomputed params.

    Args:
        features (np.ndarray): Shape (F,) or (N, F)
        norm_params: Output of ``compute_norm_params``

    Returns:
        np.ndarray: float32 array of the same shape
    """
    means = np.asarray(norm_params["means"], dtype=np.float64)
    stds = np.asarray(norm_params["stds"], dtype=np.float64)
    stds = np.where(stds == 0, STD_FLOOR, stds)

    X = np.asarray(features, dtype=np.float64)
    if X.shape[-1] != means.shape[0]:
        raise ValueError(
            f"Feature length {X.shape[-1]} does not match normalization params ({means.shape[0]})."
        )
    return ((X - means) / stds).astype(np.float32)


def to_int(label_strings: List[str]) -> Dict[str, int]:
    """
    Create label to integer mapping from a list of label strings.

    Labels are sorted alphabetically before mapping to ensure consistent
    integer assignment across different runs.

    Example:
        >>> to_int(['squat', 'lunge', 'squat', 'plank'])
        {'lunge': 0, 'plank': 1, 'squat': 2}
    """
    unique_labels = sorted(set(label_strings))
    return {label: idx for idx, label in enumerate(unique_labels)}


def samples_to_arrays(
    samples: Sequence[Mapping],
    label_to_int: Dict[str, int],
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Convert exported training samples into (X, y) arrays.

    Samples whose label is missing from *label_to_int* are skipped.

    Args:
        samples: Items with ``features`` and ``label`` keys
            (``LearningStore.export_for_training`` output, dumped)
        label_to_int: Label encoding

    Returns:
        Tuple[np.ndarray, np.ndarray]: X float32 (N, F), y int32 (N,)
    """
    X_list, y_list = [], []
    skipped = 0
    for s in samples:
        label = s["label"]
        if label not in label_to_int:
            skipped += 1
            continue
        X_list.append(s["features"])
        y_list.append(label_to_int[label])

    if skipped:
        logger.warning("Skipped %d samples with unknown labels", skipped)

    X = np.asarray(X_list, dtype=np.float32)
    y = np.asarray(y_list, dtype=np.int32)
    return X, y
