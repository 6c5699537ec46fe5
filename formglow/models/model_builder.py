"""
Model architecture builder for the feature-vector exercise classifier.

The network consumes the 20-value ``FEATURE_NAMES`` vector (normalized per
feature) and outputs a softmax over exercise classes. A trained model is
shipped as a bundle directory holding ``model.keras`` and
``model-meta.json`` (class names, feature names, normalization params).
"""

import json
import logging
from pathlib import Path
from typing import Optional, Sequence, Union

import tensorflow as tf
from tensorflow.keras import layers, models
from tensorflow.keras.models import Sequential

from ..pipelines.config import MODEL_FILENAME, MODEL_META_FILENAME
from ..preprocessing.features import FEATURE_NAMES, NUM_FEATURES
from ..utils.io_utils import set_global_seed

logger = logging.getLogger(__name__)


def build_feature_classifier(
    num_classes: int,
    num_features: int = NUM_FEATURES,
    initial_lr: float = 0.001,
    seed: Optional[int] = None,
) -> models.Model:
    """
    Build the feed-forward exercise classifier.

    Architecture:
    - Dense(128, relu) → BatchNorm → Dropout(0.3)
    - Dense(96, relu) → BatchNorm → Dropout(0.25)
    - Dense(64, relu) → Dropout(0.2)
    - Dense(num_classes, softmax)

    Args:
        num_classes (int): Number of exercise classes
        num_features (int): Input vector length
        initial_lr (float): Initial learning rate
        seed (int, optional): Seed for reproducible weight initialization

    Returns:
        models.Model: Compiled Keras model
    """
    logger.info(f"Building feature classifier: features={num_features}, classes={num_classes}")

    if seed is not None:
        set_global_seed(seed)

    model = Sequential([
        layers.Input(shape=(num_features,)),
        layers.Dense(128, activation='relu', kernel_initializer='he_normal'),
        layers.BatchNormalization(),
        layers.Dropout(0.3),
        layers.Dense(96, activation='relu', kernel_initializer='he_normal'),
        layers.BatchNormalization(),
        layers.Dropout(0.25),
        layers.Dense(64, activation='relu', kernel_initializer='he_normal'),
        layers.Dropout(0.2),
        layers.Dense(num_classes, activation='softmax'),
    ])

    model.compile(
        optimizer=tf.keras.optimizers.Adam(learning_rate=initial_lr),
        loss='sparse_categorical_crossentropy',
        metrics=['accuracy']
    )

    return model


def save_model_bundle(
    model: models.Model,
    bundle_dir: Union[str, Path],
    class_names: Sequence[str],
    norm_params: dict,
    feature_names: Sequence[str] = FEATURE_NAMES,
) -> Path:
    """
    Write ``model.keras`` + ``model-meta.json`` into *bundle_dir*.

    Args:
        model: Trained Keras model
        bundle_dir: Target directory (created if missing)
        class_names: Exercise key per output index
        norm_params: ``{"means": [...], "stds": [...]}``
        feature_names: Input feature order the model was trained on

    Returns:
        Path: The bundle directory
    """
    if model.output_shape[-1] != len(class_names):
        raise ValueError(
            f"Model has {model.output_shape[-1]} outputs but {len(class_names)} class names."
        )

    bundle_dir = Path(bundle_dir)
    bundle_dir.mkdir(parents=True, exist_ok=True)

    model.save(str(bundle_dir / MODEL_FILENAME))
    meta = {
        "class_names": list(class_names),
        "feature_names": list(feature_names),
        "norm_params": {
            "means": [float(v) for v in norm_params["means"]],
            "stds": [float(v) for v in norm_params["stds"]],
        },
    }
    with open(bundle_dir / MODEL_META_FILENAME, 'w') as f:
        json.dump(meta, f, indent=2)

    logger.info(f"Model bundle saved to {bundle_dir} ({len(class_names)} classes)")
    return bundle_dir
