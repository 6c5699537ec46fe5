"""
Model building utilities for the neural exercise classifier.
"""

from .model_builder import build_feature_classifier, save_model_bundle

__all__ = [
    'build_feature_classifier',
    'save_model_bundle',
]
