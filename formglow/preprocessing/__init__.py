"""
Pose geometry and per-frame feature extraction.
"""

from .geometry import angle_deg, dist, mid, round_half_up, torso_angle
from .features import FEATURE_NAMES, NUM_FEATURES, FeatureVector, extract_features

__all__ = [
    'angle_deg',
    'dist',
    'mid',
    'round_half_up',
    'torso_angle',
    'FEATURE_NAMES',
    'NUM_FEATURES',
    'FeatureVector',
    'extract_features',
]
