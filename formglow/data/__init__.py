"""
Landmark input handling, persistence backends and model-input preprocessing.
"""

from .landmarks import Landmark, PoseFrame, PoseLandmark, as_landmark_array
from .storage import JsonFileStore, KeyValueStore, MemoryStore, StorageUnavailableError
from .preprocessing import compute_norm_params, normalize_features, samples_to_arrays, to_int

__all__ = [
    'Landmark',
    'PoseFrame',
    'PoseLandmark',
    'as_landmark_array',
    'JsonFileStore',
    'KeyValueStore',
    'MemoryStore',
    'StorageUnavailableError',
    'compute_norm_params',
    'normalize_features',
    'samples_to_arrays',
    'to_int',
]
