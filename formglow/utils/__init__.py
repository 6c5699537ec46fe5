"""
Utility functions for formglow.
"""

from .io_utils import load_config, set_global_seed
from .metrics import confusion_matrix, evaluate_classifier, macro_f1_score, per_class_f1_scores

__all__ = [
    'load_config',
    'set_global_seed',
    'confusion_matrix',
    'evaluate_classifier',
    'macro_f1_score',
    'per_class_f1_scores',
]
