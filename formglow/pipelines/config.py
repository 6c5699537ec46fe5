"""
Configuration constants for the formglow classification and form-scoring engine.

Centralizes the calibrated thresholds shared by the feature extractor,
classifier, learning store and form analyzer, plus environment variable
loading for storage and model locations.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# ---------------------------------------------------------------------------
# Project paths
# ---------------------------------------------------------------------------
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_PATH = PROJECT_ROOT / ".env"
load_dotenv(_ENV_PATH)

DEFAULT_CONFIG_PATH = PROJECT_ROOT / "config" / "formglow.yaml"

STORAGE_DIR = Path(
    os.environ.get("FORMGLOW_STORAGE_DIR", str(Path.home() / ".formglow"))
)
MODEL_DIR = Path(
    os.environ.get("FORMGLOW_MODEL_DIR", str(PROJECT_ROOT / "models" / "exercise-classifier"))
)
CLASSIFIER_BACKEND: str = os.environ.get("FORMGLOW_CLASSIFIER", "rules")

# ---------------------------------------------------------------------------
# Landmark input
# ---------------------------------------------------------------------------
NUM_LANDMARKS: int = 33        # MediaPipe pose topology
MIN_LANDMARKS: int = 29        # Fewer rows → frame is not classifiable

# ---------------------------------------------------------------------------
# Posture zones (degrees from vertical)
# ---------------------------------------------------------------------------
TORSO_UPRIGHT_MAX: float = 35.0
TORSO_LEANING_MAX: float = 60.0

# ---------------------------------------------------------------------------
# Wrist / body position tolerances (normalized image units)
# ---------------------------------------------------------------------------
WRIST_ABOVE_TOLERANCE: float = 0.03
WRIST_LEVEL_TOLERANCE: float = 0.08
ANKLE_NEAR_HIP_TOLERANCE: float = 0.15

ELBOWS_PINNED_SHOULDER_MAX: float = 30.0
ELBOWS_PINNED_ELEVATION_MAX: float = 25.0

# ---------------------------------------------------------------------------
# Classifier
# ---------------------------------------------------------------------------
# Calibrated, not derived: raw heuristic scores rarely exceed ~90.
CONFIDENCE_SCALE: float = 1.1
DEFAULT_EXERCISE: str = "squat"
TOP_K: int = 3

# ---------------------------------------------------------------------------
# Learning store
# ---------------------------------------------------------------------------
LEARNING_STORAGE_KEY: str = "formglow.learning"
LEARNING_MAX_ENTRIES: int = 500
SIMILARITY_THRESHOLD: float = 25.0   # snapshot distance, degree units
BOOST_SCALE: float = 30.0
PENALTY_RATIO: float = 0.5

# ---------------------------------------------------------------------------
# Form analyzer
# ---------------------------------------------------------------------------
PASS_THRESHOLD: float = 60.0
GOOD_THRESHOLD: float = 80.0
WARNING_THRESHOLD: float = 60.0
INSUFFICIENT_INPUT_SCORE: int = 85

# ---------------------------------------------------------------------------
# Motion tracker (multi-frame classification)
# ---------------------------------------------------------------------------
MOTION_MAX_HISTORY: int = 90          # ~6 s at 15 fps
MOTION_MIN_FRAMES: int = 15
MOTION_MIN_BEST_SCORE: int = 40

# Range (degrees) over the history above which a joint counts as moving
KNEE_MOTION_THRESHOLD: float = 20.0
ELBOW_MOTION_THRESHOLD: float = 20.0
HIP_MOTION_THRESHOLD: float = 15.0
SHOULDER_MOTION_THRESHOLD: float = 15.0

# ---------------------------------------------------------------------------
# Optional ML classifier
# ---------------------------------------------------------------------------
MODEL_FILENAME: str = "model.keras"
MODEL_META_FILENAME: str = "model-meta.json"
