"""
Shared utilities for the form-scoring pipeline.

- Score shaping functions (measurement → 0-100 sub-score)
- Status bucketing shared by the analyzer and the confidence display
- Rule-based feedback text for a FormResult
- Startup pre-loader for the optional neural classifier
"""

import logging
from typing import TYPE_CHECKING, Literal

from .config import GOOD_THRESHOLD, WARNING_THRESHOLD

if TYPE_CHECKING:
    from .assessment import FormResult
    from .ml_recognition import MLClassifier

logger = logging.getLogger(__name__)

Status = Literal["good", "warning", "bad"]


# ---------------------------------------------------------------------------
# Shaping functions
# ---------------------------------------------------------------------------

def range_score(value: float, lo: float, hi: float, tolerance: float) -> float:
    """100 inside ``[lo, hi]``, falling linearly to 0 at ``tolerance`` outside."""
    if lo <= value <= hi:
        return 100.0
    gap = lo - value if value < lo else value - hi
    return max(0.0, 1.0 - gap / tolerance) * 100.0


def below_threshold_score(value: float, threshold: float, tolerance: float) -> float:
    """100 at or under *threshold*, falling linearly to 0 at ``threshold + tolerance``."""
    if value <= threshold:
        return 100.0
    return max(0.0, 1.0 - (value - threshold) / tolerance) * 100.0


def above_threshold_score(value: float, threshold: float, tolerance: float) -> float:
    """100 at or over *threshold*, falling linearly to 0 at ``threshold - tolerance``."""
    if value >= threshold:
        return 100.0
    return max(0.0, 1.0 - (threshold - value) / tolerance) * 100.0


def status_for_score(score: float) -> Status:
    """Bucket a 0-100 score: >= 80 good, >= 60 warning, else bad."""
    if score >= GOOD_THRESHOLD:
        return "good"
    if score >= WARNING_THRESHOLD:
        return "warning"
    return "bad"


# ---------------------------------------------------------------------------
# Feedback text
# ---------------------------------------------------------------------------

def generate_feedback(result: "FormResult") -> list[str]:
    """Produce short human-readable feedback for one analyzed frame.

    Args:
        result: Output of ``FormAnalyzer.analyze``.

    Returns:
        Summary line, then the corrections in checkpoint order, then the
        weakest checkpoint if it is not already covered by a correction.
    """
    tips: list[str] = []
    score = result.overall_score

    if result.status == "good":
        tips.append(f"Great form! Score {score}/100.")
    elif result.status == "warning":
        tips.append(f"Decent form ({score}/100). A few things to tighten up.")
    else:
        tips.append(
            f"Your form needs attention ({score}/100). "
            "Slow down or lower the weight and focus on the cues below."
        )

    tips.extend(result.corrections)

    if result.checkpoints:
        weakest = min(result.checkpoints, key=lambda c: c.score)
        if weakest.passed and weakest.score < 100:
            tips.append(f"Watch your {weakest.label.lower()} ({weakest.score:.0f}/100).")

    return tips


# ---------------------------------------------------------------------------
# Startup pre-loader
# ---------------------------------------------------------------------------

def preload_classifier(classifier: "MLClassifier") -> bool:
    """Eagerly load the neural classifier bundle.

    Returns:
        True if the model is ready, False if calls will use the fallback
        (the reason is logged once by the classifier).
    """
    ready = classifier.ensure_loaded()
    if ready:
        logger.info("Pre-loaded exercise classifier from %s", classifier.model_dir)
    return ready
