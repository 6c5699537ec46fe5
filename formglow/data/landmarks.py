"""
Landmark containers and input coercion.

The pose-detection collaborator hands us 33 MediaPipe landmarks per frame
in whatever shape its binding produces (``NormalizedLandmark`` objects,
JSON dicts, nested lists or numpy arrays). Everything downstream works on
a float ``(N, 4)`` array of ``[x, y, z, visibility]``.
"""

import logging
from enum import IntEnum
from typing import Any, NamedTuple, Optional, Sequence

import numpy as np
from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


class PoseLandmark(IntEnum):
    """MediaPipe pose landmark indices."""
    NOSE = 0
    LEFT_EYE_INNER = 1
    LEFT_EYE = 2
    LEFT_EYE_OUTER = 3
    RIGHT_EYE_INNER = 4
    RIGHT_EYE = 5
    RIGHT_EYE_OUTER = 6
    LEFT_EAR = 7
    RIGHT_EAR = 8
    MOUTH_LEFT = 9
    MOUTH_RIGHT = 10
    LEFT_SHOULDER = 11
    RIGHT_SHOULDER = 12
    LEFT_ELBOW = 13
    RIGHT_ELBOW = 14
    LEFT_WRIST = 15
    RIGHT_WRIST = 16
    LEFT_PINKY = 17
    RIGHT_PINKY = 18
    LEFT_INDEX = 19
    RIGHT_INDEX = 20
    LEFT_THUMB = 21
    RIGHT_THUMB = 22
    LEFT_HIP = 23
    RIGHT_HIP = 24
    LEFT_KNEE = 25
    RIGHT_KNEE = 26
    LEFT_ANKLE = 27
    RIGHT_ANKLE = 28
    LEFT_HEEL = 29
    RIGHT_HEEL = 30
    LEFT_FOOT_INDEX = 31
    RIGHT_FOOT_INDEX = 32


class Landmark(NamedTuple):
    """One normalized body-joint observation (y=0 is the top of the image)."""
    x: float
    y: float
    z: float = 0.0
    visibility: float = 1.0


class PoseFrame(BaseModel):
    """Output of the pose detector for a single image or video frame."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    landmarks: Any = Field(default=None, description="33 landmarks in any supported shape")
    is_fallback: bool = Field(
        default=False,
        description="True when the detector produced degraded/synthetic output",
    )


def _row_from_landmark(lm: Any) -> list[float]:
    if hasattr(lm, "x") and hasattr(lm, "y"):
        return [
            float(lm.x),
            float(lm.y),
            float(getattr(lm, "z", 0.0) or 0.0),
            float(getattr(lm, "visibility", 1.0) if getattr(lm, "visibility", None) is not None else 1.0),
        ]
    if isinstance(lm, dict):
        return [
            float(lm["x"]),
            float(lm["y"]),
            float(lm.get("z", 0.0) or 0.0),
            float(lm.get("visibility", 1.0) if lm.get("visibility") is not None else 1.0),
        ]
    values = [float(v) for v in lm]
    if len(values) < 2:
        raise ValueError(f"Landmark needs at least x and y, got {values!r}.")
    # Pad missing z / visibility
    return (values + [0.0, 1.0][len(values) - 2:])[:4] if len(values) < 4 else values[:4]


def as_landmark_array(landmarks: Optional[Sequence[Any]]) -> Optional[np.ndarray]:
    """Coerce detector output to a float ``(N, 4)`` array.

    Args:
        landmarks: Sequence of landmark objects / dicts / rows, or an array
            of shape ``(N, 2..4)``. ``None`` is passed through.

    Returns:
        ``(N, 4)`` float64 array, or ``None`` when the input is ``None`` or
        cannot be interpreted as landmarks.
    """
    if landmarks is None:
        return None

    if isinstance(landmarks, np.ndarray):
        arr = landmarks.astype(np.float64, copy=False)
        if arr.ndim != 2 or arr.shape[0] == 0:
            return arr.reshape(0, 4) if arr.size == 0 else None
        if arr.shape[1] >= 4:
            return arr[:, :4]
        out = np.zeros((arr.shape[0], 4), dtype=np.float64)
        out[:, 3] = 1.0
        out[:, : arr.shape[1]] = arr
        return out

    try:
        rows = [_row_from_landmark(lm) for lm in landmarks]
    except (TypeError, ValueError, KeyError) as e:
        logger.debug("Unreadable landmark payload: %s", e)
        return None

    if not rows:
        return np.zeros((0, 4), dtype=np.float64)
    return np.asarray(rows, dtype=np.float64)
