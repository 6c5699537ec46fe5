"""
Learning Store: per-user correction memory.

Every time the user overrides the detected exercise, a compact snapshot of
the pose (five rounded joint angles) is stored with the correct label and
the wrong guess. Later frames with a similar snapshot receive a score bonus
for the corrected exercise and a penalty for the guess it replaced.
"""

import logging
import math
import threading
import time
from typing import Any, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..data.storage import KeyValueStore, MemoryStore, StorageUnavailableError
from ..preprocessing.features import extract_features
from ..preprocessing.geometry import round_half_up
from .config import (
    LEARNING_STORAGE_KEY,
    LEARNING_MAX_ENTRIES,
    SIMILARITY_THRESHOLD,
    BOOST_SCALE,
    PENALTY_RATIO,
)

logger = logging.getLogger(__name__)


class CorrectionEntry(BaseModel):
    """One recorded user correction."""
    model_config = ConfigDict(extra="ignore")

    features: list[int] = Field(description="5-value snapshot: knee, hip, elbow, shoulder, torso")
    full_features: Optional[list[float]] = Field(
        default=None, description="20-value model input vector"
    )
    correct: str
    ai_guess: Optional[str] = None
    timestamp: int = Field(description="Milliseconds since epoch")


class LearningStats(BaseModel):
    total_corrections: int
    per_exercise_counts: dict[str, int]


class TrainingSample(BaseModel):
    features: list[float]
    label: str
    timestamp: int


def _snapshot_distance(a: Sequence[float], b: Sequence[float]) -> float:
    if len(a) != len(b):
        return math.inf
    return math.sqrt(sum((x - y) ** 2 for x, y in zip(a, b)))


class LearningStore:
    """Bounded, persisted list of ``CorrectionEntry``.

    Lifecycle: construct (loads from storage) → mutate → ``flush``.
    Storage failures are logged and never propagate; the in-memory list
    stays authoritative for the rest of the session.

    Args:
        storage: Key-value backend; defaults to a volatile ``MemoryStore``.
        max_entries: FIFO capacity.
        similarity_threshold: Snapshot distance below which two poses are
            considered similar.
        boost_scale: Bonus for an identical snapshot.
        penalty_ratio: Fraction of the bonus subtracted from the wrong guess.
        storage_key: Key under which the entry list is persisted.
    """

    def __init__(
        self,
        storage: Optional[KeyValueStore] = None,
        max_entries: int = LEARNING_MAX_ENTRIES,
        similarity_threshold: float = SIMILARITY_THRESHOLD,
        boost_scale: float = BOOST_SCALE,
        penalty_ratio: float = PENALTY_RATIO,
        storage_key: str = LEARNING_STORAGE_KEY,
    ):
        if max_entries <= 0:
            raise ValueError(f"max_entries must be positive, got {max_entries}.")
        if similarity_threshold <= 0:
            raise ValueError(f"similarity_threshold must be positive, got {similarity_threshold}.")

        self.storage = storage if storage is not None else MemoryStore()
        self.max_entries = max_entries
        self.similarity_threshold = similarity_threshold
        self.boost_scale = boost_scale
        self.penalty_ratio = penalty_ratio
        self.storage_key = storage_key

        self._lock = threading.Lock()
        self._entries: list[CorrectionEntry] = []
        self.load()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def load(self) -> None:
        """(Re)load entries from storage. Unreadable data yields an empty store."""
        try:
            raw = self.storage.get(self.storage_key)
        except StorageUnavailableError as e:
            logger.warning("Learning data unavailable, starting empty: %s", e)
            raw = None

        entries: list[CorrectionEntry] = []
        if isinstance(raw, list):
            for item in raw:
                try:
                    entries.append(CorrectionEntry.model_validate(item))
                except ValidationError as e:
                    logger.warning("Skipping malformed correction entry: %s", e.errors()[0]["msg"])
        elif raw is not None:
            logger.warning("Ignoring learning data of unexpected type %s", type(raw).__name__)

        entries = entries[-self.max_entries:]
        with self._lock:
            self._entries = entries
        logger.info("Learning store loaded: %d corrections", len(entries))

    def flush(self) -> None:
        """Persist the current entries."""
        with self._lock:
            self._persist_locked()

    def _persist_locked(self) -> None:
        payload = [e.model_dump() for e in self._entries]
        try:
            self.storage.set(self.storage_key, payload)
        except StorageUnavailableError as e:
            logger.warning("Could not persist learning data: %s", e)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def record_correction(
        self,
        landmarks: Optional[Sequence[Any]],
        correct: str,
        ai_guess: Optional[str] = None,
    ) -> Optional[CorrectionEntry]:
        """Remember that the pose in *landmarks* was *correct*, not *ai_guess*.

        Returns:
            The stored entry, or ``None`` when the landmarks are unusable.
        """
        features = extract_features(landmarks)
        if features is None:
            logger.debug("Correction ignored: not enough landmarks")
            return None

        entry = CorrectionEntry(
            features=features.snapshot(),
            full_features=[float(v) for v in features.to_vector()],
            correct=correct,
            ai_guess=ai_guess,
            timestamp=int(time.time() * 1000),
        )
        with self._lock:
            self._entries.append(entry)
            if len(self._entries) > self.max_entries:
                del self._entries[: len(self._entries) - self.max_entries]
            self._persist_locked()

        logger.info("Recorded correction: '%s' (guess was '%s')", correct, ai_guess)
        return entry

    def clear(self) -> None:
        """Drop all corrections and remove the persisted copy."""
        with self._lock:
            self._entries = []
            try:
                self.storage.delete(self.storage_key)
            except StorageUnavailableError as e:
                logger.warning("Could not delete learning data: %s", e)
        logger.info("Learning data cleared")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def entries(self) -> list[CorrectionEntry]:
        with self._lock:
            return list(self._entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get_learned_boosts(self, landmarks: Optional[Sequence[Any]]) -> dict[str, int]:
        """Score adjustments for the pose in *landmarks*.

        For every stored entry within ``similarity_threshold``, the corrected
        exercise gains ``round(weight * boost_scale)`` where weight falls
        linearly from 1 (identical) to 0 (at the threshold), and a differing
        AI guess loses ``round(bonus * penalty_ratio)``.

        Returns:
            ``{exercise_key: net_adjustment}``; empty when nothing is similar.
        """
        features = extract_features(landmarks)
        if features is None:
            return {}

        snapshot = features.snapshot()
        entries = self.entries
        boosts: dict[str, int] = {}
        for entry in entries:
            d = _snapshot_distance(snapshot, entry.features)
            if d >= self.similarity_threshold:
                continue
            weight = max(0.0, 1.0 - d / self.similarity_threshold)
            bonus = round_half_up(weight * self.boost_scale)
            boosts[entry.correct] = boosts.get(entry.correct, 0) + bonus
            if entry.ai_guess and entry.ai_guess != entry.correct:
                boosts[entry.ai_guess] = (
                    boosts.get(entry.ai_guess, 0) - round_half_up(bonus * self.penalty_ratio)
                )
        return boosts

    def get_learning_stats(self) -> LearningStats:
        counts: dict[str, int] = {}
        entries = self.entries
        for entry in entries:
            counts[entry.correct] = counts.get(entry.correct, 0) + 1
        return LearningStats(total_corrections=len(entries), per_exercise_counts=counts)

    def export_for_training(self) -> list[TrainingSample]:
        """Corrections carrying a full feature vector, as labelled samples."""
        return [
            TrainingSample(features=e.full_features, label=e.correct, timestamp=e.timestamp)
            for e in self.entries
            if e.full_features is not None
        ]
