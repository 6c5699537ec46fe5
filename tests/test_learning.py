"""Tests for the learning store and its storage backends."""

import json
import threading

import numpy as np
import pytest

from formglow.data.storage import JsonFileStore, MemoryStore, StorageUnavailableError
from formglow.pipelines.learning import LearningStore
from formglow.pipelines.recognition import HeuristicClassifier
from formglow.preprocessing.features import extract_features


class _BrokenStore:
    """Storage that is always unavailable (e.g. private browsing)."""

    def get(self, key):
        raise StorageUnavailableError("no storage")

    def set(self, key, value):
        raise StorageUnavailableError("no storage")

    def delete(self, key):
        raise StorageUnavailableError("no storage")


# ============================================================================
# Storage backends
# ============================================================================

class TestStorage:

    def test_memory_store_roundtrip(self):
        store = MemoryStore()
        assert store.get("k") is None
        store.set("k", [{"a": 1}])
        assert store.get("k") == [{"a": 1}]
        store.delete("k")
        assert store.get("k") is None

    def test_memory_store_rejects_unserializable(self):
        with pytest.raises(StorageUnavailableError):
            MemoryStore().set("k", {1, 2})

    def test_json_file_store(self, tmp_path):
        store = JsonFileStore(tmp_path / "data")
        store.set("formglow.learning", [1, 2, 3])
        assert (tmp_path / "data" / "formglow.learning.json").exists()
        assert JsonFileStore(tmp_path / "data").get("formglow.learning") == [1, 2, 3]
        store.delete("formglow.learning")
        assert store.get("formglow.learning") is None
        store.delete("formglow.learning")

    def test_json_file_store_corrupt_file(self, tmp_path):
        (tmp_path / "bad.json").write_text("{not json")
        with pytest.raises(StorageUnavailableError):
            JsonFileStore(tmp_path).get("bad")

    def test_json_file_store_undecodable_bytes(self, tmp_path):
        (tmp_path / "bad.json").write_bytes(b"\xff\xfe\x00garbage")
        with pytest.raises(StorageUnavailableError):
            JsonFileStore(tmp_path).get("bad")

    def test_failed_write_leaves_no_temp_file(self, tmp_path):
        store = JsonFileStore(tmp_path)
        store.set("k", [1])
        with pytest.raises(StorageUnavailableError):
            store.set("k", {1, 2})
        assert sorted(p.name for p in tmp_path.iterdir()) == ["k.json"]
        assert store.get("k") == [1]


# ============================================================================
# Learning store
# ============================================================================

class TestLearningStore:

    def test_record_and_boost(self, squat_pose):
        store = LearningStore(MemoryStore())
        entry = store.record_correction(squat_pose, "squat", "lunge")
        assert entry is not None
        assert len(entry.features) == 5
        assert len(entry.full_features) == 20

        boosts = store.get_learned_boosts(squat_pose)
        assert boosts == {"squat": 30, "lunge": -15}

    def test_boosts_are_pure_reads(self, squat_pose):
        store = LearningStore(MemoryStore())
        store.record_correction(squat_pose, "lunge", "squat")
        first = store.get_learned_boosts(squat_pose)
        second = store.get_learned_boosts(squat_pose)
        assert first == second
        assert len(store) == 1

    def test_same_label_guess_not_penalized(self, squat_pose):
        store = LearningStore(MemoryStore())
        store.record_correction(squat_pose, "squat", "squat")
        store.record_correction(squat_pose, "squat", None)
        assert store.get_learned_boosts(squat_pose) == {"squat": 60}

    def test_dissimilar_pose_not_boosted(self, squat_pose):
        store = LearningStore(MemoryStore())
        store.record_correction(squat_pose, "lunge", "squat")
        other = squat_pose.copy()
        # Raise the wrists overhead: elbow/shoulder angles change a lot
        other[15, :2] = [0.70, 0.05]
        other[16, :2] = [0.39, 0.05]
        other[13, :2] = [0.70, 0.18]
        other[14, :2] = [0.39, 0.18]
        assert store.get_learned_boosts(other) == {}

    def test_bonus_decays_with_distance(self, squat_pose):
        snapshot = extract_features(squat_pose).snapshot()
        near = list(snapshot)
        near[0] += 5
        backend = MemoryStore()
        backend.set("formglow.learning", [
            {"features": near, "correct": "lunge", "ai_guess": "squat", "timestamp": 1},
        ])
        # distance 5 → weight 0.8 → bonus 24, penalty 12
        assert LearningStore(backend).get_learned_boosts(squat_pose) == {"lunge": 24, "squat": -12}

        far = list(snapshot)
        far[0] += 25
        backend.set("formglow.learning", [{"features": far, "correct": "lunge", "timestamp": 1}])
        assert LearningStore(backend).get_learned_boosts(squat_pose) == {}

    def test_insufficient_landmarks_noop(self):
        store = LearningStore(MemoryStore())
        assert store.record_correction(None, "squat", "lunge") is None
        assert store.record_correction(np.zeros((10, 4)), "squat") is None
        assert len(store) == 0
        assert store.get_learned_boosts(None) == {}

    def test_fifo_cap(self, squat_pose):
        store = LearningStore(MemoryStore(), max_entries=3)
        for label in ["a", "b", "c", "d", "e"]:
            store.record_correction(squat_pose, label, None)
        assert [e.correct for e in store.entries] == ["c", "d", "e"]
        assert len(store.storage.get(store.storage_key)) == 3

    def test_persists_across_instances(self, tmp_path, squat_pose):
        backend = JsonFileStore(tmp_path)
        LearningStore(backend).record_correction(squat_pose, "lunge", "squat")
        reloaded = LearningStore(JsonFileStore(tmp_path))
        assert len(reloaded) == 1
        assert reloaded.get_learned_boosts(squat_pose) == {"lunge": 30, "squat": -15}

    def test_unknown_fields_tolerated(self):
        backend = MemoryStore()
        backend.set("formglow.learning", [
            {"features": [90, 100, 163, 11, 10], "correct": "squat", "ai_guess": "lunge",
             "timestamp": 1, "device": "phone", "version": 7},
            {"garbage": True},
        ])
        store = LearningStore(backend)
        assert len(store) == 1
        assert store.entries[0].correct == "squat"

    def test_storage_failure_swallowed(self, squat_pose):
        store = LearningStore(_BrokenStore())
        store.record_correction(squat_pose, "lunge", "squat")
        assert len(store) == 1
        assert store.get_learned_boosts(squat_pose)["lunge"] == 30
        store.flush()
        store.clear()
        assert len(store) == 0

    def test_undecodable_learning_file_starts_empty(self, tmp_path, squat_pose):
        (tmp_path / "formglow.learning.json").write_bytes(b"\xff\xfe\x00garbage")
        store = LearningStore(JsonFileStore(tmp_path))
        assert len(store) == 0
        # The next correction replaces the unreadable file
        store.record_correction(squat_pose, "lunge", "squat")
        assert len(LearningStore(JsonFileStore(tmp_path))) == 1

    def test_stats_and_export(self, squat_pose):
        backend = MemoryStore()
        backend.set("formglow.learning", [
            {"features": [1, 2, 3, 4, 5], "correct": "plank", "timestamp": 5},
        ])
        store = LearningStore(backend)
        store.record_correction(squat_pose, "lunge", "squat")
        store.record_correction(squat_pose, "lunge", "squat")

        stats = store.get_learning_stats()
        assert stats.total_corrections == 3
        assert stats.per_exercise_counts == {"plank": 1, "lunge": 2}

        exported = store.export_for_training()
        assert len(exported) == 2
        assert all(len(s.features) == 20 and s.label == "lunge" for s in exported)
        json.dumps([s.model_dump() for s in exported])

    def test_clear_removes_persisted_copy(self, squat_pose):
        backend = MemoryStore()
        store = LearningStore(backend)
        store.record_correction(squat_pose, "lunge", "squat")
        store.clear()
        assert backend.get("formglow.learning") is None
        assert store.get_learning_stats().total_corrections == 0

    def test_concurrent_writers_and_readers(self, squat_pose):
        store = LearningStore(MemoryStore(), max_entries=40)
        sizes = []

        def write():
            for _ in range(10):
                store.record_correction(squat_pose, "lunge", "squat")

        def read():
            for _ in range(50):
                sizes.append(len(store))

        threads = [threading.Thread(target=write) for _ in range(4)]
        threads += [threading.Thread(target=read) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(store) == 40
        assert all(0 <= s <= 40 for s in sizes)
        assert store.get_learning_stats().total_corrections == 40

    def test_invalid_settings(self):
        with pytest.raises(ValueError):
            LearningStore(MemoryStore(), max_entries=0)
        with pytest.raises(ValueError):
            LearningStore(MemoryStore(), similarity_threshold=0)


# ============================================================================
# Learning → classifier
# ============================================================================

class TestLearnedClassification:

    def test_boost_applied(self, squat_pose):
        store = LearningStore(MemoryStore())
        clf = HeuristicClassifier(store)
        assert clf.classify(squat_pose).used_learning is False

        store.record_correction(squat_pose, "lunge", "squat")
        result = clf.classify(squat_pose)
        assert result.used_learning is True
        # squat 80 - 15 = 65, lunge 20 + 30 = 50
        assert result.key == "squat"
        assert result.confidence == 72

        store.record_correction(squat_pose, "lunge", "squat")
        result = clf.classify(squat_pose)
        # lunge 20 + 60 = 80, squat 80 - 30 = 50
        assert result.key == "lunge"
        assert result.top3[0].score == 80

    def test_boost_floor_at_zero(self, squat_pose):
        store = LearningStore(MemoryStore())
        for _ in range(10):
            store.record_correction(squat_pose, "lunge", "squat")
        scores = {t.key: t.score for t in HeuristicClassifier(store).classify(squat_pose).top3}
        assert "squat" not in scores or scores["squat"] >= 0

    def test_boost_for_unruled_exercise_ignored(self, squat_pose):
        store = LearningStore(MemoryStore())
        store.record_correction(squat_pose, "inclineBench", "squat")
        result = HeuristicClassifier(store).classify(squat_pose)
        assert result.used_learning is True
        assert all(t.key != "inclineBench" for t in result.top3)
