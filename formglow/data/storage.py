"""
Key-value persistence backends for the learning store.

``JsonFileStore`` keeps one JSON document per key under a directory;
``MemoryStore`` is the volatile variant used in tests and when no storage
directory is configured. Both raise ``StorageUnavailableError`` on any
backend failure so callers only need to handle one exception type.
"""

import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Optional, Protocol, Union

logger = logging.getLogger(__name__)


class StorageUnavailableError(RuntimeError):
    """Raised when the backing store cannot be read or written."""


class KeyValueStore(Protocol):
    """Minimal string-keyed JSON document store."""

    def get(self, key: str) -> Optional[Any]:
        ...

    def set(self, key: str, value: Any) -> None:
        ...

    def delete(self, key: str) -> None:
        ...


class MemoryStore:
    """In-process store. Values are round-tripped through JSON on write."""

    def __init__(self):
        self._data: dict[str, str] = {}

    def get(self, key: str) -> Optional[Any]:
        raw = self._data.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    def set(self, key: str, value: Any) -> None:
        try:
            self._data[key] = json.dumps(value)
        except (TypeError, ValueError) as e:
            raise StorageUnavailableError(f"Value for '{key}' is not JSON serializable: {e}") from e

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


_SAFE_KEY = re.compile(r"[^A-Za-z0-9._-]")


class JsonFileStore:
    """Durable store writing ``<root>/<key>.json``.

    Writes go through a temporary file and ``os.replace`` so a crash never
    leaves a half-written document behind.
    """

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)

    def _path_for(self, key: str) -> Path:
        return self.root / f"{_SAFE_KEY.sub('_', key)}.json"

    def get(self, key: str) -> Optional[Any]:
        path = self._path_for(key)
        if not path.exists():
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        # ValueError covers both malformed JSON and undecodable bytes
        except (OSError, ValueError) as e:
            raise StorageUnavailableError(f"Cannot read {path}: {e}") from e

    def set(self, key: str, value: Any) -> None:
        path = self._path_for(key)
        tmp = path.with_suffix(".json.tmp")
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(value, f)
            os.replace(tmp, path)
        except (OSError, TypeError, ValueError) as e:
            try:
                tmp.unlink(missing_ok=True)
            except OSError:
                logger.debug("Could not remove partial file %s", tmp)
            raise StorageUnavailableError(f"Cannot write {path}: {e}") from e
        logger.debug("Persisted '%s' → %s", key, path)

    def delete(self, key: str) -> None:
        path = self._path_for(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageUnavailableError(f"Cannot delete {path}: {e}") from e
