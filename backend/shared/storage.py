"""
Durable key-value storage for local per-identity state.

Holds small JSON-serializable values such as the gate unlock flag and the
recently viewed listing ids. Keys are namespaced by the caller, e.g.
``gate:subscribed:<identity_id>``.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Optional, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class IKeyValueStore(Protocol):
    """Interface for local key-value persistence."""

    def get(self, key: str, default: Any = None) -> Any:
        """Return the stored value for key, or default when absent."""
        ...

    def set(self, key: str, value: Any) -> None:
        """Store a JSON-serializable value under key."""
        ...

    def delete(self, key: str) -> None:
        """Remove key if present."""
        ...


class InMemoryKeyValueStore:
    """Key-value store that lives for the duration of the process."""

    def __init__(self, initial: Optional[dict[str, Any]] = None):
        self._data: dict[str, Any] = dict(initial or {})

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileKeyValueStore:
    """
    Key-value store persisted to a single JSON file.

    The whole document is rewritten on every change through a temporary file
    and an atomic rename, so a crash never leaves a half-written file behind.
    A missing or unreadable file starts from an empty store.
    """

    def __init__(self, path: Path | str):
        self._path = Path(path)
        self._data: dict[str, Any] = self._load()

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable state file {self._path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring state file {self._path}: expected a JSON object")
            return {}
        return data

    def _flush(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(self._data, ensure_ascii=False, indent=2), encoding="utf-8")
        os.replace(tmp_path, self._path)

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value
        self._flush()

    def delete(self, key: str) -> None:
        if key in self._data:
            del self._data[key]
            self._flush()
