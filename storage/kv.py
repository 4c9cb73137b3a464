"""Key-value storage for lightweight view state, in-memory or backed by a JSON file.

Values are JSON-compatible trees and are serialised on the way in, so callers
never share mutable state with the store. Persistence is best effort: an
unreadable file is logged and treated as empty rather than failing the app.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import structlog

logger = structlog.get_logger()


@runtime_checkable
class KeyValueStore(Protocol):
    """Protocol defining the interface for view-state stores."""

    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, value: Any) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryStore:
    """Process-local store used for tests and when no path is configured."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    def get(self, key: str) -> Any | None:
        raw = self._data.get(key)
        return None if raw is None else json.loads(raw)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = json.dumps(value)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def clear(self) -> None:
        self._data.clear()


class JsonFileStore:
    """Store that keeps every key in a single JSON document on disk.

    Writes go to a sibling temp file which is then renamed over the live file.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, Any]:
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            # Covers permissions, directories, bad encodings and bad JSON
            logger.warning("store_file_unreadable", path=str(self._path), error=str(e))
            return {}

        if not isinstance(data, dict):
            logger.warning("store_file_unexpected_root", path=str(self._path))
            return {}
        return data

    def _save(self, data: dict[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_name(self._path.name + ".tmp")
        tmp.write_text(json.dumps(data, indent=2), encoding="utf-8")
        os.replace(tmp, self._path)

    def get(self, key: str) -> Any | None:
        return self._load().get(key)

    def set(self, key: str, value: Any) -> None:
        data = self._load()
        data[key] = json.loads(json.dumps(value))
        self._save(data)

    def delete(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)


def create_store(path: str | None = None) -> KeyValueStore:
    """Factory: JSON file store when a path is configured, otherwise in-memory."""
    path = path or os.environ.get("AGENTDESK_STORE_PATH")
    if path:
        return JsonFileStore(path)
    return MemoryStore()
