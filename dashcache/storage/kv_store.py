"""Durable key-value substrate for cache entries and configuration.

Values are opaque strings; serialization of cache entries and config is the
caller's concern. All calls are synchronous so a single read or write is
atomic with respect to other work on the event loop.

Concurrent writers from other processes race on the same file with
last-write-wins semantics. There is no cross-process locking.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Protocol

from ..errors import StorageError

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """Synchronous string key-value store."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...

    def keys(self) -> list[str]: ...


class MemoryStore:
    """Process-local store, used when persistence is disabled."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._items: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._items.get(key)

    def set(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._items)


class JsonFileStore:
    """Key-value store persisted as a single JSON object on disk.

    The whole file is rewritten on every mutation (write to a temporary file,
    then rename). Reads go through an in-memory copy that is reloaded when the
    file's modification time changes.
    """

    def __init__(self, path: Path) -> None:
        """Initialize JSON file store.

        Args:
            path: Store file path; its directory is created if missing
        """
        self.path = path
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._items: dict[str, str] = {}
        self._loaded_signature: tuple[int, int] | None = None
        logger.info(f"Initialized JSON file store at {self.path}")

    def _file_signature(self) -> tuple[int, int]:
        stat = self.path.stat()
        return stat.st_mtime_ns, stat.st_size

    def _save_json(self, data: dict[str, str]) -> None:
        """Save dict as JSON file atomically.

        Raises:
            StorageError: If the file cannot be written
        """
        temp_path = self.path.with_suffix(".tmp")
        try:
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            temp_path.replace(self.path)
            self._loaded_signature = self._file_signature()
            logger.debug(f"Saved {len(data)} keys to {self.path}")
        except OSError as e:
            if temp_path.exists():
                temp_path.unlink()
            raise StorageError(f"Failed to save store to {self.path}: {e}") from e

    def _load_json(self) -> dict[str, str]:
        """Load the store file, reusing the cached copy when unchanged.

        A missing file is an empty store. An unparseable file is also treated
        as empty so a single corrupt write cannot wedge the cache.

        Raises:
            StorageError: If the file exists but cannot be read
        """
        if not self.path.exists():
            self._items = {}
            self._loaded_signature = None
            return self._items

        try:
            signature = self._file_signature()
            if self._loaded_signature == signature:
                return self._items
            with open(self.path, encoding="utf-8") as f:
                raw = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning(f"Store file {self.path} is corrupt, starting empty: {e}")
            self._items = {}
            self._loaded_signature = None
            return self._items
        except OSError as e:
            raise StorageError(f"Failed to read store from {self.path}: {e}") from e

        if not isinstance(raw, dict):
            logger.warning(f"Store file {self.path} does not hold an object, starting empty")
            raw = {}

        self._items = {str(k): v for k, v in raw.items() if isinstance(v, str)}
        self._loaded_signature = signature
        return self._items

    def get(self, key: str) -> str | None:
        return self._load_json().get(key)

    def set(self, key: str, value: str) -> None:
        items = dict(self._load_json())
        items[key] = value
        self._save_json(items)
        self._items = items

    def remove(self, key: str) -> None:
        items = self._load_json()
        if key not in items:
            return
        items = dict(items)
        del items[key]
        self._save_json(items)
        self._items = items

    def keys(self) -> list[str]:
        return list(self._load_json())
