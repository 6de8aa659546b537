"""
Price Cache Storage - Synchronous key-value backends.

============================================================
PURPOSE
============================================================
The cache persists string values under string keys and needs
full key enumeration to clear its own entries.

Backends:
- InMemoryStorage: process-local dict, optional item quota
- JsonFileStorage: one JSON document on disk, replaced atomically

============================================================
"""

import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional, Union

from price_cache.exceptions import StorageError, StorageQuotaExceededError


logger = logging.getLogger(__name__)


# ============================================================
# STORAGE INTERFACE
# ============================================================

class KeyValueStorage(ABC):
    """
    Abstract key-value storage.

    All operations are synchronous and short. Failures raise
    StorageError (or StorageQuotaExceededError on a full store).
    """

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        """Return the stored value, or None if the key is absent."""
        pass

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """Store a value, replacing any previous one."""
        pass

    @abstractmethod
    def remove_item(self, key: str) -> None:
        """Remove a key; absent keys are ignored."""
        pass

    @abstractmethod
    def keys(self) -> List[str]:
        """All keys currently stored."""
        pass


# ============================================================
# IN-MEMORY BACKEND
# ============================================================

class InMemoryStorage(KeyValueStorage):
    """
    Dict-backed storage.

    With max_items set, adding a new key beyond the quota raises
    StorageQuotaExceededError. Overwriting an existing key always
    succeeds.
    """

    def __init__(self, max_items: Optional[int] = None) -> None:
        self._items: Dict[str, str] = {}
        self._max_items = max_items

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        if (
            self._max_items is not None
            and key not in self._items
            and len(self._items) >= self._max_items
        ):
            raise StorageQuotaExceededError(
                f"Storage full ({self._max_items} items)",
                key=key,
            )
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> List[str]:
        return list(self._items.keys())

    def __len__(self) -> int:
        return len(self._items)


# ============================================================
# JSON FILE BACKEND
# ============================================================

class JsonFileStorage(KeyValueStorage):
    """
    Durable storage in a single JSON object file.

    The file is read once on first access. Every write rewrites the
    whole document to a temporary file in the same directory, then
    os.replace() swaps it in. The document on disk is always complete.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self._path = Path(path)
        self._items: Optional[Dict[str, str]] = None

    @property
    def path(self) -> Path:
        """Location of the JSON document."""
        return self._path

    def _load(self) -> Dict[str, str]:
        if self._items is not None:
            return self._items

        if not self._path.exists():
            self._items = {}
            return self._items

        try:
            with open(self._path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except ValueError as e:
            logger.warning(f"Ignoring unreadable cache file {self._path}: {e}")
            data = {}
        except OSError as e:
            raise StorageError(f"Cannot read {self._path}", original_error=e) from e

        if not isinstance(data, dict):
            logger.warning(f"Ignoring cache file {self._path}: top level is not an object")
            data = {}

        self._items = {str(k): v for k, v in data.items() if isinstance(v, str)}
        return self._items

    def _flush(self) -> None:
        items = self._load()
        directory = self._path.parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=directory,
                prefix=f".{self._path.name}.",
                suffix=".tmp",
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(items, f)
                os.replace(tmp_path, self._path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as e:
            raise StorageError(f"Cannot write {self._path}", original_error=e) from e

    def get_item(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set_item(self, key: str, value: str) -> None:
        items = self._load()
        previous = items.get(key)
        items[key] = value
        try:
            self._flush()
        except StorageError as e:
            # Keep memory consistent with disk
            if previous is None:
                items.pop(key, None)
            else:
                items[key] = previous
            e.key = key
            raise

    def remove_item(self, key: str) -> None:
        items = self._load()
        if key in items:
            del items[key]
            self._flush()

    def keys(self) -> List[str]:
        return list(self._load().keys())
