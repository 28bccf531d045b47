from __future__ import annotations

import copy
from typing import Any, Dict

from echocards.services.storage.base import StorageBackend


class InMemoryStorage(StorageBackend):
    """Process-local store. Values are deep-copied in and out like a real store."""

    def __init__(self, initial: Dict[str, Any] = None):
        self._data: Dict[str, Any] = copy.deepcopy(initial) if initial else {}

    def read_key(self, key: str) -> Any:
        return copy.deepcopy(self._data.get(key))

    def write_key(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)

    def remove_key(self, key: str) -> None:
        self._data.pop(key, None)

    def dump(self) -> Dict[str, Any]:
        """Return a copy of everything stored."""
        return copy.deepcopy(self._data)
