"""
JSON-file storage: one file per key inside the data directory.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from echocards.services.storage.base import ALL_KEYS, StorageBackend
from echocards.utils.error_handler import DataPersistenceError


logger = logging.getLogger(__name__)


class JSONFileStorage(StorageBackend):
    """File-backed store writing each key atomically (temp file + rename)."""

    def __init__(self, data_path: str = "data"):
        self.data_path = Path(data_path)
        self.data_path.mkdir(parents=True, exist_ok=True)

    def _file_for(self, key: str) -> Path:
        if key not in ALL_KEYS:
            raise DataPersistenceError(f"Unknown storage key: {key}", error_code="UNKNOWN_KEY")
        return self.data_path / f"{key}.json"

    def read_key(self, key: str) -> Any:
        path = self._file_for(key)
        if not path.exists():
            return None

        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.error(f"Failed to read {path}: {e}")
            raise DataPersistenceError(f"Failed to read '{key}': {e}") from e

    def write_key(self, key: str, value: Any) -> None:
        path = self._file_for(key)
        temp_file = path.with_suffix(".tmp")

        try:
            with open(temp_file, "w", encoding="utf-8") as f:
                json.dump(value, f, indent=2, ensure_ascii=False)

            # Atomic rename
            temp_file.replace(path)
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Failed to write {path}: {e}")
            if temp_file.exists():
                temp_file.unlink()
            raise DataPersistenceError(f"Failed to write '{key}': {e}") from e

    def remove_key(self, key: str) -> None:
        path = self._file_for(key)
        if path.exists():
            path.unlink()
