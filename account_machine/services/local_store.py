"""
Local key-value store for record arrays.

Each key maps to one JSON file in the store directory. Writes go through a
temporary file and a rename, and every access holds a per-key file lock so
two processes sharing a directory never see a half-written file.
"""

import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

from filelock import FileLock

from ..exceptions import StorageError

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


class LocalStore:
    """JSON file backed store keyed by string"""

    def __init__(self, directory):
        self.directory = Path(directory).expanduser()
        self.directory.mkdir(parents=True, exist_ok=True)
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def _path(self, key: str) -> Path:
        if not key or not _KEY_PATTERN.match(key):
            raise StorageError(f"Invalid store key: {key!r}")
        return self.directory / f"{key}.json"

    def _lock(self, key: str) -> FileLock:
        return FileLock(str(self._path(key)) + ".lock")

    def _read(self, key: str) -> Any:
        path = self._path(key)
        with self._lock(key):
            if not path.exists():
                return None
            try:
                with open(path, "r", encoding="utf-8") as f:
                    return json.load(f)
            except json.JSONDecodeError as e:
                raise StorageError(f"Corrupt store file: {e}", str(path)) from e
            except OSError as e:
                raise StorageError(f"Cannot read store file: {e}", str(path)) from e

    def _write(self, key: str, value: Any):
        path = self._path(key)
        tmp_path = path.with_suffix(".json.tmp")
        with self._lock(key):
            try:
                with open(tmp_path, "w", encoding="utf-8") as f:
                    json.dump(value, f, ensure_ascii=False, indent=2)
                os.replace(tmp_path, path)
            except (OSError, TypeError, ValueError) as e:
                tmp_path.unlink(missing_ok=True)
                raise StorageError(f"Cannot write store file: {e}", str(path)) from e
        self.logger.debug(f"Saved key '{key}' to {path}")

    def load(self, key: str) -> List[Dict[str, Any]]:
        """Load the record array stored under key, empty when missing"""
        data = self._read(key)
        if data is None:
            return []
        if not isinstance(data, list):
            raise StorageError(f"Key '{key}' does not hold a list", str(self._path(key)))
        return data

    def save(self, key: str, records: List[Dict[str, Any]]):
        """Replace the record array stored under key"""
        self._write(key, list(records))

    def load_object(self, key: str) -> Optional[Dict[str, Any]]:
        data = self._read(key)
        if data is not None and not isinstance(data, dict):
            raise StorageError(f"Key '{key}' does not hold an object", str(self._path(key)))
        return data

    def save_object(self, key: str, value: Dict[str, Any]):
        self._write(key, dict(value))

    def remove(self, key: str) -> bool:
        """Delete a key, returns False when it did not exist"""
        path = self._path(key)
        with self._lock(key):
            if not path.exists():
                return False
            path.unlink()
        return True

    def keys(self) -> List[str]:
        return sorted(p.stem for p in self.directory.glob("*.json"))
