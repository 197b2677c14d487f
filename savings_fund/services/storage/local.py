"""
Local Storage Implementations

Two stores ship with the fund:
- MemoryStore keeps everything in a dict (tests, demos)
- JsonFileStore keeps one <key>.json file per key in a data directory

JsonFileStore writes to a temporary file and renames it over the target,
so a crash mid-write leaves the previous value intact. It does not guard
against two processes writing the same key.
"""

import os
import re
import tempfile
from pathlib import Path
from typing import Optional, Union

from savings_fund.services.storage.interface import KeyValueStore, StorageError


_SAFE_KEY = re.compile(r"^[A-Za-z0-9._-]+$")


class MemoryStore(KeyValueStore):
    """Dict-backed store."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._data)


class JsonFileStore(KeyValueStore):
    """
    Directory-backed store.

    Each key maps to <data_dir>/<key>.json. Keys are restricted to
    filename-safe characters.
    """

    def __init__(self, data_dir: Union[str, Path]):
        self._dir = Path(data_dir)
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create data directory {self._dir}: {e}")

    def _path(self, key: str) -> Path:
        if not _SAFE_KEY.match(key):
            raise StorageError(f"Invalid storage key: {key!r}")
        return self._dir / f"{key}.json"

    def get_item(self, key: str) -> Optional[str]:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"Failed to read {key}: {e}")

    def set_item(self, key: str, value: str) -> None:
        path = self._path(key)
        try:
            fd, tmp_name = tempfile.mkstemp(dir=self._dir, prefix=f".{key}.", suffix=".tmp")
        except OSError as e:
            raise StorageError(f"Failed to write {key}: {e}")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                tmp.write(value)
            os.replace(tmp_name, path)
        except OSError as e:
            Path(tmp_name).unlink(missing_ok=True)
            raise StorageError(f"Failed to write {key}: {e}")

    def remove_item(self, key: str) -> None:
        try:
            self._path(key).unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            raise StorageError(f"Failed to remove {key}: {e}")

    def keys(self) -> list[str]:
        return sorted(p.stem for p in self._dir.glob("*.json"))
