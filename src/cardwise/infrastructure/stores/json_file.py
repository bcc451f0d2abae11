"""
JSON file store — one JSON object on disk per namespace.

Writes go to a temporary sibling file and are moved into place, so a crash
never leaves a half-written document behind.
"""

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any

from cardwise.domain.errors import StorageError
from cardwise.domain.ports import KeyValueStore

logger = logging.getLogger(__name__)


class JsonFileStore(KeyValueStore):
    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = threading.Lock()
        self._cache: dict[str, dict[str, Any]] | None = None

    def _load(self) -> dict[str, dict[str, Any]]:
        if self._cache is not None:
            return self._cache

        if not self.path.exists():
            self._cache = {}
            return self._cache

        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Could not read {self.path}: {e}") from e

        if not isinstance(raw, dict):
            raise StorageError(f"Could not read {self.path}: expected a JSON object")

        self._cache = raw
        return self._cache

    def _flush(self, data: dict[str, dict[str, Any]]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
        except OSError as e:
            raise StorageError(f"Could not write {self.path}: {e}") from e

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh, indent=2, ensure_ascii=False)
            os.replace(tmp_name, self.path)
        except BaseException as e:
            Path(tmp_name).unlink(missing_ok=True)
            if isinstance(e, OSError):
                raise StorageError(f"Could not write {self.path}: {e}") from e
            raise
        logger.debug(f"Wrote {len(data)} records to {self.path}")

    async def get(self, key: str) -> dict[str, Any] | None:
        with self._lock:
            value = self._load().get(key)
            return json.loads(json.dumps(value)) if value is not None else None

    async def set(self, key: str, value: dict[str, Any]) -> None:
        with self._lock:
            data = dict(self._load())
            data[key] = json.loads(json.dumps(value))
            self._flush(data)
            self._cache = data

    async def delete(self, key: str) -> None:
        with self._lock:
            data = self._load()
            if key not in data:
                return
            data = {k: v for k, v in data.items() if k != key}
            self._flush(data)
            self._cache = data

    async def keys(self) -> list[str]:
        with self._lock:
            return list(self._load())
