"""File-backed key-value storage.

Each key is stored as a standalone JSON document ``<key>.json`` inside the
storage directory. Values are read and written whole; there are no partial
writes and no transactions across keys.
"""
from __future__ import annotations

import json
import logging
import os
import re
import threading
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger(__name__)

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


class StorageError(RuntimeError):
    """Raised when a stored document cannot be decoded."""


class LocalStorage:
    """Persists JSON documents under a directory, one file per key."""

    def __init__(self, base_dir: Path | str) -> None:
        self._base_dir = Path(base_dir)
        self._lock = threading.Lock()

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    def _path_for(self, key: str) -> Path:
        if not key or not _KEY_PATTERN.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self._base_dir / f"{key}.json"

    def get_item(self, key: str) -> Optional[Any]:
        """Return the decoded document for *key*, or ``None`` if absent."""

        path = self._path_for(key)
        if not path.exists():
            return None
        try:
            raw_content = path.read_text(encoding="utf-8").strip()
            if not raw_content:
                return None
            return json.loads(raw_content)
        except UnicodeDecodeError as exc:
            raise StorageError(f"Stored document {key!r} is not valid UTF-8: {exc.reason}") from exc
        except json.JSONDecodeError as exc:
            raise StorageError(f"Stored document {key!r} cannot be parsed: {exc.msg}") from exc

    def set_item(self, key: str, value: Any) -> None:
        """Replace the document stored under *key*."""

        path = self._path_for(key)
        serialized = json.dumps(value, indent=2)
        with self._lock:
            self._base_dir.mkdir(parents=True, exist_ok=True)
            tmp_path = path.with_suffix(".json.tmp")
            tmp_path.write_text(f"{serialized}\n", encoding="utf-8")
            os.replace(tmp_path, path)
        logger.debug("Stored %s (%d bytes)", key, len(serialized))
