"""
Local Key-Value Store

Small JSON file holding the session token, the cached user and the favorite
product ids. Every read-modify-write happens under a ``FileLock`` so two
client processes sharing the file cannot interleave writes.
"""

import json
import logging
from pathlib import Path
from typing import Any, Optional, Union

from filelock import FileLock

logger = logging.getLogger(__name__)

DEFAULT_PATH = Path.home() / ".coffeeshop" / "client.json"


class LocalStore:
    """JSON-backed key-value store guarded by a lock file."""

    LOCK_TIMEOUT = 10

    def __init__(self, path: Union[str, Path] = DEFAULT_PATH):
        self.path = Path(path)
        self._lock = FileLock(str(self.path) + ".lock", timeout=self.LOCK_TIMEOUT)

    def _ensure_dir(self) -> None:
        if not self.path.parent.exists():
            self.path.parent.mkdir(parents=True, exist_ok=True)
            logger.info(f"Created client data directory: {self.path.parent}")

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            return json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except json.JSONDecodeError as e:
            logger.warning(f"Discarding unreadable store {self.path}: {e}")
            return {}

    def _save(self, data: dict[str, Any]) -> None:
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(data, indent=2, default=str), encoding="utf-8")
        tmp.replace(self.path)

    def get(self, key: str, default: Optional[Any] = None) -> Any:
        self._ensure_dir()
        with self._lock:
            return self._load().get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._ensure_dir()
        with self._lock:
            data = self._load()
            data[key] = value
            self._save(data)

    def remove(self, *keys: str) -> None:
        self._ensure_dir()
        with self._lock:
            data = self._load()
            for key in keys:
                data.pop(key, None)
            self._save(data)

    def clear(self) -> None:
        self._ensure_dir()
        with self._lock:
            self._save({})
