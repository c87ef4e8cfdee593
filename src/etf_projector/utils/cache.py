from __future__ import annotations

import base64
import json
import os
import tempfile
import threading
from pathlib import Path
from typing import Dict, List, Optional, Protocol, runtime_checkable

from etf_projector.utils.logging import get_logger

logger = get_logger("kv_store")


@runtime_checkable
class KeyValueStore(Protocol):
    """Byte-valued store the rate cache memoizes into."""

    def get(self, key: str) -> Optional[bytes]:
        ...

    def set(self, key: str, value: bytes) -> None:
        ...


class InMemoryStore:
    """
    Simple in-memory key/value store.
    - Thread-safe
    - Lost on process exit
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._store: Dict[str, bytes] = {}

    def get(self, key: str) -> Optional[bytes]:
        with self._lock:
            return self._store.get(key)

    def set(self, key: str, value: bytes) -> None:
        with self._lock:
            self._store[key] = bytes(value)

    def delete(self, key: str) -> None:
        with self._lock:
            self._store.pop(key, None)

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._store.keys())

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)


class JsonFileStore:
    """
    Key/value store persisted as one JSON document.
    Values are base64 encoded so any bytes round-trip. Every write rewrites
    the file through a temp file + rename.
    """

    def __init__(self, path: str | os.PathLike) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()
        self._store: Dict[str, str] = self._load()

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except json.JSONDecodeError as e:
            logger.warning(f"store_unreadable path={self.path} err={e}; starting empty")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"store_unreadable path={self.path} err=not a mapping; starting empty")
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def _flush(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=str(self.path.parent), prefix=self.path.name, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self._store, f, indent=2, sort_keys=True)
            os.replace(tmp, self.path)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise

    def get(self, key: str) -> Optional[bytes]:
        with self._lock:
            raw = self._store.get(key)
        if raw is None:
            return None
        return base64.b64decode(raw.encode("ascii"))

    def set(self, key: str, value: bytes) -> None:
        encoded = base64.b64encode(bytes(value)).decode("ascii")
        with self._lock:
            self._store[key] = encoded
            self._flush()

    def delete(self, key: str) -> None:
        with self._lock:
            if self._store.pop(key, None) is not None:
                self._flush()

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._store.keys())

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)


def build_store(cache_path: str = "") -> KeyValueStore:
    """File-backed store when a path is configured, in-memory otherwise."""
    if cache_path:
        return JsonFileStore(cache_path)
    return InMemoryStore()
