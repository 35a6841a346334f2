"""
Key-value backends used by the TTL cache and the settings store.

Values are opaque strings; callers own serialisation.
"""
from __future__ import annotations

import os
import sqlite3
import threading
from typing import Dict, List, Optional


class StorageFullError(Exception):
    """Raised by a bounded store that has no room for a new key."""


class KeyValueStore:
    def get_item(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set_item(self, key: str, value: str) -> None:
        raise NotImplementedError

    def remove_item(self, key: str) -> None:
        raise NotImplementedError

    def keys(self) -> List[str]:
        raise NotImplementedError


class MemoryKeyValueStore(KeyValueStore):
    """Process-local store with a hard capacity, like a browser's storage quota."""

    def __init__(self, *, max_size: Optional[int] = None) -> None:
        self.max_size = max_size
        self._data: Dict[str, str] = {}
        self._lock = threading.Lock()

    def get_item(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            if key not in self._data and self.max_size is not None and len(self._data) >= self.max_size:
                raise StorageFullError(f"store is full ({self.max_size} keys)")
            self._data[key] = value

    def remove_item(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._data.keys())


class SqliteKeyValueStore(KeyValueStore):
    """Durable store: one row per key in a single table."""

    def __init__(self, db_path: str) -> None:
        self.db_path = db_path
        if db_path != ":memory:":
            os.makedirs(os.path.dirname(os.path.abspath(db_path)), exist_ok=True)
        self._conn = sqlite3.connect(db_path, check_same_thread=False)
        self._lock = threading.Lock()
        self._init_schema()

    def _init_schema(self) -> None:
        with self._lock:
            self._conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
                """
            )
            self._conn.commit()

    def get_item(self, key: str) -> Optional[str]:
        with self._lock:
            row = self._conn.execute("SELECT value FROM kv WHERE key=?", (key,)).fetchone()
        return row[0] if row else None

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            self._conn.execute(
                "INSERT OR REPLACE INTO kv (key, value) VALUES (?, ?)",
                (key, value),
            )
            self._conn.commit()

    def remove_item(self, key: str) -> None:
        with self._lock:
            self._conn.execute("DELETE FROM kv WHERE key=?", (key,))
            self._conn.commit()

    def keys(self) -> List[str]:
        with self._lock:
            return [row[0] for row in self._conn.execute("SELECT key FROM kv ORDER BY key")]

    def close(self) -> None:
        with self._lock:
            self._conn.close()
