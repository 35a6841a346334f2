from __future__ import annotations

import json
import logging
import time
from typing import Any, Callable, Generic, Optional, TypeVar

from tripguide.config import get_settings
from tripguide.services.storage import (
    KeyValueStore,
    MemoryKeyValueStore,
    SqliteKeyValueStore,
    StorageFullError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TTLCache(Generic[T]):
    """TTL cache over a KeyValueStore.

    Entries are stored as JSON `{"data": <payload>, "timestamp": <epoch-ms>}`.
    Stale entries are removed when read; nothing sweeps them proactively.
    Writes are best-effort and never raise.
    """

    def __init__(
        self,
        store: KeyValueStore,
        *,
        ttl_s: float,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.ttl_s = ttl_s
        self._clock = clock

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def get(self, key: str) -> Optional[T]:
        raw = self.store.get_item(key)
        if raw is None:
            return None
        try:
            entry = json.loads(raw)
            data = entry["data"]
            stored_at = int(entry["timestamp"])
        except (ValueError, TypeError, KeyError) as e:
            logger.debug("Ignoring unreadable cache entry %s: %s", key, e)
            self.store.remove_item(key)
            return None

        if self._now_ms() - stored_at > self.ttl_s * 1000:
            self.store.remove_item(key)
            return None
        return data

    def set(self, key: str, value: T) -> None:
        try:
            raw = json.dumps({"data": value, "timestamp": self._now_ms()})
            try:
                self.store.set_item(key, raw)
            except StorageFullError:
                self._purge_expired()
                self.store.set_item(key, raw)
        except Exception as e:
            logger.debug("Cache write for %s skipped: %s", key, e)

    def _purge_expired(self) -> None:
        for key in self.store.keys():
            self.get(key)

    def delete(self, key: str) -> None:
        self.store.remove_item(key)


def make_cache_key(lat: float, lon: float, category: str) -> str:
    # 3 decimals ~ 111 m, so nearby taps share an entry
    return f"overpass_{category}_{lat:.3f}_{lon:.3f}"


def search_cache_tag(category_tag: str, radius_km: int, scope_code: Optional[str]) -> str:
    """Category part of a search cache key; covers every parameter that changes results."""
    scope = f"in-{scope_code}" if scope_code else "nearby"
    return f"{category_tag}-{scope}-r{radius_km}km"


def build_store(*, max_size: Optional[int] = None) -> KeyValueStore:
    settings = get_settings()
    if settings.cache_backend == "sqlite":
        return SqliteKeyValueStore(settings.cache_db_path)
    return MemoryKeyValueStore(max_size=max_size)


def make_default_cache() -> "TTLCache[Any]":
    settings = get_settings()
    return TTLCache(build_store(max_size=settings.cache_max_size), ttl_s=settings.cache_ttl_s)
