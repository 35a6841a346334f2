from __future__ import annotations

import logging

from tripguide.models import RADIUS_OPTIONS_KM, SCOPES
from tripguide.services.storage import KeyValueStore

logger = logging.getLogger(__name__)

_SHARED_RADIUS_KEY = "search_radius_km"
_SHARED_SCOPE_KEY = "search_scope"


class SettingsStore:
    """Per-surface search preferences (radius tier and scope).

    Each surface has its own key; a shared key written alongside it acts as
    the default for surfaces that have never been configured.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    def read_radius_km(self, surface: str, default: int = 6) -> int:
        for key in (f"{_SHARED_RADIUS_KEY}:{surface}", _SHARED_RADIUS_KEY):
            raw = self.store.get_item(key)
            try:
                value = int(raw) if raw is not None else None
            except ValueError:
                value = None
            if value in RADIUS_OPTIONS_KM:
                return value
        return default

    def write_radius_km(self, surface: str, km: int) -> None:
        if km not in RADIUS_OPTIONS_KM:
            raise ValueError(f"radius_km must be one of {RADIUS_OPTIONS_KM}")
        self._write(f"{_SHARED_RADIUS_KEY}:{surface}", str(km))
        self._write(_SHARED_RADIUS_KEY, str(km))

    def read_scope(self, surface: str, default: str = "nearby") -> str:
        for key in (f"{_SHARED_SCOPE_KEY}:{surface}", _SHARED_SCOPE_KEY):
            value = self.store.get_item(key)
            if value in SCOPES:
                return value
        return default

    def write_scope(self, surface: str, scope: str) -> None:
        if scope not in SCOPES:
            raise ValueError(f"scope must be one of {SCOPES}")
        self._write(f"{_SHARED_SCOPE_KEY}:{surface}", scope)
        self._write(_SHARED_SCOPE_KEY, scope)

    def _write(self, key: str, value: str) -> None:
        try:
            self.store.set_item(key, value)
        except Exception as e:
            logger.warning("Could not persist setting %s: %s", key, e)
