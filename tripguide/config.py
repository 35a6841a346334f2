from __future__ import annotations

from functools import lru_cache
from typing import Dict, List, Literal, Optional

from pydantic import AnyHttpUrl, BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict


class SurfacePolicy(BaseModel):
    """Radius escalation knobs for one surface (food, markets, ...)."""

    threshold: int
    floor_m: int
    ceiling_m: int = 20_000
    max_results: int = 30


DEFAULT_SURFACE_POLICIES: Dict[str, SurfacePolicy] = {
    "food": SurfacePolicy(threshold=5, floor_m=6_000),
    "markets": SurfacePolicy(threshold=5, floor_m=12_000),
    "tourist_spots": SurfacePolicy(threshold=10, floor_m=12_000),
    "hidden_gems": SurfacePolicy(threshold=10, floor_m=12_000),
    "help": SurfacePolicy(threshold=5, floor_m=6_000),
    "transport": SurfacePolicy(threshold=5, floor_m=6_000),
}


class Settings(BaseSettings):
    """App configuration (env-friendly).

    Tip: create a .env file and override settings there. List and dict
    fields take JSON, e.g. OVERPASS_ENDPOINTS='["https://..."]'.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    app_name: str = "Trip Guide API"
    version: str = "0.1.0"
    log_level: str = "INFO"

    # Tried in order; the busiest public mirror goes last.
    overpass_endpoints: List[str] = [
        "https://overpass.kumi.systems/api/interpreter",
        "https://overpass.nchc.org.tw/api/interpreter",
        "https://overpass-api.de/api/interpreter",
    ]
    overpass_timeout_s: float = 30.0

    nominatim_search_url: AnyHttpUrl = "https://nominatim.openstreetmap.org/search"
    nominatim_reverse_url: AnyHttpUrl = "https://nominatim.openstreetmap.org/reverse"
    open_meteo_url: AnyHttpUrl = "https://api.open-meteo.com/v1/forecast"
    accept_language: str = "en"

    # Nominatim's usage policy expects a proper User-Agent and (optionally) contact info.
    user_agent: str = "tripguide/0.1.0"
    nominatim_email: Optional[str] = None

    http_timeout_s: float = 20.0

    cache_backend: Literal["memory", "sqlite"] = "memory"
    cache_db_path: str = "data/tripguide_cache.sqlite"
    cache_ttl_s: float = 24 * 60 * 60
    cache_max_size: int = 512
    geocode_cache_ttl_s: float = 5 * 60

    default_radius_km: int = 6
    surface_policies: Dict[str, SurfacePolicy] = DEFAULT_SURFACE_POLICIES


@lru_cache
def get_settings() -> Settings:
    return Settings()
