from __future__ import annotations

from typing import Any, Dict, List, Optional

import aiohttp

from tripguide.config import get_settings
from tripguide.models import LocationResult
from tripguide.services.cache import TTLCache
from tripguide.services.storage import MemoryKeyValueStore

_settings = get_settings()
_geocode_cache: TTLCache[List[Dict[str, Any]]] = TTLCache(
    MemoryKeyValueStore(max_size=_settings.cache_max_size), ttl_s=_settings.geocode_cache_ttl_s
)
_reverse_cache: TTLCache[Optional[str]] = TTLCache(
    MemoryKeyValueStore(max_size=_settings.cache_max_size), ttl_s=_settings.geocode_cache_ttl_s
)


def _headers() -> Dict[str, str]:
    return {"User-Agent": get_settings().user_agent}


def _base_params() -> Dict[str, Any]:
    settings = get_settings()
    params: Dict[str, Any] = {
        "format": "jsonv2",
        "addressdetails": 1,
        "accept-language": settings.accept_language,
    }
    if settings.nominatim_email:
        params["email"] = settings.nominatim_email
    return params


def _place_name(item: Dict[str, Any]) -> str:
    address = item.get("address") or {}
    for key in ("city", "town", "village", "municipality"):
        if address.get(key):
            return str(address[key])
    return str(item.get("display_name", "")).split(",")[0].strip()


def _to_location(item: Dict[str, Any]) -> LocationResult:
    address = item.get("address") or {}
    country_code = address.get("country_code")
    return LocationResult(
        id=str(item.get("place_id", "")),
        name=_place_name(item),
        display_name=str(item.get("display_name", "")),
        lat=float(item["lat"]),
        lon=float(item["lon"]),
        country=address.get("country"),
        country_code=str(country_code).lower() if country_code else None,
        type=str(item.get("type", "")),
    )


async def search_locations(session: aiohttp.ClientSession, q: str, limit: int = 5) -> List[LocationResult]:
    """Geocode a free-text query (Nominatim). Returns up to `limit` candidates."""
    q = q.strip()
    if not q:
        raise ValueError("Empty location query")

    settings = get_settings()
    cache_key = f"geocode|{q.lower()}|{limit}"
    cached = _geocode_cache.get(cache_key)
    if cached is not None:
        return [LocationResult.model_validate(item) for item in cached]

    params = _base_params()
    params.update({"q": q, "limit": limit})
    timeout = aiohttp.ClientTimeout(total=settings.http_timeout_s)

    async with session.get(
        str(settings.nominatim_search_url), params=params, headers=_headers(), timeout=timeout
    ) as resp:
        resp.raise_for_status()
        data = await resp.json()

    results = []
    for item in data or []:
        try:
            results.append(_to_location(item))
        except (KeyError, TypeError, ValueError):
            continue

    _geocode_cache.set(cache_key, [r.model_dump() for r in results])
    return results


async def reverse_geocode(session: aiohttp.ClientSession, lat: float, lon: float) -> Optional[str]:
    """Best-effort place name for (lat, lon); None when Nominatim has nothing."""
    settings = get_settings()
    cache_key = f"reverse|{lat:.4f}|{lon:.4f}"
    cached = _reverse_cache.get(cache_key)
    if cached is not None:
        return cached

    params = _base_params()
    params.update({"lat": lat, "lon": lon, "zoom": 10})
    timeout = aiohttp.ClientTimeout(total=settings.http_timeout_s)

    async with session.get(
        str(settings.nominatim_reverse_url), params=params, headers=_headers(), timeout=timeout
    ) as resp:
        resp.raise_for_status()
        data = await resp.json()

    if not isinstance(data, dict) or "error" in data:
        return None
    name = _place_name(data) or None
    if name:
        _reverse_cache.set(cache_key, name)
    return name
