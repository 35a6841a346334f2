from __future__ import annotations

import logging
from datetime import date
from typing import List, Optional

import aiohttp
from fastapi import FastAPI, HTTPException, Query
from pydantic import ValidationError

from tripguide.categories import Category, list_categories
from tripguide.config import get_settings
from tripguide.models import (
    Location,
    LocationResult,
    ResolveResult,
    Scope,
    SearchParameters,
    SurfaceSettings,
    WeatherDay,
)
from tripguide.services.cache import build_store
from tripguide.services.geocoding import reverse_geocode, search_locations
from tripguide.services.resolver import resolve
from tripguide.services.settings_store import SettingsStore
from tripguide.services.weather import fetch_forecast

settings = get_settings()
logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

settings_store = SettingsStore(build_store())

app = FastAPI(
    title=settings.app_name,
    version=settings.version,
    description="Trip planning: points of interest, geocoding and weather from free OpenStreetMap-based APIs.",
)


def _category(surface: str, variant: Optional[str] = None) -> Category:
    try:
        return Category.parse(surface, variant)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@app.get("/", tags=["Root"])
async def root():
    return {"ok": True, "service": settings.app_name, "version": settings.version}


@app.get("/health", tags=["Healthcheck"])
async def health():
    return {"ok": True}


@app.get("/api/categories", tags=["Api Categories"])
async def api_categories():
    return {"categories": list_categories()}


@app.get("/api/geocode", response_model=List[LocationResult], tags=["Api Geocode"])
async def api_geocode(
    q: str = Query(..., min_length=2, description="Free-text location query"),
    limit: int = Query(5, ge=1, le=20),
):
    async with aiohttp.ClientSession() as session:
        try:
            results = await search_locations(session, q, limit=limit)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except aiohttp.ClientResponseError as e:
            raise HTTPException(status_code=502, detail=f"Nominatim error: {e.status}")

    if not results:
        raise HTTPException(status_code=404, detail="Location not found")
    return results


@app.get("/api/reverse", tags=["Api Geocode"])
async def api_reverse(
    lat: float = Query(..., ge=-90.0, le=90.0),
    lon: float = Query(..., ge=-180.0, le=180.0),
):
    async with aiohttp.ClientSession() as session:
        try:
            name = await reverse_geocode(session, lat, lon)
        except aiohttp.ClientResponseError as e:
            raise HTTPException(status_code=502, detail=f"Nominatim error: {e.status}")

    return {"lat": lat, "lon": lon, "name": name}


@app.get("/api/places/{surface}", response_model=ResolveResult, tags=["Api Places"])
async def api_places(
    surface: str,
    lat: Optional[float] = Query(None, ge=-90.0, le=90.0),
    lon: Optional[float] = Query(None, ge=-180.0, le=180.0),
    country_code: Optional[str] = Query(None, min_length=2, max_length=2),
    variant: Optional[str] = Query(None, description="Meal type for food, help type for help"),
    radius_km: Optional[int] = Query(None),
    scope: Optional[Scope] = Query(None),
    force_refresh: bool = Query(False),
):
    category = _category(surface, variant)

    radius_given = radius_km is not None
    scope_given = scope is not None
    if not radius_given:
        radius_km = settings_store.read_radius_km(category.surface, settings.default_radius_km)
    if not scope_given:
        scope = settings_store.read_scope(category.surface)

    try:
        params = SearchParameters(radius_km=radius_km, scope=scope)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.errors()[0]["msg"])
    if radius_given:
        settings_store.write_radius_km(category.surface, params.radius_km)
    if scope_given:
        settings_store.write_scope(category.surface, params.scope)

    location = None
    if lat is not None and lon is not None:
        location = Location(lat=lat, lon=lon, country_code=country_code)

    async with aiohttp.ClientSession() as session:
        result = await resolve(session, location, category, params, force_refresh=force_refresh)

    if result.error is not None:
        status = 400 if result.error.kind == "no_location" else 503
        raise HTTPException(status_code=status, detail=result.error.model_dump())
    return result


@app.get("/api/settings/{surface}", response_model=SurfaceSettings, tags=["Api Settings"])
async def api_get_settings(surface: str):
    category = _category(surface)
    return SurfaceSettings(
        radius_km=settings_store.read_radius_km(category.surface, settings.default_radius_km),
        scope=settings_store.read_scope(category.surface),
    )


@app.put("/api/settings/{surface}", response_model=SurfaceSettings, tags=["Api Settings"])
async def api_put_settings(surface: str, body: SurfaceSettings):
    category = _category(surface)
    try:
        settings_store.write_radius_km(category.surface, body.radius_km)
        settings_store.write_scope(category.surface, body.scope)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return body


@app.get("/api/weather", response_model=List[WeatherDay], tags=["Api Weather"])
async def api_weather(
    lat: float = Query(..., ge=-90.0, le=90.0),
    lon: float = Query(..., ge=-180.0, le=180.0),
    start: date = Query(...),
    end: date = Query(...),
):
    async with aiohttp.ClientSession() as session:
        try:
            return await fetch_forecast(session, lat, lon, start, end)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except aiohttp.ClientResponseError as e:
            raise HTTPException(status_code=502, detail=f"Open-Meteo error: {e.status}")
