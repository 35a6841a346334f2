from __future__ import annotations

from datetime import date
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

RADIUS_OPTIONS_KM = (2, 4, 6, 10, 20)

Scope = Literal["nearby", "dk", "destination"]
SCOPES: tuple[str, ...] = ("nearby", "dk", "destination")


class LatLon(BaseModel):
    lat: float
    lon: float


class GeoElement(BaseModel):
    """Raw element as returned by Overpass (`out center tags`)."""

    id: int
    type: Literal["node", "way", "relation"]
    lat: Optional[float] = None
    lon: Optional[float] = None
    center: Optional[LatLon] = None
    tags: Dict[str, str] = Field(default_factory=dict)

    @field_validator("tags", mode="before")
    @classmethod
    def _tags_as_strings(cls, value):
        if value is None:
            return {}
        if not isinstance(value, dict):
            raise ValueError("tags must be an object")
        return {str(k): str(v) for k, v in value.items()}


class Location(BaseModel):
    lat: float = Field(..., ge=-90.0, le=90.0)
    lon: float = Field(..., ge=-180.0, le=180.0)
    country_code: Optional[str] = None
    name: Optional[str] = None


class SearchParameters(BaseModel):
    radius_km: int = 6
    scope: Scope = "nearby"

    @field_validator("radius_km")
    @classmethod
    def _known_radius(cls, value: int) -> int:
        if value not in RADIUS_OPTIONS_KM:
            raise ValueError(f"radius_km must be one of {RADIUS_OPTIONS_KM}")
        return value

    @property
    def radius_m(self) -> int:
        return self.radius_km * 1000


class PointOfInterest(BaseModel):
    id: str
    osm_type: str
    osm_id: int
    name: str
    category: str
    category_label: str
    short_description: str
    lat: float
    lon: float
    distance_m: Optional[float] = None
    address: Optional[str] = None
    opening_hours: Optional[str] = None
    website: Optional[str] = None
    phone: Optional[str] = None
    maps_url: str


class ResolveError(BaseModel):
    kind: Literal["no_location", "backend_busy"]
    message: str
    retryable: bool


class ResolveResult(BaseModel):
    results: List[PointOfInterest] = Field(default_factory=list)
    radius_used: Optional[int] = None
    error: Optional[ResolveError] = None
    cached: bool = False


class LocationResult(BaseModel):
    id: str
    name: str
    display_name: str
    lat: float
    lon: float
    country: Optional[str] = None
    country_code: Optional[str] = None
    type: str = ""


class WeatherDay(BaseModel):
    date: date
    temp_max: Optional[int] = None
    temp_min: Optional[int] = None
    precipitation_mm: Optional[float] = None
    weather_code: Optional[int] = None
    description: str
    wind_speed_kmh: Optional[int] = None


class SurfaceSettings(BaseModel):
    radius_km: int
    scope: Scope
