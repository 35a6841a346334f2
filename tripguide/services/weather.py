from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional

import aiohttp

from tripguide.config import get_settings
from tripguide.models import WeatherDay

# WMO weather interpretation codes used by Open-Meteo
WEATHER_DESCRIPTIONS: Dict[int, str] = {
    0: "Clear sky",
    1: "Mainly clear",
    2: "Partly cloudy",
    3: "Overcast",
    45: "Fog",
    48: "Depositing rime fog",
    51: "Light drizzle",
    53: "Moderate drizzle",
    55: "Dense drizzle",
    61: "Light rain",
    63: "Moderate rain",
    65: "Heavy rain",
    71: "Light snow",
    73: "Moderate snow",
    75: "Heavy snow",
    80: "Light showers",
    81: "Moderate showers",
    82: "Violent showers",
}

_DAILY_FIELDS = "temperature_2m_max,temperature_2m_min,precipitation_sum,weathercode,windspeed_10m_max"


def _at(values: Any, i: int) -> Optional[float]:
    if not isinstance(values, list) or i >= len(values) or values[i] is None:
        return None
    return float(values[i])


def _rounded(value: Optional[float]) -> Optional[int]:
    return None if value is None else round(value)


def parse_daily(payload: Dict[str, Any]) -> List[WeatherDay]:
    daily = payload.get("daily") or {}
    days: List[WeatherDay] = []
    for i, day in enumerate(daily.get("time") or []):
        code = _at(daily.get("weathercode"), i)
        code = int(code) if code is not None else None
        days.append(
            WeatherDay(
                date=date.fromisoformat(day),
                temp_max=_rounded(_at(daily.get("temperature_2m_max"), i)),
                temp_min=_rounded(_at(daily.get("temperature_2m_min"), i)),
                precipitation_mm=_at(daily.get("precipitation_sum"), i),
                weather_code=code,
                description=WEATHER_DESCRIPTIONS.get(code, "Unknown") if code is not None else "Unknown",
                wind_speed_kmh=_rounded(_at(daily.get("windspeed_10m_max"), i)),
            )
        )
    return days


async def fetch_forecast(
    session: aiohttp.ClientSession, lat: float, lon: float, start: date, end: date
) -> List[WeatherDay]:
    """Daily forecast for the trip window (Open-Meteo, no API key)."""
    if end < start:
        raise ValueError("end date must not be before start date")

    settings = get_settings()
    params = {
        "latitude": lat,
        "longitude": lon,
        "daily": _DAILY_FIELDS,
        "start_date": start.isoformat(),
        "end_date": end.isoformat(),
        "timezone": "auto",
    }
    timeout = aiohttp.ClientTimeout(total=settings.http_timeout_s)

    async with session.get(str(settings.open_meteo_url), params=params, timeout=timeout) as resp:
        resp.raise_for_status()
        data = await resp.json()

    return parse_daily(data)
