from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence

import aiohttp
from pydantic import ValidationError

from tripguide.config import get_settings
from tripguide.models import GeoElement

logger = logging.getLogger(__name__)

BACKEND_BUSY_MESSAGE = "The map service is busy right now, please try again shortly."


@dataclass
class OverpassOutcome:
    """Result of one query across all endpoints. Exactly one of elements/error is set."""

    elements: Optional[List[GeoElement]] = None
    error: Optional[str] = None
    endpoint: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def next_endpoint(endpoints: Sequence[str], current: Optional[str]) -> Optional[str]:
    """Endpoint to try after `current` (None = start), or None when exhausted."""
    if not endpoints:
        return None
    if current is None:
        return endpoints[0]
    try:
        idx = list(endpoints).index(current)
    except ValueError:
        return None
    return endpoints[idx + 1] if idx + 1 < len(endpoints) else None


def parse_elements(payload: Any) -> List[GeoElement]:
    """Pull GeoElements out of an Overpass JSON body, skipping malformed records."""
    raw = payload.get("elements") if isinstance(payload, dict) else None
    if not isinstance(raw, list):
        return []

    elements: List[GeoElement] = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        try:
            elements.append(GeoElement.model_validate(item))
        except ValidationError:
            continue
    return elements


async def _try_endpoint(
    session: aiohttp.ClientSession, url: str, query: str, timeout: aiohttp.ClientTimeout
) -> Optional[List[GeoElement]]:
    async with session.post(url, data={"data": query}, timeout=timeout) as resp:
        if not 200 <= resp.status < 300:
            logger.warning("Overpass endpoint %s returned %s", url, resp.status)
            return None

        content_type = resp.headers.get("Content-Type", "")
        if "application/json" not in content_type.lower():
            # HTML maintenance / rate-limit pages come back as 200 text/html
            logger.warning("Overpass endpoint %s returned non-JSON response (%s)", url, content_type)
            return None

        payload = await resp.json(content_type=None)
    return parse_elements(payload)


async def query_overpass(
    session: aiohttp.ClientSession,
    query: str,
    *,
    endpoints: Optional[Sequence[str]] = None,
    timeout_s: Optional[float] = None,
) -> OverpassOutcome:
    """Run `query` against the endpoints in priority order; first JSON success wins.

    Never raises for backend trouble: exhaustion is reported as a busy outcome
    that callers may retry.
    """
    settings = get_settings()
    # Deduplicate while preserving order
    endpoints = list(dict.fromkeys(endpoints if endpoints is not None else settings.overpass_endpoints))
    timeout = aiohttp.ClientTimeout(total=timeout_s or settings.overpass_timeout_s)

    url = next_endpoint(endpoints, None)
    while url is not None:
        try:
            elements = await _try_endpoint(session, url, query, timeout)
        except asyncio.TimeoutError:
            logger.warning("Overpass endpoint %s timed out", url)
            elements = None
        except (aiohttp.ClientError, ValueError) as e:
            logger.warning("Overpass endpoint %s failed: %s", url, e)
            elements = None

        if elements is not None:
            return OverpassOutcome(elements=elements, endpoint=url)
        url = next_endpoint(endpoints, url)

    return OverpassOutcome(error=BACKEND_BUSY_MESSAGE)
