from __future__ import annotations

import logging
from typing import Any, List, Optional, Sequence

import aiohttp
from pydantic import ValidationError

from tripguide.categories import Category
from tripguide.config import DEFAULT_SURFACE_POLICIES, SurfacePolicy, get_settings
from tripguide.models import Location, PointOfInterest, ResolveError, ResolveResult, SearchParameters
from tripguide.services.cache import TTLCache, make_cache_key, make_default_cache, search_cache_tag
from tripguide.services.normalize import element_name, normalize_elements
from tripguide.services.overpass import query_overpass
from tripguide.services.queries import build_query, resolve_effective_scope

logger = logging.getLogger(__name__)

NO_LOCATION_MESSAGE = "No location available. Pick a destination first."

_places_cache: TTLCache[Any] = make_default_cache()


def radius_steps(base_m: int, policy: SurfacePolicy) -> List[int]:
    """Ascending, unique radii: base, max(floor, 2*base), ceiling; none above the ceiling."""
    ceiling = policy.ceiling_m
    base = min(base_m, ceiling)
    widened = min(max(policy.floor_m, base * 2), ceiling)
    return sorted({base, widened, ceiling})


def next_radius(steps: Sequence[int], current: Optional[int]) -> Optional[int]:
    """Radius to try after `current` (None = start), or None when exhausted."""
    if current is None:
        return steps[0] if steps else None
    larger = [r for r in steps if r > current]
    return larger[0] if larger else None


def policy_for(category: Category) -> SurfacePolicy:
    # An override that leaves a surface out keeps that surface on its default
    policy = get_settings().surface_policies.get(category.surface)
    return policy or DEFAULT_SURFACE_POLICIES[category.surface]


def _from_cache(payload: Any) -> Optional[ResolveResult]:
    if not isinstance(payload, dict):
        return None
    try:
        places = [PointOfInterest.model_validate(p) for p in payload.get("places") or []]
        radius_used = payload.get("radius_used")
        return ResolveResult(
            results=places,
            radius_used=int(radius_used) if radius_used is not None else None,
            cached=True,
        )
    except (ValidationError, TypeError, ValueError):
        return None


async def resolve(
    session: aiohttp.ClientSession,
    location: Optional[Location],
    category: Category,
    params: SearchParameters,
    *,
    force_refresh: bool = False,
    cache: Optional[TTLCache[Any]] = None,
    endpoints: Optional[Sequence[str]] = None,
    policy: Optional[SurfacePolicy] = None,
) -> ResolveResult:
    """Find named POIs for `category` around `location`, widening the radius as needed.

    Radii are tried smallest first and the first one with enough named
    results wins; the largest radius always terminates the search. Only the
    failure of the final radius is reported, as a retryable busy error.
    """
    if location is None:
        return ResolveResult(
            error=ResolveError(kind="no_location", message=NO_LOCATION_MESSAGE, retryable=False)
        )

    cache = cache if cache is not None else _places_cache
    policy = policy or policy_for(category)

    country_code = resolve_effective_scope(params.scope, location.country_code)
    cache_key = make_cache_key(
        location.lat,
        location.lon,
        search_cache_tag(category.cache_tag, params.radius_km, country_code),
    )

    if not force_refresh:
        cached = _from_cache(cache.get(cache_key))
        if cached is not None:
            return cached

    steps = radius_steps(params.radius_m, policy)
    origin = (location.lat, location.lon)

    radius = next_radius(steps, None)
    while radius is not None:
        is_last = next_radius(steps, radius) is None
        query = build_query(location.lat, location.lon, radius, category, country_code)
        outcome = await query_overpass(session, query, endpoints=endpoints)

        if not outcome.ok:
            if is_last:
                return ResolveResult(
                    error=ResolveError(kind="backend_busy", message=outcome.error, retryable=True)
                )
            logger.info("Overpass unavailable at %sm for %s, widening", radius, cache_key)
            radius = next_radius(steps, radius)
            continue

        elements = outcome.elements or []
        named_count = sum(1 for el in elements if element_name(el.tags))
        if named_count >= policy.threshold or is_last:
            places = normalize_elements(elements, origin=origin)[: policy.max_results]
            cache.set(
                cache_key,
                {"radius_used": radius, "places": [p.model_dump() for p in places]},
            )
            return ResolveResult(results=places, radius_used=radius)

        logger.info(
            "Only %d named results at %sm for %s (need %d), widening",
            named_count, radius, cache_key, policy.threshold,
        )
        radius = next_radius(steps, radius)

    return ResolveResult()
