from __future__ import annotations

import math
from typing import Callable, Dict, Iterable, List, NamedTuple, Optional, Tuple
from urllib.parse import quote

from tripguide.models import GeoElement, PointOfInterest

Tags = Dict[str, str]


class CategoryRule(NamedTuple):
    matches: Callable[[Tags], bool]
    category: str
    label: str
    description: str


def _is(key: str, value: str) -> Callable[[Tags], bool]:
    return lambda tags: tags.get(key) == value


def _has(key: str) -> Callable[[Tags], bool]:
    return lambda tags: bool(tags.get(key))


def _worship(religion: str) -> Callable[[Tags], bool]:
    return lambda tags: tags.get("amenity") == "place_of_worship" and tags.get("religion") == religion


# Checked top to bottom, first match wins. Specific tourism tags sit above
# the generic historic ones; the last rule always matches.
CATEGORY_RULES: List[CategoryRule] = [
    CategoryRule(_is("tourism", "museum"), "museum", "Museum",
                 "Museums usually offer exhibitions, collections and cultural history."),
    CategoryRule(_is("tourism", "gallery"), "gallery", "Gallery",
                 "Galleries show art, often local and changing exhibitions."),
    CategoryRule(_is("tourism", "zoo"), "zoo", "Zoo", "Animals from near and far."),
    CategoryRule(_is("tourism", "aquarium"), "aquarium", "Aquarium", "Life under water up close."),
    CategoryRule(_is("tourism", "theme_park"), "theme_park", "Theme park", "Rides and a full day out."),
    CategoryRule(_is("tourism", "viewpoint"), "viewpoint", "Viewpoint",
                 "A good spot for views and photos."),
    CategoryRule(_is("tourism", "artwork"), "artwork", "Artwork", "Public art worth a detour."),
    CategoryRule(_is("tourism", "attraction"), "attraction", "Attraction",
                 "A popular place to visit."),
    CategoryRule(_is("historic", "castle"), "castle", "Castle", "A historic castle or palace."),
    CategoryRule(_is("historic", "monument"), "monument", "Monument", "A monument of local or national importance."),
    CategoryRule(_is("historic", "memorial"), "memorial", "Memorial", "A place of remembrance."),
    CategoryRule(_is("historic", "ruins"), "ruins", "Ruins", "Remains of an older structure."),
    CategoryRule(_is("historic", "archaeological_site"), "archaeological_site", "Archaeological site",
                 "Traces of people who lived here long ago."),
    CategoryRule(_is("historic", "church"), "historic_church", "Historic church", "A church with a long history."),
    CategoryRule(_has("historic"), "historic", "Historic site", "A historic site of local significance."),
    CategoryRule(_worship("christian"), "church", "Church", "A Christian place of worship."),
    CategoryRule(_worship("muslim"), "mosque", "Mosque", "A Muslim place of worship."),
    CategoryRule(_worship("jewish"), "synagogue", "Synagogue", "A Jewish place of worship."),
    CategoryRule(_is("amenity", "place_of_worship"), "place_of_worship", "Religious building",
                 "A place of worship."),
    CategoryRule(_is("amenity", "cafe"), "cafe", "Café", "Coffee, tea and light meals."),
    CategoryRule(lambda t: t.get("amenity") == "bakery" or t.get("shop") == "bakery", "bakery", "Bakery",
                 "Bread, cakes and often coffee."),
    CategoryRule(_is("amenity", "restaurant"), "restaurant", "Restaurant", "Table service, usually several courses."),
    CategoryRule(_is("amenity", "fast_food"), "fast_food", "Fast food", "Quick food, takeaway or simple service."),
    CategoryRule(_is("amenity", "marketplace"), "marketplace", "Market", "Stalls with local goods and food."),
    CategoryRule(_is("amenity", "hospital"), "hospital", "Hospital", "Emergency and inpatient care."),
    CategoryRule(_is("amenity", "clinic"), "clinic", "Clinic", "Outpatient medical care."),
    CategoryRule(_is("amenity", "doctors"), "doctors", "Doctor", "General practitioner or specialist."),
    CategoryRule(_is("amenity", "police"), "police", "Police", "Police station."),
    CategoryRule(_is("amenity", "fountain"), "fountain", "Fountain", "A fountain."),
    CategoryRule(_is("amenity", "bus_station"), "bus_station", "Bus station", "Regional and local buses."),
    CategoryRule(lambda t: t.get("railway") in ("station", "halt"), "train_station", "Train station",
                 "Trains to and from the area."),
    CategoryRule(_is("railway", "tram_stop"), "tram_stop", "Tram stop", "Tram connections."),
    CategoryRule(_has("public_transport"), "public_transport", "Public transport", "A public transport stop."),
    CategoryRule(_is("shop", "supermarket"), "supermarket", "Supermarket", "Groceries and everyday goods."),
    CategoryRule(_is("shop", "convenience"), "convenience", "Convenience store", "Basics, often open late."),
    CategoryRule(_has("shop"), "shop", "Shop", "A shop."),
    CategoryRule(_is("leisure", "park"), "park", "Park", "Green space for walks and relaxing."),
    CategoryRule(_is("leisure", "garden"), "garden", "Garden", "A cultivated garden."),
    CategoryRule(_is("leisure", "nature_reserve"), "nature_reserve", "Nature reserve", "Protected nature."),
    CategoryRule(_is("natural", "cave_entrance"), "cave", "Cave", "The entrance to a cave."),
    CategoryRule(_is("natural", "spring"), "spring", "Spring", "A natural spring."),
    CategoryRule(_is("natural", "peak"), "peak", "Peak", "A summit with a view."),
    CategoryRule(_is("natural", "beach"), "beach", "Beach", "Sand, sea and sun."),
    CategoryRule(lambda t: True, "place", "Place of interest", "A place in the area."),
]


def _haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Distance in meters between two WGS84 coords."""
    r = 6371000.0
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)

    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return r * c


def element_coordinates(el: GeoElement) -> Optional[Tuple[float, float]]:
    # Coordinates: node => lat/lon, others => center
    if el.type == "node" and el.lat is not None and el.lon is not None:
        return el.lat, el.lon
    if el.center is not None:
        return el.center.lat, el.center.lon
    return None


def element_name(tags: Tags) -> Optional[str]:
    for key in ("name", "name:en"):
        value = (tags.get(key) or "").strip()
        if value:
            return value
    return None


def categorize(tags: Tags) -> Tuple[str, str, str]:
    """(category, label, short description) for a tag set."""
    rule = next(r for r in CATEGORY_RULES if r.matches(tags))
    description = (tags.get("description") or tags.get("short_description") or "").strip()
    return rule.category, rule.label, description or rule.description


def format_address(tags: Tags) -> Optional[str]:
    parts = []
    street = (tags.get("addr:street") or "").strip()
    house = (tags.get("addr:housenumber") or "").strip()
    if street:
        parts.append(f"{street} {house}" if house else street)

    for key in ("addr:city", "addr:town", "addr:village"):
        place = (tags.get(key) or "").strip()
        if place:
            parts.append(place)
            break

    postcode = (tags.get("addr:postcode") or "").strip()
    if postcode:
        parts.append(postcode)
    return ", ".join(parts) or None


def maps_url(lat: float, lon: float, name: Optional[str] = None) -> str:
    query = quote(name) if name else f"{lat},{lon}"
    return f"https://www.google.com/maps/search/?api=1&query={query}"


def _optional(tags: Tags, *keys: str) -> Optional[str]:
    for key in keys:
        value = (tags.get(key) or "").strip()
        if value:
            return value
    return None


def normalize_elements(
    elements: Iterable[GeoElement],
    origin: Optional[Tuple[float, float]] = None,
) -> List[PointOfInterest]:
    """Named, locatable, name-deduplicated POIs in backend order."""
    seen: set[str] = set()
    places: List[PointOfInterest] = []

    for el in elements:
        name = element_name(el.tags)
        if name is None:
            continue
        coords = element_coordinates(el)
        if coords is None:
            continue

        dedup_key = name.casefold()
        if dedup_key in seen:
            continue
        seen.add(dedup_key)

        lat, lon = coords
        category, label, description = categorize(el.tags)
        distance = _haversine_m(origin[0], origin[1], lat, lon) if origin else None

        places.append(
            PointOfInterest(
                id=f"{el.type}/{el.id}",
                osm_type=el.type,
                osm_id=el.id,
                name=name,
                category=category,
                category_label=label,
                short_description=description,
                lat=lat,
                lon=lon,
                distance_m=distance,
                address=format_address(el.tags),
                opening_hours=_optional(el.tags, "opening_hours"),
                website=_optional(el.tags, "website", "contact:website"),
                phone=_optional(el.tags, "phone", "contact:phone"),
                maps_url=maps_url(lat, lon, name),
            )
        )

    return places
