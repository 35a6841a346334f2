from __future__ import annotations

import pytest

from tripguide.models import GeoElement
from tripguide.services.normalize import (
    categorize,
    element_coordinates,
    format_address,
    normalize_elements,
)


def _el(**data) -> GeoElement:
    data.setdefault("type", "node")
    return GeoElement.model_validate(data)


def test_node_uses_own_coordinates_and_way_uses_center():
    node = _el(id=1, lat=1.0, lon=2.0, center={"lat": 9, "lon": 9})
    way = _el(id=2, type="way", center={"lat": 3.0, "lon": 4.0})
    relation = _el(id=3, type="relation", center={"lat": 5.0, "lon": 6.0})

    assert element_coordinates(node) == (1.0, 2.0)
    assert element_coordinates(way) == (3.0, 4.0)
    assert element_coordinates(relation) == (5.0, 6.0)
    assert element_coordinates(_el(id=4, type="way")) is None
    assert element_coordinates(_el(id=5, lat=1.0)) is None


def test_unnamed_elements_never_appear():
    rich = _el(id=1, lat=1, lon=1, tags={"tourism": "museum", "website": "https://x", "opening_hours": "24/7"})
    named_en = _el(id=2, lat=1, lon=1, tags={"name:en": "Little Mermaid", "tourism": "artwork"})
    blank = _el(id=3, lat=1, lon=1, tags={"name": "   "})

    places = normalize_elements([rich, named_en, blank])
    assert [p.name for p in places] == ["Little Mermaid"]


def test_elements_without_coordinates_are_dropped():
    places = normalize_elements([_el(id=1, type="way", tags={"name": "Nowhere"})])
    assert places == []


def test_name_dedup_is_case_insensitive_and_first_wins():
    first = _el(id=10, lat=1, lon=1, tags={"name": "Torvehallerne", "amenity": "marketplace"})
    dup_way = _el(id=99, type="way", center={"lat": 2, "lon": 2}, tags={"name": "TORVEHALLERNE", "shop": "supermarket"})
    other = _el(id=11, lat=1, lon=1, tags={"name": "Netto"})

    places = normalize_elements([first, dup_way, other])
    assert [p.id for p in places] == ["node/10", "node/11"]
    assert places[0].category == "marketplace"


def test_tourism_beats_historic():
    assert categorize({"tourism": "museum", "historic": "monument"})[0] == "museum"
    assert categorize({"historic": "monument"})[:2] == ("monument", "Monument")
    assert categorize({"historic": "yes"})[0] == "historic"


@pytest.mark.parametrize(
    "religion, expected",
    [("christian", "church"), ("muslim", "mosque"), ("jewish", "synagogue"), ("buddhist", "place_of_worship")],
)
def test_religion_subtag_selects_building(religion, expected):
    assert categorize({"amenity": "place_of_worship", "religion": religion})[0] == expected


def test_catch_all_category():
    assert categorize({}) == ("place", "Place of interest", "A place in the area.")
    assert categorize({"foo": "bar"})[0] == "place"


def test_description_tag_overrides_rule_text():
    _, _, description = categorize({"tourism": "museum", "description": "Danish design since 1890"})
    assert description == "Danish design since 1890"


@pytest.mark.parametrize(
    "tags, expected",
    [
        ({"addr:street": "Nyhavn", "addr:housenumber": "17", "addr:city": "København", "addr:postcode": "1051"},
         "Nyhavn 17, København, 1051"),
        ({"addr:street": "Strøget"}, "Strøget"),
        ({"addr:village": "Dragør", "addr:postcode": "2791"}, "Dragør, 2791"),
        ({"addr:housenumber": "4"}, None),
        ({}, None),
    ],
)
def test_format_address(tags, expected):
    assert format_address(tags) == expected


def test_optional_fields_and_distance():
    el = _el(
        id=7,
        lat=55.6761,
        lon=12.5683,
        tags={
            "name": "Café Europa",
            "amenity": "cafe",
            "opening_hours": "Mo-Su 08:00-22:00",
            "contact:website": "https://cafeeuropa.dk",
            "phone": "+45 33 14 28 89",
        },
    )
    [place] = normalize_elements([el], origin=(55.6761, 12.5683))

    assert place.category_label == "Café"
    assert place.opening_hours == "Mo-Su 08:00-22:00"
    assert place.website == "https://cafeeuropa.dk"
    assert place.phone == "+45 33 14 28 89"
    assert place.address is None
    assert place.distance_m == pytest.approx(0.0)
    assert place.maps_url.startswith("https://www.google.com/maps/search/?api=1&query=Caf")
