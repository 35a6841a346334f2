from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

SURFACES: Tuple[str, ...] = ("food", "tourist_spots", "hidden_gems", "markets", "help", "transport")
MEAL_TYPES: Tuple[str, ...] = ("breakfast", "lunch", "dinner", "all")
HELP_TYPES: Tuple[str, ...] = ("all", "hospital", "clinic", "doctors", "police")

# Surfaces that take a sub-type, and the value used when none is given.
_VARIANTS: Dict[str, Tuple[Tuple[str, ...], str]] = {
    "food": (MEAL_TYPES, "all"),
    "help": (HELP_TYPES, "all"),
}


@dataclass(frozen=True)
class TagFilter:
    """One Overpass tag clause.

    `values` empty -> key must be present; one value -> equality;
    several -> anchored regex alternation.
    """

    key: str
    values: Tuple[str, ...] = ()

    def render(self) -> str:
        if not self.values:
            return f'["{self.key}"]'
        if len(self.values) == 1:
            return f'["{self.key}"="{self.values[0]}"]'
        return f'["{self.key}"~"^({"|".join(self.values)})$"]'


def _tf(key: str, *values: str) -> TagFilter:
    return TagFilter(key=key, values=tuple(values))


_TOURIST_SPOTS = [
    _tf("tourism", "attraction", "museum", "gallery", "zoo", "aquarium", "theme_park", "viewpoint"),
    _tf("historic"),
    _tf("leisure", "park"),
]

_HIDDEN_GEMS = [
    _tf("tourism", "viewpoint", "artwork"),
    _tf("natural", "cave_entrance", "spring", "peak", "beach"),
    _tf("leisure", "garden", "nature_reserve"),
    _tf("historic", "ruins", "memorial", "archaeological_site"),
]

_MARKETS = [
    _tf("amenity", "marketplace"),
    _tf("shop", "supermarket"),
    _tf("shop", "convenience"),
]

_TRANSPORT = [
    _tf("public_transport", "station", "stop_position", "platform"),
    _tf("railway", "station", "halt", "tram_stop"),
    _tf("amenity", "bus_station"),
]

_MEALS = {
    "breakfast": [_tf("amenity", "cafe", "bakery")],
    "lunch": [_tf("amenity", "cafe", "restaurant")],
    "dinner": [_tf("amenity", "restaurant", "fast_food")],
    "all": [_tf("amenity", "cafe", "bakery", "restaurant", "fast_food")],
}

_HELP = {"all": [_tf("amenity", *HELP_TYPES[1:])]}
_HELP.update({kind: [_tf("amenity", kind)] for kind in HELP_TYPES[1:]})


@dataclass(frozen=True)
class Category:
    """What to search for: a surface plus, for food and help, its sub-type."""

    surface: str
    variant: Optional[str] = None

    @classmethod
    def parse(cls, surface: str, variant: Optional[str] = None) -> "Category":
        surface = surface.strip().lower().replace("-", "_")
        if surface not in SURFACES:
            raise ValueError(f"Unknown surface '{surface}'. Supported: {', '.join(SURFACES)}")

        if surface not in _VARIANTS:
            if variant:
                raise ValueError(f"Surface '{surface}' takes no variant")
            return cls(surface=surface)

        allowed, default = _VARIANTS[surface]
        variant = (variant or default).strip().lower()
        if variant not in allowed:
            raise ValueError(
                f"Unknown {surface} type '{variant}'. Supported: {', '.join(allowed)}"
            )
        return cls(surface=surface, variant=variant)

    @property
    def filters(self) -> List[TagFilter]:
        if self.surface == "food":
            return _MEALS[self.variant or "all"]
        if self.surface == "help":
            return _HELP[self.variant or "all"]
        return {
            "tourist_spots": _TOURIST_SPOTS,
            "hidden_gems": _HIDDEN_GEMS,
            "markets": _MARKETS,
            "transport": _TRANSPORT,
        }[self.surface]

    @property
    def cache_tag(self) -> str:
        tag = self.surface.replace("_", "-")
        if self.variant:
            tag = f"{tag}-{self.variant}"
        return tag


def list_categories() -> Dict[str, Dict[str, object]]:
    out: Dict[str, Dict[str, object]] = {}
    for surface in SURFACES:
        variants = _VARIANTS.get(surface, ((), None))[0]
        category = Category.parse(surface)
        out[surface] = {
            "variants": list(variants),
            "filters": [{"key": f.key, "values": list(f.values)} for f in category.filters],
        }
    return out
