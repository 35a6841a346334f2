from __future__ import annotations

import math
import re
from typing import Optional

from tripguide.categories import Category

_ISO_CODE = re.compile(r"^[A-Za-z]{2}$")
_AREA_SET = "searchArea"


def resolve_effective_scope(scope: str, country_code: Optional[str]) -> Optional[str]:
    """Return the ISO code to lock the search to, or None for a plain radius search.

    A country lock that cannot be honoured (no code, bad code, or a DK lock
    for a location outside DK) quietly becomes "nearby".
    """
    code = (country_code or "").strip()
    if not _ISO_CODE.match(code):
        return None
    code = code.upper()

    if scope == "dk":
        return "DK" if code == "DK" else None
    if scope == "destination":
        return code
    return None


def build_query(
    lat: float,
    lon: float,
    radius_m: int,
    category: Category,
    country_code: Optional[str] = None,
) -> str:
    """Overpass QL for every node/way/relation matching `category` around (lat, lon)."""
    if not (math.isfinite(lat) and math.isfinite(lon)):
        raise ValueError("lat/lon must be finite numbers")
    if isinstance(radius_m, bool) or not isinstance(radius_m, int) or radius_m <= 0:
        raise ValueError("radius_m must be a positive integer")

    area_def = ""
    area_filter = ""
    if country_code is not None:
        if not _ISO_CODE.match(country_code):
            raise ValueError(f"Invalid ISO country code '{country_code}'")
        area_def = f'area["ISO3166-1"="{country_code.upper()}"][admin_level=2]->.{_AREA_SET};\n'
        area_filter = f"(area.{_AREA_SET})"

    around = f"(around:{radius_m},{lat},{lon})"
    clauses = []
    for tag_filter in category.filters:
        rendered = tag_filter.render()
        for kind in ("node", "way", "relation"):
            clauses.append(f"  {kind}{around}{rendered}{area_filter};")

    # Note: for ways/relations we request center.
    return (
        "[out:json][timeout:25];\n"
        f"{area_def}"
        "(\n"
        + "\n".join(clauses)
        + "\n);\nout center tags;\n"
    )
