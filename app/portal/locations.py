"""
Cascading Region -> District -> Ward -> Village lookups.

The table in `locations_data` is sparse: many regions list no districts and many
districts list no wards. Where a parent has no child data, free-text children are
accepted as typed (non-strict mode) so citizens outside the detailed regions can
still describe their location. Moderator assignment uses strict mode, where every
level must come from the table.
"""
from __future__ import annotations

from dataclasses import dataclass

from app.portal.locations_data import TANZANIA_REGIONS


class LocationError(ValueError):
    pass


@dataclass(frozen=True)
class Location:
    region: str | None = None
    district: str | None = None
    ward: str | None = None
    village: str | None = None

    @property
    def level(self) -> int:
        return location_level(self.region, self.district, self.ward, self.village)

    def as_dict(self) -> dict[str, str | None]:
        return {"region": self.region, "district": self.district, "ward": self.ward, "village": self.village}


def _clean(value: str | None) -> str | None:
    value = (value or "").strip()
    return value or None


def _find(items: list[dict], name: str | None) -> dict | None:
    if not name:
        return None
    for item in items:
        if item["name"] == name:
            return item
    return None


def _region(region: str | None) -> dict | None:
    return _find(TANZANIA_REGIONS, region)


def _district(region: str | None, district: str | None) -> dict | None:
    r = _region(region)
    return _find(r["districts"], district) if r else None


def _ward(region: str | None, district: str | None, ward: str | None) -> dict | None:
    d = _district(region, district)
    return _find(d["wards"], ward) if d else None


def list_regions() -> list[str]:
    return [r["name"] for r in TANZANIA_REGIONS]


def list_districts(region: str | None) -> list[str]:
    r = _region(region)
    return [d["name"] for d in r["districts"]] if r else []


def list_wards(region: str | None, district: str | None) -> list[str]:
    d = _district(region, district)
    return [w["name"] for w in d["wards"]] if d else []


def list_villages(region: str | None, district: str | None, ward: str | None) -> list[str]:
    w = _ward(region, district, ward)
    return list(w.get("villages") or []) if w else []


def is_known_region(region: str | None) -> bool:
    return _region(_clean(region)) is not None


def _resolve_child(value: str | None, options: list[str], strict: bool) -> str | None:
    if value is None:
        return None
    if value in options:
        return value
    # No table data under this parent: keep free text unless strict.
    if not options and not strict:
        return value
    return None


def normalize_location(
    region: str | None,
    district: str | None = None,
    ward: str | None = None,
    village: str | None = None,
    *,
    strict: bool = False,
) -> Location:
    """
    Validate the region and drop children that do not belong to their parent.

    A child is dropped when its parent has table data that does not include it,
    and anything below a dropped (or missing) level is dropped too. Raises
    LocationError for an unknown region.
    """
    region = _clean(region)
    district = _clean(district)
    ward = _clean(ward)
    village = _clean(village)

    if region is None:
        return Location()
    if not is_known_region(region):
        raise LocationError(f"Unknown region: {region}")

    district = _resolve_child(district, list_districts(region), strict)
    if district is None:
        return Location(region=region)

    ward = _resolve_child(ward, list_wards(region, district), strict)
    if ward is None:
        return Location(region=region, district=district)

    village = _resolve_child(village, list_villages(region, district, ward), strict)
    return Location(region=region, district=district, ward=ward, village=village)


def location_level(
    region: str | None,
    district: str | None = None,
    ward: str | None = None,
    village: str | None = None,
) -> int:
    """Most specific level set: 0 none, 1 region, 2 district, 3 ward, 4 village."""
    level = 0
    if _clean(region):
        level = 1
        if _clean(district):
            level = 2
            if _clean(ward):
                level = 3
                if _clean(village):
                    level = 4
    return level
