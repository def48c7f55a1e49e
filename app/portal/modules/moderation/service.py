from __future__ import annotations

from typing import TYPE_CHECKING

from app.portal.audit import record_event
from app.portal.constants import ROLE_MODERATOR
from app.portal.locations import LocationError, location_level, normalize_location
from app.portal.rbac import resolve_role

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.portal.models import User


class AssignmentError(ValueError):
    pass


def _parse_level(raw) -> int | None:
    raw = str(raw or "").strip()
    if not raw:
        return None
    try:
        level = int(raw)
    except ValueError as e:
        raise AssignmentError("Moderation level must be a number from 1 to 4.") from e
    if level < 1 or level > 4:
        raise AssignmentError("Moderation level must be a number from 1 to 4.")
    return level


def assign_moderator_location(s: "Session", target: "User", payload: dict, actor: "User") -> int:
    """
    Store a moderator's region/district/ward/village assignment.

    Every level must come from the location table (strict selector). The stored
    level is the most specific level selected, lowered by an explicit override.
    Returns the stored level.
    """
    if resolve_role(target, s) != ROLE_MODERATOR:
        raise AssignmentError("Only moderators can be assigned a location.")

    raw = {k: (payload.get(k) or "").strip() or None for k in ("region", "district", "ward", "village")}
    if not raw["region"]:
        raise AssignmentError("Region is required.")
    try:
        loc = normalize_location(raw["region"], raw["district"], raw["ward"], raw["village"], strict=True)
    except LocationError as e:
        raise AssignmentError(str(e)) from e

    for field, wanted in raw.items():
        if wanted and getattr(loc, field) != wanted:
            raise AssignmentError(f"{field.capitalize()} '{wanted}' is not part of the selected location.")

    calculated = location_level(loc.region, loc.district, loc.ward, loc.village)
    override = _parse_level(payload.get("moderation_level"))
    level = min(override, calculated) if override else calculated

    before = {
        "region": target.region,
        "district": target.district,
        "ward": target.ward,
        "village": target.village,
        "moderation_level": target.moderation_level,
    }
    target.region = loc.region
    target.district = loc.district
    target.ward = loc.ward
    target.village = loc.village
    target.moderation_level = level

    record_event(
        s,
        actor=actor,
        action="moderator.assign",
        entity_type="User",
        entity_id=str(target.id),
        metadata={"before": before, "after": {**loc.as_dict(), "moderation_level": level}},
    )
    return level


def clear_moderator_location(s: "Session", target: "User", actor: "User") -> None:
    target.region = None
    target.district = None
    target.ward = None
    target.village = None
    target.moderation_level = 0
    record_event(s, actor=actor, action="moderator.unassign", entity_type="User", entity_id=str(target.id))
