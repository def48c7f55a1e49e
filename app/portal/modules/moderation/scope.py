from __future__ import annotations

from typing import TYPE_CHECKING

from app.portal.constants import ROLE_ADMIN
from app.portal.locations import Location, location_level

if TYPE_CHECKING:
    from sqlalchemy.orm import Query
    from app.portal.models import User


def moderator_scope(user: "User", role: str) -> Location:
    """
    Location filter for a moderator's feedback list.

    Narrows region, then district, ward and village, but never deeper than the
    moderator's level. Admins and moderators without a region see everything.
    """
    if role == ROLE_ADMIN or not user.region:
        return Location()
    assigned = location_level(user.region, user.district, user.ward, user.village)
    level = min(user.moderation_level or assigned, assigned)
    values = (user.region, user.district, user.ward, user.village)[:level]
    return Location(*values)


def scope_label(scope: Location) -> str:
    parts = [p for p in (scope.village, scope.ward, scope.district, scope.region) if p]
    return ", ".join(parts) if parts else "All Regions"


def apply_scope(q: "Query", scope: Location) -> "Query":
    from app.portal.modules.feedback.models import Feedback

    if scope.region:
        q = q.filter(Feedback.region == scope.region)
    if scope.district:
        q = q.filter(Feedback.district == scope.district)
    if scope.ward:
        q = q.filter(Feedback.ward == scope.ward)
    if scope.village:
        q = q.filter(Feedback.village == scope.village)
    return q


def in_scope(feedback, scope: Location) -> bool:
    for attr in ("region", "district", "ward", "village"):
        wanted = getattr(scope, attr)
        if wanted and getattr(feedback, attr) != wanted:
            return False
    return True
