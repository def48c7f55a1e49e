from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING

from werkzeug.utils import secure_filename

from app.portal.audit import record_event
from app.portal.constants import LANGUAGES
from app.portal.locations import is_known_region
from app.portal.utils import parse_date

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.portal.models import User
    from app.portal.modules.feedback.models import Feedback, FeedbackNotification
    from app.portal.storage import Storage


def validate_profile_payload(payload: dict) -> list[str]:
    """Validate profile update payload. Returns list of errors."""
    errors = []
    dob = (payload.get("date_of_birth") or "").strip()
    if dob:
        try:
            parsed = parse_date(dob)
        except ValueError:
            errors.append("Date of birth must be YYYY-MM-DD.")
        else:
            if parsed and parsed > date.today():
                errors.append("Date of birth cannot be in the future.")
    region = (payload.get("region") or "").strip()
    if region and not is_known_region(region):
        errors.append("Please select a valid region.")
    language = (payload.get("language") or "").strip()
    if language and language not in LANGUAGES:
        errors.append("Unsupported language.")
    return errors


def update_profile(s: "Session", user: "User", payload: dict, *, lock_region: bool = False) -> dict:
    """
    Apply profile fields; returns the changes recorded in the audit trail.

    A moderator's region doubles as their assignment, which only admins change,
    so callers pass lock_region=True for moderators.
    """
    changes = {}
    new_values = {
        "full_name": (payload.get("full_name") or "").strip() or None,
        "phone_number": (payload.get("phone_number") or "").strip() or None,
        "date_of_birth": parse_date(payload.get("date_of_birth")),
        "language": (payload.get("language") or "").strip() or user.language or "en",
    }
    if not lock_region:
        new_values["region"] = (payload.get("region") or "").strip() or None
    for field, new in new_values.items():
        old = getattr(user, field)
        if new != old:
            changes[field] = {"old": str(old) if old is not None else None, "new": str(new) if new is not None else None}
            setattr(user, field, new)

    if changes:
        record_event(
            s,
            actor=user,
            action="account.profile_update",
            entity_type="User",
            entity_id=str(user.id),
            metadata={"changes": changes},
        )
    return changes


def build_avatar_storage_key(user_id: int, filename: str) -> str:
    safe_filename = secure_filename(filename) or "avatar.jpg"
    return f"avatars/{user_id}/{safe_filename}"


def upload_avatar(s: "Session", user: "User", storage: "Storage", file_bytes: bytes, filename: str, content_type: str) -> str:
    """The previous avatar object is left in place; remove it once the new key is committed."""
    key = build_avatar_storage_key(user.id, filename)
    storage.put_bytes(key, file_bytes, content_type=content_type)
    user.avatar_storage_key = key
    record_event(s, actor=user, action="account.avatar_upload", entity_type="User", entity_id=str(user.id))
    return key


def list_own_feedback(s: "Session", user: "User") -> list["Feedback"]:
    from app.portal.modules.feedback.models import Feedback

    return s.query(Feedback).filter(Feedback.user_id == user.id).order_by(Feedback.created_at.desc()).all()


def list_notifications(s: "Session", user: "User") -> list["FeedbackNotification"]:
    from app.portal.modules.feedback.models import FeedbackNotification

    return (
        s.query(FeedbackNotification)
        .filter(FeedbackNotification.user_id == user.id)
        .order_by(FeedbackNotification.created_at.desc(), FeedbackNotification.id.desc())
        .all()
    )


def unread_count(s: "Session", user: "User") -> int:
    from app.portal.modules.feedback.models import FeedbackNotification

    return (
        s.query(FeedbackNotification)
        .filter(FeedbackNotification.user_id == user.id, FeedbackNotification.is_read.is_(False))
        .count()
    )


def mark_notification_read(s: "Session", user: "User", notification_id: int) -> bool:
    from app.portal.modules.feedback.models import FeedbackNotification

    n = s.get(FeedbackNotification, notification_id)
    if not n or n.user_id != user.id:
        return False
    n.is_read = True
    return True


def mark_all_read(s: "Session", user: "User") -> int:
    from app.portal.modules.feedback.models import FeedbackNotification

    unread = (
        s.query(FeedbackNotification)
        .filter(FeedbackNotification.user_id == user.id, FeedbackNotification.is_read.is_(False))
        .all()
    )
    for n in unread:
        n.is_read = True
    return len(unread)
