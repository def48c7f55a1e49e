from __future__ import annotations

import hashlib
import logging
import secrets
import uuid
from dataclasses import dataclass
from datetime import date, datetime
from typing import TYPE_CHECKING, Iterable

from werkzeug.utils import secure_filename

from app.portal.audit import record_event
from app.portal.constants import (
    EVIDENCE_CONTENT_TYPES,
    EVIDENCE_EXTENSIONS,
    STATUS_CHANGE_MESSAGES,
    STATUS_INFO,
    STATUS_PENDING,
    STATUS_PRIORITY,
    TRACKING_ID_ALPHABET,
    TRACKING_ID_LENGTH,
    VALID_STATUSES,
)
from app.portal.locations import LocationError, normalize_location
from app.portal.storage import discard_objects

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.portal.models import User
    from app.portal.modules.feedback.models import Feedback, FeedbackResponse
    from app.portal.storage import Storage

logger = logging.getLogger(__name__)

TRACKING_ID_ATTEMPTS = 10


class FeedbackError(RuntimeError):
    pass


@dataclass(frozen=True)
class EvidenceFile:
    """An evidence image either held in memory or already staged in storage."""

    filename: str
    content_type: str
    data: bytes | None = None
    staged_key: str | None = None


# ---------- Tracking IDs ----------
def generate_tracking_id() -> str:
    return "".join(secrets.choice(TRACKING_ID_ALPHABET) for _ in range(TRACKING_ID_LENGTH))


def normalize_tracking_id(raw: str | None) -> str:
    return (raw or "").strip().upper()


def new_tracking_id(s: "Session") -> str:
    from app.portal.modules.feedback.models import Feedback

    for _ in range(TRACKING_ID_ATTEMPTS):
        candidate = generate_tracking_id()
        if not s.query(Feedback.id).filter(Feedback.tracking_id == candidate).first():
            return candidate
    raise FeedbackError("Could not allocate a tracking ID. Please try again.")


# ---------- Validation ----------
def _clean(value) -> str | None:
    value = str(value or "").strip()
    return value or None


def _truthy(value) -> bool:
    if isinstance(value, bool):
        return value
    return (str(value or "")).strip().lower() in ("1", "true", "yes", "on")


def validate_personal(payload: dict) -> list[str]:
    from app.portal.auth import is_valid_email

    errors = []
    if _truthy(payload.get("is_anonymous")):
        return errors
    email = _clean(payload.get("email"))
    if email and not is_valid_email(email):
        errors.append("Invalid email format.")
    return errors


def validate_location(payload: dict) -> list[str]:
    if not _clean(payload.get("region")):
        return ["Region is required."]
    try:
        normalize_location(payload.get("region"), payload.get("district"), payload.get("ward"), payload.get("village"))
    except LocationError:
        return ["Please select a valid region."]
    return []


def validate_details(payload: dict, category_ids: Iterable[str] | None = None) -> list[str]:
    errors = []
    category = _clean(payload.get("category"))
    if not category:
        errors.append("Category is required.")
    elif category_ids is not None and category not in set(category_ids):
        errors.append("Unknown category.")
    if not _clean(payload.get("description")):
        errors.append("Description is required.")
    return errors


def validate_feedback_payload(payload: dict, category_ids: Iterable[str] | None = None) -> list[str]:
    """Validate a complete submission. Returns list of errors."""
    return validate_personal(payload) + validate_location(payload) + validate_details(payload, category_ids)


def validate_evidence(filename: str | None, content_type: str | None, size_bytes: int, max_bytes: int) -> list[str]:
    errors = []
    ext = (filename or "").rsplit(".", 1)[-1].lower() if "." in (filename or "") else ""
    if ext not in EVIDENCE_EXTENSIONS or (content_type and content_type.lower() not in EVIDENCE_CONTENT_TYPES):
        errors.append("Only PNG and JPG images are allowed.")
    if size_bytes <= 0:
        errors.append("Uploaded file is empty.")
    elif size_bytes > max_bytes:
        errors.append(f"Image must be smaller than {max_bytes // (1024 * 1024)}MB.")
    return errors


# ---------- Evidence storage ----------
def _unique_name(filename: str, token: str | None) -> str:
    safe_filename = secure_filename(filename) or "evidence.jpg"
    return f"{token or uuid.uuid4().hex[:8]}_{safe_filename}"


def build_evidence_storage_key(
    tracking_id: str, filename: str, upload_date: date | None = None, *, token: str | None = None
) -> str:
    """Storage key for feedback evidence; the token keeps same-named files apart."""
    if upload_date is None:
        upload_date = date.today()
    return f"feedback/{tracking_id}/{upload_date.isoformat()}/{_unique_name(filename, token)}"


def build_staging_key(wizard_id: str, filename: str, *, token: str | None = None) -> str:
    return f"staging/{wizard_id}/{_unique_name(filename, token)}"


def file_digest_and_bytes(file_bytes: bytes) -> tuple[str, int]:
    """Compute SHA256 digest and size."""
    h = hashlib.sha256()
    h.update(file_bytes)
    return (h.hexdigest(), len(file_bytes))


def _attach_evidence(s: "Session", storage: "Storage", feedback: "Feedback", item: EvidenceFile) -> None:
    from app.portal.modules.feedback.models import FeedbackEvidence

    storage_key = build_evidence_storage_key(feedback.tracking_id, item.filename)
    if item.staged_key:
        data = storage.read_bytes(item.staged_key)
        # Staged objects stay until the submission commits; the caller removes them.
        storage.copy(item.staged_key, storage_key, content_type=item.content_type)
    elif item.data is not None:
        data = item.data
        storage.put_bytes(storage_key, data, content_type=item.content_type)
    else:
        raise FeedbackError("Evidence has no content.")

    sha256, size_bytes = file_digest_and_bytes(data)
    s.add(
        FeedbackEvidence(
            feedback_id=feedback.id,
            storage_key=storage_key,
            original_filename=secure_filename(item.filename) or "evidence.jpg",
            content_type=item.content_type,
            sha256=sha256,
            size_bytes=size_bytes,
        )
    )


# ---------- Submission ----------
def submit_feedback(
    s: "Session",
    payload: dict,
    user: "User | None",
    *,
    storage: "Storage | None" = None,
    evidence: list[EvidenceFile] | None = None,
) -> "Feedback":
    """
    Insert a new pending feedback row and store its evidence.

    Anonymous submissions keep no name/phone/email. Location children that do not
    belong to their parent are dropped. The caller commits.
    """
    from app.portal.modules.feedback.models import Feedback

    is_anonymous = _truthy(payload.get("is_anonymous"))
    try:
        loc = normalize_location(payload.get("region"), payload.get("district"), payload.get("ward"), payload.get("village"))
    except LocationError as e:
        raise FeedbackError(str(e)) from e
    if loc.region is None:
        raise FeedbackError("Region is required.")

    now = datetime.utcnow()
    feedback = Feedback(
        tracking_id=new_tracking_id(s),
        user_id=user.id if user else None,
        status=STATUS_PENDING,
        is_anonymous=is_anonymous,
        full_name=None if is_anonymous else _clean(payload.get("full_name")),
        phone_number=None if is_anonymous else _clean(payload.get("phone_number")),
        email=None if is_anonymous else (_clean(payload.get("email")) or "").lower() or None,
        region=loc.region,
        district=loc.district,
        ward=loc.ward,
        village=loc.village,
        street=_clean(payload.get("street")),
        category=_clean(payload.get("category")),
        description=_clean(payload.get("description")),
        created_at=now,
        updated_at=now,
    )
    s.add(feedback)
    s.flush()

    evidence = evidence or []
    if evidence:
        if storage is None:
            raise FeedbackError("Evidence storage is not configured.")
        for item in evidence:
            _attach_evidence(s, storage, feedback, item)

    record_event(
        s,
        actor=user,
        action="feedback.submit",
        entity_type="Feedback",
        entity_id=feedback.tracking_id,
        metadata={
            "category": feedback.category,
            "region": feedback.region,
            "anonymous": is_anonymous,
            "evidence_count": len(evidence),
        },
    )
    logger.info("Feedback submitted tracking_id=%s category=%s", feedback.tracking_id, feedback.category)
    return feedback


# ---------- Tracking ----------
def find_by_tracking_id(s: "Session", raw: str | None) -> tuple["Feedback | None", str | None]:
    """Returns (feedback, error message)."""
    from app.portal.modules.feedback.models import Feedback

    tracking_id = normalize_tracking_id(raw)
    if not tracking_id:
        return None, "Please enter a tracking ID"
    feedback = s.query(Feedback).filter(Feedback.tracking_id == tracking_id).one_or_none()
    if feedback is None:
        return None, "No feedback found with this tracking ID"
    return feedback, None


def status_info(status: str, lang: str = "en") -> tuple[str, str]:
    table = STATUS_INFO.get(lang) or STATUS_INFO["en"]
    return table.get(status) or (status.capitalize(), "")


def public_tracking_view(feedback: "Feedback", lang: str = "en", category_name: str | None = None) -> dict:
    """Public projection of a submission; personal fields are never included."""
    label, description = status_info(feedback.status, lang)
    return {
        "tracking_id": feedback.tracking_id,
        "status": feedback.status,
        "status_label": label,
        "status_description": description,
        "category": category_name or feedback.category,
        "submitted_on": feedback.created_at,
        "region": feedback.region,
        "district": feedback.district or "N/A",
        "description": feedback.description,
    }


# ---------- Moderation ----------
def notify_submitter(s: "Session", feedback: "Feedback", message: str) -> bool:
    """Queue an in-app notification for a registered submitter."""
    from app.portal.modules.feedback.models import FeedbackNotification

    if not feedback.user_id:
        return False
    s.add(FeedbackNotification(feedback_id=feedback.id, user_id=feedback.user_id, message=message))
    return True


def update_status(s: "Session", feedback: "Feedback", new_status: str, user: "User") -> bool:
    """
    Change the status and notify the submitter. Returns False (and writes nothing)
    when the status is unchanged.
    """
    new_status = (new_status or "").strip().lower()
    if new_status not in VALID_STATUSES:
        raise FeedbackError(f"Invalid status. Must be one of: {', '.join(VALID_STATUSES)}")
    if new_status == feedback.status:
        return False

    old_status = feedback.status
    feedback.status = new_status
    feedback.updated_at = datetime.utcnow()
    notify_submitter(s, feedback, STATUS_CHANGE_MESSAGES[new_status])

    record_event(
        s,
        actor=user,
        action="feedback.status_change",
        entity_type="Feedback",
        entity_id=feedback.tracking_id,
        metadata={"old": old_status, "new": new_status},
    )
    return True


def add_response(s: "Session", feedback: "Feedback", message: str, user: "User") -> "FeedbackResponse":
    from app.portal.modules.feedback.models import FeedbackResponse

    message = (message or "").strip()
    if not message:
        raise FeedbackError("Response text is required.")

    response = FeedbackResponse(feedback_id=feedback.id, responder_user_id=user.id, message=message)
    s.add(response)
    notify_submitter(s, feedback, f"Response to your feedback: {message}")
    s.flush()

    record_event(
        s,
        actor=user,
        action="feedback.respond",
        entity_type="Feedback",
        entity_id=feedback.tracking_id,
        metadata={"response_id": response.id, "length": len(message)},
    )
    return response


def email_submitter(feedback: "Feedback", subject: str, template: str, context: dict | None = None) -> bool:
    """Best-effort email to the address on the submission; call after commit."""
    from app.portal.mail import send_email

    if not feedback.email:
        return False
    ctx = {"feedback": feedback}
    ctx.update(context or {})
    return send_email(feedback.email, subject, template, ctx)


# ---------- Deletion ----------
def delete_pending_feedback(s: "Session", feedback: "Feedback", user: "User", storage: "Storage") -> None:
    """
    Submitters may withdraw their own feedback while it is still pending.
    Notifications, responses and evidence (rows and stored files) go with it.
    """
    if feedback.user_id != user.id:
        raise FeedbackError("You can only delete your own feedback.")
    if feedback.status != STATUS_PENDING:
        raise FeedbackError("Only pending feedback can be deleted.")

    storage_keys = [ev.storage_key for ev in feedback.evidence]
    tracking_id = feedback.tracking_id
    s.delete(feedback)
    s.flush()

    discard_objects(storage, storage_keys)

    record_event(
        s,
        actor=user,
        action="feedback.delete",
        entity_type="Feedback",
        entity_id=tracking_id,
        metadata={"evidence_count": len(storage_keys)},
    )


# ---------- Filtering / sorting ----------
def _matches_search(feedback, needle: str, category_names: dict[str, str]) -> bool:
    haystack = (
        feedback.tracking_id,
        feedback.description,
        feedback.category,
        category_names.get(feedback.category or "", ""),
        feedback.full_name,
        feedback.district,
    )
    return any(needle in (value or "").lower() for value in haystack)


def filter_and_sort(
    items: Iterable,
    *,
    search: str | None = None,
    status: str | None = None,
    category: str | None = None,
    sort: str = "newest",
    category_names: dict[str, str] | None = None,
) -> list:
    """
    Filter fetched feedback rows in memory.

    Search is case-insensitive over tracking id, description, category, full name
    and district. "priority" sorts pending > reviewing > resolved > rejected, newest
    first within a status.
    """
    category_names = category_names or {}
    needle = (search or "").strip().lower()
    status = (status or "").strip().lower()
    category = (category or "").strip()

    out = []
    for fb in items:
        if status and status != "all" and fb.status != status:
            continue
        if category and category != "all" and fb.category != category:
            continue
        if needle and not _matches_search(fb, needle, category_names):
            continue
        out.append(fb)

    if sort == "oldest":
        out.sort(key=lambda fb: fb.created_at)
    elif sort == "priority":
        out.sort(key=lambda fb: fb.created_at, reverse=True)
        out.sort(key=lambda fb: STATUS_PRIORITY.get(fb.status, -1), reverse=True)
    else:
        out.sort(key=lambda fb: fb.created_at, reverse=True)
    return out


# ---------- Categories ----------
def list_active_categories(s: "Session") -> list:
    from app.portal.modules.feedback.models import FeedbackCategory

    return s.query(FeedbackCategory).filter(FeedbackCategory.is_active.is_(True)).order_by(FeedbackCategory.name.asc()).all()


def category_names(s: "Session") -> dict[str, str]:
    from app.portal.modules.feedback.models import FeedbackCategory

    return {c.id: c.name for c in s.query(FeedbackCategory).all()}
