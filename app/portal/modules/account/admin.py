from __future__ import annotations

from flask import Blueprint, abort, current_app, flash, g, redirect, render_template, request, send_file, session, url_for

from app.portal.constants import ROLE_MODERATOR
from app.portal.db import db_session
from app.portal.locations import list_regions
from app.portal.models import User
from app.portal.modules.account.service import (
    list_notifications,
    list_own_feedback,
    mark_all_read,
    mark_notification_read,
    update_profile,
    upload_avatar,
    validate_profile_payload,
)
from app.portal.modules.feedback.models import Feedback
from app.portal.modules.feedback.service import (
    FeedbackError,
    category_names,
    delete_pending_feedback,
    status_info,
    validate_evidence,
)
from app.portal.rbac import require_permission
from app.portal.storage import StorageError, discard_objects, storage_from_config
from app.portal.utils import current_language, evidence_max_bytes, read_upload

bp = Blueprint("account", __name__)


def _current_user() -> User:
    u = getattr(g, "current_user", None)
    if not u:
        raise RuntimeError("No current user")
    return u


def _own_feedback_or_404(s, tracking_id: str) -> Feedback:
    feedback = s.query(Feedback).filter(Feedback.tracking_id == tracking_id.strip().upper()).one_or_none()
    if not feedback or feedback.user_id != _current_user().id:
        abort(404)
    return feedback


# ---------- Dashboard ----------
@bp.get("/")
@require_permission("account.view")
def index():
    s = db_session()
    u = _current_user()
    tab = (request.args.get("tab") or "profile").strip()
    return render_template(
        "account/index.html",
        tab=tab,
        user=u,
        feedbacks=list_own_feedback(s, u),
        notifications=list_notifications(s, u),
        category_names=category_names(s),
        regions=list_regions(),
        lang=current_language(),
    )


# ---------- Profile ----------
@bp.post("/profile")
@require_permission("account.view")
def profile_post():
    s = db_session()
    u = _current_user()
    payload = {k: request.form.get(k) for k in ("full_name", "phone_number", "date_of_birth", "region", "language")}

    errors = validate_profile_payload(payload)
    upload = read_upload(request.files.get("avatar"))
    if upload:
        data, filename, content_type = upload
        errors.extend(validate_evidence(filename, content_type, len(data), evidence_max_bytes()))
    if errors:
        for e in errors:
            flash(e, "danger")
        return redirect(url_for("account.index", tab="profile"))

    update_profile(s, u, payload, lock_region=g.current_role == ROLE_MODERATOR)
    old_avatar = u.avatar_storage_key
    storage = storage_from_config(current_app.config)
    if upload:
        try:
            upload_avatar(s, u, storage, data, filename, content_type)
        except StorageError as e:
            s.rollback()
            flash(f"Failed to upload avatar: {e}", "danger")
            return redirect(url_for("account.index", tab="profile"))
    s.commit()
    if old_avatar and old_avatar != u.avatar_storage_key:
        discard_objects(storage, [old_avatar])

    session["language"] = u.language
    flash("Profile updated.", "success")
    return redirect(url_for("account.index", tab="profile"))


@bp.get("/avatar")
@require_permission("account.view")
def avatar():
    u = _current_user()
    if not u.avatar_storage_key:
        abort(404)
    try:
        fobj = storage_from_config(current_app.config).open(u.avatar_storage_key)
    except StorageError:
        abort(404)
    return send_file(fobj, download_name=u.avatar_storage_key.rsplit("/", 1)[-1], max_age=0)


# ---------- Feedback history ----------
@bp.get("/feedback/<tracking_id>")
@require_permission("account.view")
def feedback_detail(tracking_id: str):
    s = db_session()
    feedback = _own_feedback_or_404(s, tracking_id)
    label, description = status_info(feedback.status, current_language())
    return render_template(
        "account/feedback_detail.html",
        feedback=feedback,
        status_label=label,
        status_description=description,
        category_name=category_names(s).get(feedback.category, feedback.category),
    )


@bp.post("/feedback/<tracking_id>/delete")
@require_permission("account.view")
def feedback_delete(tracking_id: str):
    s = db_session()
    u = _current_user()
    feedback = _own_feedback_or_404(s, tracking_id)
    try:
        delete_pending_feedback(s, feedback, u, storage_from_config(current_app.config))
    except FeedbackError as e:
        flash(str(e), "danger")
        return redirect(url_for("account.index", tab="history"))
    s.commit()
    flash("Feedback deleted.", "success")
    return redirect(url_for("account.index", tab="history"))


# ---------- Notifications ----------
@bp.post("/notifications/<int:notification_id>/read")
@require_permission("account.view")
def notification_read(notification_id: int):
    s = db_session()
    if not mark_notification_read(s, _current_user(), notification_id):
        abort(404)
    s.commit()
    return redirect(url_for("account.index", tab="notifications"))


@bp.post("/notifications/read-all")
@require_permission("account.view")
def notifications_read_all():
    s = db_session()
    count = mark_all_read(s, _current_user())
    s.commit()
    if count:
        flash(f"Marked {count} notification{'s' if count != 1 else ''} as read.", "success")
    else:
        flash("No unread notifications.", "info")
    return redirect(url_for("account.index", tab="notifications"))
