from __future__ import annotations

from flask import Blueprint, abort, current_app, flash, g, jsonify, redirect, render_template, request, send_file, url_for

from app.portal.audit import record_event
from app.portal.constants import SORT_OPTIONS, VALID_STATUSES
from app.portal.db import db_session
from app.portal.models import User
from app.portal.modules.feedback.models import Feedback, FeedbackEvidence
from app.portal.modules.feedback.service import (
    FeedbackError,
    add_response,
    category_names,
    email_submitter,
    filter_and_sort,
    status_info,
    update_status,
)
from app.portal.modules.moderation.scope import apply_scope, in_scope, moderator_scope, scope_label
from app.portal.rbac import require_permission
from app.portal.stats import moderator_stats
from app.portal.storage import StorageError, storage_from_config
from app.portal.utils import current_language

bp = Blueprint("moderation", __name__)


def _current_user() -> User:
    u = getattr(g, "current_user", None)
    if not u:
        raise RuntimeError("No current user")
    return u


def _scope():
    return moderator_scope(_current_user(), getattr(g, "current_role", None) or "")


def _scoped_feedback(s) -> list[Feedback]:
    return apply_scope(s.query(Feedback), _scope()).order_by(Feedback.created_at.desc()).all()


def _get_feedback_or_404(s, tracking_id: str) -> Feedback:
    feedback = s.query(Feedback).filter(Feedback.tracking_id == tracking_id.strip().upper()).one_or_none()
    # Out-of-scope feedback is reported as missing.
    if not feedback or not in_scope(feedback, _scope()):
        abort(404)
    return feedback


# ---------- List ----------
@bp.get("/")
@require_permission("feedback.moderate")
def index():
    s = db_session()
    names = category_names(s)

    search = (request.args.get("q") or "").strip()
    status_filter = (request.args.get("status") or "all").strip().lower()
    category_filter = (request.args.get("category") or "all").strip()
    sort = (request.args.get("sort") or "newest").strip()
    if sort not in SORT_OPTIONS:
        sort = "newest"

    items = _scoped_feedback(s)
    feedbacks = filter_and_sort(
        items,
        search=search,
        status=status_filter,
        category=category_filter,
        sort=sort,
        category_names=names,
    )
    categories = sorted({fb.category for fb in items if fb.category})

    return render_template(
        "moderation/index.html",
        feedbacks=feedbacks,
        total=len(items),
        stats=moderator_stats(items, names),
        scope_label=scope_label(_scope()),
        search=search,
        status_filter=status_filter,
        category_filter=category_filter,
        sort=sort,
        statuses=VALID_STATUSES,
        sort_options=SORT_OPTIONS,
        categories=categories,
        category_names=names,
    )


@bp.get("/stats.json")
@require_permission("feedback.moderate")
def stats_json():
    s = db_session()
    return jsonify(moderator_stats(_scoped_feedback(s), category_names(s)))


# ---------- Detail ----------
@bp.get("/feedback/<tracking_id>")
@require_permission("feedback.moderate")
def feedback_detail(tracking_id: str):
    s = db_session()
    feedback = _get_feedback_or_404(s, tracking_id)
    label, description = status_info(feedback.status, current_language())
    return render_template(
        "moderation/detail.html",
        feedback=feedback,
        status_label=label,
        status_description=description,
        category_name=category_names(s).get(feedback.category, feedback.category),
        statuses=VALID_STATUSES,
    )


@bp.post("/feedback/<tracking_id>/status")
@require_permission("feedback.moderate")
def feedback_status(tracking_id: str):
    s = db_session()
    u = _current_user()
    feedback = _get_feedback_or_404(s, tracking_id)
    new_status = (request.form.get("status") or "").strip().lower()

    try:
        changed = update_status(s, feedback, new_status, u)
    except FeedbackError as e:
        flash(str(e), "danger")
        return redirect(url_for("moderation.feedback_detail", tracking_id=feedback.tracking_id))

    if not changed:
        flash(f"Feedback is already {new_status}.", "info")
        return redirect(url_for("moderation.feedback_detail", tracking_id=feedback.tracking_id))

    s.commit()
    label, _ = status_info(new_status)
    email_submitter(feedback, f"Your feedback {feedback.tracking_id} is now {label}", "status_update", {"status_label": label})
    flash(f"Status updated to {label}.", "success")
    return redirect(url_for("moderation.feedback_detail", tracking_id=feedback.tracking_id))


@bp.post("/feedback/<tracking_id>/respond")
@require_permission("feedback.moderate")
def feedback_respond(tracking_id: str):
    s = db_session()
    u = _current_user()
    feedback = _get_feedback_or_404(s, tracking_id)

    try:
        response = add_response(s, feedback, request.form.get("message") or "", u)
    except FeedbackError as e:
        flash(str(e), "danger")
        return redirect(url_for("moderation.feedback_detail", tracking_id=feedback.tracking_id))

    s.commit()
    email_submitter(feedback, f"Response to your feedback {feedback.tracking_id}", "response", {"response": response})
    flash("Response sent.", "success")
    return redirect(url_for("moderation.feedback_detail", tracking_id=feedback.tracking_id))


# ---------- Evidence download ----------
@bp.get("/feedback/<tracking_id>/evidence/<int:evidence_id>")
@require_permission("feedback.moderate")
def evidence_download(tracking_id: str, evidence_id: int):
    s = db_session()
    u = _current_user()
    feedback = _get_feedback_or_404(s, tracking_id)

    ev = s.get(FeedbackEvidence, evidence_id)
    if not ev or ev.feedback_id != feedback.id:
        abort(404)

    storage = storage_from_config(current_app.config)
    try:
        fobj = storage.open(ev.storage_key)
    except StorageError as e:
        current_app.logger.error("Evidence missing from storage key=%s: %s", ev.storage_key, e)
        abort(404)

    record_event(
        s,
        actor=u,
        action="feedback.evidence_download",
        entity_type="FeedbackEvidence",
        entity_id=str(ev.id),
        metadata={"tracking_id": feedback.tracking_id, "filename": ev.original_filename},
    )
    s.commit()

    return send_file(
        fobj,
        mimetype=ev.content_type,
        as_attachment=False,
        download_name=ev.original_filename,
        max_age=0,
    )
