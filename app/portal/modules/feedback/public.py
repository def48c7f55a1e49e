from __future__ import annotations

from flask import Blueprint, abort, current_app, flash, g, redirect, render_template, request, url_for

from app.portal.db import db_session
from app.portal.locations import list_regions, normalize_location
from app.portal.modules.feedback import wizard
from app.portal.modules.feedback.models import FeedbackCategory
from app.portal.modules.feedback.service import (
    EvidenceFile,
    FeedbackError,
    build_staging_key,
    file_digest_and_bytes,
    find_by_tracking_id,
    list_active_categories,
    normalize_tracking_id,
    public_tracking_view,
    submit_feedback,
    validate_evidence,
    validate_feedback_payload,
)
from app.portal.storage import StorageError, discard_objects, storage_from_config
from app.portal.utils import current_language, evidence_max_bytes, read_upload

bp = Blueprint("feedback", __name__)


def _category_ids(categories) -> list[str]:
    return [c.id for c in categories]


def _read_evidence_files(files) -> tuple[list[EvidenceFile], list[str]]:
    items: list[EvidenceFile] = []
    errors: list[str] = []
    max_bytes = evidence_max_bytes()
    for fs in files:
        upload = read_upload(fs)
        if not upload:
            continue
        data, filename, content_type = upload
        errs = validate_evidence(filename, content_type, len(data), max_bytes)
        if errs:
            errors.extend(f"{filename}: {e}" for e in errs)
            continue
        items.append(EvidenceFile(filename=filename, content_type=content_type, data=data))
    return items, errors


# ---------- Quick form ----------
@bp.get("/submit")
def submit_get():
    s = db_session()
    user = getattr(g, "current_user", None)
    return render_template(
        "feedback/quick_form.html",
        categories=list_active_categories(s),
        regions=list_regions(),
        selected_category=(request.args.get("category") or "").strip(),
        prefill_email=user.email if user else "",
    )


@bp.post("/submit")
def submit_post():
    s = db_session()
    user = getattr(g, "current_user", None)
    payload = {k: request.form.get(k) for k in (
        "is_anonymous", "full_name", "phone_number", "email",
        "region", "district", "ward", "village", "street",
        "category", "description",
    )}

    errors = validate_feedback_payload(payload, _category_ids(list_active_categories(s)))
    evidence, evidence_errors = _read_evidence_files(request.files.getlist("evidence"))
    errors.extend(evidence_errors)
    if errors:
        for e in errors:
            flash(e, "danger")
        return redirect(url_for("feedback.submit_get", category=payload.get("category") or None))

    try:
        feedback = submit_feedback(
            s,
            payload,
            user,
            storage=storage_from_config(current_app.config),
            evidence=evidence,
        )
        s.commit()
    except (FeedbackError, StorageError) as e:
        s.rollback()
        current_app.logger.warning("Feedback submission failed (request_id=%s): %s", g.request_id, e)
        flash(f"Failed to submit feedback: {e}", "danger")
        return redirect(url_for("feedback.submit_get"))

    return redirect(url_for("feedback.thank_you", id=feedback.tracking_id))


# ---------- Wizard ----------
@bp.get("/new")
def wizard_start():
    wizard.reset()
    user = getattr(g, "current_user", None)
    if user:
        wizard.prefill(user.email, user.full_name, user.phone_number)
    category = (request.args.get("category") or "").strip()
    if category:
        wizard.set_field("category", category)
    return redirect(url_for("feedback.wizard_step", step=1))


@bp.get("/wizard/<int:step>")
def wizard_step(step: int):
    if step < wizard.FIRST_STEP or step > wizard.LAST_STEP:
        abort(404)
    if not wizard.can_visit(step):
        flash("Please complete the previous steps first.", "warning")
        return redirect(url_for("feedback.wizard_step", step=wizard.get_state()["furthest"]))

    s = db_session()
    state = wizard.get_state()
    categories = list_active_categories(s)
    category_name = {c.id: c.name for c in categories}.get(state["data"].get("category") or "")
    return render_template(
        "feedback/wizard.html",
        step=step,
        steps=wizard.STEPS,
        furthest=state["furthest"],
        data=state["data"],
        evidence=state["evidence"],
        categories=categories,
        category_name=category_name,
        regions=list_regions(),
        max_mb=evidence_max_bytes() // (1024 * 1024),
    )


def _stage_uploads(state: dict) -> list[str]:
    """Put newly chosen evidence files in staging storage; returns errors."""
    errors: list[str] = []
    uploads = [fs for fs in request.files.getlist("evidence") if fs and fs.filename]
    if not uploads:
        return errors
    storage = storage_from_config(current_app.config)
    max_bytes = evidence_max_bytes()
    for fs in uploads:
        data, filename, content_type = read_upload(fs)
        errs = validate_evidence(filename, content_type, len(data), max_bytes)
        if errs:
            errors.extend(f"{filename}: {e}" for e in errs)
            continue
        key = build_staging_key(state["id"], filename)
        storage.put_bytes(key, data, content_type=content_type)
        sha256, size_bytes = file_digest_and_bytes(data)
        wizard.add_staged_evidence(
            {"key": key, "filename": filename, "content_type": content_type, "size_bytes": size_bytes, "sha256": sha256}
        )
    return errors


@bp.post("/wizard/<int:step>")
def wizard_post(step: int):
    if step < wizard.FIRST_STEP or step > wizard.LAST_STEP:
        abort(404)
    if not wizard.can_visit(step):
        flash("Please complete the previous steps first.", "warning")
        return redirect(url_for("feedback.wizard_step", step=wizard.get_state()["furthest"]))

    action = (request.form.get("action") or "next").strip()
    data = wizard.store_fields(step, request.form)

    if step == 3:
        state = wizard.get_state()
        try:
            upload_errors = _stage_uploads(state)
        except StorageError as e:
            upload_errors = [f"Failed to upload image: {e}"]
        for e in upload_errors:
            flash(e, "danger")
        if action.startswith("remove:"):
            try:
                removed = wizard.remove_staged_evidence(int(action.split(":", 1)[1]))
            except ValueError:
                removed = None
            if removed:
                storage_from_config(current_app.config).delete(removed["key"])
            return redirect(url_for("feedback.wizard_step", step=3))
        if upload_errors:
            return redirect(url_for("feedback.wizard_step", step=3))

    if action == "previous":
        return redirect(url_for("feedback.wizard_step", step=max(step - 1, wizard.FIRST_STEP)))

    s = db_session()
    category_ids = _category_ids(list_active_categories(s))

    if action == "submit" and step == wizard.LAST_STEP:
        return _wizard_submit(category_ids)

    errors = wizard.validate_step(step, data, category_ids)
    if errors:
        for e in errors:
            flash(e, "danger")
        return redirect(url_for("feedback.wizard_step", step=step))

    if step == 2:
        wizard.apply_location(normalize_location(data.get("region"), data.get("district"), data.get("ward"), data.get("village")))

    return redirect(url_for("feedback.wizard_step", step=wizard.advance(step)))


def _wizard_submit(category_ids: list[str]):
    s = db_session()
    user = getattr(g, "current_user", None)
    state = wizard.get_state()
    data = state["data"]

    # Earlier steps may have been edited through "Previous" without validation.
    for step in (1, 2, 3):
        errors = wizard.validate_step(step, data, category_ids)
        if errors:
            for e in errors:
                flash(e, "danger")
            return redirect(url_for("feedback.wizard_step", step=step))

    evidence = [
        EvidenceFile(filename=item["filename"], content_type=item["content_type"], staged_key=item["key"])
        for item in state["evidence"]
    ]
    storage = storage_from_config(current_app.config)
    try:
        feedback = submit_feedback(s, data, user, storage=storage, evidence=evidence)
        s.commit()
    except (FeedbackError, StorageError) as e:
        s.rollback()
        current_app.logger.warning("Wizard submission failed (request_id=%s): %s", g.request_id, e)
        flash(f"Failed to submit feedback: {e}", "danger")
        return redirect(url_for("feedback.wizard_step", step=wizard.LAST_STEP))

    # Staged copies are only dropped once the submission is committed.
    discard_objects(storage, [item.staged_key for item in evidence])
    wizard.clear()
    return redirect(url_for("feedback.thank_you", id=feedback.tracking_id))


# ---------- Thank you / tracking ----------
@bp.get("/thank-you")
def thank_you():
    tracking_id = normalize_tracking_id(request.args.get("id"))
    return render_template("feedback/thank_you.html", tracking_id=tracking_id)


@bp.get("/track")
def track():
    raw = request.args.get("tracking_id")
    result = None
    error = None
    if raw is not None:
        s = db_session()
        feedback, error = find_by_tracking_id(s, raw)
        if feedback:
            category = s.get(FeedbackCategory, feedback.category)
            result = public_tracking_view(feedback, current_language(), category.name if category else None)
    return render_template(
        "feedback/track.html",
        tracking_id=normalize_tracking_id(raw),
        result=result,
        error=error,
    )
