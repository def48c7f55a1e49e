import secrets
from datetime import date, datetime, time, timedelta

from flask import Blueprint, abort, flash, g, jsonify, redirect, render_template, request, url_for
from werkzeug.security import generate_password_hash

from app.portal.audit import record_event
from app.portal.auth import is_valid_email, send_password_reset, validate_new_password
from app.portal.constants import ROLE_MODERATOR, ROLE_NAMES, ROLE_PRECEDENCE, ROLE_USER
from app.portal.db import db_session
from app.portal.locations import list_regions
from app.portal.models import AuditEvent, Role, User, UserRole
from app.portal.modules.feedback.models import Feedback
from app.portal.modules.feedback.service import category_names
from app.portal.modules.moderation.service import AssignmentError, assign_moderator_location, clear_moderator_location
from app.portal.rbac import assign_role, require_permission, resolve_role
from app.portal.stats import admin_stats

bp = Blueprint("admin", __name__)

USER_SORTS = ("email", "name", "role", "created")


def _parse_date(s: str) -> date | None:
    s = (s or "").strip()
    if not s:
        return None
    try:
        return date.fromisoformat(s)
    except ValueError:
        return None


def _current_user() -> User:
    u = getattr(g, "current_user", None)
    if not u:
        raise RuntimeError("No current user")
    return u


def _get_user_or_404(s, user_id: int) -> User:
    user = s.get(User, user_id)
    if not user:
        abort(404)
    return user


def search_users(users: list[User], search: str) -> list[User]:
    needle = (search or "").strip().lower()
    if not needle:
        return list(users)
    return [u for u in users if needle in u.email.lower() or needle in (u.full_name or "").lower()]


def sort_users(users: list[User], sort: str, roles: dict[int, str]) -> list[User]:
    if sort == "name":
        return sorted(users, key=lambda u: ((u.full_name or "").lower(), u.email))
    if sort == "role":
        rank = {key: i for i, key in enumerate(ROLE_PRECEDENCE)}
        return sorted(users, key=lambda u: (rank.get(roles.get(u.id, ROLE_USER), len(rank)), u.email))
    if sort == "created":
        return sorted(users, key=lambda u: u.created_at, reverse=True)
    return sorted(users, key=lambda u: u.email)


# ---------- Dashboard ----------
@bp.get("/")
@require_permission("admin.view")
def index():
    s = db_session()
    recent = s.query(Feedback).order_by(Feedback.created_at.desc()).limit(5).all()
    return render_template(
        "admin/index.html",
        stats=admin_stats(s),
        recent=recent,
        category_names=category_names(s),
    )


@bp.get("/stats.json")
@require_permission("admin.view")
def stats_json():
    return jsonify(admin_stats(db_session()))


# ---------- Audit trail ----------
@bp.get("/audit")
@require_permission("audit.view")
def audit_list():
    """
    Audit trail UI (last 200 events) with simple filters:
    - action (contains)
    - actor_email (contains)
    - date range (YYYY-MM-DD)
    """
    s = db_session()
    action = (request.args.get("action") or "").strip()
    actor_email = (request.args.get("actor_email") or "").strip()
    date_from = _parse_date(request.args.get("date_from") or "")
    date_to = _parse_date(request.args.get("date_to") or "")

    if (request.args.get("date_from") or "").strip() and not date_from:
        flash("date_from must be YYYY-MM-DD", "danger")
    if (request.args.get("date_to") or "").strip() and not date_to:
        flash("date_to must be YYYY-MM-DD", "danger")

    q = s.query(AuditEvent)
    if action:
        q = q.filter(AuditEvent.action.like(f"%{action}%"))
    if actor_email:
        q = q.filter(AuditEvent.actor_user_email.like(f"%{actor_email.lower()}%"))
    if date_from:
        q = q.filter(AuditEvent.created_at >= datetime.combine(date_from, time.min))
    if date_to:
        # inclusive end-date (treat as whole day)
        q = q.filter(AuditEvent.created_at < datetime.combine(date_to + timedelta(days=1), time.min))

    events = q.order_by(AuditEvent.created_at.desc(), AuditEvent.id.desc()).limit(200).all()
    return render_template(
        "admin/audit/list.html",
        events=events,
        action=action,
        actor_email=actor_email,
        date_from=(request.args.get("date_from") or "").strip(),
        date_to=(request.args.get("date_to") or "").strip(),
    )


# ============================================================================
# ACCOUNT MANAGEMENT
# ============================================================================

@bp.get("/accounts")
@require_permission("users.manage")
def accounts_list():
    s = db_session()
    search = (request.args.get("q") or "").strip()
    sort = (request.args.get("sort") or "email").strip()
    if sort not in USER_SORTS:
        sort = "email"

    users = s.query(User).all()
    roles = {u.id: resolve_role(u, s) for u in users}
    users = sort_users(search_users(users, search), sort, roles)
    return render_template(
        "admin/accounts/list.html",
        users=users,
        user_roles=roles,
        role_names=ROLE_NAMES,
        search=search,
        sort=sort,
        sorts=USER_SORTS,
    )


@bp.get("/accounts/new")
@require_permission("users.manage")
def accounts_new_get():
    return render_template("admin/accounts/new.html", role_names=ROLE_NAMES)


@bp.post("/accounts/new")
@require_permission("users.manage")
def accounts_new_post():
    s = db_session()
    u = _current_user()

    email = (request.form.get("email") or "").strip().lower()
    full_name = (request.form.get("full_name") or "").strip() or None
    role_key = (request.form.get("role") or ROLE_USER).strip()
    invite = request.form.get("invite") == "1"
    password = request.form.get("password") or ""
    password_confirm = request.form.get("password_confirm") or ""

    errors = []
    if not email:
        errors.append("Email is required.")
    elif not is_valid_email(email):
        errors.append("Invalid email format.")
    elif s.query(User).filter(User.email == email).one_or_none():
        errors.append("An account with this email already exists.")
    if role_key not in ROLE_NAMES:
        errors.append("Unknown role.")
    if not invite:
        errors.extend(validate_new_password(password, password_confirm))

    if errors:
        for e in errors:
            flash(e, "danger")
        return redirect(url_for("admin.accounts_new_get"))

    new_user = User(
        email=email,
        full_name=full_name,
        # Invited users pick their own password through the reset link.
        password_hash=generate_password_hash(secrets.token_urlsafe(32) if invite else password),
        is_active=True,
    )
    s.add(new_user)
    s.flush()
    assign_role(s, new_user, role_key)

    record_event(
        s,
        actor=u,
        action="user.create",
        entity_type="User",
        entity_id=str(new_user.id),
        metadata={"email": email, "role": role_key, "invite": invite},
    )
    s.commit()

    if invite:
        if send_password_reset(new_user):
            flash(f"Invitation sent to {email}.", "success")
        else:
            flash(f"Account created for {email}, but the invitation email could not be sent.", "warning")
    else:
        flash(f"Account created for {email}.", "success")
    return redirect(url_for("admin.accounts_list"))


@bp.get("/accounts/<int:user_id>")
@require_permission("users.manage")
def accounts_detail(user_id: int):
    s = db_session()
    user = _get_user_or_404(s, user_id)
    return render_template(
        "admin/accounts/detail.html",
        account=user,
        account_role=resolve_role(user, s),
        role_names=ROLE_NAMES,
    )


@bp.post("/accounts/<int:user_id>/role")
@require_permission("users.manage")
def accounts_role(user_id: int):
    s = db_session()
    u = _current_user()
    user = _get_user_or_404(s, user_id)
    role_key = (request.form.get("role") or "").strip()

    if role_key not in ROLE_NAMES:
        flash("Unknown role.", "danger")
        return redirect(url_for("admin.accounts_detail", user_id=user_id))
    if user.id == u.id:
        flash("You cannot change your own role.", "danger")
        return redirect(url_for("admin.accounts_detail", user_id=user_id))

    before = resolve_role(user, s)
    assign_role(s, user, role_key)
    if before == ROLE_MODERATOR and role_key != ROLE_MODERATOR:
        clear_moderator_location(s, user, u)

    record_event(
        s,
        actor=u,
        action="user.role_change",
        entity_type="User",
        entity_id=str(user.id),
        metadata={"before": before, "after": role_key},
    )
    s.commit()
    flash(f"{user.email} is now {ROLE_NAMES[role_key]}.", "success")
    return redirect(url_for("admin.accounts_detail", user_id=user_id))


@bp.post("/accounts/<int:user_id>/active")
@require_permission("users.manage")
def accounts_active(user_id: int):
    s = db_session()
    u = _current_user()
    user = _get_user_or_404(s, user_id)

    if user.id == u.id:
        flash("You cannot ban your own account.", "danger")
        return redirect(url_for("admin.accounts_detail", user_id=user_id))

    is_active = request.form.get("is_active") == "1"
    if is_active == user.is_active:
        flash(f"{user.email} is already {'active' if is_active else 'banned'}.", "info")
        return redirect(url_for("admin.accounts_detail", user_id=user_id))

    user.is_active = is_active
    record_event(
        s,
        actor=u,
        action="user.unban" if is_active else "user.ban",
        entity_type="User",
        entity_id=str(user.id),
        reason=(request.form.get("reason") or "").strip() or None,
        metadata={"email": user.email},
    )
    s.commit()
    flash(f"{user.email} has been {'unbanned' if is_active else 'banned'}.", "success")
    return redirect(url_for("admin.accounts_detail", user_id=user_id))


@bp.post("/accounts/<int:user_id>/send-reset")
@require_permission("users.manage")
def accounts_send_reset(user_id: int):
    s = db_session()
    u = _current_user()
    user = _get_user_or_404(s, user_id)

    sent = send_password_reset(user)
    record_event(
        s,
        actor=u,
        action="user.password_reset_sent",
        entity_type="User",
        entity_id=str(user.id),
        metadata={"target_email": user.email, "sent": sent},
    )
    s.commit()
    if sent:
        flash(f"Password reset email sent to {user.email}.", "success")
    else:
        flash(f"Could not send a password reset email to {user.email}.", "warning")
    return redirect(url_for("admin.accounts_detail", user_id=user_id))


# ============================================================================
# MODERATOR ASSIGNMENT
# ============================================================================

@bp.get("/moderators")
@require_permission("moderators.assign")
def moderators_list():
    s = db_session()
    search = (request.args.get("q") or "").strip().lower()
    moderators = (
        s.query(User)
        .join(UserRole, UserRole.user_id == User.id)
        .join(Role, Role.id == UserRole.role_id)
        .filter(Role.key == ROLE_MODERATOR)
        .order_by(User.email.asc())
        .all()
    )
    if search:
        moderators = [
            m for m in moderators
            if search in m.email.lower() or search in (m.full_name or "").lower() or search in (m.region or "").lower()
        ]
    return render_template("admin/moderators/list.html", moderators=moderators, search=search)


@bp.get("/moderators/<int:user_id>")
@require_permission("moderators.assign")
def moderators_assign_get(user_id: int):
    s = db_session()
    user = _get_user_or_404(s, user_id)
    if resolve_role(user, s) != ROLE_MODERATOR:
        abort(404)
    return render_template("admin/moderators/assign.html", moderator=user, regions=list_regions())


@bp.post("/moderators/<int:user_id>")
@require_permission("moderators.assign")
def moderators_assign_post(user_id: int):
    s = db_session()
    u = _current_user()
    user = _get_user_or_404(s, user_id)
    if resolve_role(user, s) != ROLE_MODERATOR:
        abort(404)

    try:
        level = assign_moderator_location(s, user, request.form, u)
    except AssignmentError as e:
        flash(str(e), "danger")
        return redirect(url_for("admin.moderators_assign_get", user_id=user_id))

    s.commit()
    flash(f"Assignment saved for {user.email} (level {level}).", "success")
    return redirect(url_for("admin.moderators_list"))
