from __future__ import annotations

import re
import uuid
from collections import defaultdict
from datetime import datetime, timedelta

from flask import Blueprint, current_app, flash, g, redirect, render_template, request, session, url_for
from werkzeug.security import check_password_hash, generate_password_hash

from app.portal.audit import record_event
from app.portal.constants import ROLE_USER
from app.portal.db import db_session
from app.portal.mail import absolute_url, send_email
from app.portal.models import User
from app.portal.rbac import assign_role, resolve_role
from app.portal.security import is_safe_next
from app.portal.tokens import generate_reset_token, verify_reset_token

bp = Blueprint("auth", __name__)
_login_attempts: dict[str, list[datetime]] = defaultdict(list)
_LOGIN_RATE_LIMIT = 5
_LOGIN_RATE_WINDOW = 300  # seconds

MIN_PASSWORD_LENGTH = 8
_EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")


def is_valid_email(email: str) -> bool:
    return bool(_EMAIL_RE.match(email or ""))


def validate_new_password(password: str, password_confirm: str) -> list[str]:
    errors = []
    if not password:
        errors.append("Password is required.")
    elif len(password) < MIN_PASSWORD_LENGTH:
        errors.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
    elif password != password_confirm:
        errors.append("Passwords do not match.")
    return errors


def _check_rate_limit(ip: str) -> bool:
    now = datetime.utcnow()
    cutoff = now - timedelta(seconds=_LOGIN_RATE_WINDOW)
    _login_attempts[ip] = [t for t in _login_attempts[ip] if t > cutoff]
    return len(_login_attempts[ip]) >= _LOGIN_RATE_LIMIT


def _record_attempt(ip: str) -> None:
    _login_attempts[ip].append(datetime.utcnow())


def load_current_user() -> None:
    """
    Loads g.current_user from the signed session cookie.
    Also assigns a per-request request_id (for audit/log correlation).
    """
    if not getattr(g, "request_id", None):
        g.request_id = uuid.uuid4().hex
    g.current_user = None
    g.current_role = None

    user_id = session.get("user_id")
    if not user_id:
        return

    s = db_session()
    user = s.get(User, int(user_id))
    if not user or not user.is_active:
        # Deleted or banned since the session was issued.
        session.pop("user_id", None)
        return
    g.current_user = user
    g.current_role = resolve_role(user, s)


def send_password_reset(user: User) -> bool:
    token = generate_reset_token(user.email, user.password_hash)
    link = absolute_url(url_for("auth.reset_get", token=token))
    return send_email(
        user.email,
        "Reset your password",
        "password_reset",
        {"user": user, "reset_link": link},
    )


def landing_endpoint_for(user: User) -> str:
    role = resolve_role(user)
    if role == "admin":
        return "admin.index"
    if role == "moderator":
        return "moderation.index"
    return "account.index"


# ---------- Sign in ----------
@bp.get("/login")
def login_get():
    nxt = (request.args.get("next") or "").strip()
    return render_template("auth/login.html", next=nxt)


@bp.post("/login")
def login_post():
    email = (request.form.get("email") or "").strip().lower()
    password = request.form.get("password") or ""
    nxt = (request.form.get("next") or "").strip()
    ip = request.remote_addr or "unknown"

    if _check_rate_limit(ip):
        flash("Too many login attempts. Please wait 5 minutes.", "danger")
        return redirect(url_for("auth.login_get"))

    _record_attempt(ip)

    s = db_session()
    user = s.query(User).filter(User.email == email).one_or_none()
    if not user or not check_password_hash(user.password_hash, password):
        record_event(
            s,
            actor=None,
            action="auth.login_failed",
            entity_type="User",
            entity_id=email,
            reason="Invalid credentials",
            metadata={"email": email},
        )
        s.commit()
        flash("Invalid credentials.", "danger")
        return redirect(url_for("auth.login_get", next=nxt or None))

    if not user.is_active:
        record_event(s, actor=user, action="auth.login_blocked", entity_type="User", entity_id=str(user.id))
        s.commit()
        flash("This account has been suspended. Please contact support.", "danger")
        return redirect(url_for("auth.login_get"))

    session.clear()
    session["user_id"] = user.id
    session["language"] = user.language or "en"
    _login_attempts[ip].clear()
    user.last_login_at = datetime.utcnow()
    record_event(s, actor=user, action="auth.login", entity_type="User", entity_id=str(user.id))
    s.commit()

    if is_safe_next(nxt):
        return redirect(nxt)
    return redirect(url_for(landing_endpoint_for(user)))


@bp.get("/logout")
def logout():
    user = getattr(g, "current_user", None)
    if user:
        s = db_session()
        record_event(s, actor=user, action="auth.logout", entity_type="User", entity_id=str(user.id))
        s.commit()
    language = session.get("language")
    session.clear()
    if language:
        session["language"] = language
    return redirect(url_for("routes.index"))


# ---------- Sign up ----------
@bp.get("/signup")
def signup_get():
    return render_template("auth/signup.html")


@bp.post("/signup")
def signup_post():
    s = db_session()
    email = (request.form.get("email") or "").strip().lower()
    password = request.form.get("password") or ""
    password_confirm = request.form.get("password_confirm") or ""
    full_name = (request.form.get("full_name") or "").strip() or None
    phone_number = (request.form.get("phone_number") or "").strip() or None

    errors = []
    if not email:
        errors.append("Email is required.")
    elif not is_valid_email(email):
        errors.append("Invalid email format.")
    elif s.query(User).filter(User.email == email).one_or_none():
        errors.append("An account with this email already exists.")
    errors.extend(validate_new_password(password, password_confirm))

    if errors:
        for e in errors:
            flash(e, "danger")
        return redirect(url_for("auth.signup_get"))

    user = User(
        email=email,
        password_hash=generate_password_hash(password),
        is_active=True,
        full_name=full_name,
        phone_number=phone_number,
        language=session.get("language") or "en",
    )
    s.add(user)
    s.flush()
    assign_role(s, user, ROLE_USER)
    record_event(s, actor=user, action="auth.signup", entity_type="User", entity_id=str(user.id))
    s.commit()

    session["user_id"] = user.id
    flash("Account created. Welcome!", "success")
    return redirect(url_for("account.index"))


# ---------- Password reset ----------
@bp.get("/forgot")
def forgot_get():
    return render_template("auth/forgot.html")


@bp.post("/forgot")
def forgot_post():
    email = (request.form.get("email") or "").strip().lower()
    s = db_session()
    user = s.query(User).filter(User.email == email).one_or_none() if email else None
    if user and user.is_active:
        send_password_reset(user)
        record_event(s, actor=user, action="auth.password_reset_requested", entity_type="User", entity_id=str(user.id))
        s.commit()
    else:
        current_app.logger.info("Password reset requested for unknown/inactive email (request_id=%s)", g.request_id)
    # Same response either way to avoid account enumeration.
    flash("If an account exists for that email, a reset link has been sent.", "info")
    return redirect(url_for("auth.login_get"))


def _user_for_token(token: str) -> User | None:
    verified = verify_reset_token(token)
    if not verified:
        return None
    email, hash_fragment = verified
    user = db_session().query(User).filter(User.email == email).one_or_none()
    if not user or not user.is_active or user.password_hash[-12:] != hash_fragment:
        return None
    return user


@bp.get("/reset/<token>")
def reset_get(token: str):
    if not _user_for_token(token):
        flash("This reset link is invalid or has expired.", "danger")
        return redirect(url_for("auth.forgot_get"))
    return render_template("auth/reset.html", token=token)


@bp.post("/reset/<token>")
def reset_post(token: str):
    user = _user_for_token(token)
    if not user:
        flash("This reset link is invalid or has expired.", "danger")
        return redirect(url_for("auth.forgot_get"))

    password = request.form.get("password") or ""
    password_confirm = request.form.get("password_confirm") or ""
    errors = validate_new_password(password, password_confirm)
    if errors:
        for e in errors:
            flash(e, "danger")
        return redirect(url_for("auth.reset_get", token=token))

    s = db_session()
    user.password_hash = generate_password_hash(password)
    record_event(s, actor=user, action="auth.password_reset", entity_type="User", entity_id=str(user.id))
    s.commit()
    flash("Password updated. Please sign in.", "success")
    return redirect(url_for("auth.login_get"))
