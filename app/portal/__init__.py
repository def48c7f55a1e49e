"""
Citizen feedback portal: Flask application factory.
"""
import logging
import os
from datetime import timedelta

from dotenv import load_dotenv
from flask import Flask, flash, g, redirect, render_template, request, session, url_for
from sqlalchemy import inspect as sa_inspect

from app.portal.config import load_config
from app.portal.db import init_db, teardown_db_session
from app.portal.mail import mail
from app.portal.observability import init_logging
from app.portal.security import ensure_csrf_token, validate_csrf

logger = logging.getLogger(__name__)

# Paths that skip the session, CSRF and current-user machinery
_BARE_PREFIXES = ("/static/", "/health", "/healthz")

# Staff pages refuse to render against a schema missing any of these.
_EXPECTED_SCHEMA = {
    "users": ("language", "region", "district", "ward", "village", "moderation_level"),
    "feedback": ("tracking_id", "is_anonymous", "village", "street"),
    "feedback_evidence": ("storage_key", "sha256"),
    "feedback_notifications": ("is_read",),
    "feedback_responses": ("responder_user_id",),
    "audit_events": ("request_id", "client_ip"),
}
_STAFF_PREFIXES = ("/admin", "/moderator")


def _register_blueprints(app: Flask) -> None:
    from app.portal.admin import bp as admin_bp
    from app.portal.auth import bp as auth_bp
    from app.portal.locations_api import bp as locations_bp
    from app.portal.modules.account.admin import bp as account_bp
    from app.portal.modules.feedback.public import bp as feedback_bp
    from app.portal.modules.moderation.admin import bp as moderation_bp
    from app.portal.routes import bp as routes_bp

    app.register_blueprint(routes_bp)
    app.register_blueprint(auth_bp, url_prefix="/auth")
    app.register_blueprint(feedback_bp, url_prefix="/feedback")
    app.register_blueprint(locations_bp, url_prefix="/api/locations")
    app.register_blueprint(account_bp, url_prefix="/account")
    app.register_blueprint(moderation_bp, url_prefix="/moderator")
    app.register_blueprint(admin_bp, url_prefix="/admin")


def _register_template_helpers(app: Flask) -> None:
    @app.context_processor
    def _template_globals() -> dict:
        from app.portal.rbac import user_has_permission
        from app.portal.utils import current_language

        user = getattr(g, "current_user", None)

        def has_perm(key: str) -> bool:
            return user_has_permission(user, key)

        def unread_notifications() -> int:
            if not user:
                return 0
            from app.portal.db import db_session
            from app.portal.modules.account.service import unread_count

            return unread_count(db_session(), user)

        return {
            "csrf_token": ensure_csrf_token(),
            "has_perm": has_perm,
            "current_role": getattr(g, "current_role", None),
            "lang": current_language(),
            "unread_notifications": unread_notifications,
        }

    @app.template_filter("dateformat")
    def _dateformat(value, fmt: str = "%Y-%m-%d") -> str:
        if value is None:
            return "-"
        return value.strftime(fmt) if hasattr(value, "strftime") else str(value)


def _register_request_hooks(app: Flask) -> None:
    from app.portal.auth import load_current_user

    @app.before_request
    def _session_and_csrf():
        if request.path.startswith(_BARE_PREFIXES):
            return None
        ensure_csrf_token()
        session.permanent = True
        if request.method not in ("POST", "PUT", "PATCH", "DELETE"):
            return None
        # Sign-in, sign-up and reset forms are posted before a session exists.
        if (request.endpoint or "").startswith("auth."):
            return None
        if not validate_csrf(request):
            logger.warning("CSRF check failed path=%s", request.path)
            return render_template("errors/400.html", message="CSRF token missing or invalid."), 400
        return None

    @app.before_request
    def _current_user():
        if request.path.startswith(_BARE_PREFIXES):
            g.current_user = None
            return None
        return load_current_user()

    @app.before_request
    def _schema_guardrail():
        if app.config.get("_schema_health_ok", True):
            return None
        if request.path.startswith(_STAFF_PREFIXES) and getattr(g, "current_user", None):
            return render_template("errors/schema_out_of_date.html", missing=app.config["_schema_health_missing"]), 500
        return None

    app.teardown_appcontext(teardown_db_session)


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(500)
    def _err_500(e):  # type: ignore[no-redef]
        app.logger.exception("Unhandled 500 (request_id=%s)", getattr(g, "request_id", None))
        return render_template("errors/500.html"), 500

    @app.errorhandler(404)
    def _err_404(e):  # type: ignore[no-redef]
        return render_template("errors/404.html"), 404

    @app.errorhandler(403)
    def _err_403(e):  # type: ignore[no-redef]
        missing = getattr(g, "missing_permission", None)
        if missing:
            app.logger.warning("Forbidden: missing_permission=%s request_id=%s", missing, getattr(g, "request_id", None))
        return render_template("errors/403.html", missing_permission=missing), 403

    @app.errorhandler(413)
    def _err_413(e):  # type: ignore[no-redef]
        limit_mb = app.config["MAX_CONTENT_LENGTH"] // (1024 * 1024)
        flash(f"Upload too large. Maximum request size is {limit_mb}MB.", "danger")
        back = request.referrer
        if back and back.startswith(request.host_url):
            return redirect(back), 302
        return redirect(url_for("routes.index")), 302


def _check_production_config(app: Flask) -> None:
    env = (app.config.get("ENV") or "").strip().lower()
    if env not in ("prod", "production"):
        return
    db_url = str(app.config.get("DATABASE_URL") or "").strip()
    if not db_url:
        raise RuntimeError("DATABASE_URL is required in production.")
    if db_url.startswith("sqlite"):
        raise RuntimeError("DATABASE_URL must be Postgres in production (not sqlite).")
    if str(app.config.get("SECRET_KEY") or "") in ("", "change-me"):
        raise RuntimeError("SECRET_KEY must be set to a strong value in production (not default).")


def _check_storage_config(app: Flask) -> None:
    if app.config.get("STORAGE_BACKEND") != "s3":
        return
    missing = [
        key
        for key in ("S3_ENDPOINT", "S3_BUCKET", "S3_ACCESS_KEY_ID", "S3_SECRET_ACCESS_KEY")
        if not app.config.get(key)
    ]
    if missing:
        app.logger.error("STORAGE CONFIG ERROR: Missing required S3 env vars: %s", ", ".join(missing))


def schema_drift(engine) -> list[str]:
    """
    Tables/columns this code expects but the database lacks. An empty database
    (nothing migrated yet) reports nothing.
    """
    insp = sa_inspect(engine)
    if not insp.has_table("users"):
        return []
    missing: list[str] = []
    for table, columns in _EXPECTED_SCHEMA.items():
        if not insp.has_table(table):
            missing.append(f"{table} (table)")
            continue
        present = {c["name"] for c in insp.get_columns(table)}
        missing.extend(f"{table}.{col}" for col in columns if col not in present)
    return missing


def _run_schema_health_check(app: Flask) -> None:
    missing = schema_drift(app.extensions["sqlalchemy_engine"])
    app.config["_schema_health_ok"] = not missing
    app.config["_schema_health_missing"] = missing
    if missing:
        app.logger.error("DB schema out of date; run `alembic upgrade head`. Missing: %s", ", ".join(missing))


def _dispose_engine_on_fork(app: Flask) -> None:
    if not hasattr(os, "register_at_fork"):
        return

    def _after_fork_child():
        engine = app.extensions.get("sqlalchemy_engine")
        if engine:
            engine.dispose()
            app.logger.info("Disposed DB engine after fork (pid=%s)", os.getpid())

    os.register_at_fork(after_in_child=_after_fork_child)


def create_app() -> Flask:
    load_dotenv()
    app = Flask(__name__, template_folder="templates", static_folder="static")
    app.config.from_mapping(load_config())
    app.config["PERMANENT_SESSION_LIFETIME"] = timedelta(hours=8)
    app.config["SESSION_REFRESH_EACH_REQUEST"] = True

    init_logging(app)
    _check_production_config(app)

    init_db(app)
    mail.init_app(app)
    _dispose_engine_on_fork(app)
    _check_storage_config(app)
    _run_schema_health_check(app)

    _register_template_helpers(app)
    _register_request_hooks(app)
    _register_blueprints(app)
    _register_error_handlers(app)

    logger.info("create_app() complete; app ready to serve")
    return app
