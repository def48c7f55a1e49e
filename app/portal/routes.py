from flask import Blueprint, abort, flash, g, redirect, render_template, request, session, url_for

from app.portal.constants import LANGUAGES
from app.portal.db import db_session
from app.portal.modules.feedback.service import list_active_categories
from app.portal.security import is_safe_next

bp = Blueprint("routes", __name__)


@bp.get("/")
def index():
    categories = list_active_categories(db_session())
    return render_template("public/index.html", categories=categories[:6])


@bp.get("/categories")
def categories():
    return render_template("public/categories.html", categories=list_active_categories(db_session()))


@bp.get("/about")
def about():
    return render_template("public/about.html")


@bp.get("/faq")
def faq():
    return render_template("public/faq.html")


@bp.get("/contact")
def contact():
    return render_template("public/contact.html")


@bp.get("/language/<code>")
def set_language(code: str):
    code = (code or "").strip().lower()
    if code not in LANGUAGES:
        abort(404)
    session["language"] = code
    user = getattr(g, "current_user", None)
    if user and user.language != code:
        s = db_session()
        user.language = code
        s.commit()
    nxt = (request.args.get("next") or "").strip()
    if is_safe_next(nxt):
        return redirect(nxt)
    flash("Language updated.", "success")
    return redirect(url_for("routes.index"))


@bp.get("/health")
def health():
    """Health check endpoint. Returns JSON."""
    return {"ok": True}


@bp.get("/healthz")
def healthz():
    """
    Fast health check for load balancer probes. No DB access, minimal overhead.
    """
    return "ok", 200
