from __future__ import annotations

import logging
from collections.abc import Callable
from functools import wraps
from typing import Any

from flask import abort, g, redirect, request, url_for
from sqlalchemy import select
from sqlalchemy.orm import Session, object_session

from app.portal.constants import ROLE_PRECEDENCE, ROLE_USER
from app.portal.models import Role, User, UserRole

logger = logging.getLogger(__name__)


def user_has_permission(user: User | None, permission_key: str) -> bool:
    if not user or not user.is_active:
        return False
    for role in user.roles:
        for perm in role.permissions:
            if perm.key == permission_key:
                return True
    return False


def _highest(role_keys: set[str]) -> str | None:
    for key in ROLE_PRECEDENCE:
        if key in role_keys:
            return key
    return None


def resolve_role(user: User | None, s: Session | None = None) -> str:
    """
    Effective role for a user: admin > moderator > user.

    Reads the loaded `roles` relationship first, then falls back to querying
    user_roles directly (covers roles granted in another session after this
    user was loaded). Anyone without a role row is a plain user.
    """
    if user is None:
        return ROLE_USER

    role = _highest({r.key for r in (user.roles or [])})
    if role:
        return role

    s = s or object_session(user)
    if s is not None and user.id is not None:
        keys = s.execute(
            select(Role.key).join(UserRole, UserRole.role_id == Role.id).where(UserRole.user_id == user.id)
        ).scalars().all()
        role = _highest(set(keys))
        if role:
            return role

    logger.debug("No role found for user_id=%s, defaulting to %s", user.id, ROLE_USER)
    return ROLE_USER


def assign_role(s: Session, user: User, role_key: str) -> Role:
    """Replace the user's roles with exactly one role."""
    role = s.query(Role).filter(Role.key == role_key).one_or_none()
    if role is None:
        raise ValueError(f"Unknown role: {role_key}")
    user.roles.clear()
    user.roles.append(role)
    return role


def _redirect_to_login():
    nxt = request.full_path or request.path
    # Avoid trailing '?' from full_path when there is no query string.
    if nxt.endswith("?"):
        nxt = nxt[:-1]
    return redirect(url_for("auth.login_get", next=nxt))


def require_login(fn: Callable[..., Any]) -> Callable[..., Any]:
    @wraps(fn)
    def wrapped(*args: Any, **kwargs: Any):
        user: User | None = getattr(g, "current_user", None)
        if not user or not user.is_active:
            return _redirect_to_login()
        return fn(*args, **kwargs)

    return wrapped


def require_permission(permission_key: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
        @wraps(fn)
        def wrapped(*args: Any, **kwargs: Any):
            user: User | None = getattr(g, "current_user", None)
            # Unauthenticated -> sign-in page, then back here.
            if not user or not user.is_active:
                return _redirect_to_login()
            # Authenticated but unauthorized -> 403
            if not user_has_permission(user, permission_key):
                g.missing_permission = permission_key
                abort(403)
            return fn(*args, **kwargs)

        return wrapped

    return decorator
