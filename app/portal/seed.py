"""
Idempotent reference data: permissions, the three roles and feedback categories.
"""
from __future__ import annotations

from sqlalchemy.orm import Session

from app.portal.constants import DEFAULT_CATEGORIES, PERMISSIONS, ROLE_NAMES, ROLE_PERMISSIONS
from app.portal.models import FeedbackCategory, Permission, Role


def ensure_perm(s: Session, key: str, name: str) -> Permission:
    p = s.query(Permission).filter(Permission.key == key).one_or_none()
    if not p:
        p = Permission(key=key, name=name)
        s.add(p)
    return p


def ensure_role(s: Session, key: str, name: str) -> Role:
    r = s.query(Role).filter(Role.key == key).one_or_none()
    if not r:
        r = Role(key=key, name=name)
        s.add(r)
    return r


def seed_reference_data(s: Session) -> dict[str, Role]:
    perms = {key: ensure_perm(s, key, name) for key, name in PERMISSIONS.items()}

    roles = {}
    for role_key, perm_keys in ROLE_PERMISSIONS.items():
        role = ensure_role(s, role_key, ROLE_NAMES[role_key])
        for key in perm_keys:
            if perms[key] not in role.permissions:
                role.permissions.append(perms[key])
        roles[role_key] = role

    for cat_id, name, description, icon in DEFAULT_CATEGORIES:
        if s.get(FeedbackCategory, cat_id) is None:
            s.add(FeedbackCategory(id=cat_id, name=name, description=description, icon=icon, is_active=True))

    s.flush()
    return roles
