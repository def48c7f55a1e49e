#!/usr/bin/env python3
"""Give a user exactly one role (user, moderator or admin).

Usage:
  python scripts/assign_role.py --email someone@example.com --role admin
"""

import argparse
import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.portal.audit import record_event
from app.portal.constants import ROLE_NAMES
from app.portal.models import User
from app.portal.rbac import assign_role, resolve_role
from scripts._db_utils import script_session


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--email", required=True, help="User email")
    parser.add_argument("--role", required=True, choices=sorted(ROLE_NAMES), help="Role key")
    args = parser.parse_args()

    db_url = (os.environ.get("DATABASE_URL") or "sqlite:///portal.db").strip()
    with script_session(db_url) as s:
        user = s.query(User).filter(User.email.ilike(args.email.strip())).one_or_none()
        if not user:
            print(f"User not found: {args.email}")
            return
        before = resolve_role(user, s)
        if before == args.role:
            print(f"User already has role {args.role}: {user.email}")
            return
        try:
            assign_role(s, user, args.role)
        except ValueError:
            print("Role not found. Run python scripts/init_db.py first.")
            return
        record_event(
            s,
            actor=None,
            action="user.role_change",
            entity_type="User",
            entity_id=str(user.id),
            reason="scripts/assign_role.py",
            metadata={"before": before, "after": args.role},
        )
        print(f"{user.email}: {before} -> {args.role}")


if __name__ == "__main__":
    main()
