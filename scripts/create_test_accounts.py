#!/usr/bin/env python3
"""Create one account per role for local testing (idempotent).

Usage:
  python scripts/create_test_accounts.py [--password secret123]
"""

import argparse
import os
import sys
from pathlib import Path

from werkzeug.security import generate_password_hash

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.portal.models import User
from app.portal.rbac import assign_role
from app.portal.seed import seed_reference_data
from scripts._db_utils import script_session

TEST_ACCOUNTS = (
    ("user@test.local", "Test Citizen", "user"),
    ("moderator@test.local", "Test Moderator", "moderator"),
    ("admin@test.local", "Test Admin", "admin"),
)


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--password", default="password123", help="Password for every test account")
    args = parser.parse_args()

    env = (os.environ.get("ENV") or "").strip().lower()
    if env in ("prod", "production"):
        print("Refusing to create test accounts in production.")
        sys.exit(1)

    db_url = (os.environ.get("DATABASE_URL") or "sqlite:///portal.db").strip()
    with script_session(db_url) as s:
        seed_reference_data(s)
        for email, name, role in TEST_ACCOUNTS:
            user = s.query(User).filter(User.email == email).one_or_none()
            if user:
                print(f"exists:  {email} ({role})")
                continue
            user = User(email=email, full_name=name, password_hash=generate_password_hash(args.password), is_active=True)
            s.add(user)
            s.flush()
            assign_role(s, user, role)
            print(f"created: {email} ({role})")


if __name__ == "__main__":
    main()
