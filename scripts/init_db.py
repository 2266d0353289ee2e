"""
Seed the first admin user in an idempotent way.

Usage:
  python scripts/init_db.py                  # seed only (tables come from alembic)
  python scripts/init_db.py --create-tables  # local dev without alembic
"""
from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

from werkzeug.security import generate_password_hash

# Ensure repo root is on sys.path when running as a script (Windows-friendly).
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.teamforms.constants import ROLE_ADMIN, STATUS_ACTIVE  # noqa: E402
from app.teamforms.models import Base, User  # noqa: E402
from scripts._db_utils import create_script_engine, script_session  # noqa: E402


def seed_only(*, database_url: str | None = None) -> None:
    """
    Ensure an admin user exists.
    Does NOT overwrite an existing admin user's password.
    """
    admin_email = (os.environ.get("ADMIN_EMAIL") or "admin@teamforms.local").strip().lower()
    admin_password = os.environ.get("ADMIN_PASSWORD") or "change-me-1"

    db_url = (database_url or os.environ.get("DATABASE_URL") or "sqlite:///teamforms.db").strip()

    # Direct engine/session so this can run in release without importing app.wsgi.
    with script_session(db_url) as s:
        user = s.query(User).filter(User.email == admin_email).one_or_none()
        if not user:
            user = User(
                name="Administrator",
                email=admin_email,
                password_hash=generate_password_hash(admin_password),
                role=ROLE_ADMIN,
                status=STATUS_ACTIVE,
            )
            s.add(user)
        elif user.role != ROLE_ADMIN:
            user.role = ROLE_ADMIN

    print("Initialized database (seed_only).")
    print(f"Admin email: {admin_email}")
    print("Admin password: (from ADMIN_PASSWORD)")


def create_tables(database_url: str) -> None:
    engine = create_script_engine(database_url)
    try:
        Base.metadata.create_all(bind=engine)
    finally:
        engine.dispose()


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed the teamforms database.")
    parser.add_argument("--create-tables", action="store_true", help="create tables from the models (dev only)")
    parser.add_argument("--database-url", default=None)
    args = parser.parse_args()

    db_url = (args.database_url or os.environ.get("DATABASE_URL") or "sqlite:///teamforms.db").strip()
    if args.create_tables:
        create_tables(db_url)
    seed_only(database_url=db_url)


if __name__ == "__main__":
    main()
