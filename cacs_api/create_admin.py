"""Provision an administrator account outside the HTTP API.

Usage:
    cacs-create-admin --email admin@example.com --name "Admin User"
    cacs-create-admin --hash-only

The password is read from ADMIN_PASSWORD or prompted for; there is no
built-in default.
"""
import argparse
import logging
import os
import sys
from getpass import getpass

from dotenv import load_dotenv
from sqlalchemy import func
from sqlalchemy.orm import Session

from cacs_api.config import Settings
from cacs_api.database import init_db, make_engine, make_session_factory
from cacs_api.models.users import User
from cacs_api.utils.hashing import get_password_hash

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


def _read_password() -> str:
    password = os.getenv("ADMIN_PASSWORD")
    if password:
        return password
    pw1 = getpass("Password: ")
    pw2 = getpass("Repeat password: ")
    if pw1 != pw2:
        raise SystemExit("Passwords do not match")
    return pw1


def ensure_admin(db: Session, email: str, name: str, password: str) -> str:
    """Create or promote the admin account. Returns one of created/promoted/exists."""
    email = email.strip().lower()
    existing = db.query(User).filter(func.lower(User.email) == email).first()

    if existing and existing.is_admin:
        return "exists"

    if existing:
        existing.is_admin = True
        existing.password = password
        db.commit()
        return "promoted"

    db.add(User(full_name=name, email=email, password=password, is_admin=True))
    db.commit()
    return "created"


def main(argv=None) -> int:
    load_dotenv()
    parser = argparse.ArgumentParser(description="Create or promote a CACS admin user")
    parser.add_argument("--email", default=os.getenv("ADMIN_EMAIL"))
    parser.add_argument("--name", default=os.getenv("ADMIN_NAME", "Admin User"))
    parser.add_argument("--hash-only", action="store_true", help="print a bcrypt hash and exit")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")

    password = _read_password()
    if len(password) < MIN_PASSWORD_LENGTH:
        logger.error("Password must be at least %d characters", MIN_PASSWORD_LENGTH)
        return 1

    if args.hash_only:
        print(get_password_hash(password))
        return 0

    if not args.email:
        logger.error("No admin email given (use --email or ADMIN_EMAIL)")
        return 1

    settings = Settings()
    engine = make_engine(settings.database_url)
    init_db(engine)
    session = make_session_factory(engine)()
    try:
        outcome = ensure_admin(session, args.email, args.name, password)
    finally:
        session.close()
        engine.dispose()

    if outcome == "exists":
        logger.info("Admin user already exists: %s", args.email)
    elif outcome == "promoted":
        logger.info("Updated existing user to admin: %s", args.email)
    else:
        logger.info("Admin user created: %s", args.email)
    return 0


if __name__ == "__main__":
    sys.exit(main())
