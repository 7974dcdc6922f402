"""
Create a user directly in the database (e.g. the first site owner). Run from project root:
  python -m ani3lix.scripts.create_user USERNAME EMAIL PASSWORD [role]
Example:
  python -m ani3lix.scripts.create_user owner owner@example.com your-secure-password site_owner

Role changes after bootstrap should go through PUT /api/v1/admin/users/{id}/role so they
are checked against the role hierarchy and recorded in the audit trail.
"""
import argparse
import logging
import sys

from ani3lix.core.config import get_settings
from ani3lix.core.database import SessionLocal
from ani3lix.core.security import (
    PASSWORD_MIN_LEN,
    USERNAME_MAX_LEN,
    USERNAME_MIN_LEN,
    hash_password,
)
from ani3lix.schemas.roles import ROLE_VALUES
from ani3lix.services.credential_store import DuplicateValueError
from ani3lix.services.user_store import SqlAlchemyCredentialStore

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%SZ",
    )
    parser = argparse.ArgumentParser(description="Create an Ani3lix user account.")
    parser.add_argument("username", help=f"Username ({USERNAME_MIN_LEN}-{USERNAME_MAX_LEN} chars)")
    parser.add_argument("email", help="Email address")
    parser.add_argument("password", help=f"Password ({PASSWORD_MIN_LEN}+ chars)")
    parser.add_argument("role", nargs="?", default="user", choices=list(ROLE_VALUES))
    args = parser.parse_args(argv)

    username = args.username.strip()
    if not (USERNAME_MIN_LEN <= len(username) <= USERNAME_MAX_LEN):
        print("Invalid username length.", file=sys.stderr)
        return 1
    if len(args.password) < PASSWORD_MIN_LEN:
        print(f"Password must be at least {PASSWORD_MIN_LEN} characters.", file=sys.stderr)
        return 1

    settings = get_settings()
    db = SessionLocal()
    try:
        store = SqlAlchemyCredentialStore(db)
        try:
            user = store.create(
                {
                    "username": username,
                    "email": args.email.strip(),
                    "password_hash": hash_password(args.password, rounds=settings.BCRYPT_ROUNDS),
                    "role": args.role,
                }
            )
        except DuplicateValueError as e:
            print(f"A user with that {e.field} already exists.", file=sys.stderr)
            return 1
        logger.info("Created user", extra={"user_id": user.id, "role": user.role})
        print(f"Created user '{username}' ({user.id}) with role '{args.role}'.")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
