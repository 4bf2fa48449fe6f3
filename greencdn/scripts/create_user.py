"""
Create a user (e.g. the first admin) or reset a password. Run from project root:
  python -m greencdn.scripts.create_user USERNAME PASSWORD [role]
  python -m greencdn.scripts.create_user USERNAME NEW_PASSWORD --reset-password
Example:
  python -m greencdn.scripts.create_user admin your-secure-password ADMIN
"""
import argparse
import logging
import sys

from greencdn.core.database import SessionLocal
from greencdn.core.errors import ConflictError
from greencdn.core.security import (
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    USERNAME_MAX_LEN,
    hash_password,
)
from greencdn.models.user import Role
from greencdn.services import credentials as credential_store

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Create a GreenCDN user or reset a password (bootstrap, no registration UI)."
    )
    parser.add_argument("username", help=f"Username (1-{USERNAME_MAX_LEN} chars)")
    parser.add_argument("password", help=f"Password ({PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} chars)")
    parser.add_argument(
        "role",
        nargs="?",
        default=Role.MEMBER.value,
        type=str.upper,
        choices=[r.value for r in Role],
    )
    parser.add_argument(
        "--reset-password",
        action="store_true",
        help="Set a new password for an existing user instead of creating one.",
    )
    args = parser.parse_args(argv)

    username = args.username.strip()
    if not username or len(username) > USERNAME_MAX_LEN:
        print("Invalid username length.", file=sys.stderr)
        return 1
    if not (PASSWORD_MIN_LEN <= len(args.password) <= PASSWORD_MAX_LEN):
        print(
            f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters.",
            file=sys.stderr,
        )
        return 1

    db = SessionLocal()
    try:
        if args.reset_password:
            user = credential_store.get_user_by_username(db, username)
            if user is None:
                print(f"User '{username}' does not exist.", file=sys.stderr)
                return 1
            credential_store.set_password(db, user.id, hash_password(args.password))
            logger.info("Password reset for user_id=%s", user.id)
            print(f"Password reset for '{username}'.")
            return 0
        try:
            user = credential_store.create_user(db, username, args.password, Role(args.role))
        except ConflictError as e:
            print(e.message, file=sys.stderr)
            return 1
        print(f"Created user '{user.username}' with role '{user.role}'.")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
