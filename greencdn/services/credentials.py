"""Credential store: user accounts, password verification and password changes."""

import logging
from functools import lru_cache

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from greencdn.core.errors import (
    ConflictError,
    ForbiddenError,
    InvalidCredentialsError,
    NotFoundError,
)
from greencdn.core.security import hash_password, verify_password
from greencdn.models import FolderAssignment, Role, UsageEvent, User

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def _dummy_password_hash() -> str:
    """Hash checked for unknown usernames so both login failure paths cost one bcrypt round."""
    return hash_password("greencdn-unknown-user")


def get_user_by_username(db: Session, username: str) -> User | None:
    """Exact, case-sensitive lookup."""
    return db.query(User).filter(User.username == username).first()


def get_user(db: Session, user_id: int) -> User | None:
    return db.query(User).filter(User.id == user_id).first()


def verify_credentials(db: Session, username: str, password: str) -> User:
    """
    Return the user if username/password match.

    Raises InvalidCredentialsError for an unknown username and for a wrong
    password alike; the caller cannot tell which one happened.
    """
    user = get_user_by_username(db, username)
    if user is None:
        verify_password(password, _dummy_password_hash())
        raise InvalidCredentialsError()
    if not verify_password(password, user.password_hash):
        raise InvalidCredentialsError()
    return user


def create_user(
    db: Session,
    username: str,
    password: str,
    role: Role = Role.MEMBER,
) -> User:
    """Create a user with a freshly hashed password. Raises ConflictError on a taken username."""
    username = username.strip()
    if get_user_by_username(db, username) is not None:
        raise ConflictError(f"Username '{username}' is already taken.")
    user = User(
        username=username,
        password_hash=hash_password(password),
        role=Role.parse(role).value,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as e:
        # Lost a race with a concurrent create of the same username.
        db.rollback()
        raise ConflictError(f"Username '{username}' is already taken.") from e
    db.refresh(user)
    logger.info("User created", extra={"user_id": user.id, "role": user.role})
    return user


def set_password(db: Session, user_id: int, new_hash: str) -> None:
    """Overwrite the stored hash. No history is kept."""
    updated = (
        db.query(User)
        .filter(User.id == user_id)
        .update({User.password_hash: new_hash}, synchronize_session="fetch")
    )
    if not updated:
        db.rollback()
        raise NotFoundError("User not found.")
    db.commit()


def change_password(db: Session, user_id: int, current_password: str, new_password: str) -> None:
    """Self-service change: the current password must match before the new one is stored."""
    user = get_user(db, user_id)
    if user is None:
        raise NotFoundError("User not found.")
    if not verify_password(current_password, user.password_hash):
        raise InvalidCredentialsError("Incorrect current password.")
    set_password(db, user.id, hash_password(new_password))
    logger.info("Password changed", extra={"user_id": user.id})


def list_users(db: Session) -> list[User]:
    return db.query(User).order_by(User.id).all()


def delete_user(db: Session, user_id: int) -> None:
    """
    Delete a user and everything hanging off it (assignments, usage events).

    Admin accounts are refused here as well as by the authorization policy.
    """
    user = get_user(db, user_id)
    if user is None:
        raise NotFoundError("User not found.")
    if user.role == Role.ADMIN.value:
        raise ForbiddenError("Admin accounts cannot be deleted.")
    db.query(FolderAssignment).filter(FolderAssignment.user_id == user.id).delete(
        synchronize_session=False
    )
    db.query(UsageEvent).filter(UsageEvent.user_id == user.id).delete(
        synchronize_session=False
    )
    db.delete(user)
    db.commit()
    logger.info("User deleted", extra={"user_id": user_id})
