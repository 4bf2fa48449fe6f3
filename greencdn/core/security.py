"""Password hashing and JWT creation/verification for authentication."""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any, Literal

import bcrypt
import jwt

from greencdn.core.config import settings
from greencdn.models.user import Role

# Bcrypt cost (rounds); 12 is a good default for security vs speed.
BCRYPT_ROUNDS = 12

# Min/max lengths for username and password validation (BSIMM / input validation).
USERNAME_MIN_LEN = 1
USERNAME_MAX_LEN = 255
PASSWORD_MIN_LEN = 8
PASSWORD_MAX_LEN = 128

TokenErrorKind = Literal["expired", "malformed", "bad_signature"]


class TokenError(Exception):
    """Raised when a bearer token cannot be trusted (expired, malformed, or bad signature)."""

    def __init__(self, kind: TokenErrorKind, cause: Exception | None = None) -> None:
        self.kind = kind
        self.cause = cause
        super().__init__(kind)


@dataclass(frozen=True)
class TokenClaims:
    """Identity carried by a verified access token."""

    user_id: int
    role: Role


def hash_password(plain_password: str) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    # bcrypt has a 72-byte limit; truncate to avoid errors (validation already limits length).
    pw_bytes = plain_password.encode("utf-8")[:72]
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash."""
    pw_bytes = plain_password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def create_access_token(sub: str | int, role: Role | str) -> str:
    """Create a JWT access token with sub (user id), role, iat and exp."""
    now = datetime.now(UTC)
    expire = now + timedelta(minutes=settings.JWT_EXPIRE_MINUTES)
    payload: dict[str, Any] = {
        "sub": str(sub),
        "role": Role.parse(role).value,
        "exp": expire,
        "iat": now,
    }
    secret = settings.JWT_SECRET.get_secret_value()
    return jwt.encode(
        payload,
        secret,
        algorithm=settings.JWT_ALGORITHM,
    )


def decode_access_token(token: str) -> TokenClaims:
    """
    Decode and validate a JWT; return the user id and canonical role.
    Raises TokenError on an expired, malformed, or wrongly signed token.
    """
    secret = settings.JWT_SECRET.get_secret_value()
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[settings.JWT_ALGORITHM],
            options={"require": ["sub", "exp", "iat"]},
        )
    except jwt.ExpiredSignatureError as e:
        raise TokenError("expired", cause=e) from e
    except jwt.InvalidSignatureError as e:
        raise TokenError("bad_signature", cause=e) from e
    except jwt.PyJWTError as e:
        raise TokenError("malformed", cause=e) from e

    try:
        user_id = int(payload["sub"])
        role = Role.parse(payload.get("role"))
    except (TypeError, ValueError) as e:
        raise TokenError("malformed", cause=e) from e
    return TokenClaims(user_id=user_id, role=role)
