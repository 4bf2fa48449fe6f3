"""Unit tests for greencdn.core.security: password hashing and access tokens."""

import unittest
from datetime import UTC, datetime, timedelta
from unittest.mock import patch

import jwt

from greencdn.core.config import settings
from greencdn.core.security import (
    TokenError,
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)
from greencdn.models.user import Role


def _encode(payload: dict, secret: str | None = None) -> str:
    key = secret or settings.JWT_SECRET.get_secret_value()
    return jwt.encode(payload, key, algorithm=settings.JWT_ALGORITHM)


class TestPasswordHashing(unittest.TestCase):
    def setUp(self) -> None:
        rounds = patch("greencdn.core.security.BCRYPT_ROUNDS", 4)
        rounds.start()
        self.addCleanup(rounds.stop)

    def test_hash_then_verify(self) -> None:
        hashed = hash_password("s3cret-pass")
        self.assertNotEqual(hashed, "s3cret-pass")
        self.assertTrue(verify_password("s3cret-pass", hashed))
        self.assertFalse(verify_password("wrong-pass", hashed))

    def test_hashes_are_salted(self) -> None:
        self.assertNotEqual(hash_password("same-password"), hash_password("same-password"))

    def test_garbage_hash_does_not_verify(self) -> None:
        self.assertFalse(verify_password("anything", "not-a-bcrypt-hash"))


class TestAccessTokens(unittest.TestCase):
    def test_round_trip(self) -> None:
        claims = decode_access_token(create_access_token(sub=42, role=Role.ADMIN))
        self.assertEqual(claims.user_id, 42)
        self.assertIs(claims.role, Role.ADMIN)

    def test_role_is_normalized_on_issue(self) -> None:
        token = create_access_token(sub=7, role=" member ")
        payload = jwt.decode(
            token,
            settings.JWT_SECRET.get_secret_value(),
            algorithms=[settings.JWT_ALGORITHM],
        )
        self.assertEqual(payload["role"], "MEMBER")
        self.assertEqual(payload["sub"], "7")
        self.assertEqual(
            payload["exp"] - payload["iat"],
            settings.JWT_EXPIRE_MINUTES * 60,
        )

    def test_lower_case_role_claim_is_accepted(self) -> None:
        now = datetime.now(UTC)
        token = _encode({"sub": "3", "role": "admin", "iat": now, "exp": now + timedelta(minutes=5)})
        self.assertIs(decode_access_token(token).role, Role.ADMIN)

    def test_expired(self) -> None:
        past = datetime.now(UTC) - timedelta(days=8)
        token = _encode({"sub": "1", "role": "MEMBER", "iat": past, "exp": past + timedelta(days=7)})
        with self.assertRaises(TokenError) as ctx:
            decode_access_token(token)
        self.assertEqual(ctx.exception.kind, "expired")

    def test_bad_signature(self) -> None:
        now = datetime.now(UTC)
        token = _encode(
            {"sub": "1", "role": "MEMBER", "iat": now, "exp": now + timedelta(minutes=5)},
            secret="some-other-secret-entirely",
        )
        with self.assertRaises(TokenError) as ctx:
            decode_access_token(token)
        self.assertEqual(ctx.exception.kind, "bad_signature")

    def test_malformed(self) -> None:
        for token in ("", "not.a.jwt", "abc"):
            with self.subTest(token=token):
                with self.assertRaises(TokenError) as ctx:
                    decode_access_token(token)
                self.assertEqual(ctx.exception.kind, "malformed")

    def test_missing_claims_are_malformed(self) -> None:
        now = datetime.now(UTC)
        token = _encode({"role": "MEMBER", "iat": now, "exp": now + timedelta(minutes=5)})
        with self.assertRaises(TokenError) as ctx:
            decode_access_token(token)
        self.assertEqual(ctx.exception.kind, "malformed")

    def test_unknown_role_is_malformed(self) -> None:
        now = datetime.now(UTC)
        token = _encode({"sub": "1", "role": "ROOT", "iat": now, "exp": now + timedelta(minutes=5)})
        with self.assertRaises(TokenError) as ctx:
            decode_access_token(token)
        self.assertEqual(ctx.exception.kind, "malformed")


if __name__ == "__main__":
    unittest.main()
