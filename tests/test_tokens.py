"""Unit tests for ani3lix.services.tokens: issuance, expiry and audience separation."""

import unittest
from datetime import UTC, datetime, timedelta

import jwt

from ani3lix.schemas.user import UserRecord
from ani3lix.services.errors import (
    TOKEN_EXPIRED,
    TOKEN_INVALID,
    TOKEN_WRONG_AUDIENCE,
    AuthenticationError,
)
from ani3lix.services.tokens import TokenIssuer
from tests.factories import SECRET


def _user(**kwargs: object) -> UserRecord:
    defaults = {
        "id": "6f1c1f0e-0000-4000-8000-000000000001",
        "username": "alice",
        "email": "a@x.com",
        "password_hash": "$2b$04$unused",
        "role": "moderator",
    }
    defaults.update(kwargs)
    return UserRecord(**defaults)


def _clock_offset(delta: timedelta):
    return lambda: datetime.now(UTC) + delta


class TestIssue(unittest.TestCase):
    """issue() produces an access/refresh pair with the expected claims."""

    def setUp(self) -> None:
        self.issuer = TokenIssuer(SECRET)
        self.user = _user()

    def test_access_round_trip(self) -> None:
        pair = self.issuer.issue(self.user)
        self.assertEqual(self.issuer.verify_access(pair.access_token), self.user.id)
        self.assertEqual(pair.token_type, "bearer")

    def test_refresh_round_trip(self) -> None:
        pair = self.issuer.issue(self.user)
        self.assertEqual(self.issuer.verify_refresh(pair.refresh_token), self.user.id)

    def test_access_claims(self) -> None:
        payload = self.issuer.decode_access(self.issuer.issue(self.user).access_token)
        self.assertEqual(payload["username"], "alice")
        self.assertEqual(payload["role"], "moderator")
        self.assertEqual(payload["iss"], "ani3lix-api")
        self.assertEqual(payload["aud"], "ani3lix-client")
        self.assertEqual(payload["exp"] - payload["iat"], 15 * 60)

    def test_refresh_token_has_no_role(self) -> None:
        token = self.issuer.issue(self.user).refresh_token
        payload = jwt.decode(token, options={"verify_signature": False})
        self.assertNotIn("role", payload)
        self.assertNotIn("username", payload)
        self.assertEqual(payload["aud"], "ani3lix-refresh")
        self.assertEqual(payload["exp"] - payload["iat"], 7 * 24 * 60 * 60)


class TestExpiry(unittest.TestCase):
    """Expired tokens are rejected; the leeway window absorbs small clock skew."""

    def test_expired_access_token(self) -> None:
        issuer = TokenIssuer(SECRET, clock=_clock_offset(-timedelta(minutes=16)))
        token = issuer.issue(_user()).access_token
        with self.assertRaises(AuthenticationError) as ctx:
            TokenIssuer(SECRET).verify_access(token)
        self.assertEqual(ctx.exception.code, TOKEN_EXPIRED)

    def test_access_token_within_leeway_is_accepted(self) -> None:
        issuer = TokenIssuer(
            SECRET, clock=_clock_offset(-timedelta(minutes=15, seconds=10))
        )
        token = issuer.issue(_user()).access_token
        self.assertEqual(TokenIssuer(SECRET).verify_access(token), _user().id)

    def test_expired_refresh_token_returns_none(self) -> None:
        issuer = TokenIssuer(SECRET, clock=_clock_offset(-timedelta(days=8)))
        token = issuer.issue(_user()).refresh_token
        self.assertIsNone(TokenIssuer(SECRET).verify_refresh(token))


class TestAudienceSeparation(unittest.TestCase):
    """Access and refresh tokens are not interchangeable."""

    def setUp(self) -> None:
        self.issuer = TokenIssuer(SECRET)
        self.pair = self.issuer.issue(_user())

    def test_refresh_token_rejected_as_access(self) -> None:
        with self.assertRaises(AuthenticationError) as ctx:
            self.issuer.verify_access(self.pair.refresh_token)
        self.assertEqual(ctx.exception.code, TOKEN_WRONG_AUDIENCE)

    def test_access_token_rejected_as_refresh(self) -> None:
        self.assertIsNone(self.issuer.verify_refresh(self.pair.access_token))


class TestInvalidTokens(unittest.TestCase):
    """Malformed, forged or incomplete tokens are reported as invalid."""

    def setUp(self) -> None:
        self.issuer = TokenIssuer(SECRET)

    def _assert_invalid(self, token: str) -> None:
        with self.assertRaises(AuthenticationError) as ctx:
            self.issuer.verify_access(token)
        self.assertEqual(ctx.exception.code, TOKEN_INVALID)

    def test_garbage(self) -> None:
        self._assert_invalid("not-a-jwt")
        self._assert_invalid("")

    def test_wrong_secret(self) -> None:
        other = TokenIssuer("another-signing-secret-0123456789abcdef")
        self._assert_invalid(other.issue(_user()).access_token)
        self.assertIsNone(self.issuer.verify_refresh(other.issue(_user()).refresh_token))

    def test_wrong_issuer(self) -> None:
        other = TokenIssuer(SECRET, issuer="someone-else")
        self._assert_invalid(other.issue(_user()).access_token)

    def test_missing_user_id(self) -> None:
        now = datetime.now(UTC)
        token = jwt.encode(
            {
                "iss": "ani3lix-api",
                "aud": "ani3lix-client",
                "iat": now,
                "exp": now + timedelta(minutes=5),
            },
            SECRET,
            algorithm="HS256",
        )
        self._assert_invalid(token)

    def test_missing_exp(self) -> None:
        token = jwt.encode(
            {
                "userId": "u1",
                "iss": "ani3lix-api",
                "aud": "ani3lix-client",
                "iat": datetime.now(UTC),
            },
            SECRET,
            algorithm="HS256",
        )
        self._assert_invalid(token)

    def test_unsigned_token_rejected(self) -> None:
        now = datetime.now(UTC)
        token = jwt.encode(
            {
                "userId": "u1",
                "iss": "ani3lix-api",
                "aud": "ani3lix-client",
                "iat": now,
                "exp": now + timedelta(minutes=5),
            },
            None,
            algorithm="none",
        )
        self._assert_invalid(token)


class TestConstruction(unittest.TestCase):
    """TokenIssuer validates its configuration."""

    def test_empty_secret(self) -> None:
        with self.assertRaises(ValueError):
            TokenIssuer("  ")

    def test_audiences_must_differ(self) -> None:
        with self.assertRaises(ValueError):
            TokenIssuer(SECRET, access_audience="same", refresh_audience="same")

    def test_from_settings(self) -> None:
        from ani3lix.core.config import get_settings

        issuer = TokenIssuer.from_settings(get_settings())
        self.assertEqual(issuer.access_ttl, timedelta(minutes=15))
        self.assertEqual(issuer.refresh_ttl, timedelta(days=7))
        self.assertEqual(issuer.leeway_seconds, 30)


if __name__ == "__main__":
    unittest.main()
