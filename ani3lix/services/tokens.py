"""
JWT access and refresh tokens.

Both token kinds share one signing secret and issuer; the audience claim tells them
apart so a refresh token is never accepted as an access token and vice versa.
Tokens are not tracked server-side: there is no revocation list and no key id, so a
leaked access token stays valid until it expires.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

import jwt

from ani3lix.schemas.user import TokenPair, UserRecord
from ani3lix.services.errors import (
    TOKEN_EXPIRED,
    TOKEN_INVALID,
    TOKEN_WRONG_AUDIENCE,
    AuthenticationError,
)

if TYPE_CHECKING:
    from ani3lix.core.config import Settings

logger = logging.getLogger(__name__)

DEFAULT_ISSUER = "ani3lix-api"
DEFAULT_ACCESS_AUDIENCE = "ani3lix-client"
DEFAULT_REFRESH_AUDIENCE = "ani3lix-refresh"
ACCESS_TOKEN_TTL = timedelta(minutes=15)
REFRESH_TOKEN_TTL = timedelta(days=7)
DEFAULT_LEEWAY_SECONDS = 30

REQUIRED_CLAIMS = ["exp", "iat", "iss", "aud"]


def _utcnow() -> datetime:
    return datetime.now(UTC)


class TokenIssuer:
    """Creates and validates signed, time-bound access and refresh tokens."""

    def __init__(
        self,
        secret: str,
        *,
        algorithm: str = "HS256",
        issuer: str = DEFAULT_ISSUER,
        access_audience: str = DEFAULT_ACCESS_AUDIENCE,
        refresh_audience: str = DEFAULT_REFRESH_AUDIENCE,
        access_ttl: timedelta = ACCESS_TOKEN_TTL,
        refresh_ttl: timedelta = REFRESH_TOKEN_TTL,
        leeway_seconds: int = DEFAULT_LEEWAY_SECONDS,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if not secret or not secret.strip():
            raise ValueError("Token signing secret must be non-empty")
        if access_audience == refresh_audience:
            raise ValueError("Access and refresh audiences must differ")
        self._secret = secret
        self.algorithm = algorithm
        self.issuer = issuer
        self.access_audience = access_audience
        self.refresh_audience = refresh_audience
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl
        self.leeway_seconds = leeway_seconds
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Settings) -> TokenIssuer:
        return cls(
            settings.JWT_SECRET.get_secret_value(),
            algorithm=settings.JWT_ALGORITHM,
            issuer=settings.JWT_ISSUER,
            access_audience=settings.JWT_ACCESS_AUDIENCE,
            refresh_audience=settings.JWT_REFRESH_AUDIENCE,
            access_ttl=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
            refresh_ttl=timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
            leeway_seconds=settings.JWT_LEEWAY_SECONDS,
        )

    def issue(self, user: UserRecord) -> TokenPair:
        """Issue an access/refresh pair. Only the access token carries username and role."""
        return TokenPair(
            access_token=self.create_access_token(user),
            refresh_token=self.create_refresh_token(user.id),
        )

    def create_access_token(self, user: UserRecord) -> str:
        now = self._clock()
        payload: dict[str, Any] = {
            "userId": user.id,
            "username": user.username,
            "role": user.role,
            "iss": self.issuer,
            "aud": self.access_audience,
            "iat": now,
            "exp": now + self.access_ttl,
        }
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def create_refresh_token(self, user_id: str) -> str:
        now = self._clock()
        payload: dict[str, Any] = {
            "userId": user_id,
            "iss": self.issuer,
            "aud": self.refresh_audience,
            "iat": now,
            "exp": now + self.refresh_ttl,
        }
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def _decode(self, token: str, audience: str) -> dict[str, Any]:
        """Decode and validate signature, expiry, issuer and audience. Raises jwt.PyJWTError."""
        return jwt.decode(
            token,
            self._secret,
            algorithms=[self.algorithm],
            audience=audience,
            issuer=self.issuer,
            leeway=self.leeway_seconds,
            options={"require": REQUIRED_CLAIMS},
        )

    def decode_access(self, token: str) -> dict[str, Any]:
        """
        Return the validated access token payload.

        Raises AuthenticationError with code token_expired, token_wrong_audience or
        token_invalid (bad signature, malformed, wrong issuer, missing claims).
        """
        if not token:
            raise AuthenticationError("Authentication token is malformed or invalid", TOKEN_INVALID)
        try:
            payload = self._decode(token, self.access_audience)
        except jwt.ExpiredSignatureError as e:
            raise AuthenticationError(
                "Token expired; please refresh your authentication token", TOKEN_EXPIRED
            ) from e
        except jwt.InvalidAudienceError as e:
            raise AuthenticationError(
                "Token is not valid for this audience", TOKEN_WRONG_AUDIENCE
            ) from e
        except jwt.PyJWTError as e:
            raise AuthenticationError(
                "Authentication token is malformed or invalid", TOKEN_INVALID
            ) from e
        user_id = payload.get("userId")
        if not user_id or not isinstance(user_id, str):
            raise AuthenticationError("Authentication token is malformed or invalid", TOKEN_INVALID)
        return payload

    def verify_access(self, token: str) -> str:
        """Return the user id encoded in a valid access token."""
        return self.decode_access(token)["userId"]

    def verify_refresh(self, token: str) -> str | None:
        """Return the user id from a valid refresh token, or None on any failure."""
        if not token:
            return None
        try:
            payload = self._decode(token, self.refresh_audience)
        except jwt.PyJWTError as e:
            logger.info("Refresh token rejected", extra={"reason": type(e).__name__})
            return None
        user_id = payload.get("userId")
        if not user_id or not isinstance(user_id, str):
            return None
        return user_id
