"""Shared builders for auth service tests."""

from datetime import UTC, datetime, timedelta

from ani3lix.core.security import hash_password
from ani3lix.schemas.user import UserRecord
from ani3lix.services.auth import AuthService
from ani3lix.services.credential_store import CredentialStore
from ani3lix.services.memory_store import InMemoryCredentialStore
from ani3lix.services.tokens import TokenIssuer

SECRET = "unit-test-signing-secret-0123456789abcdef"
# Minimum bcrypt cost keeps the suite fast.
TEST_ROUNDS = 4
DEFAULT_PASSWORD = "password1"


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime | None = None) -> None:
        self.now = now or datetime(2026, 1, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


def make_service(
    store: CredentialStore | None = None,
    clock: FakeClock | None = None,
) -> AuthService:
    """
    AuthService over an in-memory store. The token issuer keeps the real clock because
    PyJWT checks exp against wall-clock time.
    """
    return AuthService(
        store if store is not None else InMemoryCredentialStore(),
        TokenIssuer(SECRET),
        password_rounds=TEST_ROUNDS,
        clock=clock or FakeClock(),
    )


def seed_user(
    store: CredentialStore,
    username: str,
    role: str = "user",
    password: str = DEFAULT_PASSWORD,
) -> UserRecord:
    """Insert a user straight into the store, bypassing registration rules."""
    return store.create(
        {
            "username": username,
            "email": f"{username}@example.com",
            "password_hash": hash_password(password, rounds=TEST_ROUNDS),
            "role": role,
        }
    )
