"""
Authentication service: registration, login, token refresh, password/username/profile
changes and role changes. The single entry point request handlers call.

Every operation validates its input, then reads/writes through the credential store,
then returns a value or raises one of the typed errors in services.errors.
Plain-text passwords and raw tokens are never logged.
"""

import logging
import math
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from ani3lix.core.security import (
    BCRYPT_ROUNDS,
    BIO_MAX_LEN,
    DISPLAY_NAME_MAX_LEN,
    PASSWORD_MIN_LEN,
    USERNAME_MAX_LEN,
    USERNAME_MIN_LEN,
    hash_password,
    verify_password,
)
from ani3lix.schemas.roles import DEFAULT_ROLE
from ani3lix.schemas.user import AuthResult, RoleChangeEntry, TokenPair, UserRecord
from ani3lix.services import roles
from ani3lix.services.credential_store import CredentialStore, DuplicateValueError
from ani3lix.services.errors import (
    ACTOR_NOT_FOUND,
    BIO_TOO_LONG,
    CURRENT_PASSWORD_INCORRECT,
    DISPLAY_NAME_TOO_LONG,
    EMAIL_TAKEN,
    INVALID_CREDENTIALS,
    INVALID_REFRESH_TOKEN,
    INVALID_ROLE,
    NEW_PASSWORD_TOO_SHORT,
    PASSWORD_TOO_SHORT,
    SUBJECT_NOT_FOUND,
    USER_NOT_FOUND,
    USERNAME_INVALID_LENGTH,
    USERNAME_TAKEN,
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    InvalidInputError,
    NotFoundError,
    UsernameCooldownError,
)
from ani3lix.services.tokens import TokenIssuer

logger = logging.getLogger(__name__)

USERNAME_CHANGE_COOLDOWN = timedelta(days=7)
SECONDS_PER_DAY = 24 * 60 * 60

MSG_INVALID_CREDENTIALS = "Invalid credentials"
MSG_USERNAME_LENGTH = (
    f"Username must be between {USERNAME_MIN_LEN} and {USERNAME_MAX_LEN} characters"
)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _username_length_ok(username: str) -> bool:
    return USERNAME_MIN_LEN <= len(username) <= USERNAME_MAX_LEN


def _conflict_for(exc: DuplicateValueError) -> ConflictError:
    if exc.field == "email":
        return ConflictError("Email already registered", EMAIL_TAKEN)
    return ConflictError("Username already taken", USERNAME_TAKEN)


class AuthService:
    """Composes the credential store, password hasher, token issuer and role hierarchy."""

    def __init__(
        self,
        store: CredentialStore,
        tokens: TokenIssuer,
        *,
        password_rounds: int = BCRYPT_ROUNDS,
        username_cooldown: timedelta = USERNAME_CHANGE_COOLDOWN,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.store = store
        self.tokens = tokens
        self.password_rounds = password_rounds
        self.username_cooldown = username_cooldown
        self._clock = clock

    def register(
        self,
        username: str,
        email: str,
        password: str,
        display_name: str | None = None,
        bio: str | None = None,
    ) -> AuthResult:
        """Create an account with role 'user' and issue its first token pair."""
        if self.store.get_by_username(username) is not None:
            raise ConflictError("Username already exists", USERNAME_TAKEN)
        if self.store.get_by_email(email) is not None:
            raise ConflictError("Email already registered", EMAIL_TAKEN)
        if not _username_length_ok(username):
            raise InvalidInputError(MSG_USERNAME_LENGTH, USERNAME_INVALID_LENGTH)
        if len(password) < PASSWORD_MIN_LEN:
            raise InvalidInputError(
                f"Password must be at least {PASSWORD_MIN_LEN} characters long",
                PASSWORD_TOO_SHORT,
            )
        if display_name is not None and len(display_name) > DISPLAY_NAME_MAX_LEN:
            raise InvalidInputError(
                f"Display name must be {DISPLAY_NAME_MAX_LEN} characters or less",
                DISPLAY_NAME_TOO_LONG,
            )
        if bio is not None and len(bio) > BIO_MAX_LEN:
            raise InvalidInputError(
                f"Bio must be {BIO_MAX_LEN} characters or less", BIO_TOO_LONG
            )

        fields = {
            "username": username,
            "email": email,
            "password_hash": hash_password(password, rounds=self.password_rounds),
            "display_name": display_name,
            "bio": bio,
            "role": DEFAULT_ROLE,
        }
        try:
            user = self.store.create(fields)
        except DuplicateValueError as e:
            raise _conflict_for(e) from e

        logger.info("User registered", extra={"user_id": user.id})
        return AuthResult(user=user, tokens=self.tokens.issue(user))

    def login(self, identifier: str, password: str) -> AuthResult:
        """
        Authenticate by email or username. Email is looked up first, so if an identifier
        matches one account's email and another's username, the email match wins.
        """
        user = self.store.get_by_email(identifier)
        if user is None:
            user = self.store.get_by_username(identifier)
        if user is None or not verify_password(password, user.password_hash):
            logger.info("Login failed")
            raise AuthenticationError(MSG_INVALID_CREDENTIALS, INVALID_CREDENTIALS)

        logger.info("Login succeeded", extra={"user_id": user.id})
        return AuthResult(user=user, tokens=self.tokens.issue(user))

    def refresh(self, refresh_token: str) -> TokenPair:
        """Exchange a refresh token for a new pair; role is re-read from the store."""
        user_id = self.tokens.verify_refresh(refresh_token)
        user = self.store.get_by_id(user_id) if user_id is not None else None
        if user is None:
            raise AuthenticationError(
                "Invalid or expired refresh token; please log in again",
                INVALID_REFRESH_TOKEN,
            )
        return self.tokens.issue(user)

    def authenticate(self, access_token: str) -> UserRecord:
        """Resolve the live user behind an access token."""
        user_id = self.tokens.verify_access(access_token)
        user = self.store.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User account not found or has been deleted", USER_NOT_FOUND)
        return user

    def get_user(self, user_id: str) -> UserRecord:
        user = self.store.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found", USER_NOT_FOUND)
        return user

    def change_password(self, user_id: str, current_password: str, new_password: str) -> None:
        user = self.get_user(user_id)
        if not verify_password(current_password, user.password_hash):
            raise AuthenticationError(
                "Current password is incorrect", CURRENT_PASSWORD_INCORRECT
            )
        if len(new_password) < PASSWORD_MIN_LEN:
            raise InvalidInputError(
                f"New password must be at least {PASSWORD_MIN_LEN} characters long",
                NEW_PASSWORD_TOO_SHORT,
            )
        self.store.update(
            user_id,
            {"password_hash": hash_password(new_password, rounds=self.password_rounds)},
        )
        logger.info("Password changed", extra={"user_id": user_id})

    def change_username(self, user_id: str, new_username: str) -> UserRecord:
        """Rename a user, at most once per cooldown window."""
        user = self.get_user(user_id)
        now = self._clock()

        if user.last_username_change is not None:
            elapsed = now - user.last_username_change
            if elapsed < self.username_cooldown:
                remaining = (self.username_cooldown - elapsed).total_seconds()
                raise UsernameCooldownError(math.ceil(remaining / SECONDS_PER_DAY))

        if not _username_length_ok(new_username):
            raise InvalidInputError(MSG_USERNAME_LENGTH, USERNAME_INVALID_LENGTH)

        existing = self.store.get_by_username(new_username)
        if existing is not None and existing.id != user_id:
            raise ConflictError("Username already taken", USERNAME_TAKEN)

        # The unique constraint is authoritative: a concurrent rename can pass the
        # check above and still lose at write time.
        try:
            updated = self.store.update(
                user_id, {"username": new_username, "last_username_change": now}
            )
        except DuplicateValueError as e:
            raise _conflict_for(e) from e
        if updated is None:
            raise NotFoundError("User not found", USER_NOT_FOUND)

        logger.info("Username changed", extra={"user_id": user_id})
        return updated

    def update_profile(
        self,
        user_id: str,
        display_name: str | None = None,
        bio: str | None = None,
        avatar_url: str | None = None,
    ) -> UserRecord:
        """Partial profile update; None leaves a field unchanged."""
        self.get_user(user_id)
        if display_name is not None and len(display_name) > DISPLAY_NAME_MAX_LEN:
            raise InvalidInputError(
                f"Display name must be {DISPLAY_NAME_MAX_LEN} characters or less",
                DISPLAY_NAME_TOO_LONG,
            )
        if bio is not None and len(bio) > BIO_MAX_LEN:
            raise InvalidInputError(
                f"Bio must be {BIO_MAX_LEN} characters or less", BIO_TOO_LONG
            )

        changes = {
            key: value
            for key, value in (
                ("display_name", display_name),
                ("bio", bio),
                ("avatar_url", avatar_url),
            )
            if value is not None
        }
        if not changes:
            return self.get_user(user_id)
        updated = self.store.update(user_id, changes)
        if updated is None:
            raise NotFoundError("User not found", USER_NOT_FOUND)
        return updated

    def change_user_role(
        self,
        actor_id: str,
        subject_id: str,
        new_role: str,
        reason: str | None = None,
    ) -> RoleChangeEntry:
        """
        Set subject's role on behalf of actor and append the audit record.

        Reads, the owner count, the role write and the audit append all happen in one
        store transaction so concurrent demotions cannot remove the last site owner.
        """
        if not roles.is_valid_role(new_role):
            raise InvalidInputError(f"Invalid role '{new_role}'", INVALID_ROLE)

        with self.store.transaction():
            actor = self.store.get_by_id(actor_id)
            if actor is None:
                raise NotFoundError("Admin user not found", ACTOR_NOT_FOUND)
            # Owner rows are locked before the subject, in id order, so two concurrent
            # changes always take their locks in the same sequence.
            owner_count = self.store.count_by_role(roles.SITE_OWNER, for_update=True)
            subject = self.store.get_by_id(subject_id, for_update=True)
            if subject is None:
                raise NotFoundError("Target user not found", SUBJECT_NOT_FOUND)

            is_last_site_owner = subject.role == roles.SITE_OWNER and owner_count <= 1
            decision = roles.can_change_role(
                actor.role, subject.role, new_role, is_last_site_owner
            )
            if not decision.allowed:
                logger.info(
                    "Role change denied",
                    extra={
                        "actor_id": actor_id,
                        "subject_id": subject_id,
                        "requested_role": new_role,
                        "code": decision.code,
                    },
                )
                raise AuthorizationError(decision.reason, decision.code)

            self.store.update(subject_id, {"role": new_role})
            record = RoleChangeEntry(
                user_id=subject_id,
                granted_by=actor_id,
                previous_role=subject.role,
                new_role=new_role,
                reason=reason,
                granted_at=self._clock(),
            )
            self.store.append_role_change_record(record)

        logger.info(
            "Role changed",
            extra={
                "actor_id": actor_id,
                "subject_id": subject_id,
                "previous_role": subject.role,
                "new_role": new_role,
            },
        )
        return record

    def list_users_by_role(self, role: str) -> list[UserRecord]:
        if not roles.is_valid_role(role):
            raise InvalidInputError(f"Invalid role '{role}'", INVALID_ROLE)
        return self.store.list_by_role(role)

    def role_history(self, user_id: str) -> list[RoleChangeEntry]:
        """Audit trail for one user, newest first."""
        self.get_user(user_id)
        return self.store.list_role_change_records(user_id)

    @staticmethod
    def has_permission(user: UserRecord, required_role: str) -> bool:
        return roles.at_least(user.role, required_role)

    @staticmethod
    def can_modify_content(user: UserRecord, content_owner_id: str) -> bool:
        """Owners may modify their own content; moderators and above may modify anything."""
        return user.id == content_owner_id or roles.at_least(user.role, roles.MODERATOR)
