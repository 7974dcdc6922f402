"""Typed failures raised by the auth core. Each carries a stable machine-readable code."""

# Validation
USERNAME_INVALID_LENGTH = "username_invalid_length"
PASSWORD_TOO_SHORT = "password_too_short"
NEW_PASSWORD_TOO_SHORT = "new_password_too_short"
DISPLAY_NAME_TOO_LONG = "display_name_too_long"
BIO_TOO_LONG = "bio_too_long"
INVALID_ROLE = "invalid_role"
USERNAME_COOLDOWN_ACTIVE = "username_cooldown_active"

# Conflict
USERNAME_TAKEN = "username_taken"
EMAIL_TAKEN = "email_taken"

# Authentication
INVALID_CREDENTIALS = "invalid_credentials"
INVALID_REFRESH_TOKEN = "invalid_refresh_token"
CURRENT_PASSWORD_INCORRECT = "current_password_incorrect"
TOKEN_EXPIRED = "token_expired"
TOKEN_INVALID = "token_invalid"
TOKEN_WRONG_AUDIENCE = "token_wrong_audience"

# Authorization
INSUFFICIENT_PERMISSIONS = "insufficient_permissions"
CANNOT_DEMOTE_LAST_SITE_OWNER = "cannot_demote_last_site_owner"

# Not found
USER_NOT_FOUND = "user_not_found"
ACTOR_NOT_FOUND = "actor_not_found"
SUBJECT_NOT_FOUND = "subject_not_found"


class AuthServiceError(Exception):
    """Base class for expected auth failures; message is safe to show to the caller."""

    def __init__(self, message: str, code: str) -> None:
        self.message = message
        self.code = code
        super().__init__(message)


class InvalidInputError(AuthServiceError):
    """Bad length or format. Reported verbatim, never retried."""


class UsernameCooldownError(InvalidInputError):
    """Username was changed too recently; days_remaining is rounded up to whole days."""

    def __init__(self, days_remaining: int) -> None:
        self.days_remaining = days_remaining
        super().__init__(
            "Username can only be changed once per week. "
            f"Please wait {days_remaining} more day{'s' if days_remaining != 1 else ''}.",
            USERNAME_COOLDOWN_ACTIVE,
        )


class ConflictError(AuthServiceError):
    """Username or email already in use."""


class AuthenticationError(AuthServiceError):
    """Credentials or token rejected. Messages stay generic to avoid leaking account existence."""


class AuthorizationError(AuthServiceError):
    """Authenticated but not allowed; the reason is safe to reveal."""


class NotFoundError(AuthServiceError):
    """User, actor or subject does not exist."""
