"""Store-facing records: users, role change entries and issued token pairs."""

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ani3lix.schemas.roles import Role


def _as_utc(value: datetime | None) -> datetime | None:
    """Treat naive datetimes (e.g. from SQLite) as UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class UserRecord(BaseModel):
    """Snapshot of a user row as returned by a credential store."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str
    email: str
    password_hash: str
    display_name: str | None = None
    bio: str | None = None
    avatar_url: str | None = None
    role: Role = "user"
    last_username_change: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("last_username_change", "created_at", "updated_at")
    @classmethod
    def normalize_timezone(cls, v: datetime | None) -> datetime | None:
        return _as_utc(v)


class RoleChangeEntry(BaseModel):
    """Audit trail entry appended on every successful role change."""

    model_config = ConfigDict(from_attributes=True)

    user_id: str = Field(..., description="Subject whose role changed")
    granted_by: str = Field(..., description="Actor who made the change")
    previous_role: Role | None = None
    new_role: Role
    reason: str | None = None
    granted_at: datetime

    @field_validator("granted_at")
    @classmethod
    def normalize_timezone(cls, v: datetime) -> datetime:
        return _as_utc(v)


class TokenPair(BaseModel):
    """Signed access and refresh tokens issued together."""

    access_token: str = Field(..., description="Short-lived JWT access token")
    refresh_token: str = Field(..., description="Longer-lived JWT refresh token")
    token_type: str = Field(default="bearer", description="Token type")


class AuthResult(BaseModel):
    """User plus freshly issued tokens (register and login)."""

    user: UserRecord
    tokens: TokenPair
