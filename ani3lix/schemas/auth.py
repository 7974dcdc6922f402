"""Request/response schemas for auth, profile and admin endpoints."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from ani3lix.core.security import EMAIL_MAX_LEN, PASSWORD_MAX_LEN
from ani3lix.schemas.roles import Role
from ani3lix.schemas.user import TokenPair


class RegisterRequest(BaseModel):
    """New account details. Length rules are enforced by the auth service."""

    username: str = Field(..., min_length=1, max_length=255, description="Username (3-50 chars)")
    email: str = Field(..., min_length=3, max_length=EMAIL_MAX_LEN, description="Email address")
    password: str = Field(
        ..., min_length=1, max_length=PASSWORD_MAX_LEN, description="Password (8+ chars)"
    )
    display_name: str | None = Field(default=None, description="Optional display name")
    bio: str | None = Field(default=None, description="Optional biography")


class LoginRequest(BaseModel):
    """Credentials for login; identifier is an email or a username."""

    identifier: str = Field(..., min_length=1, max_length=255, description="Email or username")
    password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN, description="Password")


class RefreshRequest(BaseModel):
    """Refresh token to exchange for a new token pair."""

    refresh_token: str = Field(..., min_length=1, description="JWT refresh token")


class UserPublic(BaseModel):
    """User as returned by the API (no password hash)."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str
    email: str
    display_name: str | None = None
    bio: str | None = None
    avatar_url: str | None = None
    role: Role
    last_username_change: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class AuthResponse(BaseModel):
    """Response for register and login."""

    message: str
    user: UserPublic
    tokens: TokenPair


class RefreshResponse(BaseModel):
    """Response for token refresh."""

    message: str = "Tokens refreshed successfully"
    tokens: TokenPair


class CurrentUserResponse(BaseModel):
    """Response for GET /auth/me."""

    user: UserPublic


class UpdateProfileRequest(BaseModel):
    """Partial profile update; omitted fields are left unchanged."""

    display_name: str | None = None
    bio: str | None = None
    avatar_url: str | None = None


class ChangeUsernameRequest(BaseModel):
    """New username (3-50 chars, once per cooldown window)."""

    username: str = Field(..., min_length=1, max_length=255)


class ChangePasswordRequest(BaseModel):
    """Current password for verification plus the replacement."""

    current_password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN)
    new_password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN)


class UserResponse(BaseModel):
    """Response carrying a single updated user."""

    message: str
    user: UserPublic


class MessageResponse(BaseModel):
    """Plain acknowledgement."""

    message: str


class ChangeRoleRequest(BaseModel):
    """Role change requested by an admin or site owner."""

    role: str = Field(..., min_length=1, max_length=32, description="New role")
    reason: str | None = Field(default=None, max_length=1000, description="Audit note")


class UsersListResponse(BaseModel):
    """Response for GET /admin/users."""

    users: list[UserPublic]


class RoleChangeItem(BaseModel):
    """Audit trail entry as returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    user_id: str
    granted_by: str
    previous_role: Role | None = None
    new_role: Role
    reason: str | None = None
    granted_at: datetime


class RoleHistoryResponse(BaseModel):
    """Response for GET /admin/users/{id}/role-history."""

    records: list[RoleChangeItem]
