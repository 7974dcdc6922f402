"""Pydantic request/response schemas and store-facing records."""

from ani3lix.schemas.auth import (
    AuthResponse,
    ChangePasswordRequest,
    ChangeRoleRequest,
    ChangeUsernameRequest,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    UpdateProfileRequest,
    UserPublic,
)
from ani3lix.schemas.health import HealthResponse
from ani3lix.schemas.roles import DEFAULT_ROLE, ROLE_VALUES, Role, RoleDecision
from ani3lix.schemas.user import AuthResult, RoleChangeEntry, TokenPair, UserRecord

__all__ = [
    "AuthResponse",
    "AuthResult",
    "ChangePasswordRequest",
    "ChangeRoleRequest",
    "ChangeUsernameRequest",
    "DEFAULT_ROLE",
    "HealthResponse",
    "LoginRequest",
    "ROLE_VALUES",
    "RefreshRequest",
    "RegisterRequest",
    "Role",
    "RoleChangeEntry",
    "RoleDecision",
    "TokenPair",
    "UpdateProfileRequest",
    "UserPublic",
    "UserRecord",
]
