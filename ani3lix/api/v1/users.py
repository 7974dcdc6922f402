"""Profile, username and password routes for the authenticated user."""

from typing import Annotated

from fastapi import APIRouter, Depends

from ani3lix.api.v1.auth import get_auth_service, get_current_user, http_error
from ani3lix.schemas.auth import (
    ChangePasswordRequest,
    ChangeUsernameRequest,
    MessageResponse,
    UpdateProfileRequest,
    UserPublic,
    UserResponse,
)
from ani3lix.schemas.user import UserRecord
from ani3lix.services.auth import AuthService
from ani3lix.services.errors import AuthServiceError

router = APIRouter()


@router.put("/profile", response_model=UserResponse)
def update_profile(
    body: UpdateProfileRequest,
    current_user: Annotated[UserRecord, Depends(get_current_user)],
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> UserResponse:
    """Update display name, bio and/or avatar URL; omitted fields are unchanged."""
    try:
        user = service.update_profile(
            current_user.id,
            display_name=body.display_name,
            bio=body.bio,
            avatar_url=body.avatar_url,
        )
    except AuthServiceError as e:
        raise http_error(e) from e
    return UserResponse(
        message="Profile updated successfully",
        user=UserPublic.model_validate(user),
    )


@router.put("/username", response_model=UserResponse)
def change_username(
    body: ChangeUsernameRequest,
    current_user: Annotated[UserRecord, Depends(get_current_user)],
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> UserResponse:
    """Change username (once per week)."""
    try:
        user = service.change_username(current_user.id, body.username)
    except AuthServiceError as e:
        raise http_error(e) from e
    return UserResponse(
        message="Username updated successfully",
        user=UserPublic.model_validate(user),
    )


@router.put("/password", response_model=MessageResponse)
def change_password(
    body: ChangePasswordRequest,
    current_user: Annotated[UserRecord, Depends(get_current_user)],
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> MessageResponse:
    try:
        service.change_password(current_user.id, body.current_password, body.new_password)
    except AuthServiceError as e:
        raise http_error(e) from e
    return MessageResponse(message="Password changed successfully")
