"""Admin user management: list users by role, change roles, read the role audit trail."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from ani3lix.api.v1.auth import get_auth_service, http_error, require_admin
from ani3lix.schemas.auth import (
    ChangeRoleRequest,
    MessageResponse,
    RoleChangeItem,
    RoleHistoryResponse,
    UserPublic,
    UsersListResponse,
)
from ani3lix.schemas.roles import Role
from ani3lix.schemas.user import UserRecord
from ani3lix.services.auth import AuthService
from ani3lix.services.errors import AuthServiceError

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/users", response_model=UsersListResponse)
def list_users(
    _admin: Annotated[UserRecord, Depends(require_admin)],
    service: Annotated[AuthService, Depends(get_auth_service)],
    role: Annotated[Role, Query(description="Only users holding this role")],
) -> UsersListResponse:
    """List users holding a role (admin or higher)."""
    try:
        users = service.list_users_by_role(role)
    except AuthServiceError as e:
        raise http_error(e) from e
    return UsersListResponse(users=[UserPublic.model_validate(u) for u in users])


@router.put("/users/{user_id}/role", response_model=MessageResponse)
def change_user_role(
    user_id: str,
    body: ChangeRoleRequest,
    admin: Annotated[UserRecord, Depends(require_admin)],
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> MessageResponse:
    """
    Change a user's role. Admins may assign user or moderator; site owners may assign
    any role. The last site owner can never be demoted.
    """
    try:
        service.change_user_role(admin.id, user_id, body.role, reason=body.reason)
    except AuthServiceError as e:
        logger.info("Role change rejected", extra={"code": e.code})
        raise http_error(e) from e
    return MessageResponse(message="User role updated successfully")


@router.get("/users/{user_id}/role-history", response_model=RoleHistoryResponse)
def role_history(
    user_id: str,
    _admin: Annotated[UserRecord, Depends(require_admin)],
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> RoleHistoryResponse:
    """Role change audit trail for one user, newest first."""
    try:
        records = service.role_history(user_id)
    except AuthServiceError as e:
        raise http_error(e) from e
    return RoleHistoryResponse(records=[RoleChangeItem.model_validate(r) for r in records])
