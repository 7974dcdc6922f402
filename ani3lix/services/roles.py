"""
Role hierarchy: total order over roles and the rules for who may change whose role.

Pure decision logic with no I/O. Every rank comparison in the codebase goes through
ROLE_RANKS so the order is defined in exactly one place.
"""

from ani3lix.schemas.roles import ROLE_VALUES, Role, RoleDecision
from ani3lix.services.errors import CANNOT_DEMOTE_LAST_SITE_OWNER, INSUFFICIENT_PERMISSIONS

# user=1, moderator=2, admin=3, site_owner=4
ROLE_RANKS: dict[str, int] = {role: rank for rank, role in enumerate(ROLE_VALUES, start=1)}

SITE_OWNER: Role = "site_owner"
ADMIN: Role = "admin"
MODERATOR: Role = "moderator"

# Roles an admin may assign. Admins cannot create peers or owners.
ADMIN_ASSIGNABLE_ROLES: frozenset[str] = frozenset({"user", "moderator"})

MSG_INSUFFICIENT_PERMISSIONS = "Insufficient permissions to change user roles"
MSG_ADMIN_CEILING = "Admins cannot create other admins or site owners"
MSG_LAST_SITE_OWNER = "Cannot demote the last site owner"


def is_valid_role(role: object) -> bool:
    return isinstance(role, str) and role in ROLE_RANKS


def role_rank(role: str | None) -> int:
    """Numeric rank for a role; unknown or missing roles rank 0 (below user)."""
    if role is None:
        return 0
    return ROLE_RANKS.get(role, 0)


def at_least(actual_role: str | None, required_role: str) -> bool:
    """True if actual_role is the same as or above required_role."""
    required = role_rank(required_role)
    if required == 0:
        return False
    return role_rank(actual_role) >= required


def can_change_role(
    actor_role: str,
    subject_current_role: str,
    requested_new_role: str,
    is_last_site_owner: bool,
) -> RoleDecision:
    """
    Decide whether an actor may set a subject's role.

    - site_owner may assign any role.
    - admin may assign only user or moderator, whatever the subject currently holds,
      so an admin can demote another admin but never promote anyone to admin/site_owner.
    - Anyone else is denied.
    - Demoting the last site_owner is denied for every actor. The caller supplies
      is_last_site_owner for the subject.
    """
    if actor_role == ADMIN:
        if requested_new_role not in ADMIN_ASSIGNABLE_ROLES:
            return RoleDecision(
                allowed=False, code=INSUFFICIENT_PERMISSIONS, reason=MSG_ADMIN_CEILING
            )
    elif actor_role != SITE_OWNER:
        return RoleDecision(
            allowed=False, code=INSUFFICIENT_PERMISSIONS, reason=MSG_INSUFFICIENT_PERMISSIONS
        )

    if (
        subject_current_role == SITE_OWNER
        and requested_new_role != SITE_OWNER
        and is_last_site_owner
    ):
        return RoleDecision(
            allowed=False, code=CANNOT_DEMOTE_LAST_SITE_OWNER, reason=MSG_LAST_SITE_OWNER
        )
    return RoleDecision(allowed=True)
