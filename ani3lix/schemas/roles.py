"""Role values and role change decisions for role-based access control."""

from typing import Literal

from pydantic import BaseModel, Field

Role = Literal["user", "moderator", "admin", "site_owner"]

# Ascending privilege. Rank lookups are derived from this order in services.roles.
ROLE_VALUES: tuple[Role, ...] = ("user", "moderator", "admin", "site_owner")

DEFAULT_ROLE: Role = "user"


class RoleDecision(BaseModel):
    """Outcome of a role change check: allowed, or denied with a code and reason."""

    allowed: bool = Field(..., description="True when the change may proceed")
    code: str | None = Field(default=None, description="Error code when denied")
    reason: str | None = Field(default=None, description="Caller-visible reason when denied")
