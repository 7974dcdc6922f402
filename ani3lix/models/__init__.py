"""SQLAlchemy ORM models."""

from ani3lix.models.base import Base
from ani3lix.models.role_change import RoleChangeRecord
from ani3lix.models.user import User

__all__ = ["Base", "RoleChangeRecord", "User"]
