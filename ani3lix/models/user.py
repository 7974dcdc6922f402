"""ORM model for application users (auth and RBAC)."""

import uuid

from sqlalchemy import CheckConstraint, Column, DateTime, String, Text, func

from ani3lix.models.base import Base


class User(Base):
    """
    User account for JWT authentication and role-based access control.

    role: 'user', 'moderator', 'admin' or 'site_owner' (ascending privilege).
    id is a UUID string assigned on insert and never changed.
    """

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(
            "role IN ('user', 'moderator', 'admin', 'site_owner')",
            name="ck_users_role",
        ),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    username = Column(String(50), nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    display_name = Column(String(100), nullable=True)
    bio = Column(Text, nullable=True)
    avatar_url = Column(Text, nullable=True)
    role = Column(String(32), nullable=False, default="user", index=True)
    last_username_change = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
