"""ORM model for the append-only role change audit trail."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, func

from ani3lix.models.base import Base


class RoleChangeRecord(Base):
    """One row per successful role mutation. Rows are never updated or deleted, and a
    user with audit rows cannot be deleted out from under them."""

    __tablename__ = "role_change_records"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    granted_by = Column(String(36), ForeignKey("users.id"), nullable=False)
    previous_role = Column(String(32), nullable=True)
    new_role = Column(String(32), nullable=False)
    reason = Column(Text, nullable=True)
    granted_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
