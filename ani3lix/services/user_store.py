"""SQLAlchemy-backed credential store (users and role change audit trail)."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ani3lix.models import RoleChangeRecord, User
from ani3lix.schemas.user import RoleChangeEntry, UserRecord
from ani3lix.services.credential_store import DuplicateValueError

logger = logging.getLogger(__name__)

UNIQUE_FIELDS = ("username", "email")


class SqlAlchemyCredentialStore:
    """
    Credential store over one request-scoped Session.

    Outside transaction() every write commits immediately. Inside it, writes are only
    flushed and the whole block commits (or rolls back) at the end. Uniqueness is left
    to the database constraints; violations surface as DuplicateValueError.
    """

    def __init__(self, session: Session) -> None:
        self.session = session
        self._in_transaction = False

    @contextmanager
    def transaction(self) -> Iterator[None]:
        if self._in_transaction:
            yield
            return
        self._in_transaction = True
        try:
            yield
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        finally:
            self._in_transaction = False

    def _persist(self, fields: dict[str, Any], exclude_id: str | None = None) -> None:
        try:
            if self._in_transaction:
                self.session.flush()
            else:
                self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            field = self._conflicting_field(fields, exclude_id)
            if field is None:
                raise
            logger.info("Unique constraint violated", extra={"field": field})
            raise DuplicateValueError(field) from e

    def _conflicting_field(self, fields: dict[str, Any], exclude_id: str | None) -> str | None:
        for field in UNIQUE_FIELDS:
            if field not in fields:
                continue
            existing = (
                self.session.query(User)
                .filter(getattr(User, field) == fields[field])
                .first()
            )
            if existing is not None and existing.id != exclude_id:
                return field
        return None

    def get_by_id(self, user_id: str, *, for_update: bool = False) -> UserRecord | None:
        query = self.session.query(User).filter(User.id == user_id)
        if for_update:
            query = query.with_for_update().populate_existing()
        user = query.first()
        return UserRecord.model_validate(user) if user is not None else None

    def get_by_username(self, username: str) -> UserRecord | None:
        user = self.session.query(User).filter(User.username == username).first()
        return UserRecord.model_validate(user) if user is not None else None

    def get_by_email(self, email: str) -> UserRecord | None:
        user = self.session.query(User).filter(User.email == email).first()
        return UserRecord.model_validate(user) if user is not None else None

    def create(self, fields: dict[str, Any]) -> UserRecord:
        user = User(**fields)
        self.session.add(user)
        self._persist(fields)
        return UserRecord.model_validate(user)

    def update(self, user_id: str, fields: dict[str, Any]) -> UserRecord | None:
        user = self.session.get(User, user_id)
        if user is None:
            return None
        for key, value in fields.items():
            setattr(user, key, value)
        self._persist(fields, exclude_id=user_id)
        return UserRecord.model_validate(user)

    def count_by_role(self, role: str, *, for_update: bool = False) -> int:
        query = self.session.query(User.id).filter(User.role == role)
        if for_update:
            # Locks every current holder in id order so concurrent role changes serialize
            # on PostgreSQL without deadlocking.
            return len(query.order_by(User.id).with_for_update().all())
        return query.count()

    def list_by_role(self, role: str) -> list[UserRecord]:
        users = (
            self.session.query(User)
            .filter(User.role == role)
            .order_by(User.created_at, User.id)
            .all()
        )
        return [UserRecord.model_validate(u) for u in users]

    def append_role_change_record(self, record: RoleChangeEntry) -> None:
        self.session.add(RoleChangeRecord(**record.model_dump()))
        self._persist({})

    def list_role_change_records(self, user_id: str) -> list[RoleChangeEntry]:
        rows = (
            self.session.query(RoleChangeRecord)
            .filter(RoleChangeRecord.user_id == user_id)
            .order_by(RoleChangeRecord.granted_at.desc(), RoleChangeRecord.id.desc())
            .all()
        )
        return [RoleChangeEntry.model_validate(r) for r in rows]
