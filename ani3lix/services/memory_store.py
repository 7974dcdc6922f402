"""Process-local credential store for tests and local tooling."""

import threading
import uuid
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import Any

from ani3lix.schemas.roles import DEFAULT_ROLE
from ani3lix.schemas.user import RoleChangeEntry, UserRecord
from ani3lix.services.credential_store import DuplicateValueError


def _utcnow() -> datetime:
    return datetime.now(UTC)


class InMemoryCredentialStore:
    """
    Dict-backed store. A re-entrant lock serializes transactions; if the body of
    transaction() raises, users and audit records are restored to their prior state.
    Records are copied on the way in and out so callers cannot mutate stored rows.
    """

    def __init__(self, clock: Callable[[], datetime] = _utcnow) -> None:
        self._users: dict[str, UserRecord] = {}
        self._role_changes: list[RoleChangeEntry] = []
        self._lock = threading.RLock()
        self._clock = clock

    @contextmanager
    def transaction(self) -> Iterator[None]:
        with self._lock:
            users_snapshot = dict(self._users)
            changes_snapshot = list(self._role_changes)
            try:
                yield
            except Exception:
                self._users = users_snapshot
                self._role_changes = changes_snapshot
                raise

    def _check_unique(self, fields: dict[str, Any], exclude_id: str | None = None) -> None:
        for field in ("username", "email"):
            if field not in fields:
                continue
            for user in self._users.values():
                if user.id != exclude_id and getattr(user, field) == fields[field]:
                    raise DuplicateValueError(field)

    def get_by_id(self, user_id: str, *, for_update: bool = False) -> UserRecord | None:
        user = self._users.get(user_id)
        return user.model_copy() if user is not None else None

    def get_by_username(self, username: str) -> UserRecord | None:
        for user in self._users.values():
            if user.username == username:
                return user.model_copy()
        return None

    def get_by_email(self, email: str) -> UserRecord | None:
        for user in self._users.values():
            if user.email == email:
                return user.model_copy()
        return None

    def create(self, fields: dict[str, Any]) -> UserRecord:
        with self._lock:
            self._check_unique(fields)
            now = self._clock()
            data = {"role": DEFAULT_ROLE, **fields}
            user = UserRecord(id=str(uuid.uuid4()), created_at=now, updated_at=now, **data)
            self._users[user.id] = user
            return user.model_copy()

    def update(self, user_id: str, fields: dict[str, Any]) -> UserRecord | None:
        with self._lock:
            current = self._users.get(user_id)
            if current is None:
                return None
            self._check_unique(fields, exclude_id=user_id)
            updated = UserRecord.model_validate(
                {**current.model_dump(), **fields, "updated_at": self._clock()}
            )
            self._users[user_id] = updated
            return updated.model_copy()

    def count_by_role(self, role: str, *, for_update: bool = False) -> int:
        return sum(1 for user in self._users.values() if user.role == role)

    def list_by_role(self, role: str) -> list[UserRecord]:
        users = [u for u in self._users.values() if u.role == role]
        return [u.model_copy() for u in sorted(users, key=lambda u: (u.created_at, u.id))]

    def append_role_change_record(self, record: RoleChangeEntry) -> None:
        with self._lock:
            self._role_changes.append(record.model_copy())

    def list_role_change_records(self, user_id: str) -> list[RoleChangeEntry]:
        records = [r for r in self._role_changes if r.user_id == user_id]
        return [r.model_copy() for r in reversed(records)]
