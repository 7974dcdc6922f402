"""Interface the auth service uses to read and write users and the role audit trail."""

from contextlib import AbstractContextManager
from typing import Any, Protocol

from ani3lix.schemas.user import RoleChangeEntry, UserRecord


class DuplicateValueError(Exception):
    """Raised by a store when a unique column (username or email) would be duplicated."""

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f"Duplicate value for unique field '{field}'")


class CredentialStore(Protocol):
    """
    Keyed user store. Implementations must enforce username/email uniqueness
    themselves (raising DuplicateValueError) and make everything done inside
    transaction() commit or roll back as one unit.

    for_update=True asks the store to lock the rows read until the surrounding
    transaction ends, where the backend supports it. count_by_role locks its rows in
    id order.
    """

    def get_by_id(self, user_id: str, *, for_update: bool = False) -> UserRecord | None: ...

    def get_by_username(self, username: str) -> UserRecord | None: ...

    def get_by_email(self, email: str) -> UserRecord | None: ...

    def create(self, fields: dict[str, Any]) -> UserRecord: ...

    def update(self, user_id: str, fields: dict[str, Any]) -> UserRecord | None: ...

    def count_by_role(self, role: str, *, for_update: bool = False) -> int: ...

    def list_by_role(self, role: str) -> list[UserRecord]: ...

    def append_role_change_record(self, record: RoleChangeEntry) -> None: ...

    def list_role_change_records(self, user_id: str) -> list[RoleChangeEntry]: ...

    def transaction(self) -> AbstractContextManager[None]: ...
